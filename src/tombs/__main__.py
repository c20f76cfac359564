from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from . import __version__
from .app import run_headless
from .config import Settings
from .errors import TombsError
from .logging_config import configure_logging

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="tombs",
        description="Tombs of the Ancient Kings - headless autopilot runner",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--seed", type=int, default=None, help="Master seed (random if omitted)")
    parser.add_argument("--turns", type=int, default=200, help="Stop after N player turns")
    parser.add_argument("--width", type=int, default=None, help="Override map width")
    parser.add_argument("--height", type=int, default=None, help="Override map height")
    parser.add_argument("--settings", type=Path, default=None, help="YAML file overlaid on the defaults")
    parser.add_argument("--save", type=Path, default=None, help="Write the final game state to this file")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="Increase log verbosity (-v, -vv)")

    args = parser.parse_args(argv)
    level = logging.WARNING
    if args.verbose == 1:
        level = logging.INFO
    elif args.verbose >= 2:
        level = logging.DEBUG
    configure_logging(level)

    try:
        settings = Settings.load(args.settings)
        if args.width is not None or args.height is not None:
            overlay = {"map": {k: v for k, v in (("width", args.width), ("height", args.height)) if v is not None}}
            settings = Settings.from_mapping(Settings._deep_merge(settings.model_dump(), overlay))
        summary = run_headless(seed=args.seed, turns=args.turns, settings=settings, save_path=args.save)
    except TombsError as e:
        logger.error("%s", e)
        print(f"error: {e}", file=sys.stderr)
        return 2

    print(json.dumps(summary, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
