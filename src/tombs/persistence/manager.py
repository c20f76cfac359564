from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from platformdirs import PlatformDirs

from ..scheduler import TurnScheduler
from ..utils.fs import atomic_write_text, ensure_dir
from .codec import decode_save, encode_save
from .errors import CorruptSaveError, SaveError, SaveValidationError

logger = logging.getLogger(__name__)

APP_NAME = "tombs"
APP_AUTHOR = "tombs"


def default_save_dir() -> Path:
    return Path(PlatformDirs(appname=APP_NAME, appauthor=APP_AUTHOR).user_data_dir) / "saves"


class SaveManager:
    """Reads and writes save slots as JSON files in one directory.

    Each write goes through a temp file and the previous file is kept as
    ``<slot>.json.bak``; loading falls back to that backup when the primary
    file is unreadable.
    """

    def __init__(self, root_dir: Optional[Path] = None) -> None:
        self.root_dir = ensure_dir(Path(root_dir) if root_dir is not None else default_save_dir())

    def path_for(self, slot: str) -> Path:
        if not slot or any(ch in slot for ch in "/\\") or slot.startswith("."):
            raise ValueError(f"Invalid save slot name: {slot!r}")
        return self.root_dir / f"{slot}.json"

    def exists(self, slot: str = "default") -> bool:
        return self.path_for(slot).exists()

    def save(self, scheduler: TurnScheduler, slot: str = "default") -> Path:
        path = self.path_for(slot)
        text = encode_save(scheduler)
        if path.exists():
            atomic_write_text(path.with_suffix(path.suffix + ".bak"), path.read_text(encoding="utf-8"))
        atomic_write_text(path, text)
        logger.info("Saved game (level=%d, turn=%d) to %s", scheduler.level, scheduler.turn, path)
        return path

    def load(self, slot: str = "default") -> TurnScheduler:
        path = self.path_for(slot)
        if not path.exists():
            raise SaveError(f"Save file not found: {path}")
        try:
            return self._read(path)
        except SaveValidationError as primary:
            bak = path.with_suffix(path.suffix + ".bak")
            if bak.exists():
                logger.warning("Save %s is unreadable (%s); trying backup", path, primary)
                try:
                    return self._read(bak)
                except SaveValidationError:
                    logger.debug("Backup %s is unreadable too", bak, exc_info=True)
            logger.error("Unable to load save from %s: %s", path, primary)
            raise CorruptSaveError(f"Unable to load save from {path}: {primary}") from primary

    def delete(self, slot: str = "default") -> None:
        path = self.path_for(slot)
        for p in (path, path.with_suffix(path.suffix + ".bak")):
            if p.exists():
                p.unlink()
        logger.info("Deleted save slot %s", slot)

    def _read(self, path: Path) -> TurnScheduler:
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise SaveValidationError(f"Cannot read {path}: {e}") from e
        return decode_save(text)
