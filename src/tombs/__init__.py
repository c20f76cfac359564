"""
Tombs of the Ancient Kings: a turn-based roguelike simulation core.

The package is engine-agnostic. Rendering and physical input live outside of
it; they talk to :class:`tombs.scheduler.TurnScheduler` through intents,
read-only views and the message log.
"""
from importlib.metadata import PackageNotFoundError, version

__all__ = ["__version__"]

try:
    __version__ = version("tombs")
except PackageNotFoundError:  # pragma: no cover - during tests without packaging
    __version__ = "0.0.0"
