class TombsError(Exception):
    """Base exception for the tombs package."""


class GenerationError(TombsError):
    """Raised when the dungeon generator cannot place a single room.

    Unrecoverable for the given seed/size combination; the caller decides
    whether to retry with another seed or abort.
    """

    def __init__(self, level: int, seed: int, width: int, height: int) -> None:
        self.level = level
        self.seed = seed
        self.width = width
        self.height = height
        super().__init__(
            f"No room could be placed (level={level}, seed={seed}, size={width}x{height})"
        )


class ContractViolation(TombsError):
    """Raised when a caller breaks a core contract (bad index, out-of-map position, dead target)."""


class ConfigError(TombsError):
    """Raised when settings cannot be read or fail validation."""
