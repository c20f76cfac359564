from ..errors import TombsError


class SaveError(TombsError):
    """Base exception for save/load errors."""


class SaveValidationError(SaveError):
    """Raised when save data is malformed or from an unsupported schema."""


class CorruptSaveError(SaveError):
    """Raised when a save file exists but cannot be recovered."""
