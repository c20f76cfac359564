from .codec import SCHEMA_VERSION, decode_save, encode_save, migrate_data
from .errors import CorruptSaveError, SaveError, SaveValidationError
from .manager import SaveManager, default_save_dir

__all__ = [
    "SCHEMA_VERSION",
    "encode_save",
    "decode_save",
    "migrate_data",
    "SaveError",
    "SaveValidationError",
    "CorruptSaveError",
    "SaveManager",
    "default_save_dir",
]
