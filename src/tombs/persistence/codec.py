from __future__ import annotations

import json
import logging
from typing import Any, Dict

from ..errors import ConfigError, ContractViolation
from ..scheduler import TurnScheduler
from .errors import SaveValidationError

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1


def encode_save(scheduler: TurnScheduler) -> str:
    """Encode a running game to a pretty-printed JSON string."""
    data = {"schema_version": SCHEMA_VERSION, "game": scheduler.to_dict()}
    return json.dumps(data, ensure_ascii=False, sort_keys=True, indent=2)


def decode_save(text: str) -> TurnScheduler:
    """Decode JSON text back into a scheduler, migrating older schemas first."""
    try:
        data: Dict[str, Any] = json.loads(text)
    except json.JSONDecodeError as e:
        raise SaveValidationError(f"Invalid JSON: {e}") from e
    if not isinstance(data, dict) or "game" not in data:
        raise SaveValidationError("Save data has no 'game' section")

    version = int(data.get("schema_version", SCHEMA_VERSION))
    if version != SCHEMA_VERSION:
        data = migrate_data(data, from_version=version, to_version=SCHEMA_VERSION)

    try:
        return TurnScheduler.from_dict(data["game"])
    except (AttributeError, KeyError, TypeError, ValueError, ConfigError, ContractViolation) as e:
        raise SaveValidationError(f"Malformed save data: {e!r}") from e


def migrate_data(data: Dict[str, Any], from_version: int, to_version: int) -> Dict[str, Any]:
    """Step save data forward one schema version at a time.

    Version 1 is the only schema so far; older numbers are just relabelled.
    """
    if from_version == to_version:
        return data
    if from_version > to_version:
        raise SaveValidationError(
            f"Save schema version {from_version} is newer than supported {to_version}."
        )
    logger.info("Migrating save data from schema %d to %d", from_version, to_version)
    data["schema_version"] = to_version
    return data
