from __future__ import annotations

import logging
from importlib import resources
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .errors import ConfigError

logger = logging.getLogger(__name__)


class _Section(BaseModel):
    model_config = ConfigDict(extra="forbid")


class MapSettings(_Section):
    width: int = Field(80, description="Map width in tiles")
    height: int = Field(43, description="Map height in tiles")

    @field_validator("width", "height")
    @classmethod
    def at_least_ten(cls, v: int) -> int:
        if v < 10:
            raise ValueError("map dimensions must be at least 10")
        return v


class GenerationSettings(_Section):
    max_room_attempts: int = Field(30, gt=0)
    room_min_size: int = Field(6, gt=2)
    room_max_size: int = Field(10, gt=2)
    # [[from_level, value], ...] in ascending level order
    max_monsters: list = Field(default_factory=lambda: [[1, 2], [4, 3], [6, 5]])
    max_items: list = Field(default_factory=lambda: [[1, 1], [4, 2]])

    @model_validator(mode="after")
    def room_bounds(self) -> "GenerationSettings":
        if self.room_min_size > self.room_max_size:
            raise ValueError("room_min_size must not exceed room_max_size")
        return self

    @field_validator("max_monsters", "max_items")
    @classmethod
    def level_table(cls, v: list) -> list:
        out = []
        for entry in v:
            if not isinstance(entry, (list, tuple)) or len(entry) != 2:
                raise ValueError("table entries must be [level, value] pairs")
            out.append([int(entry[0]), int(entry[1])])
        return out


class FovSettings(_Section):
    torch_radius: int = Field(10, ge=0)


class CombatSettings(_Section):
    damage_jitter: int = Field(0, ge=0, description="Random +/- spread added to each hit")


class ItemSettings(_Section):
    heal_amount: int = Field(40, gt=0)
    lightning_damage: int = Field(40, gt=0)
    lightning_range: int = Field(5, gt=0)
    confuse_range: int = Field(8, gt=0)
    confuse_turns: int = Field(10, gt=0)
    fireball_radius: int = Field(3, ge=0)
    fireball_damage: int = Field(25, gt=0)


class PlayerSettings(_Section):
    name: str = "Player"
    max_hp: int = Field(100, gt=0)
    power: int = Field(2, ge=0)
    defense: int = Field(1, ge=0)
    inventory_capacity: int = Field(26, gt=0)
    starting_dagger: bool = True


class ProgressionSettings(_Section):
    level_up_base: int = Field(200, gt=0)
    level_up_factor: int = Field(150, ge=0)
    constitution_hp: int = Field(20, gt=0)
    strength_power: int = Field(1, gt=0)
    agility_defense: int = Field(1, gt=0)


class AiSettings(_Section):
    hostile_requires_visibility: bool = True


class PathfindingSettings(_Section):
    block_diagonal_squeeze: bool = True


class Settings(BaseModel):
    """Tunable game constants.

    Defaults ship as ``tombs/data/default_settings.yaml``; a user file is
    deep-merged over them. Unknown keys are rejected so typos surface early.
    """

    model_config = ConfigDict(extra="forbid")

    map: MapSettings = Field(default_factory=MapSettings)
    generation: GenerationSettings = Field(default_factory=GenerationSettings)
    fov: FovSettings = Field(default_factory=FovSettings)
    combat: CombatSettings = Field(default_factory=CombatSettings)
    items: ItemSettings = Field(default_factory=ItemSettings)
    player: PlayerSettings = Field(default_factory=PlayerSettings)
    progression: ProgressionSettings = Field(default_factory=ProgressionSettings)
    ai: AiSettings = Field(default_factory=AiSettings)
    pathfinding: PathfindingSettings = Field(default_factory=PathfindingSettings)

    @staticmethod
    def _load_yaml(path: Path) -> Dict[str, Any]:
        try:
            with path.open("r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.error("Failed to read settings file %s: %s", path, e)
            raise ConfigError(f"Cannot read settings file {path}: {e}") from e
        if not isinstance(data, dict):
            logger.error("Settings file %s does not contain a mapping", path)
            raise ConfigError(f"Settings file {path} must contain a mapping at the top level")
        return data

    @classmethod
    def _deep_merge(cls, base: Dict[str, Any], overlay: Dict[str, Any]) -> Dict[str, Any]:
        merged = dict(base)
        for k, v in (overlay or {}).items():
            if isinstance(v, dict) and isinstance(base.get(k), dict):
                merged[k] = cls._deep_merge(base[k], v)
            else:
                merged[k] = v
        return merged

    @classmethod
    def defaults(cls) -> Dict[str, Any]:
        try:
            with resources.files("tombs.data").joinpath("default_settings.yaml").open("r", encoding="utf-8") as f:
                return yaml.safe_load(f) or {}
        except FileNotFoundError:
            logger.warning("Default settings not found; falling back to model defaults.")
            return cls().model_dump()

    @classmethod
    def from_mapping(cls, data: Dict[str, Any]) -> "Settings":
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            logger.error("Invalid settings: %s", e)
            raise ConfigError(f"Invalid settings: {e}") from e

    @classmethod
    def load(cls, user_path: Optional[Path] = None) -> "Settings":
        """Load packaged defaults and overlay ``user_path`` when it exists."""
        user_data: Dict[str, Any] = {}
        if user_path is not None:
            user_path = Path(user_path)
            if user_path.exists():
                user_data = cls._load_yaml(user_path)
                logger.info("Loaded user settings from %s", user_path)
            else:
                logger.warning("User settings file not found: %s", user_path)

        settings = cls.from_mapping(cls._deep_merge(cls.defaults(), user_data))
        logger.debug("Settings merged: %s", settings)
        return settings

    def save(self, path: Path) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as f:
            yaml.safe_dump(self.model_dump(), f, sort_keys=False)
        logger.info("Saved settings to %s", path)


__all__ = [
    "Settings",
    "MapSettings",
    "GenerationSettings",
    "FovSettings",
    "CombatSettings",
    "ItemSettings",
    "PlayerSettings",
    "ProgressionSettings",
    "AiSettings",
    "PathfindingSettings",
]
