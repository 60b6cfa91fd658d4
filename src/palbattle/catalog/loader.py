"""
YAML loader for the static reference catalogs.

Each table lives in its own YAML file under a data directory:

    items.yaml          items: {item_id: {...}}, potions: {potion_id: {...}}
    skill_trees.yaml    skill_trees: {CreatureType: {name, skills: {...}}}
    status_effects.yaml status_effects: {effect_type: {...}}
    type_chart.yaml     type_chart: {CreatureType: {strong: [...], weak: [...]}}
    monsters.yaml       monsters: {monster_id: {...}}
"""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError

from ..errors import CatalogError
from .models import (
    ItemDefinition,
    MonsterDefinition,
    PotionDefinition,
    SkillDefinition,
    SkillTreeDefinition,
    StatusEffectDefinition,
    TypeRelations,
)

logger = logging.getLogger("palbattle.catalog")

DEFAULT_DATA_DIR = Path(__file__).parent / "data"


class GameCatalog(BaseModel):
    """All static tables the combat engine reads from.

    Lookups by unknown id return ``None`` rather than raising, so content
    drift never aborts a battle.
    """

    items: dict[str, ItemDefinition] = Field(default_factory=dict)
    potions: dict[str, PotionDefinition] = Field(default_factory=dict)
    skill_trees: dict[str, SkillTreeDefinition] = Field(default_factory=dict)
    status_effects: dict[str, StatusEffectDefinition] = Field(default_factory=dict)
    type_chart: dict[str, TypeRelations] = Field(default_factory=dict)
    monsters: dict[str, MonsterDefinition] = Field(default_factory=dict)

    def item(self, item_id: str | None) -> ItemDefinition | None:
        if not item_id:
            return None
        return self.items.get(item_id)

    def potion(self, potion_id: str | None) -> PotionDefinition | None:
        if not potion_id:
            return None
        return self.potions.get(potion_id)

    def status_effect(self, effect_type: str) -> StatusEffectDefinition | None:
        return self.status_effects.get(effect_type)

    def skill(self, creature_type: str, skill_id: str) -> SkillDefinition | None:
        tree = self.skill_trees.get(creature_type)
        if tree is None:
            return None
        return tree.skills.get(skill_id)

    def relations(self, creature_type: str) -> TypeRelations | None:
        return self.type_chart.get(creature_type)

    def monster(self, monster_id: str) -> MonsterDefinition | None:
        return self.monsters.get(monster_id)


def _read_yaml(path: Path, key: str) -> dict[str, Any]:
    """Read one top-level mapping from a YAML file.

    Raises:
        CatalogError: If the file is missing, malformed, or lacks ``key``.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError as e:
        raise CatalogError(f"Catalog file not found: {path}") from e
    except yaml.YAMLError as e:
        raise CatalogError(f"Malformed YAML in {path}: {e}") from e

    if not isinstance(data, dict) or key not in data:
        raise CatalogError(f"{path.name} must contain a '{key}' key")
    section = data[key] or {}
    if not isinstance(section, dict):
        raise CatalogError(f"'{key}' in {path.name} must be a mapping")
    return section


def load_catalog(data_dir: Path | str | None = None) -> GameCatalog:
    """Load every catalog table from ``data_dir`` (the bundled data by default).

    Args:
        data_dir: Directory holding the YAML tables.

    Returns:
        A validated GameCatalog.

    Raises:
        CatalogError: If a file is missing/malformed or fails validation
            (including misspelled skill bonus keys).
    """
    root = Path(data_dir) if data_dir is not None else DEFAULT_DATA_DIR

    items_path = root / "items.yaml"
    raw = {
        "items": _read_yaml(items_path, "items"),
        "potions": _read_yaml(items_path, "potions"),
        "skill_trees": _read_yaml(root / "skill_trees.yaml", "skill_trees"),
        "status_effects": _read_yaml(root / "status_effects.yaml", "status_effects"),
        "type_chart": _read_yaml(root / "type_chart.yaml", "type_chart"),
        "monsters": _read_yaml(root / "monsters.yaml", "monsters"),
    }

    try:
        catalog = GameCatalog.model_validate(raw)
    except ValidationError as e:
        raise CatalogError(f"Invalid catalog data in {root}: {e}") from e

    logger.info(
        "Loaded catalog from %s: %d items, %d potions, %d skill trees, %d status effects, %d monsters",
        root,
        len(catalog.items),
        len(catalog.potions),
        len(catalog.skill_trees),
        len(catalog.status_effects),
        len(catalog.monsters),
    )
    return catalog


@lru_cache(maxsize=1)
def default_catalog() -> GameCatalog:
    """The bundled catalog, loaded once per process."""
    return load_catalog()
