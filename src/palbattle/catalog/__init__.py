"""
Static reference catalogs: items, potions, skill trees, status effects,
the type chart and monsters.
"""

from .loader import DEFAULT_DATA_DIR, GameCatalog, default_catalog, load_catalog
from .models import (
    ItemDefinition,
    MonsterDefinition,
    PotionDefinition,
    PotionEffect,
    SkillDefinition,
    SkillLevelEffect,
    SkillTreeDefinition,
    StackingDebuff,
    StatusEffectDefinition,
    TypeRelations,
)

__all__ = [
    "DEFAULT_DATA_DIR",
    "GameCatalog",
    "default_catalog",
    "load_catalog",
    "ItemDefinition",
    "MonsterDefinition",
    "PotionDefinition",
    "PotionEffect",
    "SkillDefinition",
    "SkillLevelEffect",
    "SkillTreeDefinition",
    "StackingDebuff",
    "StatusEffectDefinition",
    "TypeRelations",
]
