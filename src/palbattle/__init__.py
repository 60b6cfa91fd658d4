"""
palbattle - turn-based creature combat resolution engine.
"""

from . import logutils  # noqa: F401  (installs the library NullHandler)
from .catalog import GameCatalog, default_catalog, load_catalog
from .combat import BattleEngine
from .config import CombatConfig
from .errors import CatalogError, PalBattleError
from .models import *
from .rng import BattleRng

try:
    from importlib.metadata import PackageNotFoundError, version as _get_version
    __version__ = _get_version("palbattle")
except PackageNotFoundError:
    __version__ = "0.4.0"  # Fallback if metadata unavailable
__all__ = [
    "BattleEngine",
    "BattleRng",
    "CombatConfig",
    "GameCatalog",
    "default_catalog",
    "load_catalog",
    "PalBattleError",
    "CatalogError",
    "BattleContext",
    "BattleOutcome",
    "BattleResult",
    "Combatant",
    "CreatureType",
    "SkillTree",
    "Stats",
    "UnlockedSkill",
]
