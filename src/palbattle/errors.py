"""
Exception hierarchy for palbattle.

Battles themselves never raise (see ``BattleEngine.run``); these errors are
reserved for loading static reference data.
"""


class PalBattleError(Exception):
    """Base class for all palbattle errors."""


class CatalogError(PalBattleError):
    """Raised when a static catalog file is missing, malformed or invalid."""
