"""Type advantage lookup."""

from ..catalog import GameCatalog, default_catalog

STRONG = 1.5
WEAK = 0.75
NEUTRAL = 1.0


def multiplier(
    attacker_type: str,
    defender_type: str,
    catalog: GameCatalog | None = None,
) -> float:
    """Damage multiplier for ``attacker_type`` hitting ``defender_type``.

    Returns 1.5 when the attacker is strong against the defender, 0.75 when
    weak, and 1 otherwise (including unknown types).
    """
    relations = (catalog or default_catalog()).relations(attacker_type)
    if relations is None:
        return NEUTRAL
    if defender_type in relations.strong:
        return STRONG
    if defender_type in relations.weak:
        return WEAK
    return NEUTRAL
