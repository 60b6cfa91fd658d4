"""Speed-based turn order."""

import math

from ..config import DEFAULT_CONFIG, CombatConfig
from ..models import Combatant
from ..rng import BattleRng
from .effects import StatusEffectEngine

SLOW = "slow"


def effective_speed(combatant: Combatant, spd: int | None = None, config: CombatConfig = DEFAULT_CONFIG) -> int:
    """Speed used for ordering: halved (floored) while ``slow`` is active."""
    speed = combatant.stats.spd if spd is None else spd
    if StatusEffectEngine.has_effect(combatant, SLOW):
        speed = math.floor(speed * config.slow_speed_factor)
    return speed


def resolve_turn_order(
    a: Combatant,
    b: Combatant,
    rng: BattleRng,
    a_spd: int | None = None,
    b_spd: int | None = None,
    config: CombatConfig = DEFAULT_CONFIG,
) -> tuple[Combatant, Combatant]:
    """Return ``(first, second)`` for this round.

    Higher speed acts first; an exact tie is settled by a coin flip
    (heads keeps ``a`` first).

    Args:
        a: One combatant.
        b: The other combatant.
        rng: Battle RNG for the tie-break.
        a_spd: Per-turn speed of ``a`` (defaults to its base speed).
        b_spd: Per-turn speed of ``b``.
        config: Tuning constants.
    """
    speed_a = effective_speed(a, a_spd, config)
    speed_b = effective_speed(b, b_spd, config)
    if speed_a > speed_b:
        return a, b
    if speed_b > speed_a:
        return b, a
    return (a, b) if rng.coin_flip() else (b, a)
