"""
Stat resolver.

Turns whatever stat block a caller hands over into one the rest of the
engine can trust, and produces battle-local combatant copies.
"""

import logging
import math
from collections.abc import Mapping
from typing import Any

from ..catalog.models import MonsterDefinition
from ..models import Combatant, Stats

logger = logging.getLogger("palbattle.combat")

# Lowest value each stat may take after normalization.
STAT_FLOORS: dict[str, float] = {
    "hp": 1,
    "atk": 1,
    "defense": 0,
    "spd": 1,
    "luck": 0,
    "accuracy": 0.1,
    "evasion": 0.1,
    "damage_reduction": 0,
}

_INT_STATS = ("hp", "atk", "defense", "spd")

# Content tables spell defense as "def"; everything else matches the field name.
_STAT_ALIASES = {"def": "defense"}

_ROMAN_VALUES = {"I": 1, "V": 5, "X": 10}


def stat_field(key: str) -> str | None:
    """Map a content-table stat key ("def", "atk", ...) to a Stats field name."""
    name = _STAT_ALIASES.get(key, key)
    return name if name in Stats.model_fields else None


def _number(value: Any, default: float) -> float:
    if isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return default
    if math.isnan(number) or math.isinf(number):
        return default
    return number


def normalize(stats: Stats | Mapping[str, Any] | None) -> Stats:
    """Clamp a stat block to safe minimums.

    Missing, non-numeric and NaN values fall back to the defaults of
    :class:`Stats`; everything is then raised to its floor. Never raises.

    Args:
        stats: A Stats instance, a raw mapping (``def`` or ``defense``), or None.

    Returns:
        A new, valid Stats instance.
    """
    if isinstance(stats, Stats):
        raw: Mapping[str, Any] = stats.model_dump()
    elif isinstance(stats, Mapping):
        raw = {stat_field(str(k)) or str(k): v for k, v in stats.items()}
    else:
        raw = {}

    values: dict[str, Any] = {}
    for name, field in Stats.model_fields.items():
        number = _number(raw.get(name), field.default)
        number = max(STAT_FLOORS.get(name, 0), number)
        values[name] = math.floor(number) if name in _INT_STATS else number
    return Stats(**values)


def clamp_hp(combatant: Combatant) -> Combatant:
    """Keep ``current_hp`` within ``[0, max_hp]`` (in place)."""
    hp = combatant.current_hp if combatant.current_hp is not None else combatant.max_hp
    combatant.current_hp = min(max(0, int(hp)), combatant.max_hp)
    return combatant


def clone_combatant(combatant: Combatant) -> Combatant:
    """Structurally independent, re-normalized copy of a combatant.

    Status effects, skill bonuses and consumable grants are all deep-copied,
    so a battle can mutate the clone freely.
    """
    clone = combatant.snapshot()
    clone.stats = normalize(clone.stats)
    return clamp_hp(clone)


def add_to_stat(stats: Stats, key: str, delta: float) -> bool:
    """Add ``delta`` to the stat named by a content-table key.

    Returns:
        False if the key is not a known stat (the stats are left untouched).
    """
    name = stat_field(key)
    if name is None:
        logger.debug("Ignoring unknown stat key %r", key)
        return False
    current = getattr(stats, name)
    updated = current + delta
    setattr(stats, name, math.floor(updated) if name in _INT_STATS else updated)
    return True


def scale_stat(stats: Stats, key: str, multiplier: float) -> bool:
    """Multiply the stat named by a content-table key, flooring the result."""
    name = stat_field(key)
    if name is None:
        logger.debug("Ignoring unknown stat key %r", key)
        return False
    current = getattr(stats, name)
    scaled = current * multiplier
    setattr(stats, name, math.floor(scaled) if name in _INT_STATS else scaled)
    return True


def roman_to_int(roman: str) -> int:
    """Convert a dungeon tier numeral (I, V, X with subtractive notation) to an int.

    >>> roman_to_int("IV")
    4
    """
    total = 0
    symbols = roman.strip().upper()
    for i, symbol in enumerate(symbols):
        value = _ROMAN_VALUES.get(symbol, 0)
        following = _ROMAN_VALUES.get(symbols[i + 1], 0) if i + 1 < len(symbols) else 0
        if following > value:
            total -= value
        else:
            total += value
    return total


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def scale_enemy(monster: MonsterDefinition, floor: int, tier: str = "I") -> Combatant:
    """Build a wild enemy scaled to a dungeon floor and tier.

    ``scale = 1 + 0.2 * (floor - 1) + 0.1 * tier``; hp, atk and def are
    multiplied and rounded, the remaining stats come from the monster table.
    """
    scale = 1 + 0.2 * (floor - 1) + 0.1 * roman_to_int(tier)
    base = {stat_field(k) or k: v for k, v in monster.base_stats.items()}
    for name in ("hp", "atk", "defense"):
        if name in base:
            base[name] = _round_half_up(_number(base[name], 0) * scale)
    return Combatant(name=monster.name, creature_type=monster.type, stats=normalize(base))
