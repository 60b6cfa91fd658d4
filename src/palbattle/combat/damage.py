"""
Hit and damage resolvers.

Functions:
    hit_chance: Chance for an attack to land, from accuracy vs evasion.
    crit_chance: Crit chance from luck, equipment and the defender's resistance.
    calculate_damage: Base damage, type advantage, crit and elemental resistance.
"""

import math
from collections.abc import Mapping

from pydantic import BaseModel, Field

from ..catalog import GameCatalog
from ..config import DEFAULT_CONFIG, CombatConfig
from ..models import CreatureType, Stats
from ..rng import BattleRng
from . import type_chart
from .equipment import accuracy_multiplier, evasion_multiplier


class DamageRoll(BaseModel):
    """Result of one damage calculation."""

    damage: int = Field(description="Final damage, never below the configured minimum")
    type_multiplier: float = Field(description="Type advantage multiplier used")
    is_crit: bool = Field(default=False, description="Whether the hit was critical")
    resistance_applied: bool = Field(default=False, description="Whether elemental resistance reduced the hit")


def hit_chance(
    attacker_stats: Stats,
    defender_stats: Stats,
    attacker_equipment: Mapping[str, str | None] | None = None,
    defender_equipment: Mapping[str, str | None] | None = None,
    catalog: GameCatalog | None = None,
    config: CombatConfig = DEFAULT_CONFIG,
) -> float:
    """Chance for an attack to land, clamped to ``[0.05, 0.99]``.

    ``base * attacker_accuracy / defender_evasion``, where each side's value
    is its stat times the product of its equipment multipliers.
    """
    accuracy = (attacker_stats.accuracy or 1.0) * accuracy_multiplier(attacker_equipment, catalog)
    evasion = (defender_stats.evasion or 1.0) * evasion_multiplier(defender_equipment, catalog)
    chance = config.base_hit_chance * accuracy / evasion
    return min(config.max_hit_chance, max(config.min_hit_chance, chance))


def crit_chance(
    luck: float,
    crit_bonus: float = 0.0,
    crit_resistance: float = 0.0,
    config: CombatConfig = DEFAULT_CONFIG,
) -> float:
    """Crit chance: 1% per luck point plus equipment bonus, capped at 30%.

    The defender's crit resistance then scales the capped chance down.
    """
    chance = min(config.max_crit_chance, max(0.0, luck) * config.crit_chance_per_luck + crit_bonus)
    return max(0.0, chance * (1 - min(1.0, crit_resistance)))


def resistance_multiplier(
    resistances: Mapping[str, float] | None,
    config: CombatConfig = DEFAULT_CONFIG,
) -> float:
    """Multiplier from summed fire, ice and storm resistance (percent), floored at 0.1."""
    if not resistances:
        return 1.0
    total = sum(resistances.get(element, 0) for element in ("fire", "ice", "storm"))
    return max(config.min_resistance_multiplier, 1 - total / 100)


def calculate_damage(
    attacker_stats: Stats,
    defender_stats: Stats,
    attacker_type: str,
    defender_type: str,
    rng: BattleRng,
    defender_resistances: Mapping[str, float] | None = None,
    crit_bonus: float = 0.0,
    crit_resistance: float = 0.0,
    catalog: GameCatalog | None = None,
    config: CombatConfig = DEFAULT_CONFIG,
) -> DamageRoll:
    """Damage for one landed hit.

    1. ``max(1, floor(atk - def / 2))``
    2. times the type advantage multiplier
    3. times 1.5 on a crit (one roll, skipped when the chance is zero)
    4. for Elemental attackers, times the defender's resistance multiplier

    Each step floors. The result never drops below ``config.min_damage``
    (nor below 1).

    Args:
        attacker_stats: Attacker's stats for this turn.
        defender_stats: Defender's stats for this turn.
        attacker_type: Attacker's creature type.
        defender_type: Defender's creature type.
        rng: Battle RNG used for the crit roll.
        defender_resistances: Defender's elemental resistances (percent).
        crit_bonus: Attacker's flat equipment crit chance.
        crit_resistance: Defender's crit resistance (0..1).
        catalog: Catalog holding the type chart.
        config: Tuning constants.

    Returns:
        DamageRoll with the damage and how it was reached.
    """
    damage = max(1, math.floor(attacker_stats.atk - defender_stats.defense / 2))

    multiplier = type_chart.multiplier(attacker_type, defender_type, catalog)
    damage = math.floor(damage * multiplier)

    is_crit = rng.chance(crit_chance(attacker_stats.luck, crit_bonus, crit_resistance, config))
    if is_crit:
        damage = math.floor(damage * config.crit_multiplier)

    resist = 1.0
    if attacker_type == CreatureType.ELEMENTAL.value:
        resist = resistance_multiplier(defender_resistances, config)
        damage = math.floor(damage * resist)

    return DamageRoll(
        damage=max(1, config.min_damage, damage),
        type_multiplier=multiplier,
        is_crit=is_crit,
        resistance_applied=resist < 1,
    )
