"""
Consumable (potion) effects.

A potion is applied once, before skill bonuses, to the battle-local copy of
a combatant. Stat effects change the copy's stats directly; special and
multi-element potions leave a grant in ``active_consumable_effects`` that
the attack pipeline reads.
"""

import logging
from collections.abc import Iterable, Mapping

from ..catalog import PotionDefinition
from ..models import Combatant, ConsumableEffect
from .stats import add_to_stat, clamp_hp, clone_combatant, normalize

logger = logging.getLogger("palbattle.combat")

MULTI_ELEMENT = "multi_element"
SPECIAL = "special"
DEFAULT_SPECIAL_CHANCE = 0.25


def _add_all(combatant: Combatant, deltas: Mapping[str, float], sign: int = 1) -> None:
    for stat, value in deltas.items():
        add_to_stat(combatant.stats, stat, sign * value)


def apply_potion(combatant: Combatant, potion: PotionDefinition | None) -> Combatant:
    """Return a normalized copy of ``combatant`` with ``potion`` applied.

    Supported effect types: ``heal``, ``stat_boost``, ``multi_boost``,
    ``trade_boost``, ``resistance``, ``familiar_type_boost``, ``special`` and
    ``multi_element``. Unknown types leave the copy unchanged.

    A ``heal`` potion raises max HP by its value and heals the same amount.
    """
    boosted = clone_combatant(combatant)
    if potion is None or potion.effect is None:
        return boosted

    effect = potion.effect
    kind = effect.type

    if kind == "heal":
        boosted.stats.hp += int(effect.value)
        boosted.current_hp += int(effect.value)
    elif kind == "stat_boost":
        if effect.stats:
            _add_all(boosted, effect.stats)
        elif effect.stat:
            add_to_stat(boosted.stats, effect.stat, effect.value)
    elif kind == "multi_boost":
        _add_all(boosted, effect.stats)
    elif kind == "trade_boost":
        _add_all(boosted, effect.gain)
        _add_all(boosted, effect.lose, sign=-1)
    elif kind == "resistance":
        if effect.element:
            boosted.resistances[effect.element] = boosted.resistances.get(effect.element, 0) + effect.value
    elif kind == "familiar_type_boost":
        if effect.target and boosted.creature_type.lower() == effect.target.lower():
            _add_all(boosted, effect.stats)
    elif kind == SPECIAL:
        boosted.stats.luck += effect.bonus_luck + effect.crit_bonus
        if effect.ability:
            boosted.active_consumable_effects.append(
                ConsumableEffect(
                    kind=SPECIAL,
                    ability=effect.ability,
                    chance=effect.chance if effect.chance is not None else DEFAULT_SPECIAL_CHANCE,
                )
            )
    elif kind == MULTI_ELEMENT:
        boosted.active_consumable_effects.append(
            ConsumableEffect(
                kind=MULTI_ELEMENT,
                elements=list(effect.elements),
                damage_boost=effect.damage_boost / 100,
            )
        )
    else:
        logger.debug("Ignoring unknown potion effect %r on %s", kind, potion.name)

    boosted.stats = normalize(boosted.stats)
    return clamp_hp(boosted)


def consumable_damage_multiplier(consumables: Iterable[ConsumableEffect]) -> float:
    """Damage multiplier from every active multi-element grant."""
    multiplier = 1.0
    for effect in consumables:
        if effect.kind == MULTI_ELEMENT and effect.damage_boost:
            multiplier *= 1 + effect.damage_boost
    return multiplier
