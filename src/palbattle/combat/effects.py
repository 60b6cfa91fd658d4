"""
Status effect engine.

This module provides StatusEffectEngine, a stateless engine that applies,
removes and ticks timed status effects on a combatant. Effect behaviour
(damage/heal per turn, stat multipliers, skip-turn, silence, stacking) is
read from the status effect catalog.

Ticking works on a battle-local combatant: HP and the effect list are
updated in place, while stat changes only live in the per-turn snapshot
returned with the tick.
"""

import logging
import math

from pydantic import BaseModel, Field

from ..catalog import GameCatalog, StatusEffectDefinition, default_catalog
from ..models import Combatant, Stats, StatusEffectInstance
from ..rng import BattleRng
from . import equipment
from .stats import scale_stat

logger = logging.getLogger("palbattle.combat")

# Skill status resistance under this key applies to every status type.
ALL_STATUSES = "*"


class StatusTick(BaseModel):
    """Outcome of one status effect tick for one combatant."""
    combatant: Combatant = Field(description="The ticked combatant (HP and effects updated)")
    stats: Stats = Field(description="Stats for this turn only, after buffs and debuffs")
    battle_log: list[str] = Field(default_factory=list, description="Lines produced by the tick")
    can_act: bool = Field(default=True, description="False if any effect skips the turn")
    skills_disabled: bool = Field(default=False, description="True if any effect silences skills")


class StatusEffectEngine:
    """Stateless engine for timed status effects.

    All methods are static. Unknown effect types are treated as no-ops so
    content drift never interrupts a battle.
    """

    # -----------------------------------------------------------------
    # Effect Management
    # -----------------------------------------------------------------

    @staticmethod
    def apply_effect(
        combatant: Combatant,
        effect_type: str,
        catalog: GameCatalog | None = None,
        duration: int | None = None,
    ) -> StatusEffectInstance | None:
        """Apply a status effect to a combatant.

        Non-stacking effects replace any existing instance of the same type.
        Stacking effects refresh the existing instance's duration and keep
        its accumulated stacks.

        Args:
            combatant: The combatant receiving the effect.
            effect_type: Status effect key (e.g. "burn").
            catalog: Catalog to read the definition from.
            duration: Override for the definition's default duration.

        Returns:
            The applied (or refreshed) instance, or None for unknown types.
        """
        definition = (catalog or default_catalog()).status_effect(effect_type)
        if definition is None:
            logger.debug("Skipping unknown status effect %r", effect_type)
            return None

        turns = duration or definition.duration
        if definition.stat_debuff_stacking is not None:
            for existing in combatant.status_effects:
                if existing.type == effect_type:
                    existing.turns_remaining = turns
                    existing.duration = turns
                    return existing
        else:
            StatusEffectEngine.remove_effect(combatant, effect_type)

        applied = StatusEffectInstance(
            type=effect_type,
            turns_remaining=turns,
            duration=turns,
            stacks=0 if definition.stat_debuff_stacking is not None else None,
        )
        combatant.status_effects.append(applied)
        return applied

    @staticmethod
    def remove_effect(combatant: Combatant, effect_type: str) -> list[StatusEffectInstance]:
        """Remove every instance of ``effect_type``.

        Returns:
            The removed instances.
        """
        removed = [e for e in combatant.status_effects if e.type == effect_type]
        combatant.status_effects = [e for e in combatant.status_effects if e.type != effect_type]
        return removed

    @staticmethod
    def has_effect(combatant: Combatant, effect_type: str) -> bool:
        return any(e.type == effect_type for e in combatant.status_effects)

    @staticmethod
    def damage_reduction(combatant: Combatant, catalog: GameCatalog | None = None) -> float:
        """Fraction of incoming attack damage ignored thanks to active effects."""
        catalog = catalog or default_catalog()
        total = 0.0
        for effect in combatant.status_effects:
            definition = catalog.status_effect(effect.type)
            if definition is not None and definition.damage_reduction:
                total += definition.damage_reduction
        return total

    # -----------------------------------------------------------------
    # Immunity and Resistance
    # -----------------------------------------------------------------

    @staticmethod
    def resists(
        combatant: Combatant,
        effect_type: str,
        rng: BattleRng,
        catalog: GameCatalog | None = None,
    ) -> bool:
        """Whether ``combatant`` avoids a status effect about to be inflicted.

        Checked in order: equipment immunity, skill immunity, an equipment
        resistance roll, then a skill resistance roll.
        """
        if equipment.is_immune(combatant.equipment, effect_type, catalog):
            return True
        bonuses = combatant.skill_bonuses
        if bonuses.immune_to_status:
            return True
        if rng.chance(equipment.status_resistance(combatant.equipment, effect_type, catalog)):
            return True
        if bonuses.status_resistance:
            chance = bonuses.status_resistance.get(
                effect_type, bonuses.status_resistance.get(ALL_STATUSES, 0.0)
            )
            if rng.chance(chance):
                return True
        return False

    # -----------------------------------------------------------------
    # Per-turn Processing
    # -----------------------------------------------------------------

    @staticmethod
    def process(combatant: Combatant, catalog: GameCatalog | None = None) -> StatusTick:
        """Tick every active effect once, in application order.

        For each effect: damage/heal over time, stat buffs and debuffs on the
        per-turn snapshot, skip-turn, stacking debuff (applied, then stacks
        grow for the next tick), silence, and finally ``turns_remaining`` is
        decremented. Effects reaching zero are removed afterwards.

        Args:
            combatant: Battle-local combatant; HP and effects are updated in place.
            catalog: Catalog to read definitions from.

        Returns:
            StatusTick with the per-turn stats, log lines and action flags.
        """
        catalog = catalog or default_catalog()
        tick = StatusTick(combatant=combatant, stats=combatant.stats.model_copy())
        name = combatant.name
        max_hp = combatant.max_hp

        for effect in combatant.status_effects:
            definition = catalog.status_effect(effect.type)
            if definition is None:
                logger.debug("Unknown status effect %r on %s expires without effect", effect.type, name)
                effect.turns_remaining -= 1
                continue

            if definition.damage_per_turn:
                damage = math.floor(max_hp * definition.damage_per_turn)
                combatant.current_hp = max(0, combatant.current_hp - damage)
                tick.battle_log.append(f"{definition.emoji} **{name}** takes {damage} {definition.name} damage!")

            if definition.heal_per_turn:
                healing = math.floor(max_hp * definition.heal_per_turn)
                combatant.current_hp = min(max_hp, combatant.current_hp + healing)
                tick.battle_log.append(
                    f"{definition.emoji} **{name}** recovers {healing} HP from {definition.name}!"
                )

            for stat, mult in definition.stat_buff.items():
                scale_stat(tick.stats, stat, mult)
            for stat, mult in definition.stat_debuff.items():
                scale_stat(tick.stats, stat, mult)

            if definition.skip_turn:
                tick.can_act = False
                tick.battle_log.append(
                    f"{definition.emoji} **{name}** is {definition.name.lower()} and cannot act!"
                )

            if definition.stat_debuff_stacking is not None:
                _apply_stacking(tick, effect, definition)

            if definition.disables_skills:
                tick.skills_disabled = True
                tick.battle_log.append(f"{definition.emoji} **{name}** is silenced!")

            effect.turns_remaining -= 1

        expired = [e for e in combatant.status_effects if e.turns_remaining <= 0]
        for effect in expired:
            definition = catalog.status_effect(effect.type)
            label = definition.name if definition is not None else effect.type
            tick.battle_log.append(f"**{name}** recovers from {label}!")
        combatant.status_effects = [e for e in combatant.status_effects if e.turns_remaining > 0]
        return tick


def _apply_stacking(tick: StatusTick, effect: StatusEffectInstance, definition: StatusEffectDefinition) -> None:
    rule = definition.stat_debuff_stacking
    stacks = effect.stacks or 0
    scale_stat(tick.stats, rule.stat, 1 + rule.multiplier_per_turn * stacks)
    tick.battle_log.append(
        f"{definition.emoji} **{tick.combatant.name}**'s {rule.stat.upper()} erodes under {definition.name}! ({stacks} stacks)"
    )
    if stacks < rule.max_stacks:
        effect.stacks = stacks + 1
    else:
        effect.stacks = rule.max_stacks
