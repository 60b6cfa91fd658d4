"""
Single-attack resolution pipeline.

Resolves one attack from one fighter against another: defensive checks,
hit roll, attack-replacing skill activations, damage, procs, damage
reduction and on-hit side effects. Returns a structured AttackOutcome
without mutating either fighter (the orchestrator decides what to apply);
the only side effects are RNG draws and battle log lines.

Functions:
    execute_attack: Full attack resolution with a minimum-damage fallback.
    simulate_attack: The same resolution with the battle log suppressed.

Models:
    ParadoxState: Per-fighter Paradox Loop bookkeeping.
    FighterState: Battle-local state for one side of a battle.
    AttackOutcome: Structured result of one attack.
"""

from __future__ import annotations

import logging
import math

from pydantic import BaseModel, Field

from ..catalog import GameCatalog
from ..config import DEFAULT_CONFIG, CombatConfig
from ..models import Combatant, Stats
from ..rng import BattleRng
from . import type_chart
from .damage import calculate_damage, hit_chance
from .effects import StatusEffectEngine
from .equipment import EffectMap, resolve_effects, resolve_resistances
from .log import CombatLogger
from .potions import consumable_damage_multiplier
from .procs import (
    has_phase_dodge,
    process_consumable_abilities,
    process_defensive,
    process_offensive,
    process_weapon_abilities,
)
from .skills import check_activation, check_exclusive, roll_status_infliction

logger = logging.getLogger("palbattle.combat")


class ParadoxState(BaseModel):
    """Paradox Loop bookkeeping for the fighter who owns the skill.

    Attributes:
        active: The next incoming attack will be negated and stored.
        pending_recoil: Damage is stored and will be reflected next round.
        stored_damage: Damage waiting to be reflected on the original attacker.
        recoil_percent: Share of the negated damage that is stored.
    """
    active: bool = False
    pending_recoil: bool = False
    stored_damage: int = 0
    recoil_percent: float = 0.5


class FighterState(BaseModel):
    """Battle-local state for one side of a battle.

    ``combatant`` is the battle's own clone; the engine mutates its HP and
    status effects directly.
    """
    combatant: Combatant
    turn_stats: Stats = Field(description="Stats for the current round after status effects")
    effects: EffectMap = Field(default_factory=EffectMap, description="Flattened equipment effects")
    resistances: dict[str, float] = Field(default_factory=dict, description="Equipment plus potion resistances")
    can_act: bool = True
    skills_disabled: bool = False
    resonance_stacks: int = 0
    invulnerable_turns: int = 0
    equipment_revive_used: bool = False
    skill_revive_used: bool = False
    paradox: ParadoxState = Field(default_factory=ParadoxState)

    @classmethod
    def for_combatant(cls, combatant: Combatant, catalog: GameCatalog | None = None) -> FighterState:
        """Build the state for an already-prepared battle-local combatant."""
        resistances = resolve_resistances(combatant.equipment, catalog)
        for element, value in combatant.resistances.items():
            resistances[element] = resistances.get(element, 0.0) + value
        return cls(
            combatant=combatant,
            turn_stats=combatant.stats.model_copy(),
            effects=resolve_effects(combatant.equipment, catalog),
            resistances=resistances,
        )

    @property
    def name(self) -> str:
        return self.combatant.name

    @property
    def is_alive(self) -> bool:
        return self.combatant.is_alive


class AttackOutcome(BaseModel):
    """Structured result of one attack.

    Damage, heals and statuses are reported, never applied.
    """
    damage: int = Field(default=0, description="Damage dealt to the defender")
    hit: bool = Field(default=False, description="Whether the attack landed")
    dodged: bool = Field(default=False, description="Whether a defensive check negated the attack")
    is_crit: bool = False
    activation: str | None = Field(default=None, description="Attack-replacing skill that fired")
    counter_damage: int = Field(default=0, description="Counter-attack damage dealt to the attacker")
    reflected_damage: int = Field(default=0, description="Reflected damage dealt to the attacker")
    self_damage: int = Field(default=0, description="HP the attacker sacrificed")
    lifesteal: int = Field(default=0, description="HP restored to the attacker")
    defender_heal: int = Field(default=0, description="HP restored to the defender")
    inflicted_statuses: list[str] = Field(default_factory=list, description="Statuses for the defender")
    counter_statuses: list[str] = Field(default_factory=list, description="Statuses for the attacker")
    resonance_gained: int = Field(default=0, description="Resonance stacks the attacker gains")
    invulnerable_turns: int = Field(default=0, description="Invulnerability granted to the attacker")


# ---------------------------------------------------------------------------
# Defensive Checks
# ---------------------------------------------------------------------------

def _defensive_checks(
    attacker: FighterState,
    defender: FighterState,
    rng: BattleRng,
    log: CombatLogger,
    config: CombatConfig,
) -> AttackOutcome | None:
    """Checks that negate the attack outright; returns the outcome if one does."""
    d = defender.combatant
    silenced = defender.skills_disabled

    if defender.invulnerable_turns > 0:
        log.add(f"💀 **{d.name}** is invulnerable! The attack passes through harmlessly.")
        return AttackOutcome(dodged=True)

    dodge = check_activation(d, "dodge", rng, stats=defender.turn_stats, silenced=silenced, config=config)
    if dodge is not None:
        log.add(dodge.message)
        outcome = AttackOutcome(dodged=True)
        counter = check_activation(
            d, "counter", rng, stats=defender.turn_stats, silenced=silenced, config=config
        )
        if counter is not None:
            log.add(counter.message)
            outcome.counter_damage = counter.damage or 0
        return outcome

    protection = check_activation(
        d, "divine_protection", rng, max_hp=d.max_hp, stats=defender.turn_stats, silenced=silenced, config=config
    )
    if protection is not None:
        log.add(protection.message)
        if protection.heal:
            log.add(f"> {d.name} recovers {protection.heal} HP!")
        return AttackOutcome(dodged=True, defender_heal=protection.heal or 0)

    if defender.effects.dodge_bonus and rng.chance(defender.effects.dodge_bonus):
        log.add(f"💨 **{d.name}** nimbly evades the attack!")
        return AttackOutcome(dodged=True)

    phase = has_phase_dodge(d.active_consumable_effects)
    if phase is not None and rng.chance(phase.chance):
        log.add(f"🌌 **{d.name}** phases out of reality, avoiding the attack!")
        return AttackOutcome(dodged=True)

    return None


# ---------------------------------------------------------------------------
# Attack Resolution
# ---------------------------------------------------------------------------

def _resolve_attack(
    attacker: FighterState,
    defender: FighterState,
    rng: BattleRng,
    log: CombatLogger,
    catalog: GameCatalog | None,
    config: CombatConfig,
) -> AttackOutcome:
    a, d = attacker.combatant, defender.combatant
    a_stats, d_stats = attacker.turn_stats, defender.turn_stats
    silenced = attacker.skills_disabled

    negated = _defensive_checks(attacker, defender, rng, log, config)
    if negated is not None:
        return negated

    chance = hit_chance(a_stats, d_stats, a.equipment, d.equipment, catalog, config)
    if not rng.chance(chance):
        log.add(f"💨 **{a.name}**'s attack misses!")
        return AttackOutcome()

    outcome = AttackOutcome(hit=True)

    # At most one attack-replacing activation per attack.
    multiplier = 1.0
    bonus_damage = 0
    activation = check_exclusive(a, rng, d.current_hp, d.max_hp, stats=a_stats, silenced=silenced, config=config)
    if activation is not None:
        log.add(activation.message)
        outcome.activation = activation.kind
        multiplier = activation.multiplier or 1.0
        outcome.inflicted_statuses.extend(activation.statuses)
        if activation.kind == "overload":
            chain = check_activation(a, "chainReaction", rng, stats=a_stats, silenced=silenced, config=config)
            if chain is not None:
                log.add(chain.message)
                bonus_damage += chain.damage or 0
        elif activation.kind == "dark_ritual":
            outcome.self_damage = activation.sacrifice or 0
            log.add(f"> {a.name} sacrifices {outcome.self_damage} HP!")
        elif activation.kind == "lich_transformation":
            outcome.invulnerable_turns = activation.duration or 0

    roll = calculate_damage(
        a_stats,
        d_stats,
        a.creature_type,
        d.creature_type,
        rng,
        defender_resistances=defender.resistances,
        crit_bonus=attacker.effects.crit_bonus,
        crit_resistance=d.skill_bonuses.crit_resistance or 0.0,
        catalog=catalog,
        config=config,
    )
    outcome.is_crit = roll.is_crit
    if roll.type_multiplier == type_chart.STRONG:
        log.add("It's super effective!")
    elif roll.type_multiplier == type_chart.WEAK:
        log.add("It's not very effective...")
    if roll.is_crit:
        log.add(f"💥 **Critical hit!** {a.name} strikes a vital spot!")
    if roll.resistance_applied:
        log.add(f"🛡️ {d.name}'s elemental resistance weakens the attack!")
    damage = math.floor(roll.damage * multiplier) + bonus_damage

    # Procs
    for proc in (
        process_weapon_abilities(a_stats.atk, attacker.effects.abilities, a.name, rng),
        process_consumable_abilities(a_stats.atk, a.active_consumable_effects, a.name, rng),
    ):
        damage += proc.damage
        log.add_multiple(proc.messages)
        outcome.inflicted_statuses.extend(proc.statuses)

    offensive = process_offensive(attacker.effects, a.name, rng)
    log.add_multiple(offensive.messages)
    outcome.inflicted_statuses.extend(offensive.statuses)
    damage = math.floor(damage * offensive.damage_modifier)

    element_boost = consumable_damage_multiplier(a.active_consumable_effects)
    if element_boost != 1.0:
        damage = math.floor(damage * element_boost)
        log.add(f"🌈 **Elemental Fusion!** {a.name}'s attack surges with every element!")
    damage += attacker.effects.flat_damage_bonus

    # Stacking and follow-up skills
    bonuses = a.skill_bonuses
    if bonuses.resonance_max_stacks and bonuses.resonance_per_stack and not silenced:
        if attacker.resonance_stacks:
            damage = math.floor(damage * (1 + bonuses.resonance_per_stack * attacker.resonance_stacks))
            log.add(f"🔮 **Arcane Resonance!** ({attacker.resonance_stacks} stacks) amplifies the strike!")
        if attacker.resonance_stacks < bonuses.resonance_max_stacks:
            outcome.resonance_gained = 1

    multi = check_activation(a, "multiAttack", rng, stats=a_stats, silenced=silenced, config=config)
    if multi is not None:
        extra = math.floor(damage * (multi.multiplier or 0))
        damage += extra
        log.add(multi.message)
        log.add(f"> The extra strike deals {extra} damage!")

    echo = check_activation(a, "temporal_echo", rng, stats=a_stats, silenced=silenced, config=config)
    if echo is not None:
        extra = math.floor(damage * (echo.multiplier or 0))
        damage += extra
        log.add(echo.message)
        log.add(f"> The echo deals {extra} additional damage!")

    if bonuses.dot_damage and not silenced:
        tide = math.floor(d.max_hp * bonuses.dot_damage)
        damage += tide
        log.add(f"🌊 **Abyssal Tide!** The depths erode {d.name} for {tide} extra damage!")

    # Defender reductions
    reduction = d_stats.damage_reduction + StatusEffectEngine.damage_reduction(d, catalog)
    if reduction > 0:
        damage = math.floor(damage * (1 - min(1.0, reduction)))

    d_silenced = defender.skills_disabled
    barrier = check_activation(d, "celestial_barrier", rng, stats=d_stats, silenced=d_silenced, config=config)
    if barrier is not None:
        damage = math.floor(damage * (1 - (barrier.percentage or 0)))
        log.add(barrier.message)

    shield = check_activation(d, "elemental_shield", rng, stats=d_stats, silenced=d_silenced, config=config)
    if shield is not None:
        absorbed = math.floor(damage * (shield.percentage or 0))
        reflected = math.floor(damage * (shield.reflection or 0))
        damage -= absorbed
        outcome.reflected_damage += reflected
        log.add(shield.message)
        log.add(f"> {d.name} absorbs {absorbed} damage and reflects {reflected}!")

    defensive = process_defensive(defender.effects, d.equipment, d.name, damage, rng, catalog)
    damage -= defensive.damage_reduction
    log.add_multiple(defensive.messages)
    outcome.counter_statuses.extend(defensive.statuses)

    outcome.damage = max(config.min_damage, damage)
    log.add(f"⚔️ **{a.name}** deals **{outcome.damage}** damage to **{d.name}**!")

    # On-hit side effects
    steal = check_activation(a, "lifesteal", rng, stats=a_stats, silenced=silenced, config=config)
    if steal is not None:
        outcome.lifesteal = math.floor(outcome.damage * (steal.percentage or 0))
        log.add(steal.message)
        log.add(f"> {a.name} restores {outcome.lifesteal} HP!")

    statuses, messages = roll_status_infliction(a, rng, silenced=silenced, catalog=catalog)
    outcome.inflicted_statuses.extend(statuses)
    log.add_multiple(messages)
    return outcome


def execute_attack(
    attacker: FighterState,
    defender: FighterState,
    rng: BattleRng,
    log: CombatLogger,
    catalog: GameCatalog | None = None,
    config: CombatConfig = DEFAULT_CONFIG,
) -> AttackOutcome:
    """Resolve one attack of ``attacker`` against ``defender``.

    Order: defender invulnerability and defensive skills (dodge with
    counter, divine protection), equipment and potion dodges, hit roll,
    attack-replacing activations, damage, weapon and consumable procs,
    offensive equipment, elemental boosts, resonance, extra strikes,
    defender damage reduction, barrier and elemental shield, defensive
    equipment, then lifesteal and status infliction.

    Any exception inside the resolution degrades the attack to
    ``config.min_damage`` instead of aborting the battle.

    Args:
        attacker: The attacking side.
        defender: The defending side.
        rng: Battle RNG.
        log: The battle's log.
        catalog: Catalog for items, skills and status effects.
        config: Tuning constants.

    Returns:
        AttackOutcome describing what the orchestrator should apply.
    """
    try:
        return _resolve_attack(attacker, defender, rng, log, catalog, config)
    except Exception:
        logger.exception("Attack by %s against %s failed; using minimum damage", attacker.name, defender.name)
        log.add(f"⚔️ **{attacker.name}** deals **{config.min_damage}** damage to **{defender.name}**!")
        return AttackOutcome(damage=config.min_damage, hit=True)


def simulate_attack(
    attacker: FighterState,
    defender: FighterState,
    rng: BattleRng,
    log: CombatLogger,
    catalog: GameCatalog | None = None,
    config: CombatConfig = DEFAULT_CONFIG,
) -> AttackOutcome:
    """What the attack would have done, with every log line discarded."""
    with log.suppressed():
        return execute_attack(attacker, defender, rng, log, catalog, config)
