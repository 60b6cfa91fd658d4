"""
Combat orchestrator.

``BattleEngine.run`` resolves a full battle between two combatants and
returns an immutable BattleResult. Each call works on its own deep-cloned
combatants, RNG and CombatLogger, so one engine instance can resolve any
number of independent battles.
"""

from __future__ import annotations

import logging
import math

from ..catalog import GameCatalog, PotionDefinition, default_catalog
from ..config import DEFAULT_CONFIG, CombatConfig
from ..models import BattleContext, BattleOutcome, BattleResult, Combatant, SkillTree
from ..rng import BattleRng, RandomSource, ensure_rng
from .effects import StatusEffectEngine
from .equipment import REVIVE_ONCE
from .log import CombatLogger
from .pipeline import AttackOutcome, FighterState, execute_attack, simulate_attack
from .potions import apply_potion
from .skills import (
    PARTY_MODE,
    apply_battle_start_auras,
    apply_bonuses,
    apply_pack_leader_bonus,
    check_activation,
)
from .turn_order import resolve_turn_order

logger = logging.getLogger("palbattle.combat")


class Battle:
    """One battle in progress.

    Created by :class:`BattleEngine`; exposed so callers and tests can step
    through a battle one round at a time.
    """

    def __init__(
        self,
        first: FighterState,
        second: FighterState,
        rng: BattleRng,
        log: CombatLogger,
        catalog: GameCatalog,
        config: CombatConfig = DEFAULT_CONFIG,
    ) -> None:
        self.first = first
        self.second = second
        self.rng = rng
        self.log = log
        self.catalog = catalog
        self.config = config
        self.turn = 0

    @property
    def finished(self) -> bool:
        return (
            not self.first.is_alive
            or not self.second.is_alive
            or self.turn >= self.config.max_turns
        )

    def opponent_of(self, state: FighterState) -> FighterState:
        return self.second if state is self.first else self.first

    # -----------------------------------------------------------------
    # Round Loop
    # -----------------------------------------------------------------

    def play_round(self) -> None:
        """Play one full round: status ticks, recoil, both attacks, recovery."""
        self.turn += 1
        self.log.add(f"**--- Turn {self.turn} ---**")

        for state in (self.first, self.second):
            self._tick_status(state)
        for state in (self.first, self.second):
            self._apply_paradox_recoil(state)
        fallen = [
            state for state in (self.first, self.second)
            if not state.is_alive and not self._survives_death(state)
        ]
        if fallen:
            return

        first_c, _ = resolve_turn_order(
            self.first.combatant,
            self.second.combatant,
            self.rng,
            self.first.turn_stats.spd,
            self.second.turn_stats.spd,
            self.config,
        )
        leader = self.first if first_c is self.first.combatant else self.second
        follower = self.opponent_of(leader)

        for attacker, defender in ((leader, follower), (follower, leader)):
            if not attacker.is_alive or not defender.is_alive:
                break
            if not attacker.can_act:
                continue
            self._take_turn(attacker, defender)
            if self.finished_by_knockout:
                return

        self._end_of_round()

    @property
    def finished_by_knockout(self) -> bool:
        return not self.first.is_alive or not self.second.is_alive

    def _tick_status(self, state: FighterState) -> None:
        tick = StatusEffectEngine.process(state.combatant, self.catalog)
        state.turn_stats = tick.stats
        state.can_act = tick.can_act
        state.skills_disabled = tick.skills_disabled
        self.log.add_multiple(tick.battle_log)

    # -----------------------------------------------------------------
    # Paradox Loop
    # -----------------------------------------------------------------

    def _apply_paradox_recoil(self, owner: FighterState) -> None:
        """Deal the owner's stored paradox damage to its opponent, then reset."""
        paradox = owner.paradox
        if not paradox.pending_recoil:
            return
        target = self.opponent_of(owner)
        if paradox.stored_damage > 0:
            self.log.add(
                f"⏰ **Temporal Recoil!** {target.name} takes {paradox.stored_damage} delayed damage!"
            )
            self._damage(target, paradox.stored_damage)
        paradox.stored_damage = 0
        paradox.pending_recoil = False

    def _try_activate_paradox(self, defender: FighterState) -> None:
        paradox = defender.paradox
        if paradox.active or paradox.pending_recoil:
            return
        activation = check_activation(
            defender.combatant,
            "paradox_loop",
            self.rng,
            stats=defender.turn_stats,
            silenced=defender.skills_disabled,
            config=self.config,
        )
        if activation is not None:
            self.log.add(activation.message)
            paradox.active = True
            paradox.recoil_percent = activation.recoil_percent or self.config.default_recoil_percent
            paradox.stored_damage = 0

    def _paradox_blocks(self, attacker: FighterState, defender: FighterState) -> bool:
        """Negate the attack if the defender's paradox is active, storing the recoil."""
        paradox = defender.paradox
        if not paradox.active:
            return False
        simulated = simulate_attack(attacker, defender, self.rng, self.log, self.catalog, self.config)
        stored = math.floor(max(0, simulated.damage) * paradox.recoil_percent)
        paradox.stored_damage += stored
        self.log.add(f"⏰ *Storing {stored} temporal damage (total {paradox.stored_damage}).*")
        paradox.active = False
        paradox.pending_recoil = True
        return True

    # -----------------------------------------------------------------
    # Attacks
    # -----------------------------------------------------------------

    def _take_turn(self, attacker: FighterState, defender: FighterState) -> None:
        self._try_activate_paradox(defender)
        if self._paradox_blocks(attacker, defender):
            return
        outcome = execute_attack(attacker, defender, self.rng, self.log, self.catalog, self.config)
        self._apply_outcome(attacker, defender, outcome)
        if defender.is_alive:
            self.log.add(f"❤️ *{defender.name} HP: {defender.combatant.current_hp}/{defender.combatant.max_hp}*")

    def _apply_outcome(self, attacker: FighterState, defender: FighterState, outcome: AttackOutcome) -> None:
        if outcome.defender_heal:
            self._heal(defender, outcome.defender_heal)
        if outcome.invulnerable_turns:
            attacker.invulnerable_turns = max(attacker.invulnerable_turns, outcome.invulnerable_turns)
        if outcome.resonance_gained:
            cap = attacker.combatant.skill_bonuses.resonance_max_stacks or 0
            attacker.resonance_stacks = min(cap, attacker.resonance_stacks + outcome.resonance_gained)
        if outcome.self_damage:
            self._damage(attacker, outcome.self_damage, lethal=False)

        if outcome.damage:
            self._damage(defender, outcome.damage)
        if outcome.lifesteal and attacker.is_alive:
            self._heal(attacker, outcome.lifesteal)

        for status in outcome.inflicted_statuses:
            self._inflict(defender, status)
        for status in outcome.counter_statuses:
            self._inflict(attacker, status)

        if outcome.counter_damage:
            self.log.add(f"💥 **Counter damage:** {attacker.name} takes **{outcome.counter_damage}** damage!")
            self._damage(attacker, outcome.counter_damage)
        if outcome.reflected_damage:
            self.log.add(f"⚡ **{attacker.name} takes {outcome.reflected_damage} reflected damage!**")
            self._damage(attacker, outcome.reflected_damage)

        for state in (defender, attacker):
            if not state.is_alive:
                self._survives_death(state)

    def _inflict(self, target: FighterState, status: str) -> None:
        if not target.is_alive:
            return
        if StatusEffectEngine.resists(target.combatant, status, self.rng, self.catalog):
            self.log.add(f"🛡️ **{target.name}** resists {status}!")
            return
        StatusEffectEngine.apply_effect(target.combatant, status, self.catalog)

    def _damage(self, state: FighterState, amount: int, lethal: bool = True) -> None:
        """Reduce HP; non-lethal damage never drops a living combatant below 1."""
        c = state.combatant
        lowest = min(1, c.current_hp) if not lethal else 0
        c.current_hp = max(lowest, c.current_hp - amount)

    def _heal(self, state: FighterState, amount: int) -> None:
        c = state.combatant
        c.current_hp = min(c.max_hp, c.current_hp + amount)

    # -----------------------------------------------------------------
    # Death Handling
    # -----------------------------------------------------------------

    def _survives_death(self, state: FighterState) -> bool:
        """Death resistance, then equipment revive, then skill revive.

        Returns:
            True if the combatant is back on its feet.
        """
        c = state.combatant
        bonuses = c.skill_bonuses
        if bonuses.death_resistance and not state.skills_disabled and self.rng.chance(bonuses.death_resistance):
            c.current_hp = self.config.death_resistance_hp
            self.log.add(f"💀 **Undying Will!** {c.name} refuses to die, clinging on with {c.current_hp} HP!")
            return True

        if not state.equipment_revive_used and state.effects.has(REVIVE_ONCE):
            state.equipment_revive_used = True
            c.current_hp = max(1, math.floor(c.max_hp * self.config.equipment_revive_fraction))
            self.log.add(f"🔥 **{c.name}** rises from the ashes with {c.current_hp} HP!")
            return True

        if not state.skill_revive_used:
            revive = check_activation(
                c, "revive", self.rng, silenced=state.skills_disabled, config=self.config
            )
            if revive is not None:
                state.skill_revive_used = True
                c.current_hp = max(1, math.floor(c.max_hp * self.config.skill_revive_fraction))
                self.log.add(revive.message)
                return True

        self.log.add(f"💀 **{c.name}** has been defeated!")
        return False

    # -----------------------------------------------------------------
    # End of Round
    # -----------------------------------------------------------------

    def _end_of_round(self) -> None:
        for state in (self.first, self.second):
            for kind in ("hpRegen", "selfRepair"):
                healing = check_activation(state.combatant, kind, self.rng, config=self.config)
                c = state.combatant
                if healing is not None and healing.heal and c.current_hp < c.max_hp:
                    self._heal(state, healing.heal)
                    self.log.add(healing.message)
            if state.invulnerable_turns > 0:
                state.invulnerable_turns -= 1
                if state.invulnerable_turns == 0:
                    self.log.add(f"💀 {state.name}'s lich form fades.")

        a, b = self.first.combatant, self.second.combatant
        self.log.add(f"💚 **{a.name}:** {a.current_hp}/{a.max_hp} HP | **{b.name}:** {b.current_hp}/{b.max_hp} HP")

    # -----------------------------------------------------------------
    # Result
    # -----------------------------------------------------------------

    def result(self) -> BattleResult:
        """Build the BattleResult for the battle's current state."""
        first, second = self.first, self.second
        lines = self.log.lines
        if first.is_alive and not second.is_alive:
            outcome, winner, loser = BattleOutcome.VICTORY, first, second
        elif second.is_alive and not first.is_alive:
            outcome, winner, loser = BattleOutcome.DEFEAT, second, first
        else:
            outcome, winner, loser = BattleOutcome.DRAW, first, second
            lines += ("⏱️ The battle ended in a draw!",)

        return BattleResult(
            outcome=outcome,
            player_won=winner is first,
            remaining_hp=first.combatant.current_hp,
            winner_remaining_hp=winner.combatant.current_hp,
            log=lines,
            winner=winner.name,
            loser=loser.name,
            turns=self.turn,
            final_states=(first.combatant.snapshot(), second.combatant.snapshot()),
        )


class BattleEngine:
    """Resolves battles between two combatants.

    Stateless apart from its catalog and configuration; safe to share.

    Example:
        engine = BattleEngine()
        result = engine.run(my_pal, wild_enemy, rng=BattleRng(seed=7))
    """

    def __init__(self, catalog: GameCatalog | None = None, config: CombatConfig | None = None) -> None:
        self.catalog = catalog or default_catalog()
        self.config = config or DEFAULT_CONFIG

    def prepare(
        self,
        combatant: Combatant,
        skill_tree: SkillTree | None,
        mode: str,
        context: BattleContext,
        potion: PotionDefinition | None,
    ) -> Combatant:
        """Battle-local copy with potion, skill bonuses and pack leader bonus applied."""
        prepared = apply_potion(combatant, potion)
        prepared = apply_bonuses(prepared, skill_tree, mode, context, self.catalog)
        if mode == PARTY_MODE:
            prepared = apply_pack_leader_bonus(prepared, context.beast_count, self.config)
        return prepared

    def start(
        self,
        first: Combatant,
        second: Combatant,
        *,
        first_tree: SkillTree | None = None,
        second_tree: SkillTree | None = None,
        mode: str = "pvp",
        context: BattleContext | None = None,
        rng: BattleRng | RandomSource | None = None,
        first_potion: PotionDefinition | None = None,
        second_potion: PotionDefinition | None = None,
    ) -> Battle:
        """Set up a battle without playing any rounds."""
        context = context or BattleContext()
        log = CombatLogger()
        a = self.prepare(first, first_tree, mode, context, first_potion)
        b = self.prepare(second, second_tree, mode, context, second_potion)

        apply_battle_start_auras(a, b, log)
        apply_battle_start_auras(b, a, log)
        for combatant, potion in ((a, first_potion), (b, second_potion)):
            if potion is not None:
                log.add(f"💉 {combatant.name} uses {potion.name}!")

        return Battle(
            FighterState.for_combatant(a, self.catalog),
            FighterState.for_combatant(b, self.catalog),
            ensure_rng(rng),
            log,
            self.catalog,
            self.config,
        )

    def run(
        self,
        first: Combatant,
        second: Combatant,
        *,
        first_tree: SkillTree | None = None,
        second_tree: SkillTree | None = None,
        mode: str = "pvp",
        context: BattleContext | None = None,
        rng: BattleRng | RandomSource | None = None,
        first_potion: PotionDefinition | None = None,
        second_potion: PotionDefinition | None = None,
    ) -> BattleResult:
        """Resolve a full battle.

        The caller's combatants are never mutated; the result carries
        battle-local snapshots for write-back. The battle ends when either
        side is defeated or after ``config.max_turns`` rounds (a draw with
        ``first`` as nominal winner). Any unexpected exception produces an
        ``ERROR`` result favoring ``second`` instead of propagating.

        Args:
            first: The player's (or challenger's) combatant.
            second: The opponent.
            first_tree: Skill tree of ``first``.
            second_tree: Skill tree of ``second``.
            mode: Battle mode ("pvp", "party", "dungeon", ...).
            context: Battle context (beast count for party battles).
            rng: RNG or random source; a fresh unseeded one if omitted.
            first_potion: Potion consumed by ``first`` before the battle.
            second_potion: Potion consumed by ``second`` before the battle.

        Returns:
            The BattleResult.
        """
        battle: Battle | None = None
        try:
            battle = self.start(
                first,
                second,
                first_tree=first_tree,
                second_tree=second_tree,
                mode=mode,
                context=context,
                rng=rng,
                first_potion=first_potion,
                second_potion=second_potion,
            )
            while not battle.finished:
                battle.play_round()
            result = battle.result()
        except Exception:
            logger.exception("Battle between %s and %s failed", first.name, second.name)
            return self._error_result(first, second, battle)

        logger.debug(
            "Battle %s finished: %s after %d turns (%s won)",
            result.battle_id, result.outcome.value, result.turns, result.winner,
        )
        return result

    def _error_result(self, first: Combatant, second: Combatant, battle: Battle | None) -> BattleResult:
        lines: tuple[str, ...] = ()
        first_hp = first.current_hp or 0
        second_hp = second.current_hp or 0
        turns = 0
        if battle is not None:
            lines = battle.log.lines
            first_hp = battle.first.combatant.current_hp
            second_hp = battle.second.combatant.current_hp
            turns = battle.turn
        return BattleResult(
            outcome=BattleOutcome.ERROR,
            player_won=False,
            remaining_hp=first_hp,
            winner_remaining_hp=max(1, second_hp),
            log=lines + ("⚠️ Battle simulation encountered an error.",),
            winner=second.name,
            loser=first.name,
            turns=turns,
        )
