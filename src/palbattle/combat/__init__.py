"""
Combat mechanics package for palbattle.

Provides the stat and equipment resolvers, the type chart, the status
effect and skill engines, hit/damage resolution, equipment procs, turn
order, the single-attack pipeline and the battle orchestrator.
"""

# Orchestrator
from .engine import Battle, BattleEngine

# Single attack pipeline
from .pipeline import AttackOutcome, FighterState, ParadoxState, execute_attack, simulate_attack

# Status effects
from .effects import StatusEffectEngine, StatusTick

# Skills
from .skills import (
    ActivationResult,
    apply_battle_start_auras,
    apply_bonuses,
    apply_pack_leader_bonus,
    check_activation,
    check_exclusive,
    roll_status_infliction,
)

# Resolvers
from .damage import DamageRoll, calculate_damage, crit_chance, hit_chance, resistance_multiplier
from .equipment import EffectMap, resolve_effects, resolve_resistances
from .stats import clone_combatant, normalize, roman_to_int, scale_enemy
from .turn_order import resolve_turn_order
from .type_chart import multiplier as type_multiplier

# Procs and consumables
from .potions import apply_potion
from .procs import WEAPON_ABILITIES, process_defensive, process_offensive, process_weapon_abilities

# Battle log
from .log import CombatLogger

__all__ = [
    "Battle",
    "BattleEngine",
    "AttackOutcome",
    "FighterState",
    "ParadoxState",
    "execute_attack",
    "simulate_attack",
    "StatusEffectEngine",
    "StatusTick",
    "ActivationResult",
    "apply_battle_start_auras",
    "apply_bonuses",
    "apply_pack_leader_bonus",
    "check_activation",
    "check_exclusive",
    "roll_status_infliction",
    "DamageRoll",
    "calculate_damage",
    "crit_chance",
    "hit_chance",
    "resistance_multiplier",
    "EffectMap",
    "resolve_effects",
    "resolve_resistances",
    "clone_combatant",
    "normalize",
    "roman_to_int",
    "scale_enemy",
    "resolve_turn_order",
    "type_multiplier",
    "apply_potion",
    "WEAPON_ABILITIES",
    "process_defensive",
    "process_offensive",
    "process_weapon_abilities",
    "CombatLogger",
]
