"""
Skill engine.

Two halves:

- ``apply_bonuses`` folds a creature's unlocked skills into a single typed
  SkillBonuses record, applying the immediate stat transforms on the way.
- ``check_activation`` rolls one probabilistic (or passive) skill for one
  moment of an attack and returns a typed ActivationResult.

Also home to the pack leader bonus and the battle-start Abyssal auras.
"""

import logging
import math

from pydantic import BaseModel, Field

from ..catalog import GameCatalog, default_catalog
from ..config import DEFAULT_CONFIG, CombatConfig
from ..models import BattleContext, Combatant, CreatureType, SkillBonuses, SkillTree, Stats
from ..rng import BattleRng
from .log import CombatLogger
from .stats import clamp_hp, clone_combatant, normalize

logger = logging.getLogger("palbattle.combat")

PARTY_MODE = "party"

ACTIVATION_KINDS = (
    "dodge",
    "counter",
    "execute",
    "divine_protection",
    "overload",
    "dark_ritual",
    "lich_transformation",
    "lifesteal",
    "multiAttack",
    "hpRegen",
    "celestial_barrier",
    "revive",
    "chainReaction",
    "selfRepair",
    "elemental_shield",
    "elemental_storm",
    "abyssal_devourer",
    "temporal_echo",
    "paradox_loop",
)

# Activations that replace the attack; at most one fires per attack.
EXCLUSIVE_KINDS = (
    "execute",
    "overload",
    "dark_ritual",
    "lich_transformation",
    "elemental_storm",
    "abyssal_devourer",
)

# Kinds that never roll; silence does not suppress them.
PASSIVE_KINDS = frozenset({"execute", "lifesteal", "hpRegen", "selfRepair"})

DEFAULT_EXECUTE_MULTIPLIER = 2.0
DEFAULT_OVERLOAD_MULTIPLIER = 2.0
DEFAULT_AREA_MULTIPLIER = 2.5


class ActivationResult(BaseModel):
    """A skill that fired, with whatever payload its kind carries."""

    kind: str = Field(description="Activation kind, one of ACTIVATION_KINDS")
    message: str = Field(description="Battle log line announcing the activation")
    multiplier: float | None = Field(default=None, description="Damage multiplier")
    damage: int | None = Field(default=None, description="Flat extra damage")
    heal: int | None = Field(default=None, description="HP restored")
    sacrifice: int | None = Field(default=None, description="HP paid by the user")
    duration: int | None = Field(default=None, description="Rounds the effect lasts")
    percentage: float | None = Field(default=None, description="Fraction (lifesteal, barrier, absorb)")
    reflection: float | None = Field(default=None, description="Fraction of the hit reflected back")
    recoil_percent: float | None = Field(default=None, description="Share of negated damage stored")
    statuses: list[str] = Field(default_factory=list, description="Statuses inflicted on the target")


# ---------------------------------------------------------------------------
# Permanent Bonuses
# ---------------------------------------------------------------------------

def _apply_stat_transforms(
    stats: Stats,
    bonus: SkillBonuses,
    battle_mode: str,
    context: BattleContext,
) -> None:
    if bonus.atk_multiplier:
        stats.atk = math.floor(stats.atk * bonus.atk_multiplier)
    if bonus.def_bonus:
        stats.defense += bonus.def_bonus
    if bonus.spd_bonus:
        stats.spd += bonus.spd_bonus
    if bonus.crit_chance:
        stats.luck += bonus.crit_chance * 100
    if bonus.luck_bonus:
        stats.luck += bonus.luck_bonus
    if bonus.accuracy:
        stats.accuracy = (stats.accuracy or 1.0) * bonus.accuracy
    if bonus.all_stats:
        stats.atk = math.floor(stats.atk * bonus.all_stats)
        stats.defense = math.floor(stats.defense * bonus.all_stats)
        stats.spd = math.floor(stats.spd * bonus.all_stats)
    if bonus.magic_damage:
        stats.atk = math.floor(stats.atk * bonus.magic_damage)
    if bonus.damage_reduction:
        stats.damage_reduction += bonus.damage_reduction
    if bonus.pack_bonus:
        pack = bonus.pack_bonus
        if battle_mode == PARTY_MODE and context.beast_count > 1:
            pack *= 2
        stats.atk = math.floor(stats.atk * (1 + pack))


def apply_bonuses(
    combatant: Combatant,
    skill_tree: SkillTree | None,
    battle_mode: str = "pvp",
    context: BattleContext | None = None,
    catalog: GameCatalog | None = None,
) -> Combatant:
    """Return a copy of ``combatant`` enhanced by its unlocked skills.

    A skill contributes its ``effects[level - 1]`` bonus when its battle type
    (if any) matches ``battle_mode``, its prerequisites are unlocked, and the
    level is defined (levels above ``max_level`` are clamped). Immediate stat
    transforms are applied to the copy's stats; every bonus field is merged
    into ``skill_bonuses``, later skills overriding earlier ones.

    Args:
        combatant: The creature to enhance (not mutated).
        skill_tree: Its unlocked skills, or None.
        battle_mode: "pvp", "party", "dungeon", ...
        context: Battle context (beast count for Pack Hunter).
        catalog: Catalog holding the skill definitions.

    Returns:
        A normalized, battle-local copy.
    """
    enhanced = clone_combatant(combatant)
    if skill_tree is None or not skill_tree.unlocked_skills:
        return enhanced

    catalog = catalog or default_catalog()
    context = context or BattleContext()
    bonuses = enhanced.skill_bonuses

    for unlocked in skill_tree.unlocked_skills:
        skill = catalog.skill(enhanced.creature_type, unlocked.skill_id)
        if skill is None:
            logger.debug("Skipping unknown skill %r for %s", unlocked.skill_id, enhanced.creature_type)
            continue
        if skill.battle_type and skill.battle_type != battle_mode:
            continue
        if not skill.prerequisites_met(skill_tree):
            logger.debug("Skipping %r for %s: prerequisites not met", unlocked.skill_id, enhanced.name)
            continue
        bonus = skill.bonus_at(unlocked.level)
        if bonus is None:
            continue
        _apply_stat_transforms(enhanced.stats, bonus, battle_mode, context)
        bonuses = bonuses.merged_with(bonus)

    enhanced.skill_bonuses = bonuses
    enhanced.stats = normalize(enhanced.stats)
    return clamp_hp(enhanced)


def apply_pack_leader_bonus(
    combatant: Combatant,
    beast_count: int,
    config: CombatConfig = DEFAULT_CONFIG,
) -> Combatant:
    """Attack bonus for a Beast fighting alongside other Beasts.

    +15% ATK per additional Beast, capped at +50%. Non-Beasts and lone
    Beasts come back as an unchanged copy.
    """
    boosted = clone_combatant(combatant)
    if boosted.creature_type != CreatureType.BEAST.value or beast_count <= 1:
        return boosted
    bonus = min(config.pack_leader_cap, (beast_count - 1) * config.pack_leader_step)
    boosted.stats.atk = math.floor(boosted.stats.atk * (1 + bonus))
    return boosted


def apply_battle_start_auras(source: Combatant, target: Combatant, log: CombatLogger) -> None:
    """Apply ``source``'s Crushing Pressure and Terror From Below to ``target``.

    Mutates ``target``'s stats; meant to run once, before the first round.
    """
    bonuses = source.skill_bonuses
    stats = target.stats

    atk_down = bonuses.enemy_atk_down or 0
    spd_down = bonuses.enemy_spd_down or 0
    if atk_down > 0 or spd_down > 0:
        atk_before, spd_before = stats.atk, stats.spd
        stats.atk = max(1, math.floor(stats.atk * (1 - atk_down)))
        stats.spd = max(1, math.floor(stats.spd * (1 - spd_down)))
        log.add(f"🌊 **Crushing Pressure!** The abyss squeezes {target.name}!")
        if stats.atk < atk_before:
            log.add(f"{target.name}'s ATK reduced by {atk_before - stats.atk} ({atk_before} → {stats.atk})")
        if stats.spd < spd_before:
            log.add(f"{target.name}'s SPD reduced by {spd_before - stats.spd} ({spd_before} → {stats.spd})")

    if bonuses.def_reduction:
        def_before = stats.defense
        stats.defense = max(0, math.floor(stats.defense * (1 - bonuses.def_reduction)))
        if stats.defense < def_before:
            log.add(
                f"😱 **Terror From Below!** {source.name} strikes fear into {target.name}, reducing their defenses!"
            )
            log.add(f"> {target.name}'s DEF reduced by {def_before - stats.defense} ({def_before} → {stats.defense})")


# ---------------------------------------------------------------------------
# Activation Checks
# ---------------------------------------------------------------------------

def check_activation(
    combatant: Combatant,
    kind: str,
    rng: BattleRng,
    current_hp: int | None = None,
    max_hp: int | None = None,
    stats: Stats | None = None,
    silenced: bool = False,
    config: CombatConfig = DEFAULT_CONFIG,
) -> ActivationResult | None:
    """Roll one skill activation.

    Each call performs at most one probability roll, seeded by the bonus
    field the kind depends on (no roll at all when that field is absent).

    Args:
        combatant: The combatant whose skills are checked.
        kind: One of ACTIVATION_KINDS.
        rng: Battle RNG.
        current_hp: HP the check is about (the target's for ``execute``,
            the user's for ``dark_ritual``).
        max_hp: Max HP matching ``current_hp`` (also sizes heals).
        stats: Per-turn stats of the user (defaults to its base stats).
        silenced: Suppresses every probabilistic kind.
        config: Tuning constants.

    Returns:
        The ActivationResult, or None if the skill is absent or failed its roll.
    """
    if kind not in ACTIVATION_KINDS:
        logger.debug("Unknown activation kind %r", kind)
        return None
    if silenced and kind not in PASSIVE_KINDS:
        return None

    b = combatant.skill_bonuses
    stats = stats or combatant.stats
    name = combatant.name
    max_hp = max_hp if max_hp is not None else combatant.max_hp

    if kind == "dodge":
        if b.dodge_chance and rng.chance(b.dodge_chance):
            return ActivationResult(kind=kind, message=f"**{name}** dodges with feral instinct!")

    elif kind == "counter":
        if b.counter_chance and rng.chance(b.counter_chance):
            return ActivationResult(
                kind=kind,
                message=f"**{name}** counter-attacks!",
                damage=math.floor(stats.atk * config.counter_damage_ratio),
            )

    elif kind == "execute":
        if b.execute_threshold and current_hp is not None and max_hp:
            if current_hp / max_hp <= b.execute_threshold:
                return ActivationResult(
                    kind=kind,
                    message=f"🩸 **Apex Predator!** {name} delivers a devastating finishing blow!",
                    multiplier=b.execute_multiplier or DEFAULT_EXECUTE_MULTIPLIER,
                )

    elif kind == "divine_protection":
        if b.divine_protection and rng.chance(b.divine_protection):
            heal = math.floor(max_hp * config.divine_heal_fraction) if b.heal_on_dodge else 0
            return ActivationResult(
                kind=kind,
                message=f"✨ Divine protection shields **{name}**!",
                heal=heal,
            )

    elif kind == "overload":
        if b.overload_chance and rng.chance(b.overload_chance):
            return ActivationResult(
                kind=kind,
                message=f"⚡ **System Overload!** {name}'s circuits surge with power!",
                multiplier=b.overload_damage or DEFAULT_OVERLOAD_MULTIPLIER,
            )

    elif kind == "dark_ritual":
        if b.hp_sacrifice and b.power_bonus and b.ritual_chance and rng.chance(b.ritual_chance):
            sacrifice = math.floor(max_hp * b.hp_sacrifice)
            hp = current_hp if current_hp is not None else combatant.current_hp
            if hp > sacrifice:
                return ActivationResult(
                    kind=kind,
                    message=f"🩸 **Dark Ritual!** {name} sacrifices life force for power!",
                    sacrifice=sacrifice,
                    multiplier=b.power_bonus,
                )

    elif kind == "lich_transformation":
        if b.invulnerability and b.power_multiplier and b.lich_chance and rng.chance(b.lich_chance):
            return ActivationResult(
                kind=kind,
                message=f"💀 **Lich Transformation!** {name} transcends mortal limits!",
                duration=b.invulnerability,
                multiplier=b.power_multiplier,
            )

    elif kind == "lifesteal":
        if b.lifesteal:
            return ActivationResult(
                kind=kind,
                message=f"🩸 **Life Drain!** {name} absorbs life energy!",
                percentage=b.lifesteal,
            )

    elif kind == "multiAttack":
        if b.multi_attack and rng.chance(b.multi_attack):
            return ActivationResult(
                kind=kind,
                message=f"⚡ **System Enhancement!** {name} attacks multiple times!",
                multiplier=config.multi_attack_ratio,
            )

    elif kind == "hpRegen":
        if b.hp_regen:
            heal = math.floor(max_hp * b.hp_regen)
            return ActivationResult(
                kind=kind,
                message=f"✨ **Healing Light!** {name} regenerates {heal} HP!",
                heal=heal,
            )

    elif kind == "celestial_barrier":
        if b.barrier_chance and b.barrier_reduction and rng.chance(b.barrier_chance):
            return ActivationResult(
                kind=kind,
                message=f"🌟 **Celestial Barrier!** A radiant shield softens the blow on {name}!",
                percentage=b.barrier_reduction,
            )

    elif kind == "revive":
        if b.revive_chance and rng.chance(b.revive_chance):
            return ActivationResult(kind=kind, message=f"🌟 **Miraculous Revival!** {name} refuses to fall!")

    elif kind == "chainReaction":
        if b.chain_reaction and rng.chance(b.chain_reaction):
            return ActivationResult(
                kind=kind,
                message=f"⚡ **Chain Reaction!** {name}'s overload spreads!",
                damage=math.floor(stats.atk * config.chain_reaction_ratio),
            )

    elif kind == "selfRepair":
        if b.self_repair:
            heal = math.floor(max_hp * b.self_repair)
            return ActivationResult(
                kind=kind,
                message=f"🔧 **Self Repair!** {name} automatically repairs damage!",
                heal=heal,
            )

    elif kind == "elemental_shield":
        if b.shield_chance and rng.chance(b.shield_chance):
            return ActivationResult(
                kind=kind,
                message=f"🛡️ **Elemental Shield!** {name} absorbs the elemental onslaught!",
                percentage=b.elemental_absorb or 0.0,
                reflection=b.reflection or 0.0,
            )

    elif kind == "elemental_storm":
        if b.storm_chance and rng.chance(b.storm_chance):
            return ActivationResult(
                kind=kind,
                message=f"🌪️ **Elemental Storm!** {name} unleashes the fury of every element!",
                multiplier=b.storm_damage or DEFAULT_AREA_MULTIPLIER,
                statuses=["burn", "freeze", "shock"] if b.multi_status else [],
            )

    elif kind == "abyssal_devourer":
        if b.abyssal_chance and rng.chance(b.abyssal_chance):
            return ActivationResult(
                kind=kind,
                message=f"🐙 **Abyssal Devourer!** {name} drags its prey into the depths!",
                multiplier=b.area_damage or DEFAULT_AREA_MULTIPLIER,
                statuses=["fear"] if b.instant_fear else [],
            )

    elif kind == "temporal_echo":
        if b.echo_chance and b.echo_damage_multiplier and rng.chance(b.echo_chance):
            return ActivationResult(
                kind=kind,
                message=f"⏳ **Temporal Echo!** {name}'s strike reverberates through time!",
                multiplier=b.echo_damage_multiplier,
            )

    elif kind == "paradox_loop":
        if b.paradox_chance and rng.chance(b.paradox_chance):
            return ActivationResult(
                kind=kind,
                message=f"🔮 **Paradox Loop!** {name} slips outside of time!",
                duration=b.damage_immunity or 1,
                recoil_percent=b.recoil_percent or config.default_recoil_percent,
            )

    return None


def check_exclusive(
    attacker: Combatant,
    rng: BattleRng,
    defender_hp: int,
    defender_max_hp: int,
    stats: Stats | None = None,
    silenced: bool = False,
    config: CombatConfig = DEFAULT_CONFIG,
) -> ActivationResult | None:
    """Check the attack-replacing kinds in order; the first to fire wins."""
    for kind in EXCLUSIVE_KINDS:
        if kind == "execute":
            hp, max_hp = defender_hp, defender_max_hp
        else:
            hp, max_hp = attacker.current_hp, attacker.max_hp
        result = check_activation(
            attacker, kind, rng,
            current_hp=hp, max_hp=max_hp, stats=stats, silenced=silenced, config=config,
        )
        if result is not None:
            return result
    return None


# ---------------------------------------------------------------------------
# Status Infliction
# ---------------------------------------------------------------------------

_STATUS_ICONS = {"burn": "🔥", "freeze": "❄️", "shock": "⚡", "poison": "💀", "drown": "💧", "fear": "😨", "silence": "🤫"}


def roll_status_infliction(
    attacker: Combatant,
    rng: BattleRng,
    silenced: bool = False,
    catalog: GameCatalog | None = None,
) -> tuple[list[str], list[str]]:
    """Roll every on-hit status the attacker's skills can inflict.

    Returns:
        ``(statuses, messages)``; statuses still have to pass the target's
        immunity and resistance checks before being applied.
    """
    if silenced:
        return [], []
    catalog = catalog or default_catalog()
    b = attacker.skill_bonuses

    chances: list[tuple[str, float]] = []
    for table in (b.status_inflict, b.status_chance):
        if table:
            chances.extend(table.items())
    for effect_type, chance in (("drown", b.drown_chance), ("fear", b.fear_chance), ("silence", b.silence_chance)):
        if chance:
            chances.append((effect_type, chance))

    statuses: list[str] = []
    messages: list[str] = []
    for effect_type, chance in chances:
        if rng.chance(chance):
            definition = catalog.status_effect(effect_type)
            label = definition.name if definition is not None else effect_type
            icon = _STATUS_ICONS.get(effect_type, "🌑")
            statuses.append(effect_type)
            messages.append(f"{icon} **{attacker.name}** inflicts {label}!")
    return statuses, messages
