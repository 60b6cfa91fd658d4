"""
Tests for the skill engine.

Covers:
- apply_bonuses(): stat transforms, battle type gating, prerequisites,
  level clamping, unknown skills, caller immutability
- apply_pack_leader_bonus() and apply_battle_start_auras()
- check_activation() for each activation family, silence handling
- check_exclusive() ordering
- roll_status_infliction()
"""

import math

import pytest

from palbattle.combat.log import CombatLogger
from palbattle.combat.skills import (
    ACTIVATION_KINDS,
    EXCLUSIVE_KINDS,
    apply_battle_start_auras,
    apply_bonuses,
    apply_pack_leader_bonus,
    check_activation,
    check_exclusive,
    roll_status_infliction,
)
from palbattle.models import BattleContext, Combatant, SkillBonuses, SkillTree, Stats, UnlockedSkill
from palbattle.rng import BattleRng

from conftest import make_combatant, scripted_rng


def tree(*skills: tuple[str, int]) -> SkillTree:
    return SkillTree(unlocked_skills=[UnlockedSkill(skill_id=s, level=lvl) for s, lvl in skills])


def with_bonuses(**bonuses) -> Combatant:
    c = make_combatant("Skilled", hp=100, atk=50, defense=10, spd=10)
    c.skill_bonuses = SkillBonuses(**bonuses)
    return c


# ===========================================================================
# Permanent Bonuses
# ===========================================================================

class TestApplyBonuses:
    """Tests for apply_bonuses()."""

    def test_no_tree_returns_copy(self, catalog):
        beast = make_combatant(atk=40)
        enhanced = apply_bonuses(beast, None, catalog=catalog)
        assert enhanced is not beast
        assert enhanced.stats == beast.stats

    def test_def_bonus(self, catalog):
        beast = make_combatant(defense=10)
        enhanced = apply_bonuses(beast, tree(("thick_hide", 2)), catalog=catalog)
        assert enhanced.stats.defense == 18
        assert enhanced.skill_bonuses.def_bonus == 8

    def test_caller_not_mutated(self, catalog):
        beast = make_combatant(defense=10)
        apply_bonuses(beast, tree(("thick_hide", 2)), catalog=catalog)
        assert beast.stats.defense == 10
        assert beast.skill_bonuses.def_bonus is None

    def test_level_clamped_to_max(self, catalog):
        beast = make_combatant(defense=10)
        enhanced = apply_bonuses(beast, tree(("thick_hide", 9)), catalog=catalog)
        assert enhanced.stats.defense == 30
        assert enhanced.skill_bonuses.status_resistance == {"poison": 0.3}

    def test_prerequisites_required(self, catalog):
        beast = make_combatant()
        enhanced = apply_bonuses(beast, tree(("feral_instinct", 1)), battle_mode="party", catalog=catalog)
        assert enhanced.skill_bonuses.dodge_chance is None

        enhanced = apply_bonuses(
            beast, tree(("pack_hunter", 1), ("feral_instinct", 1)), battle_mode="party", catalog=catalog
        )
        assert enhanced.skill_bonuses.dodge_chance == pytest.approx(0.1)

    def test_battle_type_gating(self, catalog):
        beast = make_combatant(atk=100)
        enhanced = apply_bonuses(beast, tree(("pack_hunter", 1)), battle_mode="pvp", catalog=catalog)
        assert enhanced.stats.atk == 100
        assert enhanced.skill_bonuses.pack_bonus is None

    def test_pack_hunter_doubles_with_other_beasts(self, catalog):
        beast = make_combatant(atk=100)
        alone = apply_bonuses(
            beast, tree(("pack_hunter", 1)), battle_mode="party", context=BattleContext(beast_count=1), catalog=catalog
        )
        pack = apply_bonuses(
            beast, tree(("pack_hunter", 1)), battle_mode="party", context=BattleContext(beast_count=3), catalog=catalog
        )
        assert alone.stats.atk == math.floor(100 * (1 + 0.08))
        assert pack.stats.atk == math.floor(100 * (1 + 0.08 * 2))
        assert pack.stats.atk > alone.stats.atk

    def test_crit_chance_becomes_luck(self, catalog):
        mystic = make_combatant(creature_type="Mystic", luck=0)
        enhanced = apply_bonuses(mystic, tree(("mystical_insight", 1)), catalog=catalog)
        assert enhanced.stats.luck == pytest.approx(8)

    def test_multiplicative_transforms(self, catalog):
        elemental = make_combatant(creature_type="Elemental", atk=100)
        enhanced = apply_bonuses(elemental, tree(("elemental_affinity", 3)), catalog=catalog)
        assert enhanced.stats.atk == 120

    def test_damage_reduction_added_to_stats(self, catalog):
        mech = make_combatant(creature_type="Mechanical", defense=10)
        enhanced = apply_bonuses(mech, tree(("armor_plating", 5)), catalog=catalog)
        assert enhanced.stats.defense == 25
        assert enhanced.stats.damage_reduction == pytest.approx(0.1)

    def test_later_skill_overrides_same_field(self, catalog):
        aeonic = make_combatant(creature_type="Aeonic")
        enhanced = apply_bonuses(
            aeonic, tree(("decay", 1), ("precognition", 3), ("temporal_echo", 2)), catalog=catalog
        )
        bonuses = enhanced.skill_bonuses
        assert bonuses.status_inflict == {"decay": 0.2}
        assert bonuses.dodge_chance == pytest.approx(0.2)
        assert bonuses.counter_chance == pytest.approx(0.15)
        assert bonuses.echo_damage_multiplier == pytest.approx(0.5)

    def test_unknown_skill_skipped(self, catalog):
        beast = make_combatant(defense=10)
        enhanced = apply_bonuses(beast, tree(("laser_eyes", 1), ("thick_hide", 1)), catalog=catalog)
        assert enhanced.stats.defense == 15

    def test_existing_bonuses_kept(self, catalog):
        beast = make_combatant(defense=10)
        beast.skill_bonuses = SkillBonuses(lifesteal=0.1)
        enhanced = apply_bonuses(beast, tree(("thick_hide", 1)), catalog=catalog)
        assert enhanced.skill_bonuses.lifesteal == pytest.approx(0.1)
        assert enhanced.skill_bonuses.def_bonus == 5


class TestPackLeader:
    """Tests for apply_pack_leader_bonus()."""

    def test_bonus_per_extra_beast(self):
        assert apply_pack_leader_bonus(make_combatant(atk=100), 3).stats.atk == 130

    def test_bonus_capped(self):
        assert apply_pack_leader_bonus(make_combatant(atk=100), 8).stats.atk == 150

    def test_lone_beast_unchanged(self):
        assert apply_pack_leader_bonus(make_combatant(atk=100), 1).stats.atk == 100

    def test_non_beast_unchanged(self):
        undead = make_combatant(creature_type="Undead", atk=100)
        boosted = apply_pack_leader_bonus(undead, 4)
        assert boosted.stats.atk == 100
        assert boosted is not undead


class TestBattleStartAuras:
    """Tests for apply_battle_start_auras()."""

    def test_crushing_pressure(self):
        source = with_bonuses(enemy_atk_down=0.1, enemy_spd_down=0.08)
        target = make_combatant("Prey", atk=100, spd=20)
        log = CombatLogger()
        apply_battle_start_auras(source, target, log)
        assert target.stats.atk == 90
        assert target.stats.spd == 18
        assert any("Crushing Pressure" in line for line in log.lines)
        assert any("ATK reduced by 10" in line for line in log.lines)

    def test_terror_from_below(self):
        source = with_bonuses(def_reduction=0.2)
        target = make_combatant("Prey", defense=50)
        log = CombatLogger()
        apply_battle_start_auras(source, target, log)
        assert target.stats.defense == 40
        assert any("DEF reduced by 10" in line for line in log.lines)

    def test_no_auras_no_log(self):
        log = CombatLogger()
        target = make_combatant("Prey", atk=100)
        apply_battle_start_auras(make_combatant(), target, log)
        assert target.stats.atk == 100
        assert len(log) == 0


# ===========================================================================
# Activation Checks
# ===========================================================================

class TestCheckActivation:
    """Tests for check_activation()."""

    def test_unknown_kind(self, rng):
        assert check_activation(with_bonuses(dodge_chance=1.0), "teleport", rng) is None

    def test_absent_bonus_draws_nothing(self, source):
        assert check_activation(make_combatant(), "dodge", BattleRng(source=source)) is None
        assert source.draws == 0

    def test_dodge_roll(self):
        c = with_bonuses(dodge_chance=0.2)
        assert check_activation(c, "dodge", scripted_rng(0.1)).kind == "dodge"
        assert check_activation(c, "dodge", scripted_rng(0.3)) is None

    def test_counter_damage(self, rng):
        result = check_activation(with_bonuses(counter_chance=1.0), "counter", rng)
        assert result.damage == 35  # floor(50 * 0.7)

    def test_execute_uses_hp_ratio_without_rolling(self, source):
        c = with_bonuses(execute_threshold=0.3, execute_multiplier=2.0)
        rng = BattleRng(source=source)
        assert check_activation(c, "execute", rng, current_hp=30, max_hp=100).multiplier == 2.0
        assert check_activation(c, "execute", rng, current_hp=31, max_hp=100) is None
        assert source.draws == 0

    def test_divine_protection_heal(self, rng):
        c = with_bonuses(divine_protection=1.0, heal_on_dodge=True)
        result = check_activation(c, "divine_protection", rng, max_hp=200)
        assert result.heal == 10

    def test_dark_ritual_requires_enough_hp(self, rng):
        c = with_bonuses(hp_sacrifice=0.25, power_bonus=1.5, ritual_chance=1.0)
        result = check_activation(c, "dark_ritual", rng, current_hp=100, max_hp=100)
        assert result.sacrifice == 25
        assert result.multiplier == 1.5
        assert check_activation(c, "dark_ritual", rng, current_hp=25, max_hp=100) is None

    def test_lich_transformation(self, rng):
        c = with_bonuses(invulnerability=2, power_multiplier=2.5, lich_chance=1.0)
        result = check_activation(c, "lich_transformation", rng)
        assert result.duration == 2
        assert result.multiplier == 2.5

    def test_passive_heals(self, rng):
        c = with_bonuses(hp_regen=0.05, self_repair=0.1)
        assert check_activation(c, "hpRegen", rng, max_hp=200).heal == 10
        assert check_activation(c, "selfRepair", rng, max_hp=200).heal == 20

    def test_elemental_shield_payload(self, rng):
        c = with_bonuses(shield_chance=1.0, elemental_absorb=0.5, reflection=0.2)
        result = check_activation(c, "elemental_shield", rng)
        assert result.percentage == 0.5
        assert result.reflection == 0.2

    def test_elemental_storm_statuses(self, rng):
        c = with_bonuses(storm_chance=1.0, storm_damage=2.5, multi_status=True)
        result = check_activation(c, "elemental_storm", rng)
        assert result.multiplier == 2.5
        assert result.statuses == ["burn", "freeze", "shock"]

    def test_paradox_loop(self, rng):
        c = with_bonuses(paradox_chance=1.0, damage_immunity=1, recoil_percent=0.4)
        result = check_activation(c, "paradox_loop", rng)
        assert result.duration == 1
        assert result.recoil_percent == 0.4

    def test_paradox_default_recoil(self, rng):
        result = check_activation(with_bonuses(paradox_chance=1.0), "paradox_loop", rng)
        assert result.recoil_percent == 0.5

    def test_silence_blocks_probabilistic_kinds(self, rng):
        c = with_bonuses(dodge_chance=1.0, lifesteal=0.2)
        assert check_activation(c, "dodge", rng, silenced=True) is None
        assert check_activation(c, "lifesteal", rng, silenced=True).percentage == 0.2

    def test_every_kind_accepted(self, rng):
        c = make_combatant()
        for kind in ACTIVATION_KINDS:
            assert check_activation(c, kind, rng) is None


class TestCheckExclusive:
    """Tests for check_exclusive()."""

    def test_first_in_order_wins(self, rng):
        c = with_bonuses(overload_chance=1.0, overload_damage=2.0, storm_chance=1.0, storm_damage=3.0)
        assert check_exclusive(c, rng, 100, 100).kind == "overload"

    def test_execute_reads_defender_hp(self, rng):
        c = with_bonuses(execute_threshold=0.3, overload_chance=1.0)
        assert check_exclusive(c, rng, 10, 100).kind == "execute"
        assert check_exclusive(c, rng, 90, 100).kind == "overload"

    def test_none_fire(self, rng):
        assert check_exclusive(make_combatant(), rng, 10, 100) is None

    def test_silenced(self, rng):
        c = with_bonuses(overload_chance=1.0)
        assert check_exclusive(c, rng, 100, 100, silenced=True) is None

    def test_exclusive_kinds_are_activation_kinds(self):
        assert set(EXCLUSIVE_KINDS) <= set(ACTIVATION_KINDS)


class TestStatusInfliction:
    """Tests for roll_status_infliction()."""

    def test_status_chance_map(self, catalog):
        c = with_bonuses(status_chance={"burn": 0.3, "freeze": 0.1})
        statuses, messages = roll_status_infliction(c, scripted_rng(0.2, 0.2), catalog=catalog)
        assert statuses == ["burn"]
        assert "inflicts Burn" in messages[0]

    def test_named_chances(self, catalog):
        c = with_bonuses(drown_chance=1.0, fear_chance=1.0, silence_chance=1.0)
        statuses, _ = roll_status_infliction(c, scripted_rng(), catalog=catalog)
        assert statuses == ["drown", "fear", "silence"]

    def test_silenced_attacker_inflicts_nothing(self, catalog, rng):
        c = with_bonuses(status_inflict={"decay": 1.0})
        assert roll_status_infliction(c, rng, silenced=True, catalog=catalog) == ([], [])
