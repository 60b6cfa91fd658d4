"""
Tests for consumable potion effects.

Covers:
- apply_potion() for every supported effect type
- unknown effect types and missing potions
- consumable_damage_multiplier()
"""

import pytest

from palbattle.catalog import PotionDefinition, PotionEffect
from palbattle.combat.potions import apply_potion, consumable_damage_multiplier
from palbattle.models import ConsumableEffect

from conftest import make_combatant


def potion(**effect) -> PotionDefinition:
    return PotionDefinition(name="Test Brew", effect=PotionEffect(**effect))


class TestApplyPotion:
    """Tests for apply_potion()."""

    def test_no_potion_returns_copy(self):
        pal = make_combatant(atk=20)
        boosted = apply_potion(pal, None)
        assert boosted is not pal
        assert boosted.stats == pal.stats

    def test_caller_not_mutated(self, catalog):
        pal = make_combatant(atk=20)
        apply_potion(pal, catalog.potion("elixir_of_strength"))
        assert pal.stats.atk == 20

    def test_heal_raises_max_and_current(self, catalog):
        pal = make_combatant(hp=100)
        pal.current_hp = 40
        boosted = apply_potion(pal, catalog.potion("minor_healing_potion"))
        assert boosted.max_hp == 150
        assert boosted.current_hp == 90

    def test_stat_boost_table(self, catalog):
        boosted = apply_potion(make_combatant(atk=20), catalog.potion("elixir_of_strength"))
        assert boosted.stats.atk == 55

    def test_stat_boost_single_stat(self):
        boosted = apply_potion(make_combatant(defense=10), potion(type="stat_boost", stat="def", value=7))
        assert boosted.stats.defense == 17

    def test_multi_boost(self, catalog):
        boosted = apply_potion(make_combatant(atk=20, defense=10), catalog.potion("elixir_of_focus"))
        assert boosted.stats.atk == 50
        assert boosted.stats.defense == 20

    def test_trade_boost_normalized(self, catalog):
        boosted = apply_potion(make_combatant(atk=20, defense=20), catalog.potion("berserker_elixir"))
        assert boosted.stats.atk == 100
        assert boosted.stats.defense == 0

    def test_resistance(self, catalog):
        boosted = apply_potion(make_combatant(), catalog.potion("ice_resistance_potion"))
        assert boosted.resistances == {"ice": 50}

    def test_familiar_type_boost_matches_case_insensitively(self, catalog):
        mech = make_combatant(creature_type="Mechanical", spd=10, defense=10)
        boosted = apply_potion(mech, catalog.potion("mechanical_oil"))
        assert boosted.stats.spd == 55
        assert boosted.stats.defense == 30

    def test_familiar_type_boost_other_types_unchanged(self, catalog):
        beast = make_combatant(spd=10)
        boosted = apply_potion(beast, catalog.potion("mechanical_oil"))
        assert boosted.stats.spd == 10

    def test_special_grants_ability(self, catalog):
        boosted = apply_potion(make_combatant(), catalog.potion("shadow_draught"))
        assert boosted.active_consumable_effects == [
            ConsumableEffect(kind="special", ability="shadow_strike", chance=0.25)
        ]

    def test_special_luck_and_default_chance(self, catalog):
        boosted = apply_potion(make_combatant(luck=5), catalog.potion("spirit_communion_brew"))
        assert boosted.stats.luck == pytest.approx(30)
        assert boosted.active_consumable_effects[0].chance == pytest.approx(0.25)

    def test_multi_element(self, catalog):
        boosted = apply_potion(make_combatant(), catalog.potion("essence_fusion_elixir"))
        grant = boosted.active_consumable_effects[0]
        assert grant.kind == "multi_element"
        assert grant.elements == ["fire", "ice", "storm"]
        assert grant.damage_boost == pytest.approx(0.2)

    def test_unknown_effect_type_ignored(self):
        pal = make_combatant(atk=20)
        boosted = apply_potion(pal, potion(type="transmogrify", value=99))
        assert boosted.stats == pal.stats
        assert boosted.active_consumable_effects == []


class TestConsumableDamageMultiplier:
    """Tests for consumable_damage_multiplier()."""

    def test_no_grants(self):
        assert consumable_damage_multiplier([]) == 1.0

    def test_specials_ignored(self):
        assert consumable_damage_multiplier([ConsumableEffect(ability="shadow_strike")]) == 1.0

    def test_multi_element_grants_multiply(self):
        grants = [
            ConsumableEffect(kind="multi_element", damage_boost=0.2),
            ConsumableEffect(kind="multi_element", damage_boost=0.1),
        ]
        assert consumable_damage_multiplier(grants) == pytest.approx(1.32)
