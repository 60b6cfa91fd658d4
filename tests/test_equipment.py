"""
Tests for the equipment resolver.
"""

import pytest

from palbattle.catalog import GameCatalog, ItemDefinition
from palbattle.combat.equipment import (
    accuracy_multiplier,
    evasion_multiplier,
    is_immune,
    resolve_effects,
    resolve_resistances,
    shield_item,
    status_resistance,
)


@pytest.fixture
def overlap_catalog() -> GameCatalog:
    """Two accessories granting the same proc and overlapping flat bonuses."""
    return GameCatalog(
        items={
            "lucky_ring": ItemDefinition(name="Lucky Ring", dodge=0.1, crit=0.05, accuracy=1.1, special="echo_sight"),
            "swift_band": ItemDefinition(name="Swift Band", dodge=0.25, crit=0.02, accuracy=1.3, special="echo_sight"),
        }
    )


class TestResolveEffects:
    """Tests for resolve_effects()."""

    def test_empty_equipment(self, catalog):
        effects = resolve_effects({}, catalog)
        assert effects.abilities == []
        assert effects.dodge_bonus == 0
        assert effects.flat_damage_bonus == 0

    def test_special_abilities_collected(self, catalog):
        effects = resolve_effects(
            {"weapon": "stormcaller_staff", "leg": "frost_guard_leggings", "head": "leather_helmet"},
            catalog,
        )
        assert effects.abilities == ["lightning_strike", "frost_aura"]
        assert effects.has("frost_aura")
        assert not effects.has("terror_aura")

    def test_same_ability_recorded_once(self, overlap_catalog):
        effects = resolve_effects({"ring1": "lucky_ring", "ring2": "swift_band"}, overlap_catalog)
        assert effects.abilities == ["echo_sight"]

    def test_overlapping_flat_bonuses_last_slot_wins(self, overlap_catalog):
        effects = resolve_effects({"ring1": "lucky_ring", "ring2": "swift_band"}, overlap_catalog)
        assert effects.dodge_bonus == pytest.approx(0.25)
        assert effects.crit_bonus == pytest.approx(0.02)
        assert effects.accuracy_bonus == pytest.approx(1.3)

    def test_damage_bonus(self, catalog):
        effects = resolve_effects({"weapon": "molten_flail"}, catalog)
        assert effects.damage_bonuses == {"fire": 12}
        assert effects.flat_damage_bonus == 12

    def test_unknown_and_empty_slots_skipped(self, catalog):
        effects = resolve_effects({"weapon": "no_such_blade", "head": None, "boots": "phantom_slippers"}, catalog)
        assert effects.dodge_bonus == pytest.approx(0.1)


class TestResistances:
    """Tests for resolve_resistances()."""

    def test_additive_across_items(self, catalog):
        resistances = resolve_resistances({"head": "ember_helm", "chest": "obsidian_plate"}, catalog)
        assert resistances["fire"] == 50
        assert resistances["ice"] == 0

    def test_wind_counts_as_storm(self, catalog):
        resistances = resolve_resistances({"accessory": "feathered_brooch", "offhand": "tesla_aegis"}, catalog)
        assert resistances["storm"] == 35

    def test_all_keys_present(self, catalog):
        assert set(resolve_resistances(None, catalog)) == {"fire", "ice", "storm", "physical"}


class TestHitMultipliers:
    """Tests for accuracy_multiplier() and evasion_multiplier()."""

    def test_no_equipment(self, catalog):
        assert accuracy_multiplier({}, catalog) == 1.0
        assert evasion_multiplier({}, catalog) == 1.0

    def test_accuracy_multiplier(self, catalog):
        assert accuracy_multiplier({"weapon": "hawkeye_longbow"}, catalog) == pytest.approx(1.2)

    def test_flat_accuracy_multiplies_across_slots(self, overlap_catalog):
        equipment = {"ring1": "lucky_ring", "ring2": "swift_band"}
        assert accuracy_multiplier(equipment, overlap_catalog) == pytest.approx(1.1 * 1.3)
        assert resolve_effects(equipment, overlap_catalog).accuracy_bonus == pytest.approx(1.3)

    def test_evasion_multiplier(self, catalog):
        assert evasion_multiplier({"boots": "phantom_slippers"}, catalog) == pytest.approx(1.15)


class TestStatusProtection:
    """Tests for is_immune(), status_resistance() and shield_item()."""

    def test_full_resistance_counts_as_immunity(self, catalog):
        assert is_immune({"accessory": "warding_talisman"}, "poison", catalog)
        assert not is_immune({"accessory": "warding_talisman"}, "burn", catalog)

    def test_immune_to_all(self, catalog):
        assert is_immune({"accessory": "purity_sigil"}, "freeze", catalog)

    def test_partial_resistance(self, catalog):
        assert status_resistance({"accessory": "warding_talisman"}, "burn", catalog) == pytest.approx(0.5)
        assert status_resistance({"accessory": "warding_talisman"}, "shock", catalog) == 0

    def test_shield_slot(self, catalog):
        assert shield_item({"shield": "guardian_shield"}, catalog).name == "Guardian Shield"
        assert shield_item({"offhand": "guardian_shield"}, catalog) is None
        assert shield_item({"shield": "no_such_shield"}, catalog) is None
