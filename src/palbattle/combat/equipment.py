"""
Equipment resolver.

Flattens a combatant's equipped items (slot -> item id) into the values the
combat pipeline reads: special-ability flags, elemental resistances, damage
bonuses, hit/evasion multipliers and status immunity.
"""

import logging
from collections.abc import Iterator, Mapping

from pydantic import BaseModel, Field

from ..catalog import GameCatalog, ItemDefinition, default_catalog

logger = logging.getLogger("palbattle.combat")

# Tag handled by death handling, never rolled as a proc.
REVIVE_ONCE = "revive_once"

RESISTANCE_KEYS = ("fire", "ice", "storm", "physical")


class EffectMap(BaseModel):
    """Flattened view of everything a combatant's equipment grants.

    Attributes:
        abilities: Special-ability tags, in slot order, each recorded once.
        resistances: Per-element resistance from the item flags (last item wins).
        damage_bonuses: Elemental damage bonuses (last item wins).
        dodge_bonus: Flat dodge chance (last equipped slot wins).
        crit_bonus: Flat crit chance (last equipped slot wins).
        accuracy_bonus: Flat accuracy bonus (last equipped slot wins). Recorded
            only; the hit formula reads per-item multipliers instead.
    """
    abilities: list[str] = Field(default_factory=list)
    resistances: dict[str, float] = Field(default_factory=dict)
    damage_bonuses: dict[str, float] = Field(default_factory=dict)
    dodge_bonus: float = 0.0
    crit_bonus: float = 0.0
    accuracy_bonus: float = 0.0

    def has(self, ability: str) -> bool:
        return ability in self.abilities

    @property
    def flat_damage_bonus(self) -> int:
        return int(sum(self.damage_bonuses.values()))


def equipped_items(
    equipment: Mapping[str, str | None] | None,
    catalog: GameCatalog | None = None,
) -> Iterator[tuple[str, ItemDefinition]]:
    """Yield ``(slot, item)`` for every slot holding a known item."""
    if not equipment:
        return
    catalog = catalog or default_catalog()
    for slot, item_id in equipment.items():
        if not item_id:
            continue
        item = catalog.item(item_id)
        if item is None:
            logger.debug("Skipping unknown item %r in slot %r", item_id, slot)
            continue
        yield slot, item


def resolve_effects(
    equipment: Mapping[str, str | None] | None,
    catalog: GameCatalog | None = None,
) -> EffectMap:
    """Accumulate the effect map for an equipment mapping.

    Two slots granting the same ability record it once. Overlapping
    dodge/crit/accuracy bonuses are overwritten by the later slot rather
    than summed.
    """
    effects = EffectMap()
    for _, item in equipped_items(equipment, catalog):
        if item.special and item.special not in effects.abilities:
            effects.abilities.append(item.special)

        for element in ("fire", "ice", "storm", "wind", "physical"):
            value = getattr(item, f"{element}_resist")
            if value:
                effects.resistances[element] = value
        for element in ("fire", "ice", "storm"):
            value = getattr(item, f"{element}_damage")
            if value:
                effects.damage_bonuses[element] = value

        if item.dodge:
            effects.dodge_bonus = item.dodge
        if item.crit:
            effects.crit_bonus = item.crit
        if item.accuracy:
            effects.accuracy_bonus = item.accuracy
    return effects


def resolve_resistances(
    equipment: Mapping[str, str | None] | None,
    catalog: GameCatalog | None = None,
) -> dict[str, float]:
    """Sum elemental resistances across all items; wind counts as storm."""
    resistances = dict.fromkeys(RESISTANCE_KEYS, 0.0)
    for _, item in equipped_items(equipment, catalog):
        resistances["fire"] += item.fire_resist
        resistances["ice"] += item.ice_resist
        resistances["storm"] += item.storm_resist + item.wind_resist
        resistances["physical"] += item.physical_resist
    return resistances


def accuracy_multiplier(
    equipment: Mapping[str, str | None] | None,
    catalog: GameCatalog | None = None,
) -> float:
    """Product of every item's accuracy multiplier (flat ``accuracy`` as a fallback)."""
    multiplier = 1.0
    for _, item in equipped_items(equipment, catalog):
        if item.accuracy_multiplier:
            multiplier *= item.accuracy_multiplier
        elif item.accuracy:
            multiplier *= item.accuracy
    return multiplier


def evasion_multiplier(
    equipment: Mapping[str, str | None] | None,
    catalog: GameCatalog | None = None,
) -> float:
    """Product of every item's evasion multiplier (flat ``evasion`` as a fallback)."""
    multiplier = 1.0
    for _, item in equipped_items(equipment, catalog):
        if item.evasion_multiplier:
            multiplier *= item.evasion_multiplier
        elif item.evasion:
            multiplier *= item.evasion
    return multiplier


def is_immune(
    equipment: Mapping[str, str | None] | None,
    status_type: str,
    catalog: GameCatalog | None = None,
) -> bool:
    """Whether any item grants full immunity to ``status_type``."""
    for _, item in equipped_items(equipment, catalog):
        if item.immune_to_status or item.status_resistance.get(status_type, 0) >= 1.0:
            return True
    return False


def status_resistance(
    equipment: Mapping[str, str | None] | None,
    status_type: str,
    catalog: GameCatalog | None = None,
) -> float:
    """Summed chance that equipment shrugs off ``status_type``."""
    return sum(
        item.status_resistance.get(status_type, 0.0)
        for _, item in equipped_items(equipment, catalog)
    )


def shield_item(
    equipment: Mapping[str, str | None] | None,
    catalog: GameCatalog | None = None,
) -> ItemDefinition | None:
    """The item equipped in the ``shield`` slot, if it is a known item."""
    if not equipment or not equipment.get("shield"):
        return None
    return (catalog or default_catalog()).item(equipment["shield"])
