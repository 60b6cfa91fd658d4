"""
Definitions for the static reference catalogs.

These mirror the shape of the game's content tables. The catalogs are
read-only during a battle; unknown ids are looked up as ``None`` and the
engine treats them as no-ops.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from ..models import SkillBonuses, SkillTree

# Keys that the content tables sometimes nest under ``stats`` but that are
# not stat deltas.
_LIFTED_ITEM_KEYS = (
    "special",
    "fire_resist",
    "ice_resist",
    "storm_resist",
    "wind_resist",
    "physical_resist",
    "fire_damage",
    "ice_damage",
    "storm_damage",
    "dodge",
    "crit",
    "accuracy",
    "evasion",
    "accuracy_multiplier",
    "evasion_multiplier",
    "immune_to_status",
    "status_resistance",
)


class ItemDefinition(BaseModel):
    """An equippable item.

    Attributes:
        name: Display name.
        slot: Equipment slot (weapon, head, chest, leg, boots, offhand, accessory).
        rarity: Rarity label.
        stats: Plain stat deltas (hp, atk, def, spd, luck, ...).
        special: At most one named proc tag (e.g. "lightning_strike").
        fire_resist/ice_resist/storm_resist/wind_resist/physical_resist: Elemental resistances.
        fire_damage/ice_damage/storm_damage: Elemental damage bonuses.
        dodge/crit/accuracy/evasion: Flat combat bonuses.
        accuracy_multiplier/evasion_multiplier: Multipliers for the hit formula.
        immune_to_status: Grants immunity to every status effect.
        status_resistance: Per-status resistance chances.
    """
    name: str
    type: str = "equipment"
    slot: str | None = None
    rarity: str = "Common"
    description: str = ""
    stats: dict[str, float] = Field(default_factory=dict)
    special: str | None = None
    fire_resist: float = 0
    ice_resist: float = 0
    storm_resist: float = 0
    wind_resist: float = 0
    physical_resist: float = 0
    fire_damage: float = 0
    ice_damage: float = 0
    storm_damage: float = 0
    dodge: float | None = None
    crit: float | None = None
    accuracy: float | None = None
    evasion: float | None = None
    accuracy_multiplier: float | None = None
    evasion_multiplier: float | None = None
    immune_to_status: bool = False
    status_resistance: dict[str, float] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _lift_nested_keys(cls, data: Any) -> Any:
        """Move non-stat keys out of ``stats`` to the top level.

        Content tables write ``stats: {atk: 30, special: lightning_strike}``;
        only numeric deltas stay in ``stats``. Top-level keys win.
        """
        if isinstance(data, dict) and isinstance(data.get("stats"), dict):
            data = dict(data)
            stats = dict(data["stats"])
            for key in _LIFTED_ITEM_KEYS:
                if key in stats:
                    value = stats.pop(key)
                    data.setdefault(key, value)
            data["stats"] = stats
        return data


class PotionEffect(BaseModel):
    """The effect block of a consumable potion."""
    type: str
    value: float = 0
    stat: str | None = None
    stats: dict[str, float] = Field(default_factory=dict)
    gain: dict[str, float] = Field(default_factory=dict)
    lose: dict[str, float] = Field(default_factory=dict)
    element: str | None = None
    target: str | None = None
    ability: str | None = None
    chance: float | None = None
    bonus_luck: float = 0
    crit_bonus: float = 0
    elements: list[str] = Field(default_factory=list)
    damage_boost: float = 0
    duration: int | None = None


class PotionDefinition(BaseModel):
    """A consumable potion."""
    name: str
    rarity: str = "Common"
    description: str = ""
    effect: PotionEffect | None = None


class SkillLevelEffect(BaseModel):
    """Bonuses granted by one level of a skill."""
    level: int
    bonus: SkillBonuses = Field(default_factory=SkillBonuses)


class SkillDefinition(BaseModel):
    """A skill in a creature type's tree.

    Attributes:
        name: Display name.
        max_level: Highest level the skill can be raised to.
        battle_type: If set, the skill only applies in that battle mode ("party", "pvp", ...).
        effects: Bonus per level, index ``level - 1``.
        prerequisites: Skill ids that must be unlocked (level >= 1) first.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str
    description: str = ""
    max_level: int = Field(default=1, ge=1)
    battle_type: str | None = None
    effects: list[SkillLevelEffect] = Field(default_factory=list)
    prerequisites: list[str] = Field(default_factory=list)

    def bonus_at(self, level: int) -> SkillBonuses | None:
        """Bonus for a given level, clamped to ``max_level``; None if undefined."""
        level = min(level, self.max_level)
        if level < 1 or level > len(self.effects):
            return None
        return self.effects[level - 1].bonus

    def prerequisites_met(self, tree: SkillTree) -> bool:
        """Whether every prerequisite skill is unlocked at level >= 1."""
        return all(tree.level_of(skill_id) >= 1 for skill_id in self.prerequisites)


class SkillTreeDefinition(BaseModel):
    """All skills available to one creature type."""
    name: str
    skills: dict[str, SkillDefinition] = Field(default_factory=dict)


class StackingDebuff(BaseModel):
    """Rule for a debuff that grows stronger every tick."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    stat: str
    multiplier_per_turn: float
    max_stacks: int = Field(ge=0)


class StatusEffectDefinition(BaseModel):
    """Per-type behaviour of a status effect.

    Attributes:
        damage_per_turn: Fraction of max HP lost per tick.
        heal_per_turn: Fraction of max HP recovered per tick.
        stat_buff/stat_debuff: Multipliers applied to the per-turn stat snapshot.
        skip_turn: The afflicted combatant cannot act this turn.
        disables_skills: Suppresses probabilistic skill checks this turn.
        damage_reduction: Fraction of incoming attack damage ignored.
        stat_debuff_stacking: Stacking debuff rule, if any.
        duration: Default duration in turns.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str
    emoji: str = ""
    description: str = ""
    damage_per_turn: float | None = None
    heal_per_turn: float | None = None
    stat_buff: dict[str, float] = Field(default_factory=dict)
    stat_debuff: dict[str, float] = Field(default_factory=dict)
    skip_turn: bool = False
    disables_skills: bool = False
    damage_reduction: float | None = None
    stat_debuff_stacking: StackingDebuff | None = None
    duration: int = Field(default=1, ge=1)


class TypeRelations(BaseModel):
    """Which types a creature type is strong and weak against."""
    strong: list[str] = Field(default_factory=list)
    weak: list[str] = Field(default_factory=list)


class MonsterDefinition(BaseModel):
    """A wild enemy's base stat block."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str
    type: str
    rarity: str = "Common"
    base_stats: dict[str, float] = Field(default_factory=dict)
