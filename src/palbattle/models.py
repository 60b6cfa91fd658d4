"""
Data models for the combat engine.

Combatants are battle-local snapshots: the engine copies whatever the caller
passes in and never mutates caller-owned records.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel
from shortuuid import random


class CreatureType(str, Enum):
    """The seven creature categories used by the type chart and skill trees."""
    BEAST = "Beast"
    ELEMENTAL = "Elemental"
    MYSTIC = "Mystic"
    UNDEAD = "Undead"
    MECHANICAL = "Mechanical"
    ABYSSAL = "Abyssal"
    AEONIC = "Aeonic"


class Stats(BaseModel):
    """A creature's stat block.

    ``def`` is a Python keyword, so the field is ``defense`` with ``def`` as
    its alias; both spellings are accepted on input.
    """
    model_config = ConfigDict(populate_by_name=True)

    hp: int = 20
    atk: int = 10
    defense: int = Field(default=5, alias="def")
    spd: int = 10
    luck: float = 0
    accuracy: float = 1.0
    evasion: float = 1.0
    damage_reduction: float = Field(default=0.0, description="Fraction of incoming damage ignored")


class StatusEffectInstance(BaseModel):
    """One active status effect on a combatant.

    Attributes:
        id: Unique identifier for this instance.
        type: Status effect key (e.g. "poison", "decay").
        turns_remaining: Ticks left before the effect expires.
        duration: Duration the effect was (re)applied with.
        stacks: Accumulated stacks for stacking debuffs, None otherwise.
    """
    id: str = Field(default_factory=lambda: random(length=8))
    type: str
    turns_remaining: int
    duration: int
    stacks: int | None = None


class ConsumableEffect(BaseModel):
    """A temporary special-ability grant from a potion."""
    kind: str = Field(default="special", description="'special' or 'multi_element'")
    ability: str | None = None
    chance: float = 0.25
    elements: list[str] = Field(default_factory=list)
    damage_boost: float = 0.0


class SkillBonuses(BaseModel):
    """Typed record of every bonus a skill tree level can grant.

    Catalog files use camelCase keys (``dodgeChance``); unknown keys are
    rejected when the catalog is loaded. Every field is optional: ``None``
    means the bonus is absent.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    # Immediate stat transforms
    atk_multiplier: float | None = None
    def_bonus: int | None = None
    spd_bonus: int | None = None
    crit_chance: float | None = None
    luck_bonus: float | None = None
    accuracy: float | None = None
    all_stats: float | None = None
    magic_damage: float | None = None
    damage_reduction: float | None = None
    mana_efficiency: float | None = None
    pack_bonus: float | None = None

    # Defensive activations
    dodge_chance: float | None = None
    counter_chance: float | None = None
    divine_protection: float | None = None
    heal_on_dodge: bool | None = None
    crit_resistance: float | None = None
    status_resistance: dict[str, float] | None = None
    immune_to_status: bool | None = None
    death_resistance: float | None = None
    revive_chance: float | None = None
    barrier_chance: float | None = None
    barrier_reduction: float | None = None
    elemental_absorb: float | None = None
    reflection: float | None = None
    shield_chance: float | None = None

    # Offensive activations
    execute_threshold: float | None = None
    execute_multiplier: float | None = None
    overload_chance: float | None = None
    overload_damage: float | None = None
    chain_reaction: float | None = None
    multi_attack: float | None = None
    hp_sacrifice: float | None = None
    power_bonus: float | None = None
    ritual_chance: float | None = None
    invulnerability: int | None = None
    power_multiplier: float | None = None
    lich_chance: float | None = None
    lifesteal: float | None = None
    area_attack: bool | None = None
    multi_status: bool | None = None
    storm_damage: float | None = None
    storm_chance: float | None = None
    area_damage: float | None = None
    instant_fear: bool | None = None
    abyssal_chance: float | None = None
    echo_chance: float | None = None
    echo_damage_multiplier: float | None = None
    damage_immunity: int | None = None
    recoil_percent: float | None = None
    paradox_chance: float | None = None
    resonance_max_stacks: int | None = None
    resonance_per_stack: float | None = None

    # Status infliction and auras
    status_inflict: dict[str, float] | None = None
    status_chance: dict[str, float] | None = None
    drown_chance: float | None = None
    fear_chance: float | None = None
    silence_chance: float | None = None
    dot_damage: float | None = None
    enemy_atk_down: float | None = None
    enemy_spd_down: float | None = None
    def_reduction: float | None = None

    # Recovery
    hp_regen: float | None = None
    self_repair: float | None = None

    @field_validator("status_resistance", mode="before")
    @classmethod
    def _wrap_flat_resistance(cls, value: Any) -> Any:
        """A bare number means resistance to every status type."""
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return {"*": float(value)}
        return value

    def merged_with(self, other: "SkillBonuses") -> "SkillBonuses":
        """Return a copy where every bonus explicitly set on ``other`` wins."""
        update = {name: getattr(other, name) for name in other.model_fields_set}
        return self.model_copy(update=update, deep=True)


class Combatant(BaseModel):
    """One creature's working battle state.

    Attributes:
        name: Display name used in the battle log.
        creature_type: One of ``CreatureType``; unknown types are tolerated.
        stats: Base stats (``stats.hp`` is the max HP).
        current_hp: Mutable HP; defaults to max HP.
        equipment: Slot -> item id mapping.
        skill_bonuses: Battle-derived skill bonuses (never persisted).
        status_effects: Active status effect instances, in application order.
        active_consumable_effects: Special-ability grants from potions.
        resistances: Elemental resistances granted outside equipment (potions).
    """
    name: str
    creature_type: str = CreatureType.BEAST.value
    stats: Stats = Field(default_factory=Stats)
    current_hp: int | None = None
    equipment: dict[str, str | None] = Field(default_factory=dict)
    skill_bonuses: SkillBonuses = Field(default_factory=SkillBonuses)
    status_effects: list[StatusEffectInstance] = Field(default_factory=list)
    active_consumable_effects: list[ConsumableEffect] = Field(default_factory=list)
    resistances: dict[str, float] = Field(default_factory=dict)

    @field_validator("creature_type", mode="before")
    @classmethod
    def _coerce_type(cls, value: Any) -> Any:
        if isinstance(value, CreatureType):
            return value.value
        return value

    @model_validator(mode="after")
    def _default_current_hp(self) -> "Combatant":
        if self.current_hp is None:
            self.current_hp = self.stats.hp
        return self

    @property
    def max_hp(self) -> int:
        return self.stats.hp

    @property
    def is_alive(self) -> bool:
        return (self.current_hp or 0) > 0

    def snapshot(self) -> "Combatant":
        """Typed, structurally independent copy of this combatant."""
        return self.model_copy(deep=True)


class UnlockedSkill(BaseModel):
    """A skill unlocked in a creature's tree, at a given level."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    skill_id: str
    level: int = Field(default=1, ge=1)


class SkillTree(BaseModel):
    """A creature's skill tree progress (read-only during battle)."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    skill_points: int = 0
    unlocked_skills: list[UnlockedSkill] = Field(default_factory=list)

    def level_of(self, skill_id: str) -> int:
        """Unlocked level of a skill, 0 if locked."""
        for unlocked in self.unlocked_skills:
            if unlocked.skill_id == skill_id:
                return unlocked.level
        return 0


class BattleContext(BaseModel):
    """Facts about the surrounding fight that some skills depend on."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    beast_count: int = Field(default=1, ge=0, description="Beasts fighting on the combatant's side")


class BattleOutcome(str, Enum):
    """Terminal state of a battle, from the first combatant's point of view."""
    VICTORY = "victory"
    DEFEAT = "defeat"
    DRAW = "draw"
    ERROR = "error"


class BattleResult(BaseModel):
    """Immutable outcome of a single battle.

    Attributes:
        battle_id: Unique identifier for this battle.
        outcome: Victory/defeat/draw/error for the first combatant.
        player_won: Whether the first combatant is the (nominal) winner.
        remaining_hp: First combatant's HP at the end of the battle.
        winner_remaining_hp: Winner's HP at the end of the battle.
        log: Ordered human-readable battle log.
        winner: Name of the winner (nominal winner on a draw).
        loser: Name of the loser.
        turns: Number of rounds played.
        final_states: Battle-local snapshots of both combatants, in input order.
    """
    model_config = ConfigDict(frozen=True)

    battle_id: str = Field(default_factory=lambda: random(length=10))
    outcome: BattleOutcome
    player_won: bool
    remaining_hp: int
    winner_remaining_hp: int
    log: tuple[str, ...] = ()
    winner: str
    loser: str
    turns: int = 0
    final_states: tuple[Combatant, ...] = ()
