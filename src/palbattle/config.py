"""
Tuning constants for the combat engine.

All numbers are given configuration. ``CombatConfig()`` reproduces the
live game's values; tests and callers may override individual fields.
"""

from pydantic import BaseModel, ConfigDict, Field


class CombatConfig(BaseModel):
    """Numeric rules shared by every component of a battle."""

    model_config = ConfigDict(frozen=True)

    max_turns: int = Field(default=50, ge=1, description="Rounds before a battle is declared a draw")
    min_damage: int = Field(default=1, ge=0, description="Fallback damage when an attack computation fails")

    # Hit and crit
    base_hit_chance: float = Field(default=0.9, gt=0)
    min_hit_chance: float = Field(default=0.05, ge=0, le=1)
    max_hit_chance: float = Field(default=0.99, ge=0, le=1)
    crit_multiplier: float = Field(default=1.5, ge=1)
    crit_chance_per_luck: float = Field(default=0.01, ge=0)
    max_crit_chance: float = Field(default=0.3, ge=0, le=1)
    min_resistance_multiplier: float = Field(default=0.1, ge=0, le=1)

    # Death handling
    death_resistance_hp: int = Field(default=1, ge=1)
    equipment_revive_fraction: float = Field(default=0.5, gt=0, le=1)
    skill_revive_fraction: float = Field(default=0.3, gt=0, le=1)

    # Turn order
    slow_speed_factor: float = Field(default=0.5, gt=0, le=1)

    # Secondary skill payloads
    counter_damage_ratio: float = Field(default=0.7, ge=0)
    chain_reaction_ratio: float = Field(default=0.5, ge=0)
    multi_attack_ratio: float = Field(default=0.5, ge=0)
    divine_heal_fraction: float = Field(default=0.05, ge=0)
    default_recoil_percent: float = Field(default=0.5, ge=0)

    # Party battles
    pack_leader_step: float = Field(default=0.15, ge=0)
    pack_leader_cap: float = Field(default=0.5, ge=0)


DEFAULT_CONFIG = CombatConfig()
