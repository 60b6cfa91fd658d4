"""
Weapon and equipment proc engine.

Three catalogs of equipment-bound procs:

- WEAPON_ABILITIES: on-attack bonus damage (and sometimes a status). Only
  the first ability that rolls successfully fires on a given attack.
- OFFENSIVE_EFFECTS: attacker equipment auras; each rolls independently.
- DEFENSIVE_EFFECTS: defender equipment; each rolls independently and may
  shave damage off the hit or inflict a status on the attacker.
"""

import math
from collections.abc import Iterable, Mapping

from pydantic import BaseModel, Field

from ..catalog import GameCatalog
from ..models import ConsumableEffect
from ..rng import BattleRng
from .equipment import EffectMap, shield_item


class WeaponAbility(BaseModel):
    """A named on-attack weapon proc."""
    title: str
    emoji: str
    chance: float
    damage_multiplier: float = 0.0
    status: str | None = None
    flavor: str = "{name} strikes!"


class EquipmentEffect(BaseModel):
    """An independently rolled equipment proc."""
    chance: float
    message: str
    damage_modifier: float = 1.0
    damage_reduction: float = 0.0
    status: str | None = None


WEAPON_ABILITIES: dict[str, WeaponAbility] = {
    "lightning_strike": WeaponAbility(
        title="Lightning Strike", emoji="⚡", chance=0.25, damage_multiplier=0.5,
        flavor="{name}'s weapon crackles with electricity!",
    ),
    "lightning_fork": WeaponAbility(
        title="Lightning Strike", emoji="⚡", chance=0.25, damage_multiplier=0.5,
        flavor="{name}'s weapon crackles with electricity!",
    ),
    "shadow_strike": WeaponAbility(
        title="Shadow Strike", emoji="🌑", chance=0.25, damage_multiplier=1.0,
        flavor="{name} attacks from the shadows!",
    ),
    "shadow_blend": WeaponAbility(
        title="Shadow Strike", emoji="🌑", chance=0.25, damage_multiplier=1.0,
        flavor="{name} attacks from the shadows!",
    ),
    "volcanic_edge": WeaponAbility(
        title="Volcanic Edge", emoji="🌋", chance=0.2, damage_multiplier=0.4,
        flavor="{name}'s blade erupts with molten fury!",
    ),
    "terror_strike": WeaponAbility(
        title="Terror Strike", emoji="😱", chance=0.15, damage_multiplier=1.5,
        flavor="{name} unleashes nightmare incarnate!",
    ),
    "divine_thrust": WeaponAbility(
        title="Divine Thrust", emoji="✨", chance=0.3, damage_multiplier=0.6,
        flavor="{name} channels celestial power!",
    ),
    "burn_chance": WeaponAbility(
        title="Burning Blade", emoji="🔥", chance=0.2, status="burn",
        flavor="{name}'s weapon ignites the enemy!",
    ),
    "frost_pierce": WeaponAbility(
        title="Frost Pierce", emoji="❄️", chance=0.25, damage_multiplier=0.3, status="freeze",
        flavor="{name}'s weapon freezes their target!",
    ),
    "crystal_shatter": WeaponAbility(
        title="Crystal Shatter", emoji="💎", chance=0.2, damage_multiplier=0.4,
        flavor="{name}'s mace explodes with crystal energy!",
    ),
    "wind_shot": WeaponAbility(
        title="Wind Shot", emoji="💨", chance=0.3, damage_multiplier=0.35,
        flavor="{name}'s arrow flies with supernatural speed!",
    ),
    "soul_harvest": WeaponAbility(
        title="Soul Harvest", emoji="👻", chance=0.2, damage_multiplier=0.8,
        flavor="{name}'s scythe reaps spiritual energy!",
    ),
    "crushing_blow": WeaponAbility(
        title="Crushing Blow", emoji="🔨", chance=0.25, damage_multiplier=0.6,
        flavor="{name}'s hammer delivers devastating impact!",
    ),
    "void_lash": WeaponAbility(
        title="Void Lash", emoji="🌌", chance=0.2, damage_multiplier=0.5,
        flavor="{name}'s whip tears through reality!",
    ),
    "ancient_fury": WeaponAbility(
        title="Ancient Fury", emoji="⚔️", chance=0.15, damage_multiplier=1.2,
        flavor="{name}'s axe channels bygone rage!",
    ),
    "molten_chain": WeaponAbility(
        title="Molten Chain", emoji="🌋", chance=0.2, damage_multiplier=0.45, status="burn",
        flavor="{name}'s flail burns everything it touches!",
    ),
    "spirit_channel": WeaponAbility(
        title="Spirit Channel", emoji="✨", chance=0.25, damage_multiplier=0.4,
        flavor="{name} communes with otherworldly forces!",
    ),
}

OFFENSIVE_EFFECTS: dict[str, EquipmentEffect] = {
    "frost_aura": EquipmentEffect(chance=0.2, status="slow", message="❄️ **{name}**'s frost aura slows the enemy!"),
    "flame_trail": EquipmentEffect(chance=0.15, status="burn", message="🔥 **{name}** leaves a trail of flames!"),
    "mana_regeneration": EquipmentEffect(
        chance=0.1, damage_modifier=1.1, message="✨ **{name}**'s robes channel magical energy!"
    ),
    "echo_sight": EquipmentEffect(
        chance=0.2, damage_modifier=1.15, message="🔮 **{name}**'s diadem reveals enemy weaknesses!"
    ),
    "ancient_wisdom": EquipmentEffect(
        chance=0.15, damage_modifier=1.1, message="📜 **{name}** channels ancient knowledge!"
    ),
    "soul_communion": EquipmentEffect(
        chance=0.2, damage_modifier=1.12, message="👻 **{name}** communes with spirits for guidance!"
    ),
    "terror_aura": EquipmentEffect(
        chance=0.25, status="fear", message="😱 **{name}**'s terrifying presence instills fear!"
    ),
}

DEFENSIVE_EFFECTS: dict[str, EquipmentEffect] = {
    "shadow_step": EquipmentEffect(
        chance=0.15, damage_reduction=0.2, message="🌑 **{name}** moves like a shadow, evading some damage!"
    ),
    "shadow_blend": EquipmentEffect(
        chance=0.15, damage_reduction=0.2, message="🌑 **{name}** moves like a shadow, evading some damage!"
    ),
    "spirit_guard": EquipmentEffect(
        chance=0.25, damage_reduction=0.3, message="👻 **{name}**'s spirit guardian provides protection!"
    ),
    "void_absorption": EquipmentEffect(
        chance=0.2, damage_reduction=0.5, message="🌌 **{name}**'s void shield absorbs the attack!"
    ),
    "burning_counter": EquipmentEffect(
        chance=0.3, status="burn", message="🔥 **{name}**'s buckler burns the attacker!"
    ),
    "frost_counter": EquipmentEffect(
        chance=0.25, status="freeze", message="❄️ **{name}**'s shield freezes the attacker!"
    ),
    "shock_counter": EquipmentEffect(
        chance=0.2, status="shock", message="⚡ **{name}**'s shield electrifies the attacker!"
    ),
    "shield_block": EquipmentEffect(
        chance=0.25, damage_reduction=0.2, message="🛡️ **{name}**'s shield blocks some damage!"
    ),
}

# Any item in the "shield" slot also gets a generic block roll.
GENERIC_SHIELD_BLOCK = EquipmentEffect(chance=0.2, damage_reduction=0.15, message="")

# Consumable-granted abilities that are not weapon procs.
PHASE_DODGE = "phase_dodge"
FEAR_STRIKE = "fear_strike"


class ProcResult(BaseModel):
    """Outcome of the weapon/consumable proc roll for one attack."""
    damage: int = Field(default=0, description="Bonus damage added to the hit")
    messages: list[str] = Field(default_factory=list)
    statuses: list[str] = Field(default_factory=list, description="Statuses to inflict on the defender")
    activated: str | None = Field(default=None, description="Ability that fired, if any")


class OffensiveResult(BaseModel):
    """Outcome of the attacker's equipment auras."""
    damage_modifier: float = 1.0
    messages: list[str] = Field(default_factory=list)
    statuses: list[str] = Field(default_factory=list, description="Statuses to inflict on the defender")


class DefensiveResult(BaseModel):
    """Outcome of the defender's equipment procs."""
    damage_reduction: int = 0
    messages: list[str] = Field(default_factory=list)
    statuses: list[str] = Field(default_factory=list, description="Statuses to inflict on the attacker")


def _fire_weapon_ability(ability: WeaponAbility, atk: int, name: str, result: ProcResult, key: str) -> None:
    result.damage += math.floor(atk * ability.damage_multiplier)
    result.messages.append(f"{ability.emoji} **{ability.title}!** {ability.flavor.format(name=name)}")
    if ability.status:
        result.statuses.append(ability.status)
    result.activated = key


def process_weapon_abilities(
    atk: int,
    abilities: Iterable[str],
    attacker_name: str,
    rng: BattleRng,
) -> ProcResult:
    """Roll the attacker's weapon abilities in order; the first success fires.

    Unknown tags (including ``revive_once``, handled at death) are skipped
    without rolling.
    """
    result = ProcResult()
    for key in abilities:
        ability = WEAPON_ABILITIES.get(key)
        if ability is None:
            continue
        if rng.chance(ability.chance):
            _fire_weapon_ability(ability, atk, attacker_name, result, key)
            break
    return result


def process_consumable_abilities(
    atk: int,
    consumables: Iterable[ConsumableEffect],
    attacker_name: str,
    rng: BattleRng,
) -> ProcResult:
    """Roll potion-granted special abilities that act on attack.

    Weapon-ability grants fire their weapon bonus at the potion's own
    chance; ``fear_strike`` inflicts fear. Other grants do nothing here.
    """
    result = ProcResult()
    for effect in consumables:
        if effect.kind != "special" or not effect.ability:
            continue
        ability = WEAPON_ABILITIES.get(effect.ability)
        if ability is not None:
            if rng.chance(effect.chance):
                _fire_weapon_ability(ability, atk, attacker_name, result, effect.ability)
        elif effect.ability == FEAR_STRIKE:
            if rng.chance(effect.chance):
                result.statuses.append("fear")
                result.messages.append(f"😱 **{attacker_name}** strikes with nightmarish terror!")
                result.activated = FEAR_STRIKE
    return result


def process_offensive(effects: EffectMap, attacker_name: str, rng: BattleRng) -> OffensiveResult:
    """Roll every offensive equipment aura the attacker carries."""
    result = OffensiveResult()
    for key in effects.abilities:
        effect = OFFENSIVE_EFFECTS.get(key)
        if effect is None or not rng.chance(effect.chance):
            continue
        result.messages.append(effect.message.format(name=attacker_name))
        result.damage_modifier *= effect.damage_modifier
        if effect.status:
            result.statuses.append(effect.status)
    return result


def process_defensive(
    effects: EffectMap,
    equipment: Mapping[str, str | None] | None,
    defender_name: str,
    damage: int,
    rng: BattleRng,
    catalog: GameCatalog | None = None,
) -> DefensiveResult:
    """Roll every defensive equipment proc against an incoming hit of ``damage``."""
    result = DefensiveResult()
    for key in effects.abilities:
        effect = DEFENSIVE_EFFECTS.get(key)
        if effect is None or not rng.chance(effect.chance):
            continue
        result.messages.append(effect.message.format(name=defender_name))
        result.damage_reduction += math.floor(damage * effect.damage_reduction)
        if effect.status:
            result.statuses.append(effect.status)

    shield = shield_item(equipment, catalog)
    if shield is not None and rng.chance(GENERIC_SHIELD_BLOCK.chance):
        blocked = math.floor(damage * GENERIC_SHIELD_BLOCK.damage_reduction)
        result.damage_reduction += blocked
        result.messages.append(f"🛡️ **{defender_name}**'s {shield.name} blocks {blocked} damage!")
    return result


def has_phase_dodge(consumables: Iterable[ConsumableEffect]) -> ConsumableEffect | None:
    """The first potion grant of ``phase_dodge``, if any."""
    for effect in consumables:
        if effect.kind == "special" and effect.ability == PHASE_DODGE:
            return effect
    return None
