"""Vehicle mod catalog and fabrication recipes."""

from dataclasses import dataclass
from typing import Iterable, Optional


@dataclass(frozen=True)
class VehicleMod:
    """A garage upgrade and the stat/mission deltas it brings."""

    id: str
    label: str
    description: str
    top_speed_bonus: float = 0.0
    acceleration_bonus: float = 0.0
    handling_bonus: float = 0.0
    duration_multiplier: float = 1.0
    heat_multiplier: float = 1.0
    heat_adjustment: float = 0.0
    success_bonus: float = 0.0
    wear_multiplier: float = 1.0
    heat_gain_multiplier: float = 1.0


@dataclass(frozen=True)
class VehicleModRecipe:
    """Parts and funds needed to fabricate a mod."""

    mod_id: str
    parts_cost: int
    funds_cost: int


@dataclass(frozen=True)
class VehicleModProfile:
    """Aggregate of every mod installed on one vehicle."""

    top_speed_bonus: float = 0.0
    acceleration_bonus: float = 0.0
    handling_bonus: float = 0.0
    duration_multiplier: float = 1.0
    heat_multiplier: float = 1.0
    heat_adjustment: float = 0.0
    success_bonus: float = 0.0
    wear_multiplier: float = 1.0
    heat_gain_multiplier: float = 1.0
    mod_ids: tuple[str, ...] = ()


VEHICLE_MODS: dict[str, VehicleMod] = {
    "engine-tuning": VehicleMod(
        id="engine-tuning",
        label="Engine Tuning",
        description="Remapped ECU and intake for a sharper launch.",
        top_speed_bonus=12.0,
        acceleration_bonus=1.0,
        duration_multiplier=0.95,
        heat_adjustment=0.2,
        wear_multiplier=1.1,
    ),
    "stealth-plating": VehicleMod(
        id="stealth-plating",
        label="Stealth Plating",
        description="Radar-dampening panels that blur the car on patrol scanners.",
        heat_multiplier=0.85,
        success_bonus=0.01,
        heat_gain_multiplier=0.75,
    ),
    "signal-masker": VehicleMod(
        id="signal-masker",
        label="Signal Masker",
        description="Spoofs plate readers and transponder pings on the way out.",
        heat_adjustment=-0.4,
        success_bonus=0.02,
        heat_gain_multiplier=0.85,
    ),
    "run-flat-tires": VehicleMod(
        id="run-flat-tires",
        label="Run-Flat Tires",
        description="Reinforced sidewalls that shrug off spike strips.",
        handling_bonus=1.0,
        success_bonus=0.015,
        wear_multiplier=0.8,
    ),
}

VEHICLE_MOD_RECIPES: dict[str, VehicleModRecipe] = {
    "engine-tuning": VehicleModRecipe("engine-tuning", parts_cost=16, funds_cost=1500),
    "stealth-plating": VehicleModRecipe("stealth-plating", parts_cost=14, funds_cost=1300),
    "signal-masker": VehicleModRecipe("signal-masker", parts_cost=12, funds_cost=1100),
    "run-flat-tires": VehicleModRecipe("run-flat-tires", parts_cost=9, funds_cost=900),
}


def get_vehicle_mod(mod_id: str) -> Optional[VehicleMod]:
    """Look up a mod by id."""
    if not mod_id:
        return None
    return VEHICLE_MODS.get(str(mod_id).strip())


def get_vehicle_mod_recipe(mod_id: str) -> Optional[VehicleModRecipe]:
    """Look up the recipe for a catalogued mod."""
    if get_vehicle_mod(mod_id) is None:
        return None
    return VEHICLE_MOD_RECIPES.get(str(mod_id).strip())


def build_mod_profile(mod_ids: Iterable[str]) -> VehicleModProfile:
    """Combine installed mods into one profile.

    Unknown ids are skipped. Bonuses add, multipliers compose.

    Args:
        mod_ids: Installed mod identifiers

    Returns:
        Aggregated VehicleModProfile
    """
    top_speed = acceleration = handling = 0.0
    duration = heat = wear = heat_gain = 1.0
    heat_adjustment = success = 0.0
    applied: list[str] = []

    for mod_id in mod_ids:
        mod = get_vehicle_mod(mod_id)
        if mod is None or mod.id in applied:
            continue
        applied.append(mod.id)
        top_speed += mod.top_speed_bonus
        acceleration += mod.acceleration_bonus
        handling += mod.handling_bonus
        duration *= mod.duration_multiplier
        heat *= mod.heat_multiplier
        heat_adjustment += mod.heat_adjustment
        success += mod.success_bonus
        wear *= mod.wear_multiplier
        heat_gain *= mod.heat_gain_multiplier

    return VehicleModProfile(
        top_speed_bonus=top_speed,
        acceleration_bonus=acceleration,
        handling_bonus=handling,
        duration_multiplier=duration,
        heat_multiplier=heat,
        heat_adjustment=heat_adjustment,
        success_bonus=success,
        wear_multiplier=wear,
        heat_gain_multiplier=heat_gain,
        mod_ids=tuple(applied),
    )
