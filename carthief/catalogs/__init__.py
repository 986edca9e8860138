"""Modifier catalogs: vehicle mods, crew perks, crew gear, player kit."""

from .effects import ModifierEffect, NEUTRAL_EFFECT
from .vehicle_mods import (
    VehicleMod,
    VehicleModRecipe,
    VehicleModProfile,
    VEHICLE_MODS,
    VEHICLE_MOD_RECIPES,
    get_vehicle_mod,
    get_vehicle_mod_recipe,
    build_mod_profile,
)
from .crew_perks import PerkId, PerkKind, PerkContext, CREW_PERKS, get_perk, parse_perk_id, resolve_perk_effect
from .crew_gear import CrewGear, CREW_GEAR, get_crew_gear, resolve_gear_effect
from .player_kit import PlayerSkillRates, PlayerGear, PLAYER_SKILLS, PLAYER_GEAR, get_player_gear

__all__ = [
    "ModifierEffect",
    "NEUTRAL_EFFECT",
    "VehicleMod",
    "VehicleModRecipe",
    "VehicleModProfile",
    "VEHICLE_MODS",
    "VEHICLE_MOD_RECIPES",
    "get_vehicle_mod",
    "get_vehicle_mod_recipe",
    "build_mod_profile",
    "PerkId",
    "PerkKind",
    "PerkContext",
    "CREW_PERKS",
    "get_perk",
    "parse_perk_id",
    "resolve_perk_effect",
    "CrewGear",
    "CREW_GEAR",
    "get_crew_gear",
    "resolve_gear_effect",
    "PlayerSkillRates",
    "PlayerGear",
    "PLAYER_SKILLS",
    "PLAYER_GEAR",
    "get_player_gear",
]
