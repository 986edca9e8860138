"""Game entities: crew, vehicles, player."""

from .crew import (
    CrewMember,
    CrewStatus,
    CrewBackground,
    CREW_TRAITS,
    CREW_TRAIT_KEYS,
    CREW_BACKGROUNDS,
    SPECIALTY_TRAIT_PROFILE,
    get_background,
    create_recruit,
    mission_fatigue_impact,
)
from .vehicle import Vehicle, VehicleReward
from .player import Player

__all__ = [
    "CrewMember",
    "CrewStatus",
    "CrewBackground",
    "CREW_TRAITS",
    "CREW_TRAIT_KEYS",
    "CREW_BACKGROUNDS",
    "SPECIALTY_TRAIT_PROFILE",
    "get_background",
    "create_recruit",
    "mission_fatigue_impact",
    "Vehicle",
    "VehicleReward",
    "Player",
]
