"""Game world: state store, city and safehouse."""

from .state import GameState, ActionResult, create_initial_game_state
from .city import CityMap, CityDistrict, PointOfInterest
from .safehouse import Safehouse, STORAGE_CAPACITY_BY_TIER

__all__ = [
    "GameState",
    "ActionResult",
    "create_initial_game_state",
    "CityMap",
    "CityDistrict",
    "PointOfInterest",
    "Safehouse",
    "STORAGE_CAPACITY_BY_TIER",
]
