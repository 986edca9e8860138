"""Shared game state store."""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Optional

from .city import CityMap
from .safehouse import Safehouse
from ..entities.crew import CrewMember
from ..entities.player import Player
from ..entities.vehicle import Vehicle

if TYPE_CHECKING:
    from ..missions.models import FalloutRecord, Mission, MissionLogEntry, PendingDebt, VehicleReport
    from ..systems.economy import ExpenseReport
    from ..systems.heat import HeatMitigationRecord


@dataclass
class ActionResult:
    """Outcome of a player-facing operation that may be refused."""

    success: bool
    reason: str = ""
    details: dict[str, Any] = field(default_factory=dict)

    def __bool__(self) -> bool:
        return self.success


@dataclass
class GameState:
    """Everything the systems read and write.

    Passed explicitly to each system; nothing here is global.
    """

    day: int = 1
    funds: int = 5000
    parts: int = 0
    heat: float = 0.0
    heat_tier: str = "calm"
    player: Player = field(default_factory=lambda: Player(name="The Wheelman"))
    crew: list[CrewMember] = field(default_factory=list)
    garage: list[Vehicle] = field(default_factory=list)
    city: CityMap = field(default_factory=CityMap)
    safehouse: Optional[Safehouse] = None
    active_mission: Optional["Mission"] = None
    available_missions: list["Mission"] = field(default_factory=list)
    mission_log: list["MissionLogEntry"] = field(default_factory=list)
    fallout_log: list["FalloutRecord"] = field(default_factory=list)
    pending_debts: list["PendingDebt"] = field(default_factory=list)
    heat_mitigation_log: list["HeatMitigationRecord"] = field(default_factory=list)
    last_vehicle_report: Optional["VehicleReport"] = None
    last_expense_report: Optional["ExpenseReport"] = None

    def find_crew(self, crew_id: str) -> Optional[CrewMember]:
        """Look up a crew member by id."""
        return next((member for member in self.crew if member.id == crew_id), None)

    def find_vehicle(self, vehicle_id: str) -> Optional[Vehicle]:
        """Look up a garage vehicle by id."""
        return next((vehicle for vehicle in self.garage if vehicle.id == vehicle_id), None)

    def find_mission(self, mission_id: str) -> Optional["Mission"]:
        """Look up a mission on the board by id."""
        return next((mission for mission in self.available_missions if mission.id == mission_id), None)

    def get_storage_capacity(self) -> Optional[int]:
        """Garage capacity, None when no safehouse limits it."""
        return self.safehouse.get_storage_capacity() if self.safehouse else None

    def has_garage_space(self) -> bool:
        """Check if another vehicle fits in the garage."""
        capacity = self.get_storage_capacity()
        return capacity is None or len(self.garage) < capacity


def create_initial_game_state() -> GameState:
    """Create the starting state for a new campaign."""
    return GameState(
        crew=[
            CrewMember(
                name="Sable",
                specialty="hacker",
                upkeep=750,
                loyalty=3,
                traits={"stealth": 3, "tech": 4, "driving": 1, "tactics": 2, "charisma": 1, "muscle": 1},
            ),
            CrewMember(
                name="Torque",
                specialty="mechanic",
                upkeep=600,
                loyalty=2,
                traits={"stealth": 1, "tech": 4, "driving": 2, "tactics": 2, "charisma": 1, "muscle": 2},
            ),
        ],
        garage=[Vehicle(model="Safehouse Van", top_speed=95, handling=4)],
        safehouse=Safehouse(),
    )
