"""City map: districts and their points of interest."""

from dataclasses import dataclass, field
from typing import Any, Optional

from ..constants import DISTRICT
from ..utils.helpers import clamp, slugify, to_finite
from ..utils.logging import get_logger


logger = get_logger("game.city")

# Influence needed before a district counts as controlled
CONTROL_INFLUENCE_THRESHOLD = 60.0


@dataclass(frozen=True)
class PointOfInterest:
    """A notable target inside a district."""

    id: str
    name: str
    type: str
    description: str = ""
    payout_multiplier: float = 1.0
    heat_delta: float = 0.0
    duration_delta: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "description": self.description,
            "payout_multiplier": self.payout_multiplier,
            "heat_delta": self.heat_delta,
            "duration_delta": self.duration_delta,
        }


@dataclass
class CityDistrict:
    """One district of the city."""

    name: str = "Downtown"
    id: str = ""
    wealth: float = 1.0
    security: float = 1.0
    description: str = ""
    points_of_interest: list[PointOfInterest] = field(default_factory=list)
    intel_level: float = 10.0
    influence: float = 10.0
    crackdown_pressure: float = 0.0

    def __post_init__(self):
        if not self.id:
            self.id = slugify(self.name) or "district"

    def _adjust(self, attribute: str, delta: float) -> float:
        current = getattr(self, attribute)
        updated = clamp(current + to_finite(delta, 0), DISTRICT.MIN_STAT, DISTRICT.MAX_STAT)
        setattr(self, attribute, updated)
        return updated

    def adjust_intel_level(self, delta: float) -> float:
        """Shift intel, clamped to the stat range."""
        return self._adjust("intel_level", delta)

    def adjust_influence(self, delta: float) -> float:
        """Shift influence, clamped to the stat range."""
        return self._adjust("influence", delta)

    def adjust_crackdown_pressure(self, delta: float) -> float:
        """Shift crackdown pressure, clamped to the stat range."""
        return self._adjust("crackdown_pressure", delta)

    def is_controlled(self) -> bool:
        return self.influence >= CONTROL_INFLUENCE_THRESHOLD


def _default_districts() -> list[CityDistrict]:
    return [
        CityDistrict(
            name="Downtown",
            wealth=3,
            security=4,
            description="Corporate high-rises and high-profile targets.",
            points_of_interest=[
                PointOfInterest(
                    "downtown-vault-row", "Vault Row Depository", "vault",
                    "A private bank mezzanine lined with biometric vault pods.",
                    payout_multiplier=1.35, heat_delta=2,
                ),
                PointOfInterest(
                    "downtown-skytech-spire", "SkyTech Innovation Spire", "tech-hub",
                    "A research tower bristling with prototyped circuitry and security drones.",
                    payout_multiplier=1.15, heat_delta=1, duration_delta=6,
                ),
            ],
        ),
        CityDistrict(
            name="Industrial Docks",
            wealth=2,
            security=2,
            description="Warehouses, shipping containers, and shady deals.",
            points_of_interest=[
                PointOfInterest(
                    "docks-freeport-yard", "Freeport Rail Yard", "rail-yard",
                    "Intermodal tracks crawling with cargo haulers and minimal oversight.",
                    payout_multiplier=1.1, duration_delta=-4,
                ),
                PointOfInterest(
                    "docks-contraband-silos", "Contraband Silos", "smuggling-cache",
                    "Cold storage silos hiding confiscated shipments waiting for pickup.",
                    payout_multiplier=1.2, heat_delta=1,
                ),
            ],
        ),
        CityDistrict(
            name="Suburban Hills",
            wealth=4,
            security=3,
            description="Gated communities with prized collections.",
            points_of_interest=[
                PointOfInterest(
                    "hills-heritage-vault", "Heritage Vault Estate", "vault",
                    "Antique vault hidden below an old-money mansion with rotating staff.",
                    payout_multiplier=1.4, heat_delta=1,
                ),
                PointOfInterest(
                    "hills-collector-hangar", "Collector Hangar 7", "showroom",
                    "Private vehicle showroom stocked with concept rides and drones.",
                    payout_multiplier=1.25, heat_delta=0.5, duration_delta=4,
                ),
            ],
        ),
        CityDistrict(
            name="Old Town",
            wealth=1,
            security=1,
            description="Tight streets and low police presence.",
            points_of_interest=[
                PointOfInterest(
                    "oldtown-market-catacombs", "Market Catacombs", "smuggling-cache",
                    "Hidden vaults beneath the bazaar where crews fence contraband.",
                    payout_multiplier=1.05, heat_delta=-1,
                ),
                PointOfInterest(
                    "oldtown-community-hub", "Community Hackspace", "tech-hub",
                    "Volunteer tech lab with civic surveillance overrides tucked away.",
                    payout_multiplier=1.08, heat_delta=-0.5, duration_delta=-2,
                ),
            ],
        ),
    ]


class CityMap:
    """The districts the crew operates in."""

    def __init__(self, name: str = "Metro Harbor", districts: Optional[list[CityDistrict]] = None):
        """Initialize the city.

        Args:
            name: City name
            districts: Districts to use; the default four are seeded if empty
        """
        self.name = name
        self.districts = list(districts) if districts else _default_districts()

    def find_district(self, district_id: Optional[str]) -> Optional[CityDistrict]:
        """Look up a district by id."""
        if not district_id:
            return None
        return next((d for d in self.districts if d.id == district_id), None)

    def adjust_all_crackdown_pressure(self, delta: float) -> None:
        """Shift crackdown pressure citywide."""
        for district in self.districts:
            district.adjust_crackdown_pressure(delta)

    def get_campaign_snapshot(self) -> dict[str, Any]:
        """Read-only summary of campaign progress across districts."""
        districts = [
            {
                "id": d.id,
                "name": d.name,
                "intel_level": d.intel_level,
                "influence": d.influence,
                "crackdown_pressure": d.crackdown_pressure,
                "controlled": d.is_controlled(),
            }
            for d in self.districts
        ]
        count = len(districts) or 1
        return {
            "city": self.name,
            "districts": districts,
            "controlled_districts": sum(1 for d in districts if d["controlled"]),
            "average_influence": sum(d["influence"] for d in districts) / count,
            "average_pressure": sum(d["crackdown_pressure"] for d in districts) / count,
        }
