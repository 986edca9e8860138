"""Contract template factories.

Templates come from four places: the stock board, the city's districts,
crackdown operations unlocked by the heat tier, and follow-ups queued by
mission fallout. Crew storylines live in storylines.py.
"""

from typing import Iterable, Optional

from .models import ContractTemplate, FalloutRecord, FalloutRecovery
from ..game.city import CityDistrict, PointOfInterest
from ..utils.helpers import slugify, to_finite
from ..utils.logging import get_logger


logger = get_logger("missions.contracts")


_RAW_DEFAULT_TEMPLATES = (
    {
        "id": "showroom-heist",
        "name": "Showroom Smash-and-Grab",
        "difficulty": 2,
        "payout": 15000,
        "heat": 2,
        "duration": 38,
        "risk_tier": "moderate",
        "description": "Swipe a prototype from a downtown showroom under heavy surveillance.",
        "vehicle_reward": {"model": "Prototype Roadster", "top_speed": 165, "acceleration": 7,
                           "handling": 6, "heat": 1.0},
    },
    {
        "id": "dockyard-swap",
        "name": "Dockyard Switcheroo",
        "difficulty": 1,
        "payout": 8000,
        "heat": 1,
        "duration": 26,
        "description": "Intercept a shipment of luxury SUVs before it leaves the harbor.",
        "vehicle_reward": {"model": "Luxury SUV", "top_speed": 125, "acceleration": 4,
                           "handling": 4, "heat": 0.5},
    },
    {
        "id": "collector-estate",
        "name": "Collector's Estate",
        "difficulty": 3,
        "payout": 22000,
        "heat": 3,
        "duration": 52,
        "risk_tier": "high",
        "description": "Infiltrate a fortified mansion and extract a mint condition classic.",
        "vehicle_reward": {"model": "Mint Classic", "top_speed": 140, "acceleration": 5,
                           "handling": 6, "heat": 1.5},
    },
)

DEFAULT_CONTRACT_TEMPLATES: tuple[ContractTemplate, ...] = tuple(
    template for template in (ContractTemplate.from_dict(raw) for raw in _RAW_DEFAULT_TEMPLATES)
    if template is not None
)


# =============================================================================
# District contracts
# =============================================================================

DISTRICT_BASE_PAYOUT = 6000
DEFAULT_DISTRICT_STAT = 10.0


def determine_risk_tier(security: float) -> str:
    """Risk tier from a district's security score."""
    if security >= 4:
        return "high"
    if security >= 3:
        return "moderate"
    return "low"


def build_contract_from_district(district: CityDistrict,
                                 poi: Optional[PointOfInterest] = None) -> Optional[ContractTemplate]:
    """Build a heist contract shaped by a district's stats.

    Wealth drives payout, security drives heat, duration and risk. Intel
    above the starting level shortens the job, influence raises the take
    and crackdown pressure adds heat. A point of interest layers its own
    modifiers on top.

    Args:
        district: Source district
        poi: Point of interest to target (None for a plain district job)

    Returns:
        ContractTemplate, or None for a district without an id
    """
    if district is None or not district.id:
        return None

    wealth = max(0.0, to_finite(district.wealth, 1))
    security = max(0.0, to_finite(district.security, 1))

    payout = DISTRICT_BASE_PAYOUT * (1 + wealth * 0.6 + security * 0.25)
    heat = float(max(1, round(1 + security * 0.8)))
    difficulty = max(1, round((wealth + security) / 2))
    duration = max(20, round(25 + security * 8 + difficulty * 4))

    intel_edge = max(0.0, to_finite(district.intel_level, DEFAULT_DISTRICT_STAT) - DEFAULT_DISTRICT_STAT)
    influence_edge = max(0.0, to_finite(district.influence, DEFAULT_DISTRICT_STAT) - DEFAULT_DISTRICT_STAT)
    pressure = max(0.0, to_finite(district.crackdown_pressure, 0))

    duration = max(20, duration - round(intel_edge / 10))
    payout *= 1 + influence_edge * 0.004
    heat += pressure / 25

    if poi is not None:
        payout *= poi.payout_multiplier
        heat = max(0.5, heat + poi.heat_delta)
        duration = max(20, round(duration + poi.duration_delta))

    return ContractTemplate(
        id=f"contract-{slugify(district.id)}",
        name=f"{district.name} Heist",
        description=district.description or "Pull off a daring job tailored to the district's unique opportunities.",
        difficulty=difficulty,
        payout=round(payout),
        heat=round(heat, 2),
        duration=duration,
        district_id=district.id,
        district_name=district.name,
        point_of_interest=poi,
        risk_tier=determine_risk_tier(security),
    )


def generate_contracts_from_districts(districts: Iterable[CityDistrict]) -> list[ContractTemplate]:
    """One contract per district, targeting its first point of interest."""
    seen: set[str] = set()
    templates = []
    for district in districts:
        poi = district.points_of_interest[0] if district.points_of_interest else None
        template = build_contract_from_district(district, poi)
        if template is None or template.id in seen:
            continue
        seen.add(template.id)
        templates.append(template)
    return templates


# =============================================================================
# Crackdown operations
# =============================================================================

_CRACKDOWN_OPERATIONS: dict[str, tuple[dict, ...]] = {
    "alert": (
        {
            "id": "alert-sabotage-dragnet",
            "name": "Sabotage Dragnet Towers",
            "difficulty": 2, "payout": 11000, "heat": 1, "duration": 36,
            "description": "Hit crackdown comms towers to loosen the dragnet covering your jobs.",
            "crackdown_effects": {"heat_reduction": 1.2, "heat_penalty_on_failure": 0.6},
        },
        {
            "id": "alert-intercept-convoy",
            "name": "Intercept Enforcement Convoy",
            "difficulty": 3, "payout": 15000, "heat": 1, "duration": 42,
            "description": "Ambush a rapid-response convoy to steal enforcement intel and cool the streets.",
            "crackdown_effects": {"heat_reduction": 1.6, "heat_penalty_on_failure": 0.8},
        },
    ),
    "lockdown": (
        {
            "id": "lockdown-blackout-grid",
            "name": "Blackout the City Grid",
            "difficulty": 3, "payout": 16000, "heat": 1, "duration": 48,
            "description": "Cut power to a crackdown command grid to force a redeploy and relieve pressure.",
            "crackdown_effects": {"heat_reduction": 2.2, "heat_penalty_on_failure": 1.0},
        },
        {
            "id": "lockdown-safehouse-defense",
            "name": "Defend the Safehouse Ring",
            "difficulty": 4, "payout": 19000, "heat": 1, "duration": 54,
            "description": "Stage a defensive op that protects your hideouts and rolls back the crackdown.",
            "crackdown_effects": {"heat_reduction": 2.8, "heat_penalty_on_failure": 1.2},
        },
    ),
}


def get_crackdown_operation_templates(tier: Optional[str]) -> list[ContractTemplate]:
    """Operations that push back against a crackdown tier (none when calm)."""
    normalized = str(tier or "calm").lower()
    templates = []
    for raw in _CRACKDOWN_OPERATIONS.get(normalized, ()):
        template = ContractTemplate.from_dict(dict(
            raw,
            category="crackdown-operation",
            crackdown_tier=normalized,
            ignore_crackdown_restrictions=True,
        ))
        if template is not None:
            templates.append(template)
    return templates


# =============================================================================
# Fallout follow-ups
# =============================================================================

def build_fallout_followup(record: FalloutRecord) -> Optional[ContractTemplate]:
    """Rescue (captured) or medical (injured) contract for a fallout record."""
    if record.status == "captured":
        return ContractTemplate(
            id=f"rescue-{record.crew_id}",
            name=f"Rescue {record.crew_name}",
            description=f"Break {record.crew_name} out of holding before they are transferred.",
            difficulty=2,
            payout=2000,
            heat=2.0,
            duration=40,
            risk_tier="moderate",
            category="fallout-recovery",
            respawn=False,
            fallout_recovery=FalloutRecovery(record.crew_id, record.crew_name, "captured"),
        )
    if record.status == "injured":
        return ContractTemplate(
            id=f"medical-{record.crew_id}",
            name=f"Patch Up {record.crew_name}",
            description=f"Get {record.crew_name} to a back-alley clinic and keep it off the books.",
            difficulty=1,
            payout=0,
            heat=0.5,
            duration=25,
            category="fallout-recovery",
            respawn=False,
            fallout_recovery=FalloutRecovery(record.crew_id, record.crew_name, "injured"),
        )
    return None

