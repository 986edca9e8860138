"""Mission data models."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from .status import ACTIVE_STATUSES, MissionStatus, StatusTransition
from ..constants import MISSION
from ..entities.vehicle import VehicleReward
from ..game.city import PointOfInterest
from ..utils.helpers import clamp, to_finite
from ..utils.logging import get_logger


logger = get_logger("missions.models")

RISK_TIERS = ("low", "moderate", "high")


def _utc_now() -> datetime:
    """Get current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


# =============================================================================
# Template metadata
# =============================================================================

@dataclass(frozen=True)
class FalloutRecovery:
    """Crew member a rescue or medical contract brings back."""

    crew_id: str
    crew_name: str
    status: str  # injured | captured


@dataclass(frozen=True)
class StorylineLink:
    """Crew-loyalty storyline step a contract belongs to."""

    crew_id: str
    crew_name: str
    background_id: str
    step_id: str


@dataclass(frozen=True)
class CrackdownEffects:
    """Heat consequences of a crackdown operation."""

    heat_reduction: float = 0.0
    heat_penalty_on_failure: float = 0.0


def _poi_from(data: Any) -> Optional[PointOfInterest]:
    if isinstance(data, PointOfInterest) or data is None:
        return data
    if not isinstance(data, dict) or not data.get("id"):
        return None
    return PointOfInterest(
        id=str(data["id"]),
        name=str(data.get("name", data["id"])),
        type=str(data.get("type", "site")),
        description=str(data.get("description", "")),
        payout_multiplier=to_finite(data.get("payout_multiplier"), 1.0),
        heat_delta=to_finite(data.get("heat_delta"), 0.0),
        duration_delta=to_finite(data.get("duration_delta"), 0.0),
    )


def _metadata_from(cls, data: Any):
    if isinstance(data, cls) or data is None:
        return data
    if isinstance(data, dict):
        try:
            return cls(**data)
        except TypeError:
            logger.warning(f"Ignoring malformed {cls.__name__}: {data}")
    return None


def fallback_duration(difficulty: int) -> int:
    """Duration used when a template's duration is missing or malformed."""
    return max(difficulty * MISSION.DURATION_PER_DIFFICULTY, MISSION.MIN_FALLBACK_DURATION)


@dataclass(frozen=True)
class ContractTemplate:
    """Immutable blueprint a mission is instantiated from."""

    id: str
    name: str
    description: str = ""
    difficulty: int = 1
    payout: int = 0
    heat: float = 0.0
    duration: int = MISSION.MIN_FALLBACK_DURATION
    success_chance: Optional[float] = None
    district_id: Optional[str] = None
    district_name: Optional[str] = None
    point_of_interest: Optional[PointOfInterest] = None
    vehicle_reward: Optional[VehicleReward] = None
    fallout_recovery: Optional[FalloutRecovery] = None
    storyline: Optional[StorylineLink] = None
    crackdown_effects: Optional[CrackdownEffects] = None
    crackdown_tier: Optional[str] = None
    ignore_crackdown_restrictions: bool = False
    risk_tier: str = "low"
    category: str = "standard"
    respawn: bool = True

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Optional["ContractTemplate"]:
        """Build a template from raw data, sanitizing numeric fields.

        Args:
            data: Raw template fields

        Returns:
            ContractTemplate, or None when id or name is missing
        """
        if not isinstance(data, dict) or not data.get("id") or not data.get("name"):
            logger.warning(f"Rejected contract template without id/name: {data!r}")
            return None

        difficulty = max(1, round(to_finite(data.get("difficulty"), 1)))

        raw_duration = to_finite(data.get("duration"), 0)
        duration = round(raw_duration) if raw_duration > 0 else fallback_duration(difficulty)

        raw_chance = data.get("success_chance")
        success_chance = None
        if raw_chance is not None and to_finite(raw_chance, -1) >= 0:
            success_chance = clamp(to_finite(raw_chance), MISSION.MIN_SUCCESS_CHANCE, MISSION.MAX_SUCCESS_CHANCE)

        risk_tier = str(data.get("risk_tier", "low"))
        if risk_tier not in RISK_TIERS:
            risk_tier = "low"

        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            description=str(data.get("description", "")),
            difficulty=difficulty,
            payout=max(0, round(to_finite(data.get("payout"), 0))),
            heat=max(0.0, to_finite(data.get("heat"), 0.0)),
            duration=duration,
            success_chance=success_chance,
            district_id=data.get("district_id"),
            district_name=data.get("district_name"),
            point_of_interest=_poi_from(data.get("point_of_interest")),
            vehicle_reward=VehicleReward.from_dict(data.get("vehicle_reward")),
            fallout_recovery=_metadata_from(FalloutRecovery, data.get("fallout_recovery")),
            storyline=_metadata_from(StorylineLink, data.get("storyline")),
            crackdown_effects=_metadata_from(CrackdownEffects, data.get("crackdown_effects")),
            crackdown_tier=data.get("crackdown_tier"),
            ignore_crackdown_restrictions=bool(data.get("ignore_crackdown_restrictions", False)),
            risk_tier=risk_tier,
            category=str(data.get("category", "standard")),
            respawn=bool(data.get("respawn", True)),
        )


# =============================================================================
# Events
# =============================================================================

@dataclass(frozen=True)
class DebtTerms:
    """A cost deferred to the next successful payout."""

    amount: int
    notes: str = ""


@dataclass(frozen=True)
class ChoiceEffects:
    """What picking an event choice does to the live mission."""

    payout_multiplier: Optional[float] = None
    payout_delta: Optional[float] = None
    heat_multiplier: Optional[float] = None
    heat_delta: Optional[float] = None
    success_delta: Optional[float] = None
    duration_multiplier: Optional[float] = None
    duration_delta: Optional[float] = None
    crew_loyalty_delta: Optional[int] = None
    future_debt: Optional[DebtTerms] = None


@dataclass(frozen=True)
class EventChoice:
    """One option of an in-mission event."""

    id: str
    label: str
    description: str = ""
    narrative: str = ""
    effects: ChoiceEffects = field(default_factory=ChoiceEffects)


@dataclass
class MissionEvent:
    """A decision point triggered when progress reaches a threshold."""

    id: str
    label: str
    description: str
    trigger_progress: float
    choices: list[EventChoice] = field(default_factory=list)
    min_difficulty: float = 0
    max_difficulty: float = float("inf")
    risk_tiers: Optional[frozenset[str]] = None
    crackdown_tiers: Optional[frozenset[str]] = None
    poi_context: Optional[dict[str, Any]] = None
    triggered: bool = False
    resolved: bool = False

    def find_choice(self, choice_id: str) -> Optional[EventChoice]:
        return next((choice for choice in self.choices if choice.id == choice_id), None)


@dataclass
class PendingDecision:
    """The one event currently waiting on a player choice."""

    event_id: str
    label: str
    description: str
    choices: list[EventChoice]
    triggered_at_progress: float


@dataclass
class EventHistoryEntry:
    """A resolved event choice."""

    event_id: str
    event_label: str
    choice_id: str
    choice_label: str
    narrative: str
    effects: ChoiceEffects
    progress: float
    payout_after: int
    heat_after: float
    success_chance_after: float
    duration_after: int
    debt_id: Optional[str] = None
    timestamp: datetime = field(default_factory=_utc_now)


# =============================================================================
# Assignment / resolution records
# =============================================================================

@dataclass
class VehicleImpact:
    """Vehicle contribution computed at assignment, applied at resolution."""

    vehicle_id: str
    model: str
    agility_score: float
    condition_penalty: float
    duration_multiplier: float
    heat_multiplier: float
    heat_adjustment: float
    success_bonus: float
    wear_on_success: float
    wear_on_failure: float
    heat_gain_on_success: float
    heat_gain_on_failure: float
    summaries: list[str] = field(default_factory=list)


@dataclass
class PendingResolution:
    """An outcome that has been drawn but not applied yet."""

    roll: float
    chance: float
    outcome: str


@dataclass
class FalloutRecord:
    """A crew member's post-mission status change."""

    crew_id: str
    crew_name: str
    status: str  # injured | captured | recovered
    severity: str
    source_mission_id: str
    timestamp: datetime = field(default_factory=_utc_now)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "crew_id": self.crew_id,
            "crew_name": self.crew_name,
            "status": self.status,
            "severity": self.severity,
            "source_mission_id": self.source_mission_id,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class PendingDebt:
    """Funds owed against the next successful payout."""

    id: str
    amount: int
    remaining: int
    source_event_id: str
    source_choice_id: str
    notes: str = ""
    created_at: datetime = field(default_factory=_utc_now)


@dataclass
class DebtSettlement:
    """How much of a debt one payout covered."""

    debt_id: str
    amount_paid: int
    remaining: int

    @property
    def cleared(self) -> bool:
        return self.remaining <= 0


@dataclass
class VehicleReport:
    """What happened to the garage after a mission."""

    outcome: str  # stored | storage-blocked | wear
    mission_id: str
    vehicle_id: Optional[str] = None
    model: Optional[str] = None
    condition_before: Optional[float] = None
    condition_after: Optional[float] = None
    heat_before: Optional[float] = None
    heat_after: Optional[float] = None
    reward_model: Optional[str] = None
    reward_vehicle_id: Optional[str] = None
    storage_capacity: Optional[int] = None
    garage_size: int = 0
    summary: str = ""


@dataclass
class MissionLogEntry:
    """Structured record of one resolved mission."""

    mission_id: str
    mission_name: str
    outcome: str
    roll: Optional[float]
    chance: float
    payout: int
    net_payout: int
    heat_applied: float
    difficulty: int
    category: str
    district_id: Optional[str] = None
    crew_ids: list[str] = field(default_factory=list)
    vehicle_id: Optional[str] = None
    fallout: list[FalloutRecord] = field(default_factory=list)
    follow_ups: list[str] = field(default_factory=list)
    debt_settlements: list[DebtSettlement] = field(default_factory=list)
    storyline_summary: Optional[str] = None
    crackdown_summary: Optional[str] = None
    notoriety_summary: Optional[str] = None
    vehicle_report: Optional[VehicleReport] = None
    summaries: list[str] = field(default_factory=list)
    timestamp: datetime = field(default_factory=_utc_now)

    @property
    def debt_paid(self) -> int:
        return sum(settlement.amount_paid for settlement in self.debt_settlements)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "mission_id": self.mission_id,
            "mission_name": self.mission_name,
            "outcome": self.outcome,
            "roll": self.roll,
            "chance": self.chance,
            "payout": self.payout,
            "net_payout": self.net_payout,
            "heat_applied": self.heat_applied,
            "difficulty": self.difficulty,
            "category": self.category,
            "district_id": self.district_id,
            "crew_ids": list(self.crew_ids),
            "vehicle_id": self.vehicle_id,
            "fallout": [record.to_dict() for record in self.fallout],
            "follow_ups": list(self.follow_ups),
            "debt_paid": self.debt_paid,
            "storyline_summary": self.storyline_summary,
            "crackdown_summary": self.crackdown_summary,
            "notoriety_summary": self.notoriety_summary,
            "vehicle_report": self.vehicle_report.outcome if self.vehicle_report else None,
            "summaries": list(self.summaries),
            "timestamp": self.timestamp.isoformat(),
        }


# =============================================================================
# Mission
# =============================================================================

@dataclass
class Mission:
    """A live attempt at a contract.

    Base values are fixed at instantiation; the effective values are
    overwritten by crew/vehicle assignment and event choices.
    """

    id: str
    name: str
    description: str = ""
    category: str = "standard"
    difficulty: int = 1
    risk_tier: str = "low"
    district_id: Optional[str] = None
    district_name: Optional[str] = None
    point_of_interest: Optional[PointOfInterest] = None
    vehicle_reward: Optional[VehicleReward] = None
    fallout_recovery: Optional[FalloutRecovery] = None
    storyline: Optional[StorylineLink] = None
    crackdown_effects: Optional[CrackdownEffects] = None
    crackdown_tier: Optional[str] = None
    ignore_crackdown_restrictions: bool = False
    priority: bool = False
    notoriety_level: str = "unknown"

    base_payout: int = 0
    base_heat: float = 0.0
    base_duration: int = MISSION.MIN_FALLBACK_DURATION
    base_success_chance: float = MISSION.BASE_SUCCESS_CHANCE
    payout: int = 0
    heat: float = 0.0
    duration: int = MISSION.MIN_FALLBACK_DURATION
    success_chance: float = MISSION.BASE_SUCCESS_CHANCE

    status: MissionStatus = MissionStatus.AVAILABLE
    elapsed_time: float = 0.0
    progress: float = 0.0
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    outcome: Optional[str] = None

    assigned_crew_ids: list[str] = field(default_factory=list)
    assigned_vehicle_id: Optional[str] = None
    crew_snapshots: list[dict[str, Any]] = field(default_factory=list)
    vehicle_snapshot: Optional[dict[str, Any]] = None
    assignment_summaries: list[str] = field(default_factory=list)
    vehicle_impact: Optional[VehicleImpact] = None

    event_deck: list[MissionEvent] = field(default_factory=list)
    event_history: list[EventHistoryEntry] = field(default_factory=list)
    pending_decision: Optional[PendingDecision] = None
    pending_resolution: Optional[PendingResolution] = None
    resolution_details: Optional[MissionLogEntry] = None

    restricted: bool = False
    restriction_reason: Optional[str] = None
    status_history: list[StatusTransition] = field(default_factory=list)

    @property
    def is_available(self) -> bool:
        return self.status == MissionStatus.AVAILABLE

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    @property
    def is_completed(self) -> bool:
        return self.status == MissionStatus.COMPLETED

    def find_event(self, event_id: str) -> Optional[MissionEvent]:
        return next((event for event in self.event_deck if event.id == event_id), None)

    def clear_assignment(self) -> None:
        """Drop transient assignment state after resolution."""
        self.assigned_crew_ids = []
        self.assigned_vehicle_id = None
        self.crew_snapshots = []
        self.vehicle_snapshot = None
        self.vehicle_impact = None
        self.pending_decision = None
        self.pending_resolution = None

    @classmethod
    def from_template(
        cls,
        template: ContractTemplate,
        notoriety: Any = None,
        base_success_chance: float = MISSION.BASE_SUCCESS_CHANCE,
    ) -> "Mission":
        """Instantiate a mission from a template.

        Args:
            template: Blueprint to instantiate
            notoriety: NotorietyLevel scaling the base values (None = neutral)
            base_success_chance: Success chance of a difficulty-1 contract

        Returns:
            New Mission in the AVAILABLE state
        """
        # Personal and recovery jobs are not priced by reputation
        exempt = template.category in ("crew-loyalty", "fallout-recovery")
        level = None if exempt else notoriety

        payout_multiplier = level.payout_multiplier if level else 1.0
        heat_delta = level.heat_delta if level else 0.0
        difficulty_delta = level.difficulty_delta if level else 0
        success_delta = level.success_delta if level else 0.0
        risk_shift = level.risk_shift if level else 0

        difficulty = max(1, template.difficulty + difficulty_delta)
        payout = round(template.payout * payout_multiplier)
        heat = max(0.0, template.heat + heat_delta)

        if template.success_chance is not None:
            chance = template.success_chance
        else:
            chance = clamp(
                base_success_chance - MISSION.SUCCESS_STEP_PER_DIFFICULTY * (template.difficulty - 1),
                MISSION.MIN_BASE_SUCCESS,
                MISSION.MAX_BASE_SUCCESS,
            )
        chance = clamp(chance + success_delta, MISSION.MIN_SUCCESS_CHANCE, MISSION.MAX_SUCCESS_CHANCE)

        risk_index = RISK_TIERS.index(template.risk_tier) if template.risk_tier in RISK_TIERS else 0
        risk_tier = RISK_TIERS[min(len(RISK_TIERS) - 1, risk_index + risk_shift)]

        return cls(
            id=template.id,
            name=template.name,
            description=template.description,
            category=template.category,
            difficulty=difficulty,
            risk_tier=risk_tier,
            district_id=template.district_id,
            district_name=template.district_name,
            point_of_interest=template.point_of_interest,
            vehicle_reward=template.vehicle_reward,
            fallout_recovery=template.fallout_recovery,
            storyline=template.storyline,
            crackdown_effects=template.crackdown_effects,
            crackdown_tier=template.crackdown_tier,
            ignore_crackdown_restrictions=template.ignore_crackdown_restrictions,
            priority=template.category == "fallout-recovery",
            notoriety_level=level.id if level else "unknown",
            base_payout=payout,
            base_heat=heat,
            base_duration=template.duration,
            base_success_chance=chance,
            payout=payout,
            heat=heat,
            duration=template.duration,
            success_chance=chance,
        )
