"""Mission lifecycle, modifier aggregation, events and resolution."""

from .status import MissionStatus, StatusTransition, VALID_TRANSITIONS, can_transition, transition_mission
from .models import (
    ContractTemplate,
    Mission,
    MissionEvent,
    EventChoice,
    ChoiceEffects,
    DebtTerms,
    PendingDecision,
    PendingResolution,
    EventHistoryEntry,
    FalloutRecord,
    PendingDebt,
    DebtSettlement,
    VehicleImpact,
    VehicleReport,
    MissionLogEntry,
)
from .modifiers import ModifierContribution, AssignmentImpact, compute_impact
from .events import build_mission_event_deck, MISSION_EVENT_TABLE
from .contracts import (
    DEFAULT_CONTRACT_TEMPLATES,
    build_contract_from_district,
    generate_contracts_from_districts,
    get_crackdown_operation_templates,
    build_fallout_followup,
)
from .storylines import get_available_crew_storyline_missions, apply_crew_storyline_outcome
from .resolution import ResolutionEngine
from .engine import MissionSystem

__all__ = [
    "MissionStatus",
    "StatusTransition",
    "VALID_TRANSITIONS",
    "can_transition",
    "transition_mission",
    "ContractTemplate",
    "Mission",
    "MissionEvent",
    "EventChoice",
    "ChoiceEffects",
    "DebtTerms",
    "PendingDecision",
    "PendingResolution",
    "EventHistoryEntry",
    "FalloutRecord",
    "PendingDebt",
    "DebtSettlement",
    "VehicleImpact",
    "VehicleReport",
    "MissionLogEntry",
    "ModifierContribution",
    "AssignmentImpact",
    "compute_impact",
    "build_mission_event_deck",
    "MISSION_EVENT_TABLE",
    "DEFAULT_CONTRACT_TEMPLATES",
    "build_contract_from_district",
    "generate_contracts_from_districts",
    "get_crackdown_operation_templates",
    "build_fallout_followup",
    "get_available_crew_storyline_missions",
    "apply_crew_storyline_outcome",
    "ResolutionEngine",
    "MissionSystem",
]
