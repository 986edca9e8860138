"""Mission lifecycle states and the transitions between them."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING

from ..utils.logging import get_logger

if TYPE_CHECKING:
    from .models import Mission


logger = get_logger("missions.status")


class MissionStatus(Enum):
    """Possible mission states."""

    AVAILABLE = "available"  # On the board
    IN_PROGRESS = "in-progress"  # Timer running
    DECISION_REQUIRED = "decision-required"  # Waiting on an event choice
    AWAITING_RESOLUTION = "awaiting-resolution"  # Timer done, outcome pending
    COMPLETED = "completed"  # Inert, replaced by respawn


def _utc_now() -> datetime:
    """Get current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


@dataclass
class StatusTransition:
    """Record of a status transition."""

    from_status: MissionStatus
    to_status: MissionStatus
    timestamp: datetime = field(default_factory=_utc_now)
    trigger: str = ""


# Valid status transitions. A mission never moves back to AVAILABLE; the
# board gets a fresh instance instead.
VALID_TRANSITIONS: dict[MissionStatus, set[MissionStatus]] = {
    MissionStatus.AVAILABLE: {
        MissionStatus.IN_PROGRESS,
    },
    MissionStatus.IN_PROGRESS: {
        MissionStatus.DECISION_REQUIRED,
        MissionStatus.AWAITING_RESOLUTION,
        MissionStatus.COMPLETED,  # Forced failure
    },
    MissionStatus.DECISION_REQUIRED: {
        MissionStatus.IN_PROGRESS,
        MissionStatus.COMPLETED,  # Forced failure
    },
    MissionStatus.AWAITING_RESOLUTION: {
        MissionStatus.COMPLETED,
    },
    MissionStatus.COMPLETED: set(),
}

ACTIVE_STATUSES = frozenset({
    MissionStatus.IN_PROGRESS,
    MissionStatus.DECISION_REQUIRED,
    MissionStatus.AWAITING_RESOLUTION,
})


def can_transition(current: MissionStatus, target: MissionStatus) -> bool:
    """Check if a transition is allowed."""
    return target in VALID_TRANSITIONS.get(current, set())


def transition_mission(mission: "Mission", target: MissionStatus, trigger: str = "",
                       timestamp: datetime | None = None) -> bool:
    """Move a mission to a new status.

    Args:
        mission: Mission to update
        target: Target status
        trigger: Description of what caused the transition
        timestamp: Transition time (now if None)

    Returns:
        True if the transition was valid and applied
    """
    current = mission.status
    if not can_transition(current, target):
        logger.warning(f"Invalid mission transition for {mission.id}: {current.value} -> {target.value}")
        return False

    mission.status = target
    mission.status_history.append(StatusTransition(
        from_status=current,
        to_status=target,
        timestamp=timestamp or _utc_now(),
        trigger=trigger,
    ))
    logger.debug(f"Mission {mission.id}: {current.value} -> {target.value} ({trigger})")
    return True
