"""Crackdown policy: what each heat tier allows."""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, Optional

from ..config.settings import EngineConfig
from ..utils.logging import get_logger
from .heat import HeatSystem

if TYPE_CHECKING:
    from ..missions.models import Mission


logger = get_logger("systems.crackdown")

# Pressure rank per tier, used to size notoriety nudges on transitions
TIER_PRESSURE = {
    "calm": 0,
    "alert": 1,
    "lockdown": 2,
}

EXEMPT_CATEGORIES = {"crew-loyalty", "fallout-recovery"}


@dataclass(frozen=True)
class CrackdownPolicy:
    """Limits in force for one tier."""

    tier: str
    label: str
    max_mission_heat: Optional[float]
    failure_heat_multiplier: float
    pressure: int


@dataclass(frozen=True)
class TierChange:
    """A crackdown tier transition."""

    previous: str
    current: str

    @property
    def pressure_delta(self) -> int:
        return TIER_PRESSURE.get(self.current, 0) - TIER_PRESSURE.get(self.previous, 0)

    @property
    def escalated(self) -> bool:
        return self.pressure_delta > 0

    @property
    def summary(self) -> str:
        direction = "escalated" if self.escalated else "eased"
        return f"Crackdown {direction} from {self.previous} to {self.current}."


class CrackdownPolicyService:
    """Maps the heat tier to a policy and flags missions that break it."""

    def __init__(self, heat_system: HeatSystem, config: Optional[EngineConfig] = None):
        """Initialize the policy service.

        Args:
            heat_system: Source of the current tier
            config: Engine configuration (defaults if None)
        """
        self.heat = heat_system
        self.config = config or EngineConfig()
        self._last_tier = self.heat.get_current_tier()

    def get_current_tier(self) -> str:
        """Current tier name straight from the heat system."""
        return self.heat.get_current_tier()

    def get_policy(self, tier: Optional[str] = None) -> CrackdownPolicy:
        """Policy for a tier (current tier if None)."""
        name = tier or self.get_current_tier()
        cap = self.config.crackdown_caps.get(name)
        return CrackdownPolicy(
            tier=name,
            label=name.capitalize(),
            max_mission_heat=None if cap is None else float(cap),
            failure_heat_multiplier=float(self.config.failure_heat_multipliers.get(name, 2.0)),
            pressure=TIER_PRESSURE.get(name, 0),
        )

    def is_exempt(self, mission: "Mission") -> bool:
        """Fallout-recovery, crew-loyalty and flagged missions ignore the cap."""
        return bool(
            mission.fallout_recovery is not None
            or mission.category in EXEMPT_CATEGORIES
            or mission.ignore_crackdown_restrictions
        )

    def get_restriction_reason(self, mission: "Mission", policy: Optional[CrackdownPolicy] = None) -> Optional[str]:
        """Why a mission is blocked under the policy, None if it may run."""
        policy = policy or self.get_policy()
        if policy.max_mission_heat is None or self.is_exempt(mission):
            return None
        if mission.heat <= policy.max_mission_heat:
            return None
        return (
            f"{policy.label} crackdown: the {policy.tier} tier caps mission heat at "
            f"{policy.max_mission_heat:g}, this job runs at {mission.heat:g}."
        )

    def apply_restrictions(self, missions: Iterable["Mission"]) -> int:
        """Flag or clear restrictions on every available mission.

        Returns:
            Number of missions left restricted
        """
        policy = self.get_policy()
        restricted = 0
        for mission in missions:
            if not mission.is_available:
                continue
            reason = self.get_restriction_reason(mission, policy)
            mission.restricted = reason is not None
            mission.restriction_reason = reason
            if reason:
                restricted += 1
        return restricted

    def sync_tier(self) -> Optional[TierChange]:
        """Re-read the tier and report a transition since the last sync."""
        current = self.get_current_tier()
        if current == self._last_tier:
            return None
        change = TierChange(previous=self._last_tier, current=current)
        self._last_tier = current
        logger.info(change.summary)
        return change
