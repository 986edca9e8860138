"""Heat tracking, tiers and mitigation."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Callable, Optional

from ..config.settings import EngineConfig
from ..game.state import ActionResult, GameState
from ..utils.helpers import format_money
from ..utils.logging import get_logger

if TYPE_CHECKING:
    from .economy import EconomySystem


logger = get_logger("systems.heat")


def _utc_now() -> datetime:
    """Get current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class HeatTier:
    """A named heat band."""

    name: str
    label: str
    threshold: float


@dataclass
class HeatMitigationRecord:
    """Telemetry for one heat reduction."""

    label: str
    heat_before: float
    heat_after: float
    reduction_applied: float
    funds_spent: int = 0
    metadata: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=_utc_now)

    @property
    def heat_delta(self) -> float:
        return self.heat_after - self.heat_before


class HeatSystem:
    """Owns state.heat and state.heat_tier."""

    def __init__(self, state: GameState, config: Optional[EngineConfig] = None,
                 clock: Callable[[], datetime] = _utc_now):
        """Initialize heat system.

        Args:
            state: Shared game state
            config: Engine configuration (defaults if None)
            clock: Timestamp source
        """
        self.state = state
        self.config = config or EngineConfig()
        self._clock = clock
        self.tiers = sorted(
            (HeatTier(name, name.capitalize(), threshold) for name, threshold in self.config.heat_tiers.items()),
            key=lambda tier: tier.threshold,
        )
        self.state.heat = max(0.0, float(self.state.heat or 0.0))
        self._update_tier()

    @property
    def max_heat(self) -> float:
        return self.config.max_heat

    def get_tier_for_heat(self, heat: float) -> HeatTier:
        """Classify a heat value."""
        active = self.tiers[0]
        for tier in self.tiers:
            if heat >= tier.threshold:
                active = tier
            else:
                break
        return active

    def _update_tier(self) -> HeatTier:
        tier = self.get_tier_for_heat(self.state.heat)
        self.state.heat_tier = tier.name
        return tier

    def get_current_tier(self) -> str:
        """Get the current tier name."""
        return self._update_tier().name

    def increase(self, amount: float) -> float:
        """Add heat, clamped to 0..max_heat. Returns the new heat."""
        self.state.heat = max(0.0, min(self.max_heat, self.state.heat + amount))
        self._update_tier()
        return self.state.heat

    def apply_mitigation(
        self,
        reduction: float,
        label: str = "Heat mitigation",
        funds_spent: int = 0,
        metadata: Optional[dict[str, Any]] = None,
    ) -> HeatMitigationRecord:
        """Reduce heat and log telemetry.

        Args:
            reduction: Heat to remove (non-positive values remove nothing)
            label: Telemetry label
            funds_spent: Funds that paid for the reduction
            metadata: Extra telemetry fields

        Returns:
            HeatMitigationRecord with before/after values
        """
        before = self.state.heat
        amount = reduction if reduction > 0 else 0.0
        after = max(0.0, before - amount)

        record = HeatMitigationRecord(
            label=label,
            heat_before=before,
            heat_after=after,
            reduction_applied=before - after,
            funds_spent=funds_spent,
            metadata=dict(metadata or {}),
            timestamp=self._clock(),
        )
        self.state.heat_mitigation_log.insert(0, record)
        del self.state.heat_mitigation_log[self.config.mitigation_log_limit:]

        self.state.heat = after
        self._update_tier()
        logger.debug(f"{label}: heat {before:.2f} -> {after:.2f}")
        return record

    def update(self, delta: float) -> None:
        """Decay heat over elapsed seconds."""
        if self.state.heat <= 0:
            self.state.heat = 0.0
        else:
            self.state.heat = max(0.0, self.state.heat - self.config.decay_rate * delta)
        self._update_tier()


def execute_heat_mitigation(
    state: GameState,
    heat_system: HeatSystem,
    economy: "EconomySystem",
    reduction: float,
    cost: int,
    label: str = "Heat mitigation",
    on_tier_change: Optional[Callable[[], Any]] = None,
) -> ActionResult:
    """Pay to lower heat.

    Args:
        state: Shared game state
        heat_system: Heat system to reduce
        economy: Economy to charge
        reduction: Heat to remove
        cost: Funds charged
        label: Telemetry label
        on_tier_change: Called afterwards so crackdown policy can re-sync

    Returns:
        ActionResult with the mitigation record in details
    """
    if reduction <= 0:
        return ActionResult(False, "Nothing to mitigate.")
    if state.heat <= 0:
        return ActionResult(False, "Heat is already clear.")
    if cost > state.funds:
        return ActionResult(False, f"Need {format_money(cost)} to pay for {label.lower()}.")

    economy.adjust_funds(-cost)
    record = heat_system.apply_mitigation(reduction, label=label, funds_spent=cost)
    if on_tier_change is not None:
        on_tier_change()

    logger.info(f"{label}: spent {format_money(cost)}, heat -{record.reduction_applied:.2f}")
    return ActionResult(True, f"{label} lowered heat by {record.reduction_applied:.1f}.", {"record": record})
