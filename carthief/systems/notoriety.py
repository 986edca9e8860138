"""Notoriety ladder and drift."""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from ..constants import DISTRICT, NOTORIETY
from ..game.state import GameState
from ..utils.helpers import clamp, to_finite
from ..utils.logging import get_logger
from .crackdown import TierChange

if TYPE_CHECKING:
    from ..missions.models import Mission


logger = get_logger("systems.notoriety")


@dataclass(frozen=True)
class NotorietyLevel:
    """One band of the ladder and how it scales new contracts."""

    id: str
    label: str
    min_value: float
    payout_multiplier: float = 1.0
    heat_delta: float = 0.0
    difficulty_delta: int = 0
    success_delta: float = 0.0
    risk_shift: int = 0


NOTORIETY_LEVELS: tuple[NotorietyLevel, ...] = (
    NotorietyLevel("unknown", "Unknown", 0.0),
    NotorietyLevel("known", "Known", 10.0, payout_multiplier=1.08, success_delta=-0.02),
    NotorietyLevel("notorious", "Notorious", 25.0, payout_multiplier=1.15, heat_delta=0.5,
                   success_delta=-0.03, risk_shift=1),
    NotorietyLevel("infamous", "Infamous", 45.0, payout_multiplier=1.25, heat_delta=1.0,
                   difficulty_delta=1, success_delta=-0.05, risk_shift=1),
    NotorietyLevel("legendary", "Legendary", 70.0, payout_multiplier=1.4, heat_delta=1.5,
                   difficulty_delta=1, success_delta=-0.08, risk_shift=2),
)


@dataclass(frozen=True)
class NotorietyChange:
    """Result of one notoriety adjustment."""

    before: float
    after: float
    level_before: NotorietyLevel
    level_after: NotorietyLevel
    reason: str = ""

    @property
    def delta(self) -> float:
        return self.after - self.before

    @property
    def level_changed(self) -> bool:
        return self.level_before.id != self.level_after.id

    @property
    def summary(self) -> str:
        sign = "+" if self.delta >= 0 else ""
        text = f"Notoriety {sign}{self.delta:.1f} (now {self.after:.1f}, {self.level_after.label})"
        if self.level_changed:
            text += f", reputation moved from {self.level_before.label}"
        return text + "."


class NotorietyService:
    """Reads and shifts state.player.notoriety."""

    def __init__(self, state: GameState):
        """Initialize the service.

        Args:
            state: Shared game state
        """
        self.state = state

    def get_notoriety(self) -> float:
        """Current notoriety score."""
        return clamp(to_finite(self.state.player.notoriety, 0.0), NOTORIETY.MIN_NOTORIETY, NOTORIETY.MAX_NOTORIETY)

    def get_notoriety_level(self, value: Optional[float] = None) -> NotorietyLevel:
        """Band for a score (current score if None)."""
        score = self.get_notoriety() if value is None else value
        level = NOTORIETY_LEVELS[0]
        for candidate in NOTORIETY_LEVELS:
            if score >= candidate.min_value:
                level = candidate
        return level

    def get_next_notoriety_level(self) -> Optional[NotorietyLevel]:
        """Next band up, None at the top."""
        score = self.get_notoriety()
        return next((level for level in NOTORIETY_LEVELS if level.min_value > score), None)

    def adjust_notoriety(self, delta: float, reason: str = "") -> NotorietyChange:
        """Shift notoriety, clamped to the ladder range."""
        before = self.get_notoriety()
        after = clamp(before + to_finite(delta, 0.0), NOTORIETY.MIN_NOTORIETY, NOTORIETY.MAX_NOTORIETY)
        self.state.player.notoriety = after

        change = NotorietyChange(
            before=before,
            after=after,
            level_before=self.get_notoriety_level(before),
            level_after=self.get_notoriety_level(after),
            reason=reason,
        )
        if change.level_changed:
            logger.info(f"Notoriety level {change.level_before.label} -> {change.level_after.label}")
        return change

    def compute_mission_delta(self, mission: "Mission", outcome: str) -> float:
        """Notoriety earned (or shed) by a resolved mission.

        Successful crackdown operations cool the crew's reputation instead of
        raising it.
        """
        heat = max(0.0, to_finite(mission.heat, 0.0))
        difficulty = max(0.0, to_finite(mission.difficulty, 1.0))

        if outcome == "success":
            if mission.category == "crackdown-operation":
                return -(NOTORIETY.CRACKDOWN_RELIEF_BASE + NOTORIETY.CRACKDOWN_RELIEF_PER_DIFFICULTY * difficulty)
            payout = max(0.0, to_finite(mission.payout, 0.0))
            return (
                heat * NOTORIETY.SUCCESS_HEAT_WEIGHT
                + difficulty * NOTORIETY.SUCCESS_DIFFICULTY_WEIGHT
                + payout / 10000 * NOTORIETY.SUCCESS_PAYOUT_WEIGHT
            )

        return heat * NOTORIETY.FAILURE_HEAT_WEIGHT + difficulty * NOTORIETY.FAILURE_DIFFICULTY_WEIGHT

    def apply_mission_outcome(self, mission: "Mission", outcome: str) -> NotorietyChange:
        """Apply the mission delta and spill it into the district's pressure."""
        change = self.adjust_notoriety(
            self.compute_mission_delta(mission, outcome),
            reason=f"{mission.name} ({outcome})",
        )
        district = self.state.city.find_district(mission.district_id)
        if district is not None and change.delta:
            district.adjust_crackdown_pressure(change.delta * DISTRICT.NOTORIETY_PRESSURE_SCALE)
        return change

    def apply_crackdown_shift(self, change: TierChange) -> Optional[NotorietyChange]:
        """Nudge notoriety by the change in crackdown pressure."""
        delta = change.pressure_delta * NOTORIETY.CRACKDOWN_SHIFT_STEP
        if not delta:
            return None
        return self.adjust_notoriety(delta, reason=change.summary)
