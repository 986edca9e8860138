"""Funds, daily overhead and crew payroll."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Optional

from ..config.settings import EngineConfig
from ..game.state import GameState
from ..utils.helpers import format_money
from ..utils.logging import get_logger


logger = get_logger("systems.economy")


def _utc_now() -> datetime:
    """Get current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


@dataclass
class ExpenseReport:
    """Expenses charged for one in-game day."""

    day: int
    base: int
    payroll: int
    timestamp: datetime = field(default_factory=_utc_now)

    @property
    def total(self) -> int:
        return self.base + self.payroll


class EconomySystem:
    """Owns state.funds and the daily expense cycle."""

    def __init__(self, state: GameState, config: Optional[EngineConfig] = None,
                 clock: Callable[[], datetime] = _utc_now):
        """Initialize economy.

        Args:
            state: Shared game state
            config: Engine configuration (defaults if None)
            clock: Timestamp source
        """
        self.state = state
        self.config = config or EngineConfig()
        self._clock = clock
        self._time_accumulator = 0.0

    @property
    def base_daily_overhead(self) -> int:
        return self.config.daily_overhead

    @property
    def day_length_seconds(self) -> float:
        return self.config.day_length_seconds

    def get_crew_payroll(self) -> int:
        """Total daily upkeep of the crew."""
        return sum(max(0, int(member.upkeep)) for member in self.state.crew)

    def get_projected_daily_expenses(self) -> int:
        """Overhead plus payroll for one day."""
        return self.base_daily_overhead + self.get_crew_payroll()

    def adjust_funds(self, amount: int) -> int:
        """Add (or remove) funds. Returns the new balance."""
        self.state.funds += int(amount)
        return self.state.funds

    def _close_day(self) -> ExpenseReport:
        payroll = self.get_crew_payroll()
        report = ExpenseReport(
            day=self.state.day,
            base=self.base_daily_overhead,
            payroll=payroll,
            timestamp=self._clock(),
        )
        self.state.funds -= report.total
        self.state.day += 1
        self.state.last_expense_report = report

        # Crew rest between days
        for member in self.state.crew:
            member.recover_fatigue(1)

        logger.info(f"Day {report.day} closed: expenses {format_money(report.total)}")
        return report

    def update(self, delta: float) -> list[ExpenseReport]:
        """Advance the day clock.

        Args:
            delta: Elapsed seconds

        Returns:
            Expense reports for every day that closed
        """
        self._time_accumulator += delta
        reports = []
        while self._time_accumulator >= self.day_length_seconds:
            self._time_accumulator -= self.day_length_seconds
            reports.append(self._close_day())
        return reports

    @property
    def last_expense_report(self) -> Optional[ExpenseReport]:
        return self.state.last_expense_report
