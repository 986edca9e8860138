"""Mission outcome resolution and its cascading consequences."""

import random
from datetime import datetime
from typing import Any, Callable, Optional

from .models import (
    DebtSettlement,
    FalloutRecord,
    Mission,
    MissionLogEntry,
    VehicleReport,
)
from .storylines import apply_crew_storyline_outcome
from ..config.settings import EngineConfig
from ..constants import CREW, DISTRICT, FALLOUT
from ..entities.crew import CrewMember, mission_fatigue_impact
from ..entities.vehicle import Vehicle
from ..game.state import GameState
from ..systems.crackdown import CrackdownPolicyService
from ..systems.economy import EconomySystem
from ..systems.heat import HeatSystem
from ..systems.notoriety import NotorietyService
from ..utils.helpers import clamp, format_money
from ..utils.logging import get_logger


logger = get_logger("missions.resolution")


def failure_severity(roll: Optional[float], chance: float) -> float:
    """How badly a failed roll missed, 0..1.

    Forced failures (no roll) count as a middling miss.
    """
    if roll is None:
        return FALLOUT.FORCED_FAILURE_SEVERITY
    if chance >= 1:
        return 1.0
    return clamp((roll - chance) / (1 - chance), 0.0, 1.0)


def severity_label(severity: float) -> str:
    if severity >= FALLOUT.CRITICAL_THRESHOLD:
        return "critical"
    if severity >= FALLOUT.SERIOUS_THRESHOLD:
        return "serious"
    return "minor"


def capture_chance(severity: float, difficulty: float) -> float:
    return min(
        FALLOUT.MAX_CAPTURE_CHANCE,
        FALLOUT.BASE_CAPTURE_CHANCE + FALLOUT.CAPTURE_PER_SEVERITY * severity
        + FALLOUT.CAPTURE_PER_DIFFICULTY * difficulty,
    )


def injury_chance(severity: float, difficulty: float) -> float:
    return min(
        FALLOUT.MAX_INJURY_CHANCE,
        FALLOUT.BASE_INJURY_CHANCE + FALLOUT.INJURY_PER_SEVERITY * severity
        + FALLOUT.INJURY_PER_DIFFICULTY * difficulty,
    )


class ResolutionEngine:
    """Applies a decided outcome to the game state.

    The engine owns no lifecycle state; MissionSystem decides *when* a
    mission resolves and this class applies *what* follows.
    """

    def __init__(
        self,
        state: GameState,
        heat: HeatSystem,
        economy: EconomySystem,
        crackdown: CrackdownPolicyService,
        notoriety: NotorietyService,
        config: EngineConfig,
        rng: random.Random,
        clock: Callable[[], datetime],
        on_tier_sync: Optional[Callable[[], Any]] = None,
    ):
        """Initialize the resolution engine.

        Args:
            state: Shared game state
            heat: Heat system
            economy: Economy system
            crackdown: Crackdown policy service
            notoriety: Notoriety service
            config: Engine configuration
            rng: Random source for fallout rolls
            clock: Timestamp source
            on_tier_sync: Called after heat changes so the crackdown tier re-syncs
        """
        self.state = state
        self.heat = heat
        self.economy = economy
        self.crackdown = crackdown
        self.notoriety = notoriety
        self.config = config
        self.rng = rng
        self._clock = clock
        self._on_tier_sync = on_tier_sync

    # -------------------------------------------------------------------------
    # Entry point
    # -------------------------------------------------------------------------

    def resolve(self, mission: Mission, outcome: str, roll: Optional[float] = None,
                chance: Optional[float] = None) -> MissionLogEntry:
        """Apply a mission outcome.

        Args:
            mission: Mission being resolved (assignment fields still set)
            outcome: "success" or "failure"
            roll: Random draw the outcome came from, None if forced
            chance: Success chance the roll was compared against

        Returns:
            MissionLogEntry describing everything that changed
        """
        now = self._clock()
        success = outcome == "success"
        chance = mission.success_chance if chance is None else chance

        crew = [m for m in (self.state.find_crew(cid) for cid in mission.assigned_crew_ids) if m is not None]
        vehicle = self.state.find_vehicle(mission.assigned_vehicle_id) if mission.assigned_vehicle_id else None

        entry = MissionLogEntry(
            mission_id=mission.id,
            mission_name=mission.name,
            outcome=outcome,
            roll=roll,
            chance=chance,
            payout=mission.payout if success else 0,
            net_payout=0,
            heat_applied=0.0,
            difficulty=mission.difficulty,
            category=mission.category,
            district_id=mission.district_id,
            crew_ids=[member.id for member in crew],
            vehicle_id=vehicle.id if vehicle else None,
            timestamp=now,
        )

        if success:
            self._apply_success(mission, crew, entry, now)
        else:
            self._apply_failure(mission, crew, entry, roll, chance, now)

        entry.vehicle_report = self._apply_vehicle_outcome(mission, vehicle, success)
        self.state.last_vehicle_report = entry.vehicle_report

        fatigue = mission_fatigue_impact(mission.duration, mission.difficulty)
        for member in crew:
            member.finish_mission(fatigue, completed_at=now)

        self._apply_storyline(mission, outcome, entry)

        if self._on_tier_sync is not None:
            self._on_tier_sync()

        change = self.notoriety.apply_mission_outcome(mission, outcome)
        entry.notoriety_summary = change.summary

        self._apply_district_effects(mission, success)

        self.state.mission_log.insert(0, entry)
        del self.state.mission_log[self.config.log_limit:]
        for record in reversed(entry.fallout):
            self.state.fallout_log.insert(0, record)
        del self.state.fallout_log[FALLOUT.MAX_FALLOUT_LOG:]

        logger.info(
            f"Mission {mission.id} resolved: {outcome} "
            f"(net {format_money(entry.net_payout)}, heat +{entry.heat_applied:.2f}, "
            f"fallout {len(entry.fallout)})"
        )
        return entry

    # -------------------------------------------------------------------------
    # Success / failure
    # -------------------------------------------------------------------------

    def _apply_success(self, mission: Mission, crew: list[CrewMember], entry: MissionLogEntry,
                       now: datetime) -> None:
        gross = max(0, int(mission.payout))
        entry.debt_settlements = self.settle_debts(gross)
        entry.net_payout = gross - entry.debt_paid
        self.economy.adjust_funds(entry.net_payout)
        entry.summaries.append(f"Payout {format_money(gross)}, net {format_money(entry.net_payout)}.")
        if entry.debt_paid:
            entry.summaries.append(f"Debts settled: {format_money(entry.debt_paid)}.")

        entry.heat_applied = max(0.0, mission.heat)
        self.heat.increase(entry.heat_applied)

        effects = mission.crackdown_effects
        if mission.category == "crackdown-operation" and effects and effects.heat_reduction > 0:
            record = self.heat.apply_mitigation(
                effects.heat_reduction,
                label=f"Crackdown operation: {mission.name}",
                metadata={"mission_id": mission.id, "tier": mission.crackdown_tier},
            )
            entry.crackdown_summary = (
                f"{mission.name} knocked heat down by {record.reduction_applied:.1f}."
            )

        for member in crew:
            member.adjust_loyalty(CREW.SUCCESS_LOYALTY_GAIN)

        recovery = mission.fallout_recovery
        if recovery is not None:
            target = self.state.find_crew(recovery.crew_id)
            if target is not None and target.fallout_status:
                target.clear_mission_fallout()
                entry.fallout.append(FalloutRecord(
                    crew_id=target.id,
                    crew_name=target.name,
                    status="recovered",
                    severity="minor",
                    source_mission_id=mission.id,
                    timestamp=now,
                ))
                entry.summaries.append(f"{target.name} is back with the crew.")

    def _apply_failure(self, mission: Mission, crew: list[CrewMember], entry: MissionLogEntry,
                       roll: Optional[float], chance: float, now: datetime) -> None:
        policy = self.crackdown.get_policy()
        heat_gain = max(0.0, mission.heat) * policy.failure_heat_multiplier
        effects = mission.crackdown_effects
        if mission.category == "crackdown-operation" and effects:
            heat_gain += max(0.0, effects.heat_penalty_on_failure)
        entry.heat_applied = heat_gain
        self.heat.increase(heat_gain)
        entry.summaries.append(
            f"Failure under {policy.label.lower()} crackdown: heat x{policy.failure_heat_multiplier:g}."
        )

        for member in crew:
            member.adjust_loyalty(-CREW.FAILURE_LOYALTY_LOSS)

        entry.fallout.extend(self.roll_fallout(mission, crew, roll, chance, now))

    def roll_fallout(self, mission: Mission, crew: list[CrewMember], roll: Optional[float],
                     chance: float, now: datetime) -> list[FalloutRecord]:
        """Capture and injury rolls for each crew member on a failed job."""
        severity = failure_severity(roll, chance)
        label = severity_label(severity)
        capture_odds = capture_chance(severity, mission.difficulty)
        injury_odds = injury_chance(severity, mission.difficulty)

        records = []
        for member in crew:
            captured = self.rng.random() < capture_odds
            injured = self.rng.random() < injury_odds
            status = "captured" if captured else "injured" if injured else None
            if status is None:
                continue
            records.append(self._record_fallout(member, status, label, mission, now))

        if (
            not records
            and crew
            and self.config.guarantee_failure_fallout
            and mission.category != "crew-loyalty"
        ):
            records.append(self._record_fallout(crew[0], "injured", label, mission, now))

        return records

    def _record_fallout(self, member: CrewMember, status: str, severity: str, mission: Mission,
                        now: datetime) -> FalloutRecord:
        member.apply_mission_fallout(status, {"mission_id": mission.id, "severity": severity})
        logger.info(f"{member.name} {status} after {mission.id} ({severity})")
        return FalloutRecord(
            crew_id=member.id,
            crew_name=member.name,
            status=status,
            severity=severity,
            source_mission_id=mission.id,
            timestamp=now,
        )

    # -------------------------------------------------------------------------
    # Shared consequences
    # -------------------------------------------------------------------------

    def settle_debts(self, gross_payout: int) -> list[DebtSettlement]:
        """Pay pending debts oldest first out of a payout."""
        available = max(0, int(gross_payout))
        settlements = []
        for debt in list(self.state.pending_debts):
            if available <= 0:
                break
            paid = min(debt.remaining, available)
            debt.remaining -= paid
            available -= paid
            settlements.append(DebtSettlement(debt.id, paid, debt.remaining))
            if debt.remaining <= 0:
                self.state.pending_debts.remove(debt)
                logger.info(f"Debt {debt.id} cleared")
        return settlements

    def _apply_vehicle_outcome(self, mission: Mission, vehicle: Optional[Vehicle],
                               success: bool) -> Optional[VehicleReport]:
        report = None
        if vehicle is not None:
            condition_before, heat_before = vehicle.condition, vehicle.heat
            impact = mission.vehicle_impact
            if impact is not None:
                vehicle.apply_wear(impact.wear_on_success if success else impact.wear_on_failure)
                vehicle.modify_heat(impact.heat_gain_on_success if success else impact.heat_gain_on_failure)
            vehicle.set_status("idle")
            report = VehicleReport(
                outcome="wear",
                mission_id=mission.id,
                vehicle_id=vehicle.id,
                model=vehicle.model,
                condition_before=condition_before,
                condition_after=vehicle.condition,
                heat_before=heat_before,
                heat_after=vehicle.heat,
                garage_size=len(self.state.garage),
                summary=(
                    f"{vehicle.model} condition {condition_before:.0%} -> {vehicle.condition:.0%}, "
                    f"heat {heat_before:.1f} -> {vehicle.heat:.1f}."
                ),
            )

        reward = mission.vehicle_reward
        if not success or reward is None:
            return report

        report = report or VehicleReport(outcome="wear", mission_id=mission.id)
        report.reward_model = reward.model
        report.storage_capacity = self.state.get_storage_capacity()
        if self.state.has_garage_space():
            stolen = reward.build()
            self.state.garage.append(stolen)
            report.outcome = "stored"
            report.reward_vehicle_id = stolen.id
            report.summary = f"{reward.model} stashed in the garage. {report.summary}".strip()
        else:
            report.outcome = "storage-blocked"
            report.summary = (
                f"No room for the {reward.model}; the safehouse holds {report.storage_capacity} cars. "
                f"{report.summary}"
            ).strip()
            logger.info(f"Reward vehicle {reward.model} blocked by storage capacity")
        report.garage_size = len(self.state.garage)
        return report

    def _apply_storyline(self, mission: Mission, outcome: str, entry: MissionLogEntry) -> None:
        if mission.storyline is None:
            return
        member = self.state.find_crew(mission.storyline.crew_id)
        if member is None:
            return
        result = apply_crew_storyline_outcome(member, mission.storyline.step_id, outcome)
        if result is not None:
            entry.storyline_summary = result.summary

    def _apply_district_effects(self, mission: Mission, success: bool) -> None:
        district = self.state.city.find_district(mission.district_id)
        if district is not None:
            heat_pressure = max(0.0, mission.heat) * DISTRICT.PRESSURE_PER_MISSION_HEAT
            if success:
                district.adjust_influence(DISTRICT.SUCCESS_INFLUENCE_GAIN)
                district.adjust_intel_level(DISTRICT.SUCCESS_INTEL_GAIN)
                district.adjust_crackdown_pressure(heat_pressure)
            else:
                district.adjust_influence(-DISTRICT.FAILURE_INFLUENCE_LOSS)
                district.adjust_crackdown_pressure(DISTRICT.FAILURE_PRESSURE_GAIN + heat_pressure)

        if success and mission.category == "crackdown-operation":
            self.state.city.adjust_all_crackdown_pressure(-DISTRICT.CRACKDOWN_OPERATION_PRESSURE_RELIEF)
