"""Mission lifecycle engine.

Owns the board of available missions, the single active mission and its
progress, in-mission decisions, and hands finished missions to the
resolution engine.
"""

import random
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Optional

from .contracts import (
    DEFAULT_CONTRACT_TEMPLATES,
    build_fallout_followup,
    generate_contracts_from_districts,
    get_crackdown_operation_templates,
)
from .events import EventDeckBuilder, build_mission_event_deck
from .models import ContractTemplate, EventHistoryEntry, Mission, PendingDebt, PendingDecision, PendingResolution
from .modifiers import AssignmentImpact, compute_impact
from .resolution import ResolutionEngine
from .status import MissionStatus, transition_mission
from .storylines import get_available_crew_storyline_missions
from ..catalogs.vehicle_mods import get_vehicle_mod, get_vehicle_mod_recipe
from ..config.settings import EngineConfig
from ..constants import MISSION, VEHICLE
from ..entities.crew import CrewMember
from ..entities.vehicle import Vehicle
from ..game.state import ActionResult, GameState
from ..systems.crackdown import CrackdownPolicyService, TierChange
from ..systems.economy import EconomySystem
from ..systems.heat import HeatSystem
from ..systems.notoriety import NotorietyLevel, NotorietyService
from ..utils.helpers import clamp, format_money, to_finite
from ..utils.logging import get_logger


logger = get_logger("missions.engine")

OUTCOMES = ("success", "failure")


def _utc_now() -> datetime:
    """Get current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


class MissionSystem:
    """Runs missions from the board through resolution.

    Invalid requests are refused with None (or a failed ActionResult for
    garage operations) and a log line; nothing here raises for bad input.
    """

    def __init__(
        self,
        state: GameState,
        heat: Optional[HeatSystem] = None,
        economy: Optional[EconomySystem] = None,
        crackdown: Optional[CrackdownPolicyService] = None,
        notoriety: Optional[NotorietyService] = None,
        config: Optional[EngineConfig] = None,
        rng: Optional[random.Random] = None,
        clock: Callable[[], datetime] = _utc_now,
        event_deck_builder: EventDeckBuilder = build_mission_event_deck,
        repository: Any = None,
    ):
        """Initialize the mission system.

        Args:
            state: Shared game state
            heat: Heat system (built from state if None)
            economy: Economy system (built from state if None)
            crackdown: Crackdown policy service (built from heat if None)
            notoriety: Notoriety service (built from state if None)
            config: Engine configuration (defaults if None)
            rng: Random source for outcome and fallout rolls
            clock: Timestamp source
            event_deck_builder: Builds the event deck for a started mission
            repository: Optional mission history store with record_mission()
        """
        self.state = state
        self.config = config or EngineConfig()
        self.rng = rng or random.Random(self.config.seed)
        self._clock = clock
        self.heat = heat or HeatSystem(state, self.config, clock)
        self.economy = economy or EconomySystem(state, self.config, clock)
        self.crackdown = crackdown or CrackdownPolicyService(self.heat, self.config)
        self.notoriety = notoriety or NotorietyService(state)
        self.event_deck_builder = event_deck_builder
        self.repository = repository

        self.templates: dict[str, ContractTemplate] = {}
        self.contract_pool: list[ContractTemplate] = []

        self.resolution = ResolutionEngine(
            state=state,
            heat=self.heat,
            economy=self.economy,
            crackdown=self.crackdown,
            notoriety=self.notoriety,
            config=self.config,
            rng=self.rng,
            clock=clock,
            on_tier_sync=self.sync_heat_tier,
        )

    # =========================================================================
    # Templates and the board
    # =========================================================================

    def register_template(self, template: ContractTemplate) -> None:
        """Add (or replace) a template in the registry."""
        self.templates[template.id] = template

    def create_mission_from_template(self, template: ContractTemplate) -> Mission:
        """Instantiate a template under the current notoriety and tier."""
        self.register_template(template)
        mission = Mission.from_template(
            template,
            notoriety=self.notoriety.get_notoriety_level(),
            base_success_chance=self.config.base_success_chance,
        )
        mission.crackdown_tier = template.crackdown_tier or self.crackdown.get_current_tier()
        return mission

    def generate_initial_contracts(self) -> list[Mission]:
        """Seed the board with the stock contracts, then top it up.

        Returns:
            The available missions
        """
        self.state.available_missions = [
            self.create_mission_from_template(template) for template in DEFAULT_CONTRACT_TEMPLATES
        ]
        self.contract_pool = generate_contracts_from_districts(self.state.city.districts)
        self._refill_available_missions()

        tier = self.crackdown.get_current_tier()
        self._queue_front(get_crackdown_operation_templates(tier))
        self.crackdown.apply_restrictions(self.state.available_missions)

        logger.info(f"Generated {len(self.state.available_missions)} initial contracts")
        return self.state.available_missions

    def _board_ids(self) -> set[str]:
        return {mission.id for mission in self.state.available_missions}

    def _queue_front(self, templates: Iterable[ContractTemplate], priority: bool = False) -> list[Mission]:
        """Insert fresh missions ahead of the board, keeping their order."""
        queued = []
        for template in reversed(list(templates)):
            self.state.available_missions = [
                m for m in self.state.available_missions if m.id != template.id or not m.is_available
            ]
            if template.id in self._board_ids():
                continue
            mission = self.create_mission_from_template(template)
            mission.priority = priority or mission.priority
            self.state.available_missions.insert(0, mission)
            queued.insert(0, mission)
        return queued

    def _refill_available_missions(self) -> None:
        """Top the board up to the configured size from the contract pool."""
        present = self._board_ids()
        if not self.contract_pool:
            candidates = (
                generate_contracts_from_districts(self.state.city.districts)
                + get_crackdown_operation_templates(self.crackdown.get_current_tier())
                + get_available_crew_storyline_missions(self.state.crew)
            )
            self.contract_pool = [t for t in candidates if t.id not in present]

        def available_count() -> int:
            return sum(1 for mission in self.state.available_missions if mission.is_available)

        while self.contract_pool and available_count() < self.config.max_available:
            template = self.contract_pool.pop(0)
            if template.id in present:
                continue
            self.state.available_missions.append(self.create_mission_from_template(template))
            present.add(template.id)

    def _respawn(self, mission: Mission) -> None:
        """Swap a completed mission for a fresh instance, or drop it."""
        board = self.state.available_missions
        index = next((i for i, m in enumerate(board) if m is mission), None)
        template = self.templates.get(mission.id)
        if index is None:
            return
        if template is not None and template.respawn:
            board[index] = self.create_mission_from_template(template)
        else:
            del board[index]

    # =========================================================================
    # Crackdown / notoriety
    # =========================================================================

    def sync_heat_tier(self) -> Optional[TierChange]:
        """Re-read the crackdown tier and react to any transition.

        Restrictions are always recomputed. On a transition, notoriety is
        nudged by the pressure change and the new tier's crackdown
        operations are queued at the front of the board.
        """
        change = self.crackdown.sync_tier()
        if change is not None:
            self.notoriety.apply_crackdown_shift(change)
            self._queue_front(get_crackdown_operation_templates(change.current))
        self.crackdown.apply_restrictions(self.state.available_missions)
        return change

    def get_notoriety(self) -> float:
        return self.notoriety.get_notoriety()

    def get_notoriety_level(self) -> NotorietyLevel:
        return self.notoriety.get_notoriety_level()

    def get_next_notoriety_level(self) -> Optional[NotorietyLevel]:
        return self.notoriety.get_next_notoriety_level()

    # =========================================================================
    # Assignment
    # =========================================================================

    def _collect_crew(self, crew_ids: Iterable[str]) -> Optional[list[CrewMember]]:
        crew = []
        for crew_id in dict.fromkeys(crew_ids):
            member = self.state.find_crew(crew_id)
            if member is None:
                logger.debug(f"Unknown crew member {crew_id}")
                return None
            crew.append(member)
        return crew

    def _pick_vehicle(self, vehicle_id: Optional[str]) -> tuple[bool, Optional[Vehicle]]:
        """Resolve the requested vehicle, or auto-select an idle one.

        Returns:
            (ok, vehicle); ok is False when an explicit request is unusable
        """
        if vehicle_id:
            vehicle = self.state.find_vehicle(vehicle_id)
            if vehicle is None or vehicle.in_use or not vehicle.is_operational():
                return False, None
            return True, vehicle
        return True, next((v for v in self.state.garage if v.is_available()), None)

    def preview_crew_assignment(self, mission_id: str, crew_ids: Iterable[str] = (),
                                vehicle_id: Optional[str] = None) -> Optional[AssignmentImpact]:
        """Compute an assignment's impact without changing anything."""
        mission = self.state.find_mission(mission_id)
        if mission is None and self.state.active_mission and self.state.active_mission.id == mission_id:
            mission = self.state.active_mission
        if mission is None:
            return None
        crew = [m for m in (self.state.find_crew(cid) for cid in dict.fromkeys(crew_ids)) if m is not None]
        if vehicle_id:
            vehicle = self.state.find_vehicle(vehicle_id)
        else:
            vehicle = self._pick_vehicle(None)[1]
        return compute_impact(mission, crew, vehicle, self.state.player)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def start_mission(self, mission_id: str, crew_ids: Iterable[str] = (),
                      vehicle_id: Optional[str] = None) -> Optional[Mission]:
        """Start a mission from the board.

        Args:
            mission_id: Mission to start
            crew_ids: Crew to assign (all must be mission-ready)
            vehicle_id: Vehicle to assign; an idle operational car is picked if None

        Returns:
            The started mission, or None if the request was refused
        """
        self.sync_heat_tier()

        active = self.state.active_mission
        if active is not None and not active.is_completed:
            logger.debug(f"Cannot start {mission_id}: {active.id} is still running")
            return None

        mission = self.state.find_mission(mission_id)
        if mission is None or not mission.is_available:
            logger.debug(f"Cannot start {mission_id}: not on the board")
            return None
        if mission.restricted:
            logger.info(f"Cannot start {mission_id}: {mission.restriction_reason}")
            return None

        crew = self._collect_crew(crew_ids)
        if crew is None:
            return None
        not_ready = [member.name for member in crew if not member.is_mission_ready()]
        if not_ready:
            logger.debug(f"Cannot start {mission_id}: crew not ready ({', '.join(not_ready)})")
            return None

        ok, vehicle = self._pick_vehicle(vehicle_id)
        if not ok:
            logger.debug(f"Cannot start {mission_id}: vehicle {vehicle_id} unavailable")
            return None

        impact = compute_impact(mission, crew, vehicle, self.state.player)
        now = self._clock()

        mission.duration = impact.adjusted_duration
        mission.payout = impact.adjusted_payout
        mission.success_chance = impact.adjusted_success_chance
        mission.heat = impact.adjusted_heat
        mission.assigned_crew_ids = [member.id for member in crew]
        mission.assigned_vehicle_id = vehicle.id if vehicle else None
        mission.crew_snapshots = [member.snapshot() for member in crew]
        mission.vehicle_snapshot = vehicle.snapshot() if vehicle else None
        mission.assignment_summaries = list(impact.summaries)
        mission.vehicle_impact = impact.vehicle_impact
        mission.crackdown_tier = self.crackdown.get_current_tier()
        mission.elapsed_time = 0.0
        mission.progress = 0.0
        mission.started_at = now

        for member in crew:
            member.begin_mission()
        if vehicle is not None:
            vehicle.set_status("in-mission")

        transition_mission(mission, MissionStatus.IN_PROGRESS, "start", now)
        mission.event_deck = list(self.event_deck_builder(mission) or [])
        self.state.active_mission = mission

        logger.info(
            f"Mission {mission.id} started with {len(crew)} crew"
            f"{' in ' + vehicle.model if vehicle else ''}: "
            f"{mission.duration}s, {mission.success_chance:.0%} odds"
        )
        self._advance_events(mission)
        return mission

    def _advance_events(self, mission: Mission) -> None:
        """Raise the next due event as a pending decision."""
        if mission.pending_decision is not None or mission.status != MissionStatus.IN_PROGRESS:
            return
        event = next(
            (
                e for e in sorted(mission.event_deck, key=lambda e: e.trigger_progress)
                if not e.triggered and not e.resolved and e.trigger_progress <= mission.progress
            ),
            None,
        )
        if event is None:
            return
        event.triggered = True
        mission.pending_decision = PendingDecision(
            event_id=event.id,
            label=event.label,
            description=event.description,
            choices=list(event.choices),
            triggered_at_progress=mission.progress,
        )
        transition_mission(mission, MissionStatus.DECISION_REQUIRED, f"event {event.id}", self._clock())
        logger.info(f"Mission {mission.id} needs a decision: {event.label}")

    def choose_mission_event_option(self, event_id: str, choice_id: str) -> Optional[EventHistoryEntry]:
        """Answer the pending decision of the active mission.

        Effects apply in a fixed order: payout multiplier, payout delta,
        heat multiplier, heat delta, success delta, duration multiplier,
        duration delta.

        Returns:
            The recorded history entry, or None if the choice was refused
        """
        self.sync_heat_tier()

        mission = self.state.active_mission
        if (
            mission is None
            or mission.status != MissionStatus.DECISION_REQUIRED
            or mission.pending_decision is None
            or mission.pending_decision.event_id != event_id
        ):
            logger.debug(f"No pending decision {event_id}")
            return None

        event = mission.find_event(event_id)
        choice = event.find_choice(choice_id) if event else None
        if event is None or choice is None:
            logger.debug(f"Unknown choice {choice_id} for {event_id}")
            return None

        effects = choice.effects
        payout = float(mission.payout)
        if effects.payout_multiplier is not None:
            payout *= to_finite(effects.payout_multiplier, 1.0)
        if effects.payout_delta is not None:
            payout += to_finite(effects.payout_delta, 0.0)
        mission.payout = max(0, round(payout))

        heat = mission.heat
        if effects.heat_multiplier is not None:
            heat *= to_finite(effects.heat_multiplier, 1.0)
        if effects.heat_delta is not None:
            heat += to_finite(effects.heat_delta, 0.0)
        mission.heat = max(0.0, heat)

        if effects.success_delta is not None:
            mission.success_chance = clamp(
                mission.success_chance + to_finite(effects.success_delta, 0.0),
                MISSION.MIN_SUCCESS_CHANCE,
                MISSION.MAX_SUCCESS_CHANCE,
            )

        duration = float(mission.duration)
        if effects.duration_multiplier is not None:
            duration *= to_finite(effects.duration_multiplier, 1.0)
        if effects.duration_delta is not None:
            duration += to_finite(effects.duration_delta, 0.0)
        mission.duration = max(MISSION.MIN_DURATION, round(duration))

        if effects.crew_loyalty_delta:
            for crew_id in mission.assigned_crew_ids:
                member = self.state.find_crew(crew_id)
                if member is not None:
                    member.adjust_loyalty(effects.crew_loyalty_delta)

        debt_id = None
        if effects.future_debt is not None and effects.future_debt.amount > 0:
            debt = PendingDebt(
                id=f"debt-{uuid.uuid4().hex[:8]}",
                amount=int(effects.future_debt.amount),
                remaining=int(effects.future_debt.amount),
                source_event_id=event.id,
                source_choice_id=choice.id,
                notes=effects.future_debt.notes,
                created_at=self._clock(),
            )
            self.state.pending_debts.append(debt)
            debt_id = debt.id
            logger.info(f"Debt {debt.id} of {format_money(debt.amount)} taken on {mission.id}")

        mission.progress = max(mission.progress, min(1.0, mission.elapsed_time / mission.duration))
        event.resolved = True
        mission.pending_decision = None

        entry = EventHistoryEntry(
            event_id=event.id,
            event_label=event.label,
            choice_id=choice.id,
            choice_label=choice.label,
            narrative=choice.narrative,
            effects=effects,
            progress=mission.progress,
            payout_after=mission.payout,
            heat_after=mission.heat,
            success_chance_after=mission.success_chance,
            duration_after=mission.duration,
            debt_id=debt_id,
            timestamp=self._clock(),
        )
        mission.event_history.append(entry)
        transition_mission(mission, MissionStatus.IN_PROGRESS, f"choice {choice.id}", entry.timestamp)
        logger.info(f"Mission {mission.id}: {event.label} -> {choice.label}")

        self._advance_events(mission)
        self._check_completion(mission)
        return entry

    def update(self, delta: float) -> None:
        """Advance the active mission by elapsed seconds."""
        self.sync_heat_tier()
        mission = self.state.active_mission
        if mission is None or not mission.is_active:
            return
        step = max(0.0, to_finite(delta, 0.0))
        mission.elapsed_time += step

        if mission.status != MissionStatus.IN_PROGRESS:
            return

        mission.progress = max(mission.progress, min(1.0, mission.elapsed_time / mission.duration))
        self._advance_events(mission)
        self._check_completion(mission)

    def _check_completion(self, mission: Mission) -> None:
        if mission.status != MissionStatus.IN_PROGRESS or mission.pending_decision is not None:
            return
        if mission.elapsed_time < mission.duration:
            return

        mission.progress = 1.0
        transition_mission(mission, MissionStatus.AWAITING_RESOLUTION, "timer", self._clock())
        roll = self.rng.random()
        chance = mission.success_chance
        mission.pending_resolution = PendingResolution(
            roll=roll,
            chance=chance,
            outcome="success" if roll <= chance else "failure",
        )
        logger.info(f"Mission {mission.id} awaiting resolution ({mission.pending_resolution.outcome})")

        if self.config.auto_resolve:
            self.resolve_mission(mission.id)

    def resolve_mission(self, mission_id: str, outcome: Optional[str] = None) -> Optional[Mission]:
        """Resolve the active mission.

        Success is only accepted once the timer has run out. Failure may be
        forced early from any in-mission state.

        Args:
            mission_id: Mission to resolve (must be the active mission)
            outcome: "success", "failure", or None to use the drawn outcome

        Returns:
            The completed mission, or None if the request was refused
        """
        self.sync_heat_tier()

        mission = self.state.active_mission
        if mission is None or mission.id != mission_id or not mission.is_active:
            logger.debug(f"Cannot resolve {mission_id}: not the active mission")
            return None
        if outcome is not None and outcome not in OUTCOMES:
            logger.warning(f"Unknown mission outcome {outcome!r}")
            return None

        awaiting = mission.status == MissionStatus.AWAITING_RESOLUTION
        if outcome == "success" and not awaiting:
            logger.debug(f"Cannot resolve {mission_id} as success before the timer ends")
            return None
        if outcome is None and not awaiting:
            logger.debug(f"Cannot resolve {mission_id} early without an outcome")
            return None

        pending = mission.pending_resolution
        if awaiting and pending is None:
            roll = self.rng.random()
            pending = PendingResolution(roll, mission.success_chance,
                                        "success" if roll <= mission.success_chance else "failure")
        if outcome is None:
            outcome = pending.outcome
        roll = pending.roll if pending is not None and pending.outcome == outcome else None
        chance = pending.chance if pending is not None else mission.success_chance

        now = self._clock()
        transition_mission(mission, MissionStatus.COMPLETED, f"resolve {outcome}", now)
        mission.outcome = outcome
        mission.completed_at = now

        entry = self.resolution.resolve(mission, outcome, roll, chance)

        follow_ups = [
            template for template in (build_fallout_followup(record) for record in entry.fallout)
            if template is not None
        ]
        for mission_follow_up in self._queue_front(follow_ups, priority=True):
            entry.follow_ups.append(mission_follow_up.id)

        mission.resolution_details = entry
        mission.clear_assignment()
        self.state.active_mission = None

        self._respawn(mission)
        self._refill_available_missions()
        self.crackdown.apply_restrictions(self.state.available_missions)

        if self.repository is not None:
            self.repository.record_mission(entry)
        return mission

    # =========================================================================
    # Garage
    # =========================================================================

    def _garage_vehicle(self, vehicle_id: str) -> tuple[Optional[Vehicle], Optional[ActionResult]]:
        vehicle = self.state.find_vehicle(vehicle_id)
        if vehicle is None:
            return None, ActionResult(False, "Vehicle not found.")
        if vehicle.in_use:
            return None, ActionResult(False, f"{vehicle.model} is out on a job.")
        return vehicle, None

    def repair_vehicle(self, vehicle_id: str) -> ActionResult:
        """Restore a vehicle to full condition."""
        vehicle, refusal = self._garage_vehicle(vehicle_id)
        if refusal is not None:
            return refusal
        missing = 1.0 - vehicle.condition
        if missing <= 0:
            return ActionResult(False, f"{vehicle.model} is already in top shape.")
        cost = round(missing * VEHICLE.REPAIR_COST_PER_CONDITION)
        if cost > self.state.funds:
            return ActionResult(False, f"Need {format_money(cost)} for repairs.")

        self.economy.adjust_funds(-cost)
        vehicle.condition = 1.0
        logger.info(f"Repaired {vehicle.model} for {format_money(cost)}")
        return ActionResult(True, f"{vehicle.model} repaired.", {"cost": cost})

    def purge_vehicle_heat(self, vehicle_id: str) -> ActionResult:
        """Clear a vehicle's heat rating (new plates, respray)."""
        vehicle, refusal = self._garage_vehicle(vehicle_id)
        if refusal is not None:
            return refusal
        if vehicle.heat <= 0:
            return ActionResult(False, f"{vehicle.model} is already clean.")
        cost = round(vehicle.heat * VEHICLE.HEAT_PURGE_COST_PER_POINT)
        if cost > self.state.funds:
            return ActionResult(False, f"Need {format_money(cost)} to purge heat.")

        self.economy.adjust_funds(-cost)
        purged = vehicle.heat
        vehicle.modify_heat(-purged)
        logger.info(f"Purged {purged:.1f} heat from {vehicle.model} for {format_money(cost)}")
        return ActionResult(True, f"{vehicle.model} heat purged.", {"cost": cost, "heat_removed": purged})

    def install_vehicle_mod(self, vehicle_id: str, mod_id: str) -> ActionResult:
        """Fabricate and install a mod, paying parts and funds."""
        vehicle, refusal = self._garage_vehicle(vehicle_id)
        if refusal is not None:
            return refusal
        mod = get_vehicle_mod(mod_id)
        recipe = get_vehicle_mod_recipe(mod_id)
        if mod is None or recipe is None:
            return ActionResult(False, f"Unknown mod {mod_id}.")
        if vehicle.has_mod(mod_id):
            return ActionResult(False, f"{mod.label} is already installed.")
        if recipe.parts_cost > self.state.parts:
            return ActionResult(False, f"Need {recipe.parts_cost} parts for {mod.label}.")
        if recipe.funds_cost > self.state.funds:
            return ActionResult(False, f"Need {format_money(recipe.funds_cost)} for {mod.label}.")

        self.state.parts -= recipe.parts_cost
        self.economy.adjust_funds(-recipe.funds_cost)
        vehicle.install_mod(mod_id)
        logger.info(f"Installed {mod.label} on {vehicle.model}")
        return ActionResult(
            True,
            f"{mod.label} installed on {vehicle.model}.",
            {"parts": recipe.parts_cost, "funds": recipe.funds_cost},
        )

    def sell_vehicle(self, vehicle_id: str) -> ActionResult:
        """Sell a vehicle to a fence."""
        vehicle, refusal = self._garage_vehicle(vehicle_id)
        if refusal is not None:
            return refusal
        value = vehicle.get_resale_value()
        self.state.garage.remove(vehicle)
        self.economy.adjust_funds(value)
        logger.info(f"Sold {vehicle.model} for {format_money(value)}")
        return ActionResult(True, f"Sold {vehicle.model} for {format_money(value)}.", {"value": value})

    def scrap_vehicle(self, vehicle_id: str) -> ActionResult:
        """Break a vehicle down for parts."""
        vehicle, refusal = self._garage_vehicle(vehicle_id)
        if refusal is not None:
            return refusal
        parts = vehicle.get_scrap_parts()
        self.state.garage.remove(vehicle)
        self.state.parts += parts
        logger.info(f"Scrapped {vehicle.model} for {parts} parts")
        return ActionResult(True, f"Scrapped {vehicle.model} for {parts} parts.", {"parts": parts})
