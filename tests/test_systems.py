"""Tests for heat, economy, crackdown policy and notoriety."""

import pytest

from carthief.config.settings import EngineConfig
from carthief.missions.contracts import build_fallout_followup
from carthief.missions.models import ContractTemplate, FalloutRecord, Mission
from carthief.systems.crackdown import CrackdownPolicyService, TierChange
from carthief.systems.economy import EconomySystem
from carthief.systems.heat import HeatSystem, execute_heat_mitigation
from carthief.systems.notoriety import NotorietyService

from conftest import ScriptedRandom, make_member


@pytest.fixture
def heat(state, clock):
    return HeatSystem(state, EngineConfig(), clock)


@pytest.fixture
def economy(state, clock):
    return EconomySystem(state, EngineConfig(), clock)


class TestHeatSystem:
    """Heat tiers, decay and mitigation."""

    def test_tiers(self, heat):
        assert heat.get_tier_for_heat(2.9).name == "calm"
        assert heat.get_tier_for_heat(3.0).name == "alert"
        assert heat.get_tier_for_heat(7.0).name == "lockdown"

    def test_increase_is_clamped(self, heat, state):
        heat.increase(25)
        assert state.heat == 10.0
        assert state.heat_tier == "lockdown"

    def test_decay(self, heat, state):
        state.heat = 1.0
        heat.update(10)
        assert state.heat == pytest.approx(0.5)
        heat.update(100)
        assert state.heat == 0.0

    def test_mitigation_floor_and_log(self, heat, state, clock):
        state.heat = 2.0
        record = heat.apply_mitigation(5.0, label="Respray")

        assert state.heat == 0.0
        assert record.reduction_applied == pytest.approx(2.0)
        assert record.heat_delta == pytest.approx(-2.0)
        assert record.timestamp == clock()
        assert state.heat_mitigation_log[0] is record

    def test_mitigation_log_limit(self, state, clock):
        heat = HeatSystem(state, EngineConfig(mitigation_log_limit=2), clock)
        state.heat = 5.0
        for _ in range(3):
            heat.apply_mitigation(0.5)
        assert len(state.heat_mitigation_log) == 2


class TestExecuteHeatMitigation:
    """Paying to lower heat."""

    def test_paid_mitigation(self, heat, economy, state):
        state.heat = 4.0
        calls = []
        result = execute_heat_mitigation(
            state, heat, economy, reduction=1.5, cost=2000, label="Bribe",
            on_tier_change=lambda: calls.append(True),
        )

        assert result.success
        assert state.funds == 8000
        assert state.heat == pytest.approx(2.5)
        assert state.heat_mitigation_log[0].funds_spent == 2000
        assert calls == [True]

    def test_refusals(self, heat, economy, state):
        assert not execute_heat_mitigation(state, heat, economy, reduction=1.0, cost=100)
        state.heat = 4.0
        assert not execute_heat_mitigation(state, heat, economy, reduction=0, cost=100)

        result = execute_heat_mitigation(state, heat, economy, reduction=1.0, cost=50000, label="Bribe")
        assert not result
        assert "Need $50,000" in result.reason
        assert state.funds == 10000


class TestEconomy:
    """Daily expenses and crew rest."""

    def test_day_closes_after_day_length(self, economy, state):
        state.crew = [make_member("Ace", upkeep=750, fatigue=50)]

        assert economy.update(44) == []
        reports = economy.update(2)

        assert len(reports) == 1
        assert reports[0].total == 1250
        assert state.funds == 8750
        assert state.day == 2
        assert state.crew[0].fatigue == 15
        assert economy.last_expense_report is reports[0]

    def test_multiple_days(self, economy, state):
        assert len(economy.update(90)) == 2
        assert state.funds == 9000

    def test_projected_expenses(self, economy, state):
        state.crew = [make_member("A", upkeep=600), make_member("B", upkeep=-50)]
        assert economy.get_projected_daily_expenses() == 1100


class TestCrackdownPolicy:
    """Tier policy, restrictions and transitions."""

    @pytest.fixture
    def crackdown(self, heat):
        return CrackdownPolicyService(heat, EngineConfig())

    def test_policies(self, crackdown):
        calm = crackdown.get_policy("calm")
        assert calm.max_mission_heat is None
        assert calm.failure_heat_multiplier == 2.0

        alert = crackdown.get_policy("alert")
        assert alert.max_mission_heat == 2.0
        assert alert.failure_heat_multiplier == 3.0

    def test_restrictions(self, crackdown, state):
        state.heat = 3.5
        hot = Mission(id="hot", name="Hot", heat=2.5)
        cool = Mission(id="cool", name="Cool", heat=2.0)
        personal = Mission(id="favor", name="Favor", heat=4.0, category="crew-loyalty")

        assert crackdown.apply_restrictions([hot, cool, personal]) == 1
        assert hot.restricted
        assert "caps mission heat at 2" in hot.restriction_reason
        assert not cool.restricted
        assert not personal.restricted

    def test_lockdown_cap(self, crackdown, state):
        state.heat = 7.5
        quiet = Mission(id="quiet", name="Quiet", heat=1.0, difficulty=1)
        loud = Mission(id="loud", name="Loud", heat=3.0)

        crackdown.apply_restrictions([quiet, loud])

        assert not quiet.restricted
        assert loud.restricted
        assert "lockdown" in loud.restriction_reason

    def test_restrictions_lift_when_calm(self, crackdown, state):
        state.heat = 3.5
        hot = Mission(id="hot", name="Hot", heat=2.5)
        crackdown.apply_restrictions([hot])
        state.heat = 1.0
        crackdown.apply_restrictions([hot])
        assert not hot.restricted
        assert hot.restriction_reason is None

    def test_sync_tier_reports_once(self, crackdown, state):
        assert crackdown.sync_tier() is None
        state.heat = 7.5
        change = crackdown.sync_tier()

        assert change == TierChange("calm", "lockdown")
        assert change.pressure_delta == 2
        assert change.escalated
        assert crackdown.sync_tier() is None

    def test_change_summary(self):
        assert TierChange("lockdown", "alert").summary == "Crackdown eased from lockdown to alert."


class TestNotoriety:
    """Notoriety ladder and drift."""

    @pytest.fixture
    def notoriety(self, state):
        return NotorietyService(state)

    def test_ladder(self, notoriety, state):
        assert notoriety.get_notoriety_level(9.9).id == "unknown"
        assert notoriety.get_notoriety_level(10).id == "known"
        assert notoriety.get_next_notoriety_level().id == "known"

        state.player.notoriety = 80
        assert notoriety.get_notoriety_level().id == "legendary"
        assert notoriety.get_next_notoriety_level() is None

    def test_clamped(self, notoriety):
        assert notoriety.adjust_notoriety(150).after == 100.0
        assert notoriety.adjust_notoriety(-500).after == 0.0

    def test_mission_deltas(self, notoriety):
        job = Mission(id="job", name="Job", heat=1.0, difficulty=1, payout=10000)
        assert notoriety.compute_mission_delta(job, "success") == pytest.approx(1.9)
        assert notoriety.compute_mission_delta(job, "failure") == pytest.approx(0.7)

        op = Mission(id="op", name="Op", heat=1.0, difficulty=2, category="crackdown-operation")
        assert notoriety.compute_mission_delta(op, "success") == pytest.approx(-2.6)

    def test_outcome_spills_into_district(self, notoriety, state):
        job = Mission(id="job", name="Job", heat=1.0, difficulty=1, payout=10000, district_id="downtown")
        change = notoriety.apply_mission_outcome(job, "success")

        assert "Notoriety +1.9" in change.summary
        assert state.city.find_district("downtown").crackdown_pressure == pytest.approx(0.475)

    def test_crackdown_shift(self, notoriety, state):
        state.player.notoriety = 5.0
        assert notoriety.apply_crackdown_shift(TierChange("calm", "lockdown")).after == pytest.approx(8.0)
        assert notoriety.apply_crackdown_shift(TierChange("lockdown", "alert")).after == pytest.approx(6.5)
        assert notoriety.apply_crackdown_shift(TierChange("alert", "alert")) is None


class TestCrackdownInEngine:
    """Tier changes seen through the mission engine."""

    @pytest.fixture
    def hot_template(self):
        return ContractTemplate(id="hot-job", name="Hot Job", difficulty=1, payout=10000,
                                heat=2.0, duration=30, success_chance=0.7)

    def test_failure_escalates_to_lockdown(self, board_mission, state, hot_template):
        state.heat = 3.4
        engine, mission = board_mission(template=hot_template, rng=ScriptedRandom([0.9, 0.9]))

        engine.start_mission("hot-job", ["crew-ace"])
        engine.resolve_mission("hot-job", "failure")

        assert state.heat == pytest.approx(9.4)
        assert state.heat_tier == "lockdown"
        # Tier shift +1.5, then the failure itself +1.1
        assert engine.get_notoriety() == pytest.approx(2.6)

        board = {m.id: m for m in state.available_missions}
        assert "lockdown-blackout-grid" in board
        assert "lockdown-safehouse-defense" in board
        assert board["hot-job"].restricted
        assert not board["lockdown-blackout-grid"].restricted

    def test_tick_lifts_stale_restrictions(self, board_mission, state):
        state.heat = 7.5
        loud = ContractTemplate(id="loud", name="Loud", heat=3.0, duration=30)
        engine, mission = board_mission(template=loud)
        engine.sync_heat_tier()
        assert "Lockdown" in mission.restriction_reason

        engine.heat.apply_mitigation(7.5, label="Cleanup")
        engine.update(1.0)

        assert engine.crackdown.get_current_tier() == "calm"
        assert not mission.restricted
        assert mission.restriction_reason is None

    def test_restricted_mission_refused(self, board_mission, state, hot_template):
        state.heat = 7.5
        engine, _ = board_mission(template=hot_template)
        assert engine.start_mission("hot-job", ["crew-ace"]) is None

    def test_recovery_runs_under_lockdown(self, board_mission, state):
        state.heat = 7.5
        ace = make_member("Ace", crew_id="crew-ace")
        bo = make_member("Bo", crew_id="crew-bo")
        ace.apply_mission_fallout("captured")
        rescue = build_fallout_followup(FalloutRecord("crew-ace", "Ace", "captured", "serious", "job"))
        engine, _ = board_mission(template=rescue, crew=[ace, bo])

        assert engine.start_mission("rescue-crew-ace", ["crew-bo"]) is not None
