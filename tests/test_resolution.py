"""Tests for mission resolution, fallout and debts."""

import pytest

from carthief.config.settings import EngineConfig
from carthief.entities.crew import CREW_BACKGROUNDS, CrewStatus
from carthief.catalogs.crew_perks import PerkId
from carthief.missions.contracts import build_fallout_followup, get_crackdown_operation_templates
from carthief.missions.models import ContractTemplate, FalloutRecord, PendingDebt
from carthief.missions.resolution import (
    capture_chance,
    failure_severity,
    injury_chance,
    severity_label,
)
from carthief.missions.storylines import build_storyline_template, get_next_eligible_step

from conftest import ScriptedRandom, make_member


class TestSeverity:
    """Failure severity and fallout odds."""

    def test_forced_failure_is_middling(self):
        assert failure_severity(None, 0.7) == 0.5

    def test_roll_scaling(self):
        assert failure_severity(0.85, 0.7) == pytest.approx(0.5)
        assert failure_severity(1.0, 0.7) == pytest.approx(1.0)
        assert failure_severity(0.5, 0.7) == 0.0

    def test_labels(self):
        assert severity_label(0.1) == "minor"
        assert severity_label(0.5) == "serious"
        assert severity_label(0.9) == "critical"

    def test_odds_are_capped(self):
        assert capture_chance(0.5, 1) == pytest.approx(0.205)
        assert injury_chance(0.5, 1) == pytest.approx(0.365)
        assert capture_chance(1.0, 10) == 0.6
        assert injury_chance(1.0, 10) == 0.85


class TestFallout:
    """Capture, injury and the fallout guarantee."""

    def test_injury_roll(self, board_mission, state):
        engine, _ = board_mission(rng=ScriptedRandom([0.9, 0.1]))
        engine.start_mission("test-job", ["crew-ace"])
        engine.resolve_mission("test-job", "failure")

        assert state.crew[0].status == CrewStatus.INJURED
        assert state.fallout_log[0].status == "injured"
        assert state.available_missions[0].id == "medical-crew-ace"

    def test_guarantee_injures_first_member(self, board_mission, state):
        crew = [make_member("Ace", crew_id="crew-ace"), make_member("Bo", crew_id="crew-bo")]
        engine, mission = board_mission(rng=ScriptedRandom([0.9] * 4), crew=crew)
        engine.start_mission("test-job", ["crew-ace", "crew-bo"])
        engine.resolve_mission("test-job", "failure")

        fallout = mission.resolution_details.fallout
        assert [(r.crew_id, r.status) for r in fallout] == [("crew-ace", "injured")]
        assert crew[1].status == CrewStatus.IDLE

    def test_guarantee_can_be_disabled(self, board_mission, state):
        engine, mission = board_mission(
            rng=ScriptedRandom([0.9, 0.9]),
            config=EngineConfig(guarantee_failure_fallout=False),
        )
        engine.start_mission("test-job", ["crew-ace"])
        engine.resolve_mission("test-job", "failure")

        assert mission.resolution_details.fallout == []
        assert state.crew[0].status == CrewStatus.IDLE

    def test_no_crew_no_fallout(self, board_mission, state):
        engine, mission = board_mission()
        engine.start_mission("test-job", [])
        engine.resolve_mission("test-job", "failure")
        assert mission.resolution_details.fallout == []

    def test_recovery_mission_clears_fallout(self, board_mission, state):
        ace = make_member("Ace", crew_id="crew-ace")
        bo = make_member("Bo", crew_id="crew-bo")
        ace.apply_mission_fallout("injured")
        template = build_fallout_followup(FalloutRecord(
            crew_id="crew-ace", crew_name="Ace", status="injured", severity="minor",
            source_mission_id="earlier-job",
        ))
        engine, mission = board_mission(template=template, crew=[ace, bo], rng=ScriptedRandom([0.5]))

        engine.start_mission("medical-crew-ace", ["crew-bo"])
        engine.update(mission.duration)
        engine.resolve_mission("medical-crew-ace")

        assert ace.status == CrewStatus.IDLE
        assert ace.fallout_status is None
        assert mission.resolution_details.fallout[0].status == "recovered"
        # Recovery contracts do not respawn
        assert state.find_mission("medical-crew-ace") is None

    def test_fallout_log_is_newest_first(self, board_mission, state):
        engine, _ = board_mission(rng=ScriptedRandom([0.9, 0.1]))
        state.fallout_log.append(FalloutRecord("crew-old", "Old", "injured", "minor", "old-job"))
        engine.start_mission("test-job", ["crew-ace"])
        engine.resolve_mission("test-job", "failure")

        assert state.fallout_log[0].crew_id == "crew-ace"
        assert state.fallout_log[1].crew_id == "crew-old"


class TestDebts:
    """Pending debt settlement."""

    def test_oldest_first_partial(self, make_engine, state):
        engine = make_engine()
        first = PendingDebt("debt-1", 3000, 3000, "evt", "choice")
        second = PendingDebt("debt-2", 2000, 2000, "evt", "choice")
        state.pending_debts = [first, second]

        settlements = engine.resolution.settle_debts(4000)

        assert [(s.debt_id, s.amount_paid, s.remaining) for s in settlements] == [
            ("debt-1", 3000, 0),
            ("debt-2", 1000, 1000),
        ]
        assert settlements[0].cleared
        assert state.pending_debts == [second]

    def test_zero_payout_settles_nothing(self, make_engine, state):
        engine = make_engine()
        state.pending_debts = [PendingDebt("debt-1", 3000, 3000, "evt", "choice")]
        assert engine.resolution.settle_debts(0) == []
        assert state.pending_debts[0].remaining == 3000

    def test_debts_survive_failure(self, board_mission, state):
        engine, _ = board_mission(rng=ScriptedRandom([0.9, 0.9]))
        state.pending_debts = [PendingDebt("debt-1", 3000, 3000, "evt", "choice")]
        engine.start_mission("test-job", ["crew-ace"])
        engine.resolve_mission("test-job", "failure")

        assert state.pending_debts[0].remaining == 3000
        assert state.funds == 10000


class TestCrackdownOperations:
    """Success relieves heat, failure adds a penalty."""

    def test_success_mitigates_heat(self, board_mission, state):
        state.heat = 3.4
        template = get_crackdown_operation_templates("alert")[0]
        engine, mission = board_mission(template=template, rng=ScriptedRandom([0.1]))

        engine.start_mission(template.id, ["crew-ace"])
        engine.update(mission.duration)
        engine.resolve_mission(template.id)

        assert state.heat == pytest.approx(3.2)
        assert "knocked heat down by 1.2" in mission.resolution_details.crackdown_summary
        assert state.heat_mitigation_log[0].reduction_applied == pytest.approx(1.2)
        # Crackdown operations cool reputation instead of building it
        assert engine.get_notoriety() == 0.0

    def test_failure_adds_penalty(self, board_mission, state):
        state.heat = 3.4
        template = get_crackdown_operation_templates("alert")[0]
        engine, mission = board_mission(template=template, rng=ScriptedRandom([0.9, 0.9]))

        engine.start_mission(template.id, ["crew-ace"])
        engine.resolve_mission(template.id, "failure")

        # 1.0 heat x3 under alert, plus the 0.6 operation penalty
        assert mission.resolution_details.heat_applied == pytest.approx(3.6)


class TestStorylines:
    """Crew-loyalty missions."""

    def test_storyline_success(self, board_mission, state):
        ghost = make_member(
            "Wisp", crew_id="crew-wisp", loyalty=3, background=CREW_BACKGROUNDS["ghost-operative"]
        )
        step = get_next_eligible_step(ghost)
        template = build_storyline_template(ghost, step)
        engine, mission = board_mission(template=template, crew=[ghost], rng=ScriptedRandom([0.1]))

        engine.start_mission(template.id, ["crew-wisp"])
        engine.update(mission.duration)
        engine.resolve_mission(template.id)

        assert ghost.loyalty == 5
        assert ghost.traits["stealth"] == 2
        assert ghost.has_perk(PerkId.SIGNAL_SCRAMBLER)
        assert ghost.has_completed_story_step("ghost-operative-signal-cut")
        assert "Ghost network restored" in mission.resolution_details.storyline_summary
        assert state.find_mission(template.id) is None

    def test_storyline_failure_skips_guarantee(self, board_mission, state):
        member = make_member("Trusty", crew_id="crew-trusty", loyalty=3)
        template = build_storyline_template(member, get_next_eligible_step(member))
        engine, mission = board_mission(template=template, crew=[member], rng=ScriptedRandom([0.9, 0.9]))

        engine.start_mission(template.id, ["crew-trusty"])
        engine.resolve_mission(template.id, "failure")

        assert mission.resolution_details.fallout == []
        assert member.loyalty == 1
        assert not member.has_completed_story_step("crew-default-trust")


class TestLogs:
    """Mission log bookkeeping."""

    def test_log_is_capped(self, board_mission, state):
        engine, _ = board_mission(config=EngineConfig(log_limit=2))
        for _ in range(3):
            engine.start_mission("test-job", [])
            engine.resolve_mission("test-job", "failure")

        assert len(state.mission_log) == 2

    def test_district_effects(self, board_mission, state):
        template = ContractTemplate(
            id="downtown-job", name="Downtown Job", duration=30, success_chance=0.7,
            heat=1.0, district_id="downtown",
        )
        engine, _ = board_mission(template=template, rng=ScriptedRandom([0.5]))
        engine.start_mission("downtown-job", ["crew-ace"])
        engine.update(30)
        engine.resolve_mission("downtown-job")

        downtown = state.city.find_district("downtown")
        assert downtown.influence == pytest.approx(12.0)
        assert downtown.intel_level == pytest.approx(11.0)
        assert downtown.crackdown_pressure > 0

    def test_log_entry_serializes(self, board_mission, state):
        engine, mission = board_mission(rng=ScriptedRandom([0.5]))
        engine.start_mission("test-job", ["crew-ace"])
        engine.update(30)
        engine.resolve_mission("test-job")

        data = state.mission_log[0].to_dict()
        assert data["outcome"] == "success"
        assert data["crew_ids"] == ["crew-ace"]
        assert data["debt_paid"] == 0
