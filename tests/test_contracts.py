"""Tests for contract templates, district jobs and crew storylines."""

import pytest

from carthief.catalogs.crew_perks import PerkId
from carthief.entities.crew import CREW_BACKGROUNDS
from carthief.game.city import CityDistrict, CityMap, PointOfInterest
from carthief.missions.contracts import (
    DEFAULT_CONTRACT_TEMPLATES,
    build_contract_from_district,
    build_fallout_followup,
    determine_risk_tier,
    generate_contracts_from_districts,
    get_crackdown_operation_templates,
)
from carthief.missions.models import ContractTemplate, FalloutRecord, Mission
from carthief.missions.storylines import (
    STORYLINES,
    apply_crew_storyline_outcome,
    build_storyline_template,
    get_available_crew_storyline_missions,
    get_next_eligible_step,
    get_storyline,
)
from carthief.systems.notoriety import NOTORIETY_LEVELS

from conftest import make_member


class TestTemplateSanitizing:
    """ContractTemplate.from_dict cleans raw data."""

    def test_requires_id_and_name(self):
        assert ContractTemplate.from_dict({"id": "x"}) is None
        assert ContractTemplate.from_dict({"name": "X"}) is None
        assert ContractTemplate.from_dict("not a dict") is None

    def test_numeric_fields(self):
        template = ContractTemplate.from_dict({
            "id": "messy",
            "name": "Messy",
            "difficulty": "3",
            "payout": -500,
            "heat": "nan",
            "duration": 0,
            "success_chance": 1.5,
            "risk_tier": "extreme",
        })

        assert template.difficulty == 3
        assert template.payout == 0
        assert template.heat == 0.0
        assert template.duration == 60
        assert template.success_chance == 0.98
        assert template.risk_tier == "low"

    def test_negative_chance_means_unset(self):
        template = ContractTemplate.from_dict({"id": "x", "name": "X", "success_chance": -1})
        assert template.success_chance is None

    def test_nested_metadata(self):
        template = ContractTemplate.from_dict({
            "id": "op",
            "name": "Op",
            "crackdown_effects": {"heat_reduction": 1.5},
            "storyline": {"bogus": True},
        })
        assert template.crackdown_effects.heat_reduction == 1.5
        assert template.storyline is None

    def test_stock_board(self):
        ids = [template.id for template in DEFAULT_CONTRACT_TEMPLATES]
        assert ids == ["showroom-heist", "dockyard-swap", "collector-estate"]
        assert DEFAULT_CONTRACT_TEMPLATES[0].vehicle_reward.model == "Prototype Roadster"


class TestMissionInstantiation:
    """Mission.from_template and notoriety scaling."""

    @pytest.fixture
    def template(self):
        return ContractTemplate(id="job", name="Job", difficulty=2, payout=10000, heat=1.0,
                                risk_tier="moderate")

    def test_base_chance_from_difficulty(self, template):
        mission = Mission.from_template(template)
        assert mission.success_chance == pytest.approx(0.67)
        assert mission.base_payout == 10000

    def test_notoriety_scaling(self, template):
        notorious = next(level for level in NOTORIETY_LEVELS if level.id == "notorious")
        mission = Mission.from_template(template, notoriety=notorious)

        assert mission.payout == 11500
        assert mission.heat == pytest.approx(1.5)
        assert mission.success_chance == pytest.approx(0.64)
        assert mission.risk_tier == "high"
        assert mission.notoriety_level == "notorious"

    def test_personal_jobs_ignore_notoriety(self):
        legendary = NOTORIETY_LEVELS[-1]
        template = ContractTemplate(id="favor", name="Favor", payout=5000, category="crew-loyalty")
        mission = Mission.from_template(template, notoriety=legendary)
        assert mission.payout == 5000
        assert mission.notoriety_level == "unknown"


class TestDistrictContracts:
    """Contracts shaped by district stats."""

    def test_plain_district_job(self):
        district = CityDistrict(name="Old Town", wealth=1, security=1)
        template = build_contract_from_district(district)

        assert template.id == "contract-old-town"
        assert template.payout == 11100
        assert template.heat == 2.0
        assert template.difficulty == 1
        assert template.duration == 37
        assert template.risk_tier == "low"

    def test_point_of_interest_modifiers(self):
        district = CityDistrict(name="Old Town", wealth=1, security=1)
        poi = PointOfInterest("catacombs", "Catacombs", "smuggling-cache", payout_multiplier=1.05, heat_delta=-1)
        template = build_contract_from_district(district, poi)

        assert template.payout == 11655
        assert template.heat == 1.0
        assert template.point_of_interest is poi

    def test_intel_shortens_job(self):
        district = CityDistrict(name="Old Town", wealth=1, security=1, intel_level=30)
        assert build_contract_from_district(district).duration == 35

    def test_risk_tiers(self):
        assert determine_risk_tier(1) == "low"
        assert determine_risk_tier(3) == "moderate"
        assert determine_risk_tier(4.5) == "high"

    def test_one_contract_per_district(self):
        templates = generate_contracts_from_districts(CityMap().districts)
        assert [t.id for t in templates] == [
            "contract-downtown",
            "contract-industrial-docks",
            "contract-suburban-hills",
            "contract-old-town",
        ]
        assert templates[0].point_of_interest.id == "downtown-vault-row"


class TestCrackdownAndFallout:
    """Tier operations and fallout follow-ups."""

    def test_calm_has_no_operations(self):
        assert get_crackdown_operation_templates("calm") == []
        assert get_crackdown_operation_templates(None) == []

    def test_alert_operations(self):
        templates = get_crackdown_operation_templates("ALERT")
        assert [t.id for t in templates] == ["alert-sabotage-dragnet", "alert-intercept-convoy"]
        assert all(t.category == "crackdown-operation" for t in templates)
        assert all(t.ignore_crackdown_restrictions for t in templates)
        assert templates[0].crackdown_effects.heat_reduction == 1.2

    def test_rescue_followup(self):
        record = FalloutRecord("crew-ace", "Ace", "captured", "critical", "job")
        template = build_fallout_followup(record)
        assert template.id == "rescue-crew-ace"
        assert template.fallout_recovery.status == "captured"
        assert template.respawn is False

    def test_recovered_needs_no_followup(self):
        record = FalloutRecord("crew-ace", "Ace", "recovered", "minor", "job")
        assert build_fallout_followup(record) is None


class TestStorylines:
    """Crew-loyalty storyline chains."""

    def test_default_chain(self):
        assert get_storyline(None) == STORYLINES["default"]
        assert get_storyline("no-such-background") == STORYLINES["default"]

    def test_loyalty_gate(self):
        member = make_member("Racer", loyalty=2, background=CREW_BACKGROUNDS["street-racer"])
        assert get_next_eligible_step(member) is None

        member.loyalty = 3
        assert get_next_eligible_step(member).id == "street-racer-hijack"

    def test_completed_steps_are_skipped(self):
        member = make_member("Racer", loyalty=3, background=CREW_BACKGROUNDS["street-racer"])
        member.mark_story_step_complete("street-racer-hijack")
        assert get_next_eligible_step(member) is None

        member.loyalty = 4
        assert get_next_eligible_step(member).id == "street-racer-rally"

    def test_template_fields(self):
        member = make_member("Racer", crew_id="crew-racer", loyalty=3,
                             background=CREW_BACKGROUNDS["street-racer"])
        template = build_storyline_template(member, get_next_eligible_step(member))

        assert template.id == "loyalty-crew-racer-street-racer-hijack"
        assert template.category == "crew-loyalty"
        assert template.storyline.background_id == "street-racer"
        assert template.respawn is False

    def test_available_missions(self):
        crew = [make_member("A", loyalty=3), make_member("B", loyalty=1)]
        templates = get_available_crew_storyline_missions(crew)
        assert len(templates) == 1
        assert templates[0].storyline.crew_id == crew[0].id

    def test_success_grants_rewards(self):
        member = make_member("Racer", loyalty=3, background=CREW_BACKGROUNDS["street-racer"])
        result = apply_crew_storyline_outcome(member, "street-racer-hijack", "success")

        assert result.success
        assert result.loyalty_delta == 1
        assert result.trait_boosts == {"driving": 1}
        assert result.perk_awarded == PerkId.CONVOY_RAIDER
        assert member.loyalty == 4
        assert member.has_completed_story_step("street-racer-hijack")

    def test_held_perk_not_awarded_twice(self):
        member = make_member("Racer", loyalty=3, background=CREW_BACKGROUNDS["street-racer"],
                             perks=[PerkId.CONVOY_RAIDER])
        result = apply_crew_storyline_outcome(member, "street-racer-hijack", "success")
        assert result.perk_awarded is None
        assert member.perks.count(PerkId.CONVOY_RAIDER) == 1

    def test_failure_costs_loyalty(self):
        member = make_member("Racer", loyalty=3, background=CREW_BACKGROUNDS["street-racer"])
        result = apply_crew_storyline_outcome(member, "street-racer-hijack", "failure")

        assert not result.success
        assert member.loyalty == 2
        assert result.summary == "Convoy slipped away; loyalty shaken."
        assert not member.has_completed_story_step("street-racer-hijack")

    def test_unknown_step(self):
        member = make_member("Racer", loyalty=3)
        assert apply_crew_storyline_outcome(member, "street-racer-hijack", "success") is None
