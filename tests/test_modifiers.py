"""Tests for modifier aggregation."""

import pytest

from carthief.catalogs.crew_perks import PerkContext, PerkId, resolve_perk_effect
from carthief.entities.crew import CREW_BACKGROUNDS, CrewMember
from carthief.entities.player import Player
from carthief.entities.vehicle import Vehicle
from carthief.missions.models import ContractTemplate, Mission
from carthief.missions.modifiers import (
    compute_impact,
    compute_player_contribution,
    is_stealth_support,
)


@pytest.fixture
def mission(simple_template):
    return Mission.from_template(simple_template)


class TestBaseline:
    """Neutral sources leave the base values untouched."""

    def test_no_crew_no_vehicle(self, mission, neutral_player):
        impact = compute_impact(mission, [], None, neutral_player)

        assert impact.adjusted_duration == 30
        assert impact.adjusted_payout == 10000
        assert impact.adjusted_success_chance == pytest.approx(0.7)
        assert impact.adjusted_heat == pytest.approx(1.0)
        assert impact.vehicle_impact is None
        assert any("No vehicle assigned" in s for s in impact.summaries)

    def test_baseline_crew_is_neutral(self, mission, neutral_player):
        impact = compute_impact(mission, [CrewMember(name="Ace")], None, neutral_player)

        assert impact.adjusted_payout == 10000
        assert impact.adjusted_success_chance == pytest.approx(0.7)
        assert len(impact.members) == 1

    def test_reference_vehicle_is_neutral(self, mission, neutral_player, vehicle):
        impact = compute_impact(mission, [], vehicle, neutral_player)

        assert impact.adjusted_duration == 30
        assert impact.adjusted_heat == pytest.approx(1.0)
        assert impact.adjusted_success_chance == pytest.approx(0.7)
        assert impact.vehicle_impact.duration_multiplier == pytest.approx(1.0)

    def test_idempotent_from_base_values(self, mission, neutral_player):
        crew = [CrewMember(name="Sable", specialty="hacker", traits={"tech": 3})]
        first = compute_impact(mission, crew, None, neutral_player)
        mission.payout = first.adjusted_payout
        second = compute_impact(mission, crew, None, neutral_player)

        assert first.adjusted_payout == second.adjusted_payout
        assert first.adjusted_success_chance == second.adjusted_success_chance


class TestPlayerContribution:
    """Player skills and gear."""

    def test_missing_player(self):
        contribution = compute_player_contribution(None)
        assert contribution.duration_multiplier == 1.0
        assert contribution.summaries

    def test_driving_skill_shortens_job(self, mission):
        player = Player(name="Driver")
        assert player.improve_skill("driving", 2) == 3
        impact = compute_impact(mission, [], None, player)

        # Two levels above baseline: duration -8%, success +2%
        assert impact.adjusted_duration == 28
        assert impact.adjusted_success_chance == pytest.approx(0.72)

    def test_success_bonus_is_capped(self):
        player = Player(skills={"driving": 5, "stealth": 5, "engineering": 5, "charisma": 5})
        contribution = compute_player_contribution(player)
        assert contribution.success_bonus == pytest.approx(0.12)

    def test_gear_applies(self):
        player = Player()
        player.add_inventory_item("fence-contacts")
        player.add_inventory_item("not-a-real-item")
        contribution = compute_player_contribution(player)
        assert contribution.payout_multiplier == pytest.approx(1.06)


class TestCrewContribution:
    """Traits, backgrounds, perks and gear."""

    def test_specialty_synergy_and_scaling(self, mission, neutral_player):
        hacker = CrewMember(name="Sable", specialty="hacker", loyalty=1, traits={"tech": 3})
        impact = compute_impact(mission, [hacker], None, neutral_player)

        # 2 levels * 1.25 synergy, scaled by loyalty 0.9 and difficulty 1.05
        assert impact.adjusted_payout == 10709
        assert impact.adjusted_success_chance == pytest.approx(0.74725)

    def test_stealth_lowers_duration_and_heat(self, mission, neutral_player):
        ghost = CrewMember(name="Ghost", traits={"stealth": 4})
        impact = compute_impact(mission, [ghost], None, neutral_player)

        assert impact.crew.duration_multiplier < 1
        assert impact.crew.heat_multiplier < 1
        assert impact.adjusted_heat < 1.0

    def test_tired_member_costs_success(self, mission, neutral_player):
        tired = CrewMember(name="Yawn", fatigue=50)
        impact = compute_impact(mission, [tired], None, neutral_player)
        assert impact.adjusted_success_chance == pytest.approx(0.67)

    def test_background_without_perk(self, mission, neutral_player):
        member = CrewMember(name="Racer", background=CREW_BACKGROUNDS["street-racer"])
        impact = compute_impact(mission, [member], None, neutral_player)

        assert impact.crew.duration_multiplier == pytest.approx(0.88)
        assert impact.crew.success_bonus == pytest.approx(0.02)

    def test_background_perk_not_double_counted(self, mission, neutral_player):
        member = CrewMember(
            name="Racer",
            background=CREW_BACKGROUNDS["street-racer"],
            perks=[PerkId.STREET_RACER],
        )
        impact = compute_impact(mission, [member], None, neutral_player)
        assert impact.crew.duration_multiplier == pytest.approx(0.88)

    def test_stealth_support_perk_needs_ally(self, mission, neutral_player):
        hacker = CrewMember(name="Sable", perks=["signal-scrambler"])
        alone = compute_impact(mission, [hacker], None, neutral_player)
        assert alone.crew.success_bonus == pytest.approx(0.0)

        ghost = CrewMember(name="Wisp", specialty="infiltrator")
        together = compute_impact(mission, [hacker, ghost], None, neutral_player)
        assert together.crew.success_bonus == pytest.approx(0.05)
        assert any("Wisp" in s for s in together.summaries)

    def test_stealth_support_rule(self):
        assert is_stealth_support(CrewMember(specialty="infiltrator"))
        assert is_stealth_support(CrewMember(traits={"stealth": 3}))
        assert not is_stealth_support(CrewMember(traits={"stealth": 2}))

    def test_high_heat_perk(self):
        easy = Mission(id="easy", name="Easy", difficulty=1)
        hard = Mission(id="hard", name="Hard", difficulty=3)

        assert resolve_perk_effect(PerkId.ZONE_COMMANDER, PerkContext(mission=easy)) is None
        effect = resolve_perk_effect(PerkId.ZONE_COMMANDER, PerkContext(mission=hard))
        assert effect.success_bonus == pytest.approx(0.04)

    def test_fast_exit_reads_base_duration(self):
        long_job = Mission(id="long", name="Long", base_duration=60, duration=30)
        sprint = Mission(id="sprint", name="Sprint", base_duration=30, duration=60)

        assert resolve_perk_effect(PerkId.GHOST_LINES, PerkContext(mission=long_job)) is None
        effect = resolve_perk_effect(PerkId.GHOST_LINES, PerkContext(mission=sprint))
        assert effect.success_bonus == pytest.approx(0.04)
        assert "short sprint duration" in effect.summary

    def test_unknown_perk_is_ignored(self):
        member = CrewMember(perks=["not-a-perk"])
        assert member.perks == []


class TestVehicleImpact:
    """Vehicle stats, condition, heat rating and mods."""

    def test_fast_car_shortens_job(self, mission, neutral_player):
        fast = Vehicle(model="Rocket", top_speed=160, acceleration=7, handling=5)
        impact = compute_impact(mission, [], fast, neutral_player)

        assert impact.vehicle_impact.agility_score == pytest.approx(0.28)
        assert impact.adjusted_duration == 22

    def test_worn_hot_car(self, mission, neutral_player):
        beater = Vehicle(model="Beater", condition=0.5, heat=2.0)
        impact = compute_impact(mission, [], beater, neutral_player)

        assert impact.adjusted_duration == 38
        assert impact.adjusted_heat == pytest.approx(2.3)
        assert impact.adjusted_success_chance == pytest.approx(0.68)

    def test_wear_and_heat_rates(self, mission, neutral_player, vehicle):
        impact = compute_impact(mission, [], vehicle, neutral_player).vehicle_impact

        assert impact.wear_on_success == pytest.approx(0.08)
        assert impact.wear_on_failure == pytest.approx(0.16)
        assert impact.heat_gain_on_success == pytest.approx(0.3)
        assert impact.heat_gain_on_failure == pytest.approx(0.6)

    def test_stealth_plating(self, mission, neutral_player, vehicle):
        vehicle.install_mod("stealth-plating")
        impact = compute_impact(mission, [], vehicle, neutral_player)

        assert impact.adjusted_heat == pytest.approx(0.85)
        assert impact.adjusted_success_chance == pytest.approx(0.71)
        assert impact.vehicle_impact.heat_gain_on_success == pytest.approx(0.225)


class TestBounds:
    """Final values stay inside their bands."""

    def test_minimum_duration(self, neutral_player):
        mission = Mission.from_template(ContractTemplate(id="sprint", name="Sprint", duration=6))
        rocket = Vehicle(model="Rocket", top_speed=320, acceleration=15)
        impact = compute_impact(mission, [], rocket, neutral_player)
        assert impact.adjusted_duration == 5

    def test_success_ceiling(self, neutral_player):
        mission = Mission.from_template(
            ContractTemplate(id="lock", name="Lock", success_chance=0.98)
        )
        player = Player(skills={"driving": 5})
        impact = compute_impact(mission, [], None, player)
        assert impact.adjusted_success_chance == pytest.approx(0.98)

    def test_heat_floor(self, neutral_player):
        mission = Mission.from_template(ContractTemplate(id="quiet", name="Quiet", heat=0.5))
        nimble = Vehicle(model="Nimble", handling=15)
        impact = compute_impact(mission, [], nimble, neutral_player)
        assert impact.adjusted_heat == 0.0
