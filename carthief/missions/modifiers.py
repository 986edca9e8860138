"""Modifier aggregation: how player, crew and vehicle reshape a mission.

Every source produces a ModifierContribution. Multipliers compose
multiplicatively, success bonuses and flat heat adjustments add up, and
the combined result is always computed from the mission's base values so
re-assigning a crew is idempotent.
"""

from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

from .models import Mission, VehicleImpact
from ..catalogs.crew_gear import resolve_gear_effect
from ..catalogs.crew_perks import PerkContext, resolve_perk_effect
from ..catalogs.effects import ModifierEffect
from ..catalogs.player_kit import PLAYER_SKILLS, get_player_gear
from ..constants import CREW, MISSION, PLAYER, VEHICLE
from ..entities.crew import CREW_TRAITS, SPECIALTY_TRAIT_PROFILE, CrewMember
from ..entities.player import Player
from ..entities.vehicle import Vehicle
from ..utils.helpers import clamp, percent_label, to_finite
from ..utils.logging import get_logger


logger = get_logger("missions.modifiers")

# Stealth trait level that makes a member count as stealth support
STEALTH_SUPPORT_LEVEL = 3


@dataclass
class ModifierContribution:
    """What one source contributes to a mission."""

    source: str = ""
    duration_multiplier: float = 1.0
    payout_multiplier: float = 1.0
    heat_multiplier: float = 1.0
    success_bonus: float = 0.0
    heat_adjustment: float = 0.0
    summaries: list[str] = field(default_factory=list)

    def apply(self, effect: Optional[ModifierEffect]) -> None:
        """Fold a catalog effect into this contribution."""
        if effect is None:
            return
        self.duration_multiplier *= effect.duration_multiplier
        self.payout_multiplier *= effect.payout_multiplier
        self.heat_multiplier *= effect.heat_multiplier
        self.success_bonus += effect.success_bonus
        self.heat_adjustment += effect.heat_adjustment
        if effect.summary:
            self.summaries.append(effect.summary)

    def merge(self, other: "ModifierContribution") -> None:
        """Fold another contribution into this one."""
        self.duration_multiplier *= other.duration_multiplier
        self.payout_multiplier *= other.payout_multiplier
        self.heat_multiplier *= other.heat_multiplier
        self.success_bonus += other.success_bonus
        self.heat_adjustment += other.heat_adjustment
        self.summaries.extend(other.summaries)


@dataclass
class AssignmentImpact:
    """Combined result of a crew/vehicle assignment."""

    adjusted_duration: int
    adjusted_payout: int
    adjusted_success_chance: float
    adjusted_heat: float
    player: ModifierContribution
    crew: ModifierContribution
    members: list[ModifierContribution] = field(default_factory=list)
    vehicle_impact: Optional[VehicleImpact] = None
    summaries: list[str] = field(default_factory=list)


# =============================================================================
# Player
# =============================================================================

def compute_player_contribution(player: Optional[Player]) -> ModifierContribution:
    """Skill levels above baseline plus equipped player gear."""
    contribution = ModifierContribution(source="player")
    if player is None:
        contribution.summaries.append("No player assigned; skills and gear add nothing.")
        return contribution

    duration_reduction = payout_bonus = heat_reduction = success_bonus = 0.0
    for skill, rates in PLAYER_SKILLS.items():
        level = to_finite(player.skills.get(skill), PLAYER.SKILL_BASELINE)
        counted = clamp(level - PLAYER.SKILL_BASELINE, 0, PLAYER.MAX_COUNTED_LEVELS)
        duration_reduction += rates.duration_reduction * counted
        payout_bonus += rates.payout_bonus * counted
        heat_reduction += rates.heat_reduction * counted
        success_bonus += rates.success_bonus * counted

    duration_reduction = min(duration_reduction, PLAYER.MAX_DURATION_REDUCTION)
    payout_bonus = min(payout_bonus, PLAYER.MAX_PAYOUT_BONUS)
    heat_reduction = min(heat_reduction, PLAYER.MAX_HEAT_REDUCTION)
    success_bonus = min(success_bonus, PLAYER.MAX_SUCCESS_BONUS)

    contribution.duration_multiplier = 1 - duration_reduction
    contribution.payout_multiplier = 1 + payout_bonus
    contribution.heat_multiplier = 1 - heat_reduction
    contribution.success_bonus = success_bonus

    if any((duration_reduction, payout_bonus, heat_reduction, success_bonus)):
        contribution.summaries.append(
            f"{player.name} skills: duration {percent_label(-duration_reduction)}, "
            f"payout {percent_label(payout_bonus)}, heat {percent_label(-heat_reduction)}, "
            f"success {percent_label(success_bonus)}."
        )

    for item_id in player.inventory:
        gear = get_player_gear(item_id)
        if gear is not None:
            contribution.apply(gear.effect)

    return contribution


# =============================================================================
# Crew
# =============================================================================

def _trait_contribution(member: CrewMember, difficulty: float) -> ModifierContribution:
    profile = SPECIALTY_TRAIT_PROFILE.get(member.specialty, SPECIALTY_TRAIT_PROFILE["default"])

    duration_reduction = payout_bonus = heat_reduction = heat_increase = success_bonus = 0.0
    for key, trait in CREW_TRAITS.items():
        extra = max(0, member.traits.get(key, CREW.TRAIT_BASELINE) - CREW.TRAIT_BASELINE)
        if not extra:
            continue
        weight = CREW.SPECIALTY_SYNERGY if profile.get(key, 0) >= 2 else 1.0
        levels = extra * weight
        duration_reduction += trait.duration_reduction * levels
        payout_bonus += trait.payout_bonus * levels
        heat_reduction += trait.heat_reduction * levels
        heat_increase += trait.heat_increase * levels
        success_bonus += trait.success_bonus * levels

    loyalty_factor = CREW.LOYALTY_FACTOR_BASE + CREW.LOYALTY_FACTOR_STEP * member.loyalty
    difficulty_factor = clamp(
        1.1 - CREW.DIFFICULTY_FACTOR_STEP * difficulty,
        CREW.MIN_DIFFICULTY_FACTOR,
        CREW.MAX_DIFFICULTY_FACTOR,
    )
    scale = loyalty_factor * difficulty_factor

    duration_reduction = clamp(duration_reduction * scale, 0.0, CREW.MAX_DURATION_REDUCTION)
    payout_bonus = clamp(payout_bonus * scale, CREW.MIN_PAYOUT_BONUS, CREW.MAX_PAYOUT_BONUS)
    heat_reduction = clamp(heat_reduction * scale, 0.0, CREW.MAX_HEAT_REDUCTION)
    heat_increase = clamp(heat_increase * scale, 0.0, CREW.MAX_HEAT_INCREASE)
    success_bonus = success_bonus * scale
    if member.is_tired():
        success_bonus -= CREW.TIRED_SUCCESS_PENALTY
    success_bonus = clamp(success_bonus, CREW.MIN_SUCCESS_BONUS, CREW.MAX_SUCCESS_BONUS)

    contribution = ModifierContribution(
        source=member.id,
        duration_multiplier=1 - duration_reduction,
        payout_multiplier=1 + payout_bonus,
        heat_multiplier=(1 - heat_reduction) * (1 + heat_increase),
        success_bonus=success_bonus,
    )
    contribution.summaries.append(
        f"{member.name} ({member.specialty}): duration {percent_label(-duration_reduction)}, "
        f"payout {percent_label(payout_bonus)}, "
        f"heat {percent_label(contribution.heat_multiplier - 1)}, "
        f"success {percent_label(success_bonus)}."
    )
    if member.is_tired():
        contribution.summaries.append(f"{member.name} is running tired.")
    return contribution


def is_stealth_support(member: CrewMember) -> bool:
    """Check if a member counts as stealth support for allied perks."""
    return (
        member.specialty == "infiltrator"
        or member.traits.get("stealth", 0) >= STEALTH_SUPPORT_LEVEL
    )


def compute_member_contribution(member: CrewMember, mission: Mission, vehicle: Optional[Vehicle],
                                crew: list[CrewMember]) -> ModifierContribution:
    """Traits, then background, then perks, then gear for one member."""
    contribution = _trait_contribution(member, to_finite(mission.difficulty, 1))
    context = PerkContext(
        member=member,
        mission=mission,
        vehicle=vehicle,
        base_heat=to_finite(mission.base_heat, 0),
        stealth_support=[ally for ally in crew if is_stealth_support(ally)],
    )

    background = member.background
    if background is not None and not member.has_perk(background.perk):
        contribution.apply(background.effect)

    for perk_id in member.perks:
        contribution.apply(resolve_perk_effect(perk_id, context))

    for gear_id in member.gear:
        contribution.apply(resolve_gear_effect(gear_id, context))

    return contribution


# =============================================================================
# Vehicle
# =============================================================================

def compute_vehicle_impact(vehicle: Vehicle, mission: Mission, heat_multiplier: float) -> VehicleImpact:
    """Vehicle terms plus the wear/heat rates applied at resolution.

    Args:
        vehicle: Assigned vehicle
        mission: Mission being shaped
        heat_multiplier: Crew and player heat multiplier to fold mods into
    """
    profile = vehicle.get_mod_profile()
    condition = clamp(vehicle.condition, 0.0, 1.0)
    difficulty = to_finite(mission.difficulty, 1)

    agility = (
        (vehicle.effective_top_speed - VEHICLE.REFERENCE_TOP_SPEED) / VEHICLE.TOP_SPEED_SCALE
        + (vehicle.effective_acceleration - VEHICLE.REFERENCE_ACCELERATION) * VEHICLE.ACCELERATION_WEIGHT
    )
    condition_penalty = (1 - condition) * VEHICLE.CONDITION_DURATION_PENALTY
    duration_multiplier = max(
        VEHICLE.MIN_DURATION_MULTIPLIER,
        (1 - agility + condition_penalty) * profile.duration_multiplier,
    )

    combined_heat = clamp(
        heat_multiplier * profile.heat_multiplier,
        VEHICLE.MIN_HEAT_MULTIPLIER,
        VEHICLE.MAX_HEAT_MULTIPLIER,
    )
    handling_edge = vehicle.effective_handling - VEHICLE.REFERENCE_HANDLING
    heat_adjustment = (
        vehicle.heat * VEHICLE.HEAT_RATING_WEIGHT
        + (1 - condition) * VEHICLE.CONDITION_HEAT_WEIGHT
        - max(0.0, handling_edge) * VEHICLE.HANDLING_HEAT_MITIGATION
        + profile.heat_adjustment
    )
    success_bonus = (
        handling_edge * VEHICLE.HANDLING_SUCCESS_WEIGHT
        + (condition - 1) * VEHICLE.CONDITION_SUCCESS_WEIGHT
        + profile.success_bonus
    )

    wear = (VEHICLE.BASE_WEAR + VEHICLE.WEAR_PER_DIFFICULTY * difficulty) * profile.wear_multiplier
    heat_gain = (
        VEHICLE.BASE_HEAT_GAIN + VEHICLE.HEAT_GAIN_PER_MISSION_HEAT * to_finite(mission.base_heat, 0)
    ) * profile.heat_gain_multiplier

    summaries = [
        f"{vehicle.model}: duration {percent_label(duration_multiplier - 1)}, "
        f"heat {heat_adjustment:+.2f}, success {percent_label(success_bonus)}."
    ]
    if profile.mod_ids:
        summaries.append(f"Mods installed: {', '.join(profile.mod_ids)}.")

    return VehicleImpact(
        vehicle_id=vehicle.id,
        model=vehicle.model,
        agility_score=agility,
        condition_penalty=condition_penalty,
        duration_multiplier=duration_multiplier,
        heat_multiplier=combined_heat,
        heat_adjustment=heat_adjustment,
        success_bonus=success_bonus,
        wear_on_success=wear,
        wear_on_failure=wear * VEHICLE.FAILURE_WEAR_MULTIPLIER,
        heat_gain_on_success=heat_gain,
        heat_gain_on_failure=heat_gain * VEHICLE.FAILURE_HEAT_GAIN_MULTIPLIER,
        summaries=summaries,
    )


# =============================================================================
# Combined
# =============================================================================

def compute_impact(mission: Mission, crew_members: Iterable[CrewMember], vehicle: Optional[Vehicle],
                   player: Optional[Player] = None, context: Optional[dict[str, Any]] = None) -> AssignmentImpact:
    """Aggregate every modifier source for an assignment.

    Always starts from the mission's base values.

    Args:
        mission: Mission to shape
        crew_members: Assigned crew
        vehicle: Assigned vehicle (None for on-foot jobs)
        player: Player whose skills and gear apply
        context: Extra notes to carry into the summaries

    Returns:
        AssignmentImpact with the adjusted values and per-source detail
    """
    crew = [member for member in crew_members if member is not None]

    player_contribution = compute_player_contribution(player)

    crew_total = ModifierContribution(source="crew")
    member_contributions = []
    for member in crew:
        member_contribution = compute_member_contribution(member, mission, vehicle, crew)
        member_contributions.append(member_contribution)
        crew_total.merge(member_contribution)

    duration_multiplier = player_contribution.duration_multiplier * crew_total.duration_multiplier
    payout_multiplier = player_contribution.payout_multiplier * crew_total.payout_multiplier
    heat_multiplier = player_contribution.heat_multiplier * crew_total.heat_multiplier
    success_bonus = player_contribution.success_bonus + crew_total.success_bonus
    heat_adjustment = player_contribution.heat_adjustment + crew_total.heat_adjustment

    summaries = list(player_contribution.summaries) + list(crew_total.summaries)
    if context and context.get("notes"):
        summaries.extend(str(note) for note in context["notes"])

    vehicle_impact = None
    if vehicle is not None:
        vehicle_impact = compute_vehicle_impact(vehicle, mission, heat_multiplier)
        duration_multiplier *= vehicle_impact.duration_multiplier
        heat_multiplier = vehicle_impact.heat_multiplier
        heat_adjustment += vehicle_impact.heat_adjustment
        success_bonus += vehicle_impact.success_bonus
        summaries.extend(vehicle_impact.summaries)
    else:
        summaries.append("No vehicle assigned; crew and player heat effects still apply.")

    base_duration = to_finite(mission.base_duration, MISSION.MIN_FALLBACK_DURATION)
    base_payout = to_finite(mission.base_payout, 0)
    base_chance = to_finite(mission.base_success_chance, MISSION.BASE_SUCCESS_CHANCE)
    base_heat = to_finite(mission.base_heat, 0)

    impact = AssignmentImpact(
        adjusted_duration=max(MISSION.MIN_DURATION, round(base_duration * duration_multiplier)),
        adjusted_payout=round(base_payout * payout_multiplier),
        adjusted_success_chance=clamp(
            base_chance + success_bonus, MISSION.MIN_SUCCESS_CHANCE, MISSION.MAX_SUCCESS_CHANCE
        ),
        adjusted_heat=max(0.0, base_heat * heat_multiplier + heat_adjustment),
        player=player_contribution,
        crew=crew_total,
        members=member_contributions,
        vehicle_impact=vehicle_impact,
        summaries=summaries,
    )
    logger.debug(
        f"Impact for {mission.id}: duration {impact.adjusted_duration}, payout {impact.adjusted_payout}, "
        f"success {impact.adjusted_success_chance:.2f}, heat {impact.adjusted_heat:.2f}"
    )
    return impact
