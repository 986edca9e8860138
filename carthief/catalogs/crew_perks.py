"""Crew perk registry.

Perks are resolved by id. Each definition carries a kind tag that selects
how the payload is applied: static perks always apply, the conditional
kinds only fire when the mission context satisfies them.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from .effects import ModifierEffect
from ..utils.helpers import percent_label, to_finite


class PerkId(Enum):
    """Known crew perks."""

    GHOST_OPERATIVE = "ghost-operative"
    STREET_RACER = "street-racer"
    SYNDICATE_FIXER = "syndicate-fixer"
    GARAGE_PRODIGY = "garage-prodigy"
    STREET_ENFORCER = "street-enforcer"
    SIGNAL_SCRAMBLER = "signal-scrambler"
    PHANTOM_OVERWATCH = "phantom-overwatch"
    CUSTOM_FABRICATION = "custom-fabrication"
    DYNO_WHISPERER = "dyno-whisperer"
    FAVORS_ON_CALL = "favors-on-call"
    SMOKESCREEN_RETAINER = "smokescreen-retainer"
    FRONTLINE_VETERAN = "frontline-veteran"
    ZONE_COMMANDER = "zone-commander"
    CONVOY_RAIDER = "convoy-raider"
    GHOST_LINES = "ghost-lines"


class PerkKind(Enum):
    """How a perk's payload is applied."""

    STATIC = "static"
    STEALTH_SUPPORT = "stealth-support"  # needs another stealth crew member
    HIGH_HEAT = "high-heat"  # needs a hot or hard contract
    FAST_EXIT = "fast-exit"  # needs a fast car or a short job


@dataclass(frozen=True)
class PerkDefinition:
    """Catalog entry for one perk."""

    id: PerkId
    label: str
    description: str
    kind: PerkKind
    effect: ModifierEffect


@dataclass
class PerkContext:
    """Mission context a conditional perk inspects."""

    member: Any = None
    mission: Any = None
    vehicle: Any = None
    base_heat: float = 0.0
    stealth_support: list[Any] = field(default_factory=list)


# Thresholds for the conditional kinds
HIGH_HEAT_BASE = 1.5
HIGH_HEAT_DIFFICULTY = 3
FAST_VEHICLE_TOP_SPEED = 130
FAST_MISSION_DURATION = 34


def _static(perk_id: PerkId, label: str, description: str, **effect) -> PerkDefinition:
    return PerkDefinition(perk_id, label, description, PerkKind.STATIC, ModifierEffect(**effect))


CREW_PERKS: dict[PerkId, PerkDefinition] = {
    PerkId.GHOST_OPERATIVE: _static(
        PerkId.GHOST_OPERATIVE, "Ghost Operative", "-10% heat, +3% success.",
        heat_multiplier=0.9, success_bonus=0.03,
        summary="Ghost Operative perk: heat -10%, success +3%.",
    ),
    PerkId.STREET_RACER: _static(
        PerkId.STREET_RACER, "Street Racer", "-12% duration, +2% success.",
        duration_multiplier=0.88, success_bonus=0.02,
        summary="Street Racer perk: duration -12%, success +2%.",
    ),
    PerkId.SYNDICATE_FIXER: _static(
        PerkId.SYNDICATE_FIXER, "Syndicate Fixer", "+6% payout, -4% heat.",
        payout_multiplier=1.06, heat_multiplier=0.96,
        summary="Syndicate Fixer perk: payout +6%, heat -4%.",
    ),
    PerkId.GARAGE_PRODIGY: _static(
        PerkId.GARAGE_PRODIGY, "Garage Prodigy", "+8% payout, +2% success.",
        payout_multiplier=1.08, success_bonus=0.02,
        summary="Garage Prodigy perk: payout +8%, success +2%.",
    ),
    PerkId.STREET_ENFORCER: _static(
        PerkId.STREET_ENFORCER, "Street Enforcer", "+5% payout, +2.5% success.",
        payout_multiplier=1.05, success_bonus=0.025,
        summary="Street Enforcer perk: payout +5%, success +2.5%.",
    ),
    PerkId.SIGNAL_SCRAMBLER: PerkDefinition(
        PerkId.SIGNAL_SCRAMBLER,
        "Signal Scrambler",
        "Gains +5% success when stealth support is assigned.",
        PerkKind.STEALTH_SUPPORT,
        ModifierEffect(success_bonus=0.05),
    ),
    PerkId.PHANTOM_OVERWATCH: _static(
        PerkId.PHANTOM_OVERWATCH, "Phantom Overwatch", "Light heat reduction when deployed.",
        heat_multiplier=0.96, summary="Phantom Overwatch: heat -4%.",
    ),
    PerkId.CUSTOM_FABRICATION: _static(
        PerkId.CUSTOM_FABRICATION, "Custom Fabrication", "Bespoke mods lift the take.",
        payout_multiplier=1.03, summary="Custom Fabrication: payout +3% from bespoke mods.",
    ),
    PerkId.DYNO_WHISPERER: _static(
        PerkId.DYNO_WHISPERER, "Dyno Whisperer", "Tuned rigs finish jobs sooner.",
        duration_multiplier=0.96, summary="Dyno Whisperer: duration -4% thanks to tuned rigs.",
    ),
    PerkId.FAVORS_ON_CALL: _static(
        PerkId.FAVORS_ON_CALL, "Favors on Call", "Small payout bonus when negotiating.",
        payout_multiplier=1.05, summary="Favors on Call: payout +5% from extra leverage.",
    ),
    PerkId.SMOKESCREEN_RETAINER: _static(
        PerkId.SMOKESCREEN_RETAINER, "Smokescreen Retainer", "Crackdown heat gains eased.",
        heat_multiplier=0.94, summary="Smokescreen Retainer: heat -6% post-op.",
    ),
    PerkId.FRONTLINE_VETERAN: _static(
        PerkId.FRONTLINE_VETERAN, "Frontline Veteran", "Heat spikes drop when they anchor the team.",
        heat_multiplier=0.9, summary="Frontline Veteran: heat -10% while leading the line.",
    ),
    PerkId.ZONE_COMMANDER: PerkDefinition(
        PerkId.ZONE_COMMANDER,
        "Zone Commander",
        "Adds success momentum against high-heat jobs.",
        PerkKind.HIGH_HEAT,
        ModifierEffect(
            success_bonus=0.04,
            summary="Zone Commander: +4% success versus high-heat targets.",
        ),
    ),
    PerkId.CONVOY_RAIDER: _static(
        PerkId.CONVOY_RAIDER, "Convoy Raider", "Expanded getaway routes.",
        duration_multiplier=0.93, summary="Convoy Raider: duration -7% via expanded getaway routes.",
    ),
    PerkId.GHOST_LINES: PerkDefinition(
        PerkId.GHOST_LINES,
        "Ghost Lines",
        "Adds a modest success boost on high-speed exits.",
        PerkKind.FAST_EXIT,
        ModifierEffect(success_bonus=0.04),
    ),
}


def parse_perk_id(value: Any) -> Optional[PerkId]:
    """Convert a raw id (or PerkId) to a PerkId, None if unknown."""
    if isinstance(value, PerkId):
        return value
    try:
        return PerkId(str(value).strip().lower())
    except ValueError:
        return None


def get_perk(perk_id: Any) -> Optional[PerkDefinition]:
    """Look up a perk definition."""
    resolved = parse_perk_id(perk_id)
    return CREW_PERKS.get(resolved) if resolved else None


def _is_high_heat(context: PerkContext) -> bool:
    difficulty = to_finite(getattr(context.mission, "difficulty", None), 0)
    return context.base_heat >= HIGH_HEAT_BASE or difficulty >= HIGH_HEAT_DIFFICULTY


def resolve_perk_effect(perk_id: Any, context: PerkContext) -> Optional[ModifierEffect]:
    """Resolve a perk against mission context.

    Args:
        perk_id: PerkId or its string value
        context: Mission context for conditional perks

    Returns:
        ModifierEffect, or None if the perk is unknown or its condition
        is not met
    """
    definition = get_perk(perk_id)
    if definition is None:
        return None

    if definition.kind is PerkKind.STATIC:
        return definition.effect

    if definition.kind is PerkKind.STEALTH_SUPPORT:
        member_id = getattr(context.member, "id", None)
        allies = [a for a in context.stealth_support if a is not None and getattr(a, "id", None) != member_id]
        if not allies:
            return None
        names = ", ".join(getattr(a, "name", "Stealth specialist") for a in allies)
        return definition.effect.with_summary(
            f"{definition.label}: {percent_label(definition.effect.success_bonus)} "
            f"success with stealth support from {names}."
        )

    if definition.kind is PerkKind.HIGH_HEAT:
        return definition.effect if _is_high_heat(context) else None

    if definition.kind is PerkKind.FAST_EXIT:
        top_speed = to_finite(getattr(context.vehicle, "top_speed", None), 0)
        mission = context.mission
        duration = to_finite(getattr(mission, "base_duration", None), float("inf"))
        fast_vehicle = top_speed >= FAST_VEHICLE_TOP_SPEED
        fast_mission = duration <= FAST_MISSION_DURATION
        if not (fast_vehicle or fast_mission):
            return None
        if fast_vehicle and fast_mission:
            reason = "fast rig and sprint plan"
        elif fast_vehicle:
            reason = "high-speed rig"
        else:
            reason = "short sprint duration"
        return definition.effect.with_summary(
            f"{definition.label}: {percent_label(definition.effect.success_bonus)} success on {reason}."
        )

    return None
