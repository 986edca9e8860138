"""Crew gear catalog."""

from dataclasses import dataclass
from typing import Callable, Optional

from .crew_perks import PerkContext
from .effects import ModifierEffect
from ..utils.helpers import percent_label, to_finite


@dataclass(frozen=True)
class CrewGear:
    """A piece of kit a crew member carries into a job."""

    id: str
    label: str
    description: str
    cost: int
    resolve: Callable[[PerkContext], ModifierEffect]


def _static(effect: ModifierEffect) -> Callable[[PerkContext], ModifierEffect]:
    return lambda context: effect


def _signal_disruptor(context: PerkContext) -> ModifierEffect:
    difficulty = to_finite(getattr(context.mission, "difficulty", None), 0)
    heat_pressure = context.base_heat >= 1.4
    tough_contract = difficulty >= 3
    if not heat_pressure and not tough_contract:
        return ModifierEffect(heat_multiplier=0.98, summary="Signal Disruptor: heat -2% on routine runs.")

    if heat_pressure and tough_contract:
        label = "high-heat, high-risk contracts"
    elif heat_pressure:
        label = "high-heat routes"
    else:
        label = "high-difficulty contracts"
    return ModifierEffect(
        heat_multiplier=0.92,
        success_bonus=0.03,
        summary=f"Signal Disruptor: heat -8%, {percent_label(0.03)} success on {label}.",
    )


def _wheelman_escape_pack(context: PerkContext) -> ModifierEffect:
    specialty = str(getattr(context.member, "specialty", "") or "").lower()
    is_wheelman = specialty == "wheelman"
    handling = to_finite(getattr(context.vehicle, "handling", None), 0)
    handling_bonus = 0.01 if handling >= 6 else 0.0

    duration_multiplier = 0.88 if is_wheelman else 0.94
    heat_multiplier = 0.94 if is_wheelman else 0.97
    success_bonus = (0.03 if is_wheelman else 0.017) + handling_bonus

    parts = [
        f"Wheelman Escape Pack: {percent_label(1 - duration_multiplier)} faster exits,",
        f"{percent_label(success_bonus)} success from staged routes.",
    ]
    if handling_bonus:
        parts.append("High-handling ride adds an extra +1% success.")
    return ModifierEffect(
        duration_multiplier=duration_multiplier,
        heat_multiplier=heat_multiplier,
        success_bonus=success_bonus,
        summary=" ".join(parts),
    )


CREW_GEAR: dict[str, CrewGear] = {
    "thermal-shroud": CrewGear(
        id="thermal-shroud",
        label="Thermal Shroud",
        description="Active cooling mesh that masks exhaust heat during infiltration.",
        cost=4200,
        resolve=_static(ModifierEffect(
            heat_multiplier=0.94,
            summary="Thermal Shroud: heat -6% from cooled signatures.",
        )),
    ),
    "relay-drone": CrewGear(
        id="relay-drone",
        label="Relay Drone",
        description="Autonomous scout that feeds updated escape routes mid-mission.",
        cost=4700,
        resolve=_static(ModifierEffect(
            duration_multiplier=0.95,
            success_bonus=0.02,
            summary="Relay Drone: 5% faster execution, +2% success from live routing.",
        )),
    ),
    "signal-disruptor": CrewGear(
        id="signal-disruptor",
        label="Signal Disruptor",
        description="Pulsed scrambler that shines when pressure spikes on high-heat jobs.",
        cost=5200,
        resolve=_signal_disruptor,
    ),
    "wheelman-escape-pack": CrewGear(
        id="wheelman-escape-pack",
        label="Wheelman Escape Pack",
        description="Pre-rigged exfil caches tuned for wheelmen to blast through roadblocks.",
        cost=3600,
        resolve=_wheelman_escape_pack,
    ),
}


def get_crew_gear(gear_id: str) -> Optional[CrewGear]:
    """Look up crew gear by id."""
    if not gear_id:
        return None
    return CREW_GEAR.get(str(gear_id).strip())


def resolve_gear_effect(gear_id: str, context: PerkContext) -> Optional[ModifierEffect]:
    """Resolve a gear item against mission context, None if unknown."""
    gear = get_crew_gear(gear_id)
    if gear is None:
        return None
    return gear.resolve(context)
