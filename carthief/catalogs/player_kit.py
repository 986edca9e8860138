"""Player skill rates and player gear catalog."""

from dataclasses import dataclass
from typing import Optional

from .effects import ModifierEffect


@dataclass(frozen=True)
class PlayerSkillRates:
    """Per-level contribution of one player skill (levels above baseline)."""

    duration_reduction: float = 0.0
    payout_bonus: float = 0.0
    heat_reduction: float = 0.0
    success_bonus: float = 0.0


PLAYER_SKILLS: dict[str, PlayerSkillRates] = {
    "driving": PlayerSkillRates(duration_reduction=0.04, success_bonus=0.01),
    "stealth": PlayerSkillRates(heat_reduction=0.05, success_bonus=0.01),
    "engineering": PlayerSkillRates(duration_reduction=0.02, success_bonus=0.015),
    "charisma": PlayerSkillRates(payout_bonus=0.05, heat_reduction=0.02),
}


@dataclass(frozen=True)
class PlayerGear:
    """Equipment the player brings along."""

    id: str
    label: str
    effect: ModifierEffect


PLAYER_GEAR: dict[str, PlayerGear] = {
    "police-scanner": PlayerGear(
        "police-scanner",
        "Police Scanner",
        ModifierEffect(heat_multiplier=0.92, summary="Police Scanner: heat -8%."),
    ),
    "lockpick-kit": PlayerGear(
        "lockpick-kit",
        "Lockpick Kit",
        ModifierEffect(
            duration_multiplier=0.95,
            success_bonus=0.02,
            summary="Lockpick Kit: duration -5%, success +2%.",
        ),
    ),
    "fence-contacts": PlayerGear(
        "fence-contacts",
        "Fence Contacts",
        ModifierEffect(payout_multiplier=1.06, summary="Fence Contacts: payout +6%."),
    ),
    "burner-phones": PlayerGear(
        "burner-phones",
        "Burner Phones",
        ModifierEffect(heat_multiplier=0.96, success_bonus=0.01, summary="Burner Phones: heat -4%, success +1%."),
    ),
}


def get_player_gear(gear_id: str) -> Optional[PlayerGear]:
    """Look up player gear by id."""
    if not gear_id:
        return None
    return PLAYER_GEAR.get(str(gear_id).strip())
