"""Shared effect descriptor used by every modifier catalog."""

from dataclasses import dataclass, replace


@dataclass(frozen=True)
class ModifierEffect:
    """Bounded effect a catalog entry applies to a mission.

    Multipliers compose multiplicatively, success bonus and heat
    adjustment add up.
    """

    duration_multiplier: float = 1.0
    payout_multiplier: float = 1.0
    heat_multiplier: float = 1.0
    success_bonus: float = 0.0
    heat_adjustment: float = 0.0
    summary: str = ""

    def with_summary(self, summary: str) -> "ModifierEffect":
        """Copy of this effect carrying a different summary."""
        return replace(self, summary=summary)


NEUTRAL_EFFECT = ModifierEffect()
