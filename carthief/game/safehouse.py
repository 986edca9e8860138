"""Safehouse storage tiers."""

from dataclasses import dataclass
from typing import Any


# Garage slots per safehouse tier level
STORAGE_CAPACITY_BY_TIER = {
    1: 4,
    2: 6,
    3: 9,
    4: 12,
}


@dataclass
class Safehouse:
    """The crew's base; its tier decides how many cars fit in the garage."""

    id: str = "safehouse-alpha"
    name: str = "Alpha Lockup"
    tier: int = 1

    def __post_init__(self):
        self.tier = max(1, min(max(STORAGE_CAPACITY_BY_TIER), int(self.tier)))

    def get_storage_capacity(self) -> int:
        """Number of vehicles the garage can hold."""
        return STORAGE_CAPACITY_BY_TIER[self.tier]

    def upgrade(self) -> bool:
        """Move up one tier. Returns False at the top tier."""
        if self.tier >= max(STORAGE_CAPACITY_BY_TIER):
            return False
        self.tier += 1
        return True

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {"id": self.id, "name": self.name, "tier": self.tier}
