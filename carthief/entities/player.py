"""The player character."""

from dataclasses import dataclass, field
from typing import Any, Optional

from ..catalogs.player_kit import PLAYER_SKILLS
from ..constants import PLAYER


def _default_skills() -> dict[str, int]:
    return {skill: PLAYER.SKILL_BASELINE for skill in PLAYER_SKILLS}


@dataclass
class Player:
    """The crew boss: skills, equipped gear and notoriety."""

    name: str = "Unknown Driver"
    notoriety: float = 0.0
    skills: dict[str, int] = field(default_factory=_default_skills)
    inventory: list[str] = field(default_factory=list)
    safehouse_id: Optional[str] = None

    def __post_init__(self):
        merged = _default_skills()
        merged.update(self.skills)
        self.skills = merged

    def improve_skill(self, skill: str, amount: int = 1) -> int:
        """Raise a skill level. Returns the new level."""
        self.skills[skill] = self.skills.get(skill, 0) + amount
        return self.skills[skill]

    def add_inventory_item(self, item_id: str) -> None:
        """Equip a gear item."""
        self.inventory.append(item_id)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "name": self.name,
            "notoriety": self.notoriety,
            "skills": dict(self.skills),
            "inventory": list(self.inventory),
            "safehouse_id": self.safehouse_id,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Player":
        """Create from dictionary."""
        return cls(
            name=data.get("name", "Unknown Driver"),
            notoriety=data.get("notoriety", 0.0),
            skills=dict(data.get("skills", {})),
            inventory=list(data.get("inventory", [])),
            safehouse_id=data.get("safehouse_id"),
        )
