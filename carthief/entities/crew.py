"""Crew members, their traits, specialties and backgrounds."""

import random
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from ..catalogs.crew_perks import PerkId, parse_perk_id
from ..catalogs.effects import ModifierEffect
from ..constants import CREW
from ..utils.helpers import clamp, to_finite


class CrewStatus(Enum):
    """Where a crew member currently is."""

    IDLE = "idle"
    ON_MISSION = "on-mission"
    NEEDS_REST = "needs-rest"
    INJURED = "injured"
    CAPTURED = "captured"


@dataclass(frozen=True)
class TraitConfig:
    """A crew trait and what each level above baseline contributes."""

    key: str
    label: str
    description: str
    duration_reduction: float = 0.0
    payout_bonus: float = 0.0
    heat_reduction: float = 0.0
    heat_increase: float = 0.0
    success_bonus: float = 0.0


CREW_TRAITS: dict[str, TraitConfig] = {
    "stealth": TraitConfig(
        "stealth", "Stealth",
        "Keeps operations quiet, reducing heat and trimming execution time.",
        duration_reduction=0.03, heat_reduction=0.06, success_bonus=0.005,
    ),
    "tech": TraitConfig(
        "tech", "Tech",
        "Bypasses electronic locks to raise success odds and payouts.",
        payout_bonus=0.03, success_bonus=0.02,
    ),
    "driving": TraitConfig(
        "driving", "Driving",
        "Controls the getaway, shaving duration and steadying outcomes.",
        duration_reduction=0.05, success_bonus=0.01,
    ),
    "tactics": TraitConfig(
        "tactics", "Tactics",
        "Plans contingencies that stabilize odds and cool heat spikes.",
        heat_reduction=0.03, success_bonus=0.015,
    ),
    "charisma": TraitConfig(
        "charisma", "Charisma",
        "Leverages contacts for better take and lower attention.",
        payout_bonus=0.04, heat_reduction=0.02,
    ),
    "muscle": TraitConfig(
        "muscle", "Muscle",
        "Provides intimidation and muscle to secure bigger cuts.",
        payout_bonus=0.05, heat_increase=0.04, success_bonus=0.005,
    ),
}

CREW_TRAIT_KEYS = tuple(CREW_TRAITS)

SPECIALTY_TRAIT_PROFILE: dict[str, dict[str, int]] = {
    "wheelman": {"driving": 3, "tactics": 2, "stealth": 1},
    "hacker": {"tech": 3, "stealth": 2, "tactics": 1},
    "mechanic": {"tech": 3, "muscle": 1, "tactics": 1},
    "face": {"charisma": 3, "tech": 1, "stealth": 1},
    "infiltrator": {"stealth": 3, "tech": 2, "tactics": 2},
    "tactician": {"tactics": 3, "tech": 1, "charisma": 1},
    "spotter": {"tactics": 2, "stealth": 2, "tech": 2},
    "default": {"tactics": 1, "stealth": 1},
}


@dataclass(frozen=True)
class CrewBackground:
    """Where a crew member came from; grants a perk and a fallback effect."""

    id: str
    name: str
    description: str
    perk: PerkId
    trait_adjustments: dict[str, int]
    effect: ModifierEffect
    specialty_bias: dict[str, float]


CREW_BACKGROUNDS: dict[str, CrewBackground] = {
    "ghost-operative": CrewBackground(
        id="ghost-operative",
        name="Ghost Operative",
        description="Former intelligence asset comfortable slipping through sensor nets.",
        perk=PerkId.GHOST_OPERATIVE,
        trait_adjustments={"stealth": 2, "tech": 1},
        effect=ModifierEffect(heat_multiplier=0.9, success_bonus=0.03,
                              summary="Ghost Operative background: heat -10%, success +3%."),
        specialty_bias={"infiltrator": 1.6, "hacker": 1.4, "spotter": 1.2},
    ),
    "street-racer": CrewBackground(
        id="street-racer",
        name="Street Racer",
        description="Cut their teeth threading traffic and outrunning patrol cars.",
        perk=PerkId.STREET_RACER,
        trait_adjustments={"driving": 2, "tactics": 1},
        effect=ModifierEffect(duration_multiplier=0.88, success_bonus=0.02,
                              summary="Street Racer background: duration -12%, success +2%."),
        specialty_bias={"wheelman": 1.7, "infiltrator": 1.2, "tactician": 1.1},
    ),
    "syndicate-fixer": CrewBackground(
        id="syndicate-fixer",
        name="Syndicate Fixer",
        description="Brokered deals in back rooms and knows who to squeeze for favors.",
        perk=PerkId.SYNDICATE_FIXER,
        trait_adjustments={"charisma": 2, "tech": 1},
        effect=ModifierEffect(payout_multiplier=1.06, heat_multiplier=0.96,
                              summary="Syndicate Fixer background: payout +6%, heat -4%."),
        specialty_bias={"face": 1.7, "hacker": 1.2, "spotter": 1.1},
    ),
    "garage-prodigy": CrewBackground(
        id="garage-prodigy",
        name="Garage Prodigy",
        description="Built custom rigs and knows how to coax extra power from machines.",
        perk=PerkId.GARAGE_PRODIGY,
        trait_adjustments={"tech": 2, "muscle": 1},
        effect=ModifierEffect(payout_multiplier=1.08, success_bonus=0.02,
                              summary="Garage Prodigy background: payout +8%, success +2%."),
        specialty_bias={"mechanic": 1.8, "wheelman": 1.2, "tactician": 1.1},
    ),
    "street-enforcer": CrewBackground(
        id="street-enforcer",
        name="Street Enforcer",
        description="Handled collections and keeps things steady when jobs go sideways.",
        perk=PerkId.STREET_ENFORCER,
        trait_adjustments={"muscle": 2, "tactics": 1},
        effect=ModifierEffect(payout_multiplier=1.05, success_bonus=0.025,
                              summary="Street Enforcer background: payout +5%, success +2.5%."),
        specialty_bias={"mechanic": 1.2, "tactician": 1.3, "face": 1.1},
    ),
}


def get_background(background_id: Optional[str]) -> Optional[CrewBackground]:
    """Look up a background by id."""
    if not background_id:
        return None
    return CREW_BACKGROUNDS.get(str(background_id).lower())


def clamp_trait_level(value: Any) -> int:
    """Round and clamp a raw trait level into 0..MAX_TRAIT_LEVEL."""
    return int(clamp(round(to_finite(value, 0)), 0, CREW.MAX_TRAIT_LEVEL))


def clamp_fatigue(value: Any) -> int:
    """Round and clamp a raw fatigue value into 0..MAX_FATIGUE."""
    return int(clamp(round(to_finite(value, 0)), 0, CREW.MAX_FATIGUE))


def mission_fatigue_impact(duration: float, difficulty: float) -> int:
    """Fatigue a mission of this length and difficulty costs each member."""
    duration_factor = clamp(to_finite(duration, CREW.MISSION_DURATION_REFERENCE) / CREW.MISSION_DURATION_REFERENCE, 0.5, 2.0)
    difficulty_factor = clamp(to_finite(difficulty, 1) / CREW.MISSION_DIFFICULTY_REFERENCE, 0.5, 2.0)
    return round(CREW.MISSION_FATIGUE_BASE * (0.5 + 0.5 * duration_factor) * (0.5 + 0.5 * difficulty_factor))


def _generate_crew_id() -> str:
    return f"crew-{uuid.uuid4().hex[:7]}"


@dataclass
class CrewMember:
    """A hireable specialist."""

    name: str = "Crewmate"
    specialty: str = "wheelman"
    id: str = field(default_factory=_generate_crew_id)
    upkeep: int = 0
    loyalty: int = 1
    traits: dict[str, int] = field(default_factory=lambda: {key: 1 for key in CREW_TRAIT_KEYS})
    background: Optional[CrewBackground] = None
    perks: list[PerkId] = field(default_factory=list)
    gear: list[str] = field(default_factory=list)
    status: CrewStatus = CrewStatus.IDLE
    fatigue: int = 0
    fatigue_recovery_per_day: int = CREW.FATIGUE_RECOVERY_PER_DAY
    fallout_status: Optional[str] = None
    fallout_details: Optional[dict[str, Any]] = None
    completed_story_steps: list[str] = field(default_factory=list)
    last_mission_completed_at: Optional[datetime] = None

    def __post_init__(self):
        self.traits = {
            key: clamp_trait_level(self.traits.get(key, CREW.TRAIT_BASELINE)) for key in CREW_TRAIT_KEYS
        }
        self.loyalty = int(clamp(round(to_finite(self.loyalty, 0)), CREW.MIN_LOYALTY, CREW.MAX_LOYALTY))
        self.fatigue = clamp_fatigue(self.fatigue)
        self.perks = [p for p in (parse_perk_id(raw) for raw in self.perks) if p is not None]
        if self.status == CrewStatus.IDLE and self.is_exhausted():
            self.status = CrewStatus.NEEDS_REST

    # Readiness

    def is_exhausted(self) -> bool:
        """Check if fatigue has crossed the exhaustion threshold."""
        return self.fatigue >= CREW.EXHAUSTION_THRESHOLD

    def is_tired(self) -> bool:
        """Check if fatigue has crossed the tired threshold."""
        return self.fatigue >= CREW.TIRED_THRESHOLD

    def get_readiness_state(self) -> str:
        """Get readiness label: ready, tired or exhausted."""
        if self.is_exhausted():
            return "exhausted"
        if self.is_tired():
            return "tired"
        return "ready"

    def is_mission_ready(self) -> bool:
        """Check if the member can be assigned to a mission."""
        return self.status == CrewStatus.IDLE and not self.is_exhausted()

    # Mission lifecycle

    def begin_mission(self) -> None:
        """Mark the member as deployed."""
        self.status = CrewStatus.ON_MISSION

    def finish_mission(self, fatigue_impact: int = CREW.MISSION_FATIGUE_BASE,
                       completed_at: Optional[datetime] = None) -> int:
        """Release the member after a mission and apply fatigue.

        Args:
            fatigue_impact: Fatigue gained from the mission
            completed_at: Completion timestamp

        Returns:
            Resulting fatigue
        """
        self.fatigue = clamp_fatigue(self.fatigue + fatigue_impact)
        self.last_mission_completed_at = completed_at
        if self.fallout_status:
            return self.fatigue
        self.status = CrewStatus.NEEDS_REST if self.is_exhausted() else CrewStatus.IDLE
        return self.fatigue

    def apply_mission_fallout(self, status: str, details: Optional[dict[str, Any]] = None) -> bool:
        """Flag the member as injured or captured.

        Returns:
            True if the status was recognised and applied
        """
        normalized = str(status or "").strip().lower()
        if normalized not in (CrewStatus.INJURED.value, CrewStatus.CAPTURED.value):
            return False
        self.fallout_status = normalized
        self.fallout_details = dict(details or {}, status=normalized)
        self.status = CrewStatus(normalized)
        return True

    def clear_mission_fallout(self) -> CrewStatus:
        """Return the member to duty after a rescue or medical run."""
        self.fallout_status = None
        self.fallout_details = None
        self.status = CrewStatus.NEEDS_REST if self.is_exhausted() else CrewStatus.IDLE
        return self.status

    def recover_fatigue(self, days: float = 1, recovery_multiplier: float = 1.0) -> int:
        """Recover fatigue over a number of days off.

        Members on a mission do not recover.
        """
        if self.status == CrewStatus.ON_MISSION or days <= 0:
            return self.fatigue
        recovery = self.fatigue_recovery_per_day * max(0.0, recovery_multiplier) * days
        self.fatigue = clamp_fatigue(self.fatigue - recovery)
        if self.status == CrewStatus.NEEDS_REST and not self.is_exhausted():
            self.status = CrewStatus.IDLE
        return self.fatigue

    # Progression

    def adjust_loyalty(self, amount: float) -> int:
        """Shift loyalty, clamped to 0..5."""
        delta = to_finite(amount, 0)
        if delta:
            self.loyalty = int(clamp(round(self.loyalty + delta), CREW.MIN_LOYALTY, CREW.MAX_LOYALTY))
        return self.loyalty

    def adjust_trait(self, trait: str, amount: int = 1) -> Optional[int]:
        """Shift a trait level, returns the new level or None for unknown traits."""
        if trait not in CREW_TRAITS:
            return None
        self.traits[trait] = clamp_trait_level(self.traits.get(trait, 0) + amount)
        return self.traits[trait]

    def add_perk(self, perk: Any) -> bool:
        """Grant a perk, returns False if unknown or already held."""
        perk_id = parse_perk_id(perk)
        if perk_id is None or perk_id in self.perks:
            return False
        self.perks.append(perk_id)
        return True

    def has_perk(self, perk: Any) -> bool:
        """Check if the member holds a perk."""
        return parse_perk_id(perk) in self.perks

    def has_completed_story_step(self, step_id: str) -> bool:
        """Check storyline progress."""
        return step_id in self.completed_story_steps

    def mark_story_step_complete(self, step_id: str) -> None:
        """Record a completed storyline step."""
        if step_id and step_id not in self.completed_story_steps:
            self.completed_story_steps.append(step_id)

    def snapshot(self) -> dict[str, Any]:
        """Pre-mission state used for delta reporting."""
        return {
            "id": self.id,
            "name": self.name,
            "status": self.status.value,
            "loyalty": self.loyalty,
            "fatigue": self.fatigue,
            "traits": dict(self.traits),
        }

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "name": self.name,
            "specialty": self.specialty,
            "upkeep": self.upkeep,
            "loyalty": self.loyalty,
            "traits": dict(self.traits),
            "background_id": self.background.id if self.background else None,
            "perks": [perk.value for perk in self.perks],
            "gear": list(self.gear),
            "status": self.status.value,
            "fatigue": self.fatigue,
            "fallout_status": self.fallout_status,
            "completed_story_steps": list(self.completed_story_steps),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CrewMember":
        """Create from dictionary."""
        kwargs: dict[str, Any] = {
            "name": data.get("name", "Crewmate"),
            "specialty": data.get("specialty", "wheelman"),
            "upkeep": data.get("upkeep", 0),
            "loyalty": data.get("loyalty", 1),
            "traits": dict(data.get("traits", {})),
            "background": get_background(data.get("background_id")),
            "perks": list(data.get("perks", [])),
            "gear": list(data.get("gear", [])),
            "fatigue": data.get("fatigue", 0),
            "fallout_status": data.get("fallout_status"),
            "completed_story_steps": list(data.get("completed_story_steps", [])),
        }
        if data.get("id"):
            kwargs["id"] = data["id"]
        try:
            kwargs["status"] = CrewStatus(data.get("status", "idle"))
        except ValueError:
            kwargs["status"] = CrewStatus.IDLE
        return cls(**kwargs)


def pick_weighted_background(rng: random.Random, specialty: str) -> CrewBackground:
    """Roll a background, biased toward ones that suit the specialty."""
    backgrounds = list(CREW_BACKGROUNDS.values())
    weights = [bg.specialty_bias.get(specialty.lower(), 1.0) for bg in backgrounds]
    return rng.choices(backgrounds, weights=weights, k=1)[0]


def roll_trait_spread(rng: random.Random, specialty: str,
                      background: Optional[CrewBackground] = None) -> dict[str, int]:
    """Roll starting traits from the specialty profile and background."""
    profile = SPECIALTY_TRAIT_PROFILE.get(specialty.lower(), SPECIALTY_TRAIT_PROFILE["default"])
    adjustments = background.trait_adjustments if background else {}

    traits = {}
    for key in CREW_TRAIT_KEYS:
        profile_value = profile.get(key, 0)
        swing = rng.random() * (1.5 if profile_value > 0 else 1.0)
        traits[key] = clamp_trait_level(1 + profile_value + adjustments.get(key, 0) + swing)

    # A few extra points land on the profile's strengths
    weights = [max(0.1, profile.get(key, 0.2) + adjustments.get(key, 0)) for key in CREW_TRAIT_KEYS]
    for _ in range(2 + rng.randrange(3)):
        key = rng.choices(CREW_TRAIT_KEYS, weights=weights, k=1)[0]
        traits[key] = clamp_trait_level(traits[key] + 1)

    return traits


def create_recruit(
    rng: random.Random,
    name: str,
    specialty: str = "wheelman",
    upkeep: int = 0,
    loyalty: int = 1,
    background_id: Optional[str] = None,
    crew_id: Optional[str] = None,
) -> CrewMember:
    """Generate a crew member with rolled background and traits.

    Args:
        rng: Random source
        name: Display name
        specialty: Crew specialty
        upkeep: Daily wage
        loyalty: Starting loyalty
        background_id: Fixed background, rolled if None
        crew_id: Fixed id, generated if None

    Returns:
        New CrewMember holding its background perk
    """
    background = get_background(background_id) or pick_weighted_background(rng, specialty)
    member = CrewMember(
        name=name,
        specialty=specialty,
        upkeep=upkeep,
        loyalty=loyalty,
        traits=roll_trait_spread(rng, specialty, background),
        background=background,
        perks=[background.perk],
    )
    if crew_id:
        member.id = crew_id
    return member
