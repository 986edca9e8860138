"""Crew loyalty storylines.

Each background has a short chain of personal jobs unlocked by loyalty.
Completing a step raises loyalty, boosts a trait and grants a perk;
failing one costs loyalty and leaves the step open.
"""

from dataclasses import dataclass, field
from typing import Iterable, Optional

from .models import ContractTemplate, StorylineLink
from ..catalogs.crew_perks import PerkId
from ..entities.crew import CrewMember
from ..utils.logging import get_logger


logger = get_logger("missions.storylines")


@dataclass(frozen=True)
class StorylineStep:
    """One personal job in a crew member's storyline."""

    id: str
    label: str
    loyalty_requirement: int
    difficulty: int
    payout: int
    heat: float
    duration: int
    description: str
    success_loyalty: int = 1
    trait_boosts: dict[str, int] = field(default_factory=dict)
    perk: Optional[PerkId] = None
    failure_loyalty: int = -1
    success_summary: str = ""
    failure_summary: str = ""


@dataclass(frozen=True)
class StorylineOutcome:
    """What a storyline step did to the crew member."""

    step_id: str
    success: bool
    loyalty_delta: int
    trait_boosts: dict[str, int]
    perk_awarded: Optional[PerkId]
    summary: str


STORYLINES: dict[str, tuple[StorylineStep, ...]] = {
    "ghost-operative": (
        StorylineStep(
            "ghost-operative-signal-cut", "Silence the Signal Net", 3, 2, 9000, 1, 32,
            "Trace a covert surveillance uplink and crash it before the crackdown locks you out.",
            trait_boosts={"stealth": 1}, perk=PerkId.SIGNAL_SCRAMBLER,
            success_summary="Ghost network restored; stealth routines strengthened.",
            failure_summary="Asset compromised; loyalty shaken until you rebuild trust.",
        ),
        StorylineStep(
            "ghost-operative-shadow-web", "Restore the Shadow Web", 4, 3, 12000, 1, 44,
            "Broker encrypted backchannels so the crew can vanish after priority heists.",
            trait_boosts={"tech": 1}, perk=PerkId.PHANTOM_OVERWATCH,
            success_summary="Shadow web rebuilt; tech instincts sharpened.",
            failure_summary="The counter-intel seed money burned; loyalty falters.",
        ),
    ),
    "garage-prodigy": (
        StorylineStep(
            "garage-prodigy-salvage", "Secure Prototype Salvage", 3, 2, 8500, 1, 36,
            "Lift a crate of prototype parts before corporate recovery crews arrive.",
            trait_boosts={"tech": 1}, perk=PerkId.CUSTOM_FABRICATION,
            success_summary="Prototype haul secured; fabrication talent surges.",
            failure_summary="Parts lost to a sweep; confidence dips.",
        ),
        StorylineStep(
            "garage-prodigy-testbed", "Stress-Test the New Rig", 4, 3, 14000, 1, 48,
            "Run a midnight shakedown sprint to prove the new drivetrain concept.",
            trait_boosts={"driving": 1}, perk=PerkId.DYNO_WHISPERER,
            success_summary="Dyno data locked; driving instincts dialed in.",
            failure_summary="Test rig flames out; trust takes a hit.",
        ),
    ),
    "syndicate-fixer": (
        StorylineStep(
            "syndicate-fixer-blackmail", "Collect the Blackmail Ledger", 3, 2, 10000, 1, 34,
            "Raid a private banker and seize leverage on the crackdown task force.",
            trait_boosts={"charisma": 1}, perk=PerkId.FAVORS_ON_CALL,
            success_summary="Ledger secured; new favors flood in.",
            failure_summary="The mark escaped; crew trust rattled.",
        ),
        StorylineStep(
            "syndicate-fixer-courier", "Broker the Courier Truce", 4, 3, 15000, 1, 46,
            "Cut a deal between rival crews so high-value jobs stay off the crackdown radar.",
            trait_boosts={"tactics": 1}, perk=PerkId.SMOKESCREEN_RETAINER,
            success_summary="Courier truce forged; tactical planning sharpens.",
            failure_summary="Talks collapse; loyalty cools.",
        ),
    ),
    "street-enforcer": (
        StorylineStep(
            "street-enforcer-protection", "Shield the Safehouse Ring", 3, 2, 9000, 1, 38,
            "Intercept a crackdown strike team hunting your satellite safehouses.",
            trait_boosts={"muscle": 1}, perk=PerkId.FRONTLINE_VETERAN,
            success_summary="Safehouse ring defended; frontline grit reinforced.",
            failure_summary="Strike team broke through; loyalty sours.",
        ),
        StorylineStep(
            "street-enforcer-insurgency", "Stage the Counter-Insurgency", 4, 3, 13000, 1, 50,
            "Lead a night raid that forces the crackdown to redeploy.",
            trait_boosts={"tactics": 1}, perk=PerkId.ZONE_COMMANDER,
            success_summary="Counter-strike lands; tactical instincts refined.",
            failure_summary="Offensive stalled; loyalty dips.",
        ),
    ),
    "street-racer": (
        StorylineStep(
            "street-racer-hijack", "Hijack the Crackdown Convoy", 3, 2, 9500, 1, 30,
            "Ambush a task force convoy to reclaim impounded performance parts.",
            trait_boosts={"driving": 1}, perk=PerkId.CONVOY_RAIDER,
            success_summary="Convoy cracked; wheelman instincts sharpened.",
            failure_summary="Convoy slipped away; loyalty shaken.",
        ),
        StorylineStep(
            "street-racer-rally", "Win the Midnight Rally", 4, 3, 13500, 1, 42,
            "Outrun crackdown interceptors during a midnight showcase to restore cred.",
            trait_boosts={"stealth": 1}, perk=PerkId.GHOST_LINES,
            success_summary="Rally domination; stealth instincts tuned for motion.",
            failure_summary="Crash-out broadcast; morale rattled.",
        ),
    ),
    "default": (
        StorylineStep(
            "crew-default-trust", "Earned Trust Operation", 3, 2, 8000, 1, 32,
            "Complete a precision contract that cements the crew member's loyalty.",
            success_summary="Trust secured; loyalty climbs.",
            failure_summary="Operation faltered; loyalty slips.",
        ),
    ),
}


def get_storyline(background_id: Optional[str]) -> tuple[StorylineStep, ...]:
    """Steps for a background, the default chain if it has none."""
    return STORYLINES.get(str(background_id or "").lower(), STORYLINES["default"])


def get_next_eligible_step(member: CrewMember) -> Optional[StorylineStep]:
    """First uncompleted step the member's loyalty unlocks."""
    storyline = get_storyline(member.background.id if member.background else None)
    return next(
        (
            step for step in storyline
            if not member.has_completed_story_step(step.id) and member.loyalty >= step.loyalty_requirement
        ),
        None,
    )


def build_storyline_template(member: CrewMember, step: StorylineStep) -> ContractTemplate:
    """Contract template for one storyline step."""
    return ContractTemplate(
        id=f"loyalty-{member.id}-{step.id}",
        name=f"{member.name}: {step.label}",
        description=step.description,
        difficulty=step.difficulty,
        payout=step.payout,
        heat=step.heat,
        duration=step.duration,
        category="crew-loyalty",
        ignore_crackdown_restrictions=True,
        respawn=False,
        storyline=StorylineLink(
            crew_id=member.id,
            crew_name=member.name,
            background_id=member.background.id if member.background else "default",
            step_id=step.id,
        ),
    )


def get_available_crew_storyline_missions(crew: Iterable[CrewMember]) -> list[ContractTemplate]:
    """One template per crew member with an eligible step."""
    templates = []
    for member in crew:
        step = get_next_eligible_step(member)
        if step is not None:
            templates.append(build_storyline_template(member, step))
    return templates


def apply_crew_storyline_outcome(member: CrewMember, step_id: str, outcome: str) -> Optional[StorylineOutcome]:
    """Apply a storyline step's reward or penalty.

    Args:
        member: Crew member the storyline belongs to
        step_id: Step that was attempted
        outcome: "success" or "failure"

    Returns:
        StorylineOutcome, or None if the step is not in the member's storyline
    """
    storyline = get_storyline(member.background.id if member.background else None)
    step = next((entry for entry in storyline if entry.id == step_id), None)
    if step is None:
        logger.warning(f"Unknown storyline step {step_id} for {member.name}")
        return None

    success = outcome == "success"
    loyalty_delta = step.success_loyalty if success else step.failure_loyalty
    member.adjust_loyalty(loyalty_delta)

    trait_boosts: dict[str, int] = {}
    perk_awarded = None
    if success:
        for trait, amount in step.trait_boosts.items():
            before = member.traits.get(trait, 0)
            after = member.adjust_trait(trait, amount)
            if after is not None:
                trait_boosts[trait] = after - before
        if step.perk is not None and member.add_perk(step.perk):
            perk_awarded = step.perk
        member.mark_story_step_complete(step.id)

    summary = step.success_summary if success else step.failure_summary
    logger.info(f"Storyline {step.id} ({outcome}) for {member.name}: {summary}")
    return StorylineOutcome(
        step_id=step.id,
        success=success,
        loyalty_delta=loyalty_delta,
        trait_boosts=trait_boosts,
        perk_awarded=perk_awarded,
        summary=summary,
    )
