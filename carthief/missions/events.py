"""Default in-mission event deck.

The engine accepts any callable with the signature of
``build_mission_event_deck``; this module supplies the stock table, the
point-of-interest events and the tier-gated events.
"""

from dataclasses import replace
from typing import Callable, Optional

from .models import ChoiceEffects, DebtTerms, EventChoice, Mission, MissionEvent
from ..game.city import PointOfInterest
from ..utils.helpers import clamp, to_finite


EventDeckBuilder = Callable[[Mission], list[MissionEvent]]


def _choice(choice_id: str, label: str, description: str, narrative: str, **effects) -> EventChoice:
    return EventChoice(choice_id, label, description, narrative, ChoiceEffects(**effects))


MISSION_EVENT_TABLE: tuple[MissionEvent, ...] = (
    MissionEvent(
        id="security-sweep",
        label="Security Sweep",
        description="A surprise patrol sweeps the block just as the crew breaches the perimeter.",
        trigger_progress=0.25,
        min_difficulty=1,
        choices=[
            _choice(
                "security-sweep-burn-gear",
                "Burn backup gear for stealth",
                "Spend spare tools to stay invisible and steady the crew.",
                "Crew burned backup gear to ghost past the sweep.",
                payout_multiplier=0.9, heat_delta=-1.5, success_delta=0.05,
            ),
            _choice(
                "security-sweep-push-through",
                "Punch through the checkpoint",
                "Gun it past patrols to save time at the cost of extra attention.",
                "They redlined the engines to beat the sweep.",
                duration_multiplier=0.85, heat_delta=1.2, success_delta=-0.04,
            ),
        ],
    ),
    MissionEvent(
        id="vault-cache",
        label="Hidden Cache",
        description="The crew spots an unlisted stash locker near the objective.",
        trigger_progress=0.55,
        min_difficulty=2,
        choices=[
            _choice(
                "vault-cache-grab",
                "Crack it for a bigger score",
                "Divert time to raid the cache for extra payout but heat rises.",
                "Crew cracked the side cache for extra loot.",
                payout_multiplier=1.2, heat_delta=1, success_delta=-0.03, duration_multiplier=1.05,
            ),
            _choice(
                "vault-cache-mark",
                "Tag it for later",
                "Log the stash for a future run, keeping the mission tight.",
                "They logged the cache for later and stayed on-plan.",
                success_delta=0.03,
            ),
        ],
    ),
    MissionEvent(
        id="loan-shark-float",
        label="Loan Shark Float",
        description="A loan shark offers to front replacement gear after a supplier bails.",
        trigger_progress=0.7,
        min_difficulty=2,
        risk_tiers=frozenset({"moderate", "high"}),
        choices=[
            _choice(
                "loan-shark-float-accept",
                "Take the loan",
                "Gear up now and repay the shark out of the next clean score.",
                "Crew took the shark's money and kept the op on schedule.",
                success_delta=0.06,
                future_debt=DebtTerms(2500, "Loan shark float, due from the next payout."),
            ),
            _choice(
                "loan-shark-float-refuse",
                "Improvise without it",
                "Make do with what's on hand and accept a slower finish.",
                "They jury-rigged the kit and stayed off the shark's books.",
                duration_delta=6, success_delta=-0.02,
            ),
        ],
    ),
    MissionEvent(
        id="checkpoint-dragnet",
        label="Checkpoint Dragnet",
        description="Crackdown units throw up rolling checkpoints across the exit routes.",
        trigger_progress=0.4,
        min_difficulty=1,
        crackdown_tiers=frozenset({"alert", "lockdown"}),
        choices=[
            _choice(
                "checkpoint-dragnet-bribe",
                "Pay off the checkpoint",
                "Hand over cash to a bent sergeant and roll through.",
                "A fat envelope bought them a wave through the dragnet.",
                payout_delta=-1500, heat_delta=-0.8,
            ),
            _choice(
                "checkpoint-dragnet-detour",
                "Take the long way around",
                "Thread the back alleys and let the checkpoints clear.",
                "They ghosted the dragnet through service alleys.",
                duration_delta=8, success_delta=0.02,
            ),
        ],
    ),
    MissionEvent(
        id="exit-ambush",
        label="Exit Ambush",
        description="An unmarked cruiser blocks the getaway route moments before extraction.",
        trigger_progress=0.85,
        min_difficulty=1,
        choices=[
            _choice(
                "exit-ambush-favors",
                "Call in favors for extraction",
                "Burn goodwill to stay safe, hurting loyalty but cooling heat.",
                "Burned a stack of favors for a clean extraction.",
                heat_delta=-1, success_delta=0.04, crew_loyalty_delta=-1,
            ),
            _choice(
                "exit-ambush-hold",
                "Hold the line and push through",
                "Fight through the block, risking more attention for better loot.",
                "They muscled through the blockade and kept the haul intact.",
                payout_multiplier=1.1, heat_delta=1.3, success_delta=-0.02, duration_multiplier=1.1,
            ),
        ],
    ),
)


# =============================================================================
# Point-of-interest events
# =============================================================================

def _vault_event(poi: PointOfInterest) -> MissionEvent:
    return MissionEvent(
        id=f"poi-{poi.id}-failsafe",
        label="Failsafe Countdown",
        description=f"Emergency shutters begin to seal {poi.name}, threatening to trap the crew and loot inside.",
        trigger_progress=0.62,
        min_difficulty=1,
        choices=[
            _choice(
                f"poi-{poi.id}-overload",
                "Overload the failsafe",
                "Burn charge packs to stall the lockdown and keep the vault open.",
                f"They overloaded the failsafe at {poi.name} long enough to finish the pull.",
                payout_multiplier=0.97, heat_delta=-1, success_delta=0.06,
            ),
            _choice(
                f"poi-{poi.id}-cut-losses",
                "Cut the haul and bail",
                "Grab the smallest crates and punch out before the shutters seal.",
                f"Crew bailed early with a lean haul from {poi.name}.",
                payout_multiplier=0.78, duration_multiplier=0.85, success_delta=0.1,
            ),
        ],
    )


def _tech_hub_event(poi: PointOfInterest) -> MissionEvent:
    return MissionEvent(
        id=f"poi-{poi.id}-datafork",
        label="Prototype Firewall",
        description=f"An experimental AI firewall flags the intrusion at {poi.name}.",
        trigger_progress=0.48,
        min_difficulty=2,
        choices=[
            _choice(
                f"poi-{poi.id}-recode",
                "Spin up a counter-script",
                "Pause the lift and let your hacker duel the AI for cleaner exfil.",
                f"The crew duelled {poi.name}'s firewall and slipped out ghost-clean.",
                duration_multiplier=1.12, heat_delta=-1.5, success_delta=0.04,
            ),
            _choice(
                f"poi-{poi.id}-scramble",
                "Scramble the drives",
                "Torch a cache of prototypes to blind the system and bolt.",
                f"They torched prototype racks inside {poi.name} to cover their retreat.",
                payout_multiplier=0.9, heat_delta=1.4, success_delta=-0.03,
            ),
        ],
    )


def _rail_yard_event(poi: PointOfInterest) -> MissionEvent:
    return MissionEvent(
        id=f"poi-{poi.id}-switch",
        label="Switchyard Shuffle",
        description=f"A dispatcher reroutes locomotives near {poi.name}, threatening the getaway lane.",
        trigger_progress=0.35,
        min_difficulty=1,
        choices=[
            _choice(
                f"poi-{poi.id}-bribe",
                "Bribe the dispatcher",
                "Grease the yard chief to freeze the rail grid in your favor.",
                f"Crew greased the dispatcher and kept {poi.name} running quiet.",
                heat_delta=-0.5, payout_multiplier=0.95,
            ),
            _choice(
                f"poi-{poi.id}-barge-through",
                "Gun engines through the maze",
                "Ride the chaos, risking a pile-up for a faster exit.",
                f"They blasted through the rail maze around {poi.name}.",
                duration_multiplier=0.75, heat_delta=1.1, success_delta=-0.05,
            ),
        ],
    )


def _smuggling_cache_event(poi: PointOfInterest) -> MissionEvent:
    return MissionEvent(
        id=f"poi-{poi.id}-doublecross",
        label="Inside Contact",
        description=f"A fixer tied to {poi.name} demands a cut to stay quiet.",
        trigger_progress=0.52,
        min_difficulty=1,
        choices=[
            _choice(
                f"poi-{poi.id}-payoff",
                "Cut them in",
                "Hand over a slice of the score to keep the network friendly.",
                f"They cut the fixer at {poi.name} into the score.",
                payout_multiplier=0.88, heat_delta=-1.2, crew_loyalty_delta=1,
            ),
            _choice(
                f"poi-{poi.id}-ghost",
                "Ghost the contact",
                "Ice the fixer and race the inevitable retaliation.",
                f"Crew ghosted the fixer near {poi.name} and kicked the hornet nest.",
                heat_delta=1.6, success_delta=-0.04, payout_multiplier=1.12,
            ),
        ],
    )


def _showroom_event(poi: PointOfInterest) -> MissionEvent:
    return MissionEvent(
        id=f"poi-{poi.id}-demo",
        label="Surprise Demo Night",
        description=f"Investors swing by {poi.name} for an unscheduled product demo.",
        trigger_progress=0.42,
        min_difficulty=2,
        choices=[
            _choice(
                f"poi-{poi.id}-blend",
                "Blend with the crowd",
                "Throw on glam threads and mingle to stay off sensors.",
                f"They blended with the crowd touring {poi.name} and kept things cool.",
                heat_delta=-0.8, duration_multiplier=1.08,
            ),
            _choice(
                f"poi-{poi.id}-flash",
                "Flash a reckless showcase",
                "Turn the demo into cover for loading the prize ride. Loud but lucrative.",
                f"Crew hijacked the demo at {poi.name} for a bigger payoff.",
                payout_multiplier=1.18, heat_delta=1.3, success_delta=-0.02,
            ),
        ],
    )


def _opportunity_event(poi: PointOfInterest) -> MissionEvent:
    return MissionEvent(
        id=f"poi-{poi.id}-opportunity",
        label=f"{poi.name} Opportunity",
        description=f"A fleeting opportunity presents itself inside {poi.name}.",
        trigger_progress=0.5,
        min_difficulty=1,
        choices=[
            _choice(
                f"poi-{poi.id}-capitalize",
                "Capitalize on the moment",
                "Press the advantage for more score while drawing attention.",
                f"Crew pressed their luck at {poi.name}.",
                payout_multiplier=1.1, heat_delta=1,
            ),
            _choice(
                f"poi-{poi.id}-withdraw",
                "Stick to the plan",
                "Ignore the distraction and keep the mission tight.",
                f"They ignored the side hustle inside {poi.name}.",
                success_delta=0.05,
            ),
        ],
    )


POI_EVENT_BUILDERS: dict[str, Callable[[PointOfInterest], MissionEvent]] = {
    "vault": _vault_event,
    "tech-hub": _tech_hub_event,
    "rail-yard": _rail_yard_event,
    "smuggling-cache": _smuggling_cache_event,
    "showroom": _showroom_event,
}


def build_poi_event(poi: Optional[PointOfInterest]) -> Optional[MissionEvent]:
    """Event tied to a point of interest, None without one."""
    if poi is None or not poi.type:
        return None
    builder = POI_EVENT_BUILDERS.get(poi.type, _opportunity_event)
    event = builder(poi)
    event.poi_context = {"id": poi.id, "name": poi.name, "type": poi.type}
    return event


# =============================================================================
# Deck builder
# =============================================================================

def _is_eligible(event: MissionEvent, mission: Mission) -> bool:
    difficulty = to_finite(mission.difficulty, 1)
    if not event.min_difficulty <= difficulty <= event.max_difficulty:
        return False
    if event.risk_tiers is not None and mission.risk_tier not in event.risk_tiers:
        return False
    tier = mission.crackdown_tier or "calm"
    if event.crackdown_tiers is not None and tier not in event.crackdown_tiers:
        return False
    return True


def _fresh_copy(event: MissionEvent) -> MissionEvent:
    return replace(
        event,
        trigger_progress=clamp(to_finite(event.trigger_progress, 0.5), 0.0, 1.0),
        choices=list(event.choices),
        poi_context=dict(event.poi_context) if event.poi_context else None,
        triggered=False,
        resolved=False,
    )


def build_mission_event_deck(mission: Mission) -> list[MissionEvent]:
    """Build a fresh event deck for a mission, ordered by trigger progress.

    Args:
        mission: Mission being started; difficulty, risk tier, crackdown
            tier and point of interest select the events

    Returns:
        New MissionEvent instances sorted by trigger_progress
    """
    deck = [_fresh_copy(event) for event in MISSION_EVENT_TABLE if _is_eligible(event, mission)]

    poi_event = build_poi_event(mission.point_of_interest)
    if poi_event is not None and _is_eligible(poi_event, mission):
        deck.append(_fresh_copy(poi_event))

    return sorted(deck, key=lambda event: event.trigger_progress)
