"""Entry point for Car Thief.

Runs a headless campaign: the board is seeded, the first startable
contract is taken with whoever is ready, every decision takes the first
option, and the game clock is ticked one second at a time.
"""

import logging
import random
import sys
from typing import Optional

from .config.settings import EngineConfig, get_settings
from .database.repository import create_repository
from .game.state import GameState, create_initial_game_state
from .missions.engine import MissionSystem
from .missions.models import Mission
from .missions.status import MissionStatus
from .utils.helpers import format_money, format_time
from .utils.logging import setup_logging, get_logger


DEFAULT_TICKS = 600


def _parse_int_flag(args: list[str], flag: str, default: Optional[int]) -> Optional[int]:
    """Read "--flag N" from the argument list."""
    if flag not in args:
        return default
    index = args.index(flag)
    try:
        return int(args[index + 1])
    except (IndexError, ValueError):
        raise SystemExit(f"{flag} expects an integer")


def _pick_contract(engine: MissionSystem) -> Optional[Mission]:
    """First unrestricted contract on the board."""
    return next(
        (m for m in engine.state.available_missions if m.is_available and not m.restricted),
        None,
    )


def _step(engine: MissionSystem, state: GameState) -> None:
    """Drive the active mission forward, or start a new one."""
    mission = state.active_mission
    if mission is None:
        contract = _pick_contract(engine)
        ready = [member.id for member in state.crew if member.is_mission_ready()]
        if contract is not None and ready:
            engine.start_mission(contract.id, ready)
        return

    if mission.status == MissionStatus.DECISION_REQUIRED and mission.pending_decision:
        decision = mission.pending_decision
        engine.choose_mission_event_option(decision.event_id, decision.choices[0].id)
    elif mission.status == MissionStatus.AWAITING_RESOLUTION:
        resolved = engine.resolve_mission(mission.id)
        if resolved is not None and resolved.resolution_details is not None:
            entry = resolved.resolution_details
            print(
                f"[day {state.day}] {entry.mission_name}: {entry.outcome} "
                f"| net {format_money(entry.net_payout)} | heat {state.heat:.1f} ({state.heat_tier}) "
                f"| funds {format_money(state.funds)}"
            )


def run_campaign(engine: MissionSystem, ticks: int) -> GameState:
    """Tick the campaign for a number of game seconds."""
    state = engine.state
    engine.generate_initial_contracts()
    for _ in range(ticks):
        engine.heat.update(1.0)
        engine.economy.update(1.0)
        engine.update(1.0)
        _step(engine, state)
    return state


def main(args: Optional[list[str]] = None) -> int:
    """Main entry point."""
    if args is None:
        args = sys.argv[1:]

    # Parse arguments
    debug_mode = "--debug" in args
    seed = _parse_int_flag(args, "--seed", None)
    ticks = _parse_int_flag(args, "--ticks", DEFAULT_TICKS)

    # Setup logging
    settings = get_settings()
    log_level = logging.DEBUG if debug_mode else getattr(logging, settings.get("general.log_level", "INFO"))
    setup_logging(level=log_level)

    logger = get_logger("main")
    logger.info("Car Thief starting...")
    logger.info(f"Config path: {settings.config_path}")

    config = EngineConfig.from_settings(settings)
    repository = create_repository(
        bool(settings.get("database.enabled", False)),
        settings.get("database.path", ""),
    )

    state = create_initial_game_state()
    engine = MissionSystem(
        state,
        config=config,
        rng=random.Random(seed if seed is not None else config.seed),
        repository=repository,
    )

    try:
        run_campaign(engine, ticks)
    except KeyboardInterrupt:
        logger.info("Interrupted")
    finally:
        if repository is not None:
            repository.close()

    print(
        f"Ran {format_time(ticks)} of game time: {len(state.mission_log)} missions logged, "
        f"funds {format_money(state.funds)}, notoriety {engine.get_notoriety():.1f} "
        f"({engine.get_notoriety_level().label})"
    )
    snapshot = state.city.get_campaign_snapshot()
    print(
        f"{snapshot['city']}: {snapshot['controlled_districts']}/{len(snapshot['districts'])} districts controlled, "
        f"average influence {snapshot['average_influence']:.1f}"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
