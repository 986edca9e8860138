"""Default configuration values for Car Thief."""

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    "general": {
        "seed": None,  # None = unseeded RNG
        "log_level": "INFO",
    },
    "missions": {
        "auto_resolve": False,  # Resolve as soon as the timer runs out
        "max_available": 6,  # Contracts kept on the board
        "log_limit": 20,
        "guarantee_failure_fallout": True,
        "base_success_chance": 0.75,
    },
    "heat": {
        "max_heat": 10.0,
        "decay_rate": 0.05,  # Heat shed per second of game time
        "mitigation_log_limit": 20,
    },
    "crackdown": {
        "calm": {"max_mission_heat": None, "failure_heat_multiplier": 2.0},
        "alert": {"max_mission_heat": 2.0, "failure_heat_multiplier": 3.0},
        "lockdown": {"max_mission_heat": 1.0, "failure_heat_multiplier": 4.0},
    },
    "economy": {
        "day_length_seconds": 45,
        "daily_overhead": 500,
    },
    "database": {
        "enabled": False,
        "path": "",  # Empty = default data directory
    },
}

# Heat thresholds for each crackdown tier
HEAT_TIER_THRESHOLDS: dict[str, float] = {
    "calm": 0.0,
    "alert": 3.0,
    "lockdown": 7.0,
}
