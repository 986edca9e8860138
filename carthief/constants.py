"""Centralized constants for Car Thief.

This module consolidates the tuning numbers used by the mission engine,
modifier pipeline and resolution logic so balance passes touch one file.
"""

from dataclasses import dataclass


# =============================================================================
# Mission Constants
# =============================================================================

@dataclass(frozen=True)
class MissionConstants:
    """Mission lifecycle and outcome bounds."""

    # Final outcome bounds
    MIN_DURATION: int = 5
    MIN_SUCCESS_CHANCE: float = 0.05
    MAX_SUCCESS_CHANCE: float = 0.98

    # Template fallbacks
    DURATION_PER_DIFFICULTY: int = 20
    MIN_FALLBACK_DURATION: int = 20

    # Base success chance = BASE - STEP * (difficulty - 1), bounded
    BASE_SUCCESS_CHANCE: float = 0.75
    SUCCESS_STEP_PER_DIFFICULTY: float = 0.08
    MIN_BASE_SUCCESS: float = 0.3
    MAX_BASE_SUCCESS: float = 0.9


MISSION = MissionConstants()


# =============================================================================
# Crew Modifier Constants
# =============================================================================

@dataclass(frozen=True)
class CrewConstants:
    """Bands and rates used when crew shape a mission."""

    TRAIT_BASELINE: int = 1
    MAX_TRAIT_LEVEL: int = 6
    MIN_LOYALTY: int = 0
    MAX_LOYALTY: int = 5

    # Safe bands per crew member
    MAX_DURATION_REDUCTION: float = 0.55
    MIN_PAYOUT_BONUS: float = -0.2
    MAX_PAYOUT_BONUS: float = 0.7
    MAX_HEAT_REDUCTION: float = 0.75
    MAX_HEAT_INCREASE: float = 0.6
    MIN_SUCCESS_BONUS: float = -0.1
    MAX_SUCCESS_BONUS: float = 0.45

    # Specialty synergy weight for a specialty's signature traits
    SPECIALTY_SYNERGY: float = 1.25

    # Loyalty factor = BASE + STEP * loyalty
    LOYALTY_FACTOR_BASE: float = 0.85
    LOYALTY_FACTOR_STEP: float = 0.05

    # Difficulty factor = 1.1 - STEP * difficulty, bounded
    DIFFICULTY_FACTOR_STEP: float = 0.05
    MIN_DIFFICULTY_FACTOR: float = 0.8
    MAX_DIFFICULTY_FACTOR: float = 1.05

    # Loyalty swing applied at resolution
    SUCCESS_LOYALTY_GAIN: int = 1
    FAILURE_LOYALTY_LOSS: int = 1

    # Fatigue
    MAX_FATIGUE: int = 100
    TIRED_THRESHOLD: int = 45
    EXHAUSTION_THRESHOLD: int = 80
    MISSION_FATIGUE_BASE: int = 26
    MISSION_DURATION_REFERENCE: int = 30
    MISSION_DIFFICULTY_REFERENCE: int = 3
    FATIGUE_RECOVERY_PER_DAY: int = 35
    TIRED_SUCCESS_PENALTY: float = 0.03


CREW = CrewConstants()


# =============================================================================
# Player Constants
# =============================================================================

@dataclass(frozen=True)
class PlayerConstants:
    """Caps on the player's skill contribution."""

    SKILL_BASELINE: int = 1
    MAX_COUNTED_LEVELS: int = 4
    MAX_DURATION_REDUCTION: float = 0.25
    MAX_PAYOUT_BONUS: float = 0.3
    MAX_HEAT_REDUCTION: float = 0.3
    MAX_SUCCESS_BONUS: float = 0.12


PLAYER = PlayerConstants()


# =============================================================================
# Vehicle Constants
# =============================================================================

@dataclass(frozen=True)
class VehicleConstants:
    """Vehicle contribution, wear and garage economics."""

    OPERATIONAL_CONDITION: float = 0.05

    # Agility reference points
    REFERENCE_TOP_SPEED: float = 120.0
    TOP_SPEED_SCALE: float = 200.0
    REFERENCE_ACCELERATION: float = 5.0
    ACCELERATION_WEIGHT: float = 0.04
    REFERENCE_HANDLING: float = 5.0

    CONDITION_DURATION_PENALTY: float = 0.5
    MIN_DURATION_MULTIPLIER: float = 0.35
    MIN_HEAT_MULTIPLIER: float = 0.2
    MAX_HEAT_MULTIPLIER: float = 2.5

    # Flat heat terms
    HEAT_RATING_WEIGHT: float = 0.5
    CONDITION_HEAT_WEIGHT: float = 0.6
    HANDLING_HEAT_MITIGATION: float = 0.1

    # Success terms
    HANDLING_SUCCESS_WEIGHT: float = 0.01
    CONDITION_SUCCESS_WEIGHT: float = 0.04

    # Post-mission wear / heat gain
    BASE_WEAR: float = 0.06
    WEAR_PER_DIFFICULTY: float = 0.02
    FAILURE_WEAR_MULTIPLIER: float = 2.0
    BASE_HEAT_GAIN: float = 0.2
    HEAT_GAIN_PER_MISSION_HEAT: float = 0.1
    FAILURE_HEAT_GAIN_MULTIPLIER: float = 2.0

    # Garage economics
    REPAIR_COST_PER_CONDITION: int = 2400
    HEAT_PURGE_COST_PER_POINT: int = 600
    BASE_RESALE_VALUE: int = 9000
    SCRAP_BASE_PARTS: int = 4
    SCRAP_PARTS_PER_CONDITION: int = 6


VEHICLE = VehicleConstants()


# =============================================================================
# Fallout Constants
# =============================================================================

@dataclass(frozen=True)
class FalloutConstants:
    """Capture/injury odds after a failed mission."""

    BASE_CAPTURE_CHANCE: float = 0.05
    CAPTURE_PER_SEVERITY: float = 0.25
    CAPTURE_PER_DIFFICULTY: float = 0.03
    MAX_CAPTURE_CHANCE: float = 0.6

    BASE_INJURY_CHANCE: float = 0.15
    INJURY_PER_SEVERITY: float = 0.35
    INJURY_PER_DIFFICULTY: float = 0.04
    MAX_INJURY_CHANCE: float = 0.85

    # Severity used when a failure is forced without a roll
    FORCED_FAILURE_SEVERITY: float = 0.5

    SERIOUS_THRESHOLD: float = 0.34
    CRITICAL_THRESHOLD: float = 0.67

    MAX_FALLOUT_LOG: int = 30


FALLOUT = FalloutConstants()


# =============================================================================
# Notoriety Constants
# =============================================================================

@dataclass(frozen=True)
class NotorietyConstants:
    """Notoriety drift rates."""

    MIN_NOTORIETY: float = 0.0
    MAX_NOTORIETY: float = 100.0

    SUCCESS_HEAT_WEIGHT: float = 0.6
    SUCCESS_DIFFICULTY_WEIGHT: float = 0.8
    SUCCESS_PAYOUT_WEIGHT: float = 0.5  # per $10,000
    FAILURE_HEAT_WEIGHT: float = 0.4
    FAILURE_DIFFICULTY_WEIGHT: float = 0.3
    CRACKDOWN_RELIEF_BASE: float = 1.0
    CRACKDOWN_RELIEF_PER_DIFFICULTY: float = 0.8

    # Applied per unit of crackdown pressure change
    CRACKDOWN_SHIFT_STEP: float = 1.5


NOTORIETY = NotorietyConstants()


# =============================================================================
# District Constants
# =============================================================================

@dataclass(frozen=True)
class DistrictConstants:
    """District stat bounds and outcome swings."""

    MIN_STAT: float = 0.0
    MAX_STAT: float = 100.0

    SUCCESS_INFLUENCE_GAIN: float = 2.0
    SUCCESS_INTEL_GAIN: float = 1.0
    FAILURE_INFLUENCE_LOSS: float = 1.0
    FAILURE_PRESSURE_GAIN: float = 2.0
    PRESSURE_PER_MISSION_HEAT: float = 0.5
    CRACKDOWN_OPERATION_PRESSURE_RELIEF: float = 3.0
    NOTORIETY_PRESSURE_SCALE: float = 0.25


DISTRICT = DistrictConstants()
