"""Configuration module."""

from .settings import Settings, SettingsValidationError, EngineConfig, get_settings
from .defaults import DEFAULT_CONFIG, HEAT_TIER_THRESHOLDS

__all__ = [
    "Settings",
    "SettingsValidationError",
    "EngineConfig",
    "get_settings",
    "DEFAULT_CONFIG",
    "HEAT_TIER_THRESHOLDS",
]
