"""Settings manager for Car Thief."""

import copy
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from .defaults import DEFAULT_CONFIG, HEAT_TIER_THRESHOLDS


class SettingsValidationError(ValueError):
    """Raised when a settings value fails validation."""
    pass


_NUMBER = (int, float)
_OPTIONAL_NUMBER = (int, float, type(None))

# Validation rules for settings
# Format: "key.path" -> (type, min_value, max_value, allowed_values)
_VALIDATION_RULES: dict[str, tuple[type | tuple, Optional[float], Optional[float], Optional[set]]] = {
    # General
    "general.seed": ((int, type(None)), 0, None, None),
    "general.log_level": (str, None, None, {"DEBUG", "INFO", "WARNING", "ERROR"}),

    # Missions
    "missions.auto_resolve": (bool, None, None, None),
    "missions.max_available": (int, 1, 30, None),
    "missions.log_limit": (int, 1, 500, None),
    "missions.guarantee_failure_fallout": (bool, None, None, None),
    "missions.base_success_chance": (_NUMBER, 0.05, 0.98, None),

    # Heat
    "heat.max_heat": (_NUMBER, 1.0, 100.0, None),
    "heat.decay_rate": (_NUMBER, 0.0, 5.0, None),
    "heat.mitigation_log_limit": (int, 1, 500, None),

    # Crackdown tiers
    "crackdown.calm.max_mission_heat": (_OPTIONAL_NUMBER, 0.0, None, None),
    "crackdown.alert.max_mission_heat": (_OPTIONAL_NUMBER, 0.0, None, None),
    "crackdown.lockdown.max_mission_heat": (_OPTIONAL_NUMBER, 0.0, None, None),
    "crackdown.calm.failure_heat_multiplier": (_NUMBER, 1.0, 10.0, None),
    "crackdown.alert.failure_heat_multiplier": (_NUMBER, 1.0, 10.0, None),
    "crackdown.lockdown.failure_heat_multiplier": (_NUMBER, 1.0, 10.0, None),

    # Economy
    "economy.day_length_seconds": (_NUMBER, 1, 3600, None),
    "economy.daily_overhead": (int, 0, None, None),

    # Database
    "database.enabled": (bool, None, None, None),
    "database.path": (str, None, None, None),
}


class Settings:
    """Manages application settings with YAML persistence."""

    def __init__(self, config_path: Path | None = None):
        """Initialize settings manager.

        Args:
            config_path: Path to config file. If None, uses default location.
        """
        if config_path is None:
            config_path = self._get_default_config_path()

        self._config_path = Path(config_path)
        self._config: dict[str, Any] = {}
        self._load()

    def _get_default_config_path(self) -> Path:
        """Get the default configuration file path."""
        if os.name == "nt":
            app_data = Path(os.environ.get("LOCALAPPDATA", Path.home() / "AppData" / "Local"))
        else:
            app_data = Path.home() / ".config"

        config_dir = app_data / "CarThief"
        config_dir.mkdir(parents=True, exist_ok=True)
        return config_dir / "config.yaml"

    def _load(self) -> None:
        """Load configuration from file, creating with defaults if needed."""
        if self._config_path.exists():
            try:
                with open(self._config_path, "r", encoding="utf-8") as f:
                    loaded = yaml.safe_load(f) or {}
                # Loaded values override defaults
                self._config = self._deep_merge(copy.deepcopy(DEFAULT_CONFIG), loaded)
            except (OSError, yaml.YAMLError) as e:
                print(f"Warning: Failed to load config, using defaults: {e}")
                self._config = copy.deepcopy(DEFAULT_CONFIG)
        else:
            self._config = copy.deepcopy(DEFAULT_CONFIG)
            self._save()

    def _save(self) -> None:
        """Save current configuration to file."""
        self._config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self._config_path, "w", encoding="utf-8") as f:
            yaml.dump(self._config, f, default_flow_style=False, sort_keys=False)

    def _deep_merge(self, base: dict, override: dict) -> dict:
        """Deep merge two dictionaries, with override taking precedence."""
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value
        return result

    def get(self, key: str, default: Any = None) -> Any:
        """Get a setting value using dot notation.

        Args:
            key: Setting key in dot notation (e.g., "missions.auto_resolve")
            default: Default value if key not found

        Returns:
            Setting value or default
        """
        keys = key.split(".")
        value = self._config
        try:
            for k in keys:
                value = value[k]
            return value
        except (KeyError, TypeError):
            return default

    def _validate(self, key: str, value: Any) -> Any:
        """Validate a setting value against the rules.

        Args:
            key: Setting key in dot notation
            value: Value to validate

        Returns:
            The validated value

        Raises:
            SettingsValidationError: If validation fails
        """
        if key not in _VALIDATION_RULES:
            return value

        expected_type, min_val, max_val, allowed = _VALIDATION_RULES[key]

        # bool is an int subclass; only accept it where bool is expected
        bool_expected = expected_type is bool or (
            isinstance(expected_type, tuple) and bool in expected_type
        )
        if isinstance(value, bool) and not bool_expected:
            raise SettingsValidationError(
                f"Setting '{key}' must be numeric, got bool"
            )

        if not isinstance(value, expected_type):
            type_name = (
                expected_type.__name__
                if isinstance(expected_type, type)
                else "/".join(t.__name__ for t in expected_type)
            )
            raise SettingsValidationError(
                f"Setting '{key}' must be of type {type_name}, got {type(value).__name__}"
            )

        if isinstance(value, (int, float)) and not isinstance(value, bool):
            if min_val is not None and value < min_val:
                raise SettingsValidationError(
                    f"Setting '{key}' must be >= {min_val}, got {value}"
                )
            if max_val is not None and value > max_val:
                raise SettingsValidationError(
                    f"Setting '{key}' must be <= {max_val}, got {value}"
                )

        if allowed is not None and value not in allowed:
            raise SettingsValidationError(
                f"Setting '{key}' must be one of {sorted(allowed)}, got '{value}'"
            )

        return value

    def set(self, key: str, value: Any, save: bool = True, validate: bool = True) -> None:
        """Set a setting value using dot notation.

        Args:
            key: Setting key in dot notation (e.g., "heat.decay_rate")
            value: Value to set
            save: Whether to immediately save to file
            validate: Whether to validate the value (default True)

        Raises:
            SettingsValidationError: If validation is enabled and fails
        """
        if validate:
            value = self._validate(key, value)

        keys = key.split(".")
        config = self._config

        for k in keys[:-1]:
            if k not in config:
                config[k] = {}
            config = config[k]

        config[keys[-1]] = value

        if save:
            self._save()

    def get_section(self, section: str) -> dict[str, Any]:
        """Get an entire configuration section.

        Args:
            section: Section name (e.g., "missions", "heat")

        Returns:
            Section dictionary or empty dict if not found
        """
        return self._config.get(section, {})

    def reset_to_defaults(self, save: bool = True) -> None:
        """Reset all settings to defaults."""
        self._config = copy.deepcopy(DEFAULT_CONFIG)
        if save:
            self._save()

    def reset_section(self, section: str, save: bool = True) -> None:
        """Reset a specific section to defaults."""
        if section in DEFAULT_CONFIG:
            self._config[section] = copy.deepcopy(DEFAULT_CONFIG[section])
            if save:
                self._save()

    @property
    def config_path(self) -> Path:
        """Get the configuration file path."""
        return self._config_path

    @property
    def data_dir(self) -> Path:
        """Get the data directory (same as config dir)."""
        return self._config_path.parent

    def __repr__(self) -> str:
        return f"Settings(config_path={self._config_path})"


@dataclass(frozen=True)
class EngineConfig:
    """Immutable snapshot of the settings the game systems consume."""

    seed: Optional[int] = None
    auto_resolve: bool = False
    max_available: int = 6
    log_limit: int = 20
    guarantee_failure_fallout: bool = True
    base_success_chance: float = 0.75
    max_heat: float = 10.0
    decay_rate: float = 0.05
    mitigation_log_limit: int = 20
    heat_tiers: dict[str, float] = field(default_factory=lambda: dict(HEAT_TIER_THRESHOLDS))
    crackdown_caps: dict[str, Optional[float]] = field(
        default_factory=lambda: {"calm": None, "alert": 2.0, "lockdown": 1.0}
    )
    failure_heat_multipliers: dict[str, float] = field(
        default_factory=lambda: {"calm": 2.0, "alert": 3.0, "lockdown": 4.0}
    )
    day_length_seconds: float = 45
    daily_overhead: int = 500

    @classmethod
    def from_dict(cls, config: dict[str, Any]) -> "EngineConfig":
        """Build from a settings-shaped dictionary (see DEFAULT_CONFIG)."""
        general = config.get("general", {})
        missions = config.get("missions", {})
        heat = config.get("heat", {})
        crackdown = config.get("crackdown", {})
        economy = config.get("economy", {})

        caps = {}
        multipliers = {}
        for tier in HEAT_TIER_THRESHOLDS:
            tier_config = crackdown.get(tier, {})
            caps[tier] = tier_config.get("max_mission_heat")
            multipliers[tier] = float(tier_config.get("failure_heat_multiplier", 2.0))

        return cls(
            seed=general.get("seed"),
            auto_resolve=bool(missions.get("auto_resolve", False)),
            max_available=int(missions.get("max_available", 6)),
            log_limit=int(missions.get("log_limit", 20)),
            guarantee_failure_fallout=bool(missions.get("guarantee_failure_fallout", True)),
            base_success_chance=float(missions.get("base_success_chance", 0.75)),
            max_heat=float(heat.get("max_heat", 10.0)),
            decay_rate=float(heat.get("decay_rate", 0.05)),
            mitigation_log_limit=int(heat.get("mitigation_log_limit", 20)),
            crackdown_caps=caps,
            failure_heat_multipliers=multipliers,
            day_length_seconds=economy.get("day_length_seconds", 45),
            daily_overhead=int(economy.get("daily_overhead", 500)),
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "EngineConfig":
        """Build from a loaded Settings instance."""
        return cls.from_dict(settings._config)


# Global settings instance (initialized lazily)
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
