"""Tests for settings validation."""

import pytest

from carthief.config.defaults import DEFAULT_CONFIG
from carthief.config.settings import EngineConfig, Settings, SettingsValidationError


class TestSettingsValidation:
    """Tests for settings validation."""

    @pytest.fixture
    def settings(self, tmp_path):
        """Create a settings instance with a temp config file."""
        config_path = tmp_path / "config.yaml"
        return Settings(config_path)

    def test_defaults_written(self, settings):
        """Test a missing config file is created with defaults."""
        assert settings.config_path.exists()
        assert settings.get("missions.max_available") == 6
        assert settings.get("crackdown.alert.max_mission_heat") == 2.0

    def test_valid_board_size(self, settings):
        """Test valid board sizes are accepted."""
        settings.set("missions.max_available", 1)
        assert settings.get("missions.max_available") == 1

        settings.set("missions.max_available", 30)
        assert settings.get("missions.max_available") == 30

    def test_board_size_out_of_range(self, settings):
        """Test board size outside 1-30 raises error."""
        with pytest.raises(SettingsValidationError) as exc:
            settings.set("missions.max_available", 0)
        assert "must be >= 1" in str(exc.value)

        with pytest.raises(SettingsValidationError) as exc:
            settings.set("missions.max_available", 31)
        assert "must be <= 30" in str(exc.value)

    def test_base_success_chance_bounds(self, settings):
        """Test the base success chance stays inside the outcome band."""
        settings.set("missions.base_success_chance", 0.5)
        assert settings.get("missions.base_success_chance") == 0.5

        with pytest.raises(SettingsValidationError) as exc:
            settings.set("missions.base_success_chance", 0.99)
        assert "must be <= 0.98" in str(exc.value)

    def test_heat_cap_accepts_none(self, settings):
        """Test a crackdown tier can be left uncapped."""
        settings.set("crackdown.alert.max_mission_heat", None)
        assert settings.get("crackdown.alert.max_mission_heat") is None

    def test_negative_heat_cap(self, settings):
        """Test negative heat caps raise error."""
        with pytest.raises(SettingsValidationError) as exc:
            settings.set("crackdown.lockdown.max_mission_heat", -1)
        assert "must be >= 0.0" in str(exc.value)

    def test_failure_multiplier_below_one(self, settings):
        """Test failure multipliers cannot reduce heat."""
        with pytest.raises(SettingsValidationError):
            settings.set("crackdown.calm.failure_heat_multiplier", 0.5)

    def test_valid_log_level(self, settings):
        """Test valid log level values are accepted."""
        for level in ["DEBUG", "INFO", "WARNING", "ERROR"]:
            settings.set("general.log_level", level)
            assert settings.get("general.log_level") == level

    def test_invalid_log_level(self, settings):
        """Test invalid log level raises error."""
        with pytest.raises(SettingsValidationError) as exc:
            settings.set("general.log_level", "TRACE")
        assert "must be one of" in str(exc.value)

    def test_boolean_settings(self, settings):
        """Test boolean settings accept True/False."""
        settings.set("missions.auto_resolve", True)
        assert settings.get("missions.auto_resolve") is True

        settings.set("missions.auto_resolve", False)
        assert settings.get("missions.auto_resolve") is False

    def test_boolean_wrong_type(self, settings):
        """Test boolean setting rejects non-boolean."""
        with pytest.raises(SettingsValidationError) as exc:
            settings.set("database.enabled", "yes")
        assert "must be of type" in str(exc.value)

    def test_bool_rejected_for_numbers(self, settings):
        """Test bools are not accepted as integers."""
        with pytest.raises(SettingsValidationError) as exc:
            settings.set("missions.log_limit", True)
        assert "got bool" in str(exc.value)

    def test_seed_accepts_none(self, settings):
        """Test the seed may be unset."""
        settings.set("general.seed", 42)
        assert settings.get("general.seed") == 42
        settings.set("general.seed", None)
        assert settings.get("general.seed") is None

    def test_skip_validation(self, settings):
        """Test validation can be skipped."""
        settings.set("heat.decay_rate", -100, validate=False)
        assert settings.get("heat.decay_rate") == -100

    def test_unvalidated_keys_allowed(self, settings):
        """Test keys without validation rules accept any value."""
        settings.set("custom.setting", "any value")
        assert settings.get("custom.setting") == "any value"

        settings.set("custom.nested.value", 12345)
        assert settings.get("custom.nested.value") == 12345

    def test_settings_persist(self, settings):
        """Test that validated settings are saved."""
        settings.set("heat.decay_rate", 0.2)

        settings2 = Settings(settings.config_path)
        assert settings2.get("heat.decay_rate") == 0.2

    def test_partial_file_merges_defaults(self, tmp_path):
        """Test a config file with one section keeps the other defaults."""
        config_path = tmp_path / "config.yaml"
        config_path.write_text("missions:\n  auto_resolve: true\n", encoding="utf-8")

        settings = Settings(config_path)
        assert settings.get("missions.auto_resolve") is True
        assert settings.get("missions.log_limit") == 20
        assert settings.get("heat.max_heat") == 10.0

    def test_reset_section(self, settings):
        """Test a section can be reset to defaults."""
        settings.set("economy.daily_overhead", 900)
        settings.reset_section("economy")
        assert settings.get("economy.daily_overhead") == 500

    def test_reset_to_defaults(self, settings):
        """Test every section can be reset at once."""
        settings.set("heat.decay_rate", 0.2)
        settings.set("missions.max_available", 12)
        settings.reset_to_defaults()

        assert settings.get_section("heat") == DEFAULT_CONFIG["heat"]
        assert settings.get_section("missions") == DEFAULT_CONFIG["missions"]
        assert settings.get_section("nope") == {}


class TestEngineConfig:
    """Tests for the engine configuration snapshot."""

    def test_defaults_match_default_config(self):
        """Test the dataclass defaults and DEFAULT_CONFIG agree."""
        assert EngineConfig.from_dict(DEFAULT_CONFIG) == EngineConfig()

    def test_from_settings(self, tmp_path):
        """Test overrides flow from settings into the engine config."""
        settings = Settings(tmp_path / "config.yaml")
        settings.set("general.seed", 7)
        settings.set("missions.max_available", 4)
        settings.set("crackdown.alert.max_mission_heat", None)
        settings.set("crackdown.lockdown.failure_heat_multiplier", 5.0)

        config = EngineConfig.from_settings(settings)
        assert config.seed == 7
        assert config.max_available == 4
        assert config.crackdown_caps["alert"] is None
        assert config.failure_heat_multipliers["lockdown"] == 5.0

    def test_missing_sections_use_fallbacks(self):
        """Test an empty dictionary still yields a usable config."""
        config = EngineConfig.from_dict({})
        assert config.log_limit == 20
        assert config.failure_heat_multipliers == {"calm": 2.0, "alert": 2.0, "lockdown": 2.0}
        assert config.crackdown_caps == {"calm": None, "alert": None, "lockdown": None}
