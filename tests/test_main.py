"""Tests for the headless campaign runner."""

import random

import pytest

import carthief.config.settings as settings_module
from carthief.config.settings import Settings
from carthief.game.state import create_initial_game_state
from carthief.main import _parse_int_flag, main, run_campaign
from carthief.missions.engine import MissionSystem


class TestArguments:
    """Command line flag parsing."""

    def test_missing_flag_uses_default(self):
        assert _parse_int_flag(["--debug"], "--seed", None) is None

    def test_integer_flag(self):
        assert _parse_int_flag(["--seed", "42"], "--seed", None) == 42

    def test_bad_value(self):
        with pytest.raises(SystemExit):
            _parse_int_flag(["--ticks", "soon"], "--ticks", 600)
        with pytest.raises(SystemExit):
            _parse_int_flag(["--ticks"], "--ticks", 600)


class TestCampaign:
    """A short seeded campaign."""

    def test_run_campaign(self):
        state = create_initial_game_state()
        engine = MissionSystem(state, rng=random.Random(7))

        run_campaign(engine, 300)

        assert state.mission_log
        assert 0.0 <= state.heat <= engine.config.max_heat
        assert all(0 <= member.loyalty <= 5 for member in state.crew)
        assert sum(1 for m in state.available_missions if m.is_active) <= 1
        assert state.day > 1

    def test_main(self, tmp_path, monkeypatch, capsys):
        monkeypatch.setattr(settings_module, "_settings", Settings(tmp_path / "config.yaml"))

        assert main(["--seed", "3", "--ticks", "120"]) == 0

        out = capsys.readouterr().out
        assert "Ran 2m of game time" in out
        assert "Metro Harbor: 0/4 districts controlled" in out
        assert (tmp_path / "logs").is_dir()
