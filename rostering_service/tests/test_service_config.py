from __future__ import annotations

import json
from pathlib import Path

import pytest

from rostering_core.errors import InvalidInputError
from rostering_service.config import (
    DEFAULT_HOLIDAY_FILE,
    load_holiday_calendar,
    runtime_config,
)

ENV_VARS = (
    "ROSTER_ENGINE_DEFAULT_AWARD",
    "ROSTER_ENGINE_DEFAULT_PRESET",
    "ROSTER_ENGINE_HOLIDAY_FILE",
    "ROSTER_ENGINE_HOST",
    "ROSTER_ENGINE_PORT",
    "HOST",
    "PORT",
)


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestHolidayCalendar:
    def test_strings_and_objects(self, tmp_path):
        path = tmp_path / "holidays.json"
        path.write_text(json.dumps(["2026-12-25", {"date": "2026-12-26", "name": "Boxing Day"}]), encoding="utf-8")
        assert load_holiday_calendar(path) == frozenset({"2026-12-25", "2026-12-26"})

    def test_missing_file_is_empty(self, tmp_path):
        assert load_holiday_calendar(tmp_path / "nope.json") == frozenset()

    def test_not_a_list(self, tmp_path):
        path = tmp_path / "holidays.json"
        path.write_text(json.dumps({"2026-12-25": "Christmas"}), encoding="utf-8")
        with pytest.raises(InvalidInputError):
            load_holiday_calendar(path)

    def test_bad_date(self, tmp_path):
        path = tmp_path / "holidays.json"
        path.write_text(json.dumps(["25/12/2026"]), encoding="utf-8")
        with pytest.raises(InvalidInputError):
            load_holiday_calendar(path)

    def test_bundled_calendar(self):
        calendar = load_holiday_calendar(DEFAULT_HOLIDAY_FILE)
        assert "2026-12-25" in calendar
        assert "2026-10-19" not in calendar


class TestRuntimeConfig:
    def test_defaults(self, clean_env):
        cfg = runtime_config()
        assert cfg.default_award == "general"
        assert cfg.default_preset == "balanced"
        assert cfg.holiday_file == DEFAULT_HOLIDAY_FILE
        assert (cfg.host, cfg.port) == ("127.0.0.1", 8000)

    def test_overrides(self, clean_env, tmp_path):
        clean_env.setenv("ROSTER_ENGINE_DEFAULT_AWARD", "retail")
        clean_env.setenv("ROSTER_ENGINE_DEFAULT_PRESET", "quality_first")
        clean_env.setenv("ROSTER_ENGINE_HOLIDAY_FILE", str(tmp_path / "h.json"))
        clean_env.setenv("PORT", "9100")
        cfg = runtime_config()
        assert cfg.default_award == "retail"
        assert cfg.default_preset == "quality_first"
        assert cfg.holiday_file == (tmp_path / "h.json").resolve()
        assert cfg.port == 9100

    def test_engine_port_wins(self, clean_env):
        clean_env.setenv("PORT", "9100")
        clean_env.setenv("ROSTER_ENGINE_PORT", "9200")
        assert runtime_config().port == 9200

    def test_unknown_award(self, clean_env):
        clean_env.setenv("ROSTER_ENGINE_DEFAULT_AWARD", "mining")
        with pytest.raises(ValueError, match="ROSTER_ENGINE_DEFAULT_AWARD"):
            runtime_config()

    def test_unknown_preset(self, clean_env):
        clean_env.setenv("ROSTER_ENGINE_DEFAULT_PRESET", "cheapest")
        with pytest.raises(ValueError, match="ROSTER_ENGINE_DEFAULT_PRESET"):
            runtime_config()


def test_default_holiday_file_ships_inside_package():
    package_dir = Path(__file__).resolve().parents[1]
    assert DEFAULT_HOLIDAY_FILE == package_dir / "data" / "public_holidays.json"
    assert DEFAULT_HOLIDAY_FILE.exists()
