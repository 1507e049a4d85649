"""
Tests for fetch settings, environment parsing and the shared utilities.
"""
from datetime import datetime, timedelta, timezone

import pytest

from config import calendar_config
from config.calendar_config import (
    FetchCycleConfig,
    get_client_secret_path,
    get_token_path,
    load_fetch_config,
    validate_optional_config,
)
from utils import environ
from utils.error_handling import ConfigurationError, with_error_handling
from utils.timezone_utils import get_timezone, is_local_midnight, parse_event_time, start_of_day


# ╔════════════════════════════════════════════════════════════════════════════╗
# ║ FETCH CYCLE SETTINGS                                                       ║
# ╚════════════════════════════════════════════════════════════════════════════╝

def test_defaults():
    config = FetchCycleConfig("home", 60, 10, 365)
    assert config.calendar_id == "primary"
    assert config.timezone == ""
    assert config.request_timeout == 30.0


def test_config_is_immutable():
    config = FetchCycleConfig("home", 60, 10, 365)
    with pytest.raises(AttributeError):
        config.maximum_entries = 3


@pytest.mark.parametrize("overrides", [
    {"calendar_name": ""},
    {"calendar_id": ""},
    {"reload_interval": 0},
    {"reload_interval": -5},
    {"maximum_entries": 0},
    {"maximum_entries": True},
    {"maximum_entries": 2.5},
    {"maximum_number_of_days": -1},
    {"request_timeout": 0},
])
def test_invalid_settings_are_rejected(overrides):
    values = dict(calendar_name="home", reload_interval=60, maximum_entries=10, maximum_number_of_days=365)
    values.update(overrides)

    with pytest.raises(ConfigurationError):
        FetchCycleConfig(**values)


def test_zero_day_horizon_is_allowed():
    assert FetchCycleConfig("home", 60, 10, 0).maximum_number_of_days == 0


def test_load_fetch_config_reads_environment_settings(monkeypatch):
    monkeypatch.setattr(environ, "CALENDAR_NAME", "office")
    monkeypatch.setattr(environ, "CALENDAR_ID", "team@group.calendar.google.com")
    monkeypatch.setattr(environ, "RELOAD_INTERVAL_SECONDS", 90.0)
    monkeypatch.setattr(environ, "MAXIMUM_ENTRIES", 4)
    monkeypatch.setattr(environ, "MAXIMUM_NUMBER_OF_DAYS", 7)
    monkeypatch.setattr(environ, "TIMEZONE", "Europe/Oslo")
    monkeypatch.setattr(environ, "REQUEST_TIMEOUT_SECONDS", 12.5)

    config = load_fetch_config()

    assert config == FetchCycleConfig(
        calendar_name="office",
        reload_interval=90.0,
        maximum_entries=4,
        maximum_number_of_days=7,
        calendar_id="team@group.calendar.google.com",
        timezone="Europe/Oslo",
        request_timeout=12.5,
    )


def test_load_fetch_config_reports_bad_values(monkeypatch):
    monkeypatch.setattr(environ, "MAXIMUM_ENTRIES", -2)
    with pytest.raises(ConfigurationError, match="maximum_entries"):
        load_fetch_config()


def test_credential_paths_live_in_the_credentials_dir(tmp_path, monkeypatch):
    assert get_client_secret_path(str(tmp_path)) == str(tmp_path / "client_secret.json")
    assert get_token_path(str(tmp_path)) == str(tmp_path / "calendar-credentials.json")

    monkeypatch.setattr(environ, "CREDENTIALS_DIR", str(tmp_path / "default"))
    assert get_token_path() == str(tmp_path / "default" / "calendar-credentials.json")


def test_validate_optional_config_warns_about_missing_files(tmp_path):
    warnings = validate_optional_config(str(tmp_path))
    assert len(warnings) == 2

    (tmp_path / calendar_config.CLIENT_SECRET_FILENAME).write_text("{}")
    (tmp_path / calendar_config.TOKEN_FILENAME).write_text("{}")
    assert validate_optional_config(str(tmp_path)) == []


# ╔════════════════════════════════════════════════════════════════════════════╗
# ║ ENVIRONMENT PARSING                                                        ║
# ╚════════════════════════════════════════════════════════════════════════════╝

def test_env_helpers_parse_and_fall_back(monkeypatch):
    monkeypatch.setenv("FETCH_TEST_BOOL", "Yes")
    monkeypatch.setenv("FETCH_TEST_INT", "42")
    monkeypatch.setenv("FETCH_TEST_FLOAT", "2.5")
    monkeypatch.setenv("FETCH_TEST_BAD", "many")
    monkeypatch.delenv("FETCH_TEST_MISSING", raising=False)

    assert environ.get_bool_env("FETCH_TEST_BOOL") is True
    assert environ.get_bool_env("FETCH_TEST_MISSING", True) is True
    assert environ.get_int_env("FETCH_TEST_INT") == 42
    assert environ.get_int_env("FETCH_TEST_BAD", 10) == 10
    assert environ.get_float_env("FETCH_TEST_FLOAT") == 2.5
    assert environ.get_float_env("FETCH_TEST_BAD", 300.0) == 300.0
    assert environ.get_str_env("FETCH_TEST_MISSING", "fallback") == "fallback"


# ╔════════════════════════════════════════════════════════════════════════════╗
# ║ TIMEZONE AND ERROR HELPERS                                                 ║
# ╚════════════════════════════════════════════════════════════════════════════╝

def test_unknown_timezone_falls_back_to_host():
    fallback = get_timezone("Mars/Olympus_Mons")
    assert fallback is not None
    assert datetime(2026, 1, 1, tzinfo=fallback).utcoffset() is not None


def test_empty_timezone_uses_host():
    assert get_timezone("") is not None
    assert get_timezone(None) is not None


def test_parse_event_time_variants():
    plus_two = timezone(timedelta(hours=2))

    moment, date_only = parse_event_time({"dateTime": "2026-10-20T09:00:00+02:00"}, timezone.utc)
    assert moment == datetime(2026, 10, 20, 7, 0, tzinfo=timezone.utc)
    assert date_only is False

    day, date_only = parse_event_time({"date": "2026-10-20"}, plus_two)
    assert day == datetime(2026, 10, 20, tzinfo=plus_two)
    assert date_only is True

    naive, _ = parse_event_time({"dateTime": "2026-10-20T09:00:00"}, plus_two)
    assert naive.tzinfo is plus_two

    with pytest.raises(ValueError):
        parse_event_time({"timeZone": "UTC"}, timezone.utc)


def test_start_of_day_and_local_midnight():
    plus_two = timezone(timedelta(hours=2))
    moment = datetime(2026, 10, 19, 17, 45, 12, 500, tzinfo=plus_two)

    assert start_of_day(moment) == datetime(2026, 10, 19, tzinfo=plus_two)
    assert is_local_midnight(datetime(2026, 10, 18, 22, 0, tzinfo=timezone.utc), plus_two)
    assert not is_local_midnight(datetime(2026, 10, 19, 0, 0, tzinfo=timezone.utc), plus_two)


def test_with_error_handling_returns_default_and_logs(caplog):
    @with_error_handling(default_value="fallback", error_message="Consumer failed")
    def explode():
        raise RuntimeError("boom")

    with caplog.at_level("ERROR", logger="calendarfetcher"):
        assert explode() == "fallback"
    assert "Consumer failed in explode: boom" in caplog.text
