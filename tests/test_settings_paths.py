"""Tests for settings normalization and data path resolution."""

from __future__ import annotations

from pathlib import Path

from daygrid.paths import ENV_VAR, data_path_reason, default_data_path, resolve_data_path
from daygrid.settings import default_settings, is_dark, normalize_settings

# ---- settings ----


def test_normalize_none_gives_defaults():
    assert normalize_settings(None) == default_settings()


def test_normalize_clamps_day_start():
    assert normalize_settings({"dayStartHour": 30})["dayStartHour"] == 23
    assert normalize_settings({"dayStartHour": "x"})["dayStartHour"] == 8


def test_normalize_keeps_valid_values():
    s = normalize_settings({"nightStart": "22:30", "themeMode": "dark"})
    assert s["nightStart"] == "22:30"
    assert s["themeMode"] == "dark"


def test_normalize_non_finite_day_start_falls_back():
    assert normalize_settings({"dayStartHour": float("inf")})["dayStartHour"] == 8
    assert normalize_settings({"dayStartHour": float("nan")})["dayStartHour"] == 8


def test_is_dark():
    assert is_dark({"themeMode": "dark"})
    assert not is_dark({"themeMode": "light"}, system_dark=True)
    assert is_dark({"themeMode": "system"}, system_dark=True)


# ---- paths ----


def test_data_arg_wins(tmp_path, monkeypatch):
    monkeypatch.setenv(ENV_VAR, str(tmp_path / "env.json"))
    p = resolve_data_path(str(tmp_path / "arg.json"), "dev")
    assert p == (tmp_path / "arg.json").resolve()
    assert "--data" in data_path_reason("x", None)


def test_env_over_profile(tmp_path, monkeypatch):
    monkeypatch.setenv(ENV_VAR, str(tmp_path / "env.json"))
    assert resolve_data_path(None, "dev") == (tmp_path / "env.json").resolve()
    assert ENV_VAR in data_path_reason(None, "dev")


def test_profile_file_name(monkeypatch):
    monkeypatch.delenv(ENV_VAR, raising=False)
    assert default_data_path("dev").name == "dev.json"
    assert default_data_path().name == "data.json"
    assert resolve_data_path(None, None).parent == (Path.home() / ".config" / "daygrid").resolve()
