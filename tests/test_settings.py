from __future__ import annotations

from pathlib import Path

import pytest

from gamma_analytics.settings import DEFAULT_SETTINGS, ConfigError, apply_setting, load_settings_file


def test_load_settings_file(tmp_path: Path) -> None:
    path = tmp_path / "settings.yaml"
    path.write_text("top_levels_count: 6\nshow_open_interest: false\n", encoding="utf-8")
    settings = load_settings_file(path)
    assert settings.top_levels_count == 6
    assert settings.show_open_interest is False
    assert settings.top_expiries_count == 5


def test_load_settings_file_accepts_settings_section(tmp_path: Path) -> None:
    path = tmp_path / "settings.yaml"
    path.write_text("settings:\n  exposure_range_percent: 2.5\n", encoding="utf-8")
    assert load_settings_file(path).exposure_range_percent == 2.5


def test_empty_settings_file_gives_defaults(tmp_path: Path) -> None:
    path = tmp_path / "settings.yaml"
    path.write_text("", encoding="utf-8")
    assert load_settings_file(path) == DEFAULT_SETTINGS


@pytest.mark.parametrize(
    ("text", "match"),
    [
        ("top_levels_count: 0\n", "top_levels_count"),
        ("- a\n- b\n", "must contain a mapping"),
        ("top_levels_count: [\n", "Invalid YAML"),
    ],
)
def test_invalid_settings_files(tmp_path: Path, text: str, match: str) -> None:
    path = tmp_path / "settings.yaml"
    path.write_text(text, encoding="utf-8")
    with pytest.raises(ConfigError, match=match):
        load_settings_file(path)


def test_missing_settings_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="Missing settings file"):
        load_settings_file(tmp_path / "nope.yaml")


def test_apply_setting_coerces_values() -> None:
    assert apply_setting(DEFAULT_SETTINGS, "top-levels-count", "4").top_levels_count == 4
    assert apply_setting(DEFAULT_SETTINGS, "auto_refresh", "true").auto_refresh is True
    assert apply_setting(DEFAULT_SETTINGS, "default_symbol", "QQQ").default_symbol == "QQQ"
    assert apply_setting(DEFAULT_SETTINGS, "chart_type", "area").chart_type == "area"
    # The input is not modified.
    assert DEFAULT_SETTINGS.top_levels_count == 10


@pytest.mark.parametrize(
    ("key", "value"),
    [("nope", "1"), ("chart_type", "pie"), ("top_levels_count", "many"), ("exposure_steps", "[")],
)
def test_apply_setting_rejects_bad_input(key: str, value: str) -> None:
    with pytest.raises(ConfigError):
        apply_setting(DEFAULT_SETTINGS, key, value)
