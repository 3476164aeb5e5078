from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, ValidationError
import yaml


class ConfigError(ValueError):
    pass


class UserSettings(BaseModel):
    default_symbol: str = "SPX"

    # Analytics
    top_levels_count: int = Field(default=10, ge=1, le=100)
    top_expiries_count: int = Field(default=5, ge=1, le=50)
    max_levels_to_display: int = Field(default=10, ge=1, le=100)
    exposure_range_percent: float = Field(default=5.0, gt=0.0, le=50.0)
    exposure_steps: int = Field(default=50, ge=1, le=1000)

    # Display
    show_call_put_separate: bool = True
    show_open_interest: bool = True
    show_volume: bool = True
    chart_type: Literal["bar", "area"] = "bar"
    chart_height: int = Field(default=300, ge=100)
    auto_refresh: bool = False
    refresh_interval: int = Field(default=60, ge=5)


DEFAULT_SETTINGS = UserSettings()


def _format_validation_error(exc: ValidationError) -> str:
    messages = []
    for err in exc.errors()[:10]:
        loc = ".".join(str(p) for p in err.get("loc", ())) or "<root>"
        messages.append(f"{loc}: {err.get('msg')}")
    return "; ".join(messages)


def load_settings_file(path: Path | str) -> UserSettings:
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Missing settings file: {path}")
    try:
        with path.open("r", encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in settings file {path}: {exc}") from exc

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError(f"Settings file {path} must contain a mapping")
    # Allow the settings to sit under a top-level "settings:" key.
    if isinstance(raw.get("settings"), dict):
        raw = raw["settings"]
    try:
        return UserSettings.model_validate(raw)
    except ValidationError as exc:
        raise ConfigError(f"Settings validation failed: {_format_validation_error(exc)}") from exc


def apply_setting(settings: UserSettings, key: str, raw: str) -> UserSettings:
    """Return a copy of ``settings`` with one field set from command-line text."""
    field = key.strip().replace("-", "_")
    if field not in UserSettings.model_fields:
        raise ConfigError(f"Unknown setting: {key}")
    payload: dict[str, Any] = settings.model_dump()
    if UserSettings.model_fields[field].annotation is str or not raw.strip():
        payload[field] = raw.strip()
    else:
        try:
            payload[field] = yaml.safe_load(raw)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid value for {field}: {raw!r}") from exc
    try:
        return UserSettings.model_validate(payload)
    except ValidationError as exc:
        raise ConfigError(f"Invalid value for {field}: {_format_validation_error(exc)}") from exc
