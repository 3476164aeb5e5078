from __future__ import annotations

from datetime import datetime
import json
import logging
from pathlib import Path
import time
from typing import Any, Literal, Protocol
import uuid

from pydantic import BaseModel, Field, ValidationError, field_validator

from gamma_analytics.models import OptionRecord
from gamma_analytics.schemas.common import utc_now
from gamma_analytics.settings import DEFAULT_SETTINGS, UserSettings

logger = logging.getLogger(__name__)

SESSIONS_KEY = "gamma_analytics_sessions"
ACTIVE_SESSION_KEY = "gamma_analytics_active_session"
SETTINGS_KEY = "gamma_analytics_settings"
WATCHLIST_KEY = "gamma_analytics_watchlist"
ALL_KEYS = (SESSIONS_KEY, ACTIVE_SESSION_KEY, SETTINGS_KEY, WATCHLIST_KEY)

MAX_SESSIONS = 10


class KeyValueStore(Protocol):
    def get(self, key: str, default: Any = None) -> Any: ...

    def set(self, key: str, value: Any) -> bool: ...

    def delete(self, key: str) -> bool: ...


class JsonFileStore:
    """Key-value store persisted as a single JSON object on disk."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def _read(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        raw = self.path.read_text(encoding="utf-8")
        if not raw.strip():
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid store JSON at {self.path}") from exc
        if not isinstance(data, dict):
            raise ValueError(f"Store JSON at {self.path} must be an object")
        return data

    def _write(self, data: dict[str, Any]) -> bool:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self.path.with_name(f"{self.path.name}.tmp")
            tmp_path.write_text(json.dumps(data, indent=2, default=str), encoding="utf-8")
            tmp_path.replace(self.path)
        except OSError:
            logger.exception("Failed to write store %s", self.path)
            return False
        return True

    def get(self, key: str, default: Any = None) -> Any:
        return self._read().get(key, default)

    def set(self, key: str, value: Any) -> bool:
        data = self._read()
        data[key] = value
        return self._write(data)

    def delete(self, key: str) -> bool:
        data = self._read()
        if key not in data:
            return True
        del data[key]
        return self._write(data)

    def keys(self) -> list[str]:
        return sorted(self._read().keys())


class UploadSession(BaseModel):
    id: str
    name: str
    symbol: str
    uploaded_at: datetime
    option_count: int = Field(ge=0)
    underlying_price: float = Field(default=0.0, ge=0.0)
    data: list[OptionRecord] = Field(default_factory=list)


class WatchlistItem(BaseModel):
    symbol: str
    name: str | None = None
    notes: str | None = None
    alert_price: float | None = None
    last_price: float | None = None
    trend: Literal["up", "down", "neutral"] | None = None
    added_at: datetime = Field(default_factory=utc_now)

    @field_validator("symbol")
    @classmethod
    def _normalize_symbol(cls, value: str) -> str:
        sym = value.strip().upper()
        if not sym:
            raise ValueError("symbol must not be empty")
        return sym


def default_watchlist() -> list[WatchlistItem]:
    return [
        WatchlistItem(symbol="SPX", name="S&P 500 Index"),
        WatchlistItem(symbol="SPY", name="SPDR S&P 500 ETF"),
        WatchlistItem(symbol="QQQ", name="Invesco QQQ Trust"),
    ]


def generate_session_id() -> str:
    return f"session_{int(time.time() * 1000)}_{uuid.uuid4().hex[:7]}"


class AppStorage:
    """Sessions, settings and watchlist kept in a ``KeyValueStore``."""

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    # Sessions

    def list_sessions(self) -> list[UploadSession]:
        sessions: list[UploadSession] = []
        for raw in self.store.get(SESSIONS_KEY, []) or []:
            try:
                sessions.append(UploadSession.model_validate(raw))
            except ValidationError:
                logger.warning("Skipping unreadable stored session: %s", (raw or {}).get("id", "?"))
        return sessions

    def get_session(self, session_id: str) -> UploadSession | None:
        return next((s for s in self.list_sessions() if s.id == session_id), None)

    def _write_sessions(self, sessions: list[UploadSession]) -> bool:
        return self.store.set(SESSIONS_KEY, [s.model_dump(mode="json") for s in sessions])

    def save_session(self, session: UploadSession) -> bool:
        sessions = self.list_sessions()
        for idx, existing in enumerate(sessions):
            if existing.id == session.id:
                sessions[idx] = session
                break
        else:
            sessions.append(session)
        return self._write_sessions(sessions[-MAX_SESSIONS:])

    def delete_session(self, session_id: str) -> bool:
        sessions = [s for s in self.list_sessions() if s.id != session_id]
        if self.get_active_session_id() == session_id:
            self.clear_active_session()
        return self._write_sessions(sessions)

    def get_active_session_id(self) -> str | None:
        return self.store.get(ACTIVE_SESSION_KEY, None)

    def set_active_session_id(self, session_id: str) -> bool:
        return self.store.set(ACTIVE_SESSION_KEY, session_id)

    def clear_active_session(self) -> bool:
        return self.store.delete(ACTIVE_SESSION_KEY)

    def get_active_session(self) -> UploadSession | None:
        active_id = self.get_active_session_id()
        if not active_id:
            return None
        return self.get_session(active_id)

    def create_session(
        self,
        records: list[OptionRecord],
        symbol: str,
        spot: float = 0.0,
        *,
        now: datetime | None = None,
    ) -> UploadSession:
        uploaded_at = now or utc_now()
        session = UploadSession(
            id=generate_session_id(),
            name=f"{symbol} - {uploaded_at.date().isoformat()}",
            symbol=symbol,
            uploaded_at=uploaded_at,
            option_count=len(records),
            underlying_price=spot or (records[0].underlying_price if records else 0.0),
            data=list(records),
        )
        self.save_session(session)
        self.set_active_session_id(session.id)
        return session

    # Settings

    def get_settings(self) -> UserSettings:
        raw = self.store.get(SETTINGS_KEY, None)
        if not raw:
            return DEFAULT_SETTINGS.model_copy()
        try:
            return UserSettings.model_validate(raw)
        except ValidationError:
            logger.warning("Stored settings are invalid; using defaults")
            return DEFAULT_SETTINGS.model_copy()

    def save_settings(self, settings: UserSettings) -> bool:
        return self.store.set(SETTINGS_KEY, settings.model_dump(mode="json"))

    def update_settings(self, **updates: Any) -> UserSettings:
        merged = {**self.get_settings().model_dump(), **updates}
        settings = UserSettings.model_validate(merged)
        self.save_settings(settings)
        return settings

    # Watchlist

    def get_watchlist(self) -> list[WatchlistItem]:
        raw = self.store.get(WATCHLIST_KEY, None)
        if raw is None:
            return default_watchlist()
        return [WatchlistItem.model_validate(item) for item in raw]

    def save_watchlist(self, items: list[WatchlistItem]) -> bool:
        return self.store.set(WATCHLIST_KEY, [item.model_dump(mode="json") for item in items])

    def add_to_watchlist(self, item: WatchlistItem) -> bool:
        items = self.get_watchlist()
        if any(existing.symbol == item.symbol for existing in items):
            return False
        items.append(item)
        return self.save_watchlist(items)

    def remove_from_watchlist(self, symbol: str) -> bool:
        sym = symbol.strip().upper()
        items = self.get_watchlist()
        remaining = [item for item in items if item.symbol != sym]
        if len(remaining) == len(items):
            return False
        return self.save_watchlist(remaining)

    # Bulk

    def export_data(self) -> str:
        payload = {
            "sessions": [s.model_dump(mode="json") for s in self.list_sessions()],
            "active_session": self.get_active_session_id(),
            "settings": self.get_settings().model_dump(mode="json"),
            "watchlist": [item.model_dump(mode="json") for item in self.get_watchlist()],
        }
        return json.dumps(payload, indent=2)

    def import_data(self, payload: str) -> bool:
        try:
            data = json.loads(payload)
        except json.JSONDecodeError:
            return False
        if not isinstance(data, dict):
            return False
        try:
            sessions = [UploadSession.model_validate(s) for s in data.get("sessions") or []]
            settings = UserSettings.model_validate(data["settings"]) if data.get("settings") else None
            watchlist = [WatchlistItem.model_validate(w) for w in data.get("watchlist") or []]
        except ValidationError:
            return False

        ok = True
        if data.get("sessions"):
            ok = self._write_sessions(sessions[-MAX_SESSIONS:]) and ok
        if data.get("active_session"):
            ok = self.set_active_session_id(str(data["active_session"])) and ok
        if settings is not None:
            ok = self.save_settings(settings) and ok
        if data.get("watchlist"):
            ok = self.save_watchlist(watchlist) and ok
        return ok

    def clear_all(self) -> bool:
        return all([self.store.delete(key) for key in ALL_KEYS])


__all__ = [
    "AppStorage",
    "JsonFileStore",
    "KeyValueStore",
    "UploadSession",
    "WatchlistItem",
    "default_watchlist",
    "generate_session_id",
]
