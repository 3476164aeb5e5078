from __future__ import annotations

from datetime import datetime, timezone
import json
from pathlib import Path

import pytest

from gamma_analytics.storage import (
    MAX_SESSIONS,
    SESSIONS_KEY,
    AppStorage,
    JsonFileStore,
    WatchlistItem,
    default_watchlist,
)

from tests.gamma_helpers import make_record


def _storage(tmp_path: Path) -> AppStorage:
    return AppStorage(JsonFileStore(tmp_path / "store.json"))


def test_json_file_store_roundtrip(tmp_path: Path) -> None:
    store = JsonFileStore(tmp_path / "nested" / "store.json")
    assert store.get("missing", "dflt") == "dflt"
    assert store.set("a", {"x": 1})
    assert store.get("a") == {"x": 1}
    assert store.keys() == ["a"]
    assert store.delete("a")
    assert store.delete("a")
    assert store.get("a") is None


def test_json_file_store_rejects_corrupt_file(tmp_path: Path) -> None:
    path = tmp_path / "store.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ValueError, match="Invalid store JSON"):
        JsonFileStore(path).get("a")


def test_create_session_persists_and_activates(tmp_path: Path) -> None:
    storage = _storage(tmp_path)
    records = [make_record(100.0, "call", 0.01, 10, underlying_price=4500.0)]
    now = datetime(2025, 12, 5, 16, 15, tzinfo=timezone.utc)

    session = storage.create_session(records, "SPX", now=now)

    assert session.name == "SPX - 2025-12-05"
    assert session.option_count == 1
    assert session.underlying_price == 4500.0
    assert storage.get_active_session_id() == session.id

    reloaded = _storage(tmp_path).get_active_session()
    assert reloaded is not None
    assert reloaded.data == records


def test_sessions_are_capped(tmp_path: Path) -> None:
    storage = _storage(tmp_path)
    created = [storage.create_session([], f"S{i}") for i in range(MAX_SESSIONS + 2)]
    kept = storage.list_sessions()
    assert len(kept) == MAX_SESSIONS
    assert [s.id for s in kept] == [s.id for s in created[2:]]


def test_delete_active_session_clears_active(tmp_path: Path) -> None:
    storage = _storage(tmp_path)
    first = storage.create_session([], "SPX")
    second = storage.create_session([], "QQQ")

    storage.delete_session(second.id)
    assert storage.get_active_session_id() is None
    assert [s.id for s in storage.list_sessions()] == [first.id]


def test_unreadable_sessions_are_skipped(tmp_path: Path) -> None:
    storage = _storage(tmp_path)
    storage.create_session([], "SPX")
    raw = storage.store.get(SESSIONS_KEY)
    storage.store.set(SESSIONS_KEY, raw + [{"id": "broken"}])
    assert len(storage.list_sessions()) == 1


def test_settings_defaults_and_updates(tmp_path: Path) -> None:
    storage = _storage(tmp_path)
    assert storage.get_settings().top_levels_count == 10

    updated = storage.update_settings(top_levels_count=4, chart_type="area")
    assert updated.top_levels_count == 4
    assert _storage(tmp_path).get_settings().chart_type == "area"


def test_watchlist_defaults_add_remove(tmp_path: Path) -> None:
    storage = _storage(tmp_path)
    assert [item.symbol for item in storage.get_watchlist()] == ["SPX", "SPY", "QQQ"]

    assert storage.add_to_watchlist(WatchlistItem(symbol=" iwm ", notes="small caps"))
    assert not storage.add_to_watchlist(WatchlistItem(symbol="IWM"))
    assert storage.remove_from_watchlist("spy")
    assert not storage.remove_from_watchlist("SPY")
    assert [item.symbol for item in storage.get_watchlist()] == ["SPX", "QQQ", "IWM"]


def test_watchlist_item_requires_symbol() -> None:
    with pytest.raises(ValueError):
        WatchlistItem(symbol="   ")
    assert len(default_watchlist()) == 3


def test_export_import_and_clear(tmp_path: Path) -> None:
    source = AppStorage(JsonFileStore(tmp_path / "a.json"))
    session = source.create_session([make_record(100.0, "put", 0.01, 10)], "SPX")
    source.update_settings(top_expiries_count=2)
    source.add_to_watchlist(WatchlistItem(symbol="DIA"))
    payload = source.export_data()
    assert json.loads(payload)["active_session"] == session.id

    target = AppStorage(JsonFileStore(tmp_path / "b.json"))
    assert target.import_data(payload)
    assert target.get_active_session_id() == session.id
    assert target.get_settings().top_expiries_count == 2
    assert "DIA" in [item.symbol for item in target.get_watchlist()]

    assert not target.import_data("{nope")
    assert not target.import_data(json.dumps({"settings": {"top_levels_count": 0}}))

    assert target.clear_all()
    assert target.list_sessions() == []
    assert target.get_active_session_id() is None
    assert target.get_settings().top_expiries_count == 5
    assert [item.symbol for item in target.get_watchlist()] == ["SPX", "SPY", "QQQ"]
