from __future__ import annotations

from pathlib import Path

import typer

from gamma_analytics.storage import AppStorage, JsonFileStore

DEFAULT_STORE_PATH = Path("data/gamma_store.json")


def store_option() -> Path:
    return typer.Option(
        DEFAULT_STORE_PATH,
        "--store",
        help="Path to the JSON store holding sessions, settings and the watchlist.",
    )


def open_storage(store_path: Path) -> AppStorage:
    storage = AppStorage(JsonFileStore(store_path))
    try:
        # A corrupt store is a usage error.
        storage.store.keys()
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    return storage
