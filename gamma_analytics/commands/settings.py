from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from gamma_analytics.commands.common import open_storage, store_option
from gamma_analytics.settings import DEFAULT_SETTINGS, ConfigError, apply_setting

app = typer.Typer(help="Show or change persisted analysis settings.")


@app.command("show")
def settings_show(store_path: Path = store_option()) -> None:
    """Print the current settings."""
    settings = open_storage(store_path).get_settings()
    table = Table(title="Settings")
    table.add_column("Key")
    table.add_column("Value")
    for key, value in settings.model_dump().items():
        table.add_row(key, str(value))
    Console().print(table)


@app.command("set")
def settings_set(
    key: str = typer.Argument(..., help="Setting name, e.g. top-levels-count."),
    value: str = typer.Argument(..., help="New value."),
    store_path: Path = store_option(),
) -> None:
    """Change one setting."""
    storage = open_storage(store_path)
    try:
        updated = apply_setting(storage.get_settings(), key, value)
    except ConfigError as exc:
        raise typer.BadParameter(str(exc)) from exc
    if not storage.save_settings(updated):
        Console(stderr=True).print(f"[red]Error:[/red] could not write {store_path}")
        raise typer.Exit(1)
    field = key.strip().replace("-", "_")
    Console().print(f"{field} = {getattr(updated, field)}")


@app.command("reset")
def settings_reset(store_path: Path = store_option()) -> None:
    """Restore the default settings."""
    open_storage(store_path).save_settings(DEFAULT_SETTINGS.model_copy())
    Console().print("Settings reset to defaults")
