from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from gamma_analytics.commands.common import open_storage, store_option

app = typer.Typer(help="Export, import or clear all stored data.")


@app.command("export")
def data_export(
    out: Path | None = typer.Option(None, "--out", help="Write the export here instead of stdout."),
    store_path: Path = store_option(),
) -> None:
    """Export sessions, settings and watchlist as JSON."""
    payload = open_storage(store_path).export_data()
    if out is None:
        typer.echo(payload)
        return
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(payload, encoding="utf-8")
    Console().print(f"Exported to {out}")


@app.command("import")
def data_import(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON file produced by 'data export'."),
    store_path: Path = store_option(),
) -> None:
    """Import a previous export, replacing the matching sections."""
    if not open_storage(store_path).import_data(path.read_text(encoding="utf-8")):
        Console(stderr=True).print(f"[red]Error:[/red] could not import {path}")
        raise typer.Exit(1)
    Console().print(f"Imported {path}")


@app.command("clear")
def data_clear(
    yes: bool = typer.Option(False, "--yes", help="Skip the confirmation prompt."),
    store_path: Path = store_option(),
) -> None:
    """Delete all sessions, settings and the watchlist."""
    if not yes:
        typer.confirm(f"Clear all data in {store_path}?", abort=True)
    open_storage(store_path).clear_all()
    Console().print("Cleared all stored data")
