from __future__ import annotations

from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from gamma_analytics.commands.common import open_storage, store_option
from gamma_analytics.storage import WatchlistItem

app = typer.Typer(help="Manage the symbol watchlist.")


@app.command("list")
def watchlist_list(store_path: Path = store_option()) -> None:
    """List watchlist symbols."""
    items = open_storage(store_path).get_watchlist()
    console = Console()
    if not items:
        console.print("Watchlist is empty")
        return

    table = Table(title="Watchlist")
    table.add_column("Symbol")
    table.add_column("Name")
    table.add_column("Alert", justify="right")
    table.add_column("Notes")
    for item in items:
        table.add_row(
            item.symbol,
            item.name or "",
            "" if item.alert_price is None else f"{item.alert_price:,.2f}",
            item.notes or "",
        )
    console.print(table)


@app.command("add")
def watchlist_add(
    symbol: str = typer.Argument(..., help="Symbol to add."),
    name: str | None = typer.Option(None, "--name", help="Display name."),
    notes: str | None = typer.Option(None, "--notes", help="Free-form notes."),
    alert_price: float | None = typer.Option(None, "--alert-price", help="Price alert level."),
    store_path: Path = store_option(),
) -> None:
    """Add a symbol to the watchlist."""
    try:
        item = WatchlistItem(symbol=symbol, name=name, notes=notes, alert_price=alert_price)
    except ValidationError as exc:
        raise typer.BadParameter(f"Invalid symbol: {symbol!r}") from exc
    if not open_storage(store_path).add_to_watchlist(item):
        Console().print(f"{item.symbol} is already on the watchlist")
        return
    Console().print(f"Added {item.symbol}")


@app.command("remove")
def watchlist_remove(
    symbol: str = typer.Argument(..., help="Symbol to remove."),
    store_path: Path = store_option(),
) -> None:
    """Remove a symbol from the watchlist."""
    if not open_storage(store_path).remove_from_watchlist(symbol):
        raise typer.BadParameter(f"{symbol.strip().upper()} is not on the watchlist")
    Console().print(f"Removed {symbol.strip().upper()}")
