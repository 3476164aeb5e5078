from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from gamma_analytics.commands.common import open_storage, store_option

app = typer.Typer(help="Manage saved upload sessions.")


@app.command("list")
def sessions_list(store_path: Path = store_option()) -> None:
    """List saved sessions (most recent last)."""
    storage = open_storage(store_path)
    sessions = storage.list_sessions()
    console = Console()
    if not sessions:
        console.print(f"No sessions in {store_path}")
        return

    active_id = storage.get_active_session_id()
    table = Table(title=f"Sessions ({store_path})")
    table.add_column("ID")
    table.add_column("Name")
    table.add_column("Symbol")
    table.add_column("Uploaded")
    table.add_column("Options", justify="right")
    table.add_column("Spot", justify="right")
    for session in sessions:
        marker = " *" if session.id == active_id else ""
        table.add_row(
            f"{session.id}{marker}",
            session.name,
            session.symbol,
            session.uploaded_at.strftime("%Y-%m-%d %H:%M"),
            str(session.option_count),
            f"{session.underlying_price:,.2f}",
        )
    console.print(table)


@app.command("show")
def sessions_show(
    session_id: str | None = typer.Argument(None, help="Session id (defaults to the active session)."),
    store_path: Path = store_option(),
) -> None:
    """Show one session's metadata."""
    storage = open_storage(store_path)
    session = storage.get_session(session_id) if session_id else storage.get_active_session()
    if session is None:
        raise typer.BadParameter(f"Session not found: {session_id or '<active>'}")

    console = Console()
    console.print(f"[bold]{session.name}[/bold] ({session.id})")
    console.print(f"Symbol: {session.symbol}")
    console.print(f"Uploaded: {session.uploaded_at.isoformat()}")
    console.print(f"Options: {session.option_count}")
    console.print(f"Underlying price: {session.underlying_price:,.2f}")
    expiries = sorted({record.expiry for record in session.data})
    if expiries:
        console.print(f"Expiries: {', '.join(expiries)}")


@app.command("activate")
def sessions_activate(
    session_id: str = typer.Argument(..., help="Session id to mark active."),
    store_path: Path = store_option(),
) -> None:
    """Mark a session as the active one."""
    storage = open_storage(store_path)
    if storage.get_session(session_id) is None:
        raise typer.BadParameter(f"Session not found: {session_id}")
    storage.set_active_session_id(session_id)
    Console().print(f"Active session: {session_id}")


@app.command("delete")
def sessions_delete(
    session_id: str = typer.Argument(..., help="Session id to delete."),
    store_path: Path = store_option(),
) -> None:
    """Delete a saved session."""
    storage = open_storage(store_path)
    if storage.get_session(session_id) is None:
        raise typer.BadParameter(f"Session not found: {session_id}")
    storage.delete_session(session_id)
    Console().print(f"Deleted session {session_id}")
