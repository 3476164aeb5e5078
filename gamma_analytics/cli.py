from __future__ import annotations

import json
import logging
from pathlib import Path

import typer
from rich.console import Console

from gamma_analytics.analysis.gamma import split_by_underlying
from gamma_analytics.analysis.report import build_gamma_report
from gamma_analytics.commands.common import open_storage, store_option
from gamma_analytics.commands.data import app as data_app
from gamma_analytics.commands.sessions import app as sessions_app
from gamma_analytics.commands.settings import app as settings_app
from gamma_analytics.commands.watchlist import app as watchlist_app
from gamma_analytics.ingestion.parser import parse_csv
from gamma_analytics.observability import end_run_log, start_run_log
from gamma_analytics.reporting import render_gamma_report, render_parse_outcome
from gamma_analytics.sample_data import generate_sample_csv
from gamma_analytics.settings import ConfigError, UserSettings, load_settings_file

logger = logging.getLogger(__name__)

app = typer.Typer(add_completion=False, help="Gamma exposure analytics for options chain CSV exports.")
app.add_typer(sessions_app, name="sessions")
app.add_typer(settings_app, name="settings")
app.add_typer(watchlist_app, name="watchlist")
app.add_typer(data_app, name="data")


@app.callback()
def main(
    ctx: typer.Context,
    log_dir: Path = typer.Option(
        Path("data/logs"),
        "--log-dir",
        help="Directory for per-run log files (partitioned by UTC date).",
    ),
    log_path: Path | None = typer.Option(
        None,
        "--log-path",
        help="Append this run's log to a fixed file instead of a per-run file under --log-dir.",
    ),
    log_level: str = typer.Option("INFO", "--log-level", help="Logging level (DEBUG, INFO, WARNING, ...)."),
) -> None:
    level = logging.getLevelName(log_level.strip().upper())
    if not isinstance(level, int):
        raise typer.BadParameter(f"Unknown log level: {log_level}")

    command_name = ctx.invoked_subcommand or "gamma-analytics"
    run_log = start_run_log(log_dir, command_name, level=level, log_path=log_path)
    if run_log is not None:
        ctx.call_on_close(lambda: end_run_log(run_log))


def _parse_mapping_options(values: list[str]) -> dict[str, str]:
    mapping: dict[str, str] = {}
    for raw in values:
        field, sep, header = raw.partition("=")
        if not sep or not field.strip() or not header.strip():
            raise typer.BadParameter(f"Expected FIELD=HEADER, got {raw!r}")
        mapping[field.strip()] = header.strip()
    return mapping


def _resolve_settings(config_path: Path | None, store_path: Path) -> UserSettings:
    if config_path is not None:
        try:
            return load_settings_file(config_path)
        except ConfigError as exc:
            raise typer.BadParameter(str(exc)) from exc
    return open_storage(store_path).get_settings()


@app.command("analyze")
def analyze(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Options chain CSV export."),
    underlying: str | None = typer.Option(
        None,
        "--underlying",
        help="Only analyze records for this underlying (files may mix several).",
    ),
    top: int | None = typer.Option(None, "--top", min=1, help="Override the number of key levels / top strikes."),
    output_format: str = typer.Option("console", "--format", help="Output format: console|json"),
    out: Path | None = typer.Option(None, "--out", help="Write the JSON report to this path."),
    config_path: Path | None = typer.Option(None, "--config", help="YAML settings file (overrides stored settings)."),
    column: list[str] = typer.Option(
        [],
        "--map",
        help="Explicit column mapping FIELD=HEADER (repeatable); skips header auto-detection.",
    ),
    store_path: Path = store_option(),
    save_session: bool = typer.Option(False, "--save-session", help="Persist the parsed records as a session."),
) -> None:
    """Ingest a CSV and report gamma exposure by strike and expiry (not financial advice)."""
    output_format = output_format.strip().lower()
    if output_format not in {"console", "json"}:
        raise typer.BadParameter("Invalid --format (use console|json)", param_hint="--format")

    settings = _resolve_settings(config_path, store_path)
    if top is not None:
        settings = settings.model_copy(update={"top_levels_count": top, "max_levels_to_display": top})

    console = Console()
    err_console = Console(stderr=True)
    mapping = _parse_mapping_options(column) if column else None

    outcome = parse_csv(path.read_text(encoding="utf-8", errors="replace"), mapping)
    message_console = console if output_format == "console" else err_console
    render_parse_outcome(message_console, outcome)
    if not outcome.success:
        raise typer.Exit(1)

    groups = split_by_underlying(outcome.data)
    records = outcome.data
    if underlying:
        sym = underlying.strip().upper()
        records = groups.get(sym, [])
        if not records:
            available = ", ".join(sorted(groups)) or "none"
            raise typer.BadParameter(f"No records for {sym} (available: {available})", param_hint="--underlying")
    elif len(groups) > 1:
        message_console.print(
            f"[yellow]Warning:[/yellow] file mixes underlyings ({', '.join(sorted(groups))}); "
            "use --underlying to analyze one"
        )

    report = build_gamma_report(
        records,
        source_format=outcome.source_format,
        settings=settings,
        warnings=outcome.warnings,
    )
    logger.info("Analyzed %d records for %s", len(records), report.symbol)

    if save_session:
        session = open_storage(store_path).create_session(records, report.symbol, report.spot)
        message_console.print(f"Saved session {session.id} to {store_path}")

    if out is not None:
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(json.dumps(report.to_dict(), indent=2), encoding="utf-8")
        message_console.print(f"Wrote report to {out}")

    if output_format == "json":
        if out is None:
            typer.echo(json.dumps(report.to_dict(), indent=2))
        return
    render_gamma_report(console, report, settings=settings)


@app.command("sample")
def sample(
    out: Path | None = typer.Option(None, "--out", help="Write the CSV here instead of stdout."),
    seed: int | None = typer.Option(None, "--seed", help="Random seed for reproducible output."),
    base_price: float = typer.Option(4500.0, "--base-price", min=1.0, help="Underlying price to center strikes on."),
    underlying: str = typer.Option("SPX", "--underlying", help="Underlying symbol."),
) -> None:
    """Generate a synthetic options chain CSV."""
    content = generate_sample_csv(base_price=base_price, underlying=underlying.strip().upper(), seed=seed)
    if out is None:
        typer.echo(content, nl=False)
        return
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(content, encoding="utf-8")
    Console().print(f"Wrote sample chain to {out}")


if __name__ == "__main__":
    app()
