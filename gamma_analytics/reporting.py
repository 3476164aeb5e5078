from __future__ import annotations

from rich.console import Console
from rich.table import Table

from gamma_analytics.formatting import format_currency, format_expiry_short, format_number, format_strike
from gamma_analytics.models import ParseOutcome
from gamma_analytics.schemas.gamma import DashboardSummary, ExpiryBucket, GammaReportArtifact, KeyLevel, StrikeBucket
from gamma_analytics.settings import DEFAULT_SETTINGS, UserSettings


def _net_style(value: float) -> str | None:
    if value > 0:
        return "green"
    if value < 0:
        return "red"
    return None


def render_parse_outcome(console: Console, outcome: ParseOutcome, *, max_messages: int = 20) -> None:
    status = "[green]ok[/green]" if outcome.success else "[red]failed[/red]"
    console.print(
        f"Ingestion {status}: {outcome.valid_row_count}/{outcome.row_count} rows "
        f"({outcome.source_format} format)"
    )
    for err in outcome.errors[:max_messages]:
        console.print(f"  - [red]Error:[/red] {err}")
    if len(outcome.errors) > max_messages:
        console.print(f"  - ... {len(outcome.errors) - max_messages} more errors")
    for warning in outcome.warnings[:max_messages]:
        console.print(f"  - [yellow]Warning:[/yellow] {warning}")
    if len(outcome.warnings) > max_messages:
        console.print(f"  - ... {len(outcome.warnings) - max_messages} more warnings")


def render_summary(console: Console, summary: DashboardSummary) -> None:
    title = f"{summary.symbol or '-'} Gamma Summary"
    if summary.spot_price > 0:
        title += f" (spot {summary.spot_price:,.2f})"
    table = Table(title=title)
    table.add_column("Metric")
    table.add_column("Value", justify="right")

    positioning = "positive" if summary.total_net_gamma >= 0 else "negative"
    table.add_row("Net Gamma Exposure", f"{format_number(summary.total_net_gamma)} ({positioning})")
    table.add_row("Top Positive Strike", format_currency(summary.top_positive_strike))
    table.add_row("Top Negative Strike", format_currency(summary.top_negative_strike))
    table.add_row("Gamma Flip Level", format_currency(summary.gamma_flip_level))
    table.add_row("Call Gamma Total", format_number(summary.call_gamma_total))
    table.add_row("Put Gamma Total", format_number(summary.put_gamma_total))
    table.add_row("Total Open Interest", f"{summary.total_open_interest:,}")
    table.add_row("Strikes / Expiries", f"{summary.unique_strikes} / {summary.unique_expiries}")
    console.print(table)


def render_key_levels(console: Console, levels: list[KeyLevel], *, limit: int | None = None) -> None:
    if not levels:
        console.print("No key gamma levels.")
        return
    table = Table(title="Key Gamma Levels")
    table.add_column("Strike", justify="right")
    table.add_column("Type")
    table.add_column("Net Gamma", justify="right")
    table.add_column("Total OI", justify="right")
    table.add_column("Description")
    shown = levels if limit is None else levels[:limit]
    for level in shown:
        style = {"positive": "green", "negative": "red", "flip": "yellow"}[level.type]
        table.add_row(
            format_strike(level.strike),
            level.type,
            format_number(level.net_gamma),
            f"{level.total_oi:,}" if level.type != "flip" else "-",
            level.description,
            style=style,
        )
    console.print(table)


def render_top_strikes(
    console: Console,
    buckets: list[StrikeBucket],
    *,
    settings: UserSettings = DEFAULT_SETTINGS,
) -> None:
    if not buckets:
        console.print("No strikes.")
        return
    table = Table(title=f"Top {len(buckets)} Strikes by |Net Gamma|")
    table.add_column("Strike", justify="right")
    if settings.show_call_put_separate:
        table.add_column("Call Gamma", justify="right")
        table.add_column("Put Gamma", justify="right")
    table.add_column("Net Gamma", justify="right")
    table.add_column("Total Gamma", justify="right")
    if settings.show_open_interest:
        table.add_column("Call OI", justify="right")
        table.add_column("Put OI", justify="right")

    for bucket in buckets:
        cells = [format_strike(bucket.strike)]
        if settings.show_call_put_separate:
            cells += [format_number(bucket.call_gamma), format_number(bucket.put_gamma)]
        cells += [format_number(bucket.net_gamma), format_number(bucket.total_gamma)]
        if settings.show_open_interest:
            cells += [f"{bucket.call_oi:,}", f"{bucket.put_oi:,}"]
        table.add_row(*cells, style=_net_style(bucket.net_gamma))
    console.print(table)


def render_top_expiries(console: Console, buckets: list[ExpiryBucket]) -> None:
    if not buckets:
        console.print("No expiries.")
        return
    table = Table(title=f"Top {len(buckets)} Expiries by |Net Gamma|")
    table.add_column("Expiry")
    table.add_column("DTE", justify="right")
    table.add_column("Call Gamma", justify="right")
    table.add_column("Put Gamma", justify="right")
    table.add_column("Net Gamma", justify="right")
    for bucket in buckets:
        table.add_row(
            f"{bucket.expiry} ({format_expiry_short(bucket.expiry)})",
            str(bucket.days_to_expiry),
            format_number(bucket.call_gamma),
            format_number(bucket.put_gamma),
            format_number(bucket.net_gamma),
            style=_net_style(bucket.net_gamma),
        )
    console.print(table)


def render_gamma_report(
    console: Console,
    report: GammaReportArtifact,
    *,
    settings: UserSettings = DEFAULT_SETTINGS,
) -> None:
    render_summary(console, report.summary)
    render_key_levels(console, report.key_levels, limit=settings.max_levels_to_display)
    render_top_strikes(console, report.top_strikes, settings=settings)
    render_top_expiries(console, report.top_expiries)
    console.print(f"\n[dim]{report.disclaimer}[/dim]")
