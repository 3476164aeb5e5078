from __future__ import annotations

import io

from rich.console import Console

from gamma_analytics.analysis.report import build_gamma_report
from gamma_analytics.models import ParseOutcome
from gamma_analytics.reporting import render_gamma_report, render_parse_outcome
from gamma_analytics.settings import UserSettings

from tests.gamma_helpers import make_record


def _console() -> tuple[Console, io.StringIO]:
    buf = io.StringIO()
    return Console(file=buf, width=160, force_terminal=False, color_system=None), buf


def test_render_parse_outcome_lists_errors_and_warnings() -> None:
    console, buf = _console()
    outcome = ParseOutcome.failure(["Missing required columns: gamma"], warnings=["Row 2: odd"], row_count=3)
    render_parse_outcome(console, outcome)
    text = buf.getvalue()
    assert "failed" in text
    assert "0/3 rows" in text
    assert "Missing required columns: gamma" in text
    assert "Row 2: odd" in text


def test_render_gamma_report_tables() -> None:
    records = [
        make_record(100.0, "call", 0.02, 100, underlying_price=101.0, idx=0),
        make_record(105.0, "put", 0.02, 100, underlying_price=101.0, idx=1),
    ]
    report = build_gamma_report(records)
    console, buf = _console()
    render_gamma_report(console, report, settings=UserSettings(show_open_interest=False))
    text = buf.getvalue()

    assert "SPX Gamma Summary" in text
    assert "Key Gamma Levels" in text
    assert "Gamma Flip Level" in text
    assert "$102" in text
    assert "Top 2 Strikes" in text
    assert "Call OI" not in text
    assert "Not financial advice." in text


def test_render_empty_report() -> None:
    report = build_gamma_report([])
    console, buf = _console()
    render_gamma_report(console, report)
    text = buf.getvalue()
    assert "No key gamma levels." in text
    assert "No strikes." in text
    assert "No expiries." in text
