from __future__ import annotations

from datetime import date

from gamma_analytics.ingestion.parser import parse_csv
from gamma_analytics.sample_data import SAMPLE_HEADERS, generate_sample_csv, next_fridays


def test_next_fridays() -> None:
    assert next_fridays(3, today=date(2025, 12, 1)) == ["2025-12-05", "2025-12-12", "2025-12-19"]
    # On a Friday the first expiry is a week out.
    assert next_fridays(1, today=date(2025, 12, 5)) == ["2025-12-12"]


def test_sample_csv_is_reproducible_with_seed() -> None:
    today = date(2025, 12, 1)
    assert generate_sample_csv(seed=7, today=today) == generate_sample_csv(seed=7, today=today)


def test_sample_csv_parses_cleanly() -> None:
    content = generate_sample_csv(seed=1, today=date(2025, 12, 1), strikes_each_side=5)
    assert content.splitlines()[0] == ",".join(SAMPLE_HEADERS)

    outcome = parse_csv(content)
    assert outcome.success
    assert outcome.errors == []
    assert outcome.warnings == []
    # 3 expiries x 11 strikes x call/put
    assert outcome.row_count == 66
    assert outcome.valid_row_count == 66
    assert {r.expiry for r in outcome.data} == {"2025-12-05", "2025-12-12", "2025-12-19"}
    assert {r.underlying for r in outcome.data} == {"SPX"}
    assert {r.underlying_price for r in outcome.data} == {4500.0}
    assert {r.option_type for r in outcome.data} == {"call", "put"}
    assert min(r.strike for r in outcome.data) == 4375.0
    assert max(r.strike for r in outcome.data) == 4625.0


def test_sample_csv_custom_underlying_and_expiries() -> None:
    content = generate_sample_csv(
        base_price=600.0,
        underlying="spy",
        expiries=["2026-01-16"],
        strike_step=5.0,
        strikes_each_side=2,
        seed=3,
    )
    outcome = parse_csv(content)
    assert outcome.valid_row_count == 10
    assert outcome.data[0].symbol == "SPY20260116C00590000"
