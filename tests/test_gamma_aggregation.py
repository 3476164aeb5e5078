from __future__ import annotations

from datetime import date

import pytest

from gamma_analytics.analysis.gamma import (
    aggregate_gamma_by_expiry,
    aggregate_gamma_by_strike,
    calculate_days_to_expiry,
    calculate_gamma_exposure_curve,
    gamma_exposure,
    split_by_underlying,
    top_gamma_expiries,
    top_gamma_strikes,
)

from tests.gamma_helpers import make_record


def _records():
    return [
        make_record(100.0, "call", 0.05, 1000, idx=0),
        make_record(100.0, "put", 0.02, 500, idx=1),
        make_record(110.0, "call", 0.01, 100, expiry="2025-12-26", idx=2),
        make_record(90.0, "put", 0.03, 400, expiry="2025-12-26", idx=3),
    ]


def test_gamma_exposure_uses_contract_multiplier() -> None:
    assert gamma_exposure(make_record(100.0, "call", 0.05, 1000)) == pytest.approx(5000.0)


def test_aggregate_by_strike_signs_puts_negative() -> None:
    buckets = aggregate_gamma_by_strike(_records())
    assert [b.strike for b in buckets] == [90.0, 100.0, 110.0]

    at_100 = buckets[1]
    assert at_100.call_gamma == pytest.approx(5000.0)
    assert at_100.put_gamma == pytest.approx(-1000.0)
    assert at_100.net_gamma == pytest.approx(4000.0)
    assert at_100.total_gamma == pytest.approx(6000.0)
    assert at_100.call_oi == 1000
    assert at_100.put_oi == 500

    at_90 = buckets[0]
    assert at_90.call_gamma == 0.0
    assert at_90.put_gamma == pytest.approx(-1200.0)
    assert at_90.put_oi == 400


def test_aggregate_by_expiry_orders_by_days_to_expiry() -> None:
    buckets = aggregate_gamma_by_expiry(_records(), today=date(2025, 12, 1))
    assert [b.expiry for b in buckets] == ["2025-12-19", "2025-12-26"]
    assert [b.days_to_expiry for b in buckets] == [18, 25]
    assert buckets[0].net_gamma == pytest.approx(4000.0)
    assert buckets[1].net_gamma == pytest.approx(100.0 - 1200.0)
    assert buckets[1].total_gamma == pytest.approx(1300.0)


def test_aggregation_is_repeatable() -> None:
    records = _records()
    assert aggregate_gamma_by_strike(records) == aggregate_gamma_by_strike(records)
    today = date(2025, 12, 1)
    assert aggregate_gamma_by_expiry(records, today=today) == aggregate_gamma_by_expiry(records, today=today)


def test_empty_input_aggregates_to_nothing() -> None:
    assert aggregate_gamma_by_strike([]) == []
    assert aggregate_gamma_by_expiry([]) == []


def test_days_to_expiry_is_clamped_at_zero() -> None:
    today = date(2025, 12, 1)
    assert calculate_days_to_expiry("2025-11-20", today=today) == 0
    assert calculate_days_to_expiry("2025-12-01", today=today) == 0
    assert calculate_days_to_expiry(date(2025, 12, 8), today=today) == 7
    assert calculate_days_to_expiry("not a date", today=today) == 0


def test_top_rankings_use_absolute_net_gamma() -> None:
    strikes = aggregate_gamma_by_strike(_records())
    assert [b.strike for b in top_gamma_strikes(strikes, 2)] == [100.0, 90.0]
    assert top_gamma_strikes(strikes, 0) == []

    expiries = aggregate_gamma_by_expiry(_records(), today=date(2025, 12, 1))
    assert [b.expiry for b in top_gamma_expiries(expiries, 1)] == ["2025-12-19"]


def test_exposure_curve_scales_with_spot() -> None:
    records = [make_record(100.0, "call", 0.05, 1000), make_record(100.0, "put", 0.02, 500)]
    curve = calculate_gamma_exposure_curve(records, 100.0, range_percent=5.0, steps=10)
    assert len(curve) == 11
    assert curve[0].spot_price == pytest.approx(95.0)
    assert curve[-1].spot_price == pytest.approx(105.0)
    assert curve[5].gex == pytest.approx(4000.0 * 100.0)
    assert curve[0].call_gex == pytest.approx(5000.0 * 95.0)
    assert curve[0].put_gex == pytest.approx(-1000.0 * 95.0)

    assert calculate_gamma_exposure_curve(records, 0.0) == []
    assert calculate_gamma_exposure_curve([], 100.0) == []


def test_split_by_underlying_preserves_order() -> None:
    records = [
        make_record(100.0, "call", 0.01, 10, underlying="SPX", idx=0),
        make_record(400.0, "call", 0.01, 10, underlying="QQQ", idx=1),
        make_record(105.0, "put", 0.01, 10, underlying="SPX", idx=2),
    ]
    groups = split_by_underlying(records)
    assert list(groups) == ["SPX", "QQQ"]
    assert [r.id for r in groups["SPX"]] == [records[0].id, records[2].id]
