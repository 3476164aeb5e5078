from __future__ import annotations

import pytest

from gamma_analytics.analysis.gamma import find_gamma_flip_level, identify_key_levels

from tests.gamma_helpers import make_bucket


def test_flip_level_interpolates_between_bracketing_strikes() -> None:
    assert find_gamma_flip_level([make_bucket(100.0, 1000.0), make_bucket(105.0, -1000.0)]) == pytest.approx(102.5)
    # Weighted toward the strike with the smaller magnitude: 95 + 5 * 300 / 500.
    assert find_gamma_flip_level([make_bucket(100.0, -200.0), make_bucket(95.0, 300.0)]) == pytest.approx(98.0)


def test_flip_level_uses_first_sign_change_scanning_upward() -> None:
    buckets = [
        make_bucket(120.0, 500.0),
        make_bucket(100.0, 100.0),
        make_bucket(110.0, -100.0),
        make_bucket(130.0, -500.0),
    ]
    assert find_gamma_flip_level(buckets) == pytest.approx(105.0)


def test_flip_level_none_without_strict_sign_change() -> None:
    assert find_gamma_flip_level([]) is None
    assert find_gamma_flip_level([make_bucket(100.0, 10.0), make_bucket(105.0, 20.0)]) is None
    assert find_gamma_flip_level([make_bucket(100.0, 10.0), make_bucket(105.0, 0.0), make_bucket(110.0, -10.0)]) is None


def test_identify_key_levels_splits_count_between_sides() -> None:
    buckets = [
        make_bucket(90.0, 500.0, call_oi=50, put_oi=5),
        make_bucket(95.0, 300.0),
        make_bucket(100.0, 100.0),
        make_bucket(105.0, -200.0),
        make_bucket(110.0, -600.0, put_oi=70),
    ]
    levels = identify_key_levels(buckets, count=4)

    assert [level.strike for level in levels] == pytest.approx([110.0, 105.0, 100.0 + 5.0 * 100.0 / 300.0, 95.0, 90.0])
    assert [level.type for level in levels] == ["negative", "negative", "flip", "positive", "positive"]
    assert levels[-1].total_oi == 55
    assert levels[0].total_oi == 70
    assert levels[2].net_gamma == 0.0
    assert levels[2].total_oi == 0
    assert levels[-1].description == "High positive gamma - potential support level"
    assert levels[0].description == "High negative gamma - potential resistance level"
    assert levels[2].description == "Gamma flip zone - volatility transition point"


def test_identify_key_levels_odd_count_rounds_up_per_side() -> None:
    buckets = [make_bucket(100.0 + i, 10.0 * (i + 1)) for i in range(5)]
    levels = identify_key_levels(buckets, count=3)
    # ceil(3 / 2) positives, no negatives, no flip.
    assert [level.strike for level in levels] == [104.0, 103.0]
    assert identify_key_levels([], count=10) == []
