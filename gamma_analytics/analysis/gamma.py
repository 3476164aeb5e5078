from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import date
import math

import numpy as np
import pandas as pd

from gamma_analytics.models import OptionRecord
from gamma_analytics.schemas.gamma import (
    DashboardSummary,
    ExpiryBucket,
    GammaExposurePoint,
    KeyLevel,
    StrikeBucket,
)

CONTRACT_MULTIPLIER = 100.0

_FRAME_COLUMNS = list(OptionRecord.model_fields)

POSITIVE_LEVEL_DESCRIPTION = "High positive gamma - potential support level"
NEGATIVE_LEVEL_DESCRIPTION = "High negative gamma - potential resistance level"
FLIP_LEVEL_DESCRIPTION = "Gamma flip zone - volatility transition point"


def gamma_exposure(record: OptionRecord) -> float:
    return record.gamma * record.open_interest * CONTRACT_MULTIPLIER


def records_to_frame(records: Iterable[OptionRecord]) -> pd.DataFrame:
    rows = [record.model_dump() for record in records]
    if not rows:
        return pd.DataFrame(columns=_FRAME_COLUMNS)
    return pd.DataFrame(rows, columns=_FRAME_COLUMNS)


def calculate_days_to_expiry(expiry: str | date, *, today: date | None = None) -> int:
    if isinstance(expiry, date):
        expiry_date = expiry
    else:
        try:
            expiry_date = date.fromisoformat(str(expiry).strip())
        except ValueError:
            return 0
    reference = today or date.today()
    return max(0, (expiry_date - reference).days)


def _signed_exposure_frame(records: Sequence[OptionRecord]) -> pd.DataFrame:
    out = records_to_frame(records)
    is_call = out["option_type"] == "call"
    exposure = out["gamma"].astype(float) * out["open_interest"].astype(float) * CONTRACT_MULTIPLIER
    out["_call_gamma"] = exposure.where(is_call, 0.0)
    # Puts are subtracted so net = call + put is a signed sum.
    out["_put_gamma"] = (-exposure).where(~is_call, 0.0)
    out["_call_oi"] = out["open_interest"].astype(int).where(is_call, 0)
    out["_put_oi"] = out["open_interest"].astype(int).where(~is_call, 0)
    return out


def _grouped_exposure(records: Sequence[OptionRecord], key: str) -> pd.DataFrame:
    out = _signed_exposure_frame(records)
    return out.groupby(key, as_index=False, sort=True)[["_call_gamma", "_put_gamma", "_call_oi", "_put_oi"]].sum()


def aggregate_gamma_by_strike(records: Sequence[OptionRecord]) -> list[StrikeBucket]:
    if not records:
        return []
    grouped = _grouped_exposure(records, "strike")
    buckets: list[StrikeBucket] = []
    for _, row in grouped.iterrows():
        call_gamma = float(row["_call_gamma"])
        put_gamma = float(row["_put_gamma"])
        buckets.append(
            StrikeBucket(
                strike=float(row["strike"]),
                call_gamma=call_gamma,
                put_gamma=put_gamma,
                net_gamma=call_gamma + put_gamma,
                total_gamma=abs(call_gamma) + abs(put_gamma),
                call_oi=int(row["_call_oi"]),
                put_oi=int(row["_put_oi"]),
            )
        )
    return buckets


def aggregate_gamma_by_expiry(
    records: Sequence[OptionRecord],
    *,
    today: date | None = None,
) -> list[ExpiryBucket]:
    if not records:
        return []
    reference = today or date.today()
    grouped = _grouped_exposure(records, "expiry")
    buckets: list[ExpiryBucket] = []
    for _, row in grouped.iterrows():
        call_gamma = float(row["_call_gamma"])
        put_gamma = float(row["_put_gamma"])
        expiry = str(row["expiry"])
        buckets.append(
            ExpiryBucket(
                expiry=expiry,
                days_to_expiry=calculate_days_to_expiry(expiry, today=reference),
                call_gamma=call_gamma,
                put_gamma=put_gamma,
                net_gamma=call_gamma + put_gamma,
                total_gamma=abs(call_gamma) + abs(put_gamma),
                call_oi=int(row["_call_oi"]),
                put_oi=int(row["_put_oi"]),
            )
        )
    return sorted(buckets, key=lambda bucket: (bucket.days_to_expiry, bucket.expiry))


def find_gamma_flip_level(buckets: Iterable[StrikeBucket]) -> float | None:
    """Strike where net gamma first changes sign, scanning upward.

    The crossing is linearly interpolated between the bracketing strikes,
    weighted by the magnitudes of their net gamma.
    """
    ladder = sorted(buckets, key=lambda bucket: bucket.strike)
    for lower, upper in zip(ladder, ladder[1:]):
        crossed = (lower.net_gamma > 0 and upper.net_gamma < 0) or (lower.net_gamma < 0 and upper.net_gamma > 0)
        if not crossed:
            continue
        ratio = abs(lower.net_gamma) / (abs(lower.net_gamma) + abs(upper.net_gamma))
        return lower.strike + (upper.strike - lower.strike) * ratio
    return None


def identify_key_levels(buckets: Sequence[StrikeBucket], count: int = 10) -> list[KeyLevel]:
    per_side = math.ceil(count / 2) if count > 0 else 0
    levels: list[KeyLevel] = []

    positive = sorted((b for b in buckets if b.net_gamma > 0), key=lambda b: -b.net_gamma)[:per_side]
    for bucket in positive:
        levels.append(
            KeyLevel(
                strike=bucket.strike,
                net_gamma=bucket.net_gamma,
                total_oi=bucket.call_oi + bucket.put_oi,
                type="positive",
                description=POSITIVE_LEVEL_DESCRIPTION,
            )
        )

    negative = sorted((b for b in buckets if b.net_gamma < 0), key=lambda b: b.net_gamma)[:per_side]
    for bucket in negative:
        levels.append(
            KeyLevel(
                strike=bucket.strike,
                net_gamma=bucket.net_gamma,
                total_oi=bucket.call_oi + bucket.put_oi,
                type="negative",
                description=NEGATIVE_LEVEL_DESCRIPTION,
            )
        )

    flip = find_gamma_flip_level(buckets)
    if flip is not None:
        levels.append(
            KeyLevel(strike=flip, net_gamma=0.0, total_oi=0, type="flip", description=FLIP_LEVEL_DESCRIPTION)
        )

    return sorted(levels, key=lambda level: -level.strike)


def top_gamma_strikes(buckets: Sequence[StrikeBucket], count: int = 10) -> list[StrikeBucket]:
    if count <= 0:
        return []
    return sorted(buckets, key=lambda bucket: -abs(bucket.net_gamma))[:count]


def top_gamma_expiries(buckets: Sequence[ExpiryBucket], count: int = 5) -> list[ExpiryBucket]:
    if count <= 0:
        return []
    return sorted(buckets, key=lambda bucket: -abs(bucket.net_gamma))[:count]


def calculate_dashboard_summary(records: Sequence[OptionRecord]) -> DashboardSummary:
    """Headline numbers for one underlying.

    Symbol and spot come from the first record; pre-filter with
    ``split_by_underlying`` when the input mixes underlyings.
    """
    if not records:
        return DashboardSummary()

    by_strike = aggregate_gamma_by_strike(records)

    call_total = 0.0
    put_total = 0.0
    total_oi = 0
    strikes: set[float] = set()
    expiries: set[str] = set()
    for record in records:
        exposure = gamma_exposure(record)
        if record.option_type == "call":
            call_total += exposure
        else:
            put_total += exposure
        total_oi += record.open_interest
        strikes.add(record.strike)
        expiries.add(record.expiry)

    by_net_desc = sorted(by_strike, key=lambda bucket: -bucket.net_gamma)
    top_positive = next((b.strike for b in by_net_desc if b.net_gamma > 0), None)
    by_net_asc = sorted(by_strike, key=lambda bucket: bucket.net_gamma)
    top_negative = next((b.strike for b in by_net_asc if b.net_gamma < 0), None)

    first = records[0]
    return DashboardSummary(
        symbol=first.underlying,
        spot_price=first.underlying_price,
        total_gamma=call_total + put_total,
        total_net_gamma=call_total - put_total,
        top_positive_strike=top_positive,
        top_negative_strike=top_negative,
        gamma_flip_level=find_gamma_flip_level(by_strike),
        call_gamma_total=call_total,
        put_gamma_total=put_total,
        total_open_interest=total_oi,
        unique_strikes=len(strikes),
        unique_expiries=len(expiries),
    )


def calculate_gamma_exposure_curve(
    records: Sequence[OptionRecord],
    spot: float,
    *,
    range_percent: float = 5.0,
    steps: int = 50,
) -> list[GammaExposurePoint]:
    # Greeks are held fixed across the range; only the spot scaling moves.
    if spot <= 0 or steps <= 0 or not records:
        return []
    out = _signed_exposure_frame(records)
    call_base = float(out["_call_gamma"].sum())
    put_base = float(out["_put_gamma"].sum())

    spots = np.linspace(spot * (1 - range_percent / 100.0), spot * (1 + range_percent / 100.0), steps + 1)
    points: list[GammaExposurePoint] = []
    for value in spots:
        call_gex = call_base * float(value)
        put_gex = put_base * float(value)
        points.append(
            GammaExposurePoint(
                spot_price=round(float(value), 2),
                gex=call_gex + put_gex,
                call_gex=call_gex,
                put_gex=put_gex,
            )
        )
    return points


def split_by_underlying(records: Iterable[OptionRecord]) -> dict[str, list[OptionRecord]]:
    groups: dict[str, list[OptionRecord]] = {}
    for record in records:
        groups.setdefault(record.underlying, []).append(record)
    return groups


__all__ = [
    "CONTRACT_MULTIPLIER",
    "aggregate_gamma_by_expiry",
    "aggregate_gamma_by_strike",
    "calculate_dashboard_summary",
    "calculate_days_to_expiry",
    "calculate_gamma_exposure_curve",
    "find_gamma_flip_level",
    "gamma_exposure",
    "identify_key_levels",
    "records_to_frame",
    "split_by_underlying",
    "top_gamma_expiries",
    "top_gamma_strikes",
]
