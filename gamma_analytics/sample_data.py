from __future__ import annotations

import csv
from collections.abc import Sequence
from datetime import date, timedelta
import io
import math

import numpy as np

from gamma_analytics.contracts import build_contract_symbol

SAMPLE_HEADERS: tuple[str, ...] = (
    "symbol",
    "underlying",
    "expiry",
    "strike",
    "type",
    "volume",
    "open_interest",
    "delta",
    "gamma",
    "theta",
    "vega",
    "iv",
    "bid",
    "ask",
    "last",
    "underlying_price",
)


def next_fridays(count: int, *, today: date | None = None) -> list[str]:
    current = today or date.today()
    # Friday is weekday 4; on a Friday the next one is a week out.
    days_until_friday = (4 - current.weekday()) % 7 or 7
    first = current + timedelta(days=days_until_friday)
    return [(first + timedelta(weeks=i)).isoformat() for i in range(count)]


def generate_sample_csv(
    *,
    base_price: float = 4500.0,
    underlying: str = "SPX",
    expiries: Sequence[str] | None = None,
    strike_step: float = 25.0,
    strikes_each_side: int = 20,
    seed: int | None = None,
    today: date | None = None,
) -> str:
    """Synthetic generic-format chain: one call and one put row per strike and expiry."""
    rng = np.random.default_rng(seed)
    expiry_list = list(expiries) if expiries is not None else next_fridays(3, today=today)
    strikes = [base_price + i * strike_step for i in range(-strikes_each_side, strikes_each_side + 1)]

    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(SAMPLE_HEADERS)

    for expiry in expiry_list:
        for strike in strikes:
            moneyness = (strike - base_price) / (base_price * 0.2)
            gamma = 0.002 * math.exp(-(((strike - base_price) / 100.0) ** 2))
            call_iv = 0.15 + float(rng.random()) * 0.1

            legs = (
                ("call", min(1.0, max(0.0, 0.5 - moneyness)), -0.5 - float(rng.random()), call_iv),
                ("put", min(0.0, max(-1.0, -0.5 + moneyness)), -0.3 - float(rng.random()), call_iv + 0.02),
            )
            for option_type, delta, theta, iv in legs:
                writer.writerow(
                    [
                        build_contract_symbol(underlying, expiry, option_type, strike),
                        underlying,
                        expiry,
                        f"{strike:g}",
                        option_type,
                        int(rng.integers(0, 1000)),
                        int(rng.integers(500, 5500)),
                        f"{delta:.4f}",
                        f"{gamma:.6f}",
                        f"{theta:.4f}",
                        f"{1 + float(rng.random()):.4f}",
                        f"{iv:.4f}",
                        f"{float(rng.random()) * 10:.2f}",
                        f"{float(rng.random()) * 10 + 0.1:.2f}",
                        f"{float(rng.random()) * 10 + 0.05:.2f}",
                        f"{base_price:g}",
                    ]
                )

    return buffer.getvalue()


__all__ = ["SAMPLE_HEADERS", "generate_sample_csv", "next_fridays"]
