from __future__ import annotations

from collections.abc import Iterable, Mapping
import re
from types import MappingProxyType

from gamma_analytics.models import ColumnMapping

# Canonical field -> synonyms, in priority order.
COLUMN_SYNONYMS: Mapping[str, tuple[str, ...]] = MappingProxyType(
    {
        "symbol": ("symbol", "ticker", "option_symbol", "optionsymbol", "option symbol", "contract"),
        "underlying": ("underlying", "underlying_symbol", "root", "stock", "equity"),
        "expiry": ("expiry", "expiration", "exp", "expiration_date", "exp_date", "expirydate", "expdate"),
        "strike": ("strike", "strike_price", "strikeprice", "k"),
        "type": (
            "type",
            "option_type",
            "optiontype",
            "call_put",
            "callput",
            "cp",
            "put_call",
            "putcall",
            "side",
        ),
        "volume": ("volume", "vol", "trading_volume", "qty"),
        "openInterest": ("open_interest", "openinterest", "oi", "open interest", "open_int"),
        "delta": ("delta", "del"),
        "gamma": ("gamma", "gam"),
        "theta": ("theta", "the"),
        "vega": ("vega", "veg"),
        "iv": (
            "iv",
            "implied_volatility",
            "impliedvolatility",
            "impl_vol",
            "implvol",
            "implied vol",
            "implied_vol",
        ),
        "bid": ("bid", "bid_price", "bidprice"),
        "ask": ("ask", "ask_price", "askprice", "offer"),
        "last": ("last", "last_price", "lastprice", "close", "mark"),
        "underlyingPrice": (
            "underlying_price",
            "underlyingprice",
            "spot",
            "spot_price",
            "stock_price",
            "stockprice",
            "underlying_last",
        ),
    }
)

REQUIRED_COLUMNS: tuple[str, ...] = ("strike", "gamma", "openInterest")

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]")


def normalize_header(header: str) -> str:
    return _NON_ALNUM_RE.sub("", str(header).strip().lower())


def find_column(headers: list[str], synonyms: Iterable[str]) -> str | None:
    """First header matching a synonym, tried in synonym order.

    For each synonym an exact (normalized) match is preferred over a substring
    match, even when the substring hit sits earlier in the header row. Header
    position only breaks ties within the same kind of match.
    """
    normalized = [normalize_header(h) for h in headers]
    for synonym in synonyms:
        target = normalize_header(synonym)
        if not target:
            continue
        for idx, candidate in enumerate(normalized):
            if candidate == target:
                return headers[idx]
        for idx, candidate in enumerate(normalized):
            if target in candidate:
                return headers[idx]
    return None


def detect_column_mapping(headers: Iterable[str]) -> ColumnMapping:
    header_list = [str(h) for h in headers]
    found: dict[str, str] = {}
    for field, synonyms in COLUMN_SYNONYMS.items():
        column = find_column(header_list, synonyms)
        if column is not None:
            found[field] = column
    return ColumnMapping.model_validate(found)


def missing_required_columns(mapping: ColumnMapping) -> list[str]:
    resolved = mapping.resolved()
    return [field for field in REQUIRED_COLUMNS if not resolved.get(field)]


__all__ = [
    "COLUMN_SYNONYMS",
    "REQUIRED_COLUMNS",
    "detect_column_mapping",
    "find_column",
    "missing_required_columns",
    "normalize_header",
]
