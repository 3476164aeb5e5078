"""Tolerant coercion of free-form CSV cells.

Everything here fails soft: numbers fall back to ``0.0`` and the classifiers
return ``None`` so the caller can pick a default and record a warning.
"""

from __future__ import annotations

from datetime import date, datetime
import math
import re
import warnings

import pandas as pd

from gamma_analytics.models import OptionType

_EMPTY_TOKENS = frozenset({"", "<empty>", "--"})
_STRIP_RE = re.compile(r"[$€£¥,%\s\"']")
_NUMBER_PREFIX_RE = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")

_CALL_TOKENS = frozenset({"call", "c", "calls"})
_PUT_TOKENS = frozenset({"put", "p", "puts"})

_MDY_RE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{2}|\d{4})$")
_COMPACT_DATE_RE = re.compile(r"^(\d{4})(\d{2})(\d{2})$")
_MONTH_WORD_RE = re.compile(r"[A-Za-z]{3}")
_LEADING_ALPHA_RE = re.compile(r"\s*([A-Za-z]+)")


def coerce_number(value: object) -> float:
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        number = float(value)
        return number if math.isfinite(number) else 0.0

    text = str(value).strip()
    if text.lower() in _EMPTY_TOKENS:
        return 0.0
    cleaned = _STRIP_RE.sub("", text)
    match = _NUMBER_PREFIX_RE.match(cleaned)
    if match is None:
        return 0.0
    try:
        number = float(match.group(0))
    except ValueError:
        return 0.0
    return number if math.isfinite(number) else 0.0


def coerce_percent(value: object) -> float:
    return coerce_number(value) / 100.0


def coerce_int(value: object) -> int:
    return int(round(coerce_number(value)))


def reset_negatives(values: dict[str, float]) -> tuple[dict[str, float], list[str]]:
    """Zero out negative quantities; returns the cleaned values and the names that were reset."""
    reset = [name for name, value in values.items() if value < 0]
    cleaned = {name: (0.0 if value < 0 else value) for name, value in values.items()}
    return cleaned, reset


def classify_option_type(token: object) -> OptionType | None:
    if token is None:
        return None
    normalized = str(token).strip().lower()
    if not normalized:
        return None
    if normalized in _CALL_TOKENS:
        return "call"
    if normalized in _PUT_TOKENS:
        return "put"

    has_call_letter = "c" in normalized
    has_put_letter = "p" in normalized
    if has_call_letter and not has_put_letter:
        return "call"
    if has_put_letter and not has_call_letter:
        return "put"
    return None


def coerce_expiry(value: object) -> str | None:
    """Normalize an expiry cell to ``YYYY-MM-DD`` or return ``None``."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()

    text = str(value).strip().strip("\"'")
    if not text:
        return None
    for parser in (_parse_iso, _parse_month_day_year, _parse_compact, _parse_freeform):
        parsed = parser(text)
        if parsed is not None:
            return parsed.isoformat()
    return None


def leading_alpha(text: str) -> str:
    match = _LEADING_ALPHA_RE.match(text or "")
    if match is None:
        return (text or "").strip().upper()
    return match.group(1).upper()


def _parse_iso(text: str) -> date | None:
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        return None


def _parse_month_day_year(text: str) -> date | None:
    match = _MDY_RE.match(text)
    if match is None:
        return None
    month, day, year = match.groups()
    full_year = int("20" + year) if len(year) == 2 else int(year)
    try:
        return date(full_year, int(month), int(day))
    except ValueError:
        return None


def _parse_compact(text: str) -> date | None:
    match = _COMPACT_DATE_RE.match(text)
    if match is None:
        return None
    year, month, day = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError:
        return None


def _parse_freeform(text: str) -> date | None:
    # Only month-name forms ("Dec 19, 2025", "19-Dec-2025"); bare numbers are too ambiguous.
    if _MONTH_WORD_RE.search(text) is None:
        return None
    try:
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            parsed = pd.to_datetime(text, errors="coerce")
    except (ValueError, TypeError, OverflowError):
        return None
    if parsed is None or pd.isna(parsed):
        return None
    return parsed.date()


__all__ = [
    "classify_option_type",
    "coerce_expiry",
    "coerce_int",
    "coerce_number",
    "coerce_percent",
    "leading_alpha",
    "reset_negatives",
]
