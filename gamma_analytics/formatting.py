from __future__ import annotations

from datetime import date


def format_number(value: float, decimals: int = 2) -> str:
    abs_value = abs(value)
    sign = "-" if value < 0 else ""
    if abs_value >= 1e9:
        return f"{sign}{abs_value / 1e9:.{decimals}f}B"
    if abs_value >= 1e6:
        return f"{sign}{abs_value / 1e6:.{decimals}f}M"
    if abs_value >= 1e3:
        return f"{sign}{abs_value / 1e3:.{decimals}f}K"
    return f"{sign}{abs_value:.{decimals}f}"


def format_currency(value: float | None) -> str:
    if value is None:
        return "N/A"
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.0f}"


def format_strike(value: float | None) -> str:
    if value is None:
        return "N/A"
    return f"{value:,.2f}".rstrip("0").rstrip(".")


def format_expiry_short(value: str) -> str:
    try:
        parsed = date.fromisoformat(value)
    except ValueError:
        return value
    return f"{parsed.strftime('%b')} {parsed.day}"
