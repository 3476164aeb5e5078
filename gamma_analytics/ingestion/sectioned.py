"""Sectioned broker exports (thinkorswim-style option chain dumps).

Layout::

    Stock quote and option quote for SPX on 12/5/25 16:15:00
    UNDERLYING
    LAST,LX,Net Chng,BID,BX,ASK,AX,Size,Volume,Open,High,Low
    6870.40, ,0,6842.61, ,6898.63, ,<empty>,<empty>,0,0,0

    8 DEC 25  (2)  100 (Weeklys)
    ,,Delta,Gamma,Theta,Vega,Open.Int,Volume,Impl Vol,LAST,BID,BX,ASK,AX,Exp,Strike,BID,BX,ASK,AX,...
    <call leg columns>, <strike>, <put leg columns>

Each data row carries both legs of one strike; columns are positional.
"""

from __future__ import annotations

import csv
from dataclasses import dataclass
from datetime import date
import logging
import re

from gamma_analytics.contracts import build_contract_symbol
from gamma_analytics.ingestion.coerce import coerce_int, coerce_number, coerce_percent, reset_negatives
from gamma_analytics.models import OptionRecord, OptionType, ParseOutcome

logger = logging.getLogger(__name__)

DEFAULT_UNDERLYING = "SPX"
DETECTION_SCAN_LINES = 200
PRICE_SCAN_LINES = 20
REFERENCE_PRICE_RANGE = (100.0, 100_000.0)
MIN_ROW_FIELDS = 28
STRIKE_COLUMN = 15

_MONTHS = {
    "JAN": 1,
    "FEB": 2,
    "MAR": 3,
    "APR": 4,
    "MAY": 5,
    "JUN": 6,
    "JUL": 7,
    "AUG": 8,
    "SEP": 9,
    "OCT": 10,
    "NOV": 11,
    "DEC": 12,
}
_SECTION_RE = re.compile(r"^\s*(\d{1,2})\s+(" + "|".join(_MONTHS) + r")\s+(\d{2})\s+\(\d+\)")
_TITLE_SYMBOL_RE = re.compile(r"\bfor\s+\$?([A-Z][A-Z0-9./\-]*)\s+on\b")
_NON_PRICE_RE = re.compile(r"[^\d.]")


@dataclass(frozen=True)
class LegColumns:
    delta: int
    gamma: int
    theta: int
    vega: int
    open_interest: int
    volume: int
    iv: int
    last: int
    bid: int
    ask: int


CALL_COLUMNS = LegColumns(delta=2, gamma=3, theta=4, vega=5, open_interest=6, volume=7, iv=8, last=9, bid=10, ask=12)
PUT_COLUMNS = LegColumns(
    delta=20, gamma=21, theta=22, vega=23, open_interest=24, volume=25, iv=26, last=27, bid=16, ask=18
)


def is_sectioned_format(content: str, *, scan_lines: int = DETECTION_SCAN_LINES) -> bool:
    for line in content.splitlines()[:scan_lines]:
        if _SECTION_RE.match(line):
            return True
    return False


def detect_underlying_symbol(lines: list[str], *, default: str = DEFAULT_UNDERLYING) -> str:
    for line in lines[:PRICE_SCAN_LINES]:
        match = _TITLE_SYMBOL_RE.search(line)
        if match:
            return match.group(1).upper()
    return default


def detect_reference_price(
    lines: list[str],
    *,
    price_range: tuple[float, float] = REFERENCE_PRICE_RANGE,
) -> float:
    low, high = price_range
    for idx, line in enumerate(lines[:PRICE_SCAN_LINES]):
        if not ("LAST" in line and "BID" in line and "ASK" in line):
            continue
        if idx + 1 >= len(lines):
            break
        fields = _split_row(lines[idx + 1])
        if not fields:
            continue
        try:
            price = float(_NON_PRICE_RE.sub("", fields[0]))
        except ValueError:
            continue
        if low < price < high:
            return price
    return 0.0


def parse_sectioned_csv(
    content: str,
    *,
    price_range: tuple[float, float] = REFERENCE_PRICE_RANGE,
) -> ParseOutcome:
    errors: list[str] = []
    warnings: list[str] = []
    records: list[OptionRecord] = []

    lines = content.splitlines()
    underlying = detect_underlying_symbol(lines)
    underlying_price = detect_reference_price(lines, price_range=price_range)

    current_expiry: str | None = None
    row_index = 0
    for line_no, line in enumerate(lines, start=1):
        section = _SECTION_RE.match(line)
        if section:
            current_expiry = _section_expiry(*section.groups())
            if current_expiry is None:
                warnings.append(f"Row {line_no}: Skipped section with invalid expiry date")
            continue

        if current_expiry is None or not line.strip() or "Delta,Gamma" in line or "UNDERLYING" in line:
            continue

        try:
            fields = _split_row(line)
            if len(fields) < MIN_ROW_FIELDS:
                logger.debug("Skipping short row %s (%s fields)", line_no, len(fields))
                continue
            strike = _parse_strike(fields[STRIKE_COLUMN])
            if strike is None:
                continue

            for option_type, columns in (("call", CALL_COLUMNS), ("put", PUT_COLUMNS)):
                record = _build_leg(
                    fields,
                    columns,
                    option_type=option_type,
                    underlying=underlying,
                    expiry=current_expiry,
                    strike=strike,
                    row_index=row_index,
                    underlying_price=underlying_price,
                    line_no=line_no,
                    warnings=warnings,
                )
                if record is not None:
                    records.append(record)
            row_index += 1
        except Exception as exc:  # noqa: BLE001 - row defects never abort the file
            errors.append(f"Row {line_no}: Failed to parse - {exc}")

    if not records:
        errors.append("No valid option data found in sectioned broker export")
    else:
        warnings.append(f"Parsed {len(records)} options from sectioned broker export")
        if underlying_price > 0:
            warnings.append(f"Detected underlying price: {underlying_price:.2f}")

    return ParseOutcome(
        success=bool(records),
        data=records,
        errors=errors,
        warnings=warnings,
        row_count=row_index,
        valid_row_count=len(records),
        source_format="sectioned",
    )


def _split_row(line: str) -> list[str]:
    try:
        fields = next(csv.reader([line]))
    except StopIteration:
        return []
    return [field.strip().replace('"', "") for field in fields]


def _section_expiry(day: str, month: str, year: str) -> str | None:
    try:
        return date(2000 + int(year), _MONTHS[month], int(day)).isoformat()
    except (KeyError, ValueError):
        return None


def _parse_strike(raw: str) -> float | None:
    cleaned = _NON_PRICE_RE.sub("", raw or "")
    try:
        strike = float(cleaned)
    except ValueError:
        return None
    if strike <= 0:
        return None
    return strike


def _build_leg(
    fields: list[str],
    columns: LegColumns,
    *,
    option_type: OptionType,
    underlying: str,
    expiry: str,
    strike: float,
    row_index: int,
    underlying_price: float,
    line_no: int,
    warnings: list[str],
) -> OptionRecord | None:
    open_interest = coerce_int(fields[columns.open_interest])
    if open_interest <= 0:
        return None
    quantities, reset = reset_negatives(
        {
            "volume": coerce_number(fields[columns.volume]),
            "bid": coerce_number(fields[columns.bid]),
            "ask": coerce_number(fields[columns.ask]),
            "last": coerce_number(fields[columns.last]),
        }
    )
    if reset:
        warnings.append(f"Row {line_no}: Negative {option_type} {', '.join(reset)} reset to 0")
    return OptionRecord(
        id=f"{underlying}_{expiry}_{strike:g}_{option_type}_{row_index}",
        symbol=build_contract_symbol(underlying, expiry, option_type, strike),
        underlying=underlying,
        expiry=expiry,
        strike=strike,
        option_type=option_type,
        volume=int(round(quantities["volume"])),
        open_interest=open_interest,
        delta=coerce_number(fields[columns.delta]),
        gamma=coerce_number(fields[columns.gamma]),
        theta=coerce_number(fields[columns.theta]),
        vega=coerce_number(fields[columns.vega]),
        implied_volatility=coerce_percent(fields[columns.iv]),
        bid=quantities["bid"],
        ask=quantities["ask"],
        last=quantities["last"],
        underlying_price=underlying_price,
    )


__all__ = [
    "CALL_COLUMNS",
    "DEFAULT_UNDERLYING",
    "PUT_COLUMNS",
    "LegColumns",
    "detect_reference_price",
    "detect_underlying_symbol",
    "is_sectioned_format",
    "parse_sectioned_csv",
]
