"""Header/row CSV exports with arbitrarily named columns."""

from __future__ import annotations

import csv
from dataclasses import dataclass
from datetime import date
import io
import logging

from gamma_analytics.contracts import build_contract_symbol, infer_side_from_symbol, parse_contract_symbol
from gamma_analytics.ingestion.coerce import (
    classify_option_type,
    coerce_expiry,
    coerce_int,
    coerce_number,
    coerce_percent,
    leading_alpha,
    reset_negatives,
)
from gamma_analytics.ingestion.columns import detect_column_mapping, missing_required_columns
from gamma_analytics.models import ColumnMapping, OptionRecord, OptionType, ParseOutcome

logger = logging.getLogger(__name__)

FALLBACK_UNDERLYING = "SPX"
ATM_DELTA = 0.5
ATM_DELTA_TOLERANCE = 0.1


@dataclass(frozen=True)
class _RawTable:
    headers: list[str]
    rows: list[list[str]]
    shape_errors: list[str]


def _read_table(content: str) -> _RawTable:
    reader = csv.reader(io.StringIO(content))
    headers: list[str] | None = None
    rows: list[list[str]] = []
    shape_errors: list[str] = []
    for raw in reader:
        if not raw or all(not cell.strip() for cell in raw):
            continue
        if headers is None:
            headers = [cell.strip() for cell in raw]
            continue
        display_row = len(rows) + 2
        if len(raw) != len(headers):
            qualifier = "few" if len(raw) < len(headers) else "many"
            shape_errors.append(
                f"Row {display_row}: Too {qualifier} fields: expected {len(headers)} fields but parsed {len(raw)}"
            )
        if len(raw) < len(headers):
            raw = raw + [""] * (len(headers) - len(raw))
        rows.append(raw)
    return _RawTable(headers=headers or [], rows=rows, shape_errors=shape_errors)


class _RowReader:
    """Reads canonical fields out of one row through a resolved ColumnMapping."""

    def __init__(self, headers: list[str], mapping: ColumnMapping) -> None:
        index = {header: idx for idx, header in enumerate(headers)}
        self._positions: dict[str, int] = {}
        for field, header in mapping.model_dump(exclude_none=True).items():
            if header in index:
                self._positions[field] = index[header]

    def has(self, field: str) -> bool:
        return field in self._positions

    def text(self, row: list[str], field: str) -> str:
        pos = self._positions.get(field)
        if pos is None or pos >= len(row):
            return ""
        return row[pos].strip()


def parse_generic_csv(
    content: str,
    mapping: ColumnMapping | None = None,
    *,
    today: date | None = None,
) -> ParseOutcome:
    table = _read_table(content)
    errors: list[str] = list(table.shape_errors)
    warnings: list[str] = []

    if not table.rows:
        errors.append("No data found in CSV file")
        return ParseOutcome.failure(errors, warnings=warnings, row_count=0)

    resolved = mapping if mapping is not None else detect_column_mapping(table.headers)
    if mapping is not None:
        unknown = [header for header in resolved.resolved().values() if header not in table.headers]
        if unknown:
            errors.append(f"Mapped columns not found in CSV header: {', '.join(unknown)}")
            return ParseOutcome.failure(errors, warnings=warnings, row_count=len(table.rows), mapping=resolved)
    missing = missing_required_columns(resolved)
    if missing:
        errors.append(f"Missing required columns: {', '.join(missing)}")
        return ParseOutcome.failure(errors, warnings=warnings, row_count=len(table.rows), mapping=resolved)

    logger.info("Detected column mapping: %s", resolved.resolved())
    reader = _RowReader(table.headers, resolved)
    fallback_expiry = (today or date.today()).isoformat()

    if not reader.has("option_type") and not reader.has("symbol"):
        warnings.append("No option type or symbol column detected; defaulting all rows to call")
    if not reader.has("expiry") and not reader.has("symbol"):
        warnings.append(f"No expiry column detected; using {fallback_expiry}")

    records: list[OptionRecord] = []
    for index, row in enumerate(table.rows):
        display_row = index + 2
        try:
            record = _parse_row(
                row,
                index=index,
                display_row=display_row,
                reader=reader,
                fallback_expiry=fallback_expiry,
                warnings=warnings,
            )
        except Exception as exc:  # noqa: BLE001 - row defects never abort the file
            errors.append(f"Row {display_row}: Failed to parse - {exc}")
            continue
        if record is not None:
            records.append(record)

    records = _impute_underlying_price(records, warnings=warnings)
    valid_row_count = len(records)
    return ParseOutcome(
        success=not errors or valid_row_count > 0,
        data=records,
        errors=errors,
        warnings=warnings,
        row_count=len(table.rows),
        valid_row_count=valid_row_count,
        source_format="generic",
        mapping=resolved,
    )


def _parse_row(
    row: list[str],
    *,
    index: int,
    display_row: int,
    reader: _RowReader,
    fallback_expiry: str,
    warnings: list[str],
) -> OptionRecord | None:
    strike = coerce_number(reader.text(row, "strike"))
    gamma = coerce_number(reader.text(row, "gamma"))
    open_interest = coerce_int(reader.text(row, "open_interest"))
    if strike <= 0 or open_interest <= 0:
        return None

    symbol = reader.text(row, "symbol")
    parsed_symbol = parse_contract_symbol(symbol) if symbol else None

    option_type = _resolve_option_type(row, reader, symbol, display_row=display_row, warnings=warnings)

    expiry_text = reader.text(row, "expiry")
    expiry: str
    if expiry_text:
        parsed_expiry = coerce_expiry(expiry_text)
        if parsed_expiry is None:
            warnings.append(f"Row {display_row}: Could not parse expiry date")
            expiry = fallback_expiry
        else:
            expiry = parsed_expiry
    elif parsed_symbol is not None:
        expiry = parsed_symbol.expiry
    else:
        if reader.has("expiry") or reader.has("symbol"):
            warnings.append(f"Row {display_row}: Missing expiry date, using {fallback_expiry}")
        expiry = fallback_expiry

    underlying = reader.text(row, "underlying").upper()
    if not underlying:
        underlying = leading_alpha(symbol) if symbol else FALLBACK_UNDERLYING

    if not symbol:
        symbol = build_contract_symbol(underlying, expiry, option_type, strike)

    quantities, reset = reset_negatives(
        {name: coerce_number(reader.text(row, name)) for name in ("volume", "bid", "ask", "last", "underlying_price")}
    )
    if reset:
        warnings.append(f"Row {display_row}: Negative {', '.join(reset)} reset to 0")

    iv_text = reader.text(row, "iv")
    implied_volatility = coerce_percent(iv_text) if "%" in iv_text else coerce_number(iv_text)

    return OptionRecord(
        id=f"{symbol}_{expiry}_{strike:g}_{option_type}_{index}",
        symbol=symbol,
        underlying=underlying,
        expiry=expiry,
        strike=strike,
        option_type=option_type,
        volume=int(round(quantities["volume"])),
        open_interest=open_interest,
        delta=coerce_number(reader.text(row, "delta")),
        gamma=gamma,
        theta=coerce_number(reader.text(row, "theta")),
        vega=coerce_number(reader.text(row, "vega")),
        implied_volatility=implied_volatility,
        bid=quantities["bid"],
        ask=quantities["ask"],
        last=quantities["last"],
        underlying_price=quantities["underlying_price"],
    )


def _resolve_option_type(
    row: list[str],
    reader: _RowReader,
    symbol: str,
    *,
    display_row: int,
    warnings: list[str],
) -> OptionType:
    type_text = reader.text(row, "option_type")
    if type_text:
        parsed = classify_option_type(type_text)
    elif symbol:
        parsed = infer_side_from_symbol(symbol)
    else:
        # Nothing to classify; the file-level warning already covers unmapped columns.
        if reader.has("option_type") or reader.has("symbol"):
            warnings.append(f"Row {display_row}: Could not determine option type, defaulting to call")
        return "call"

    if parsed is None:
        warnings.append(f"Row {display_row}: Could not determine option type, defaulting to call")
        return "call"
    return parsed


def estimate_underlying_price(records: list[OptionRecord]) -> float | None:
    """Open-interest-weighted mean strike of near-the-money calls."""
    weighted = 0.0
    total_oi = 0
    for record in records:
        if record.option_type != "call":
            continue
        if abs(record.delta - ATM_DELTA) >= ATM_DELTA_TOLERANCE:
            continue
        weighted += record.strike * record.open_interest
        total_oi += record.open_interest
    if total_oi <= 0:
        return None
    return weighted / total_oi


def _impute_underlying_price(records: list[OptionRecord], *, warnings: list[str]) -> list[OptionRecord]:
    if not records or any(record.underlying_price > 0 for record in records):
        return records
    estimate = estimate_underlying_price(records)
    if estimate is None:
        return records
    logger.info("Estimated underlying price from ATM options: %.2f", estimate)
    warnings.append(f"Estimated underlying price from ATM options: {estimate:.2f}")
    return [record.model_copy(update={"underlying_price": estimate}) for record in records]


__all__ = ["FALLBACK_UNDERLYING", "estimate_underlying_price", "parse_generic_csv"]
