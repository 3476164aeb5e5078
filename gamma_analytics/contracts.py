from __future__ import annotations

from dataclasses import dataclass
from datetime import date
import re

from gamma_analytics.ingestion.coerce import classify_option_type
from gamma_analytics.models import OptionType

# {root}{YYMMDD|YYYYMMDD}{C|P}{strike digits}
_CONTRACT_RE = re.compile(r"^([A-Z.\-]*?)(\d{8}|\d{6})([CP])(\d+(?:\.\d+)?)$")


def normalize_underlying(symbol: str | None) -> str:
    if symbol is None:
        return ""
    return str(symbol).strip().upper()


@dataclass(frozen=True)
class ParsedContract:
    underlying: str
    expiry: str
    option_type: OptionType
    strike: float | None
    raw: str


def _parse_contract_date(value: str) -> date:
    if len(value) == 8:
        return date(int(value[0:4]), int(value[4:6]), int(value[6:8]))
    if len(value) == 6:
        return date(2000 + int(value[0:2]), int(value[2:4]), int(value[4:6]))
    raise ValueError("invalid contract date")


def parse_contract_symbol(raw: str | None) -> ParsedContract | None:
    """Parse OSI-style symbols, including the 8-digit-date variant this package emits.

    The strike is only decoded for the 8-digit (thousandths) encoding; shorter
    strike tails are ambiguous and come back as ``None``.
    """
    if raw is None:
        return None
    s = str(raw).strip().upper().replace(" ", "")
    match = _CONTRACT_RE.match(s)
    if match is None:
        return None
    root, date_part, option_part, strike_part = match.groups()
    try:
        expiry = _parse_contract_date(date_part)
    except ValueError:
        return None
    strike = int(strike_part) / 1000.0 if len(strike_part) == 8 and strike_part.isdigit() else None
    option_type: OptionType = "call" if option_part == "C" else "put"
    return ParsedContract(
        underlying=root,
        expiry=expiry.isoformat(),
        option_type=option_type,
        strike=strike,
        raw=s,
    )


def infer_side_from_symbol(symbol: str | None) -> OptionType | None:
    if not symbol:
        return None
    parsed = parse_contract_symbol(symbol)
    if parsed is not None:
        return parsed.option_type
    return classify_option_type(symbol)


def build_contract_symbol(underlying: str, expiry: str, option_type: OptionType, strike: float) -> str:
    root = normalize_underlying(underlying)
    date_part = str(expiry).replace("-", "")
    option_part = "C" if option_type == "call" else "P"
    strike_int = int(round(float(strike) * 1000))
    return f"{root}{date_part}{option_part}{strike_int:08d}"


__all__ = [
    "ParsedContract",
    "build_contract_symbol",
    "infer_side_from_symbol",
    "normalize_underlying",
    "parse_contract_symbol",
]
