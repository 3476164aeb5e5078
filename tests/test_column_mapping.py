from __future__ import annotations

import pytest

from gamma_analytics.ingestion.columns import (
    detect_column_mapping,
    find_column,
    missing_required_columns,
    normalize_header,
)
from gamma_analytics.models import ColumnMapping


def test_normalize_header_strips_non_alphanumerics() -> None:
    assert normalize_header(" Open Interest ") == "openinterest"
    assert normalize_header("Impl_Vol%") == "implvol"


@pytest.mark.parametrize("header", ["Open Interest", "open_interest", "OPENINTEREST", "OI"])
def test_open_interest_synonyms_map_to_the_same_field(header: str) -> None:
    mapping = detect_column_mapping(["Strike", "Gamma", header])
    assert mapping.open_interest == header
    assert missing_required_columns(mapping) == []


def test_exact_match_beats_earlier_substring_match() -> None:
    # "Expiration Notes" comes first in the header row, but the exact "Exp" column wins.
    assert find_column(["Expiration Notes", "Exp"], ["exp"]) == "Exp"
    assert find_column(["Expiration Notes"], ["exp"]) == "Expiration Notes"


def test_synonym_order_outranks_header_order() -> None:
    assert find_column(["Vol", "Volume"], ["volume", "vol"]) == "Volume"
    assert find_column(["Open Int", "OI"], ["oi", "open int"]) == "OI"
    # Among substring hits the leftmost header wins.
    assert find_column(["Call Gamma", "Put Gamma"], ["gamma"]) == "Call Gamma"


def test_detect_column_mapping_for_a_typical_export() -> None:
    headers = [
        "Option Symbol",
        "Underlying",
        "Expiration Date",
        "Strike Price",
        "Call/Put",
        "Volume",
        "Open Interest",
        "Delta",
        "Gamma",
        "IV",
        "Bid",
        "Ask",
        "Last",
        "Underlying Price",
    ]
    mapping = detect_column_mapping(headers)
    resolved = mapping.resolved()
    assert resolved["symbol"] == "Option Symbol"
    assert resolved["underlying"] == "Underlying"
    assert resolved["expiry"] == "Expiration Date"
    assert resolved["strike"] == "Strike Price"
    assert resolved["type"] == "Call/Put"
    assert resolved["openInterest"] == "Open Interest"
    assert resolved["gamma"] == "Gamma"
    assert resolved["iv"] == "IV"
    assert resolved["underlyingPrice"] == "Underlying Price"


def test_missing_required_columns_lists_canonical_names() -> None:
    mapping = detect_column_mapping(["Strike", "Type", "OpenInterest"])
    assert missing_required_columns(mapping) == ["gamma"]


def test_column_mapping_accepts_aliases_and_field_names() -> None:
    by_alias = ColumnMapping.model_validate({"type": "Side", "openInterest": "OI"})
    by_name = ColumnMapping(option_type="Side", open_interest="OI")
    assert by_alias == by_name
    assert by_alias.resolved() == {"type": "Side", "openInterest": "OI"}
