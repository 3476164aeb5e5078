from __future__ import annotations

from collections.abc import Mapping
from datetime import date
import logging

from gamma_analytics.ingestion.generic import parse_generic_csv
from gamma_analytics.ingestion.sectioned import is_sectioned_format, parse_sectioned_csv
from gamma_analytics.models import ColumnMapping, ParseOutcome

logger = logging.getLogger(__name__)


def parse_csv(
    content: str,
    mapping: ColumnMapping | Mapping[str, str] | None = None,
    *,
    today: date | None = None,
) -> ParseOutcome:
    """Turn raw CSV text into canonical option records.

    The layout is auto-detected: sectioned broker exports win over the generic
    header/row path. ``mapping`` only applies to the generic path and bypasses
    header auto-detection. This function never raises; structural problems
    come back as ``success=False`` with ``errors`` filled in.
    """
    text = (content or "").lstrip("\ufeff")
    try:
        if is_sectioned_format(text):
            logger.info("Detected sectioned broker export")
            return parse_sectioned_csv(text)

        explicit: ColumnMapping | None
        if mapping is None or isinstance(mapping, ColumnMapping):
            explicit = mapping
        else:
            explicit = ColumnMapping.model_validate(dict(mapping))
        return parse_generic_csv(text, explicit, today=today)
    except Exception as exc:  # noqa: BLE001 - ingestion boundary
        logger.exception("CSV ingestion failed")
        return ParseOutcome.failure([f"Failed to parse CSV: {exc}"])


__all__ = ["parse_csv"]
