from __future__ import annotations

from collections.abc import Sequence
from datetime import date

from gamma_analytics.analysis.gamma import (
    aggregate_gamma_by_expiry,
    aggregate_gamma_by_strike,
    calculate_dashboard_summary,
    calculate_gamma_exposure_curve,
    identify_key_levels,
    top_gamma_expiries,
    top_gamma_strikes,
)
from gamma_analytics.models import OptionRecord, SourceFormat
from gamma_analytics.schemas.common import utc_now
from gamma_analytics.schemas.gamma import GammaReportArtifact
from gamma_analytics.settings import DEFAULT_SETTINGS, UserSettings


def build_gamma_report(
    records: Sequence[OptionRecord],
    *,
    source_format: SourceFormat = "generic",
    settings: UserSettings = DEFAULT_SETTINGS,
    warnings: Sequence[str] = (),
    today: date | None = None,
) -> GammaReportArtifact:
    strikes = aggregate_gamma_by_strike(records)
    expiries = aggregate_gamma_by_expiry(records, today=today)
    summary = calculate_dashboard_summary(records)
    return GammaReportArtifact(
        generated_at=utc_now(),
        symbol=summary.symbol,
        spot=summary.spot_price,
        source_format=source_format,
        summary=summary,
        strikes=strikes,
        expiries=expiries,
        key_levels=identify_key_levels(strikes, settings.top_levels_count),
        top_strikes=top_gamma_strikes(strikes, settings.top_levels_count),
        top_expiries=top_gamma_expiries(expiries, settings.top_expiries_count),
        exposure_curve=calculate_gamma_exposure_curve(
            records,
            summary.spot_price,
            range_percent=settings.exposure_range_percent,
            steps=settings.exposure_steps,
        ),
        warnings=list(warnings),
    )
