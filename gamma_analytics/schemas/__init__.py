from __future__ import annotations

from gamma_analytics.schemas.common import ArtifactBase, utc_now
from gamma_analytics.schemas.gamma import (
    DashboardSummary,
    ExpiryBucket,
    GammaExposurePoint,
    GammaReportArtifact,
    KeyLevel,
    KeyLevelType,
    StrikeBucket,
)

__all__ = [
    "ArtifactBase",
    "DashboardSummary",
    "ExpiryBucket",
    "GammaExposurePoint",
    "GammaReportArtifact",
    "KeyLevel",
    "KeyLevelType",
    "StrikeBucket",
    "utc_now",
]
