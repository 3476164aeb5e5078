from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import Field

from gamma_analytics.schemas.common import ArtifactBase

KeyLevelType = Literal["positive", "negative", "flip"]


class StrikeBucket(ArtifactBase):
    strike: float
    call_gamma: float = 0.0
    # Put exposure is stored as a negative number.
    put_gamma: float = 0.0
    net_gamma: float = 0.0
    total_gamma: float = 0.0
    call_oi: int = 0
    put_oi: int = 0


class ExpiryBucket(ArtifactBase):
    expiry: str
    days_to_expiry: int = Field(default=0, ge=0)
    call_gamma: float = 0.0
    put_gamma: float = 0.0
    net_gamma: float = 0.0
    total_gamma: float = 0.0
    call_oi: int = 0
    put_oi: int = 0


class KeyLevel(ArtifactBase):
    strike: float
    net_gamma: float
    total_oi: int
    type: KeyLevelType
    description: str


class GammaExposurePoint(ArtifactBase):
    spot_price: float
    gex: float
    call_gex: float
    put_gex: float


class DashboardSummary(ArtifactBase):
    symbol: str = ""
    spot_price: float = 0.0
    total_gamma: float = 0.0
    total_net_gamma: float = 0.0
    top_positive_strike: float | None = None
    top_negative_strike: float | None = None
    gamma_flip_level: float | None = None
    call_gamma_total: float = 0.0
    put_gamma_total: float = 0.0
    total_open_interest: int = 0
    unique_strikes: int = 0
    unique_expiries: int = 0


class GammaReportArtifact(ArtifactBase):
    schema_version: int = 1
    generated_at: datetime
    symbol: str
    spot: float
    source_format: Literal["generic", "sectioned"]
    disclaimer: str = "Not financial advice."
    summary: DashboardSummary
    strikes: list[StrikeBucket] = Field(default_factory=list)
    expiries: list[ExpiryBucket] = Field(default_factory=list)
    key_levels: list[KeyLevel] = Field(default_factory=list)
    top_strikes: list[StrikeBucket] = Field(default_factory=list)
    top_expiries: list[ExpiryBucket] = Field(default_factory=list)
    exposure_curve: list[GammaExposurePoint] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
