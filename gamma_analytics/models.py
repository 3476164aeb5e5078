from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

OptionType = Literal["call", "put"]
SourceFormat = Literal["generic", "sectioned"]


class OptionRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    symbol: str
    underlying: str
    expiry: str
    strike: float = Field(gt=0.0)
    option_type: OptionType
    volume: int = Field(default=0, ge=0)
    open_interest: int = Field(gt=0)

    # Greeks as reported by the broker; sign conventions are not normalized.
    delta: float = 0.0
    gamma: float = 0.0
    theta: float = 0.0
    vega: float = 0.0
    implied_volatility: float = 0.0

    bid: float = Field(default=0.0, ge=0.0)
    ask: float = Field(default=0.0, ge=0.0)
    last: float = Field(default=0.0, ge=0.0)
    # 0.0 means unknown.
    underlying_price: float = Field(default=0.0, ge=0.0)


class ColumnMapping(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    symbol: str | None = None
    underlying: str | None = None
    expiry: str | None = None
    strike: str | None = None
    option_type: str | None = Field(default=None, alias="type")
    volume: str | None = None
    open_interest: str | None = Field(default=None, alias="openInterest")
    delta: str | None = None
    gamma: str | None = None
    theta: str | None = None
    vega: str | None = None
    iv: str | None = None
    bid: str | None = None
    ask: str | None = None
    last: str | None = None
    underlying_price: str | None = Field(default=None, alias="underlyingPrice")

    def resolved(self) -> dict[str, str]:
        """Canonical field name -> header, for the fields that were found."""
        return self.model_dump(by_alias=True, exclude_none=True)


class ParseOutcome(BaseModel):
    success: bool
    data: list[OptionRecord] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    row_count: int = 0
    valid_row_count: int = 0
    source_format: SourceFormat = "generic"
    mapping: ColumnMapping | None = None

    @classmethod
    def failure(
        cls,
        errors: list[str],
        *,
        warnings: list[str] | None = None,
        row_count: int = 0,
        source_format: SourceFormat = "generic",
        mapping: ColumnMapping | None = None,
    ) -> "ParseOutcome":
        return cls(
            success=False,
            data=[],
            errors=list(errors),
            warnings=list(warnings or []),
            row_count=row_count,
            valid_row_count=0,
            source_format=source_format,
            mapping=mapping,
        )
