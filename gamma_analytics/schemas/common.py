from __future__ import annotations

from datetime import datetime, timezone
import math
from typing import Any

from pydantic import BaseModel, ConfigDict


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _finite(value: Any) -> Any:
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, dict):
        return {key: _finite(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_finite(item) for item in value]
    return value


class ArtifactBase(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready payload; non-finite floats become ``None``."""
        return _finite(self.model_dump(mode="json", by_alias=True))

    @classmethod
    def from_dict(cls, payload: dict[str, Any]):  # noqa: ANN206
        return cls.model_validate(payload)
