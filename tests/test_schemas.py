from __future__ import annotations

from datetime import timezone

import pytest
from pydantic import ValidationError

from gamma_analytics.schemas.common import ArtifactBase, utc_now


class _Point(ArtifactBase):
    price: float
    values: list[float] = []


def test_to_dict_replaces_non_finite_floats() -> None:
    payload = _Point(price=float("nan"), values=[1.0, float("inf")]).to_dict()
    assert payload == {"price": None, "values": [1.0, None]}


def test_from_dict_rejects_unknown_fields() -> None:
    assert _Point.from_dict({"price": 2.5}).price == 2.5
    with pytest.raises(ValidationError):
        _Point.from_dict({"price": 2.5, "extra": 1})


def test_utc_now_is_timezone_aware() -> None:
    assert utc_now().tzinfo == timezone.utc
