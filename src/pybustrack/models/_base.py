"""Base model and coercion helpers shared by pybustrack models.

Every model inherits from :class:`TrackerBaseModel` which provides:

* ``alias_generator=to_camel`` so camelCase keys coming from the
  persistence layer map automatically to snake_case fields.
* Frozen instances, so records handed to the index and graph can never
  change after they are inserted.
"""

from __future__ import annotations

import math
from datetime import UTC, datetime
from typing import Annotated, Any

from pydantic import AfterValidator, BaseModel, BeforeValidator, ConfigDict
from pydantic.alias_generators import to_camel


def _finite(value: float) -> float:
    if not math.isfinite(value):
        raise ValueError(f"coordinate must be finite, got {value}")
    return value


def _as_str(value: Any) -> Any:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


def ensure_tz_aware(value: datetime) -> datetime:
    """Return *value*, assuming UTC when it carries no tzinfo."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


FiniteCoordinate = Annotated[float, AfterValidator(_finite)]
"""A latitude or longitude that rejects NaN and infinities."""

Identifier = Annotated[str, BeforeValidator(_as_str)]
"""A string identifier that also accepts integer keys from the database."""

AwareDatetime = Annotated[datetime, AfterValidator(ensure_tz_aware)]
"""A datetime assumed to be UTC when it carries no tzinfo."""


def utcnow() -> datetime:
    return datetime.now(UTC)


class TrackerBaseModel(BaseModel):
    """Base for pybustrack data models."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )
