"""Status change notifications emitted by the liveness classifier."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from pybustrack.models._base import AwareDatetime
from pybustrack.models.status import LivenessStatus


class StatusChange(BaseModel):
    """A vehicle moved from ``previous`` to ``current`` status."""

    model_config = ConfigDict(frozen=True)

    entity_id: str = Field(..., description="Tracked vehicle id")
    previous: LivenessStatus
    current: LivenessStatus
    changed_at: AwareDatetime
    expired: bool = Field(default=False, description="True when caused by the inactivity timeout")

    @field_validator("entity_id")
    @classmethod
    def _normalize_entity_id(cls, value: str) -> str:
        entity_id = value.strip()
        if not entity_id:
            raise ValueError("entity_id must be non-empty")
        return entity_id
