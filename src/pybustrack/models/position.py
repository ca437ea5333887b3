"""Position report model."""

from __future__ import annotations

from pydantic import AliasChoices, Field, field_validator

from pybustrack.models._base import AwareDatetime, FiniteCoordinate, Identifier, TrackerBaseModel, utcnow


class PositionReport(TrackerBaseModel):
    """A single position report for a tracked vehicle, stamped on arrival."""

    entity_id: Identifier = Field(validation_alias=AliasChoices("entity_id", "entityId", "bus_id", "busId"))
    lat: FiniteCoordinate = Field(validation_alias=AliasChoices("lat", "latitude"))
    lon: FiniteCoordinate = Field(validation_alias=AliasChoices("lon", "lng", "longitude"))
    received_at: AwareDatetime = Field(default_factory=utcnow)

    @field_validator("entity_id")
    @classmethod
    def _normalize_entity_id(cls, value: str) -> str:
        entity_id = value.strip()
        if not entity_id:
            raise ValueError("entity_id must be non-empty")
        return entity_id
