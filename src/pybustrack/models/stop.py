"""Stop record model."""

from __future__ import annotations

from pydantic import AliasChoices, Field

from pybustrack.models._base import FiniteCoordinate, Identifier, TrackerBaseModel


class Stop(TrackerBaseModel):
    """A fixed point served in a known sequence order.

    Parameters
    ----------
    id : str
        Stop identifier; used as the route graph node id.
    name : str
        Human-readable stop name.
    lat : float
        Latitude in degrees.
    lon : float
        Longitude in degrees.
    seq : int
        Position of the stop along the route (ascending).
    active : bool
        Inactive stops are dropped at ingestion.
    """

    id: Identifier
    name: str = ""
    lat: FiniteCoordinate = Field(validation_alias=AliasChoices("lat", "latitude"))
    lon: FiniteCoordinate = Field(validation_alias=AliasChoices("lon", "lng", "longitude"))
    seq: int = Field(default=0, validation_alias=AliasChoices("seq", "sequenceIndex", "sequence_index"))
    active: bool = True
