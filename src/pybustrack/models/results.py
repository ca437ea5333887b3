"""Query result models."""

from __future__ import annotations

import math

from pydantic import Field

from pybustrack.models._base import TrackerBaseModel
from pybustrack.models.stop import Stop


class NearestStop(TrackerBaseModel):
    """Closest stop to a query coordinate."""

    stop: Stop
    distance_m: float


class NextStopInfo(TrackerBaseModel):
    """Route distance from a stop to the following one in sequence."""

    stop: Stop
    next_stop: Stop
    distance_m: float


class CellCount(TrackerBaseModel):
    """Visit count for one coverage grid cell."""

    row: int
    col: int
    count: int = Field(ge=1)


class PathResult(TrackerBaseModel):
    """Outcome of a shortest-path query.

    An unreachable (or unknown) target is reported as ``distance == inf``
    with an empty ``path``.
    """

    distance: float
    path: list[str] = Field(default_factory=list)

    @property
    def reachable(self) -> bool:
        return not math.isinf(self.distance)

    @classmethod
    def unreachable(cls) -> PathResult:
        return cls(distance=math.inf, path=[])
