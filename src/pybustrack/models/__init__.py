"""Data models for stops, position reports and query results."""

from pybustrack.models._base import TrackerBaseModel
from pybustrack.models.position import PositionReport
from pybustrack.models.results import CellCount, NearestStop, NextStopInfo, PathResult
from pybustrack.models.status import LivenessStatus
from pybustrack.models.stop import Stop

__all__ = [
    "CellCount",
    "LivenessStatus",
    "NearestStop",
    "NextStopInfo",
    "PathResult",
    "PositionReport",
    "Stop",
    "TrackerBaseModel",
]
