"""pybustrack - nearest stops, route distances and liveness for a bus fleet."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pybustrack")
except PackageNotFoundError:
    __version__ = "0+local"
from pybustrack.config import TrackerConfig
from pybustrack.coverage import CoverageCounter, SparseCounter, cell_for
from pybustrack.exceptions import (
    BusTrackError,
    CoverageLimitError,
    InvalidCoordinateError,
    TrackerConfigError,
)
from pybustrack.geo import haversine_m
from pybustrack.graph import Edge, RouteGraph
from pybustrack.models import (
    CellCount,
    LivenessStatus,
    NearestStop,
    NextStopInfo,
    PathResult,
    PositionReport,
    Stop,
)
from pybustrack.network import NearestStopResolver, StopNetwork
from pybustrack.spatial import Point, QuadTree, Region
from pybustrack.state import LivenessClassifier, StatusChange
from pybustrack.tracker import FleetTracker

__all__ = [
    "__version__",
    "BusTrackError",
    "CellCount",
    "CoverageCounter",
    "CoverageLimitError",
    "Edge",
    "FleetTracker",
    "InvalidCoordinateError",
    "LivenessClassifier",
    "LivenessStatus",
    "NearestStop",
    "NearestStopResolver",
    "NextStopInfo",
    "PathResult",
    "Point",
    "PositionReport",
    "QuadTree",
    "Region",
    "RouteGraph",
    "SparseCounter",
    "StatusChange",
    "Stop",
    "StopNetwork",
    "TrackerConfig",
    "TrackerConfigError",
    "cell_for",
    "haversine_m",
]
