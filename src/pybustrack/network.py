"""Stop network: spatial index, route graph and nearest-stop resolution.

A :class:`StopNetwork` is built once from an ordered stop list. Each stop
is inserted into a :class:`~pybustrack.spatial.QuadTree` for proximity
lookups, and consecutive stops are chained in a
:class:`~pybustrack.graph.RouteGraph` weighted by haversine distance.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from pybustrack.geo import haversine_m
from pybustrack.graph import RouteGraph
from pybustrack.models.results import NearestStop, NextStopInfo, PathResult
from pybustrack.models.stop import Stop
from pybustrack.spatial import Point, QuadTree, Region

_logger = logging.getLogger(__name__)


class NearestStopResolver:
    """Closest stop to a coordinate.

    The index is queried with a square window of ``half_extent`` degrees
    around the coordinate. When the window holds no stop, every stop is
    scanned instead, so a result is returned whenever any stop exists.
    """

    def __init__(self, index: QuadTree[Stop], stops: Sequence[Stop], *, half_extent: float) -> None:
        self._index = index
        self._stops = stops
        self._half_extent = half_extent

    def candidates(self, lat: float, lon: float) -> list[Stop]:
        found = self._index.query(Region.around(lat, lon, self._half_extent))
        if found:
            return [point.payload for point in found]
        _logger.debug("No indexed stop near lat=%s lon=%s, scanning all %d stops", lat, lon, len(self._stops))
        return list(self._stops)

    def nearest(self, lat: float, lon: float) -> NearestStop | None:
        best: Stop | None = None
        best_distance = float("inf")
        for stop in self.candidates(lat, lon):
            distance = haversine_m(lat, lon, stop.lat, stop.lon)
            if distance < best_distance:
                best, best_distance = stop, distance
        if best is None:
            return None
        return NearestStop(stop=best, distance_m=best_distance)


class StopNetwork:
    """Indexed, routable view over an ordered stop list."""

    def __init__(
        self,
        stops: Sequence[Stop],
        *,
        boundary: Region,
        capacity: int = 4,
        nearest_half_extent: float = 0.01,
    ) -> None:
        self._stops: tuple[Stop, ...] = tuple(stops)
        self._positions: dict[str, int] = {}
        for position, stop in enumerate(self._stops):
            self._positions.setdefault(stop.id, position)

        self._index: QuadTree[Stop] = QuadTree(boundary, capacity)
        for stop in self._stops:
            if not self._index.insert(Point(stop.lat, stop.lon, stop)):
                _logger.warning(
                    "Stop outside index boundary id=%s lat=%s lon=%s; only reachable by full scan",
                    stop.id,
                    stop.lat,
                    stop.lon,
                )

        self._graph = RouteGraph.from_stops(self._stops)
        self._resolver = NearestStopResolver(self._index, self._stops, half_extent=nearest_half_extent)
        _logger.info("Stop network loaded stops=%d indexed=%d", len(self._stops), len(self._index))

    @property
    def stops(self) -> tuple[Stop, ...]:
        return self._stops

    @property
    def index(self) -> QuadTree[Stop]:
        return self._index

    @property
    def graph(self) -> RouteGraph:
        return self._graph

    def get(self, stop_id: str) -> Stop | None:
        position = self._positions.get(stop_id)
        return self._stops[position] if position is not None else None

    def nearest(self, lat: float, lon: float) -> NearestStop | None:
        """Closest stop to ``(lat, lon)``; ``None`` only when there are no stops."""
        return self._resolver.nearest(lat, lon)

    def shortest_path(self, from_id: str, to_id: str) -> PathResult:
        return self._graph.shortest_path(from_id, to_id)

    def next_stop(self, stop_id: str) -> Stop | None:
        position = self._positions.get(stop_id)
        if position is None or position + 1 >= len(self._stops):
            return None
        return self._stops[position + 1]

    def distance_to_next(self, stop_id: str) -> NextStopInfo | None:
        """Route distance to the following stop; ``None`` at the terminal stop."""
        stop = self.get(stop_id)
        following = self.next_stop(stop_id)
        if stop is None or following is None:
            return None
        result = self._graph.shortest_path(stop.id, following.id)
        return NextStopInfo(stop=stop, next_stop=following, distance_m=result.distance)

    def search(self, term: str) -> list[Stop]:
        """Stops whose name contains *term*, case-insensitively."""
        needle = term.strip().casefold()
        if not needle:
            return []
        return [stop for stop in self._stops if needle in stop.name.casefold()]

    def __len__(self) -> int:
        return len(self._stops)
