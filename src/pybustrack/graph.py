"""Weighted directed route graph with single-source shortest paths."""

from __future__ import annotations

import heapq
import logging
import math
import threading
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass

from pybustrack.geo import haversine_m
from pybustrack.models.results import PathResult
from pybustrack.models.stop import Stop

_logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Edge:
    """A directed connection to ``target`` costing ``weight`` (meters)."""

    target: str
    weight: float


class RouteGraph:
    """Adjacency-list graph keyed by stop id.

    Edges are directed and never deduplicated; nodes are created lazily by
    :meth:`add_connection`. Mutations are serialized by an internal lock,
    :meth:`shortest_path` only reads.
    """

    def __init__(self) -> None:
        self._adjacency: dict[str, list[Edge]] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_stops(cls, stops: Sequence[Stop]) -> RouteGraph:
        """Chain *stops* (already in sequence order) with haversine-weighted edges."""
        graph = cls()
        for stop in stops:
            graph.add_node(stop.id)
        for current, following in zip(stops, stops[1:]):
            graph.add_connection(
                current.id,
                following.id,
                haversine_m(current.lat, current.lon, following.lat, following.lon),
            )
        _logger.debug("Route graph built nodes=%d edges=%d", len(graph), graph.edge_count)
        return graph

    def add_node(self, node_id: str) -> None:
        """Add *node_id* if it is not present yet."""
        with self._lock:
            self._adjacency.setdefault(node_id, [])

    def add_connection(self, from_id: str, to_id: str, weight: float) -> None:
        """Append a directed edge ``from_id -> to_id``, creating missing nodes.

        Raises :class:`ValueError` when *weight* is negative or not finite.
        """
        weight = float(weight)
        if not math.isfinite(weight) or weight < 0:
            raise ValueError(f"edge weight must be a finite non-negative number, got {weight}")
        with self._lock:
            self._adjacency.setdefault(to_id, [])
            self._adjacency.setdefault(from_id, []).append(Edge(to_id, weight))

    def neighbors(self, node_id: str) -> list[Edge]:
        return list(self._adjacency.get(node_id, ()))

    @property
    def nodes(self) -> list[str]:
        return list(self._adjacency)

    @property
    def edge_count(self) -> int:
        return sum(len(edges) for edges in self._adjacency.values())

    def shortest_path(self, start_id: str, end_id: str) -> PathResult:
        """Least-cost path from *start_id* to *end_id* (Dijkstra).

        The search stops as soon as *end_id* is settled. Unknown ids and
        unreachable targets yield :meth:`PathResult.unreachable`.
        """
        adjacency = self._adjacency
        if start_id not in adjacency or end_id not in adjacency:
            _logger.debug("Shortest path with unknown node start=%s end=%s", start_id, end_id)
            return PathResult.unreachable()

        distances: dict[str, float] = {start_id: 0.0}
        previous: dict[str, str] = {}
        settled: set[str] = set()
        # The counter keeps heap entries comparable without comparing ids
        frontier: list[tuple[float, int, str]] = [(0.0, 0, start_id)]
        pushes = 1

        while frontier:
            distance, _, current = heapq.heappop(frontier)
            if current in settled:
                continue
            settled.add(current)
            if current == end_id:
                break

            for edge in list(adjacency.get(current, ())):
                candidate = distance + edge.weight
                if candidate < distances.get(edge.target, math.inf):
                    distances[edge.target] = candidate
                    previous[edge.target] = current
                    heapq.heappush(frontier, (candidate, pushes, edge.target))
                    pushes += 1

        if end_id not in settled:
            return PathResult.unreachable()

        path = [end_id]
        while path[-1] != start_id:
            path.append(previous[path[-1]])
        path.reverse()
        return PathResult(distance=distances[end_id], path=path)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._adjacency

    def __len__(self) -> int:
        return len(self._adjacency)

    def __iter__(self) -> Iterator[str]:
        return iter(self.nodes)

    def extend(self, connections: Iterable[tuple[str, str, float]]) -> None:
        """Add several ``(from_id, to_id, weight)`` connections."""
        for from_id, to_id, weight in connections:
            self.add_connection(from_id, to_id, weight)
