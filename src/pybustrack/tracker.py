"""High-level fleet tracker."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable, Mapping
from datetime import datetime
from typing import Any

from pybustrack.config import TrackerConfig
from pybustrack.coverage import CoverageCounter
from pybustrack.geo import require_finite
from pybustrack.ingestion.positions import parse_position_event
from pybustrack.ingestion.stops import parse_stop_rows
from pybustrack.models.position import PositionReport
from pybustrack.models.results import CellCount, NearestStop, NextStopInfo, PathResult
from pybustrack.models.status import LivenessStatus
from pybustrack.models.stop import Stop
from pybustrack.network import StopNetwork
from pybustrack.spatial import Region
from pybustrack.state.events import StatusChange
from pybustrack.state.liveness import LivenessClassifier

_logger = logging.getLogger(__name__)


class FleetTracker:
    """Tracks vehicles against an ordered set of stops.

    Usage::

        async with FleetTracker(TrackerConfig.from_env()) as tracker:
            tracker.load_stops(rows)
            nearest = tracker.nearest(-15.84, -70.02)
            tracker.handle_position_event({"bus_id": "7", "lat": -15.84, "lon": -70.02})

    Entering the context attaches the running loop so that vehicles are
    marked offline by timer; outside of it, call :meth:`sweep`.
    """

    def __init__(
        self,
        config: TrackerConfig | None = None,
        *,
        clock: Callable[[], datetime] | None = None,
        on_status_change: Callable[[StatusChange], None] | None = None,
    ) -> None:
        self._config = (config or TrackerConfig()).validate()
        classifier_kwargs: dict[str, Any] = {}
        if clock is not None:
            classifier_kwargs["clock"] = clock
        self._liveness = LivenessClassifier(
            waiting_after=self._config.waiting_after,
            offline_after=self._config.offline_after,
            on_change=on_status_change,
            **classifier_kwargs,
        )
        self._coverage = CoverageCounter(
            cell_size=self._config.cell_size,
            max_cells=self._config.coverage_max_cells,
        )
        self._network = self._build_network([])

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> FleetTracker:
        self._liveness.attach(asyncio.get_running_loop())
        return self

    async def __aexit__(self, *exc: Any) -> None:
        self.close()

    def close(self) -> None:
        """Cancel pending offline timers."""
        self._liveness.close()

    @property
    def config(self) -> TrackerConfig:
        return self._config

    @property
    def network(self) -> StopNetwork:
        return self._network

    @property
    def liveness(self) -> LivenessClassifier:
        return self._liveness

    @property
    def coverage(self) -> CoverageCounter:
        return self._coverage

    # ------------------------------------------------------------------
    # Stops
    # ------------------------------------------------------------------

    def _build_network(self, stops: list[Stop]) -> StopNetwork:
        cfg = self._config
        return StopNetwork(
            stops,
            boundary=Region.around(cfg.boundary_center_lat, cfg.boundary_center_lon, cfg.boundary_half_extent),
            capacity=cfg.node_capacity,
            nearest_half_extent=cfg.nearest_half_extent,
        )

    def load_stops(self, rows: Iterable[Mapping[str, Any] | Stop]) -> StopNetwork:
        """Replace the stop network with *rows* (inactive/malformed rows dropped)."""
        network = self._build_network(parse_stop_rows(rows))
        self._network = network
        return network

    def nearest(self, lat: float, lon: float) -> NearestStop | None:
        lat, lon = require_finite(lat, lon)
        return self._network.nearest(lat, lon)

    def shortest_path(self, from_id: str, to_id: str) -> PathResult:
        return self._network.shortest_path(from_id, to_id)

    def distance_to_next(self, stop_id: str) -> NextStopInfo | None:
        return self._network.distance_to_next(stop_id)

    def search(self, term: str) -> list[Stop]:
        return self._network.search(term)

    # ------------------------------------------------------------------
    # Liveness
    # ------------------------------------------------------------------

    def classify(self, entity_id: str, lat: float, lon: float, now: datetime | None = None) -> LivenessStatus:
        lat, lon = require_finite(lat, lon)
        return self._liveness.classify(entity_id, lat, lon, now)

    def handle_position(self, report: PositionReport) -> LivenessStatus:
        return self._liveness.classify(report.entity_id, report.lat, report.lon, report.received_at)

    def handle_position_event(
        self, payload: Mapping[str, Any], received_at: datetime | None = None
    ) -> LivenessStatus | None:
        """Classify a raw realtime event; ``None`` when it is malformed."""
        report = parse_position_event(payload, received_at)
        if report is None:
            return None
        return self.handle_position(report)

    def status(self, entity_id: str) -> LivenessStatus:
        return self._liveness.status(entity_id)

    def sweep(self, now: datetime | None = None) -> list[str]:
        return self._liveness.sweep(now)

    # ------------------------------------------------------------------
    # Coverage
    # ------------------------------------------------------------------

    def record(self, lat: float, lon: float) -> CellCount:
        lat, lon = require_finite(lat, lon)
        return self._coverage.record(lat, lon)

    def snapshot(self) -> list[CellCount]:
        return self._coverage.snapshot()

    def reset_coverage(self) -> None:
        self._coverage.reset()
