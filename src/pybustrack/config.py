"""Tracker configuration for pybustrack."""

from __future__ import annotations

import dataclasses
import os
from datetime import timedelta
from typing import Any

from pybustrack._constants import (
    DEFAULT_BOUNDARY_CENTER_LAT,
    DEFAULT_BOUNDARY_CENTER_LON,
    DEFAULT_BOUNDARY_HALF_EXTENT,
    DEFAULT_CELL_SIZE_DEG,
    DEFAULT_NEAREST_HALF_EXTENT,
    DEFAULT_NODE_CAPACITY,
    DEFAULT_OFFLINE_AFTER_S,
    DEFAULT_WAITING_AFTER_S,
)
from pybustrack.exceptions import TrackerConfigError


def _env_optional_int(value: str | None) -> int | None:
    if value is None:
        return None
    normalized = value.strip().lower()
    if normalized in {"", "none", "0", "off"}:
        return None
    return int(normalized)


@dataclasses.dataclass(frozen=True)
class TrackerConfig:
    """Tracker configuration.

    Parameters
    ----------
    boundary_center_lat : float
        Latitude of the spatial index root region center.
    boundary_center_lon : float
        Longitude of the spatial index root region center.
    boundary_half_extent : float
        Half width and half height of the root region, in degrees. Stops
        outside it are not indexed but remain reachable through the
        linear-scan fallback.
    node_capacity : int
        Points held by a quadtree node before it subdivides.
    nearest_half_extent : float
        Half-extent in degrees of the window searched around a
        nearest-stop query.
    cell_size : float
        Coverage grid cell size in degrees (``0.001`` is ~100 m).
    waiting_after : timedelta or float
        Time without movement after which a still-reporting vehicle is
        classified ``WAITING``.
    offline_after : timedelta or float
        Time without any report after which a vehicle is forced
        ``OFFLINE``. Plain numbers are read as seconds.
    coverage_max_cells : int or None
        Upper bound on distinct coverage cells. ``None`` keeps the
        counter unbounded for the life of its owner.
    """

    boundary_center_lat: float = DEFAULT_BOUNDARY_CENTER_LAT
    boundary_center_lon: float = DEFAULT_BOUNDARY_CENTER_LON
    boundary_half_extent: float = DEFAULT_BOUNDARY_HALF_EXTENT
    node_capacity: int = DEFAULT_NODE_CAPACITY
    nearest_half_extent: float = DEFAULT_NEAREST_HALF_EXTENT
    cell_size: float = DEFAULT_CELL_SIZE_DEG
    waiting_after: timedelta = timedelta(seconds=DEFAULT_WAITING_AFTER_S)
    offline_after: timedelta = timedelta(seconds=DEFAULT_OFFLINE_AFTER_S)
    coverage_max_cells: int | None = None

    def __post_init__(self) -> None:
        # Plain numbers are accepted for the duration fields, in seconds
        for field_name in ("waiting_after", "offline_after"):
            value = getattr(self, field_name)
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                try:
                    object.__setattr__(self, field_name, timedelta(seconds=value))
                except (ValueError, OverflowError) as err:
                    raise TrackerConfigError(f"{field_name} is not a valid duration: {value!r}") from err

    def validate(self) -> TrackerConfig:
        """Raise :class:`TrackerConfigError` when a field is out of range."""
        if self.node_capacity < 1:
            raise TrackerConfigError(f"node_capacity must be >= 1, got {self.node_capacity}")
        for name in ("boundary_half_extent", "nearest_half_extent", "cell_size"):
            value = getattr(self, name)
            if not value > 0:
                raise TrackerConfigError(f"{name} must be positive, got {value}")
        for name in ("waiting_after", "offline_after"):
            value = getattr(self, name)
            if not isinstance(value, timedelta):
                raise TrackerConfigError(f"{name} must be a timedelta or seconds, got {value!r}")
        if self.waiting_after < timedelta(0):
            raise TrackerConfigError(f"waiting_after must not be negative, got {self.waiting_after}")
        if self.offline_after <= timedelta(0):
            raise TrackerConfigError(f"offline_after must be positive, got {self.offline_after}")
        if self.coverage_max_cells is not None and self.coverage_max_cells < 1:
            raise TrackerConfigError(f"coverage_max_cells must be >= 1 or None, got {self.coverage_max_cells}")
        return self

    @classmethod
    def from_env(cls, **overrides: Any) -> TrackerConfig:
        """Create configuration from environment variables.

        Reads optional ``BUSTRACK_*`` variables. Durations are given in
        seconds. Explicit keyword arguments override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        TrackerConfig
            Populated and validated configuration.
        """
        env = os.environ

        _ENV_FLOAT_MAP = {
            "BUSTRACK_BOUNDARY_LAT": "boundary_center_lat",
            "BUSTRACK_BOUNDARY_LON": "boundary_center_lon",
            "BUSTRACK_BOUNDARY_HALF_EXTENT": "boundary_half_extent",
            "BUSTRACK_NEAREST_HALF_EXTENT": "nearest_half_extent",
            "BUSTRACK_CELL_SIZE": "cell_size",
        }
        _ENV_SECONDS_MAP = {
            "BUSTRACK_WAITING_AFTER": "waiting_after",
            "BUSTRACK_OFFLINE_AFTER": "offline_after",
        }

        config_kwargs: dict[str, Any] = {}
        try:
            for env_key, field_name in _ENV_FLOAT_MAP.items():
                val = env.get(env_key)
                if val is not None and field_name not in overrides:
                    config_kwargs[field_name] = float(val)

            for env_key, field_name in _ENV_SECONDS_MAP.items():
                val = env.get(env_key)
                if val is not None and field_name not in overrides:
                    config_kwargs[field_name] = timedelta(seconds=float(val))

            capacity_env = env.get("BUSTRACK_NODE_CAPACITY")
            if capacity_env is not None and "node_capacity" not in overrides:
                config_kwargs["node_capacity"] = int(capacity_env)

            if "coverage_max_cells" not in overrides:
                config_kwargs["coverage_max_cells"] = _env_optional_int(env.get("BUSTRACK_COVERAGE_MAX_CELLS"))
        except ValueError as err:
            raise TrackerConfigError(f"invalid BUSTRACK_* environment value: {err}") from err

        config_kwargs.update(overrides)

        return cls(**config_kwargs).validate()
