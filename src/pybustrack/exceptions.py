"""Custom exception hierarchy for pybustrack.

Expected per-query outcomes (point outside the index, unreachable stop,
unknown vehicle, empty stop set) are returned as values and never raised.
The exceptions below cover invalid configuration and malformed input
rejected at the library boundary.
"""

from __future__ import annotations


class BusTrackError(Exception):
    """Base exception for all pybustrack errors."""


class TrackerConfigError(BusTrackError):
    """Invalid or missing configuration."""


class InvalidCoordinateError(ValueError, BusTrackError):
    """A coordinate is missing or not a finite number."""

    def __init__(self, message: str, *, lat: object = None, lon: object = None) -> None:
        self.lat = lat
        self.lon = lon
        super().__init__(message)


class CoverageLimitError(BusTrackError):
    """A bounded coverage counter cannot accept another cell."""

    def __init__(self, message: str, *, max_cells: int) -> None:
        self.max_cells = max_cells
        super().__init__(message)
