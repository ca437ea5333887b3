"""Great-circle helpers."""

from __future__ import annotations

import math

from pybustrack._constants import EARTH_RADIUS_M
from pybustrack.exceptions import InvalidCoordinateError


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Haversine distance in meters between two lat/lon points in degrees."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2.0) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2.0) ** 2
    return EARTH_RADIUS_M * 2.0 * math.atan2(math.sqrt(a), math.sqrt(1.0 - a))


def require_finite(lat: float, lon: float) -> tuple[float, float]:
    """Return ``(lat, lon)`` as floats or raise :class:`InvalidCoordinateError`."""
    try:
        lat_f = float(lat)
        lon_f = float(lon)
    except (TypeError, ValueError) as err:
        raise InvalidCoordinateError(f"coordinates must be numeric, got ({lat!r}, {lon!r})", lat=lat, lon=lon) from err
    if not (math.isfinite(lat_f) and math.isfinite(lon_f)):
        raise InvalidCoordinateError(f"coordinates must be finite, got ({lat_f}, {lon_f})", lat=lat, lon=lon)
    return lat_f, lon_f
