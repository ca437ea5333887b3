"""Stop row ingestion.

Rows come from the persistence layer as plain mappings. Only active rows
with finite coordinates are kept, ordered by sequence.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import ValidationError

from pybustrack.ingestion.normalize import first_present, safe_bool, safe_float, safe_int
from pybustrack.models.stop import Stop

_logger = logging.getLogger(__name__)


def parse_stop_row(row: Mapping[str, Any]) -> Stop | None:
    """Validate one stop row; ``None`` when it is unusable."""
    data = dict(row)
    lat = safe_float(first_present(data, "lat", "latitude"))
    lon = safe_float(first_present(data, "lon", "lng", "longitude"))
    if lat is None or lon is None:
        _logger.warning("Dropping stop row without finite coordinates id=%s", data.get("id"))
        return None

    seq = safe_int(first_present(data, "seq", "sequenceIndex", "sequence_index"))
    try:
        return Stop(
            id=data.get("id"),
            name=str(data.get("name") or ""),
            lat=lat,
            lon=lon,
            seq=seq if seq is not None else 0,
            active=safe_bool(data.get("active"), default=True),
        )
    except ValidationError:
        _logger.warning("Dropping invalid stop row id=%s", data.get("id"), exc_info=True)
        return None


def parse_stop_rows(rows: Iterable[Mapping[str, Any] | Stop]) -> list[Stop]:
    """Validate, filter inactive and sort stops by ascending sequence.

    The sort is stable, so rows sharing a sequence number keep their
    original relative order.
    """
    stops: list[Stop] = []
    dropped = 0
    for row in rows:
        stop = row if isinstance(row, Stop) else parse_stop_row(row)
        if stop is None:
            dropped += 1
            continue
        if not stop.active:
            continue
        stops.append(stop)

    stops.sort(key=lambda stop: stop.seq)
    _logger.debug("Parsed stop rows kept=%d dropped=%d", len(stops), dropped)
    return stops
