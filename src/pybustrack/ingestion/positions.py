"""Position event ingestion.

Realtime position events arrive as plain mappings (e.g. an inserted
``positions`` row). They are stamped with the arrival time and validated
into :class:`PositionReport`; malformed events are dropped.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime
from typing import Any

from pydantic import ValidationError

from pybustrack.models._base import utcnow
from pybustrack.models.position import PositionReport

_logger = logging.getLogger(__name__)


def parse_position_event(payload: Mapping[str, Any], received_at: datetime | None = None) -> PositionReport | None:
    """Build a report from *payload*, or ``None`` when it is malformed.

    Some realtime feeds wrap the row as ``{"new": {...}}``; the inner row is
    used in that case.
    """
    data: Mapping[str, Any] = payload
    nested = payload.get("new")
    if isinstance(nested, Mapping):
        data = nested

    try:
        return PositionReport.model_validate({**data, "received_at": received_at or utcnow()})
    except ValidationError:
        _logger.debug("Dropping malformed position event keys=%s", sorted(data), exc_info=True)
        return None
