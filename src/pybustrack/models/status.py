"""Liveness status enum."""

from __future__ import annotations

from enum import StrEnum


class LivenessStatus(StrEnum):
    """Inferred reporting status of a tracked vehicle.

    * ``ACTIVE`` - the position is changing.
    * ``WAITING`` - still reporting but stationary for too long.
    * ``OFFLINE`` - no report within the inactivity window.
    """

    ACTIVE = "active"
    WAITING = "waiting"
    OFFLINE = "offline"
