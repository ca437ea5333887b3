"""Liveness transition policy.

Pure functions only; the classifier owns state and timers.
"""

from __future__ import annotations

from datetime import datetime, timedelta

from pybustrack.models.status import LivenessStatus


def has_moved(last_position: tuple[float, float] | None, position: tuple[float, float]) -> bool:
    """Exact comparison; any change in either coordinate counts as movement."""
    return last_position is None or last_position != position


def status_for_observation(
    *,
    moved: bool,
    last_movement_at: datetime | None,
    now: datetime,
    waiting_after: timedelta,
) -> LivenessStatus:
    """Status after an observation arrives.

    Policy:
    - Movement always means ``ACTIVE``.
    - No movement for longer than *waiting_after* means ``WAITING``.
    - Otherwise the vehicle is still ``ACTIVE``.
    """
    if moved or last_movement_at is None:
        return LivenessStatus.ACTIVE
    if now - last_movement_at > waiting_after:
        return LivenessStatus.WAITING
    return LivenessStatus.ACTIVE


def is_expired(now: datetime, expires_at: datetime) -> bool:
    return now >= expires_at
