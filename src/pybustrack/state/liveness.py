"""Per-vehicle liveness classifier.

Every observation re-arms a single offline deadline per vehicle. Two
mechanisms enforce it:

* When an asyncio loop is attached, the previous ``call_later`` handle is
  cancelled and a new one scheduled (at most one pending handle per
  vehicle). Each arm carries a generation number so a callback that was
  already dequeued when it got cancelled cannot apply a stale ``OFFLINE``.
  Observations made off the loop thread hand both the cancel and the
  re-arm to the loop through ``call_soon_threadsafe``.
* :meth:`LivenessClassifier.sweep` forces ``OFFLINE`` on every vehicle
  whose deadline has passed, for hosts that prefer a periodic check or run
  without an event loop.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta

from pybustrack._constants import DEFAULT_OFFLINE_AFTER_S, DEFAULT_WAITING_AFTER_S
from pybustrack.models._base import ensure_tz_aware, utcnow
from pybustrack.models.status import LivenessStatus
from pybustrack.state.events import StatusChange
from pybustrack.state.policy import has_moved, is_expired, status_for_observation

_logger = logging.getLogger(__name__)


@dataclass(slots=True)
class _EntityState:
    """Liveness record for one vehicle, updated in place."""

    last_position: tuple[float, float] | None = None
    last_movement_at: datetime | None = None
    status: LivenessStatus = LivenessStatus.OFFLINE
    deadline: datetime | None = None
    generation: int = 0
    handle: asyncio.TimerHandle | None = None


def _current_loop() -> asyncio.AbstractEventLoop | None:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


class LivenessClassifier:
    """Classify vehicles as ACTIVE, WAITING or OFFLINE from position reports.

    Usage::

        classifier = LivenessClassifier(on_change=print)
        classifier.attach()  # inside a running loop, enables offline timers
        classifier.classify("bus-1", -15.84, -70.02)
    """

    def __init__(
        self,
        *,
        waiting_after: timedelta = timedelta(seconds=DEFAULT_WAITING_AFTER_S),
        offline_after: timedelta = timedelta(seconds=DEFAULT_OFFLINE_AFTER_S),
        clock: Callable[[], datetime] = utcnow,
        on_change: Callable[[StatusChange], None] | None = None,
    ) -> None:
        if offline_after <= timedelta(0):
            raise ValueError(f"offline_after must be positive, got {offline_after}")
        self._waiting_after = waiting_after
        self._offline_after = offline_after
        self._clock = clock
        self._on_change = on_change
        self._entities: dict[str, _EntityState] = {}
        self._lock = threading.Lock()
        self._loop: asyncio.AbstractEventLoop | None = None

    # ------------------------------------------------------------------
    # Loop lifecycle
    # ------------------------------------------------------------------

    def attach(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        """Enable offline timers on *loop* (defaults to the running loop)."""
        self._loop = loop or asyncio.get_running_loop()

    def close(self) -> None:
        """Cancel every pending offline timer and detach from the loop."""
        with self._lock:
            for state in self._entities.values():
                self._cancel_handle(state)
        self._loop = None

    # ------------------------------------------------------------------
    # Observations
    # ------------------------------------------------------------------

    def classify(self, entity_id: str, lat: float, lon: float, now: datetime | None = None) -> LivenessStatus:
        """Apply one observation and return the vehicle's new status.

        A naive *now* is taken to be UTC.
        """
        now = ensure_tz_aware(now if now is not None else self._clock())
        position = (lat, lon)

        with self._lock:
            state = self._entities.get(entity_id)
            if state is None:
                state = _EntityState()
                self._entities[entity_id] = state
            previous = state.status

            moved = has_moved(state.last_position, position)
            state.status = status_for_observation(
                moved=moved,
                last_movement_at=state.last_movement_at,
                now=now,
                waiting_after=self._waiting_after,
            )
            if moved:
                state.last_position = position
                state.last_movement_at = now

            state.deadline = now + self._offline_after
            state.generation += 1
            self._arm(entity_id, state)
            current = state.status

        _logger.debug("Observation entity=%s moved=%s status=%s", entity_id, moved, current)
        if current != previous:
            self._notify(StatusChange(entity_id=entity_id, previous=previous, current=current, changed_at=now))
        return current

    def status(self, entity_id: str) -> LivenessStatus:
        """Current status; unknown vehicles are ``OFFLINE``."""
        state = self._entities.get(entity_id)
        return state.status if state is not None else LivenessStatus.OFFLINE

    def statuses(self) -> dict[str, LivenessStatus]:
        with self._lock:
            return {entity_id: state.status for entity_id, state in self._entities.items()}

    def deadline(self, entity_id: str) -> datetime | None:
        """When the vehicle will be forced offline, if it is being tracked."""
        state = self._entities.get(entity_id)
        return state.deadline if state is not None else None

    def sweep(self, now: datetime | None = None) -> list[str]:
        """Force ``OFFLINE`` on vehicles whose deadline has passed.

        Returns the ids that changed status.
        """
        now = ensure_tz_aware(now if now is not None else self._clock())
        changes: list[StatusChange] = []
        with self._lock:
            for entity_id, state in self._entities.items():
                if state.status == LivenessStatus.OFFLINE or state.deadline is None:
                    continue
                if not is_expired(now, state.deadline):
                    continue
                self._cancel_handle(state)
                changes.append(self._expire_locked(entity_id, state, now))

        for change in changes:
            self._notify(change)
        return [change.entity_id for change in changes]

    # ------------------------------------------------------------------
    # Timers
    # ------------------------------------------------------------------

    def _cancel_handle(self, state: _EntityState) -> None:
        """Drop the pending timer, cancelling it on the loop thread."""
        handle = state.handle
        if handle is None:
            return
        state.handle = None
        loop = self._loop
        if loop is None or loop.is_closed() or _current_loop() is loop:
            handle.cancel()
        else:
            loop.call_soon_threadsafe(handle.cancel)

    def _arm(self, entity_id: str, state: _EntityState) -> None:
        self._cancel_handle(state)

        loop = self._loop
        if loop is None or loop.is_closed():
            return
        if _current_loop() is loop:
            state.handle = loop.call_later(
                self._offline_after.total_seconds(), self._on_timer, entity_id, state.generation
            )
        else:
            loop.call_soon_threadsafe(self._schedule, entity_id, state.generation)

    def _schedule(self, entity_id: str, generation: int) -> None:
        """Arm the timer from the loop thread for an observation made elsewhere."""
        loop = self._loop
        if loop is None:
            return
        with self._lock:
            state = self._entities.get(entity_id)
            if state is None or state.generation != generation:
                return
            self._cancel_handle(state)
            state.handle = loop.call_later(self._offline_after.total_seconds(), self._on_timer, entity_id, generation)

    def _on_timer(self, entity_id: str, generation: int) -> None:
        with self._lock:
            state = self._entities.get(entity_id)
            if state is None or state.generation != generation:
                _logger.debug("Stale offline timer ignored entity=%s", entity_id)
                return
            state.handle = None
            if state.status == LivenessStatus.OFFLINE:
                return
            change = self._expire_locked(entity_id, state, ensure_tz_aware(self._clock()))
        self._notify(change)

    def _expire_locked(self, entity_id: str, state: _EntityState, now: datetime) -> StatusChange:
        previous = state.status
        state.status = LivenessStatus.OFFLINE
        _logger.debug("Entity went offline entity=%s previous=%s", entity_id, previous)
        return StatusChange(
            entity_id=entity_id,
            previous=previous,
            current=LivenessStatus.OFFLINE,
            changed_at=now,
            expired=True,
        )

    def _notify(self, change: StatusChange) -> None:
        if self._on_change is None:
            return
        try:
            self._on_change(change)
        except Exception:
            _logger.debug("on_change callback failed", exc_info=True)

    def __len__(self) -> int:
        return len(self._entities)

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self._entities
