from __future__ import annotations

import asyncio
import threading
import time
from datetime import UTC, datetime, timedelta

import pytest

from pybustrack.models.status import LivenessStatus
from pybustrack.state.events import StatusChange
from pybustrack.state.liveness import LivenessClassifier
from pybustrack.state.policy import has_moved, status_for_observation


def _dt(seconds: float = 0.0) -> datetime:
    return datetime(2026, 1, 1, tzinfo=UTC) + timedelta(seconds=seconds)


def test_unknown_entity_is_offline() -> None:
    classifier = LivenessClassifier()
    assert classifier.status("ghost") == LivenessStatus.OFFLINE
    assert "ghost" not in classifier


def test_changing_positions_stay_active() -> None:
    classifier = LivenessClassifier()
    for i in range(10):
        status = classifier.classify("bus-1", -15.84 + i * 1e-4, -70.02, now=_dt(i * 30))
        assert status == LivenessStatus.ACTIVE


def test_stationary_for_over_a_minute_is_waiting() -> None:
    classifier = LivenessClassifier()
    classifier.classify("bus-1", -15.84, -70.02, now=_dt(0))

    assert classifier.classify("bus-1", -15.84, -70.02, now=_dt(30)) == LivenessStatus.ACTIVE
    assert classifier.classify("bus-1", -15.84, -70.02, now=_dt(60)) == LivenessStatus.ACTIVE
    assert classifier.classify("bus-1", -15.84, -70.02, now=_dt(61)) == LivenessStatus.WAITING
    assert classifier.classify("bus-1", -15.84, -70.02, now=_dt(90)) == LivenessStatus.WAITING

    # Any movement resets to active
    assert classifier.classify("bus-1", -15.8401, -70.02, now=_dt(95)) == LivenessStatus.ACTIVE


def test_sweep_forces_offline_after_inactivity() -> None:
    changes: list[StatusChange] = []
    classifier = LivenessClassifier(on_change=changes.append)
    classifier.classify("bus-1", -15.84, -70.02, now=_dt(0))
    classifier.classify("bus-2", -15.85, -70.03, now=_dt(30))

    assert classifier.sweep(_dt(64)) == []
    assert classifier.sweep(_dt(65)) == ["bus-1"]
    assert classifier.status("bus-1") == LivenessStatus.OFFLINE
    assert classifier.status("bus-2") == LivenessStatus.ACTIVE

    assert changes[-1].entity_id == "bus-1"
    assert changes[-1].current == LivenessStatus.OFFLINE
    assert changes[-1].expired is True


def test_waiting_vehicle_also_goes_offline() -> None:
    classifier = LivenessClassifier()
    classifier.classify("bus-1", 1.0, 1.0, now=_dt(0))
    classifier.classify("bus-1", 1.0, 1.0, now=_dt(70))
    assert classifier.status("bus-1") == LivenessStatus.WAITING

    classifier.sweep(_dt(70 + 66))
    assert classifier.status("bus-1") == LivenessStatus.OFFLINE


def test_each_observation_pushes_deadline() -> None:
    classifier = LivenessClassifier()
    classifier.classify("bus-1", 1.0, 1.0, now=_dt(0))
    classifier.classify("bus-1", 1.0, 1.0, now=_dt(50))

    assert classifier.deadline("bus-1") == _dt(115)
    assert classifier.sweep(_dt(100)) == []


def test_first_observation_after_offline_reports_waiting_when_unmoved() -> None:
    classifier = LivenessClassifier()
    classifier.classify("bus-1", 1.0, 1.0, now=_dt(0))
    classifier.sweep(_dt(200))

    assert classifier.classify("bus-1", 1.0, 1.0, now=_dt(201)) == LivenessStatus.WAITING


def test_on_change_only_fires_on_transitions() -> None:
    changes: list[StatusChange] = []
    classifier = LivenessClassifier(on_change=changes.append)
    classifier.classify("bus-1", 1.0, 1.0, now=_dt(0))
    classifier.classify("bus-1", 1.0, 1.1, now=_dt(10))

    assert [(c.previous, c.current) for c in changes] == [(LivenessStatus.OFFLINE, LivenessStatus.ACTIVE)]


def test_failing_callback_does_not_break_classification() -> None:
    def _boom(_: StatusChange) -> None:
        raise RuntimeError("boom")

    classifier = LivenessClassifier(on_change=_boom)
    assert classifier.classify("bus-1", 1.0, 1.0, now=_dt(0)) == LivenessStatus.ACTIVE


def test_policy_helpers() -> None:
    assert has_moved(None, (0.0, 0.0))
    assert not has_moved((1.0, 2.0), (1.0, 2.0))
    assert has_moved((1.0, 2.0), (1.0, 2.0000001))
    assert (
        status_for_observation(
            moved=False,
            last_movement_at=_dt(0),
            now=_dt(61),
            waiting_after=timedelta(seconds=60),
        )
        == LivenessStatus.WAITING
    )


def test_offline_after_must_be_positive() -> None:
    with pytest.raises(ValueError):
        LivenessClassifier(offline_after=timedelta(0))


@pytest.mark.asyncio
async def test_timer_marks_offline() -> None:
    changes: list[StatusChange] = []
    classifier = LivenessClassifier(offline_after=timedelta(seconds=0.05), on_change=changes.append)
    classifier.attach()

    classifier.classify("bus-1", 1.0, 1.0)
    assert classifier.status("bus-1") == LivenessStatus.ACTIVE

    await asyncio.sleep(0.2)
    assert classifier.status("bus-1") == LivenessStatus.OFFLINE
    assert [c.expired for c in changes] == [False, True]
    classifier.close()


@pytest.mark.asyncio
async def test_timer_is_debounced_by_new_observations() -> None:
    changes: list[StatusChange] = []
    classifier = LivenessClassifier(offline_after=timedelta(seconds=0.4), on_change=changes.append)
    classifier.attach()

    classifier.classify("bus-1", 1.0, 1.0)
    await asyncio.sleep(0.25)
    classifier.classify("bus-1", 1.0, 1.1)
    await asyncio.sleep(0.25)
    # 0.5 s after the first report but only 0.25 s after the last one
    assert classifier.status("bus-1") == LivenessStatus.ACTIVE

    await asyncio.sleep(0.4)
    assert classifier.status("bus-1") == LivenessStatus.OFFLINE
    assert sum(1 for c in changes if c.expired) == 1
    classifier.close()


@pytest.mark.asyncio
async def test_stale_timer_callback_is_ignored() -> None:
    classifier = LivenessClassifier(offline_after=timedelta(seconds=10))
    classifier.attach()

    classifier.classify("bus-1", 1.0, 1.0)
    stale_generation = classifier._entities["bus-1"].generation  # noqa: SLF001
    classifier.classify("bus-1", 1.0, 1.1)

    classifier._on_timer("bus-1", stale_generation)  # noqa: SLF001
    assert classifier.status("bus-1") == LivenessStatus.ACTIVE
    classifier.close()


@pytest.mark.asyncio
async def test_close_cancels_pending_timers() -> None:
    classifier = LivenessClassifier(offline_after=timedelta(seconds=0.05))
    classifier.attach()
    classifier.classify("bus-1", 1.0, 1.0)
    classifier.close()

    await asyncio.sleep(0.15)
    assert classifier.status("bus-1") == LivenessStatus.ACTIVE
    assert classifier._entities["bus-1"].handle is None  # noqa: SLF001


def test_statuses_snapshot() -> None:
    classifier = LivenessClassifier()
    classifier.classify("bus-1", 1.0, 1.0, now=_dt(0))
    classifier.classify("bus-2", 2.0, 2.0, now=_dt(0))
    classifier.sweep(_dt(65))
    classifier.classify("bus-2", 2.0, 2.5, now=_dt(66))

    assert classifier.statuses() == {"bus-1": LivenessStatus.OFFLINE, "bus-2": LivenessStatus.ACTIVE}
    assert len(classifier) == 2


def test_naive_timestamps_are_treated_as_utc() -> None:
    classifier = LivenessClassifier()
    classifier.classify("bus-1", 1.0, 1.0, now=datetime(2026, 1, 1))
    assert classifier.deadline("bus-1") == _dt(65)

    # Aware and naive timestamps can be mixed freely afterwards
    assert classifier.classify("bus-1", 1.0, 1.0, now=_dt(61)) == LivenessStatus.WAITING
    assert classifier.sweep(datetime(2026, 1, 1, 0, 2, 5)) == []
    assert classifier.sweep(datetime(2026, 1, 1, 0, 2, 6)) == ["bus-1"]


def test_naive_clock_is_treated_as_utc() -> None:
    classifier = LivenessClassifier(clock=lambda: datetime(2026, 1, 1))
    classifier.classify("bus-1", 1.0, 1.0)

    assert classifier.deadline("bus-1") == _dt(65)
    assert classifier.sweep(_dt(65)) == ["bus-1"]


@pytest.mark.asyncio
async def test_observations_from_another_thread_arm_a_single_timer() -> None:
    changes: list[StatusChange] = []
    classifier = LivenessClassifier(offline_after=timedelta(seconds=0.3), on_change=changes.append)
    classifier.attach()
    second_observed_at: list[datetime] = []

    def _report_twice() -> None:
        classifier.classify("bus-1", 1.0, 1.0)
        time.sleep(0.1)
        second_observed_at.append(datetime.now(UTC))
        classifier.classify("bus-1", 1.0, 1.1)

    worker = threading.Thread(target=_report_twice)
    worker.start()
    worker.join()

    await asyncio.sleep(0.15)
    assert classifier.status("bus-1") == LivenessStatus.ACTIVE

    await asyncio.sleep(0.5)
    expired = [c for c in changes if c.expired]
    assert len(expired) == 1
    assert expired[0].changed_at - second_observed_at[0] >= timedelta(seconds=0.25)
    assert classifier.status("bus-1") == LivenessStatus.OFFLINE
    assert classifier._entities["bus-1"].handle is None  # noqa: SLF001
    classifier.close()
