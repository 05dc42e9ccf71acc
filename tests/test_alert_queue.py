import random

import pytest

from alertqueue.core.alert_queue import (
    AlertQueueCoordinator,
    AlertRequest,
    CoordinatorState,
    QueueInvariantError,
)


class Recorder:
    """Collects the identities of requests in the order their presenters ran."""

    def __init__(self):
        self.shown = []

    def request(self, identity):
        return AlertRequest(identity=identity, presenter=lambda r: self.shown.append(r.identity))


@pytest.fixture
def recorder():
    return Recorder()


def test_enqueue_when_idle_presents_immediately(coordinator, recorder):
    """
    Tests that the first request is shown synchronously, exactly once.
    """
    coordinator.enqueue(recorder.request("A"))

    assert recorder.shown == ["A"]
    assert coordinator.state is CoordinatorState.PRESENTING
    assert coordinator.active.identity == "A"
    assert coordinator.pending == ()


def test_enqueue_while_presenting_waits(coordinator, recorder):
    coordinator.enqueue(recorder.request("A"))
    coordinator.enqueue(recorder.request("B"))

    assert recorder.shown == ["A"]
    assert [r.identity for r in coordinator.pending] == ["B"]


def test_three_alerts_are_shown_in_order(coordinator, recorder):
    """
    Tests the full A/B/C walk: each dismissal admits exactly the next request,
    and the last dismissal leaves the coordinator idle.
    """
    for identity in "ABC":
        coordinator.enqueue(recorder.request(identity))
    assert recorder.shown == ["A"]

    coordinator.notify_dismissed()
    assert recorder.shown == ["A", "B"]

    coordinator.notify_dismissed()
    assert recorder.shown == ["A", "B", "C"]

    coordinator.notify_dismissed()
    assert recorder.shown == ["A", "B", "C"]
    assert coordinator.is_idle
    assert len(coordinator) == 0


def test_dismiss_twice_after_single_alert(coordinator, recorder):
    coordinator.enqueue(recorder.request("A"))
    coordinator.notify_dismissed()
    coordinator.notify_dismissed()

    assert recorder.shown == ["A"]
    assert coordinator.is_idle
    coordinator.check_invariants()


def test_dismiss_when_idle_is_noop(coordinator):
    coordinator.notify_dismissed()

    assert coordinator.is_idle
    assert coordinator.active is None


def test_each_dismissal_advances_queue_by_one(coordinator, recorder):
    """
    Tests that a repeated dismissal signal cannot skip a queued alert: each
    call advances the queue by at most one request.
    """
    for identity in "ABC":
        coordinator.enqueue(recorder.request(identity))

    coordinator.notify_dismissed()
    assert recorder.shown == ["A", "B"]
    assert coordinator.active.identity == "B"
    assert [r.identity for r in coordinator.pending] == ["C"]


def test_duplicate_enqueue_is_ignored(coordinator, recorder):
    a = recorder.request("A")
    b = recorder.request("B")
    coordinator.enqueue(a)
    coordinator.enqueue(b)

    coordinator.enqueue(a)
    coordinator.enqueue(recorder.request("B"))

    assert len(coordinator) == 2
    coordinator.notify_dismissed()
    coordinator.notify_dismissed()
    assert recorder.shown == ["A", "B"]


def test_completed_request_can_be_enqueued_again(coordinator, recorder):
    coordinator.enqueue(recorder.request("A"))
    coordinator.notify_dismissed()
    coordinator.enqueue(recorder.request("A"))

    assert recorder.shown == ["A", "A"]


def test_position_and_membership(coordinator, recorder):
    for identity in "ABC":
        coordinator.enqueue(recorder.request(identity))

    assert coordinator.position("A") == 0
    assert coordinator.position("C") == 2
    assert coordinator.position("Z") is None
    assert "B" in coordinator
    assert recorder.request("B") in coordinator
    assert "Z" not in coordinator


def test_presenter_may_dismiss_synchronously(coordinator):
    """
    Tests that a presenter calling back into the coordinator sees consistent
    state and that the queue keeps moving in order.
    """
    shown = []

    def dismiss_at_once(request):
        shown.append(request.identity)
        coordinator.notify_dismissed()

    coordinator.enqueue(AlertRequest("A", lambda r: shown.append(r.identity)))
    coordinator.enqueue(AlertRequest("B", dismiss_at_once))
    coordinator.enqueue(AlertRequest("C", lambda r: shown.append(r.identity)))

    coordinator.notify_dismissed()

    assert shown == ["A", "B", "C"]
    assert coordinator.active.identity == "C"
    coordinator.check_invariants()


def test_request_requires_presenter():
    with pytest.raises(ValueError):
        AlertRequest(identity="A", presenter=None)


def test_check_invariants_detects_active_in_pending(coordinator, recorder):
    a = recorder.request("A")
    coordinator.enqueue(a)
    coordinator._state.pending.append(a)

    with pytest.raises(QueueInvariantError):
        coordinator.check_invariants()


def test_random_operation_sequences_keep_fifo_order():
    """
    Tests that, for random interleavings of enqueue and dismissal, alerts are
    shown in enqueue order and at most one is ever active.
    """
    rng = random.Random(1234)
    for _ in range(50):
        coordinator = AlertQueueCoordinator()
        recorder = Recorder()
        enqueued = []
        for step in range(rng.randint(1, 40)):
            if rng.random() < 0.6:
                identity = f"alert-{step}"
                enqueued.append(identity)
                coordinator.enqueue(recorder.request(identity))
            else:
                coordinator.notify_dismissed()

            coordinator.check_invariants()
            active = coordinator.active
            assert active is None or active not in coordinator.pending

        assert recorder.shown == enqueued[:len(recorder.shown)]
