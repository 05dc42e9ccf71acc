import logging
import threading
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Deque, Optional, Tuple

logger = logging.getLogger(__name__)


class QueueInvariantError(RuntimeError):
    """Raised by check_invariants() when the queue state is inconsistent."""


class CoordinatorState(str, Enum):
    IDLE = "idle"
    PRESENTING = "presenting"


@dataclass(eq=False)
class AlertRequest:
    """
    One request to display an alert.

    Two requests are the same request when they share an identity. The
    presenter is called with the request itself once the queue admits it.
    """
    identity: str
    presenter: Callable[["AlertRequest"], None]

    def __post_init__(self):
        if self.presenter is None:
            raise ValueError("AlertRequest requires a presenter callback")

    def __eq__(self, other):
        if not isinstance(other, AlertRequest):
            return NotImplemented
        return self.identity == other.identity

    def __hash__(self):
        return hash(self.identity)


@dataclass
class QueueState:
    """Pending requests in arrival order plus the one currently on screen."""
    pending: Deque[AlertRequest] = field(default_factory=deque)
    active: Optional[AlertRequest] = None


class AlertQueueCoordinator:
    """
    Serializes alert presentation so that exactly one alert is visible at a time.

    Requests are admitted strictly in the order they were enqueued. The next
    request is only admitted after the presentation layer reports, through
    notify_dismissed(), that the active alert has finished dismissing.
    """

    def __init__(self):
        self._state = QueueState()
        # Re-entrant: presenters may call back into the coordinator.
        self._lock = threading.RLock()

    @property
    def state(self) -> CoordinatorState:
        with self._lock:
            if self._state.active is None:
                return CoordinatorState.IDLE
            return CoordinatorState.PRESENTING

    @property
    def is_idle(self) -> bool:
        return self.state is CoordinatorState.IDLE

    @property
    def active(self) -> Optional[AlertRequest]:
        with self._lock:
            return self._state.active

    @property
    def pending(self) -> Tuple[AlertRequest, ...]:
        with self._lock:
            return tuple(self._state.pending)

    def __len__(self) -> int:
        with self._lock:
            return len(self._state.pending) + (1 if self._state.active else 0)

    def __contains__(self, identity) -> bool:
        return self.position(identity) is not None

    def position(self, identity) -> Optional[int]:
        """
        Where a request sits in line: 0 when it is active, n for the n-th
        pending request, None when the coordinator does not track it.
        """
        if isinstance(identity, AlertRequest):
            identity = identity.identity
        with self._lock:
            active = self._state.active
            if active is not None and active.identity == identity:
                return 0
            for index, request in enumerate(self._state.pending, start=1):
                if request.identity == identity:
                    return index
            return None

    def enqueue(self, request: AlertRequest) -> None:
        """
        Adds a request to the end of the line.

        When nothing is on screen the request is admitted immediately and its
        presenter runs before this call returns. Enqueueing a request that is
        already pending or active does nothing.
        """
        with self._lock:
            if request.identity in self:
                logger.warning(f"Alert {request.identity} is already queued, ignoring duplicate enqueue.")
                return

            self._state.pending.append(request)
            logger.info(f"Alert {request.identity} enqueued ({len(self._state.pending)} pending).")

            if self._state.active is None:
                self._admit_next()

    def notify_dismissed(self) -> None:
        """
        Signals that the active alert has finished dismissing.

        Frees the active slot and admits the oldest pending request, if any.
        Without an active alert this is a no-op, so duplicate dismissal
        signals are harmless.
        """
        with self._lock:
            finished = self._state.active
            if finished is None:
                logger.debug("Dismissal signalled with no active alert, ignoring.")
                return

            self._state.active = None
            logger.info(f"Alert {finished.identity} dismissed.")

            if self._state.pending:
                self._admit_next()
            else:
                logger.info("Alert queue is idle.")

    def _admit_next(self) -> None:
        request = self._state.pending.popleft()
        self._state.active = request
        logger.info(f"Presenting alert {request.identity} ({len(self._state.pending)} still pending).")
        request.presenter(request)

    def check_invariants(self) -> None:
        """Raises QueueInvariantError when the queue state is inconsistent."""
        with self._lock:
            active = self._state.active
            identities = [request.identity for request in self._state.pending]
            if active is not None and active.identity in identities:
                raise QueueInvariantError(f"Active alert {active.identity} is also pending")
            if len(identities) != len(set(identities)):
                raise QueueInvariantError("Pending queue holds duplicate alerts")
            if active is None and identities:
                raise QueueInvariantError("Alerts are pending while nothing is presented")
