from dataclasses import dataclass, field

from .alert_queue import AlertQueueCoordinator
from .config import Settings
from ..services.presenter import AlertPresenter
from ..services.sse import EventBroadcaster


@dataclass
class AppState:
    """Everything one running service shares: its settings, queue, presenter and event stream."""
    settings: Settings
    coordinator: AlertQueueCoordinator = field(default_factory=AlertQueueCoordinator)
    broadcaster: EventBroadcaster | None = None
    presenter: AlertPresenter | None = None

    def __post_init__(self):
        if self.broadcaster is None:
            self.broadcaster = EventBroadcaster(queue_size=self.settings.sse_subscriber_queue_size)
        if self.presenter is None:
            self.presenter = AlertPresenter(
                self.coordinator,
                self.broadcaster,
                passive_duration=self.settings.passive_alert_duration,
            )
