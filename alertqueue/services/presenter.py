import asyncio
import logging
import threading
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Sequence

from ..core.alert_queue import AlertQueueCoordinator, AlertRequest
from ..core.errors import (
    ActionDisabledError,
    ActionNotFoundError,
    AlertNotActiveError,
    AlertNotFoundError,
    TextFieldValidationError,
)
from ..core.models import AlertConfiguration, AlertDetails, AlertType
from .sse import EventBroadcaster

logger = logging.getLogger(__name__)


class AlertStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"


class DismissReason(str, Enum):
    ACTION = "action"
    TAP_INSIDE = "tap_inside"
    TAP_OUTSIDE = "tap_outside"
    TIMEOUT = "timeout"
    EXPLICIT = "explicit"


@dataclass
class PresentedAlert:
    id: str
    configuration: AlertConfiguration
    status: AlertStatus = AlertStatus.PENDING
    error: Optional[str] = None
    timer: Optional[asyncio.TimerHandle] = None

    @property
    def is_passive(self) -> bool:
        return not self.configuration.is_active_alert

    def to_payload(self) -> dict:
        return {
            "id": self.id,
            "type": self.configuration.type.value,
            "is_active_alert": self.configuration.is_active_alert,
            "configuration": self.configuration.model_dump(mode="json"),
        }


class AlertPresenter:
    """
    The presentation side of the alert queue.

    Turns alert configurations into queue requests, "renders" an admitted
    alert by publishing it to stream subscribers, applies the dismissal rules
    (buttons, taps, text-field validation, passive timeouts) and tells the
    coordinator when the on-screen alert is gone.
    """

    def __init__(self, coordinator: AlertQueueCoordinator, broadcaster: EventBroadcaster,
                 passive_duration: float = 2.0):
        self.coordinator = coordinator
        self.broadcaster = broadcaster
        self.passive_duration = passive_duration
        self._alerts: Dict[str, PresentedAlert] = {}
        self._lock = threading.RLock()

    def show(self, configuration: AlertConfiguration) -> str:
        """Queues an alert for presentation and returns its id."""
        with self._lock:
            alert_id = str(uuid.uuid4())[:8]
            while alert_id in self._alerts:
                alert_id = str(uuid.uuid4())[:8]
            self._alerts[alert_id] = PresentedAlert(id=alert_id, configuration=configuration)
            self.broadcaster.publish("alert_queued", {"id": alert_id})
            self.coordinator.enqueue(AlertRequest(identity=alert_id, presenter=self._present))
        return alert_id

    def _present(self, request: AlertRequest) -> None:
        alert = self._alerts[request.identity]
        alert.status = AlertStatus.ACTIVE
        logger.info(f"Alert {alert.id} on screen: {alert.configuration.title!r} ({alert.configuration.type.value})")
        self.broadcaster.publish("alert_presented", alert.to_payload())

        if alert.is_passive:
            self._schedule_auto_dismiss(alert)

    def _schedule_auto_dismiss(self, alert: PresentedAlert) -> None:
        duration = alert.configuration.duration or self.passive_duration
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning(f"No running event loop, passive alert {alert.id} will wait for an explicit dismissal.")
            return
        alert.timer = loop.call_later(duration, self.dismiss, alert.id, DismissReason.TIMEOUT)
        logger.debug(f"Passive alert {alert.id} will dismiss itself in {duration}s.")

    def get(self, alert_id: str) -> PresentedAlert:
        alert = self._alerts.get(alert_id)
        if alert is None:
            raise AlertNotFoundError(f"Alert {alert_id} not found")
        return alert

    def active_alert(self) -> Optional[PresentedAlert]:
        request = self.coordinator.active
        if request is None:
            return None
        return self._alerts.get(request.identity)

    def details(self, alert_id: str) -> AlertDetails:
        alert = self.get(alert_id)
        return AlertDetails(
            id=alert.id,
            status=alert.status.value,
            type=alert.configuration.type,
            is_active_alert=alert.configuration.is_active_alert,
            position=self.coordinator.position(alert.id),
            error=alert.error,
            configuration=alert.configuration,
        )

    def snapshot(self) -> Dict[str, object]:
        active = self.coordinator.active
        return {
            "state": self.coordinator.state.value,
            "active": active.identity if active else None,
            "pending": [request.identity for request in self.coordinator.pending],
        }

    def _require_active(self, alert_id: str) -> PresentedAlert:
        alert = self.get(alert_id)
        if alert.status != AlertStatus.ACTIVE:
            raise AlertNotActiveError(f"Alert {alert_id} is not on screen ({alert.status.value})")
        return alert

    def dismiss(self, alert_id: str, reason: DismissReason = DismissReason.EXPLICIT) -> bool:
        """
        Dismisses the on-screen alert and lets the queue move on.

        Returns False, without changing anything, when the alert is not the
        one on screen; a second dismissal of the same alert is harmless.
        """
        with self._lock:
            alert = self._alerts.get(alert_id)
            if alert is None or alert.status != AlertStatus.ACTIVE:
                logger.debug(f"Ignoring dismissal of alert {alert_id}: not on screen.")
                return False

            if alert.timer is not None:
                alert.timer.cancel()
                alert.timer = None

            # Passive standard alerts run every action's completion when they go away
            if alert.is_passive and alert.configuration.type in (AlertType.FULL_STANDARD, AlertType.CUSTOM_VIEW):
                for index in range(len(alert.configuration.actions)):
                    self._complete_action(alert, index)

            del self._alerts[alert_id]
            reason = DismissReason(reason)
            logger.info(f"Alert {alert_id} dismissed ({reason.value}).")
            self.broadcaster.publish("alert_dismissed", {"id": alert_id, "reason": reason.value})
            self.coordinator.notify_dismissed()
            return True

    def _complete_action(self, alert: PresentedAlert, index: int) -> None:
        action = alert.configuration.actions[index]
        self.broadcaster.publish("action_completed", {"id": alert.id, "action": index, "title": action.title})

    def trigger_action(self, alert_id: str, index: int, inputs: Sequence[Optional[str]] = ()) -> bool:
        """
        Presses one of the active alert's actions.

        Text-field input is validated first; a rejected input is recorded on
        the alert and raised as TextFieldValidationError, and the alert stays
        up. Returns whether the action dismissed the alert.
        """
        with self._lock:
            alert = self._require_active(alert_id)
            actions = alert.configuration.actions
            if not 0 <= index < len(actions):
                raise ActionNotFoundError(f"Alert {alert_id} has no action {index}")
            action = actions[index]
            if not action.is_button:
                raise ActionNotFoundError(f"Action {index} of alert {alert_id} is not a button")
            if not action.is_enabled:
                raise ActionDisabledError(f"Action {index} of alert {alert_id} is disabled")

            self._validate_inputs(alert, list(inputs))
            alert.error = None
            self._complete_action(alert, index)

            if action.should_dismiss:
                return self.dismiss(alert_id, DismissReason.ACTION)
            return False

    def _validate_inputs(self, alert: PresentedAlert, inputs: List[Optional[str]]) -> None:
        for field_index, text_field in enumerate(alert.configuration.text_fields):
            value = inputs[field_index] if field_index < len(inputs) else None
            error = text_field.validate_input(value)
            if error is not None:
                alert.error = error
                logger.info(f"Alert {alert.id}: text field {field_index} rejected input: {error}")
                self.broadcaster.publish("alert_error", {"id": alert.id, "field": field_index, "message": error})
                raise TextFieldValidationError(error, field_index)

    def tap(self, alert_id: str, inside: bool) -> bool:
        """Handles a tap on or around the active alert. Returns whether it dismissed the alert."""
        with self._lock:
            alert = self._require_active(alert_id)
            configuration = alert.configuration
            if inside:
                # Only alerts with actions respond to a tap inside
                if configuration.actions and (alert.is_passive or configuration.tap_inside_to_dismiss):
                    return self.dismiss(alert_id, DismissReason.TAP_INSIDE)
            elif configuration.touch_outside_to_dismiss:
                return self.dismiss(alert_id, DismissReason.TAP_OUTSIDE)
            return False
