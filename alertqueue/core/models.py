import re
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class ActionType(str, Enum):
    NORMAL = "normal"
    DESTRUCTIVE = "destructive"
    CANCEL = "cancel"
    PASSIVE = "passive"
    CUSTOM = "custom"


class AlertType(str, Enum):
    FULL_STANDARD = "full_standard"
    CUSTOM_VIEW = "custom_view"
    CUSTOM_BUTTON = "custom_button"
    FULL_CUSTOM = "full_custom"


class AlertAction(BaseModel):
    """A button (or, for passive alerts, a completion hook) attached to an alert"""
    title: Optional[str] = None
    type: ActionType = ActionType.NORMAL
    should_dismiss: bool = True  # Dismiss the alert once the action completes
    is_enabled: bool = True

    @property
    def is_button(self) -> bool:
        return self.type != ActionType.PASSIVE


class TextField(BaseModel):
    """An input field shown in the alert, with optional validation rules"""
    placeholder: Optional[str] = None
    required: bool = False
    min_length: Optional[int] = Field(default=None, ge=0)
    max_length: Optional[int] = Field(default=None, ge=1)
    pattern: Optional[str] = None  # Regular expression the whole input must match
    error_message: Optional[str] = None  # Shown instead of the generated message

    @field_validator("pattern")
    @classmethod
    def pattern_must_compile(cls, value):
        if value is not None:
            try:
                re.compile(value)
            except re.error as e:
                raise ValueError(f"invalid pattern: {e}")
        return value

    @model_validator(mode="after")
    def lengths_must_be_ordered(self):
        if self.min_length is not None and self.max_length is not None and self.min_length > self.max_length:
            raise ValueError("min_length must not exceed max_length")
        return self

    def validate_input(self, value: Optional[str]) -> Optional[str]:
        """Returns an error message for the given input, or None when it is acceptable."""
        value = value or ""
        if not value:
            if self.required:
                return self.error_message or "This field is required"
            return None
        if self.min_length is not None and len(value) < self.min_length:
            return self.error_message or f"Must be at least {self.min_length} characters"
        if self.max_length is not None and len(value) > self.max_length:
            return self.error_message or f"Must be at most {self.max_length} characters"
        if self.pattern is not None and not re.fullmatch(self.pattern, value):
            return self.error_message or "Invalid format"
        return None


class AlertConfiguration(BaseModel):
    """Everything the presentation layer needs to show one alert"""
    title: Optional[str] = None
    message: Optional[str] = None
    actions: List[AlertAction] = Field(default_factory=list)
    text_fields: List[TextField] = Field(default_factory=list)
    duration: Optional[float] = Field(default=None, gt=0)  # Seconds a passive alert stays up
    touch_outside_to_dismiss: bool = False
    tap_inside_to_dismiss: bool = False
    custom_view: Optional[Any] = None  # Forwarded untouched to stream subscribers
    custom_buttons: Optional[Any] = None

    @property
    def type(self) -> AlertType:
        if self.custom_view is not None and self.custom_buttons is not None:
            return AlertType.FULL_CUSTOM
        if self.custom_view is not None:
            return AlertType.CUSTOM_VIEW
        if self.custom_buttons is not None:
            return AlertType.CUSTOM_BUTTON
        return AlertType.FULL_STANDARD

    @property
    def is_active_alert(self) -> bool:
        """An alert is active when the user has to interact with it; otherwise it is passive."""
        return bool(self.text_fields) or any(action.is_button for action in self.actions)


# Pydantic models for API request/response
class ActionTrigger(BaseModel):
    """Model for pressing one of the active alert's actions"""
    inputs: List[Optional[str]] = Field(default_factory=list)  # One value per text field, in order


class TapEvent(BaseModel):
    """Model for a tap on (inside=True) or around (inside=False) the active alert"""
    inside: bool = False


class AlertResponse(BaseModel):
    """Model for the response to a request that changes an alert"""
    success: bool
    message: str
    alert_id: Optional[str] = None
    status: Optional[str] = None
    position: Optional[int] = None  # 0 = on screen, n = n-th in line


class AlertDetails(BaseModel):
    id: str
    status: str
    type: AlertType
    is_active_alert: bool
    position: Optional[int] = None
    error: Optional[str] = None
    configuration: AlertConfiguration


class QueueSnapshot(BaseModel):
    state: str
    active: Optional[str] = None
    pending: List[str] = Field(default_factory=list)
