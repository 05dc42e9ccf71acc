class AlertQueueError(Exception):
    """Base class for errors raised by the presentation layer."""
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AlertNotFoundError(AlertQueueError):
    status_code = 404


class AlertNotActiveError(AlertQueueError):
    status_code = 409


class ActionNotFoundError(AlertQueueError):
    status_code = 404


class ActionDisabledError(AlertQueueError):
    status_code = 409


class TextFieldValidationError(AlertQueueError):
    """Input for one of the alert's text fields was rejected."""
    status_code = 422

    def __init__(self, message: str, field_index: int):
        super().__init__(message)
        self.field_index = field_index
