"""Fault types raised while automating feedback submission."""

from feedback_automator.domain.models import FeedbackRecord

AUTH_FAILURE_MESSAGE = "Failed to log in. Please check your credentials."


class AutomationError(Exception):
    """Base class for run-level faults."""


class AuthFault(AutomationError):
    """Login failed; the cause is deliberately not exposed."""

    def __init__(self) -> None:
        super().__init__(AUTH_FAILURE_MESSAGE)


class RemoteFault(AutomationError):
    """The portal answered a call with an application-level error."""

    def __init__(self, message: str, detail: object | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail


class TransportFault(RemoteFault):
    """The call never produced a usable portal response."""


class ContextFault(AutomationError):
    """Batch, semester or configuration could not be resolved."""


class RecordFault(AutomationError):
    """Processing a single feedback record failed."""

    def __init__(self, record: FeedbackRecord, cause: Exception) -> None:
        super().__init__(f"{record.subject_name}: {cause}")
        self.record = record
        self.cause = cause
