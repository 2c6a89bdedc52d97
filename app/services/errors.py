"""Service-level exceptions.

All of them are ``ValueError`` subclasses so callers that only care that
an operation was rejected can keep catching ``ValueError``.
"""


class ServiceError(ValueError):
    """Base exception for service errors."""

    pass


class NotFound(ServiceError):
    """Raised when a time entry, project, task or running timer is missing."""

    pass


class Unauthorized(ServiceError):
    """Raised when the acting user fails a project capability check."""

    def __init__(self, message: str = "Not allowed to access this project"):
        super().__init__(message)


class InvalidRange(ServiceError):
    """Raised when an end instant is before the start instant."""

    def __init__(self, message: str = "End time must not be before start time"):
        super().__init__(message)


class InvalidState(ServiceError):
    """Raised when a lifecycle transition is not allowed from the current state."""

    pass


class TimerAlreadyRunning(ServiceError):
    """Raised when a user starts a timer while another is open."""

    def __init__(self, entry_id: str | None = None):
        self.entry_id = entry_id
        super().__init__("Timer already running")


class Conflict(ServiceError):
    """Raised when a write would duplicate a unique record."""

    pass
