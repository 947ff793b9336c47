"""Error taxonomy for the challenge tracker."""


class TrackerError(Exception):
    """Base class for all tracker errors."""

    pass


class NotFoundError(TrackerError):
    """Raised when a requested challenge does not exist."""

    pass


class ValidationError(TrackerError):
    """Raised when input violates a business rule (e.g. start after end)."""

    pass


class PersistenceError(TrackerError):
    """Raised when a repository read or write fails."""

    pass


class TransitionError(TrackerError):
    """Raised when a status change is not allowed by the transition table."""

    def __init__(self, current, requested):
        self.current = getattr(current, "value", current)
        self.requested = getattr(requested, "value", requested)
        super().__init__(
            f"Cannot transition challenge from '{self.current}' to '{self.requested}'"
        )
