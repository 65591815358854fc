"""Domain errors shared by the core, workflows and adapters."""


class DaymarkError(Exception):
    """Base class for errors surfaced to the user as a short notification."""

    pass


class ConflictError(DaymarkError):
    """Raised when starting a timer while another one is already active."""

    def __init__(self, activity_name: str = ""):
        detail = f" ({activity_name})" if activity_name else ""
        super().__init__(f"A timer is already active{detail}. Stop it first.")


class NoActiveTimerError(DaymarkError):
    """Raised when stopping or discarding while no timer is running."""

    def __init__(self):
        super().__init__("No timer is running.")


class InvalidGoalError(DaymarkError):
    """Raised for a non-positive weekly goal."""

    def __init__(self, minutes):
        super().__init__(f"Weekly goal must be a positive number of minutes, got {minutes!r}")


class InvalidDurationError(DaymarkError):
    """Raised for a non-positive quick-entry duration."""

    def __init__(self, minutes):
        super().__init__(f"Duration must be a positive number of minutes, got {minutes!r}")


class NotFoundError(DaymarkError):
    """Raised when a countdown or activity cannot be found."""

    pass


class StorageError(DaymarkError):
    """Raised by adapters when a read or write fails."""

    pass
