from typing import Optional


class SchedulingError(Exception):
    """Base exception for srscore errors."""

    def __init__(
        self, message: str, original_exception: Optional[Exception] = None
    ):
        super().__init__(message)
        self.original_exception = original_exception


class InvalidRatingError(SchedulingError, ValueError):
    """Raised when a rating or quality score is outside its closed domain."""

    pass


class InvalidParametersError(SchedulingError, ValueError):
    """Raised when scheduler parameters cannot be built from the given
    defaults and overrides."""

    pass


class InvalidStateError(SchedulingError, ValueError):
    """Raised when a scheduling result pairs a state with an inconsistent
    ladder step."""

    pass
