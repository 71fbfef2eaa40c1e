"""Exception types raised by the scheduling core.

Rule predicates never raise for bad per-interval data; these exceptions
are reserved for the entry points, which fail closed.
"""


class SchedulingError(Exception):
    """Base class for all scheduling errors."""


class ResourceNotFoundError(SchedulingError, LookupError):
    """No resource profile matches the requested id."""

    def __init__(self, resource_id: str):
        super().__init__(f"Unknown resource: {resource_id}")
        self.resource_id = resource_id


class InvalidInputError(SchedulingError, ValueError):
    """A slot, interval or resource profile is malformed."""


class DataUnavailableError(SchedulingError):
    """Busy-interval data could not be obtained from the calendar source."""
