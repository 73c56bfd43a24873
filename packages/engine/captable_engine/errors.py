"""Exception types raised by the repository and engine entry points."""


class CapTableError(Exception):
    """Base class for cap table errors."""
    pass


class RecordNotFoundError(CapTableError, KeyError):
    """Raised when an id does not resolve to a record."""

    def __init__(self, record_type: str, record_id: str):
        self.record_type = record_type
        self.record_id = record_id
        super().__init__(f'{record_type} with ID "{record_id}" not found')

    def __str__(self) -> str:
        # KeyError.__str__ would repr() the message
        return self.args[0]


class CapacityExceededError(CapTableError, ValueError):
    """Raised when an issuance or grant would exceed authorized capacity."""
    pass


class InvalidOperationError(CapTableError, ValueError):
    """Raised when an operation conflicts with the current records."""
    pass


class InvalidDateError(CapTableError, ValueError):
    """Raised when a date string cannot be parsed."""
    pass
