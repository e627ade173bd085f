"""Exceptions for bedbooking.sequence."""

from bedbooking.exceptions import InvalidStateError


class SequenceError(InvalidStateError):
    """Base exception for sequence errors."""
    pass


class SequenceExhaustedError(SequenceError):
    """Raised when a day's counter outgrows its padding width."""

    def __init__(self, scope: str, period, pad_width: int):
        self.scope = scope
        self.period = period
        self.pad_width = pad_width
        super().__init__(
            f"Sequence '{scope}' for {period} exceeded {pad_width} digits"
        )
