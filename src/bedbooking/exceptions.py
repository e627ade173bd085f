"""Error taxonomy shared by every bedbooking module.

Each engine operation either succeeds or raises exactly one of these kinds.
App modules subclass them for more specific failures.
"""


class BedBookingError(Exception):
    """Base exception for bedbooking errors."""
    pass


class ValidationError(BedBookingError):
    """Malformed input: non-positive amounts or quantities, empty windows, overpayment."""
    pass


class ConflictError(BedBookingError):
    """An allocation would overlap an existing one."""
    pass


class InvalidStateError(BedBookingError):
    """Operation not permitted in the entity's current state."""
    pass


class NotFoundError(BedBookingError):
    """Referenced entity does not exist."""

    def __init__(self, entity: str, key):
        self.entity = entity
        self.key = key
        super().__init__(f"{entity} '{key}' not found")
