"""Exceptions for availability module."""

from bedbooking.exceptions import ConflictError, InvalidStateError, ValidationError


class BookingConflictError(ConflictError):
    """Requested window overlaps existing bookings on the bed."""

    def __init__(self, bed, conflicts: list):
        self.bed = bed
        self.conflicts = conflicts
        numbers = ", ".join(str(b) for b in conflicts)
        super().__init__(f"Bed {bed} already booked in this window: {numbers}")


class BedUnderMaintenanceError(InvalidStateError):
    """Bed is under maintenance and cannot be scheduled."""

    def __init__(self, bed):
        self.bed = bed
        super().__init__(f"Bed {bed} is under maintenance")


class BookingStateError(InvalidStateError):
    """Booking cannot be changed in its current status."""
    pass


class InvalidBookingValue(ValidationError):
    """A booking status or payment status value is not recognised."""

    def __init__(self, field: str, value: str, allowed):
        self.field = field
        self.value = value
        super().__init__(f"Invalid {field} '{value}', expected one of {sorted(allowed)}")
