"""Availability engine.

Pure scheduling rules over plain records: interval conflicts, the display
status of a bed, and the bookable slots of a day. Nothing here touches the
database or reads the wall clock; callers pass bookings and "now" in.

Intervals are half-open, [start, end). Two windows overlap when
a.start < b.end and a.end > b.start, so a booking ending at 11:00 and one
starting at 11:00 do not conflict.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from datetime import tzinfo as TzInfo
from typing import Iterable, Iterator, Optional

from bedbooking.exceptions import ValidationError


class BedStatus:
    """Display status of a bed."""

    MAINTENANCE = "maintenance"
    OCCUPIED = "occupied"
    BOOKED_SOON = "booked_soon"
    AVAILABLE = "available"


CANCELLED = "cancelled"
# Only paid bookings in these states drive the display status
STATUS_BLOCKING = frozenset({"confirmed", "in_progress"})
PAID = "paid"

BOOKED_SOON_WINDOW = timedelta(minutes=30)
OPENS_AT = time(8, 0)
CLOSES_AT = time(22, 0)
SLOT_STEP_MINUTES = 30


@dataclass(frozen=True)
class BedRecord:
    """The scheduling-relevant part of a bed."""

    id: object
    under_maintenance: bool = False


@dataclass(frozen=True)
class BookingRecord:
    """The scheduling-relevant part of a booking."""

    id: object
    bed_id: object
    start: datetime
    end: datetime
    status: str = "pending"
    payment_status: str = "pending"

    @property
    def is_cancelled(self) -> bool:
        return self.status == CANCELLED

    @property
    def holds_bed(self) -> bool:
        """True when the booking counts toward occupied/booked_soon."""
        return (
            not self.is_cancelled
            and self.status in STATUS_BLOCKING
            and self.payment_status == PAID
        )


def validate_window(start: datetime, end: datetime) -> None:
    """Raise ValidationError unless start < end."""
    if end <= start:
        raise ValidationError(f"Window end {end} must be after start {start}")


def overlaps(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """Half-open interval overlap test."""
    return a_start < b_end and a_end > b_start


def find_conflicts(
    bookings: Iterable[BookingRecord],
    bed_id,
    start: datetime,
    end: datetime,
    exclude_id=None,
) -> list[BookingRecord]:
    """Return non-cancelled bookings on bed_id that overlap [start, end).

    Args:
        bookings: Candidate bookings (may include other beds)
        bed_id: The bed being checked
        start: Window start
        end: Window end (exclusive)
        exclude_id: Booking to ignore, used when re-checking a booking being edited

    Returns:
        Conflicting bookings ordered by start. Empty means the window is free.

    Raises:
        ValidationError: If end <= start
    """
    validate_window(start, end)

    conflicts = {
        booking
        for booking in bookings
        if booking.bed_id == bed_id
        and not booking.is_cancelled
        and (exclude_id is None or booking.id != exclude_id)
        and overlaps(booking.start, booking.end, start, end)
    }
    return sorted(conflicts, key=lambda b: (b.start, b.end))


def bed_status(
    bed: BedRecord,
    bookings: Iterable[BookingRecord],
    now: datetime,
    booked_soon_window: timedelta = BOOKED_SOON_WINDOW,
) -> str:
    """Derive the display status of a bed at `now`.

    Maintenance short-circuits. Otherwise a paid confirmed/in-progress
    booking covering now means occupied, and one starting within
    booked_soon_window means booked_soon. Unpaid bookings never change the
    displayed status.
    """
    if bed.under_maintenance:
        return BedStatus.MAINTENANCE

    holding = [b for b in bookings if b.bed_id == bed.id and b.holds_bed]

    if any(b.start <= now <= b.end for b in holding):
        return BedStatus.OCCUPIED

    horizon = now + booked_soon_window
    if any(now < b.start <= horizon for b in holding):
        return BedStatus.BOOKED_SOON

    return BedStatus.AVAILABLE


@dataclass(frozen=True)
class SlotSearch:
    """Lazy, restartable sequence of bookable (start, end) pairs for one day.

    Iterating walks the fixed step grid from opens_at; every new iteration
    starts over. Construct through candidate_slots().
    """

    bookings: tuple
    bed_id: object
    day: date
    duration: timedelta
    now: datetime
    opens_at: time = OPENS_AT
    closes_at: time = CLOSES_AT
    step: timedelta = timedelta(minutes=SLOT_STEP_MINUTES)
    tzinfo: Optional[TzInfo] = None

    def __iter__(self) -> Iterator[tuple[datetime, datetime]]:
        business_start = datetime.combine(self.day, self.opens_at, tzinfo=self.tzinfo)
        business_end = datetime.combine(self.day, self.closes_at, tzinfo=self.tzinfo)

        current = business_start
        while current < business_end:
            slot_end = current + self.duration
            if (
                slot_end <= business_end
                and current >= self.now
                and not find_conflicts(self.bookings, self.bed_id, current, slot_end)
            ):
                yield current, slot_end
            current += self.step


def candidate_slots(
    bookings: Iterable[BookingRecord],
    bed_id,
    day: date,
    duration_minutes: int,
    now: datetime,
    *,
    opens_at: time = OPENS_AT,
    closes_at: time = CLOSES_AT,
    step_minutes: int = SLOT_STEP_MINUTES,
    tzinfo: Optional[TzInfo] = None,
) -> SlotSearch:
    """Enumerate free slots of `duration_minutes` on `day` for a bed.

    Steps through [opens_at, closes_at) every step_minutes regardless of the
    duration, yielding (t, t + duration) when the slot ends by closing time,
    has no conflict and does not start before now.

    Raises:
        ValidationError: If duration_minutes or step_minutes is not positive
    """
    if duration_minutes <= 0:
        raise ValidationError(f"Duration must be positive, got {duration_minutes} minutes")
    if step_minutes <= 0:
        raise ValidationError(f"Slot step must be positive, got {step_minutes} minutes")

    return SlotSearch(
        bookings=tuple(bookings),
        bed_id=bed_id,
        day=day,
        duration=timedelta(minutes=duration_minutes),
        now=now,
        opens_at=opens_at,
        closes_at=closes_at,
        step=timedelta(minutes=step_minutes),
        tzinfo=tzinfo,
    )
