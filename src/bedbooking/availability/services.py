"""Services for availability module.

Booking creation and edits, bed status and slot search. Every write runs in
one transaction that holds a row lock on the bed, so "check conflicts, then
insert" cannot interleave with another request for the same bed.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Optional

from django.db import transaction
from django.utils import timezone

from bedbooking import conf
from bedbooking.exceptions import NotFoundError
import bedbooking.memberships.engine as ledger
from bedbooking.memberships.exceptions import MembershipInactiveError
from bedbooking.sequence.services import next_sequence

from . import engine, selectors
from .exceptions import (
    BedUnderMaintenanceError,
    BookingConflictError,
    BookingStateError,
    InvalidBookingValue,
)
from .models import Bed, Booking

logger = logging.getLogger(__name__)

BOOKING_STATUSES = frozenset(value for value, _ in Booking.STATUS_CHOICES)
PAYMENT_STATUSES = frozenset(value for value, _ in Booking.PAYMENT_STATUS_CHOICES)


@dataclass(frozen=True)
class BedAvailability:
    """A bed with its derived display status."""

    bed: Bed
    status: str


def _booked_soon_window() -> timedelta:
    return timedelta(minutes=conf.get_setting("BOOKED_SOON_MINUTES"))


def _lock_bed(bed: Bed) -> Bed:
    try:
        return Bed.objects.select_for_update().get(pk=bed.pk)
    except Bed.DoesNotExist:
        raise NotFoundError("Bed", bed.pk)


def _ensure_free(bed: Bed, start: datetime, end: datetime, exclude_id=None) -> None:
    """Raise unless bed is schedulable and [start, end) is free. Caller holds the bed lock."""
    if bed.under_maintenance:
        raise BedUnderMaintenanceError(bed)

    clashing = conflicts(bed, start, end, exclude_booking_id=exclude_id)
    if clashing:
        raise BookingConflictError(bed, clashing)


def generate_booking_number(on: date) -> str:
    """Next booking number for the day, e.g. "BK2601260001"."""
    return next_sequence(
        "booking",
        prefix=conf.get_setting("BOOKING_NUMBER_PREFIX"),
        on=on,
        pad_width=conf.get_setting("NUMBER_PAD_WIDTH"),
    )


def conflicts(
    bed: Bed,
    start: datetime,
    end: datetime,
    exclude_booking_id=None,
) -> list[Booking]:
    """Return bookings on bed that overlap [start, end).

    Args:
        bed: The bed to check
        start: Window start
        end: Window end (exclusive)
        exclude_booking_id: Booking to ignore (the one being edited)

    Returns:
        Conflicting bookings ordered by start time; empty if the window is free

    Raises:
        ValidationError: If end <= start
    """
    engine.validate_window(start, end)

    candidates = {
        b.pk: b
        for b in selectors.bookings_overlapping(bed, start, end, exclude_id=exclude_booking_id)
    }
    records = engine.find_conflicts(
        (b.to_record() for b in candidates.values()),
        bed.pk,
        start,
        end,
        exclude_id=exclude_booking_id,
    )
    return [candidates[r.id] for r in records]


def bed_status(bed: Bed, clock=None) -> str:
    """Current display status of a bed."""
    now = conf.get_clock(clock).now()
    window = _booked_soon_window()
    bookings = selectors.bookings_holding_beds(now, window).filter(bed=bed)
    return engine.bed_status(
        bed.to_record(),
        [b.to_record() for b in bookings],
        now,
        booked_soon_window=window,
    )


def beds_with_status(clock=None) -> list[BedAvailability]:
    """Every bed in grid order with its display status, in two queries."""
    now = conf.get_clock(clock).now()
    window = _booked_soon_window()
    records = [b.to_record() for b in selectors.bookings_holding_beds(now, window)]

    return [
        BedAvailability(
            bed=bed,
            status=engine.bed_status(bed.to_record(), records, now, booked_soon_window=window),
        )
        for bed in selectors.beds_by_grid()
    ]


def available_beds(start: datetime, end: datetime) -> list[Bed]:
    """Beds free for the whole of [start, end), in grid order.

    Beds under maintenance are left out.

    Raises:
        ValidationError: If end <= start
    """
    engine.validate_window(start, end)
    records = [b.to_record() for b in selectors.bookings_in_window(start, end)]
    return [
        bed
        for bed in selectors.beds_by_grid().filter(under_maintenance=False)
        if not engine.find_conflicts(records, bed.pk, start, end)
    ]


def available_slots(
    bed: Bed,
    day: date,
    duration_minutes: int,
    clock=None,
) -> list[tuple[datetime, datetime]]:
    """Bookable (start, end) pairs for a bed on a day.

    Uses the configured business hours and slot step. A bed under
    maintenance has no slots.

    Raises:
        ValidationError: If duration_minutes is not positive
    """
    now = conf.get_clock(clock).now()
    slots = engine.candidate_slots(
        [b.to_record() for b in selectors.bookings_for_day(bed, day)],
        bed.pk,
        day,
        duration_minutes,
        now,
        opens_at=conf.get_setting("OPENS_AT"),
        closes_at=conf.get_setting("CLOSES_AT"),
        step_minutes=conf.get_setting("SLOT_STEP_MINUTES"),
        tzinfo=timezone.get_current_timezone(),
    )
    if bed.under_maintenance:
        return []
    return list(slots)


@transaction.atomic
def create_booking(
    bed: Bed,
    start: datetime,
    end: datetime,
    *,
    customer_id: str = "",
    package_ref: str = "",
    membership_package=None,
    total_amount: Decimal = Decimal("0.00"),
    status: str = "pending",
    payment_status: str = "pending",
    notes: str = "",
    created_by=None,
    clock=None,
) -> Booking:
    """Book a bed for [start, end).

    Locks the bed row, re-checks conflicts and inserts in one transaction.

    Args:
        bed: The bed to book
        start: Booking start
        end: Booking end (exclusive)
        customer_id: Opaque customer reference
        package_ref: Opaque reference of the service package sold
        membership_package: Prepaid package the booking will draw from
        total_amount: Price snapshot (also used as final_amount)
        status: Initial booking status
        payment_status: Initial payment status
        notes: Free text
        created_by: User making the booking
        clock: Clock used for the booking number's day

    Returns:
        Created Booking

    Raises:
        ValidationError: If end <= start or a status value is unknown
        MembershipInactiveError: If membership_package is inactive or used up
        BedUnderMaintenanceError: If the bed is under maintenance
        BookingConflictError: If the window overlaps another booking
        NotFoundError: If the bed no longer exists
    """
    engine.validate_window(start, end)
    if status not in BOOKING_STATUSES:
        raise InvalidBookingValue("status", status, BOOKING_STATUSES)
    if payment_status not in PAYMENT_STATUSES:
        raise InvalidBookingValue("payment_status", payment_status, PAYMENT_STATUSES)
    if membership_package is not None:
        membership_package.refresh_from_db()
        package = membership_package.to_record()
        if not ledger.is_active(package):
            raise MembershipInactiveError(
                package.status, package.sessions_used, package.num_of_sessions
            )

    bed = _lock_bed(bed)
    if status != "cancelled":
        _ensure_free(bed, start, end)

    now = conf.get_clock(clock).now()
    booking = Booking.objects.create(
        booking_number=generate_booking_number(timezone.localdate(now)),
        bed=bed,
        customer_id=customer_id,
        package_ref=package_ref,
        membership_package=membership_package,
        start_time=start,
        end_time=end,
        status=status,
        payment_status=payment_status,
        total_amount=total_amount,
        final_amount=total_amount,
        notes=notes,
        created_by=created_by,
    )

    logger.info(
        f"Booking created: {booking.booking_number}, bed={bed.bed_number}, "
        f"start={start.isoformat()}, end={end.isoformat()}"
    )
    return booking


@transaction.atomic
def reschedule_booking(
    booking: Booking,
    start: datetime,
    end: datetime,
    *,
    bed: Optional[Bed] = None,
) -> Booking:
    """Move a booking to a new window, optionally on another bed.

    The booking's own current window is ignored when checking conflicts.

    Raises:
        ValidationError: If end <= start
        BookingStateError: If the booking is cancelled or completed
        BedUnderMaintenanceError: If the target bed is under maintenance
        BookingConflictError: If the new window overlaps another booking
    """
    engine.validate_window(start, end)
    if booking.status in ("cancelled", "completed"):
        raise BookingStateError(
            f"Cannot reschedule booking {booking.booking_number} in status={booking.status}"
        )

    target = _lock_bed(bed or booking.bed)
    _ensure_free(target, start, end, exclude_id=booking.pk)

    booking.bed = target
    booking.start_time = start
    booking.end_time = end
    booking.save(update_fields=["bed", "start_time", "end_time", "updated_at"])

    logger.info(
        f"Booking {booking.booking_number} rescheduled to bed={target.bed_number}, "
        f"start={start.isoformat()}, end={end.isoformat()}"
    )
    return booking


@transaction.atomic
def update_booking_status(booking: Booking, status: str) -> Booking:
    """Set a booking's status.

    Reviving a cancelled booking puts it back into scheduling, so its window
    is re-checked under the bed lock first.

    Raises:
        InvalidBookingValue: If status is unknown
        BookingConflictError: If a revived booking now overlaps another one
    """
    if status not in BOOKING_STATUSES:
        raise InvalidBookingValue("status", status, BOOKING_STATUSES)

    if booking.status == "cancelled" and status != "cancelled":
        bed = _lock_bed(booking.bed)
        _ensure_free(bed, booking.start_time, booking.end_time, exclude_id=booking.pk)

    booking.status = status
    booking.save(update_fields=["status", "updated_at"])
    return booking


@transaction.atomic
def update_payment_status(booking: Booking, payment_status: str) -> Booking:
    """Set a booking's payment status.

    Raises:
        InvalidBookingValue: If payment_status is unknown
    """
    if payment_status not in PAYMENT_STATUSES:
        raise InvalidBookingValue("payment_status", payment_status, PAYMENT_STATUSES)

    booking.payment_status = payment_status
    booking.save(update_fields=["payment_status", "updated_at"])
    return booking


def _append_note(booking: Booking, note: str) -> None:
    booking.notes = f"{booking.notes} | {note}" if booking.notes else note


@transaction.atomic
def cancel_booking(booking: Booking, reason: str = "") -> Booking:
    """Cancel a booking, releasing its window.

    Raises:
        BookingStateError: If the booking is already completed
    """
    if booking.status == "completed":
        raise BookingStateError(f"Cannot cancel completed booking {booking.booking_number}")

    booking.status = "cancelled"
    if reason:
        _append_note(booking, reason)
    booking.save(update_fields=["status", "notes", "updated_at"])

    logger.info(f"Booking {booking.booking_number} cancelled")
    return booking


def delete_booking(booking: Booking) -> Booking:
    """Remove a booking from scheduling. The row is kept for linked invoices."""
    booking.delete()
    logger.info(f"Booking {booking.booking_number} deleted")
    return booking


@transaction.atomic
def advance_booking_statuses(clock=None) -> dict:
    """Move bookings along as time passes.

    - in_progress bookings that have ended become completed
    - confirmed bookings whose window contains now become in_progress
    - confirmed, unpaid bookings past the no-show grace period are cancelled,
      unless a draft or completed invoice already holds a payment for them

    Returns:
        Counts per transition: {"completed": n, "started": n, "cancelled": n}
    """
    now = conf.get_clock(clock).now()
    grace_minutes = conf.get_setting("NO_SHOW_GRACE_MINUTES")
    grace = timedelta(minutes=grace_minutes)

    completed = Booking.objects.filter(
        status="in_progress",
        end_time__lt=now,
    ).update(status="completed", updated_at=now)

    overdue = list(
        Booking.objects.select_for_update()
        .filter(status="confirmed", start_time__lt=now - grace)
        .exclude(payment_status="paid")
        .exclude(pk__in=selectors.bookings_with_invoice_payment())
    )
    for booking in overdue:
        booking.status = "cancelled"
        _append_note(booking, f"Auto-cancelled: no payment received within {grace_minutes} minutes.")
        booking.save(update_fields=["status", "notes", "updated_at"])
        logger.info(f"Booking {booking.booking_number} auto-cancelled as no-show")

    started = Booking.objects.filter(
        status="confirmed",
        start_time__lte=now,
        end_time__gt=now,
    ).update(status="in_progress", updated_at=now)

    return {"completed": completed, "started": started, "cancelled": len(overdue)}
