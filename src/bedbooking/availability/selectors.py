"""Read-only queries for availability module.

Selectors narrow the candidate set in SQL; the engine makes the final call.
"""

from datetime import date, datetime, time, timedelta

from django.db.models import QuerySet
from django.utils import timezone

from .models import Bed, Booking


def beds_by_grid() -> QuerySet:
    """All beds in floor-plan order."""
    return Bed.objects.order_by("grid_row", "grid_col")


def bookings_in_window(start: datetime, end: datetime) -> QuerySet:
    """Non-cancelled, non-deleted bookings on any bed overlapping [start, end)."""
    return Booking.objects.filter(
        start_time__lt=end,
        end_time__gt=start,
    ).exclude(status="cancelled")


def bookings_overlapping(
    bed: Bed,
    start: datetime,
    end: datetime,
    exclude_id=None,
) -> QuerySet:
    """Non-cancelled, non-deleted bookings on bed overlapping [start, end)."""
    qs = bookings_in_window(start, end).filter(bed=bed)

    if exclude_id is not None:
        qs = qs.exclude(pk=exclude_id)

    return qs.order_by("start_time")


def bookings_for_day(bed: Bed, day: date) -> QuerySet:
    """Non-cancelled bookings on bed touching the given local day."""
    tz = timezone.get_current_timezone()
    day_start = datetime.combine(day, time.min, tzinfo=tz)
    day_end = day_start + timedelta(days=1)
    return bookings_overlapping(bed, day_start, day_end)


def bookings_holding_beds(now: datetime, horizon: timedelta) -> QuerySet:
    """Paid confirmed/in-progress bookings that cover now or start before now + horizon.

    The superset the status engine needs for a dashboard of every bed.
    """
    return Booking.objects.filter(
        start_time__lte=now + horizon,
        end_time__gte=now,
        status__in=["confirmed", "in_progress"],
        payment_status="paid",
    )


def bookings_with_invoice_payment() -> QuerySet:
    """Pks of bookings with money taken on a draft or completed invoice."""
    return Booking.all_objects.filter(
        invoices__status__in=["draft", "completed"],
        invoices__payment_status__in=["partial", "paid"],
    ).values("pk")
