"""Models for availability module.

Contains:
- Bed: a schedulable, time-shared station
- Booking: a reservation of a bed for a half-open [start_time, end_time) window
"""

from decimal import Decimal

from django.conf import settings
from django.db import models
from django.db.models import F, Q

from bedbooking.models import BookingBaseModel, SoftDeleteModel

from .engine import BedRecord, BookingRecord


class Bed(BookingBaseModel):
    """A bed or station that can be booked.

    A bed has no temporal state of its own. Whether it is occupied or
    booked soon is derived from its bookings by the availability engine;
    only the maintenance flag is stored.
    """

    bed_number = models.CharField(max_length=20, unique=True)
    display_name = models.CharField(max_length=100, blank=True)
    bed_type = models.CharField(max_length=50, blank=True)
    grid_row = models.PositiveSmallIntegerField(default=0)
    grid_col = models.PositiveSmallIntegerField(default=0)
    hourly_rate = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0.00"),
    )
    description = models.TextField(blank=True)
    under_maintenance = models.BooleanField(
        default=False,
        help_text="Blocks all scheduling while set",
    )

    class Meta:
        ordering = ["grid_row", "grid_col"]

    def __str__(self):
        return self.display_name or f"Table {self.bed_number}"

    def to_record(self) -> BedRecord:
        return BedRecord(id=self.pk, under_maintenance=self.under_maintenance)


class Booking(SoftDeleteModel):
    """A reservation of a bed for a time window.

    Key invariants:
    - start_time < end_time (check constraint)
    - No two non-cancelled bookings on one bed overlap (enforced by
      services.create_booking/reschedule_booking under a bed row lock)
    - Deleting only stamps deleted_at; invoices keep pointing at the row

    Inherits: id (UUID), created_at, updated_at, deleted_at,
    objects (excludes deleted), all_objects (includes deleted).
    """

    STATUS_CHOICES = [
        ("pending", "Pending"),
        ("confirmed", "Confirmed"),
        ("in_progress", "In Progress"),
        ("completed", "Completed"),
        ("cancelled", "Cancelled"),
    ]

    PAYMENT_STATUS_CHOICES = [
        ("pending", "Pending"),
        ("paid", "Paid"),
        ("refunded", "Refunded"),
    ]

    booking_number = models.CharField(
        max_length=30,
        unique=True,
        help_text="Day-scoped human-readable number, e.g. BK2601260001",
    )
    bed = models.ForeignKey(
        Bed,
        on_delete=models.PROTECT,
        related_name="bookings",
    )
    customer_id = models.CharField(
        max_length=255,
        blank=True,
        help_text="Opaque customer reference (CharField for UUID support)",
    )
    membership_package = models.ForeignKey(
        "memberships.MembershipPackage",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="bookings",
        help_text="Prepaid package this booking draws a session from",
    )
    package_ref = models.CharField(
        max_length=255,
        blank=True,
        help_text="Opaque reference to the service package booked",
    )

    start_time = models.DateTimeField()
    end_time = models.DateTimeField()

    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default="pending",
    )
    payment_status = models.CharField(
        max_length=20,
        choices=PAYMENT_STATUS_CHOICES,
        default="pending",
    )

    # Price snapshot at booking time
    total_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
    )
    final_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
    )

    notes = models.TextField(blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="bed_bookings_created",
    )

    class Meta(SoftDeleteModel.Meta):
        ordering = ["start_time"]
        indexes = [
            models.Index(fields=["bed", "start_time"], name="booking_bed_start_idx"),
            models.Index(fields=["status", "payment_status"], name="booking_status_payment_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(end_time__gt=F("start_time")),
                name="booking_end_after_start",
            ),
        ]

    def __str__(self):
        return self.booking_number

    def to_record(self) -> BookingRecord:
        return BookingRecord(
            id=self.pk,
            bed_id=self.bed_id,
            start=self.start_time,
            end=self.end_time,
            status=self.status,
            payment_status=self.payment_status,
        )
