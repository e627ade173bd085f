"""Models for memberships module.

Contains:
- MembershipPackage: prepaid sessions and money owed by one holder
"""

from decimal import Decimal

from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.db.models import F, Q

from bedbooking.models import BookingBaseModel

from .engine import MembershipRecord


class MembershipPackage(BookingBaseModel):
    """A prepaid bundle of sessions held by a person or company.

    remaining_balance is a cache of
    full_payment * (1 - discount_percentage / 100) - advance_payment.
    It is only written through apply_record() after the ledger engine has
    recomputed it.
    """

    TYPE_CHOICES = [
        ("individual", "Individual"),
        ("company", "Company"),
    ]

    STATUS_CHOICES = [
        ("active", "Active"),
        ("inactive", "Inactive"),
        ("expired", "Expired"),
    ]

    membership_type = models.CharField(
        max_length=20,
        choices=TYPE_CHOICES,
        default="individual",
    )
    name = models.CharField(max_length=255)
    phone = models.CharField(max_length=30, blank=True)
    address = models.TextField(blank=True)
    nic = models.CharField(
        max_length=50,
        blank=True,
        help_text="National ID or company registration number",
    )
    birthday = models.DateField(null=True, blank=True)
    package_ref = models.CharField(
        max_length=255,
        blank=True,
        help_text="Opaque reference to the service package sold",
    )

    num_of_sessions = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    sessions_used = models.PositiveIntegerField(default=0)

    discount_percentage = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0")), MaxValueValidator(Decimal("100"))],
    )
    full_payment = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
    )
    advance_payment = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
    )
    remaining_balance = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Derived; written by the ledger engine only",
    )

    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default="active",
    )

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="membership_status_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(num_of_sessions__gte=1),
                name="membership_sessions_positive",
            ),
            models.CheckConstraint(
                condition=Q(sessions_used__lte=F("num_of_sessions")),
                name="membership_sessions_used_within_total",
            ),
            models.CheckConstraint(
                condition=Q(discount_percentage__gte=0) & Q(discount_percentage__lte=100),
                name="membership_discount_in_range",
            ),
        ]

    def __str__(self):
        return f"{self.name} ({self.sessions_used}/{self.num_of_sessions})"

    @property
    def remaining_sessions(self) -> int:
        return self.num_of_sessions - self.sessions_used

    def to_record(self) -> MembershipRecord:
        return MembershipRecord(
            num_of_sessions=self.num_of_sessions,
            sessions_used=self.sessions_used,
            discount_percentage=self.discount_percentage,
            full_payment=self.full_payment,
            advance_payment=self.advance_payment,
            remaining_balance=self.remaining_balance,
            status=self.status,
        )

    def apply_record(self, record: MembershipRecord) -> list[str]:
        """Copy ledger fields from record; returns the field names for save()."""
        self.num_of_sessions = record.num_of_sessions
        self.sessions_used = record.sessions_used
        self.discount_percentage = record.discount_percentage
        self.full_payment = record.full_payment
        self.advance_payment = record.advance_payment
        self.remaining_balance = record.remaining_balance
        self.status = record.status
        return [
            "num_of_sessions",
            "sessions_used",
            "discount_percentage",
            "full_payment",
            "advance_payment",
            "remaining_balance",
            "status",
            "updated_at",
        ]
