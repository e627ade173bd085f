"""Models for invoicing module.

Provides Invoice, InvoiceLineItem and InvoicePayment. The invoice's derived
totals are a cache written back from the invoice engine after every change.
"""

from decimal import Decimal

from django.conf import settings
from django.db import models
from django.db.models import Q

from bedbooking.models import BookingBaseModel

from .engine import InvoiceRecord, LineItemRecord, PaymentRecord


def _money_field(**kwargs):
    return models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        **kwargs,
    )


def _percentage_field(**kwargs):
    return models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal("0.00"),
        **kwargs,
    )


class Invoice(BookingBaseModel):
    """A bill for a booking, a walk-in, a counter sale or an add-on.

    Charge inputs (percentages and stored amounts) are set through
    services.set_charges; subtotal, total_amount, paid_amount,
    balance_amount and payment_status are derived.
    """

    TYPE_CHOICES = [
        ("walk_in", "Walk-in"),
        ("booking", "Booking"),
        ("pos_sale", "POS Sale"),
        ("addon", "Add-on"),
    ]

    STATUS_CHOICES = [
        ("draft", "Draft"),
        ("completed", "Completed"),
        ("voided", "Voided"),
    ]

    PAYMENT_STATUS_CHOICES = [
        ("unpaid", "Unpaid"),
        ("partial", "Partial"),
        ("paid", "Paid"),
    ]

    invoice_number = models.CharField(
        max_length=30,
        unique=True,
        help_text="Day-scoped human-readable number, e.g. INV2601260001",
    )
    invoice_type = models.CharField(
        max_length=20,
        choices=TYPE_CHOICES,
        default="walk_in",
    )
    customer_id = models.CharField(
        max_length=255,
        blank=True,
        help_text="Opaque customer reference (CharField for UUID support)",
    )
    booking = models.ForeignKey(
        "availability.Booking",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="invoices",
    )
    parent_invoice = models.ForeignKey(
        "self",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="addon_invoices",
        help_text="Invoice this add-on extends",
    )

    # Charge inputs
    discount_percentage = _percentage_field()
    discount_amount = _money_field()
    service_charge_percentage = _percentage_field()
    service_charge = _money_field()
    tax_percentage = _percentage_field()
    tax_amount = _money_field()
    additional_charges = _money_field()

    # Derived (denormalized, written from the engine)
    subtotal = _money_field()
    total_amount = _money_field()
    paid_amount = _money_field()
    balance_amount = _money_field()
    payment_status = models.CharField(
        max_length=20,
        choices=PAYMENT_STATUS_CHOICES,
        default="unpaid",
    )

    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default="draft",
    )

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="bed_invoices_created",
    )
    completed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="bed_invoices_completed",
    )
    completed_at = models.DateTimeField(null=True, blank=True)
    notes = models.TextField(blank=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=Q(subtotal__gte=0),
                name="invoice_subtotal_non_negative",
            ),
            models.CheckConstraint(
                condition=Q(paid_amount__gte=0),
                name="invoice_paid_non_negative",
            ),
        ]

    def __str__(self):
        return f"Invoice {self.invoice_number} - {self.total_amount} ({self.status})"

    def to_record(self) -> InvoiceRecord:
        """Snapshot this invoice with its items and payments for the engine."""
        return InvoiceRecord(
            invoice_number=self.invoice_number,
            items=[item.to_record() for item in self.line_items.all()],
            payments=[payment.to_record() for payment in self.payments.all()],
            discount_percentage=self.discount_percentage,
            discount_amount=self.discount_amount,
            service_charge_percentage=self.service_charge_percentage,
            service_charge=self.service_charge,
            tax_percentage=self.tax_percentage,
            tax_amount=self.tax_amount,
            additional_charges=self.additional_charges,
            subtotal=self.subtotal,
            total_amount=self.total_amount,
            paid_amount=self.paid_amount,
            balance_amount=self.balance_amount,
            payment_status=self.payment_status,
            status=self.status,
            completed_by=self.completed_by,
            completed_at=self.completed_at,
        )

    def apply_record(self, record: InvoiceRecord) -> list[str]:
        """Copy invoice-level fields from record; returns the field names for save()."""
        fields = [
            "discount_percentage",
            "discount_amount",
            "service_charge_percentage",
            "service_charge",
            "tax_percentage",
            "tax_amount",
            "additional_charges",
            "subtotal",
            "total_amount",
            "paid_amount",
            "balance_amount",
            "payment_status",
            "status",
            "completed_by",
            "completed_at",
        ]
        for name in fields:
            setattr(self, name, getattr(record, name))
        return fields + ["updated_at"]


class InvoiceLineItem(BookingBaseModel):
    """One line on an invoice.

    Item name, description and unit price are snapshots taken when the
    line is added, so later catalogue changes do not alter the bill.
    """

    ITEM_TYPE_CHOICES = [
        ("package", "Package"),
        ("product", "Product"),
        ("service", "Service"),
        ("custom", "Custom"),
    ]

    invoice = models.ForeignKey(
        Invoice,
        on_delete=models.CASCADE,
        related_name="line_items",
    )
    position = models.PositiveIntegerField(default=0)
    item_type = models.CharField(max_length=20, choices=ITEM_TYPE_CHOICES)
    item_name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    reference_id = models.CharField(
        max_length=255,
        blank=True,
        help_text="Opaque reference to the package or product sold",
    )
    quantity = models.PositiveIntegerField()
    unit_price = _money_field()
    discount_amount = _money_field()
    total_price = _money_field(help_text="quantity * unit_price - discount_amount")

    class Meta:
        ordering = ["position", "created_at"]
        constraints = [
            # Quantity must be positive (> 0, not >= 0)
            models.CheckConstraint(
                condition=Q(quantity__gt=0),
                name="invoicelineitem_quantity_positive",
            ),
            models.CheckConstraint(
                condition=Q(unit_price__gte=0),
                name="invoicelineitem_unit_price_non_negative",
            ),
            models.CheckConstraint(
                condition=Q(discount_amount__gte=0),
                name="invoicelineitem_discount_non_negative",
            ),
            models.CheckConstraint(
                condition=Q(total_price__gte=0),
                name="invoicelineitem_total_non_negative",
            ),
        ]

    def __str__(self):
        return f"{self.item_name} x{self.quantity} = {self.total_price}"

    def to_record(self) -> LineItemRecord:
        return LineItemRecord(
            id=self.pk,
            item_type=self.item_type,
            item_name=self.item_name,
            quantity=self.quantity,
            unit_price=self.unit_price,
            discount_amount=self.discount_amount,
            total_price=self.total_price,
            description=self.description,
            reference_id=self.reference_id,
        )


class InvoicePayment(BookingBaseModel):
    """A payment taken against an invoice. Never edited once recorded."""

    METHOD_CHOICES = [
        ("cash", "Cash"),
        ("card", "Card"),
        ("upi", "UPI"),
        ("bank_transfer", "Bank Transfer"),
        ("other", "Other"),
    ]

    STATUS_CHOICES = [
        ("completed", "Completed"),
    ]

    invoice = models.ForeignKey(
        Invoice,
        on_delete=models.CASCADE,
        related_name="payments",
    )
    amount = _money_field()
    payment_method = models.CharField(max_length=20, choices=METHOD_CHOICES)
    reference_number = models.CharField(
        max_length=100,
        blank=True,
        help_text="Card slip, transfer or UPI reference",
    )
    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default="completed",
    )
    paid_at = models.DateTimeField()
    processed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="bed_payments_processed",
    )

    class Meta:
        ordering = ["paid_at", "created_at"]
        constraints = [
            models.CheckConstraint(
                condition=Q(amount__gt=0),
                name="invoicepayment_amount_positive",
            ),
        ]

    def __str__(self):
        return f"{self.amount} via {self.payment_method}"

    def to_record(self) -> PaymentRecord:
        return PaymentRecord(
            id=self.pk,
            amount=self.amount,
            payment_method=self.payment_method,
            reference=self.reference_number,
            status=self.status,
            paid_at=self.paid_at,
        )
