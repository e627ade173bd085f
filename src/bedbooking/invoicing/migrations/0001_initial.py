# Generated manually for bedbooking.invoicing

import uuid
from decimal import Decimal

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


def money(**kwargs):
    return models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12, **kwargs)


def percentage():
    return models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=5)


def base_fields():
    return [
        (
            "id",
            models.UUIDField(
                default=uuid.uuid4,
                editable=False,
                primary_key=True,
                serialize=False,
            ),
        ),
        ("created_at", models.DateTimeField(auto_now_add=True)),
        ("updated_at", models.DateTimeField(auto_now=True)),
    ]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("availability", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Invoice",
            fields=base_fields() + [
                (
                    "invoice_number",
                    models.CharField(
                        help_text="Day-scoped human-readable number, e.g. INV2601260001",
                        max_length=30,
                        unique=True,
                    ),
                ),
                (
                    "invoice_type",
                    models.CharField(
                        choices=[
                            ("walk_in", "Walk-in"),
                            ("booking", "Booking"),
                            ("pos_sale", "POS Sale"),
                            ("addon", "Add-on"),
                        ],
                        default="walk_in",
                        max_length=20,
                    ),
                ),
                (
                    "customer_id",
                    models.CharField(
                        blank=True,
                        help_text="Opaque customer reference (CharField for UUID support)",
                        max_length=255,
                    ),
                ),
                (
                    "booking",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="invoices",
                        to="availability.booking",
                    ),
                ),
                (
                    "parent_invoice",
                    models.ForeignKey(
                        blank=True,
                        help_text="Invoice this add-on extends",
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="addon_invoices",
                        to="invoicing.invoice",
                    ),
                ),
                ("discount_percentage", percentage()),
                ("discount_amount", money()),
                ("service_charge_percentage", percentage()),
                ("service_charge", money()),
                ("tax_percentage", percentage()),
                ("tax_amount", money()),
                ("additional_charges", money()),
                ("subtotal", money()),
                ("total_amount", money()),
                ("paid_amount", money()),
                ("balance_amount", money()),
                (
                    "payment_status",
                    models.CharField(
                        choices=[
                            ("unpaid", "Unpaid"),
                            ("partial", "Partial"),
                            ("paid", "Paid"),
                        ],
                        default="unpaid",
                        max_length=20,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("draft", "Draft"),
                            ("completed", "Completed"),
                            ("voided", "Voided"),
                        ],
                        default="draft",
                        max_length=20,
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="bed_invoices_created",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "completed_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="bed_invoices_completed",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                ("completed_at", models.DateTimeField(blank=True, null=True)),
                ("notes", models.TextField(blank=True)),
            ],
            options={
                "ordering": ["-created_at"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("subtotal__gte", 0)),
                        name="invoice_subtotal_non_negative",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("paid_amount__gte", 0)),
                        name="invoice_paid_non_negative",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="InvoiceLineItem",
            fields=base_fields() + [
                (
                    "invoice",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="line_items",
                        to="invoicing.invoice",
                    ),
                ),
                ("position", models.PositiveIntegerField(default=0)),
                (
                    "item_type",
                    models.CharField(
                        choices=[
                            ("package", "Package"),
                            ("product", "Product"),
                            ("service", "Service"),
                            ("custom", "Custom"),
                        ],
                        max_length=20,
                    ),
                ),
                ("item_name", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True)),
                (
                    "reference_id",
                    models.CharField(
                        blank=True,
                        help_text="Opaque reference to the package or product sold",
                        max_length=255,
                    ),
                ),
                ("quantity", models.PositiveIntegerField()),
                ("unit_price", money()),
                ("discount_amount", money()),
                ("total_price", money(help_text="quantity * unit_price - discount_amount")),
            ],
            options={
                "ordering": ["position", "created_at"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("quantity__gt", 0)),
                        name="invoicelineitem_quantity_positive",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("unit_price__gte", 0)),
                        name="invoicelineitem_unit_price_non_negative",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("discount_amount__gte", 0)),
                        name="invoicelineitem_discount_non_negative",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("total_price__gte", 0)),
                        name="invoicelineitem_total_non_negative",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="InvoicePayment",
            fields=base_fields() + [
                (
                    "invoice",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="payments",
                        to="invoicing.invoice",
                    ),
                ),
                ("amount", money()),
                (
                    "payment_method",
                    models.CharField(
                        choices=[
                            ("cash", "Cash"),
                            ("card", "Card"),
                            ("upi", "UPI"),
                            ("bank_transfer", "Bank Transfer"),
                            ("other", "Other"),
                        ],
                        max_length=20,
                    ),
                ),
                (
                    "reference_number",
                    models.CharField(
                        blank=True,
                        help_text="Card slip, transfer or UPI reference",
                        max_length=100,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[("completed", "Completed")],
                        default="completed",
                        max_length=20,
                    ),
                ),
                ("paid_at", models.DateTimeField()),
                (
                    "processed_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="bed_payments_processed",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["paid_at", "created_at"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("amount__gt", 0)),
                        name="invoicepayment_amount_positive",
                    ),
                ],
            },
        ),
    ]
