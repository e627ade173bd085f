# Generated manually for bedbooking.availability

import uuid
from decimal import Decimal

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("memberships", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Bed",
            fields=[
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
                ("bed_number", models.CharField(max_length=20, unique=True)),
                ("display_name", models.CharField(blank=True, max_length=100)),
                ("bed_type", models.CharField(blank=True, max_length=50)),
                ("grid_row", models.PositiveSmallIntegerField(default=0)),
                ("grid_col", models.PositiveSmallIntegerField(default=0)),
                (
                    "hourly_rate",
                    models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=10),
                ),
                ("description", models.TextField(blank=True)),
                (
                    "under_maintenance",
                    models.BooleanField(
                        default=False,
                        help_text="Blocks all scheduling while set",
                    ),
                ),
            ],
            options={
                "ordering": ["grid_row", "grid_col"],
            },
        ),
        migrations.CreateModel(
            name="Booking",
            fields=[
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
                ("deleted_at", models.DateTimeField(blank=True, null=True)),
                (
                    "booking_number",
                    models.CharField(
                        help_text="Day-scoped human-readable number, e.g. BK2601260001",
                        max_length=30,
                        unique=True,
                    ),
                ),
                (
                    "bed",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="bookings",
                        to="availability.bed",
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
                    "membership_package",
                    models.ForeignKey(
                        blank=True,
                        help_text="Prepaid package this booking draws a session from",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="bookings",
                        to="memberships.membershippackage",
                    ),
                ),
                (
                    "package_ref",
                    models.CharField(
                        blank=True,
                        help_text="Opaque reference to the service package booked",
                        max_length=255,
                    ),
                ),
                ("start_time", models.DateTimeField()),
                ("end_time", models.DateTimeField()),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("confirmed", "Confirmed"),
                            ("in_progress", "In Progress"),
                            ("completed", "Completed"),
                            ("cancelled", "Cancelled"),
                        ],
                        default="pending",
                        max_length=20,
                    ),
                ),
                (
                    "payment_status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("paid", "Paid"),
                            ("refunded", "Refunded"),
                        ],
                        default="pending",
                        max_length=20,
                    ),
                ),
                (
                    "total_amount",
                    models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12),
                ),
                (
                    "final_amount",
                    models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12),
                ),
                ("notes", models.TextField(blank=True)),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="bed_bookings_created",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["start_time"],
                "abstract": False,
                "indexes": [
                    models.Index(fields=["bed", "start_time"], name="booking_bed_start_idx"),
                    models.Index(
                        fields=["status", "payment_status"],
                        name="booking_status_payment_idx",
                    ),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("end_time__gt", models.F("start_time"))),
                        name="booking_end_after_start",
                    ),
                ],
            },
        ),
    ]
