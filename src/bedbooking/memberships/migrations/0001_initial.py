# Generated manually for bedbooking.memberships

import uuid
from decimal import Decimal

import django.core.validators
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="MembershipPackage",
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
                (
                    "membership_type",
                    models.CharField(
                        choices=[("individual", "Individual"), ("company", "Company")],
                        default="individual",
                        max_length=20,
                    ),
                ),
                ("name", models.CharField(max_length=255)),
                ("phone", models.CharField(blank=True, max_length=30)),
                ("address", models.TextField(blank=True)),
                (
                    "nic",
                    models.CharField(
                        blank=True,
                        help_text="National ID or company registration number",
                        max_length=50,
                    ),
                ),
                ("birthday", models.DateField(blank=True, null=True)),
                (
                    "package_ref",
                    models.CharField(
                        blank=True,
                        help_text="Opaque reference to the service package sold",
                        max_length=255,
                    ),
                ),
                (
                    "num_of_sessions",
                    models.PositiveIntegerField(
                        validators=[django.core.validators.MinValueValidator(1)],
                    ),
                ),
                ("sessions_used", models.PositiveIntegerField(default=0)),
                (
                    "discount_percentage",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        max_digits=5,
                        validators=[
                            django.core.validators.MinValueValidator(Decimal("0")),
                            django.core.validators.MaxValueValidator(Decimal("100")),
                        ],
                    ),
                ),
                (
                    "full_payment",
                    models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12),
                ),
                (
                    "advance_payment",
                    models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12),
                ),
                (
                    "remaining_balance",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        help_text="Derived; written by the ledger engine only",
                        max_digits=12,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("active", "Active"),
                            ("inactive", "Inactive"),
                            ("expired", "Expired"),
                        ],
                        default="active",
                        max_length=20,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["status"], name="membership_status_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("num_of_sessions__gte", 1)),
                        name="membership_sessions_positive",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(
                            ("sessions_used__lte", models.F("num_of_sessions"))
                        ),
                        name="membership_sessions_used_within_total",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(
                            ("discount_percentage__gte", 0),
                            ("discount_percentage__lte", 100),
                        ),
                        name="membership_discount_in_range",
                    ),
                ],
            },
        ),
    ]
