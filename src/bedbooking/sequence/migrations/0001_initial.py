# Generated manually for bedbooking.sequence

import uuid

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Sequence",
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
                    "scope",
                    models.CharField(
                        help_text="Sequence scope, e.g. 'booking', 'invoice'",
                        max_length=50,
                    ),
                ),
                (
                    "period",
                    models.DateField(help_text="Day this counter belongs to"),
                ),
                (
                    "prefix",
                    models.CharField(
                        help_text="Prefix for formatted value, e.g. 'BK', 'INV'",
                        max_length=20,
                    ),
                ),
                (
                    "current_value",
                    models.PositiveIntegerField(
                        default=0,
                        help_text="Last value handed out for this day",
                    ),
                ),
                (
                    "pad_width",
                    models.PositiveSmallIntegerField(
                        default=4,
                        help_text="Zero-padding width for the counter portion",
                    ),
                ),
            ],
            options={
                "constraints": [
                    models.UniqueConstraint(
                        fields=("scope", "period"),
                        name="sequence_unique_scope_period",
                    )
                ],
            },
        ),
    ]
