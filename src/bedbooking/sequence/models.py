"""Sequence model for day-scoped human-readable numbers."""

from django.db import models

from bedbooking.models import BookingBaseModel


class Sequence(BookingBaseModel):
    """
    Human-readable number generator, one row per scope per day.

    Generates values like "BK2601260007" (prefix, yymmdd, counter). The
    counter restarts every day because each day gets its own row.

    Usage:
        from bedbooking.sequence.services import next_sequence

        number = next_sequence("booking", prefix="BK", on=date(2026, 1, 26))
        # Returns: "BK2601260001"
    """

    scope = models.CharField(
        max_length=50,
        help_text="Sequence scope, e.g. 'booking', 'invoice'",
    )
    period = models.DateField(
        help_text="Day this counter belongs to",
    )
    prefix = models.CharField(
        max_length=20,
        help_text="Prefix for formatted value, e.g. 'BK', 'INV'",
    )
    current_value = models.PositiveIntegerField(
        default=0,
        help_text="Last value handed out for this day",
    )
    pad_width = models.PositiveSmallIntegerField(
        default=4,
        help_text="Zero-padding width for the counter portion",
    )

    class Meta:
        app_label = "sequence"
        constraints = [
            models.UniqueConstraint(
                fields=["scope", "period"],
                name="sequence_unique_scope_period",
            ),
        ]

    def __str__(self):
        return f"{self.scope} {self.period:%Y-%m-%d}: {self.current_value}"

    @property
    def formatted_value(self) -> str:
        """
        Return the current value with prefix, date stamp and padding.

        Example: "INV2601260042"
        """
        number_str = str(self.current_value).zfill(self.pad_width)
        return f"{self.prefix}{self.period:%y%m%d}{number_str}"
