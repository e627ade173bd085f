"""Django app configuration for bedbooking.sequence."""

from django.apps import AppConfig


class SequenceConfig(AppConfig):
    """App configuration for sequence."""

    name = "bedbooking.sequence"
    label = "sequence"
    verbose_name = "Sequences"
    default_auto_field = "django.db.models.BigAutoField"
