"""Django app configuration for availability module."""

from django.apps import AppConfig


class AvailabilityConfig(AppConfig):
    """Availability module app configuration."""

    name = "bedbooking.availability"
    label = "availability"
    verbose_name = "Availability"
    default_auto_field = "django.db.models.BigAutoField"
