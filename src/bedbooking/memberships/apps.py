"""Django app configuration for memberships module."""

from django.apps import AppConfig


class MembershipsConfig(AppConfig):
    """Memberships module app configuration."""

    name = "bedbooking.memberships"
    label = "memberships"
    verbose_name = "Memberships"
    default_auto_field = "django.db.models.BigAutoField"
