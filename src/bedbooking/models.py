"""Abstract base models shared by the bedbooking apps.

- BookingBaseModel: UUID primary key + created_at/updated_at
- SoftDeleteModel: BookingBaseModel + deleted_at, with managers that hide
  deleted rows from everyday queries

Usage:
    class Booking(SoftDeleteModel):
        ...

        class Meta(SoftDeleteModel.Meta):
            pass
"""

import uuid

from django.db import models
from django.utils import timezone


class BookingBaseModel(models.Model):
    """Base model with UUID PK and timestamps."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class SoftDeleteManager(models.Manager):
    """Manager that excludes soft-deleted objects by default."""

    def get_queryset(self):
        return super().get_queryset().filter(deleted_at__isnull=True)


class SoftDeleteModel(BookingBaseModel):
    """Base model whose delete() only stamps deleted_at.

    Soft-deleted rows stay in the database (and keep their foreign keys
    valid) but are invisible through `objects`.
    """

    deleted_at = models.DateTimeField(null=True, blank=True)

    objects = SoftDeleteManager()
    all_objects = models.Manager()

    class Meta:
        abstract = True

    def delete(self, using=None, keep_parents=False):
        """Soft delete the object by setting deleted_at timestamp."""
        self.deleted_at = timezone.now()
        self.save(update_fields=["deleted_at", "updated_at"])
