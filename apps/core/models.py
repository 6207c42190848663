"""
Core base model mixins.
Catalogue models (branches, barbers, services) inherit from CatalogModel.
"""
import uuid
from django.db import models


class UUIDModel(models.Model):
    """Primary key is a UUID, not an auto-incrementing integer."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    class Meta:
        abstract = True


class TimestampedModel(models.Model):
    """Automatically tracks creation and last-update timestamps."""
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class ActiveQuerySet(models.QuerySet):
    """Catalogue rows are hidden from the public booking flow, never deleted."""
    def active(self):
        return self.filter(is_active=True)

    def inactive(self):
        return self.filter(is_active=False)


class CatalogModel(UUIDModel, TimestampedModel):
    """
    UUID pk + timestamps + an is_active switch.
    Deactivating keeps historical appointments pointing at a valid row.
    """
    is_active = models.BooleanField(default=True, db_index=True)

    objects = ActiveQuerySet.as_manager()

    class Meta:
        abstract = True

    def deactivate(self):
        self.is_active = False
        self.save(update_fields=['is_active', 'updated_at'])
