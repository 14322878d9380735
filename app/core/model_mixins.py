"""
Model mixins providing reusable functionality for Django models.

Available Mixins:
    UUIDPrimaryKeyMixin: Use UUID as primary key
    VersionedMixin: Monotonic version counter bumped on every save

Usage:
    from core.models import BaseModel
    from core.model_mixins import UUIDPrimaryKeyMixin, VersionedMixin

    class Payment(UUIDPrimaryKeyMixin, VersionedMixin, BaseModel):
        amount_total = models.DecimalField(max_digits=12, decimal_places=2)

Note:
    - Always list mixins before BaseModel in inheritance
    - Mixins are abstract and don't create database tables
"""

from __future__ import annotations

import uuid

from django.db import models


class UUIDPrimaryKeyMixin(models.Model):
    """
    Use UUID as primary key instead of auto-increment integer.

    Identifiers are exposed in URLs (payment status, schedule detail), so
    they must not reveal record counts or be guessable.
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text="Unique identifier for this record",
    )

    class Meta:
        abstract = True


class VersionedMixin(models.Model):
    """
    Optimistic concurrency marker.

    The version is incremented in the database on every save of an
    existing row (UPDATE ... SET version = version + 1) and then reloaded,
    so two writers that raced on the same row always end with distinct
    versions. New rows start at 1.
    """

    version = models.PositiveIntegerField(
        default=1,
        help_text="Incremented on every save of an existing row",
    )

    class Meta:
        abstract = True

    def save(self, *args, **kwargs):
        is_update = not self._state.adding
        if is_update:
            self.version = models.F("version") + 1
            update_fields = kwargs.get("update_fields")
            if update_fields is not None and "version" not in update_fields:
                kwargs["update_fields"] = [*update_fields, "version"]

        super().save(*args, **kwargs)

        if is_update:
            self.refresh_from_db(fields=["version"])
