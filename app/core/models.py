"""
Core base model providing common functionality for domain models.

Base Classes:
    BaseModel: Abstract model with timestamps (created_at, updated_at)

For mixins (UUIDPrimaryKeyMixin), see core.model_mixins.

Usage:
    from core.models import BaseModel
    from core.model_mixins import UUIDPrimaryKeyMixin

    class RegisterSession(UUIDPrimaryKeyMixin, BaseModel):
        opening_balance_cents = models.BigIntegerField()
"""

from __future__ import annotations

from django.db import models


class BaseModel(models.Model):
    """
    Abstract base model providing row bookkeeping timestamps.

    Fields:
        created_at: Set when the row is inserted
        updated_at: Refreshed on every save

    Note:
        These track the database row, not business events. Domain
        timestamps such as opened_at or recorded_at are separate fields.
    """

    created_at = models.DateTimeField(
        auto_now_add=True,
        db_index=True,
        help_text="Timestamp when this record was created",
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        help_text="Timestamp when this record was last modified",
    )

    class Meta:
        abstract = True
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.__class__.__name__}(id={self.pk})"
