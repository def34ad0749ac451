"""
Model mixins providing reusable functionality for Django models.

Available Mixins:
    SoftDeleteMixin: Soft delete support (is_deleted, deleted_at)

Usage:
    from core.models import BaseModel
    from core.model_mixins import SoftDeleteMixin

    class Message(SoftDeleteMixin, BaseModel):
        content = models.TextField()

    message.soft_delete()
    message.is_deleted  # True, row still present

Note:
    Always list mixins before BaseModel in inheritance.
"""

from __future__ import annotations

from django.db import models
from django.utils import timezone


class SoftDeleteMixin(models.Model):
    """
    Soft delete support for models.

    Instead of permanently deleting records, marks them as deleted.
    The row and its authorship/timestamps are preserved.

    Fields:
        is_deleted: Boolean flag indicating soft delete status
        deleted_at: Timestamp when the record was soft deleted

    Hooks:
        Subclasses may override ``on_soft_delete()`` to scrub extra fields;
        any field names it returns are saved alongside the flags.
    """

    is_deleted = models.BooleanField(
        default=False,
        db_index=True,
        help_text="Whether this record has been soft deleted",
    )
    deleted_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="Timestamp when this record was soft deleted",
    )

    class Meta:
        abstract = True

    def soft_delete(self) -> bool:
        """
        Mark this record as deleted.

        Idempotent: a record that is already deleted keeps its original
        ``deleted_at``.

        Returns:
            True if the record changed, False if it was already deleted
        """
        if self.is_deleted:
            return False

        self.is_deleted = True
        self.deleted_at = timezone.now()
        extra_fields = self.on_soft_delete() or []
        self.save(update_fields=["is_deleted", "deleted_at", "updated_at", *extra_fields])
        return True

    def on_soft_delete(self) -> list[str] | None:
        """Hook for subclasses; return extra field names to persist."""
        return None
