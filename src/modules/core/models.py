"""Base abstract models shared by every module.

Provides:
- ``BaseModel``: UUIDv7 primary key + created_at / updated_at timestamps.
- ``AppendOnlyModel``: BaseModel for audit records that may be inserted
  once and never updated or deleted afterwards.

UUIDv7 keys are time ordered, so ``("created_at", "id")`` is a stable
chronological ordering even when two rows share a timestamp.
"""

from __future__ import annotations

import uuid6
from django.db import models


class ImmutableRecordError(Exception):
    """An append-only record was updated or deleted after insertion."""


# ---------------------------------------------------------------------------
# BaseModel
# ---------------------------------------------------------------------------


class BaseModel(models.Model):
    """Abstract base with UUIDv7 PK and timestamp bookkeeping."""

    id = models.UUIDField(
        primary_key=True,
        default=uuid6.uuid7,
        editable=False,
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True

    def save(self, *args, **kwargs) -> None:
        """Ensure ``updated_at`` is refreshed even when ``update_fields`` is passed."""
        update_fields = kwargs.get("update_fields")
        if update_fields is not None and "updated_at" not in update_fields:
            kwargs["update_fields"] = list(update_fields) + ["updated_at"]
        super().save(*args, **kwargs)


# ---------------------------------------------------------------------------
# Append-only audit records
# ---------------------------------------------------------------------------


class AppendOnlyModel(BaseModel):
    """Abstract base for immutable audit rows.

    - ``save()`` only inserts; saving an already persisted instance raises
      ``ImmutableRecordError``.
    - ``delete()`` always raises.  Rows disappear only through the
      ``CASCADE`` of their owning aggregate.
    """

    class Meta:
        abstract = True

    def save(self, *args, **kwargs) -> None:
        if not self._state.adding:
            raise ImmutableRecordError(
                f"{self._meta.label} {self.pk} is append-only and cannot be updated."
            )
        kwargs["force_insert"] = True
        super().save(*args, **kwargs)

    def delete(self, using=None, keep_parents=False):
        raise ImmutableRecordError(
            f"{self._meta.label} {self.pk} is append-only and cannot be deleted."
        )
