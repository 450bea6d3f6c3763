"""File cleanup hooks for attempt attachments.

These handlers remove stored blobs when StepFile rows are deleted (including
cascades from deleted attempts) or when the file field is replaced.
"""

from __future__ import annotations

import logging

from django.db.models.signals import post_delete, pre_save
from django.dispatch import receiver

from .models import StepFile

logger = logging.getLogger(__name__)


def _remove_file_from_storage(field_file) -> None:
    """Delete a FieldFile without writing model updates."""
    if not field_file:
        return
    name = (getattr(field_file, "name", "") or "").strip()
    if not name:
        return
    try:
        field_file.delete(save=False)
    except OSError:
        # Deletion failures should not break the request that removed the row.
        logger.warning("step_file_cleanup_failed name=%s", name)


@receiver(pre_save, sender=StepFile)
def _step_file_replaced(sender, instance: StepFile, **kwargs):
    if not instance.pk:
        return
    try:
        current = StepFile.objects.only("file").get(pk=instance.pk)
    except StepFile.DoesNotExist:
        return
    old_name = (current.file.name or "").strip()
    new_name = (getattr(instance.file, "name", "") or "").strip()
    if old_name and old_name != new_name:
        _remove_file_from_storage(current.file)


@receiver(post_delete, sender=StepFile)
def _step_file_deleted(sender, instance: StepFile, **kwargs):
    _remove_file_from_storage(getattr(instance, "file", None))
