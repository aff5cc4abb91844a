"""
Cache invalidation signals
Automatically invalidate cache when data changes
"""
from contextlib import contextmanager
import logging
import threading

from django.db import transaction
from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver

from . import cache_utils

logger = logging.getLogger('backend.core')

# Thread-local storage to track signal suspension
_thread_locals = threading.local()

# model name -> invalidation helper
INVALIDATION_MAP = {
    'Store': cache_utils.invalidate_store_cache,
    'InventoryStock': cache_utils.invalidate_reports_cache,
    'InventoryMovement': cache_utils.invalidate_reports_cache,
    'Transaction': cache_utils.invalidate_reports_cache,
}


@contextmanager
def suspend_cache_signals():
    """
    Temporarily suspend cache invalidation signals for bulk operations
    (CSV import, deployment). Invalidate manually after the block.
    """
    previous = is_suspended()
    try:
        _thread_locals.suspended = True
        yield
    finally:
        _thread_locals.suspended = previous


def is_suspended():
    return getattr(_thread_locals, 'suspended', False)


@receiver([post_save, post_delete])
def invalidate_model_cache(sender, instance, **kwargs):
    """Invalidate cached lists/reports after the DB commit that changed them"""
    if is_suspended():
        return

    invalidate = INVALIDATION_MAP.get(sender.__name__)
    if invalidate is None or not sender.__module__.startswith('backend.'):
        return

    transaction.on_commit(invalidate)
