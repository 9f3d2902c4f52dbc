# store/services.py
import logging

from django.conf import settings

from .backends import get_backend
from .repository import DataStore

logger = logging.getLogger(__name__)

_store = None


def build_store():
    """A DataStore configured from settings.STORE_BACKEND / STORE_SEED_DEMO_DATA"""
    backend = get_backend(getattr(settings, 'STORE_BACKEND', 'database'))
    seed = getattr(settings, 'STORE_SEED_DEMO_DATA', True)
    return DataStore(backend, seed=seed)


def get_store():
    """The process-wide store, created on first use"""
    global _store
    if _store is None:
        _store = build_store()
        logger.info("Record store ready (%s backend)", _store.backend.name)
    return _store


def reset_store():
    """Forget the process-wide store so the next get_store() rebuilds it from settings"""
    global _store
    _store = None


class StoreMixin:
    """Gives class-based views `self.store`"""

    @property
    def store(self):
        return get_store()
