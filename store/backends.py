# store/backends.py
"""
Key/value backends for the record store.

A backend only moves serialized text around; it knows nothing about
records. Every mutation in the repository happens inside `locked(key)` so
that the read-modify-write of one collection is not interleaved with another
request's.
"""
import logging
import threading
from contextlib import contextmanager

from django.db import transaction

from .models import StoredCollection
from .schemas import SCHEMA_VERSION

logger = logging.getLogger(__name__)


class BaseBackend:
    name = 'base'

    def read(self, key):
        """Return the stored text for `key`, or None when nothing is stored"""
        raise NotImplementedError

    def write(self, key, raw, version=SCHEMA_VERSION):
        raise NotImplementedError

    def delete(self, key):
        raise NotImplementedError

    def keys(self):
        raise NotImplementedError

    @contextmanager
    def locked(self, key):
        yield


class DatabaseBackend(BaseBackend):
    """Backed by the StoredCollection table (one row per key)"""
    name = 'database'

    def read(self, key):
        row = StoredCollection.objects.filter(key=key).only('payload').first()
        if row is None or not row.payload:
            return None
        return row.payload

    def write(self, key, raw, version=SCHEMA_VERSION):
        StoredCollection.objects.update_or_create(
            key=key,
            defaults={'payload': raw, 'schema_version': version}
        )

    def delete(self, key):
        StoredCollection.objects.filter(key=key).delete()

    def keys(self):
        return list(
            StoredCollection.objects.exclude(payload='').values_list('key', flat=True)
        )

    @contextmanager
    def locked(self, key):
        with transaction.atomic():
            # Row lock for the duration of the read-modify-write
            StoredCollection.objects.select_for_update().get_or_create(key=key)
            yield


class MemoryBackend(BaseBackend):
    """Process-local dict; handy for scratch stores and tests"""
    name = 'memory'

    def __init__(self, initial=None):
        self._data = dict(initial or {})
        self._lock = threading.RLock()

    def read(self, key):
        with self._lock:
            return self._data.get(key)

    def write(self, key, raw, version=SCHEMA_VERSION):
        with self._lock:
            self._data[key] = raw

    def delete(self, key):
        with self._lock:
            self._data.pop(key, None)

    def keys(self):
        with self._lock:
            return list(self._data)

    @contextmanager
    def locked(self, key):
        with self._lock:
            yield


BACKENDS = {
    DatabaseBackend.name: DatabaseBackend,
    MemoryBackend.name: MemoryBackend,
}


def get_backend(name):
    try:
        backend_class = BACKENDS[name]
    except KeyError:
        raise ValueError(f"Unknown STORE_BACKEND '{name}' (expected one of: {', '.join(BACKENDS)})")
    logger.debug("Using %s store backend", name)
    return backend_class()
