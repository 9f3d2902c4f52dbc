# store/repository.py
"""
The record store: one Collection per entity type, grouped in a DataStore.

Collections hold no records between calls. Every operation reads the
collection document from the backend, and mutations write it back inside the
backend's lock, so what a caller sees is always what is persisted.
"""
import copy
import logging
import random
import string
import time
from contextlib import contextmanager

from django.db import DatabaseError
from django.utils import timezone

from .exceptions import PersistenceError, StoreError, UnknownCollection, ValidationFailed
from .schemas import DATETIME, POLICY_COLLECTIONS, SCHEMAS, SCHEMAS_BY_KEY
from .seed_data import SEED_DATA
from .serialization import deserialize, serialize

logger = logging.getLogger(__name__)

ID_ALPHABET = string.ascii_lowercase + string.digits


def generate_id():
    """<epoch millis>_<9 base-36 chars>, e.g. 1718000000000_k3j9x0q2a"""
    timestamp = int(time.time() * 1000)
    suffix = ''.join(random.choices(ID_ALPHABET, k=9))
    return f"{timestamp}_{suffix}"


class Collection:
    """Add/update/delete/query for the records of one entity type"""

    def __init__(self, schema, backend, default=None):
        self.schema = schema
        self.backend = backend
        self._default = list(default or [])

    @property
    def name(self):
        return self.schema.name

    @property
    def key(self):
        return self.schema.key

    def __repr__(self):
        return f"<Collection {self.key}>"

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def default(self):
        return copy.deepcopy(self._default)

    def _load(self):
        try:
            raw = self.backend.read(self.key)
        except (DatabaseError, OSError) as e:
            logger.error("Failed to read stored data for key: %s (%s)", self.key, e)
            return self.default()

        if raw is None:
            logger.debug("No stored data found for key: %s, using default value", self.key)
            return self.default()

        try:
            records = deserialize(raw, self.schema)
        except (ValueError, StoreError) as e:
            logger.error("Failed to parse stored data for key: %s (%s); using default value", self.key, e)
            return self.default()

        logger.debug("Loaded %d records for key: %s", len(records), self.key)
        return records

    def _save(self, records):
        try:
            self.backend.write(self.key, serialize(records))
        except (DatabaseError, OSError, StoreError) as e:
            logger.error("Failed to store data for key: %s (%s)", self.key, e)
            raise PersistenceError(f"Could not save {self.schema.label.lower()} records: {e}") from e
        logger.debug("Stored %d records for key: %s", len(records), self.key)

    @contextmanager
    def _locked(self):
        try:
            with self.backend.locked(self.key):
                yield
        except DatabaseError as e:
            logger.error("Failed to lock key: %s (%s)", self.key, e)
            raise PersistenceError(f"Could not update {self.schema.label.lower()} records: {e}") from e

    def _stamp(self):
        if self.schema.created_kind == DATETIME:
            return timezone.now().isoformat()
        return timezone.localdate().isoformat()

    @staticmethod
    def _new_id(records):
        taken = {record.get('id') for record in records}
        record_id = generate_id()
        while record_id in taken:
            record_id = generate_id()
        return record_id

    def _find_duplicate(self, records, candidate, ignore_id=None):
        natural_key = self.schema.natural_key_of(candidate)
        if natural_key is None:
            return None
        for record in records:
            if record.get('id') == ignore_id or not self.schema.blocks_duplicates(record):
                continue
            if self.schema.natural_key_of(record) == natural_key:
                return record
        return None

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def all(self):
        return self._load()

    def count(self):
        return len(self._load())

    def get(self, record_id):
        for record in self._load():
            if record.get('id') == record_id:
                return record
        return None

    def filter(self, **criteria):
        return [
            record for record in self._load()
            if all(record.get(field) == value for field, value in criteria.items())
        ]

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add(self, data):
        """
        Validate `data`, stamp it with an id and creation date and append it.
        Returns (record, created). When a record with the same natural key
        already exists nothing is written and (existing, False) is returned.
        """
        cleaned = self.schema.validate(data)

        with self._locked():
            records = self._load()

            existing = self._find_duplicate(records, cleaned)
            if existing is not None:
                logger.warning(
                    "Duplicate %s detected (%s); keeping existing record %s",
                    self.schema.label.lower(), ', '.join(self.schema.natural_key), existing.get('id')
                )
                return existing, False

            record = {'id': self._new_id(records)}
            record.update(cleaned)
            record[self.schema.created_field] = self._stamp()

            records.append(record)
            self._save(records)

        logger.info("Added %s %s to %s", self.schema.label.lower(), record['id'], self.key)
        return record, True

    def update(self, record_id, changes):
        """
        Shallow-merge the validated `changes` into the record.
        Returns the updated record, or None when no record has that id.
        """
        cleaned = self.schema.validate(changes, partial=True)

        with self._locked():
            records = self._load()

            for index, record in enumerate(records):
                if record.get('id') != record_id:
                    continue

                updated = dict(record)
                updated.update(cleaned)

                if any(name in cleaned for name in self.schema.natural_key):
                    clash = self._find_duplicate(records, updated, ignore_id=record_id)
                    if clash is not None:
                        raise ValidationFailed({
                            name: "already used by another record" for name in self.schema.natural_key
                        })

                if updated != record:
                    records[index] = updated
                    self._save(records)
                    logger.info("Updated %s %s in %s", self.schema.label.lower(), record_id, self.key)
                return updated

        logger.info("Update skipped: no %s with id %s", self.schema.label.lower(), record_id)
        return None

    def delete(self, record_id):
        """Remove the record; returns False (and writes nothing) for an unknown id"""
        with self._locked():
            records = self._load()
            remaining = [record for record in records if record.get('id') != record_id]

            if len(remaining) == len(records):
                logger.info("Delete skipped: no %s with id %s", self.schema.label.lower(), record_id)
                return False

            self._save(remaining)

        logger.info("Deleted %s %s from %s", self.schema.label.lower(), record_id, self.key)
        return True

    def _prepare_stored(self, record):
        if not isinstance(record, dict):
            raise ValidationFailed({'records': "every record must be an object"})
        return self.schema.clean_stored(record)

    def _place(self, records, record):
        """Give `record` an unused id and a creation stamp when it lacks them"""
        taken = {existing.get('id') for existing in records}
        if not record.get('id') or record['id'] in taken:
            record['id'] = self._new_id(records)
        record.setdefault(self.schema.created_field, self._stamp())
        return record

    def replace_all(self, records):
        """
        Overwrite the whole collection. Every record is validated first and
        nothing is written when one of them fails.
        """
        cleaned = [self._prepare_stored(record) for record in records]

        replacement = []
        for record in cleaned:
            replacement.append(self._place(replacement, record))

        with self._locked():
            self._save(replacement)

        logger.info("Replaced %s with %d records", self.key, len(replacement))
        return replacement

    def import_records(self, records, replace=False):
        """
        Bring in records from an export or a browser dump.

        Each record is validated and keeps its id and creation stamp. A record
        whose id or natural key is already taken is left out, so is one that
        fails validation. With replace=True the incoming records take the
        place of the stored ones.

        Returns (imported, duplicates, rejected); rejected holds
        (record, ValidationFailed) pairs.
        """
        accepted = []
        rejected = []
        for record in records:
            try:
                accepted.append(self._prepare_stored(record))
            except ValidationFailed as e:
                rejected.append((record, e))

        imported = []
        duplicates = []
        with self._locked():
            kept = [] if replace else self._load()
            known_ids = {record.get('id') for record in kept}

            for record in accepted:
                if record.get('id') in known_ids or self._find_duplicate(kept, record) is not None:
                    duplicates.append(record)
                    continue
                record = self._place(kept, record)
                known_ids.add(record['id'])
                kept.append(record)
                imported.append(record)

            if imported or replace:
                self._save(kept)

        logger.info(
            "Imported %d records into %s (%d duplicates, %d rejected)",
            len(imported), self.key, len(duplicates), len(rejected)
        )
        return imported, duplicates, rejected


class DataStore:
    """
    Every collection of the back office, built over one backend.
    Collections are also reachable as attributes: store.car_policies.add(...)
    """

    def __init__(self, backend, seed=True):
        self.backend = backend
        self._collections = {}

        for name, schema in SCHEMAS.items():
            default = SEED_DATA.get(name, []) if seed else []
            collection = Collection(schema, backend, default)
            self._collections[name] = collection
            setattr(self, name, collection)

    def __repr__(self):
        return f"<DataStore backend={self.backend.name}>"

    def collection(self, name):
        try:
            return self._collections[name]
        except KeyError:
            raise UnknownCollection(name)

    def collection_for_key(self, key):
        try:
            return self._collections[SCHEMAS_BY_KEY[key].name]
        except KeyError:
            raise UnknownCollection(key)

    def collections(self):
        return dict(self._collections)

    def get_user_services(self, user_id):
        return self.user_services.filter(user_id=str(user_id))

    def policy_records(self):
        """(collection name, record) for every policy of every product line"""
        for name in POLICY_COLLECTIONS:
            for record in self._collections[name].all():
                yield name, record

    def export(self):
        return {collection.key: collection.all() for collection in self._collections.values()}
