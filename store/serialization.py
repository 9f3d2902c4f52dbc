# store/serialization.py
import json

from .exceptions import StoreError
from .schemas import SCHEMA_VERSION


def serialize(records, version=SCHEMA_VERSION):
    """Collection document: {"version": N, "records": [...]}. NaN/Infinity are refused."""
    try:
        return json.dumps({'version': version, 'records': list(records)}, allow_nan=False)
    except ValueError as e:
        raise StoreError(f"Collection cannot be serialized: {e}")


def deserialize(raw, schema=None):
    """
    Parse a stored collection document and return its records.
    A bare JSON array is the unversioned browser format; when a schema is
    given, its records are upgraded to the current shape.
    """
    document = json.loads(raw)

    if isinstance(document, list):
        version, records = 0, document
    elif isinstance(document, dict) and isinstance(document.get('records'), list):
        version, records = document.get('version', 0), document['records']
    else:
        raise StoreError("Stored value is neither a record list nor a collection document")

    if not isinstance(version, int) or version > SCHEMA_VERSION:
        raise StoreError(f"Unsupported collection version: {version!r}")

    if not all(isinstance(record, dict) for record in records):
        raise StoreError("Collection contains non-object records")

    if version < SCHEMA_VERSION and schema is not None:
        records = [schema.upgrade(record) for record in records]

    return records
