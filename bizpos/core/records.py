"""
Generic CRUD over a local-store collection.

Invoices, deliveries, sales orders and supplier settlements are kept only in
the local record store; these helpers give them the same save / list / update /
delete / lookup behaviour. Writes raise ``RecordStoreError``; reads log and
degrade to an empty result.
"""
import logging
import time

from .exceptions import DuplicateRecordError, RecordStoreError
from .local_store import read_records, write_records

logger = logging.getLogger(__name__)


_last_timestamp_id = 0


def timestamp_id():
    """Millisecond timestamp id; never repeats within a process"""
    global _last_timestamp_id
    _last_timestamp_id = max(int(time.time() * 1000), _last_timestamp_id + 1)
    return str(_last_timestamp_id)


def list_records(collection, owner=None, label='records'):
    try:
        return read_records(collection, owner)
    except Exception as e:
        logger.error(f"Error retrieving saved {label}: {e}")
        return []


def append_record(collection, record, owner=None, label='record'):
    """Add a new record; an id already in the collection raises DuplicateRecordError"""
    try:
        records = read_records(collection, owner)
    except Exception as e:
        logger.error(f"Error saving {label}: {e}")
        raise RecordStoreError(f"Failed to save {label}") from e

    record_id = record.get('id')
    if record_id and any(str(r.get('id')) == str(record_id) for r in records):
        raise DuplicateRecordError(f"{label.capitalize()} {record_id} already exists")

    try:
        records.append(record)
        write_records(collection, records, owner)
        return record
    except Exception as e:
        logger.error(f"Error saving {label}: {e}")
        raise RecordStoreError(f"Failed to save {label}") from e


def remove_record(collection, record_id, owner=None, label='record'):
    """Drop the record with ``record_id``; returns True when one was removed"""
    try:
        records = read_records(collection, owner)
        remaining = [r for r in records if str(r.get('id')) != str(record_id)]
        write_records(collection, remaining, owner)
        return len(remaining) != len(records)
    except Exception as e:
        logger.error(f"Error deleting {label}: {e}")
        raise RecordStoreError(f"Failed to delete {label}") from e


def replace_record(collection, record, owner=None, label='record'):
    """Swap in ``record`` by id; returns True when a record matched"""
    try:
        records = read_records(collection, owner)
        matched = False
        updated = []
        for existing in records:
            if str(existing.get('id')) == str(record.get('id')):
                updated.append(record)
                matched = True
            else:
                updated.append(existing)
        write_records(collection, updated, owner)
        return matched
    except Exception as e:
        logger.error(f"Error updating {label}: {e}")
        raise RecordStoreError(f"Failed to update {label}") from e


def find_record(collection, record_id, owner=None, label='record'):
    try:
        for record in read_records(collection, owner):
            if str(record.get('id')) == str(record_id):
                return record
    except Exception as e:
        logger.error(f"Error retrieving {label} by ID: {e}")
    return None
