"""
Per-user local record store.

Records are kept as JSON strings under ``"<owner>:<collection>"`` keys in a
dedicated cache alias (file-based in production), the same way a browser keeps
``localStorage`` entries. Reads never raise: a missing or corrupt entry is an
empty list.
"""
import json
import logging

from django.conf import settings
from django.core.cache import caches
from django.core.serializers.json import DjangoJSONEncoder

logger = logging.getLogger(__name__)

ANONYMOUS_OWNER = 'anonymous'


def get_store():
    return caches[getattr(settings, 'LOCAL_STORE_CACHE_ALIAS', 'default')]


def owner_for(user):
    """Owner key for a user; unauthenticated callers share the anonymous store"""
    if user is not None and getattr(user, 'is_authenticated', False):
        return str(user.pk)
    return ANONYMOUS_OWNER


def make_store_key(collection, owner=None):
    return f"{owner or ANONYMOUS_OWNER}:{collection}"


def read_value(key, owner=None):
    """Raw string value for a scalar key, or None"""
    return get_store().get(make_store_key(key, owner))


def write_value(key, value, owner=None):
    get_store().set(make_store_key(key, owner), value, timeout=None)


def read_records(collection, owner=None):
    """Return the list stored under ``collection`` for ``owner``"""
    raw = read_value(collection, owner)
    if not raw:
        return []
    try:
        records = json.loads(raw)
    except (TypeError, ValueError) as e:
        logger.error(f"Corrupt local store entry {make_store_key(collection, owner)}: {e}")
        return []
    if not isinstance(records, list):
        logger.warning(f"Local store entry {make_store_key(collection, owner)} is not a list, ignoring")
        return []
    return records


def write_records(collection, records, owner=None):
    """Replace the list stored under ``collection`` for ``owner``"""
    payload = json.dumps(list(records), cls=DjangoJSONEncoder)
    write_value(collection, payload, owner)
    logger.debug(f"Wrote {len(records)} records to {make_store_key(collection, owner)}")


def clear_records(collection, owner=None):
    get_store().delete(make_store_key(collection, owner))
