"""
GRN persistence.

Every GRN lives in two places: the caller's local record store (always
written first, so the record is available immediately) and, for signed-in
users, the ``saved_grns`` table. Database trouble is logged and never stops
the local write; only failures of the local store itself raise
``GRNStorageError``.
"""
import logging
from datetime import date, datetime
from decimal import Decimal

from django.db import DatabaseError, transaction
from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime

from bizpos.core.exceptions import DuplicateRecordError
from bizpos.core.local_store import owner_for, read_records, write_records
from .calculations import (
    calculate_grn_amount, calculate_grn_total, ensure_total, needs_total_refresh, to_decimal,
)
from .exceptions import GRNStorageError
from .models import SavedGRN, generate_grn_id

logger = logging.getLogger(__name__)

SAVED_GRNS_KEY = 'savedGRNs'

# GRN header fields stored as plain text, blank when missing
TEXT_FIELDS = (
    'supplier_id', 'supplier_phone', 'supplier_email', 'supplier_address',
    'business_name', 'business_address', 'business_phone', 'business_email',
    'supplier_tin_number', 'delivery_note_number', 'vehicle_number', 'driver_name',
    'received_by', 'received_location', 'quality_check_notes', 'discrepancies',
    'prepared_by', 'checked_by', 'approved_by',
)
DATE_FIELDS = ('prepared_date', 'checked_date', 'approved_date', 'received_date')


def _is_authenticated(user):
    return user is not None and getattr(user, 'is_authenticated', False)


def _to_date(value):
    """Truncate an ISO date/datetime string to a date; blanks and junk become None"""
    if not value:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return parse_date(str(value)[:10])
    except ValueError:
        return None


def _to_datetime(value):
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = parse_datetime(str(value)) if value else None
        except ValueError:
            parsed = None
    if parsed is None:
        return timezone.now()
    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed)
    return parsed


def _money(value):
    return to_decimal(value).quantize(Decimal('0.01'))


def grn_total_amount(grn):
    return _money(calculate_grn_total((grn.get('data') or {}).get('items')))


def build_grn_row(grn):
    """Column values for a ``saved_grns`` row (everything except id and user)"""
    data = grn.get('data') or {}
    row = {field: data.get(field) or '' for field in TEXT_FIELDS}
    row.update({field: _to_date(data.get(field)) for field in DATE_FIELDS})
    row.update({
        'name': grn.get('name') or '',
        'grn_number': data.get('grn_number') or '',
        'supplier_name': data.get('supplier_name') or '',
        'po_number': data.get('po_number') or '',
        'business_stock_type': data.get('business_stock_type') or None,
        'is_vatable': bool(data.get('is_vatable')),
        'items': data.get('items') or [],
        'receiving_costs': data.get('receiving_costs') or [],
        'status': data.get('status') or 'completed',
        'total_amount': grn_total_amount(grn),
        'created_at': _to_datetime(grn.get('created_at')),
        'updated_at': _to_datetime(grn.get('updated_at')),
    })
    return row


def row_to_record(row):
    """Shape a ``SavedGRN`` row like a locally stored GRN record"""
    data = {field: getattr(row, field) or '' for field in TEXT_FIELDS}
    data.update({
        field: getattr(row, field).isoformat() if getattr(row, field) else ''
        for field in DATE_FIELDS
    })
    data.update({
        'grn_number': row.grn_number,
        'date': row.received_date.isoformat() if row.received_date else row.created_at.date().isoformat(),
        'time': '',
        'supplier_name': row.supplier_name,
        'po_number': row.po_number or '',
        'business_stock_type': row.business_stock_type or '',
        'is_vatable': bool(row.is_vatable),
        'items': row.items or [],
        'receiving_costs': row.receiving_costs or [],
        'status': row.status or 'completed',
    })
    return {
        'id': str(row.id),
        'name': row.name,
        'total': calculate_grn_amount(row.items, row.receiving_costs) if row.items else float(row.total_amount or 0),
        'data': data,
        'created_at': row.created_at.isoformat(),
        'updated_at': row.updated_at.isoformat(),
    }


def _local_grns(owner):
    return [ensure_total(grn) for grn in read_records(SAVED_GRNS_KEY, owner)]


def _insert_grn_row(grn, user):
    data = grn.get('data') or {}
    try:
        with transaction.atomic():
            SavedGRN.objects.create(id=str(grn['id']), user=user, **build_grn_row(grn))
        logger.info(f"GRN {data.get('grn_number')} saved to database")
        return
    except DatabaseError as e:
        logger.error(f"Database insert failed for GRN {data.get('grn_number')}: {e.__class__.__name__}: {e}")

    # Retry with just the required columns to isolate the failing field
    try:
        with transaction.atomic():
            SavedGRN.objects.create(
                id=str(grn['id']),
                user=user,
                grn_number=data.get('grn_number') or '',
                supplier_name=data.get('supplier_name') or '',
                po_number=data.get('po_number') or '',
                status=data.get('status') or 'completed',
            )
        logger.info(f"Minimal insert succeeded for GRN {data.get('grn_number')}")
    except DatabaseError as e:
        logger.error(f"Even minimal insert failed for GRN {data.get('grn_number')}: {e.__class__.__name__}: {e}")


def _grn_id_taken(grn_id, user, saved):
    """True when ``grn_id`` is already used locally or by any ``saved_grns`` row"""
    grn_id = str(grn_id)
    if any(str(grn.get('id')) == grn_id for grn in saved):
        return True
    if any(str(grn.get('id')) == grn_id for grn in read_records(SAVED_GRNS_KEY, owner_for(user))):
        return True
    if not _is_authenticated(user):
        return False
    try:
        with transaction.atomic():
            # ids are the table's primary key, shared by every user
            return SavedGRN.objects.filter(id=grn_id).exists()
    except DatabaseError as e:
        logger.error(f"Could not check GRN id {grn_id} against the database: {e}")
        return False


def save_grn(grn, user=None):
    """
    Append a new ``grn`` to the local store, then insert it into ``saved_grns``
    for signed-in users. A caller-supplied id that is already in use raises
    ``DuplicateRecordError`` and nothing is written.
    """
    try:
        grn = dict(grn)
        owner = owner_for(user)
        saved = get_saved_grns(user)
        if not grn.get('id'):
            grn['id'] = generate_grn_id()
        elif _grn_id_taken(grn['id'], user, saved):
            raise DuplicateRecordError(f"GRN {grn['id']} already exists")
        saved.append(grn)
        write_records(SAVED_GRNS_KEY, saved, owner)

        if _is_authenticated(user):
            _insert_grn_row(grn, user)
        else:
            logger.info(f"User not authenticated, GRN {grn.get('id')} kept in local store only")
        return grn
    except DuplicateRecordError:
        raise
    except Exception as e:
        logger.error(f"Error in save_grn: {e}")
        raise GRNStorageError(f"Failed to save GRN: {e}") from e


def get_saved_grns(user=None):
    """
    Saved GRNs for ``user``.

    Signed-in users get their ``saved_grns`` rows, newest first. When the
    database cannot be read, or the caller is anonymous, the local store is
    used instead with missing totals filled in from the items.
    """
    owner = owner_for(user)
    try:
        if not _is_authenticated(user):
            return _local_grns(owner)
        try:
            with transaction.atomic():
                rows = list(SavedGRN.objects.filter(user=user).order_by('-created_at'))
        except DatabaseError as e:
            logger.error(f"Error retrieving saved GRNs from database: {e}")
            logger.info("Falling back to local store")
            return _local_grns(owner)
        return [row_to_record(row) for row in rows]
    except Exception as e:
        logger.error(f"Error retrieving saved GRNs: {e}")
        return []


def get_grn_by_id(grn_id, user=None):
    for grn in get_saved_grns(user):
        if str(grn.get('id')) == str(grn_id):
            return grn
    return None


def update_grn(grn, user=None):
    """Replace the stored GRN with the same id in both stores; returns the record with its total refreshed"""
    try:
        owner = owner_for(user)
        grn = dict(grn)
        data = grn.get('data') or {}
        grn['total'] = calculate_grn_amount(data.get('items'), data.get('receiving_costs'))
        grn['updated_at'] = timezone.now().isoformat()

        saved = get_saved_grns(user)
        updated = [grn if str(existing.get('id')) == str(grn.get('id')) else existing for existing in saved]
        write_records(SAVED_GRNS_KEY, updated, owner)

        if _is_authenticated(user):
            fields = build_grn_row(grn)
            fields.pop('created_at')
            try:
                with transaction.atomic():
                    matched = SavedGRN.objects.filter(user=user, id=str(grn.get('id'))).update(**fields)
                if not matched:
                    logger.warning(f"GRN {grn.get('id')} has no database row to update")
            except DatabaseError as e:
                logger.error(f"Error updating GRN in database: {e}")
        return grn
    except Exception as e:
        logger.error(f"Error updating GRN: {e}")
        raise GRNStorageError("Failed to update GRN") from e


def delete_grn(grn_id, user=None):
    """Remove the GRN from both stores; returns True when the record existed"""
    try:
        owner = owner_for(user)
        saved = get_saved_grns(user)
        remaining = [grn for grn in saved if str(grn.get('id')) != str(grn_id)]
        write_records(SAVED_GRNS_KEY, remaining, owner)

        if _is_authenticated(user):
            try:
                with transaction.atomic():
                    SavedGRN.objects.filter(user=user, id=str(grn_id)).delete()
            except DatabaseError as e:
                logger.error(f"Error deleting GRN from database: {e}")
        return len(remaining) != len(saved)
    except Exception as e:
        logger.error(f"Error deleting GRN: {e}")
        raise GRNStorageError("Failed to delete GRN") from e


def update_existing_grn_totals(user=None):
    """
    Repair GRNs saved without a usable total.

    Local records with a missing or zero total get the total of their items;
    database rows get ``total_amount`` rewritten wherever it disagrees with
    the items. Only positive calculated totals are written.
    """
    owner = owner_for(user)
    local_updated = 0
    grns = read_records(SAVED_GRNS_KEY, owner)
    for grn in grns:
        if needs_total_refresh(grn):
            grn['total'] = calculate_grn_total(grn['data'].get('items'))
            local_updated += 1
            logger.info(f"Updated local GRN {grn.get('name')}: {grn['total']}")
    if local_updated:
        write_records(SAVED_GRNS_KEY, grns, owner)

    database_updated = 0
    if _is_authenticated(user):
        for row in SavedGRN.objects.filter(user=user).only('id', 'items', 'total_amount'):
            items = row.items if isinstance(row.items, list) else []
            calculated = _money(calculate_grn_total(items))
            if calculated > 0 and calculated != row.total_amount:
                SavedGRN.objects.filter(id=row.id).update(total_amount=calculated)
                database_updated += 1
                logger.info(f"Updated database GRN {row.id}: {calculated}")

    return {'local_updated': local_updated, 'database_updated': database_updated}
