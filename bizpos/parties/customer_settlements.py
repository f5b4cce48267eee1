"""
Customer settlements.

Kept in the local record store under ``savedSettlements`` and mirrored to the
``saved_customer_settlements`` table. Reads merge both copies; rows are scoped
so admins see every settlement, other users their own, and anonymous callers
the rows saved without a user.
"""
import logging
from decimal import Decimal

from django.db import DatabaseError, transaction
from django.utils import timezone
from django.utils.dateparse import parse_date
from rest_framework.exceptions import ValidationError

from bizpos.core.exceptions import DuplicateRecordError, RecordStoreError
from bizpos.core.local_store import owner_for, read_records, write_records
from bizpos.core.records import timestamp_id
from bizpos.purchasing.calculations import to_decimal
from .models import SavedCustomerSettlement

logger = logging.getLogger(__name__)

SAVED_SETTLEMENTS_KEY = 'savedSettlements'

TEXT_FIELDS = ('customer_name', 'customer_id', 'customer_phone', 'customer_email', 'reference_number', 'notes')
AMOUNT_FIELDS = ('settlement_amount', 'previous_balance', 'amount_paid', 'new_balance')


def _is_authenticated(user):
    return user is not None and getattr(user, 'is_authenticated', False)


def is_valid_settlement(settlement):
    return (
        isinstance(settlement, dict)
        and bool(settlement.get('id'))
        and bool(settlement.get('customer_name'))
        and bool(settlement.get('reference_number'))
    )


def scoped_settlements(user=None):
    """Settlement rows visible to ``user``"""
    queryset = SavedCustomerSettlement.objects.all()
    if _is_authenticated(user):
        if not user.is_business_admin:
            queryset = queryset.filter(user=user)
    else:
        queryset = queryset.filter(user__isnull=True)
    return queryset


def build_settlement_row(settlement):
    """Column values for a settlement row, with the till's defaults filled in"""
    now = timezone.localtime()
    row = {field: settlement.get(field) or '' for field in TEXT_FIELDS}
    row.update({
        field: to_decimal(settlement.get(field)).quantize(Decimal('0.01'))
        for field in AMOUNT_FIELDS
    })
    try:
        settlement_date = parse_date(str(settlement.get('date') or '')[:10])
    except ValueError:
        settlement_date = None
    row.update({
        'payment_method': settlement.get('payment_method') or 'Cash',
        'cashier_name': settlement.get('cashier_name') or 'System',
        'date': settlement_date or now.date(),
        'time': settlement.get('time') or now.strftime('%H:%M:%S'),
        'status': settlement.get('status') or 'completed',
    })
    return row


def row_to_settlement(row):
    settlement = {'id': str(row.id)}
    settlement.update({field: getattr(row, field) for field in TEXT_FIELDS})
    settlement.update({field: float(getattr(row, field)) for field in AMOUNT_FIELDS})
    settlement.update({
        'payment_method': row.payment_method,
        'cashier_name': row.cashier_name,
        'date': row.date.isoformat() if row.date else '',
        'time': row.time,
        'status': row.status,
    })
    return settlement


def _merge(*sources):
    """Concatenate settlement lists keeping the first record seen for each id"""
    seen = set()
    merged = []
    for settlements in sources:
        for settlement in settlements:
            key = str(settlement['id'])
            if key not in seen:
                seen.add(key)
                merged.append(settlement)
    return merged


def get_saved_settlements(user=None):
    """Local settlements followed by the database rows ``user`` may see, deduplicated by id"""
    local = [s for s in read_records(SAVED_SETTLEMENTS_KEY, owner_for(user)) if is_valid_settlement(s)]
    try:
        with transaction.atomic():
            rows = list(scoped_settlements(user).order_by('-created_at'))
    except DatabaseError as e:
        logger.error(f"Error retrieving customer settlements from database: {e}")
        return local

    remote = [s for s in (row_to_settlement(row) for row in rows) if is_valid_settlement(s)]
    return _merge(local, remote)


def _settlement_id_taken(settlement_id, saved):
    if any(str(s.get('id')) == str(settlement_id) for s in saved):
        return True
    try:
        with transaction.atomic():
            return SavedCustomerSettlement.objects.filter(id=str(settlement_id)).exists()
    except DatabaseError as e:
        logger.error(f"Error checking customer settlement id {settlement_id}: {e}")
        return False


def save_customer_settlement(settlement, user=None):
    """Save a settlement locally, then to the database (with no user when anonymous)"""
    if not settlement.get('customer_name') or not settlement.get('reference_number'):
        raise ValidationError("Customer name and reference number are required")

    settlement = dict(settlement)
    new_id = not settlement.get('id')
    if new_id:
        settlement['id'] = timestamp_id()

    try:
        saved = get_saved_settlements(user)
        if not new_id and _settlement_id_taken(settlement['id'], saved):
            raise DuplicateRecordError(f"Customer settlement {settlement['id']} already exists")
        saved.append(settlement)
        write_records(SAVED_SETTLEMENTS_KEY, saved, owner_for(user))

        try:
            with transaction.atomic():
                SavedCustomerSettlement.objects.create(
                    id=str(settlement['id']),
                    user=user if _is_authenticated(user) else None,
                    **build_settlement_row(settlement)
                )
        except DatabaseError as e:
            logger.error(f"Error saving customer settlement to database: {e}")
        return settlement
    except DuplicateRecordError:
        raise
    except Exception as e:
        logger.error(f"Error saving customer settlement: {e}")
        raise RecordStoreError("Failed to save customer settlement") from e


def update_customer_settlement(settlement, user=None):
    try:
        saved = get_saved_settlements(user)
        updated = [settlement if str(s['id']) == str(settlement.get('id')) else s for s in saved]
        write_records(SAVED_SETTLEMENTS_KEY, updated, owner_for(user))

        try:
            with transaction.atomic():
                scoped_settlements(user).filter(id=str(settlement.get('id'))).update(
                    updated_at=timezone.now(), **build_settlement_row(settlement)
                )
        except DatabaseError as e:
            logger.error(f"Error updating customer settlement in database: {e}")
        return settlement
    except Exception as e:
        logger.error(f"Error updating customer settlement: {e}")
        raise RecordStoreError("Failed to update customer settlement") from e


def delete_customer_settlement(settlement_id, user=None):
    """Remove a settlement from both stores; returns True when it was listed"""
    try:
        saved = get_saved_settlements(user)
        remaining = [s for s in saved if str(s['id']) != str(settlement_id)]
        write_records(SAVED_SETTLEMENTS_KEY, remaining, owner_for(user))

        try:
            with transaction.atomic():
                scoped_settlements(user).filter(id=str(settlement_id)).delete()
        except DatabaseError as e:
            logger.error(f"Error deleting customer settlement from database: {e}")
        return len(remaining) != len(saved)
    except Exception as e:
        logger.error(f"Error deleting customer settlement: {e}")
        raise RecordStoreError("Failed to delete customer settlement") from e


def get_customer_settlement_by_id(settlement_id, user=None):
    for settlement in get_saved_settlements(user):
        if str(settlement['id']) == str(settlement_id):
            return settlement
    return None


def get_saved_customer_settlement_by_id(settlement_id, user=None):
    """Read one settlement straight from the database; signed-in users only"""
    if not _is_authenticated(user):
        return None
    try:
        row = scoped_settlements(user).get(id=str(settlement_id))
    except SavedCustomerSettlement.DoesNotExist:
        return None
    except DatabaseError as e:
        logger.error(f"Error retrieving saved customer settlement by ID: {e}")
        return None
    return row_to_settlement(row)
