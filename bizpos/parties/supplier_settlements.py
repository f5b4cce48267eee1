"""Supplier settlements, kept only in the local record store under ``savedSupplierSettlements``."""
from django.utils import timezone

from bizpos.core.local_store import owner_for
from bizpos.core.records import (
    append_record, find_record, list_records, remove_record, replace_record, timestamp_id,
)

SAVED_SUPPLIER_SETTLEMENTS_KEY = 'savedSupplierSettlements'


def get_saved_supplier_settlements(user=None):
    return list_records(SAVED_SUPPLIER_SETTLEMENTS_KEY, owner_for(user), label='supplier settlements')


def save_supplier_settlement(settlement, user=None):
    settlement = dict(settlement)
    if not settlement.get('id'):
        settlement['id'] = timestamp_id()
    now = timezone.localtime()
    if not settlement.get('date'):
        settlement['date'] = now.date().isoformat()
    if not settlement.get('time'):
        settlement['time'] = now.strftime('%H:%M:%S')
    return append_record(
        SAVED_SUPPLIER_SETTLEMENTS_KEY, settlement, owner_for(user), label='supplier settlement'
    )


def update_supplier_settlement(settlement, user=None):
    return replace_record(
        SAVED_SUPPLIER_SETTLEMENTS_KEY, settlement, owner_for(user), label='supplier settlement'
    )


def delete_supplier_settlement(settlement_id, user=None):
    return remove_record(
        SAVED_SUPPLIER_SETTLEMENTS_KEY, settlement_id, owner_for(user), label='supplier settlement'
    )


def get_supplier_settlement_by_id(settlement_id, user=None):
    return find_record(
        SAVED_SUPPLIER_SETTLEMENTS_KEY, settlement_id, owner_for(user), label='supplier settlement'
    )
