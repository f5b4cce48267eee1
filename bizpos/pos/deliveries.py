"""Saved delivery notes, kept in the local record store under ``savedDeliveries``."""
import logging

from django.utils import timezone

from bizpos.core.local_store import owner_for
from bizpos.core.records import (
    append_record, find_record, list_records, remove_record, replace_record, timestamp_id,
)
from bizpos.purchasing.consumption import update_grn_quantities_from_delivery_note
from bizpos.purchasing.exceptions import GRNStorageError
from .numbering import next_delivery_note_number

logger = logging.getLogger(__name__)

SAVED_DELIVERIES_KEY = 'savedDeliveries'


def get_saved_deliveries(user=None):
    return list_records(SAVED_DELIVERIES_KEY, owner_for(user), label='deliveries')


def save_delivery(delivery, user=None, consume_stock=True):
    """Store a new delivery note, numbering it and drawing down GRN stock"""
    owner = owner_for(user)
    delivery = dict(delivery)
    if not delivery.get('id'):
        delivery['id'] = timestamp_id()
    if not delivery.get('delivery_note_number'):
        delivery['delivery_note_number'] = next_delivery_note_number(owner)
    if not delivery.get('date'):
        delivery['date'] = timezone.localdate().isoformat()
    if delivery.get('items') is None:
        delivery['items'] = len(delivery.get('items_list') or [])

    append_record(SAVED_DELIVERIES_KEY, delivery, owner, label='delivery')

    if consume_stock and delivery.get('items_list'):
        try:
            update_grn_quantities_from_delivery_note(delivery['items_list'], user)
        except GRNStorageError as e:
            logger.error(f"Delivery {delivery['delivery_note_number']} saved but GRN stock was not updated: {e}")
    return delivery


def update_delivery(delivery, user=None):
    return replace_record(SAVED_DELIVERIES_KEY, delivery, owner_for(user), label='delivery')


def delete_delivery(delivery_id, user=None):
    return remove_record(SAVED_DELIVERIES_KEY, delivery_id, owner_for(user), label='delivery')


def get_delivery_by_id(delivery_id, user=None):
    return find_record(SAVED_DELIVERIES_KEY, delivery_id, owner_for(user), label='delivery')
