"""Saved sales orders, kept in the local record store under ``savedSalesOrders``."""
from django.utils import timezone

from bizpos.core.local_store import owner_for
from bizpos.core.records import (
    append_record, find_record, list_records, remove_record, replace_record, timestamp_id,
)
from .numbering import next_document_number

SAVED_SALES_ORDERS_KEY = 'savedSalesOrders'


def get_saved_sales_orders(user=None):
    return list_records(SAVED_SALES_ORDERS_KEY, owner_for(user), label='sales orders')


def save_sales_order(order, user=None):
    order = dict(order)
    if not order.get('id'):
        order['id'] = timestamp_id()
    if not order.get('order_number'):
        existing = [saved.get('order_number') for saved in get_saved_sales_orders(user)]
        order['order_number'] = next_document_number('SO', existing)
    if not order.get('date'):
        order['date'] = timezone.localdate().isoformat()
    return append_record(SAVED_SALES_ORDERS_KEY, order, owner_for(user), label='sales order')


def update_sales_order(order, user=None):
    return replace_record(SAVED_SALES_ORDERS_KEY, order, owner_for(user), label='sales order')


def delete_sales_order(order_id, user=None):
    return remove_record(SAVED_SALES_ORDERS_KEY, order_id, owner_for(user), label='sales order')


def get_sales_order_by_id(order_id, user=None):
    return find_record(SAVED_SALES_ORDERS_KEY, order_id, owner_for(user), label='sales order')
