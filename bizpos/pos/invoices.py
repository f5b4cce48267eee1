"""Saved invoices, kept in the local record store under ``savedInvoices``."""
import logging

from django.utils import timezone

from bizpos.core.local_store import owner_for
from bizpos.core.records import (
    append_record, find_record, list_records, remove_record, replace_record, timestamp_id,
)
from bizpos.purchasing.consumption import update_grn_quantities_from_invoice
from bizpos.purchasing.exceptions import GRNStorageError
from .numbering import next_document_number

logger = logging.getLogger(__name__)

SAVED_INVOICES_KEY = 'savedInvoices'


def get_saved_invoices(user=None):
    return list_records(SAVED_INVOICES_KEY, owner_for(user), label='invoices')


def save_invoice(invoice, user=None, consume_stock=True):
    """
    Store a new invoice. Line items in ``items_list`` are drawn down from the
    matching GRN items unless ``consume_stock`` is False.
    """
    owner = owner_for(user)
    invoice = dict(invoice)
    if not invoice.get('id'):
        invoice['id'] = timestamp_id()
    if not invoice.get('invoice_number'):
        existing = [saved.get('invoice_number') for saved in get_saved_invoices(user)]
        invoice['invoice_number'] = next_document_number('INV', existing)
    if not invoice.get('date'):
        invoice['date'] = timezone.localdate().isoformat()
    if invoice.get('items') is None:
        invoice['items'] = len(invoice.get('items_list') or [])

    append_record(SAVED_INVOICES_KEY, invoice, owner, label='invoice')

    if consume_stock and invoice.get('items_list'):
        try:
            update_grn_quantities_from_invoice(invoice['items_list'], user)
        except GRNStorageError as e:
            logger.error(f"Invoice {invoice['invoice_number']} saved but GRN stock was not updated: {e}")
    return invoice


def update_invoice(invoice, user=None):
    """Replace the stored invoice with the same id; returns False when none matched"""
    return replace_record(SAVED_INVOICES_KEY, invoice, owner_for(user), label='invoice')


def delete_invoice(invoice_id, user=None):
    return remove_record(SAVED_INVOICES_KEY, invoice_id, owner_for(user), label='invoice')


def get_invoice_by_id(invoice_id, user=None):
    return find_record(SAVED_INVOICES_KEY, invoice_id, owner_for(user), label='invoice')
