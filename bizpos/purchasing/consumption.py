"""Stock consumption: invoices and delivery notes draw down GRN quantities."""
import logging

from bizpos.core.utils import create_audit_log
from .calculations import calculate_available, to_decimal
from .grn_store import get_saved_grns, update_grn

logger = logging.getLogger(__name__)


def _normalise(description):
    return (description or '').strip().lower()


def consumed_items_from_lines(lines):
    """``{description, quantity}`` pairs from invoice or delivery line items"""
    consumed = []
    for line in lines or []:
        if not isinstance(line, dict):
            continue
        description = line.get('description') or line.get('name')
        if not description:
            continue
        consumed.append({'description': description, 'quantity': line.get('quantity') or 0})
    return consumed


def update_grn_quantities_on_consumption(consumed_items, user=None):
    """
    Add each consumed quantity to the ``soldout`` of the first GRN item whose
    description matches, and recompute its ``available`` (never below zero).

    Returns the number of consumed items that found a match.
    """
    saved_grns = get_saved_grns(user)
    logger.info(f"Applying {len(consumed_items)} consumed items against {len(saved_grns)} saved GRNs")
    matched = 0

    for consumed in consumed_items:
        wanted = _normalise(consumed.get('description'))
        item_updated = False

        for grn in saved_grns:
            items = (grn.get('data') or {}).get('items') or []
            index = next(
                (i for i, item in enumerate(items) if wanted and _normalise(item.get('description')) == wanted),
                None,
            )
            if index is None:
                continue

            item = dict(items[index])
            quantity = to_decimal(consumed.get('quantity'))
            item['soldout'] = float(to_decimal(item.get('soldout')) + quantity)
            item['available'] = max(0.0, calculate_available(item))
            items[index] = item
            grn['data']['items'] = items

            update_grn(grn, user)
            create_audit_log(
                user=user,
                action='stock_consume',
                model_name='SavedGRN',
                object_id=str(grn.get('id')),
                object_name=grn['data'].get('grn_number'),
                changes={
                    'description': item.get('description'),
                    'quantity': str(quantity),
                    'soldout': str(item['soldout']),
                    'available': str(item['available']),
                },
            )
            logger.info(f"GRN {grn['data'].get('grn_number')}: {item.get('description')} soldout now {item['soldout']}")
            item_updated = True
            matched += 1
            # only the first matching GRN item is drawn down
            break

        if not item_updated:
            logger.warning(f"No matching GRN item found for consumed item: {consumed.get('description')}")

    return matched


def update_grn_quantities_from_invoice(invoice_items, user=None):
    return update_grn_quantities_on_consumption(consumed_items_from_lines(invoice_items), user)


def update_grn_quantities_from_delivery_note(delivery_items, user=None):
    return update_grn_quantities_on_consumption(consumed_items_from_lines(delivery_items), user)
