"""
GRN arithmetic.

Items and receiving costs are plain dicts as kept in the local record store.
Sums are done in Decimal and handed back as floats so records stay JSON
friendly.
"""
from decimal import Decimal, InvalidOperation

QUANTITY_FIELDS = ('delivered', 'soldout', 'rejected_out', 'rejection_in', 'damaged', 'complimentary')


def to_decimal(value):
    """Decimal for a numeric-ish value; missing or junk values count as 0"""
    if value is None or value == '':
        return Decimal('0')
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return Decimal('0')


def _out(value):
    return float(value)


def calculate_available(item):
    """delivered - soldout - rejected_out + rejection_in - damaged - complimentary"""
    available = (
        to_decimal(item.get('delivered'))
        - to_decimal(item.get('soldout'))
        - to_decimal(item.get('rejected_out'))
        + to_decimal(item.get('rejection_in'))
        - to_decimal(item.get('damaged'))
        - to_decimal(item.get('complimentary'))
    )
    return _out(available)


def calculate_line_total(item):
    return _out(to_decimal(item.get('delivered')) * to_decimal(item.get('unit_cost')))


def _item_total(item):
    # a zero total_with_receiving_cost falls through to total
    return to_decimal(item.get('total_with_receiving_cost') or item.get('total') or 0)


def calculate_grn_total(items):
    """Sum of total_with_receiving_cost (or total) over the GRN items"""
    return _out(sum((_item_total(item) for item in items or []), Decimal('0')))


def calculate_receiving_costs_total(receiving_costs):
    return _out(sum((to_decimal(cost.get('amount')) for cost in receiving_costs or []), Decimal('0')))


def calculate_grn_amount(items, receiving_costs):
    """Item totals plus receiving costs, as shown on the printed GRN"""
    items_total = sum((to_decimal(item.get('total')) for item in items or []), Decimal('0'))
    return _out(items_total + to_decimal(calculate_receiving_costs_total(receiving_costs)))


def base_unit_cost(item):
    """Unit cost before receiving costs; derived from unit_cost when original_unit_cost is unset"""
    if item.get('original_unit_cost'):
        return to_decimal(item['original_unit_cost'])
    return to_decimal(item.get('unit_cost')) - to_decimal(item.get('receiving_cost_per_unit'))


def distribute_receiving_costs(items, receiving_costs):
    """
    Spread receiving costs evenly over every delivered unit.

    Returns new item dicts; the originals are left untouched. The base unit
    cost is remembered in ``original_unit_cost`` so distributing again does
    not stack costs twice.
    """
    items = [dict(item) for item in items or []]
    total_delivered = sum((to_decimal(item.get('delivered')) for item in items), Decimal('0'))

    if total_delivered == 0:
        for item in items:
            item['receiving_cost_per_unit'] = 0.0
            item['total_with_receiving_cost'] = _out(
                to_decimal(item.get('unit_cost')) * to_decimal(item.get('delivered'))
            )
        return items

    cost_per_unit = to_decimal(calculate_receiving_costs_total(receiving_costs)) / total_delivered

    for item in items:
        base_cost = base_unit_cost(item)
        unit_cost = base_cost + cost_per_unit
        item['original_unit_cost'] = _out(base_cost)
        item['receiving_cost_per_unit'] = _out(cost_per_unit)
        item['unit_cost'] = _out(unit_cost)
        item['total_with_receiving_cost'] = _out(unit_cost * to_decimal(item.get('delivered')))
    return items


def ensure_total(record):
    """Fill ``total`` from the items when the record has none"""
    if record.get('total') is None and isinstance(record.get('data'), dict):
        record = dict(record)
        record['total'] = calculate_grn_total(record['data'].get('items'))
    return record


def needs_total_refresh(record):
    """Missing or zero total, and the items add up to something"""
    if not isinstance(record.get('data'), dict):
        return False
    if to_decimal(record.get('total')) != 0:
        return False
    return calculate_grn_total(record['data'].get('items')) > 0
