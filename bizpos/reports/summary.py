"""Dashboard figures gathered from every record store the user can see."""
import logging
from collections import Counter
from decimal import Decimal

from bizpos.catalog.models import Product
from bizpos.parties.customer_settlements import get_saved_settlements
from bizpos.parties.supplier_settlements import get_saved_supplier_settlements
from bizpos.pos.deliveries import get_saved_deliveries
from bizpos.pos.invoices import get_saved_invoices
from bizpos.pos.sales_orders import get_saved_sales_orders
from bizpos.purchasing.calculations import to_decimal
from bizpos.purchasing.grn_store import get_saved_grns

logger = logging.getLogger('bizpos.reports')

# statuses that do not count towards money totals
EXCLUDED_STATUSES = ('cancelled', 'refunded')


def _sum(records, field):
    return float(sum(
        (to_decimal(r.get(field)) for r in records if r.get('status') not in EXCLUDED_STATUSES),
        Decimal('0'),
    ))


def _document_summary(records, total_field='total'):
    return {
        'count': len(records),
        'total': _sum(records, total_field),
        'by_status': dict(Counter(r.get('status') or 'unknown' for r in records)),
    }


def grn_inventory(grns):
    """Stock on hand per item description across all GRNs"""
    lines = {}
    for grn in grns:
        data = grn.get('data') or {}
        if data.get('status') == 'cancelled':
            continue
        for item in data.get('items') or []:
            key = (item.get('description') or '').strip().lower()
            if not key:
                continue
            line = lines.setdefault(key, {
                'description': (item.get('description') or '').strip(),
                'delivered': Decimal('0'),
                'soldout': Decimal('0'),
                'available': Decimal('0'),
                'value': Decimal('0'),
                'grn_count': 0,
            })
            available = to_decimal(item.get('available'))
            line['delivered'] += to_decimal(item.get('delivered'))
            line['soldout'] += to_decimal(item.get('soldout'))
            line['available'] += available
            line['value'] += available * to_decimal(item.get('unit_cost'))
            line['grn_count'] += 1

    return [
        {**line, **{field: float(line[field]) for field in ('delivered', 'soldout', 'available', 'value')}}
        for line in sorted(lines.values(), key=lambda line: line['description'].lower())
    ]


def build_dashboard_summary(user):
    grns = get_saved_grns(user)
    inventory = grn_inventory(grns)

    active_products = Product.objects.filter(is_active=True)
    summary = {
        'grns': {
            'count': len(grns),
            'total_value': float(sum(
                (to_decimal(g.get('total')) for g in grns
                 if (g.get('data') or {}).get('status') not in EXCLUDED_STATUSES),
                Decimal('0'),
            )),
            'by_status': dict(Counter((g.get('data') or {}).get('status') or 'completed' for g in grns)),
        },
        'invoices': _document_summary(get_saved_invoices(user)),
        'deliveries': _document_summary(get_saved_deliveries(user)),
        'sales_orders': _document_summary(get_saved_sales_orders(user)),
        'customer_settlements': _document_summary(get_saved_settlements(user), 'settlement_amount'),
        'supplier_settlements': _document_summary(get_saved_supplier_settlements(user), 'settlement_amount'),
        'products': {
            'count': active_products.count(),
            'low_stock': active_products.low_stock().count(),
        },
        'inventory_value': float(sum((Decimal(str(line['value'])) for line in inventory), Decimal('0'))),
    }
    logger.debug(f"Dashboard summary built for user {getattr(user, 'pk', None)}")
    return summary
