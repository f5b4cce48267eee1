"""Audit trail helpers shared by every app"""
import logging
from datetime import date, datetime
from decimal import Decimal

from .models import AuditLog

logger = logging.getLogger(__name__)


def get_client_ip(request):
    """Client address, preferring the first X-Forwarded-For hop"""
    meta = getattr(request, 'META', None)
    if not meta:
        return None
    forwarded = meta.get('HTTP_X_FORWARDED_FOR')
    if forwarded:
        return forwarded.split(',')[0].strip() or None
    return meta.get('REMOTE_ADDR') or None


def _acting_user(request, user):
    actor = user or getattr(request, 'user', None)
    if actor is not None and getattr(actor, 'is_authenticated', False):
        return actor
    return None


def _json_safe(value):
    if isinstance(value, dict):
        return {str(k): _json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(v) for v in value]
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value


def create_audit_log(request=None, action=None, model_name=None, object_id=None,
                     changes=None, user=None, object_name=None, object_reference=None):
    """
    Record who did what to which record.

    Args:
        request: current request; supplies the user and client IP
        action: e.g. grn_create, grn_update, grn_delete, stock_consume, invoice_create
        model_name: record type, e.g. SavedGRN, Invoice, CustomerSettlement
        object_id: record id (stored as a string)
        changes: dict of changed values; Decimals and dates are stored as strings
        user: acting user when there is no request (store-level calls)
        object_name: readable label, e.g. GRN or invoice number
        object_reference: secondary reference, e.g. PO or receipt number

    Returns the AuditLog, or None when it was skipped or could not be written.
    Audit failures are logged and never reach the caller.
    """
    if not action or not model_name or not object_id:
        logger.warning(
            f"Audit log creation skipped: missing required fields "
            f"(action={action}, model_name={model_name}, object_id={object_id})"
        )
        return None

    try:
        return AuditLog.objects.create(
            user=_acting_user(request, user),
            action=action,
            model_name=model_name,
            object_id=str(object_id),
            object_name=object_name,
            object_reference=object_reference,
            changes=_json_safe(changes or {}),
            ip_address=get_client_ip(request),
        )
    except Exception as e:
        logger.error(f"Failed to create audit log for {model_name} {object_id}: {e}")
        return None
