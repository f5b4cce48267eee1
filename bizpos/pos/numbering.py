"""Document numbers for invoices, delivery notes and sales orders."""
import re

from django.utils import timezone

from bizpos.core.local_store import read_value, write_value

LAST_DELIVERY_NOTE_KEY = 'lastDeliveryNoteNumber'


def _date_part(today):
    return (today or timezone.localdate()).strftime('%Y%m%d')


def next_delivery_note_number(owner=None, today=None):
    """
    ``DN-YYYYMMDD-NNN``; the sequence restarts at 001 each day.

    The last issued ``YYYYMMDD-NNN`` is remembered in the owner's local store.
    """
    date_str = _date_part(today)
    next_number = 1

    last_number = read_value(LAST_DELIVERY_NOTE_KEY, owner)
    if last_number:
        last_date, _, last_seq = str(last_number).partition('-')
        if last_date == date_str and last_seq.isdigit():
            next_number = int(last_seq) + 1

    new_number = f"{date_str}-{next_number:03d}"
    write_value(LAST_DELIVERY_NOTE_KEY, new_number, owner)
    return f"DN-{new_number}"


def next_document_number(prefix, existing_numbers, today=None):
    """Next ``PREFIX-YYYYMMDD-NNN`` after the highest one already issued today"""
    stem = f"{prefix}-{_date_part(today)}-"
    pattern = re.compile(rf"^{re.escape(stem)}(\d+)$")
    highest = 0
    for number in existing_numbers:
        match = pattern.match(str(number or ''))
        if match:
            highest = max(highest, int(match.group(1)))
    return f"{stem}{highest + 1:03d}"
