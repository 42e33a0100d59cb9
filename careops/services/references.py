"""
Human readable identifiers.

``next_reference`` issues ``PREFIX + YYYYMMDD + NNN`` numbers from a
per-(prefix, day) counter row that is locked for the rest of the calling
transaction, so two concurrent creations never receive the same number
and deleting a record never makes a number reusable.  Transaction ids
for payments are timestamp based with a random suffix.
"""
from __future__ import annotations

import datetime
import secrets
from typing import Optional

from django.db import transaction
from django.utils import timezone

from careops.models import Payment, ReferenceSequence

APPOINTMENT_PREFIX = 'APP'
ROOM_BOOKING_PREFIX = 'ROOM'
AMBULANCE_PREFIX = 'AMB'


def format_reference(prefix: str, day: datetime.date, seq: int) -> str:
    return f"{prefix}{day:%Y%m%d}{seq:03d}"


def next_reference(prefix: str, day: Optional[datetime.date] = None) -> str:
    day = day or timezone.localdate()
    with transaction.atomic():
        # get_or_create repeats the locked lookup if a concurrent insert wins
        counter, _ = ReferenceSequence.objects.select_for_update().get_or_create(prefix=prefix, day=day)
        counter.last_value += 1
        counter.save(update_fields=['last_value'])
    return format_reference(prefix, day, counter.last_value)


def new_transaction_id(now: Optional[datetime.datetime] = None) -> str:
    now = timezone.localtime(now or timezone.now())
    while True:
        candidate = f"TRX{now:%Y%m%d%H%M%S}{secrets.randbelow(999) + 1:03d}"
        if not Payment.objects.filter(transaction_id=candidate).exists():
            return candidate
