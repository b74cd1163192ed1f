"""Human readable document ids: ``PV-2025-12345678``, ``PRX-...``, ``RCP-...``, ``TR-...``."""
from __future__ import annotations

import logging
import time

from django.db import IntegrityError, transaction
from django.utils import timezone

logger = logging.getLogger(__name__)

MAX_ID_ATTEMPTS = 5


def now_millis() -> int:
    return int(time.time() * 1000)


def make_id(prefix: str, millis: int | None = None) -> str:
    if millis is None:
        millis = now_millis()
    return f"{prefix}-{timezone.now().year}-{str(millis)[-8:]}"


def appointment_id_taken(appointment_id: str) -> bool:
    from records.models import PastVisit

    return PastVisit.objects.filter(appointment_id=appointment_id).exists()


def create_past_visit(**fields):
    """Create a past visit under a fresh ``PV-`` id.

    The millisecond part is bumped while the id is taken, including when
    a concurrent request inserts it between the check and our insert.
    """
    from records.models import PastVisit

    millis = now_millis()
    conflicts = 0
    while True:
        candidate = make_id('PV', millis)
        millis += 1
        if appointment_id_taken(candidate):
            continue
        try:
            with transaction.atomic():
                return PastVisit.objects.create(appointment_id=candidate, **fields)
        except IntegrityError:
            conflicts += 1
            if conflicts >= MAX_ID_ATTEMPTS:
                raise
            logger.warning("Appointment id %s was taken concurrently, retrying", candidate)


def new_prescription_id() -> str:
    return make_id('PRX')


def new_receipt_id() -> str:
    return make_id('RCP')


def new_test_result_id() -> str:
    return make_id('TR')
