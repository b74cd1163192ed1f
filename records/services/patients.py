from __future__ import annotations

import logging
from typing import Optional

from records.models import Patient

logger = logging.getLogger(__name__)


def patient_for(user) -> Optional[Patient]:
    """Active patient record owned by ``user``, if any."""
    return Patient.objects.filter(user_id=user.id, is_active=True).order_by('created_at').first()


def patient_ids_for(user) -> list:
    return list(Patient.objects.filter(user_id=user.id, is_active=True).values_list('id', flat=True))


def ensure_patient(user, *, name: Optional[str] = None, phone: Optional[str] = None) -> Patient:
    """Find the user's patient record, creating one on first use.

    Records are matched by owner only; ``phone`` is just stored on a new
    record.
    """
    patient = patient_for(user)
    if patient is not None:
        return patient

    phone = phone or getattr(user, 'phone', None)
    patient = Patient.objects.create(
        user_id=user.id,
        phone=phone,
        name=name or getattr(user, 'name', None) or 'Patient',
        registered_by=user.id,
    )
    logger.info("Created patient record %s for user %s", patient.id, user.id)
    return patient
