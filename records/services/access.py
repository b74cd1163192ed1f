from __future__ import annotations

import uuid

from django.db.models import Q
from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError

from records.models import PastVisit, Patient
from records.services.patients import patient_ids_for


def get_owned(model, user, not_found: str, **lookup):
    """Active row matching ``lookup`` that ``user`` created.

    Raises ``NotFound`` for missing or soft-deleted rows and
    ``PermissionDenied`` when another user created the row.
    """
    obj = model.objects.filter(is_active=True, **lookup).first()
    if obj is None:
        raise NotFound(not_found)
    if str(obj.created_by) != str(user.id):
        raise PermissionDenied('Access denied')
    return obj


def visible_visits(user, patient_id=None):
    """Active past visits ``user`` may read, optionally for one owned patient.

    Without ``patient_id`` this covers the visits of the user's patient
    records and the visits the user created.
    """
    qs = PastVisit.objects.filter(is_active=True)
    if not patient_id:
        return qs.filter(Q(patient_id__in=patient_ids_for(user)) | Q(created_by=user.id))
    try:
        patient_id = uuid.UUID(str(patient_id))
    except ValueError:
        raise ValidationError('Invalid patient_id')
    if not Patient.objects.filter(id=patient_id, user_id=user.id, is_active=True).exists():
        raise PermissionDenied('Patient not found or access denied')
    return qs.filter(patient_id=patient_id)
