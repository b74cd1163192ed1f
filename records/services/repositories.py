"""
Crowd-sourced repositories of unverified doctors, pharmacies and
diagnostics centers.  Entries are matched case-insensitively and every
re-use bumps ``usage_count`` so popular entries rank first in search.
"""
from __future__ import annotations

import logging
from typing import Optional

from django.db.models import F, Q

from records.models import UnverifiedDoctor, Pharmacy, DiagnosticsCenter

logger = logging.getLogger(__name__)

SEARCH_LIMIT = 50


def _bump(obj) -> None:
    type(obj).objects.filter(pk=obj.pk).update(usage_count=F('usage_count') + 1)
    obj.refresh_from_db(fields=['usage_count'])


def _find_by_name_or_phone(model, name: str, phone: Optional[str]):
    cond = Q(name__iexact=name)
    if phone:
        cond |= Q(phone=phone)
    return model.objects.filter(cond, is_active=True).first()


def find_or_create_pharmacy(name: str, *, address: Optional[str] = None, phone: Optional[str] = None,
                            created_by=None) -> Pharmacy:
    pharmacy = _find_by_name_or_phone(Pharmacy, name, phone)
    if pharmacy is not None:
        _bump(pharmacy)
        return pharmacy
    pharmacy = Pharmacy.objects.create(
        name=name,
        address=address or None,
        area=address.split(',')[0].strip() if address else None,
        phone=phone or None,
        usage_count=1,
        created_by=created_by,
    )
    logger.info("Added pharmacy %s to repository", pharmacy.name)
    return pharmacy


def find_or_create_diagnostics_center(name: str, *, address: Optional[str] = None, phone: Optional[str] = None,
                                      created_by=None) -> DiagnosticsCenter:
    center = _find_by_name_or_phone(DiagnosticsCenter, name, phone)
    if center is not None:
        _bump(center)
        return center
    center = DiagnosticsCenter.objects.create(
        name=name,
        address=address or None,
        area=address.split(',')[0].strip() if address else None,
        phone=phone or None,
        usage_count=1,
        created_by=created_by,
    )
    logger.info("Added diagnostics center %s to repository", center.name)
    return center


def search_or_create_doctor(data: dict, created_by) -> tuple[UnverifiedDoctor, bool]:
    """Match on name (plus clinic and city when given); returns ``(doctor, created)``."""
    qs = UnverifiedDoctor.objects.filter(doctor_name__iexact=data['doctor_name'], is_active=True)
    if data.get('clinic_name'):
        qs = qs.filter(clinic_name__iexact=data['clinic_name'])
    if data.get('city'):
        qs = qs.filter(city__iexact=data['city'])
    doctor = qs.first()
    if doctor is not None:
        _bump(doctor)
        return doctor, False

    doctor = UnverifiedDoctor.objects.create(
        doctor_name=data['doctor_name'],
        specialty=data.get('specialty'),
        registration_number=data.get('registration_number'),
        clinic_name=data.get('clinic_name'),
        area=data.get('area'),
        city=data.get('city'),
        pincode=data.get('pincode'),
        address=data.get('address'),
        phone=data.get('phone'),
        email=data.get('email'),
        usage_count=1,
        created_by=created_by,
    )
    return doctor, True


def search_doctors(*, search=None, city=None, specialty=None):
    qs = UnverifiedDoctor.objects.filter(is_active=True)
    if search:
        qs = qs.filter(Q(doctor_name__icontains=search) | Q(clinic_name__icontains=search)
                       | Q(specialty__icontains=search))
    if city:
        qs = qs.filter(city__icontains=city)
    if specialty:
        qs = qs.filter(specialty__icontains=specialty)
    return list(qs.order_by('-usage_count', '-created_at')[:SEARCH_LIMIT])


def _search_places(model, *, search=None, city=None, area=None):
    qs = model.objects.filter(is_active=True)
    if search:
        qs = qs.filter(Q(name__icontains=search) | Q(owner_name__icontains=search) | Q(phone__icontains=search))
    if city:
        qs = qs.filter(city__icontains=city)
    if area:
        qs = qs.filter(area__icontains=area)
    return qs


def search_pharmacies(**filters):
    return list(_search_places(Pharmacy, **filters).order_by('-usage_count', '-created_at')[:SEARCH_LIMIT])


def search_diagnostics_centers(*, test_type=None, **filters):
    qs = _search_places(DiagnosticsCenter, **filters).order_by('-usage_count', '-created_at')
    if not test_type:
        return list(qs[:SEARCH_LIMIT])
    # JSON list containment is not portable across backends; filter in Python
    wanted = test_type.lower()
    matched = [c for c in qs if any(str(t).lower() == wanted for t in (c.test_types or []))]
    return matched[:SEARCH_LIMIT]
