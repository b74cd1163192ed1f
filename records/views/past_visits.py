"""
Past visit views.

A past visit is a doctor consultation the patient records after the
fact, identified by a readable ``appointment_id`` (``PV-2025-12345678``).
Documents (prescriptions, receipts, test results) hang off that id.
Only the user who created a visit may read, change or delete it.
"""
from __future__ import annotations

import logging

from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from records.models import PastVisit, PastPrescription, Receipt, PastTestResult, Patient, UnverifiedDoctor
from records.serializers.visits import (
    PastVisitInputSerializer, PastVisitSerializer, PastVisitUpdateSerializer,
    PastPrescriptionSerializer, ReceiptSerializer, PastTestResultSerializer,
)
from records.services.access import get_owned, visible_visits
from records.services.identifiers import create_past_visit
from records.services.patients import ensure_patient

logger = logging.getLogger(__name__)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def past_visits(request):
    if request.method == 'POST':
        return _create_past_visit(request)
    return _list_past_visits(request)


def _create_past_visit(request):
    s = PastVisitInputSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    user = request.user

    if not vd.get('visit_date') or not vd.get('doctor_name') or not vd.get('patient_name'):
        return Response({'message': 'visit_date, doctor_name, and patient_name are required'}, status=400)

    if vd.get('patient_id'):
        patient = Patient.objects.filter(id=vd['patient_id'], user_id=user.id, is_active=True).first()
        if patient is None:
            return Response({'message': 'Patient not found or access denied'}, status=403)
    else:
        patient = ensure_patient(user, name=vd['patient_name'], phone=vd.get('patient_phone') or user.phone)

    doctor = None
    if vd.get('unverified_doctor_id'):
        doctor = UnverifiedDoctor.objects.filter(id=vd['unverified_doctor_id'], is_active=True).first()
        if doctor is None:
            raise ValidationError({'unverified_doctor_id': 'Unverified doctor not found'})

    visit = create_past_visit(
        patient_id=patient.id,
        patient_name=vd['patient_name'],
        patient_phone=vd.get('patient_phone') or patient.phone or user.phone or '',
        visit_date=vd['visit_date'],
        doctor_id=vd.get('doctor_id'),
        unverified_doctor=doctor,
        doctor_name=vd['doctor_name'],
        doctor_specialty=vd.get('doctor_specialty'),
        doctor_registration_number=vd.get('doctor_registration_number'),
        clinic_name=vd.get('clinic_name'),
        hcp_name=vd.get('hcp_name'),
        area=vd.get('area'),
        city=vd.get('city'),
        pincode=vd.get('pincode'),
        chief_complaint=vd.get('chief_complaint'),
        diagnosis=vd.get('diagnosis'),
        notes=vd.get('notes'),
        follow_up_date=vd.get('follow_up_date'),
        consultation_fee=vd.get('consultation_fee'),
        created_by=user.id,
    )
    logger.info("Past visit %s created for patient %s", visit.appointment_id, visit.patient_name)

    return Response({
        'message': 'Past visit created successfully',
        'visit': PastVisitSerializer(visit).data,
        'appointment_id': visit.appointment_id,
    }, status=201)


def _list_past_visits(request):
    qs = visible_visits(request.user, request.query_params.get('patient_id'))
    visits = PastVisitSerializer(qs.order_by('-visit_date', '-created_at'), many=True).data
    return Response({
        'message': 'Past visits retrieved successfully',
        'visits': visits,
        'count': len(visits),
    })


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated])
def past_visit_detail(request, appointment_id: str):
    visit = get_owned(PastVisit, request.user, 'Past visit not found', appointment_id=appointment_id)

    if request.method == 'PUT':
        s = PastVisitUpdateSerializer(visit, data=request.data, partial=True)
        s.is_valid(raise_exception=True)
        visit = s.save()
        logger.info("Past visit %s updated", appointment_id)
        return Response({'message': 'Past visit updated successfully', 'visit': PastVisitSerializer(visit).data})

    if request.method == 'DELETE':
        visit.is_active = False
        visit.save(update_fields=['is_active', 'updated_at'])
        logger.info("Past visit %s deleted", appointment_id)
        return Response({'message': 'Past visit deleted successfully'})

    docs = {'appointment_id': appointment_id, 'is_active': True}
    prescriptions = PastPrescription.objects.filter(**docs).order_by('-prescription_date')
    receipts = Receipt.objects.filter(**docs).order_by('-receipt_date')
    test_results = PastTestResult.objects.filter(**docs).order_by('-test_date')
    return Response({
        'message': 'Past visit details retrieved successfully',
        'visit': PastVisitSerializer(visit).data,
        'documents': {
            'prescriptions': PastPrescriptionSerializer(prescriptions, many=True).data,
            'receipts': ReceiptSerializer(receipts, many=True).data,
            'test_results': PastTestResultSerializer(test_results, many=True).data,
        },
    })
