"""
Extract-only endpoints and receipt scanning.

The extract endpoints read a document with Gemini and hand the result
back so the client can pre-fill its forms; nothing is stored.  Scanning a
consultation receipt goes one step further and creates the past visit
and its receipt in one call.
"""
from __future__ import annotations

import logging

from django.db import transaction
from django.utils import timezone
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from records.models import Receipt, UnverifiedDoctor
from records.serializers.visits import DocumentUploadSerializer
from records.services import gemini, repositories
from records.services.values import parse_day, to_amount
from records.services.identifiers import create_past_visit, new_receipt_id
from records.services.patients import ensure_patient

logger = logging.getLogger(__name__)


def _metadata(extracted: dict) -> dict:
    return {
        'extracted_at': timezone.now().isoformat(),
        'confidence': extracted.get('confidence') or 0,
        'raw_extraction': extracted,
    }


def _extract_only(request, label: str, extractor, can_create_visit, *args):
    s = DocumentUploadSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    if not vd.get('file_url') and not vd.get('file_base64'):
        return Response({'message': 'Either file_url or file_base64 is required'}, status=400)
    if not vd.get('use_ai_extraction', True):
        return Response({'message': f'No {label} data extracted. Please check the file and try again.'},
                        status=400)

    try:
        extracted = extractor(*args, file_url=vd.get('file_url'), file_base64=vd.get('file_base64'),
                              file_type=vd.get('file_type'))
    except gemini.GeminiError as e:
        logger.error("%s extraction failed: %s", label, e)
        return Response({
            'message': f'Failed to extract {label} data',
            'error': str(e),
            'extracted_data': None,
        }, status=500)

    return Response({
        'message': f'{label.capitalize()} data extracted successfully',
        'extracted_data': extracted,
        'ai_confidence': extracted.get('confidence') or None,
        'ai_extraction_metadata': _metadata(extracted),
        'can_create_visit': can_create_visit(extracted),
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def extract_receipt(request):
    receipt_type = request.data.get('receipt_type') or 'consultation'
    return _extract_only(request, 'receipt', gemini.extract_receipt,
                         lambda d: bool(d.get('doctor_name') and d.get('receipt_date')), receipt_type)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def extract_prescription(request):
    return _extract_only(request, 'prescription', gemini.extract_prescription,
                         lambda d: bool(d.get('doctor_name') and d.get('prescription_date')))


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def extract_test_result(request):
    return _extract_only(request, 'test result', gemini.extract_test_result,
                         lambda d: bool(d.get('test_name') and d.get('test_date')))


# ---------------------------------------------------------------------
# Scan a consultation receipt into a past visit
# ---------------------------------------------------------------------
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def scan_receipt(request):
    """
    Extract a receipt and create a past visit plus its receipt.
    When the doctor or the date cannot be determined the extracted data
    is returned with 200 so the client can complete the form.
    """
    s = DocumentUploadSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    file_url = vd.get('file_url')
    if not file_url:
        return Response({'message': 'file_url is required'}, status=400)

    user = request.user
    receipt_type = vd.get('receipt_type') or 'consultation'
    manual = vd.get('manual_data') or None

    extracted = None
    if vd.get('use_ai_extraction', True):
        try:
            extracted = gemini.extract_receipt(receipt_type, file_url=file_url, file_type=vd.get('file_type'))
        except gemini.GeminiError as e:
            logger.error("Receipt scan extraction failed: %s", e)
            if not manual:
                return Response({
                    'message': 'Failed to extract receipt data. Please provide manual data.',
                    'error': str(e),
                }, status=500)

    if extracted is None and not manual:
        return Response({'message': 'No receipt data available. Enable AI extraction or provide manual data.'},
                        status=400)
    data = {**(extracted or {}), **(manual or {})}
    metadata = _metadata(extracted) if extracted is not None else None

    preview = {
        'extracted_data': data,
        'ai_confidence': (extracted or {}).get('confidence') or None,
        'ai_extraction_metadata': metadata,
        'can_create_visit': bool(data.get('doctor_name') and data.get('receipt_date')),
    }
    if not data.get('doctor_name') or not data.get('receipt_date'):
        return Response({
            'message': 'Data extracted successfully. Please review and complete the form manually.',
            **preview,
            'missing_fields': {
                'doctor_name': not data.get('doctor_name'),
                'receipt_date': not data.get('receipt_date'),
            },
        })

    visit_date = parse_day(data['receipt_date'])
    if visit_date is None:
        return Response({
            'message': 'Data extracted successfully. Invalid receipt date format. '
                       'Please review and correct the date in the form.',
            **preview,
            'date_error': True,
        })

    fee = to_amount(data.get('consultation_fee') or data.get('total_amount'))
    with transaction.atomic():
        patient = ensure_patient(user)
        doctor = UnverifiedDoctor.objects.filter(doctor_name__iexact=data['doctor_name'], is_active=True).first()
        if doctor is None and data.get('clinic_name'):
            doctor, _ = repositories.search_or_create_doctor({
                'doctor_name': data['doctor_name'],
                'specialty': data.get('doctor_specialty') or None,
                'clinic_name': data['clinic_name'],
                'area': data.get('area') or None,
                'city': data.get('city') or None,
                'pincode': data.get('pincode') or None,
            }, created_by=user.id)

        visit = create_past_visit(
            patient_id=patient.id,
            patient_name=patient.name,
            patient_phone=patient.phone or user.phone or '',
            visit_date=visit_date,
            unverified_doctor=doctor,
            doctor_name=data['doctor_name'],
            doctor_specialty=data.get('doctor_specialty') or None,
            clinic_name=data.get('clinic_name') or None,
            area=data.get('area') or None,
            city=data.get('city') or None,
            pincode=data.get('pincode') or None,
            consultation_fee=fee,
            created_by=user.id,
        )
        receipt = Receipt.objects.create(
            receipt_id=new_receipt_id(),
            appointment_id=visit.appointment_id,
            patient_id=patient.id,
            patient_name=patient.name,
            receipt_type=receipt_type,
            amount=fee,
            payment_method=data.get('payment_method') or None,
            receipt_date=visit_date,
            file_url=file_url,
            file_name=vd.get('file_name') or f'{receipt_type}_receipt.pdf',
            file_type=vd.get('file_type') or 'application/pdf',
            is_ai_extracted=extracted is not None,
            ai_extraction_metadata=metadata,
            extracted_data={
                'invoice_number': data.get('invoice_number') or None,
                'items': data.get('medicines') or data.get('tests') or [],
                'total_amount': data.get('total_amount'),
                'tax_amount': data.get('tax_amount'),
                'discount': data.get('discount'),
            },
            created_by=user.id,
        )
    logger.info("Past visit %s created from scanned receipt %s", visit.appointment_id, receipt.receipt_id)

    return Response({
        'message': 'Past visit created from receipt',
        'past_visit': {
            'id': str(visit.id),
            'appointment_id': visit.appointment_id,
            'visit_date': visit.visit_date.isoformat(),
            'doctor_name': visit.doctor_name,
            'clinic_name': visit.clinic_name,
            'consultation_fee': float(fee) if fee is not None else None,
        },
        'receipt': {
            'id': str(receipt.id),
            'receipt_id': receipt.receipt_id,
            'receipt_type': receipt.receipt_type,
            'file_url': receipt.file_url,
        },
        'extracted_data': extracted,
        'ai_confidence': (extracted or {}).get('confidence') or None,
    }, status=201)
