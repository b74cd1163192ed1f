"""
Documents attached to a past visit: prescriptions, receipts and test
results.

Uploads reference the file by URL or carry it inline as base64.  When
``use_ai_extraction`` is on (the default) the document is read by Gemini
first; a failed extraction is logged and the upload goes ahead with
whatever ``manual_data`` the client sent.  Receipts grow the pharmacy and
diagnostics-center repositories, test results feed the vital parameters.
"""
from __future__ import annotations

import logging
from typing import Optional

from django.db import transaction
from django.utils import timezone
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from records.models import PastVisit, PastPrescription, Receipt, PastTestResult
from records.serializers.visits import (
    DocumentUploadSerializer,
    PastPrescriptionSerializer, PastPrescriptionUpdateSerializer,
    ReceiptSerializer, ReceiptUpdateSerializer,
    PastTestResultSerializer, PastTestResultUpdateSerializer,
)
from records.services import gemini, repositories, vitals
from records.services.access import get_owned
from records.services.values import parse_day, to_amount
from records.services.identifiers import new_prescription_id, new_receipt_id, new_test_result_id

logger = logging.getLogger(__name__)


def _validated_upload(request) -> dict:
    s = DocumentUploadSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    return s.validated_data


def _run_extraction(label: str, extractor, vd: dict, *args) -> tuple[Optional[dict], Optional[dict]]:
    """Return ``(extracted, metadata)``, or ``(None, None)`` when disabled or failed."""
    if not vd.get('use_ai_extraction', True):
        return None, None
    try:
        extracted = extractor(
            *args,
            file_url=vd.get('file_url'),
            file_base64=vd.get('file_base64'),
            file_type=vd.get('file_type'),
        )
    except gemini.GeminiError as e:
        logger.warning("%s extraction failed: %s", label, e)
        return None, None
    metadata = {
        'extracted_at': timezone.now().isoformat(),
        'confidence': extracted.get('confidence') or 0,
        'raw_extraction': extracted,
    }
    logger.info("%s extracted with confidence %s", label, metadata['confidence'])
    return extracted, metadata


def _ai_summary(extracted: Optional[dict]) -> dict:
    if extracted is None:
        return {'success': False}
    return {'success': True, 'confidence': extracted.get('confidence'), 'data': extracted}


def _missing_file_response() -> Response:
    return Response({'message': 'Either file_url or file_base64 is required'}, status=400)


# ---------------------------------------------------------------------
# Uploads
# ---------------------------------------------------------------------
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def upload_prescription(request, appointment_id: str):
    vd = _validated_upload(request)
    if not vd.get('file_url') and not vd.get('file_base64'):
        return _missing_file_response()

    user = request.user
    visit = get_owned(PastVisit, user, 'Past visit not found', appointment_id=appointment_id)
    extracted, metadata = _run_extraction('Prescription', gemini.extract_prescription, vd)

    data = {
        'diagnosis': (extracted or {}).get('diagnosis') or '',
        'medications': (extracted or {}).get('medications') or [],
        'lab_tests': (extracted or {}).get('lab_tests') or [],
        'advice': (extracted or {}).get('advice'),
        'follow_up_date': (extracted or {}).get('follow_up_date'),
        'prescription_date': (extracted or {}).get('prescription_date'),
    }
    data.update(vd.get('manual_data') or {})

    prescription = PastPrescription.objects.create(
        prescription_id=new_prescription_id(),
        appointment_id=appointment_id,
        patient_id=visit.patient_id,
        patient_name=visit.patient_name,
        doctor_name=visit.doctor_name,
        doctor_specialty=visit.doctor_specialty or (extracted or {}).get('doctor_specialty') or None,
        diagnosis=data.get('diagnosis'),
        medications=data.get('medications') or [],
        lab_tests=data.get('lab_tests') or [],
        advice=data.get('advice') or None,
        follow_up_date=parse_day(data.get('follow_up_date')),
        prescription_date=parse_day(data.get('prescription_date')) or visit.visit_date,
        file_url=vd.get('file_url') or '',
        file_name=vd.get('file_name') or 'prescription.pdf',
        file_type=vd.get('file_type') or 'application/pdf',
        is_ai_extracted=extracted is not None,
        ai_extraction_metadata=metadata,
        created_by=user.id,
    )
    logger.info("Prescription %s added to %s", prescription.prescription_id, appointment_id)

    return Response({
        'message': 'Prescription uploaded successfully',
        'prescription': PastPrescriptionSerializer(prescription).data,
        'ai_extraction': _ai_summary(extracted),
    }, status=201)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def upload_receipt(request, appointment_id: str):
    vd = _validated_upload(request)
    receipt_type = vd.get('receipt_type')
    if not receipt_type:
        return Response({'message': 'appointment_id (in URL) and receipt_type are required'}, status=400)
    if not vd.get('file_url') and not vd.get('file_base64'):
        return _missing_file_response()

    user = request.user
    visit = get_owned(PastVisit, user, 'Past visit not found', appointment_id=appointment_id)
    extracted, metadata = _run_extraction('Receipt', gemini.extract_receipt, vd, receipt_type)
    found = extracted or {}
    manual = vd.get('manual_data') or {}

    pharmacy = center = None
    if receipt_type == 'medicine' and found.get('pharmacy_name'):
        pharmacy = repositories.find_or_create_pharmacy(
            found['pharmacy_name'],
            address=found.get('pharmacy_address'),
            phone=found.get('pharmacy_phone'),
            created_by=user.id,
        )
    if receipt_type == 'test' and found.get('diagnostics_center_name'):
        center = repositories.find_or_create_diagnostics_center(
            found['diagnostics_center_name'],
            address=found.get('diagnostics_center_address'),
            phone=found.get('diagnostics_center_phone'),
            created_by=user.id,
        )

    data = {
        'amount': found.get('amount') or found.get('total_amount'),
        'payment_method': found.get('payment_method') or None,
        'receipt_date': found.get('receipt_date'),
        'extracted_data': {
            'invoice_number': found.get('invoice_number') or None,
            'items': found.get('medicines') or found.get('tests') or [],
            'total_amount': found.get('total_amount'),
            'tax_amount': found.get('tax_amount'),
            'discount': found.get('discount'),
        },
    }
    data.update(manual)

    receipt = Receipt.objects.create(
        receipt_id=new_receipt_id(),
        appointment_id=appointment_id,
        patient_id=visit.patient_id,
        patient_name=visit.patient_name,
        receipt_type=receipt_type,
        amount=to_amount(data.get('amount')),
        payment_method=data.get('payment_method'),
        receipt_date=parse_day(data.get('receipt_date')) or visit.visit_date,
        pharmacy=pharmacy,
        pharmacy_name=found.get('pharmacy_name') or manual.get('pharmacy_name'),
        pharmacy_address=found.get('pharmacy_address') or manual.get('pharmacy_address'),
        diagnostics_center=center,
        diagnostics_center_name=found.get('diagnostics_center_name') or manual.get('diagnostics_center_name'),
        diagnostics_center_address=(found.get('diagnostics_center_address')
                                    or manual.get('diagnostics_center_address')),
        file_url=vd.get('file_url') or '',
        file_name=vd.get('file_name') or 'receipt.pdf',
        file_type=vd.get('file_type') or 'application/pdf',
        file_size=vd.get('file_size') or 0,
        is_ai_extracted=extracted is not None,
        ai_extraction_metadata=metadata,
        extracted_data=data.get('extracted_data'),
        created_by=user.id,
    )
    logger.info("Receipt %s (%s) added to %s", receipt.receipt_id, receipt_type, appointment_id)

    return Response({
        'message': 'Receipt uploaded successfully',
        'receipt': ReceiptSerializer(receipt).data,
        'repository_created': {
            'pharmacy': {'id': str(pharmacy.id), 'name': pharmacy.name} if pharmacy else None,
            'diagnostics_center': {'id': str(center.id), 'name': center.name} if center else None,
        },
        'ai_extraction': _ai_summary(extracted),
    }, status=201)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def upload_test_result(request, appointment_id: str):
    vd = _validated_upload(request)
    if not vd.get('file_url') and not vd.get('file_base64'):
        return _missing_file_response()

    user = request.user
    visit = get_owned(PastVisit, user, 'Past visit not found', appointment_id=appointment_id)
    extracted, metadata = _run_extraction('Test result', gemini.extract_test_result, vd)
    found = extracted or {}

    center = None
    if found.get('diagnostics_center_name'):
        center = repositories.find_or_create_diagnostics_center(found['diagnostics_center_name'],
                                                                 created_by=user.id)

    data = {
        'test_name': found.get('test_name') or 'Test Report',
        'test_category': found.get('test_category') or 'Lab Test',
        'test_date': found.get('test_date'),
        'test_time': found.get('test_time') or None,
        'parameters': found.get('parameters') or [],
        'interpretation': found.get('interpretation') or None,
        'notes': found.get('notes') or None,
    }
    data.update(vd.get('manual_data') or {})
    parameters = data.get('parameters') or []
    test_date = parse_day(data.get('test_date')) or visit.visit_date

    with transaction.atomic():
        test_result = PastTestResult.objects.create(
            test_result_id=new_test_result_id(),
            appointment_id=appointment_id,
            patient_id=visit.patient_id,
            patient_name=visit.patient_name,
            test_name=data.get('test_name') or 'Test Report',
            test_category=data.get('test_category'),
            test_date=test_date,
            parameters=parameters,
            diagnostics_center=center,
            diagnostics_center_name=found.get('diagnostics_center_name') or None,
            interpretation=data.get('interpretation'),
            notes=data.get('notes'),
            file_url=vd.get('file_url') or '',
            file_name=vd.get('file_name') or 'test_result.pdf',
            file_type=vd.get('file_type') or 'application/pdf',
            file_size=vd.get('file_size') or 0,
            is_ai_extracted=extracted is not None,
            ai_extraction_metadata=metadata,
            created_by=user.id,
        )
        saved = vitals.save_test_parameters(
            parameters=parameters,
            patient_id=visit.patient_id,
            recorded_by=user.id,
            test_result_id=test_result.id,
            appointment_id=appointment_id,
            test_date=test_date,
            test_time=data.get('test_time'),
            test_category=data.get('test_category'),
        )
    logger.info("Test result %s added to %s; %d of %d parameters saved as vitals",
                test_result.test_result_id, appointment_id, len(saved), len(parameters))

    vitals_saved = None
    if parameters:
        vitals_saved = {
            'total_parameters': len(parameters),
            'saved_count': len(saved),
            'skipped_count': len(parameters) - len(saved),
            'parameter_names': [v['parameter_name'] for v in saved],
            'parameters_detail': saved,
            'test_date': test_date.isoformat(),
            'test_time': data.get('test_time') or None,
        }

    return Response({
        'message': 'Test result uploaded successfully',
        'test_result': PastTestResultSerializer(test_result).data,
        'repository_created': {'id': str(center.id), 'name': center.name} if center else None,
        'ai_extraction': _ai_summary(extracted),
        'vitals_saved': vitals_saved,
    }, status=201)


# ---------------------------------------------------------------------
# Update / soft delete
# ---------------------------------------------------------------------
def _update_or_delete(request, model, label: str, key: str, update_serializer, serializer, **lookup):
    obj = get_owned(model, request.user, f'{label} not found', **lookup)
    if request.method == 'DELETE':
        obj.is_active = False
        obj.save(update_fields=['is_active', 'updated_at'])
        logger.info("%s %s deleted", label, lookup)
        return Response({'message': f'{label} deleted successfully'})

    s = update_serializer(obj, data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    obj = s.save()
    logger.info("%s %s updated", label, lookup)
    return Response({'message': f'{label} updated successfully', key: serializer(obj).data})


@api_view(['PUT', 'DELETE'])
@permission_classes([IsAuthenticated])
def prescription_detail(request, prescription_id: str):
    return _update_or_delete(request, PastPrescription, 'Prescription', 'prescription',
                             PastPrescriptionUpdateSerializer, PastPrescriptionSerializer,
                             prescription_id=prescription_id)


@api_view(['PUT', 'DELETE'])
@permission_classes([IsAuthenticated])
def receipt_detail(request, receipt_id: str):
    return _update_or_delete(request, Receipt, 'Receipt', 'receipt',
                             ReceiptUpdateSerializer, ReceiptSerializer,
                             receipt_id=receipt_id)


@api_view(['PUT', 'DELETE'])
@permission_classes([IsAuthenticated])
def test_result_detail(request, test_result_id: str):
    return _update_or_delete(request, PastTestResult, 'Test result', 'test_result',
                             PastTestResultUpdateSerializer, PastTestResultSerializer,
                             test_result_id=test_result_id)
