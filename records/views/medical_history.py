"""
Medical history: every visit of the user with its documents, plus flat
prescription and test result lists across visits.

Visibility follows the past visit list (the user's own patient records
and the visits the user created).
"""
from __future__ import annotations

from collections import defaultdict

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from records.models import PastPrescription, Receipt, PastTestResult
from records.serializers.visits import (
    PastVisitSerializer, PastPrescriptionSerializer, ReceiptSerializer, PastTestResultSerializer,
)
from records.services.access import visible_visits

HISTORY_LIMIT = 100


def _documents(model, appointment_ids, order_by):
    return model.objects.filter(appointment_id__in=appointment_ids, is_active=True).order_by(order_by)


def _visit_ids(request) -> list:
    qs = visible_visits(request.user, request.query_params.get('patient_id'))
    return list(qs.values_list('appointment_id', flat=True))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def medical_history(request):
    visits = list(
        visible_visits(request.user, request.query_params.get('patient_id'))
        .order_by('-visit_date', '-created_at')[:HISTORY_LIMIT]
    )
    ids = [v.appointment_id for v in visits]
    prescriptions = PastPrescriptionSerializer(
        _documents(PastPrescription, ids, '-prescription_date'), many=True).data
    receipts = ReceiptSerializer(_documents(Receipt, ids, '-receipt_date'), many=True).data
    test_results = PastTestResultSerializer(_documents(PastTestResult, ids, '-test_date'), many=True).data

    grouped = defaultdict(lambda: {'prescriptions': [], 'receipts': [], 'test_results': []})
    for key, rows in (('prescriptions', prescriptions), ('receipts', receipts), ('test_results', test_results)):
        for row in rows:
            grouped[row['appointment_id']][key].append(row)

    return Response({
        'message': 'Medical history retrieved successfully',
        'history': [
            {'visit': PastVisitSerializer(visit).data, 'documents': grouped[visit.appointment_id]}
            for visit in visits
        ],
        'summary': {
            'total_visits': len(visits),
            'total_prescriptions': len(prescriptions),
            'total_receipts': len(receipts),
            'total_test_results': len(test_results),
        },
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def prescriptions(request):
    rows = PastPrescriptionSerializer(
        _documents(PastPrescription, _visit_ids(request), '-prescription_date'), many=True).data
    return Response({'message': 'Prescriptions retrieved successfully', 'prescriptions': rows, 'count': len(rows)})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def test_results(request):
    rows = PastTestResultSerializer(_documents(PastTestResult, _visit_ids(request), '-test_date'), many=True).data
    return Response({'message': 'Test results retrieved successfully', 'test_results': rows, 'count': len(rows)})
