"""
Crowd-sourced repositories of doctors, pharmacies and diagnostics
centers that are not registered on the platform.
"""
from __future__ import annotations

import logging

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from records.models import Pharmacy, DiagnosticsCenter
from records.serializers.repositories import (
    UnverifiedDoctorSerializer, UnverifiedDoctorInputSerializer,
    PharmacySerializer, DiagnosticsCenterSerializer,
)
from records.services import repositories

logger = logging.getLogger(__name__)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def unverified_doctors(request):
    if request.method == 'GET':
        params = request.query_params
        doctors = repositories.search_doctors(
            search=params.get('search'), city=params.get('city'), specialty=params.get('specialty'),
        )
        return Response({
            'message': 'Unverified doctors retrieved successfully',
            'doctors': UnverifiedDoctorSerializer(doctors, many=True).data,
            'count': len(doctors),
        })

    s = UnverifiedDoctorInputSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    if not vd.get('doctor_name'):
        return Response({'message': 'doctor_name is required'}, status=400)

    doctor, created = repositories.search_or_create_doctor(vd, created_by=request.user.id)
    if created:
        logger.info("Unverified doctor %s added by %s", doctor.doctor_name, request.user.id)
    return Response({
        'message': 'Unverified doctor retrieved/created successfully',
        'doctor': UnverifiedDoctorSerializer(doctor).data,
    })


def _place_filters(request) -> dict:
    params = request.query_params
    return {'search': params.get('search'), 'city': params.get('city'), 'area': params.get('area')}


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def pharmacies(request):
    rows = repositories.search_pharmacies(**_place_filters(request))
    return Response({
        'message': 'Pharmacies retrieved successfully',
        'pharmacies': PharmacySerializer(rows, many=True).data,
        'count': len(rows),
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def pharmacy_detail(request, pharmacy_id):
    pharmacy = Pharmacy.objects.filter(id=pharmacy_id, is_active=True).first()
    if pharmacy is None:
        return Response({'message': 'Pharmacy not found'}, status=404)
    return Response({'message': 'Pharmacy retrieved successfully', 'pharmacy': PharmacySerializer(pharmacy).data})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def diagnostics_centers(request):
    rows = repositories.search_diagnostics_centers(test_type=request.query_params.get('test_type'),
                                                   **_place_filters(request))
    return Response({
        'message': 'Diagnostics centers retrieved successfully',
        'diagnostics_centers': DiagnosticsCenterSerializer(rows, many=True).data,
        'count': len(rows),
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def diagnostics_center_detail(request, center_id):
    center = DiagnosticsCenter.objects.filter(id=center_id, is_active=True).first()
    if center is None:
        return Response({'message': 'Diagnostics center not found'}, status=404)
    return Response({
        'message': 'Diagnostics center retrieved successfully',
        'diagnostics_center': DiagnosticsCenterSerializer(center).data,
    })
