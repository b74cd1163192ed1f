"""
Vital parameter views: reference definitions, manual readings, listing,
chart series and a per-category overview.

Readings belong to the caller's patient record.  Reads answer with an
empty result when the user has no patient record yet; the first manual
reading creates one.
"""
from __future__ import annotations

import logging
from datetime import date, timedelta

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from records.models import VitalParameter, VitalParameterDefinition, Patient
from records.serializers.vitals import (
    VitalParameterSerializer, VitalParameterDefinitionSerializer,
    VitalParameterInputSerializer, VitalParameterUpdateSerializer,
)
from records.services import vitals
from records.services.patients import ensure_patient, patient_for
from records.services.values import parse_day, normalize_time, to_decimal

logger = logging.getLogger(__name__)

MAX_GRAPH_PARAMETERS = 5


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def definitions(request):
    qs = VitalParameterDefinition.objects.filter(is_active=True)
    category = request.query_params.get('category')
    subcategory = request.query_params.get('subcategory')
    if category:
        qs = qs.filter(category=category)
    if subcategory:
        qs = qs.filter(subcategory=subcategory)
    return Response({
        'message': 'Parameter definitions retrieved',
        'definitions': VitalParameterDefinitionSerializer(qs.order_by('sort_order', 'parameter_name'),
                                                          many=True).data,
    })


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def vital_parameters(request):
    if request.method == 'POST':
        return _add_reading(request)
    return _list_readings(request)


def _add_reading(request):
    s = VitalParameterInputSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    user = request.user

    raw_value = vd.get('value')
    if not vd.get('parameter_name') or raw_value in (None, '') or not vd.get('recorded_date'):
        return Response({'message': 'parameter_name, value, and recorded_date are required'}, status=400)
    value = to_decimal(raw_value)
    if value is None:
        return Response({'message': 'value must be numeric'}, status=400)
    recorded_date = parse_day(vd['recorded_date'])
    if recorded_date is None:
        return Response({'message': 'Invalid recorded_date format'}, status=400)

    patient = ensure_patient(user)
    name = vd['parameter_name']
    low, high = vd.get('normal_range_min'), vd.get('normal_range_max')
    definition = None
    if low is None or high is None:
        definition = vitals.find_definition(name, active_only=True)
    if definition is not None:
        low = low if low is not None else definition.default_normal_range_min
        high = high if high is not None else definition.default_normal_range_max

    reading = VitalParameter.objects.create(
        patient_id=patient.id,
        parameter_name=name,
        value=value,
        unit=vd.get('unit') or (definition.unit if definition else '') or '',
        recorded_date=recorded_date,
        recorded_time=normalize_time(vd.get('recorded_time')),
        normal_range_min=low,
        normal_range_max=high,
        category=vd.get('category') or (definition.category if definition else None) or 'general',
        subcategory=vd.get('subcategory') or (definition.subcategory if definition else None) or None,
        is_abnormal=vitals.is_out_of_range(value, low, high),
        source=vd.get('source') or 'manual_entry',
        test_result_id=vd.get('test_result_id'),
        appointment_id=vd.get('appointment_id') or None,
        notes=vd.get('notes') or None,
        recorded_by=user.id,
    )
    logger.info("Vital %s=%s recorded for patient %s", reading.parameter_name, value, patient.id)
    return Response({
        'message': 'Vital parameter added successfully',
        'parameter': VitalParameterSerializer(reading).data,
    }, status=201)


def _list_readings(request):
    patient = patient_for(request.user)
    if patient is None:
        return Response({'message': 'Patient record not found', 'parameters': [], 'total': 0})

    params = request.query_params
    qs = VitalParameter.objects.filter(patient_id=patient.id, is_active=True)
    if params.get('parameter_name'):
        qs = qs.filter(parameter_name=params['parameter_name'])
    if params.get('category'):
        qs = qs.filter(category=params['category'])
    start, end = parse_day(params.get('start_date')), parse_day(params.get('end_date'))
    if start:
        qs = qs.filter(recorded_date__gte=start)
    if end:
        qs = qs.filter(recorded_date__lte=end)
    if params.get('include_abnormal_only') == 'true':
        qs = qs.filter(is_abnormal=True)

    readings = VitalParameterSerializer(qs.order_by('-recorded_date', '-recorded_time'), many=True).data
    return Response({'message': 'Vital parameters retrieved', 'parameters': readings, 'total': len(readings)})


def _year_before(day: date) -> date:
    try:
        return day.replace(year=day.year - 1)
    except ValueError:
        # 29 February
        return day - timedelta(days=366)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def graph_data(request):
    """Time series for up to five parameters, oldest reading first."""
    raw = request.query_params.getlist('parameter_names')
    names = [n.strip() for value in raw for n in value.split(',') if n.strip()]
    if not names:
        return Response({'message': 'parameter_names is required'}, status=400)
    if len(names) > MAX_GRAPH_PARAMETERS:
        return Response({'message': 'Maximum 5 parameters allowed for comparison'}, status=400)

    patient = patient_for(request.user)
    if patient is None:
        return Response({'message': 'Patient record not found', 'graph_data': []})

    end = parse_day(request.query_params.get('end_date')) or date.today()
    start = parse_day(request.query_params.get('start_date')) or _year_before(end)

    series = {
        name: {
            'parameter_name': name,
            'data_points': [],
            'unit': None,
            'normal_range_min': None,
            'normal_range_max': None,
            'category': None,
        }
        for name in names
    }
    readings = VitalParameter.objects.filter(
        patient_id=patient.id, parameter_name__in=names, is_active=True,
        recorded_date__gte=start, recorded_date__lte=end,
    ).order_by('recorded_date', 'recorded_time')

    for r in readings:
        entry = series[r.parameter_name]
        entry['data_points'].append({
            'date': r.recorded_date.isoformat(),
            'time': r.recorded_time.isoformat() if r.recorded_time else None,
            'value': float(r.value),
            'is_abnormal': r.is_abnormal,
        })
        # metadata from the first reading that carries it
        if not entry['unit'] and r.unit:
            entry['unit'] = r.unit
        if entry['normal_range_min'] is None and r.normal_range_min is not None:
            entry['normal_range_min'] = float(r.normal_range_min)
        if entry['normal_range_max'] is None and r.normal_range_max is not None:
            entry['normal_range_max'] = float(r.normal_range_max)
        if not entry['category'] and r.category:
            entry['category'] = r.category

    return Response({
        'message': 'Graph data retrieved',
        'graph_data': list(series.values()),
        'date_range': {'start_date': start.isoformat(), 'end_date': end.isoformat()},
        'parameters_count': len(names),
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def by_category(request):
    patient = patient_for(request.user)
    if patient is None:
        return Response({'message': 'Patient record not found', 'categories': {}})

    categories: dict[str, dict] = {}
    readings = VitalParameter.objects.filter(patient_id=patient.id, is_active=True).order_by('-recorded_date')
    for r in readings:
        name = r.category or 'general'
        entry = categories.setdefault(name, {
            'category_name': name,
            'parameter_names': [],
            'total_readings': 0,
            'latest_reading_date': r.recorded_date.isoformat(),
        })
        if r.parameter_name not in entry['parameter_names']:
            entry['parameter_names'].append(r.parameter_name)
        entry['total_readings'] += 1

    return Response({'message': 'Parameters by category retrieved', 'categories': categories})


@api_view(['PUT', 'DELETE'])
@permission_classes([IsAuthenticated])
def vital_parameter_detail(request, parameter_id):
    reading = VitalParameter.objects.filter(id=parameter_id, is_active=True).first()
    if reading is None:
        return Response({'message': 'Vital parameter not found'}, status=404)
    if not Patient.objects.filter(id=reading.patient_id, user_id=request.user.id, is_active=True).exists():
        return Response({'message': 'Access denied'}, status=403)

    if request.method == 'DELETE':
        reading.is_active = False
        reading.save(update_fields=['is_active', 'updated_at'])
        return Response({'message': 'Vital parameter deleted successfully'})

    s = VitalParameterUpdateSerializer(reading, data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    reading = s.save()
    if 'is_abnormal' not in s.validated_data:
        abnormal = vitals.is_out_of_range(reading.value, reading.normal_range_min, reading.normal_range_max,
                                          reading.is_abnormal)
        if abnormal != reading.is_abnormal:
            reading.is_abnormal = abnormal
            reading.save(update_fields=['is_abnormal', 'updated_at'])
    return Response({
        'message': 'Vital parameter updated successfully',
        'parameter': VitalParameterSerializer(reading).data,
    })
