import uuid
from datetime import date, time
from decimal import Decimal

import pytest

from records.models import PastVisit, VitalParameter, VitalParameterDefinition
from records.services import identifiers, vitals
from records.services.identifiers import make_id
from records.services.values import normalize_time, parse_day, to_amount, to_decimal


@pytest.mark.parametrize('raw, expected', [
    ('hb', 'Hemoglobin'),
    ('HEMOGLOBIN', 'Hemoglobin'),
    ('Glycated Hemoglobin', 'HbA1c'),
    (' fbg ', 'Fasting Blood Sugar'),
    ('pp', 'Post-Prandial Blood Sugar'),
    ('Systolic BP', 'Systolic BP'),
    ('alt', 'SGPT/ALT'),
    ('free t4', 'Free T4'),
    ('Vitamin D', 'Vitamin D'),
])
def test_normalize_name(raw, expected):
    assert vitals.normalize_name(raw) == expected


@pytest.mark.parametrize('name, test_category, expected', [
    ('Fasting Blood Sugar', None, ('diabetes', 'blood_sugar')),
    ('LDL Cholesterol', None, ('cardiac', 'lipid_profile')),
    ('Systolic BP', None, ('cardiac', 'blood_pressure')),
    ('Serum Creatinine', None, ('general', 'kidney_function')),
    ('Total Bilirubin', None, ('general', 'liver_function')),
    ('TSH', None, ('general', 'thyroid_function')),
    ('Platelet Count', None, ('general', 'blood_count')),
    ('Insulin', 'Diabetes Panel', ('diabetes', None)),
    ('Apo B', 'Lipid Profile', ('cardiac', None)),
    ('Vitamin D', 'Vitamins', ('general', None)),
])
def test_categorize(name, test_category, expected):
    assert vitals.categorize(name, test_category) == expected


@pytest.mark.parametrize('raw, expected', [
    (14.5, Decimal('14.5')),
    ('14.5 g/dL', Decimal('14.5')),
    ('-2', Decimal('-2')),
    ('normal', None),
    ('', None),
    (None, None),
    (True, None),
    (float('nan'), None),
])
def test_to_decimal(raw, expected):
    assert to_decimal(raw) == expected


def test_to_amount_rounds_to_two_places():
    assert to_amount('1,250') == Decimal('1250.00')
    assert to_amount(99.999) == Decimal('100.00')
    assert to_amount('Rs. 50') is None


def test_is_out_of_range():
    assert vitals.is_out_of_range(Decimal('11'), Decimal('12'), Decimal('16')) is True
    assert vitals.is_out_of_range(Decimal('12'), Decimal('12'), Decimal('16')) is False
    # without both bounds the reported flag is kept
    assert vitals.is_out_of_range(Decimal('11'), Decimal('12'), None, True) is True
    assert vitals.is_out_of_range(Decimal('11'), None, None) is False


def test_time_and_date_parsing():
    assert normalize_time('9') == time(9, 0)
    assert normalize_time('09:30') == time(9, 30)
    assert normalize_time('later') is None
    assert parse_day('2025-03-01T10:00:00Z') == date(2025, 3, 1)
    assert parse_day('2025-02-30') is None


def test_make_id_format():
    assert make_id('TR', 1712345678901).endswith('-45678901')
    assert make_id('TR', 1712345678901).startswith('TR-')


@pytest.mark.django_db
def test_save_test_parameters_falls_back_to_definition_range():
    VitalParameterDefinition.objects.create(
        parameter_name='TSH', unit='mIU/L', category='general', subcategory='thyroid_function',
        default_normal_range_min=Decimal('0.4'), default_normal_range_max=Decimal('4.0'),
    )
    patient_id, user_id, result_id = uuid.uuid4(), uuid.uuid4(), uuid.uuid4()
    saved = vitals.save_test_parameters(
        parameters=[
            {'parameter_name': 'tsh', 'value': '5.6', 'unit': 'mIU/L'},
            {'parameter_name': 'Anti-TPO', 'value': 'negative'},
            'not a parameter',
        ],
        patient_id=patient_id, recorded_by=user_id, test_result_id=result_id, appointment_id='PV-2025-1',
        test_date=date(2025, 3, 1), test_time=None, test_category='Thyroid Profile',
    )
    assert saved == [{
        'parameter_name': 'TSH', 'normalized_name': 'TSH', 'value': 5.6, 'unit': 'mIU/L',
        'category': 'general', 'subcategory': 'thyroid_function',
    }]
    reading = VitalParameter.objects.get()
    assert reading.normal_range_max == Decimal('4.00')
    assert reading.is_abnormal is True
    assert reading.recorded_time is None


@pytest.mark.django_db
def test_create_past_visit_retries_when_id_is_taken_concurrently(monkeypatch):
    taken = PastVisit.objects.create(
        appointment_id=identifiers.make_id('PV', 1712345678901), patient_id=uuid.uuid4(), patient_name='Asha',
        visit_date=date(2025, 3, 1), doctor_name='Dr. Rao', created_by=uuid.uuid4(),
    )
    monkeypatch.setattr(identifiers, 'now_millis', lambda: 1712345678901)
    # the existence check misses the row, as it would for a parallel insert
    monkeypatch.setattr(identifiers, 'appointment_id_taken', lambda appointment_id: False)

    visit = identifiers.create_past_visit(
        patient_id=uuid.uuid4(), patient_name='Ravi', visit_date=date(2025, 3, 2),
        doctor_name='Dr. Rao', created_by=uuid.uuid4(),
    )
    assert visit.appointment_id != taken.appointment_id
    assert visit.appointment_id == identifiers.make_id('PV', 1712345678902)
