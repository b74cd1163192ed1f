from datetime import date, timedelta
from decimal import Decimal

import pytest
from django.core.management import call_command
from django.urls import reverse

from records.models import VitalParameter, VitalParameterDefinition, Patient

pytestmark = pytest.mark.django_db(databases=['default', 'platform'])


@pytest.fixture
def owner(make_platform_user):
    return make_platform_user()


@pytest.fixture
def client(owner, client_for):
    return client_for(owner)


@pytest.fixture
def definitions():
    call_command('seed_vital_definitions')


def add(client, **data):
    payload = {'parameter_name': 'HbA1c', 'value': 6.1, 'recorded_date': '2025-03-01', **data}
    return client.post(reverse('vital_parameters'), payload, format='json')


def test_seed_command_is_idempotent(definitions):
    count = VitalParameterDefinition.objects.count()
    call_command('seed_vital_definitions')
    assert VitalParameterDefinition.objects.count() == count
    hba1c = VitalParameterDefinition.objects.get(parameter_name='HbA1c')
    assert (hba1c.category, hba1c.subcategory) == ('diabetes', 'blood_sugar')
    assert hba1c.default_normal_range_max == Decimal('5.60')


def test_definitions_filtered_by_category(client, definitions):
    r = client.get(reverse('vital_definitions'), {'category': 'cardiac', 'subcategory': 'blood_pressure'})
    assert r.status_code == 200
    assert [d['parameter_name'] for d in r.data['definitions']] == ['Systolic BP', 'Diastolic BP']


def test_add_requires_fields(client):
    r = client.post(reverse('vital_parameters'), {'parameter_name': 'Weight'}, format='json')
    assert r.status_code == 400
    assert r.data['message'] == 'parameter_name, value, and recorded_date are required'


def test_add_rejects_bad_date_and_text_values(client):
    assert add(client, recorded_date='31/02/2025').status_code == 400
    r = add(client, value='normal')
    assert r.status_code == 400
    assert VitalParameter.objects.count() == 0


def test_add_uses_definition_defaults(client, owner, definitions):
    r = add(client, recorded_time='08:15')
    assert r.status_code == 201
    reading = VitalParameter.objects.get()
    assert reading.unit == '%'
    assert reading.category == 'diabetes'
    assert reading.normal_range_max == Decimal('5.60')
    assert reading.is_abnormal is True
    assert reading.source == 'manual_entry'
    assert reading.recorded_by == owner.id
    # first reading creates the patient record
    assert reading.patient_id == Patient.objects.get(user_id=owner.id).id


def test_add_without_definition_defaults_to_general(client):
    r = add(client, parameter_name='Grip Strength', value='32.5', unit='kg')
    assert r.status_code == 201
    reading = VitalParameter.objects.get()
    assert reading.category == 'general'
    assert reading.is_abnormal is False


def test_list_is_empty_without_patient_record(client):
    r = client.get(reverse('vital_parameters'))
    assert r.status_code == 200
    assert r.data['parameters'] == []
    assert r.data['total'] == 0


def test_list_filters_and_orders(client, definitions):
    add(client, value=5.2, recorded_date='2025-01-01')
    add(client, value=6.4, recorded_date='2025-02-01')
    add(client, parameter_name='Weight', value=71, recorded_date='2025-02-15')

    r = client.get(reverse('vital_parameters'), {'parameter_name': 'HbA1c'})
    assert [p['recorded_date'] for p in r.data['parameters']] == ['2025-02-01', '2025-01-01']

    r = client.get(reverse('vital_parameters'), {'include_abnormal_only': 'true'})
    assert r.data['total'] == 1
    assert r.data['parameters'][0]['value'] == Decimal('6.40')

    r = client.get(reverse('vital_parameters'), {'start_date': '2025-02-01', 'end_date': '2025-02-10'})
    assert r.data['total'] == 1


def test_graph_data_validates_parameter_names(client):
    r = client.get(reverse('vital_graph_data'))
    assert r.status_code == 400
    assert r.data['message'] == 'parameter_names is required'
    r = client.get(reverse('vital_graph_data'), {'parameter_names': 'a,b,c,d,e,f'})
    assert r.status_code == 400
    assert r.data['message'] == 'Maximum 5 parameters allowed for comparison'


def test_graph_data_series(client, definitions):
    today = date.today()
    add(client, value=5.4, recorded_date=(today - timedelta(days=30)).isoformat())
    add(client, value=6.0, recorded_date=today.isoformat(), recorded_time='07:00')
    add(client, value=7.0, recorded_date=(today - timedelta(days=800)).isoformat())

    r = client.get(reverse('vital_graph_data'), {'parameter_names': 'HbA1c, Weight'})
    assert r.status_code == 200
    assert r.data['parameters_count'] == 2
    hba1c, weight = r.data['graph_data']
    assert [p['value'] for p in hba1c['data_points']] == [5.4, 6.0]
    assert hba1c['data_points'][1]['time'] == '07:00:00'
    assert hba1c['unit'] == '%'
    assert hba1c['normal_range_max'] == 5.6
    assert hba1c['category'] == 'diabetes'
    assert weight['data_points'] == []
    assert r.data['date_range']['end_date'] == today.isoformat()


def test_by_category(client, definitions):
    add(client, value=5.2, recorded_date='2025-01-01')
    add(client, parameter_name='Fasting Blood Sugar', value=90, recorded_date='2025-03-01')
    add(client, parameter_name='Systolic BP', value=130, recorded_date='2025-02-01')

    r = client.get(reverse('vitals_by_category'))
    categories = r.data['categories']
    assert set(categories) == {'diabetes', 'cardiac'}
    assert categories['diabetes']['total_readings'] == 2
    assert categories['diabetes']['latest_reading_date'] == '2025-03-01'
    assert sorted(categories['diabetes']['parameter_names']) == ['Fasting Blood Sugar', 'HbA1c']


def test_update_recomputes_abnormal_flag(client, definitions):
    add(client, value=6.4)
    reading = VitalParameter.objects.get()
    assert reading.is_abnormal is True

    r = client.put(reverse('vital_parameter_detail', args=[reading.id]), {'value': '5.1'}, format='json')
    assert r.status_code == 200
    reading.refresh_from_db()
    assert reading.value == Decimal('5.10')
    assert reading.is_abnormal is False


def test_other_user_cannot_change_reading(client, make_platform_user, client_for):
    add(client)
    reading = VitalParameter.objects.get()
    stranger = client_for(make_platform_user(phone='9000000009'))
    url = reverse('vital_parameter_detail', args=[reading.id])
    r = stranger.delete(url)
    assert r.status_code == 403
    assert r.data['message'] == 'Access denied'


def test_delete_is_soft(client):
    add(client)
    reading = VitalParameter.objects.get()
    url = reverse('vital_parameter_detail', args=[reading.id])
    assert client.delete(url).data['message'] == 'Vital parameter deleted successfully'
    reading.refresh_from_db()
    assert reading.is_active is False
    r = client.delete(url)
    assert r.status_code == 404
    assert r.data['message'] == 'Vital parameter not found'


def test_reading_goes_to_own_record_when_phone_was_used_elsewhere(client, make_platform_user, client_for):
    other = make_platform_user(phone='9000000002', name='Ravi')
    # the first user records a visit typing the other user's phone number
    r = client.post(reverse('past_visits'), {
        'visit_date': '2025-03-01', 'doctor_name': 'Dr. Rao', 'patient_name': 'Ravi', 'patient_phone': '9000000002',
    }, format='json')
    assert r.status_code == 201

    other_client = client_for(other)
    assert add(other_client, parameter_name='Weight', value=70).status_code == 201
    reading = VitalParameter.objects.get()
    assert reading.patient_id == Patient.objects.get(user_id=other.id).id
    assert other_client.get(reverse('vital_parameters')).data['total'] == 1
    assert client.get(reverse('vital_parameters')).data['total'] == 0


def test_manual_entry_keeps_the_given_name(client):
    assert add(client, parameter_name='hb', value=13.1, unit='g/dL').status_code == 201
    assert VitalParameter.objects.get().parameter_name == 'hb'
