"""
API tests for past visits: creation, listing, details, updates, soft
deletes and the ownership checks around them.
"""
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase, APIClient

from accounts.models import SharedUser
from records.models import PastVisit, Patient, PastPrescription, UnverifiedDoctor


class PastVisitAPITests(APITestCase):
    databases = {'default', 'platform'}

    def setUp(self) -> None:
        self.user = SharedUser.objects.create(phone='9000000001', name='Asha')
        self.other = SharedUser.objects.create(phone='9000000002', name='Ravi')
        self.client = APIClient()
        self.client.force_authenticate(user=self.user)
        self.payload = {
            'visit_date': '2025-03-14',
            'doctor_name': 'Dr. Mehta',
            'patient_name': 'Asha',
            'clinic_name': 'City Clinic',
            'consultation_fee': '500.00',
        }

    def _create(self, client=None, **overrides) -> dict:
        r = (client or self.client).post(reverse('past_visits'), {**self.payload, **overrides}, format='json')
        self.assertEqual(r.status_code, status.HTTP_201_CREATED, r.data)
        return r.data

    def test_requires_authentication(self):
        r = APIClient().get(reverse('past_visits'))
        self.assertEqual(r.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_create_requires_date_doctor_and_patient(self):
        r = self.client.post(reverse('past_visits'), {'doctor_name': 'Dr. Mehta'}, format='json')
        self.assertEqual(r.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(r.data['message'], 'visit_date, doctor_name, and patient_name are required')

    def test_create_assigns_appointment_id_and_patient(self):
        data = self._create()
        self.assertRegex(data['appointment_id'], r'^PV-\d{4}-\d{8}$')
        self.assertEqual(data['message'], 'Past visit created successfully')
        self.assertEqual(data['visit']['visit_date'], '2025-03-14')
        self.assertEqual(data['visit']['consultation_fee'], 500.0)

        patient = Patient.objects.get(user_id=self.user.id)
        self.assertEqual(data['visit']['patient_id'], str(patient.id))
        self.assertEqual(patient.phone, '9000000001')

    def test_create_with_foreign_patient_is_denied(self):
        theirs = Patient.objects.create(user_id=self.other.id, name='Ravi', phone='9000000002')
        r = self.client.post(reverse('past_visits'), {**self.payload, 'patient_id': str(theirs.id)}, format='json')
        self.assertEqual(r.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(r.data['message'], 'Patient not found or access denied')

    def test_create_links_unverified_doctor(self):
        doctor = UnverifiedDoctor.objects.create(doctor_name='Dr. Mehta', created_by=self.user.id)
        data = self._create(unverified_doctor_id=str(doctor.id))
        self.assertEqual(data['visit']['unverified_doctor'], doctor.id)

    def test_list_shows_only_own_visits_newest_first(self):
        self._create(visit_date='2025-01-01')
        self._create(visit_date='2025-02-01')
        other_client = APIClient()
        other_client.force_authenticate(user=self.other)
        self._create(client=other_client, patient_name='Ravi')

        r = self.client.get(reverse('past_visits'))
        self.assertEqual(r.status_code, status.HTTP_200_OK)
        self.assertEqual(r.data['count'], 2)
        self.assertEqual([v['visit_date'] for v in r.data['visits']], ['2025-02-01', '2025-01-01'])

    def test_list_by_patient_id_checks_ownership(self):
        theirs = Patient.objects.create(user_id=self.other.id, name='Ravi')
        r = self.client.get(reverse('past_visits'), {'patient_id': str(theirs.id)})
        self.assertEqual(r.status_code, status.HTTP_403_FORBIDDEN)

    def test_details_include_active_documents(self):
        data = self._create()
        visit = PastVisit.objects.get(appointment_id=data['appointment_id'])
        for day, active in (('2025-03-14', True), ('2025-03-15', True), ('2025-03-16', False)):
            PastPrescription.objects.create(
                prescription_id=f'PRX-{day}', appointment_id=visit.appointment_id, patient_id=visit.patient_id,
                patient_name=visit.patient_name, doctor_name=visit.doctor_name, prescription_date=day,
                created_by=self.user.id, is_active=active,
            )

        r = self.client.get(reverse('past_visit_detail', args=[visit.appointment_id]))
        self.assertEqual(r.status_code, status.HTTP_200_OK)
        prescriptions = r.data['documents']['prescriptions']
        self.assertEqual([p['prescription_date'] for p in prescriptions], ['2025-03-15', '2025-03-14'])
        self.assertEqual(r.data['documents']['receipts'], [])
        self.assertEqual(r.data['documents']['test_results'], [])

    def test_details_of_missing_visit(self):
        r = self.client.get(reverse('past_visit_detail', args=['PV-2025-00000000']))
        self.assertEqual(r.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(r.data['message'], 'Past visit not found')

    def test_other_user_cannot_read_update_or_delete(self):
        appointment_id = self._create()['appointment_id']
        other_client = APIClient()
        other_client.force_authenticate(user=self.other)
        url = reverse('past_visit_detail', args=[appointment_id])

        self.assertEqual(other_client.get(url).status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(other_client.put(url, {'notes': 'x'}, format='json').status_code,
                         status.HTTP_403_FORBIDDEN)
        r = other_client.delete(url)
        self.assertEqual(r.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(r.data['message'], 'Access denied')

    def test_update_changes_allowed_fields_only(self):
        appointment_id = self._create()['appointment_id']
        url = reverse('past_visit_detail', args=[appointment_id])
        r = self.client.put(url, {'diagnosis': 'Viral fever', 'created_by': str(self.other.id)}, format='json')
        self.assertEqual(r.status_code, status.HTTP_200_OK)
        self.assertEqual(r.data['message'], 'Past visit updated successfully')

        visit = PastVisit.objects.get(appointment_id=appointment_id)
        self.assertEqual(visit.diagnosis, 'Viral fever')
        self.assertEqual(visit.created_by, self.user.id)

    def test_delete_is_soft(self):
        appointment_id = self._create()['appointment_id']
        url = reverse('past_visit_detail', args=[appointment_id])
        r = self.client.delete(url)
        self.assertEqual(r.status_code, status.HTTP_200_OK)
        self.assertEqual(r.data['message'], 'Past visit deleted successfully')
        self.assertFalse(PastVisit.objects.get(appointment_id=appointment_id).is_active)
        self.assertEqual(self.client.get(url).status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(self.client.get(reverse('past_visits')).data['count'], 0)
