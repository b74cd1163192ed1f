"""
API tests for the medical history endpoints: visits grouped with their
documents, flat prescription and test result lists, and visibility.
"""
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase, APIClient

from accounts.models import SharedUser
from records.models import PastVisit, PastPrescription, Receipt, PastTestResult, Patient


class MedicalHistoryAPITests(APITestCase):
    databases = {'default', 'platform'}

    def setUp(self) -> None:
        self.user = SharedUser.objects.create(phone='9000000001', name='Asha')
        self.other = SharedUser.objects.create(phone='9000000002', name='Ravi')
        self.client = APIClient()
        self.client.force_authenticate(user=self.user)
        self.other_client = APIClient()
        self.other_client.force_authenticate(user=self.other)

    def _visit(self, client, visit_date) -> PastVisit:
        r = client.post(reverse('past_visits'), {
            'visit_date': visit_date, 'doctor_name': 'Dr. Mehta', 'patient_name': 'Asha',
        }, format='json')
        self.assertEqual(r.status_code, status.HTTP_201_CREATED, r.data)
        return PastVisit.objects.get(appointment_id=r.data['appointment_id'])

    def _documents(self, visit, day, active=True) -> None:
        common = {
            'appointment_id': visit.appointment_id, 'patient_id': visit.patient_id,
            'patient_name': visit.patient_name, 'created_by': visit.created_by, 'is_active': active,
        }
        PastPrescription.objects.create(prescription_id=f'PRX-{day}', doctor_name='Dr. Mehta',
                                        prescription_date=day, **common)
        Receipt.objects.create(receipt_id=f'RCP-{day}', receipt_type='consultation', receipt_date=day, **common)
        PastTestResult.objects.create(test_result_id=f'TR-{day}', test_name='CBC', test_date=day, **common)

    def test_requires_authentication(self):
        self.assertEqual(APIClient().get(reverse('medical_history')).status_code, status.HTTP_401_UNAUTHORIZED)

    def test_history_groups_documents_by_visit(self):
        older = self._visit(self.client, '2025-01-10')
        newer = self._visit(self.client, '2025-02-10')
        self._documents(older, '2025-01-10')
        self._documents(older, '2025-01-11', active=False)
        self._documents(newer, '2025-02-10')
        self._documents(self._visit(self.other_client, '2025-03-01'), '2025-03-01')

        r = self.client.get(reverse('medical_history'))
        self.assertEqual(r.status_code, status.HTTP_200_OK)
        self.assertEqual(r.data['summary'], {
            'total_visits': 2, 'total_prescriptions': 2, 'total_receipts': 2, 'total_test_results': 2,
        })
        history = r.data['history']
        self.assertEqual([h['visit']['appointment_id'] for h in history], [newer.appointment_id, older.appointment_id])
        self.assertEqual([p['prescription_id'] for p in history[1]['documents']['prescriptions']], ['PRX-2025-01-10'])
        self.assertEqual(len(history[0]['documents']['test_results']), 1)

    def test_visit_without_documents_has_empty_groups(self):
        self._visit(self.client, '2025-01-10')
        documents = self.client.get(reverse('medical_history')).data['history'][0]['documents']
        self.assertEqual(documents, {'prescriptions': [], 'receipts': [], 'test_results': []})

    def test_prescription_and_test_result_lists(self):
        first = self._visit(self.client, '2025-01-10')
        second = self._visit(self.client, '2025-02-10')
        self._documents(first, '2025-01-10')
        self._documents(second, '2025-02-10')
        self._documents(self._visit(self.other_client, '2025-03-01'), '2025-03-01')

        r = self.client.get(reverse('medical_history_prescriptions'))
        self.assertEqual(r.data['count'], 2)
        self.assertEqual([p['prescription_date'] for p in r.data['prescriptions']], ['2025-02-10', '2025-01-10'])

        r = self.client.get(reverse('medical_history_test_results'))
        self.assertEqual([t['test_result_id'] for t in r.data['test_results']], ['TR-2025-02-10', 'TR-2025-01-10'])

    def test_foreign_patient_is_denied(self):
        self._visit(self.other_client, '2025-03-01')
        theirs = Patient.objects.get(user_id=self.other.id)
        for name in ('medical_history', 'medical_history_prescriptions', 'medical_history_test_results'):
            r = self.client.get(reverse(name), {'patient_id': str(theirs.id)})
            self.assertEqual(r.status_code, status.HTTP_403_FORBIDDEN)
            self.assertEqual(r.data['message'], 'Patient not found or access denied')
