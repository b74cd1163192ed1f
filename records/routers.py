"""
URL mappings for the Aarogya Mitra records API, mounted under ``/api/``.

Static segments (``extract-*``, ``scan-receipt``, ``prescriptions/...``)
are listed before ``<appointment_id>`` so they are not captured as ids.
"""
from django.urls import path

from .views import past_visits, documents, extraction, vitals, repositories, medical_history

urlpatterns = [
    # past visits
    path('past-visits', past_visits.past_visits, name='past_visits'),
    path('past-visits/', past_visits.past_visits),
    path('past-visits/extract-receipt', extraction.extract_receipt, name='extract_receipt'),
    path('past-visits/extract-prescription', extraction.extract_prescription, name='extract_prescription'),
    path('past-visits/extract-test-result', extraction.extract_test_result, name='extract_test_result'),
    path('past-visits/scan-receipt', extraction.scan_receipt, name='scan_receipt'),
    path('past-visits/prescriptions/<str:prescription_id>', documents.prescription_detail,
         name='prescription_detail'),
    path('past-visits/receipts/<str:receipt_id>', documents.receipt_detail, name='receipt_detail'),
    path('past-visits/test-results/<str:test_result_id>', documents.test_result_detail,
         name='test_result_detail'),
    path('past-visits/<str:appointment_id>/prescription', documents.upload_prescription,
         name='upload_prescription'),
    path('past-visits/<str:appointment_id>/receipt', documents.upload_receipt, name='upload_receipt'),
    path('past-visits/<str:appointment_id>/test-result', documents.upload_test_result, name='upload_test_result'),
    path('past-visits/<str:appointment_id>', past_visits.past_visit_detail, name='past_visit_detail'),

    # medical history
    path('medical-history', medical_history.medical_history, name='medical_history'),
    path('medical-history/prescriptions', medical_history.prescriptions, name='medical_history_prescriptions'),
    path('medical-history/test-results', medical_history.test_results, name='medical_history_test_results'),

    # vital parameters
    path('vital-parameters', vitals.vital_parameters, name='vital_parameters'),
    path('vital-parameters/', vitals.vital_parameters),
    path('vital-parameters/definitions', vitals.definitions, name='vital_definitions'),
    path('vital-parameters/graph-data', vitals.graph_data, name='vital_graph_data'),
    path('vital-parameters/by-category', vitals.by_category, name='vitals_by_category'),
    path('vital-parameters/categories', vitals.by_category),
    path('vital-parameters/<uuid:parameter_id>', vitals.vital_parameter_detail, name='vital_parameter_detail'),

    # repositories
    path('repositories/unverified-doctors', repositories.unverified_doctors, name='unverified_doctors'),
    path('repositories/pharmacies', repositories.pharmacies, name='pharmacies'),
    path('repositories/pharmacies/<uuid:pharmacy_id>', repositories.pharmacy_detail, name='pharmacy_detail'),
    path('repositories/diagnostics-centers', repositories.diagnostics_centers, name='diagnostics_centers'),
    path('repositories/diagnostics-centers/<uuid:center_id>', repositories.diagnostics_center_detail,
         name='diagnostics_center_detail'),
]
