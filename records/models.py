"""
Database models for the Aarogya Mitra healthcare records.

Patients record their own past visits and attach the documents of each
visit: prescriptions, payment receipts and lab test results.  Numeric
lab values are also kept as individual vital parameters so they can be
charted over time.  Doctors, pharmacies and diagnostics centers that
are not (yet) registered on the platform are collected in crowd-sourced
repositories that grow as patients upload receipts.

Rows reference each other by ``appointment_id`` and by user/patient
UUIDs rather than by foreign keys, because users live in the shared
platform database (see ``accounts``).  Nothing is deleted: rows are
soft-deleted through ``is_active``.
"""
from __future__ import annotations

import uuid

from django.db import models


class Patient(models.Model):
    """Patient record owned by a platform user."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user_id = models.UUIDField(db_index=True, help_text="SharedUser id of the owner")
    phone = models.CharField(max_length=15, blank=True, null=True)
    name = models.CharField(max_length=255)
    sex = models.CharField(max_length=10, blank=True, null=True)
    age = models.PositiveIntegerField(blank=True, null=True)
    year_of_birth = models.PositiveIntegerField(blank=True, null=True)
    registered_by = models.UUIDField(blank=True, null=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'patients'

    def __str__(self) -> str:
        return f"{self.name} ({self.phone or self.user_id})"


class UnverifiedDoctor(models.Model):
    """Doctor entered by a patient; shared with other patients via search."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    doctor_name = models.CharField(max_length=255)
    specialty = models.CharField(max_length=100, blank=True, null=True)
    registration_number = models.CharField(max_length=50, blank=True, null=True)
    clinic_name = models.CharField(max_length=255, blank=True, null=True)
    area = models.CharField(max_length=255, blank=True, null=True)
    city = models.CharField(max_length=100, blank=True, null=True)
    pincode = models.CharField(max_length=10, blank=True, null=True)
    address = models.CharField(max_length=255, blank=True, null=True)
    phone = models.CharField(max_length=15, blank=True, null=True)
    email = models.CharField(max_length=255, blank=True, null=True)
    usage_count = models.IntegerField(default=0, help_text="Number of patients who used this doctor")
    created_by = models.UUIDField(help_text="First patient user id")
    is_verified = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'unverified_doctors'

    def __str__(self) -> str:
        return f"{self.doctor_name} ({self.clinic_name or '-'})"


class _Repository(models.Model):
    """Fields shared by pharmacies and diagnostics centers."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255)
    owner_name = models.CharField(max_length=255, blank=True, null=True)
    address = models.CharField(max_length=255, blank=True, null=True)
    area = models.CharField(max_length=255, blank=True, null=True)
    city = models.CharField(max_length=100, blank=True, null=True)
    pincode = models.CharField(max_length=10, blank=True, null=True)
    phone = models.CharField(max_length=15, blank=True, null=True)
    alternate_phone = models.CharField(max_length=15, blank=True, null=True)
    email = models.CharField(max_length=255, blank=True, null=True)
    license_number = models.CharField(max_length=50, blank=True, null=True)
    gst_number = models.CharField(max_length=50, blank=True, null=True)
    usage_count = models.IntegerField(default=0, help_text="Number of documents referencing this entry")
    is_verified = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)
    created_by = models.UUIDField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True

    def __str__(self) -> str:
        return f"{self.name} ({self.city or '-'})"


class Pharmacy(_Repository):
    class Meta:
        db_table = 'pharmacies'
        verbose_name_plural = 'pharmacies'


class DiagnosticsCenter(_Repository):
    test_types = models.JSONField(default=list, blank=True, help_text="e.g. ['Blood Test', 'X-Ray']")

    class Meta:
        db_table = 'diagnostics_centers'


class PastVisit(models.Model):
    """A doctor visit recorded by the patient after the fact."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    appointment_id = models.CharField(max_length=100, unique=True)
    patient_id = models.UUIDField(db_index=True)
    patient_name = models.CharField(max_length=255)
    patient_phone = models.CharField(max_length=15)
    visit_date = models.DateField()
    doctor_id = models.UUIDField(blank=True, null=True, help_text="SharedUser id when the doctor is on the platform")
    unverified_doctor = models.ForeignKey(
        UnverifiedDoctor, blank=True, null=True, on_delete=models.SET_NULL, related_name='past_visits',
    )
    doctor_name = models.CharField(max_length=255)
    doctor_specialty = models.CharField(max_length=100, blank=True, null=True)
    doctor_registration_number = models.CharField(max_length=50, blank=True, null=True)
    clinic_name = models.CharField(max_length=255, blank=True, null=True)
    hcp_name = models.CharField(max_length=255, blank=True, null=True)
    area = models.CharField(max_length=255, blank=True, null=True)
    city = models.CharField(max_length=100, blank=True, null=True)
    pincode = models.CharField(max_length=10, blank=True, null=True)
    chief_complaint = models.TextField(blank=True, null=True)
    diagnosis = models.TextField(blank=True, null=True)
    notes = models.TextField(blank=True, null=True)
    follow_up_date = models.DateField(blank=True, null=True)
    consultation_fee = models.DecimalField(max_digits=10, decimal_places=2, blank=True, null=True)
    created_by = models.UUIDField()
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'past_visits'
        indexes = [models.Index(fields=['created_by', 'is_active', '-visit_date'])]

    def __str__(self) -> str:
        return f"{self.appointment_id} {self.doctor_name} ({self.visit_date})"


class _VisitDocument(models.Model):
    """Fields common to every document attached to a past visit."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    appointment_id = models.CharField(max_length=100, db_index=True)
    patient_id = models.UUIDField()
    patient_name = models.CharField(max_length=255)
    file_url = models.CharField(max_length=500, blank=True, null=True)
    file_name = models.CharField(max_length=255, blank=True, null=True)
    file_type = models.CharField(max_length=50, blank=True, null=True)
    is_ai_extracted = models.BooleanField(default=False)
    ai_extraction_metadata = models.JSONField(blank=True, null=True)
    created_by = models.UUIDField()
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class PastPrescription(_VisitDocument):
    prescription_id = models.CharField(max_length=100)
    doctor_name = models.CharField(max_length=255)
    doctor_specialty = models.CharField(max_length=100, blank=True, null=True)
    diagnosis = models.TextField(blank=True, null=True)
    medications = models.JSONField(default=list, help_text="[{name, dosage, frequency, duration, ...}]")
    lab_tests = models.JSONField(default=list, blank=True)
    advice = models.TextField(blank=True, null=True)
    follow_up_date = models.DateField(blank=True, null=True)
    follow_up_notes = models.TextField(blank=True, null=True)
    prescription_date = models.DateField()

    class Meta:
        db_table = 'past_prescriptions'

    def __str__(self) -> str:
        return f"{self.prescription_id} ({self.appointment_id})"


class Receipt(_VisitDocument):
    RECEIPT_TYPES = [
        ('consultation', 'Consultation'),
        ('medicine', 'Medicine'),
        ('test', 'Test'),
        ('other', 'Other'),
    ]
    receipt_id = models.CharField(max_length=100)
    receipt_type = models.CharField(max_length=20, choices=RECEIPT_TYPES)
    amount = models.DecimalField(max_digits=10, decimal_places=2, blank=True, null=True)
    payment_method = models.CharField(max_length=255, blank=True, null=True)
    receipt_date = models.DateField(blank=True, null=True)
    pharmacy = models.ForeignKey(Pharmacy, blank=True, null=True, on_delete=models.SET_NULL, related_name='receipts')
    pharmacy_name = models.CharField(max_length=255, blank=True, null=True)
    pharmacy_address = models.CharField(max_length=255, blank=True, null=True)
    diagnostics_center = models.ForeignKey(
        DiagnosticsCenter, blank=True, null=True, on_delete=models.SET_NULL, related_name='receipts',
    )
    diagnostics_center_name = models.CharField(max_length=255, blank=True, null=True)
    diagnostics_center_address = models.CharField(max_length=255, blank=True, null=True)
    file_size = models.IntegerField(blank=True, null=True, help_text="in bytes")
    extracted_data = models.JSONField(
        blank=True, null=True, help_text="{invoice_number, items, total_amount, tax_amount, discount}",
    )

    class Meta:
        db_table = 'receipts'

    def __str__(self) -> str:
        return f"{self.receipt_id} {self.receipt_type} ({self.appointment_id})"


class PastTestResult(_VisitDocument):
    test_result_id = models.CharField(max_length=100)
    test_name = models.CharField(max_length=255)
    test_category = models.CharField(max_length=100, blank=True, null=True)
    test_date = models.DateField()
    parameters = models.JSONField(default=list, blank=True, help_text="[{parameter_name, value, unit, ...}]")
    diagnostics_center = models.ForeignKey(
        DiagnosticsCenter, blank=True, null=True, on_delete=models.SET_NULL, related_name='test_results',
    )
    diagnostics_center_name = models.CharField(max_length=255, blank=True, null=True)
    notes = models.TextField(blank=True, null=True)
    interpretation = models.TextField(blank=True, null=True)
    file_size = models.IntegerField(blank=True, null=True, help_text="in bytes")

    class Meta:
        db_table = 'past_test_results'

    def __str__(self) -> str:
        return f"{self.test_result_id} {self.test_name} ({self.appointment_id})"


class VitalParameter(models.Model):
    """One reading of a health parameter (weight, HbA1c, BP ...)."""
    SOURCE_CHOICES = [
        ('manual_entry', 'Manual entry'),
        ('test_report', 'Test report'),
        ('receipt', 'Receipt'),
        ('device', 'Device'),
    ]
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    patient_id = models.UUIDField(db_index=True)
    parameter_name = models.CharField(max_length=100)
    value = models.DecimalField(max_digits=10, decimal_places=2)
    unit = models.CharField(max_length=50, blank=True, null=True)
    recorded_date = models.DateField(db_index=True)
    recorded_time = models.TimeField(blank=True, null=True)
    normal_range_min = models.DecimalField(max_digits=10, decimal_places=2, blank=True, null=True)
    normal_range_max = models.DecimalField(max_digits=10, decimal_places=2, blank=True, null=True)
    category = models.CharField(max_length=50, blank=True, null=True)
    subcategory = models.CharField(max_length=100, blank=True, null=True)
    is_abnormal = models.BooleanField(default=False)
    source = models.CharField(max_length=100, choices=SOURCE_CHOICES, default='manual_entry')
    test_result_id = models.UUIDField(blank=True, null=True)
    appointment_id = models.CharField(max_length=100, blank=True, null=True)
    notes = models.TextField(blank=True, null=True)
    recorded_by = models.UUIDField()
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'vital_parameters'
        indexes = [models.Index(fields=['patient_id', 'parameter_name', 'recorded_date'])]

    def __str__(self) -> str:
        return f"{self.parameter_name}={self.value}{self.unit or ''} ({self.recorded_date})"


class VitalParameterDefinition(models.Model):
    """Reference data: unit, category and normal range of a parameter."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    parameter_name = models.CharField(max_length=100, unique=True)
    display_name = models.CharField(max_length=50, blank=True, null=True)
    unit = models.CharField(max_length=50, blank=True, null=True)
    category = models.CharField(max_length=50)
    subcategory = models.CharField(max_length=100, blank=True, null=True)
    default_normal_range_min = models.DecimalField(max_digits=10, decimal_places=2, blank=True, null=True)
    default_normal_range_max = models.DecimalField(max_digits=10, decimal_places=2, blank=True, null=True)
    parameter_type = models.CharField(max_length=50, blank=True, null=True, help_text="numeric, percentage, ratio ...")
    description = models.TextField(blank=True, null=True)
    related_parameters = models.JSONField(default=list, blank=True)
    sort_order = models.IntegerField(default=0)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'vital_parameter_definitions'
        ordering = ['sort_order', 'parameter_name']

    def __str__(self) -> str:
        return self.display_name or self.parameter_name
