from rest_framework import serializers

from records.models import PastVisit, PastPrescription, Receipt, PastTestResult, Patient
from core.fields import CleanCharField


class PatientSerializer(serializers.ModelSerializer):
    class Meta:
        model = Patient
        fields = '__all__'


class PastVisitSerializer(serializers.ModelSerializer):
    class Meta:
        model = PastVisit
        fields = '__all__'


class PastPrescriptionSerializer(serializers.ModelSerializer):
    class Meta:
        model = PastPrescription
        fields = '__all__'


class ReceiptSerializer(serializers.ModelSerializer):
    class Meta:
        model = Receipt
        fields = '__all__'


class PastTestResultSerializer(serializers.ModelSerializer):
    class Meta:
        model = PastTestResult
        fields = '__all__'


class PastVisitInputSerializer(serializers.Serializer):
    """Body of create/update; required fields are checked by the view."""
    visit_date = serializers.DateField(required=False, allow_null=True)
    doctor_id = serializers.UUIDField(required=False, allow_null=True)
    unverified_doctor_id = serializers.UUIDField(required=False, allow_null=True)
    doctor_name = CleanCharField(max_length=255)
    doctor_specialty = CleanCharField(max_length=100)
    doctor_registration_number = CleanCharField(max_length=50)
    clinic_name = CleanCharField(max_length=255)
    hcp_name = CleanCharField(max_length=255)
    area = CleanCharField(max_length=255)
    city = CleanCharField(max_length=100)
    pincode = CleanCharField(max_length=10)
    chief_complaint = CleanCharField()
    diagnosis = CleanCharField()
    notes = CleanCharField()
    follow_up_date = serializers.DateField(required=False, allow_null=True)
    consultation_fee = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True,
                                                min_value=0)
    patient_id = serializers.UUIDField(required=False, allow_null=True)
    patient_name = CleanCharField(max_length=255)
    patient_phone = CleanCharField(max_length=15)


class DocumentUploadSerializer(serializers.Serializer):
    file_url = serializers.CharField(max_length=500, required=False, allow_blank=True, allow_null=True)
    file_base64 = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    file_name = CleanCharField(max_length=255)
    file_type = CleanCharField(max_length=50)
    file_size = serializers.IntegerField(required=False, allow_null=True, min_value=0)
    use_ai_extraction = serializers.BooleanField(required=False, default=True)
    manual_data = serializers.DictField(required=False, allow_null=True)
    receipt_type = serializers.ChoiceField(choices=[c for c, _ in Receipt.RECEIPT_TYPES], required=False,
                                           allow_null=True)


# ---------------------------------------------------------------------
# Partial updates: identity, ownership and AI fields stay read-only
# ---------------------------------------------------------------------
_FILE_FIELDS = ['file_url', 'file_name', 'file_type']


class PastVisitUpdateSerializer(serializers.ModelSerializer):
    class Meta:
        model = PastVisit
        fields = [
            'visit_date', 'doctor_id', 'unverified_doctor', 'doctor_name', 'doctor_specialty',
            'doctor_registration_number', 'clinic_name', 'hcp_name', 'area', 'city', 'pincode',
            'chief_complaint', 'diagnosis', 'notes', 'follow_up_date', 'consultation_fee',
            'patient_name', 'patient_phone',
        ]


class PastPrescriptionUpdateSerializer(serializers.ModelSerializer):
    class Meta:
        model = PastPrescription
        fields = [
            'doctor_name', 'doctor_specialty', 'diagnosis', 'medications', 'lab_tests', 'advice',
            'follow_up_date', 'follow_up_notes', 'prescription_date',
        ] + _FILE_FIELDS


class ReceiptUpdateSerializer(serializers.ModelSerializer):
    class Meta:
        model = Receipt
        fields = [
            'receipt_type', 'amount', 'payment_method', 'receipt_date', 'pharmacy_name', 'pharmacy_address',
            'diagnostics_center_name', 'diagnostics_center_address', 'extracted_data', 'file_size',
        ] + _FILE_FIELDS


class PastTestResultUpdateSerializer(serializers.ModelSerializer):
    class Meta:
        model = PastTestResult
        fields = [
            'test_name', 'test_category', 'test_date', 'parameters', 'diagnostics_center_name', 'notes',
            'interpretation', 'file_size',
        ] + _FILE_FIELDS
