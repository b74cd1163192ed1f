from rest_framework import serializers

from records.models import UnverifiedDoctor, Pharmacy, DiagnosticsCenter
from core.fields import CleanCharField


class UnverifiedDoctorSerializer(serializers.ModelSerializer):
    class Meta:
        model = UnverifiedDoctor
        fields = '__all__'


class PharmacySerializer(serializers.ModelSerializer):
    class Meta:
        model = Pharmacy
        fields = '__all__'


class DiagnosticsCenterSerializer(serializers.ModelSerializer):
    class Meta:
        model = DiagnosticsCenter
        fields = '__all__'


class UnverifiedDoctorInputSerializer(serializers.Serializer):
    doctor_name = CleanCharField(max_length=255)
    specialty = CleanCharField(max_length=100)
    registration_number = CleanCharField(max_length=50)
    clinic_name = CleanCharField(max_length=255)
    area = CleanCharField(max_length=255)
    city = CleanCharField(max_length=100)
    pincode = CleanCharField(max_length=10)
    address = CleanCharField(max_length=255)
    phone = CleanCharField(max_length=15)
    email = serializers.EmailField(required=False, allow_blank=True, allow_null=True)
