from rest_framework import serializers

from records.models import VitalParameter, VitalParameterDefinition
from core.fields import CleanCharField


class VitalParameterSerializer(serializers.ModelSerializer):
    class Meta:
        model = VitalParameter
        fields = '__all__'


class VitalParameterDefinitionSerializer(serializers.ModelSerializer):
    class Meta:
        model = VitalParameterDefinition
        fields = '__all__'


class VitalParameterInputSerializer(serializers.Serializer):
    """Manual reading; ``value`` and the dates are parsed leniently by the view."""
    parameter_name = CleanCharField(max_length=100)
    value = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    unit = CleanCharField(max_length=50)
    recorded_date = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    recorded_time = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    normal_range_min = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True)
    normal_range_max = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True)
    category = CleanCharField(max_length=50)
    subcategory = CleanCharField(max_length=100)
    source = serializers.ChoiceField(choices=[c for c, _ in VitalParameter.SOURCE_CHOICES], required=False,
                                     default='manual_entry')
    test_result_id = serializers.UUIDField(required=False, allow_null=True)
    appointment_id = CleanCharField(max_length=100)
    notes = CleanCharField()


class VitalParameterUpdateSerializer(serializers.ModelSerializer):
    class Meta:
        model = VitalParameter
        fields = [
            'parameter_name', 'value', 'unit', 'recorded_date', 'recorded_time', 'normal_range_min',
            'normal_range_max', 'category', 'subcategory', 'is_abnormal', 'notes',
        ]
