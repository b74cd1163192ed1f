from rest_framework import serializers

from accounts.services.auth import DEFAULT_PLATFORM


class RegisterSerializer(serializers.Serializer):
    phone = serializers.CharField(max_length=15, required=False, allow_blank=True)
    name = serializers.CharField(max_length=255, required=False, allow_blank=True, allow_null=True)
    platform = serializers.CharField(max_length=100, required=False, default=DEFAULT_PLATFORM)
    pin = serializers.RegexField(r'^\d{4,6}$', required=False, allow_null=True,
                                 error_messages={'invalid': 'PIN must be 4 to 6 digits'})

    def validate_phone(self, v):
        return (v or '').strip()


class LoginSerializer(serializers.Serializer):
    phone = serializers.CharField(max_length=15, required=False, allow_blank=True)
    pin = serializers.CharField(max_length=10, required=False, allow_blank=True)
    platform = serializers.CharField(max_length=100, required=False, default=DEFAULT_PLATFORM)

    def validate_phone(self, v):
        return (v or '').strip()
