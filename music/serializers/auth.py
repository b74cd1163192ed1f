from rest_framework import serializers


class _PhoneSerializer(serializers.Serializer):
    phone = serializers.CharField(max_length=15, required=False, allow_blank=True)

    def validate_phone(self, v):
        return (v or '').strip()


class SendOtpSerializer(_PhoneSerializer):
    pass


class VerifyOtpSerializer(_PhoneSerializer):
    otp = serializers.CharField(max_length=10, required=False, allow_blank=True)


class CredentialsSerializer(_PhoneSerializer):
    pin = serializers.CharField(max_length=10, required=False, allow_blank=True)


class ResetPinSerializer(_PhoneSerializer):
    otp = serializers.CharField(max_length=10, required=False, allow_blank=True)
    newPin = serializers.CharField(max_length=10, required=False, allow_blank=True)
