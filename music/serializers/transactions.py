from rest_framework import serializers


class TransactionInputSerializer(serializers.Serializer):
    phone = serializers.CharField(max_length=15)
    razorpayPaymentId = serializers.CharField(max_length=100)
    razorpayOrderId = serializers.CharField(max_length=100, required=False, allow_blank=True, allow_null=True)
    amount = serializers.FloatField(min_value=0)
    credits = serializers.IntegerField(min_value=1)
    paymentMode = serializers.CharField(max_length=50, required=False, allow_blank=True)
    packageId = serializers.IntegerField(required=False, allow_null=True)
    gstAmount = serializers.FloatField(required=False, allow_null=True)
    totalAmount = serializers.FloatField(required=False, allow_null=True)
