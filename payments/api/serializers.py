from rest_framework import serializers

from quotes.enums import BusinessRules


class PaymentCallbackSerializer(serializers.Serializer):
    """Settlement notice sent by the payment gateway once a quote is paid"""
    quote_id = serializers.IntegerField(min_value=1, max_value=BusinessRules.MAX_BIGINT, required=False)
    reference = serializers.CharField(max_length=20, required=False)
    amount = serializers.IntegerField(min_value=0, max_value=BusinessRules.MAX_PRICE_CENTS, help_text="Amount paid in cents")
    payment_reference = serializers.CharField(max_length=100)

    def validate(self, data):
        if data.get('quote_id') is None and not data.get('reference'):
            raise serializers.ValidationError("Either quote_id or reference is required")
        return data
