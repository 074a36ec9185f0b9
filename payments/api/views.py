import hmac
import logging

from django.conf import settings
from rest_framework import permissions

from payments.api.serializers import PaymentCallbackSerializer
from project.exceptions import ServiceError
from project.utils import StandardizedAPIView
from quotes.enums import ResponseMessages
from quotes.services import QuoteLifecycleService

logger = logging.getLogger(__name__)


class HasPaymentCallbackSecret(permissions.BasePermission):
    """Gateway calls carry the shared secret in the X-Payment-Secret header"""
    message = "Invalid payment callback signature."

    def has_permission(self, request, view):
        expected = getattr(settings, 'PAYMENT_CALLBACK_SECRET', '')
        supplied = request.headers.get('X-Payment-Secret', '')
        if not expected or not supplied:
            return False
        return hmac.compare_digest(expected.encode(), supplied.encode())


class PaymentCallbackView(StandardizedAPIView):
    """Complete payment (webhook from gateway): marks an accepted quote as paid"""
    authentication_classes = []
    permission_classes = [HasPaymentCallbackSecret]

    def post(self, request):
        serializer = PaymentCallbackSerializer(data=request.data)
        if not serializer.is_valid():
            return self.validation_error_response(serializer.errors)

        data = serializer.validated_data
        try:
            quote = QuoteLifecycleService.mark_paid(
                amount=data['amount'],
                payment_reference=data['payment_reference'],
                quote_id=data.get('quote_id'),
                reference=data.get('reference')
            )
        except ServiceError as e:
            logger.warning(f"Payment callback {data['payment_reference']} refused: {e.message}")
            return self.service_error_response(e)

        return self.success_response(
            data={
                'quote_id': quote.pk,
                'reference': quote.reference,
                'booking_reference': quote.booking_reference,
                'status': quote.status,
                'paid_at': quote.paid_at,
            },
            message=ResponseMessages.QUOTE_PAID.format(reference=quote.booking_reference)
        )
