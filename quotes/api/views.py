from django.conf import settings
from django.utils.decorators import method_decorator
from django_ratelimit.decorators import ratelimit
from rest_framework import generics, status
from rest_framework.permissions import IsAuthenticated

from project.exceptions import ServiceError
from project.permissions import IsCustomer, IsCustomerOrAdmin, IsCustomerOrOperator, IsOperator
from project.utils import (
    StandardizedAPIView, StandardizedResponseMixin,
    service_error_response, success_response, validation_error_response
)
from quotes.api.serializers import (
    CustomerQuoteDetailSerializer, CustomerQuoteSerializer,
    OperatorQuoteDetailSerializer, OperatorQuoteSerializer, OperatorRecentQuoteSerializer,
    QuoteMessageCreateSerializer, QuoteMessageSerializer,
    QuoteReasonSerializer, QuoteRespondSerializer, QuoteSubmitSerializer
)
from quotes.enums import ResponseMessages
from quotes.services import QuoteLifecycleService, QuoteMessagingService, QuoteQueryService


# Customer views
class CustomerQuoteListCreateView(StandardizedResponseMixin, generics.ListAPIView):
    """GET: the customer's quote requests, newest first. POST: submit a new one."""
    serializer_class = CustomerQuoteSerializer
    permission_classes = [IsCustomer]

    def get_queryset(self):
        return QuoteQueryService.customer_quotes(self.request.user)

    def post(self, request, *args, **kwargs):
        serializer = QuoteSubmitSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error_response(serializer.errors)

        trip = dict(serializer.validated_data)
        tour_id = trip.pop('tour_id')
        try:
            quote = QuoteLifecycleService.submit(request.user, tour_id, trip)
        except ServiceError as e:
            return service_error_response(e)

        return success_response(
            data={'quote': CustomerQuoteSerializer(quote).data},
            message=ResponseMessages.QUOTE_SUBMITTED.format(reference=quote.reference),
            status_code=status.HTTP_201_CREATED
        )


class CustomerQuoteDetailView(StandardizedAPIView):
    permission_classes = [IsCustomerOrAdmin]

    def get(self, request, pk):
        try:
            quote = QuoteQueryService.customer_quote_detail(request.user, pk)
        except ServiceError as e:
            return self.service_error_response(e)

        return self.success_response(
            data={'quote': CustomerQuoteDetailSerializer(quote).data},
            message=ResponseMessages.QUOTE_RETRIEVED
        )


class QuoteAcceptView(StandardizedAPIView):
    permission_classes = [IsCustomer]

    def post(self, request, pk):
        try:
            quote = QuoteLifecycleService.accept(request.user, pk)
        except ServiceError as e:
            return self.service_error_response(e)

        return self.success_response(
            data={'quote': CustomerQuoteSerializer(quote).data},
            message=ResponseMessages.QUOTE_ACCEPTED
        )


class QuoteRejectView(StandardizedAPIView):
    permission_classes = [IsCustomer]

    def post(self, request, pk):
        serializer = QuoteReasonSerializer(data=request.data)
        if not serializer.is_valid():
            return self.validation_error_response(serializer.errors)

        try:
            quote = QuoteLifecycleService.reject(request.user, pk, serializer.validated_data.get('reason'))
        except ServiceError as e:
            return self.service_error_response(e)

        return self.success_response(
            data={'quote': CustomerQuoteSerializer(quote).data},
            message=ResponseMessages.QUOTE_REJECTED
        )


class QuoteCancelView(StandardizedAPIView):
    permission_classes = [IsCustomer]

    def post(self, request, pk):
        serializer = QuoteReasonSerializer(data=request.data)
        if not serializer.is_valid():
            return self.validation_error_response(serializer.errors)

        try:
            quote = QuoteLifecycleService.cancel(request.user, pk, serializer.validated_data.get('reason'))
        except ServiceError as e:
            return self.service_error_response(e)

        return self.success_response(
            data={'quote': CustomerQuoteSerializer(quote).data},
            message=ResponseMessages.QUOTE_CANCELLED
        )


# Shared message thread
class QuoteMessagesView(StandardizedAPIView):
    """
    GET: whole conversation, oldest first (either party, or an admin).
    POST: append a message as the customer or the operator of the quote.
    """

    def get_permissions(self):
        if self.request.method == 'POST':
            return [IsCustomerOrOperator()]
        return [IsAuthenticated()]

    def get(self, request, pk):
        try:
            messages = QuoteMessagingService.list_messages(request.user, pk)
        except ServiceError as e:
            return self.service_error_response(e)

        return self.success_response(
            data={'messages': QuoteMessageSerializer(messages, many=True).data},
            message=ResponseMessages.MESSAGES_FOUND.format(count=len(messages))
        )

    @method_decorator(ratelimit(key='user_or_ip', rate=settings.MESSAGE_RATE_LIMIT, method='POST', block=True))
    def post(self, request, pk):
        serializer = QuoteMessageCreateSerializer(data=request.data)
        if not serializer.is_valid():
            return self.validation_error_response(serializer.errors)

        try:
            message = QuoteMessagingService.post_message(request.user, pk, serializer.validated_data['message'])
        except ServiceError as e:
            return self.service_error_response(e)

        return self.success_response(
            data={'message': QuoteMessageSerializer(message).data},
            message=ResponseMessages.MESSAGE_SENT,
            status_code=status.HTTP_201_CREATED
        )


# Operator views
class OperatorQuoteListView(StandardizedAPIView):
    """Quote requests on the operator's tours, optionally filtered with ?status="""
    permission_classes = [IsOperator]

    def get(self, request):
        try:
            quotes = list(QuoteQueryService.operator_quotes(request.user, request.query_params.get('status')))
        except ServiceError as e:
            return self.service_error_response(e)

        return self.success_response(
            data={'quotes': OperatorQuoteSerializer(quotes, many=True).data},
            message=ResponseMessages.QUOTES_FOUND.format(count=len(quotes))
        )


class OperatorDashboardView(StandardizedAPIView):
    permission_classes = [IsOperator]

    def get(self, request):
        try:
            dashboard = QuoteQueryService.operator_dashboard_stats(request.user)
        except ServiceError as e:
            return self.service_error_response(e)

        return self.success_response(
            data={
                'stats': dashboard['stats'],
                'recent_quotes': OperatorRecentQuoteSerializer(dashboard['recent_quotes'], many=True).data
            },
            message=ResponseMessages.DASHBOARD_RETRIEVED
        )


class OperatorQuoteDetailView(StandardizedAPIView):
    permission_classes = [IsOperator]

    def get(self, request, pk):
        try:
            quote = QuoteQueryService.operator_quote_detail(request.user, pk)
        except ServiceError as e:
            return self.service_error_response(e)

        return self.success_response(
            data={'quote': OperatorQuoteDetailSerializer(quote).data},
            message=ResponseMessages.QUOTE_RETRIEVED
        )


class OperatorQuoteRespondView(StandardizedAPIView):
    """Send the first quote on a pending request, or revise a quoted one"""
    permission_classes = [IsOperator]

    def post(self, request, pk):
        serializer = QuoteRespondSerializer(data=request.data)
        if not serializer.is_valid():
            return self.validation_error_response(serializer.errors)

        try:
            quote = QuoteLifecycleService.respond(request.user, pk, serializer.validated_data)
        except ServiceError as e:
            return self.service_error_response(e)

        if quote.revision_count:
            message = ResponseMessages.QUOTE_REVISED.format(revision=quote.revision_count)
        else:
            message = ResponseMessages.QUOTE_SENT
        return self.success_response(
            data={'quote': OperatorQuoteSerializer(quote).data},
            message=message
        )
