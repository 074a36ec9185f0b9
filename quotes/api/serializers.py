from rest_framework import serializers

from quotes.enums import BusinessRules
from quotes.models import QuoteMessage, QuoteRequest
from quotes.permissions import QuoteAccessGuard
from quotes.services import QuoteMessagingService
from tours.api.serializers import TourSummarySerializer


class PriceLineSerializer(serializers.Serializer):
    """One inclusion / exclusion line, price in cents or null"""
    item = serializers.CharField(max_length=200)
    price = serializers.IntegerField(min_value=0, allow_null=True, required=False, default=None)


class QuoteMessageSerializer(serializers.ModelSerializer):
    sender_name = serializers.CharField(source='sender.name', read_only=True)

    class Meta:
        model = QuoteMessage
        fields = ['id', 'sender_type', 'sender_name', 'message', 'created_at']
        read_only_fields = fields


class LatestMessageMixin(serializers.Serializer):
    """Adds the most recent message of the thread for list views"""
    latest_message = serializers.SerializerMethodField()

    def get_latest_message(self, obj):
        message = QuoteMessagingService.latest_message(obj)
        if message is None:
            return None
        return QuoteMessageSerializer(message).data


QUOTE_TERMS_FIELDS = [
    'quoted_price', 'quoted_inclusions', 'quoted_exclusions', 'quoted_terms',
    'quote_validity_hours', 'quoted_at', 'quote_expires_at',
    'revision_count', 'last_revised_at',
]

TRIP_FIELDS = [
    'preferred_date', 'flexible_dates', 'adults', 'children', 'child_ages',
    'budget_range', 'special_requirements',
]


class CustomerQuoteSerializer(LatestMessageMixin, serializers.ModelSerializer):
    """A customer's view of their own quote request"""
    tour = TourSummarySerializer(read_only=True)
    operator_name = serializers.CharField(source='tour.operator_profile.company_name', read_only=True)
    booking_reference = serializers.CharField(read_only=True)

    class Meta:
        model = QuoteRequest
        fields = [
            'id', 'reference', 'booking_reference', 'status', 'tour', 'operator_name',
            *TRIP_FIELDS,
            'customer_name', 'customer_email', 'customer_phone', 'customer_whatsapp',
            *QUOTE_TERMS_FIELDS,
            'accepted_at', 'rejected_at', 'rejection_reason',
            'cancelled_at', 'cancellation_reason',
            'paid_at', 'paid_amount', 'payment_reference', 'payment_link',
            'latest_message', 'created_at', 'updated_at'
        ]
        read_only_fields = fields


class CustomerQuoteDetailSerializer(CustomerQuoteSerializer):
    messages = QuoteMessageSerializer(many=True, read_only=True)

    class Meta(CustomerQuoteSerializer.Meta):
        fields = CustomerQuoteSerializer.Meta.fields + ['messages']
        read_only_fields = fields


class OperatorQuoteSerializer(LatestMessageMixin, serializers.ModelSerializer):
    """
    An operator's view of a quote on one of their tours.

    The customer block carries the name only. The live email, phone and
    WhatsApp number from the customer's account are added once the quote is
    paid; before that the keys are absent altogether.
    """
    tour = TourSummarySerializer(read_only=True)
    customer = serializers.SerializerMethodField()
    booking_reference = serializers.CharField(read_only=True)

    class Meta:
        model = QuoteRequest
        fields = [
            'id', 'reference', 'booking_reference', 'status', 'tour', 'customer',
            *TRIP_FIELDS,
            *QUOTE_TERMS_FIELDS,
            'accepted_at', 'rejected_at', 'rejection_reason',
            'cancelled_at', 'cancellation_reason', 'paid_at', 'paid_amount',
            'latest_message', 'created_at', 'updated_at'
        ]
        read_only_fields = fields

    def get_customer(self, obj):
        customer = {'name': obj.customer_name or obj.user.name}
        if QuoteAccessGuard.can_view_customer_contact(obj):
            customer.update({
                'email': obj.user.email,
                'phone_number': obj.user.phone_number,
                'whatsapp_number': obj.user.whatsapp_number,
            })
        return customer


class OperatorQuoteDetailSerializer(OperatorQuoteSerializer):
    messages = QuoteMessageSerializer(many=True, read_only=True)

    class Meta(OperatorQuoteSerializer.Meta):
        fields = OperatorQuoteSerializer.Meta.fields + ['messages']
        read_only_fields = fields


class OperatorRecentQuoteSerializer(serializers.ModelSerializer):
    """Dashboard row"""
    tour_title = serializers.CharField(source='tour.title', read_only=True)
    customer_name = serializers.SerializerMethodField()

    class Meta:
        model = QuoteRequest
        fields = [
            'id', 'reference', 'status', 'tour_id', 'tour_title', 'customer_name',
            'preferred_date', 'adults', 'children', 'quoted_price', 'created_at'
        ]
        read_only_fields = fields

    def get_customer_name(self, obj):
        return obj.customer_name or obj.user.name


class QuoteSubmitSerializer(serializers.Serializer):
    tour_id = serializers.IntegerField(min_value=1, max_value=BusinessRules.MAX_BIGINT)
    preferred_date = serializers.DateField()
    flexible_dates = serializers.BooleanField(default=False)
    adults = serializers.IntegerField(min_value=1, max_value=BusinessRules.MAX_PARTY_SIZE, default=1)
    children = serializers.IntegerField(min_value=0, max_value=BusinessRules.MAX_PARTY_SIZE, default=0)
    child_ages = serializers.ListField(
        child=serializers.IntegerField(min_value=0, max_value=BusinessRules.MAX_CHILD_AGE),
        required=False,
        default=list
    )
    budget_range = serializers.CharField(max_length=100, required=False, allow_blank=True)
    special_requirements = serializers.CharField(required=False, allow_blank=True)
    customer_name = serializers.CharField(max_length=150, required=False)
    customer_email = serializers.EmailField(required=False)
    customer_phone = serializers.CharField(max_length=20, required=False)
    customer_whatsapp = serializers.CharField(max_length=20, required=False, allow_blank=True)


class QuoteRespondSerializer(serializers.Serializer):
    quoted_price = serializers.IntegerField(min_value=1, max_value=BusinessRules.MAX_PRICE_CENTS, help_text="In cents")
    quoted_inclusions = PriceLineSerializer(many=True, required=False)
    quoted_exclusions = PriceLineSerializer(many=True, required=False)
    quoted_terms = serializers.CharField(required=False, allow_blank=True)
    quote_validity_hours = serializers.IntegerField(
        min_value=1, max_value=BusinessRules.MAX_VALIDITY_HOURS, required=False
    )


class QuoteReasonSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=1000, required=False, allow_blank=True)


class QuoteMessageCreateSerializer(serializers.Serializer):
    # Blank text is refused by the messaging service with its own message
    message = serializers.CharField(allow_blank=True, trim_whitespace=False)
