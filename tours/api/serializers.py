from rest_framework import serializers

from tours.enums import BusinessRules
from tours.models import OperatorProfile, Tour


class TourListSerializer(serializers.ModelSerializer):
    """Serializer for the public tour catalog (basic info)"""
    operator_name = serializers.CharField(source='operator_profile.company_name', read_only=True)

    class Meta:
        model = Tour
        fields = [
            'id', 'title', 'description', 'duration', 'price_from', 'currency',
            'region', 'countries', 'category', 'max_capacity', 'operator_name', 'created_at'
        ]


class TourDetailSerializer(TourListSerializer):
    class Meta(TourListSerializer.Meta):
        fields = TourListSerializer.Meta.fields + [
            'destinations', 'inclusions', 'exclusions', 'cancellation_policy', 'updated_at'
        ]


class TourSummarySerializer(serializers.ModelSerializer):
    """Compact tour block embedded in quote payloads"""
    class Meta:
        model = Tour
        fields = ['id', 'title', 'duration', 'region', 'countries', 'max_capacity']


class TourSearchSerializer(serializers.Serializer):
    search = serializers.CharField(required=False, allow_blank=True)
    category = serializers.CharField(required=False, allow_blank=True)
    country = serializers.CharField(required=False, allow_blank=True)
    min_price = serializers.IntegerField(required=False, min_value=0, help_text="In cents")
    max_price = serializers.IntegerField(required=False, min_value=0, help_text="In cents")

    def validate(self, data):
        min_price = data.get('min_price')
        max_price = data.get('max_price')
        if min_price is not None and max_price is not None and min_price > max_price:
            raise serializers.ValidationError("min_price cannot be greater than max_price")
        return data


class OperatorProfileSerializer(serializers.ModelSerializer):
    email = serializers.EmailField(source='user.email', read_only=True)
    name = serializers.CharField(source='user.name', read_only=True)
    tours_count = serializers.SerializerMethodField()

    class Meta:
        model = OperatorProfile
        fields = [
            'id', 'company_name', 'name', 'email', 'description', 'phone_number', 'whatsapp_number',
            'is_approved', 'approved_at', 'tours_count', 'created_at'
        ]
        read_only_fields = fields

    def get_tours_count(self, obj):
        return obj.tours.count()


class OperatorTourSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = Tour
        fields = ['id', 'title', 'is_active', 'created_at']


class OperatorDetailSerializer(OperatorProfileSerializer):
    """Admin view of one operator with its tours"""
    tours = OperatorTourSummarySerializer(many=True, read_only=True)

    class Meta(OperatorProfileSerializer.Meta):
        fields = OperatorProfileSerializer.Meta.fields + ['tours', 'updated_at']
        read_only_fields = fields


class OperatorApplicationSerializer(serializers.ModelSerializer):
    """Operator application form, also used by admins to correct profile details"""
    class Meta:
        model = OperatorProfile
        fields = ['company_name', 'description', 'phone_number', 'whatsapp_number']


class OperatorTourSerializer(TourDetailSerializer):
    """An operator's own listing, including inactive ones"""
    quote_requests_count = serializers.SerializerMethodField()

    class Meta(TourDetailSerializer.Meta):
        fields = TourDetailSerializer.Meta.fields + ['is_active', 'quote_requests_count']

    def get_quote_requests_count(self, obj):
        count = getattr(obj, 'quote_requests_count', None)
        return obj.quote_requests.count() if count is None else count


class TourWriteSerializer(serializers.ModelSerializer):
    description = serializers.CharField()
    duration = serializers.CharField(max_length=50)
    countries = serializers.ListField(child=serializers.CharField(max_length=100), allow_empty=False)
    destinations = serializers.ListField(child=serializers.CharField(max_length=200), required=False)
    inclusions = serializers.ListField(child=serializers.CharField(max_length=200), required=False)
    exclusions = serializers.ListField(child=serializers.CharField(max_length=200), required=False)
    price_from = serializers.IntegerField(
        min_value=0, max_value=BusinessRules.MAX_PRICE_FROM, required=False, help_text="In cents"
    )
    max_capacity = serializers.IntegerField(
        min_value=1, max_value=BusinessRules.MAX_TOUR_CAPACITY, required=False, allow_null=True
    )

    class Meta:
        model = Tour
        fields = [
            'title', 'description', 'duration', 'category', 'price_from', 'currency',
            'countries', 'region', 'destinations', 'max_capacity', 'inclusions', 'exclusions',
            'cancellation_policy'
        ]
