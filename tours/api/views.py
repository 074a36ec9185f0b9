from django.db.models import Q
from rest_framework import generics, status
from rest_framework.permissions import IsAuthenticated
from rest_framework.pagination import PageNumberPagination

from project.exceptions import ServiceError
from project.permissions import IsAdmin, IsOperator
from project.utils import (
    StandardizedAPIView, StandardizedResponseMixin, service_error_response, validation_error_response
)
from quotes.api.serializers import OperatorRecentQuoteSerializer
from tours.api.serializers import (
    OperatorApplicationSerializer, OperatorDetailSerializer, OperatorProfileSerializer, OperatorTourSerializer,
    TourDetailSerializer, TourListSerializer, TourSearchSerializer, TourWriteSerializer
)
from tours.enums import BusinessRules, ResponseMessages
from tours.models import Tour
from tours.services import (
    AdminDashboardService, OperatorAdminService, OperatorProfileService, OperatorTourService
)


class TourPagination(PageNumberPagination):
    page_size = 12
    page_size_query_param = 'limit'
    max_page_size = 50


def bookable_tours():
    return Tour.objects.select_related('operator_profile').filter(
        is_active=True,
        operator_profile__is_approved=True
    )


class TourListView(StandardizedResponseMixin, generics.ListAPIView):
    """Public tour catalog: active tours of approved operators"""
    serializer_class = TourListSerializer
    pagination_class = TourPagination
    permission_classes = []

    def list(self, request, *args, **kwargs):
        search = TourSearchSerializer(data=request.query_params)
        if not search.is_valid():
            return validation_error_response(search.errors)
        self.search_filters = search.validated_data
        return super().list(request, *args, **kwargs)

    def get_queryset(self):
        tours = bookable_tours()
        filters = getattr(self, 'search_filters', {})

        if filters.get('category'):
            tours = tours.filter(category__iexact=filters['category'])
        if filters.get('country'):
            tours = tours.filter(countries__icontains=filters['country'])
        if filters.get('min_price') is not None:
            tours = tours.filter(price_from__gte=filters['min_price'])
        if filters.get('max_price') is not None:
            tours = tours.filter(price_from__lte=filters['max_price'])
        if filters.get('search'):
            term = filters['search']
            tours = tours.filter(
                Q(title__icontains=term) |
                Q(description__icontains=term) |
                Q(region__icontains=term) |
                Q(countries__icontains=term)
            )

        return tours.order_by('-created_at')


class TourDetailView(StandardizedResponseMixin, generics.RetrieveAPIView):
    serializer_class = TourDetailSerializer
    permission_classes = []

    def get_queryset(self):
        return bookable_tours()


class OperatorApplicationView(StandardizedAPIView):
    """GET: the caller's operator application. POST: apply to become an operator."""
    permission_classes = [IsAuthenticated]

    def get(self, request):
        try:
            profile = OperatorProfileService.get_application(request.user)
        except ServiceError as e:
            return self.service_error_response(e)

        return self.success_response(
            data={'operator': OperatorProfileSerializer(profile).data},
            message=ResponseMessages.APPLICATION_RETRIEVED
        )

    def post(self, request):
        serializer = OperatorApplicationSerializer(data=request.data)
        if not serializer.is_valid():
            return self.validation_error_response(serializer.errors)

        try:
            profile = OperatorProfileService.submit_application(request.user, serializer.validated_data)
        except ServiceError as e:
            return self.service_error_response(e)

        return self.success_response(
            data={'operator': OperatorProfileSerializer(profile).data},
            message=ResponseMessages.APPLICATION_SUBMITTED,
            status_code=status.HTTP_201_CREATED
        )


class OperatorTourListCreateView(StandardizedAPIView):
    """GET: the operator's own tours, including inactive ones. POST: list a new tour."""
    permission_classes = [IsOperator]

    def get(self, request):
        try:
            tours = list(OperatorTourService.list_tours(request.user))
        except ServiceError as e:
            return self.service_error_response(e)

        return self.success_response(
            data={'tours': OperatorTourSerializer(tours, many=True).data, 'count': len(tours)},
            message=ResponseMessages.TOURS_FOUND.format(count=len(tours))
        )

    def post(self, request):
        serializer = TourWriteSerializer(data=request.data)
        if not serializer.is_valid():
            return self.validation_error_response(serializer.errors)

        try:
            tour = OperatorTourService.create_tour(request.user, serializer.validated_data)
        except ServiceError as e:
            return self.service_error_response(e)

        return self.success_response(
            data={'tour': OperatorTourSerializer(tour).data},
            message=ResponseMessages.TOUR_CREATED,
            status_code=status.HTTP_201_CREATED
        )


class OperatorTourDetailView(StandardizedAPIView):
    permission_classes = [IsOperator]

    def get(self, request, pk):
        try:
            tour = OperatorTourService.get_tour(request.user, pk)
        except ServiceError as e:
            return self.service_error_response(e)

        return self.success_response(
            data={'tour': OperatorTourSerializer(tour).data},
            message=ResponseMessages.TOUR_RETRIEVED
        )

    def put(self, request, pk):
        return self._update(request, pk, partial=False)

    def patch(self, request, pk):
        return self._update(request, pk, partial=True)

    def _update(self, request, pk, partial):
        serializer = TourWriteSerializer(data=request.data, partial=partial)
        if not serializer.is_valid():
            return self.validation_error_response(serializer.errors)

        try:
            tour = OperatorTourService.update_tour(request.user, pk, serializer.validated_data)
        except ServiceError as e:
            return self.service_error_response(e)

        return self.success_response(
            data={'tour': OperatorTourSerializer(tour).data},
            message=ResponseMessages.TOUR_UPDATED
        )

    def delete(self, request, pk):
        try:
            OperatorTourService.delete_tour(request.user, pk)
        except ServiceError as e:
            return self.service_error_response(e)

        return self.success_response(message=ResponseMessages.TOUR_DELETED)


class OperatorTourToggleView(StandardizedAPIView):
    permission_classes = [IsOperator]

    def post(self, request, pk):
        try:
            tour = OperatorTourService.toggle_active(request.user, pk)
        except ServiceError as e:
            return self.service_error_response(e)

        message = ResponseMessages.TOUR_ACTIVATED if tour.is_active else ResponseMessages.TOUR_DEACTIVATED
        return self.success_response(
            data={'tour': OperatorTourSerializer(tour).data},
            message=message
        )


class AdminOperatorPagination(PageNumberPagination):
    page_size = BusinessRules.ADMIN_OPERATORS_PAGE_SIZE
    page_size_query_param = 'limit'
    max_page_size = 100


class AdminOperatorListView(StandardizedResponseMixin, generics.ListAPIView):
    """Operators for review. ``?status=pending|approved|all`` and ``?search=``"""
    serializer_class = OperatorProfileSerializer
    pagination_class = AdminOperatorPagination
    permission_classes = [IsAdmin]

    def list(self, request, *args, **kwargs):
        try:
            self.operators = OperatorAdminService.list_operators(
                status=request.query_params.get('status'),
                search=request.query_params.get('search'),
            )
        except ServiceError as e:
            return service_error_response(e)
        return super().list(request, *args, **kwargs)

    def get_queryset(self):
        return self.operators


class AdminOperatorDetailView(StandardizedAPIView):
    permission_classes = [IsAdmin]

    def get(self, request, profile_id):
        try:
            profile = OperatorAdminService.get_operator(profile_id)
        except ServiceError as e:
            return self.service_error_response(e)

        return self.success_response(
            data={'operator': OperatorDetailSerializer(profile).data},
            message=ResponseMessages.OPERATOR_RETRIEVED
        )

    def patch(self, request, profile_id):
        serializer = OperatorApplicationSerializer(data=request.data, partial=True)
        if not serializer.is_valid():
            return self.validation_error_response(serializer.errors)

        try:
            profile = OperatorAdminService.update_operator(profile_id, serializer.validated_data, request.user)
        except ServiceError as e:
            return self.service_error_response(e)

        return self.success_response(
            data={'operator': OperatorDetailSerializer(profile).data},
            message=ResponseMessages.OPERATOR_UPDATED
        )


class OperatorApprovalView(StandardizedAPIView):
    """Admin approves an operator (approve=True) or revokes / rejects one"""
    permission_classes = [IsAdmin]
    approve = True

    def post(self, request, profile_id):
        try:
            was_approved = OperatorAdminService.get_operator(profile_id).is_approved
            profile = OperatorAdminService.set_approval(profile_id, self.approve, request.user)
        except ServiceError as e:
            return self.service_error_response(e)

        if self.approve:
            message = ResponseMessages.OPERATOR_APPROVED
        elif was_approved:
            message = ResponseMessages.OPERATOR_REVOKED
        else:
            message = ResponseMessages.OPERATOR_REJECTED
        return self.success_response(
            data={'operator': OperatorProfileSerializer(profile).data},
            message=message
        )


class AdminDashboardView(StandardizedAPIView):
    permission_classes = [IsAdmin]

    def get(self, request):
        dashboard = AdminDashboardService.dashboard_stats()
        return self.success_response(
            data={
                'stats': dashboard['stats'],
                'recent_operators': OperatorProfileSerializer(dashboard['recent_operators'], many=True).data,
                'recent_quotes': OperatorRecentQuoteSerializer(dashboard['recent_quotes'], many=True).data,
                'recent_tours': TourListSerializer(dashboard['recent_tours'], many=True).data,
            },
            message=ResponseMessages.DASHBOARD_RETRIEVED
        )
