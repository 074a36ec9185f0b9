"""
Operator management services.

Operators apply, wait for an administrator to approve them and then manage
their own tour listings. Whether a tour is active decides whether customers
can request quotes on it.
"""
import logging
from typing import Dict, Optional

from django.db import transaction
from django.db.models import Count, Q
from django.utils import timezone

from authentication.enums import UserRole
from authentication.models import CustomUser
from project.exceptions import ForbiddenError, NotFoundError, ValidationError
from quotes.enums import QuoteStatus
from quotes.models import QuoteRequest
from tours.enums import BusinessRules, ErrorMessages, OperatorStatusFilter
from tours.models import OperatorProfile, Tour

logger = logging.getLogger(__name__)


class OperatorProfileService:
    """The operator side of an account: application and approval state"""

    @staticmethod
    def get_profile(actor) -> OperatorProfile:
        if actor.role != UserRole.OPERATOR:
            raise ForbiddenError(ErrorMessages.OPERATOR_PROFILE_MISSING)
        try:
            return actor.operator_profile
        except OperatorProfile.DoesNotExist:
            raise ForbiddenError(ErrorMessages.OPERATOR_PROFILE_MISSING)

    @staticmethod
    def require_approved_operator(actor) -> OperatorProfile:
        """Operator profile of the actor, provided the platform has approved it"""
        profile = OperatorProfileService.get_profile(actor)
        if not profile.is_approved:
            raise ForbiddenError(ErrorMessages.OPERATOR_PENDING_APPROVAL)
        return profile

    @staticmethod
    def get_application(actor) -> OperatorProfile:
        profile = OperatorProfile.objects.filter(user=actor).first()
        if profile is None:
            raise NotFoundError(ErrorMessages.APPLICATION_NOT_FOUND)
        return profile

    @staticmethod
    @transaction.atomic
    def submit_application(actor, data: Dict) -> OperatorProfile:
        """
        Create a pending operator profile for the actor and switch the
        account to the operator role. Trading starts once an admin approves.
        """
        if actor.role == UserRole.ADMIN:
            raise ForbiddenError(ErrorMessages.ADMINS_CANNOT_APPLY)

        user = CustomUser.objects.select_for_update().get(pk=actor.pk)
        if OperatorProfile.objects.filter(user=user).exists():
            raise ValidationError(ErrorMessages.APPLICATION_EXISTS)

        profile = OperatorProfile.objects.create(user=user, is_approved=False, approved_at=None, **data)
        if user.role != UserRole.OPERATOR:
            user.role = UserRole.OPERATOR
            user.save(update_fields=['role'])
            actor.role = UserRole.OPERATOR

        logger.info(f"User {user.pk} applied as operator ({profile.company_name}), profile {profile.pk}")
        return profile


class OperatorTourService:
    """An approved operator's own tour listings"""

    @staticmethod
    def _owned_tour(profile, tour_id, lock=False) -> Tour:
        queryset = Tour.objects.filter(pk=tour_id, operator_profile=profile)
        if lock:
            queryset = queryset.select_for_update()
        tour = queryset.first()
        if tour is None:
            raise NotFoundError(ErrorMessages.TOUR_NOT_FOUND)
        return tour

    @staticmethod
    def list_tours(actor):
        profile = OperatorProfileService.require_approved_operator(actor)
        return (
            Tour.objects.filter(operator_profile=profile)
            .annotate(quote_requests_count=Count('quote_requests'))
            .order_by('-created_at', '-id')
        )

    @staticmethod
    def get_tour(actor, tour_id) -> Tour:
        profile = OperatorProfileService.require_approved_operator(actor)
        return OperatorTourService._owned_tour(profile, tour_id)

    @staticmethod
    @transaction.atomic
    def create_tour(actor, data: Dict) -> Tour:
        profile = OperatorProfileService.require_approved_operator(actor)
        tour = Tour.objects.create(operator_profile=profile, is_active=True, **data)
        logger.info(f"Operator profile {profile.pk} created tour {tour.pk}")
        return tour

    @staticmethod
    @transaction.atomic
    def update_tour(actor, tour_id, data: Dict) -> Tour:
        profile = OperatorProfileService.require_approved_operator(actor)
        tour = OperatorTourService._owned_tour(profile, tour_id, lock=True)

        for field, value in data.items():
            setattr(tour, field, value)
        tour.save()

        logger.info(f"Operator profile {profile.pk} updated tour {tour.pk}: {sorted(data)}")
        return tour

    @staticmethod
    @transaction.atomic
    def toggle_active(actor, tour_id) -> Tour:
        """Flip whether customers can request quotes on the tour. Open quotes are unaffected."""
        profile = OperatorProfileService.require_approved_operator(actor)
        tour = OperatorTourService._owned_tour(profile, tour_id, lock=True)

        tour.is_active = not tour.is_active
        tour.save(update_fields=['is_active', 'updated_at'])

        logger.info(f"Operator profile {profile.pk} set tour {tour.pk} active={tour.is_active}")
        return tour

    @staticmethod
    @transaction.atomic
    def delete_tour(actor, tour_id) -> None:
        profile = OperatorProfileService.require_approved_operator(actor)
        tour = OperatorTourService._owned_tour(profile, tour_id, lock=True)

        if tour.quote_requests.exists():
            raise ValidationError(ErrorMessages.TOUR_HAS_QUOTES)

        tour.delete()
        logger.info(f"Operator profile {profile.pk} deleted tour {tour_id}")


class OperatorAdminService:
    """Admin-side operator management"""

    @staticmethod
    def list_operators(status: Optional[str] = None, search: Optional[str] = None):
        status = status or OperatorStatusFilter.ALL
        if status not in OperatorStatusFilter.values:
            message = ErrorMessages.INVALID_OPERATOR_STATUS.format(status=status)
            raise ValidationError(message, errors={'status': [message]})

        operators = OperatorProfile.objects.select_related('user')
        if status == OperatorStatusFilter.PENDING:
            operators = operators.filter(is_approved=False)
        elif status == OperatorStatusFilter.APPROVED:
            operators = operators.filter(is_approved=True)

        if search:
            operators = operators.filter(
                Q(company_name__icontains=search) |
                Q(user__name__icontains=search) |
                Q(user__email__icontains=search)
            )
        return operators.order_by('-created_at', '-id')

    @staticmethod
    def get_operator(profile_id, lock=False) -> OperatorProfile:
        queryset = OperatorProfile.objects.select_related('user')
        if lock:
            queryset = queryset.select_for_update()
        profile = queryset.filter(pk=profile_id).first()
        if profile is None:
            raise NotFoundError(ErrorMessages.OPERATOR_NOT_FOUND)
        return profile

    @staticmethod
    @transaction.atomic
    def update_operator(profile_id, data: Dict, admin_user) -> OperatorProfile:
        profile = OperatorAdminService.get_operator(profile_id, lock=True)

        for field, value in data.items():
            setattr(profile, field, value)
        profile.save()

        logger.info(f"Admin {admin_user.pk} updated operator profile {profile.pk}: {sorted(data)}")
        return profile

    @staticmethod
    @transaction.atomic
    def set_approval(profile_id, approved: bool, admin_user) -> OperatorProfile:
        """Approve an operator, or revoke / reject one. Approving twice is refused."""
        profile = OperatorAdminService.get_operator(profile_id, lock=True)

        if approved and profile.is_approved:
            raise ValidationError(ErrorMessages.OPERATOR_ALREADY_APPROVED)

        profile.is_approved = approved
        profile.approved_at = timezone.now() if approved else None
        profile.save(update_fields=['is_approved', 'approved_at', 'updated_at'])

        action = "approved" if approved else "revoked approval for"
        logger.info(f"Admin {admin_user.pk} {action} operator profile {profile.pk}")
        return profile


class AdminDashboardService:

    @staticmethod
    def dashboard_stats() -> Dict:
        operators = OperatorProfile.objects.aggregate(
            total=Count('id'),
            approved=Count('id', filter=Q(is_approved=True)),
        )
        tours = Tour.objects.aggregate(
            total=Count('id'),
            active=Count('id', filter=Q(is_active=True)),
        )
        quotes = QuoteRequest.objects.aggregate(
            total=Count('id'),
            pending=Count('id', filter=Q(status=QuoteStatus.PENDING)),
        )
        limit = BusinessRules.RECENT_ACTIVITY_LIMIT

        return {
            'stats': {
                'operators': {
                    'total': operators['total'],
                    'pending': operators['total'] - operators['approved'],
                    'approved': operators['approved'],
                },
                'tours': tours,
                'quotes': quotes,
                'users': {'total': CustomUser.objects.filter(role=UserRole.USER).count()},
            },
            'recent_operators': list(
                OperatorProfile.objects.select_related('user').order_by('-created_at', '-id')[:limit]
            ),
            'recent_quotes': list(
                QuoteRequest.objects.select_related('tour', 'user').order_by('-created_at', '-id')[:limit]
            ),
            'recent_tours': list(
                Tour.objects.select_related('operator_profile').order_by('-created_at', '-id')[:limit]
            ),
        }
