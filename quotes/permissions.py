"""
Who may touch which quote.

Role gating per endpoint lives in ``project.permissions``; this module does
the per-record checks and works out which side of the conversation an actor
is on. Services always receive the actor explicitly.
"""
import logging
from dataclasses import dataclass
from typing import Union

from authentication.enums import UserRole
from project.exceptions import ForbiddenError, NotFoundError
from tours.models import OperatorProfile
from tours.services import OperatorProfileService
from .enums import ErrorMessages, QuoteStatus, SenderType
from .models import QuoteRequest

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CustomerSender:
    user_id: int
    sender_type = SenderType.CUSTOMER


@dataclass(frozen=True)
class OperatorSender:
    operator_profile_id: int
    sender_type = SenderType.OPERATOR


Sender = Union[CustomerSender, OperatorSender]


class QuoteAccessGuard:

    @staticmethod
    def require_approved_operator(actor) -> OperatorProfile:
        return OperatorProfileService.require_approved_operator(actor)

    @staticmethod
    def load_quote(quote_id, lock=False) -> QuoteRequest:
        queryset = QuoteRequest.objects.all()
        if lock:
            queryset = queryset.select_for_update()
        try:
            return queryset.get(pk=quote_id)
        except QuoteRequest.DoesNotExist:
            raise NotFoundError(ErrorMessages.QUOTE_NOT_FOUND)

    @staticmethod
    def resolve_sender(actor, quote: QuoteRequest) -> Sender:
        """Which party of ``quote`` the actor is. Anyone else is refused."""
        if actor.role == UserRole.USER:
            if quote.user_id != actor.pk:
                logger.warning(f"User {actor.pk} denied access to quote {quote.pk}")
                raise ForbiddenError(ErrorMessages.NOT_YOUR_QUOTE)
            return CustomerSender(user_id=actor.pk)

        if actor.role == UserRole.OPERATOR:
            profile = QuoteAccessGuard.require_approved_operator(actor)
            if quote.tour.operator_profile_id != profile.pk:
                logger.warning(f"Operator profile {profile.pk} denied access to quote {quote.pk}")
                raise ForbiddenError(ErrorMessages.NOT_YOUR_OPERATOR_QUOTE)
            return OperatorSender(operator_profile_id=profile.pk)

        raise ForbiddenError(ErrorMessages.ROLE_NOT_ALLOWED)

    @staticmethod
    def get_quote_for_customer(actor, quote_id, lock=False) -> QuoteRequest:
        if actor.role != UserRole.USER:
            raise ForbiddenError(ErrorMessages.NOT_YOUR_QUOTE)
        quote = QuoteAccessGuard.load_quote(quote_id, lock=lock)
        QuoteAccessGuard.resolve_sender(actor, quote)
        return quote

    @staticmethod
    def get_quote_for_operator(actor, quote_id, lock=False) -> QuoteRequest:
        # Approval is checked before the lookup, so a pending operator learns nothing about ids
        QuoteAccessGuard.require_approved_operator(actor)
        quote = QuoteAccessGuard.load_quote(quote_id, lock=lock)
        QuoteAccessGuard.resolve_sender(actor, quote)
        return quote

    @staticmethod
    def get_quote_for_reader(actor, quote_id) -> QuoteRequest:
        """Read access: either party, or a platform admin"""
        quote = QuoteAccessGuard.load_quote(quote_id)
        if actor.role == UserRole.ADMIN:
            return quote
        QuoteAccessGuard.resolve_sender(actor, quote)
        return quote

    @staticmethod
    def can_view_customer_contact(quote: QuoteRequest) -> bool:
        """Live customer contact details reach the operator only once the booking is paid"""
        return quote.status == QuoteStatus.PAID
