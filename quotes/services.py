"""
Business logic services for quote requests.
Centralizes the negotiation lifecycle, the message thread and the read models.
"""
import logging
from datetime import timedelta

from django.db import transaction
from django.db.models import Count, F, Sum
from django.utils import timezone

from authentication.enums import UserRole
from project.exceptions import ConflictError, ExpiredError, ForbiddenError, NotFoundError, ValidationError
from tours.models import Tour
from .enums import BusinessRules, ErrorMessages, QuoteAction, QuoteStatus
from .models import QuoteMessage, QuoteRequest
from .notifications import notify_message_posted, notify_quote_event
from .permissions import QuoteAccessGuard
from .references import create_quote_with_reference
from .validators import QuoteEligibilityValidator, QuoteTermsValidator

logger = logging.getLogger(__name__)

TRIP_FIELDS = [
    'preferred_date', 'flexible_dates', 'adults', 'children', 'child_ages',
    'budget_range', 'special_requirements',
    'customer_name', 'customer_email', 'customer_phone', 'customer_whatsapp',
]


class QuoteLifecycleService:
    """State changes of a quote request. Every public method is one short transaction."""

    @staticmethod
    def _apply_transition(quote, action, conflict_message, now=None, **changes) -> QuoteRequest:
        """
        Move ``quote`` along ``action`` with a conditional UPDATE on the status
        and version that were read. If another request got there first no row
        matches and the caller sees a ConflictError instead of a lost update.
        """
        target = BusinessRules.target_status(quote.status, action)
        if target is None:
            raise ConflictError(conflict_message)

        now = now or timezone.now()
        updated = QuoteRequest.objects.filter(
            pk=quote.pk,
            status=quote.status,
            version=quote.version
        ).update(
            status=target,
            version=F('version') + 1,
            updated_at=now,
            **changes
        )
        if not updated:
            logger.warning(f"Concurrent update on quote {quote.reference} ({action} from {quote.status})")
            raise ConflictError(ErrorMessages.CONCURRENT_UPDATE)

        previous_status = quote.status
        quote.refresh_from_db()
        logger.info(f"Quote {quote.reference}: {previous_status} -> {quote.status} ({action})")
        return quote

    @staticmethod
    @transaction.atomic
    def submit(actor, tour_id, trip) -> QuoteRequest:
        """Customer asks an operator for a price on one of its tours"""
        if actor.role != UserRole.USER:
            raise ForbiddenError(ErrorMessages.CUSTOMERS_ONLY)

        trip = dict(trip)
        tour = QuoteEligibilityValidator.validate_submission(tour_id, trip)

        fields = {key: trip[key] for key in TRIP_FIELDS if trip.get(key) is not None}
        # The form snapshot falls back to the account details
        fields.setdefault('customer_name', actor.name)
        fields.setdefault('customer_email', actor.email)
        fields.setdefault('customer_phone', actor.phone_number)
        fields.setdefault('customer_whatsapp', actor.whatsapp_number)

        quote = create_quote_with_reference(
            user=actor,
            tour=tour,
            status=QuoteStatus.PENDING,
            quote_validity_hours=BusinessRules.default_validity_hours(),
            **fields
        )
        logger.info(f"Quote {quote.reference} submitted by user {actor.pk} for tour {tour.pk}")
        notify_quote_event(quote, 'quote_submitted', operator_profile_id=tour.operator_profile_id)
        return quote

    @staticmethod
    @transaction.atomic
    def respond(actor, quote_id, terms) -> QuoteRequest:
        """
        Operator sends (or re-sends) a priced offer.

        A first offer on a pending request starts the revision count at 0.
        Each re-quote of an already quoted request adds one. Nothing can be
        re-quoted once the customer accepted or paid.
        """
        quote = QuoteAccessGuard.get_quote_for_operator(actor, quote_id, lock=True)

        if quote.status in BusinessRules.LOCKED_FOR_REVISION_STATUSES:
            raise ConflictError(ErrorMessages.CANNOT_REVISE)

        is_revision = quote.status != QuoteStatus.PENDING
        action = QuoteAction.REVISE if is_revision else QuoteAction.QUOTE
        if BusinessRules.target_status(quote.status, action) is None:
            raise ConflictError(ErrorMessages.CANNOT_QUOTE_STATUS.format(status=quote.get_status_display().lower()))

        cleaned = QuoteTermsValidator.validate_terms(terms)
        now = timezone.now()

        changes = dict(
            cleaned,
            quoted_at=now,
            quote_expires_at=now + timedelta(hours=cleaned['quote_validity_hours']),
        )
        if is_revision:
            changes['revision_count'] = F('revision_count') + 1
            changes['last_revised_at'] = now
        else:
            changes['revision_count'] = 0
            changes['last_revised_at'] = None

        quote = QuoteLifecycleService._apply_transition(
            quote, action, ErrorMessages.CANNOT_QUOTE_STATUS.format(status=quote.status), now=now, **changes
        )
        notify_quote_event(
            quote,
            'quote_revised' if is_revision else 'quote_sent',
            revision_count=quote.revision_count,
            quoted_price=quote.quoted_price
        )
        return quote

    @staticmethod
    @transaction.atomic
    def accept(actor, quote_id) -> QuoteRequest:
        quote = QuoteAccessGuard.get_quote_for_customer(actor, quote_id, lock=True)

        if quote.status != QuoteStatus.QUOTED:
            raise ConflictError(ErrorMessages.CANNOT_ACCEPT)

        now = timezone.now()
        if quote.is_expired(now):
            logger.info(f"Quote {quote.reference} accept refused, expired at {quote.quote_expires_at}")
            raise ExpiredError(ErrorMessages.QUOTE_EXPIRED)

        quote = QuoteLifecycleService._apply_transition(
            quote, QuoteAction.ACCEPT, ErrorMessages.CANNOT_ACCEPT, now=now, accepted_at=now
        )
        # The payment collaborator picks this up to issue a payment link
        notify_quote_event(quote, 'quote_accepted', quoted_price=quote.quoted_price)
        return quote

    @staticmethod
    @transaction.atomic
    def reject(actor, quote_id, reason=None) -> QuoteRequest:
        quote = QuoteAccessGuard.get_quote_for_customer(actor, quote_id, lock=True)

        if quote.status != QuoteStatus.QUOTED:
            raise ConflictError(ErrorMessages.CANNOT_REJECT)

        now = timezone.now()
        quote = QuoteLifecycleService._apply_transition(
            quote, QuoteAction.REJECT, ErrorMessages.CANNOT_REJECT,
            now=now, rejected_at=now, rejection_reason=(reason or '').strip()
        )
        notify_quote_event(quote, 'quote_rejected')
        return quote

    @staticmethod
    @transaction.atomic
    def cancel(actor, quote_id, reason=None) -> QuoteRequest:
        quote = QuoteAccessGuard.get_quote_for_customer(actor, quote_id, lock=True)

        if quote.status == QuoteStatus.PAID:
            raise ConflictError(ErrorMessages.CANNOT_CANCEL_PAID)

        now = timezone.now()
        quote = QuoteLifecycleService._apply_transition(
            quote, QuoteAction.CANCEL, ErrorMessages.CANNOT_CANCEL,
            now=now, cancelled_at=now, cancellation_reason=(reason or '').strip()
        )
        notify_quote_event(quote, 'quote_cancelled')
        return quote

    @staticmethod
    @transaction.atomic
    def mark_paid(amount, payment_reference, quote_id=None, reference=None) -> QuoteRequest:
        """
        Settlement reported by the payment collaborator.

        The quote can be identified by id or by reference (QR-... or the
        BK-... booking form). The amount has to match the quoted price to
        the cent; anything else is refused and logged as an anomaly. A
        repeated callback for the same payment is answered with the paid
        quote instead of an error.
        """
        queryset = QuoteRequest.objects.select_for_update()
        if quote_id is not None:
            quote = queryset.filter(pk=quote_id).first()
        elif reference:
            if reference.startswith(BusinessRules.BOOKING_REFERENCE_PREFIX):
                reference = BusinessRules.REFERENCE_PREFIX + reference[len(BusinessRules.BOOKING_REFERENCE_PREFIX):]
            quote = queryset.filter(reference=reference).first()
        else:
            quote = None
        if quote is None:
            raise NotFoundError(ErrorMessages.QUOTE_NOT_FOUND)

        payment_reference = (payment_reference or '').strip()
        if not payment_reference:
            raise ValidationError(ErrorMessages.PAYMENT_REFERENCE_REQUIRED)

        if quote.status == QuoteStatus.PAID and quote.payment_reference == payment_reference:
            logger.info(f"Duplicate payment callback for quote {quote.reference} ({payment_reference})")
            return quote

        if quote.status != QuoteStatus.ACCEPTED:
            logger.warning(f"Payment {payment_reference} received for quote {quote.reference} in status {quote.status}")
            raise ConflictError(ErrorMessages.CANNOT_MARK_PAID)

        if isinstance(amount, bool) or not isinstance(amount, int) or amount != quote.quoted_price:
            logger.warning(
                f"Payment amount mismatch on quote {quote.reference}: "
                f"received {amount}, quoted {quote.quoted_price} (payment {payment_reference})"
            )
            raise ValidationError(ErrorMessages.PAYMENT_AMOUNT_MISMATCH)

        now = timezone.now()
        quote = QuoteLifecycleService._apply_transition(
            quote, QuoteAction.PAY, ErrorMessages.CANNOT_MARK_PAID,
            now=now, paid_at=now, paid_amount=amount, payment_reference=payment_reference
        )
        notify_quote_event(quote, 'quote_paid', paid_amount=amount)
        return quote

    @staticmethod
    def expire_stale_quotes(now=None) -> int:
        """
        Flip every quoted offer whose validity window has passed to expired.
        Each quote is its own transaction; one that changed in the meantime is skipped.
        """
        now = now or timezone.now()
        stale = QuoteRequest.objects.filter(
            status=QuoteStatus.QUOTED,
            quote_expires_at__lt=now
        ).values_list('pk', 'version')

        expired = 0
        for pk, version in list(stale):
            with transaction.atomic():
                updated = QuoteRequest.objects.filter(
                    pk=pk,
                    status=QuoteStatus.QUOTED,
                    version=version
                ).update(
                    status=QuoteStatus.EXPIRED,
                    version=F('version') + 1,
                    updated_at=now
                )
                if not updated:
                    continue
                quote = QuoteRequest.objects.get(pk=pk)
                logger.info(f"Quote {quote.reference}: {QuoteStatus.QUOTED} -> {QuoteStatus.EXPIRED} (expire)")
                notify_quote_event(quote, 'quote_expired')
            expired += 1

        if expired:
            logger.info(f"Expired {expired} stale quotes")
        return expired


class QuoteMessagingService:
    """Append-only conversation between the customer and the operator of a quote"""

    @staticmethod
    @transaction.atomic
    def post_message(actor, quote_id, text) -> QuoteMessage:
        quote = QuoteAccessGuard.load_quote(quote_id)
        sender = QuoteAccessGuard.resolve_sender(actor, quote)

        text = (text or '').strip()
        if not text:
            raise ValidationError(ErrorMessages.EMPTY_MESSAGE, errors={'message': [ErrorMessages.EMPTY_MESSAGE]})

        message = QuoteMessage.objects.create(
            quote_request=quote,
            sender=actor,
            sender_type=sender.sender_type,
            message=text
        )
        logger.info(f"Message {message.pk} posted on quote {quote.reference} by {sender.sender_type}")
        notify_message_posted(message)
        return message

    @staticmethod
    def list_messages(actor, quote_id):
        """Whole thread, oldest first"""
        quote = QuoteAccessGuard.get_quote_for_reader(actor, quote_id)
        return list(quote.messages.select_related('sender').order_by('created_at', 'id'))

    @staticmethod
    def latest_message(quote):
        return quote.messages.order_by('-created_at', '-id').first()


class QuoteQueryService:
    """Read models for customer, operator and admin screens"""

    @staticmethod
    def customer_quotes(actor):
        return (
            QuoteRequest.objects.filter(user=actor)
            .select_related('tour', 'tour__operator_profile')
            .order_by('-created_at', '-id')
        )

    @staticmethod
    def customer_quote_detail(actor, quote_id) -> QuoteRequest:
        if actor.role == UserRole.ADMIN:
            return QuoteAccessGuard.load_quote(quote_id)
        return QuoteAccessGuard.get_quote_for_customer(actor, quote_id)

    @staticmethod
    def operator_quotes(actor, status=None):
        profile = QuoteAccessGuard.require_approved_operator(actor)
        queryset = (
            QuoteRequest.objects.filter(tour__operator_profile=profile)
            .select_related('tour', 'user')
            .order_by('-created_at', '-id')
        )
        if status:
            if status not in QuoteStatus.values:
                message = ErrorMessages.INVALID_STATUS_FILTER.format(status=status)
                raise ValidationError(message, errors={'status': [message]})
            queryset = queryset.filter(status=status)
        return queryset

    @staticmethod
    def operator_quote_detail(actor, quote_id) -> QuoteRequest:
        return QuoteAccessGuard.get_quote_for_operator(actor, quote_id)

    @staticmethod
    def operator_dashboard_stats(actor):
        profile = QuoteAccessGuard.require_approved_operator(actor)

        tours = Tour.objects.filter(operator_profile=profile)
        total_tours = tours.count()
        active_tours = tours.filter(is_active=True).count()

        quotes = QuoteRequest.objects.filter(tour__operator_profile=profile)
        by_status = dict(quotes.values_list('status').annotate(count=Count('id')).order_by())

        pending = by_status.get(QuoteStatus.PENDING, 0)
        quoted = by_status.get(QuoteStatus.QUOTED, 0)
        accepted = by_status.get(QuoteStatus.ACCEPTED, 0)
        paid = by_status.get(QuoteStatus.PAID, 0)

        # (accepted + paid) / (quoted + accepted + paid) as a whole percentage, halves rounded up
        offered = quoted + accepted + paid
        acceptance_rate = ((accepted + paid) * 200 + offered) // (2 * offered) if offered else 0

        total_revenue = quotes.filter(status=QuoteStatus.PAID).aggregate(total=Sum('quoted_price'))['total'] or 0

        recent_quotes = list(
            quotes.select_related('tour', 'user').order_by('-created_at', '-id')[:BusinessRules.RECENT_QUOTES_LIMIT]
        )
        return {
            'stats': {
                'total_tours': total_tours,
                'active_tours': active_tours,
                'inactive_tours': total_tours - active_tours,
                'total_quotes': sum(by_status.values()),
                'pending_quotes': pending,
                'quoted_quotes': quoted,
                'accepted_quotes': accepted,
                'confirmed_bookings': paid,
                'acceptance_rate': acceptance_rate,
                'total_revenue': total_revenue,
            },
            'recent_quotes': recent_quotes,
        }
