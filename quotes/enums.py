"""
Enums and choices for the quotes app.
Centralizes all status choices and business rules.
"""
from django.conf import settings
from django.db import models


class QuoteStatus(models.TextChoices):
    """Lifecycle states of a quote request"""
    PENDING = 'pending', 'Pending Operator Response'
    QUOTED = 'quoted', 'Quoted'
    ACCEPTED = 'accepted', 'Accepted'
    PAID = 'paid', 'Paid'
    REJECTED = 'rejected', 'Rejected'
    CANCELLED = 'cancelled', 'Cancelled'
    EXPIRED = 'expired', 'Expired'


class SenderType(models.TextChoices):
    """Which side of the quote wrote a message"""
    CUSTOMER = 'customer', 'Customer'
    OPERATOR = 'operator', 'Operator'


class QuoteAction(models.TextChoices):
    """Named transitions of the quote state machine"""
    QUOTE = 'quote', 'Operator quotes'
    REVISE = 'revise', 'Operator revises quote'
    ACCEPT = 'accept', 'Customer accepts'
    REJECT = 'reject', 'Customer rejects'
    CANCEL = 'cancel', 'Customer cancels'
    PAY = 'pay', 'Payment received'
    EXPIRE = 'expire', 'Quote validity lapsed'


class BusinessRules:
    """Business rules and constants"""

    REFERENCE_PREFIX = 'QR-'
    BOOKING_REFERENCE_PREFIX = 'BK-'
    MAX_CHILD_AGE = 17
    # Column limits: party size is a small integer, money a signed 64-bit integer
    MAX_PARTY_SIZE = 32767
    MAX_BIGINT = 9223372036854775807
    MAX_PRICE_CENTS = MAX_BIGINT
    MAX_VALIDITY_HOURS = 24 * 365
    RECENT_QUOTES_LIMIT = 10

    # (from_status, action) -> to_status. Anything missing is illegal.
    TRANSITIONS = {
        (QuoteStatus.PENDING, QuoteAction.QUOTE): QuoteStatus.QUOTED,
        (QuoteStatus.PENDING, QuoteAction.CANCEL): QuoteStatus.CANCELLED,
        (QuoteStatus.QUOTED, QuoteAction.REVISE): QuoteStatus.QUOTED,
        (QuoteStatus.QUOTED, QuoteAction.ACCEPT): QuoteStatus.ACCEPTED,
        (QuoteStatus.QUOTED, QuoteAction.REJECT): QuoteStatus.REJECTED,
        (QuoteStatus.QUOTED, QuoteAction.CANCEL): QuoteStatus.CANCELLED,
        (QuoteStatus.QUOTED, QuoteAction.EXPIRE): QuoteStatus.EXPIRED,
        (QuoteStatus.ACCEPTED, QuoteAction.PAY): QuoteStatus.PAID,
        (QuoteStatus.ACCEPTED, QuoteAction.CANCEL): QuoteStatus.CANCELLED,
    }

    TERMINAL_STATUSES = [
        QuoteStatus.PAID, QuoteStatus.REJECTED,
        QuoteStatus.CANCELLED, QuoteStatus.EXPIRED
    ]
    LOCKED_FOR_REVISION_STATUSES = [QuoteStatus.ACCEPTED, QuoteStatus.PAID]
    CANCELLABLE_STATUSES = [QuoteStatus.PENDING, QuoteStatus.QUOTED, QuoteStatus.ACCEPTED]

    @staticmethod
    def default_validity_hours():
        return getattr(settings, 'QUOTE_DEFAULT_VALIDITY_HOURS', 72)

    @staticmethod
    def reference_max_attempts():
        return getattr(settings, 'QUOTE_REFERENCE_MAX_ATTEMPTS', 5)

    @staticmethod
    def target_status(current_status, action):
        """Status reached by applying action, or None if the move is illegal"""
        return BusinessRules.TRANSITIONS.get((current_status, action))

    @staticmethod
    def is_terminal(status):
        return status in BusinessRules.TERMINAL_STATUSES


class ErrorMessages:
    """Centralized error messages for consistency"""

    # Eligibility
    TOUR_UNAVAILABLE = "Tour not found or no longer available."
    OVER_CAPACITY = "This tour has a maximum capacity of {max_capacity} guests."
    DATE_IN_PAST = "Preferred date must be in the future."
    ADULTS_REQUIRED = "At least one adult is required."
    CHILDREN_NEGATIVE = "Number of children cannot be negative."
    PARTY_TOO_LARGE = "Guest counts cannot exceed {max_party}."
    CHILD_AGES_MISMATCH = "Please provide exactly {children} child ages."
    CHILD_AGE_RANGE = "Child ages must be between 0 and {max_age}."

    # Quote terms
    INVALID_PRICE = "Quoted price must be a positive whole number of cents within range."
    INVALID_VALIDITY = "Quote validity must be between 1 and 8760 hours."
    INVALID_PRICE_LINE = "Each line needs a non-empty item and a whole-cent price or null."

    # Lookup / authorization
    QUOTE_NOT_FOUND = "Quote request not found."
    NOT_YOUR_QUOTE = "You can only access your own quote requests."
    NOT_YOUR_OPERATOR_QUOTE = "You can only access quote requests for your own tours."
    ROLE_NOT_ALLOWED = "Only customers and operators can take part in a quote."
    CUSTOMERS_ONLY = "Only customers can request quotes."
    INVALID_STATUS_FILTER = "Unknown quote status: {status}"

    # Transitions
    CANNOT_REVISE = "Cannot revise quote after customer has accepted or paid."
    CANNOT_QUOTE_STATUS = "Cannot send a quote for a request that is {status}."
    CANNOT_ACCEPT = "Quote not found or cannot be accepted."
    CANNOT_REJECT = "Quote not found or cannot be rejected."
    CANNOT_CANCEL = "Quote request not found or cannot be cancelled."
    CANNOT_CANCEL_PAID = "Cannot cancel a paid booking. Please contact support."
    CANNOT_MARK_PAID = "Only accepted quotes can be marked as paid."
    QUOTE_EXPIRED = "This quote has expired. Please request a new quote."
    CONCURRENT_UPDATE = "This quote was updated by someone else. Please refresh and try again."

    # Payments
    PAYMENT_AMOUNT_MISMATCH = "Paid amount does not match the quoted price."
    PAYMENT_REFERENCE_REQUIRED = "A payment reference is required."

    # Messaging
    EMPTY_MESSAGE = "Message cannot be empty."

    # Internal
    REFERENCE_EXHAUSTED = "Failed to submit quote request. Please try again."


class ResponseMessages:
    """Centralized success messages for consistency"""

    QUOTE_SUBMITTED = "Quote request {reference} submitted"
    QUOTE_SENT = "Quote sent to customer"
    QUOTE_REVISED = "Quote revised (revision {revision})"
    QUOTE_ACCEPTED = "Quote accepted successfully"
    QUOTE_REJECTED = "Quote rejected successfully"
    QUOTE_CANCELLED = "Quote request cancelled"
    QUOTE_PAID = "Payment recorded for {reference}"
    QUOTES_FOUND = "Found {count} quote requests"
    QUOTE_RETRIEVED = "Quote request retrieved successfully"
    DASHBOARD_RETRIEVED = "Dashboard stats retrieved successfully"
    MESSAGE_SENT = "Message sent"
    MESSAGES_FOUND = "Found {count} messages"
