from django.conf import settings
from django.db import models
from django.utils import timezone

from tours.models import Tour
from .enums import BusinessRules, QuoteStatus, SenderType
from .fields import PriceLineListField


class QuoteRequest(models.Model):
    """Customer's request for a custom-priced tour package and the operator's offer on it"""
    reference = models.CharField(max_length=20, unique=True, editable=False)

    # Parties (the operator is reached through the tour)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='quote_requests',
        limit_choices_to={'role': 'user'}
    )
    tour = models.ForeignKey(Tour, on_delete=models.PROTECT, related_name='quote_requests')

    # Trip parameters, fixed at submission
    preferred_date = models.DateField()
    flexible_dates = models.BooleanField(default=False)
    adults = models.PositiveSmallIntegerField(default=1)
    children = models.PositiveSmallIntegerField(default=0)
    child_ages = models.JSONField(default=list, blank=True)
    budget_range = models.CharField(max_length=100, blank=True)
    special_requirements = models.TextField(blank=True)

    # Contact details as typed on the form, independent of the live profile
    customer_name = models.CharField(max_length=150)
    customer_email = models.EmailField()
    customer_phone = models.CharField(max_length=20)
    customer_whatsapp = models.CharField(max_length=20, blank=True)

    # Operator's offer
    quoted_price = models.PositiveBigIntegerField(null=True, blank=True, help_text="In cents")
    quoted_inclusions = PriceLineListField()
    quoted_exclusions = PriceLineListField()
    quoted_terms = models.TextField(blank=True)
    quote_validity_hours = models.PositiveIntegerField(default=72)
    quoted_at = models.DateTimeField(null=True, blank=True)
    quote_expires_at = models.DateTimeField(null=True, blank=True)
    revision_count = models.PositiveIntegerField(default=0)
    last_revised_at = models.DateTimeField(null=True, blank=True)

    status = models.CharField(max_length=20, choices=QuoteStatus.choices, default=QuoteStatus.PENDING, db_index=True)
    version = models.PositiveIntegerField(default=0, help_text="Bumped on every status transition")

    # Outcome
    accepted_at = models.DateTimeField(null=True, blank=True)
    rejected_at = models.DateTimeField(null=True, blank=True)
    rejection_reason = models.TextField(blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancellation_reason = models.TextField(blank=True)
    paid_at = models.DateTimeField(null=True, blank=True)
    paid_amount = models.PositiveBigIntegerField(null=True, blank=True, help_text="In cents")
    payment_reference = models.CharField(max_length=100, blank=True)
    payment_link = models.URLField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status', 'quote_expires_at']),
        ]

    def __str__(self):
        return f"{self.reference} - {self.tour.title} ({self.status})"

    @property
    def total_guests(self):
        return self.adults + self.children

    @property
    def operator_profile_id(self):
        return self.tour.operator_profile_id

    @property
    def booking_reference(self):
        """Paid quotes are shown to people as bookings (BK-...)"""
        if self.status == QuoteStatus.PAID and self.reference.startswith(BusinessRules.REFERENCE_PREFIX):
            return BusinessRules.BOOKING_REFERENCE_PREFIX + self.reference[len(BusinessRules.REFERENCE_PREFIX):]
        return self.reference

    def is_expired(self, now=None):
        """True once the validity window has passed. The expiry instant itself is still valid."""
        if self.quote_expires_at is None:
            return False
        now = now or timezone.now()
        return now > self.quote_expires_at


class QuoteMessage(models.Model):
    """One entry of the conversation attached to a quote request. Never edited or deleted."""
    quote_request = models.ForeignKey(
        QuoteRequest,
        on_delete=models.CASCADE,
        related_name='messages'
    )
    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='quote_messages'
    )
    sender_type = models.CharField(max_length=10, choices=SenderType.choices)
    message = models.TextField()
    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        ordering = ['created_at', 'id']

    def __str__(self):
        return f"Message on {self.quote_request.reference} by {self.sender_type}"
