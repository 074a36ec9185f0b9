from django.conf import settings
from django.db import models


class OperatorProfile(models.Model):
    """Business profile of a tour operator. Only approved operators can trade."""
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='operator_profile',
        limit_choices_to={'role': 'operator'}
    )
    company_name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    phone_number = models.CharField(max_length=20, blank=True)
    whatsapp_number = models.CharField(max_length=20, blank=True)

    is_approved = models.BooleanField(default=False)
    approved_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        state = "approved" if self.is_approved else "pending approval"
        return f"{self.company_name} ({state})"


class Tour(models.Model):
    operator_profile = models.ForeignKey(
        OperatorProfile,
        on_delete=models.CASCADE,
        related_name='tours'
    )
    title = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    duration = models.CharField(max_length=50, blank=True, help_text="e.g. 5 days / 4 nights")
    price_from = models.PositiveIntegerField(default=0, help_text="Starting price in cents")
    currency = models.CharField(max_length=3, default='ZAR')
    region = models.CharField(max_length=100, blank=True)
    countries = models.JSONField(default=list, blank=True)
    category = models.CharField(max_length=50, blank=True)
    destinations = models.JSONField(default=list, blank=True)
    inclusions = models.JSONField(default=list, blank=True)
    exclusions = models.JSONField(default=list, blank=True)
    cancellation_policy = models.TextField(blank=True)
    max_capacity = models.PositiveIntegerField(null=True, blank=True, help_text="Maximum guests per booking, empty for no cap")

    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.title} - {self.operator_profile.company_name}"

    @property
    def is_bookable(self):
        """Active tour of an approved operator"""
        return self.is_active and self.operator_profile.is_approved
