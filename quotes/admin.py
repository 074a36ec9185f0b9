from django.contrib import admin
from quotes.models import QuoteMessage, QuoteRequest


class QuoteMessageInline(admin.TabularInline):
    model = QuoteMessage
    extra = 0
    can_delete = False
    readonly_fields = ['sender', 'sender_type', 'message', 'created_at']

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(QuoteRequest)
class QuoteRequestAdmin(admin.ModelAdmin):
    list_display = ['reference', 'tour', 'customer_name', 'status', 'quoted_price', 'revision_count', 'created_at']
    list_filter = ['status', 'created_at']
    search_fields = ['reference', 'customer_name', 'customer_email', 'tour__title']
    inlines = [QuoteMessageInline]
    # Lifecycle fields only change through the quote services
    readonly_fields = [
        'reference', 'status', 'version',
        'quoted_at', 'quote_expires_at', 'revision_count', 'last_revised_at',
        'accepted_at', 'rejected_at', 'cancelled_at',
        'paid_at', 'paid_amount', 'payment_reference',
        'created_at', 'updated_at'
    ]

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(QuoteMessage)
class QuoteMessageAdmin(admin.ModelAdmin):
    list_display = ['id', 'quote_request', 'sender_type', 'sender', 'created_at']
    list_filter = ['sender_type', 'created_at']
    search_fields = ['quote_request__reference', 'message']
    readonly_fields = ['quote_request', 'sender', 'sender_type', 'message', 'created_at']
