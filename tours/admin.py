from django.contrib import admin
from tours.models import OperatorProfile, Tour


class TourInline(admin.TabularInline):
    model = Tour
    extra = 0
    fields = ['title', 'price_from', 'max_capacity', 'is_active']


@admin.register(OperatorProfile)
class OperatorProfileAdmin(admin.ModelAdmin):
    list_display = ['id', 'company_name', 'user', 'is_approved', 'approved_at', 'created_at']
    list_filter = ['is_approved', 'created_at']
    search_fields = ['company_name', 'user__email', 'user__name']
    readonly_fields = ['created_at', 'updated_at']
    inlines = [TourInline]


@admin.register(Tour)
class TourAdmin(admin.ModelAdmin):
    list_display = ['id', 'title', 'operator_profile', 'category', 'price_from', 'max_capacity', 'is_active', 'created_at']
    list_filter = ['is_active', 'category', 'created_at']
    search_fields = ['title', 'region', 'description', 'operator_profile__company_name']
    readonly_fields = ['created_at', 'updated_at']
