from django.contrib import admin
from authentication.models import CustomUser


@admin.register(CustomUser)
class CustomUserAdmin(admin.ModelAdmin):
    list_display = ['id', 'email', 'name', 'role', 'is_active', 'date_joined']
    list_filter = ['role', 'is_active', 'date_joined']
    search_fields = ['email', 'name', 'phone_number']
    readonly_fields = ['date_joined', 'last_login']
    exclude = ['password']
