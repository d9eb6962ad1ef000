from django.contrib import admin
from .models import AccessGrant
from .services.grants import revoke_grant


@admin.action(description="Revoke selected QR codes")
def revoke_selected(modeladmin, request, queryset):
    for grant in queryset.filter(is_active=True):
        revoke_grant(grant)


@admin.register(AccessGrant)
class AccessGrantAdmin(admin.ModelAdmin):
    list_display = ("code", "document", "require_otp", "expires_at", "is_active", "created_at")
    list_filter = ("is_active", "require_otp")
    search_fields = ("code", "document__original_filename")
    readonly_fields = ("code", "otp_code", "otp_expires_at")
    date_hierarchy = "created_at"
    actions = [revoke_selected]
