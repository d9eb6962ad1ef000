from django.contrib import admin
from .models import AccessAttempt


@admin.register(AccessAttempt)
class AccessAttemptAdmin(admin.ModelAdmin):
    list_display = ("grant", "document", "viewer_id", "granted", "alert_generated", "ip_address", "created_at")
    list_filter = ("granted", "alert_generated")
    search_fields = ("grant__code", "document__original_filename", "viewer_id", "ip_address", "reported_ip_address")
    date_hierarchy = "created_at"
    readonly_fields = [f.name for f in AccessAttempt._meta.fields]
