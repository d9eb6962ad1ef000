from django.contrib import admin
from .models import Document


@admin.register(Document)
class DocumentAdmin(admin.ModelAdmin):
    list_display = ("original_filename", "owner", "mime_type", "file_size", "is_active", "created_at")
    list_filter = ("is_active", "mime_type")
    search_fields = ("original_filename", "filename", "owner__username")
    date_hierarchy = "created_at"
