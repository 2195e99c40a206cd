from django.contrib import admin
from .models import Inquiry


@admin.register(Inquiry)
class InquiryAdmin(admin.ModelAdmin):
    list_display = ("subject", "customer", "status", "priority", "category", "assigned_to", "created_at")
    list_filter = ("status", "priority", "category")
    search_fields = ("subject", "message", "customer__email")
    raw_id_fields = ("customer", "assigned_to")
    readonly_fields = ("created_at", "updated_at")
