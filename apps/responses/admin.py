from django.contrib import admin
from .models import InquiryResponse


@admin.register(InquiryResponse)
class InquiryResponseAdmin(admin.ModelAdmin):
    list_display = ("id", "inquiry", "responder", "status", "approved_by", "sent_at", "created_at")
    list_filter = ("status",)
    search_fields = ("response_text", "inquiry__subject", "responder__email")
    raw_id_fields = ("inquiry", "responder", "approved_by")
    # status moves through the workflow only
    readonly_fields = (
        "status", "approved_at", "rejected_at", "sent_at", "email_sent_at", "created_at", "updated_at",
    )
