# apps/responses/models.py
import uuid

from django.conf import settings
from django.db import models


class InquiryResponse(models.Model):
    """
    A CSO-authored reply to one inquiry.

    Status only moves through apps.responses.workflow; `rejected` exists as a
    value but is never stored, a rejection sends the record back to draft.
    """

    class Status(models.TextChoices):
        DRAFT = "draft", "Draft"
        PENDING_APPROVAL = "pending_approval", "Pending approval"
        APPROVED = "approved", "Approved"
        REJECTED = "rejected", "Rejected"
        SENT = "sent", "Sent"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    inquiry = models.ForeignKey(
        "inquiries.Inquiry",
        on_delete=models.CASCADE,
        related_name="responses",
    )
    responder = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="responses_authored",
    )
    approved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="responses_approved",
    )

    status = models.CharField(max_length=20, choices=Status.choices, default=Status.DRAFT)
    response_text = models.TextField(blank=True, default="")
    approval_notes = models.TextField(blank=True, default="")
    rejection_reason = models.TextField(blank=True, default="")
    metadata = models.JSONField(blank=True, default=dict)

    # set once, at the matching transition
    approved_at = models.DateTimeField(null=True, blank=True)
    rejected_at = models.DateTimeField(null=True, blank=True)
    sent_at = models.DateTimeField(null=True, blank=True)
    # set by the delivery task once the customer email went out
    email_sent_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "responses"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["inquiry", "status"], name="responses_inquiry_status_idx"),
            models.Index(fields=["responder"], name="responses_responder_idx"),
        ]

    def __str__(self) -> str:
        return f"Response {self.id} [{self.status}]"
