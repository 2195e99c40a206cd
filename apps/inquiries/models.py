# apps/inquiries/models.py
import uuid

from django.conf import settings
from django.db import models


class Inquiry(models.Model):
    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        IN_PROGRESS = "in_progress", "In progress"
        RESPONDED = "responded", "Responded"
        CLOSED = "closed", "Closed"

    class Priority(models.TextChoices):
        LOW = "low", "Low"
        MEDIUM = "medium", "Medium"
        HIGH = "high", "High"
        URGENT = "urgent", "Urgent"

    class Category(models.TextChoices):
        GENERAL = "general", "General"
        TECHNICAL = "technical", "Technical"
        BILLING = "billing", "Billing"
        COMPLAINT = "complaint", "Complaint"
        FEATURE_REQUEST = "feature_request", "Feature request"
        OTHER = "other", "Other"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    customer = models.ForeignKey(
        "customers.Customer",
        on_delete=models.CASCADE,
        related_name="inquiries",
    )
    subject = models.CharField(max_length=255)
    message = models.TextField()

    status = models.CharField(max_length=16, choices=Status.choices, default=Status.PENDING)
    priority = models.CharField(max_length=16, choices=Priority.choices, default=Priority.MEDIUM)
    category = models.CharField(max_length=32, choices=Category.choices, default=Category.GENERAL)
    tags = models.JSONField(blank=True, default=list)
    metadata = models.JSONField(blank=True, default=dict)

    # the CSO working this inquiry
    assigned_to = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="inquiries_assigned",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        verbose_name_plural = "inquiries"
        indexes = [
            models.Index(fields=["customer", "status"], name="inquiries_i_custome_5d1e7b_idx"),
            models.Index(fields=["status", "priority"], name="inquiries_i_status_0c9a41_idx"),
            models.Index(fields=["assigned_to"], name="inquiries_i_assigne_e27b56_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.subject} [{self.status}]"
