# apps/responses/tasks.py
from __future__ import annotations

import logging

from celery import shared_task
from django.conf import settings
from django.core.mail import send_mail
from django.utils import timezone

from .models import InquiryResponse

logger = logging.getLogger("crm.responses")


@shared_task(bind=True, autoretry_for=(OSError,), retry_backoff=True, max_retries=3)
def deliver_response_email(self, response_id: str):
    """Email a sent response to the customer behind its inquiry."""
    if not getattr(settings, "NOTIFY_CUSTOMERS", True):
        return {"skipped": True, "reason": "notifications disabled"}

    response = (
        InquiryResponse.objects.select_related("inquiry", "inquiry__customer")
        .filter(pk=response_id)
        .first()
    )
    if response is None or response.status != InquiryResponse.Status.SENT:
        logger.warning("response.delivery_skipped", extra={"response_id": str(response_id)})
        return {"skipped": True, "reason": "response not sent"}
    if response.email_sent_at is not None:
        return {"skipped": True, "reason": "already delivered"}

    inquiry = response.inquiry
    customer = inquiry.customer
    send_mail(
        subject=f"Re: {inquiry.subject}",
        message=response.response_text,
        from_email=settings.DEFAULT_FROM_EMAIL,
        recipient_list=[customer.email],
    )
    InquiryResponse.objects.filter(pk=response.pk).update(email_sent_at=timezone.now())
    logger.info("response.delivered", extra={"response_id": str(response_id), "customer_id": str(customer.id)})
    return {"sent": True, "to": customer.email}
