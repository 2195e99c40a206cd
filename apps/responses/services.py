# apps/responses/services.py
"""Read side of responses: listing, lookup and statistics."""
from __future__ import annotations

from typing import Optional

from django.db.models import Count, Q, QuerySet

from apps.core.exceptions import NotFound
from apps.rbac.roles import CurrentUser

from .models import InquiryResponse

Status = InquiryResponse.Status


def response_queryset() -> QuerySet[InquiryResponse]:
    return InquiryResponse.objects.select_related(
        "inquiry", "inquiry__customer", "responder", "approved_by"
    )


def visible_responses(user: CurrentUser) -> QuerySet[InquiryResponse]:
    """CSOs see responses they wrote or that belong to inquiries assigned to them."""
    qs = response_queryset()
    if user.is_cso:
        qs = qs.filter(Q(responder_id=user.id) | Q(inquiry__assigned_to_id=user.id))
    return qs


def filter_responses(
    qs: QuerySet[InquiryResponse],
    *,
    status: str = "",
    inquiry_id=None,
    responder_id=None,
    approved_by_id=None,
) -> QuerySet[InquiryResponse]:
    if status:
        qs = qs.filter(status=status)
    if inquiry_id:
        qs = qs.filter(inquiry_id=inquiry_id)
    if responder_id:
        qs = qs.filter(responder_id=responder_id)
    if approved_by_id:
        qs = qs.filter(approved_by_id=approved_by_id)
    return qs


def get_response(response_id, user: CurrentUser) -> InquiryResponse:
    response = visible_responses(user).filter(pk=response_id).first()
    if response is None:
        raise NotFound(f'Response with ID "{response_id}" not found')
    return response


def response_statistics(user_id: Optional[str] = None) -> dict:
    """
    Counts by status plus the approval rate, optionally for one responder.

    A rejected response is stored back as draft, so `rejected` counts rows
    that were rejected at least once.
    """
    qs = InquiryResponse.objects.all()
    if user_id:
        qs = qs.filter(responder_id=user_id)

    counts = qs.aggregate(
        total=Count("id"),
        draft=Count("id", filter=Q(status=Status.DRAFT)),
        pending=Count("id", filter=Q(status=Status.PENDING_APPROVAL)),
        approved=Count("id", filter=Q(status=Status.APPROVED)),
        rejected=Count("id", filter=Q(rejected_at__isnull=False)),
        sent=Count("id", filter=Q(status=Status.SENT)),
    )
    total = counts["total"]
    rate = round((counts["approved"] + counts["sent"]) / total * 100, 2) if total else 0
    return {
        "total": total,
        "byStatus": {
            "draft": counts["draft"],
            "pendingApproval": counts["pending"],
            "approved": counts["approved"],
            "rejected": counts["rejected"],
            "sent": counts["sent"],
        },
        "approvalRate": rate,
    }
