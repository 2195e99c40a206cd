# apps/inquiries/services.py
"""
Inquiry reads and writes.

`find_one` and `update_status` are also the port the response workflow uses
to move an inquiry to responded / closed; keep their signatures stable.
"""
from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional

from django.contrib.auth import get_user_model
from django.db.models import Case, Count, IntegerField, Min, Q, QuerySet, Value, When

from apps.core.exceptions import BadRequest, Forbidden, NotFound
from apps.customers.models import Customer
from apps.rbac.roles import CurrentUser, Role

from .models import Inquiry

Status = Inquiry.Status
Priority = Inquiry.Priority

# urgent > high > medium > low
_PRIORITY_RANK = {
    Priority.URGENT: 3,
    Priority.HIGH: 2,
    Priority.MEDIUM: 1,
    Priority.LOW: 0,
}

# statuses a CSO can still respond to
_CSO_ACTIONABLE = (Status.PENDING, Status.IN_PROGRESS)


# ---- Lookups -----------------------------------------------------------------

def find_one(inquiry_id) -> Inquiry:
    inquiry = (
        Inquiry.objects.select_related("customer", "assigned_to")
        .filter(pk=inquiry_id)
        .first()
    )
    if inquiry is None:
        raise NotFound(f'Inquiry with ID "{inquiry_id}" not found')
    return inquiry


def visible_inquiries(user: CurrentUser) -> QuerySet[Inquiry]:
    """CSOs only see inquiries assigned to them."""
    qs = Inquiry.objects.select_related("customer", "assigned_to")
    if user.is_cso:
        qs = qs.filter(assigned_to_id=user.id)
    return qs


def filter_inquiries(
    qs: QuerySet[Inquiry],
    *,
    statuses: Iterable[str] = (),
    priority: str = "",
    category: str = "",
    customer_id=None,
    assigned_to=None,
    assigned_to_me: bool = False,
    user: Optional[CurrentUser] = None,
) -> QuerySet[Inquiry]:
    statuses = [s for s in statuses if s]
    if statuses:
        qs = qs.filter(status__in=statuses)
    if priority:
        qs = qs.filter(priority=priority)
    if category:
        qs = qs.filter(category=category)
    if customer_id:
        qs = qs.filter(customer_id=customer_id)
    if assigned_to:
        qs = qs.filter(assigned_to_id=assigned_to)
    if assigned_to_me and user is not None:
        qs = qs.filter(assigned_to_id=user.id)
    return qs


def smart_order(qs: QuerySet[Inquiry], user: CurrentUser) -> QuerySet[Inquiry]:
    """
    Default ordering when the caller did not pick a column:
    rows the caller can act on first, then priority, then newest.

    CSO: pending / in_progress are actionable. Manager: everything is.
    Admin: nothing is, so only priority and age matter.
    """
    if user.is_cso:
        actionable = Case(
            When(status__in=_CSO_ACTIONABLE, then=Value(1)),
            default=Value(0),
            output_field=IntegerField(),
        )
    elif user.is_manager:
        actionable = Value(1, output_field=IntegerField())
    else:
        actionable = Value(0, output_field=IntegerField())

    priority_rank = Case(
        *[When(priority=p, then=Value(rank)) for p, rank in _PRIORITY_RANK.items()],
        default=Value(0),
        output_field=IntegerField(),
    )
    return qs.annotate(actionable=actionable, priority_rank=priority_rank).order_by(
        "-actionable", "-priority_rank", "-created_at", "id"
    )


# ---- Writes ------------------------------------------------------------------

def create_inquiry(data: Mapping[str, Any]) -> Inquiry:
    fields = dict(data)
    customer_id = fields.get("customer_id")
    if not Customer.objects.filter(pk=customer_id).exists():
        raise NotFound(f'Customer with ID "{customer_id}" not found')
    return Inquiry.objects.create(**fields)


def update_inquiry(inquiry_id, data: Mapping[str, Any], user: CurrentUser) -> Inquiry:
    inquiry = find_one(inquiry_id)

    # only admins, managers or the assigned CSO
    if user.is_cso and inquiry.assigned_to_id != user.id:
        raise Forbidden("You do not have permission to update this inquiry")
    if data.get("assigned_to_id"):
        _require_cso(data["assigned_to_id"])

    for field, value in data.items():
        setattr(inquiry, field, value)
    inquiry.save()
    return inquiry


def update_status(inquiry_id, status: str) -> Inquiry:
    if status not in Status.values:
        raise BadRequest(f'Invalid inquiry status "{status}"')
    inquiry = find_one(inquiry_id)
    inquiry.status = status
    inquiry.save(update_fields=["status", "updated_at"])
    return inquiry


def _require_cso(user_id):
    cso = get_user_model().objects.filter(pk=user_id, is_active=True).first()
    if cso is None:
        raise NotFound(f'User with ID "{user_id}" not found')
    if cso.role != Role.CSO:
        raise BadRequest("Inquiries can only be assigned to a CSO")
    return cso


def assign_to_cso(inquiry_id, cso_id) -> Inquiry:
    inquiry = find_one(inquiry_id)
    cso = _require_cso(cso_id)

    inquiry.assigned_to = cso
    inquiry.status = Status.IN_PROGRESS
    inquiry.save(update_fields=["assigned_to", "status", "updated_at"])
    return inquiry


def remove_inquiry(inquiry_id) -> None:
    find_one(inquiry_id).delete()


# ---- Statistics --------------------------------------------------------------

def _average_response_hours() -> float:
    # time from inquiry creation to its first sent response
    rows = (
        Inquiry.objects.annotate(first_sent=Min("responses__sent_at"))
        .filter(first_sent__isnull=False)
        .values_list("created_at", "first_sent")
    )
    deltas = [(sent - created).total_seconds() for created, sent in rows]
    if not deltas:
        return 0
    return round(sum(deltas) / len(deltas) / 3600, 2)


def inquiry_statistics() -> dict:
    counts = Inquiry.objects.aggregate(
        total=Count("id"),
        pending=Count("id", filter=Q(status=Status.PENDING)),
        in_progress=Count("id", filter=Q(status=Status.IN_PROGRESS)),
        responded=Count("id", filter=Q(status=Status.RESPONDED)),
        closed=Count("id", filter=Q(status=Status.CLOSED)),
        urgent=Count("id", filter=Q(priority=Priority.URGENT)),
    )
    return {
        "total": counts["total"],
        "byStatus": {
            "pending": counts["pending"],
            "inProgress": counts["in_progress"],
            "responded": counts["responded"],
            "closed": counts["closed"],
        },
        "urgent": counts["urgent"],
        "averageResponseTime": _average_response_hours(),
    }
