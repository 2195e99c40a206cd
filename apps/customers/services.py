# apps/customers/services.py
from __future__ import annotations

from typing import Any, Mapping

from django.contrib.auth import get_user_model
from django.db.models import Q, QuerySet

from apps.core.exceptions import Forbidden, NotFound
from apps.rbac.roles import CurrentUser

from .models import Customer


def visible_customers(user: CurrentUser) -> QuerySet[Customer]:
    """CSOs only see customers assigned to them; everyone else sees all."""
    qs = Customer.objects.select_related("created_by", "assigned_to")
    if user.is_cso:
        qs = qs.filter(assigned_to_id=user.id)
    return qs


def search_customers(qs: QuerySet[Customer], term: str) -> QuerySet[Customer]:
    term = (term or "").strip()
    if not term:
        return qs
    return qs.filter(
        Q(first_name__icontains=term)
        | Q(last_name__icontains=term)
        | Q(email__icontains=term)
        | Q(company__icontains=term)
    )


def get_customer(customer_id, user: CurrentUser) -> Customer:
    customer = visible_customers(user).filter(pk=customer_id).first()
    if customer is None:
        raise NotFound(f'Customer with ID "{customer_id}" not found')
    return customer


def create_customer(data: Mapping[str, Any], user: CurrentUser) -> Customer:
    fields = dict(data)
    fields["created_by_id"] = user.id
    if user.is_cso:
        # a CSO owns what they create
        fields["assigned_to_id"] = user.id
    return Customer.objects.create(**fields)


def update_customer(customer_id, data: Mapping[str, Any], user: CurrentUser) -> Customer:
    customer = get_customer(customer_id, user)
    if user.is_cso and customer.assigned_to_id != user.id:
        raise Forbidden("You can only update customers assigned to you")

    for field, value in data.items():
        setattr(customer, field, value)
    customer.save()
    return customer


def remove_customer(customer_id, user: CurrentUser) -> None:
    if user.is_cso:
        raise Forbidden("You do not have permission to delete customers")
    customer = get_customer(customer_id, user)
    customer.delete()


def assign_customer(customer_id, assignee_id, user: CurrentUser) -> Customer:
    if user.is_cso:
        raise Forbidden("You do not have permission to assign customers")

    customer = get_customer(customer_id, user)
    if not get_user_model().objects.filter(pk=assignee_id, is_active=True).exists():
        raise NotFound(f'User with ID "{assignee_id}" not found')
    customer.assigned_to_id = assignee_id
    customer.save(update_fields=["assigned_to", "updated_at"])
    return customer
