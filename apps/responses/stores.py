# apps/responses/stores.py
"""ORM-backed collaborators for the response workflow."""
from __future__ import annotations

from typing import Iterable

from django.conf import settings
from django.db import transaction

from apps.core.exceptions import NotFound
from apps.inquiries import services as inquiry_services
from apps.inquiries.models import Inquiry

from .models import InquiryResponse
from .workflow import ResponseWorkflow, send_roles_from_settings


class DjangoResponseStore:
    def get(self, response_id) -> InquiryResponse:
        qs = InquiryResponse.objects.all()
        # row lock while a transition is in flight
        if transaction.get_connection().in_atomic_block:
            qs = qs.select_for_update()
        response = qs.filter(pk=response_id).first()
        if response is None:
            raise NotFound(f'Response with ID "{response_id}" not found')
        return response

    def add(self, response: InquiryResponse) -> InquiryResponse:
        response.save(force_insert=True)
        return response

    def save(self, response: InquiryResponse, fields: Iterable[str]) -> InquiryResponse:
        response.save(update_fields=[*fields, "updated_at"])
        return response

    def delete(self, response: InquiryResponse) -> None:
        response.delete()


class DjangoInquiryStatusUpdater:
    def get(self, inquiry_id) -> Inquiry:
        return inquiry_services.find_one(inquiry_id)

    def update_status(self, inquiry_id, status: str) -> Inquiry:
        return inquiry_services.update_status(inquiry_id, status)


def default_workflow() -> ResponseWorkflow:
    return ResponseWorkflow(
        DjangoResponseStore(),
        DjangoInquiryStatusUpdater(),
        send_roles=send_roles_from_settings(getattr(settings, "RESPONSES_SEND_ROLES", [])),
    )
