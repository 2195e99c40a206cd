# apps/responses/workflow.py
"""
Response approval workflow.

    draft --submit--> pending_approval --approve--> approved --send--> sent
                      pending_approval --reject---> draft

Every operation checks its preconditions before touching the record, so a
refused call leaves both the response and its inquiry exactly as they were.
Approving moves the inquiry to `responded`; sending moves it to `closed`.

Who may do what:

    role     create        update   submit     approve/reject  send        delete
    CSO      if assigned   own      own        no              configured  own draft
    MANAGER  yes           any      no         yes             configured  no
    ADMIN    yes           any      any        yes             configured  any draft

The engine only talks to its two collaborators through the small protocols
below; Django-backed implementations live in stores.py.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Iterable, Mapping, Optional, Protocol

from django.utils import timezone

from apps.core.exceptions import Forbidden, InvalidTransition
from apps.inquiries.models import Inquiry
from apps.rbac.roles import CurrentUser, Role, parse_role

from .models import InquiryResponse

logger = logging.getLogger("crm.responses")

Status = InquiryResponse.Status

# fields a draft edit may touch
EDITABLE_FIELDS = ("response_text", "metadata")


class ResponseStore(Protocol):
    def get(self, response_id) -> InquiryResponse: ...

    def add(self, response: InquiryResponse) -> InquiryResponse: ...

    def save(self, response: InquiryResponse, fields: Iterable[str]) -> InquiryResponse: ...

    def delete(self, response: InquiryResponse) -> None: ...


class InquiryStatusUpdater(Protocol):
    def get(self, inquiry_id) -> Inquiry: ...

    def update_status(self, inquiry_id, status: str) -> Inquiry: ...


def _require_status(response: InquiryResponse, expected: str, message: str) -> None:
    if response.status != expected:
        raise InvalidTransition(message)


class ResponseWorkflow:
    def __init__(
        self,
        responses: ResponseStore,
        inquiries: InquiryStatusUpdater,
        *,
        send_roles: Iterable[Role] = (),
        clock: Callable[[], datetime] = timezone.now,
    ):
        self.responses = responses
        self.inquiries = inquiries
        # empty: sending is not role-gated
        self.send_roles = frozenset(send_roles)
        self.clock = clock

    # ---- Authoring -----------------------------------------------------------

    def create(
        self,
        inquiry_id,
        text: Optional[str],
        user: CurrentUser,
        *,
        metadata: Optional[Mapping[str, Any]] = None,
    ) -> InquiryResponse:
        inquiry = self.inquiries.get(inquiry_id)
        if user.is_cso and inquiry.assigned_to_id != user.id:
            raise Forbidden("You are not assigned to this inquiry")

        response = InquiryResponse(
            inquiry_id=inquiry.id,
            responder_id=user.id,
            status=Status.DRAFT,
            response_text=text or "",
            metadata=dict(metadata or {}),
        )
        response = self.responses.add(response)
        logger.info("response.created", extra={"response_id": str(response.id), "inquiry_id": str(inquiry.id)})
        return response

    def update(self, response_id, patch: Mapping[str, Any], user: CurrentUser) -> InquiryResponse:
        response = self.responses.get(response_id)
        _require_status(response, Status.DRAFT, "Can only update responses in draft status")
        if response.responder_id != user.id and not user.has_role(Role.ADMIN, Role.MANAGER):
            raise Forbidden("You do not have permission to update this response")

        changed = [f for f in EDITABLE_FIELDS if f in patch]
        for field in changed:
            value = patch[field]
            if field == "response_text":
                value = value or ""
            setattr(response, field, value)
        if changed:
            response = self.responses.save(response, changed)
        return response

    def submit_for_approval(self, response_id, user: CurrentUser) -> InquiryResponse:
        response = self.responses.get(response_id)
        _require_status(response, Status.DRAFT, "Can only submit draft responses for approval")
        if response.responder_id != user.id and not user.is_admin:
            raise Forbidden("You do not have permission to submit this response")

        response.status = Status.PENDING_APPROVAL
        return self._save_transition(response, ["status"])

    # ---- Review --------------------------------------------------------------

    def approve(self, response_id, notes: Optional[str], user: CurrentUser) -> InquiryResponse:
        if not user.has_role(Role.MANAGER, Role.ADMIN):
            raise Forbidden("Only managers can approve responses")
        response = self.responses.get(response_id)
        _require_status(response, Status.PENDING_APPROVAL, "Can only approve responses that are pending approval")

        response.status = Status.APPROVED
        response.approved_at = self.clock()
        response.approval_notes = notes or ""
        response.approved_by_id = user.id
        response = self._save_transition(response, ["status", "approved_at", "approval_notes", "approved_by"])
        self.inquiries.update_status(response.inquiry_id, Inquiry.Status.RESPONDED)
        return response

    def reject(self, response_id, reason: str, user: CurrentUser) -> InquiryResponse:
        if not user.has_role(Role.MANAGER, Role.ADMIN):
            raise Forbidden("Only managers can reject responses")
        response = self.responses.get(response_id)
        _require_status(response, Status.PENDING_APPROVAL, "Can only reject responses that are pending approval")

        # the rejection is recorded on the row, the row itself goes back to draft
        response.rejected_at = self.clock()
        response.rejection_reason = reason
        response.status = Status.DRAFT
        return self._save_transition(response, ["status", "rejected_at", "rejection_reason"])

    # ---- Delivery ------------------------------------------------------------

    def send_response(self, response_id, user: Optional[CurrentUser] = None) -> InquiryResponse:
        if self.send_roles and (user is None or user.role not in self.send_roles):
            raise Forbidden("You do not have permission to send responses")
        response = self.responses.get(response_id)
        _require_status(response, Status.APPROVED, "Can only send approved responses")

        response.status = Status.SENT
        response.sent_at = self.clock()
        response = self._save_transition(response, ["status", "sent_at"])
        self.inquiries.update_status(response.inquiry_id, Inquiry.Status.CLOSED)
        return response

    def remove(self, response_id, user: CurrentUser) -> None:
        if user.is_manager:
            raise Forbidden("Managers cannot delete responses")
        response = self.responses.get(response_id)
        _require_status(response, Status.DRAFT, "Can only delete draft responses")
        if user.is_cso and response.responder_id != user.id:
            raise Forbidden("You can only delete your own draft responses")

        self.responses.delete(response)
        logger.info("response.deleted", extra={"response_id": str(response_id)})

    # ---- Internals -----------------------------------------------------------

    def _save_transition(self, response: InquiryResponse, fields: list) -> InquiryResponse:
        response = self.responses.save(response, fields)
        logger.info("response.transition", extra={"response_id": str(response.id), "status": response.status})
        return response


def send_roles_from_settings(value: Iterable[str]) -> tuple:
    return tuple(parse_role(r) for r in value if r and r.strip())
