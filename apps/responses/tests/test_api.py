import pytest
from django.core import mail
from django.urls import reverse

from apps.audit.models import AuditEvent
from apps.inquiries.models import Inquiry
from apps.responses.models import InquiryResponse

Status = InquiryResponse.Status


def _url(name, pk=None):
    if pk is None:
        return reverse(f"responses_api:response-{name}")
    return reverse(f"responses_api:response-{name}", args=[pk])


@pytest.mark.django_db
def test_approval_walkthrough(client_for, cso, manager, admin, inquiry, django_capture_on_commit_callbacks):
    # 1) assigned CSO drafts a response
    r = client_for(cso).post(_url("list"), {"inquiryId": str(inquiry.id), "responseText": "Hello"}, format="json")
    assert r.status_code == 201, r.content
    body = r.json()
    assert body["status"] == "draft"
    assert body["responderId"] == str(cso.id)
    assert body["responseText"] == "Hello"
    response_id = body["id"]

    # 2) CSO submits it
    r = client_for(cso).post(_url("submit", response_id), format="json")
    assert r.status_code == 200, r.content
    assert r.json()["status"] == "pending_approval"

    # 3) manager approves; the inquiry is now responded
    r = client_for(manager).post(_url("approve", response_id), {"approvalNotes": "looks good"}, format="json")
    assert r.status_code == 200, r.content
    assert r.json()["status"] == "approved"
    assert r.json()["approvalNotes"] == "looks good"
    assert r.json()["approvedBy"]["id"] == str(manager.id)
    inquiry.refresh_from_db()
    assert inquiry.status == Inquiry.Status.RESPONDED

    # 4) admin sends; inquiry closes and the customer gets an email
    with django_capture_on_commit_callbacks(execute=True):
        r = client_for(admin).post(_url("send", response_id), format="json")
    assert r.status_code == 200, r.content
    assert r.json()["status"] == "sent"
    assert r.json()["sentAt"]
    inquiry.refresh_from_db()
    assert inquiry.status == Inquiry.Status.CLOSED

    assert len(mail.outbox) == 1
    assert mail.outbox[0].to == [inquiry.customer.email]
    assert mail.outbox[0].subject == f"Re: {inquiry.subject}"
    assert InquiryResponse.objects.get(pk=response_id).email_sent_at is not None

    actions = set(AuditEvent.objects.filter(object_id=response_id).values_list("action", flat=True))
    assert {"response.create", "response.submit", "response.approve", "response.send"} <= actions


@pytest.mark.django_db
def test_unassigned_cso_cannot_respond(client_for, other_cso, inquiry):
    # 5)
    r = client_for(other_cso).post(_url("list"), {"inquiryId": str(inquiry.id), "responseText": "Hi"}, format="json")
    assert r.status_code == 403
    assert r.json()["detail"] == "You are not assigned to this inquiry"
    assert not InquiryResponse.objects.exists()


@pytest.mark.django_db
def test_approving_a_draft_is_a_bad_request(client_for, cso, manager, inquiry):
    # 6)
    draft = InquiryResponse.objects.create(inquiry=inquiry, responder=cso, response_text="Hi")
    r = client_for(manager).post(_url("approve", draft.id), {}, format="json")
    assert r.status_code == 400
    assert r.json() == {"detail": "Can only approve responses that are pending approval"}
    draft.refresh_from_db()
    assert draft.status == Status.DRAFT
    inquiry.refresh_from_db()
    assert inquiry.status == Inquiry.Status.PENDING


@pytest.mark.django_db
def test_create_on_unknown_inquiry_is_404(client_for, manager):
    r = client_for(manager).post(
        _url("list"), {"inquiryId": "00000000-0000-0000-0000-000000000000"}, format="json"
    )
    assert r.status_code == 404


@pytest.mark.django_db
def test_create_without_text_makes_empty_draft(client_for, manager, inquiry):
    r = client_for(manager).post(_url("list"), {"inquiryId": str(inquiry.id)}, format="json")
    assert r.status_code == 201
    assert r.json()["responseText"] == ""


@pytest.mark.django_db
def test_reject_returns_to_draft(client_for, cso, manager, inquiry):
    pending = InquiryResponse.objects.create(
        inquiry=inquiry, responder=cso, response_text="Hi", status=Status.PENDING_APPROVAL
    )
    r = client_for(manager).post(_url("reject", pending.id), {"rejectionReason": "Add the refund id"}, format="json")
    assert r.status_code == 200, r.content
    body = r.json()
    assert body["status"] == "draft"
    assert body["rejectionReason"] == "Add the refund id"
    assert body["rejectedAt"]


@pytest.mark.django_db
def test_reject_requires_a_reason(client_for, cso, manager, inquiry):
    pending = InquiryResponse.objects.create(inquiry=inquiry, responder=cso, status=Status.PENDING_APPROVAL)
    r = client_for(manager).post(_url("reject", pending.id), {}, format="json")
    assert r.status_code == 400
    pending.refresh_from_db()
    assert pending.status == Status.PENDING_APPROVAL


@pytest.mark.django_db
def test_cso_cannot_approve(client_for, cso, inquiry):
    pending = InquiryResponse.objects.create(inquiry=inquiry, responder=cso, status=Status.PENDING_APPROVAL)
    r = client_for(cso).post(_url("approve", pending.id), {}, format="json")
    assert r.status_code == 403
    pending.refresh_from_db()
    assert pending.status == Status.PENDING_APPROVAL


@pytest.mark.django_db
def test_only_draft_is_editable(client_for, cso, inquiry):
    approved = InquiryResponse.objects.create(inquiry=inquiry, responder=cso, status=Status.APPROVED, response_text="x")
    r = client_for(cso).patch(_url("detail", approved.id), {"responseText": "y"}, format="json")
    assert r.status_code == 400
    approved.refresh_from_db()
    assert approved.response_text == "x"


@pytest.mark.django_db
def test_manager_cannot_delete(client_for, cso, manager, admin, inquiry):
    draft = InquiryResponse.objects.create(inquiry=inquiry, responder=cso)
    assert client_for(manager).delete(_url("detail", draft.id)).status_code == 403
    assert client_for(admin).delete(_url("detail", draft.id)).status_code == 204
    assert not InquiryResponse.objects.filter(pk=draft.id).exists()


@pytest.mark.django_db
def test_send_roles_setting_gates_send(settings, client_for, cso, admin, inquiry):
    settings.RESPONSES_SEND_ROLES = ["admin"]
    approved = InquiryResponse.objects.create(inquiry=inquiry, responder=cso, status=Status.APPROVED)

    assert client_for(cso).post(_url("send", approved.id)).status_code == 403
    approved.refresh_from_db()
    assert approved.status == Status.APPROVED

    assert client_for(admin).post(_url("send", approved.id)).status_code == 200


@pytest.mark.django_db
def test_send_without_notifications_skips_email(settings, client_for, cso, admin, inquiry, django_capture_on_commit_callbacks):
    settings.NOTIFY_CUSTOMERS = False
    approved = InquiryResponse.objects.create(inquiry=inquiry, responder=cso, status=Status.APPROVED)
    with django_capture_on_commit_callbacks(execute=True):
        r = client_for(admin).post(_url("send", approved.id))
    assert r.status_code == 200
    assert mail.outbox == []


@pytest.mark.django_db
def test_send_survives_mail_failure(monkeypatch, client_for, cso, admin, inquiry, django_capture_on_commit_callbacks):
    from smtplib import SMTPServerDisconnected

    def _down(**kwargs):
        raise SMTPServerDisconnected("down")

    monkeypatch.setattr("apps.responses.tasks.send_mail", _down)
    approved = InquiryResponse.objects.create(inquiry=inquiry, responder=cso, status=Status.APPROVED)

    with django_capture_on_commit_callbacks(execute=True) as callbacks:
        r = client_for(admin).post(_url("send", approved.id))

    assert r.status_code == 200, r.content
    assert r.json()["status"] == "sent"
    assert len(callbacks) == 1
    approved.refresh_from_db()
    assert approved.status == Status.SENT
    assert approved.email_sent_at is None
    inquiry.refresh_from_db()
    assert inquiry.status == Inquiry.Status.CLOSED


@pytest.mark.django_db
def test_list_is_paginated_and_filterable(client_for, cso, manager, other_cso, customer, inquiry):
    other_inquiry = Inquiry.objects.create(customer=customer, subject="Other", message="...", assigned_to=other_cso)
    InquiryResponse.objects.create(inquiry=inquiry, responder=cso)
    InquiryResponse.objects.create(inquiry=inquiry, responder=cso, status=Status.APPROVED)
    InquiryResponse.objects.create(inquiry=other_inquiry, responder=other_cso)

    r = client_for(manager).get(_url("list"), {"limit": 2})
    assert r.status_code == 200
    body = r.json()
    assert body["total"] == 3
    assert body["limit"] == 2
    assert body["totalPages"] == 2
    assert len(body["items"]) == 2

    r = client_for(manager).get(_url("list"), {"status": "approved"})
    assert [item["status"] for item in r.json()["items"]] == ["approved"]

    r = client_for(manager).get(_url("list"), {"inquiryId": str(other_inquiry.id)})
    assert r.json()["total"] == 1

    # CSOs only see their own corner
    r = client_for(cso).get(_url("list"))
    assert r.json()["total"] == 2


@pytest.mark.django_db
def test_list_rejects_bad_filters(client_for, manager):
    assert client_for(manager).get(_url("list"), {"status": "archived"}).status_code == 400
    assert client_for(manager).get(_url("list"), {"inquiryId": "not-a-uuid"}).status_code == 400


@pytest.mark.django_db
def test_blank_status_filter_is_ignored(client_for, cso, manager, inquiry):
    InquiryResponse.objects.create(inquiry=inquiry, responder=cso)
    InquiryResponse.objects.create(inquiry=inquiry, responder=cso, status=Status.SENT)

    r = client_for(manager).get(_url("list") + "?status=")
    assert r.status_code == 200, r.content
    assert r.json()["total"] == 2


@pytest.mark.django_db
def test_malformed_ids_never_reach_the_database(client_for, admin):
    client = client_for(admin)
    base = _url("list")

    assert client.get(base + "not-a-uuid/").status_code == 404
    assert client.delete(base + "not-a-uuid/").status_code == 404
    assert client.post(base + "not-a-uuid/approve/", {}, format="json").status_code == 404

    # right shape, still not a UUID
    dashes = "-" * 36
    r = client.get(base + dashes + "/")
    assert r.status_code == 400
    assert "detail" in r.json()
    assert client.post(base + dashes + "/approve/", {}, format="json").status_code == 400


@pytest.mark.django_db
def test_retrieve_expands_inquiry_and_customer(client_for, cso, manager, other_cso, inquiry):
    response = InquiryResponse.objects.create(inquiry=inquiry, responder=cso, response_text="Hi")
    r = client_for(manager).get(_url("detail", response.id))
    assert r.status_code == 200
    body = r.json()
    assert body["inquiry"]["id"] == str(inquiry.id)
    assert body["inquiry"]["customer"]["email"] == "ada@example.com"
    assert body["responder"]["email"] == cso.email

    assert client_for(other_cso).get(_url("detail", response.id)).status_code == 404


@pytest.mark.django_db
def test_statistics(client_for, cso, manager, other_cso, inquiry):
    InquiryResponse.objects.create(inquiry=inquiry, responder=cso)
    InquiryResponse.objects.create(inquiry=inquiry, responder=cso, status=Status.APPROVED)
    InquiryResponse.objects.create(inquiry=inquiry, responder=cso, status=Status.SENT)
    InquiryResponse.objects.create(inquiry=inquiry, responder=other_cso, status=Status.PENDING_APPROVAL)

    body = client_for(manager).get(_url("statistics")).json()
    assert body["total"] == 4
    assert body["byStatus"] == {"draft": 1, "pendingApproval": 1, "approved": 1, "rejected": 0, "sent": 1}
    assert body["approvalRate"] == 50.0

    body = client_for(manager).get(_url("statistics"), {"userId": str(other_cso.id)}).json()
    assert body["total"] == 1
    assert body["approvalRate"] == 0

    # a CSO always gets their own numbers
    body = client_for(cso).get(_url("statistics"), {"userId": str(other_cso.id)}).json()
    assert body["total"] == 3


@pytest.mark.django_db
def test_anonymous_is_rejected(api_client, inquiry):
    assert api_client.get(_url("list")).status_code == 401
