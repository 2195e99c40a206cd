import copy
import uuid
from datetime import datetime, timezone as dt_timezone

import pytest

from apps.core.exceptions import BadRequest, Forbidden, InvalidTransition, NotFound
from apps.inquiries.models import Inquiry
from apps.rbac.roles import CurrentUser, Role
from apps.responses.models import InquiryResponse
from apps.responses.workflow import ResponseWorkflow, send_roles_from_settings

Status = InquiryResponse.Status
NOW = datetime(2024, 5, 1, 12, 0, tzinfo=dt_timezone.utc)

_FIELDS = (
    "id", "inquiry_id", "responder_id", "approved_by_id", "status", "response_text",
    "approval_notes", "rejection_reason", "metadata", "approved_at", "rejected_at", "sent_at",
)


class FakeResponseStore:
    """Keeps plain snapshots so a test can see exactly what was persisted."""

    def __init__(self):
        self.rows = {}
        self.saves = []

    def _snapshot(self, response):
        return {f: copy.deepcopy(getattr(response, f)) for f in _FIELDS}

    def get(self, response_id):
        row = self.rows.get(response_id)
        if row is None:
            raise NotFound(f'Response with ID "{response_id}" not found')
        return InquiryResponse(**copy.deepcopy(row))

    def add(self, response):
        self.rows[response.id] = self._snapshot(response)
        return response

    def save(self, response, fields):
        self.saves.append((response.id, tuple(fields)))
        self.rows[response.id] = self._snapshot(response)
        return response

    def delete(self, response):
        del self.rows[response.id]


class FakeInquiries:
    def __init__(self, *inquiries):
        self.rows = {i.id: i for i in inquiries}
        self.status_calls = []

    def get(self, inquiry_id):
        if inquiry_id not in self.rows:
            raise NotFound(f'Inquiry with ID "{inquiry_id}" not found')
        return self.rows[inquiry_id]

    def update_status(self, inquiry_id, status):
        inquiry = self.get(inquiry_id)
        inquiry.status = status
        self.status_calls.append((inquiry_id, status))
        return inquiry


def user(role):
    return CurrentUser(id=uuid.uuid4(), role=role)


@pytest.fixture
def u1():
    return user(Role.CSO)


@pytest.fixture
def u2():
    return user(Role.CSO)


@pytest.fixture
def m1():
    return user(Role.MANAGER)


@pytest.fixture
def root():
    return user(Role.ADMIN)


@pytest.fixture
def i1(u1):
    return Inquiry(id=uuid.uuid4(), status=Inquiry.Status.PENDING, assigned_to_id=u1.id)


@pytest.fixture
def store():
    return FakeResponseStore()


@pytest.fixture
def inquiries(i1):
    return FakeInquiries(i1)


@pytest.fixture
def wf(store, inquiries):
    return ResponseWorkflow(store, inquiries, clock=lambda: NOW)


def _in_state(wf, store, i1, u1, status):
    """Create a response owned by u1 and force it into `status`."""
    response = wf.create(i1.id, "Hello", u1)
    store.rows[response.id]["status"] = status
    return response.id


# ---- Happy path ----------------------------------------------------------------


def test_full_lifecycle_updates_inquiry(wf, store, inquiries, i1, u1, m1, root):
    response = wf.create(i1.id, "Hello", u1)
    assert response.status == Status.DRAFT
    assert response.responder_id == u1.id

    assert wf.submit_for_approval(response.id, u1).status == Status.PENDING_APPROVAL

    approved = wf.approve(response.id, "looks good", m1)
    assert approved.status == Status.APPROVED
    assert approved.approval_notes == "looks good"
    assert approved.approved_at == NOW
    assert approved.approved_by_id == m1.id
    assert i1.status == Inquiry.Status.RESPONDED

    sent = wf.send_response(response.id, root)
    assert sent.status == Status.SENT
    assert sent.sent_at == NOW
    assert i1.status == Inquiry.Status.CLOSED
    assert inquiries.status_calls == [
        (i1.id, Inquiry.Status.RESPONDED),
        (i1.id, Inquiry.Status.CLOSED),
    ]


def test_create_defaults_missing_text_to_empty_string(wf, i1, m1):
    response = wf.create(i1.id, None, m1)
    assert response.response_text == ""
    assert response.status == Status.DRAFT


def test_create_on_missing_inquiry_is_not_found(wf, u1):
    with pytest.raises(NotFound):
        wf.create(uuid.uuid4(), "Hello", u1)


# ---- Ownership on create --------------------------------------------------------


def test_unassigned_cso_cannot_create(wf, store, i1, u2):
    with pytest.raises(Forbidden):
        wf.create(i1.id, "Hello", u2)
    assert store.rows == {}


@pytest.mark.parametrize("role", [Role.MANAGER, Role.ADMIN])
def test_manager_and_admin_create_on_any_inquiry(wf, i1, role):
    caller = user(role)
    assert wf.create(i1.id, "Hi", caller).responder_id == caller.id


def test_cso_can_create_when_assigned_even_if_not_pending(wf, i1, u1):
    i1.status = Inquiry.Status.CLOSED
    assert wf.create(i1.id, "late follow-up", u1).status == Status.DRAFT


# ---- Illegal transitions leave the row alone -------------------------------------

ILLEGAL = [
    # (operation, states where it must fail)
    ("update", [Status.PENDING_APPROVAL, Status.APPROVED, Status.SENT]),
    ("submit", [Status.PENDING_APPROVAL, Status.APPROVED, Status.SENT]),
    ("approve", [Status.DRAFT, Status.APPROVED, Status.SENT]),
    ("reject", [Status.DRAFT, Status.APPROVED, Status.SENT]),
    ("send", [Status.DRAFT, Status.PENDING_APPROVAL, Status.SENT]),
    ("remove", [Status.PENDING_APPROVAL, Status.APPROVED, Status.SENT]),
]


def _call(wf, op, response_id, caller):
    return {
        "update": lambda: wf.update(response_id, {"response_text": "changed"}, caller),
        "submit": lambda: wf.submit_for_approval(response_id, caller),
        "approve": lambda: wf.approve(response_id, "ok", caller),
        "reject": lambda: wf.reject(response_id, "no", caller),
        "send": lambda: wf.send_response(response_id, caller),
        "remove": lambda: wf.remove(response_id, caller),
    }[op]()


@pytest.mark.parametrize(
    "op,state",
    [(op, state) for op, states in ILLEGAL for state in states],
)
def test_wrong_state_raises_bad_request_without_mutation(wf, store, inquiries, i1, u1, root, op, state):
    response_id = _in_state(wf, store, i1, u1, state)
    before = copy.deepcopy(store.rows[response_id])

    with pytest.raises(BadRequest):
        _call(wf, op, response_id, root)

    assert store.rows[response_id] == before
    assert inquiries.status_calls == []
    assert i1.status == Inquiry.Status.PENDING


def test_invalid_transition_is_a_bad_request(wf, store, i1, u1, m1):
    response_id = _in_state(wf, store, i1, u1, Status.DRAFT)
    with pytest.raises(InvalidTransition):
        wf.approve(response_id, None, m1)


# ---- Permission matrix ------------------------------------------------------------

FORBIDDEN = [
    # (operation, starting state, who) -- "owner" is u1, who wrote the response
    ("update", Status.DRAFT, "other_cso"),
    ("submit", Status.DRAFT, "other_cso"),
    ("submit", Status.DRAFT, "manager"),
    ("approve", Status.PENDING_APPROVAL, "owner"),
    ("approve", Status.PENDING_APPROVAL, "other_cso"),
    ("reject", Status.PENDING_APPROVAL, "owner"),
    ("remove", Status.DRAFT, "manager"),
    ("remove", Status.DRAFT, "other_cso"),
]


@pytest.mark.parametrize("op,state,who", FORBIDDEN)
def test_matrix_refusals_raise_forbidden_without_mutation(wf, store, inquiries, i1, u1, u2, m1, op, state, who):
    callers = {"owner": u1, "other_cso": u2, "manager": m1}
    response_id = _in_state(wf, store, i1, u1, state)
    before = copy.deepcopy(store.rows[response_id])

    with pytest.raises(Forbidden):
        _call(wf, op, response_id, callers[who])

    assert store.rows[response_id] == before
    assert inquiries.status_calls == []


def test_manager_can_update_someone_elses_draft_but_not_submit_it(wf, store, i1, u1, m1):
    response = wf.create(i1.id, "Hello", u1)

    updated = wf.update(response.id, {"response_text": "Hello, edited"}, m1)
    assert updated.response_text == "Hello, edited"

    with pytest.raises(Forbidden):
        wf.submit_for_approval(response.id, m1)
    assert store.rows[response.id]["status"] == Status.DRAFT


def test_admin_can_submit_and_remove_any_draft(wf, store, i1, u1, root):
    response = wf.create(i1.id, "Hello", u1)
    assert wf.submit_for_approval(response.id, root).status == Status.PENDING_APPROVAL

    other = wf.create(i1.id, "second", u1)
    wf.remove(other.id, root)
    assert other.id not in store.rows


def test_cso_removes_own_draft(wf, store, i1, u1):
    response = wf.create(i1.id, "Hello", u1)
    wf.remove(response.id, u1)
    assert store.rows == {}


def test_approve_checks_role_before_looking_up_the_response(wf, u1):
    with pytest.raises(Forbidden):
        wf.approve(uuid.uuid4(), None, u1)


def test_missing_response_is_not_found(wf, m1):
    with pytest.raises(NotFound):
        wf.approve(uuid.uuid4(), None, m1)


# ---- Reject returns to draft ----------------------------------------------------


def test_reject_records_reason_and_returns_to_draft(store, inquiries, i1, u1, m1):
    from django.utils import timezone

    wf = ResponseWorkflow(store, inquiries)
    response = wf.create(i1.id, "Hello", u1)
    wf.submit_for_approval(response.id, u1)

    called_at = timezone.now()
    rejected = wf.reject(response.id, "Too terse", m1)

    assert rejected.status == Status.DRAFT
    assert rejected.rejection_reason == "Too terse"
    assert rejected.rejected_at >= called_at
    assert inquiries.status_calls == []

    # back in the pipeline
    wf.update(response.id, {"response_text": "Hello, here is more detail."}, u1)
    assert wf.submit_for_approval(response.id, u1).status == Status.PENDING_APPROVAL


def test_second_approve_fails(wf, store, i1, u1, m1):
    response_id = _in_state(wf, store, i1, u1, Status.PENDING_APPROVAL)
    wf.approve(response_id, "ok", m1)

    with pytest.raises(BadRequest):
        wf.approve(response_id, "again", m1)
    assert store.rows[response_id]["approval_notes"] == "ok"


def test_approve_without_notes_stores_empty_string(wf, store, i1, u1, m1):
    response_id = _in_state(wf, store, i1, u1, Status.PENDING_APPROVAL)
    assert wf.approve(response_id, None, m1).approval_notes == ""


# ---- Draft edits ----------------------------------------------------------------


def test_update_only_touches_editable_fields(wf, store, i1, u1):
    response = wf.create(i1.id, "Hello", u1)
    wf.update(response.id, {"response_text": "Hi", "status": Status.SENT, "metadata": {"tone": "warm"}}, u1)

    row = store.rows[response.id]
    assert row["response_text"] == "Hi"
    assert row["metadata"] == {"tone": "warm"}
    assert row["status"] == Status.DRAFT
    assert store.saves[-1] == (response.id, ("response_text", "metadata"))


def test_empty_patch_does_not_write(wf, store, i1, u1):
    response = wf.create(i1.id, "Hello", u1)
    wf.update(response.id, {}, u1)
    assert store.saves == []


# ---- Send gate ----------------------------------------------------------------------


def test_send_is_unchecked_by_default(wf, store, i1, u1):
    response_id = _in_state(wf, store, i1, u1, Status.APPROVED)
    assert wf.send_response(response_id, u1).status == Status.SENT


def test_configured_send_roles_are_enforced(store, inquiries, i1, u1, root):
    wf = ResponseWorkflow(store, inquiries, send_roles=send_roles_from_settings(["admin"]))
    response_id = _in_state(wf, store, i1, u1, Status.APPROVED)

    with pytest.raises(Forbidden):
        wf.send_response(response_id, u1)
    assert store.rows[response_id]["status"] == Status.APPROVED

    assert wf.send_response(response_id, root).status == Status.SENT


def test_send_roles_reject_unknown_names():
    with pytest.raises(ValueError):
        send_roles_from_settings(["owner"])
