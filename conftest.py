import pytest
from django.contrib.auth import get_user_model
from django.core.cache import cache
from rest_framework.test import APIClient

from apps.rbac.roles import Role

PASSWORD = "pass12345!"


@pytest.fixture(autouse=True)
def _clear_cache():
    # throttle windows live in the cache; don't leak them between tests
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def make_user(db):
    def _make(role=Role.CSO, email=None, **extra):
        User = get_user_model()
        email = email or f"{role}-{User.objects.count() + 1}@nexus.test"
        extra.setdefault("first_name", role.capitalize() if isinstance(role, str) else "User")
        extra.setdefault("last_name", "Tester")
        return User.objects.create_user(email=email, password=PASSWORD, role=role, **extra)

    return _make


@pytest.fixture
def admin(make_user):
    return make_user(Role.ADMIN, email="admin@nexus.test")


@pytest.fixture
def manager(make_user):
    return make_user(Role.MANAGER, email="manager@nexus.test")


@pytest.fixture
def cso(make_user):
    return make_user(Role.CSO, email="cso@nexus.test")


@pytest.fixture
def other_cso(make_user):
    return make_user(Role.CSO, email="cso2@nexus.test")


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def client_for():
    def _client(user):
        client = APIClient()
        client.force_authenticate(user=user)
        return client

    return _client


@pytest.fixture
def customer(admin):
    from apps.customers.models import Customer

    return Customer.objects.create(
        first_name="Ada",
        last_name="Lovelace",
        email="ada@example.com",
        company="Analytical Engines",
        created_by=admin,
    )


@pytest.fixture
def inquiry(customer, cso):
    from apps.inquiries.models import Inquiry

    return Inquiry.objects.create(
        customer=customer,
        subject="Billing question",
        message="I was charged twice this month.",
        assigned_to=cso,
    )
