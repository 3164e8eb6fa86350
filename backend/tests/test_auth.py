import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from .factories import TenantFactory, UserFactory


def _auth_client(user):
    client = APIClient()
    token = RefreshToken.for_user(user).access_token
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")
    return client


@pytest.mark.django_db
def test_login_returns_tokens_and_tenant():
    tenant = TenantFactory()
    user = UserFactory(profile=tenant)
    client = APIClient()
    res = client.post(
        "/api/auth/login/",
        {"username": user.username, "password": "password123"},
        format="json",
    )
    assert res.status_code == 200
    assert "access" in res.data and "refresh" in res.data
    assert res.data["tenant"]["id"] == tenant.id
    assert res.data["role"] == "owner"


@pytest.mark.django_db
def test_login_wrong_password_rejected():
    user = UserFactory()
    res = APIClient().post(
        "/api/auth/login/",
        {"username": user.username, "password": "nope"},
        format="json",
    )
    assert res.status_code == 401


@pytest.mark.django_db
def test_me_returns_profile():
    tenant = TenantFactory(currency_code="EUR")
    user = UserFactory(profile=tenant, profile__role="manager")
    res = _auth_client(user).get("/api/auth/me/")
    assert res.status_code == 200
    assert res.data["role"] == "manager"
    assert res.data["tenant"]["currency_code"] == "EUR"


@pytest.mark.django_db
def test_api_requires_authentication():
    res = APIClient().get("/api/kitchen/orders/")
    assert res.status_code == 401


@pytest.mark.django_db
def test_operator_cannot_reach_manager_endpoints():
    user = UserFactory(profile__role="operator")
    client = _auth_client(user)
    assert client.get("/api/inventory/purchase-orders/").status_code == 403
    assert client.get("/api/inventory/items/").status_code == 200
