"""
Common test fixtures for the API tests.

Provides a regular account and a platform admin, each with a Django test
client authenticated by a JWT obtained through the email login endpoint.
"""
from unittest.mock import MagicMock

import pytest
import stripe
from django.contrib.auth.models import User
from django.test import Client

from users.models import UserRole


def _login(client, email, password):
    resp = client.post(
        "/api/auth/token/",
        {"email": email, "password": password},
        content_type="application/json",
    )
    assert resp.status_code == 200
    client.defaults["HTTP_AUTHORIZATION"] = f"Bearer {resp.json()['access']}"
    return client


@pytest.fixture
def user(db):
    """Create a test user (its profile is created by the post_save signal)."""
    return User.objects.create_user(username="u1@example.com", password="pass12345", email="u1@example.com")


@pytest.fixture
def other_user(db):
    return User.objects.create_user(username="u2@example.com", password="pass12345", email="u2@example.com")


@pytest.fixture
def auth_client(client, db, user):
    """Authenticate the Django test client using JWT tokens."""
    return _login(client, "u1@example.com", "pass12345")


@pytest.fixture
def platform_admin(db):
    admin = User.objects.create_user(username="admin@example.com", password="pass12345", email="admin@example.com")
    UserRole.objects.create(user=admin, role=UserRole.ROLE_ADMIN)
    return admin


@pytest.fixture
def admin_auth_client(db, platform_admin):
    return _login(Client(), "admin@example.com", "pass12345")


@pytest.fixture
def set_plan():
    """Put a user on a plan: set_plan(user, "professional")."""

    def _set(user, plan, expires_at=None):
        profile = user.profile
        profile.plan = plan
        profile.plan_expires_at = expires_at
        profile.save()
        return profile

    return _set


@pytest.fixture
def fake_stripe(monkeypatch):
    """Replace the configured Stripe module with a MagicMock everywhere it is used."""
    fake = MagicMock(name="stripe")
    fake.StripeError = stripe.StripeError
    for target in ("billing.services.client", "affiliates.services.client", "backoffice.services.client"):
        monkeypatch.setattr(target, lambda: fake)
    return fake
