"""Pytest configuration and shared fixtures."""

from typing import Any
from unittest.mock import AsyncMock, Mock

import pytest
from fastapi.testclient import TestClient

from src.skills_audit.auth.dependencies import set_identity_provider
from src.skills_audit.auth.identity import FailureReason, IdentityFailure
from src.skills_audit.main import app
from src.skills_audit.services.analytics import get_analytics_service
from src.skills_audit.services.database import InMemoryDocumentStore, set_document_store
from src.skills_audit.services.database.models import Collection, Profile, Role
from src.skills_audit.services.database.query import collection_name
from src.skills_audit.services.rate_limiter import limiter

VALID_TOKEN = "valid-token"


def _make_profile(**overrides: Any) -> Profile:
    """Build an active employee profile, overriding any field."""
    fields: dict[str, Any] = {
        "id": "user-1",
        "first_name": "Thandi",
        "last_name": "Mokoena",
        "email": "thandi@example.com",
        "employee_id": "EMP0001",
        "department": "Finance",
        "role": Role.EMPLOYEE,
        "is_active": True,
    }
    fields.update(overrides)
    return Profile(**fields)


def _seed(store: InMemoryDocumentStore, collection: Collection, document: dict[str, Any]) -> None:
    store.collections[collection_name(collection)][document["id"]] = dict(document)


@pytest.fixture(autouse=True)
def disable_rate_limits(monkeypatch):
    """Rate limits are keyed per client IP, which every TestClient request shares."""
    monkeypatch.setattr(limiter, "enabled", False)


@pytest.fixture
def memory_store():
    """Install an empty in-memory document store as the app's store."""
    store = InMemoryDocumentStore()
    set_document_store(store)
    yield store
    set_document_store(None)


@pytest.fixture
def mock_identity():
    """
    Install a mocked identity provider.

    Tokens are rejected unless a test configures ``verify_token``.
    """
    provider = Mock()
    provider.verify_password = AsyncMock()
    provider.create_account = AsyncMock()
    provider.send_reset_message = AsyncMock(return_value=None)
    provider.verify_token = AsyncMock(return_value=IdentityFailure(FailureReason.INVALID_TOKEN))
    provider.update_password = AsyncMock(return_value=None)
    provider.update_email = AsyncMock(return_value=None)
    set_identity_provider(provider)
    yield provider
    set_identity_provider(None)


@pytest.fixture
def mock_analytics():
    analytics = Mock()
    app.dependency_overrides[get_analytics_service] = lambda: analytics
    yield analytics
    app.dependency_overrides.pop(get_analytics_service, None)


@pytest.fixture
def client(memory_store, mock_identity, mock_analytics) -> TestClient:
    """
    Provide FastAPI test client for API testing.

    The lifespan is not entered, so no Supabase client is created; the
    in-memory store and mocked identity provider are used instead.

    Example:
        >>> def test_health(client):
        >>>     response = client.get("/health")
        >>>     assert response.status_code == 200
    """
    return TestClient(app, raise_server_exceptions=False)


def _sign_in_as(
    store: InMemoryDocumentStore, provider: Mock, profile: Profile
) -> dict[str, str]:
    """Seed ``profile`` and make ``VALID_TOKEN`` resolve to it. Returns auth headers."""
    _seed(store, Collection.USERS, profile.to_document())
    provider.verify_token.return_value = profile.id
    return {"Authorization": f"Bearer {VALID_TOKEN}"}


@pytest.fixture
def employee(memory_store, mock_identity) -> dict[str, str]:
    """Auth headers for an active employee (``user-1``)."""
    return _sign_in_as(memory_store, mock_identity, _make_profile())


@pytest.fixture
def admin(memory_store, mock_identity) -> dict[str, str]:
    """Auth headers for an active admin (``admin-1``)."""
    profile = _make_profile(
        id="admin-1",
        first_name="Sipho",
        last_name="Dlamini",
        email="sipho@example.com",
        employee_id="EMP0900",
        role=Role.ADMIN,
    )
    return _sign_in_as(memory_store, mock_identity, profile)


@pytest.fixture
def make_profile():
    """Factory for profiles: ``make_profile(id="user-2", department="Legal")``."""
    return _make_profile


@pytest.fixture
def seed(memory_store):
    """Write documents straight into the in-memory store: ``seed(Collection.SKILLS, doc)``."""

    def _write(collection: Collection, document: dict[str, Any]) -> None:
        _seed(memory_store, collection, document)

    return _write


@pytest.fixture
def sign_in(memory_store, mock_identity):
    """Seed a profile and return bearer headers that resolve to it."""

    def _sign_in(profile: Profile) -> dict[str, str]:
        return _sign_in_as(memory_store, mock_identity, profile)

    return _sign_in
