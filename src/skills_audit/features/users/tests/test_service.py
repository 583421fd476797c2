"""Tests for UserService against the in-memory document store."""

import pytest

from src.skills_audit.features.users.service import UserService, profile_completion
from src.skills_audit.services.database import InMemoryDocumentStore, InvalidCursorError
from src.skills_audit.services.database.models import (
    Collection,
    Profile,
    ProfilePatch,
    Role,
)
from src.skills_audit.services.database.query import desc


def make_profile(user_id: str, last_name: str, **overrides) -> Profile:
    fields = {
        "id": user_id,
        "first_name": "Lerato",
        "last_name": last_name,
        "email": f"{user_id}@example.com",
        "employee_id": f"EMP-{user_id}",
        "department": "Finance",
    }
    fields.update(overrides)
    return Profile(**fields)


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def service(store) -> UserService:
    return UserService(store)


async def save(store, *profiles: Profile) -> None:
    for profile in profiles:
        await store.set(Collection.USERS, profile.id, profile.to_document())


@pytest.mark.asyncio
class TestLookups:
    """Tests for single-user lookups."""

    async def test_get_by_email_is_case_insensitive(self, service, store):
        """Test email lookups are case-insensitive."""
        await save(store, make_profile("u1", "Botha", email="lerato@example.com"))

        profile = await service.get_user_by_email("Lerato@Example.com")

        assert profile is not None
        assert profile.id == "u1"

    async def test_get_by_employee_id(self, service, store):
        """Test employee id lookups normalise to upper case."""
        await save(store, make_profile("u1", "Botha", employee_id="EMP0042"))

        assert (await service.get_user_by_employee_id("emp0042")).id == "u1"
        assert await service.get_user_by_employee_id("EMP9999") is None

    async def test_missing_user(self, service):
        assert await service.get_user_by_id("ghost") is None
        assert await service.is_user_active("ghost") is False


@pytest.mark.asyncio
class TestListing:
    """Tests for user listings and paging."""

    async def test_department_pages_do_not_overlap(self, service, store):
        """Test department pages are ordered and share no users."""
        # Arrange
        await save(
            store,
            make_profile("u1", "Zulu"),
            make_profile("u2", "Adams"),
            make_profile("u3", "Naidoo"),
            make_profile("u4", "Botha", department="Legal"),
            make_profile("u5", "Cele", is_active=False),
        )

        # Act
        first = await service.get_users_by_department("Finance", limit=2)
        second = await service.get_users_by_department("Finance", limit=2, cursor=first.next_cursor)

        # Assert
        assert [user.id for user in first.users] == ["u2", "u3"]
        assert [user.id for user in second.users] == ["u1"]
        assert second.next_cursor is None

    async def test_department_with_custom_order(self, service, store):
        """Test a single order field replaces the default name order."""
        await save(store, make_profile("u1", "Zulu"), make_profile("u2", "Adams"))

        result = await service.get_users_by_department("Finance", order_by=desc("last_name"))

        assert [user.id for user in result.users] == ["u1", "u2"]

    async def test_invalid_cursor_propagates(self, service, store):
        """Test a bad cursor raises instead of returning an empty page."""
        await save(store, make_profile("u1", "Zulu"))

        with pytest.raises(InvalidCursorError):
            await service.list_active_users(limit=2, cursor="not-a-cursor")

    async def test_users_by_role(self, service, store):
        """Test only active users with the role are returned."""
        await save(
            store,
            make_profile("u1", "Zulu", role=Role.MANAGER),
            make_profile("u2", "Adams"),
            make_profile("u3", "Botha", role=Role.MANAGER, is_active=False),
        )

        managers = await service.get_users_by_role(Role.MANAGER)

        assert [user.id for user in managers] == ["u1"]


@pytest.mark.asyncio
class TestMaintenance:
    """Tests for profile updates, activation and stats."""

    async def test_deactivate_and_activate(self, service, store):
        """Test deactivation is a soft delete that can be undone."""
        await save(store, make_profile("u1", "Zulu"))

        assert await service.deactivate_user("u1") is True
        assert await service.is_user_active("u1") is False
        assert await service.activate_user("u1") is True
        assert await service.is_user_active("u1") is True

    async def test_update_missing_user_fails(self, service):
        """Test updating an unknown user returns False."""
        assert await service.update_role("ghost", Role.ADMIN) is False

    async def test_update_profile_only_touches_given_fields(self, service, store):
        """Test a profile patch leaves other fields untouched."""
        await save(store, make_profile("u1", "Zulu", position="Analyst"))

        await service.update_profile("u1", ProfilePatch(phone_number="0821234567"))

        profile = await service.get_user_by_id("u1")
        assert profile.phone_number == "0821234567"
        assert profile.position == "Analyst"

    async def test_stats(self, service, store):
        """Test stats count the user's records and profile completion."""
        await save(store, make_profile("u1", "Zulu", position="Analyst"))
        await store.set(Collection.SKILLS, "s1", {"user_id": "u1", "name": "Excel"})
        await store.set(Collection.SKILLS, "s2", {"user_id": "u2", "name": "SQL"})
        await store.set(Collection.TRAINING, "t1", {"user_id": "u1", "title": "IFRS"})

        stats = await service.get_user_stats("u1")

        assert stats.total_skills == 1
        assert stats.total_training == 1
        assert stats.total_qualifications == 0
        # Seven of eight fields filled: no phone number
        assert stats.profile_completion == 88

    async def test_stats_without_profile(self, service):
        """Test completion is None when the user has no profile."""
        stats = await service.get_user_stats("ghost")

        assert stats.total_skills == 0
        assert stats.profile_completion is None


def test_profile_completion_counts_filled_fields():
    """Test every filled profile field counts towards completion."""
    profile = make_profile("u1", "Zulu", phone_number="0821234567", position="Analyst")

    assert profile_completion(profile) == 100
