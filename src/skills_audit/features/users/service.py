"""Business logic for employee profiles."""

import logging

from pydantic import BaseModel

from src.skills_audit.services.database import DocumentStore, InvalidCursorError
from src.skills_audit.services.database.models import (
    Collection,
    Profile,
    ProfilePatch,
    Role,
)
from src.skills_audit.services.database.query import OrderBy, Predicate, eq

logger = logging.getLogger(__name__)

DEFAULT_USER_ORDER = (OrderBy("last_name"), OrderBy("first_name"))
PROFILE_COMPLETION_FIELDS = 8


class ProfilePageResult(BaseModel):
    users: list[Profile]
    next_cursor: str | None = None


class UserStats(BaseModel):
    total_skills: int = 0
    total_training: int = 0
    total_qualifications: int = 0
    profile_completion: int | None = None


def profile_completion(profile: Profile) -> int:
    """Percentage of the eight profile fields that are filled in."""
    filled = [
        profile.first_name,
        profile.last_name,
        profile.email,
        profile.employee_id,
        profile.department,
        profile.phone_number,
        profile.position,
        profile.created_at,
    ]
    completed = sum(1 for value in filled if value)
    return round(completed / PROFILE_COMPLETION_FIELDS * 100)


class UserService:
    """
    Reads and maintains profile documents in the users collection.

    Lookups return None and mutations return False on failure; store errors
    are logged, never raised. An invalid pagination cursor is the exception:
    it propagates as ``InvalidCursorError`` so the caller can reject it.
    """

    def __init__(self, store: DocumentStore) -> None:
        self.store = store

    async def get_user_by_id(self, user_id: str) -> Profile | None:
        try:
            document = await self.store.get_by_id(Collection.USERS, user_id)
        except Exception as e:
            logger.error(f"Error getting user by ID {user_id}: {e}", exc_info=True)
            return None
        return Profile.from_document(document) if document else None

    async def _find_one(self, field: str, value: str) -> Profile | None:
        try:
            page = await self.store.query(Collection.USERS, [eq(field, value)], limit=1)
        except Exception as e:
            logger.error(f"Error getting user by {field}: {e}", exc_info=True)
            return None
        return next((Profile.from_document(document) for document in page), None)

    async def get_user_by_email(self, email: str) -> Profile | None:
        return await self._find_one("email", email.lower())

    async def get_user_by_employee_id(self, employee_id: str) -> Profile | None:
        return await self._find_one("employee_id", employee_id.upper())

    async def _list(
        self,
        predicates: list[Predicate],
        order_by: tuple[OrderBy, ...],
        limit: int | None,
        cursor: str | None,
    ) -> ProfilePageResult:
        try:
            page = await self.store.query(
                Collection.USERS, predicates, order_by=order_by, limit=limit, cursor=cursor
            )
        except InvalidCursorError:
            raise
        except Exception as e:
            logger.error(f"Error listing users: {e}", exc_info=True)
            return ProfilePageResult(users=[])
        users = [Profile.from_document(document) for document in page]
        return ProfilePageResult(users=users, next_cursor=page.next_cursor)

    async def list_active_users(
        self, limit: int | None = None, cursor: str | None = None
    ) -> ProfilePageResult:
        return await self._list([eq("is_active", True)], DEFAULT_USER_ORDER, limit, cursor)

    async def get_users_by_department(
        self,
        department: str,
        limit: int | None = None,
        cursor: str | None = None,
        order_by: OrderBy | None = None,
    ) -> ProfilePageResult:
        """Active users of one department, optionally ordered by a single field."""
        ordering = (order_by,) if order_by else DEFAULT_USER_ORDER
        return await self._list(
            [eq("department", department), eq("is_active", True)], ordering, limit, cursor
        )

    async def get_users_by_role(self, role: Role) -> list[Profile]:
        result = await self._list(
            [eq("role", role), eq("is_active", True)], DEFAULT_USER_ORDER, None, None
        )
        return result.users

    async def _update(self, user_id: str, patch: ProfilePatch, action: str) -> bool:
        try:
            await self.store.update(Collection.USERS, user_id, patch.to_fields())
        except Exception as e:
            logger.error(f"Error {action} user {user_id}: {e}", extra={"user_id": user_id})
            return False
        logger.info(f"User {user_id}: {action} succeeded", extra={"user_id": user_id})
        return True

    async def update_profile(self, user_id: str, patch: ProfilePatch) -> bool:
        return await self._update(user_id, patch, "updating profile of")

    async def update_role(self, user_id: str, role: Role) -> bool:
        return await self._update(user_id, ProfilePatch(role=role), "changing role of")

    async def activate_user(self, user_id: str) -> bool:
        return await self._update(user_id, ProfilePatch(is_active=True), "activating")

    async def deactivate_user(self, user_id: str) -> bool:
        """Soft delete: the profile stays but the user can no longer sign in."""
        return await self._update(user_id, ProfilePatch(is_active=False), "deactivating")

    async def is_user_active(self, user_id: str) -> bool:
        profile = await self.get_user_by_id(user_id)
        return bool(profile and profile.is_active)

    async def get_user_stats(self, user_id: str) -> UserStats:
        """Record counts for the user plus profile completion (None without a profile)."""
        owned = [eq("user_id", user_id)]
        try:
            stats = UserStats(
                total_skills=await self.store.count(Collection.SKILLS, owned),
                total_training=await self.store.count(Collection.TRAINING, owned),
                total_qualifications=await self.store.count(Collection.QUALIFICATIONS, owned),
            )
        except Exception as e:
            logger.error(f"Error getting user stats for {user_id}: {e}", exc_info=True)
            return UserStats()

        profile = await self.get_user_by_id(user_id)
        if profile is not None:
            stats.profile_completion = profile_completion(profile)
        return stats
