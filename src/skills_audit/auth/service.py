"""Authentication orchestration over the identity provider and the users collection."""

import logging

from src.skills_audit.auth.identity import IdentityFailure, IdentityProvider
from src.skills_audit.auth.models import AuthResult
from src.skills_audit.auth.schemas import RegisterRequest
from src.skills_audit.errors import FailureKind
from src.skills_audit.services.database.models import (
    Collection,
    Profile,
    ProfilePatch,
    Role,
    utc_now,
)
from src.skills_audit.services.database.query import eq
from src.skills_audit.services.database.store import DocumentStore

logger = logging.getLogger(__name__)

UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred. Please try again"


class AuthSessionService:
    """
    Login, registration and account maintenance.

    Stateless: every call combines an identity-provider result with the
    caller's profile document. No method raises; failures come back as an
    ``AuthResult`` with ``success=False`` or as ``False``/``""``.

    Profile and account live in two systems with no shared transaction.
    Registration checks uniqueness before creating the account, so two
    concurrent registrations with the same email can both pass the check.
    """

    def __init__(self, identity: IdentityProvider, store: DocumentStore) -> None:
        self.identity = identity
        self.store = store

    async def login(self, email: str, password: str) -> AuthResult:
        """
        Verify credentials and require an active profile.

        Returns:
            AuthResult with the provider token and the profile role on success
        """
        outcome = await self.identity.verify_password(email, password)
        if isinstance(outcome, IdentityFailure):
            return AuthResult.fail(outcome.message, outcome.kind)

        try:
            profile = await self.store.get_by_id(Collection.USERS, outcome.account_id)
        except Exception as e:
            logger.error(
                f"Failed to load profile during login for {outcome.account_id}: {e}",
                exc_info=True,
                extra={"user_id": outcome.account_id},
            )
            return AuthResult.fail(UNEXPECTED_ERROR_MESSAGE, FailureKind.TRANSPORT)

        if profile is None:
            logger.warning(f"Login for {outcome.account_id} has no profile")
            return AuthResult.fail("User profile not found", FailureKind.NOT_FOUND)

        if not profile.get("is_active", True):
            logger.info(f"Login rejected for deactivated user {outcome.account_id}")
            return AuthResult.fail("Account is deactivated", FailureKind.AUTHENTICATION)

        return AuthResult(
            success=True,
            message="Login successful",
            user_id=outcome.account_id,
            token=outcome.token,
            email=outcome.email,
            role=profile.get("role") or Role.EMPLOYEE.value,
        )

    async def register(self, request: RegisterRequest) -> AuthResult:
        """
        Create an account and its employee profile.

        Duplicate email or employee id is rejected before the identity
        provider is called, so a conflict never leaves an orphan account.
        """
        try:
            if await self._exists("email", request.email):
                return AuthResult.fail("Email already registered", FailureKind.CONFLICT)
            if await self._exists("employee_id", request.employee_id):
                return AuthResult.fail("Employee ID already registered", FailureKind.CONFLICT)
        except Exception as e:
            logger.error(f"Uniqueness check failed during registration: {e}", exc_info=True)
            return AuthResult.fail(UNEXPECTED_ERROR_MESSAGE, FailureKind.TRANSPORT)

        outcome = await self.identity.create_account(request.email, request.password)
        if isinstance(outcome, IdentityFailure):
            return AuthResult.fail(outcome.message, outcome.kind)

        profile = Profile(
            id=outcome.account_id,
            first_name=request.first_name,
            last_name=request.last_name,
            email=request.email,
            employee_id=request.employee_id,
            department=request.department.value,
            role=Role.EMPLOYEE,
            is_active=True,
        )
        try:
            await self.store.set(Collection.USERS, profile.id, profile.to_document())
        except Exception as e:
            logger.error(
                f"Account {outcome.account_id} created but profile write failed: {e}",
                exc_info=True,
                extra={"user_id": outcome.account_id, "error_type": "orphan_account"},
            )
            return AuthResult.fail(UNEXPECTED_ERROR_MESSAGE, FailureKind.TRANSPORT)

        logger.info(f"Registered user {profile.id}", extra={"user_id": profile.id})
        return AuthResult(
            success=True,
            message="Registration successful",
            user_id=profile.id,
            token=outcome.token,
            email=outcome.email,
            role=Role.EMPLOYEE.value,
        )

    async def reset_password(self, email: str) -> AuthResult:
        failure = await self.identity.send_reset_message(email)
        if failure is not None:
            return AuthResult.fail(failure.message, failure.kind)
        return AuthResult(success=True, message="Password reset email sent successfully")

    async def logout(self, user_id: str) -> bool:
        """Record last activity. Best effort: always succeeds for the caller."""
        try:
            await self.store.update(
                Collection.USERS, user_id, {"last_activity": utc_now().isoformat()}
            )
        except Exception as e:
            logger.error(f"Error during logout for user {user_id}: {e}", extra={"user_id": user_id})
        return True

    async def validate_token(self, token: str) -> bool:
        outcome = await self.identity.verify_token(token)
        return not isinstance(outcome, IdentityFailure)

    async def get_user_id_from_token(self, token: str) -> str:
        """Return the account id for a token, or "" when there is no valid identity."""
        outcome = await self.identity.verify_token(token)
        if isinstance(outcome, IdentityFailure):
            return ""
        return outcome

    async def change_password(self, user_id: str, current_password: str, new_password: str) -> bool:
        """
        Change a password after re-authenticating with the current one.

        The provider's password update is only called once the current
        password has been verified through ``login``.
        """
        try:
            profile = await self.store.get_by_id(Collection.USERS, user_id)
        except Exception as e:
            logger.error(f"Error loading profile to change password for {user_id}: {e}", exc_info=True)
            return False

        if profile is None:
            return False

        reauthenticated = await self.login(profile["email"], current_password)
        if not reauthenticated.success:
            logger.info(f"Password change rejected for {user_id}: re-authentication failed")
            return False

        failure = await self.identity.update_password(user_id, new_password)
        return failure is None

    async def update_email(self, user_id: str, new_email: str) -> bool:
        """
        Change the account email and mirror it into the profile.

        If the provider accepts the change but the profile write fails, the
        two stores disagree until the profile is corrected; this is logged at
        error level and reported as a failure.
        """
        try:
            if await self._exists("email", new_email):
                logger.info(f"Email update for {user_id} rejected: address already registered")
                return False
        except Exception as e:
            logger.error(f"Uniqueness check failed during email update: {e}", exc_info=True)
            return False

        failure = await self.identity.update_email(user_id, new_email)
        if failure is not None:
            return False

        try:
            await self.store.update(
                Collection.USERS, user_id, ProfilePatch(email=new_email).to_fields()
            )
        except Exception as e:
            logger.error(
                f"Email changed in identity provider but profile update failed for {user_id}: {e}",
                exc_info=True,
                extra={"user_id": user_id, "error_type": "email_mirror_failed"},
            )
            return False
        return True

    async def _exists(self, field: str, value: str) -> bool:
        page = await self.store.query(Collection.USERS, [eq(field, value)], limit=1)
        return any(True for _ in page)

    async def is_email_exists(self, email: str) -> bool:
        try:
            return await self._exists("email", email.lower())
        except Exception as e:
            logger.error(f"Error checking email existence: {e}", exc_info=True)
            return False

    async def is_employee_id_exists(self, employee_id: str) -> bool:
        try:
            return await self._exists("employee_id", employee_id)
        except Exception as e:
            logger.error(f"Error checking employee ID existence: {e}", exc_info=True)
            return False
