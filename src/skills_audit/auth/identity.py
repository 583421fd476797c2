"""Identity provider client: credential checks, accounts and tokens via Supabase Auth."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

import httpx
from jose import JWTError
from supabase import AsyncClient, AuthError, AuthRetryableError

from src.skills_audit.auth.jwt_validator import JWTValidator
from src.skills_audit.config import settings
from src.skills_audit.errors import FailureKind

logger = logging.getLogger(__name__)


class FailureReason(str, Enum):
    """Closed set of reasons an identity operation can fail."""

    EMAIL_NOT_FOUND = "EMAIL_NOT_FOUND"
    INVALID_PASSWORD = "INVALID_PASSWORD"
    INVALID_EMAIL = "INVALID_EMAIL"
    EMAIL_EXISTS = "EMAIL_EXISTS"
    WEAK_PASSWORD = "WEAK_PASSWORD"
    TOO_MANY_ATTEMPTS = "TOO_MANY_ATTEMPTS_TRY_LATER"
    USER_DISABLED = "USER_DISABLED"
    INVALID_TOKEN = "INVALID_TOKEN"
    TRANSPORT = "TRANSPORT"
    UNKNOWN = "UNKNOWN"


# Supabase Auth error codes -> failure reason
PROVIDER_ERROR_REASONS: dict[str, FailureReason] = {
    "invalid_credentials": FailureReason.INVALID_PASSWORD,
    "user_not_found": FailureReason.EMAIL_NOT_FOUND,
    "email_address_invalid": FailureReason.INVALID_EMAIL,
    "validation_failed": FailureReason.INVALID_EMAIL,
    "email_exists": FailureReason.EMAIL_EXISTS,
    "user_already_exists": FailureReason.EMAIL_EXISTS,
    "weak_password": FailureReason.WEAK_PASSWORD,
    "over_request_rate_limit": FailureReason.TOO_MANY_ATTEMPTS,
    "over_email_send_rate_limit": FailureReason.TOO_MANY_ATTEMPTS,
    "user_banned": FailureReason.USER_DISABLED,
    "bad_jwt": FailureReason.INVALID_TOKEN,
    "no_authorization": FailureReason.INVALID_TOKEN,
    "session_not_found": FailureReason.INVALID_TOKEN,
}

FAILURE_MESSAGES: dict[FailureReason, str] = {
    FailureReason.EMAIL_NOT_FOUND: "No account found with this email address",
    FailureReason.INVALID_PASSWORD: "Invalid password",
    FailureReason.INVALID_EMAIL: "Invalid email address format",
    FailureReason.EMAIL_EXISTS: "An account already exists with this email",
    FailureReason.WEAK_PASSWORD: "Password is too weak",
    FailureReason.TOO_MANY_ATTEMPTS: "Too many failed attempts. Please try again later",
    FailureReason.USER_DISABLED: "This account has been disabled",
    FailureReason.INVALID_TOKEN: "Invalid or expired token",
    FailureReason.TRANSPORT: "The authentication service is unavailable. Please try again",
    FailureReason.UNKNOWN: "Authentication failed. Please try again",
}

FAILURE_KINDS: dict[FailureReason, FailureKind] = {
    FailureReason.EMAIL_NOT_FOUND: FailureKind.AUTHENTICATION,
    FailureReason.INVALID_PASSWORD: FailureKind.AUTHENTICATION,
    FailureReason.INVALID_EMAIL: FailureKind.VALIDATION,
    FailureReason.EMAIL_EXISTS: FailureKind.CONFLICT,
    FailureReason.WEAK_PASSWORD: FailureKind.VALIDATION,
    FailureReason.TOO_MANY_ATTEMPTS: FailureKind.AUTHENTICATION,
    FailureReason.USER_DISABLED: FailureKind.AUTHENTICATION,
    FailureReason.INVALID_TOKEN: FailureKind.AUTHENTICATION,
    FailureReason.TRANSPORT: FailureKind.TRANSPORT,
    FailureReason.UNKNOWN: FailureKind.AUTHENTICATION,
}


@dataclass(frozen=True)
class IdentitySession:
    """A successful sign-in or sign-up."""

    account_id: str
    token: str
    email: str
    refresh_token: str | None = None
    expires_in: int | None = None


@dataclass(frozen=True)
class IdentityFailure:
    """A failed identity operation; ``message`` is safe to show to end users."""

    reason: FailureReason

    @property
    def message(self) -> str:
        return FAILURE_MESSAGES[self.reason]

    @property
    def kind(self) -> FailureKind:
        return FAILURE_KINDS[self.reason]


class IdentityProvider(Protocol):
    """External account directory. No operation raises; failures are returned."""

    async def verify_password(self, email: str, password: str) -> IdentitySession | IdentityFailure: ...

    async def create_account(self, email: str, password: str) -> IdentitySession | IdentityFailure: ...

    async def send_reset_message(self, email: str) -> IdentityFailure | None: ...

    async def verify_token(self, token: str) -> str | IdentityFailure: ...

    async def update_password(self, account_id: str, new_password: str) -> IdentityFailure | None: ...

    async def update_email(self, account_id: str, new_email: str) -> IdentityFailure | None: ...


def reason_for_error(exc: Exception) -> FailureReason:
    """Translate a provider or transport exception into a failure reason."""
    if isinstance(exc, (httpx.HTTPError, AuthRetryableError)):
        return FailureReason.TRANSPORT
    if isinstance(exc, JWTError):
        return FailureReason.INVALID_TOKEN
    if isinstance(exc, AuthError):
        reason = PROVIDER_ERROR_REASONS.get(getattr(exc, "code", None) or "")
        if reason is not None:
            return reason
        if getattr(exc, "status", None) == 429:
            return FailureReason.TOO_MANY_ATTEMPTS
    return FailureReason.UNKNOWN


class SupabaseIdentityProvider:
    """
    IdentityProvider backed by Supabase Auth.

    Sign-in, sign-up and reset mail go through the anon-key client; account
    updates go through the service-role admin API. Tokens are verified
    locally when a ``JWTValidator`` is given, otherwise by asking the
    provider for the token's user.

    No call is retried and nothing is cached. A timeout after a successful
    remote write is reported as a TRANSPORT failure even though the write
    took effect.

    Example:
        >>> provider = SupabaseIdentityProvider(client, admin_client, validator)
        >>> result = await provider.verify_password("a@x.com", "Secret1!")
        >>> if isinstance(result, IdentityFailure):
        ...     print(result.message)
    """

    def __init__(
        self,
        client: AsyncClient,
        admin_client: AsyncClient,
        jwt_validator: JWTValidator | None = None,
        password_reset_redirect_url: str | None = settings.password_reset_redirect_url,
    ) -> None:
        self.client = client
        self.admin_client = admin_client
        self.jwt_validator = jwt_validator
        self.password_reset_redirect_url = password_reset_redirect_url

    def _failure(self, exc: Exception, operation: str) -> IdentityFailure:
        reason = reason_for_error(exc)
        extra = {"error_type": f"identity_{operation}_failed", "reason": reason.value}
        if reason in (FailureReason.TRANSPORT, FailureReason.UNKNOWN):
            logger.error(f"Identity provider {operation} failed: {exc}", exc_info=True, extra=extra)
        else:
            logger.warning(f"Identity provider {operation} rejected: {exc}", extra=extra)
        return IdentityFailure(reason)

    @staticmethod
    def _session(response: Any, email: str) -> IdentitySession | IdentityFailure:
        user = getattr(response, "user", None)
        if user is None:
            return IdentityFailure(FailureReason.UNKNOWN)

        # Sign-up returns no session while email confirmation is pending
        session = getattr(response, "session", None)
        return IdentitySession(
            account_id=str(user.id),
            token=session.access_token if session else "",
            email=user.email or email,
            refresh_token=session.refresh_token if session else None,
            expires_in=session.expires_in if session else None,
        )

    async def verify_password(self, email: str, password: str) -> IdentitySession | IdentityFailure:
        try:
            response = await self.client.auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        except Exception as e:
            return self._failure(e, "sign_in")
        return self._session(response, email)

    async def create_account(self, email: str, password: str) -> IdentitySession | IdentityFailure:
        try:
            response = await self.client.auth.sign_up({"email": email, "password": password})
        except Exception as e:
            return self._failure(e, "sign_up")
        return self._session(response, email)

    async def send_reset_message(self, email: str) -> IdentityFailure | None:
        options = {}
        if self.password_reset_redirect_url:
            options["redirect_to"] = self.password_reset_redirect_url
        try:
            await self.client.auth.reset_password_for_email(email, options)
        except Exception as e:
            return self._failure(e, "password_reset")
        return None

    async def verify_token(self, token: str) -> str | IdentityFailure:
        try:
            if self.jwt_validator is not None:
                account_id = (await self.jwt_validator.verify_token(token)).sub
            else:
                response = await self.admin_client.auth.get_user(token)
                account_id = response.user.id if response and response.user else None
        except Exception as e:
            return self._failure(e, "verify_token")

        if not account_id:
            return IdentityFailure(FailureReason.INVALID_TOKEN)
        return str(account_id)

    async def update_password(self, account_id: str, new_password: str) -> IdentityFailure | None:
        try:
            await self.admin_client.auth.admin.update_user_by_id(
                account_id, {"password": new_password}
            )
        except Exception as e:
            return self._failure(e, "update_password")
        return None

    async def update_email(self, account_id: str, new_email: str) -> IdentityFailure | None:
        try:
            await self.admin_client.auth.admin.update_user_by_id(
                account_id, {"email": new_email, "email_confirm": True}
            )
        except Exception as e:
            return self._failure(e, "update_email")
        return None
