"""Authentication, per-request identity and admission gates."""

from src.skills_audit.auth.dependencies import (
    get_auth_service,
    get_identity_provider,
    get_request_identity,
    set_identity_provider,
)
from src.skills_audit.auth.gates import AdmissionRejected, AjaxGate, ModelGate, RoleGate, admit
from src.skills_audit.auth.identity import FailureReason, IdentityProvider, SupabaseIdentityProvider
from src.skills_audit.auth.jwks import JWKSCache
from src.skills_audit.auth.jwt_validator import JWTValidator
from src.skills_audit.auth.middleware import RequestIdentityMiddleware
from src.skills_audit.auth.models import AuthResult, RequestIdentity
from src.skills_audit.auth.service import AuthSessionService

__all__ = [
    "AdmissionRejected",
    "AjaxGate",
    "AuthResult",
    "AuthSessionService",
    "FailureReason",
    "IdentityProvider",
    "JWKSCache",
    "JWTValidator",
    "ModelGate",
    "RequestIdentity",
    "RequestIdentityMiddleware",
    "RoleGate",
    "SupabaseIdentityProvider",
    "admit",
    "get_auth_service",
    "get_identity_provider",
    "get_request_identity",
    "set_identity_provider",
]
