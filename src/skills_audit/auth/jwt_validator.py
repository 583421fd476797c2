"""Local verification of Supabase Auth access tokens."""

import logging

from jose import JWTError, jwt
from pydantic import BaseModel, ConfigDict, ValidationError

from src.skills_audit.auth.jwks import JWKSCache

logger = logging.getLogger(__name__)

SIGNING_ALGORITHMS = ["RS256", "ES256"]


class TokenClaims(BaseModel):
    """The claims the application reads from a verified access token."""

    model_config = ConfigDict(extra="ignore")

    sub: str
    exp: int
    email: str | None = None
    role: str | None = None
    session_id: str | None = None


class JWTValidator:
    """
    Checks access tokens against the provider's published signing keys.

    A token is accepted when its ``kid`` names a known key, the signature
    verifies, it has not expired (within ``leeway`` seconds), and ``iss`` and
    ``aud`` match. Only the account id (``sub``) is trusted afterwards; the
    caller's role always comes from the profile document, never the token.
    """

    def __init__(
        self,
        jwks_cache: JWKSCache,
        issuer: str,
        audience: str = "authenticated",
        leeway: int = 10,
    ):
        self.jwks_cache = jwks_cache
        self.issuer = issuer
        self.audience = audience
        self.leeway = leeway

    async def _signing_key(self, token: str):
        kid = jwt.get_unverified_header(token).get("kid")
        if not kid:
            raise JWTError("Token header has no key id")
        try:
            return await self.jwks_cache.get_signing_key(kid)
        except KeyError as e:
            raise JWTError(f"Unknown signing key {kid}") from e

    async def verify_token(self, token: str) -> TokenClaims:
        """
        Verify ``token`` and return its claims.

        Raises:
            JWTError: Malformed, expired, wrongly signed or addressed tokens,
                and tokens without a subject
        """
        try:
            key = await self._signing_key(token)
            payload = jwt.decode(
                token,
                key,
                algorithms=SIGNING_ALGORITHMS,
                audience=self.audience,
                issuer=self.issuer,
                options={"require_exp": True, "require_sub": True, "leeway": self.leeway},
            )
            claims = TokenClaims.model_validate(payload)
        except ValidationError as e:
            logger.warning(f"Token claims rejected: {e}", extra={"error_type": "jwt_claims_invalid"})
            raise JWTError("Token claims are invalid") from e
        except JWTError as e:
            logger.info(f"Token rejected: {e}", extra={"error_type": "jwt_rejected"})
            raise

        logger.debug("Token verified", extra={"user_id": claims.sub, "exp": claims.exp})
        return claims
