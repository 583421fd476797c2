"""Signing-key cache for local verification of identity-provider tokens."""

import logging
import time
from typing import Any

import httpx
from jose import jwk
from jose.backends.base import Key

logger = logging.getLogger(__name__)

# JWK key type -> signing algorithm used by the identity provider
_ALGORITHMS_BY_KEY_TYPE = {"RSA": "RS256", "EC": "ES256"}


def construct_key(key_data: dict[str, Any]) -> Key:
    """Build a public key object from a single JWK entry."""
    algorithm = _ALGORITHMS_BY_KEY_TYPE.get(key_data.get("kty", ""), key_data.get("alg", "RS256"))
    return jwk.construct(key_data, algorithm=algorithm)


class JWKSCache:
    """
    Caches the identity provider's published signing keys by key id.

    Keys are refetched when the TTL has elapsed, and once more when a token
    names a key id that is not cached (key rotation). The key map is replaced
    as a whole on refresh, never mutated in place.

    Example:
        >>> cache = JWKSCache("https://project.supabase.co/auth/v1/.well-known/jwks.json")
        >>> await cache.refresh_keys()
        >>> key = await cache.get_signing_key("key-id-123")
    """

    def __init__(
        self,
        jwks_url: str,
        cache_ttl: int = 3600,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.jwks_url = jwks_url
        self.cache_ttl = cache_ttl
        self._keys: dict[str, Key] = {}
        self._fetched_at: float | None = None
        self._http_client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(10.0, read=30.0)
        )

    @property
    def key_ids(self) -> list[str]:
        return list(self._keys)

    async def get_signing_key(self, kid: str) -> Key:
        """
        Return the public key for ``kid``, refreshing the cache when needed.

        Raises:
            KeyError: If the key id is unknown even after a refresh
            httpx.HTTPError: If the key set cannot be fetched
        """
        if self._is_stale():
            await self.refresh_keys()

        key = self._keys.get(kid)
        if key is None:
            logger.warning(
                f"Key ID '{kid}' not cached, refreshing signing keys",
                extra={"kid": kid, "cached_kids": self.key_ids},
            )
            await self.refresh_keys()
            key = self._keys.get(kid)

        if key is None:
            raise KeyError(f"Key ID '{kid}' not found in JWKS")
        return key

    async def refresh_keys(self) -> None:
        """
        Fetch the key set and replace the cache.

        Entries without a ``kid`` are skipped. An empty key set is cached as
        such; every verification fails until the provider publishes keys.

        Raises:
            httpx.HTTPError: If the request fails
        """
        logger.info(f"Fetching JWKS from {self.jwks_url}")
        try:
            response = await self._http_client.get(self.jwks_url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(
                f"Failed to fetch JWKS from {self.jwks_url}: {e}",
                exc_info=True,
                extra={"error_type": "jwks_fetch_failed"},
            )
            raise

        keys: dict[str, Key] = {}
        for key_data in response.json().get("keys", []):
            kid = key_data.get("kid")
            if not kid:
                logger.warning("JWKS key missing 'kid', skipping")
                continue
            keys[kid] = construct_key(key_data)

        if not keys:
            logger.warning("JWKS response contains no usable keys", extra={"jwks_url": self.jwks_url})

        self._keys = keys
        self._fetched_at = time.monotonic()
        logger.info(
            "JWKS cache refreshed",
            extra={"key_count": len(keys), "key_ids": list(keys), "ttl_seconds": self.cache_ttl},
        )

    def _is_stale(self) -> bool:
        if self._fetched_at is None:
            return True
        return time.monotonic() - self._fetched_at >= self.cache_ttl

    async def close(self) -> None:
        """Close the HTTP client; call on application shutdown."""
        await self._http_client.aclose()
        logger.info("JWKS cache closed")
