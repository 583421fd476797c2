"""Shared fixtures for authentication tests."""

import time
from typing import Any

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from jose import jwk, jwt

ISSUER = "https://test.supabase.co/auth/v1"
KEY_ID = "key-1"


@pytest.fixture(scope="session")
def rsa_private_pem() -> bytes:
    """Provide a throwaway RSA private key in PEM form."""
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )


@pytest.fixture(scope="session")
def public_jwk(rsa_private_pem: bytes) -> dict[str, Any]:
    """Public half of the test key as a JWKS entry."""
    public = jwk.construct(rsa_private_pem, algorithm="RS256").public_key().to_dict()
    return {**public, "kid": KEY_ID, "use": "sig"}


@pytest.fixture
def make_token(rsa_private_pem: bytes):
    """Sign a token; override claims or the key id per test."""

    def _make(kid: str = KEY_ID, **overrides: Any) -> str:
        now = int(time.time())
        claims = {
            "sub": "user-1",
            "email": "thandi@example.com",
            "aud": "authenticated",
            "iss": ISSUER,
            "iat": now,
            "exp": now + 3600,
        }
        claims.update(overrides)
        return jwt.encode(claims, rsa_private_pem, algorithm="RS256", headers={"kid": kid})

    return _make
