"""ES256 access tokens.

The identity provider issues tokens; this service only verifies them and
turns the claims into a Principal (api.dependencies.require_user).
``create_access_token`` exists for tests and the demo script.

The key pair is generated per process, so tokens are only valid against
the process that minted them.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime, timedelta

import jwt
from cryptography.hazmat.primitives.asymmetric import ec

ALGORITHM = "ES256"
ISSUER = "mentorship-service"
AUDIENCE = "mentorship-service"
ACCESS_TOKEN_TTL_MIN = 60
REQUIRED_CLAIMS = ["sub", "role", "exp", "iat", "jti"]

_signing_key = ec.generate_private_key(ec.SECP256R1())
_verify_key = _signing_key.public_key()


def create_access_token(
    *,
    sub: str,
    role: str = "student",
    email: str | None = None,
    ttl_minutes: int = ACCESS_TOKEN_TTL_MIN,
) -> str:
    issued = datetime.now(UTC)
    claims: dict[str, object] = {
        "sub": sub,
        "role": role,
        "iss": ISSUER,
        "aud": AUDIENCE,
        "iat": issued,
        "exp": issued + timedelta(minutes=ttl_minutes),
        "jti": uuid.uuid4().hex,
    }
    if email:
        claims["email"] = email
    return jwt.encode(claims, _signing_key, algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict:
    """Return verified claims.

    Only ES256 is accepted. Raises jwt.ExpiredSignatureError or
    jwt.InvalidTokenError.
    """
    return jwt.decode(
        token,
        _verify_key,
        algorithms=[ALGORITHM],
        issuer=ISSUER,
        audience=AUDIENCE,
        options={"require": REQUIRED_CLAIMS},
    )
