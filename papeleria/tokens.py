"""Signed session tokens (HS256 JWT)."""

import time

import jwt

TOKEN_LIFETIME_SECONDS = 72 * 3600
_HMAC_ALGORITHMS = ["HS256", "HS384", "HS512"]


def _key(secret) -> bytes:
    return secret.encode("utf-8") if isinstance(secret, str) else bytes(secret)


def generate_jwt(user_id: str, rol: str, secret) -> str:
    """Return a token carrying the user id and role, valid for 72 hours."""
    key = _key(secret)
    if not key:
        raise ValueError("empty signing key")
    claims = {
        "userId": user_id,
        "rol": rol,
        "exp": int(time.time()) + TOKEN_LIFETIME_SECONDS,
    }
    return jwt.encode(claims, key, algorithm="HS256")


def decode_jwt(token: str, secret) -> dict:
    """Verify a token and return its claims; raise jwt.InvalidTokenError if invalid."""
    key = _key(secret)
    if not key:
        raise jwt.InvalidTokenError("empty verification key")
    return jwt.decode(token, key, algorithms=_HMAC_ALGORITHMS)