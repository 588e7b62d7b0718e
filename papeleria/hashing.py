"""Password hashing with bcrypt."""

import bcrypt

BCRYPT_COST = 14
_MAX_PASSWORD_BYTES = 72


def hash_password(password: str) -> str:
    """Return a bcrypt hash of the password; longer than 72 bytes is refused."""
    raw = password.encode("utf-8")
    if len(raw) > _MAX_PASSWORD_BYTES:
        raise ValueError("bcrypt: password length exceeds 72 bytes")
    return bcrypt.hashpw(raw, bcrypt.gensalt(rounds=BCRYPT_COST)).decode("ascii")


def check_password_hash(password: str, hashed: str) -> bool:
    """Tell whether the password matches the hash; a malformed hash never matches."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False