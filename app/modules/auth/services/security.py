"""
Password hashing and bearer-token helpers.

Passwords are hashed with bcrypt; tokens are HS256 JWTs whose ``sub`` claim is
the user id.
"""

from datetime import datetime, timedelta, timezone

import bcrypt
import jwt

from core.config import Settings
from core.exceptions import AuthError

# bcrypt only looks at the first 72 bytes of a password
_BCRYPT_MAX_BYTES = 72


def _pw_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    return bcrypt.hashpw(_pw_bytes(password), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(_pw_bytes(password), password_hash.encode("utf-8"))
    except ValueError:
        # malformed stored hash
        return False


def create_access_token(user_id: str, settings: Settings) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": user_id,
        "iat": now,
        "exp": now + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str, settings: Settings) -> str:
    """Return the user id carried by ``token`` or raise ``AuthError``."""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise AuthError("Not authorized, token expired")
    except jwt.InvalidTokenError:
        raise AuthError("Not authorized, token failed")

    user_id = payload.get("sub")
    if not user_id:
        raise AuthError("Not authorized, token failed")
    return user_id
