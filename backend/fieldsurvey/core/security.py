"""JWT token helpers.

Login and account management live outside this service; tokens only carry
the surveyor's identity and role.
"""

import uuid
from datetime import datetime, timedelta, timezone

import jwt

from fieldsurvey.config import settings
from fieldsurvey.models.enums import UserRole


def create_access_token(
    user_id: uuid.UUID,
    role: UserRole,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a JWT access token."""
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(hours=settings.JWT_EXPIRY_HOURS))
    payload = {
        "sub": str(user_id),
        "role": role.value,
        "iat": now,
        "exp": expire,
        "jti": str(uuid.uuid4()),
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict:
    """Decode and validate a JWT access token. Raises jwt.PyJWTError on failure."""
    return jwt.decode(
        token,
        settings.SECRET_KEY,
        algorithms=[settings.JWT_ALGORITHM],
    )
