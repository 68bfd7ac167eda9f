from datetime import UTC, datetime, timedelta
from typing import Any, Optional

import jwt
from passlib.context import CryptContext

from app.core.config import settings

# Password context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# bcrypt only looks at the first 72 bytes of a password
BCRYPT_MAX_BYTES = 72


def _truncate(password: str) -> str:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES].decode("utf-8", errors="ignore")


def get_password_hash(password: str) -> str:
    """Hashes a plain password with bcrypt."""
    return pwd_context.hash(_truncate(password))


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Checks a plain password against its stored bcrypt hash."""
    return pwd_context.verify(_truncate(plain_password), hashed_password)


def create_access_token(claims: dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """Signs the claims into a JWT that expires after the configured lifetime.

    Args:
        claims (dict[str, Any]): Public claims such as ``sub``, ``email`` and ``role``.
        expires_delta (Optional[timedelta]): Overrides the default lifetime.

    Returns:
        str: The encoded token.
    """
    payload = claims.copy()
    expire = datetime.now(UTC) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    payload.update({"exp": expire})
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict[str, Any]:
    """Verifies the signature and expiry of a token and returns its claims.

    Raises:
        jwt.ExpiredSignatureError: If the token has expired.
        jwt.InvalidTokenError: If the token is malformed or badly signed.
    """
    return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
