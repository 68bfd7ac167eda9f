import logging

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.security import decode_access_token
from app.domain.user import UserPublic


logger = logging.getLogger(__name__)

# Setup Bearer Auth Security object
security = HTTPBearer(auto_error=False)

def authenticate(credentials: HTTPAuthorizationCredentials | None = Depends(security)) -> UserPublic:
    """Validates the bearer token sent in the Authorization header.

    Args:
        credentials (HTTPAuthorizationCredentials | None): The scheme and token
            parsed from the Authorization header, if any.

    Returns:
        UserPublic: The user the token was issued to.

    Raises:
        HTTPException: 401 status code if the token is missing, expired or invalid.
    """
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        payload = decode_access_token(credentials.credentials)
        return UserPublic(id=int(payload["sub"]), email=payload["email"], role=payload["role"])
    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token expired",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except (jwt.InvalidTokenError, KeyError, ValueError) as e:
        logger.warning(f"Rejected bearer token: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )
