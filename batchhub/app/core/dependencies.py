"""
Authentication dependencies for FastAPI.

This module provides dependencies for protecting routes with JWT authentication.
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from batchhub.app.core.exceptions import AuthenticationError
from batchhub.app.core.jwt import decode_access_token
from batchhub.app.core.token_revocation import is_token_revoked
from batchhub.app.db.session import get_db
from batchhub.app.models.user import User

# HTTP Bearer security scheme
security = HTTPBearer()


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> dict:
    """
    FastAPI dependency for JWT authentication.

    Checks:
    1. Token signature and expiry
    2. Token not revoked by logout
    3. User still exists and is active

    Returns:
        Decoded token payload ({"sub": email, "user_id": id, "exp": ...})

    Raises:
        AuthenticationError: 401 on any token failure
        HTTPException: 403 for inactive users
    """
    token = credentials.credentials

    payload = decode_access_token(token)
    if payload is None:
        raise AuthenticationError("Invalid token")

    user_id = payload.get("user_id")
    if not user_id:
        raise AuthenticationError("Invalid token payload")

    if await is_token_revoked(token):
        raise AuthenticationError("Token has been revoked")

    user = await db.get(User, user_id)

    if not user:
        raise AuthenticationError("User not found")

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is inactive",
        )

    return payload
