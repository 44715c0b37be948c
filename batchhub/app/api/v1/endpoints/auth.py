"""
Authentication API endpoints.

Email/password register, login, current user and logout.
"""

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from batchhub.app.db.session import get_db
from batchhub.app.models.user import User
from batchhub.app.schemas.auth import UserRegister, UserLogin, TokenResponse, UserResponse
from batchhub.app.core.security import get_password_hash, verify_password
from batchhub.app.core.jwt import create_access_token
from batchhub.app.core.dependencies import get_current_user, security
from batchhub.app.core.token_revocation import revoke_token
from batchhub.app.services.audit import log_event, log_auth_event, AuditAction

router = APIRouter(prefix="/auth", tags=["Authentication"])


def _token_for(user: User) -> TokenResponse:
    access_token = create_access_token(data={"sub": user.email, "user_id": user.id})
    return TokenResponse(
        access_token=access_token,
        token_type="bearer",
        user_id=user.id,
        email=user.email,
        name=user.name,
    )


def _client_ip(request: Request):
    return request.client.host if request.client else None


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserRegister,
    db: AsyncSession = Depends(get_db)
):
    """Register a new user and return a token for immediate use."""
    result = await db.execute(select(User).where(User.email == user_data.email))
    if result.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered"
        )

    new_user = User(
        email=user_data.email,
        name=user_data.name,
        hashed_password=get_password_hash(user_data.password),
        is_active=True,
    )
    db.add(new_user)
    await db.flush()

    await log_event(
        db=db,
        action=AuditAction.USER_CREATED,
        actor_id=new_user.id,
        actor_email=new_user.email,
        target_type="user",
        target_id=new_user.id,
    )
    await db.commit()
    await db.refresh(new_user)

    return _token_for(new_user)


@router.post("/login", response_model=TokenResponse)
async def login(
    credentials: UserLogin,
    request: Request,
    db: AsyncSession = Depends(get_db)
):
    """
    Login with email and password.

    Successful and failed attempts are written to the audit log.
    """
    result = await db.execute(select(User).where(User.email == credentials.email))
    user = result.scalar_one_or_none()

    if not user or not verify_password(credentials.password, user.hashed_password):
        await log_auth_event(
            db=db,
            action=AuditAction.LOGIN_FAILED,
            user_id=user.id if user else None,
            email=credentials.email,
            ip_address=_client_ip(request),
            metadata={"reason": "Invalid password" if user else "User not found"}
        )
        await db.commit()
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        await log_auth_event(
            db=db,
            action=AuditAction.LOGIN_FAILED,
            user_id=user.id,
            email=user.email,
            ip_address=_client_ip(request),
            metadata={"reason": "Account is inactive"}
        )
        await db.commit()
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Inactive user account"
        )

    await log_auth_event(
        db=db,
        action=AuditAction.LOGIN_SUCCESS,
        user_id=user.id,
        email=user.email,
        ip_address=_client_ip(request),
    )
    await db.commit()

    return _token_for(user)


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Return the authenticated user."""
    user = await db.get(User, current_user["user_id"])
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )
    return UserResponse.model_validate(user)


@router.post("/logout")
async def logout(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Revoke the presented token.

    Answers 503 when the revocation store is unreachable; the token stays valid.
    """
    revoked = await revoke_token(credentials.credentials, current_user["user_id"])

    await log_auth_event(
        db=db,
        action=AuditAction.TOKEN_REVOKED,
        user_id=current_user["user_id"],
        email=current_user.get("sub"),
        metadata={"revoked": revoked}
    )
    await db.commit()

    if not revoked:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Token could not be revoked, try again later"
        )

    return {"status": "success", "message": "Logged out successfully"}
