"""
Authentication: register, login, refresh, current user, delete account. Rate limited.
"""
from datetime import datetime, timezone
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from skillswap.api.middleware.auth import CurrentUserId
from skillswap.api.middleware.rate_limit import check_auth_rate_limit
from skillswap.config import get_settings
from skillswap.database.connection import get_db
from skillswap.models.user import User, RefreshToken
from skillswap.utils.security import (
    hash_password,
    verify_password,
    create_access_token,
    create_refresh_token,
    hash_refresh_token,
    get_refresh_token_expiry,
)
from skillswap.utils.validators import validate_email, validate_password_strength
from skillswap.utils.logger import get_logger

logger = get_logger(__name__)
router = APIRouter()


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=256)
    full_name: str | None = Field(None, max_length=255)
    location: str | None = Field(None, max_length=255)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., max_length=256)


class RefreshRequest(BaseModel):
    refresh_token: str = Field(..., min_length=1)


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int  # seconds


class UserResponse(BaseModel):
    id: str
    email: str
    full_name: str | None
    location: str | None


async def _issue_tokens(db: AsyncSession, user: User) -> TokenResponse:
    refresh = create_refresh_token()
    db.add(
        RefreshToken(
            user_id=user.id,
            token_hash=hash_refresh_token(refresh),
            expires_at=get_refresh_token_expiry(),
        )
    )
    await db.commit()
    return TokenResponse(
        access_token=create_access_token(str(user.id)),
        refresh_token=refresh,
        expires_in=get_settings().access_token_expire_minutes * 60,
    )


@router.post("/register", response_model=TokenResponse)
async def register(
    request: Request,
    body: RegisterRequest,
    db: AsyncSession = Depends(get_db),
):
    """Register a new user and sign them in."""
    check_auth_rate_limit(request)

    ok, msg = validate_password_strength(body.password)
    if not ok:
        raise HTTPException(status_code=400, detail=msg)
    if not validate_email(body.email):
        raise HTTPException(status_code=400, detail="Invalid email format")

    result = await db.execute(select(User).where(User.email == body.email.lower()))
    if result.scalar_one_or_none():
        raise HTTPException(status_code=400, detail="Email already registered")

    user = User(
        email=body.email.lower(),
        password_hash=hash_password(body.password),
        full_name=body.full_name,
        location=body.location,
    )
    db.add(user)
    await db.flush()
    tokens = await _issue_tokens(db, user)
    logger.info("User registered", extra={"user_id": str(user.id)})
    return tokens


@router.post("/login", response_model=TokenResponse)
async def login(
    request: Request,
    body: LoginRequest,
    db: AsyncSession = Depends(get_db),
):
    """Login. Returns access and refresh tokens."""
    check_auth_rate_limit(request)

    result = await db.execute(select(User).where(User.email == body.email.lower()))
    user = result.scalar_one_or_none()
    if not user or not verify_password(body.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid email or password")
    return await _issue_tokens(db, user)


@router.post("/refresh", response_model=TokenResponse)
async def refresh_tokens(
    request: Request,
    body: RefreshRequest,
    db: AsyncSession = Depends(get_db),
):
    """Rotate the refresh token and issue a new access token."""
    check_auth_rate_limit(request)

    token_hash = hash_refresh_token(body.refresh_token)
    result = await db.execute(
        select(RefreshToken, User).join(User, RefreshToken.user_id == User.id).where(
            RefreshToken.token_hash == token_hash,
            RefreshToken.expires_at > datetime.now(timezone.utc),
        )
    )
    row = result.one_or_none()
    if not row:
        raise HTTPException(status_code=401, detail="Invalid or expired refresh token")

    refresh_token_row, user = row
    await db.delete(refresh_token_row)
    return await _issue_tokens(db, user)


@router.get("/me", response_model=UserResponse)
async def get_me(
    user_id: CurrentUserId,
    db: AsyncSession = Depends(get_db),
):
    user = await db.get(User, UUID(user_id))
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return UserResponse(id=str(user.id), email=user.email, full_name=user.full_name, location=user.location)


@router.delete("/account")
async def delete_account(
    user_id: CurrentUserId,
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    """Permanently delete the current user's account, skills, swap requests and conversations."""
    check_auth_rate_limit(request)
    user = await db.get(User, UUID(user_id))
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    try:
        await db.delete(user)
        await db.commit()
    except Exception as e:
        await db.rollback()
        logger.exception("Account deletion failed: %s", e)
        raise HTTPException(
            status_code=500,
            detail="Failed to delete account. Please try again or contact support.",
        ) from e
    logger.info("User account deleted", extra={"user_id": user_id})
    return {"detail": "Account and all data have been deleted."}
