"""
Authentication service: registration, login and access-token refresh.
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from fastapi import HTTPException, status

from izuran.models.user import User
from izuran.schemas.user import UserCreate, UserLogin
from izuran.core.exceptions import Unauthorized, Forbidden
from izuran.core.metrics import record_token_refresh
from izuran.core.security import (
    hash_password,
    verify_password,
    create_access_token,
    create_refresh_token,
    decode_refresh_token,
)
from izuran.core.logging import get_logger

logger = get_logger(__name__)


def _claims(user: User) -> dict:
    return {"sub": str(user.id), "username": user.username, "role": user.role}


async def register_user(db: AsyncSession, user_data: UserCreate, role: str = "user") -> User:
    """
    Register a new user with hashed password.
    Raises 409 if email or username already exists.
    """
    result = await db.execute(select(User).where(User.email == user_data.email))
    if result.scalar_one_or_none():
        logger.warning("registration_failed", reason="email_exists", email=user_data.email)
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already registered",
        )

    result = await db.execute(select(User).where(User.username == user_data.username))
    if result.scalar_one_or_none():
        logger.warning("registration_failed", reason="username_exists", username=user_data.username)
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Username already taken",
        )

    user = User(
        email=user_data.email,
        username=user_data.username,
        hashed_password=hash_password(user_data.password),
        role=role,
    )
    try:
        async with db.begin_nested():
            db.add(user)
            await db.flush()
    except IntegrityError:
        logger.warning("registration_failed", reason="concurrent_duplicate", username=user_data.username)
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email or username already registered",
        )
    await db.refresh(user)

    logger.info("user_registered", user_id=user.id, role=user.role)
    return user


async def authenticate_user(db: AsyncSession, login_data: UserLogin) -> tuple[str, str]:
    """
    Check credentials and return (access_token, refresh_token).
    Raises 401 if credentials are invalid.
    """
    result = await db.execute(select(User).where(User.email == login_data.email))
    user = result.scalar_one_or_none()

    if not user or not verify_password(login_data.password, user.hashed_password):
        logger.warning("login_failed", email=login_data.email)
        raise Unauthorized("Invalid email or password")

    if not user.is_active:
        raise Forbidden("Account is deactivated")

    logger.info("user_logged_in", user_id=user.id)
    return create_access_token(_claims(user)), create_refresh_token(_claims(user))


async def refresh_access_token(db: AsyncSession, refresh_token: Optional[str]) -> str:
    """Exchange a refresh token for a new access token."""
    if not refresh_token:
        record_token_refresh(False)
        raise Unauthorized("Refresh token not found")

    payload = decode_refresh_token(refresh_token)
    if payload is None:
        record_token_refresh(False)
        raise Unauthorized("Invalid or expired refresh token")

    user = await db.get(User, int(payload["sub"]))
    if user is None or not user.is_active:
        record_token_refresh(False)
        raise Unauthorized("Account not found or deactivated")

    record_token_refresh(True)
    logger.info("access_token_refreshed", user_id=user.id)
    return create_access_token(_claims(user))
