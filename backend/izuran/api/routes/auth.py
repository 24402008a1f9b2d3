"""
Authentication endpoints: register, login, refresh and logout.

Login returns the access token in the body and stores the refresh token in
an httpOnly cookie scoped to the auth routes.
"""

from typing import Optional

from fastapi import APIRouter, Cookie, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from izuran.db.session import get_db
from izuran.models.user import User
from izuran.schemas.user import UserCreate, UserResponse, UserLogin, Token
from izuran.services.auth_service import register_user, authenticate_user, refresh_access_token
from izuran.core.config import get_settings
from izuran.core.security import get_current_user

settings = get_settings()
router = APIRouter(prefix="/auth", tags=["Authentication"])

REFRESH_COOKIE_PATH = f"{settings.API_PREFIX}/auth"


def _set_refresh_cookie(response: Response, refresh_token: str) -> None:
    response.set_cookie(
        key=settings.REFRESH_COOKIE_NAME,
        value=refresh_token,
        max_age=settings.REFRESH_TOKEN_EXPIRE_HOURS * 3600,
        httponly=True,
        secure=settings.is_production,
        samesite="none" if settings.is_production else "lax",
        path=REFRESH_COOKIE_PATH,
    )


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(user_data: UserCreate, db: AsyncSession = Depends(get_db)):
    """Register a new user account."""
    return await register_user(db, user_data)


@router.post("/login", response_model=Token)
async def login(login_data: UserLogin, response: Response, db: AsyncSession = Depends(get_db)):
    """Authenticate; the refresh token is set as an httpOnly cookie."""
    access_token, refresh_token = await authenticate_user(db, login_data)
    _set_refresh_cookie(response, refresh_token)
    return Token(access_token=access_token)


@router.post("/refresh-token", response_model=Token)
async def refresh_token(
    db: AsyncSession = Depends(get_db),
    refresh_cookie: Optional[str] = Cookie(default=None, alias=settings.REFRESH_COOKIE_NAME),
):
    """Exchange the refresh-token cookie for a fresh access token."""
    access_token = await refresh_access_token(db, refresh_cookie)
    return Token(access_token=access_token)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout():
    response = Response(status_code=status.HTTP_204_NO_CONTENT)
    response.delete_cookie(settings.REFRESH_COOKIE_NAME, path=REFRESH_COOKIE_PATH)
    return response


@router.get("/me", response_model=UserResponse)
async def me(user: User = Depends(get_current_user)):
    return user
