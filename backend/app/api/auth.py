"""Auth API routes: admin login, logout, me."""

import logging
import uuid
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth import create_access_token, get_current_admin, hash_password, verify_password
from app.config import get_settings
from app.database import get_db
from app.models import AdminUser
from app.rate_limit import FixedWindowRateLimiter, RateLimitExceeded

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

_settings = get_settings()
login_limiter = FixedWindowRateLimiter(
    limit=_settings.login_rate_limit,
    interval_seconds=_settings.login_rate_window_seconds,
)


# --- Schemas ---

class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class CreateAdminRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    name: str = Field("Admin", min_length=1, max_length=100)


class AdminResponse(BaseModel):
    id: uuid.UUID
    name: str
    email: str
    role: str
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class AuthResponse(BaseModel):
    access_token: str
    user: AdminResponse


# --- Endpoints ---

@router.post("/login", response_model=AuthResponse)
async def login(
    data: LoginRequest,
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db),
):
    client_ip = request.client.host if request.client else "anonymous"
    try:
        login_limiter.hit(f"login:{client_ip}")
    except RateLimitExceeded as exc:
        logger.warning("Login rate limit hit for %s", client_ip)
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many login attempts. Please try again later.",
            headers={"Retry-After": str(int(exc.retry_after) + 1)},
        )

    settings = get_settings()
    result = await db.execute(
        select(AdminUser).where(
            AdminUser.email == data.email.lower(),
            AdminUser.shop_id == settings.shop_uuid,
        )
    )
    user = result.scalar_one_or_none()
    if not user or not verify_password(data.password, user.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password")

    token = create_access_token(str(user.id), user.email)
    response.set_cookie(
        settings.auth_cookie_name,
        token,
        max_age=settings.jwt_expire_hours * 3600,
        path="/",
        secure=settings.is_production,
        httponly=True,
        samesite="strict",
    )
    logger.info("Admin %s logged in", user.email)
    return AuthResponse(
        access_token=token,
        user=AdminResponse.model_validate(user),
    )


@router.post("/logout")
async def logout(response: Response):
    response.delete_cookie(get_settings().auth_cookie_name, path="/")
    return {"status": "ok"}


@router.get("/me", response_model=AdminResponse)
async def me(user: AdminUser = Depends(get_current_admin)):
    return user


@router.post("/dev/create-admin", response_model=AdminResponse)
async def create_admin(data: CreateAdminRequest, db: AsyncSession = Depends(get_db)):
    """Development-only: create or reset an admin of the configured shop."""
    settings = get_settings()
    if settings.is_production:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="This endpoint is only available in development",
        )

    email = data.email.lower()
    result = await db.execute(
        select(AdminUser).where(AdminUser.email == email, AdminUser.shop_id == settings.shop_uuid)
    )
    user = result.scalar_one_or_none()
    if user:
        user.name = data.name
        user.password_hash = hash_password(data.password)
    else:
        user = AdminUser(
            shop_id=settings.shop_uuid,
            name=data.name,
            email=email,
            password_hash=hash_password(data.password),
            role="admin",
        )
        db.add(user)

    await db.flush()
    await db.refresh(user)
    logger.info("Admin %s created or updated via development endpoint", email)
    return user
