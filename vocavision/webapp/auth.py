import logging
from datetime import datetime, timedelta

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from vocavision.config import get_settings
from vocavision.db import get_db
from vocavision.models import User, SubscriptionStatus
from vocavision.webapp.deps import (
    create_access_token, get_current_user, hash_password, verify_password,
)
from vocavision.webapp.errors import AppError
from vocavision.webapp.schemas import AuthResponse, LoginRequest, RegisterRequest, UserResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])

MIN_PASSWORD_LENGTH = 8


@router.post("/register", response_model=AuthResponse, status_code=201)
async def register(data: RegisterRequest, db: AsyncSession = Depends(get_db)):
    """Registration with a trial subscription"""
    if not data.email or not data.password:
        raise AppError("Email and password are required", 400)

    if len(data.password) < MIN_PASSWORD_LENGTH:
        raise AppError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters", 400)

    email = data.email.strip().lower()
    result = await db.execute(select(User).where(User.email == email))
    if result.scalar_one_or_none():
        raise AppError("User already exists", 409)

    user = User(
        email=email,
        password_hash=hash_password(data.password),
        name=data.name,
        subscription_status=SubscriptionStatus.TRIAL,
        trial_end=datetime.utcnow() + timedelta(days=get_settings().TRIAL_DAYS),
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    logger.info("User registered: %s", user.id)

    return {
        "message": "User registered successfully",
        "user": user,
        "token": create_access_token(user.id, user.role),
    }


@router.post("/login", response_model=AuthResponse)
async def login(data: LoginRequest, db: AsyncSession = Depends(get_db)):
    if not data.email or not data.password:
        raise AppError("Email and password are required", 400)

    result = await db.execute(select(User).where(User.email == data.email.strip().lower()))
    user = result.scalar_one_or_none()

    if not user or not verify_password(data.password, user.password_hash):
        raise AppError("Invalid credentials", 401)

    return {"message": "Login successful", "user": user, "token": create_access_token(user.id, user.role)}


@router.get("/me", response_model=UserResponse)
async def me(user: User = Depends(get_current_user)):
    return user
