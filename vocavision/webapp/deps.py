import logging
from datetime import datetime, timedelta
from typing import Optional

import bcrypt
import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from vocavision.config import get_settings
from vocavision.db import get_db
from vocavision.models import User, UserRole, SubscriptionStatus
from vocavision.webapp.errors import AppError

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    rounds = get_settings().BCRYPT_ROUNDS
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def create_access_token(user_id: int, role: UserRole) -> str:
    settings = get_settings()
    payload = {
        "userId": user_id,
        "role": role.value,
        "exp": datetime.utcnow() + timedelta(days=settings.JWT_EXPIRES_DAYS),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm="HS256")


def decode_access_token(token: str) -> dict:
    return jwt.decode(token, get_settings().JWT_SECRET, algorithms=["HS256"])


async def _load_user(db: AsyncSession, user_id) -> Optional[User]:
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_current_user(
        credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
        db: AsyncSession = Depends(get_db),
) -> User:
    if credentials is None or not credentials.credentials:
        raise AppError("Access token required", 401)

    payload = decode_access_token(credentials.credentials)
    user = await _load_user(db, payload.get("userId"))
    if not user:
        logger.info("Token for unknown user %s", payload.get("userId"))
        raise AppError("User not found", 401)
    return user


async def get_optional_user(
        credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
        db: AsyncSession = Depends(get_db),
) -> Optional[User]:
    if credentials is None or not credentials.credentials:
        return None
    try:
        payload = decode_access_token(credentials.credentials)
    except jwt.InvalidTokenError:
        # anonymous access continues
        return None
    return await _load_user(db, payload.get("userId"))


def is_admin(user: User) -> bool:
    if user.role == UserRole.ADMIN:
        return True
    return (user.email or "").lower() in get_settings().ADMIN_EMAILS


async def require_admin(user: User = Depends(get_current_user)) -> User:
    if not is_admin(user):
        raise AppError("Admin access required", 403)
    return user


def has_active_subscription(user: User, now: Optional[datetime] = None) -> bool:
    now = now or datetime.utcnow()
    if user.subscription_status in (SubscriptionStatus.ACTIVE, SubscriptionStatus.TRIAL):
        return True
    return user.subscription_end is not None and user.subscription_end > now


async def require_subscription(user: User = Depends(get_current_user)) -> User:
    if not has_active_subscription(user):
        raise AppError(
            "Active subscription required",
            403,
            subscriptionStatus=user.subscription_status.value,
        )
    return user
