import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from vocavision.db import get_db
from vocavision.models import SubscriptionStatus, User
from vocavision.webapp.deps import get_current_user, has_active_subscription
from vocavision.webapp.errors import AppError
from vocavision.webapp.schemas import SubscriptionResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/subscription", tags=["subscription"])


def _dump(user: User) -> dict:
    return {
        **SubscriptionResponse.model_validate(user).model_dump(by_alias=True, mode="json"),
        "isActive": has_active_subscription(user),
    }


@router.get("")
async def get_subscription_status(user: User = Depends(get_current_user)):
    return _dump(user)


@router.post("/cancel")
async def cancel_subscription(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    """Stops renewal; access lasts until subscription_end"""
    if user.subscription_status not in (SubscriptionStatus.ACTIVE, SubscriptionStatus.TRIAL):
        raise AppError("No active subscription", 404)

    user.subscription_status = SubscriptionStatus.CANCELLED
    await db.commit()
    logger.info("User %s cancelled the subscription", user.id)
    return {"message": "Subscription cancelled", "subscription": _dump(user)}
