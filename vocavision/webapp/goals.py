from datetime import date

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from vocavision.db import get_db
from vocavision.models import User
from vocavision.webapp.deps import get_current_user
from vocavision.webapp.errors import AppError
from vocavision.webapp.schemas import GoalProgressRequest, GoalRequest

router = APIRouter(prefix="/api/goals", tags=["goals"])

MIN_GOAL = 1
MAX_GOAL = 100


def roll_daily_goal(user: User, today: date) -> bool:
    """Starts a new day of progress when the last reset was before ``today``."""
    if user.last_goal_reset is None or user.last_goal_reset < today:
        user.daily_progress = 0
        user.last_goal_reset = today
        return True
    return False


def goal_status(user: User) -> dict:
    goal = user.daily_goal or 0
    progress = user.daily_progress or 0
    return {
        "dailyGoal": goal,
        "dailyProgress": progress,
        "completed": progress >= goal,
        "percentage": min(100, round(progress / goal * 100)) if goal else 0,
    }


@router.get("/daily")
async def get_daily_goal(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    if roll_daily_goal(user, date.today()):
        await db.commit()
    return goal_status(user)


@router.put("/daily")
async def set_daily_goal(data: GoalRequest, user: User = Depends(get_current_user),
                         db: AsyncSession = Depends(get_db)):
    if data.goal is None or not MIN_GOAL <= data.goal <= MAX_GOAL:
        raise AppError(f"Goal must be between {MIN_GOAL} and {MAX_GOAL}", 400)

    user.daily_goal = data.goal
    await db.commit()
    return {"dailyGoal": user.daily_goal}


@router.post("/daily/progress")
async def add_daily_progress(data: GoalProgressRequest = GoalProgressRequest(),
                             user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    roll_daily_goal(user, date.today())
    user.daily_progress = (user.daily_progress or 0) + data.increment
    await db.commit()

    return {
        "dailyProgress": user.daily_progress,
        "dailyGoal": user.daily_goal,
        "completed": user.daily_progress >= user.daily_goal,
    }
