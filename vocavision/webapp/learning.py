"""
Premium learning endpoints (active subscription or trial).
"""
from datetime import date, datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from vocavision.db import get_db
from vocavision.models import User, Word, UserProgress
from vocavision.webapp.deps import require_subscription
from vocavision.webapp.errors import AppError
from vocavision.webapp.goals import roll_daily_goal
from vocavision.webapp.progress import due_progress
from vocavision.webapp.words import DETAIL_OPTIONS, dump_word_detail, load_word_detail

router = APIRouter(prefix="/api/learning", tags=["learning"])

MAX_FEED = 100


@router.get("/feed")
async def get_learning_feed(
        limit: Optional[int] = Query(None, ge=1),
        user: User = Depends(require_subscription),
        db: AsyncSession = Depends(get_db),
):
    """Due reviews first, then words the user has never studied"""
    if roll_daily_goal(user, date.today()):
        await db.commit()

    size = limit if limit is not None else max(user.daily_goal - user.daily_progress, 0)
    size = min(size, MAX_FEED)

    due = await due_progress(db, user.id, datetime.utcnow(), size)
    items = [{"type": "review", "word": dump_word_detail(p.word)} for p in due]

    remaining = size - len(items)
    if remaining > 0:
        studied = select(UserProgress.word_id).where(UserProgress.user_id == user.id)
        result = await db.execute(
            select(Word)
            .options(*DETAIL_OPTIONS)
            .where(Word.id.not_in(studied))
            .order_by(Word.frequency.desc(), Word.id)
            .limit(remaining)
        )
        items += [{"type": "new", "word": dump_word_detail(w)} for w in result.scalars().all()]

    return {
        "items": items,
        "dueCount": len(due),
        "newCount": len(items) - len(due),
        "dailyGoal": user.daily_goal,
        "dailyProgress": user.daily_progress,
    }


@router.get("/words/{word_id}/methods")
async def get_learning_methods(word_id: int, _user: User = Depends(require_subscription),
                               db: AsyncSession = Depends(get_db)):
    """Every study aid of one word, grouped by method"""
    word = await load_word_detail(db, word_id)
    if not word:
        raise AppError("Word not found", 404)

    detail = dump_word_detail(word)
    methods = ("images", "rhymes", "mnemonics", "etymology", "examples", "synonyms", "antonyms",
               "collocations", "visuals")
    return {"word": detail, "methods": {m: detail[m] for m in methods}}
