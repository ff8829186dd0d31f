import logging
from datetime import date, datetime

from fastapi import APIRouter, Depends
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from vocavision import srs
from vocavision.db import get_db
from vocavision.models import (
    User, Word, UserProgress, Review, StudySession, MasteryLevel, LearningMethod,
)
from vocavision.webapp.deps import get_current_user
from vocavision.webapp.errors import AppError
from vocavision.webapp.goals import roll_daily_goal
from vocavision.webapp.schemas import (
    DueReview, ProgressResponse, ProgressWithWord, ReviewHistoryItem, ReviewRequest, SessionEndRequest,
    SessionResponse, UserStats,
)
from vocavision.webapp.words import DETAIL_OPTIONS

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/progress", tags=["progress"])

HISTORY_LIMIT = 200


def _dump(schema, obj):
    return schema.model_validate(obj).model_dump(by_alias=True, mode="json")


async def due_progress(db: AsyncSession, user_id: int, now: datetime, limit: int = None):
    query = (
        select(UserProgress)
        .options(selectinload(UserProgress.word).options(*DETAIL_OPTIONS))
        .where(UserProgress.user_id == user_id, UserProgress.next_review_date <= now)
        .order_by(UserProgress.next_review_date)
    )
    if limit is not None:
        query = query.limit(limit)
    return (await db.execute(query)).scalars().all()


async def update_user_stats(db: AsyncSession, user: User, today: date):
    streak = srs.next_streak(user.last_active_date, user.current_streak or 0, today)
    mastered = await db.execute(
        select(func.count(UserProgress.id)).where(
            UserProgress.user_id == user.id,
            UserProgress.mastery_level == MasteryLevel.MASTERED,
        )
    )
    user.last_active_date = today
    user.current_streak = streak
    user.longest_streak = max(streak, user.longest_streak or 0)
    user.total_words_learned = mastered.scalar_one()


@router.get("")
async def get_user_progress(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    result = await db.execute(
        select(UserProgress)
        .options(selectinload(UserProgress.word))
        .where(UserProgress.user_id == user.id)
        .order_by(UserProgress.next_review_date)
    )
    return {
        "progress": [_dump(ProgressWithWord, p) for p in result.scalars().all()],
        "stats": _dump(UserStats, user),
    }


@router.get("/due")
async def get_due_reviews(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    reviews = await due_progress(db, user.id, datetime.utcnow())
    return {"reviews": [_dump(DueReview, p) for p in reviews], "count": len(reviews)}


@router.post("/review")
async def submit_review(data: ReviewRequest, user: User = Depends(get_current_user),
                        db: AsyncSession = Depends(get_db)):
    """One SM-2 step for a word, plus streak and daily goal bookkeeping"""
    if not data.word_id or data.rating is None:
        raise AppError("Word ID and rating are required", 400)
    if not 1 <= data.rating <= 5:
        raise AppError("Rating must be between 1 and 5", 400)

    if not await db.get(Word, data.word_id):
        raise AppError("Word not found", 404)

    if data.session_id is not None:
        session = await db.get(StudySession, data.session_id)
        if not session or session.user_id != user.id:
            raise AppError("Session not found", 404)

    now = datetime.utcnow()
    result = await db.execute(
        select(UserProgress).where(UserProgress.user_id == user.id, UserProgress.word_id == data.word_id)
    )
    progress = result.scalar_one_or_none()
    if progress is None:
        progress = UserProgress(
            user_id=user.id,
            word_id=data.word_id,
            ease_factor=2.5,
            interval=0,
            repetitions=0,
            next_review_date=srs.next_review_date(now, 1),
            mastery_level=MasteryLevel.NEW,
            correct_count=0,
            incorrect_count=0,
            total_reviews=0,
        )
        db.add(progress)

    ease, interval, repetitions = srs.calculate_next_review(
        data.rating, progress.ease_factor, progress.interval, progress.repetitions
    )
    passed = data.rating >= srs.PASSING_RATING

    progress.ease_factor = ease
    progress.interval = interval
    progress.repetitions = repetitions
    progress.next_review_date = srs.next_review_date(now, interval)
    progress.last_review_date = now
    progress.mastery_level = srs.mastery_for(repetitions, ease, progress.mastery_level)
    progress.correct_count += 1 if passed else 0
    progress.incorrect_count += 0 if passed else 1
    progress.total_reviews += 1

    db.add(Review(
        user_id=user.id,
        word_id=data.word_id,
        session_id=data.session_id,
        rating=data.rating,
        response_time=data.response_time,
        learning_method=data.learning_method or LearningMethod.FLASHCARD,
        created_at=now,
    ))
    await db.flush()

    today = date.today()
    await update_user_stats(db, user, today)
    roll_daily_goal(user, today)
    user.daily_progress = (user.daily_progress or 0) + 1
    await db.commit()

    logger.info("User %s reviewed word %s: rating %s, next in %d days",
                user.id, data.word_id, data.rating, interval)
    return {
        "message": "Review submitted successfully",
        "progress": _dump(ProgressResponse, progress),
        "nextReviewDate": progress.next_review_date.isoformat(),
    }


@router.post("/session/start")
async def start_session(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    session = StudySession(user_id=user.id, start_time=datetime.utcnow(), words_studied=0, words_correct=0)
    db.add(session)
    await db.commit()
    return {"session": _dump(SessionResponse, session)}


@router.post("/session/end")
async def end_session(data: SessionEndRequest, user: User = Depends(get_current_user),
                      db: AsyncSession = Depends(get_db)):
    session = await db.get(StudySession, data.session_id)
    if not session or session.user_id != user.id:
        raise AppError("Session not found", 404)

    session.end_time = datetime.utcnow()
    session.duration = int((session.end_time - session.start_time).total_seconds())
    session.words_studied = data.words_studied
    session.words_correct = data.words_correct
    await db.commit()
    return {"session": _dump(SessionResponse, session)}


@router.get("/history")
async def get_review_history(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    """Latest reviews with each word's current next review date"""
    reviews = (await db.execute(
        select(Review)
        .where(Review.user_id == user.id)
        .order_by(Review.created_at.desc(), Review.id.desc())
        .limit(HISTORY_LIMIT)
    )).scalars().all()

    next_dates = dict((await db.execute(
        select(UserProgress.word_id, UserProgress.next_review_date).where(UserProgress.user_id == user.id)
    )).all())

    now = datetime.utcnow()
    history = []
    for review in reviews:
        item = ReviewHistoryItem(
            id=review.id,
            word_id=review.word_id,
            session_id=review.session_id,
            rating=review.rating,
            response_time=review.response_time,
            learning_method=review.learning_method,
            created_at=review.created_at,
            next_review_date=next_dates.get(review.word_id, now),
        )
        history.append(item.model_dump(by_alias=True, mode="json"))
    return {"reviews": history}
