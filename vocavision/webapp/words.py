import math
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from vocavision.db import get_db
from vocavision.models import Word, Difficulty, ExamCategory
from vocavision.webapp.deps import get_current_user, require_admin
from vocavision.webapp.errors import AppError
from vocavision.webapp.schemas import WordBrief, WordCreate, WordDetail, WordListItem, WordListResponse

router = APIRouter(prefix="/api/words", tags=["words"])

MAX_PUBLIC_LIMIT = 50
MAX_RANDOM_COUNT = 100

LIST_OPTIONS = (
    selectinload(Word.images),
    selectinload(Word.mnemonics),
    selectinload(Word.etymology),
)

DETAIL_OPTIONS = LIST_OPTIONS + (
    selectinload(Word.examples),
    selectinload(Word.rhymes),
    selectinload(Word.synonyms),
    selectinload(Word.antonyms),
    selectinload(Word.collocations),
    selectinload(Word.visuals),
)


async def load_word_detail(db: AsyncSession, word_id: int) -> Optional[Word]:
    """Word with every nested record, refreshed from the database."""
    result = await db.execute(
        select(Word)
        .options(*DETAIL_OPTIONS)
        .where(Word.id == word_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


def dump_words(words: List[Word]):
    return [WordListItem.model_validate(w).model_dump(by_alias=True, mode="json") for w in words]


def dump_word_detail(word: Word):
    return WordDetail.model_validate(word).model_dump(by_alias=True, mode="json")


def _filters(query, difficulty=None, exam_category=None, level=None):
    if difficulty:
        query = query.where(Word.difficulty == difficulty)
    if exam_category:
        query = query.where(Word.exam_category == exam_category)
    if level:
        query = query.where(Word.level == level)
    return query


@router.get("", response_model=WordListResponse)
async def get_words(
        page: int = Query(1, ge=1),
        limit: int = Query(20, ge=1, le=100),
        difficulty: Optional[Difficulty] = None,
        exam_category: Optional[ExamCategory] = Query(None, alias="examCategory"),
        level: Optional[str] = None,
        search: Optional[str] = None,
        db: AsyncSession = Depends(get_db),
        _user=Depends(get_current_user),
):
    """Paginated word list with filters"""
    query = _filters(select(Word), difficulty, exam_category, level)
    if search:
        query = query.where(Word.word.ilike(f"%{search}%"))

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar_one()

    result = await db.execute(
        query.options(*LIST_OPTIONS)
        .order_by(Word.frequency.desc(), Word.id)
        .offset((page - 1) * limit)
        .limit(limit)
    )
    words = result.scalars().all()

    return {
        "data": words,
        "words": words,
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "total_pages": math.ceil(total / limit),
        },
    }


@router.get("/public")
async def get_public_words(
        exam_category: Optional[ExamCategory] = Query(None, alias="examCategory"),
        difficulty: Optional[Difficulty] = None,
        limit: int = Query(10, ge=1),
        db: AsyncSession = Depends(get_db),
):
    """Public preview, no authentication"""
    limit = min(limit, MAX_PUBLIC_LIMIT)
    query = _filters(select(Word), difficulty, exam_category)
    result = await db.execute(query.order_by(Word.frequency.asc(), Word.id).limit(limit))
    words = result.scalars().all()
    return {"data": [WordBrief.model_validate(w).model_dump(by_alias=True, mode="json") for w in words]}


@router.get("/random")
async def get_random_words(
        count: int = 10,
        difficulty: Optional[Difficulty] = None,
        exam_category: Optional[ExamCategory] = Query(None, alias="examCategory"),
        db: AsyncSession = Depends(get_db),
        _user=Depends(get_current_user),
):
    """Random words for a study round"""
    count = max(1, min(count, MAX_RANDOM_COUNT))

    query = _filters(select(Word), difficulty, exam_category)
    result = await db.execute(query.options(*LIST_OPTIONS).order_by(func.random()).limit(count))
    return {"words": dump_words(result.scalars().all())}


@router.get("/{word_id}")
async def get_word(word_id: int, db: AsyncSession = Depends(get_db), _user=Depends(get_current_user)):
    word = await load_word_detail(db, word_id)
    if not word:
        raise AppError("Word not found", 404)
    return {"word": dump_word_detail(word)}


@router.post("", status_code=201)
async def create_word(data: WordCreate, db: AsyncSession = Depends(get_db), _admin=Depends(require_admin)):
    word = Word(
        word=data.word,
        definition=data.definition,
        definition_ko=data.definition_ko,
        pronunciation=data.pronunciation,
        phonetic=data.phonetic,
        part_of_speech=data.part_of_speech,
        difficulty=data.difficulty or Difficulty.INTERMEDIATE,
        exam_category=data.exam_category or ExamCategory.CSAT,
        level=data.level,
        frequency=data.frequency or 0,
        tags=data.tags or [],
        tips=data.tips,
    )
    db.add(word)
    await db.commit()

    word = await load_word_detail(db, word.id)
    return {"word": dump_word_detail(word)}
