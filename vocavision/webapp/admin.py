"""
Admin operations: word management, AI content, cross-exam deduplication, audio and circuit breakers.
"""
import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from vocavision.content import dedup
from vocavision.content.generator import (
    ContentGenerator, find_or_create_word, generate_batch, get_content_generator, save_generated_content,
)
from vocavision.content.pronunciation import attach_audio, fill_missing_audio
from vocavision.db import get_db
from vocavision.models import (
    Bookmark, Difficulty, Etymology, Example, ExamCategory, Mnemonic, User, UserProgress, Word, WordImage,
    WordVisual,
)
from vocavision.resilience import breakers
from vocavision.webapp.deps import require_admin
from vocavision.webapp.errors import AppError
from vocavision.webapp.schemas import (
    BatchGenerateRequest, DedupCheckRequest, DedupCopyRequest, GenerateContentRequest, WordBatchCreate,
    WordUpdate,
)
from vocavision.webapp.words import dump_word_detail, load_word_detail

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])

MAX_BATCH_WORDS = 50
MAX_AUDIO_FILL = 500

# Columns that may be edited but never cleared
REQUIRED_WORD_FIELDS = {
    "word", "definition", "difficulty", "exam_category", "frequency", "tags",
    "synonym_list", "antonym_list", "rhyming_words", "related_words",
}


async def _count(db: AsyncSession, query) -> int:
    return (await db.execute(query)).scalar_one()


async def _word_or_404(db: AsyncSession, word_id: int) -> Word:
    word = await load_word_detail(db, word_id)
    if not word:
        raise AppError("Word not found", 404)
    return word


# Dashboard and word management

@router.get("/stats")
async def get_dashboard_stats(db: AsyncSession = Depends(get_db)):
    by_exam = await db.execute(select(Word.exam_category, func.count(Word.id)).group_by(Word.exam_category))
    by_difficulty = await db.execute(select(Word.difficulty, func.count(Word.id)).group_by(Word.difficulty))
    stats = {
        "totalWords": await _count(db, select(func.count(Word.id))),
        "totalUsers": await _count(db, select(func.count(User.id))),
        "byExamCategory": {exam.value: n for exam, n in by_exam.all()},
        "byDifficulty": {difficulty.value: n for difficulty, n in by_difficulty.all()},
        "contentCoverage": {
            "hasEtymology": await _count(db, select(func.count(Etymology.id))),
            "hasMnemonic": await _count(db, select(func.count(Mnemonic.id))),
            "hasExamples": await _count(db, select(func.count(Example.id))),
            "hasMedia": await _count(db, select(func.count(WordImage.id))),
            "hasVisuals": await _count(db, select(func.count(WordVisual.id))),
        },
    }
    return {"stats": stats}


@router.post("/words/batch", status_code=201)
async def batch_create_words(data: WordBatchCreate, db: AsyncSession = Depends(get_db)):
    """Creates empty draft words, skipping ones the exam already has"""
    words = list(dict.fromkeys(w.strip().lower() for w in data.words if w.strip()))
    if not words:
        raise AppError("Words array is required", 400)

    result = await db.execute(
        select(func.lower(Word.word)).where(
            func.lower(Word.word).in_(words),
            Word.exam_category == data.exam_category,
        )
    )
    existing = set(result.scalars().all())
    new_words = [w for w in words if w not in existing]

    db.add_all(
        Word(
            word=text,
            definition="",
            difficulty=Difficulty.INTERMEDIATE,
            exam_category=data.exam_category,
            level=data.level or "L1",
            frequency=100,
            tags=[],
        )
        for text in new_words
    )
    await db.commit()

    logger.info("Batch created %d words for %s (%d skipped)",
                len(new_words), data.exam_category.value, len(words) - len(new_words))
    return {"created": len(new_words), "skipped": [w for w in words if w in existing]}


@router.get("/words/{word_id}")
async def get_admin_word(word_id: int, db: AsyncSession = Depends(get_db)):
    word = await _word_or_404(db, word_id)
    usage = {
        "learners": await _count(db, select(func.count(UserProgress.id)).where(UserProgress.word_id == word_id)),
        "bookmarks": await _count(db, select(func.count(Bookmark.id)).where(Bookmark.word_id == word_id)),
    }
    return {"word": dump_word_detail(word), "usage": usage}


@router.patch("/words/{word_id}")
async def update_word(word_id: int, data: WordUpdate, db: AsyncSession = Depends(get_db)):
    word = await _word_or_404(db, word_id)

    values = data.model_dump(exclude_unset=True)
    cleared = sorted(f for f, v in values.items() if v is None and f in REQUIRED_WORD_FIELDS)
    if cleared:
        raise AppError(f"Fields cannot be null: {', '.join(cleared)}", 400)
    if "word" in values:
        values["word"] = values["word"].strip()
        if not values["word"]:
            raise AppError("Word cannot be empty", 400)

    for field, value in values.items():
        setattr(word, field, value)
    await db.commit()

    word = await load_word_detail(db, word_id)
    return {"word": dump_word_detail(word)}


@router.delete("/words/{word_id}")
async def delete_word(word_id: int, db: AsyncSession = Depends(get_db)):
    # nested records go with the word through the relationship cascades
    word = await _word_or_404(db, word_id)
    text = word.word
    await db.delete(word)
    await db.commit()
    logger.info("Word %s (%s) deleted", word_id, text)
    return {"message": "Word deleted successfully"}


# AI content

@router.post("/content/generate")
async def generate_content(
        data: GenerateContentRequest,
        db: AsyncSession = Depends(get_db),
        generator: ContentGenerator = Depends(get_content_generator),
):
    """Generates content with Claude and stores it on the word"""
    if data.word_id:
        word = await db.get(Word, data.word_id)
        if not word:
            raise AppError("Word not found", 404)
    else:
        if not data.word.strip():
            raise AppError("Word is required", 400)
        word = await find_or_create_word(db, data.word, data.exam_category, data.cefr_level)

    content = await generator.generate(word.word, data.exam_category, data.cefr_level)
    await save_generated_content(db, word, content, generator.model)
    await db.commit()

    word = await load_word_detail(db, word.id)
    return {"word": dump_word_detail(word), "content": content}


@router.post("/content/batch")
async def generate_content_batch(
        data: BatchGenerateRequest,
        db: AsyncSession = Depends(get_db),
        generator: ContentGenerator = Depends(get_content_generator),
):
    """Generates a list of words in sequence and stores every successful result"""
    words = list(dict.fromkeys(w.strip().lower() for w in data.words if w.strip()))
    if not words:
        raise AppError("Words array is required", 400)
    if len(words) > MAX_BATCH_WORDS:
        raise AppError(f"At most {MAX_BATCH_WORDS} words per batch", 400)

    results = await generate_batch(generator, words, data.exam_category, data.cefr_level)
    for item in results:
        content = item.pop("content", None)
        if item["success"]:
            word = await find_or_create_word(db, item["word"], data.exam_category, data.cefr_level)
            await save_generated_content(db, word, content, generator.model)
            item["wordId"] = word.id
    await db.commit()

    succeeded = sum(1 for item in results if item["success"])
    return {
        "results": results,
        "summary": {"total": len(results), "succeeded": succeeded, "failed": len(results) - succeeded},
    }


@router.post("/content/dedup/check")
async def check_duplicates(data: DedupCheckRequest, db: AsyncSession = Depends(get_db)):
    results = await dedup.check_duplicates(db, data.words)
    new_count = sum(1 for r in results if r["isNew"])
    return {
        "results": results,
        "summary": {
            "total": len(results),
            "new": new_count,
            "existing": len(results) - new_count,
            "estimatedCost": round(new_count * dedup.COST_PER_WORD, 2),
        },
    }


@router.get("/content/dedup/stats")
async def deduplication_stats(source: ExamCategory = ExamCategory.CSAT, db: AsyncSession = Depends(get_db)):
    return {"source": source.value, "stats": await dedup.all_deduplication_stats(db, source)}


@router.post("/content/dedup/copy", status_code=201)
async def copy_word(data: DedupCopyRequest, db: AsyncSession = Depends(get_db)):
    copy = await dedup.copy_word_content(db, data.source_word_id, data.target_exam, data.target_level)
    await db.commit()

    word = await load_word_detail(db, copy.id)
    return {"success": True, "newWordId": copy.id, "word": dump_word_detail(word)}


@router.post("/words/{word_id}/audio")
async def generate_word_audio(word_id: int, db: AsyncSession = Depends(get_db)):
    word = await db.get(Word, word_id)
    if not word:
        raise AppError("Word not found", 404)

    if not await attach_audio(db, word):
        raise AppError("Audio generation failed", 502)
    return {"wordId": word.id, "hasAudio": word.has_audio}


@router.post("/audio/fill")
async def fill_audio(limit: int = Query(100, ge=1, le=MAX_AUDIO_FILL), db: AsyncSession = Depends(get_db)):
    added, failed = await fill_missing_audio(db, limit)
    logger.info("Audio fill finished: %d added, %d failed", added, failed)
    return {"added": added, "failed": failed}


@router.get("/circuits")
async def get_circuits():
    return {"circuits": breakers.all_metrics()}


@router.post("/circuits/{name}/reset")
async def reset_circuit(name: str):
    if not breakers.reset(name):
        raise AppError(f"Circuit not found: {name}", 404)
    logger.info("Circuit %s reset by admin", name)
    return {"success": True, "circuit": breakers.get(name).metrics()}
