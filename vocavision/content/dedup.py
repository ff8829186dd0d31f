"""
Reuse of word content across exams.

Most TOEFL/TOEIC/TEPS/SAT words already exist for CSAT; copying their
content is cheaper than generating it again.
"""
import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from vocavision.models import (
    Word, Example, WordImage, Rhyme, Mnemonic, Etymology, Synonym, Antonym, Collocation,
    WordVisual, ExamCategory,
)
from vocavision.webapp.errors import AppError

logger = logging.getLogger(__name__)

# USD per generated word
COST_PER_WORD = 0.03

TARGET_EXAMS = [ExamCategory.TOEFL, ExamCategory.TOEIC, ExamCategory.TEPS, ExamCategory.SAT]

WORD_COLUMNS = (
    "word", "definition", "definition_ko", "pronunciation", "phonetic", "ipa_us", "ipa_uk",
    "part_of_speech", "difficulty", "frequency", "tags", "tips", "prefix", "root", "suffix",
    "morphology_note", "synonym_list", "antonym_list", "rhyming_words", "related_words", "audio_data",
    "ai_model", "ai_generated_at",
)


async def check_duplicates(session: AsyncSession, words):
    normalized = [w.lower().strip() for w in words]
    result = await session.execute(
        select(Word.id, Word.word, Word.exam_category, Word.level)
        .where(func.lower(Word.word).in_(normalized))
        .order_by(Word.id)
    )
    existing = {}
    for row in result.all():
        existing.setdefault(row.word.lower(), row)

    checked = []
    for word, key in zip(words, normalized):
        match = existing.get(key)
        checked.append({
            "word": word,
            "existingWordId": match.id if match else None,
            "existingExam": match.exam_category.value if match else None,
            "existingLevel": match.level if match else None,
            "isNew": match is None,
        })
    return checked


async def _word_set(session: AsyncSession, exam: ExamCategory):
    result = await session.execute(select(Word.word).where(Word.exam_category == exam))
    return {w.lower() for w in result.scalars().all()}


async def deduplication_stats(session: AsyncSession, source: ExamCategory, target: ExamCategory) -> dict:
    source_set = await _word_set(session, source)
    target_set = await _word_set(session, target)

    overlap = len(target_set & source_set)
    new_words = len(target_set) - overlap
    return {
        "sourceCount": len(source_set),
        "targetCount": len(target_set),
        "overlapCount": overlap,
        "overlapPercentage": round(overlap / len(target_set) * 100) if target_set else 0,
        "newWordsNeeded": new_words,
        "estimatedCost": round(new_words * COST_PER_WORD, 2),
        "estimatedSavings": round(overlap * COST_PER_WORD, 2),
    }


async def all_deduplication_stats(session: AsyncSession, source: ExamCategory = ExamCategory.CSAT) -> dict:
    stats = {}
    for target in TARGET_EXAMS:
        if target != source:
            stats[target.value] = await deduplication_stats(session, source, target)
    return stats


def _clone(record, model, *fields):
    return model(**{f: getattr(record, f) for f in fields})


async def copy_word_content(session: AsyncSession, source_word_id: int, target_exam: ExamCategory,
                            target_level: str) -> Word:
    """Copies a word and its nested content into another exam; the caller commits."""
    result = await session.execute(
        select(Word)
        .options(
            selectinload(Word.examples), selectinload(Word.images), selectinload(Word.rhymes),
            selectinload(Word.mnemonics), selectinload(Word.etymology), selectinload(Word.synonyms),
            selectinload(Word.antonyms), selectinload(Word.collocations), selectinload(Word.visuals),
        )
        .where(Word.id == source_word_id)
    )
    source = result.scalar_one_or_none()
    if source is None:
        raise AppError("Source word not found", 404)

    existing = await session.execute(
        select(Word.id).where(
            func.lower(Word.word) == source.word.lower(),
            Word.exam_category == target_exam,
        )
    )
    if existing.first():
        raise AppError("Word already exists in target exam", 409)

    copy = Word(exam_category=target_exam, level=target_level,
                **{c: getattr(source, c) for c in WORD_COLUMNS})
    copy.examples = [_clone(e, Example, "sentence", "translation", "is_funny", "source", "order")
                     for e in source.examples]
    copy.images = [_clone(i, WordImage, "image_url", "caption") for i in source.images]
    copy.rhymes = [_clone(r, Rhyme, "rhyming_word", "similarity", "example") for r in source.rhymes]
    copy.mnemonics = [
        _clone(m, Mnemonic, "title", "content", "korean_hint", "image_url", "image_prompt", "source", "rating")
        for m in source.mnemonics
    ]
    if source.etymology:
        copy.etymology = _clone(source.etymology, Etymology, "origin", "language", "breakdown")
    copy.synonyms = [_clone(s, Synonym, "synonym", "nuance") for s in source.synonyms]
    copy.antonyms = [_clone(a, Antonym, "antonym", "explanation") for a in source.antonyms]
    copy.collocations = [
        _clone(c, Collocation, "phrase", "translation", "type", "example_en", "example_ko", "order")
        for c in source.collocations
    ]
    copy.visuals = [
        _clone(v, WordVisual, "type", "label_en", "label_ko", "caption_en", "caption_ko", "image_url",
               "prompt_en", "order")
        for v in source.visuals
    ]

    session.add(copy)
    await session.flush()
    logger.info("Copied word %s (%s) to %s as %s", source.id, source.word, target_exam.value, copy.id)
    return copy
