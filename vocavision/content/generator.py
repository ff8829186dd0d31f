"""
Word content generation with Claude.

The model answers with one JSON document (pronunciation, definitions,
etymology, morphology, collocations, rhyming, mnemonic, examples,
relatedWords). ``save_generated_content`` replaces the word's nested
records with it.
"""
import asyncio
import json
import logging
import re
from datetime import datetime

from anthropic import AsyncAnthropic
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from vocavision.config import get_settings
from vocavision.models import (
    Word, Example, Collocation, Synonym, Antonym, Rhyme, Mnemonic, Etymology, ExamCategory,
)
from vocavision.resilience import breakers
from vocavision.webapp.errors import AppError

logger = logging.getLogger(__name__)

MAX_TOKENS = 4096
BATCH_DELAY = 1.0

PART_OF_SPEECH = {
    "noun": "NOUN",
    "verb": "VERB",
    "adjective": "ADJECTIVE",
    "adverb": "ADVERB",
    "pronoun": "PRONOUN",
    "preposition": "PREPOSITION",
    "conjunction": "CONJUNCTION",
    "interjection": "INTERJECTION",
}

PROMPT_TEMPLATE = """You are an English vocabulary content expert writing study material for Korean learners.

## Input
- Word: {word}
- Exam category: {exam}
- CEFR level: {cefr}

## Produce
1. Pronunciation: IPA (US and UK) and a Hangul reading.
2. Definitions per part of speech, in English and Korean, each with an example.
3. Etymology: origin, source language and how it explains the meaning.
4. Morphology: prefix, root and suffix with their meanings.
5. 5-7 common collocations with Korean translations and their type (verb+noun, adj+noun ...).
6. 3-5 rhyming words and a tip for using them.
7. A creative mnemonic linking the sound of the word to its meaning through a Korean association,
   plus an English prompt for illustrating it.
8. 2-3 funny and 2-3 realistic example sentences with Korean translations.
9. 3-5 synonyms, 2-3 antonyms, 3-5 related words.

## Output
Answer with exactly one JSON block:

```json
{{
  "pronunciation": {{"ipaUs": "/.../", "ipaUk": "/.../", "korean": "..."}},
  "definitions": [
    {{"partOfSpeech": "noun", "definitionEn": "...", "definitionKo": "...", "exampleEn": "...", "exampleKo": "..."}}
  ],
  "etymology": {{"description": "...", "language": "Latin", "breakdown": "..."}},
  "morphology": {{
    "prefix": {{"part": "...", "meaning": "..."}},
    "root": {{"part": "...", "meaning": "..."}},
    "suffix": {{"part": "...", "meaning": "..."}},
    "note": "..."
  }},
  "collocations": [
    {{"phrase": "...", "translation": "...", "type": "verb+noun", "exampleEn": "...", "exampleKo": "..."}}
  ],
  "rhyming": {{"words": ["..."], "note": "..."}},
  "mnemonic": {{"description": "...", "koreanAssociation": "...", "imagePrompt": "..."}},
  "examples": [
    {{"sentenceEn": "...", "sentenceKo": "...", "isFunny": true, "source": "..."}}
  ],
  "relatedWords": {{"synonyms": ["..."], "antonyms": ["..."], "related": ["..."]}}
}}
```

Keep the difficulty and context suitable for {exam}. Make it fun and memorable.
"""

_FENCED_JSON = re.compile(r"```json\s*\n(.*?)\n\s*```", re.DOTALL)
_BARE_JSON = re.compile(r"\{.*\}", re.DOTALL)


def build_prompt(word: str, exam_category: ExamCategory, cefr_level: str) -> str:
    exam = exam_category.value if isinstance(exam_category, ExamCategory) else str(exam_category)
    return PROMPT_TEMPLATE.format(word=word, exam=exam, cefr=cefr_level)


def parse_generated(text: str) -> dict:
    match = _FENCED_JSON.search(text)
    raw = match.group(1) if match else None
    if raw is None:
        match = _BARE_JSON.search(text)
        if not match:
            raise AppError("No JSON found in response", 502)
        raw = match.group(0)

    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise AppError(f"Generated content is not valid JSON: {e}", 502)


class ContentGenerator:
    def __init__(self, client, model: str):
        self.client = client
        self.model = model

    async def generate(self, word: str, exam_category: ExamCategory, cefr_level: str) -> dict:
        prompt = build_prompt(word, exam_category, cefr_level)
        response = await breakers.call(
            "anthropic",
            self.client.messages.create,
            model=self.model,
            max_tokens=MAX_TOKENS,
            messages=[{"role": "user", "content": prompt}],
        )

        block = response.content[0]
        if block.type != "text":
            raise AppError("Unexpected response type", 502)
        return parse_generated(block.text)


def get_content_generator() -> ContentGenerator:
    settings = get_settings()
    if not settings.ANTHROPIC_API_KEY:
        raise AppError("Content generation is not configured", 503)
    return ContentGenerator(AsyncAnthropic(api_key=settings.ANTHROPIC_API_KEY), settings.ANTHROPIC_MODEL)


def _part(morphology: dict, key: str):
    return (morphology.get(key) or {}).get("part")


async def save_generated_content(session: AsyncSession, word: Word, content: dict, model: str = None):
    """Replaces the word's generated records; the caller commits."""
    for table in (Example, Collocation, Synonym, Antonym, Rhyme, Mnemonic):
        await session.execute(delete(table).where(table.word_id == word.id))

    definitions = content.get("definitions") or []
    primary = definitions[0] if definitions else {}
    if primary.get("definitionEn"):
        word.definition = primary["definitionEn"]
    if primary.get("definitionKo"):
        word.definition_ko = primary["definitionKo"]
    pos = PART_OF_SPEECH.get((primary.get("partOfSpeech") or "").lower())
    if pos:
        word.part_of_speech = pos

    pronunciation = content.get("pronunciation") or {}
    word.ipa_us = pronunciation.get("ipaUs")
    word.ipa_uk = pronunciation.get("ipaUk")
    word.pronunciation = pronunciation.get("korean")

    morphology = content.get("morphology") or {}
    word.prefix = _part(morphology, "prefix")
    word.root = _part(morphology, "root")
    word.suffix = _part(morphology, "suffix")
    word.morphology_note = morphology.get("note")

    related = content.get("relatedWords") or {}
    rhyming = content.get("rhyming") or {}
    word.synonym_list = related.get("synonyms") or []
    word.antonym_list = related.get("antonyms") or []
    word.related_words = related.get("related") or []
    word.rhyming_words = rhyming.get("words") or []

    word.ai_model = model or get_settings().ANTHROPIC_MODEL
    word.ai_generated_at = datetime.utcnow()

    etymology = content.get("etymology")
    if etymology:
        result = await session.execute(select(Etymology).where(Etymology.word_id == word.id))
        record = result.scalar_one_or_none()
        if record is None:
            record = Etymology(word_id=word.id)
            session.add(record)
        record.origin = etymology.get("description") or ""
        record.language = etymology.get("language")
        record.breakdown = etymology.get("breakdown")

    mnemonic = content.get("mnemonic")
    if mnemonic:
        session.add(Mnemonic(
            word_id=word.id,
            title="AI Generated Mnemonic",
            content=mnemonic.get("description") or "",
            korean_hint=mnemonic.get("koreanAssociation"),
            image_prompt=mnemonic.get("imagePrompt"),
            source="AI_GENERATED",
        ))

    for i, example in enumerate(content.get("examples") or []):
        session.add(Example(
            word_id=word.id,
            sentence=example.get("sentenceEn") or "",
            translation=example.get("sentenceKo"),
            is_funny=bool(example.get("isFunny")),
            source=example.get("source"),
            order=i,
        ))

    for i, collocation in enumerate(content.get("collocations") or []):
        session.add(Collocation(
            word_id=word.id,
            phrase=collocation.get("phrase") or "",
            translation=collocation.get("translation"),
            type=collocation.get("type"),
            example_en=collocation.get("exampleEn"),
            example_ko=collocation.get("exampleKo"),
            order=i,
        ))

    session.add_all(Synonym(word_id=word.id, synonym=s) for s in word.synonym_list)
    session.add_all(Antonym(word_id=word.id, antonym=a) for a in word.antonym_list)
    session.add_all(
        Rhyme(word_id=word.id, rhyming_word=r, similarity=0.8, example=rhyming.get("note"))
        for r in word.rhyming_words
    )

    await session.flush()
    logger.info("Generated content saved for word %s (%s)", word.id, word.word)


async def find_or_create_word(session: AsyncSession, text: str, exam_category: ExamCategory, level: str) -> Word:
    text = text.strip().lower()
    result = await session.execute(
        select(Word).where(Word.word == text, Word.exam_category == exam_category).limit(1)
    )
    word = result.scalar_one_or_none()
    if word is None:
        word = Word(word=text, definition="", exam_category=exam_category, level=level, frequency=100)
        session.add(word)
        await session.flush()
        logger.info("Created word record %s for %s", word.id, text)
    return word


async def generate_batch(generator: ContentGenerator, words, exam_category: ExamCategory, cefr_level: str,
                         delay: float = None):
    """Generates words one by one; a failure is recorded and the batch goes on."""
    delay = BATCH_DELAY if delay is None else delay
    results = []
    for i, word in enumerate(words):
        try:
            content = await generator.generate(word, exam_category, cefr_level)
            results.append({"word": word, "success": True, "content": content})
        except Exception as e:
            logger.warning("Content generation failed for %s: %s", word, e)
            results.append({"word": word, "success": False, "error": str(e)})

        if i < len(words) - 1:
            await asyncio.sleep(delay)
    return results
