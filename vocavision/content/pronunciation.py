import asyncio
import base64
import logging
from io import BytesIO

from gtts import gTTS
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from vocavision.models import Word

logger = logging.getLogger(__name__)

AUDIO_DELAY = 1.5


def generate_gtts_audio(word: str, lang: str = "en") -> str:
    """MP3 pronunciation of ``word`` as base64."""
    buffer = BytesIO()
    gTTS(word, lang=lang).write_to_fp(buffer)
    return base64.b64encode(buffer.getvalue()).decode("utf-8")


async def synthesize_audio(word: str):
    # gTTS blocks on HTTP
    try:
        return await asyncio.to_thread(generate_gtts_audio, word)
    except Exception as e:
        logger.warning("Audio generation failed for %s: %s", word, e)
        return None


async def attach_audio(session: AsyncSession, word: Word) -> bool:
    sound_b64 = await synthesize_audio(word.word)
    if not sound_b64:
        return False
    word.audio_data = {**(word.audio_data or {}), "gtts": sound_b64}
    await session.commit()
    logger.info("Audio added: %s", word.word)
    return True


async def fill_missing_audio(session: AsyncSession, limit: int = 100, delay: float = None):
    """Adds gTTS audio to words that have none. Returns (added, failed)."""
    delay = AUDIO_DELAY if delay is None else delay
    result = await session.execute(select(Word).order_by(Word.id))
    words = [w for w in result.scalars().all() if not w.has_audio][:limit]
    logger.info("Found %d words without audio", len(words))

    added = failed = 0
    for i, word in enumerate(words):
        if await attach_audio(session, word):
            added += 1
        else:
            failed += 1
        if i < len(words) - 1:
            await asyncio.sleep(delay)
    return added, failed
