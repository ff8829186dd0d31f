"""
Word visuals: one CONCEPT, MNEMONIC and RHYME image per word.
"""
import logging

from fastapi import APIRouter, Body, Depends
from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from vocavision.content.images import ImagePipeline, get_image_pipeline
from vocavision.db import get_db
from vocavision.models import Word, WordVisual, VisualType, VISUAL_TYPE_ORDER
from vocavision.webapp.deps import require_admin
from vocavision.webapp.errors import AppError
from vocavision.webapp.schemas import VisualInput, VisualResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/words", tags=["visuals"], dependencies=[Depends(require_admin)])

VISUAL_FIELDS = ("label_en", "label_ko", "caption_en", "caption_ko", "image_url", "prompt_en")


def parse_visual_type(value) -> VisualType:
    try:
        return VisualType(value)
    except ValueError:
        raise AppError(f"Invalid visual type: {value}", 400)


def default_order(visual_type: VisualType) -> int:
    return VISUAL_TYPE_ORDER.index(visual_type)


def _dump(visuals):
    return [VisualResponse.model_validate(v).model_dump(by_alias=True, mode="json") for v in visuals]


async def _get_word(db: AsyncSession, word_id: int) -> Word:
    word = await db.get(Word, word_id)
    if not word:
        raise AppError("Word not found", 404)
    return word


async def _find_visual(db: AsyncSession, word_id: int, visual_type: VisualType):
    result = await db.execute(
        select(WordVisual).where(WordVisual.word_id == word_id, WordVisual.type == visual_type)
    )
    return result.scalar_one_or_none()


async def upsert_visual(db: AsyncSession, word_id: int, visual_type: VisualType, values: dict,
                        order=None) -> WordVisual:
    """Insert or update the (word, type) visual; only the given fields change."""
    visual = await _find_visual(db, word_id, visual_type)
    if visual is None:
        visual = WordVisual(word_id=word_id, type=visual_type)
        db.add(visual)
    for field, value in values.items():
        setattr(visual, field, value)
    visual.order = order if order is not None else default_order(visual_type)
    await db.flush()
    return visual


async def _list_visuals(db: AsyncSession, word_id: int):
    result = await db.execute(
        select(WordVisual)
        .where(WordVisual.word_id == word_id)
        .order_by(WordVisual.order)
        .execution_options(populate_existing=True)
    )
    return result.scalars().all()


@router.get("/{word_id}/visuals")
async def get_word_visuals(word_id: int, db: AsyncSession = Depends(get_db)):
    """Visuals of a word in display order"""
    return {"visuals": _dump(await _list_visuals(db, word_id))}


@router.put("/{word_id}/visuals")
async def update_word_visuals(word_id: int, payload: dict = Body(...), db: AsyncSession = Depends(get_db)):
    """Bulk upsert keyed on (word, type)"""
    raw = payload.get("visuals")
    if not isinstance(raw, list):
        raise AppError("visuals must be an array", 400)

    items = []
    for entry in raw:
        try:
            item = VisualInput.model_validate(entry)
        except ValidationError as e:
            raise AppError(f"Invalid visual: {e.errors()[0]['msg']}", 400)
        items.append((parse_visual_type(item.type), item))

    await _get_word(db, word_id)

    saved = []
    for visual_type, item in items:
        values = item.model_dump(include=set(VISUAL_FIELDS), exclude_unset=True)
        saved.append(await upsert_visual(db, word_id, visual_type, values, item.order))
    await db.commit()

    logger.info("Word %s: %d visuals saved", word_id, len(saved))
    return {"visuals": _dump(saved)}


@router.delete("/{word_id}/visuals/{visual_type}")
async def delete_word_visual(word_id: int, visual_type: str, db: AsyncSession = Depends(get_db)):
    vtype = parse_visual_type(visual_type)
    visual = await _find_visual(db, word_id, vtype)
    if not visual:
        raise AppError("Visual not found", 404)

    await db.delete(visual)
    await db.commit()
    return {"success": True}


@router.post("/{word_id}/visuals/{visual_type}/generate")
async def generate_word_visual(
        word_id: int,
        visual_type: str,
        db: AsyncSession = Depends(get_db),
        pipeline: ImagePipeline = Depends(get_image_pipeline),
):
    """Generates the image with Stability AI, hosts it on Cloudinary, stores the visual"""
    vtype = parse_visual_type(visual_type)
    word = await _get_word(db, word_id)

    existing = await _find_visual(db, word_id, vtype)
    mnemonic_text = existing.caption_en if existing and existing.caption_en else ""
    prompt = pipeline.build_prompt(vtype, word.word, word.definition, mnemonic_text)

    result = await pipeline.generate_and_upload(prompt, vtype, word.word)
    if result is None:
        raise AppError("Image generation returned no image", 502)

    values = {field: getattr(existing, field) for field in VISUAL_FIELDS} if existing else {}
    values["image_url"] = result.image_url
    values["prompt_en"] = prompt
    visual = await upsert_visual(db, word_id, vtype, values, existing.order if existing else None)
    await db.commit()

    return {
        "visual": VisualResponse.model_validate(visual).model_dump(by_alias=True, mode="json"),
        "publicId": result.public_id,
        "seed": result.seed,
    }
