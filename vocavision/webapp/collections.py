from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from vocavision.db import get_db
from vocavision.models import Collection, User, UserProgress, Word
from vocavision.webapp.deps import get_optional_user, require_admin
from vocavision.webapp.errors import AppError
from vocavision.webapp.schemas import CollectionCreate, CollectionResponse, CollectionUpdate, CollectionWords

router = APIRouter(prefix="/api/collections", tags=["collections"])


def _dump(collection: Collection) -> dict:
    return CollectionResponse.model_validate(collection).model_dump(by_alias=True, mode="json")


def _progress(progress: Optional[UserProgress]):
    if progress is None:
        return None
    return {
        "masteryLevel": progress.mastery_level.value,
        "correctCount": progress.correct_count,
        "totalReviews": progress.total_reviews,
        "lastReviewDate": progress.last_review_date.isoformat() if progress.last_review_date else None,
    }


async def _get_or_404(db: AsyncSession, collection_id: int) -> Collection:
    collection = await db.get(Collection, collection_id)
    if not collection:
        raise AppError("Collection not found", 404)
    return collection


@router.get("")
async def get_collections(db: AsyncSession = Depends(get_db)):
    result = await db.execute(
        select(Collection).where(Collection.is_public.is_(True)).order_by(Collection.created_at, Collection.id)
    )
    collections = [
        {
            **_dump(c),
            "wordCount": len(c.word_ids or []),
            "progressCount": 0,
            "masteredCount": 0,
            "progressPercentage": 0,
        }
        for c in result.scalars().all()
    ]
    return {"collections": collections}


@router.get("/{collection_id}")
async def get_collection(collection_id: int, user: Optional[User] = Depends(get_optional_user),
                         db: AsyncSession = Depends(get_db)):
    """Collection words with the caller's progress when signed in"""
    collection = await _get_or_404(db, collection_id)

    words = []
    if collection.word_ids:
        result = await db.execute(select(Word).where(Word.id.in_(collection.word_ids)).order_by(Word.id))
        words = result.scalars().all()

    progress_by_word = {}
    if user and words:
        result = await db.execute(
            select(UserProgress).where(
                UserProgress.user_id == user.id,
                UserProgress.word_id.in_([w.id for w in words]),
            )
        )
        progress_by_word = {p.word_id: p for p in result.scalars().all()}

    return {
        **_dump(collection),
        "words": [
            {
                "id": w.id,
                "word": w.word,
                "definition": w.definition,
                "pronunciation": w.pronunciation,
                "difficulty": w.difficulty.value,
                "progress": _progress(progress_by_word.get(w.id)),
            }
            for w in words
        ],
        "wordCount": len(words),
    }


@router.post("", status_code=201)
async def create_collection(data: CollectionCreate, db: AsyncSession = Depends(get_db),
                            _admin=Depends(require_admin)):
    collection = Collection(
        name=data.name,
        description=data.description,
        icon=data.icon,
        is_public=data.is_public,
        word_ids=data.word_ids,
    )
    db.add(collection)
    await db.commit()
    return {"collection": _dump(collection)}


@router.patch("/{collection_id}")
async def update_collection(collection_id: int, data: CollectionUpdate, db: AsyncSession = Depends(get_db),
                            _admin=Depends(require_admin)):
    collection = await _get_or_404(db, collection_id)
    for field, value in data.model_dump(exclude_unset=True).items():
        if field == "name" and not value:
            raise AppError("Collection name cannot be empty", 400)
        if value is None and field in ("is_public", "word_ids"):
            continue
        setattr(collection, field, value)
    await db.commit()
    return {"collection": _dump(collection)}


@router.delete("/{collection_id}")
async def delete_collection(collection_id: int, db: AsyncSession = Depends(get_db), _admin=Depends(require_admin)):
    collection = await _get_or_404(db, collection_id)
    await db.delete(collection)
    await db.commit()
    return {"message": "Collection deleted successfully"}


@router.post("/{collection_id}/words")
async def add_collection_words(collection_id: int, data: CollectionWords, db: AsyncSession = Depends(get_db),
                               _admin=Depends(require_admin)):
    if not data.word_ids:
        raise AppError("wordIds array is required", 400)
    collection = await _get_or_404(db, collection_id)

    # JSON column: assign a new list so the change is tracked
    collection.word_ids = list(dict.fromkeys([*(collection.word_ids or []), *data.word_ids]))
    await db.commit()
    return {"collection": _dump(collection), "added": len(data.word_ids), "total": len(collection.word_ids)}


@router.delete("/{collection_id}/words")
async def remove_collection_words(collection_id: int, data: CollectionWords, db: AsyncSession = Depends(get_db),
                                  _admin=Depends(require_admin)):
    if not data.word_ids:
        raise AppError("wordIds array is required", 400)
    collection = await _get_or_404(db, collection_id)

    removed = set(data.word_ids)
    collection.word_ids = [i for i in (collection.word_ids or []) if i not in removed]
    await db.commit()
    return {"collection": _dump(collection), "removed": len(data.word_ids), "total": len(collection.word_ids)}
