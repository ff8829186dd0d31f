from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from vocavision.db import get_db
from vocavision.models import Bookmark, User, Word
from vocavision.webapp.deps import get_current_user
from vocavision.webapp.errors import AppError
from vocavision.webapp.schemas import BookmarkCreate, BookmarkNotes, BookmarkResponse, BookmarkWithWord
from vocavision.webapp.words import LIST_OPTIONS

router = APIRouter(prefix="/api/bookmarks", tags=["bookmarks"])


async def _find(db: AsyncSession, user_id: int, word_id: int):
    result = await db.execute(select(Bookmark).where(Bookmark.user_id == user_id, Bookmark.word_id == word_id))
    return result.scalar_one_or_none()


def _dump(bookmark: Bookmark) -> dict:
    return BookmarkResponse.model_validate(bookmark).model_dump(by_alias=True, mode="json")


@router.get("")
async def get_bookmarks(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    result = await db.execute(
        select(Bookmark)
        .options(selectinload(Bookmark.word).options(*LIST_OPTIONS))
        .where(Bookmark.user_id == user.id)
        .order_by(Bookmark.created_at.desc(), Bookmark.id.desc())
    )
    bookmarks = [
        BookmarkWithWord.model_validate(b).model_dump(by_alias=True, mode="json")
        for b in result.scalars().all()
    ]
    return {"bookmarks": bookmarks}


@router.post("", status_code=201)
async def add_bookmark(data: BookmarkCreate, user: User = Depends(get_current_user),
                       db: AsyncSession = Depends(get_db)):
    if not data.word_id:
        raise AppError("Word ID is required", 400)

    if not await db.get(Word, data.word_id):
        raise AppError("Word not found", 404)

    if await _find(db, user.id, data.word_id):
        raise AppError("Word already bookmarked", 409)

    bookmark = Bookmark(user_id=user.id, word_id=data.word_id, notes=data.notes)
    db.add(bookmark)
    await db.commit()
    return {"message": "Bookmark added successfully", "bookmark": _dump(bookmark)}


@router.delete("/{word_id}")
async def remove_bookmark(word_id: int, user: User = Depends(get_current_user),
                          db: AsyncSession = Depends(get_db)):
    bookmark = await _find(db, user.id, word_id)
    if not bookmark:
        raise AppError("Bookmark not found", 404)

    await db.delete(bookmark)
    await db.commit()
    return {"message": "Bookmark removed successfully"}


@router.patch("/{word_id}")
async def update_bookmark_notes(word_id: int, data: BookmarkNotes, user: User = Depends(get_current_user),
                                db: AsyncSession = Depends(get_db)):
    bookmark = await _find(db, user.id, word_id)
    if not bookmark:
        raise AppError("Bookmark not found", 404)

    bookmark.notes = data.notes
    await db.commit()
    return {"message": "Notes updated successfully", "bookmark": _dump(bookmark)}
