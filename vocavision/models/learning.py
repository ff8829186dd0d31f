from datetime import datetime

from sqlalchemy import (
    Column, Integer, String, Text, Float, Boolean, DateTime, JSON, Enum, ForeignKey,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from vocavision.models import Base
from vocavision.models.enums import MasteryLevel, LearningMethod


class Collection(Base):
    __tablename__ = "collections"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(128), nullable=False)
    description = Column(Text, nullable=True)
    icon = Column(String(32), nullable=True)
    is_public = Column(Boolean, default=True)
    word_ids = Column(JSON, default=lambda: [])  # list of Word.id
    created_at = Column(DateTime, default=datetime.utcnow)


class UserProgress(Base):
    __tablename__ = "user_progress"
    __table_args__ = (UniqueConstraint("user_id", "word_id", name="uq_progress_user_word"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    word_id = Column(Integer, ForeignKey("words.id", ondelete="CASCADE"), nullable=False, index=True)

    # SM-2 state
    ease_factor = Column(Float, nullable=False, default=2.5)
    interval = Column(Integer, nullable=False, default=0)  # days
    repetitions = Column(Integer, nullable=False, default=0)
    next_review_date = Column(DateTime, nullable=False, index=True)
    last_review_date = Column(DateTime, nullable=True)
    mastery_level = Column(Enum(MasteryLevel), nullable=False, default=MasteryLevel.NEW)

    correct_count = Column(Integer, nullable=False, default=0)
    incorrect_count = Column(Integer, nullable=False, default=0)
    total_reviews = Column(Integer, nullable=False, default=0)

    word = relationship("Word")


class Review(Base):
    __tablename__ = "reviews"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    word_id = Column(Integer, ForeignKey("words.id", ondelete="CASCADE"), nullable=False)
    session_id = Column(Integer, ForeignKey("study_sessions.id", ondelete="SET NULL"), nullable=True)
    rating = Column(Integer, nullable=False)  # 1..5
    response_time = Column(Integer, nullable=True)  # ms
    learning_method = Column(Enum(LearningMethod), nullable=False, default=LearningMethod.FLASHCARD)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)


class StudySession(Base):
    __tablename__ = "study_sessions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    start_time = Column(DateTime, nullable=False, default=datetime.utcnow)
    end_time = Column(DateTime, nullable=True)
    duration = Column(Integer, nullable=True)  # seconds
    words_studied = Column(Integer, default=0)
    words_correct = Column(Integer, default=0)


class Bookmark(Base):
    __tablename__ = "bookmarks"
    __table_args__ = (UniqueConstraint("user_id", "word_id", name="uq_bookmark_user_word"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    word_id = Column(Integer, ForeignKey("words.id", ondelete="CASCADE"), nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    word = relationship("Word")
