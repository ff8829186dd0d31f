from sqlalchemy import (
    Column, Integer, String, Text, Float, Boolean, DateTime, JSON, Enum, ForeignKey,
    UniqueConstraint, func,
)
from sqlalchemy.orm import relationship

from vocavision.models import Base
from vocavision.models.enums import Difficulty, ExamCategory, VisualType


class Word(Base):
    __tablename__ = "words"

    id = Column(Integer, primary_key=True, autoincrement=True)
    word = Column(String(100), nullable=False, index=True)
    definition = Column(Text, nullable=False, default="")
    definition_ko = Column(Text, nullable=True)
    pronunciation = Column(String(255), nullable=True)  # Korean reading
    phonetic = Column(String(100), nullable=True)
    ipa_us = Column(String(100), nullable=True)
    ipa_uk = Column(String(100), nullable=True)
    part_of_speech = Column(String(32), nullable=True)
    difficulty = Column(Enum(Difficulty), nullable=False, default=Difficulty.INTERMEDIATE)
    exam_category = Column(Enum(ExamCategory), nullable=False, default=ExamCategory.CSAT)
    level = Column(String(16), nullable=True)
    frequency = Column(Integer, nullable=False, default=0)
    tags = Column(JSON, default=lambda: [])
    tips = Column(Text, nullable=True)

    # Morphology
    prefix = Column(String(64), nullable=True)
    root = Column(String(64), nullable=True)
    suffix = Column(String(64), nullable=True)
    morphology_note = Column(Text, nullable=True)

    synonym_list = Column(JSON, default=lambda: [])
    antonym_list = Column(JSON, default=lambda: [])
    rhyming_words = Column(JSON, default=lambda: [])
    related_words = Column(JSON, default=lambda: [])

    audio_data = Column(JSON, nullable=True)  # {"gtts": base64 mp3}

    ai_model = Column(String(64), nullable=True)
    ai_generated_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    examples = relationship("Example", cascade="all, delete-orphan", order_by="Example.order")
    images = relationship("WordImage", cascade="all, delete-orphan")
    rhymes = relationship("Rhyme", cascade="all, delete-orphan")
    mnemonics = relationship("Mnemonic", cascade="all, delete-orphan", order_by="Mnemonic.rating.desc()")
    etymology = relationship("Etymology", cascade="all, delete-orphan", uselist=False)
    synonyms = relationship("Synonym", cascade="all, delete-orphan")
    antonyms = relationship("Antonym", cascade="all, delete-orphan")
    collocations = relationship("Collocation", cascade="all, delete-orphan", order_by="Collocation.order")
    visuals = relationship("WordVisual", cascade="all, delete-orphan", order_by="WordVisual.order")

    @property
    def has_audio(self) -> bool:
        return bool(self.audio_data and self.audio_data.get("gtts"))


class Example(Base):
    __tablename__ = "word_examples"

    id = Column(Integer, primary_key=True, autoincrement=True)
    word_id = Column(Integer, ForeignKey("words.id", ondelete="CASCADE"), nullable=False, index=True)
    sentence = Column(Text, nullable=False)
    translation = Column(Text, nullable=True)
    is_funny = Column(Boolean, default=False)
    source = Column(String(255), nullable=True)
    order = Column(Integer, default=0)


class WordImage(Base):
    __tablename__ = "word_images"

    id = Column(Integer, primary_key=True, autoincrement=True)
    word_id = Column(Integer, ForeignKey("words.id", ondelete="CASCADE"), nullable=False, index=True)
    image_url = Column(Text, nullable=False)
    caption = Column(Text, nullable=True)


class Rhyme(Base):
    __tablename__ = "word_rhymes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    word_id = Column(Integer, ForeignKey("words.id", ondelete="CASCADE"), nullable=False, index=True)
    rhyming_word = Column(String(100), nullable=False)
    similarity = Column(Float, default=0.8)
    example = Column(Text, nullable=True)


class Mnemonic(Base):
    __tablename__ = "word_mnemonics"

    id = Column(Integer, primary_key=True, autoincrement=True)
    word_id = Column(Integer, ForeignKey("words.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    korean_hint = Column(Text, nullable=True)
    image_url = Column(Text, nullable=True)
    image_prompt = Column(Text, nullable=True)
    source = Column(String(32), default="MANUAL")
    rating = Column(Integer, default=0)


class Etymology(Base):
    __tablename__ = "word_etymologies"

    id = Column(Integer, primary_key=True, autoincrement=True)
    word_id = Column(Integer, ForeignKey("words.id", ondelete="CASCADE"), nullable=False, unique=True)
    origin = Column(Text, nullable=False)
    language = Column(String(64), nullable=True)
    breakdown = Column(Text, nullable=True)


class Synonym(Base):
    __tablename__ = "word_synonyms"

    id = Column(Integer, primary_key=True, autoincrement=True)
    word_id = Column(Integer, ForeignKey("words.id", ondelete="CASCADE"), nullable=False, index=True)
    synonym = Column(String(100), nullable=False)
    nuance = Column(Text, nullable=True)


class Antonym(Base):
    __tablename__ = "word_antonyms"

    id = Column(Integer, primary_key=True, autoincrement=True)
    word_id = Column(Integer, ForeignKey("words.id", ondelete="CASCADE"), nullable=False, index=True)
    antonym = Column(String(100), nullable=False)
    explanation = Column(Text, nullable=True)


class Collocation(Base):
    __tablename__ = "word_collocations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    word_id = Column(Integer, ForeignKey("words.id", ondelete="CASCADE"), nullable=False, index=True)
    phrase = Column(String(255), nullable=False)
    translation = Column(Text, nullable=True)
    type = Column(String(32), nullable=True)  # verb+noun, adj+noun ...
    example_en = Column(Text, nullable=True)
    example_ko = Column(Text, nullable=True)
    order = Column(Integer, default=0)


class WordVisual(Base):
    __tablename__ = "word_visuals"
    __table_args__ = (UniqueConstraint("word_id", "type", name="uq_word_visual_word_type"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    word_id = Column(Integer, ForeignKey("words.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(Enum(VisualType), nullable=False)
    label_en = Column(String(255), nullable=True)
    label_ko = Column(String(255), nullable=True)
    caption_en = Column(Text, nullable=True)
    caption_ko = Column(Text, nullable=True)
    image_url = Column(Text, nullable=True)
    prompt_en = Column(Text, nullable=True)
    order = Column(Integer, nullable=False, default=0)
