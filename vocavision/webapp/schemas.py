from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from vocavision.models.enums import (
    UserRole, SubscriptionStatus, SubscriptionPlan, Difficulty, ExamCategory,
    VisualType, MasteryLevel, LearningMethod,
)


class CamelModel(BaseModel):
    """Snake_case attributes, camelCase JSON (the web client's convention)."""

    class Config:
        from_attributes = True
        alias_generator = to_camel
        populate_by_name = True


# Users / auth
class RegisterRequest(CamelModel):
    email: Optional[str] = None
    password: Optional[str] = None
    name: Optional[str] = None


class LoginRequest(CamelModel):
    email: Optional[str] = None
    password: Optional[str] = None


class UserResponse(CamelModel):
    id: int
    email: str
    name: Optional[str]
    role: UserRole
    subscription_status: SubscriptionStatus
    trial_end: Optional[datetime]
    current_streak: int
    longest_streak: int
    total_words_learned: int
    daily_goal: int


class AuthResponse(CamelModel):
    message: Optional[str] = None
    user: UserResponse
    token: str


# Words
class ExampleResponse(CamelModel):
    id: int
    sentence: str
    translation: Optional[str]
    is_funny: bool
    source: Optional[str]
    order: int


class ImageResponse(CamelModel):
    id: int
    image_url: str
    caption: Optional[str]


class RhymeResponse(CamelModel):
    id: int
    rhyming_word: str
    similarity: Optional[float]
    example: Optional[str]


class MnemonicResponse(CamelModel):
    id: int
    title: str
    content: str
    korean_hint: Optional[str]
    image_url: Optional[str]
    image_prompt: Optional[str]
    source: Optional[str]
    rating: int


class EtymologyResponse(CamelModel):
    origin: str
    language: Optional[str]
    breakdown: Optional[str]


class SynonymResponse(CamelModel):
    synonym: str
    nuance: Optional[str]


class AntonymResponse(CamelModel):
    antonym: str
    explanation: Optional[str]


class CollocationResponse(CamelModel):
    phrase: str
    translation: Optional[str]
    type: Optional[str]
    example_en: Optional[str]
    example_ko: Optional[str]
    order: int


class VisualResponse(CamelModel):
    id: int
    word_id: int
    type: VisualType
    label_en: Optional[str]
    label_ko: Optional[str]
    caption_en: Optional[str]
    caption_ko: Optional[str]
    image_url: Optional[str]
    prompt_en: Optional[str]
    order: int


class WordBrief(CamelModel):
    id: int
    word: str
    definition: str
    definition_ko: Optional[str] = None
    pronunciation: Optional[str] = None
    phonetic: Optional[str] = None
    part_of_speech: Optional[str] = None
    difficulty: Difficulty
    exam_category: ExamCategory
    tips: Optional[str] = None


class WordListItem(WordBrief):
    level: Optional[str]
    frequency: int
    tags: List[str] = []
    images: List[ImageResponse] = []
    mnemonics: List[MnemonicResponse] = []
    etymology: Optional[EtymologyResponse] = None


class WordDetail(WordListItem):
    ipa_us: Optional[str]
    ipa_uk: Optional[str]
    prefix: Optional[str]
    root: Optional[str]
    suffix: Optional[str]
    morphology_note: Optional[str]
    synonym_list: List[str] = []
    antonym_list: List[str] = []
    rhyming_words: List[str] = []
    related_words: List[str] = []
    has_audio: bool = False
    ai_model: Optional[str]
    ai_generated_at: Optional[datetime]
    examples: List[ExampleResponse] = []
    rhymes: List[RhymeResponse] = []
    synonyms: List[SynonymResponse] = []
    antonyms: List[AntonymResponse] = []
    collocations: List[CollocationResponse] = []
    visuals: List[VisualResponse] = []


class WordCreate(CamelModel):
    word: str
    definition: str
    definition_ko: Optional[str] = None
    pronunciation: Optional[str] = None
    phonetic: Optional[str] = None
    part_of_speech: Optional[str] = None
    difficulty: Optional[Difficulty] = None
    exam_category: Optional[ExamCategory] = None
    level: Optional[str] = None
    frequency: Optional[int] = None
    tags: Optional[List[str]] = None
    tips: Optional[str] = None


class WordUpdate(WordCreate):
    word: Optional[str] = None
    definition: Optional[str] = None
    ipa_us: Optional[str] = None
    ipa_uk: Optional[str] = None
    prefix: Optional[str] = None
    root: Optional[str] = None
    suffix: Optional[str] = None
    morphology_note: Optional[str] = None
    synonym_list: Optional[List[str]] = None
    antonym_list: Optional[List[str]] = None
    rhyming_words: Optional[List[str]] = None
    related_words: Optional[List[str]] = None


class WordBatchCreate(CamelModel):
    words: List[str] = []
    exam_category: ExamCategory = ExamCategory.CSAT
    level: Optional[str] = None


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int


class WordListResponse(CamelModel):
    data: List[WordListItem]
    words: List[WordListItem]
    pagination: Pagination


# Visuals
class VisualInput(CamelModel):
    type: str
    label_en: Optional[str] = None
    label_ko: Optional[str] = None
    caption_en: Optional[str] = None
    caption_ko: Optional[str] = None
    image_url: Optional[str] = None
    prompt_en: Optional[str] = None
    order: Optional[int] = None


# Progress
class ProgressResponse(CamelModel):
    id: int
    word_id: int
    ease_factor: float
    interval: int
    repetitions: int
    next_review_date: datetime
    last_review_date: Optional[datetime]
    mastery_level: MasteryLevel
    correct_count: int
    incorrect_count: int
    total_reviews: int


class ProgressWithWord(ProgressResponse):
    word: WordBrief


class DueReview(ProgressResponse):
    word: WordDetail


class UserStats(CamelModel):
    total_words_learned: int
    current_streak: int
    longest_streak: int
    last_active_date: Optional[date]


class ReviewRequest(CamelModel):
    word_id: Optional[int] = None
    rating: Optional[int] = None
    response_time: Optional[int] = None
    learning_method: Optional[LearningMethod] = None
    session_id: Optional[int] = None


class ReviewResponse(CamelModel):
    id: int
    word_id: int
    session_id: Optional[int]
    rating: int
    response_time: Optional[int]
    learning_method: LearningMethod
    created_at: datetime


class ReviewHistoryItem(ReviewResponse):
    next_review_date: datetime


class SessionResponse(CamelModel):
    id: int
    start_time: datetime
    end_time: Optional[datetime]
    duration: Optional[int]
    words_studied: Optional[int]
    words_correct: Optional[int]


class SessionEndRequest(CamelModel):
    session_id: int
    words_studied: int = 0
    words_correct: int = 0


# Collections
class CollectionCreate(CamelModel):
    name: str
    description: Optional[str] = None
    icon: Optional[str] = None
    is_public: bool = True
    word_ids: List[int] = []


class CollectionUpdate(CamelModel):
    name: Optional[str] = None
    description: Optional[str] = None
    icon: Optional[str] = None
    is_public: Optional[bool] = None
    word_ids: Optional[List[int]] = None


class CollectionWords(CamelModel):
    word_ids: List[int] = []


class CollectionResponse(CamelModel):
    id: int
    name: str
    description: Optional[str]
    icon: Optional[str]
    is_public: bool
    word_ids: List[int]
    created_at: datetime


# Bookmarks
class BookmarkCreate(CamelModel):
    word_id: Optional[int] = None
    notes: Optional[str] = None


class BookmarkNotes(CamelModel):
    notes: Optional[str] = None


class BookmarkResponse(CamelModel):
    id: int
    word_id: int
    notes: Optional[str]
    created_at: datetime


class BookmarkWithWord(BookmarkResponse):
    word: WordListItem


# Goals
class GoalRequest(CamelModel):
    goal: Optional[int] = None


class GoalProgressRequest(CamelModel):
    increment: int = Field(default=1, ge=1)


# Subscription
class SubscriptionResponse(CamelModel):
    subscription_status: SubscriptionStatus
    subscription_plan: Optional[SubscriptionPlan]
    subscription_start: Optional[datetime]
    subscription_end: Optional[datetime]
    trial_end: Optional[datetime]


# Content generation
class GenerateContentRequest(CamelModel):
    word: str = ""
    exam_category: ExamCategory = ExamCategory.CSAT
    cefr_level: str = "B1"
    word_id: Optional[int] = None


class BatchGenerateRequest(CamelModel):
    words: List[str] = []
    exam_category: ExamCategory = ExamCategory.CSAT
    cefr_level: str = "B1"


class DedupCheckRequest(CamelModel):
    words: List[str]


class DedupCopyRequest(CamelModel):
    source_word_id: int
    target_exam: ExamCategory
    target_level: str
