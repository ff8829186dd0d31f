import enum


class UserRole(str, enum.Enum):
    USER = "USER"
    ADMIN = "ADMIN"


class SubscriptionStatus(str, enum.Enum):
    FREE = "FREE"
    TRIAL = "TRIAL"
    ACTIVE = "ACTIVE"
    CANCELLED = "CANCELLED"
    EXPIRED = "EXPIRED"


class SubscriptionPlan(str, enum.Enum):
    MONTHLY = "MONTHLY"
    YEARLY = "YEARLY"


class Difficulty(str, enum.Enum):
    BEGINNER = "BEGINNER"
    INTERMEDIATE = "INTERMEDIATE"
    ADVANCED = "ADVANCED"
    EXPERT = "EXPERT"


class ExamCategory(str, enum.Enum):
    CSAT = "CSAT"
    TOEFL = "TOEFL"
    TOEIC = "TOEIC"
    TEPS = "TEPS"
    SAT = "SAT"


class VisualType(str, enum.Enum):
    CONCEPT = "CONCEPT"
    MNEMONIC = "MNEMONIC"
    RHYME = "RHYME"


# Fixed display order of the three visuals
VISUAL_TYPE_ORDER = [VisualType.CONCEPT, VisualType.MNEMONIC, VisualType.RHYME]


class MasteryLevel(str, enum.Enum):
    NEW = "NEW"
    LEARNING = "LEARNING"
    FAMILIAR = "FAMILIAR"
    MASTERED = "MASTERED"


class LearningMethod(str, enum.Enum):
    FLASHCARD = "FLASHCARD"
    QUIZ = "QUIZ"
    TYPING = "TYPING"
    LISTENING = "LISTENING"
    MATCHING = "MATCHING"
