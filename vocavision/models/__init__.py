from sqlalchemy.orm import declarative_base

Base = declarative_base()

from vocavision.models.enums import (  # noqa: E402
    UserRole, SubscriptionStatus, SubscriptionPlan, Difficulty, ExamCategory,
    VisualType, VISUAL_TYPE_ORDER, MasteryLevel, LearningMethod,
)
from vocavision.models.users import User  # noqa: E402
from vocavision.models.words import (  # noqa: E402
    Word, Example, WordImage, Rhyme, Mnemonic, Etymology, Synonym, Antonym,
    Collocation, WordVisual,
)
from vocavision.models.learning import (  # noqa: E402
    Collection, UserProgress, Review, StudySession, Bookmark,
)
