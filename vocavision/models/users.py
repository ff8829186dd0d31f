from sqlalchemy import Column, Integer, String, Date, DateTime, Enum, func

from vocavision.models import Base
from vocavision.models.enums import UserRole, SubscriptionStatus, SubscriptionPlan


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(128), nullable=False)
    name = Column(String(64), nullable=True)
    role = Column(Enum(UserRole), nullable=False, default=UserRole.USER)

    subscription_status = Column(Enum(SubscriptionStatus), nullable=False, default=SubscriptionStatus.FREE)
    subscription_plan = Column(Enum(SubscriptionPlan), nullable=True)
    subscription_start = Column(DateTime, nullable=True)
    subscription_end = Column(DateTime, nullable=True)
    trial_end = Column(DateTime, nullable=True)  # informational; TRIAL status grants access until it changes

    # Learning stats
    current_streak = Column(Integer, default=0)
    longest_streak = Column(Integer, default=0)
    total_words_learned = Column(Integer, default=0)  # mastered words
    last_active_date = Column(Date, nullable=True)

    # Daily goal (words per day)
    daily_goal = Column(Integer, nullable=False, default=20)
    daily_progress = Column(Integer, nullable=False, default=0)
    last_goal_reset = Column(Date, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
