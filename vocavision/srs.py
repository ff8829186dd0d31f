"""
Spaced repetition (SM-2) and learning-streak helpers.
"""
from datetime import date, timedelta

from vocavision.models.enums import MasteryLevel

MIN_EASE_FACTOR = 1.3
PASSING_RATING = 3


def calculate_next_review(rating: int, ease_factor: float, interval: int, repetitions: int):
    """Returns (ease_factor, interval_days, repetitions) after one review."""
    new_ease = ease_factor
    new_interval = interval
    new_repetitions = repetitions

    if rating >= PASSING_RATING:
        new_repetitions += 1
        if new_repetitions == 1:
            new_interval = 1
        elif new_repetitions == 2:
            new_interval = 6
        else:
            new_interval = round(interval * ease_factor)
        new_ease = ease_factor + (0.1 - (5 - rating) * (0.08 + (5 - rating) * 0.02))
    else:
        new_repetitions = 0
        new_interval = 1

    return max(MIN_EASE_FACTOR, new_ease), new_interval, new_repetitions


def mastery_for(repetitions: int, ease_factor: float, current: MasteryLevel) -> MasteryLevel:
    if repetitions >= 5 and ease_factor >= 2.5:
        return MasteryLevel.MASTERED
    if repetitions >= 3:
        return MasteryLevel.FAMILIAR
    if repetitions >= 1:
        return MasteryLevel.LEARNING
    return current


def next_streak(last_active: date | None, current: int, today: date) -> int:
    if last_active is None:
        return 1
    days = (today - last_active).days
    if days == 1:
        return current + 1
    if days > 1:
        return 1
    # same day: keep, but a fresh account starts at 1
    return max(current, 1)


def next_review_date(now, interval_days: int):
    return now + timedelta(days=interval_days)
