"""
SM-2 spaced repetition scheduling.

Pure computation over a single card plus collection filters. No I/O.

Ratings:
- Again (1): reset to 1 day, ease -0.2
- Hard (2): interval x1.2, ease -0.15
- Good (3): interval x ease
- Easy (4): interval x ease x1.3, ease +0.15

Ease never drops below 1.3. Intervals are truncated toward zero after the
multiply and never drop below 1. Good/Easy reviews that reach 21+ days mark
the card mastered; every other post-review state is learning.
"""

import random
from collections.abc import Iterable
from datetime import datetime, timedelta, timezone, tzinfo

from hanzicard.domain.constants import (
    AGAIN_EASE_PENALTY,
    EASY_EASE_BONUS,
    EASY_INTERVAL_MULTIPLIER,
    HARD_EASE_PENALTY,
    HARD_INTERVAL_MULTIPLIER,
    MASTERED_INTERVAL_DAYS,
    MIN_EASE_FACTOR,
)
from hanzicard.domain.models import CharacterCard, CharacterStatus, ReviewRating, ReviewResult


def _status_for(interval: int) -> CharacterStatus:
    if interval >= MASTERED_INTERVAL_DAYS:
        return CharacterStatus.MASTERED
    return CharacterStatus.LEARNING


def calculate_next_review(
    current_interval: int, current_ease_factor: float, rating: ReviewRating | int
) -> ReviewResult:
    rating = ReviewRating(rating)
    interval = current_interval
    ease = current_ease_factor

    if rating == ReviewRating.AGAIN:
        interval = 1
        ease = max(MIN_EASE_FACTOR, ease - AGAIN_EASE_PENALTY)
        status = CharacterStatus.LEARNING
    elif rating == ReviewRating.HARD:
        interval = max(1, int(interval * HARD_INTERVAL_MULTIPLIER))
        ease = max(MIN_EASE_FACTOR, ease - HARD_EASE_PENALTY)
        status = CharacterStatus.LEARNING
    elif rating == ReviewRating.GOOD:
        interval = max(1, int(interval * ease))
        status = _status_for(interval)
    else:
        interval = max(1, int(interval * ease * EASY_INTERVAL_MULTIPLIER))
        ease = ease + EASY_EASE_BONUS
        status = _status_for(interval)

    return ReviewResult(interval=interval, ease_factor=ease, status=status)


def _aware(now: datetime | None) -> datetime:
    if now is None:
        return datetime.now(timezone.utc)
    if now.tzinfo is None:
        # Naive timestamps are taken to be UTC.
        return now.replace(tzinfo=timezone.utc)
    return now


def add_calendar_days(now: datetime, days: int, tz: tzinfo | None = None) -> datetime:
    """
    Add whole calendar days in ``tz``, keeping the wall-clock time.

    Across a DST change the result is 23 or 25 hours later, not 24.
    """
    local = _aware(now).astimezone(tz or timezone.utc)
    return local + timedelta(days=days)


def apply_review(
    card: CharacterCard,
    rating: ReviewRating | int,
    now: datetime | None = None,
    tz: tzinfo | None = None,
) -> ReviewResult:
    """Apply a rating to ``card`` in place and return the transition."""
    rating = ReviewRating(rating)
    result = calculate_next_review(card.interval, card.ease_factor, rating)

    card.interval = result.interval
    card.ease_factor = result.ease_factor
    card.status = result.status
    card.review_count += 1
    if rating.is_correct:
        card.correct_count += 1
    card.next_review = add_calendar_days(_aware(now), result.interval, tz)
    return result


def is_due(card: CharacterCard, now: datetime | None = None) -> bool:
    return _aware(card.next_review) <= _aware(now)


def get_due_cards(
    cards: Iterable[CharacterCard], now: datetime | None = None
) -> list[CharacterCard]:
    """Cards whose next review is at or before ``now``. Input order is kept."""
    now = _aware(now)
    return [c for c in cards if is_due(c, now)]


def accuracy(card: CharacterCard) -> float:
    """Percentage of correct reviews, 0 when the card was never reviewed."""
    if card.review_count == 0:
        return 0.0
    return card.correct_count / card.review_count * 100


def build_study_queue(
    cards: Iterable[CharacterCard],
    now: datetime | None = None,
    rng: random.Random | None = None,
) -> list[CharacterCard]:
    """Due cards in random presentation order."""
    queue = get_due_cards(cards, now)
    (rng or random).shuffle(queue)
    return queue
