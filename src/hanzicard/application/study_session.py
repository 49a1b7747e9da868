import logging
import random
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, tzinfo

from hanzicard.application import scheduler
from hanzicard.domain.errors import EmptyDeckError
from hanzicard.domain.models import CharacterCard, ReviewRating, ReviewResult

logger = logging.getLogger(__name__)


@dataclass
class SessionStats:
    reviewed: int = 0
    correct: int = 0

    @property
    def accuracy(self) -> float:
        if self.reviewed == 0:
            return 0.0
        return self.correct / self.reviewed * 100


class StudySession:
    """
    A single review pass over the due cards.

    Cards are presented in shuffled order; each rating is applied through the
    SM-2 scheduler and the session advances to the next card.
    """

    def __init__(self, tz: tzinfo | None = None, rng: random.Random | None = None):
        self.tz = tz
        self._rng = rng or random.Random()
        self.deck: list[CharacterCard] = []
        self.current_index = 0
        self.is_flipped = False
        self.stats = SessionStats()
        self.is_complete = False

    def load_due_cards(self, cards: Iterable[CharacterCard], now: datetime | None = None) -> None:
        self.deck = scheduler.build_study_queue(cards, now=now, rng=self._rng)
        self._reset_progress()
        logger.debug(f"[study] loaded {len(self.deck)} due cards")

    @property
    def current_card(self) -> CharacterCard | None:
        if self.current_index < len(self.deck):
            return self.deck[self.current_index]
        return None

    @property
    def progress(self) -> float:
        if not self.deck:
            return 0.0
        return self.current_index / len(self.deck)

    @property
    def cards_remaining(self) -> int:
        return max(0, len(self.deck) - self.current_index)

    def flip(self) -> None:
        self.is_flipped = True

    def rate(self, rating: ReviewRating | int, now: datetime | None = None) -> ReviewResult:
        card = self.current_card
        if card is None:
            raise EmptyDeckError("No card to review")

        rating = ReviewRating(rating)
        self.stats.reviewed += 1
        if rating.is_correct:
            self.stats.correct += 1

        result = scheduler.apply_review(card, rating, now=now, tz=self.tz)

        self.current_index += 1
        self.is_flipped = False
        if self.current_index >= len(self.deck):
            self.is_complete = True
        return result

    def restart(self) -> None:
        """Study the same cards again in a new order."""
        self._rng.shuffle(self.deck)
        self._reset_progress()

    def _reset_progress(self) -> None:
        self.current_index = 0
        self.is_flipped = False
        self.stats = SessionStats()
        self.is_complete = False
