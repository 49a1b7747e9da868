"""Filtering and card creation for the saved-character library."""

from collections.abc import Iterable

from hanzicard.domain.models import (
    AnalyzedCharacter,
    CharacterCard,
    CharacterStatus,
    ComponentInfo,
)


def filter_cards(
    cards: Iterable[CharacterCard],
    search_text: str = "",
    status: CharacterStatus | None = None,
) -> list[CharacterCard]:
    """Apply status and search filters, newest first."""
    result = list(cards)

    if status is not None:
        result = [c for c in result if c.status == status]

    if search_text:
        query = search_text.lower()
        result = [
            c
            for c in result
            if query in c.character or query in c.pinyin.lower() or query in c.meaning.lower()
        ]

    return sorted(result, key=lambda c: c.date_added, reverse=True)


def status_counts(cards: Iterable[CharacterCard]) -> dict[CharacterStatus, int]:
    counts = {status: 0 for status in CharacterStatus}
    for card in cards:
        counts[card.status] += 1
    return counts


def card_from_analysis(analyzed: AnalyzedCharacter, context: str = "") -> CharacterCard:
    return CharacterCard.from_info(analyzed.character, analyzed.info, context=context)


def card_from_component(component: ComponentInfo, context: str = "") -> CharacterCard:
    return CharacterCard.from_component(component, context=context)
