"""Helpers shared by CLI commands."""

import logging
from typing import Any

from hanzicard.application.config import AppConfig, resolve_config
from hanzicard.domain.models import CharacterCard, CharacterInfo, WordInfo


def _resolve_with_overrides(verbose: int | None = None, **overrides: Any) -> AppConfig:
    config = resolve_config(overrides)
    level = verbose if verbose is not None else config.verbose
    if level >= 2:
        logging.getLogger().setLevel(logging.DEBUG)
    elif level <= 0:
        logging.getLogger().setLevel(logging.WARNING)
    return config


def format_info(character: str, info: CharacterInfo) -> str:
    lines = [f"{character}  {info.pinyin}  {info.meaning}".rstrip()]
    details = []
    if info.hsk:
        details.append(f"HSK {info.hsk}")
    if info.radical:
        details.append(f"radical {info.radical}")
    if info.strokes:
        details.append(f"{info.strokes} strokes")
    if details:
        lines.append("    " + ", ".join(details))
    for example in info.examples:
        lines.append(f"    - {example}")
    for comp in info.components:
        lines.append(f"    [{comp.type.value}] {comp.character} {comp.pinyin} {comp.meaning}")
    return "\n".join(lines)


def format_word(word: WordInfo) -> str:
    return f"{word.word}  {word.pinyin}  {word.meaning}"


def format_card(card: CharacterCard) -> str:
    due = card.next_review.strftime("%Y-%m-%d %H:%M %Z").strip()
    return (
        f"{card.character}  {card.pinyin:<10} {card.status.display_name:<9} "
        f"interval={card.interval}d ease={card.ease_factor:.2f} due={due}  {card.meaning}"
    )
