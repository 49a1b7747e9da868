"""
Domain models for character lookup and review scheduling.

These are pure data structures with no I/O or external dependencies.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum, IntEnum
from typing import Any

from .constants import DEFAULT_EASE_FACTOR, DEFAULT_INTERVAL, UNKNOWN_MEANING


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ComponentType(str, Enum):
    SEMANTIC = "semantic"  # Contributes to meaning
    PHONETIC = "phonetic"  # Contributes to pronunciation
    BOTH = "both"

    @classmethod
    def parse(cls, raw: Any) -> "ComponentType":
        try:
            return cls(str(raw))
        except ValueError:
            return cls.SEMANTIC


@dataclass(frozen=True)
class ComponentInfo:
    """A simpler character embedded in a compound character."""

    character: str
    pinyin: str
    meaning: str
    type: ComponentType = ComponentType.SEMANTIC


@dataclass(frozen=True)
class CharacterInfo:
    """
    Reference information about a single character.

    Attributes:
        hsk: HSK level 1-6, or 0 if not classified.
        examples: Example usages such as "落下 (fall down)".
        components: Sub-characters, only ever filled by the remote gateway.
    """

    pinyin: str
    meaning: str
    hsk: int = 0
    radical: str = ""
    strokes: int = 0
    examples: tuple[str, ...] = ()
    components: tuple[ComponentInfo, ...] = ()

    @classmethod
    def unknown(cls, character: str = "") -> "CharacterInfo":
        """Placeholder used when neither the dictionary nor the API knows the character."""
        return cls(pinyin="", meaning=UNKNOWN_MEANING)

    @property
    def is_unknown(self) -> bool:
        return self == CharacterInfo.unknown()


@dataclass(frozen=True)
class WordInfo:
    """A compound word (one or more characters that form a unit)."""

    word: str
    pinyin: str
    meaning: str

    @property
    def characters(self) -> list[str]:
        return list(self.word)


@dataclass(frozen=True)
class PhraseInfo:
    pinyin: str
    meaning: str


@dataclass
class AnalyzedCharacter:
    character: str
    info: CharacterInfo
    is_saved: bool = False


@dataclass
class TextAnalysisResult:
    words: list[WordInfo]
    characters: dict[str, CharacterInfo]


class CharacterStatus(str, Enum):
    NEW = "new"
    LEARNING = "learning"
    MASTERED = "mastered"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()


class ReviewRating(IntEnum):
    AGAIN = 1
    HARD = 2
    GOOD = 3
    EASY = 4

    @property
    def label(self) -> str:
        return self.name.capitalize()

    @property
    def is_correct(self) -> bool:
        return self >= ReviewRating.GOOD


@dataclass(frozen=True)
class ReviewResult:
    interval: int  # Days until next review
    ease_factor: float
    status: CharacterStatus


@dataclass
class CharacterCard:
    """
    A saved character and its SM-2 review state.

    The character glyph is the unique key. Only the scheduler mutates the
    review fields; linking to another source photo only appends to
    ``source_photo_ids``.
    """

    character: str
    pinyin: str = ""
    meaning: str = ""
    hsk: int = 0
    radical: str = ""
    strokes: int = 0
    examples: list[str] = field(default_factory=list)
    context: str = ""

    status: CharacterStatus = CharacterStatus.NEW
    date_added: datetime = field(default_factory=utcnow)

    # SM-2 state
    next_review: datetime = field(default_factory=utcnow)
    interval: int = DEFAULT_INTERVAL
    ease_factor: float = DEFAULT_EASE_FACTOR
    review_count: int = 0
    correct_count: int = 0

    source_photo_ids: list[str] = field(default_factory=list)

    @classmethod
    def from_info(
        cls, character: str, info: CharacterInfo | None, context: str = ""
    ) -> "CharacterCard":
        if info is None:
            return cls(character=character, meaning=UNKNOWN_MEANING, context=context)
        return cls(
            character=character,
            pinyin=info.pinyin,
            meaning=info.meaning,
            hsk=info.hsk,
            radical=info.radical,
            strokes=info.strokes,
            examples=list(info.examples),
            context=context,
        )

    @classmethod
    def from_component(cls, component: ComponentInfo, context: str = "") -> "CharacterCard":
        return cls(
            character=component.character,
            pinyin=component.pinyin,
            meaning=component.meaning,
            context=context,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "character": self.character,
            "pinyin": self.pinyin,
            "meaning": self.meaning,
            "hsk": self.hsk,
            "radical": self.radical,
            "strokes": self.strokes,
            "examples": list(self.examples),
            "context": self.context,
            "status": self.status.value,
            "date_added": self.date_added.isoformat(),
            "next_review": self.next_review.isoformat(),
            "interval": self.interval,
            "ease_factor": self.ease_factor,
            "review_count": self.review_count,
            "correct_count": self.correct_count,
            "source_photo_ids": list(self.source_photo_ids),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CharacterCard":
        try:
            status = CharacterStatus(data.get("status", "new"))
        except ValueError:
            status = CharacterStatus.NEW
        return cls(
            character=data["character"],
            pinyin=data.get("pinyin", ""),
            meaning=data.get("meaning", ""),
            hsk=int(data.get("hsk", 0)),
            radical=data.get("radical", ""),
            strokes=int(data.get("strokes", 0)),
            examples=list(data.get("examples", [])),
            context=data.get("context", ""),
            status=status,
            date_added=datetime.fromisoformat(data["date_added"]),
            next_review=datetime.fromisoformat(data["next_review"]),
            interval=int(data.get("interval", DEFAULT_INTERVAL)),
            ease_factor=float(data.get("ease_factor", DEFAULT_EASE_FACTOR)),
            review_count=int(data.get("review_count", 0)),
            correct_count=int(data.get("correct_count", 0)),
            source_photo_ids=list(data.get("source_photo_ids", [])),
        )


@dataclass
class CapturedPhoto:
    """A photo taken by the user plus the cached analysis of its text."""

    id: str
    captured_at: datetime = field(default_factory=utcnow)
    image_path: str = ""
    ocr_text: str = ""
    detected_words_json: str = "[]"
    analyzed_characters_json: str = "[]"
    character_ids: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "captured_at": self.captured_at.isoformat(),
            "image_path": self.image_path,
            "ocr_text": self.ocr_text,
            "detected_words_json": self.detected_words_json,
            "analyzed_characters_json": self.analyzed_characters_json,
            "character_ids": list(self.character_ids),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CapturedPhoto":
        return cls(
            id=data["id"],
            captured_at=datetime.fromisoformat(data["captured_at"]),
            image_path=data.get("image_path", ""),
            ocr_text=data.get("ocr_text", ""),
            detected_words_json=data.get("detected_words_json", "[]"),
            analyzed_characters_json=data.get("analyzed_characters_json", "[]"),
            character_ids=list(data.get("character_ids", [])),
        )
