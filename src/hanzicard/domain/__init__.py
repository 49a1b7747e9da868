# Domain Package
from .errors import AnalysisStage, AnalysisStatus, EmptyDeckError, OcrError, OcrErrorKind
from .interfaces import CardRepository, LookupGateway, PhotoFileStore, TextRecognizer
from .models import (
    AnalyzedCharacter,
    CapturedPhoto,
    CharacterCard,
    CharacterInfo,
    CharacterStatus,
    ComponentInfo,
    ComponentType,
    PhraseInfo,
    ReviewRating,
    ReviewResult,
    TextAnalysisResult,
    WordInfo,
)

__all__ = [
    "AnalysisStage",
    "AnalysisStatus",
    "AnalyzedCharacter",
    "CapturedPhoto",
    "CardRepository",
    "CharacterCard",
    "CharacterInfo",
    "CharacterStatus",
    "ComponentInfo",
    "ComponentType",
    "EmptyDeckError",
    "LookupGateway",
    "OcrError",
    "OcrErrorKind",
    "PhotoFileStore",
    "PhraseInfo",
    "ReviewRating",
    "ReviewResult",
    "TextAnalysisResult",
    "TextRecognizer",
    "WordInfo",
]
