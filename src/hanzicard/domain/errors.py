"""Error and status variants shared across layers."""

from dataclasses import dataclass
from enum import Enum


class OcrErrorKind(str, Enum):
    INVALID_IMAGE = "invalid_image"
    NO_TEXT_FOUND = "no_text_found"
    RECOGNITION_FAILED = "recognition_failed"
    API_ERROR = "api_error"


class OcrError(Exception):
    """Raised by a TextRecognizer. The only user-visible failure in the pipeline."""

    def __init__(self, kind: OcrErrorKind, message: str = ""):
        self.kind = kind
        self.message = message
        super().__init__(self.description)

    @property
    def description(self) -> str:
        if self.kind == OcrErrorKind.INVALID_IMAGE:
            return "Could not process the image"
        if self.kind == OcrErrorKind.NO_TEXT_FOUND:
            return "No Chinese text found in image"
        if self.kind == OcrErrorKind.RECOGNITION_FAILED:
            return f"Recognition failed: {self.message}"
        return f"API error: {self.message}"


class PhotoStorageError(Exception):
    pass


class EmptyDeckError(Exception):
    """Raised when a review is applied while no card is current."""


class AnalysisStage(str, Enum):
    IDLE = "idle"
    UPLOADING = "uploading"
    RECOGNIZING_TEXT = "recognizing_text"
    LOOKING_UP_CHARACTERS = "looking_up_characters"
    DETECTING_WORDS = "detecting_words"
    COMPLETE = "complete"
    ERROR = "error"


_STAGE_MESSAGES = {
    AnalysisStage.IDLE: "",
    AnalysisStage.UPLOADING: "Uploading image...",
    AnalysisStage.RECOGNIZING_TEXT: "Recognizing Chinese text...",
    AnalysisStage.LOOKING_UP_CHARACTERS: "Looking up character definitions...",
    AnalysisStage.DETECTING_WORDS: "Detecting word groupings...",
    AnalysisStage.COMPLETE: "Analysis complete",
}


@dataclass(frozen=True)
class AnalysisStatus:
    """Progress of a capture analysis. ``error_message`` is set only for ERROR."""

    kind: AnalysisStage = AnalysisStage.IDLE
    error_message: str | None = None

    @classmethod
    def error(cls, message: str) -> "AnalysisStatus":
        return cls(kind=AnalysisStage.ERROR, error_message=message)

    @property
    def message(self) -> str:
        if self.kind == AnalysisStage.ERROR:
            return self.error_message or ""
        return _STAGE_MESSAGES[self.kind]
