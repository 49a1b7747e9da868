"""
Ports (interfaces) for the external collaborators.

These define the contract that infrastructure adapters must implement.
Application services depend on these abstractions, not concrete implementations.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable

from .models import CapturedPhoto, CharacterCard, CharacterInfo, WordInfo


class LookupGateway(ABC):
    """
    Port for resolving characters and segmenting text with a remote model.

    Implementations never raise to the caller: every failure is absorbed
    into an empty result.
    """

    @abstractmethod
    async def resolve_characters(self, glyphs: Iterable[str]) -> dict[str, CharacterInfo]:
        """
        Resolve every glyph in one request.

        Args:
            glyphs: Characters not already resolved locally or from cache.

        Returns:
            Mapping for the glyphs that could be parsed. Omitted glyphs are
            the caller's responsibility.
        """
        pass

    @abstractmethod
    async def segment_words(self, text: str) -> list[WordInfo]:
        """
        Split text into words so every Chinese character is in exactly one word.

        Returns:
            Words in order of first appearance, or [] on failure.
        """
        pass


class TextRecognizer(ABC):
    """Port for image-to-text recognition. Raises OcrError on failure."""

    @abstractmethod
    async def recognize_text(self, image: bytes) -> str:
        pass


class CardRepository(ABC):
    """Port for persisted cards and captured photos."""

    @abstractmethod
    def add_card(self, card: CharacterCard) -> None:
        pass

    @abstractmethod
    def get_card(self, character: str) -> CharacterCard | None:
        pass

    @abstractmethod
    def update_card(self, card: CharacterCard) -> None:
        pass

    @abstractmethod
    def delete_card(self, character: str) -> bool:
        pass

    @abstractmethod
    def all_cards(self) -> list[CharacterCard]:
        pass

    @abstractmethod
    def add_photo(self, photo: CapturedPhoto) -> None:
        pass

    @abstractmethod
    def update_photo(self, photo: CapturedPhoto) -> None:
        pass

    @abstractmethod
    def delete_photo(self, photo_id: str) -> bool:
        pass

    @abstractmethod
    def all_photos(self) -> list[CapturedPhoto]:
        """All photos, newest capture first."""
        pass


class PhotoFileStore(ABC):
    """Port for photo files on disk."""

    @abstractmethod
    def save(self, image: bytes, photo_id: str) -> str:
        """Store the image and return its path relative to the store."""
        pass

    @abstractmethod
    def load(self, path: str) -> bytes | None:
        pass

    @abstractmethod
    def delete(self, path: str) -> None:
        pass
