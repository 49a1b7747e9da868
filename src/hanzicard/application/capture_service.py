"""
Capture pipeline: photo -> OCR text -> character and word analysis -> saved cards.

OCR is the only step that surfaces an error to the user; lookup failures
degrade silently to placeholder entries.
"""

import logging
from dataclasses import dataclass, field

from ulid import ULID

from hanzicard.application import analysis_cache
from hanzicard.application.library import card_from_analysis, card_from_component
from hanzicard.application.resolver import LookupResolver
from hanzicard.application.utils.script import unique_chinese_characters
from hanzicard.domain.errors import AnalysisStage, AnalysisStatus, OcrError
from hanzicard.domain.interfaces import CardRepository, PhotoFileStore, TextRecognizer
from hanzicard.domain.models import (
    AnalyzedCharacter,
    CapturedPhoto,
    CharacterCard,
    CharacterInfo,
    ComponentInfo,
    PhraseInfo,
    WordInfo,
)
from hanzicard.infrastructure.dictionary import CommonPhrases

logger = logging.getLogger(__name__)


def generate_photo_id() -> str:
    return str(ULID())


@dataclass
class CaptureState:
    image: bytes | None = None
    ocr_text: str = ""
    words: list[WordInfo] = field(default_factory=list)
    characters: list[AnalyzedCharacter] = field(default_factory=list)
    phrases: list[tuple[str, PhraseInfo]] = field(default_factory=list)
    status: AnalysisStatus = field(default_factory=AnalysisStatus)
    error: OcrError | None = None
    photo: CapturedPhoto | None = None

    @property
    def is_complete(self) -> bool:
        return self.status.kind == AnalysisStage.COMPLETE


class CaptureService:
    def __init__(
        self,
        recognizer: TextRecognizer,
        resolver: LookupResolver,
        phrases: CommonPhrases,
        repository: CardRepository,
        photo_store: PhotoFileStore,
    ):
        self._recognizer = recognizer
        self._resolver = resolver
        self._phrases = phrases
        self._repo = repository
        self._photos = photo_store
        self.state = CaptureState()

    def _set_status(self, kind: AnalysisStage) -> None:
        self.state.status = AnalysisStatus(kind)
        logger.debug(f"[capture] {kind.value}")

    async def process_image(self, image: bytes) -> CaptureState:
        self.state = CaptureState(image=image)
        self._set_status(AnalysisStage.UPLOADING)

        try:
            self._set_status(AnalysisStage.RECOGNIZING_TEXT)
            text = await self._recognizer.recognize_text(image)
        except OcrError as e:
            logger.warning(f"OCR failed: {e}")
            self.state.error = e
            self.state.status = AnalysisStatus.error(str(e))
            return self.state

        self.state.ocr_text = text
        unique_chars = unique_chinese_characters(text)

        self._set_status(AnalysisStage.LOOKING_UP_CHARACTERS)
        analysis = await self._resolver.analyze(text, unique_chars)

        self._set_status(AnalysisStage.DETECTING_WORDS)
        self.state.words = analysis.words
        self.state.characters = [
            AnalyzedCharacter(
                character=char,
                info=analysis.characters.get(char, CharacterInfo.unknown(char)),
            )
            for char in unique_chars
        ]
        self.state.phrases = self._phrases.find_phrases(text)

        self._set_status(AnalysisStage.COMPLETE)
        return self.state

    async def retry(self) -> CaptureState:
        """Re-run the pipeline on the last image."""
        if self.state.image is None:
            return self.state
        return await self.process_image(self.state.image)

    def reset(self) -> None:
        self.state = CaptureState()

    def save_to_history(self) -> CapturedPhoto | None:
        """Store the image file and a photo record with the serialized analysis."""
        if self.state.image is None:
            return None

        photo_id = generate_photo_id()
        image_path = self._photos.save(self.state.image, photo_id)
        photo = CapturedPhoto(
            id=photo_id,
            image_path=image_path,
            ocr_text=self.state.ocr_text,
            detected_words_json=analysis_cache.serialize_words(self.state.words),
            analyzed_characters_json=analysis_cache.serialize_characters(self.state.characters),
        )
        self._repo.add_photo(photo)
        self.state.photo = photo
        logger.info(f"Saved photo {photo_id} with {len(self.state.characters)} characters")
        return photo

    def load_from_history(self, photo: CapturedPhoto) -> CaptureState:
        """Restore a saved analysis without any network call."""
        self.state = CaptureState(
            image=self._photos.load(photo.image_path),
            ocr_text=photo.ocr_text,
            words=analysis_cache.deserialize_words(photo.detected_words_json),
            characters=analysis_cache.deserialize_characters(photo.analyzed_characters_json),
            phrases=self._phrases.find_phrases(photo.ocr_text),
            status=AnalysisStatus(AnalysisStage.COMPLETE),
            photo=photo,
        )
        return self.state

    def delete_from_history(self, photo: CapturedPhoto) -> None:
        self._repo.delete_photo(photo.id)
        try:
            self._photos.delete(photo.image_path)
        except FileNotFoundError:
            logger.warning(f"Photo file already missing: {photo.image_path}")

    def save_character(self, character: str, context: str = "") -> CharacterCard:
        """Save an analyzed character as a card, or link the existing card to this photo."""
        analyzed = next((a for a in self.state.characters if a.character == character), None)
        if analyzed is None:
            raise KeyError(character)

        card = self._repo.get_card(character)
        if card is None:
            card = card_from_analysis(analyzed, context=context or self.state.ocr_text)
            self._link(card)
            self._repo.add_card(card)
        else:
            self._link(card)
            self._repo.update_card(card)

        analyzed.is_saved = True
        self._refresh_photo_blob()
        return card

    def save_component(self, component: ComponentInfo, context: str = "") -> CharacterCard:
        card = self._repo.get_card(component.character)
        if card is None:
            card = card_from_component(component, context=context or self.state.ocr_text)
            self._link(card)
            self._repo.add_card(card)
        else:
            self._link(card)
            self._repo.update_card(card)
        self._refresh_photo_blob()
        return card

    def _link(self, card: CharacterCard) -> None:
        photo = self.state.photo
        if photo is None:
            return
        if photo.id not in card.source_photo_ids:
            card.source_photo_ids.append(photo.id)
        if card.character not in photo.character_ids:
            photo.character_ids.append(card.character)

    def _refresh_photo_blob(self) -> None:
        photo = self.state.photo
        if photo is None:
            return
        photo.analyzed_characters_json = analysis_cache.serialize_characters(
            self.state.characters
        )
        self._repo.update_photo(photo)
