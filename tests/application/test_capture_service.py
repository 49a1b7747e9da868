"""Tests for the capture pipeline with a mocked recognizer and real storage."""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from hanzicard.application.capture_service import CaptureService, generate_photo_id
from hanzicard.application.resolver import LookupResolver
from hanzicard.domain.errors import AnalysisStage, OcrError, OcrErrorKind
from hanzicard.domain.models import CharacterInfo, ComponentInfo, PhraseInfo, WordInfo
from hanzicard.infrastructure.dictionary import CommonPhrases
from hanzicard.infrastructure.storage.json_store import JsonCardRepository
from hanzicard.infrastructure.storage.photo_store import FilesystemPhotoStore

LUO = CharacterInfo(
    pinyin="luò",
    meaning="to fall",
    components=(ComponentInfo("艹", "cǎo", "grass"),),
)


@pytest.fixture
def recognizer():
    mock = MagicMock()
    mock.recognize_text = AsyncMock(return_value="你好 落")
    return mock


@pytest.fixture
def repo(tmp_path):
    return JsonCardRepository(tmp_path / "collection.json")


@pytest.fixture
def photo_store(tmp_path):
    return FilesystemPhotoStore(tmp_path / "photos")


@pytest.fixture
def service(recognizer, dictionary, fake_gateway, repo, photo_store):
    fake_gateway.characters = {"落": LUO}
    fake_gateway.words = [WordInfo("你好", "nǐhǎo", "hello"), WordInfo("落", "luò", "fall")]
    phrases = CommonPhrases({"你好": PhraseInfo("nǐ hǎo", "hello")})
    return CaptureService(
        recognizer=recognizer,
        resolver=LookupResolver(dictionary, fake_gateway),
        phrases=phrases,
        repository=repo,
        photo_store=photo_store,
    )


def test_photo_ids_are_unique():
    assert generate_photo_id() != generate_photo_id()
    assert len(generate_photo_id()) == 26


@pytest.mark.asyncio
async def test_process_image_success(service, image_bytes):
    state = await service.process_image(image_bytes())

    assert state.is_complete
    assert state.status.kind == AnalysisStage.COMPLETE
    assert state.ocr_text == "你好 落"
    assert [a.character for a in state.characters] == ["你", "好", "落"]
    assert state.characters[2].info == LUO
    assert state.words[0].word == "你好"
    assert state.phrases == [("你好", PhraseInfo("nǐ hǎo", "hello"))]
    assert state.error is None


@pytest.mark.asyncio
async def test_ocr_failure_surfaces_error(service, recognizer, image_bytes, fake_gateway):
    recognizer.recognize_text.side_effect = OcrError(OcrErrorKind.NO_TEXT_FOUND)

    state = await service.process_image(image_bytes())

    assert state.status.kind == AnalysisStage.ERROR
    assert state.status.message == "No Chinese text found in image"
    assert state.error.kind == OcrErrorKind.NO_TEXT_FOUND
    assert fake_gateway.character_calls == []


@pytest.mark.asyncio
async def test_lookup_failure_degrades_to_placeholders(service, fake_gateway, image_bytes):
    fake_gateway.fail = True

    state = await service.process_image(image_bytes())

    assert state.is_complete
    assert state.characters[2].info.is_unknown
    assert state.words == []


@pytest.mark.asyncio
async def test_retry_reuses_last_image(service, recognizer, image_bytes):
    await service.process_image(image_bytes())
    await service.retry()
    assert recognizer.recognize_text.await_count == 2


@pytest.mark.asyncio
async def test_save_to_history_and_character(service, repo, photo_store, image_bytes):
    await service.process_image(image_bytes())
    photo = service.save_to_history()

    assert repo.all_photos() == [photo]
    assert (photo_store.directory / photo.image_path).exists()
    assert json.loads(photo.detected_words_json)[0]["word"] == "你好"

    card = service.save_character("落")

    assert repo.get_card("落") is card
    assert card.context == "你好 落"
    assert card.source_photo_ids == [photo.id]
    assert photo.character_ids == ["落"]
    saved = json.loads(repo.all_photos()[0].analyzed_characters_json)
    assert [c["isSaved"] for c in saved] == [False, False, True]


@pytest.mark.asyncio
async def test_saving_existing_character_links_photo(service, repo, make_card, image_bytes):
    existing = make_card("好", review_count=3, correct_count=2, interval=6)
    repo.add_card(existing)

    await service.process_image(image_bytes())
    photo = service.save_to_history()
    card = service.save_character("好")

    assert card is existing
    assert card.review_count == 3
    assert card.interval == 6
    assert card.source_photo_ids == [photo.id]
    assert len(repo.all_cards()) == 1


@pytest.mark.asyncio
async def test_save_unknown_character_raises(service, image_bytes):
    await service.process_image(image_bytes())
    with pytest.raises(KeyError):
        service.save_character("水")


@pytest.mark.asyncio
async def test_save_component(service, repo, image_bytes):
    await service.process_image(image_bytes())
    service.save_to_history()

    card = service.save_component(LUO.components[0])

    assert card.character == "艹"
    assert repo.get_card("艹").meaning == "grass"


@pytest.mark.asyncio
async def test_load_from_history_makes_no_calls(
    service, recognizer, fake_gateway, image_bytes
):
    await service.process_image(image_bytes())
    photo = service.save_to_history()
    service.save_character("你")
    service.reset()
    calls = len(fake_gateway.character_calls)

    state = service.load_from_history(photo)

    assert state.is_complete
    assert state.ocr_text == "你好 落"
    assert [a.is_saved for a in state.characters] == [True, False, False]
    assert state.characters[2].info == LUO
    assert state.image is not None
    assert len(fake_gateway.character_calls) == calls
    assert recognizer.recognize_text.await_count == 1


@pytest.mark.asyncio
async def test_delete_from_history(service, repo, photo_store, image_bytes):
    await service.process_image(image_bytes())
    photo = service.save_to_history()
    card = service.save_character("落")

    service.delete_from_history(photo)

    assert repo.all_photos() == []
    assert not (photo_store.directory / photo.image_path).exists()
    assert card.source_photo_ids == []
    assert repo.get_card("落") is not None
