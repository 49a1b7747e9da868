from collections.abc import Iterable
from datetime import datetime, timezone
from io import BytesIO

import pytest
from PIL import Image

from hanzicard.domain.interfaces import LookupGateway
from hanzicard.domain.models import CharacterCard, CharacterInfo, WordInfo
from hanzicard.infrastructure.dictionary import LocalDictionary


class FakeGateway(LookupGateway):
    """In-memory gateway that records every call."""

    def __init__(
        self,
        characters: dict[str, CharacterInfo] | None = None,
        words: list[WordInfo] | None = None,
    ):
        self.characters = dict(characters or {})
        self.words = list(words or [])
        self.character_calls: list[list[str]] = []
        self.word_calls: list[str] = []
        self.fail = False

    async def resolve_characters(self, glyphs: Iterable[str]) -> dict[str, CharacterInfo]:
        glyphs = list(glyphs)
        self.character_calls.append(glyphs)
        if self.fail:
            return {}
        return dict(self.characters)

    async def segment_words(self, text: str) -> list[WordInfo]:
        self.word_calls.append(text)
        if self.fail:
            return []
        return list(self.words)


@pytest.fixture
def dictionary():
    return LocalDictionary(
        {
            "中": CharacterInfo(pinyin="zhōng", meaning="middle", hsk=1, radical="丨", strokes=4),
            "你": CharacterInfo(pinyin="nǐ", meaning="you", hsk=1),
            "好": CharacterInfo(pinyin="hǎo", meaning="good", hsk=1),
        }
    )


@pytest.fixture
def fake_gateway():
    return FakeGateway()


@pytest.fixture
def now():
    return datetime(2024, 3, 1, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def make_card(now):
    def _make(character="中", **kwargs):
        kwargs.setdefault("pinyin", "zhōng")
        kwargs.setdefault("meaning", "middle")
        kwargs.setdefault("date_added", now)
        kwargs.setdefault("next_review", now)
        return CharacterCard(character=character, **kwargs)

    return _make


@pytest.fixture
def image_bytes():
    """A small PNG generated in memory."""

    def _make(size=(64, 32), color=(200, 30, 30)):
        buf = BytesIO()
        Image.new("RGB", size, color).save(buf, format="PNG")
        return buf.getvalue()

    return _make


@pytest.fixture
def mock_home(tmp_path, monkeypatch):
    """Isolates HOME and the data directory to a temp dir."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("HANZICARD_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
    monkeypatch.delenv("HANZICARD_ANTHROPIC_API_KEY", raising=False)
    return home
