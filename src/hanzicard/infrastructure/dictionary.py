"""
Bundled local dictionary and common-phrase table.

Both are loaded once from YAML shipped inside the package and are read-only
afterwards. A character found here is authoritative: the remote gateway is
never consulted for it.
"""

import logging
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any

import yaml  # type: ignore

from hanzicard.domain.models import CharacterInfo, PhraseInfo

logger = logging.getLogger(__name__)

DICTIONARY_RESOURCE = "dictionary.yaml"
PHRASES_RESOURCE = "phrases.yaml"


def _read_yaml(path: Path | None, resource: str) -> dict[str, Any]:
    if path is not None:
        raw = path.read_text(encoding="utf-8")
    else:
        raw = resources.files("hanzicard.data").joinpath(resource).read_text(encoding="utf-8")
    data = yaml.safe_load(raw) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected a mapping at the top of {path or resource}")
    return data


def _entry_to_info(entry: dict[str, Any]) -> CharacterInfo:
    return CharacterInfo(
        pinyin=str(entry.get("pinyin", "")),
        meaning=str(entry.get("meaning", "")),
        hsk=int(entry.get("hsk", 0)),
        radical=str(entry.get("radical", "")),
        strokes=int(entry.get("strokes", 0)),
        examples=tuple(str(e) for e in entry.get("examples") or []),
    )


class LocalDictionary:
    """Synchronous character -> CharacterInfo mapping."""

    def __init__(self, entries: dict[str, CharacterInfo]):
        self._entries = dict(entries)

    @classmethod
    def load(cls, path: Path | None = None) -> "LocalDictionary":
        data = _read_yaml(path, DICTIONARY_RESOURCE)
        entries = {}
        for char, entry in data.items():
            if not isinstance(entry, dict):
                logger.warning(f"Skipping malformed dictionary entry for {char!r}")
                continue
            entries[str(char)] = _entry_to_info(entry)
        logger.debug(f"Loaded {len(entries)} dictionary entries")
        return cls(entries)

    def lookup(self, character: str) -> CharacterInfo | None:
        return self._entries.get(character)

    def __contains__(self, character: object) -> bool:
        return character in self._entries

    def __len__(self) -> int:
        return len(self._entries)


class CommonPhrases:
    """Phrases commonly seen on signs, matched by substring."""

    def __init__(self, entries: dict[str, PhraseInfo]):
        self._entries = dict(entries)
        # Longest first so longer phrases are reported before their parts.
        self._by_length = sorted(self._entries, key=len, reverse=True)

    @classmethod
    def load(cls, path: Path | None = None) -> "CommonPhrases":
        data = _read_yaml(path, PHRASES_RESOURCE)
        return cls(
            {
                str(phrase): PhraseInfo(
                    pinyin=str(entry.get("pinyin", "")), meaning=str(entry.get("meaning", ""))
                )
                for phrase, entry in data.items()
                if isinstance(entry, dict)
            }
        )

    def lookup(self, phrase: str) -> PhraseInfo | None:
        return self._entries.get(phrase)

    def find_phrases(self, text: str) -> list[tuple[str, PhraseInfo]]:
        return [(p, self._entries[p]) for p in self._by_length if p in text]

    def __len__(self) -> int:
        return len(self._entries)


@lru_cache(maxsize=1)
def load_default_dictionary() -> LocalDictionary:
    return LocalDictionary.load()


@lru_cache(maxsize=1)
def load_default_phrases() -> CommonPhrases:
    return CommonPhrases.load()
