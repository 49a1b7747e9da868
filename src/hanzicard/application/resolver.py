"""
Lookup resolver: local dictionary first, session cache second, remote last.

The resolver owns two process-lifetime caches:
- character -> CharacterInfo, remote successes only (dictionary hits are free
  and never cached)
- normalized text -> [WordInfo], keyed on the Chinese characters of the text
  only, empty results included

Each cache is guarded by its own asyncio.Lock. Gateway calls run outside the
locks, so two overlapping analyses may both miss and both call the gateway;
that duplication is accepted.
"""

import asyncio
import logging
from collections.abc import Iterable

from hanzicard.application.utils.script import normalize_cache_key
from hanzicard.domain.interfaces import LookupGateway
from hanzicard.domain.models import CharacterInfo, TextAnalysisResult, WordInfo
from hanzicard.infrastructure.dictionary import LocalDictionary

logger = logging.getLogger(__name__)


class LookupResolver:
    def __init__(self, dictionary: LocalDictionary, gateway: LookupGateway):
        self._dictionary = dictionary
        self._gateway = gateway
        self._cache: dict[str, CharacterInfo] = {}
        self._word_cache: dict[str, list[WordInfo]] = {}
        self._cache_lock = asyncio.Lock()
        self._word_lock = asyncio.Lock()

    async def analyze(self, text: str, characters: Iterable[str]) -> TextAnalysisResult:
        """Resolve every character and segment the text into words."""
        char_results = await self.lookup_many(characters)
        words = await self.segment_words(text)
        return TextAnalysisResult(words=words, characters=char_results)

    async def lookup(self, character: str) -> CharacterInfo:
        """Look up one character. Always returns a value, the placeholder at worst."""
        info = self._dictionary.lookup(character)
        if info is not None:
            return info

        async with self._cache_lock:
            cached = self._cache.get(character)
        if cached is not None:
            logger.debug(f"[cache] hit {character}")
            return cached

        results = await self._gateway.resolve_characters([character])
        info = results.get(character)
        if info is not None:
            async with self._cache_lock:
                self._cache[character] = info
            return info

        return CharacterInfo.unknown(character)

    async def lookup_many(self, characters: Iterable[str]) -> dict[str, CharacterInfo]:
        """
        Look up a batch of characters with at most one gateway call.

        Returns:
            Exactly one entry per distinct input character, in input order.
        """
        ordered = list(dict.fromkeys(characters))
        results: dict[str, CharacterInfo] = {}
        unresolved: list[str] = []

        async with self._cache_lock:
            for char in ordered:
                info = self._dictionary.lookup(char)
                if info is not None:
                    results[char] = info
                elif char in self._cache:
                    results[char] = self._cache[char]
                else:
                    unresolved.append(char)

        if not unresolved:
            return {char: results[char] for char in ordered}

        logger.debug(f"[resolver] {len(unresolved)} characters need a remote lookup")
        remote = await self._gateway.resolve_characters(unresolved)

        wanted = set(unresolved)
        async with self._cache_lock:
            for char, info in remote.items():
                if char not in wanted:
                    continue
                results[char] = info
                self._cache[char] = info

        for char in unresolved:
            if char not in results:
                results[char] = CharacterInfo.unknown(char)

        return {char: results[char] for char in ordered}

    async def segment_words(self, text: str) -> list[WordInfo]:
        key = normalize_cache_key(text)
        async with self._word_lock:
            cached = self._word_cache.get(key)
        if cached is not None:
            logger.debug(f"[cache] word hit for {key!r}")
            return list(cached)

        words = await self._gateway.segment_words(text)
        async with self._word_lock:
            self._word_cache[key] = list(words)
        return list(words)

    async def clear_cache(self) -> None:
        async with self._cache_lock:
            self._cache.clear()
        async with self._word_lock:
            self._word_cache.clear()

    @property
    def cached_characters(self) -> int:
        return len(self._cache)

    @property
    def cached_texts(self) -> int:
        return len(self._word_cache)
