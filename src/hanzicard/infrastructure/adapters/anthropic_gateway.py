"""
Remote lookup gateway backed by the Anthropic Messages API.

Resolves characters that the local dictionary does not know and segments
text into words. Every failure is logged and absorbed into an empty result;
the resolver has its own placeholder fallback.
"""

import json
import logging
from collections.abc import Iterable
from typing import Any

import httpx

from hanzicard.domain.constants import (
    CHARACTER_MAX_TOKENS,
    REMOTE_DEFAULT_MEANING,
    WORD_MAX_TOKENS,
)
from hanzicard.domain.interfaces import LookupGateway
from hanzicard.domain.models import CharacterInfo, ComponentInfo, ComponentType, WordInfo

from .anthropic_client import AnthropicApiError, AnthropicMessagesClient

CHARACTER_PROMPT = """\
For each of these Chinese characters, provide: pinyin (with tone marks), English meaning, \
HSK level (1-6, or 0 if not in HSK), radical, stroke count, 2 example words, and component \
characters (simpler characters that make up this one).

Characters: {characters}

Respond in this exact JSON format (no other text):
{{
  "characters": [
    {{
      "character": "落",
      "pinyin": "luò",
      "meaning": "to fall, to drop",
      "hsk": 2,
      "radical": "艹",
      "strokes": 12,
      "examples": ["落下 (fall down)", "降落 (descend)"],
      "components": [
        {{"char": "艹", "pinyin": "cǎo", "meaning": "grass radical", "type": "semantic"}},
        {{"char": "洛", "pinyin": "luò", "meaning": "name of a river", "type": "phonetic"}}
      ]
    }}
  ]
}}

Rules for components:
- Only include meaningful sub-characters that are real Chinese characters
- Simple characters (like 一, 人, 大) may have empty components []
- Mark each component as "semantic" (contributes to meaning), "phonetic" (contributes to \
pronunciation), or "both"
- Most characters are phono-semantic compounds: one semantic radical + one phonetic component
"""

WORD_PROMPT = """\
Analyze this Chinese text and break it into compound words (词语). For each word, give \
pinyin and English meaning.

Text: {text}

Return JSON only:
{{
  "words": [
    {{"word": "注意", "pinyin": "zhùyì", "meaning": "to pay attention, caution"}},
    {{"word": "安全", "pinyin": "ānquán", "meaning": "safety, safe"}}
  ]
}}

Rules:
- Group characters into meaningful words (usually 2-4 characters)
- Keep words in the order they appear in the text
- Include ALL Chinese characters from the text in exactly one word
- Single characters that stand alone should be their own "word"
"""


def extract_json(text: str) -> str:
    """
    Pull a JSON document out of a model reply.

    Tries a ```json fence, then any ``` fence, then the span from the first
    "{" to the last "}". Falls back to the text unchanged.
    """
    fence = text.find("```json")
    if fence != -1:
        start = fence + len("```json")
        end = text.find("```", start)
        if end != -1:
            return text[start:end].strip()

    fence = text.find("```")
    if fence != -1:
        start = fence + 3
        end = text.find("```", start)
        if end != -1:
            return text[start:end].strip()

    first = text.find("{")
    last = text.rfind("}")
    if first != -1 and last > first:
        return text[first : last + 1]

    return text


def _as_int(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return 0


def _as_str(value: Any, default: str = "") -> str:
    if isinstance(value, str) and value:
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return default


def _parse_component(raw: Any) -> ComponentInfo | None:
    if not isinstance(raw, dict):
        return None
    char, pinyin, meaning = raw.get("char"), raw.get("pinyin"), raw.get("meaning")
    if not all(isinstance(v, str) for v in (char, pinyin, meaning)):
        return None
    return ComponentInfo(
        character=char,
        pinyin=pinyin,
        meaning=meaning,
        type=ComponentType.parse(raw.get("type", "semantic")),
    )


def parse_characters(payload: str) -> dict[str, CharacterInfo]:
    """Parse a ``{"characters": [...]}`` reply. Raises ValueError if the shape is wrong."""
    parsed = json.loads(extract_json(payload))
    if not isinstance(parsed, dict) or not isinstance(parsed.get("characters"), list):
        raise ValueError("reply has no 'characters' list")

    results: dict[str, CharacterInfo] = {}
    for item in parsed["characters"]:
        if not isinstance(item, dict):
            continue
        char = item.get("character")
        if not isinstance(char, str) or not char:
            continue

        raw_components = item.get("components")
        if not isinstance(raw_components, list):
            raw_components = []
        components = tuple(c for c in map(_parse_component, raw_components) if c is not None)
        examples = item.get("examples")
        if not isinstance(examples, list):
            examples = []
        results[char] = CharacterInfo(
            pinyin=_as_str(item.get("pinyin")),
            meaning=_as_str(item.get("meaning"), REMOTE_DEFAULT_MEANING),
            hsk=_as_int(item.get("hsk")),
            radical=_as_str(item.get("radical")),
            strokes=_as_int(item.get("strokes")),
            examples=tuple(e for e in examples if isinstance(e, str)),
            components=components,
        )
    return results


def parse_words(payload: str) -> list[WordInfo]:
    """Parse a ``{"words": [...]}`` reply. Raises ValueError if the shape is wrong."""
    parsed = json.loads(extract_json(payload))
    if not isinstance(parsed, dict) or not isinstance(parsed.get("words"), list):
        raise ValueError("reply has no 'words' list")

    words = []
    for item in parsed["words"]:
        if not isinstance(item, dict):
            continue
        word, pinyin, meaning = item.get("word"), item.get("pinyin"), item.get("meaning")
        if all(isinstance(v, str) for v in (word, pinyin, meaning)):
            words.append(WordInfo(word=word, pinyin=pinyin, meaning=meaning))
    return words


class AnthropicLookupGateway(LookupGateway):
    """LookupGateway over the Messages API. Stateless: no caching, no retries."""

    def __init__(
        self,
        client: AnthropicMessagesClient,
        character_max_tokens: int = CHARACTER_MAX_TOKENS,
        word_max_tokens: int = WORD_MAX_TOKENS,
    ):
        self.logger = logging.getLogger(__name__)
        self.client = client
        self.character_max_tokens = character_max_tokens
        self.word_max_tokens = word_max_tokens

    async def resolve_characters(self, glyphs: Iterable[str]) -> dict[str, CharacterInfo]:
        glyphs = list(glyphs)
        if not glyphs:
            return {}

        prompt = CHARACTER_PROMPT.format(characters=", ".join(glyphs))
        text = await self._complete(prompt, self.character_max_tokens, "character lookup")
        if text is None:
            return {}
        try:
            results = parse_characters(text)
        except (ValueError, TypeError) as e:
            self.logger.warning(f"Failed to parse character JSON: {e}")
            return {}

        self.logger.debug(f"[gateway] resolved {len(results)}/{len(glyphs)} characters")
        return results

    async def segment_words(self, text: str) -> list[WordInfo]:
        prompt = WORD_PROMPT.format(text=text)
        reply = await self._complete(prompt, self.word_max_tokens, "word detection")
        if reply is None:
            return []
        try:
            return parse_words(reply)
        except (ValueError, TypeError) as e:
            self.logger.warning(f"Failed to parse word JSON: {e}")
            return []

    async def _complete(self, prompt: str, max_tokens: int, purpose: str) -> str | None:
        try:
            return await self.client.complete(prompt, max_tokens=max_tokens)
        except AnthropicApiError as e:
            self.logger.error(f"{purpose} failed: HTTP {e.status_code}")
        except httpx.HTTPError as e:
            self.logger.error(f"{purpose} transport error: {e}")
        except ValueError as e:
            self.logger.error(f"{purpose} returned an unreadable response: {e}")
        return None

    async def aclose(self) -> None:
        await self.client.aclose()

    async def __aenter__(self) -> "AnthropicLookupGateway":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()
