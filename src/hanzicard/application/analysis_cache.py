"""
JSON blobs for the analysis attached to a captured photo.

Words serialize as ``[{"word", "pinyin", "meaning"}]``. Characters serialize
as ``[{"character", "pinyin", "meaning", "hsk", "radical", "strokes",
"examples", "components", "isSaved"}]`` with components as
``{"character", "pinyin", "meaning", "typeRaw"}``. Anything unreadable
decodes to an empty list.
"""

import json
import logging
from collections.abc import Iterable
from typing import Any

from hanzicard.domain.models import (
    AnalyzedCharacter,
    CharacterInfo,
    ComponentInfo,
    ComponentType,
    WordInfo,
)

logger = logging.getLogger(__name__)


def _dumps(items: list[dict[str, Any]]) -> str:
    return json.dumps(items, ensure_ascii=False)


def _loads_list(blob: str) -> list[Any]:
    try:
        data = json.loads(blob)
    except (TypeError, ValueError) as e:
        logger.warning(f"Discarding unreadable analysis blob: {e}")
        return []
    if not isinstance(data, list):
        logger.warning("Discarding analysis blob that is not a list")
        return []
    return data


def serialize_words(words: Iterable[WordInfo]) -> str:
    return _dumps([{"word": w.word, "pinyin": w.pinyin, "meaning": w.meaning} for w in words])


def deserialize_words(blob: str) -> list[WordInfo]:
    try:
        return [
            WordInfo(word=d["word"], pinyin=d["pinyin"], meaning=d["meaning"])
            for d in _loads_list(blob)
        ]
    except (KeyError, TypeError) as e:
        logger.warning(f"Discarding malformed word blob: {e}")
        return []


def _component_to_dict(c: ComponentInfo) -> dict[str, Any]:
    return {
        "character": c.character,
        "pinyin": c.pinyin,
        "meaning": c.meaning,
        "typeRaw": c.type.value,
    }


def _component_from_dict(d: dict[str, Any]) -> ComponentInfo:
    return ComponentInfo(
        character=d["character"],
        pinyin=d["pinyin"],
        meaning=d["meaning"],
        type=ComponentType.parse(d.get("typeRaw")),
    )


def serialize_characters(characters: Iterable[AnalyzedCharacter]) -> str:
    items = []
    for a in characters:
        info = a.info
        items.append(
            {
                "character": a.character,
                "pinyin": info.pinyin,
                "meaning": info.meaning,
                "hsk": info.hsk,
                "radical": info.radical,
                "strokes": info.strokes,
                "examples": list(info.examples),
                "components": [_component_to_dict(c) for c in info.components],
                "isSaved": a.is_saved,
            }
        )
    return _dumps(items)


def deserialize_characters(blob: str) -> list[AnalyzedCharacter]:
    result = []
    try:
        for d in _loads_list(blob):
            info = CharacterInfo(
                pinyin=d["pinyin"],
                meaning=d["meaning"],
                hsk=d["hsk"],
                radical=d["radical"],
                strokes=d["strokes"],
                examples=tuple(d["examples"]),
                components=tuple(_component_from_dict(c) for c in d["components"]),
            )
            result.append(
                AnalyzedCharacter(character=d["character"], info=info, is_saved=d["isSaved"])
            )
    except (KeyError, TypeError) as e:
        logger.warning(f"Discarding malformed character blob: {e}")
        return []
    return result
