"""Tests for the Messages API client and lookup gateway over httpx.MockTransport."""

import json

import httpx
import pytest

from hanzicard.application.resolver import LookupResolver
from hanzicard.domain.models import ComponentType
from hanzicard.infrastructure.adapters.anthropic_client import (
    AnthropicApiError,
    AnthropicMessagesClient,
)
from hanzicard.infrastructure.adapters.anthropic_gateway import (
    AnthropicLookupGateway,
    extract_json,
    parse_characters,
    parse_words,
)
from hanzicard.infrastructure.dictionary import LocalDictionary

CHAR_JSON = {
    "characters": [
        {
            "character": "落",
            "pinyin": "luò",
            "meaning": "to fall",
            "hsk": 2,
            "radical": "艹",
            "strokes": 12,
            "examples": ["落下 (fall down)"],
            "components": [
                {"char": "艹", "pinyin": "cǎo", "meaning": "grass", "type": "semantic"},
                {"char": "洛", "pinyin": "luò", "meaning": "river", "type": "phonetic"},
            ],
        }
    ]
}


def _reply(text: str, status: int = 200) -> httpx.Response:
    if status != 200:
        return httpx.Response(status, text=text)
    return httpx.Response(200, json={"content": [{"type": "text", "text": text}]})


def _gateway(handler) -> AnthropicLookupGateway:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return AnthropicLookupGateway(AnthropicMessagesClient(api_key="sk-test", client=http))


# ---------- extract_json ----------


def test_extract_json_fenced():
    text = 'Here you go:\n```json\n{"a": 1}\n```\nEnjoy'
    assert json.loads(extract_json(text)) == {"a": 1}


def test_extract_json_plain_fence():
    assert json.loads(extract_json('```\n{"a": 2}\n```')) == {"a": 2}


def test_extract_json_narrative():
    text = 'Sure! The answer is {"a": {"b": 3}} hope that helps'
    assert json.loads(extract_json(text)) == {"a": {"b": 3}}


def test_extract_json_no_object_returns_input():
    assert extract_json("nothing here") == "nothing here"


# ---------- parsing ----------


def test_parse_characters_full():
    result = parse_characters(json.dumps(CHAR_JSON, ensure_ascii=False))
    info = result["落"]
    assert info.pinyin == "luò"
    assert info.hsk == 2
    assert info.examples == ("落下 (fall down)",)
    assert [c.type for c in info.components] == [ComponentType.SEMANTIC, ComponentType.PHONETIC]


def test_parse_characters_defaults():
    payload = json.dumps(
        {
            "characters": [
                {
                    "character": "叶",
                    "components": [
                        {"char": "口", "pinyin": "kǒu"},
                        {"char": "十", "pinyin": "shí", "meaning": "ten", "type": "weird"},
                    ],
                },
                {"pinyin": "no glyph"},
            ]
        }
    )
    result = parse_characters(payload)
    info = result["叶"]
    assert list(result) == ["叶"]
    assert info.pinyin == ""
    assert info.meaning == "Unknown"
    assert info.hsk == 0
    assert info.strokes == 0
    assert info.examples == ()
    assert len(info.components) == 1
    assert info.components[0].type == ComponentType.SEMANTIC


def test_parse_characters_bad_shape():
    with pytest.raises(ValueError):
        parse_characters('{"chars": []}')
    with pytest.raises(ValueError):
        parse_characters("not json at all")


def test_parse_words_skips_incomplete():
    payload = json.dumps(
        {
            "words": [
                {"word": "出口", "pinyin": "chūkǒu", "meaning": "exit"},
                {"word": "入口", "pinyin": "rùkǒu"},
            ]
        }
    )
    words = parse_words(payload)
    assert [w.word for w in words] == ["出口"]


# ---------- gateway ----------


@pytest.mark.asyncio
async def test_resolve_characters_sends_one_request():
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return _reply("```json\n" + json.dumps(CHAR_JSON, ensure_ascii=False) + "\n```")

    async with _gateway(handler) as gateway:
        result = await gateway.resolve_characters(["落", "叶"])

    assert set(result) == {"落"}
    assert len(requests) == 1
    req = requests[0]
    assert req.headers["x-api-key"] == "sk-test"
    assert req.headers["anthropic-version"] == "2023-06-01"
    body = json.loads(req.content)
    assert body["max_tokens"] == 2048
    assert "落, 叶" in body["messages"][0]["content"]


@pytest.mark.asyncio
async def test_resolve_characters_empty_input_makes_no_request():
    def handler(request):
        raise AssertionError("no request expected")

    gateway = _gateway(handler)
    assert await gateway.resolve_characters([]) == {}


@pytest.mark.asyncio
async def test_http_error_status_returns_empty():
    gateway = _gateway(lambda request: _reply("overloaded", status=500))
    assert await gateway.resolve_characters(["落"]) == {}
    assert await gateway.segment_words("出口") == []


@pytest.mark.asyncio
async def test_transport_error_returns_empty():
    def handler(request):
        raise httpx.ConnectError("offline", request=request)

    gateway = _gateway(handler)
    assert await gateway.resolve_characters(["落"]) == {}
    assert await gateway.segment_words("出口") == []


@pytest.mark.asyncio
async def test_unparseable_reply_returns_empty():
    gateway = _gateway(lambda request: _reply("I cannot help with that."))
    assert await gateway.resolve_characters(["落"]) == {}
    assert await gateway.segment_words("出口") == []


@pytest.mark.asyncio
async def test_malformed_response_body_returns_empty():
    gateway = _gateway(lambda request: httpx.Response(200, json={"content": []}))
    assert await gateway.resolve_characters(["落"]) == {}


@pytest.mark.asyncio
async def test_segment_words_narrative_reply():
    reply = (
        "Here is the breakdown: "
        '{"words": [{"word": "小心", "pinyin": "xiǎoxīn", "meaning": "careful"}]}'
    )
    requests = []

    def handler(request):
        requests.append(json.loads(request.content))
        return _reply(reply)

    words = await _gateway(handler).segment_words("小心地滑")

    assert [w.word for w in words] == ["小心"]
    assert requests[0]["max_tokens"] == 1024


@pytest.mark.asyncio
async def test_client_raises_api_error():
    http = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: _reply("bad", 401)))
    client = AnthropicMessagesClient(api_key="x", client=http)
    with pytest.raises(AnthropicApiError) as exc:
        await client.complete("hi", max_tokens=10)
    assert exc.value.status_code == 401
    await client.aclose()


# ---------- odd field types ----------


@pytest.mark.parametrize(
    "raw_item",
    [
        '{"character": "落", "components": 5}',
        '{"character": "落", "components": true}',
        '{"character": "落", "components": {"char": "艹"}}',
        '{"character": "落", "hsk": 1e400}',
        '{"character": "落", "strokes": Infinity}',
        '{"character": "落", "strokes": NaN}',
        '{"character": "落", "examples": "落下"}',
        '{"character": "落", "examples": [1, null, {"w": "x"}, "落下"]}',
        '{"character": "落", "pinyin": {"a": 1}, "meaning": ["fall"], "radical": null}',
    ],
)
def test_parse_characters_odd_field_types_default(raw_item):
    info = parse_characters('{"characters": [' + raw_item + "]}")["落"]
    assert isinstance(info.hsk, int)
    assert isinstance(info.strokes, int)
    assert all(isinstance(e, str) for e in info.examples)
    assert all(isinstance(c.character, str) for c in info.components)
    assert isinstance(info.pinyin, str)
    assert isinstance(info.meaning, str)


def test_parse_characters_non_finite_numbers_become_zero():
    payload = '{"characters": [{"character": "落", "hsk": 1e400, "strokes": -Infinity}]}'
    info = parse_characters(payload)["落"]
    assert info.hsk == 0
    assert info.strokes == 0


def test_parse_characters_keeps_only_string_examples():
    payload = '{"characters": [{"character": "落", "examples": [1, "落下", null]}]}'
    assert parse_characters(payload)["落"].examples == ("落下",)


def test_parse_characters_non_string_meaning_uses_default():
    payload = '{"characters": [{"character": "落", "meaning": ["fall"], "pinyin": {"x": 1}}]}'
    info = parse_characters(payload)["落"]
    assert info.meaning == "Unknown"
    assert info.pinyin == ""


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "raw_item",
    [
        '{"character": "落", "components": 5}',
        '{"character": "落", "hsk": 1e400}',
        '{"character": "落", "strokes": Infinity}',
    ],
)
async def test_resolver_survives_odd_reply(raw_item):
    reply = '{"characters": [' + raw_item + "]}"
    resolver = LookupResolver(LocalDictionary({}), _gateway(lambda request: _reply(reply)))

    results = await resolver.lookup_many(["落"])

    assert set(results) == {"落"}
    assert isinstance(results["落"].strokes, int)
    assert isinstance(results["落"].components, tuple)


@pytest.mark.asyncio
async def test_words_reply_with_non_list_items_returns_what_is_valid():
    reply = '{"words": [5, "x", {"word": "出口", "pinyin": "chūkǒu", "meaning": "exit"}]}'
    words = await _gateway(lambda request: _reply(reply)).segment_words("出口")
    assert [w.word for w in words] == ["出口"]
