import base64
import json
from io import BytesIO

import httpx
import pytest
from PIL import Image

from hanzicard.domain.errors import OcrError, OcrErrorKind
from hanzicard.infrastructure.adapters.anthropic_client import AnthropicMessagesClient
from hanzicard.infrastructure.adapters.vision_ocr import (
    ClaudeVisionRecognizer,
    image_to_jpeg_b64,
)


def _recognizer(handler) -> ClaudeVisionRecognizer:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return ClaudeVisionRecognizer(AnthropicMessagesClient(api_key="k", client=http))


def _text(text):
    return lambda request: httpx.Response(200, json={"content": [{"type": "text", "text": text}]})


def test_image_is_downscaled(image_bytes):
    b64 = image_to_jpeg_b64(image_bytes((3000, 1500)), max_dimension=1024)
    img = Image.open(BytesIO(base64.b64decode(b64)))
    assert img.format == "JPEG"
    assert max(img.size) == 1024


def test_small_image_keeps_size(image_bytes):
    img = Image.open(BytesIO(base64.b64decode(image_to_jpeg_b64(image_bytes((100, 50))))))
    assert img.size == (100, 50)


def test_invalid_image():
    with pytest.raises(OcrError) as exc:
        image_to_jpeg_b64(b"not an image")
    assert exc.value.kind == OcrErrorKind.INVALID_IMAGE


@pytest.mark.asyncio
async def test_recognize_text_success(image_bytes):
    sent = []

    def handler(request):
        sent.append(json.loads(request.content))
        return _text("  出口 EXIT \n")(request)

    text = await _recognizer(handler).recognize_text(image_bytes())

    assert text == "出口 EXIT"
    content = sent[0]["messages"][0]["content"]
    assert content[0]["type"] == "image"
    assert content[0]["source"]["media_type"] == "image/jpeg"
    assert content[1]["type"] == "text"


@pytest.mark.asyncio
@pytest.mark.parametrize("reply", ["", "   ", "NO_CHINESE_TEXT"])
async def test_no_text_found(image_bytes, reply):
    with pytest.raises(OcrError) as exc:
        await _recognizer(_text(reply)).recognize_text(image_bytes())
    assert exc.value.kind == OcrErrorKind.NO_TEXT_FOUND


@pytest.mark.asyncio
async def test_http_status_is_api_error(image_bytes):
    recognizer = _recognizer(lambda r: httpx.Response(529, text="overloaded"))
    with pytest.raises(OcrError) as exc:
        await recognizer.recognize_text(image_bytes())
    assert exc.value.kind == OcrErrorKind.API_ERROR
    assert "HTTP 529: overloaded" in str(exc.value)


@pytest.mark.asyncio
async def test_transport_failure_is_recognition_failed(image_bytes):
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(OcrError) as exc:
        await _recognizer(handler).recognize_text(image_bytes())
    assert exc.value.kind == OcrErrorKind.RECOGNITION_FAILED


@pytest.mark.asyncio
async def test_bad_body_is_api_error(image_bytes):
    recognizer = _recognizer(lambda r: httpx.Response(200, json={"content": "nope"}))
    with pytest.raises(OcrError) as exc:
        await recognizer.recognize_text(image_bytes())
    assert exc.value.kind == OcrErrorKind.API_ERROR
