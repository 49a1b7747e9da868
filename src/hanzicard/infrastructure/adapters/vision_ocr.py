import base64
import logging
from io import BytesIO

import httpx
from PIL import Image, UnidentifiedImageError

from hanzicard.domain.constants import (
    JPEG_QUALITY,
    NO_CHINESE_TEXT,
    OCR_MAX_DIMENSION,
    OCR_MAX_TOKENS,
)
from hanzicard.domain.errors import OcrError, OcrErrorKind
from hanzicard.domain.interfaces import TextRecognizer

from .anthropic_client import AnthropicApiError, AnthropicMessagesClient

OCR_PROMPT = f"""\
Look at this image and extract ALL Chinese characters you can see.

Return ONLY the Chinese characters, nothing else. No translations, no pinyin, no explanations.
If you see the same character multiple times, include it only once.
Separate distinct words or phrases with spaces.

If there are no Chinese characters in the image, respond with exactly: {NO_CHINESE_TEXT}
"""


def image_to_jpeg_b64(image: bytes, max_dimension: int = OCR_MAX_DIMENSION) -> str:
    """Downscale to ``max_dimension`` and re-encode as base64 JPEG."""
    try:
        img = Image.open(BytesIO(image)).convert("RGB")
    except (UnidentifiedImageError, OSError) as e:
        raise OcrError(OcrErrorKind.INVALID_IMAGE) from e
    if max(img.size) > max_dimension:
        img.thumbnail((max_dimension, max_dimension))
    buf = BytesIO()
    img.save(buf, format="JPEG", quality=JPEG_QUALITY, optimize=True)
    return base64.b64encode(buf.getvalue()).decode("ascii")


class ClaudeVisionRecognizer(TextRecognizer):
    """Extracts Chinese text from a photo with a vision-capable model."""

    def __init__(self, client: AnthropicMessagesClient, max_tokens: int = OCR_MAX_TOKENS):
        self.logger = logging.getLogger(__name__)
        self.client = client
        self.max_tokens = max_tokens

    async def recognize_text(self, image: bytes) -> str:
        b64 = image_to_jpeg_b64(image)
        content = [
            {
                "type": "image",
                "source": {"type": "base64", "media_type": "image/jpeg", "data": b64},
            },
            {"type": "text", "text": OCR_PROMPT},
        ]

        try:
            text = await self.client.complete(content, max_tokens=self.max_tokens)
        except AnthropicApiError as e:
            raise OcrError(OcrErrorKind.API_ERROR, f"HTTP {e.status_code}: {e.body}") from e
        except httpx.HTTPError as e:
            raise OcrError(OcrErrorKind.RECOGNITION_FAILED, str(e)) from e
        except ValueError as e:
            raise OcrError(OcrErrorKind.API_ERROR, "Could not parse response") from e

        text = text.strip()
        if not text or text == NO_CHINESE_TEXT:
            raise OcrError(OcrErrorKind.NO_TEXT_FOUND)

        self.logger.debug(f"[ocr] recognized {len(text)} characters of text")
        return text
