import logging
from typing import Any

import httpx

from hanzicard.domain.constants import (
    ANTHROPIC_API_URL,
    ANTHROPIC_VERSION,
    DEFAULT_MODEL,
    REQUEST_TIMEOUT,
)


class AnthropicApiError(Exception):
    """Non-success HTTP status from the Messages API."""

    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"HTTP {status_code}: {body}")


class AnthropicMessagesClient:
    """Thin async wrapper around the Anthropic Messages API (single-turn, text out)."""

    def __init__(
        self,
        api_key: str,
        url: str = ANTHROPIC_API_URL,
        model: str = DEFAULT_MODEL,
        version: str = ANTHROPIC_VERSION,
        timeout: float = REQUEST_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ):
        self.logger = logging.getLogger(__name__)
        self.api_key = api_key
        self.url = url
        self.model = model
        self.version = version
        self.timeout = timeout
        self._client = client

    def _headers(self) -> dict[str, str]:
        return {
            "content-type": "application/json",
            "x-api-key": self.api_key,
            "anthropic-version": self.version,
        }

    async def complete(self, content: str | list[dict[str, Any]], max_tokens: int) -> str:
        """
        Send one user message and return the text of the first content block.

        Raises:
            httpx.HTTPError: transport failure.
            AnthropicApiError: non-200 status.
            ValueError: response body is not the expected shape.
        """
        payload = {
            "model": self.model,
            "max_tokens": max_tokens,
            "messages": [{"role": "user", "content": content}],
        }
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)

        resp = await self._client.post(self.url, json=payload, headers=self._headers())
        if resp.status_code != 200:
            raise AnthropicApiError(resp.status_code, resp.text)

        data = resp.json()
        try:
            text = data["content"][0]["text"]
        except (KeyError, IndexError, TypeError) as e:
            raise ValueError(f"unexpected response shape: {e}") from e
        if not isinstance(text, str):
            raise ValueError("response text block is not a string")
        return text

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
