from __future__ import annotations

import logging
from typing import Any

import httpx

from .config import DEFAULT_BASE_URL
from .errors import UpstreamError

log = logging.getLogger("grokai.client")

CHAT_COMPLETIONS_PATH = "/v1/chat/completions"


class GrokClient:
    """Single-shot client for xAI's OpenAI-compatible chat-completions API.

    Every call opens its own ``httpx.AsyncClient``, sends exactly one POST and
    never retries.  Failures of any kind surface as :class:`UpstreamError`.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        kwargs: dict[str, Any] = {}
        if self.timeout is not None:
            kwargs["timeout"] = self.timeout
        if self._transport is not None:
            kwargs["transport"] = self._transport
        return httpx.AsyncClient(**kwargs)

    def _headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }

    async def _post(self, path: str, payload: dict[str, Any]) -> httpx.Response:
        try:
            async with self._client() as client:
                response = await client.post(
                    f"{self.base_url}{path}", json=payload, headers=self._headers()
                )
                response.raise_for_status()
                return response
        except httpx.TimeoutException as exc:
            raise UpstreamError(f"Request timed out: {path}") from exc
        except httpx.HTTPStatusError as exc:
            body = exc.response.text[:300]
            raise UpstreamError(
                f"HTTP {exc.response.status_code} on {path}: {body}",
                status_code=exc.response.status_code,
            ) from exc
        except httpx.HTTPError as exc:
            raise UpstreamError(f"Network error on {path}: {exc}") from exc

    async def chat(
        self,
        model: str,
        messages: list[dict[str, Any]],
        temperature: float = 0.7,
    ) -> str:
        """Send one chat completion and return ``choices[0].message.content``."""
        payload = {"model": model, "messages": messages, "temperature": temperature}
        log.debug("POST %s model=%s messages=%d", CHAT_COMPLETIONS_PATH, model, len(messages))
        response = await self._post(CHAT_COMPLETIONS_PATH, payload)
        log.debug("chat completion returned HTTP %s", response.status_code)
        try:
            content = response.json()["choices"][0]["message"]["content"]
        except ValueError as exc:
            raise UpstreamError("Malformed chat response: body is not JSON", status_code=response.status_code) from exc
        except (KeyError, IndexError, TypeError) as exc:
            raise UpstreamError(
                "Malformed chat response: missing choices[0].message.content",
                status_code=response.status_code,
            ) from exc
        if not isinstance(content, str):
            raise UpstreamError(
                "Malformed chat response: message content is not text",
                status_code=response.status_code,
            )
        return content
