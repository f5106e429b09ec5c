"""Async text-completion client with retry and rate-limit handling."""

import asyncio
import logging
from datetime import UTC, datetime
from email.utils import parsedate_to_datetime
from typing import Any, Protocol

import httpx

from logcore.exceptions import InferenceError
from logcore.inference.constants import (
    DEFAULT_INFERENCE_MODEL,
    DEFAULT_INFERENCE_URL,
    DEFAULT_MAX_RETRIES,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_RETRY_BASE_DELAY,
    MAX_RETRY_AFTER,
)

logger = logging.getLogger(__name__)


class InferenceService(Protocol):
    """An opaque text-completion model."""

    async def complete(self, prompt: str, max_tokens: int) -> str: ...


def extract_completion_text(payload: Any) -> str | None:
    """Pull the generated text out of a completion response body.

    Accepts ``{"result": {"response": ...}}``, ``{"response": ...}`` and the
    ``{"choices": [{"text": ...}]}`` shape. Returns None if none match.
    """
    if not isinstance(payload, dict):
        return None
    result = payload.get("result")
    if isinstance(result, dict) and isinstance(result.get("response"), str):
        return result["response"]
    if isinstance(payload.get("response"), str):
        return payload["response"]
    choices = payload.get("choices")
    if isinstance(choices, list) and choices and isinstance(choices[0], dict):
        text = choices[0].get("text")
        if isinstance(text, str):
            return text
    return None


def parse_retry_after(value: str | None, *, max_delay: float = MAX_RETRY_AFTER) -> float | None:
    """Seconds to wait from a ``Retry-After`` header, clamped to ``[0, max_delay]``.

    Accepts delta-seconds or an HTTP date. Returns None when the header is
    missing or unparseable, so the caller falls back to its own backoff.
    """
    if not value:
        return None
    try:
        delay = float(value)
    except ValueError:
        try:
            retry_at = parsedate_to_datetime(value)
        except (TypeError, ValueError):
            return None
        if retry_at.tzinfo is None:
            retry_at = retry_at.replace(tzinfo=UTC)
        delay = (retry_at - datetime.now(UTC)).total_seconds()
    if delay != delay:  # NaN
        return None
    return min(max(delay, 0.0), max_delay)


class HttpInferenceClient:
    """Inference service reached over HTTP.

    Retries 429 and 5xx responses with exponential backoff (honouring
    ``Retry-After`` on 429). Any other failure raises ``InferenceError``.
    """

    def __init__(
        self,
        url: str = DEFAULT_INFERENCE_URL,
        *,
        model: str = DEFAULT_INFERENCE_MODEL,
        api_token: str | None = None,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_base_delay: float = DEFAULT_RETRY_BASE_DELAY,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ) -> None:
        self._url = url
        self._model = model
        self._api_token = api_token
        self._max_retries = max_retries
        self._retry_base_delay = retry_base_delay
        self._request_timeout = request_timeout

    def _headers(self) -> dict[str, str]:
        if self._api_token:
            return {"Authorization": f"Bearer {self._api_token}"}
        return {}

    async def complete(self, prompt: str, max_tokens: int) -> str:
        body = {"model": self._model, "prompt": prompt, "max_tokens": max_tokens, "stream": False}
        last_status = 0

        for attempt in range(self._max_retries + 1):
            try:
                async with httpx.AsyncClient(timeout=self._request_timeout) as client:
                    response = await client.post(self._url, json=body, headers=self._headers())
            except httpx.HTTPError as exc:
                raise InferenceError(f"Inference request failed: {exc}") from exc

            last_status = response.status_code

            if 200 <= response.status_code < 300:
                try:
                    payload = response.json()
                except ValueError as exc:
                    raise InferenceError("Inference response is not JSON") from exc
                text = extract_completion_text(payload)
                if not text:
                    raise InferenceError("Inference response contained no text")
                return text

            if response.status_code == 429:
                delay = parse_retry_after(response.headers.get("Retry-After"))
                if delay is None:
                    delay = self._retry_base_delay * (2**attempt)
                if attempt < self._max_retries:
                    logger.warning(
                        "Inference rate limited (429), sleeping %.1fs (attempt %d/%d)",
                        delay,
                        attempt + 1,
                        self._max_retries,
                    )
                    await asyncio.sleep(delay)
                    continue

            elif response.status_code >= 500:
                if attempt < self._max_retries:
                    delay = self._retry_base_delay * (2**attempt)
                    logger.warning(
                        "Inference server error %d, sleeping %.1fs (attempt %d/%d)",
                        response.status_code,
                        delay,
                        attempt + 1,
                        self._max_retries,
                    )
                    await asyncio.sleep(delay)
                    continue

            else:
                detail = response.text[:200] if response.text else f"HTTP {response.status_code}"
                raise InferenceError(f"Inference request rejected: HTTP {response.status_code} {detail}")

        raise InferenceError(f"Inference unavailable after {self._max_retries} retries (last HTTP {last_status})")
