"""Gemini ``generateContent`` REST client.

One request per call and no retries. The underlying ``httpx.AsyncClient`` can
be injected, which is how tests swap in ``httpx.MockTransport``.
"""

from __future__ import annotations

from typing import Any, Optional

import httpx

from app.core.config import settings
from app.core.logging import get_logger
from app.modules.flashcards.errors import ConfigurationError, UpstreamError
from app.modules.flashcards.models.flashcards import GenerationConfig

logger = get_logger(__name__)

MISSING_KEY_MESSAGE = (
    "Gemini API key not configured. Please set GEMINI_API_KEY in your environment."
)


class GeminiClient:
    """Thin async wrapper around the Gemini text generation endpoint."""

    def __init__(
        self,
        api_key: Optional[str],
        *,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.api_key = (api_key or "").strip()
        self.model = model or settings.gemini.model
        self.base_url = (base_url or settings.gemini.base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.gemini.timeout_seconds
        self._http_client = http_client

    @classmethod
    def from_settings(cls, http_client: Optional[httpx.AsyncClient] = None) -> "GeminiClient":
        return cls(
            settings.gemini.api_key,
            model=settings.gemini.model,
            base_url=settings.gemini.base_url,
            timeout=settings.gemini.timeout_seconds,
            http_client=http_client,
        )

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def ensure_configured(self) -> None:
        if not self.is_configured:
            raise ConfigurationError(MISSING_KEY_MESSAGE)

    async def _post(self, body: dict[str, Any]) -> httpx.Response:
        params = {"key": self.api_key}
        if self._http_client is not None:
            return await self._http_client.post(
                self.endpoint, params=params, json=body, timeout=self.timeout
            )
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.post(self.endpoint, params=params, json=body)

    async def generate_text(
        self, prompt: str, config: Optional[GenerationConfig] = None
    ) -> str:
        """Submit ``prompt`` and return the generated text."""
        self.ensure_configured()
        config = config or GenerationConfig()
        body = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": config.to_payload(),
        }

        try:
            response = await self._post(body)
        except httpx.TimeoutException as e:
            logger.error(f"Gemini request timed out after {self.timeout}s: {e}")
            raise UpstreamError("Gemini API request timed out", body=str(e)) from e
        except httpx.HTTPError as e:
            logger.error(f"Gemini transport error: {e}")
            raise UpstreamError(f"Gemini API request failed: {e}", body=str(e)) from e

        if not response.is_success:
            logger.error(
                f"Gemini API error response: {response.status_code} {response.text}"
            )
            raise UpstreamError(
                f"Gemini API error: {response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            data = response.json()
        except ValueError as e:
            logger.error(f"Gemini returned a non-JSON body: {response.text[:500]}")
            raise UpstreamError(
                "Gemini API returned a non-JSON response",
                status_code=response.status_code,
                body=response.text,
            ) from e

        text = extract_generated_text(data)
        if text is None:
            logger.error(f"Unexpected Gemini API response structure: {data}")
            raise UpstreamError(
                "Unexpected response structure from Gemini API",
                status_code=response.status_code,
                body=response.text,
            )
        return text

    async def validate_api_key(self) -> bool:
        """Send a tiny request; True when the endpoint accepts the key."""
        if not self.is_configured:
            return False
        body = {
            "contents": [{"parts": [{"text": "Hello, this is a test message."}]}],
            "generationConfig": {"maxOutputTokens": 10},
        }
        try:
            response = await self._post(body)
        except httpx.HTTPError as e:
            logger.warning(f"Gemini key validation request failed: {e}")
            return False
        return response.is_success


def extract_generated_text(data: Any) -> Optional[str]:
    """Pull ``candidates[0].content.parts[0].text`` out of a response envelope."""
    try:
        text = data["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        return None
    return text if isinstance(text, str) else None
