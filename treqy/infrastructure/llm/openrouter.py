"""
OpenRouter chat-completions provider.

Sends the document inline as a base64 data URI next to the extraction
instruction and returns the model's raw text.
"""

import base64
import time
from typing import Any

import httpx

from treqy.config import get_logger, get_settings
from treqy.core.exceptions import ExtractionServiceUnavailableError
from treqy.core.interfaces import HealthStatus
from treqy.infrastructure.llm.base import BaseExtractionProvider
from treqy.infrastructure.llm.prompts import MATERIAL_EXTRACTION_PROMPT

logger = get_logger(__name__)


def build_data_uri(document: bytes, media_type: str) -> str:
    """Encode a document as a data URI."""
    encoded = base64.b64encode(document).decode("ascii")
    return f"data:{media_type};base64,{encoded}"


def _message_text(content: Any) -> str | None:
    """Read assistant content that is either a string or a list of parts."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = [
            part.get("text", "")
            for part in content
            if isinstance(part, dict) and part.get("type") == "text"
        ]
        return "".join(parts) if parts else None
    return None


def _completion_text(result: Any) -> str | None:
    """Pull choices[0].message.content out of a completion body, if present."""
    if not isinstance(result, dict):
        return None
    choices = result.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    choice = choices[0]
    if not isinstance(choice, dict):
        return None
    message = choice.get("message")
    if not isinstance(message, dict):
        return None
    return _message_text(message.get("content"))


class OpenRouterProvider(BaseExtractionProvider):
    """
    OpenRouter HTTP API provider.

    A transport can be injected for tests; it is passed straight to
    httpx.AsyncClient.
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str | None = None,
        timeout: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        super().__init__()
        settings = get_settings()
        self.api_key = api_key if api_key is not None else settings.llm.api_key
        self.model = model or settings.llm.model
        self.base_url = (base_url or settings.llm.base_url).rstrip("/")
        self.timeout = timeout or settings.llm.timeout
        self.max_tokens = settings.llm.max_tokens
        self.temperature = settings.llm.temperature
        self.referer = settings.llm.referer
        self.app_title = settings.llm.app_title
        self._transport = transport

    @property
    def name(self) -> str:
        return "openrouter"

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "HTTP-Referer": self.referer,
            "X-Title": self.app_title,
        }

    def build_payload(self, document: bytes, media_type: str, prompt: str) -> dict:
        """Request body with one user message: instruction then document."""
        return {
            "model": self.model,
            "messages": [
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": prompt},
                        {
                            "type": "image_url",
                            "image_url": {"url": build_data_uri(document, media_type)},
                        },
                    ],
                }
            ],
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
        }

    async def _make_request(self, payload: dict) -> Any:
        """POST to the chat completions endpoint."""
        url = f"{self.base_url}/chat/completions"

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(url, json=payload, headers=self._headers())
        except httpx.TimeoutException as e:
            raise ExtractionServiceUnavailableError(
                f"request timed out after {self.timeout}s"
            ) from e
        except httpx.HTTPError as e:
            raise ExtractionServiceUnavailableError(f"request failed: {e}") from e

        if not response.is_success:
            raise ExtractionServiceUnavailableError(
                "upstream returned an error",
                status_code=response.status_code,
                error_body=response.text,
            )

        try:
            return response.json()
        except ValueError as e:
            raise ExtractionServiceUnavailableError(
                "response body is not JSON",
                status_code=response.status_code,
                error_body=response.text,
            ) from e

    async def extract(
        self,
        document: bytes,
        media_type: str,
        prompt: str | None = None,
    ) -> str:
        """Send the document and return the model's raw text."""
        if not self.api_key:
            raise ExtractionServiceUnavailableError("LLM_API_KEY is not configured")

        payload = self.build_payload(document, media_type, prompt or MATERIAL_EXTRACTION_PROMPT)

        async def _do_extract() -> str:
            start_time = time.time()
            result = await self._make_request(payload)
            elapsed = time.time() - start_time

            text = _completion_text(result)
            if text is None:
                # Some upstream failures arrive as 200 with an error object
                error = result.get("error") if isinstance(result, dict) else None
                raise ExtractionServiceUnavailableError(
                    "response has no message content",
                    status_code=200,
                    error_body=str(error or result)[:2000],
                )

            logger.info(
                "openrouter_extract",
                model=self.model,
                document_bytes=len(document),
                response_len=len(text),
                elapsed_ms=int(elapsed * 1000),
            )
            return text

        return await self._with_circuit_breaker(_do_extract)

    async def check_health(self) -> HealthStatus:
        """Check the key is set and the models endpoint answers."""
        if not self.api_key:
            return HealthStatus(
                available=False,
                provider=self.name,
                model=self.model,
                error="LLM_API_KEY is not configured",
            )
        if self.circuit_breaker.cooldown_remaining > 0:
            return HealthStatus(
                available=False,
                provider=self.name,
                model=self.model,
                error=f"circuit breaker open, retry in {self.circuit_breaker.cooldown_remaining}s",
            )

        start_time = time.time()
        try:
            async with httpx.AsyncClient(timeout=10, transport=self._transport) as client:
                response = await client.get(f"{self.base_url}/models", headers=self._headers())
        except httpx.HTTPError as e:
            return HealthStatus(
                available=False,
                provider=self.name,
                model=self.model,
                error=f"Cannot reach {self.base_url}: {e}",
            )

        if not response.is_success:
            return HealthStatus(
                available=False,
                provider=self.name,
                model=self.model,
                error=f"HTTP {response.status_code}",
            )
        return HealthStatus(
            available=True,
            provider=self.name,
            model=self.model,
            response_time_ms=(time.time() - start_time) * 1000,
        )


# Singleton
_openrouter_provider: OpenRouterProvider | None = None


def get_openrouter_provider() -> OpenRouterProvider:
    """Get or create the OpenRouter provider singleton."""
    global _openrouter_provider
    if _openrouter_provider is None:
        _openrouter_provider = OpenRouterProvider()
    return _openrouter_provider


def reset_openrouter_provider() -> None:
    """Drop the singleton (for testing)."""
    global _openrouter_provider
    _openrouter_provider = None
