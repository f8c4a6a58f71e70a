"""OpenAI-compatible vision LLM provider adapter.

Wraps the ``openai`` async client to implement :class:`ILLMProvider`.
When ``openai_base_url`` is configured (Azure proxy, TogetherAI, a local
gateway) the client points at that URL instead of api.openai.com.

Rate-limit responses are translated into :class:`RateLimitError` carrying
the server's ``retry-after`` hint so the page analyzer can honour it; the
adapter itself never retries (``max_retries=0`` on the client) so all retry
behaviour lives in one place.
"""

from __future__ import annotations

import base64

import openai
import structlog

from src.config.settings import Settings
from src.interfaces.llm_provider import ILLMProvider
from src.utils.errors import LLMError, RateLimitError

logger = structlog.get_logger(logger_name=__name__)


def _detect_media_type(image_bytes: bytes) -> str:
    """Detect the MIME type of an image from its magic bytes.

    PNG starts with: 89 50 4E 47 0D 0A 1A 0A
    JPEG starts with: FF D8
    WEBP starts with: RIFF....WEBP
    """
    if image_bytes[:8] == b"\x89PNG\r\n\x1a\n":
        return "image/png"
    if image_bytes[:2] == b"\xff\xd8":
        return "image/jpeg"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    return "image/png"  # pdftoppm output is PNG


def _parse_retry_after(exc: openai.RateLimitError) -> float | None:
    """Read the server's retry hint (seconds) from a 429 response, if any.

    OpenAI sends ``retry-after-ms`` (milliseconds) and the standard
    ``retry-after`` (seconds).  HTTP-date values are ignored.
    """
    response = getattr(exc, "response", None)
    headers = getattr(response, "headers", None)
    if not headers:
        return None

    retry_ms = headers.get("retry-after-ms")
    if retry_ms:
        try:
            return float(retry_ms) / 1000.0
        except ValueError:
            pass

    retry_s = headers.get("retry-after")
    if retry_s:
        try:
            return float(retry_s)
        except ValueError:
            return None
    return None


class OpenAILLMProvider(ILLMProvider):
    """Vision text extraction backed by an OpenAI-compatible chat API.

    Uses ``gpt-4o`` by default; override with ``OPENAI_VISION_MODEL``.
    """

    def __init__(self, settings: Settings) -> None:
        self._api_key = settings.openai_api_key

        client_kwargs: dict = {
            "api_key": self._api_key,
            "timeout": openai.Timeout(settings.openai_timeout_seconds, connect=5.0),
            # Retries are owned by PageAnalyzer's RetryPolicy.
            "max_retries": 0,
        }
        if settings.openai_base_url:
            client_kwargs["base_url"] = settings.openai_base_url

        self._client = openai.AsyncOpenAI(**client_kwargs)
        self._vision_model = settings.openai_vision_model or "gpt-4o"
        # A custom gateway may not accept images unless a vision model is named.
        self._has_vision = bool(settings.openai_vision_model) or not settings.openai_base_url
        self._provider_label = (
            "openai-compatible" if settings.openai_base_url else "openai"
        )

    # ------------------------------------------------------------------
    # ILLMProvider implementation
    # ------------------------------------------------------------------

    async def vision_extract(
        self,
        image_bytes: bytes,
        prompt: str,
        max_tokens: int = 2048,
    ) -> str:
        """Send one image plus *prompt* to the vision model and return its text."""
        if not self._has_vision:
            raise LLMError(
                message="Vision not supported by this provider configuration",
                provider_name=self.get_provider_name(),
            )

        b64 = base64.b64encode(image_bytes).decode("utf-8")
        media_type = _detect_media_type(image_bytes)
        try:
            response = await self._client.chat.completions.create(
                model=self._vision_model,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": prompt},
                            {
                                "type": "image_url",
                                "image_url": {"url": f"data:{media_type};base64,{b64}"},
                            },
                        ],
                    }
                ],
                max_tokens=max_tokens,
            )
        except openai.RateLimitError as exc:
            retry_after = _parse_retry_after(exc)
            logger.warning(
                "openai_rate_limited",
                provider=self._provider_label,
                retry_after=retry_after,
            )
            raise RateLimitError(
                message=f"{self._provider_label} rate limit exceeded",
                provider_name=self.get_provider_name(),
                retry_after=retry_after,
            ) from exc
        except openai.APITimeoutError as exc:
            raise LLMError(
                message=f"{self._provider_label} vision request timed out",
                provider_name=self.get_provider_name(),
            ) from exc
        except openai.APIError as exc:
            raise LLMError(
                message=f"{self._provider_label} vision API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise LLMError(
                message=f"{self._provider_label} vision returned empty response",
                provider_name=self.get_provider_name(),
            )
        logger.info(
            "openai_vision_extract",
            model=self._vision_model,
            provider=self._provider_label,
            tokens=response.usage.total_tokens if response.usage else None,
        )
        return content

    def supports_vision(self) -> bool:
        return self._has_vision

    def is_available(self) -> bool:
        """Return ``True`` if an API key is configured (doesn't verify it works)."""
        return bool(self._api_key)

    def get_provider_name(self) -> str:
        return self._provider_label
