"""Abstract base class for the multimodal text-extraction service.

Each rendered page image is sent to a vision-capable LLM together with an
instruction prompt; the model returns the page's text.  Implementations may
wrap OpenAI, an OpenAI-compatible gateway, or any other vision model.  The
adapter pattern keeps the page analyzer provider-agnostic and lets tests
inject a fake.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementation: OpenAILLMProvider
# Located in: src/providers/llm/
class ILLMProvider(ABC):
    """Contract for vision LLM services used by the page analyzer."""

    @abstractmethod
    async def vision_extract(
        self,
        image_bytes: bytes,
        prompt: str,
        max_tokens: int = 2048,
    ) -> str:
        """Run *prompt* against one image and return the model's text.

        Parameters
        ----------
        image_bytes:
            Raw bytes of the page image (PNG).
        prompt:
            Instruction describing what to extract from the image.
        max_tokens:
            Upper bound on the length of the response.

        Returns
        -------
        str
            The extracted text.

        Raises
        ------
        src.utils.errors.RateLimitError
            When the service signals a rate limit.  ``retry_after`` carries
            the server's hint in seconds when one was provided.
        src.utils.errors.LLMError
            For every other failure, including empty responses.
        """

    @abstractmethod
    def supports_vision(self) -> bool:
        """Return ``True`` if the configured model accepts image input."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"openai"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if credentials are configured.

        Must not perform a network round-trip.
        """
