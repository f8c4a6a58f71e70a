"""Chunk and query embeddings through the OpenAI embeddings endpoint.

ChromaDB stores vectors computed here rather than running a model of its
own, so every chunk written by the ingestion pipeline and every retrieval
query passes through :class:`OpenAIEmbeddingProvider`.  A custom
``OPENAI_BASE_URL`` points it at any gateway that speaks the same API.
"""

from __future__ import annotations

import openai
import structlog

from src.config.settings import Settings
from src.interfaces.embedding_provider import IEmbeddingProvider
from src.utils.errors import RAGError

logger = structlog.get_logger(logger_name=__name__)

# Inputs per embeddings request accepted by the API.
_REQUEST_INPUT_LIMIT = 2048

_DEFAULT_MODEL = "text-embedding-3-small"

_MODEL_DIMENSIONS: dict[str, int] = {
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
    "text-embedding-ada-002": 1536,
}


class OpenAIEmbeddingProvider(IEmbeddingProvider):
    """Embeds document chunks and queries for the vector store.

    Vectors come back in the order of the input texts, so ``embed(chunks)[i]``
    always belongs to ``chunks[i]`` and stays aligned with its metadata.
    """

    def __init__(self, settings: Settings) -> None:
        self._api_key = settings.openai_api_key

        client_kwargs: dict = {"api_key": self._api_key}
        if settings.openai_base_url:
            client_kwargs["base_url"] = settings.openai_base_url

        self._client = openai.AsyncOpenAI(**client_kwargs)
        self._model = settings.openai_embedding_model or _DEFAULT_MODEL
        self._dimension = _MODEL_DIMENSIONS.get(self._model, 1536)
        self._provider_label = (
            "openai-compatible_embedding" if settings.openai_base_url else "openai_embedding"
        )

    async def embed(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []

        vectors: list[list[float]] = []
        for start in range(0, len(texts), _REQUEST_INPUT_LIMIT):
            request = texts[start : start + _REQUEST_INPUT_LIMIT]
            try:
                response = await self._client.embeddings.create(input=request, model=self._model)
            except openai.APIError as exc:
                raise RAGError(
                    message=f"Embedding request for {len(request)} chunks failed: {exc}",
                    provider_name=self.get_provider_name(),
                ) from exc

            if len(response.data) != len(request):
                raise RAGError(
                    message=(
                        f"Embedding response has {len(response.data)} vectors "
                        f"for {len(request)} inputs"
                    ),
                    provider_name=self.get_provider_name(),
                )
            vectors.extend(item.embedding for item in sorted(response.data, key=lambda d: d.index))
            logger.debug(
                "chunks_embedded",
                model=self._model,
                inputs=len(request),
                tokens=response.usage.total_tokens if response.usage else None,
            )
        return vectors

    async def embed_single(self, text: str) -> list[float]:
        """Embed one retrieval query."""
        vectors = await self.embed([text])
        return vectors[0]

    def get_dimension(self) -> int:
        return self._dimension

    def get_provider_name(self) -> str:
        return self._provider_label

    def is_available(self) -> bool:
        return bool(self._api_key)
