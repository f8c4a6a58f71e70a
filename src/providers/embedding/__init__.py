"""Embedding provider implementations.

Embeddings turn chunk and query text into vectors for ChromaDB's
similarity search.  OpenAIEmbeddingProvider (text-embedding-3-small,
1536 dims) is the only implementation.
"""

from src.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

__all__ = ["OpenAIEmbeddingProvider"]
