"""Abstract base class for the chunk store (the pipeline's Store Sink).

The ingestion pipeline needs four things from storage: write a batch of
chunks with their metadata, delete what is stored for one filename, list a
document's chunks back, and return the chunks most relevant to a text
query.  Everything else about the vector database (index type, embedding
model, persistence) stays behind this interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.models.ingestion import ChunkMetadata


# Concrete implementation: ChromaDBProvider (src/providers/vector_store/)
class IVectorStoreProvider(ABC):
    """Contract for the vector store chunks are written to.

    All operations are async so network-backed stores never block the
    event loop.  Writes have at-least-once append semantics; there is no
    cross-document transaction.
    """

    @abstractmethod
    async def write_many(
        self,
        chunks: list[str],
        metadata: list[ChunkMetadata],
    ) -> int:
        """Store *chunks*, pairing ``chunks[i]`` with ``metadata[i]``.

        Returns
        -------
        int
            The number of chunks stored.

        Raises
        ------
        ValueError
            If ``len(chunks) != len(metadata)``.
        src.utils.errors.RAGError
            If the store operation fails.
        """

    @abstractmethod
    async def delete_by_filename(
        self,
        filename: str,
        keep_upload_id: str | None = None,
    ) -> int:
        """Delete every chunk whose metadata ``filename`` matches.

        Chunks whose ``upload_id`` equals *keep_upload_id* are kept, which
        lets a re-upload remove the previous version only after the new
        one is stored.

        Returns
        -------
        int
            The number of chunks deleted (0 when none were stored).
        """

    @abstractmethod
    async def get_document_chunks(self, filename: str) -> list[str]:
        """Return every stored chunk of *filename* in ``chunk_index`` order."""

    @abstractmethod
    async def query_relevant(
        self,
        query: str,
        top_k: int = 5,
        filename: str | None = None,
    ) -> list[str]:
        """Return up to *top_k* chunk texts ranked by relevance to *query*.

        When *filename* is given only that document's chunks are searched.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"chromadb"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the store is reachable."""
