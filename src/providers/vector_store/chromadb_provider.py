"""ChromaDB vector store provider adapter.

Wraps `chromadb.PersistentClient` to implement :class:`IVectorStoreProvider`.
Uses cosine distance for similarity search.  Embeddings are computed by the
injected :class:`IEmbeddingProvider`, never by ChromaDB itself.
"""

from __future__ import annotations

import os
import uuid

# ChromaDB reads this before its telemetry client starts.
os.environ["ANONYMIZED_TELEMETRY"] = "False"

import chromadb
import structlog

from src.interfaces.embedding_provider import IEmbeddingProvider
from src.interfaces.vector_store_provider import IVectorStoreProvider
from src.models.ingestion import ChunkMetadata
from src.utils.errors import RAGError

logger = structlog.get_logger(logger_name=__name__)


class _NoopEmbeddingFunction(chromadb.EmbeddingFunction[list[str]]):
    """Embedding function that refuses to run.

    Every write and query passes pre-computed embeddings, so ChromaDB's
    default ONNX model must never be downloaded or loaded.
    """

    def __call__(self, input: list[str]) -> list[list[float]]:
        raise NotImplementedError(
            "chatdocs passes pre-computed embeddings; "
            "ChromaDB's built-in embedding should never be called."
        )

    def name(self) -> str:
        return "noop_precomputed"


class ChromaDBProvider(IVectorStoreProvider):
    """Chunk store backed by a persistent ChromaDB collection.

    Each chunk is stored with a random UUID id, its text as the document,
    and its :class:`ChunkMetadata` (``None`` fields dropped, since ChromaDB
    metadata values must be scalars).
    """

    def __init__(
        self,
        embedding_provider: IEmbeddingProvider,
        persist_directory: str = "./data/chromadb",
        collection_name: str = "files_data",
        batch_size: int = 500,
    ) -> None:
        self._embedding_provider = embedding_provider
        self._batch_size = batch_size
        self._client = chromadb.PersistentClient(
            path=persist_directory,
            settings=chromadb.config.Settings(anonymized_telemetry=False),
        )
        # Collections created by another embedding function reject the
        # no-op one; open them with whatever function they were saved with.
        try:
            self._collection = self._client.get_or_create_collection(
                name=collection_name,
                metadata={"hnsw:space": "cosine"},
                embedding_function=_NoopEmbeddingFunction(),
            )
        except ValueError:
            self._collection = self._client.get_or_create_collection(
                name=collection_name,
                metadata={"hnsw:space": "cosine"},
            )

    # ------------------------------------------------------------------
    # IVectorStoreProvider implementation
    # ------------------------------------------------------------------

    async def write_many(
        self,
        chunks: list[str],
        metadata: list[ChunkMetadata],
    ) -> int:
        """Embed and upsert *chunks* in batches of ``batch_size``."""
        if len(chunks) != len(metadata):
            raise ValueError(
                f"chunks and metadata length mismatch: {len(chunks)} != {len(metadata)}"
            )
        if not chunks:
            return 0

        try:
            total_stored = 0
            for start in range(0, len(chunks), self._batch_size):
                batch_chunks = chunks[start : start + self._batch_size]
                batch_meta = metadata[start : start + self._batch_size]
                embeddings = await self._embedding_provider.embed(batch_chunks)

                self._collection.upsert(
                    ids=[str(uuid.uuid4()) for _ in batch_chunks],
                    embeddings=embeddings,
                    documents=batch_chunks,
                    metadatas=[m.to_store_dict() for m in batch_meta],
                )
                total_stored += len(batch_chunks)

            logger.info(
                "chromadb_write_many",
                count=total_stored,
                filename=metadata[0].filename,
                batches=(len(chunks) + self._batch_size - 1) // self._batch_size,
            )
            return total_stored

        except RAGError:
            raise
        except Exception as exc:
            raise RAGError(
                message=f"ChromaDB write failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    async def delete_by_filename(
        self,
        filename: str,
        keep_upload_id: str | None = None,
    ) -> int:
        try:
            existing = self._collection.get(where={"filename": filename}, include=["metadatas"])
            ids = [
                chunk_id
                for chunk_id, meta in zip(existing["ids"], existing["metadatas"] or [])
                if keep_upload_id is None or (meta or {}).get("upload_id") != keep_upload_id
            ]
            if ids:
                self._collection.delete(ids=ids)
        except Exception as exc:
            raise RAGError(
                message=f"ChromaDB delete failed for {filename}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.info("chromadb_delete_by_filename", filename=filename, deleted_count=len(ids))
        return len(ids)

    async def get_document_chunks(self, filename: str) -> list[str]:
        """Return the chunks stored for *filename*, ordered by ``chunk_index``."""
        try:
            stored = self._collection.get(
                where={"filename": filename},
                include=["documents", "metadatas"],
            )
        except Exception as exc:
            raise RAGError(
                message=f"ChromaDB get failed for {filename}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        pairs = sorted(
            zip(stored["documents"] or [], stored["metadatas"] or []),
            key=lambda pair: (pair[1] or {}).get("chunk_index", 0),
        )
        logger.info("chromadb_get_document_chunks", filename=filename, count=len(pairs))
        return [document for document, _ in pairs]

    async def query_relevant(
        self,
        query: str,
        top_k: int = 5,
        filename: str | None = None,
    ) -> list[str]:
        """Return the *top_k* chunk texts closest to *query* by cosine distance."""
        where = {"filename": filename} if filename else None
        try:
            if where is None:
                stored = self._collection.count()
            else:
                stored = len(self._collection.get(where=where, include=["metadatas"])["ids"])
            if stored == 0:
                return []

            query_embedding = await self._embedding_provider.embed_single(query)
            results = self._collection.query(
                query_embeddings=[query_embedding],
                n_results=min(top_k, stored),
                where=where,
            )
        except RAGError:
            raise
        except Exception as exc:
            raise RAGError(
                message=f"ChromaDB query failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        documents = results["documents"][0] if results.get("documents") else []
        logger.info(
            "chromadb_query",
            query_length=len(query),
            filename=filename,
            results_count=len(documents),
        )
        return list(documents)

    def get_provider_name(self) -> str:
        return "chromadb"

    def is_available(self) -> bool:
        """Return ``True`` if the ChromaDB collection is accessible."""
        try:
            self._collection.count()
            return True
        except Exception:
            return False
