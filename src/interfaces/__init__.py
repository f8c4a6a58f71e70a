"""Public interface definitions for all external collaborators.

Every external service the ingestion pipeline talks to is reached through
one of the abstract base classes in this package.  Concrete adapters live in
``src/providers/`` and are wired together in ``src/main.py``; tests inject
fakes instead.

CONCRETE PROVIDER MAP:
    Interface                  →  Concrete implementations (in src/providers/)
    ─────────────────────────────────────────────────────────────────────
    ILLMProvider               →  OpenAILLMProvider
    IEmbeddingProvider         →  OpenAIEmbeddingProvider
    IVectorStoreProvider       →  ChromaDBProvider
    IArchiveProvider           →  S3ArchiveProvider
    IDocumentConverter         →  PdfToImagesConverter,
                                  OfficeDocToImagesConverter
    IUploadRecordProvider      →  (supplied by the web application)
"""

from src.interfaces.archive_provider import IArchiveProvider
from src.interfaces.document_converter import IDocumentConverter
from src.interfaces.embedding_provider import IEmbeddingProvider
from src.interfaces.llm_provider import ILLMProvider
from src.interfaces.upload_record_provider import IUploadRecordProvider
from src.interfaces.vector_store_provider import IVectorStoreProvider

__all__ = [
    "IArchiveProvider",
    "IDocumentConverter",
    "IEmbeddingProvider",
    "ILLMProvider",
    "IUploadRecordProvider",
    "IVectorStoreProvider",
]
