"""chatdocs domain models -- re-exports all public model classes.

Other parts of the codebase can import directly from ``src.models``
(e.g. ``from src.models import UploadedFile``) instead of the submodule.

    - ingestion.py -- uploads, chunk metadata, ingestion results, upload
      status and the rate-limit retry policy
"""

from __future__ import annotations

from src.models.ingestion import (
    IMAGE_FORMATS,
    OFFICE_FORMATS,
    ChunkMetadata,
    IngestionResult,
    MimeType,
    RetryPolicy,
    UploadedFile,
    UploadStatus,
)

__all__ = [
    "IMAGE_FORMATS",
    "OFFICE_FORMATS",
    "ChunkMetadata",
    "IngestionResult",
    "MimeType",
    "RetryPolicy",
    "UploadStatus",
    "UploadedFile",
]
