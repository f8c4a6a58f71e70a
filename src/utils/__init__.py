"""Utility modules for chatdocs.

- **errors** -- Domain-specific exception hierarchy rooted at ChatDocsError;
  each pipeline stage raises its own subclass so callers can handle failures
  granularly without broad ``except Exception`` blocks.
- **concurrency** -- asyncio semaphore throttling that keeps parallel page
  analysis under provider rate limits while preserving page order.
- **logging** -- structlog setup with a dual-renderer pattern: coloured
  console output in development, structured JSON in production.
"""

# -- Concurrency helpers ----------------------------------------------------
from src.utils.concurrency import throttled_gather

# -- Domain exception hierarchy --------------------------------------------
from src.utils.errors import (
    AnalysisFailedError,
    ArchiveError,
    ChatDocsError,
    ConfigurationError,
    ConversionFailedError,
    IngestionError,
    LLMError,
    NoContentExtractedError,
    RAGError,
    RateLimitError,
    RuntimeUnavailableError,
    StoreWriteFailedError,
    UnsupportedFormatError,
    UploadTooLargeError,
)

# -- Structured logging ------------------------------------------------------
from src.utils.logging import bind_ingestion_context, configure_logging

__all__ = [
    "AnalysisFailedError",
    "ArchiveError",
    "ChatDocsError",
    "ConfigurationError",
    "ConversionFailedError",
    "IngestionError",
    "LLMError",
    "NoContentExtractedError",
    "RAGError",
    "RateLimitError",
    "RuntimeUnavailableError",
    "StoreWriteFailedError",
    "UnsupportedFormatError",
    "UploadTooLargeError",
    "bind_ingestion_context",
    "configure_logging",
    "throttled_gather",
]
