"""Custom exception hierarchy for chatdocs.

All application exceptions inherit from :class:`ChatDocsError`, which
carries an optional ``provider_name`` so error handlers can identify which
external service (e.g. "openai", "chromadb", "pdftoppm") caused the failure.

The hierarchy is organized by pipeline domain:

    ChatDocsError  (base -- catch-all for any chatdocs error)
    +-- IngestionError              (terminal failure of one ingestion call)
    |   +-- UnsupportedFormatError  (declared mimetype not handled)
    |   +-- RuntimeUnavailableError (pdftoppm / LibreOffice missing)
    |   +-- ConversionFailedError   (external conversion gave no usable output)
    |   +-- AnalysisFailedError     (page text extraction failed)
    |   +-- NoContentExtractedError (conversion worked, zero chunks)
    |   +-- StoreWriteFailedError   (vector store rejected the write)
    |   +-- UploadTooLargeError     (upload exceeds the size limit)
    +-- LLMError                    (any LLM API call failure)
    +-- RateLimitError              (provider rate-limit exceeded)
    +-- RAGError                    (embedding or vector-store failure)
    +-- ArchiveError                (blob-store upload failure)
    +-- ConfigurationError          (startup / missing config)

Callers of the ingestion pipeline only need to catch :class:`IngestionError`;
the provider-level errors below it are wrapped before they leave
:class:`~src.services.ingestion.ingestion_service.IngestionService`.
"""


class ChatDocsError(Exception):
    """Base exception for all chatdocs errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which external service triggered the
    error.  The ``__str__`` method prefixes the provider name in brackets
    for structured log output, e.g. ``[openai] Rate limit exceeded``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Ingestion errors (terminal for one ingestion call)
# ---------------------------------------------------------------------------

class IngestionError(ChatDocsError):
    """Raised when a document cannot be ingested.

    Base of every terminal pipeline failure.  ``message`` may carry provider
    and tool output and belongs in the log; ``user_message`` is a fixed
    sentence per failure kind that is safe to show the uploader.
    """

    user_message = "The document could not be processed."

    def __init__(
        self,
        message: str = "Document ingestion failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class UnsupportedFormatError(IngestionError):
    """Raised when the declared mimetype is not in the supported set."""

    user_message = "This file type is not supported."

    def __init__(
        self,
        message: str = "Unsupported file format",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class RuntimeUnavailableError(IngestionError):
    """Raised when a required external binary or runtime is missing."""

    user_message = "Document conversion is not available right now."

    def __init__(
        self,
        message: str = "Required conversion runtime is unavailable",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ConversionFailedError(IngestionError):
    """Raised when an external conversion exits non-zero or yields no output."""

    user_message = "The document could not be converted."

    def __init__(
        self,
        message: str = "Document conversion failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class AnalysisFailedError(IngestionError):
    """Raised when text extraction for a page image fails.

    ``rate_limited`` distinguishes "rate limited on every retry" from
    "the extraction call itself errored".
    """

    def __init__(
        self,
        message: str = "Page analysis failed",
        provider_name: str | None = None,
        rate_limited: bool = False,
    ) -> None:
        self._rate_limited = rate_limited
        super().__init__(message=message, provider_name=provider_name)

    @property
    def rate_limited(self) -> bool:
        return self._rate_limited

    @property
    def user_message(self) -> str:  # type: ignore[override]
        if self._rate_limited:
            return "The text extraction service is busy; please try again later."
        return "The document pages could not be read."


class NoContentExtractedError(IngestionError):
    """Raised when conversion succeeded structurally but produced zero chunks."""

    user_message = "No text could be extracted from the document."

    def __init__(
        self,
        message: str = "No content could be extracted from the document",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class StoreWriteFailedError(IngestionError):
    """Raised when the vector store write fails after extraction succeeded."""

    user_message = "The document could not be saved."

    def __init__(
        self,
        message: str = "Writing chunks to the vector store failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class UploadTooLargeError(IngestionError):
    """Raised when an upload exceeds the configured size limit."""

    user_message = "The file is larger than the upload limit."

    def __init__(
        self,
        message: str = "Uploaded file is too large",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# External service / provider errors
# ---------------------------------------------------------------------------

class LLMError(ChatDocsError):
    """Raised when an LLM API call fails or returns an unusable response."""

    def __init__(
        self,
        message: str = "LLM API call failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class RateLimitError(ChatDocsError):
    """Raised when an API rate limit is exceeded.

    ``retry_after`` holds the server-provided wait in seconds when the
    response carried one, otherwise ``None``.
    """

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        provider_name: str | None = None,
        retry_after: float | None = None,
    ) -> None:
        self._retry_after = retry_after
        super().__init__(message=message, provider_name=provider_name)

    @property
    def retry_after(self) -> float | None:
        return self._retry_after


class RAGError(ChatDocsError):
    """Raised when an embedding or vector-store operation fails."""

    def __init__(
        self,
        message: str = "RAG storage operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ArchiveError(ChatDocsError):
    """Raised when the side-channel archive upload fails.

    Never terminal for ingestion: the orchestrator logs it and continues
    without a file link.
    """

    def __init__(
        self,
        message: str = "Archive upload failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ConfigurationError(ChatDocsError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
