"""Data models for the document ingestion pipeline.

Defines Pydantic v2 models for the uploaded file, per-chunk storage metadata,
the ingestion summary and the rate-limit retry policy.  Data models use
frozen config so nothing downstream can mutate an upload mid-pipeline.

Lifecycle overview:
    1. The caller builds an :class:`UploadedFile` from the accepted upload.
    2. The ingestion service converts it into ordered text chunks and pairs
       every chunk with one :class:`ChunkMetadata` at the same index.
    3. The pairs are written to the vector store; an
       :class:`IngestionResult` summarises the run for the caller.
"""

from __future__ import annotations

import mimetypes
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class MimeType(str, Enum):
    """Every declared mimetype the pipeline accepts."""

    PDF = "application/pdf"
    PPTX = "application/vnd.openxmlformats-officedocument.presentationml.presentation"
    PPT = "application/vnd.ms-powerpoint"
    DOCX = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
    TEXT = "text/plain"
    CSV = "text/csv"
    XLS = "application/vnd.ms-excel"
    XLSX = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

    @classmethod
    def parse(cls, declared: str) -> MimeType | None:
        """Map a declared mimetype onto a member, or ``None`` if unsupported.

        Parameters such as ``; charset=utf-8`` are ignored and
        ``application/csv`` is treated as ``text/csv``.
        """
        base = declared.split(";", 1)[0].strip().lower()
        if base == "application/csv":
            base = cls.CSV.value
        try:
            return cls(base)
        except ValueError:
            return None


# Image-producing formats go through rasterization + page analysis.
IMAGE_FORMATS = frozenset({MimeType.PDF, MimeType.PPTX, MimeType.PPT, MimeType.DOCX})
# Office formats that need the LibreOffice PDF step first.
OFFICE_FORMATS = frozenset({MimeType.PPTX, MimeType.PPT, MimeType.DOCX})

OFFICE_SUFFIXES: dict[MimeType, str] = {
    MimeType.PPTX: ".pptx",
    MimeType.PPT: ".ppt",
    MimeType.DOCX: ".docx",
}

# mimetypes.guess_type misses some office types on minimal containers.
_EXTENSION_MIMETYPES: dict[str, MimeType] = {
    ".pdf": MimeType.PDF,
    ".pptx": MimeType.PPTX,
    ".ppt": MimeType.PPT,
    ".docx": MimeType.DOCX,
    ".txt": MimeType.TEXT,
    ".csv": MimeType.CSV,
    ".xls": MimeType.XLS,
    ".xlsx": MimeType.XLSX,
}


class UploadedFile(BaseModel):
    """An uploaded document held in memory for one ingestion call."""

    model_config = ConfigDict(frozen=True)

    data: bytes = Field(description="Raw file contents.")
    filename: str = Field(description="Original filename as uploaded.")
    mimetype: str = Field(description="Mimetype declared by the uploader.")

    @property
    def size(self) -> int:
        return len(self.data)

    @classmethod
    def from_path(cls, path: str | Path, mimetype: str | None = None) -> UploadedFile:
        """Read a local file, guessing the mimetype from its extension."""
        file_path = Path(path)
        if mimetype is None:
            known = _EXTENSION_MIMETYPES.get(file_path.suffix.lower())
            if known is not None:
                mimetype = known.value
            else:
                mimetype = mimetypes.guess_type(file_path.name)[0] or "application/octet-stream"
        return cls(data=file_path.read_bytes(), filename=file_path.name, mimetype=mimetype)


class ChunkMetadata(BaseModel):
    """Storage metadata paired with exactly one extracted chunk."""

    model_config = ConfigDict(frozen=True)

    filename: str = Field(description="Original filename of the source document.")
    filelink: str | None = Field(
        default=None,
        description="Shareable archive link; absent when archiving was skipped or failed.",
    )
    session_id: str | None = Field(default=None, description="Chat session that uploaded the file.")
    chunk_index: int = Field(default=0, ge=0, description="Position of the chunk in the document.")
    total_chunks: int = Field(default=1, ge=1, description="Number of chunks in the document.")
    upload_id: str | None = Field(
        default=None,
        description="Identifier of the ingestion call that wrote the chunk.",
    )

    def to_store_dict(self) -> dict[str, Any]:
        """Serialise for a vector store that rejects ``None`` values."""
        return self.model_dump(exclude_none=True)


class IngestionResult(BaseModel):
    """Summary of one successful ingestion call."""

    model_config = ConfigDict(frozen=True)

    filename: str
    mimetype: str
    chunk_count: int = Field(ge=1)
    page_count: int = Field(
        default=0,
        ge=0,
        description="Rendered pages analysed; 0 for text and tabular formats.",
    )
    filelink: str | None = None
    upload_id: str | None = None
    elapsed_seconds: float = Field(default=0.0, ge=0.0)


class UploadStatus(str, Enum):
    """Status of an upload record as shown in the file history."""

    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


class RetryPolicy(BaseModel):
    """Bounded retry policy for rate-limited calls.

    ``max_retries`` counts retries after the first call, so a policy with
    ``max_retries=3`` makes at most four calls.  Without a server hint the
    wait doubles from ``base_delay``; waits never decrease between attempts
    and never exceed ``max_delay``.
    """

    model_config = ConfigDict(frozen=True)

    max_retries: int = Field(default=3, ge=0)
    base_delay: float = Field(default=2.0, gt=0.0)
    max_delay: float = Field(default=60.0, gt=0.0)

    def delay_for(
        self,
        retry_number: int,
        retry_after: float | None = None,
        previous_delay: float = 0.0,
    ) -> float:
        """Return the wait in seconds before retry *retry_number* (0-based)."""
        if retry_after is not None and retry_after > 0:
            delay = retry_after
        else:
            delay = self.base_delay * (2**retry_number)
        return min(self.max_delay, max(delay, previous_delay))
