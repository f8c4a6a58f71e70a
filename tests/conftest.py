"""Shared pytest fixtures and in-memory fakes for the chatdocs test suite."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Callable

import pytest

from src.interfaces.archive_provider import IArchiveProvider
from src.interfaces.document_converter import IDocumentConverter
from src.interfaces.llm_provider import ILLMProvider
from src.interfaces.upload_record_provider import IUploadRecordProvider
from src.interfaces.vector_store_provider import IVectorStoreProvider
from src.models.ingestion import ChunkMetadata, RetryPolicy, UploadedFile, UploadStatus
from src.services.ingestion.chunker import TextChunker
from src.services.ingestion.ingestion_service import IngestionService
from src.services.ingestion.page_analyzer import PageAnalyzer
from src.utils.errors import ArchiveError, RAGError

PDF_MIMETYPE = "application/pdf"
PPTX_MIMETYPE = "application/vnd.openxmlformats-officedocument.presentationml.presentation"
DOCX_MIMETYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


# ---------------------------------------------------------------------------
# In-memory fakes
# ---------------------------------------------------------------------------


class InMemoryVectorStore(IVectorStoreProvider):
    """Records every write and delete; optionally fails writes."""

    def __init__(self, fail_writes: bool = False) -> None:
        self.fail_writes = fail_writes
        self.writes: list[tuple[list[str], list[ChunkMetadata]]] = []
        self.deleted: list[str] = []
        self.rows: list[tuple[str, ChunkMetadata]] = []

    async def write_many(self, chunks: list[str], metadata: list[ChunkMetadata]) -> int:
        if len(chunks) != len(metadata):
            raise ValueError("chunks and metadata length mismatch")
        if self.fail_writes:
            raise RAGError(message="disk full", provider_name="memory")
        self.writes.append((list(chunks), list(metadata)))
        self.rows.extend(zip(chunks, metadata))
        return len(chunks)

    async def delete_by_filename(self, filename: str, keep_upload_id: str | None = None) -> int:
        self.deleted.append(filename)
        before = len(self.rows)
        self.rows = [
            row
            for row in self.rows
            if row[1].filename != filename
            or (keep_upload_id is not None and row[1].upload_id == keep_upload_id)
        ]
        return before - len(self.rows)

    async def get_document_chunks(self, filename: str) -> list[str]:
        rows = sorted(
            (row for row in self.rows if row[1].filename == filename),
            key=lambda row: row[1].chunk_index,
        )
        return [text for text, _ in rows]

    async def query_relevant(
        self,
        query: str,
        top_k: int = 5,
        filename: str | None = None,
    ) -> list[str]:
        matches = [
            text
            for text, meta in self.rows
            if query.lower() in text.lower() and (filename is None or meta.filename == filename)
        ]
        return matches[:top_k]

    def get_provider_name(self) -> str:
        return "memory"

    def is_available(self) -> bool:
        return True


class FakePageConverter(IDocumentConverter):
    """Writes ``pages`` small PNG-named files into the work directory."""

    def __init__(self, pages: int = 2, name: str = "fake-pdf", error: Exception | None = None) -> None:
        self.pages = pages
        self.name = name
        self.error = error
        self.calls: list[tuple[UploadedFile, Path]] = []

    async def convert(self, file: UploadedFile, work_dir: Path) -> list[Path]:
        self.calls.append((file, work_dir))
        if self.error is not None:
            raise self.error
        paths = []
        for number in range(1, self.pages + 1):
            path = work_dir / f"page-{number:02d}.png"
            path.write_bytes(f"page-{number}".encode())
            paths.append(path)
        return paths

    def get_provider_name(self) -> str:
        return self.name

    def is_available(self) -> bool:
        return True


class FakeVisionLLM(ILLMProvider):
    """Echoes the page bytes back as extracted text.

    ``script`` is consumed one entry per call: an exception instance is
    raised, anything else falls through to the echo.  ``delays`` maps page
    bytes to a sleep so completion order can differ from page order.
    """

    def __init__(
        self,
        script: list[Any] | None = None,
        delays: dict[bytes, float] | None = None,
    ) -> None:
        self.script = list(script or [])
        self.delays = delays or {}
        self.calls: list[bytes] = []
        self.prompts: list[str] = []

    async def vision_extract(self, image_bytes: bytes, prompt: str, max_tokens: int = 2048) -> str:
        self.calls.append(image_bytes)
        self.prompts.append(prompt)
        delay = self.delays.get(image_bytes)
        if delay:
            await asyncio.sleep(delay)
        if self.script:
            step = self.script.pop(0)
            if isinstance(step, BaseException):
                raise step
            if isinstance(step, str):
                return step
        return f"Extracted {image_bytes.decode()}"

    def supports_vision(self) -> bool:
        return True

    def get_provider_name(self) -> str:
        return "fake-vision"

    def is_available(self) -> bool:
        return True


class FakeArchiver(IArchiveProvider):
    def __init__(self, link: str = "https://archive.example.com/doc", fail: bool = False) -> None:
        self.link = link
        self.fail = fail
        self.uploaded: list[str] = []

    async def upload_and_share(self, file: UploadedFile) -> str:
        self.uploaded.append(file.filename)
        if self.fail:
            raise ArchiveError(message="bucket unreachable", provider_name="fake-archive")
        return self.link

    def get_provider_name(self) -> str:
        return "fake-archive"


class RecordingUploadRecords(IUploadRecordProvider):
    def __init__(self) -> None:
        self.statuses: list[tuple[int, UploadStatus]] = []
        self.messages: list[tuple[str, str, int]] = []

    async def update_status(self, file_id: int, status: UploadStatus) -> None:
        self.statuses.append((file_id, status))

    async def post_message(self, session_id: str, content: str, file_id: int) -> None:
        self.messages.append((session_id, content, file_id))


class RecordingSleep:
    """Drop-in for ``asyncio.sleep`` that records delays and returns at once."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def vector_store() -> InMemoryVectorStore:
    return InMemoryVectorStore()


@pytest.fixture
def vision_llm() -> FakeVisionLLM:
    return FakeVisionLLM()


@pytest.fixture
def pdf_converter() -> FakePageConverter:
    return FakePageConverter(pages=3, name="fake-pdf")


@pytest.fixture
def office_converter() -> FakePageConverter:
    return FakePageConverter(pages=2, name="fake-office")


@pytest.fixture
def archiver() -> FakeArchiver:
    return FakeArchiver()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def work_root(tmp_path: Path) -> Path:
    """Parent of every per-call workspace; must be empty after each ingest."""
    root = tmp_path / "work"
    root.mkdir()
    return root


@pytest.fixture
def make_service(
    vector_store: InMemoryVectorStore,
    vision_llm: FakeVisionLLM,
    pdf_converter: FakePageConverter,
    office_converter: FakePageConverter,
    archiver: FakeArchiver,
    recording_sleep: RecordingSleep,
    work_root: Path,
) -> Callable[..., IngestionService]:
    """Factory building an IngestionService from the fakes; kwargs override."""

    def _make(**overrides: Any) -> IngestionService:
        llm = overrides.pop("llm", vision_llm)
        kwargs: dict[str, Any] = {
            "pdf_converter": pdf_converter,
            "office_converter": office_converter,
            "page_analyzer": PageAnalyzer(
                llm=llm,
                policy=RetryPolicy(max_retries=3, base_delay=2.0, max_delay=60.0),
                sleep=recording_sleep,
            ),
            "chunker": TextChunker(chunk_size=500, overlap=80),
            "vector_store": vector_store,
            "archiver": archiver,
            "page_concurrency": 4,
            "temp_root": work_root,
        }
        kwargs.update(overrides)
        return IngestionService(**kwargs)

    return _make
