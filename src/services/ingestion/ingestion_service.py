"""Orchestrator for the document ingestion pipeline.

Pipeline stages: **archive -> convert -> analyse / chunk -> tag -> store -> clean up**.

The :class:`IngestionService` implements the **Orchestrator pattern**: it
coordinates the converters, page analyzer, chunker, archiver and vector
store without any of them knowing about each other.  Every call to
:meth:`IngestionService.ingest` follows the same flow:

    1. Mimetype check -- unsupported uploads fail before anything else runs
    2. IArchiveProvider -- best-effort copy of the original, yields a link
    3. Conversion -- page images (PDF / office) or text chunks (text, CSV,
       spreadsheets)
    4. PageAnalyzer -- one chunk per page image, joined in page order
    5. ChunkMetadata -- one entry per chunk at the same index
    6. IVectorStoreProvider -- persists the aligned chunk / metadata pairs
    7. Cleanup -- the per-call temp directory is removed whatever happened

All dependencies are injected via constructor (Dependency Injection), so a
test can swap every external process and API for an in-memory fake.
"""

from __future__ import annotations

import asyncio
import shutil
import tempfile
import time
import uuid
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

from src.models.ingestion import (
    IMAGE_FORMATS,
    OFFICE_FORMATS,
    ChunkMetadata,
    IngestionResult,
    MimeType,
    UploadedFile,
)
from src.services.ingestion.chunker import TextChunker
from src.services.ingestion.page_analyzer import PageAnalyzer
from src.services.ingestion.tabular import csv_rows_to_chunks, spreadsheet_to_chunks
from src.services.ingestion.text_decoder import decode_text
from src.utils.concurrency import throttled_gather
from src.utils.errors import (
    NoContentExtractedError,
    StoreWriteFailedError,
    UnsupportedFormatError,
)
from src.utils.logging import bind_ingestion_context

if TYPE_CHECKING:
    from src.interfaces.archive_provider import IArchiveProvider
    from src.interfaces.document_converter import IDocumentConverter
    from src.interfaces.vector_store_provider import IVectorStoreProvider

logger = structlog.get_logger(logger_name=__name__)


class IngestionService:
    """Turns one uploaded document into stored, retrievable text chunks.

    Parameters
    ----------
    pdf_converter:
        Renders PDFs to page images.
    office_converter:
        Renders PPTX / PPT / DOCX to page images.
    page_analyzer:
        Extracts one text chunk from each page image.
    chunker:
        Splits plain text into overlapping chunks.
    vector_store:
        Destination for the chunk / metadata pairs.
    archiver:
        Optional side-channel archive for the original upload.  ``None``
        disables archiving; chunks then carry no ``filelink``.
    page_concurrency:
        Maximum page analyses in flight for a single document.
    replace_existing:
        After the new chunks are written, delete the ones an earlier
        upload stored under the same filename, so re-uploading a document
        replaces it.  A failed write leaves the earlier version intact.
    temp_root:
        Parent directory for per-call workspaces (system default if
        ``None``).
    default_top_k:
        Number of chunks :meth:`query` returns when not told otherwise.
    """

    def __init__(
        self,
        pdf_converter: IDocumentConverter,
        office_converter: IDocumentConverter,
        page_analyzer: PageAnalyzer,
        chunker: TextChunker,
        vector_store: IVectorStoreProvider,
        archiver: IArchiveProvider | None = None,
        page_concurrency: int = 4,
        replace_existing: bool = True,
        temp_root: str | Path | None = None,
        default_top_k: int = 5,
    ) -> None:
        if page_concurrency < 1:
            raise ValueError("page_concurrency must be at least 1")
        self._pdf_converter = pdf_converter
        self._office_converter = office_converter
        self._page_analyzer = page_analyzer
        self._chunker = chunker
        self._vector_store = vector_store
        self._archiver = archiver
        self._page_concurrency = page_concurrency
        self._replace_existing = replace_existing
        self._temp_root = str(temp_root) if temp_root is not None else None
        self._default_top_k = default_top_k

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def ingest(self, file: UploadedFile, session_id: str | None = None) -> IngestionResult:
        """Convert, chunk and store *file*.

        Returns
        -------
        IngestionResult
            Summary of the stored document.  At least one chunk was written.

        Raises
        ------
        src.utils.errors.IngestionError
            A subclass naming the failed stage.  Nothing is returned on
            failure and no partial set of chunks is written.
        """
        with bind_ingestion_context(filename=file.filename, session_id=session_id):
            mimetype = MimeType.parse(file.mimetype)
            if mimetype is None:
                logger.warning("unsupported_format", mimetype=file.mimetype)
                raise UnsupportedFormatError(
                    message=f"Unsupported file type: {file.mimetype}"
                )

            upload_id = uuid.uuid4().hex
            start = time.monotonic()
            logger.info("ingestion_started", mimetype=mimetype.value, size_bytes=file.size)

            work_dir = Path(tempfile.mkdtemp(prefix="ingest-", dir=self._temp_root))
            try:
                filelink = await self._archive(file)
                chunks, page_count = await self._extract_chunks(file, mimetype, work_dir)

                if not chunks:
                    raise NoContentExtractedError(
                        message=f"No content could be extracted from {file.filename}"
                    )

                metadata = [
                    ChunkMetadata(
                        filename=file.filename,
                        filelink=filelink,
                        session_id=session_id,
                        chunk_index=index,
                        total_chunks=len(chunks),
                        upload_id=upload_id,
                    )
                    for index in range(len(chunks))
                ]
                await self._store(file.filename, chunks, metadata, upload_id)
            finally:
                self._cleanup(work_dir)

            elapsed = round(time.monotonic() - start, 3)
            logger.info(
                "ingestion_complete",
                mimetype=mimetype.value,
                chunks=len(chunks),
                pages=page_count,
                archived=filelink is not None,
                elapsed_seconds=elapsed,
            )
            return IngestionResult(
                filename=file.filename,
                mimetype=mimetype.value,
                chunk_count=len(chunks),
                page_count=page_count,
                filelink=filelink,
                upload_id=upload_id,
                elapsed_seconds=elapsed,
            )

    async def delete_document(self, filename: str) -> int:
        """Remove every stored chunk of *filename*; returns the count removed."""
        deleted = await self._vector_store.delete_by_filename(filename)
        logger.info("document_deleted", filename=filename, deleted_chunks=deleted)
        return deleted

    async def get_document_chunks(self, filename: str) -> list[str]:
        """Return every stored chunk of *filename* in document order."""
        return await self._vector_store.get_document_chunks(filename)

    async def query(
        self,
        query: str,
        top_k: int | None = None,
        filename: str | None = None,
    ) -> list[str]:
        """Return the stored chunks most relevant to *query*.

        *filename* restricts the search to one document.
        """
        return await self._vector_store.query_relevant(
            query, top_k or self._default_top_k, filename=filename
        )

    # ------------------------------------------------------------------
    # Pipeline stages
    # ------------------------------------------------------------------

    async def _archive(self, file: UploadedFile) -> str | None:
        if self._archiver is None:
            return None
        try:
            filelink = await self._archiver.upload_and_share(file)
        except Exception as exc:
            logger.warning(
                "archive_failed",
                provider=self._archiver.get_provider_name(),
                error=str(exc),
            )
            return None
        logger.debug("archive_complete", provider=self._archiver.get_provider_name())
        return filelink

    async def _extract_chunks(
        self,
        file: UploadedFile,
        mimetype: MimeType,
        work_dir: Path,
    ) -> tuple[list[str], int]:
        """Run the one conversion path for *mimetype*; returns (chunks, pages)."""
        if mimetype in IMAGE_FORMATS:
            converter = (
                self._office_converter if mimetype in OFFICE_FORMATS else self._pdf_converter
            )
            pages = await converter.convert(file, work_dir)
            chunks = await self._analyze_pages(pages)
            return chunks, len(pages)

        # Decoding and parsing are CPU-bound; keep them off the event loop.
        if mimetype == MimeType.TEXT:
            text = await asyncio.to_thread(decode_text, file.data)
            return await asyncio.to_thread(self._chunker.chunk, text), 0
        if mimetype == MimeType.CSV:
            return await asyncio.to_thread(csv_rows_to_chunks, file.data, file.filename), 0
        # XLS / XLSX
        return await asyncio.to_thread(spreadsheet_to_chunks, file.data, file.filename), 0

    async def _analyze_pages(self, pages: list[Path]) -> list[str]:
        semaphore = asyncio.Semaphore(self._page_concurrency)
        # One failed page fails the document; remaining pages are cancelled.
        results = await throttled_gather(
            [self._page_analyzer.analyze(page) for page in pages],
            semaphore=semaphore,
            return_exceptions=False,
        )

        chunks: list[str] = []
        for page, text in zip(pages, results):
            if not text.strip():
                logger.info("page_without_content", page=page.name)
                continue
            chunks.append(text)
        return chunks

    async def _store(
        self,
        filename: str,
        chunks: list[str],
        metadata: list[ChunkMetadata],
        upload_id: str,
    ) -> None:
        try:
            await self._vector_store.write_many(chunks, metadata)
        except Exception as exc:
            logger.error(
                "store_write_failed",
                provider=self._vector_store.get_provider_name(),
                error=str(exc),
            )
            raise StoreWriteFailedError(
                message=f"Failed to store chunks for {filename}: {exc}",
                provider_name=self._vector_store.get_provider_name(),
            ) from exc

        if not self._replace_existing:
            return
        # The new version is stored; a failed cleanup only leaves the old
        # chunks next to it until the next upload of the same file.
        try:
            replaced = await self._vector_store.delete_by_filename(
                filename, keep_upload_id=upload_id
            )
        except Exception as exc:
            logger.warning(
                "previous_version_cleanup_failed",
                provider=self._vector_store.get_provider_name(),
                error=str(exc),
            )
            return
        if replaced:
            logger.info("existing_chunks_replaced", deleted_chunks=replaced)

    @staticmethod
    def _cleanup(work_dir: Path) -> None:
        """Delete every artifact in *work_dir* and the directory itself.

        Failures are logged and never raised, so they cannot mask the
        outcome of the ingestion.
        """
        removed = 0
        for artifact in list(work_dir.iterdir()) if work_dir.exists() else []:
            try:
                if artifact.is_dir():
                    shutil.rmtree(artifact)
                else:
                    artifact.unlink()
                removed += 1
            except OSError as exc:
                logger.warning("artifact_cleanup_failed", artifact=str(artifact), error=str(exc))
        try:
            work_dir.rmdir()
        except OSError as exc:
            logger.warning("artifact_cleanup_failed", artifact=str(work_dir), error=str(exc))
        logger.debug("artifacts_cleaned", removed=removed)
