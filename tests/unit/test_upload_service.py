"""Unit tests for the UploadService status and notification flow."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.models.ingestion import IngestionResult, UploadedFile, UploadStatus
from src.services.ingestion.ingestion_service import IngestionService
from src.services.upload_service import UploadService
from src.utils.errors import (
    AnalysisFailedError,
    ConversionFailedError,
    RAGError,
    StoreWriteFailedError,
    UploadTooLargeError,
)
from tests.conftest import RecordingUploadRecords


def _upload(size: int = 10) -> UploadedFile:
    return UploadedFile(data=b"x" * size, filename="report.pdf", mimetype="application/pdf")


def _ingestion(result: IngestionResult | None = None, error: Exception | None = None) -> MagicMock:
    ingestion = MagicMock(spec=IngestionService)
    ingestion.ingest = AsyncMock(return_value=result, side_effect=error)
    return ingestion


class TestUploadService:
    @pytest.mark.asyncio
    async def test_success_marks_completed_and_notifies(self) -> None:
        result = IngestionResult(filename="report.pdf", mimetype="application/pdf", chunk_count=3)
        records = RecordingUploadRecords()
        service = UploadService(ingestion=_ingestion(result), records=records)

        outcome = await service.process_upload(_upload(), session_id="s-1", file_id=7)

        assert outcome == result
        assert records.statuses == [(7, UploadStatus.PROCESSING), (7, UploadStatus.COMPLETED)]
        assert records.messages == [("s-1", "File processed successfully: report.pdf", 7)]

    @pytest.mark.asyncio
    async def test_failure_marks_error_with_generic_message(self) -> None:
        error = ConversionFailedError(
            "pdftoppm exited with status 1: Syntax Error: Couldn't read xref table",
            provider_name="pdftoppm",
        )
        records = RecordingUploadRecords()
        service = UploadService(ingestion=_ingestion(error=error), records=records)

        outcome = await service.process_upload(_upload(), session_id="s-1", file_id=7)

        assert outcome is None
        assert records.statuses == [(7, UploadStatus.PROCESSING), (7, UploadStatus.ERROR)]
        assert records.messages == [
            ("s-1", "Error processing file report.pdf: The document could not be converted.", 7)
        ]

    @pytest.mark.asyncio
    async def test_store_failure_keeps_provider_text_out_of_chat(self) -> None:
        cause = RAGError(
            "sqlite3.OperationalError: database is locked at /var/lib/chroma/chroma.sqlite3",
            provider_name="chromadb",
        )
        error = StoreWriteFailedError(
            f"Failed to store chunks for report.pdf: {cause}",
            provider_name="chromadb",
        )
        records = RecordingUploadRecords()
        service = UploadService(ingestion=_ingestion(error=error), records=records)

        await service.process_upload(_upload(), session_id="s-1", file_id=7)

        [(_, content, _)] = records.messages
        assert content == "Error processing file report.pdf: The document could not be saved."
        for leaked in ("chromadb", "sqlite3", "/var/lib", "locked"):
            assert leaked not in content

    @pytest.mark.asyncio
    async def test_rate_limited_analysis_has_its_own_message(self) -> None:
        error = AnalysisFailedError(
            "Page analysis of page-01.png gave up after 4 rate-limited attempts: [openai] 429",
            provider_name="openai",
            rate_limited=True,
        )
        records = RecordingUploadRecords()
        service = UploadService(ingestion=_ingestion(error=error), records=records)

        await service.process_upload(_upload(), session_id="s-1", file_id=7)

        [(_, content, _)] = records.messages
        assert content.endswith("The text extraction service is busy; please try again later.")
        assert "openai" not in content and "429" not in content

    @pytest.mark.asyncio
    async def test_unexpected_error_hides_details(self) -> None:
        records = RecordingUploadRecords()
        service = UploadService(
            ingestion=_ingestion(error=RuntimeError("Traceback: secret internals")),
            records=records,
        )

        await service.process_upload(_upload(), session_id="s-1", file_id=7)

        assert records.messages == [("s-1", "Error processing file report.pdf: Unknown error", 7)]

    @pytest.mark.asyncio
    async def test_oversized_upload_is_rejected_without_ingesting(self) -> None:
        ingestion = _ingestion()
        records = RecordingUploadRecords()
        service = UploadService(ingestion=ingestion, records=records, max_upload_bytes=5)

        outcome = await service.process_upload(_upload(size=6), session_id="s-1", file_id=1)

        assert outcome is None
        ingestion.ingest.assert_not_called()
        assert records.statuses == [(1, UploadStatus.PROCESSING), (1, UploadStatus.ERROR)]
        assert records.messages == [
            ("s-1", "Error processing file report.pdf: The file is larger than the upload limit.", 1)
        ]

    def test_validate(self) -> None:
        service = UploadService(ingestion=_ingestion(), records=RecordingUploadRecords(), max_upload_bytes=5)
        service.validate(_upload(size=5))
        with pytest.raises(UploadTooLargeError):
            service.validate(_upload(size=6))
