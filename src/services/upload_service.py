"""Upload workflow around the ingestion pipeline.

An accepted upload is tracked by a record in the file history.  The
:class:`UploadService` moves that record from ``processing`` to
``completed`` or ``error`` and posts a bot message into the uploader's chat
session describing the outcome.  Ingestion failures end here: they are
logged with full detail and reported to the user as one short sentence.
"""

from __future__ import annotations

import structlog

from src.interfaces.upload_record_provider import IUploadRecordProvider
from src.models.ingestion import IngestionResult, UploadedFile, UploadStatus
from src.services.ingestion.ingestion_service import IngestionService
from src.utils.errors import IngestionError, UploadTooLargeError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_MAX_UPLOAD_BYTES = 20 * 1024 * 1024


class UploadService:
    """Runs one upload through ingestion and records the outcome."""

    def __init__(
        self,
        ingestion: IngestionService,
        records: IUploadRecordProvider,
        max_upload_bytes: int = _DEFAULT_MAX_UPLOAD_BYTES,
    ) -> None:
        self._ingestion = ingestion
        self._records = records
        self._max_upload_bytes = max_upload_bytes

    def validate(self, file: UploadedFile) -> None:
        """Reject uploads over the size limit before ingestion starts."""
        if file.size > self._max_upload_bytes:
            raise UploadTooLargeError(
                message=(
                    f"{file.filename} is {file.size} bytes; "
                    f"the limit is {self._max_upload_bytes} bytes"
                )
            )

    async def process_upload(
        self,
        file: UploadedFile,
        session_id: str,
        file_id: int,
    ) -> IngestionResult | None:
        """Ingest *file* and report the outcome on record *file_id*.

        Returns the ingestion summary, or ``None`` when ingestion failed.
        Never raises for ingestion failures; the record and the chat message
        carry the outcome instead.
        """
        await self._records.update_status(file_id, UploadStatus.PROCESSING)

        try:
            self.validate(file)
            result = await self._ingestion.ingest(file, session_id=session_id)
        except Exception as exc:
            logger.error(
                "upload_processing_failed",
                filename=file.filename,
                file_id=file_id,
                session_id=session_id,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            await self._records.update_status(file_id, UploadStatus.ERROR)
            await self._records.post_message(
                session_id,
                f"Error processing file {file.filename}: {_user_facing_cause(exc)}",
                file_id,
            )
            return None

        await self._records.update_status(file_id, UploadStatus.COMPLETED)
        await self._records.post_message(
            session_id,
            f"File processed successfully: {file.filename}",
            file_id,
        )
        logger.info(
            "upload_processed",
            filename=file.filename,
            file_id=file_id,
            chunks=result.chunk_count,
        )
        return result


def _user_facing_cause(exc: Exception) -> str:
    # Fixed sentences only; provider names, SDK text and tool output stay in the log.
    if isinstance(exc, IngestionError):
        return exc.user_message
    return "Unknown error"
