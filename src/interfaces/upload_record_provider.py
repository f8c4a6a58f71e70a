"""Abstract base class for the upload-record store used by the upload flow.

The relational storage layer (file history, chat messages) lives outside
this repository.  The upload service only needs to move an upload record
between statuses and post a bot message into the uploader's chat session.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.models.ingestion import UploadStatus


class IUploadRecordProvider(ABC):
    """Contract for persisting upload status and user notifications."""

    @abstractmethod
    async def update_status(self, file_id: int, status: UploadStatus) -> None:
        """Set the status of upload record *file_id*."""

    @abstractmethod
    async def post_message(self, session_id: str, content: str, file_id: int) -> None:
        """Post a bot message about upload *file_id* into *session_id*."""
