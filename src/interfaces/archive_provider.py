"""Abstract base class for the side-channel archive of original uploads.

The original file is copied to durable blob storage so moderators can open
it later; the shareable link ends up in every chunk's metadata.  Archiving
is best-effort: the ingestion service treats any failure here as "no link"
and carries on.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.models.ingestion import UploadedFile


# Concrete implementation: S3ArchiveProvider (src/providers/archive/)
class IArchiveProvider(ABC):
    """Contract for blob stores that hold original uploads."""

    @abstractmethod
    async def upload_and_share(self, file: UploadedFile) -> str:
        """Upload *file* and return a shareable URL for it.

        Raises
        ------
        src.utils.errors.ArchiveError
            If the upload or link generation fails.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"s3"``."""
