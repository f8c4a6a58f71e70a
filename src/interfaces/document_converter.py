"""Abstract base class for converters that render documents to page images.

Two variants exist: PDF straight to PNG pages, and office documents
(PPTX, PPT, DOCX) to PDF first and then to PNG pages.  Keeping process
spawning behind this interface lets the ingestion service be tested with a
fake converter.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

from src.models.ingestion import UploadedFile


# Concrete implementations: PdfToImagesConverter, OfficeDocToImagesConverter
# Located in: src/providers/converter/
class IDocumentConverter(ABC):
    """Contract for document → page-image conversion."""

    @abstractmethod
    async def convert(self, file: UploadedFile, work_dir: Path) -> list[Path]:
        """Render *file* into one PNG per page inside *work_dir*.

        Parameters
        ----------
        file:
            The document to render.
        work_dir:
            Scoped temp directory owned by the calling ingestion.  Page
            images are left in place; the caller deletes them.  Any other
            intermediate file is removed before this method returns.

        Returns
        -------
        list[Path]
            Page images in page order.  Never empty.

        Raises
        ------
        src.utils.errors.RuntimeUnavailableError
            If a required binary or runtime is missing.
        src.utils.errors.ConversionFailedError
            On non-zero exit, timeout, or empty output.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"pdftoppm"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the required binaries are on ``PATH``."""
