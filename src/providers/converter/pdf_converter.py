"""PDF → page images via poppler's ``pdftoppm``.

pdftoppm writes ``<prefix>-<n>.png`` per page and zero-pads ``n`` to the
width of the last page number (``page-01.png`` … ``page-12.png``), so a
lexical sort of the output names restores page order.
"""

from __future__ import annotations

import shutil
import uuid
from pathlib import Path

import structlog

from src.interfaces.document_converter import IDocumentConverter
from src.models.ingestion import UploadedFile
from src.providers.converter.process import resolve_binary, run_tool
from src.utils.errors import ConversionFailedError

logger = structlog.get_logger(logger_name=__name__)


class PdfToImagesConverter(IDocumentConverter):
    """Rasterizes every page of a PDF into a PNG inside the work directory."""

    def __init__(
        self,
        binary: str = "pdftoppm",
        dpi: int = 150,
        timeout: float = 180.0,
    ) -> None:
        self._binary = binary
        self._dpi = dpi
        self._timeout = timeout

    async def convert(self, file: UploadedFile, work_dir: Path) -> list[Path]:
        binary_path = resolve_binary(self._binary)

        # Unique names: an office conversion may already have used work_dir.
        token = uuid.uuid4().hex[:8]
        source = work_dir / f"source-{token}.pdf"
        out_prefix = work_dir / f"page-{token}"
        try:
            source.write_bytes(file.data)
            await run_tool(
                [binary_path, "-png", "-r", str(self._dpi), str(source), str(out_prefix)],
                timeout=self._timeout,
                tool=self._binary,
            )
        finally:
            source.unlink(missing_ok=True)

        pages = sorted(work_dir.glob(f"{out_prefix.name}-*.png"), key=lambda p: p.name)
        if not pages:
            raise ConversionFailedError(
                f"{self._binary} produced no page images for {file.filename}",
                provider_name=self._binary,
            )

        logger.info("pdf_rasterized", filename=file.filename, pages=len(pages), dpi=self._dpi)
        return pages

    def get_provider_name(self) -> str:
        return self._binary

    def is_available(self) -> bool:
        return shutil.which(self._binary) is not None
