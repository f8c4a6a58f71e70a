"""Office documents (PPTX, PPT, DOCX) → page images.

LibreOffice renders the document to PDF headlessly; the PDF is then handed
to :class:`PdfToImagesConverter`.  Before converting, the office runtime is
checked with ``soffice --version``: a broken install (missing Java or
libraries) usually fails that check and is reported as
:class:`RuntimeUnavailableError` instead of an obscure conversion error.
"""

from __future__ import annotations

import shutil
import uuid
from pathlib import Path

import structlog

from src.interfaces.document_converter import IDocumentConverter
from src.models.ingestion import OFFICE_SUFFIXES, MimeType, UploadedFile
from src.providers.converter.process import resolve_binary, run_tool
from src.utils.errors import (
    ConversionFailedError,
    RuntimeUnavailableError,
    UnsupportedFormatError,
)

logger = structlog.get_logger(logger_name=__name__)

_PROBE_TIMEOUT = 30.0


class OfficeDocToImagesConverter(IDocumentConverter):
    """Converts an office document to PDF, then rasterizes the PDF."""

    def __init__(
        self,
        pdf_converter: IDocumentConverter,
        binary: str = "soffice",
        timeout: float = 180.0,
    ) -> None:
        self._pdf_converter = pdf_converter
        self._binary = binary
        self._timeout = timeout

    async def convert(self, file: UploadedFile, work_dir: Path) -> list[Path]:
        mimetype = MimeType.parse(file.mimetype)
        suffix = OFFICE_SUFFIXES.get(mimetype) if mimetype else None
        if suffix is None:
            raise UnsupportedFormatError(f"Not an office document: {file.mimetype}")

        binary_path = resolve_binary(self._binary)
        await self._check_runtime(binary_path)

        token = uuid.uuid4().hex[:8]
        source = work_dir / f"office-{token}{suffix}"
        out_dir = work_dir / f"office-{token}-pdf"
        pdf_path = out_dir / f"office-{token}.pdf"
        try:
            source.write_bytes(file.data)
            out_dir.mkdir()
            await run_tool(
                [
                    binary_path,
                    # Private profile: parallel soffice runs sharing one profile fail.
                    f"-env:UserInstallation={(out_dir / 'profile').resolve().as_uri()}",
                    "--headless",
                    "--convert-to",
                    "pdf",
                    "--outdir",
                    str(out_dir),
                    str(source),
                ],
                timeout=self._timeout,
                tool=self._binary,
            )
            if not pdf_path.exists():
                raise ConversionFailedError(
                    f"LibreOffice produced no PDF for {file.filename}",
                    provider_name=self._binary,
                )
            pdf_bytes = pdf_path.read_bytes()
        finally:
            source.unlink(missing_ok=True)
            pdf_path.unlink(missing_ok=True)
            shutil.rmtree(out_dir, ignore_errors=True)

        logger.info("office_converted_to_pdf", filename=file.filename, pdf_bytes=len(pdf_bytes))

        pdf_file = UploadedFile(
            data=pdf_bytes,
            filename=f"{Path(file.filename).stem}.pdf",
            mimetype=MimeType.PDF.value,
        )
        return await self._pdf_converter.convert(pdf_file, work_dir)

    async def _check_runtime(self, binary_path: str) -> None:
        try:
            await run_tool([binary_path, "--version"], timeout=_PROBE_TIMEOUT, tool=self._binary)
        except ConversionFailedError as exc:
            raise RuntimeUnavailableError(
                f"LibreOffice runtime check failed: {exc.message}",
                provider_name=self._binary,
            ) from exc

    def get_provider_name(self) -> str:
        return self._binary

    def is_available(self) -> bool:
        return shutil.which(self._binary) is not None and self._pdf_converter.is_available()
