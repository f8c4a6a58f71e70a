"""Document converters -- render uploads to one PNG per page.

Two implementations of IDocumentConverter:
    - PdfToImagesConverter       -- PDF → PNG pages via poppler's pdftoppm
    - OfficeDocToImagesConverter -- PPTX/PPT/DOCX → PDF via LibreOffice,
                                   then delegates to PdfToImagesConverter
"""

from src.providers.converter.office_converter import OfficeDocToImagesConverter
from src.providers.converter.pdf_converter import PdfToImagesConverter

__all__ = ["OfficeDocToImagesConverter", "PdfToImagesConverter"]
