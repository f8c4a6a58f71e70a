"""Document ingestion pipeline for the chatdocs RAG knowledge base.

Pipeline stages overview:

1. **Convert** (src/providers/converter/) -- PDFs and office documents are
   rendered to one PNG per page by external tools (pdftoppm, LibreOffice).

2. **Analyse** (page_analyzer.py / PageAnalyzer) -- Each page image is sent
   to a vision model that extracts and summarises its content, retrying on
   rate limits with exponential backoff.

3. **Chunk** (chunker.py / TextChunker, tabular.py) -- Plain text is packed
   into ~500-character overlapping windows on sentence boundaries; CSV and
   spreadsheet rows become one self-describing chunk each.

4. **Store** (via IVectorStoreProvider) -- Chunks and their aligned
   metadata are written to the vector database.

The IngestionService class orchestrates all stages behind one entry point,
:meth:`IngestionService.ingest`.
"""

from src.services.ingestion.chunker import TextChunker
from src.services.ingestion.ingestion_service import IngestionService
from src.services.ingestion.page_analyzer import PageAnalyzer

__all__ = [
    "IngestionService",
    "PageAnalyzer",
    "TextChunker",
]
