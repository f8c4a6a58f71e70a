"""chatdocs composition root.

Wires together every provider and service via dependency injection.
Loads configuration from ``.env`` and ``config/config.yaml`` and is the only
module that constructs external clients (OpenAI, ChromaDB, S3).  Services
receive their collaborators through their constructors and never build
their own.

The web layer of the chat app lives outside this repository; it calls
:func:`build_upload_service` once at startup with its own upload-record
store and then hands every accepted upload to
:meth:`UploadService.process_upload`.
"""

from __future__ import annotations

import structlog

from src.config.loader import load_settings
from src.config.settings import Settings
from src.interfaces.archive_provider import IArchiveProvider
from src.interfaces.upload_record_provider import IUploadRecordProvider
from src.models.ingestion import RetryPolicy
from src.providers.archive.s3_archive_provider import S3ArchiveProvider
from src.providers.converter.office_converter import OfficeDocToImagesConverter
from src.providers.converter.pdf_converter import PdfToImagesConverter
from src.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider
from src.providers.llm.openai_provider import OpenAILLMProvider
from src.providers.vector_store.chromadb_provider import ChromaDBProvider
from src.services.ingestion.chunker import TextChunker
from src.services.ingestion.ingestion_service import IngestionService
from src.services.ingestion.page_analyzer import PageAnalyzer
from src.services.upload_service import UploadService
from src.utils.errors import ConfigurationError

logger = structlog.get_logger(logger_name=__name__)


# ---------------------------------------------------------------------------
# Provider construction
# ---------------------------------------------------------------------------


def _build_archiver(app_settings: Settings) -> IArchiveProvider | None:
    """Return the S3 archiver, or ``None`` when no bucket is configured."""
    if not app_settings.archive_enabled():
        logger.info("archive_disabled", reason="ARCHIVE_BUCKET not set")
        return None
    return S3ArchiveProvider.from_settings(app_settings)


def _build_converters(
    app_settings: Settings,
) -> tuple[PdfToImagesConverter, OfficeDocToImagesConverter]:
    pdf_converter = PdfToImagesConverter(
        binary=app_settings.pdftoppm_binary,
        dpi=app_settings.pdf_render_dpi,
        timeout=app_settings.conversion_timeout_seconds,
    )
    office_converter = OfficeDocToImagesConverter(
        pdf_converter=pdf_converter,
        binary=app_settings.soffice_binary,
        timeout=app_settings.conversion_timeout_seconds,
    )
    for converter in (pdf_converter, office_converter):
        if not converter.is_available():
            # Not fatal: text and tabular uploads still work.
            logger.warning("converter_unavailable", converter=converter.get_provider_name())
    return pdf_converter, office_converter


# ---------------------------------------------------------------------------
# Service assembly
# ---------------------------------------------------------------------------


def build_ingestion_service(custom_settings: Settings | None = None) -> IngestionService:
    """Construct the ingestion service with all providers.

    Parameters
    ----------
    custom_settings:
        Application settings.  Loaded from the environment and
        ``config/config.yaml`` if not provided.

    Raises
    ------
    ConfigurationError
        If no OpenAI API key is configured; both page analysis and
        embeddings need one.
    """
    s = custom_settings or load_settings()
    if not s.openai_api_key:
        raise ConfigurationError("OPENAI_API_KEY must be set to ingest documents")

    llm = OpenAILLMProvider(settings=s)
    embedding_provider = OpenAIEmbeddingProvider(settings=s)
    vector_store = ChromaDBProvider(
        embedding_provider=embedding_provider,
        persist_directory=s.chromadb_persist_dir,
        collection_name=s.chromadb_collection,
    )
    pdf_converter, office_converter = _build_converters(s)

    page_analyzer = PageAnalyzer(
        llm=llm,
        policy=RetryPolicy(
            max_retries=s.analysis_max_retries,
            base_delay=s.analysis_base_delay,
            max_delay=s.analysis_max_delay,
        ),
        language=s.analysis_language,
        max_output_tokens=s.max_output_tokens,
    )

    service = IngestionService(
        pdf_converter=pdf_converter,
        office_converter=office_converter,
        page_analyzer=page_analyzer,
        chunker=TextChunker(chunk_size=s.chunk_size, overlap=s.chunk_overlap),
        vector_store=vector_store,
        archiver=_build_archiver(s),
        page_concurrency=s.page_analysis_concurrency,
        replace_existing=s.replace_existing,
        default_top_k=s.query_top_k,
    )
    logger.info(
        "ingestion_service_ready",
        llm=llm.get_provider_name(),
        embedding=embedding_provider.get_provider_name(),
        vector_store=vector_store.get_provider_name(),
        collection=s.chromadb_collection,
    )
    return service


def build_upload_service(
    records: IUploadRecordProvider,
    custom_settings: Settings | None = None,
) -> UploadService:
    """Construct the upload service around a freshly built ingestion service."""
    s = custom_settings or load_settings()
    return UploadService(
        ingestion=build_ingestion_service(s),
        records=records,
        max_upload_bytes=s.max_upload_bytes,
    )
