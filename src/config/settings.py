"""Application settings loaded from environment variables via pydantic-settings.

# ─── HOW SETTINGS WORK ────────────────────────────────────────────────
#
# Values are read from two sources (highest priority first):
#
#   1. Environment variables, e.g. OPENAI_API_KEY=sk-abc123
#   2. The .env file in the project root (local development)
#
# Field `openai_api_key` maps to env var `OPENAI_API_KEY` automatically.
# Defaults below apply when neither source sets a value.
#
# The .env file is never committed; copy .env.example to start one.
# ──────────────────────────────────────────────────────────────────────
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """chatdocs ingestion settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # === Text extraction (vision LLM) ===
    openai_api_key: str = ""
    openai_base_url: str = ""  # OpenAI-compatible endpoint (Azure proxy, TogetherAI, ...)
    openai_vision_model: str = ""  # Empty = gpt-4o
    openai_embedding_model: str = ""  # Empty = text-embedding-3-small
    openai_timeout_seconds: float = 60.0
    analysis_language: str = "Japanese"
    max_output_tokens: int = 2048

    # === Rate-limit retry policy for page analysis ===
    analysis_max_retries: int = 3
    analysis_base_delay: float = 2.0
    analysis_max_delay: float = 60.0
    # Upper bound on concurrent page analyses within one document.
    page_analysis_concurrency: int = 4

    # === Conversion (external binaries) ===
    pdftoppm_binary: str = "pdftoppm"
    soffice_binary: str = "soffice"
    pdf_render_dpi: int = 150
    conversion_timeout_seconds: float = 180.0

    # === Chunking ===
    chunk_size: int = 500
    chunk_overlap: int = 80

    # === Vector store ===
    chromadb_persist_dir: str = "./data/chromadb"
    chromadb_collection: str = "files_data"
    query_top_k: int = 5
    # Drop a document's previous chunks before storing a re-upload.
    replace_existing: bool = True

    # === Archive (S3-compatible blob store) ===
    archive_bucket: str = ""  # Empty = archiving disabled
    archive_prefix: str = "uploads/"
    archive_region: str = ""
    archive_endpoint_url: str = ""  # MinIO / R2 / other S3-compatible stores
    archive_link_expiry_seconds: int = 7 * 24 * 3600

    # === Uploads ===
    max_upload_bytes: int = 20 * 1024 * 1024

    # === App Config ===
    app_env: str = "development"
    log_level: str = "INFO"

    def archive_enabled(self) -> bool:
        """Return ``True`` when an archive bucket is configured."""
        return bool(self.archive_bucket)
