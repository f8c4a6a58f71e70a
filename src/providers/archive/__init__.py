"""Archive providers -- durable copies of original uploads."""

from src.providers.archive.s3_archive_provider import S3ArchiveProvider

__all__ = ["S3ArchiveProvider"]
