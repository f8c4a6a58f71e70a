"""S3-compatible archive provider for original uploads.

Uploads the original file with ``put_object`` and returns a presigned GET
URL as the shareable link.  Works against AWS S3 and S3-compatible stores
(MinIO, Cloudflare R2) via ``endpoint_url``.

boto3 is synchronous, so each call runs in a worker thread via
``asyncio.to_thread`` to keep the event loop free.
"""

from __future__ import annotations

import asyncio
import uuid
from typing import Any

import boto3
import structlog
from botocore.exceptions import BotoCoreError, ClientError

from src.config.settings import Settings
from src.interfaces.archive_provider import IArchiveProvider
from src.models.ingestion import UploadedFile
from src.utils.errors import ArchiveError

logger = structlog.get_logger(logger_name=__name__)


class S3ArchiveProvider(IArchiveProvider):
    """Archive provider that stores uploads in an S3 bucket.

    Parameters
    ----------
    bucket:
        Target bucket name.
    prefix:
        Key prefix; each upload lands at ``{prefix}{uuid}/{filename}`` so
        two uploads with the same name never overwrite each other.
    link_expiry_seconds:
        Lifetime of the presigned link.
    client:
        Optional pre-built boto3 S3 client (tests inject a stub).
    """

    def __init__(
        self,
        bucket: str,
        prefix: str = "uploads/",
        link_expiry_seconds: int = 7 * 24 * 3600,
        client: Any | None = None,
    ) -> None:
        self._bucket = bucket
        self._prefix = prefix
        self._link_expiry = link_expiry_seconds
        self._client = client if client is not None else boto3.client("s3")

    @classmethod
    def from_settings(cls, settings: Settings) -> S3ArchiveProvider:
        client_kwargs: dict[str, str] = {}
        if settings.archive_region:
            client_kwargs["region_name"] = settings.archive_region
        if settings.archive_endpoint_url:
            client_kwargs["endpoint_url"] = settings.archive_endpoint_url
        return cls(
            bucket=settings.archive_bucket,
            prefix=settings.archive_prefix,
            link_expiry_seconds=settings.archive_link_expiry_seconds,
            client=boto3.client("s3", **client_kwargs),
        )

    async def upload_and_share(self, file: UploadedFile) -> str:
        key = f"{self._prefix}{uuid.uuid4().hex}/{file.filename}"
        try:
            await asyncio.to_thread(self._put_sync, key, file)
            url = await asyncio.to_thread(self._presign_sync, key)
        except (BotoCoreError, ClientError) as exc:
            raise ArchiveError(
                message=f"S3 upload of {file.filename} failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.info("s3_archive_uploaded", bucket=self._bucket, key=key, size=file.size)
        return url

    def get_provider_name(self) -> str:
        return "s3"

    # -- Sync helpers (executed via asyncio.to_thread) -------------------------

    def _put_sync(self, key: str, file: UploadedFile) -> None:
        self._client.put_object(
            Bucket=self._bucket,
            Key=key,
            Body=file.data,
            ContentType=file.mimetype,
        )

    def _presign_sync(self, key: str) -> str:
        return self._client.generate_presigned_url(
            "get_object",
            Params={"Bucket": self._bucket, "Key": key},
            ExpiresIn=self._link_expiry,
        )
