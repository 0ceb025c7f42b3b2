"""Object storage for export artifacts (S3-compatible, e.g. DigitalOcean Spaces)."""

from __future__ import annotations

import abc
import logging

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from inventra.config import settings
from inventra.modules.export.errors import StorageUploadError

logger = logging.getLogger(__name__)


class ObjectStorage(abc.ABC):
    """Durable byte storage that returns a retrievable URL per object."""

    @abc.abstractmethod
    def put(self, key: str, data: bytes, content_type: str) -> str:
        """Store ``data`` under ``key`` and return its public URL."""


class S3ObjectStorage(ObjectStorage):
    """Uploads artifacts with a public-read ACL and serves them from ``public_url``."""

    def __init__(
        self,
        client,
        bucket: str,
        public_url: str,
        acl: str = "public-read",
    ) -> None:
        self.client = client
        self.bucket = bucket
        self.public_url = public_url.rstrip("/")
        self.acl = acl

    @classmethod
    def from_settings(cls) -> S3ObjectStorage:
        client = boto3.client(
            "s3",
            endpoint_url=settings.storage_endpoint_url or None,
            region_name=settings.storage_region,
            aws_access_key_id=settings.storage_access_key or None,
            aws_secret_access_key=settings.storage_secret_key or None,
        )
        return cls(
            client=client,
            bucket=settings.storage_bucket,
            public_url=settings.storage_public_url,
            acl=settings.storage_object_acl,
        )

    def url_for(self, key: str) -> str:
        return f"{self.public_url}/{key}"

    def put(self, key: str, data: bytes, content_type: str) -> str:
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
                ACL=self.acl,
            )
        except (BotoCoreError, ClientError) as exc:
            raise StorageUploadError(f"Failed to upload {key}: {exc}") from exc

        logger.info("Uploaded %d bytes to %s/%s", len(data), self.bucket, key)
        return self.url_for(key)
