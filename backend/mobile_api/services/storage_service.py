"""
Object storage bridge for DigitalOcean Spaces (S3-compatible) and in-memory testing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Dict, Protocol
from urllib.parse import quote, unquote, urlparse

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from mobile_api.config import Settings, settings
from mobile_api.core.exceptions import StorageError, StorageNotConfiguredError

logger = logging.getLogger(__name__)


class StorageClient(Protocol):
    """Defines the operations the API needs from object storage."""

    def upload(self, key: str, body: bytes, content_type: str = "application/octet-stream") -> str:
        ...

    def delete(self, key: str) -> None:
        ...

    def presign_get(self, key: str, expires_in: int = 3600) -> str:
        ...

    def key_from_url(self, url: str) -> str:
        ...

    def check(self) -> dict:
        ...


def _key_from_url(url: str) -> str:
    return unquote(urlparse(url).path.lstrip("/"))


@dataclass
class InMemoryStorageClient:
    """Test double for storage interactions."""

    base_url: str = "https://test-bucket.storage.example.test"
    stored_objects: Dict[str, bytes] = field(default_factory=dict)
    content_types: Dict[str, str] = field(default_factory=dict)

    def upload(self, key: str, body: bytes, content_type: str = "application/octet-stream") -> str:
        self.stored_objects[key] = bytes(body)
        self.content_types[key] = content_type
        return f"{self.base_url}/{quote(key)}"

    def delete(self, key: str) -> None:
        self.stored_objects.pop(key, None)
        self.content_types.pop(key, None)

    def presign_get(self, key: str, expires_in: int = 3600) -> str:
        return f"{self.base_url}/{quote(key)}?op=get&expires={expires_in}"

    def key_from_url(self, url: str) -> str:
        return _key_from_url(url)

    def check(self) -> dict:
        return {"status": "connected", "bucket": "in-memory"}


@dataclass
class SpacesStorageClient:
    """
    S3-compatible storage client for DigitalOcean Spaces.

    Objects are written public-read and addressed by their virtual-hosted URL,
    so the object key can be recovered from a stored file_url.
    """

    bucket: str
    region: str
    endpoint: str
    access_key_id: str
    secret_access_key: str

    def __post_init__(self):
        config = Config(
            s3={"addressing_style": "virtual"},
            signature_version="s3v4",
        )
        self._client = boto3.client(
            "s3",
            endpoint_url=self.endpoint,
            region_name=self.region,
            aws_access_key_id=self.access_key_id or None,
            aws_secret_access_key=self.secret_access_key or None,
            config=config,
        )

    @classmethod
    def from_settings(cls, config: Settings) -> "SpacesStorageClient":
        return cls(
            bucket=config.SPACES_BUCKET,
            region=config.SPACES_REGION,
            endpoint=config.get_spaces_endpoint_url(),
            access_key_id=config.SPACES_KEY,
            secret_access_key=config.SPACES_SECRET,
        )

    def _require_bucket(self) -> None:
        if not self.bucket:
            raise StorageNotConfiguredError()

    def public_url(self, key: str) -> str:
        parsed = urlparse(self.endpoint)
        return f"{parsed.scheme}://{self.bucket}.{parsed.netloc}/{quote(key)}"

    def upload(self, key: str, body: bytes, content_type: str = "application/octet-stream") -> str:
        self._require_bucket()
        try:
            self._client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=body,
                ACL="public-read",
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as exc:
            logger.error("Upload error for %s: %s", key, exc)
            raise StorageError(f"Upload failed: {exc}") from exc
        url = self.public_url(key)
        logger.info("File uploaded: %s", url)
        return url

    def delete(self, key: str) -> None:
        self._require_bucket()
        try:
            self._client.delete_object(Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as exc:
            logger.error("Delete error for %s: %s", key, exc)
            raise StorageError(f"Delete failed: {exc}") from exc
        logger.info("File deleted: %s", key)

    def presign_get(self, key: str, expires_in: int = 3600) -> str:
        self._require_bucket()
        return self._client.generate_presigned_url(
            ClientMethod="get_object",
            Params={"Bucket": self.bucket, "Key": key},
            ExpiresIn=expires_in,
        )

    def key_from_url(self, url: str) -> str:
        return _key_from_url(url)

    def check(self) -> dict:
        self._require_bucket()
        try:
            self._client.head_bucket(Bucket=self.bucket)
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(str(exc)) from exc
        return {"status": "connected", "bucket": self.bucket}


@lru_cache()
def get_storage_client() -> StorageClient:
    """Return a process-wide storage client built from settings."""
    return SpacesStorageClient.from_settings(settings)
