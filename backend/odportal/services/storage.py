"""Document storage for OD request attachments.

All documents live in one bucket and are namespaced by folder prefix:
``proof/`` for the mandatory proof document and ``supporting/`` for the
optional supporting document. Two backends are provided:

- ``LocalDocumentStorage`` writes under ``storage_root/<bucket>`` and issues
  signed links to the API's own download endpoint.
- ``S3DocumentStorage`` talks to S3 or MinIO through boto3 and issues
  presigned ``get_object`` URLs.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
import logging
import mimetypes
from pathlib import Path
import re
import uuid

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from odportal.core.config import Settings, get_settings
from odportal.core.exceptions import ConfigurationError, DocumentValidationError, StorageError
from odportal.core.security import create_document_token

logger = logging.getLogger(__name__)

OPAQUE_CONTENT_TYPE = "application/octet-stream"
_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


class DocumentKind(str, Enum):
    proof = "proof"
    supporting = "supporting"


@dataclass(frozen=True)
class StoredDocument:
    key: str
    content_type: str
    size_bytes: int


def sanitize_filename(filename: str | None) -> str:
    name = Path(filename or "").name
    cleaned = _UNSAFE_FILENAME_CHARS.sub("_", name).strip("._")
    return cleaned[:120] or "document"


def build_object_key(kind: DocumentKind, filename: str | None, content_type: str) -> str:
    """Name the object after the client filename with an extension taken from the validated type."""
    stem = Path(sanitize_filename(filename)).stem or "document"
    extension = mimetypes.guess_extension(content_type) or ".bin"
    return f"{kind.value}/{uuid.uuid4().hex}-{stem}{extension}"


def validate_document(
    *,
    kind: DocumentKind,
    data: bytes,
    content_type: str | None,
    settings: Settings,
) -> str:
    """Check one uploaded document and return its normalized content type."""
    if not data:
        raise DocumentValidationError(
            f"The {kind.value} document is empty",
            details={"field": f"{kind.value}_document"},
        )
    if len(data) > settings.max_document_size_bytes:
        raise DocumentValidationError(
            f"The {kind.value} document exceeds {settings.max_document_size_bytes} bytes",
            details={"field": f"{kind.value}_document", "size_bytes": len(data)},
            status_code=413,
        )
    normalized = (content_type or "").split(";")[0].strip().lower()
    if normalized not in settings.allowed_document_types:
        raise DocumentValidationError(
            f"Unsupported {kind.value} document type",
            details={
                "field": f"{kind.value}_document",
                "content_type": normalized or None,
                "allowed": settings.allowed_document_types,
            },
        )
    return normalized


class DocumentStorage(ABC):
    def __init__(self, bucket: str) -> None:
        self.bucket = bucket

    @abstractmethod
    def upload(self, key: str, data: bytes, content_type: str) -> StoredDocument: ...

    @abstractmethod
    def delete(self, key: str) -> None: ...

    @abstractmethod
    def open(self, key: str) -> tuple[bytes, str]: ...

    @abstractmethod
    def signed_url(self, key: str, expires_in: int) -> str: ...

    def delete_quietly(self, keys: list[str]) -> None:
        """Best-effort cleanup used when a submission is rolled back."""
        for key in keys:
            try:
                self.delete(key)
            except StorageError:
                logger.exception("Could not remove orphaned document %s", key)


class LocalDocumentStorage(DocumentStorage):
    def __init__(
        self,
        root: str | Path,
        bucket: str,
        *,
        download_path: str,
        allowed_types: Iterable[str] = (),
    ) -> None:
        super().__init__(bucket)
        self.root = Path(root) / bucket
        self.download_path = download_path
        self.allowed_types = frozenset(allowed_types)

    def path_for(self, key: str) -> Path:
        candidate = (self.root / key).resolve()
        if self.root.resolve() not in candidate.parents:
            raise StorageError("Invalid document key", details={"key": key})
        return candidate

    def upload(self, key: str, data: bytes, content_type: str) -> StoredDocument:
        target = self.path_for(key)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as exc:
            logger.exception("Failed to write document %s", key)
            raise StorageError("Unable to store document", details={"key": key}) from exc
        logger.info("Stored document %s (%d bytes)", key, len(data))
        return StoredDocument(key=key, content_type=content_type, size_bytes=len(data))

    def delete(self, key: str) -> None:
        try:
            self.path_for(key).unlink(missing_ok=True)
        except OSError as exc:
            raise StorageError("Unable to delete document", details={"key": key}) from exc

    def exists(self, key: str) -> bool:
        return self.path_for(key).is_file()

    def open(self, key: str) -> tuple[bytes, str]:
        target = self.path_for(key)
        if not target.is_file():
            raise StorageError("Document not found", details={"key": key})
        content_type = mimetypes.guess_type(target.name)[0]
        if content_type not in self.allowed_types:
            # Never echo back a type the upload check would have refused.
            content_type = OPAQUE_CONTENT_TYPE
        return target.read_bytes(), content_type

    def signed_url(self, key: str, expires_in: int) -> str:
        token = create_document_token(bucket=self.bucket, key=key, expires_in=expires_in)
        return f"{self.download_path}?token={token}"


class S3DocumentStorage(DocumentStorage):
    def __init__(self, settings: Settings) -> None:
        super().__init__(settings.storage_bucket)
        self._settings = settings
        self._client = None

    def _get_client(self):
        if self._client is None:
            client_kwargs: dict = {"region_name": self._settings.s3_region}
            if self._settings.s3_endpoint_url:
                # MinIO and other S3-compatible stores need path-style addressing.
                client_kwargs["endpoint_url"] = self._settings.s3_endpoint_url
                client_kwargs["config"] = Config(signature_version="s3v4", s3={"addressing_style": "path"})
            if self._settings.s3_access_key_id and self._settings.s3_secret_access_key:
                client_kwargs["aws_access_key_id"] = self._settings.s3_access_key_id
                client_kwargs["aws_secret_access_key"] = self._settings.s3_secret_access_key
            self._client = boto3.client("s3", **client_kwargs)
        return self._client

    def upload(self, key: str, data: bytes, content_type: str) -> StoredDocument:
        try:
            self._get_client().put_object(Bucket=self.bucket, Key=key, Body=data, ContentType=content_type)
        except (BotoCoreError, ClientError) as exc:
            logger.exception("Failed to upload document %s to bucket %s", key, self.bucket)
            raise StorageError("Unable to store document", details={"key": key}) from exc
        logger.info("Uploaded document %s (%d bytes) to bucket %s", key, len(data), self.bucket)
        return StoredDocument(key=key, content_type=content_type, size_bytes=len(data))

    def delete(self, key: str) -> None:
        try:
            self._get_client().delete_object(Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as exc:
            raise StorageError("Unable to delete document", details={"key": key}) from exc

    def open(self, key: str) -> tuple[bytes, str]:
        try:
            response = self._get_client().get_object(Bucket=self.bucket, Key=key)
            data = response["Body"].read()
        except (BotoCoreError, ClientError) as exc:
            logger.exception("Failed to read document %s from bucket %s", key, self.bucket)
            raise StorageError("Unable to read document", details={"key": key}) from exc
        return data, response.get("ContentType") or OPAQUE_CONTENT_TYPE

    def signed_url(self, key: str, expires_in: int) -> str:
        try:
            return self._get_client().generate_presigned_url(
                "get_object",
                Params={"Bucket": self.bucket, "Key": key},
                ExpiresIn=expires_in,
            )
        except (BotoCoreError, ClientError) as exc:
            logger.exception("Failed to sign URL for document %s", key)
            raise StorageError("Unable to access document", details={"key": key}) from exc


def build_storage(settings: Settings) -> DocumentStorage:
    if not settings.storage_bucket.strip():
        raise ConfigurationError("storage_bucket must not be empty")
    if settings.storage_backend == "s3":
        return S3DocumentStorage(settings)
    return LocalDocumentStorage(
        settings.storage_root,
        settings.storage_bucket,
        download_path=f"{settings.api_prefix}/documents/download",
        allowed_types=settings.allowed_document_types,
    )


@lru_cache
def get_storage() -> DocumentStorage:
    return build_storage(get_settings())
