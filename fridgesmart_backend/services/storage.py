"""Key-value blob storage backends for persisted client state."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Optional, Protocol

import boto3
from botocore.client import BaseClient
from botocore.exceptions import BotoCoreError, ClientError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from fridgesmart_backend.models import StoredBlob


class StorageError(RuntimeError):
    """Raised when a storage backend encounters a fatal error."""


class BlobStorage(Protocol):
    """Minimal interface the inventory store needs from a backend."""

    def read(self, key: str) -> str | None: ...

    def write(self, key: str, value: str) -> None: ...


class InMemoryBlobStorage:
    """Process-local storage used in tests and when nothing is configured."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._values: dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def read(self, key: str) -> str | None:
        with self._lock:
            return self._values.get(key)

    def write(self, key: str, value: str) -> None:
        with self._lock:
            self._values[key] = value


class SQLBlobStorage:
    """Store blobs as rows of the ``storage_blobs`` table."""

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def read(self, key: str) -> str | None:
        session = self._session_factory()
        try:
            blob = session.get(StoredBlob, key)
            return blob.value if blob is not None else None
        except SQLAlchemyError as exc:
            raise StorageError("failed to read blob from database") from exc
        finally:
            session.close()

    def write(self, key: str, value: str) -> None:
        session = self._session_factory()
        try:
            blob = session.get(StoredBlob, key)
            if blob is None:
                session.add(StoredBlob(key=key, value=value))
            else:
                blob.value = value
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            raise StorageError("failed to write blob to database") from exc
        finally:
            session.close()


@dataclass(slots=True)
class S3BlobStorageSettings:
    """Configuration block for S3 blob storage."""

    bucket: str
    region_name: Optional[str] = None
    endpoint_url: Optional[str] = None
    base_prefix: str = "fridgesmart"
    access_key_id: Optional[str] = None
    secret_access_key: Optional[str] = None


class S3BlobStorage:
    """Wrapper around boto3 that keeps each blob in its own object."""

    def __init__(
        self, settings: S3BlobStorageSettings, client: BaseClient | None = None
    ) -> None:
        self._settings = settings
        self._client: BaseClient = client or boto3.client(
            "s3",
            region_name=settings.region_name,
            endpoint_url=settings.endpoint_url,
            aws_access_key_id=settings.access_key_id,
            aws_secret_access_key=settings.secret_access_key,
        )

    @property
    def bucket(self) -> str:
        return self._settings.bucket

    def _object_key(self, key: str) -> str:
        return f"{self._settings.base_prefix}/{key}.json"

    def read(self, key: str) -> str | None:
        try:
            response = self._client.get_object(
                Bucket=self._settings.bucket, Key=self._object_key(key)
            )
            return response["Body"].read().decode("utf-8")
        except UnicodeDecodeError as exc:
            raise StorageError("S3 blob is not valid UTF-8") from exc
        except ClientError as exc:
            error_code = exc.response.get("Error", {}).get("Code")
            if error_code in ("NoSuchKey", "404"):
                return None
            raise StorageError("failed to read blob from S3") from exc
        except BotoCoreError as exc:  # pragma: no cover - external
            raise StorageError("failed to read blob from S3") from exc

    def write(self, key: str, value: str) -> None:
        try:
            self._client.put_object(
                Bucket=self._settings.bucket,
                Key=self._object_key(key),
                Body=value.encode("utf-8"),
                ContentType="application/json",
            )
        except (BotoCoreError, ClientError) as exc:  # pragma: no cover - external
            raise StorageError("failed to write blob to S3") from exc


def init_s3_blob_storage(settings: S3BlobStorageSettings) -> S3BlobStorage:
    """Factory to mirror the init_* pattern used across services."""

    return S3BlobStorage(settings)
