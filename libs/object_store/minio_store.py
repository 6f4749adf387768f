"""MinIO implementation of the object store interface.

Uses the ``minio`` client with an explicit ``urllib3`` pool so connect and
read deadlines apply to every artifact fetch. The client's own retry loop is
disabled; a failed fetch surfaces immediately as ``StorageUnavailableError``.
"""

import io
from typing import Optional, Tuple
from urllib.parse import urlparse

import structlog
import urllib3
from minio import Minio
from minio.error import MinioException, S3Error

from .base import ObjectNotFoundError, ObjectStore, StorageUnavailableError

logger = structlog.get_logger("object_store.minio")

_NOT_FOUND_CODES = {"NoSuchKey", "NoSuchBucket", "NoSuchObject"}


def parse_endpoint(endpoint: str) -> Tuple[str, bool]:
    """Split ``http(s)://host:port`` into ``(host:port, secure)``.

    Bare ``host:port`` values are accepted and treated as plain HTTP.
    """
    parsed = urlparse(endpoint)
    if parsed.scheme in ("http", "https"):
        return parsed.netloc, parsed.scheme == "https"
    return endpoint, False


class MinioObjectStore(ObjectStore):
    """Object store backed by a MinIO (or S3 compatible) bucket."""

    def __init__(
        self,
        endpoint: str,
        access_key: str,
        secret_key: str,
        bucket: str,
        region: Optional[str] = None,
        connect_timeout: float = 5.0,
        read_timeout: float = 30.0,
        client: Optional[Minio] = None
    ):
        """Create the store.

        Parameters
        - endpoint: ``http(s)://host:port`` of the MinIO server
        - access_key / secret_key: credentials
        - bucket: bucket holding the artifacts
        - region: optional region, skips the bucket location lookup
        - connect_timeout / read_timeout: seconds, applied per request
        - client: pre-built ``Minio`` client (mainly for tests)
        """
        self.bucket = bucket
        self.endpoint = endpoint

        if client is None:
            host, secure = parse_endpoint(endpoint)
            http_client = urllib3.PoolManager(
                timeout=urllib3.Timeout(connect=connect_timeout, read=read_timeout),
                retries=urllib3.Retry(total=0),
            )
            client = Minio(
                host,
                access_key=access_key,
                secret_key=secret_key,
                secure=secure,
                region=region,
                http_client=http_client,
            )
        self.client = client

    def get(self, key: str) -> bytes:
        response = None
        try:
            response = self.client.get_object(self.bucket, key)
            data = response.read()
        except S3Error as e:
            if e.code in _NOT_FOUND_CODES:
                raise ObjectNotFoundError(key) from e
            logger.error("MinIO rejected download", key=key, bucket=self.bucket, code=e.code)
            raise StorageUnavailableError(key, e.code or str(e)) from e
        except (MinioException, urllib3.exceptions.HTTPError, OSError) as e:
            logger.error("MinIO download failed", key=key, bucket=self.bucket, error=str(e))
            raise StorageUnavailableError(key, str(e)) from e
        finally:
            if response is not None:
                response.close()
                response.release_conn()

        logger.debug("Downloaded object", key=key, bucket=self.bucket, size=len(data))
        return data

    def put(self, key: str, data: bytes, content_type: str = "application/octet-stream") -> None:
        try:
            self.client.put_object(
                self.bucket,
                key,
                io.BytesIO(data),
                length=len(data),
                content_type=content_type,
            )
        except (MinioException, urllib3.exceptions.HTTPError, OSError) as e:
            logger.error("MinIO upload failed", key=key, bucket=self.bucket, error=str(e))
            raise StorageUnavailableError(key, str(e)) from e

        logger.info("Uploaded object", key=key, bucket=self.bucket, size=len(data))

    def ensure_bucket(self) -> None:
        """Create the bucket if it does not exist yet."""
        try:
            if not self.client.bucket_exists(self.bucket):
                self.client.make_bucket(self.bucket)
                logger.info("Created MinIO bucket", bucket=self.bucket)
        except (MinioException, urllib3.exceptions.HTTPError, OSError) as e:
            raise StorageUnavailableError(self.bucket, str(e)) from e

    def health_check(self) -> bool:
        try:
            return self.client.bucket_exists(self.bucket)
        except (MinioException, urllib3.exceptions.HTTPError, OSError) as e:
            logger.warning("MinIO health check failed", bucket=self.bucket, error=str(e))
            return False
