"""S3 object store JSON blob adapter."""

import asyncio
import json
import logging
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from backend.studio.config import Settings
from backend.studio.errors import BackendUnavailableError
from backend.studio.storage.base import BackendHealth

logger = logging.getLogger(__name__)

_MISSING_KEY_CODES = {"NoSuchKey", "404", "NotFound"}


def _error_code(exc: ClientError) -> str:
    return str(exc.response.get("Error", {}).get("Code") or "")


class S3ObjectStore:
    """Blob store backed by one S3 bucket.

    boto3 is synchronous, so every call runs in a worker thread to keep
    the event loop free.
    """

    name = "object-store"

    def __init__(
        self,
        *,
        bucket: str | None,
        region: str | None,
        access_key_id: str | None,
        secret_access_key: str | None,
        prefix: str = "",
        client: Any | None = None,
    ) -> None:
        self.bucket = (bucket or "").strip()
        self.region = (region or "").strip()
        self.prefix = prefix.strip("/")
        self._access_key_id = access_key_id
        self._secret_access_key = secret_access_key
        self.configured = bool(self.bucket and self.region and access_key_id and secret_access_key)
        self._client = client

        if not self.configured and client is None:
            missing = [
                name
                for name, value in (
                    ("S3_ACCESS_KEY_ID", access_key_id),
                    ("S3_SECRET_ACCESS_KEY", secret_access_key),
                    ("S3_REGION", self.region),
                    ("S3_BUCKET_NAME", self.bucket),
                )
                if not value
            ]
            logger.warning(f"S3: missing configuration: {', '.join(missing)}")

    @classmethod
    def from_settings(cls, settings: Settings) -> "S3ObjectStore":
        """Build an adapter from application settings."""
        secret = settings.s3_secret_access_key
        return cls(
            bucket=settings.s3_bucket_name,
            region=settings.s3_region,
            access_key_id=settings.s3_access_key_id,
            secret_access_key=secret.get_secret_value() if secret else None,
        )

    @property
    def client(self) -> Any:
        if self._client is None:
            if not self.configured:
                raise BackendUnavailableError("S3 object store is not configured")
            self._client = boto3.client(
                "s3",
                region_name=self.region,
                aws_access_key_id=self._access_key_id,
                aws_secret_access_key=self._secret_access_key,
            )
        return self._client

    def _key(self, key: str) -> str:
        return f"{self.prefix}/{key}" if self.prefix else key

    def _require_configured(self) -> None:
        if not self.configured:
            raise BackendUnavailableError("S3 object store is not configured")

    async def get_json(self, key: str) -> dict[str, Any] | None:
        """Download and parse a JSON object, None when the key is absent."""
        self._require_configured()
        full_key = self._key(key)

        def _get() -> dict[str, Any] | None:
            try:
                response = self.client.get_object(Bucket=self.bucket, Key=full_key)
            except ClientError as e:
                if _error_code(e) in _MISSING_KEY_CODES:
                    return None
                raise
            body = response["Body"].read()
            data = json.loads(body.decode("utf-8") if isinstance(body, bytes) else body)
            if not isinstance(data, dict):
                raise ValueError(f"s3://{self.bucket}/{full_key} does not contain a JSON object")
            return data

        try:
            data = await asyncio.to_thread(_get)
        except (ClientError, BotoCoreError, ValueError) as e:
            logger.error(f"S3: error downloading {full_key}: {e}")
            raise BackendUnavailableError(f"Failed to download {full_key} from S3: {e}") from e

        if data is None:
            logger.info(f"S3: key {full_key} not found")
        return data

    async def put_json(self, key: str, data: dict[str, Any]) -> None:
        """Upload a JSON object, overwriting any previous version."""
        self._require_configured()
        full_key = self._key(key)
        body = json.dumps(data, indent=2, ensure_ascii=False).encode("utf-8")

        try:
            await asyncio.to_thread(
                self.client.put_object,
                Bucket=self.bucket,
                Key=full_key,
                Body=body,
                ContentType="application/json",
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"S3: error uploading {full_key}: {e}")
            raise BackendUnavailableError(f"Failed to upload {full_key} to S3: {e}") from e
        logger.debug(f"S3: uploaded {full_key}")

    async def delete(self, key: str) -> None:
        """Delete an object."""
        self._require_configured()
        full_key = self._key(key)
        try:
            await asyncio.to_thread(self.client.delete_object, Bucket=self.bucket, Key=full_key)
        except (ClientError, BotoCoreError) as e:
            raise BackendUnavailableError(f"Failed to delete {full_key} from S3: {e}") from e

    async def list_keys(self, prefix: str | None = None) -> list[str]:
        """List object keys under the adapter prefix."""
        self._require_configured()
        full_prefix = self._key(prefix or "")

        def _list() -> list[str]:
            paginator = self.client.get_paginator("list_objects_v2")
            keys: list[str] = []
            for page in paginator.paginate(Bucket=self.bucket, Prefix=full_prefix):
                keys.extend(obj["Key"] for obj in page.get("Contents", []))
            return keys

        try:
            keys = await asyncio.to_thread(_list)
        except (ClientError, BotoCoreError) as e:
            raise BackendUnavailableError(f"Failed to list S3 keys: {e}") from e

        if self.prefix:
            strip = len(self.prefix) + 1
            keys = [k[strip:] for k in keys]
        return keys

    async def exists(self, key: str) -> bool:
        """Check whether an object exists."""
        self._require_configured()
        full_key = self._key(key)
        try:
            await asyncio.to_thread(self.client.head_object, Bucket=self.bucket, Key=full_key)
        except ClientError as e:
            if _error_code(e) in _MISSING_KEY_CODES:
                return False
            raise BackendUnavailableError(f"Failed to check {full_key} in S3: {e}") from e
        except BotoCoreError as e:
            raise BackendUnavailableError(f"Failed to check {full_key} in S3: {e}") from e
        return True

    async def health_check(self) -> BackendHealth:
        """Healthy when configured and the bucket answers HEAD."""
        location = self.bucket or "not configured"
        if not self.configured:
            return BackendHealth(
                backend=self.name, status="misconfigured", configured=False, location=location
            )

        try:
            await asyncio.to_thread(self.client.head_bucket, Bucket=self.bucket)
        except (ClientError, BotoCoreError) as e:
            return BackendHealth(
                backend=self.name,
                status="unhealthy",
                configured=True,
                location=location,
                error=str(e),
            )
        return BackendHealth(backend=self.name, status="healthy", configured=True, location=location)
