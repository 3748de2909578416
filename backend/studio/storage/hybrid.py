"""Hybrid storage: object store in the cloud, local files otherwise.

Backend selection happens once at construction: the object store is used
when the explicit "use cloud" flag is set or the runtime is production.
Any object-store call that raises is retried once against the local
store. The degrade is silent; only ``health_check`` reveals which backend
is selected.

Collections are whole JSON blobs, so every write is read-modify-write of
the full partition. Writers inside this process are serialized per
partition through ``partition_lock``; writers in other processes are not.
"""

import asyncio
import logging
import time
import weakref
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from pydantic import BaseModel

from backend.studio.config import Settings
from backend.studio.errors import BackendUnavailableError
from backend.studio.models import CollectionData, DocumentStatus, StorageBackend
from backend.studio.storage.base import BackendHealth, BlobStore
from backend.studio.storage.local import LocalFileStore
from backend.studio.storage.s3 import S3ObjectStore
from backend.studio.utils.logging import StructuredStorageLogger
from backend.studio.utils.metrics import PrometheusStorageMetrics

logger = logging.getLogger(__name__)

T = TypeVar("T")


class StorageHealth(BaseModel):
    """Combined health report for both adapters."""

    backend: StorageBackend
    object_store_reachable: bool
    local_reachable: bool
    local: BackendHealth
    object_store: BackendHealth
    environment: str
    use_s3_local: bool


class PartitionSummary(BaseModel):
    """Existence and size of one partition."""

    exists: bool
    documents: int
    sessions: int


class HybridStorageService:
    """Collection store choosing between object-store and local adapters."""

    def __init__(
        self,
        *,
        local: BlobStore,
        object_store: BlobStore,
        use_object_store: bool,
        collection_keys: dict[DocumentStatus, str] | None = None,
        environment: str = "development",
        use_s3_local: bool = False,
        metrics: PrometheusStorageMetrics | None = None,
        structured_logger: StructuredStorageLogger | None = None,
    ) -> None:
        self.local = local
        self.object_store = object_store
        self.use_object_store = use_object_store
        self.collection_keys = collection_keys or {
            DocumentStatus.draft: "db.json",
            DocumentStatus.completed: "blog.json",
        }
        self.environment = environment
        self.use_s3_local = use_s3_local
        self._metrics = metrics or PrometheusStorageMetrics()
        self._log = structured_logger or StructuredStorageLogger()
        self._locks: weakref.WeakKeyDictionary[
            asyncio.AbstractEventLoop, dict[DocumentStatus, asyncio.Lock]
        ] = weakref.WeakKeyDictionary()

        logger.info(f"Hybrid storage: using {self.current_storage_mode()} storage")

    @classmethod
    def from_settings(cls, settings: Settings) -> "HybridStorageService":
        """Build the service and its adapters from application settings."""
        return cls(
            local=LocalFileStore(settings.local_data_dir),
            object_store=S3ObjectStore.from_settings(settings),
            use_object_store=settings.use_s3_local or settings.is_production,
            collection_keys={
                DocumentStatus.draft: settings.draft_collection_key,
                DocumentStatus.completed: settings.completed_collection_key,
            },
            environment=settings.environment,
            use_s3_local=settings.use_s3_local,
        )

    def set_storage_mode(self, use_object_store: bool) -> None:
        """Switch backends at runtime."""
        self.use_object_store = use_object_store
        logger.info(f"Hybrid storage: switched to {self.current_storage_mode()} storage")

    def current_storage_mode(self) -> str:
        return "S3" if self.use_object_store else "Local File"

    def partition_lock(self, partition: DocumentStatus) -> asyncio.Lock:
        """Single-writer lock for one partition's read-modify-write cycle.

        Locks are kept per running event loop, since the cached service
        can be reached from more than one loop and an ``asyncio.Lock``
        is bound to the loop it first waits on.
        """
        locks = self._locks.setdefault(asyncio.get_running_loop(), {})
        lock = locks.get(partition)
        if lock is None:
            lock = locks[partition] = asyncio.Lock()
        return lock

    async def _timed(
        self, store: BlobStore, operation: str, key: str, fn: Callable[[BlobStore], Awaitable[T]]
    ) -> T:
        start = time.monotonic()
        try:
            result = await fn(store)
        except Exception as e:
            elapsed_ms = (time.monotonic() - start) * 1000
            self._metrics.record_latency(operation, store.name, "error", elapsed_ms)
            self._log.log_operation(
                operation, store.name, "error", elapsed_ms, key=key, error_reason=str(e)
            )
            raise
        elapsed_ms = (time.monotonic() - start) * 1000
        self._metrics.record_latency(operation, store.name, "success", elapsed_ms)
        self._log.log_operation(operation, store.name, "success", elapsed_ms, key=key)
        return result

    async def _call(
        self, operation: str, key: str, fn: Callable[[BlobStore], Awaitable[T]]
    ) -> T:
        """Run an adapter call on the selected backend, degrading to local once."""
        if not self.use_object_store:
            return await self._timed(self.local, operation, key, fn)

        try:
            return await self._timed(self.object_store, operation, key, fn)
        except Exception as e:
            logger.warning(f"S3 {operation} failed for {key}, falling back to local: {e}")
            self._metrics.inc_fallback(operation)

        try:
            return await self._timed(self.local, operation, key, fn)
        except Exception as local_error:
            raise BackendUnavailableError(
                f"Storage unavailable: {operation} {key} failed on both backends: {local_error}"
            ) from local_error

    async def get_json(self, key: str) -> dict[str, Any] | None:
        return await self._call("get", key, lambda store: store.get_json(key))

    async def put_json(self, key: str, data: dict[str, Any]) -> None:
        await self._call("put", key, lambda store: store.put_json(key, data))

    async def delete(self, key: str) -> None:
        await self._call("delete", key, lambda store: store.delete(key))

    async def list_keys(self, prefix: str | None = None) -> list[str]:
        return await self._call("list", prefix or "", lambda store: store.list_keys(prefix))

    async def load_collection(self, partition: DocumentStatus) -> CollectionData:
        """Read one partition, creating it empty when absent."""
        key = self.collection_keys[partition]
        raw = await self.get_json(key)
        if raw is None:
            logger.info(f"Collection {key} not found, creating empty {partition.value} partition")
            empty = CollectionData()
            await self.put_json(key, empty.to_json())
            return empty
        return CollectionData.model_validate(raw)

    async def save_collection(self, partition: DocumentStatus, data: CollectionData) -> None:
        """Write one partition back as a whole."""
        await self.put_json(self.collection_keys[partition], data.to_json())

    async def initialize_storage(self) -> dict[DocumentStatus, PartitionSummary]:
        """Ensure both partitions exist with the normalized empty-array shape."""
        summaries: dict[DocumentStatus, PartitionSummary] = {}
        for partition in DocumentStatus:
            async with self.partition_lock(partition):
                data = await self.load_collection(partition)
                await self.save_collection(partition, data)
            summaries[partition] = PartitionSummary(
                exists=True,
                documents=len(data.user_documents),
                sessions=len(data.voice_sessions),
            )
        return summaries

    async def storage_summary(self) -> dict[DocumentStatus, PartitionSummary]:
        """Per-partition document and session counts (creates missing partitions)."""
        summaries: dict[DocumentStatus, PartitionSummary] = {}
        for partition in DocumentStatus:
            data = await self.load_collection(partition)
            summaries[partition] = PartitionSummary(
                exists=True,
                documents=len(data.user_documents),
                sessions=len(data.voice_sessions),
            )
        return summaries

    async def health_check(self) -> StorageHealth:
        """Report selected backend and reachability of both adapters."""
        local_health, object_health = await asyncio.gather(
            self.local.health_check(), self.object_store.health_check()
        )
        return StorageHealth(
            backend=StorageBackend.object_store if self.use_object_store else StorageBackend.local,
            object_store_reachable=object_health.reachable,
            local_reachable=local_health.reachable,
            local=local_health,
            object_store=object_health,
            environment=self.environment,
            use_s3_local=self.use_s3_local,
        )
