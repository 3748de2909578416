"""Shared pytest fixtures for all test suites."""

from collections.abc import Iterable
from pathlib import Path
from typing import Any

import pytest

from backend.studio.documents.repository import DocumentRepository
from backend.studio.errors import BackendUnavailableError
from backend.studio.models import ChatMessage, Completion
from backend.studio.storage.base import BackendHealth
from backend.studio.storage.hybrid import HybridStorageService
from backend.studio.storage.local import LocalFileStore


class SleepRecorder:
    """Injectable sleep that records requested delays instead of waiting."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


class ScriptedProvider:
    """Chat provider double returning queued completions in order.

    Each queued item is a Completion, a plain string (finish_reason
    "stop"), or an exception instance to raise. Every call is recorded.
    """

    def __init__(self, script: Iterable[Completion | str | Exception] = (), model: str = "test") -> None:
        self.model = model
        self.script: list[Completion | str | Exception] = list(script)
        self.calls: list[dict[str, Any]] = []

    def queue(self, *items: Completion | str | Exception) -> None:
        self.script.extend(items)

    async def complete(
        self,
        messages: list[ChatMessage],
        *,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> Completion:
        self.calls.append(
            {"messages": list(messages), "max_tokens": max_tokens, "temperature": temperature}
        )
        if not self.script:
            return Completion(text="default output", finish_reason="stop")
        item = self.script.pop(0)
        if isinstance(item, Exception):
            raise item
        if isinstance(item, str):
            return Completion(text=item, finish_reason="stop")
        return item


class BrokenStore:
    """Blob store whose every call fails."""

    name = "object-store"

    def __init__(self) -> None:
        self.calls = 0

    async def _fail(self, *args: Any, **kwargs: Any) -> Any:
        self.calls += 1
        raise BackendUnavailableError("connection refused")

    get_json = _fail
    put_json = _fail
    delete = _fail
    list_keys = _fail
    exists = _fail

    async def health_check(self) -> BackendHealth:
        return BackendHealth(
            backend=self.name, status="unhealthy", configured=True, location="broken"
        )


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def broken_store() -> BrokenStore:
    return BrokenStore()


@pytest.fixture
def local_store(tmp_path: Path) -> LocalFileStore:
    return LocalFileStore(tmp_path / "data")


@pytest.fixture
def storage(local_store: LocalFileStore) -> HybridStorageService:
    """Hybrid storage on local files (object store never selected)."""
    return HybridStorageService(
        local=local_store,
        object_store=BrokenStore(),
        use_object_store=False,
    )


@pytest.fixture
def repository(storage: HybridStorageService, sleep_recorder: SleepRecorder) -> DocumentRepository:
    return DocumentRepository(storage, sleep_fn=sleep_recorder)


@pytest.fixture
def provider() -> ScriptedProvider:
    return ScriptedProvider()
