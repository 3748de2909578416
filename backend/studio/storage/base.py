"""Blob store protocol shared by the local and object-store adapters."""

from dataclasses import dataclass
from typing import Any, Protocol


@dataclass
class BackendHealth:
    """Health snapshot for one adapter."""

    backend: str
    status: str
    configured: bool
    location: str
    error: str | None = None

    @property
    def reachable(self) -> bool:
        return self.status == "healthy"


class BlobStore(Protocol):
    """Uninterpreted get/put/delete/list of named JSON blobs."""

    name: str

    async def get_json(self, key: str) -> dict[str, Any] | None:
        """Read a JSON blob.

        Args:
            key: Blob name (e.g. "db.json")

        Returns:
            Parsed JSON object, or None when the blob does not exist
        """
        ...

    async def put_json(self, key: str, data: dict[str, Any]) -> None:
        """Write a JSON blob, replacing any previous content.

        Args:
            key: Blob name
            data: JSON-serializable object
        """
        ...

    async def delete(self, key: str) -> None:
        """Delete a blob. Deleting a missing blob is not an error."""
        ...

    async def list_keys(self, prefix: str | None = None) -> list[str]:
        """List blob names, optionally restricted to a prefix."""
        ...

    async def exists(self, key: str) -> bool:
        """Check whether a blob exists."""
        ...

    async def health_check(self) -> BackendHealth:
        """Report whether the backend is configured and reachable."""
        ...
