"""Local filesystem JSON blob store."""

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from backend.studio.errors import BackendUnavailableError
from backend.studio.storage.base import BackendHealth

logger = logging.getLogger(__name__)


class LocalFileStore:
    """Blob store keeping each collection as a JSON file under base_dir."""

    name = "local"

    def __init__(self, base_dir: Path) -> None:
        self.base_dir = Path(base_dir)

    def _path(self, key: str) -> Path:
        return self.base_dir / key

    def _read(self, key: str) -> dict[str, Any] | None:
        path = self._path(key)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        data = json.loads(raw)
        if not isinstance(data, dict):
            raise ValueError(f"{path} does not contain a JSON object")
        return data

    def _write(self, key: str, data: dict[str, Any]) -> None:
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        # Write-then-rename so readers never see a half-written file
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    async def get_json(self, key: str) -> dict[str, Any] | None:
        """Read a JSON file, None when it does not exist."""
        try:
            return await asyncio.to_thread(self._read, key)
        except (OSError, ValueError) as e:
            logger.error(f"Local: error reading {key}: {e}")
            raise BackendUnavailableError(f"Failed to read local collection {key}: {e}") from e

    async def put_json(self, key: str, data: dict[str, Any]) -> None:
        """Write a JSON file atomically."""
        try:
            await asyncio.to_thread(self._write, key, data)
        except OSError as e:
            logger.error(f"Local: error saving {key}: {e}")
            raise BackendUnavailableError(f"Failed to save local collection {key}: {e}") from e
        logger.debug(f"Local: saved {key}")

    async def delete(self, key: str) -> None:
        """Delete a JSON file if present."""
        await asyncio.to_thread(self._path(key).unlink, missing_ok=True)

    async def list_keys(self, prefix: str | None = None) -> list[str]:
        """List JSON files under base_dir."""

        def _list() -> list[str]:
            if not self.base_dir.exists():
                return []
            keys = [
                str(p.relative_to(self.base_dir))
                for p in self.base_dir.rglob("*.json")
                if p.is_file()
            ]
            return sorted(k for k in keys if not prefix or k.startswith(prefix))

        return await asyncio.to_thread(_list)

    async def exists(self, key: str) -> bool:
        """Check whether the JSON file exists."""
        return await asyncio.to_thread(self._path(key).is_file)

    async def health_check(self) -> BackendHealth:
        """Healthy when base_dir exists (or can be created) and is writable."""
        try:
            await asyncio.to_thread(self.base_dir.mkdir, parents=True, exist_ok=True)
            writable = await asyncio.to_thread(os.access, self.base_dir, os.W_OK)
            if not writable:
                raise PermissionError(f"{self.base_dir} is not writable")
            return BackendHealth(
                backend=self.name,
                status="healthy",
                configured=True,
                location=str(self.base_dir),
            )
        except OSError as e:
            return BackendHealth(
                backend=self.name,
                status="unhealthy",
                configured=False,
                location=str(self.base_dir),
                error=str(e),
            )
