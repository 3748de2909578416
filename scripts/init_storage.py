"""Ensure the draft and completed collections exist on the configured backend."""

import asyncio
import sys

from backend.studio.config import get_settings
from backend.studio.errors import BackendUnavailableError
from backend.studio.storage.hybrid import HybridStorageService


async def initialize() -> int:
    """Create missing partitions with the empty shape and report their sizes."""
    storage = HybridStorageService.from_settings(get_settings())
    print(f"Initializing {storage.current_storage_mode()} storage")

    try:
        summaries = await storage.initialize_storage()
    except BackendUnavailableError as e:
        print(f"Storage initialization failed: {e}", file=sys.stderr)
        return 1

    for partition, summary in summaries.items():
        key = storage.collection_keys[partition]
        print(
            f"{partition.value} ({key}): {summary.documents} documents, "
            f"{summary.sessions} sessions"
        )
    return 0


def main() -> None:
    sys.exit(asyncio.run(initialize()))


if __name__ == "__main__":
    main()
