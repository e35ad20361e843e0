"""
Business logic for synchronising the random selection cache.
"""

from typing import Any

from aws_lambda_powertools import Logger

from core.infrastructure.aws.dynamodb_cache import DynamoDBCache
from core.infrastructure.aws.dynamodb_metadata import DynamoDBMetadata
from core.services.random_selection import RandomSelectionCache

logger = Logger(UTC=True)


class SyncService:
    """Runs and reports on full cache refreshes."""

    def __init__(self, selection: RandomSelectionCache | None = None) -> None:
        self.selection = selection or RandomSelectionCache(
            metadata=DynamoDBMetadata(),
            cache=DynamoDBCache(),
        )

    def sync(self) -> dict[str, Any]:
        """Refresh the cache synchronously and return the outcome."""
        snapshot = self.selection.refresh()
        return {
            "success": True,
            "count": snapshot.active_count,
            "timestamp": snapshot.last_synced_at,
        }

    def status(self) -> dict[str, Any]:
        """Describe the cached snapshot without the filename list."""
        state = self.selection.state()
        snapshot = self.selection.snapshot()

        return {
            "state": state.value,
            "count": snapshot.active_count if snapshot else None,
            "last_synced_at": snapshot.last_synced_at if snapshot else None,
            "cached_filenames": len(snapshot.filename_list) if snapshot else 0,
        }
