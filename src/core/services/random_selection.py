"""Random image selection backed by a cached active count.

The cache holds three keys that are always refreshed together:

- `images-list`: JSON array of active filenames, newest first
- `active-count`: number of active images as a decimal string
- `last-sync`: ISO-8601 time of the last full refresh

A random pick draws an offset in `[0, count)` from the cached count and
fetches that single row from the authoritative store, so no request ever
sorts the table randomly. Cache misses fall back to the authoritative store
and schedule a background refresh; cache failures are never surfaced.
"""

from collections.abc import Callable
import json
import math
import random
import time
from typing import Any

from aws_lambda_powertools import Logger

from core.models.cache import CacheEntry, CacheSnapshot, CacheState
from core.models.errors import CacheError
from core.repositories.cache_repository import CacheClient
from core.repositories.metadata_repository import ImageMetadataRepository
from core.services.background import BackgroundDispatcher, get_default_dispatcher
from core.utils.constants import (
    CACHE_KEY_ACTIVE_COUNT,
    CACHE_KEY_IMAGES_LIST,
    CACHE_KEY_LAST_SYNC,
    CACHE_TTL_ACTIVE_COUNT,
    CACHE_TTL_IMAGES_LIST,
    CACHE_TTL_LAST_SYNC,
)
from core.utils.time import epoch_to_iso

Metadata = dict[str, Any]

logger = Logger(UTC=True)


class RandomSelectionCache:
    """Serves uniformly random active images with a cached row count."""

    def __init__(
        self,
        *,
        metadata: ImageMetadataRepository,
        cache: CacheClient,
        dispatcher: BackgroundDispatcher | None = None,
        rng: random.Random | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._metadata = metadata
        self._cache = cache
        self._dispatcher = dispatcher or get_default_dispatcher()
        self._rng = rng or random.SystemRandom()
        self._clock = clock

    def _read(self, key: str) -> CacheEntry | None:
        try:
            return self._cache.get(key=key)
        except CacheError:
            logger.warning("Cache read failed, treating as miss", extra={"cache_key": key})
            return None

    @staticmethod
    def _parse_count(entry: CacheEntry | None) -> int | None:
        if entry is None:
            return None
        try:
            count = int(entry.value)
        except ValueError:
            logger.warning("Unparsable cached count", extra={"value": entry.value})
            return None
        return count if count >= 0 else None

    def get_active_count(self) -> int:
        """Return the active image count, preferring the cache.

        - Cold: count from the authoritative store, cache it and schedule a
          full refresh
        - Stale: cached value, plus a scheduled refresh
        - Warm: cached value
        """
        entry = self._read(CACHE_KEY_ACTIVE_COUNT)
        cached = self._parse_count(entry)

        if entry is None or cached is None:
            logger.info("Active count cache miss")
            count = self._metadata.count_active()
            try:
                self._cache.put(
                    key=CACHE_KEY_ACTIVE_COUNT,
                    value=str(count),
                    ttl_seconds=CACHE_TTL_ACTIVE_COUNT,
                )
            except CacheError:
                logger.warning("Unable to cache active count", extra={"count": count})
            self.schedule_refresh()
            return count

        if entry.is_expired(self._clock()):
            logger.info("Active count cache stale", extra={"count": cached})
            self.schedule_refresh()

        return cached

    def select_random_image(self) -> Metadata | None:
        """Return a uniformly random active image, or None if there are none."""
        count = self.get_active_count()
        if count <= 0:
            logger.info("No active images available")
            return None

        offset = self._rng.randrange(count)
        image = self._metadata.fetch_active_at(offset=offset)
        if image is not None:
            return image

        # Cached count overshoots the real one (rows removed since last sync)
        logger.warning(
            "Cached count out of date, retrying with authoritative count",
            extra={"count": count, "offset": offset},
        )
        self.schedule_refresh()

        count = self._metadata.count_active()
        if count <= 0:
            return None

        return self._metadata.fetch_active_at(offset=self._rng.randrange(count))

    def select_random_filename(self) -> str | None:
        image = self.select_random_image()
        return image.get("filename") if image else None

    def refresh(self) -> CacheSnapshot:
        """Recompute the filename list and count and cache them together.

        Raises:
            DynamoDBError: If the authoritative store cannot be read
            CacheError: If the snapshot cannot be written
        """
        filenames = self._metadata.list_active_filenames()
        now = self._clock()
        expires_base = math.ceil(now)
        snapshot = CacheSnapshot(
            filename_list=filenames,
            active_count=len(filenames),
            last_synced_at=epoch_to_iso(now),
        )

        self._cache.put_many(
            entries=[
                CacheEntry(
                    key=CACHE_KEY_IMAGES_LIST,
                    value=json.dumps(snapshot.filename_list),
                    expires_at=expires_base + CACHE_TTL_IMAGES_LIST,
                ),
                CacheEntry(
                    key=CACHE_KEY_ACTIVE_COUNT,
                    value=str(snapshot.active_count),
                    expires_at=expires_base + CACHE_TTL_ACTIVE_COUNT,
                ),
                CacheEntry(
                    key=CACHE_KEY_LAST_SYNC,
                    value=str(snapshot.last_synced_at),
                    expires_at=expires_base + CACHE_TTL_LAST_SYNC,
                ),
            ]
        )

        logger.info(
            "Random selection cache refreshed",
            extra={"count": snapshot.active_count, "last_synced_at": snapshot.last_synced_at},
        )
        return snapshot

    def schedule_refresh(self) -> None:
        """Refresh in the background; failures are logged, never raised."""
        try:
            self._dispatcher.dispatch(self.refresh, task_name="cache-refresh")
        except RuntimeError:
            # Executor already shut down
            logger.warning("Unable to schedule cache refresh")

    def snapshot(self) -> CacheSnapshot | None:
        """Return the cached snapshot, or None when the cache is cold."""
        count = self._parse_count(self._read(CACHE_KEY_ACTIVE_COUNT))
        if count is None:
            return None

        filenames: list[str] = []
        list_entry = self._read(CACHE_KEY_IMAGES_LIST)
        if list_entry is not None:
            try:
                decoded = json.loads(list_entry.value)
            except ValueError:
                logger.warning("Unparsable cached filename list")
                decoded = []
            if isinstance(decoded, list):
                filenames = [str(name) for name in decoded]

        sync_entry = self._read(CACHE_KEY_LAST_SYNC)

        return CacheSnapshot(
            filename_list=filenames,
            active_count=count,
            last_synced_at=sync_entry.value if sync_entry else None,
        )

    def state(self) -> CacheState:
        entry = self._read(CACHE_KEY_ACTIVE_COUNT)
        if entry is None or self._parse_count(entry) is None:
            return CacheState.COLD
        if entry.is_expired(self._clock()):
            return CacheState.STALE
        return CacheState.WARM
