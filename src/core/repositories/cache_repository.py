"""Abstract contract for the shared key/value cache."""

from abc import ABC, abstractmethod
from collections.abc import Sequence

from core.models.cache import CacheEntry


class CacheClient(ABC):
    """Eventually-consistent key/value cache with per-key TTL.

    Entries past their TTL may still be returned (TTL deletion in the
    backing store is lazy); callers decide staleness with
    `CacheEntry.is_expired`. A missing key means the cache is cold.
    """

    @abstractmethod
    def get(self, *, key: str) -> CacheEntry | None:
        """Return the entry for `key`, or None when absent.

        Raises:
            CacheError: If the cache cannot be read
        """

    @abstractmethod
    def put(self, *, key: str, value: str, ttl_seconds: int) -> CacheEntry:
        """Store `value` under `key` for `ttl_seconds`.

        Raises:
            CacheError: If the cache cannot be written
        """

    @abstractmethod
    def put_many(self, *, entries: Sequence[CacheEntry]) -> None:
        """Store several entries so that all or none of them land.

        Raises:
            CacheError: If the cache cannot be written
        """
