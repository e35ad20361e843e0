"""DynamoDB-backed implementation of CacheClient.

Each entry is one item: `cache_key` (partition key), `value` and
`expires_at`. `expires_at` doubles as the table's TTL attribute; DynamoDB
deletes expired items lazily, so reads may still see them.
"""

from collections.abc import Callable, Sequence
import math
import time
from typing import Any

from aws_lambda_powertools import Logger
from botocore.exceptions import ClientError

from core.infrastructure.adapters.dynamodb_adapter import DynamoDBAdapter, DynamoDBAdapterProtocol
from core.models.cache import CacheEntry
from core.models.errors import CacheError
from core.repositories.cache_repository import CacheClient
from core.utils.constants import (
    ENV_IMAGE_CACHE_TABLE_NAME,
    ERROR_CODE_CACHE_READ_FAILED,
    ERROR_CODE_CACHE_WRITE_FAILED,
)

logger = Logger(UTC=True)


class DynamoDBCache(CacheClient):
    """Key/value cache stored in a DynamoDB table with TTL."""

    def __init__(
        self,
        adapter: DynamoDBAdapterProtocol | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._db: DynamoDBAdapterProtocol = adapter or DynamoDBAdapter(
            table_env=ENV_IMAGE_CACHE_TABLE_NAME
        )
        self._clock = clock

    @staticmethod
    def _to_item(entry: CacheEntry) -> dict[str, Any]:
        return {
            "cache_key": entry.key,
            "value": entry.value,
            "expires_at": entry.expires_at,
        }

    def get(self, *, key: str) -> CacheEntry | None:
        try:
            item = self._db.get_item(key={"cache_key": key}).get("Item")

        except ClientError as exc:
            logger.error("Cache read failed", extra={"cache_key": key})
            raise CacheError(
                message="Unable to read cache",
                error_code=ERROR_CODE_CACHE_READ_FAILED,
                details={"cache_key": key},
            ) from exc

        except Exception as exc:
            logger.exception("Unexpected error reading cache")
            raise CacheError(
                message="Unable to read cache",
                error_code=ERROR_CODE_CACHE_READ_FAILED,
                details={"cache_key": key},
            ) from exc

        if not item:
            logger.debug("Cache miss", extra={"cache_key": key})
            return None

        # Numbers come back from the resource API as Decimal
        return CacheEntry(
            key=key,
            value=str(item.get("value", "")),
            expires_at=int(item.get("expires_at", 0)),
        )

    def put(self, *, key: str, value: str, ttl_seconds: int) -> CacheEntry:
        entry = CacheEntry(
            key=key,
            value=value,
            expires_at=math.ceil(self._clock()) + ttl_seconds,
        )

        try:
            self._db.put_item(item=self._to_item(entry))
            logger.debug("Cache entry written", extra={"cache_key": key, "ttl": ttl_seconds})
            return entry

        except ClientError as exc:
            logger.error("Cache write failed", extra={"cache_key": key})
            raise CacheError(
                message="Unable to write cache",
                error_code=ERROR_CODE_CACHE_WRITE_FAILED,
                details={"cache_key": key},
            ) from exc

        except Exception as exc:
            logger.exception("Unexpected error writing cache")
            raise CacheError(
                message="Unable to write cache",
                error_code=ERROR_CODE_CACHE_WRITE_FAILED,
                details={"cache_key": key},
            ) from exc

    def put_many(self, *, entries: Sequence[CacheEntry]) -> None:
        if not entries:
            return

        keys = [entry.key for entry in entries]

        try:
            self._db.transact_put_items(items=[self._to_item(entry) for entry in entries])
            logger.debug("Cache entries written", extra={"cache_keys": keys})

        except ClientError as exc:
            logger.error("Cache transaction failed", extra={"cache_keys": keys})
            raise CacheError(
                message="Unable to write cache",
                error_code=ERROR_CODE_CACHE_WRITE_FAILED,
                details={"cache_keys": keys},
            ) from exc

        except Exception as exc:
            logger.exception("Unexpected error writing cache")
            raise CacheError(
                message="Unable to write cache",
                error_code=ERROR_CODE_CACHE_WRITE_FAILED,
                details={"cache_keys": keys},
            ) from exc
