"""Cache entry and snapshot models for the random selection cache."""

from enum import Enum

from pydantic import BaseModel, Field, StrictInt, StrictStr


class CacheState(str, Enum):
    """Effective state of the random selection cache."""

    COLD = "cold"
    WARM = "warm"
    STALE = "stale"


class CacheEntry(BaseModel):
    """A single cached value with its absolute expiry (epoch seconds)."""

    key: StrictStr
    value: StrictStr
    expires_at: StrictInt = Field(..., description="Epoch seconds after which the value is stale")

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class CacheSnapshot(BaseModel):
    """Filename list, active count and last sync time, written together."""

    filename_list: list[StrictStr] = Field(default_factory=list)
    active_count: StrictInt = 0
    last_synced_at: StrictStr | None = None
