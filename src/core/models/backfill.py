"""Result models for the metadata backfill job."""

from pydantic import BaseModel, Field, StrictInt, StrictStr


class BackfillItemError(BaseModel):
    """A per-image failure recorded without aborting the batch."""

    image_id: StrictStr
    filename: StrictStr | None = None
    error: StrictStr
    format: StrictStr | None = None


class BackfillSummary(BaseModel):
    """Counters and per-item errors of one backfill run."""

    total: StrictInt = 0
    processed: StrictInt = 0
    updated: StrictInt = 0
    failed: StrictInt = 0
    skipped: StrictInt = 0
    dry_run: bool = False
    errors: list[BackfillItemError] = Field(default_factory=list)
    started_at: StrictStr
    finished_at: StrictStr | None = None
    duration_ms: StrictInt | None = None
