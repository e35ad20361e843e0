"""
Business logic for re-extracting metadata of stored images.

Images uploaded before extraction existed (or whose extraction failed) are
re-read from storage and their technical metadata columns rewritten. One
bad image never aborts the batch.
"""

from datetime import datetime
from typing import Any

from aws_lambda_powertools import Logger

from core.extraction.extractor import extract_metadata
from core.infrastructure.aws.dynamodb_metadata import DynamoDBMetadata
from core.infrastructure.aws.s3_image_storage import S3ImageStorage
from core.models.backfill import BackfillItemError, BackfillSummary
from core.repositories.metadata_repository import ImageMetadataRepository
from core.repositories.storage_repository import ImageStorageRepository
from core.utils.time import utc_now_iso

Metadata = dict[str, Any]

logger = Logger(UTC=True)

NOT_IN_STORAGE = "Not found in storage"
DIMENSION_EXTRACTION_FAILED = "Dimension extraction failed"


class BackfillService:
    """Re-extracts and stores metadata for existing images."""

    def __init__(
        self,
        *,
        storage: ImageStorageRepository | None = None,
        metadata: ImageMetadataRepository | None = None,
    ) -> None:
        self.storage = storage or S3ImageStorage()
        self.metadata = metadata or DynamoDBMetadata()

    def backfill(
        self,
        *,
        dry_run: bool = False,
        limit: int = 0,
        force_all: bool = False,
    ) -> BackfillSummary:
        """Run one backfill pass.

        Args:
            dry_run: Extract and count, but write nothing
            limit: Maximum number of images, 0 for no limit
            force_all: Re-extract images that already have dimensions

        Raises:
            DynamoDBError: If the candidate list cannot be read
        """
        logger.info(
            "Starting metadata backfill",
            extra={"dry_run": dry_run, "limit": limit, "force_all": force_all},
        )

        images = self.metadata.list_images_missing_dimensions(limit=limit, force_all=force_all)
        summary = BackfillSummary(total=len(images), dry_run=dry_run, started_at=utc_now_iso())

        for image in images:
            image_id = str(image.get("image_id"))
            filename = image.get("filename")

            try:
                self._process(image, summary, dry_run=dry_run)
            except Exception as exc:
                logger.exception(
                    "Error processing image",
                    extra={"image_id": image_id, "file_name": filename},
                )
                summary.failed += 1
                summary.errors.append(
                    BackfillItemError(image_id=image_id, filename=filename, error=str(exc))
                )

        summary.finished_at = utc_now_iso()
        started = datetime.fromisoformat(summary.started_at)
        finished = datetime.fromisoformat(summary.finished_at)
        summary.duration_ms = int((finished - started).total_seconds() * 1000)

        logger.info(
            "Metadata backfill complete",
            extra={
                "total": summary.total,
                "processed": summary.processed,
                "updated": summary.updated,
                "failed": summary.failed,
                "skipped": summary.skipped,
                "duration_ms": summary.duration_ms,
            },
        )
        return summary

    def _process(self, image: Metadata, summary: BackfillSummary, *, dry_run: bool) -> None:
        image_id = str(image.get("image_id"))
        filename = str(image.get("filename") or "")

        data = self.storage.get_image(key=filename) if filename else None
        if data is None:
            logger.warning(
                "Image not found in storage",
                extra={"image_id": image_id, "file_name": filename},
            )
            summary.skipped += 1
            summary.errors.append(
                BackfillItemError(image_id=image_id, filename=filename, error=NOT_IN_STORAGE)
            )
            return

        extracted = extract_metadata(data, image.get("mime_type"), filename)

        if not extracted.has_dimensions:
            summary.failed += 1
            summary.errors.append(
                BackfillItemError(
                    image_id=image_id,
                    filename=filename,
                    error=DIMENSION_EXTRACTION_FAILED,
                    format=extracted.format.value,
                )
            )
            return

        logger.debug(
            "Metadata extracted",
            extra={
                "image_id": image_id,
                "width": extracted.width,
                "height": extracted.height,
                "format": extracted.format.value,
            },
        )

        if not dry_run:
            self.metadata.update_image_metadata(image_id=image_id, metadata=extracted)
            summary.updated += 1

        summary.processed += 1
