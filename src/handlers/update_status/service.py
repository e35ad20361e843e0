"""
Business logic for changing an image's visibility status.
"""

from typing import Any

from aws_lambda_powertools import Logger

from core.infrastructure.aws.dynamodb_cache import DynamoDBCache
from core.infrastructure.aws.dynamodb_metadata import DynamoDBMetadata
from core.repositories.metadata_repository import ImageMetadataRepository
from core.services.random_selection import RandomSelectionCache

Metadata = dict[str, Any]

logger = Logger(UTC=True)


class StatusService:
    """Updates image status and keeps the random selection cache in step."""

    def __init__(
        self,
        *,
        metadata: ImageMetadataRepository | None = None,
        selection: RandomSelectionCache | None = None,
    ) -> None:
        self.metadata = metadata or DynamoDBMetadata()
        self.selection = selection or RandomSelectionCache(
            metadata=self.metadata,
            cache=DynamoDBCache(),
        )

    def update_status(self, *, image_id: str, status: str) -> Metadata:
        """Change the status and schedule a cache refresh.

        Raises:
            NotFoundError: If the image does not exist
            DynamoDBError: If the update fails
        """
        image = self.metadata.update_status(image_id=image_id, status=status)

        try:
            self.selection.schedule_refresh()
        except Exception:
            logger.warning("Unable to schedule cache refresh", extra={"image_id": image_id})

        return image
