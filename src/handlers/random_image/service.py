"""
Business logic for serving a random image.

Selection itself lives in RandomSelectionCache; this module turns the
selected record into a response with delivery URLs for the resizing edge.
"""

from typing import Any

from aws_lambda_powertools import Logger

from core.infrastructure.aws.dynamodb_cache import DynamoDBCache
from core.infrastructure.aws.dynamodb_metadata import DynamoDBMetadata
from core.models.errors import NotFoundError
from core.services.random_selection import RandomSelectionCache
from core.utils.constants import (
    ERROR_CODE_NO_IMAGES_AVAILABLE,
    IMAGE_RESIZE_BASE_PATH,
    IMAGE_VARIANTS,
)

from .models import ImageUrls, RandomImageResponse

Metadata = dict[str, Any]

logger = Logger(UTC=True)


def build_image_urls(filename: str) -> ImageUrls:
    """Return the original URL plus one resize URL per variant."""
    path = filename.lstrip("/")
    urls = {
        name: f"{IMAGE_RESIZE_BASE_PATH}/width={width},quality={quality},format=auto/{path}"
        for name, (width, quality) in IMAGE_VARIANTS.items()
    }
    return ImageUrls(original=f"/{path}", **urls)


class RandomImageService:
    """Application service that picks and describes a random active image."""

    def __init__(self, selection: RandomSelectionCache | None = None) -> None:
        self.selection = selection or RandomSelectionCache(
            metadata=DynamoDBMetadata(),
            cache=DynamoDBCache(),
        )

    def get_random_image(self) -> RandomImageResponse:
        """Select a random active image.

        Raises:
            NotFoundError: If no image is eligible
        """
        image = self.selection.select_random_image()

        if image is None:
            raise NotFoundError(
                message="No images available",
                error_code=ERROR_CODE_NO_IMAGES_AVAILABLE,
            )

        logger.info(
            "Random image selected",
            extra={"image_id": image.get("image_id"), "file_name": image.get("filename")},
        )

        aspect_ratio = image.get("aspect_ratio")

        return RandomImageResponse(
            image_id=image["image_id"],
            filename=image["filename"],
            original_filename=image.get("original_filename"),
            description=image.get("description"),
            mime_type=image.get("mime_type"),
            file_size=int(image["file_size"]) if image.get("file_size") is not None else None,
            width=int(image.get("width") or 0),
            height=int(image.get("height") or 0),
            format=image.get("format"),
            aspect_ratio=float(aspect_ratio) if aspect_ratio is not None else None,
            is_animated=bool(image.get("is_animated", False)),
            created_at=image.get("created_at"),
            urls=build_image_urls(image["filename"]),
        )
