"""Business logic for image upload operations.

This module coordinates deduplication, metadata extraction, storage and
persistence for image uploads while translating failures into
domain-specific errors.
"""

import base64
from pathlib import PurePosixPath
import uuid
from typing import Any

from aws_lambda_powertools import Logger

from core.extraction.extractor import extract_metadata
from core.infrastructure.aws.dynamodb_cache import DynamoDBCache
from core.infrastructure.aws.dynamodb_metadata import DynamoDBMetadata
from core.infrastructure.aws.s3_image_storage import S3ImageStorage
from core.models.errors import (
    DuplicateImageError,
    MetadataOperationFailedError,
    ValidationError,
)
from core.models.image import ImageRecord
from core.repositories.metadata_repository import ImageMetadataRepository
from core.repositories.storage_repository import ImageStorageRepository
from core.services.random_selection import RandomSelectionCache
from core.utils.constants import (
    ALLOWED_MIME_TYPES,
    ERROR_CODE_METADATA_CREATE_FAILED,
    ERROR_CODE_UNSUPPORTED_MIME_TYPE,
    MIME_TYPE_EXTENSION_MAP,
    STATUS_ACTIVE,
)
from core.utils.hashing import compute_digest, storage_key_for
from core.utils.mime import extension_for
from core.utils.time import utc_now_iso

Metadata = dict[str, Any]

logger = Logger(UTC=True)


class UploadService:
    """Application service responsible for image uploads.

    This service orchestrates:
    - Content digest and duplicate detection
    - Technical metadata extraction
    - Uploading image content to storage
    - Persisting the image record
    - Refreshing the random selection cache
    """

    def __init__(
        self,
        *,
        storage: ImageStorageRepository | None = None,
        metadata: ImageMetadataRepository | None = None,
        selection: RandomSelectionCache | None = None,
    ) -> None:
        """Initialize the upload service with required infrastructure dependencies."""
        self.storage = storage or S3ImageStorage()
        self.metadata = metadata or DynamoDBMetadata()
        self.selection = selection or RandomSelectionCache(
            metadata=self.metadata,
            cache=DynamoDBCache(),
        )

    @staticmethod
    def decode_file(encoded: str) -> bytes:
        """Decode base64-encoded image data.

        Raises:
            ValidationError: If decoding fails
        """
        try:
            return base64.b64decode(encoded)
        except Exception as exc:
            logger.exception("Failed to decode base64 image data")
            raise ValidationError(
                message="Invalid image data",
                details={"encoding": "base64"},
            ) from exc

    @staticmethod
    def generate_image_id() -> str:
        """Generate a unique image identifier."""
        return f"img_{uuid.uuid4().hex}"

    @staticmethod
    def resolve_mime_type(
        detected: str | None,
        declared: str | None,
        image_name: str,
    ) -> str:
        """Pick the stored content type: sniffed, else declared, else by extension.

        Raises:
            ValidationError: If no allowed MIME type can be determined
        """
        suffix = PurePosixPath(image_name).suffix.lower().lstrip(".")
        by_extension = next(
            (mime for mime, extensions in MIME_TYPE_EXTENSION_MAP.items() if suffix in extensions),
            None,
        )

        for candidate in (detected, declared, by_extension):
            if candidate in ALLOWED_MIME_TYPES:
                return str(candidate)

        raise ValidationError(
            message="Unsupported image type",
            error_code=ERROR_CODE_UNSUPPORTED_MIME_TYPE,
            details={"mime_type": declared or detected},
        )

    def upload_image(
        self,
        *,
        image_name: str,
        file_data: bytes,
        mime_type: str | None = None,
        description: str | None = None,
    ) -> Metadata:
        """Upload an image and persist its record.

        The upload flow is:
        1. Compute the content digest and reject duplicates
        2. Extract technical metadata (never fails on malformed bytes)
        3. Upload image to object storage under its content address
        4. Persist the image record
        5. Roll back storage if persistence fails
        6. Schedule a random selection cache refresh

        Two concurrent uploads of the same bytes can both pass step 1; the
        object key is derived from the digest so storage stays consistent
        and only the record is duplicated.

        Returns:
            Persisted image record merged with its metadata

        Raises:
            ValidationError: If the file type is not supported
            DuplicateImageError: If the same content already exists
            ImageUploadFailedError: If storage upload fails
            MetadataOperationFailedError: If persistence fails
        """
        # Step 1: Detect duplicate image by content digest
        file_hash = compute_digest(file_data)
        logger.debug("Starting image upload", extra={"file_hash": file_hash})

        existing = self.metadata.find_by_digest(file_hash=file_hash)
        if existing is not None:
            logger.warning(
                "Duplicate image detected",
                extra={"file_hash": file_hash, "existing_id": existing.get("image_id")},
            )
            raise DuplicateImageError(
                message="This image already exists",
                details={
                    "existing_id": existing.get("image_id"),
                    "existing_filename": existing.get("filename"),
                    "file_hash": file_hash,
                },
            )

        # Step 2: Extract metadata and decide on the stored type
        image_metadata = extract_metadata(file_data, mime_type, image_name)
        content_type = self.resolve_mime_type(image_metadata.mime_type, mime_type, image_name)
        key = storage_key_for(file_hash, extension_for(image_metadata.format, image_name))

        # Step 3: Upload image to storage
        self.storage.put_image(key=key, file_data=file_data, mime_type=content_type)

        # Step 4: Persist the record (rollback storage on failure)
        record = ImageRecord(
            image_id=self.generate_image_id(),
            filename=key,
            original_filename=image_name,
            description=description,
            file_hash=file_hash,
            file_size=len(file_data),
            mime_type=content_type,
            status=STATUS_ACTIVE,
            created_at=utc_now_iso(),
        )
        item = record.to_item(image_metadata)

        try:
            self.metadata.create_metadata(metadata=item)
        except Exception as exc:
            logger.exception("Failed to persist image metadata")

            # Best-effort cleanup to avoid orphaned storage objects
            try:
                self.storage.remove_image(key=key)
            except Exception:
                logger.warning(
                    "Failed to clean up uploaded image after metadata failure",
                    extra={"key": key},
                )

            raise MetadataOperationFailedError(
                message="Unable to save image metadata",
                error_code=ERROR_CODE_METADATA_CREATE_FAILED,
                details={"image_id": record.image_id},
            ) from exc

        # Step 5: The eligible set changed
        try:
            self.selection.schedule_refresh()
        except Exception:
            logger.warning("Unable to schedule cache refresh", extra={"image_id": record.image_id})

        logger.info(
            "Image uploaded successfully",
            extra={
                "image_id": record.image_id,
                "key": key,
                "format": image_metadata.format.value,
                "width": image_metadata.width,
                "height": image_metadata.height,
            },
        )
        return item
