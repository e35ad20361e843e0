"""S3-backed implementation of ImageStorageRepository."""

from aws_lambda_powertools import Logger
from botocore.exceptions import ClientError

from core.infrastructure.adapters.s3_adapter import S3Adapter, S3AdapterProtocol
from core.models.errors import ImageUploadFailedError, S3Error
from core.repositories.storage_repository import ImageStorageRepository
from core.utils.constants import (
    ERROR_CODE_IMAGE_DELETE_FAILED,
    ERROR_CODE_IMAGE_DOWNLOAD_FAILED,
    IMAGE_CACHE_CONTROL,
)

logger = Logger(UTC=True)

_MISSING_OBJECT_CODES = frozenset({"NoSuchKey", "404", "NotFound"})


class S3ImageStorage(ImageStorageRepository):
    """Image storage implementation backed by Amazon S3."""

    def __init__(self, adapter: S3AdapterProtocol | None = None) -> None:
        """Create storage using the provided S3 adapter."""
        self._s3: S3AdapterProtocol = adapter or S3Adapter()

    def put_image(
        self,
        *,
        key: str,
        file_data: bytes,
        mime_type: str,
    ) -> str:
        """Upload image bytes to S3 and return the object key."""
        logger.debug(
            "Uploading image",
            extra={"key": key, "size": len(file_data), "mime_type": mime_type},
        )

        try:
            self._s3.put_object(
                key=key,
                body=file_data,
                content_type=mime_type,
                cache_control=IMAGE_CACHE_CONTROL,
                metadata={"content-length": str(len(file_data))},
            )
            logger.info("Image uploaded successfully", extra={"key": key})
            return key

        except ClientError as exc:
            logger.error("S3 upload failed", extra={"key": key})
            raise ImageUploadFailedError(
                message="Unable to upload image at this time",
                details={"key": key},
            ) from exc

        except Exception as exc:
            logger.exception("Unexpected error uploading image")
            raise ImageUploadFailedError(
                message="Unable to upload image at this time",
                details={"key": key},
            ) from exc

    def get_image(self, *, key: str) -> bytes | None:
        """Download image bytes from S3, or None if the object is missing."""
        logger.debug("Downloading image", extra={"key": key})

        try:
            response = self._s3.get_object(key=key)
            body: bytes = response["Body"].read()

            logger.info("Image downloaded successfully", extra={"key": key, "size": len(body)})
            return body

        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") in _MISSING_OBJECT_CODES:
                logger.warning("Image not found in storage", extra={"key": key})
                return None

            logger.error("S3 download failed", extra={"key": key})
            raise S3Error(
                message="Unable to download image at this time",
                error_code=ERROR_CODE_IMAGE_DOWNLOAD_FAILED,
                details={"key": key},
            ) from exc

        except Exception as exc:
            logger.exception("Unexpected error downloading image")
            raise S3Error(
                message="Unable to download image at this time",
                error_code=ERROR_CODE_IMAGE_DOWNLOAD_FAILED,
                details={"key": key},
            ) from exc

    def remove_image(self, *, key: str) -> None:
        """Delete an image object from S3."""
        logger.debug("Deleting image", extra={"key": key})

        try:
            self._s3.delete_object(key=key)
            logger.info("Image deleted successfully", extra={"key": key})

        except ClientError as exc:
            logger.error("S3 deletion failed", extra={"key": key})
            raise S3Error(
                message="Unable to delete image at this time",
                error_code=ERROR_CODE_IMAGE_DELETE_FAILED,
                details={"key": key},
            ) from exc

        except Exception as exc:
            logger.exception("Unexpected error deleting image")
            raise S3Error(
                message="Unable to delete image at this time",
                error_code=ERROR_CODE_IMAGE_DELETE_FAILED,
                details={"key": key},
            ) from exc
