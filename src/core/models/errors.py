"""Custom exception classes for the image service."""

from typing import Any

from core.utils.constants import (
    ERROR_CODE_BYTE_READ_OUT_OF_BOUNDS,
    ERROR_CODE_CACHE,
    ERROR_CODE_DYNAMODB,
    ERROR_CODE_IMAGE_DUPLICATE_IMAGE,
    ERROR_CODE_IMAGE_UPLOAD_FAILED,
    ERROR_CODE_METADATA_OPERATION_FAILED,
    ERROR_CODE_RESOURCE_NOT_FOUND,
    ERROR_CODE_S3,
    ERROR_CODE_VALIDATION_FAILED,
)


class ImageServiceError(Exception):
    """
    Base exception for all image service errors.

    All custom errors must inherit from this class.
    Callers must explicitly provide a message and error code.
    Optional contextual information can be supplied via `details`.
    """

    message: str
    error_code: str
    details: dict[str, Any]

    def __init__(
        self,
        *,
        message: str,
        error_code: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.error_code = error_code
        self.details = details or {}

        super().__init__(self.message)


class ValidationError(ImageServiceError):
    """Raised when request validation fails."""

    def __init__(
        self,
        *,
        message: str,
        error_code: str = ERROR_CODE_VALIDATION_FAILED,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
        )


class NotFoundError(ImageServiceError):
    """Raised when a requested resource is not found."""

    def __init__(
        self,
        *,
        message: str,
        error_code: str = ERROR_CODE_RESOURCE_NOT_FOUND,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
        )


class DuplicateImageError(ImageServiceError):
    """Raised when uploaded content already exists.

    `details` identifies the record that already holds the content
    (`existing_id`, `existing_filename`, `file_hash`).
    """

    def __init__(
        self,
        *,
        message: str,
        error_code: str = ERROR_CODE_IMAGE_DUPLICATE_IMAGE,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
        )

    @property
    def existing_id(self) -> str | None:
        return self.details.get("existing_id")

    @property
    def existing_filename(self) -> str | None:
        return self.details.get("existing_filename")


class MetadataOperationFailedError(ImageServiceError):
    """Raised when an image metadata operation fails."""

    def __init__(
        self,
        *,
        message: str,
        error_code: str = ERROR_CODE_METADATA_OPERATION_FAILED,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
        )


class S3Error(ImageServiceError):
    """Raised when an image storage operation fails."""

    def __init__(
        self,
        *,
        message: str,
        error_code: str = ERROR_CODE_S3,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
        )


class ImageUploadFailedError(S3Error):
    """Raised when writing image bytes to storage fails."""

    def __init__(
        self,
        *,
        message: str,
        error_code: str = ERROR_CODE_IMAGE_UPLOAD_FAILED,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
        )


class DynamoDBError(MetadataOperationFailedError):
    """Raised when a DynamoDB operation fails."""

    def __init__(
        self,
        *,
        message: str,
        error_code: str = ERROR_CODE_DYNAMODB,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
        )


class CacheError(ImageServiceError):
    """Raised when the key/value cache cannot be read or written."""

    def __init__(
        self,
        *,
        message: str,
        error_code: str = ERROR_CODE_CACHE,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
        )


class BoundsError(ImageServiceError):
    """Raised when a binary read would run past the end of a buffer.

    Parsers never let this escape metadata extraction; it marks a
    truncated or malformed file.
    """

    def __init__(
        self,
        *,
        message: str,
        error_code: str = ERROR_CODE_BYTE_READ_OUT_OF_BOUNDS,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
        )
