"""Pydantic models for image upload request/response."""

import base64
from pathlib import Path

from aws_lambda_powertools import Logger
from pydantic import BaseModel, ConfigDict, Field, field_validator

from core.utils.constants import (
    ALLOWED_EXTENSIONS,
    ALLOWED_MIME_TYPES,
    MAX_FILE_SIZE,
    get_max_file_size_mb,
)

logger = Logger(UTC=True)


class ImageUploadRequest(BaseModel):
    """Validation model for image upload request."""

    model_config = ConfigDict(str_strip_whitespace=True)

    file: str = Field(..., description="Base64 encoded image file")
    image_name: str = Field(
        ..., min_length=1, max_length=255, description="Original image filename"
    )
    mime_type: str | None = Field(
        None, description="Declared MIME type, used when the content is not recognised"
    )
    description: str | None = Field(
        None, max_length=1000, description="Image description"
    )

    @field_validator("image_name")
    @classmethod
    def validate_image_name(cls, value: str) -> str:
        suffix = Path(value.strip()).suffix.lower().lstrip(".")

        if not suffix:
            raise ValueError("Image name must have an extension")

        if suffix not in ALLOWED_EXTENSIONS:
            raise ValueError(
                f"Invalid image extension '{suffix}'. "
                f"Allowed extensions: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
            )

        return value

    @field_validator("mime_type")
    @classmethod
    def validate_mime_type(cls, value: str | None) -> str | None:
        if value is None:
            return None

        mime_type = value.strip().lower()
        if mime_type not in ALLOWED_MIME_TYPES:
            raise ValueError(
                f"Unsupported MIME '{mime_type}'. "
                f"Allowed: {', '.join(sorted(ALLOWED_MIME_TYPES))}"
            )

        return mime_type

    @field_validator("file")
    @classmethod
    def validate_file(cls, value: str) -> str:
        """
        Validate base64 file:
        - must not be empty
        - must decode correctly
        - must have non-zero size
        - must not exceed MAX_FILE_SIZE
        """
        if not value or not value.strip():
            raise ValueError("file must not be empty")

        try:
            file_data = base64.b64decode(value, validate=True)
        except Exception as e:
            logger.error(f"File validation error: Invalid base64 - {e}")
            raise ValueError("Invalid base64 encoded file") from e

        if not file_data:
            logger.error("File validation error: Decoded file is empty")
            raise ValueError("Decoded file is empty")

        if len(file_data) > MAX_FILE_SIZE:
            logger.error("File size validation error: File size exceeds limit")
            raise ValueError(f"File size exceeds {get_max_file_size_mb()}MB limit")

        return value


class ImageUploadResponse(BaseModel):
    """Response model for successful image upload."""

    image_id: str = Field(..., description="Unique image ID")
    filename: str = Field(..., description="Stored object key")
    original_filename: str = Field(..., description="Uploaded file name")
    description: str | None = Field(None, description="Image description")
    file_size: int = Field(..., description="Image size in bytes")
    mime_type: str = Field(..., description="Stored content type")
    width: int = Field(..., description="Pixel width, 0 when undetermined")
    height: int = Field(..., description="Pixel height, 0 when undetermined")
    format: str = Field(..., description="Detected image format")
    created_at: str = Field(..., description="Creation timestamp")
    message: str = Field(..., description="Success message")
