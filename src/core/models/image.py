"""Image models: extracted technical metadata and the persisted image record."""

import json
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import (
    BaseModel,
    Field,
    StrictInt,
    StrictStr,
    computed_field,
    model_validator,
)


class ImageFormat(str, Enum):
    """Container formats known to the gallery."""

    PNG = "PNG"
    JPEG = "JPEG"
    GIF = "GIF"
    WEBP = "WebP"
    AVIF = "AVIF"
    UNKNOWN = "Unknown"


class ColorSpace(str, Enum):
    """Color models reported by the format parsers."""

    GRAYSCALE = "Grayscale"
    RGB = "RGB"
    SRGB = "sRGB"
    YCBCR = "YCbCr"
    CMYK = "CMYK"
    INDEXED = "Indexed"
    YUV = "YUV"
    UNKNOWN = "Unknown"


class PartialMetadata(BaseModel):
    """Best-effort parser output.

    Every field is optional; parsers fill in whatever they manage to read
    before the data runs out. Use `sanitize_metadata` to turn this into a
    complete `ImageMetadata`.
    """

    format: ImageFormat | None = None
    mime_type: str | None = None
    width: int | None = None
    height: int | None = None
    color_space: ColorSpace | None = None
    bit_depth: int | None = None
    has_alpha: bool | None = None
    is_animated: bool | None = None
    frame_count: int | None = None
    orientation: int | None = None
    date_taken: str | None = None
    dpi_x: int | None = None
    dpi_y: int | None = None
    exif_data: dict[str, Any] | None = None


class ImageMetadata(BaseModel):
    """Complete, storage-safe technical metadata for an image."""

    width: int = Field(0, ge=0, description="Pixel width, 0 when undetermined")
    height: int = Field(0, ge=0, description="Pixel height, 0 when undetermined")
    format: ImageFormat = ImageFormat.UNKNOWN
    mime_type: str | None = None
    color_space: ColorSpace = ColorSpace.UNKNOWN
    bit_depth: int = Field(0, ge=0, description="Bits per channel")
    has_alpha: bool = False
    is_animated: bool = False
    frame_count: int = Field(1, ge=1)
    orientation: int = Field(1, ge=1, le=8, description="EXIF orientation")
    date_taken: str | None = None
    dpi_x: int | None = None
    dpi_y: int | None = None
    exif_data: dict[str, Any] | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def aspect_ratio(self) -> float | None:
        if self.height == 0:
            return None
        return self.width / self.height

    @model_validator(mode="after")
    def _check_animation(self) -> "ImageMetadata":
        if self.is_animated != (self.frame_count > 1):
            raise ValueError("is_animated must be true exactly when frame_count > 1")
        return self

    @property
    def has_dimensions(self) -> bool:
        return self.width > 0 and self.height > 0

    def to_item(self) -> dict[str, Any]:
        """Return the DynamoDB-safe representation of the metadata.

        DynamoDB rejects Python floats, so the aspect ratio is stored as a
        Decimal; the EXIF map is stored as a JSON string.
        """
        aspect_ratio = self.aspect_ratio

        return {
            "width": self.width,
            "height": self.height,
            "format": self.format.value,
            "color_space": self.color_space.value,
            "bit_depth": self.bit_depth,
            "has_alpha": self.has_alpha,
            "is_animated": self.is_animated,
            "frame_count": self.frame_count,
            "orientation": self.orientation,
            "aspect_ratio": (
                Decimal(str(round(aspect_ratio, 6))) if aspect_ratio is not None else None
            ),
            "date_taken": self.date_taken,
            "dpi_x": self.dpi_x,
            "dpi_y": self.dpi_y,
            "exif_data": json.dumps(self.exif_data or {}, sort_keys=True),
        }


class ImageRecord(BaseModel):
    """Image row persisted in the authoritative store."""

    image_id: StrictStr = Field(..., description="Unique image identifier")
    filename: StrictStr = Field(..., description="Storage key, images/<hash-prefix>.<ext>")
    original_filename: StrictStr = Field(..., description="Uploaded file name")
    description: StrictStr | None = Field(None, description="Optional image description")

    file_hash: StrictStr = Field(..., description="Full SHA-256 content digest")
    file_size: StrictInt = Field(..., description="Image size in bytes")
    mime_type: StrictStr = Field(..., description="MIME type of the stored object")
    status: StrictStr = Field(..., description="active, hidden or deleted")

    created_at: StrictStr = Field(..., description="ISO-8601 creation timestamp (UTC)")
    updated_at: StrictStr | None = Field(None, description="ISO-8601 last update timestamp (UTC)")

    def to_item(self, metadata: ImageMetadata) -> dict[str, Any]:
        """Merge the record with its technical metadata into one item."""
        return {**self.model_dump(), **metadata.to_item()}
