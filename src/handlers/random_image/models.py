"""Pydantic models for the random image response."""

from pydantic import BaseModel, Field


class ImageUrls(BaseModel):
    """Delivery URLs for one image: original plus resized variants."""

    original: str
    mobile: str
    tablet: str
    desktop: str
    thumbnail: str
    optimized: str


class RandomImageResponse(BaseModel):
    """Response model for a randomly selected image."""

    image_id: str = Field(..., description="Unique image ID")
    filename: str = Field(..., description="Stored object key")
    original_filename: str | None = Field(None, description="Uploaded file name")
    description: str | None = Field(None, description="Image description")
    mime_type: str | None = Field(None, description="Stored content type")
    file_size: int | None = Field(None, description="Image size in bytes")
    width: int = Field(0, description="Pixel width, 0 when undetermined")
    height: int = Field(0, description="Pixel height, 0 when undetermined")
    format: str | None = Field(None, description="Detected image format")
    aspect_ratio: float | None = Field(None, description="width / height")
    is_animated: bool = False
    created_at: str | None = Field(None, description="Creation timestamp")
    urls: ImageUrls
