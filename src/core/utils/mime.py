from collections.abc import Mapping
from pathlib import PurePosixPath

from core.models.image import ImageFormat
from core.utils.constants import DEFAULT_EXTENSION, MIME_TYPE_EXTENSION_MAP

FORMAT_MIME_TYPES: Mapping[ImageFormat, str] = {
    ImageFormat.JPEG: "image/jpeg",
    ImageFormat.PNG: "image/png",
    ImageFormat.GIF: "image/gif",
    ImageFormat.WEBP: "image/webp",
    ImageFormat.AVIF: "image/avif",
}

MIME_TYPE_FORMATS: Mapping[str, ImageFormat] = {
    mime: image_format for image_format, mime in FORMAT_MIME_TYPES.items()
}


def mime_type_for(image_format: ImageFormat) -> str | None:
    return FORMAT_MIME_TYPES.get(image_format)


def format_from_mime(mime_type: str | None) -> ImageFormat:
    if not mime_type:
        return ImageFormat.UNKNOWN
    return MIME_TYPE_FORMATS.get(mime_type.strip().lower(), ImageFormat.UNKNOWN)


def extension_for(image_format: ImageFormat, filename: str = "") -> str:
    """Pick the stored file extension: from the format, else the original name."""
    mime_type = mime_type_for(image_format)
    if mime_type:
        return MIME_TYPE_EXTENSION_MAP[mime_type][0]

    suffix = PurePosixPath(filename).suffix.lower().lstrip(".")
    return suffix or DEFAULT_EXTENSION
