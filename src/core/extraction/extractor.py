"""Entry point for image metadata extraction.

Sniffs the container format from the bytes, runs the matching parser and
sanitizes the result. Malformed and unsupported uploads are an expected
input class, so this never raises: the worst case is a zeroed record.
"""

from collections.abc import Callable, Mapping

from aws_lambda_powertools import Logger

from core.extraction.byte_reader import ByteReader
from core.extraction.gif import parse_gif
from core.extraction.jpeg import parse_jpeg
from core.extraction.png import parse_png
from core.extraction.sanitizer import sanitize_metadata
from core.extraction.sniffer import sniff_format
from core.extraction.webp import parse_webp
from core.models.errors import BoundsError
from core.models.image import ImageFormat, ImageMetadata, PartialMetadata
from core.utils.mime import format_from_mime, mime_type_for

logger = Logger(UTC=True)

Parser = Callable[[ByteReader, PartialMetadata], PartialMetadata]

PARSERS: Mapping[ImageFormat, Parser] = {
    ImageFormat.PNG: parse_png,
    ImageFormat.JPEG: parse_jpeg,
    ImageFormat.GIF: parse_gif,
    ImageFormat.WEBP: parse_webp,
}


def extract_metadata(
    data: bytes,
    declared_mime_type: str | None = None,
    filename: str = "",
) -> ImageMetadata:
    """Extract technical metadata from raw image bytes.

    Args:
        data: Full image content
        declared_mime_type: MIME type claimed by the uploader, used only
            when the bytes match no known signature
        filename: Original file name, for logging

    Returns:
        Sanitized metadata; width and height are 0 when they could not be
        determined
    """
    reader = ByteReader(data)
    detected = sniff_format(reader)
    declared = format_from_mime(declared_mime_type)

    if detected is ImageFormat.UNKNOWN:
        image_format = declared
    else:
        image_format = detected
        if declared not in (ImageFormat.UNKNOWN, detected):
            logger.warning(
                "Declared MIME type does not match content",
                extra={
                    "file_name": filename,
                    "declared_mime_type": declared_mime_type,
                    "detected_format": detected.value,
                },
            )

    partial = PartialMetadata(
        format=image_format,
        mime_type=mime_type_for(image_format) or declared_mime_type,
    )

    parser = PARSERS.get(detected)
    if parser is None:
        logger.info(
            "No parser for image format",
            extra={"file_name": filename, "format": image_format.value},
        )
        return sanitize_metadata(partial)

    try:
        parser(reader, partial)
    except BoundsError as exc:
        logger.warning(
            "Truncated or malformed image",
            extra={"file_name": filename, "format": detected.value, **exc.details},
        )
    except Exception:
        logger.exception(
            "Metadata extraction error",
            extra={"file_name": filename, "format": detected.value},
        )

    metadata = sanitize_metadata(partial)

    if not metadata.has_dimensions:
        logger.warning(
            "Dimension extraction failed",
            extra={"file_name": filename, "format": metadata.format.value},
        )

    return metadata
