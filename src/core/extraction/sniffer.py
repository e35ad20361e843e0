"""Format detection from leading magic bytes."""

from collections.abc import Mapping

from core.extraction.byte_reader import ByteReader
from core.models.image import ImageFormat
from core.utils.constants import SNIFF_LENGTH

PNG_MAGIC = b"\x89PNG"
JPEG_MAGIC = b"\xff\xd8"
GIF_MAGIC = b"GIF8"
RIFF_MAGIC = b"RIFF"
WEBP_MAGIC = b"WEBP"

# prefix -> format, checked in order
MAGIC_BYTES: Mapping[bytes, ImageFormat] = {
    PNG_MAGIC: ImageFormat.PNG,
    JPEG_MAGIC: ImageFormat.JPEG,
    GIF_MAGIC: ImageFormat.GIF,
}


def sniff_format(reader: ByteReader) -> ImageFormat:
    """Return the container format of the buffer, or UNKNOWN.

    Only the first 16 bytes are inspected. UNKNOWN is a normal outcome,
    not an error.
    """
    head = ByteReader(reader.bytes_at(0, min(reader.size, SNIFF_LENGTH)))

    for signature, image_format in MAGIC_BYTES.items():
        if head.startswith(signature):
            return image_format

    if head.startswith(RIFF_MAGIC) and head.startswith(WEBP_MAGIC, 8):
        return ImageFormat.WEBP

    return ImageFormat.UNKNOWN
