"""Minimal EXIF (TIFF IFD) reader for JPEG APP1 segments.

Only the tags the gallery stores are decoded: orientation, capture date,
resolution, make and model. Everything else in the directory is skipped.
"""

from typing import Any

from aws_lambda_powertools import Logger

from core.extraction.byte_reader import ByteReader
from core.models.errors import BoundsError
from core.utils.constants import EXIF_MAX_STRING_LENGTH

logger = Logger(UTC=True)

LITTLE_ENDIAN_MARK = b"II"
BIG_ENDIAN_MARK = b"MM"
TIFF_MAGIC = 0x002A

IFD_ENTRY_SIZE = 12
INLINE_VALUE_SIZE = 4

TAG_MAKE = 0x010F
TAG_MODEL = 0x0110
TAG_ORIENTATION = 0x0112
TAG_X_RESOLUTION = 0x011A
TAG_Y_RESOLUTION = 0x011B
TAG_EXIF_IFD_POINTER = 0x8769
TAG_DATE_TIME_ORIGINAL = 0x9003

TAG_NAMES: dict[int, str] = {
    TAG_MAKE: "Make",
    TAG_MODEL: "Model",
    TAG_ORIENTATION: "Orientation",
    TAG_X_RESOLUTION: "XResolution",
    TAG_Y_RESOLUTION: "YResolution",
    TAG_DATE_TIME_ORIGINAL: "DateTimeOriginal",
}


class _TiffBlob:
    """TIFF blob with the byte order taken from its own header."""

    def __init__(self, reader: ByteReader, little_endian: bool) -> None:
        self.reader = reader
        self.little_endian = little_endian

    def u16(self, offset: int) -> int:
        return self.reader.u16(offset, little_endian=self.little_endian)

    def u32(self, offset: int) -> int:
        return self.reader.u32(offset, little_endian=self.little_endian)

    def string(self, entry_offset: int, count: int) -> str:
        value_offset = entry_offset + 8
        if count > INLINE_VALUE_SIZE:
            value_offset = self.u32(value_offset)

        available = max(0, self.reader.size - value_offset)
        raw = self.reader.bytes_at(value_offset, min(count, EXIF_MAX_STRING_LENGTH, available))
        return raw.split(b"\x00", 1)[0].decode("latin-1").strip()

    def rational(self, entry_offset: int) -> float:
        position = self.u32(entry_offset + 8)
        numerator = self.u32(position)
        denominator = self.u32(position + 4)
        return numerator / denominator if denominator else 0


def _read_ifd(blob: _TiffBlob, ifd_offset: int, tags: dict[str, Any]) -> int | None:
    """Decode known tags of one IFD into `tags`.

    Returns the Exif sub-IFD offset when the directory points to one.
    """
    entry_count = blob.u16(ifd_offset)
    exif_ifd_offset: int | None = None

    for index in range(entry_count):
        entry = ifd_offset + 2 + index * IFD_ENTRY_SIZE
        tag = blob.u16(entry)
        count = blob.u32(entry + 4)

        if tag == TAG_ORIENTATION:
            tags["Orientation"] = blob.u16(entry + 8)
        elif tag in (TAG_MAKE, TAG_MODEL, TAG_DATE_TIME_ORIGINAL):
            tags[TAG_NAMES[tag]] = blob.string(entry, count)
        elif tag in (TAG_X_RESOLUTION, TAG_Y_RESOLUTION):
            tags[TAG_NAMES[tag]] = blob.rational(entry)
        elif tag == TAG_EXIF_IFD_POINTER:
            exif_ifd_offset = blob.u32(entry + 8)

    return exif_ifd_offset


def read_exif(reader: ByteReader) -> dict[str, Any]:
    """Decode the TIFF blob that follows an `Exif\\0\\0` header.

    All offsets inside the blob are relative to its first byte. A
    malformed or truncated blob yields whatever tags were decoded before
    the problem; it never raises.
    """
    tags: dict[str, Any] = {}

    try:
        byte_order = reader.bytes_at(0, 2)
        if byte_order == LITTLE_ENDIAN_MARK:
            blob = _TiffBlob(reader, little_endian=True)
        elif byte_order == BIG_ENDIAN_MARK:
            blob = _TiffBlob(reader, little_endian=False)
        else:
            logger.debug("Unknown EXIF byte order", extra={"byte_order": byte_order.hex()})
            return tags

        if blob.u16(2) != TIFF_MAGIC:
            logger.debug("EXIF TIFF magic mismatch")
            return tags

        exif_ifd_offset = _read_ifd(blob, blob.u32(4), tags)
        if exif_ifd_offset:
            _read_ifd(blob, exif_ifd_offset, tags)

    except BoundsError as exc:
        logger.warning(
            "Truncated EXIF segment",
            extra={"error": exc.message, "decoded_tags": sorted(tags)},
        )

    return tags
