"""JPEG metadata parser: marker scan for SOFn dimensions and APP1 EXIF."""

from typing import Any

from aws_lambda_powertools import Logger

from core.extraction.byte_reader import ByteReader
from core.extraction.exif import read_exif
from core.models.image import ColorSpace, PartialMetadata

logger = Logger(UTC=True)

MARKER_PREFIX = 0xFF
MARKER_TEM = 0x01
MARKER_RST0 = 0xD0
MARKER_RST7 = 0xD7
MARKER_EOI = 0xD9
MARKER_SOS = 0xDA
MARKER_APP1 = 0xE1

SOF_FIRST = 0xC0
SOF_LAST = 0xCF
# DHT, JPG and DAC share the SOF range but carry no frame header
NON_FRAME_MARKERS = frozenset({0xC4, 0xC8, 0xCC})

EXIF_HEADER = b"Exif\x00\x00"
# marker(2) + length(2) + "Exif\0\0"(6)
EXIF_TIFF_OFFSET = 10

COMPONENT_COLOR_SPACES: dict[int, ColorSpace] = {
    1: ColorSpace.GRAYSCALE,
    3: ColorSpace.YCBCR,
    4: ColorSpace.CMYK,
}

DEFAULT_BIT_DEPTH = 8


def is_frame_marker(marker: int) -> bool:
    return SOF_FIRST <= marker <= SOF_LAST and marker not in NON_FRAME_MARKERS


def _is_standalone(marker: int) -> bool:
    return marker == MARKER_TEM or MARKER_RST0 <= marker <= MARKER_RST7


def _apply_exif(metadata: PartialMetadata, tags: dict[str, Any]) -> None:
    orientation = tags.get("Orientation")
    if isinstance(orientation, int) and 1 <= orientation <= 8:
        metadata.orientation = orientation

    if tags.get("DateTimeOriginal"):
        metadata.date_taken = tags["DateTimeOriginal"]

    x_resolution = tags.get("XResolution")
    y_resolution = tags.get("YResolution")
    if x_resolution and y_resolution:
        metadata.dpi_x = round(x_resolution)
        metadata.dpi_y = round(y_resolution)

    metadata.exif_data = tags


def parse_jpeg(reader: ByteReader, metadata: PartialMetadata) -> PartialMetadata:
    """Fill `metadata` from a JPEG buffer.

    Markers are scanned in order until the first SOFn frame header, the
    start of scan data or the end of the buffer. When no frame header is
    found the dimensions stay unset; that is a soft failure.
    """
    if not reader.startswith(b"\xff\xd8"):
        logger.debug("JPEG SOI marker missing")
        return metadata

    metadata.color_space = ColorSpace.YCBCR
    metadata.bit_depth = DEFAULT_BIT_DEPTH

    offset = 2
    while reader.has(offset, 2):
        if reader.u8(offset) != MARKER_PREFIX:
            logger.debug("Lost JPEG marker sync", extra={"offset": offset})
            break

        marker = reader.u8(offset + 1)

        if marker == MARKER_PREFIX:
            offset += 1
            continue

        if _is_standalone(marker):
            offset += 2
            continue

        if marker in (MARKER_EOI, MARKER_SOS):
            break

        size = reader.u16(offset + 2)
        if size < 2:
            logger.debug("Invalid JPEG segment length", extra={"offset": offset, "size": size})
            break

        if is_frame_marker(marker):
            precision = reader.u8(offset + 4)
            height = reader.u16(offset + 5)
            width = reader.u16(offset + 7)
            components = reader.u8(offset + 9)

            metadata.bit_depth = precision
            metadata.height = height
            metadata.width = width
            metadata.color_space = COMPONENT_COLOR_SPACES.get(components, ColorSpace.YCBCR)
            break

        if marker == MARKER_APP1 and reader.startswith(EXIF_HEADER, offset + 4):
            tiff_offset = offset + EXIF_TIFF_OFFSET
            tiff_length = min(size - 8, reader.size - tiff_offset)
            if tiff_length > 0:
                tags = read_exif(reader.slice(tiff_offset, tiff_length))
                if tags:
                    _apply_exif(metadata, tags)

        offset += 2 + size

    return metadata
