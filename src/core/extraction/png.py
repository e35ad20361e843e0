"""PNG metadata parser (IHDR plus sRGB, pHYs and acTL chunks)."""

from aws_lambda_powertools import Logger

from core.extraction.byte_reader import ByteReader
from core.models.image import ColorSpace, PartialMetadata
from core.utils.constants import INCHES_PER_METER

logger = Logger(UTC=True)

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"

IHDR_TYPE_OFFSET = 12
IHDR_WIDTH_OFFSET = 16
IHDR_HEIGHT_OFFSET = 20
IHDR_BIT_DEPTH_OFFSET = 24
IHDR_COLOR_TYPE_OFFSET = 25
FIRST_CHUNK_AFTER_IHDR = 33

# length + type + CRC
CHUNK_OVERHEAD = 12
PHYS_UNIT_METER = 1

# color type -> (color space, has alpha)
COLOR_TYPES: dict[int, tuple[ColorSpace, bool]] = {
    0: (ColorSpace.GRAYSCALE, False),
    2: (ColorSpace.RGB, False),
    3: (ColorSpace.INDEXED, False),
    4: (ColorSpace.GRAYSCALE, True),
    6: (ColorSpace.RGB, True),
}


def _pixels_per_meter_to_dpi(value: int) -> int:
    return int(value * INCHES_PER_METER + 0.5)


def parse_png(reader: ByteReader, metadata: PartialMetadata) -> PartialMetadata:
    """Fill `metadata` from a PNG buffer.

    Dimensions come from the mandatory IHDR chunk at a fixed offset. The
    remaining chunks are walked generically by length; unknown chunk
    types are skipped without being interpreted.
    """
    if not reader.startswith(PNG_SIGNATURE):
        logger.debug("PNG signature mismatch")
        return metadata

    if reader.ascii(IHDR_TYPE_OFFSET, 4) != "IHDR":
        logger.debug("PNG first chunk is not IHDR")
        return metadata

    width = reader.u32(IHDR_WIDTH_OFFSET)
    height = reader.u32(IHDR_HEIGHT_OFFSET)
    bit_depth = reader.u8(IHDR_BIT_DEPTH_OFFSET)
    color_type = reader.u8(IHDR_COLOR_TYPE_OFFSET)

    metadata.width = width
    metadata.height = height
    metadata.bit_depth = bit_depth

    color_space, has_alpha = COLOR_TYPES.get(color_type, (ColorSpace.UNKNOWN, False))
    metadata.color_space = color_space
    metadata.has_alpha = has_alpha

    offset = FIRST_CHUNK_AFTER_IHDR
    while reader.has(offset, 8):
        length = reader.u32(offset)
        chunk_type = reader.ascii(offset + 4, 4)
        data_offset = offset + 8

        if chunk_type == "IEND":
            break

        if chunk_type == "sRGB":
            metadata.color_space = ColorSpace.SRGB

        elif chunk_type == "pHYs":
            ppu_x = reader.u32(data_offset)
            ppu_y = reader.u32(data_offset + 4)
            unit = reader.u8(data_offset + 8)

            if unit == PHYS_UNIT_METER:
                metadata.dpi_x = _pixels_per_meter_to_dpi(ppu_x)
                metadata.dpi_y = _pixels_per_meter_to_dpi(ppu_y)

        elif chunk_type == "acTL":
            frame_count = reader.u32(data_offset)
            metadata.frame_count = frame_count
            metadata.is_animated = frame_count > 1

        offset += CHUNK_OVERHEAD + length

    return metadata
