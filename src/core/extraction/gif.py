"""GIF metadata parser with frame counting over the block stream."""

from aws_lambda_powertools import Logger

from core.extraction.byte_reader import ByteReader
from core.models.errors import BoundsError
from core.models.image import ColorSpace, PartialMetadata

logger = Logger(UTC=True)

GIF_SIGNATURE = b"GIF8"
HEADER_SIZE = 13
WIDTH_OFFSET = 6
HEIGHT_OFFSET = 8
PACKED_OFFSET = 10

IMAGE_DESCRIPTOR = 0x2C
EXTENSION = 0x21
TRAILER = 0x3B

# introducer(1) + left(2) + top(2) + width(2) + height(2) + packed(1)
IMAGE_DESCRIPTOR_SIZE = 10
COLOR_TABLE_FLAG = 0x80


def _color_table_size(packed: int) -> int:
    if not packed & COLOR_TABLE_FLAG:
        return 0
    return 3 * (2 << (packed & 0x07))


def _skip_sub_blocks(reader: ByteReader, offset: int) -> int:
    """Return the offset just past a zero-terminated sub-block chain."""
    while True:
        block_size = reader.u8(offset)
        offset += 1
        if block_size == 0:
            return offset
        offset += block_size


def count_frames(reader: ByteReader, offset: int) -> int:
    """Count image descriptors in the block stream starting at `offset`.

    The walk stops at the trailer or when a read would leave the buffer;
    frames counted up to that point are kept.
    """
    frame_count = 0

    try:
        while reader.has(offset, 1):
            block = reader.u8(offset)

            if block == IMAGE_DESCRIPTOR:
                frame_count += 1
                packed = reader.u8(offset + IMAGE_DESCRIPTOR_SIZE - 1)
                offset += IMAGE_DESCRIPTOR_SIZE + _color_table_size(packed)
                # LZW minimum code size
                offset += 1
                offset = _skip_sub_blocks(reader, offset)

            elif block == EXTENSION:
                # introducer + label
                offset = _skip_sub_blocks(reader, offset + 2)

            elif block == TRAILER:
                break

            else:
                offset += 1

    except BoundsError:
        logger.debug(
            "GIF block stream ended early",
            extra={"offset": offset, "frames": frame_count},
        )

    return frame_count


def parse_gif(reader: ByteReader, metadata: PartialMetadata) -> PartialMetadata:
    """Fill `metadata` from a GIF buffer."""
    if not reader.startswith(GIF_SIGNATURE):
        logger.debug("GIF signature mismatch")
        return metadata

    width = reader.u16(WIDTH_OFFSET, little_endian=True)
    height = reader.u16(HEIGHT_OFFSET, little_endian=True)
    packed = reader.u8(PACKED_OFFSET)

    metadata.width = width
    metadata.height = height
    metadata.bit_depth = (packed & 0x07) + 1
    metadata.color_space = ColorSpace.INDEXED

    frame_count = max(count_frames(reader, HEADER_SIZE + _color_table_size(packed)), 1)
    metadata.frame_count = frame_count
    metadata.is_animated = frame_count > 1

    return metadata
