"""WebP metadata parser for the VP8, VP8L and VP8X variants."""

from aws_lambda_powertools import Logger

from core.extraction.byte_reader import ByteReader
from core.models.image import ColorSpace, PartialMetadata

logger = Logger(UTC=True)

RIFF_HEADER_SIZE = 12
CHUNK_TAG_OFFSET = 12
CHUNK_DATA_OFFSET = 20

VP8_START_CODE = b"\x9d\x01\x2a"
VP8_START_CODE_OFFSET = 23
VP8_WIDTH_OFFSET = 26
VP8_HEIGHT_OFFSET = 28
VP8_DIMENSION_MASK = 0x3FFF

VP8L_SIGNATURE = 0x2F
VP8L_BITS_OFFSET = 21

VP8X_FLAGS_OFFSET = 20
VP8X_WIDTH_OFFSET = 24
VP8X_HEIGHT_OFFSET = 27
VP8X_ALPHA_FLAG = 0x10
VP8X_ANIMATION_FLAG = 0x02

WEBP_BIT_DEPTH = 8


def count_animation_frames(reader: ByteReader) -> int:
    """Count ANMF chunks in the RIFF body; chunks are padded to even sizes."""
    frames = 0
    offset = RIFF_HEADER_SIZE

    while reader.has(offset, 8):
        tag = reader.ascii(offset, 4)
        size = reader.u32(offset + 4, little_endian=True)
        if tag == "ANMF":
            frames += 1
        offset += 8 + size + (size & 1)

    return frames


def parse_webp(reader: ByteReader, metadata: PartialMetadata) -> PartialMetadata:
    """Fill `metadata` from a WebP buffer."""
    if not (reader.startswith(b"RIFF") and reader.startswith(b"WEBP", 8)):
        logger.debug("WebP RIFF header mismatch")
        return metadata

    variant = reader.ascii(CHUNK_TAG_OFFSET, 4)

    if variant == "VP8 ":
        if not reader.startswith(VP8_START_CODE, VP8_START_CODE_OFFSET):
            logger.debug("VP8 start code missing")
            return metadata

        width = reader.u16(VP8_WIDTH_OFFSET, little_endian=True) & VP8_DIMENSION_MASK
        height = reader.u16(VP8_HEIGHT_OFFSET, little_endian=True) & VP8_DIMENSION_MASK

        metadata.width = width
        metadata.height = height
        metadata.color_space = ColorSpace.YUV

    elif variant == "VP8L":
        if reader.u8(CHUNK_DATA_OFFSET) != VP8L_SIGNATURE:
            logger.debug("VP8L signature byte missing")
            return metadata

        bits = reader.u32(VP8L_BITS_OFFSET, little_endian=True)

        metadata.width = (bits & 0x3FFF) + 1
        metadata.height = ((bits >> 14) & 0x3FFF) + 1
        metadata.has_alpha = bool((bits >> 28) & 1)
        metadata.color_space = ColorSpace.RGB

    elif variant == "VP8X":
        flags = reader.u8(VP8X_FLAGS_OFFSET)
        width = reader.u24(VP8X_WIDTH_OFFSET, little_endian=True) + 1
        height = reader.u24(VP8X_HEIGHT_OFFSET, little_endian=True) + 1

        metadata.width = width
        metadata.height = height
        metadata.has_alpha = bool(flags & VP8X_ALPHA_FLAG)
        metadata.color_space = ColorSpace.RGB

        if flags & VP8X_ANIMATION_FLAG:
            frame_count = max(count_animation_frames(reader), 1)
            metadata.frame_count = frame_count
            metadata.is_animated = frame_count > 1

    else:
        logger.debug("Unknown WebP chunk", extra={"chunk": variant})
        return metadata

    metadata.bit_depth = WEBP_BIT_DEPTH
    return metadata
