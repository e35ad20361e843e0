"""Coalesce best-effort parser output into a complete metadata record."""

from core.models.image import ColorSpace, ImageFormat, ImageMetadata, PartialMetadata
from core.utils.constants import DEFAULT_ORIENTATION


def _non_negative(value: int | None) -> int:
    if value is None or value < 0:
        return 0
    return value


def _positive_or_none(value: int | None) -> int | None:
    if value is None or value <= 0:
        return None
    return value


def sanitize_metadata(partial: PartialMetadata) -> ImageMetadata:
    """Return a fully populated `ImageMetadata` for any parser output.

    Missing dimensions become 0, the frame count is at least 1 and decides
    `is_animated`, out-of-range orientations fall back to 1.
    """
    frame_count = max(partial.frame_count or 1, 1)

    orientation = partial.orientation
    if orientation is None or not 1 <= orientation <= 8:
        orientation = DEFAULT_ORIENTATION

    return ImageMetadata(
        width=_non_negative(partial.width),
        height=_non_negative(partial.height),
        format=partial.format or ImageFormat.UNKNOWN,
        mime_type=partial.mime_type,
        color_space=partial.color_space or ColorSpace.UNKNOWN,
        bit_depth=_non_negative(partial.bit_depth),
        has_alpha=bool(partial.has_alpha),
        is_animated=frame_count > 1,
        frame_count=frame_count,
        orientation=orientation,
        date_taken=partial.date_taken or None,
        dpi_x=_positive_or_none(partial.dpi_x),
        dpi_y=_positive_or_none(partial.dpi_y),
        exif_data=partial.exif_data or None,
    )
