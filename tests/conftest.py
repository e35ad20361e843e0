"""
Pytest configuration and fixtures for image gallery tests.
Provides AWS mocking, DynamoDB and S3 fixtures, in-memory fakes for the
cache and background dispatcher, and builders for small binary images.
"""

import os
import struct
import zlib
from collections.abc import Callable, Sequence
from concurrent.futures import Future
from typing import Any

os.environ.setdefault("AWS_REGION", "us-east-1")
os.environ.setdefault("AWS_DEFAULT_REGION", "us-east-1")
os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")
os.environ.setdefault("IMAGE_S3_BUCKET_NAME", "test-image-bucket")
os.environ.setdefault("IMAGE_METADATA_TABLE_NAME", "test-image-metadata")
os.environ.setdefault("IMAGE_CACHE_TABLE_NAME", "test-image-cache")
os.environ.setdefault("POWERTOOLS_TRACE_DISABLED", "1")
os.environ.setdefault("POWERTOOLS_METRICS_NAMESPACE", "ImageGalleryTests")
os.environ.setdefault("POWERTOOLS_SERVICE_NAME", "image-gallery")

import boto3  # noqa: E402
import pytest  # noqa: E402
from moto import mock_aws  # noqa: E402

from core.models.cache import CacheEntry  # noqa: E402
from core.models.errors import CacheError  # noqa: E402
from core.repositories.cache_repository import CacheClient  # noqa: E402


# ============================================================================
# AWS (moto)
# ============================================================================


@pytest.fixture(scope="function")
def aws_mock():
    with mock_aws():
        yield


@pytest.fixture(scope="function")
def dynamodb_resource(aws_mock):
    return boto3.resource("dynamodb", region_name=os.getenv("AWS_REGION"))


@pytest.fixture(scope="function")
def dynamodb_table(dynamodb_resource):
    """Image metadata table with the status and file hash indexes."""
    table = dynamodb_resource.create_table(
        TableName=os.getenv("IMAGE_METADATA_TABLE_NAME"),
        BillingMode="PAY_PER_REQUEST",
        KeySchema=[{"AttributeName": "image_id", "KeyType": "HASH"}],
        AttributeDefinitions=[
            {"AttributeName": "image_id", "AttributeType": "S"},
            {"AttributeName": "status", "AttributeType": "S"},
            {"AttributeName": "created_at", "AttributeType": "S"},
            {"AttributeName": "file_hash", "AttributeType": "S"},
        ],
        GlobalSecondaryIndexes=[
            {
                "IndexName": "status-created-index",
                "KeySchema": [
                    {"AttributeName": "status", "KeyType": "HASH"},
                    {"AttributeName": "created_at", "KeyType": "RANGE"},
                ],
                "Projection": {"ProjectionType": "ALL"},
            },
            {
                "IndexName": "file-hash-index",
                "KeySchema": [{"AttributeName": "file_hash", "KeyType": "HASH"}],
                "Projection": {"ProjectionType": "ALL"},
            },
        ],
    )
    table.wait_until_exists()
    return table


@pytest.fixture(scope="function")
def cache_table(dynamodb_resource):
    """Key/value cache table keyed by cache_key."""
    table = dynamodb_resource.create_table(
        TableName=os.getenv("IMAGE_CACHE_TABLE_NAME"),
        BillingMode="PAY_PER_REQUEST",
        KeySchema=[{"AttributeName": "cache_key", "KeyType": "HASH"}],
        AttributeDefinitions=[{"AttributeName": "cache_key", "AttributeType": "S"}],
    )
    table.wait_until_exists()
    return table


@pytest.fixture
def dynamodb_put_multiple_items(
    dynamodb_table,
) -> Callable[[list[dict[str, Any]]], list[dict[str, Any]]]:
    """
    Helper to insert multiple items into DynamoDB efficiently.

    Usage:
        items = dynamodb_put_multiple_items([item1, item2, item3])
    """

    def _put(items: list[dict[str, Any]]) -> list[dict[str, Any]]:
        with dynamodb_table.batch_writer() as batch:
            for item in items:
                batch.put_item(Item=item)
        return items

    return _put


@pytest.fixture
def dynamodb_get_item(dynamodb_table) -> Callable[[str], dict[str, Any] | None]:
    def _get(image_id: str) -> dict[str, Any] | None:
        response: dict[str, Any] = dynamodb_table.get_item(Key={"image_id": image_id})
        return response.get("Item")

    return _get


@pytest.fixture(scope="function")
def s3_client(aws_mock):
    return boto3.client("s3", region_name=os.getenv("AWS_REGION"))


@pytest.fixture(scope="function")
def s3_bucket(s3_client):
    s3_client.create_bucket(Bucket=os.getenv("IMAGE_S3_BUCKET_NAME"))
    return s3_client


@pytest.fixture
def s3_put_object(s3_bucket) -> Callable[..., Any]:
    def _put(key: str, body: bytes, content_type: str = "application/octet-stream"):
        return s3_bucket.put_object(
            Bucket=os.getenv("IMAGE_S3_BUCKET_NAME"),
            Key=key,
            Body=body,
            ContentType=content_type,
        )

    return _put


@pytest.fixture
def s3_get_object(s3_bucket) -> Callable[[str], dict[str, Any]]:
    def _get(key: str) -> dict[str, Any]:
        return s3_bucket.get_object(Bucket=os.getenv("IMAGE_S3_BUCKET_NAME"), Key=key)

    return _get


# ============================================================================
# Image records
# ============================================================================


def make_image_item(index: int, **overrides: Any) -> dict[str, Any]:
    item: dict[str, Any] = {
        "image_id": f"img_{index}",
        "filename": f"images/{index:016x}.png",
        "original_filename": f"photo_{index}.png",
        "description": None,
        "file_hash": f"{index:064x}",
        "file_size": 100 + index,
        "mime_type": "image/png",
        "status": "active",
        "created_at": f"2024-01-{index:02d}T10:00:00+00:00",
        "updated_at": None,
        "width": 10,
        "height": 10,
        "format": "PNG",
    }
    item.update(overrides)
    return item


@pytest.fixture
def image_item_factory() -> Callable[..., dict[str, Any]]:
    """Build an image record; `index` decides id, hash, filename and date."""
    return make_image_item


@pytest.fixture
def active_images(dynamodb_put_multiple_items) -> list[dict[str, Any]]:
    """Five active images plus one hidden and one deleted."""
    items = [make_image_item(i) for i in range(1, 6)]
    items.append(make_image_item(6, status="hidden"))
    items.append(make_image_item(7, status="deleted"))
    return dynamodb_put_multiple_items(items)


# ============================================================================
# Fakes
# ============================================================================


class FakeClock:
    """Settable epoch clock."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class InMemoryCache(CacheClient):
    """Deterministic cache client; expired entries stay readable."""

    def __init__(self, clock: Callable[[], float]) -> None:
        self.entries: dict[str, CacheEntry] = {}
        self.clock = clock
        self.fail_reads = False
        self.fail_writes = False
        self.put_many_calls = 0

    def get(self, *, key: str) -> CacheEntry | None:
        if self.fail_reads:
            raise CacheError(message="cache down")
        return self.entries.get(key)

    def put(self, *, key: str, value: str, ttl_seconds: int) -> CacheEntry:
        if self.fail_writes:
            raise CacheError(message="cache down")
        entry = CacheEntry(key=key, value=value, expires_at=int(self.clock()) + ttl_seconds)
        self.entries[key] = entry
        return entry

    def put_many(self, *, entries: Sequence[CacheEntry]) -> None:
        if self.fail_writes:
            raise CacheError(message="cache down")
        self.put_many_calls += 1
        for entry in entries:
            self.entries[entry.key] = entry


class InlineDispatcher:
    """Runs dispatched work immediately; failures land on the future."""

    def __init__(self) -> None:
        self.task_names: list[str] = []

    def dispatch(self, func: Callable[[], Any], *, task_name: str) -> Future:
        self.task_names.append(task_name)
        future: Future = Future()
        try:
            future.set_result(func())
        except Exception as exc:
            future.set_exception(exc)
        return future


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_cache(fake_clock) -> InMemoryCache:
    return InMemoryCache(fake_clock)


@pytest.fixture
def inline_dispatcher() -> InlineDispatcher:
    return InlineDispatcher()


# ============================================================================
# Binary image builders
# ============================================================================


PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


def _png_chunk(chunk_type: bytes, data: bytes) -> bytes:
    crc = zlib.crc32(chunk_type + data) & 0xFFFFFFFF
    return struct.pack(">I", len(data)) + chunk_type + data + struct.pack(">I", crc)


def build_png(
    width: int = 4,
    height: int = 3,
    *,
    bit_depth: int = 8,
    color_type: int = 2,
    srgb: bool = False,
    phys: tuple[int, int, int] | None = None,
    frames: int | None = None,
    extra_chunks: Sequence[tuple[bytes, bytes]] = (),
) -> bytes:
    """PNG with IHDR, optional sRGB/pHYs/acTL chunks, a tiny IDAT and IEND.

    `phys` is (pixels_per_unit_x, pixels_per_unit_y, unit).
    """
    ihdr = struct.pack(">IIBBBBB", width, height, bit_depth, color_type, 0, 0, 0)
    body = PNG_SIGNATURE + _png_chunk(b"IHDR", ihdr)

    if srgb:
        body += _png_chunk(b"sRGB", b"\x00")
    if phys is not None:
        body += _png_chunk(b"pHYs", struct.pack(">IIB", *phys))
    if frames is not None:
        body += _png_chunk(b"acTL", struct.pack(">II", frames, 0))
    for chunk_type, data in extra_chunks:
        body += _png_chunk(chunk_type, data)

    body += _png_chunk(b"IDAT", zlib.compress(b"\x00" * 8))
    body += _png_chunk(b"IEND", b"")
    return body


def build_exif(
    *,
    little_endian: bool = True,
    orientation: int | None = None,
    make: str | None = None,
    model: str | None = None,
    resolution: tuple[int, int] | None = None,
    date_taken: str | None = None,
) -> bytes:
    """TIFF blob (the part after `Exif\\0\\0`) with IFD0 and an Exif sub-IFD.

    `resolution` is (numerator, denominator) used for both axes.
    DateTimeOriginal goes into the Exif sub-IFD like real cameras write it.
    """
    e = "<" if little_endian else ">"

    ifd0: list[tuple[int, int, int, bytes]] = []
    if make is not None:
        raw = make.encode("latin-1") + b"\x00"
        ifd0.append((0x010F, 2, len(raw), raw))
    if model is not None:
        raw = model.encode("latin-1") + b"\x00"
        ifd0.append((0x0110, 2, len(raw), raw))
    if orientation is not None:
        ifd0.append((0x0112, 3, 1, struct.pack(e + "H", orientation)))
    if resolution is not None:
        rational = struct.pack(e + "II", *resolution)
        ifd0.append((0x011A, 5, 1, rational))
        ifd0.append((0x011B, 5, 1, rational))

    exif_ifd: list[tuple[int, int, int, bytes]] = []
    if date_taken is not None:
        raw = date_taken.encode("latin-1") + b"\x00"
        exif_ifd.append((0x9003, 2, len(raw), raw))

    ifd0_count = len(ifd0) + (1 if exif_ifd else 0)
    ifd0_size = 2 + 12 * ifd0_count + 4
    exif_offset = 8 + ifd0_size
    exif_size = 2 + 12 * len(exif_ifd) + 4 if exif_ifd else 0
    data_offset = exif_offset + exif_size

    data = b""

    def encode(entries: list[tuple[int, int, int, bytes]]) -> bytes:
        nonlocal data
        out = struct.pack(e + "H", len(entries))
        for tag, type_id, count, payload in entries:
            if len(payload) <= 4:
                value = payload.ljust(4, b"\x00")
            else:
                value = struct.pack(e + "I", data_offset + len(data))
                data += payload + (b"\x00" if len(payload) % 2 else b"")
            out += struct.pack(e + "HHI", tag, type_id, count) + value
        return out + struct.pack(e + "I", 0)

    if exif_ifd:
        ifd0.append((0x8769, 4, 1, struct.pack(e + "I", exif_offset)))

    header = (b"II" if little_endian else b"MM") + struct.pack(e + "HI", 0x2A, 8)
    ifd0_bytes = encode(ifd0)
    exif_bytes = encode(exif_ifd) if exif_ifd else b""
    return header + ifd0_bytes + exif_bytes + data


def build_jpeg(
    width: int = 8,
    height: int = 6,
    *,
    components: int = 3,
    precision: int = 8,
    exif: bytes | None = None,
    sof_marker: int = 0xC0,
) -> bytes:
    """Baseline JPEG skeleton: SOI, JFIF APP0, optional EXIF APP1, DQT, SOFn, SOS, EOI."""
    app0_payload = b"JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00"
    body = b"\xff\xd8"
    body += b"\xff\xe0" + struct.pack(">H", len(app0_payload) + 2) + app0_payload

    if exif is not None:
        payload = b"Exif\x00\x00" + exif
        body += b"\xff\xe1" + struct.pack(">H", len(payload) + 2) + payload

    dqt_payload = b"\x00" + bytes(range(64))
    body += b"\xff\xdb" + struct.pack(">H", len(dqt_payload) + 2) + dqt_payload

    sof_payload = struct.pack(">BHHB", precision, height, width, components)
    sof_payload += b"".join(bytes([i + 1, 0x11, 0]) for i in range(components))
    body += bytes([0xFF, sof_marker]) + struct.pack(">H", len(sof_payload) + 2) + sof_payload

    sos_payload = bytes([1, 1, 0, 0, 0x3F, 0])
    body += b"\xff\xda" + struct.pack(">H", len(sos_payload) + 2) + sos_payload
    body += b"\x12\x34\x56\x78"
    body += b"\xff\xd9"
    return body


def build_gif(
    width: int = 5,
    height: int = 4,
    *,
    frames: int = 1,
    color_bits: int = 2,
    local_color_table: bool = False,
) -> bytes:
    """GIF89a with a global color table, optional NETSCAPE loop and `frames` images."""
    packed = 0x80 | ((color_bits - 1) << 4) | (color_bits - 1)
    table = b"\x00" * (3 * (1 << color_bits))
    body = b"GIF89a" + struct.pack("<HHBBB", width, height, packed, 0, 0) + table

    if frames > 1:
        body += b"\x21\xff\x0bNETSCAPE2.0\x03\x01\x00\x00\x00"

    for _ in range(frames):
        # graphic control extension
        body += b"\x21\xf9\x04\x00\x0a\x00\x00\x00"
        descriptor_packed = 0x80 | (color_bits - 1) if local_color_table else 0
        body += b"\x2c" + struct.pack("<HHHHB", 0, 0, width, height, descriptor_packed)
        if local_color_table:
            body += table
        body += b"\x02\x02\x4c\x01\x00"

    return body + b"\x3b"


def _riff(chunks: bytes) -> bytes:
    return b"RIFF" + struct.pack("<I", len(chunks) + 4) + b"WEBP" + chunks


def build_webp_vp8(width: int = 7, height: int = 9) -> bytes:
    frame = b"\x30\x01\x00" + b"\x9d\x01\x2a" + struct.pack("<HH", width, height) + b"\x00" * 8
    return _riff(b"VP8 " + struct.pack("<I", len(frame)) + frame)


def build_webp_vp8l(width: int = 7, height: int = 9, *, alpha: bool = False) -> bytes:
    bits = (width - 1) | ((height - 1) << 14) | (int(alpha) << 28)
    data = b"\x2f" + struct.pack("<I", bits) + b"\x00"
    return _riff(b"VP8L" + struct.pack("<I", len(data)) + data)


def build_webp_vp8x(
    width: int = 300,
    height: int = 200,
    *,
    alpha: bool = False,
    frames: int = 0,
) -> bytes:
    flags = (0x10 if alpha else 0) | (0x02 if frames else 0)
    vp8x = bytes([flags, 0, 0, 0]) + (width - 1).to_bytes(3, "little") + (height - 1).to_bytes(3, "little")
    chunks = b"VP8X" + struct.pack("<I", len(vp8x)) + vp8x

    if frames:
        anim = b"\x00\x00\x00\x00\x00\x00"
        chunks += b"ANIM" + struct.pack("<I", len(anim)) + anim
        # odd payload size exercises the RIFF padding byte
        frame = b"\x00" * 17
        for _ in range(frames):
            chunks += b"ANMF" + struct.pack("<I", len(frame)) + frame + b"\x00"

    return _riff(chunks)


@pytest.fixture
def png_factory() -> Callable[..., bytes]:
    return build_png


@pytest.fixture
def jpeg_factory() -> Callable[..., bytes]:
    return build_jpeg


@pytest.fixture
def exif_factory() -> Callable[..., bytes]:
    return build_exif


@pytest.fixture
def gif_factory() -> Callable[..., bytes]:
    return build_gif


@pytest.fixture
def webp_factory() -> dict[str, Callable[..., bytes]]:
    return {
        "vp8": build_webp_vp8,
        "vp8l": build_webp_vp8l,
        "vp8x": build_webp_vp8x,
    }


@pytest.fixture
def sample_png() -> bytes:
    return build_png(4, 3)
