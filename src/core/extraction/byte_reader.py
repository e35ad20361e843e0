"""Bounds-checked, offset-based reads over an immutable byte buffer.

Every multi-byte read validates the remaining length before touching the
data, so a truncated or hostile file surfaces as a `BoundsError` instead
of an index error deep inside a parser.
"""

from typing import Literal

from core.models.errors import BoundsError

ByteOrder = Literal["big", "little"]


class ByteReader:
    """Read integers, strings and sub-buffers at explicit offsets."""

    def __init__(self, data: bytes | bytearray | memoryview) -> None:
        self._data = bytes(data)

    @property
    def size(self) -> int:
        return len(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def has(self, offset: int, length: int) -> bool:
        """Return True if `length` bytes can be read at `offset`."""
        return offset >= 0 and length >= 0 and offset + length <= len(self._data)

    def _require(self, offset: int, length: int) -> None:
        if not self.has(offset, length):
            raise BoundsError(
                message=(
                    f"Read of {length} bytes at offset {offset} "
                    f"exceeds buffer of {len(self._data)} bytes"
                ),
                details={"offset": offset, "length": length, "size": len(self._data)},
            )

    def bytes_at(self, offset: int, length: int) -> bytes:
        self._require(offset, length)
        return self._data[offset : offset + length]

    def ascii(self, offset: int, length: int) -> str:
        """Decode `length` bytes as single-byte characters."""
        return self.bytes_at(offset, length).decode("latin-1")

    def uint(self, offset: int, length: int, *, little_endian: bool = False) -> int:
        order: ByteOrder = "little" if little_endian else "big"
        return int.from_bytes(self.bytes_at(offset, length), order)

    def u8(self, offset: int) -> int:
        self._require(offset, 1)
        return self._data[offset]

    def u16(self, offset: int, *, little_endian: bool = False) -> int:
        return self.uint(offset, 2, little_endian=little_endian)

    def u24(self, offset: int, *, little_endian: bool = False) -> int:
        return self.uint(offset, 3, little_endian=little_endian)

    def u32(self, offset: int, *, little_endian: bool = False) -> int:
        return self.uint(offset, 4, little_endian=little_endian)

    def slice(self, offset: int, length: int) -> "ByteReader":
        """Return a reader whose offset 0 is `offset` in this buffer."""
        return ByteReader(self.bytes_at(offset, length))

    def startswith(self, prefix: bytes, offset: int = 0) -> bool:
        """Compare bytes at `offset` without raising on short buffers."""
        if not self.has(offset, len(prefix)):
            return False
        return self._data[offset : offset + len(prefix)] == prefix
