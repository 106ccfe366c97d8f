# npz_arrays/_internal/byteio.py

"""
Little-endian byte cursor and byte writer used to build and parse the
fixed-layout structures of the array and zip formats.

Every multi-byte integer in both formats is little-endian; these helpers are
the only place where that is spelled out.
"""

import struct

from ..exceptions import NpzFormatError

_U8 = struct.Struct("<B")
_U16 = struct.Struct("<H")
_U32 = struct.Struct("<I")
_U64 = struct.Struct("<Q")


class ByteWriter:
    """Accumulates little-endian fields into a growing bytearray."""

    def __init__(self) -> None:
        self._buf = bytearray()

    def write_u8(self, value: int) -> "ByteWriter":
        self._buf += _U8.pack(value)
        return self

    def write_u16(self, value: int) -> "ByteWriter":
        """Writes an unsigned 16-bit integer, little-endian."""
        self._buf += _U16.pack(value)
        return self

    def write_u32(self, value: int) -> "ByteWriter":
        """Writes an unsigned 32-bit integer, little-endian."""
        self._buf += _U32.pack(value)
        return self

    def write_ascii(self, text: str) -> "ByteWriter":
        """Writes `text` as ASCII bytes; raises UnicodeEncodeError otherwise."""
        self._buf += text.encode('ascii')
        return self

    def write_bytes(self, data: bytes) -> "ByteWriter":
        self._buf += data
        return self

    def getvalue(self) -> bytes:
        return bytes(self._buf)


class ByteReader:
    """
    A read cursor over an in-memory byte buffer.

    Reading past the end raises NpzFormatError: the buffer was sized from the
    file's own length fields, so running out means the structure is malformed.
    """

    def __init__(self, data: bytes, offset: int = 0) -> None:
        self._view = memoryview(data)
        self._pos = offset

    @property
    def remaining(self) -> int:
        return len(self._view) - self._pos

    def _take(self, size: int) -> memoryview:
        if size < 0 or self._pos + size > len(self._view):
            raise NpzFormatError(
                f"Unexpected end of data: wanted {size} bytes at offset "
                f"{self._pos}, only {self.remaining} left."
            )
        chunk = self._view[self._pos:self._pos + size]
        self._pos += size
        return chunk

    def read_u16(self) -> int:
        """Reads an unsigned 16-bit little-endian integer."""
        return _U16.unpack(self._take(_U16.size))[0]

    def read_u32(self) -> int:
        """Reads an unsigned 32-bit little-endian integer."""
        return _U32.unpack(self._take(_U32.size))[0]

    def read_u64(self) -> int:
        return _U64.unpack(self._take(_U64.size))[0]

    def read_bytes(self, size: int) -> bytes:
        return bytes(self._take(size))

    def skip(self, size: int) -> None:
        self._take(size)
