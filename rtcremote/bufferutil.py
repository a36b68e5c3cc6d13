"""Big-endian integer and 32-bit float packing for the control channel."""

from __future__ import annotations

import struct

_U16 = struct.Struct(">H")
_U32 = struct.Struct(">I")
_U64 = struct.Struct(">Q")
# Floats go on the wire as raw IEEE-754 single precision, little-endian.
_F32 = struct.Struct("<f")


def pack_u16(value: int) -> bytes:
    """Pack the low 16 bits of ``value`` as a big-endian unsigned integer."""
    return _U16.pack(value & 0xFFFF)


def pack_u32(value: int) -> bytes:
    """Pack the low 32 bits of ``value`` as a big-endian unsigned integer."""
    return _U32.pack(value & 0xFFFFFFFF)


def pack_float(value: float) -> bytes:
    """Pack ``value`` as a 4-byte single-precision float."""
    return _F32.pack(value)


class ByteReader:
    """Sequential reader over an immutable byte string."""

    def __init__(self, data: bytes | bytearray | memoryview) -> None:
        self._data = bytes(data)
        self._pos = 0

    def _take(self, size: int) -> bytes:
        left = self.remaining()
        if left < size:
            raise EOFError(f"need {size} bytes, only {left} left")
        chunk = self._data[self._pos:self._pos + size]
        self._pos += size
        return chunk

    def read_u16(self) -> int:
        """Read a big-endian unsigned 16-bit integer."""
        return _U16.unpack(self._take(2))[0]

    def read_u32(self) -> int:
        """Read a big-endian unsigned 32-bit integer."""
        return _U32.unpack(self._take(4))[0]

    def read_u64(self) -> int:
        """Read a big-endian unsigned 64-bit integer."""
        return _U64.unpack(self._take(8))[0]

    def read_float(self) -> float:
        """Read a 4-byte single-precision float."""
        return _F32.unpack(self._take(4))[0]

    def remaining(self) -> int:
        """Number of bytes not yet read."""
        return len(self._data) - self._pos