"""Primitive readers and writers for the two bytecode containers.

The dialect side is always little-endian with 4-byte ``int`` fields, which the
header check pins before any body field is read.  The reference side is
written with the host's native layout because the reference header advertises
the host's own ``int``/``size_t`` widths and byte order.

Strings in the dialect are XORed with a single key byte derived from their
length.  :func:`xor_string` is an involution, so the same helper encodes test
fixtures and decodes real payloads.
"""

from __future__ import annotations

import struct
import sys
from typing import BinaryIO, Optional

from .exceptions import MalformedChunkError, StreamExhaustedError

__all__ = [
    "ByteReader",
    "ByteWriter",
    "DIALECT_INT",
    "NATIVE_INT",
    "NATIVE_SIZE_T",
    "NATIVE_DOUBLE",
    "NATIVE_INSN",
    "native_double_bits",
    "string_key",
    "xor_string",
]

DIALECT_INT = struct.Struct("<i")
NATIVE_INT = struct.Struct("@i")
NATIVE_SIZE_T = struct.Struct("@N")
NATIVE_DOUBLE = struct.Struct("@d")
NATIVE_INSN = struct.Struct("@I")

DOUBLE_SIZE = 8


def string_key(length: int) -> int:
    """Return the XOR key byte used for a string payload of ``length`` bytes."""

    return (length * 13 + 55) & 0xFF


def xor_string(data: bytes) -> bytes:
    """Apply the dialect string cipher to ``data``."""

    if not data:
        return b""
    key = string_key(len(data))
    return bytes(byte ^ key for byte in data)


def native_double_bits(raw: bytes, byteorder: str = sys.byteorder) -> bytes:
    """Reorder a little-endian double bit pattern for a ``byteorder`` host.

    Bytes are moved, never reinterpreted, so NaN payloads survive.
    """

    return raw if byteorder == "little" else raw[::-1]


class ByteReader:
    """Forward-only reader that tracks the absolute input offset."""

    def __init__(self, stream: BinaryIO) -> None:
        self._stream = stream
        self._pending = b""
        self.offset = 0

    def _take(self, size: int) -> bytes:
        if size <= 0:
            return b""
        chunk = self._pending[:size]
        self._pending = self._pending[size:]
        if len(chunk) < size:
            chunk += self._stream.read(size - len(chunk))
        return chunk

    def peek(self, size: int) -> bytes:
        """Return up to ``size`` upcoming bytes without consuming them."""

        missing = size - len(self._pending)
        if missing > 0:
            self._pending += self._stream.read(missing)
        return self._pending[:size]

    def read_raw(self, size: int) -> bytes:
        data = self._take(size)
        if len(data) != size:
            raise StreamExhaustedError(self.offset + len(data), size, len(data))
        self.offset += size
        return data

    def read_byte(self) -> int:
        return self.read_raw(1)[0]

    def read_int(self) -> int:
        """Read a 4-byte little-endian signed integer."""

        return DIALECT_INT.unpack(self.read_raw(DIALECT_INT.size))[0]

    def read_double_raw(self) -> bytes:
        """Return the 8-byte bit pattern of a number without interpreting it."""

        return self.read_raw(DOUBLE_SIZE)

    def read_string(self) -> Optional[bytes]:
        """Read a length-prefixed string and undo the dialect cipher.

        A zero length is an absent string and yields ``None``.  Present strings
        keep the C terminator inside the payload like stock dumps do, so the
        Lua string ``""`` arrives as a single NUL; one trailing NUL is dropped
        after decoding and the writer appends its own.
        """

        length = self.read_int()
        if length < 0:
            raise MalformedChunkError(
                f"negative string length {length} at offset 0x{self.offset - DIALECT_INT.size:x}"
            )
        if length == 0:
            return None
        plain = xor_string(self.read_raw(length))
        if plain.endswith(b"\x00"):
            plain = plain[:-1]
        return plain

    def at_eof(self) -> bool:
        """Attempt one trailing read; ``True`` when the input is exhausted."""

        return not self.peek(1)


class ByteWriter:
    """Forward-only writer emitting the host's native reference layout."""

    def __init__(self, stream: BinaryIO) -> None:
        self._stream = stream
        self.written = 0

    def write_raw(self, data: bytes) -> None:
        self._stream.write(data)
        self.written += len(data)

    def write_byte(self, value: int) -> None:
        self.write_raw(bytes((value & 0xFF,)))

    def write_int(self, value: int) -> None:
        self.write_raw(NATIVE_INT.pack(value))

    def write_size_t(self, value: int) -> None:
        self.write_raw(NATIVE_SIZE_T.pack(value))

    def write_double(self, value: float) -> None:
        self.write_raw(NATIVE_DOUBLE.pack(value))

    def write_double_bits(self, raw: bytes) -> None:
        """Write a little-endian double bit pattern in the host's byte order."""

        self.write_raw(native_double_bits(raw))

    def write_string(self, value: Optional[bytes]) -> None:
        """Write ``value`` as a reference string (``len + 1`` then NUL-terminated).

        Only ``None`` is written as a bare zero length; stock Lua loads that as
        a NULL string, which is valid for a stripped source name only.
        """

        if value is None:
            self.write_size_t(0)
            return
        self.write_size_t(len(value) + 1)
        self.write_raw(value + b"\x00")
