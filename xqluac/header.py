"""Dialect header validation and reference header synthesis."""

from __future__ import annotations

import logging
import struct
import sys
from dataclasses import dataclass
from typing import List

from .codec import ByteReader, ByteWriter
from .exceptions import HeaderValidationError

LOGGER = logging.getLogger(__name__)

DIALECT_SIGNATURE = b"\x1bFate/Z\x1b"
DIALECT_VERSION = 0x51
DIALECT_FORMAT = 0
DIALECT_ENDIAN = 1
DIALECT_SIZEOF_INT = 4
DIALECT_SIZEOF_UINT = 4
DIALECT_SIZEOF_INSN = 4
DIALECT_SIZEOF_NUMBER = 8
DIALECT_SIZEOF_INTEGER = 4

REFERENCE_SIGNATURE = b"\x1bLua"
REFERENCE_VERSION = 0x51
REFERENCE_FORMAT = 0
REFERENCE_SIZEOF_INSN = 4
REFERENCE_SIZEOF_NUMBER = 8

INTERPRETER_PREFIX = b"#!"

_DIALECT_LAYOUT = struct.Struct("<8s8B")
_REFERENCE_LAYOUT = struct.Struct("<4s8B")

# Field name -> supported value, in the order the checks run.
_EXPECTED_FIELDS = (
    ("magic", DIALECT_SIGNATURE),
    ("version", DIALECT_VERSION),
    ("format", DIALECT_FORMAT),
    ("endian", DIALECT_ENDIAN),
    ("sizeof_int", DIALECT_SIZEOF_INT),
    ("sizeof_uint", DIALECT_SIZEOF_UINT),
    ("sizeof_insn", DIALECT_SIZEOF_INSN),
    ("sizeof_number", DIALECT_SIZEOF_NUMBER),
    ("sizeof_integer", DIALECT_SIZEOF_INTEGER),
)


@dataclass(frozen=True)
class DialectHeader:
    """Decoded dialect container header."""

    magic: bytes
    version: int
    format: int
    endian: int
    sizeof_int: int
    sizeof_uint: int
    sizeof_insn: int
    sizeof_number: int
    sizeof_integer: int

    SIZE = _DIALECT_LAYOUT.size

    @classmethod
    def unpack(cls, data: bytes) -> "DialectHeader":
        return cls(*_DIALECT_LAYOUT.unpack(data))

    @classmethod
    def read(cls, reader: ByteReader) -> "DialectHeader":
        return cls.unpack(reader.read_raw(cls.SIZE))

    def mismatches(self) -> List[str]:
        """Return the names of fields that differ from the supported layout."""

        return [name for name, expected in _EXPECTED_FIELDS if getattr(self, name) != expected]


@dataclass(frozen=True)
class ReferenceHeader:
    """Stock Lua 5.1 header describing the host that writes the output."""

    magic: bytes
    version: int
    format: int
    endian: int
    sizeof_int: int
    sizeof_size_t: int
    sizeof_insn: int
    sizeof_number: int
    integral: int

    SIZE = _REFERENCE_LAYOUT.size

    @classmethod
    def native(cls) -> "ReferenceHeader":
        return cls(
            magic=REFERENCE_SIGNATURE,
            version=REFERENCE_VERSION,
            format=REFERENCE_FORMAT,
            endian=1 if sys.byteorder == "little" else 0,
            sizeof_int=struct.calcsize("i"),
            sizeof_size_t=struct.calcsize("N"),
            sizeof_insn=REFERENCE_SIZEOF_INSN,
            sizeof_number=REFERENCE_SIZEOF_NUMBER,
            integral=0,
        )

    def pack(self) -> bytes:
        return _REFERENCE_LAYOUT.pack(
            self.magic,
            self.version,
            self.format,
            self.endian,
            self.sizeof_int,
            self.sizeof_size_t,
            self.sizeof_insn,
            self.sizeof_number,
            self.integral,
        )


def skip_interpreter_line(reader: ByteReader) -> int:
    """Consume a leading ``#!`` line and return the number of bytes skipped."""

    if reader.peek(len(INTERPRETER_PREFIX)) != INTERPRETER_PREFIX:
        return 0
    skipped = 0
    while True:
        chunk = reader.peek(1)
        if not chunk:
            raise HeaderValidationError("interpreter line is not terminated by a newline", ("shebang",))
        reader.read_raw(1)
        skipped += 1
        if chunk == b"\n":
            LOGGER.debug("Skipped %d byte interpreter line", skipped)
            return skipped


def validate_header(reader: ByteReader) -> DialectHeader:
    """Read the dialect header and raise :class:`HeaderValidationError` on mismatch."""

    skip_interpreter_line(reader)
    header = DialectHeader.read(reader)
    problems = header.mismatches()
    if problems:
        raise HeaderValidationError(
            f"unsupported dialect header: {problems[0]} mismatch (all: {', '.join(problems)})",
            problems,
        )
    LOGGER.debug("Dialect header accepted: %s", header)
    return header


def write_header(writer: ByteWriter) -> ReferenceHeader:
    header = ReferenceHeader.native()
    writer.write_raw(header.pack())
    return header


__all__ = [
    "DIALECT_SIGNATURE",
    "DialectHeader",
    "REFERENCE_SIGNATURE",
    "ReferenceHeader",
    "skip_interpreter_line",
    "validate_header",
    "write_header",
]
