"""Constant pool transcoding between the dialect and stock tag numbering."""

from __future__ import annotations

import logging
from enum import IntEnum
from typing import Optional

from .codec import ByteReader, ByteWriter
from .exceptions import ConstantTagError, MalformedChunkError
from .report import ConversionReport

LOGGER = logging.getLogger(__name__)


class DialectTag(IntEnum):
    NIL = 3
    BOOLEAN = 4
    NUMBER = 6
    STRING = 7
    INTEGER = 12


class ReferenceTag(IntEnum):
    NIL = 0
    BOOLEAN = 1
    NUMBER = 3
    STRING = 4


def read_count(reader: ByteReader, what: str) -> int:
    """Read a length prefix, rejecting negative values."""

    offset = reader.offset
    count = reader.read_int()
    if count < 0:
        raise MalformedChunkError(f"negative {what} count {count} at offset 0x{offset:x}")
    return count


def transcode_constant(
    reader: ByteReader,
    writer: ByteWriter,
    report: Optional[ConversionReport] = None,
) -> DialectTag:
    """Copy one constant, translating its tag and payload."""

    offset = reader.offset
    raw_tag = reader.read_byte()
    try:
        tag = DialectTag(raw_tag)
    except ValueError:
        raise ConstantTagError(raw_tag, offset) from None

    if tag is DialectTag.NIL:
        writer.write_byte(ReferenceTag.NIL)
    elif tag is DialectTag.BOOLEAN:
        writer.write_byte(ReferenceTag.BOOLEAN)
        writer.write_byte(reader.read_byte())
    elif tag is DialectTag.NUMBER:
        writer.write_byte(ReferenceTag.NUMBER)
        writer.write_double_bits(reader.read_double_raw())
    elif tag is DialectTag.STRING:
        writer.write_byte(ReferenceTag.STRING)
        writer.write_string(reader.read_string())
        if report is not None:
            report.strings += 1
    else:
        # Stock 5.1 has no integer constants; every 32-bit value is exact as a double.
        value = reader.read_int()
        writer.write_byte(ReferenceTag.NUMBER)
        writer.write_double(float(value))
        if report is not None:
            report.promoted_integers += 1

    if report is not None:
        report.record_constant(tag.name.lower())
    return tag


def transcode_constant_list(
    reader: ByteReader,
    writer: ByteWriter,
    report: Optional[ConversionReport] = None,
) -> int:
    """Copy a count-prefixed list of constants and return the count."""

    count = read_count(reader, "constant")
    writer.write_int(count)
    for _ in range(count):
        transcode_constant(reader, writer, report)
    LOGGER.debug("Transcoded %d constant(s)", count)
    return count


__all__ = [
    "DialectTag",
    "ReferenceTag",
    "read_count",
    "transcode_constant",
    "transcode_constant_list",
]
