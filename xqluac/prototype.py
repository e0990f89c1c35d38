"""Recursive transcoder for function prototypes.

Each prototype is decoded and re-encoded in one pass.  The dialect serialises
the scalar header fields in its own order::

    numparams, source, nups, linedefined, is_vararg, lastlinedefined, maxstacksize

while stock Lua 5.1 expects::

    source, linedefined, lastlinedefined, nups, numparams, is_vararg, maxstacksize

The instruction block is the only part held in memory; it is written once
every word in it has been remapped, so a decode failure never emits a
partially translated block.  Nested prototypes are completed depth-first
before the next sibling is read.
"""

from __future__ import annotations

import logging
import struct
from dataclasses import dataclass
from typing import Optional

from .codec import NATIVE_INSN, ByteReader, ByteWriter
from .constants import read_count, transcode_constant_list
from .logging_config import TRACE_LOGGER_NAME
from .report import ConversionReport
from .vm.opcodes import opcode_name, remap_instruction

LOGGER = logging.getLogger(__name__)
TRACE = logging.getLogger(TRACE_LOGGER_NAME)

INSN_SIZE = 4
_DIALECT_INSN = struct.Struct("<I")


@dataclass(frozen=True)
class PrototypeHeader:
    """Scalar fields shared by both formats."""

    source: Optional[bytes]
    linedefined: int
    lastlinedefined: int
    nups: int
    numparams: int
    is_vararg: int
    maxstacksize: int

    @classmethod
    def read_dialect(cls, reader: ByteReader) -> "PrototypeHeader":
        numparams = reader.read_byte()
        source = reader.read_string()
        nups = reader.read_byte()
        linedefined = reader.read_int()
        is_vararg = reader.read_byte()
        lastlinedefined = reader.read_int()
        maxstacksize = reader.read_byte()
        return cls(
            source=source,
            linedefined=linedefined,
            lastlinedefined=lastlinedefined,
            nups=nups,
            numparams=numparams,
            is_vararg=is_vararg,
            maxstacksize=maxstacksize,
        )

    def write_reference(self, writer: ByteWriter) -> None:
        writer.write_string(self.source)
        writer.write_int(self.linedefined)
        writer.write_int(self.lastlinedefined)
        writer.write_byte(self.nups)
        writer.write_byte(self.numparams)
        writer.write_byte(self.is_vararg)
        writer.write_byte(self.maxstacksize)


def transcode_debug_info(reader: ByteReader, writer: ByteWriter) -> None:
    """Copy line info, local variable records and upvalue names."""

    count = read_count(reader, "line info")
    writer.write_int(count)
    for _ in range(count):
        writer.write_int(reader.read_int())

    count = read_count(reader, "local variable")
    writer.write_int(count)
    for _ in range(count):
        writer.write_string(reader.read_string())
        writer.write_int(reader.read_int())
        writer.write_int(reader.read_int())

    count = read_count(reader, "upvalue name")
    writer.write_int(count)
    for _ in range(count):
        writer.write_string(reader.read_string())


class PrototypeTranscoder:
    """Walk the prototype tree of one chunk, writing stock Lua 5.1 layout."""

    def __init__(
        self,
        reader: ByteReader,
        writer: ByteWriter,
        report: Optional[ConversionReport] = None,
    ) -> None:
        self.reader = reader
        self.writer = writer
        self.report = report if report is not None else ConversionReport()

    def transcode(self, depth: int = 0) -> PrototypeHeader:
        """Transcode one prototype and, recursively, all of its children."""

        start = self.reader.offset
        header = PrototypeHeader.read_dialect(self.reader)
        header.write_reference(self.writer)
        self.report.enter_prototype(depth)
        LOGGER.debug(
            "Prototype at 0x%x (depth %d, line %d): %d param(s), %d upvalue(s)",
            start,
            depth,
            header.linedefined,
            header.numparams,
            header.nups,
        )

        self._transcode_code(header)
        transcode_constant_list(self.reader, self.writer, self.report)

        count = read_count(self.reader, "prototype")
        self.writer.write_int(count)
        for _ in range(count):
            self.transcode(depth + 1)

        transcode_debug_info(self.reader, self.writer)
        return header

    def _transcode_code(self, header: PrototypeHeader) -> None:
        count = read_count(self.reader, "instruction")
        self.writer.write_int(count)
        block_offset = self.reader.offset
        block = self.reader.read_raw(count * INSN_SIZE)

        TRACE.debug("<=== CODE %d ====", header.linedefined)
        out = bytearray()
        for index, (word,) in enumerate(_DIALECT_INSN.iter_unpack(block)):
            remapped = remap_instruction(
                word,
                index=index,
                offset=block_offset + index * INSN_SIZE,
            )
            name = opcode_name(remapped.opcode)
            TRACE.debug(
                "%d 0x%08x -> 0x%08x %s%s",
                index,
                word,
                remapped.word,
                name,
                " (escaped)" if remapped.escaped else "",
            )
            self.report.record_opcode(name, escaped=remapped.escaped)
            out += NATIVE_INSN.pack(remapped.word)
        TRACE.debug("==== CODE %d ===>", header.linedefined)
        self.writer.write_raw(bytes(out))


__all__ = ["PrototypeHeader", "PrototypeTranscoder", "transcode_debug_info"]
