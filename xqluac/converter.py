"""Top-level driver converting a dialect chunk into stock Lua 5.1 bytecode.

The conversion walks ``START -> HEADER_VALIDATED -> ROOT_TRANSCODED -> DONE``.
Any error moves it to ``FAILED`` and propagates; output already written stays
written, so callers must discard the output file of a failed run.
"""

from __future__ import annotations

import io
import logging
import os
from enum import Enum
from pathlib import Path
from typing import BinaryIO, Optional

from .codec import ByteReader, ByteWriter
from .exceptions import TrailingDataError
from .header import validate_header, write_header
from .prototype import PrototypeTranscoder
from .report import ConversionReport

LOGGER = logging.getLogger(__name__)


class ConversionState(Enum):
    START = "START"
    HEADER_VALIDATED = "HEADER_VALIDATED"
    ROOT_TRANSCODED = "ROOT_TRANSCODED"
    DONE = "DONE"
    FAILED = "FAILED"


class Converter:
    """Drive one conversion over an input and an output binary stream."""

    def __init__(
        self,
        source: BinaryIO,
        target: BinaryIO,
        report: Optional[ConversionReport] = None,
    ) -> None:
        self.reader = ByteReader(source)
        self.writer = ByteWriter(target)
        self.report = report if report is not None else ConversionReport()
        self.state = ConversionState.START

    def _advance(self, state: ConversionState) -> None:
        LOGGER.debug("Conversion state %s -> %s", self.state.value, state.value)
        self.state = state
        self.report.state = state.value

    def run(self) -> ConversionReport:
        try:
            validate_header(self.reader)
            write_header(self.writer)
            self._advance(ConversionState.HEADER_VALIDATED)

            PrototypeTranscoder(self.reader, self.writer, self.report).transcode()
            self._advance(ConversionState.ROOT_TRANSCODED)

            if not self.reader.at_eof():
                raise TrailingDataError(self.reader.offset)
            self._advance(ConversionState.DONE)
        except Exception as exc:
            self._advance(ConversionState.FAILED)
            self.report.errors.append(str(exc))
            raise
        finally:
            self.report.bytes_read = self.reader.offset
            self.report.bytes_written = self.writer.written
        return self.report


def convert_stream(
    source: BinaryIO,
    target: BinaryIO,
    report: Optional[ConversionReport] = None,
) -> ConversionReport:
    """Convert the dialect chunk read from ``source`` into ``target``."""

    return Converter(source, target, report).run()


def convert_bytes(data: bytes) -> bytes:
    """Return the stock Lua 5.1 encoding of the dialect chunk ``data``."""

    target = io.BytesIO()
    convert_stream(io.BytesIO(data), target)
    return target.getvalue()


def convert_file(
    input_path: str | os.PathLike[str],
    output_path: str | os.PathLike[str],
    report: Optional[ConversionReport] = None,
) -> ConversionReport:
    """Convert ``input_path`` into ``output_path``.

    Both handles are closed on every exit path.  The output file is truncated
    when opened and is left truncated if the conversion fails.
    """

    src = Path(input_path)
    dst = Path(output_path)
    if report is None:
        report = ConversionReport()
    report.input_path = str(src)
    report.output_path = str(dst)
    with src.open("rb") as source, dst.open("wb") as target:
        convert_stream(source, target, report)
    LOGGER.info("Converted %s -> %s (%d bytes)", src, dst, report.bytes_written)
    return report


__all__ = [
    "ConversionState",
    "Converter",
    "convert_bytes",
    "convert_file",
    "convert_stream",
]
