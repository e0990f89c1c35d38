"""Custom exception hierarchy for the bytecode converter."""

from __future__ import annotations

from typing import Sequence


class ConversionError(Exception):
    """Base class for all conversion related errors.

    Every subclass is terminal for a run: the converter never recovers locally
    and never rolls back output that has already been written.
    """


class HeaderValidationError(ConversionError):
    """Raised when the dialect header does not match the supported layout."""

    def __init__(self, message: str, mismatches: Sequence[str] = ()) -> None:
        super().__init__(message)
        self.mismatches = tuple(mismatches)


class StreamExhaustedError(ConversionError):
    """Raised when a read asks for more bytes than the input holds."""

    def __init__(self, offset: int, requested: int, available: int) -> None:
        super().__init__(
            f"unexpected end of input at offset 0x{offset:x}: "
            f"wanted {requested} byte(s), got {available}"
        )
        self.offset = offset
        self.requested = requested
        self.available = available


class DecodeError(ConversionError):
    """Base class for errors raised while decoding a prototype body."""


class OpcodeDecodeError(DecodeError):
    """Raised when an instruction carries an opcode with no stock counterpart."""

    def __init__(self, word: int, index: int, offset: int, *, escaped: bool = False) -> None:
        kind = "OP_ESCAPE" if escaped else "INSN"
        super().__init__(f"Could not decode {kind} 0x{word:08x} (#{index}) at offset 0x{offset:x}")
        self.word = word
        self.index = index
        self.offset = offset
        self.escaped = escaped


class ConstantTagError(DecodeError):
    """Raised when a constant carries an unknown type tag."""

    def __init__(self, tag: int, offset: int) -> None:
        super().__init__(f"Could not decode constant (tag 0x{tag:02x}) at offset 0x{offset:x}")
        self.tag = tag
        self.offset = offset


class MalformedChunkError(DecodeError):
    """Raised when a length prefix cannot describe a valid sequence."""


class TrailingDataError(ConversionError):
    """Raised when bytes remain after the root prototype was consumed."""

    def __init__(self, consumed: int) -> None:
        super().__init__(f"Could not fully read, consumed 0x{consumed:x} bytes")
        self.consumed = consumed


class VerificationError(ConversionError):
    """Raised when converted output cannot be checked or fails to load."""


__all__ = [
    "ConversionError",
    "ConstantTagError",
    "DecodeError",
    "HeaderValidationError",
    "MalformedChunkError",
    "OpcodeDecodeError",
    "StreamExhaustedError",
    "TrailingDataError",
    "VerificationError",
]
