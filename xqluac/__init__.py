"""Convert Fate/Z dialect Lua 5.1 bytecode into stock Lua 5.1 bytecode."""

from .converter import ConversionState, Converter, convert_bytes, convert_file, convert_stream
from .exceptions import (
    ConstantTagError,
    ConversionError,
    DecodeError,
    HeaderValidationError,
    MalformedChunkError,
    OpcodeDecodeError,
    StreamExhaustedError,
    TrailingDataError,
    VerificationError,
)
from .report import ConversionReport

__version__ = "0.1.0"

__all__ = [
    "ConstantTagError",
    "ConversionError",
    "ConversionReport",
    "ConversionState",
    "Converter",
    "DecodeError",
    "HeaderValidationError",
    "MalformedChunkError",
    "OpcodeDecodeError",
    "StreamExhaustedError",
    "TrailingDataError",
    "VerificationError",
    "convert_bytes",
    "convert_file",
    "convert_stream",
]
