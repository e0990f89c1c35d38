"""Synthetic dialect chunks and a minimal stock Lua 5.1 undumper for tests."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

DIALECT_MAGIC = b"\x1bFate/Z\x1b"
DIALECT_HEADER = DIALECT_MAGIC + bytes((0x51, 0, 1, 4, 4, 4, 8, 4))

# First dialect opcode index for each stock mnemonic, plus the escape slot.
DIALECT_OP = {
    "LEN": 0x00,
    "CLOSURE": 0x01,
    "ESCAPE": 0x02,
    "LT": 0x03,
    "NOT": 0x04,
    "LOADK": 0x06,
    "SETLIST": 0x07,
    "RETURN": 0x08,
    "EQ": 0x13,
    "LE": 0x16,
    "LOADBOOL": 0x18,
    "CLOSE": 0x1D,
    "JMP": 0x1F,
    "UNM": 0x20,
    "MOVE": 0x24,
    "ADD": 0x25,
    "GETGLOBAL": 0x26,
    "LOADNIL": 0x29,
}

Constant = Tuple[str, Any]


def encode_int(value: int) -> bytes:
    return struct.pack("<i", value)


def cipher(data: bytes) -> bytes:
    key = (len(data) * 13 + 55) % 256
    return bytes(b ^ key for b in data)


def encode_string(value: Optional[bytes], *, terminated: bool = True) -> bytes:
    """Encode like luac: ``None`` is a zero length, ``b""`` is a lone NUL."""

    if value is None:
        return encode_int(0)
    payload = value + b"\x00" if terminated else value
    return encode_int(len(payload)) + cipher(payload)


def encode_abc(op: int, a: int = 0, b: int = 0, c: int = 0) -> int:
    return (op & 0x3F) | (a << 6) | (c << 14) | (b << 23)


def encode_abx(op: int, a: int = 0, bx: int = 0) -> int:
    return (op & 0x3F) | (a << 6) | (bx << 14)


def encode_escape(selector: int, a: int = 0, b: int = 0) -> int:
    return encode_abc(DIALECT_OP["ESCAPE"], a=a, b=b, c=selector)


def encode_constant(constant: Constant) -> bytes:
    kind, value = constant
    if kind == "nil":
        return b"\x03"
    if kind == "boolean":
        return b"\x04" + (b"\x01" if value else b"\x00")
    if kind == "number":
        return b"\x06" + struct.pack("<d", float(value))
    if kind == "string":
        return b"\x07" + encode_string(value)
    if kind == "integer":
        return b"\x0c" + encode_int(value)
    if kind == "raw":
        return bytes(value)
    raise ValueError(f"unknown constant kind {kind}")


@dataclass
class DialectPrototype:
    source: Optional[bytes] = None
    linedefined: int = 0
    lastlinedefined: int = 0
    nups: int = 0
    numparams: int = 0
    is_vararg: int = 0
    maxstacksize: int = 2
    code: List[int] = field(default_factory=list)
    constants: List[Constant] = field(default_factory=list)
    prototypes: List["DialectPrototype"] = field(default_factory=list)
    lineinfo: List[int] = field(default_factory=list)
    locvars: List[Tuple[bytes, int, int]] = field(default_factory=list)
    upvalues: List[bytes] = field(default_factory=list)

    def encode(self) -> bytes:
        out = bytearray()
        out.append(self.numparams)
        out += encode_string(self.source)
        out.append(self.nups)
        out += encode_int(self.linedefined)
        out.append(self.is_vararg)
        out += encode_int(self.lastlinedefined)
        out.append(self.maxstacksize)
        out += encode_int(len(self.code))
        for word in self.code:
            out += struct.pack("<I", word)
        out += encode_int(len(self.constants))
        for constant in self.constants:
            out += encode_constant(constant)
        out += encode_int(len(self.prototypes))
        for child in self.prototypes:
            out += child.encode()
        out += encode_int(len(self.lineinfo))
        for line in self.lineinfo:
            out += encode_int(line)
        out += encode_int(len(self.locvars))
        for name, startpc, endpc in self.locvars:
            out += encode_string(name) + encode_int(startpc) + encode_int(endpc)
        out += encode_int(len(self.upvalues))
        for name in self.upvalues:
            out += encode_string(name)
        return bytes(out)


def build_chunk(
    proto: DialectPrototype,
    *,
    shebang: bytes = b"",
    header: bytes = DIALECT_HEADER,
    trailing: bytes = b"",
) -> bytes:
    return shebang + header + proto.encode() + trailing


class ReferenceUndumper:
    """Parse stock Lua 5.1 bytecode written with the host's native layout."""

    HEADER_SIZE = 12

    def __init__(self, data: bytes) -> None:
        self.data = data
        self.pos = 0

    def _unpack(self, fmt: str) -> Any:
        size = struct.calcsize(fmt)
        value = struct.unpack_from(fmt, self.data, self.pos)[0]
        self.pos += size
        return value

    def read_byte(self) -> int:
        return self._unpack("@B")

    def read_int(self) -> int:
        return self._unpack("@i")

    def read_string(self) -> Optional[bytes]:
        size = self._unpack("@N")
        if not size:
            return None
        raw = self.data[self.pos : self.pos + size]
        self.pos += size
        assert raw.endswith(b"\x00"), "reference strings are NUL terminated"
        return raw[:-1]

    def header(self) -> bytes:
        raw = self.data[: self.HEADER_SIZE]
        self.pos = self.HEADER_SIZE
        return raw

    def function(self) -> Dict[str, Any]:
        proto: Dict[str, Any] = {}
        proto["source"] = self.read_string()
        proto["linedefined"] = self.read_int()
        proto["lastlinedefined"] = self.read_int()
        proto["nups"] = self.read_byte()
        proto["numparams"] = self.read_byte()
        proto["is_vararg"] = self.read_byte()
        proto["maxstacksize"] = self.read_byte()
        proto["code"] = [self._unpack("@I") for _ in range(self.read_int())]
        constants: List[Constant] = []
        for _ in range(self.read_int()):
            tag = self.read_byte()
            if tag == 0:
                constants.append(("nil", None))
            elif tag == 1:
                constants.append(("boolean", self.read_byte() != 0))
            elif tag == 3:
                constants.append(("number", self._unpack("@d")))
            elif tag == 4:
                constants.append(("string", self.read_string()))
            else:
                raise AssertionError(f"unexpected reference tag {tag}")
        proto["constants"] = constants
        proto["prototypes"] = [self.function() for _ in range(self.read_int())]
        proto["lineinfo"] = [self.read_int() for _ in range(self.read_int())]
        proto["locvars"] = [
            (self.read_string(), self.read_int(), self.read_int()) for _ in range(self.read_int())
        ]
        proto["upvalues"] = [self.read_string() for _ in range(self.read_int())]
        return proto


def undump(data: bytes) -> Tuple[bytes, Dict[str, Any]]:
    """Return ``(header_bytes, root_prototype)`` for stock bytecode ``data``."""

    reader = ReferenceUndumper(data)
    header = reader.header()
    root = reader.function()
    assert reader.pos == len(data), "reference chunk has trailing bytes"
    return header, root

