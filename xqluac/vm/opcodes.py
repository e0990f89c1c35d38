"""Opcode tables for the stock Lua 5.1 VM and the permuted dialect.

The dialect keeps the stock ``iABC``/``iABx``/``iAsBx`` operand layout and only
shuffles the 6-bit opcode field.  One dialect opcode is an escape: the real
opcode then lives in the 9-bit ``C`` field (bits 14..22) as a small index into
:data:`ESCAPE_OPCODES`, and the two low bits of that field are cleared once the
opcode has been recovered.

Comparison instructions (``EQ``/``LT``/``LE``) are rewritten like any other
opcode.  Whether the dialect also swaps their register operands is unknown, so
operands are copied through untouched.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Tuple, Union

from ..exceptions import OpcodeDecodeError

OPCODE_MASK = 0x3F
ESCAPE_SHIFT = 14
ESCAPE_FIELD_MASK = 0x1FF
ESCAPE_CLEAR_MASK = 0x3 << ESCAPE_SHIFT
WORD_MASK = 0xFFFFFFFF


class Lua51Op(IntEnum):
    MOVE = 0
    LOADK = 1
    LOADBOOL = 2
    LOADNIL = 3
    GETUPVAL = 4
    GETGLOBAL = 5
    GETTABLE = 6
    SETGLOBAL = 7
    SETUPVAL = 8
    SETTABLE = 9
    NEWTABLE = 10
    SELF = 11
    ADD = 12
    SUB = 13
    MUL = 14
    DIV = 15
    MOD = 16
    POW = 17
    UNM = 18
    NOT = 19
    LEN = 20
    CONCAT = 21
    JMP = 22
    EQ = 23
    LT = 24
    LE = 25
    TEST = 26
    TESTSET = 27
    CALL = 28
    TAILCALL = 29
    RETURN = 30
    FORLOOP = 31
    FORPREP = 32
    TFORLOOP = 33
    SETLIST = 34
    CLOSE = 35
    CLOSURE = 36
    VARARG = 37


class _Escape:
    """Sentinel marking the dialect opcode whose real value is packed elsewhere."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "ESCAPE"


ESCAPE = _Escape()

TableEntry = Union[Lua51Op, _Escape]

_O = Lua51Op

DIALECT_OPCODES: Tuple[TableEntry, ...] = (
    _O.LEN, _O.CLOSURE, ESCAPE, _O.LT,              # 0x00
    _O.NOT, _O.LT, _O.LOADK, _O.SETLIST,            # 0x04
    _O.RETURN, _O.TEST, _O.TFORLOOP, _O.FORPREP,    # 0x08
    _O.SUB, _O.TAILCALL, _O.DIV, _O.SELF,           # 0x0c
    _O.CALL, _O.SETTABLE, _O.GETUPVAL, _O.EQ,       # 0x10
    _O.EQ, _O.CONCAT, _O.LE, _O.LE,                 # 0x14
    _O.LOADBOOL, _O.MOD, _O.FORLOOP, _O.GETTABLE,   # 0x18
    _O.NEWTABLE, _O.CLOSE, _O.VARARG, _O.JMP,       # 0x1c
    _O.UNM, _O.POW, _O.MUL, _O.TESTSET,             # 0x20
    _O.MOVE, _O.ADD, _O.GETGLOBAL, _O.SETUPVAL,     # 0x24
    _O.SETGLOBAL, _O.LOADNIL,                       # 0x28
)

ESCAPE_OPCODES: Tuple[Lua51Op, ...] = (_O.CLOSE, _O.LEN, _O.UNM, _O.NOT)

del _O


@dataclass(frozen=True)
class RemappedInstruction:
    """Result of rewriting a single dialect instruction word."""

    word: int
    opcode: Lua51Op
    escaped: bool = False


def lookup_dialect_opcode(op: int, *, word: int = 0, index: int = 0, offset: int = 0) -> TableEntry:
    """Return the table entry for dialect opcode ``op``."""

    if not 0 <= op < len(DIALECT_OPCODES):
        raise OpcodeDecodeError(word, index, offset)
    return DIALECT_OPCODES[op]


def resolve_escape(word: int, *, index: int = 0, offset: int = 0) -> Lua51Op:
    """Return the opcode packed in the escape field of ``word``."""

    selector = (word >> ESCAPE_SHIFT) & ESCAPE_FIELD_MASK
    if selector >= len(ESCAPE_OPCODES):
        raise OpcodeDecodeError(word, index, offset, escaped=True)
    return ESCAPE_OPCODES[selector]


def remap_instruction(word: int, *, index: int = 0, offset: int = 0) -> RemappedInstruction:
    """Rewrite ``word`` so its opcode field uses stock Lua 5.1 numbering.

    ``index`` and ``offset`` only feed the error raised for undecodable words.
    """

    word &= WORD_MASK
    entry = lookup_dialect_opcode(word & OPCODE_MASK, word=word, index=index, offset=offset)
    escaped = entry is ESCAPE
    if escaped:
        opcode = resolve_escape(word, index=index, offset=offset)
        word &= ~ESCAPE_CLEAR_MASK & WORD_MASK
    else:
        opcode = entry  # type: ignore[assignment]
    return RemappedInstruction(word=(word & ~OPCODE_MASK & WORD_MASK) | int(opcode), opcode=opcode, escaped=escaped)


def opcode_name(op: int) -> str:
    try:
        return Lua51Op(op).name
    except ValueError:
        return f"OP_{op}"


__all__ = [
    "DIALECT_OPCODES",
    "ESCAPE",
    "ESCAPE_OPCODES",
    "Lua51Op",
    "RemappedInstruction",
    "lookup_dialect_opcode",
    "opcode_name",
    "remap_instruction",
    "resolve_escape",
]
