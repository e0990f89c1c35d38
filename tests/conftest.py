"""Test configuration ensuring the project source tree is importable."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent

root_str = str(ROOT)
if root_str not in sys.path:
    sys.path.insert(0, root_str)
else:
    idx = sys.path.index(root_str)
    if idx != 0:
        sys.path.insert(0, sys.path.pop(idx))

from tests.fixtures.dialect_chunk_fixture import (  # noqa: E402
    DIALECT_OP,
    DialectPrototype,
    encode_abc,
    encode_abx,
)


@pytest.fixture
def hello_prototype() -> DialectPrototype:
    """Main chunk returning a string and a promoted integer: ``return "hello", 42``."""

    return DialectPrototype(
        source=b"@hello.lua",
        is_vararg=2,
        maxstacksize=2,
        code=[
            encode_abx(DIALECT_OP["LOADK"], a=0, bx=0),
            encode_abx(DIALECT_OP["LOADK"], a=1, bx=1),
            encode_abc(DIALECT_OP["RETURN"], a=0, b=3),
        ],
        constants=[("string", b"hello"), ("integer", 42)],
        lineinfo=[1, 1, 1],
    )


@pytest.fixture
def nested_prototype() -> DialectPrototype:
    """Main chunk with two sibling closures, the first holding a grandchild."""

    grandchild = DialectPrototype(
        source=b"",
        linedefined=3,
        lastlinedefined=3,
        code=[encode_abc(DIALECT_OP["RETURN"], a=0, b=1)],
        constants=[("boolean", True)],
        lineinfo=[3],
    )
    first = DialectPrototype(
        linedefined=2,
        lastlinedefined=4,
        nups=1,
        numparams=1,
        maxstacksize=3,
        code=[
            encode_abx(DIALECT_OP["CLOSURE"], a=1, bx=0),
            encode_abc(DIALECT_OP["RETURN"], a=1, b=2),
        ],
        constants=[("nil", None)],
        prototypes=[grandchild],
        lineinfo=[3, 4],
        locvars=[(b"x", 0, 2)],
        upvalues=[b"outer"],
    )
    second = DialectPrototype(
        linedefined=6,
        lastlinedefined=6,
        code=[encode_abc(DIALECT_OP["RETURN"], a=0, b=1)],
        constants=[("number", 2.5)],
        lineinfo=[6],
    )
    return DialectPrototype(
        source=b"@nested.lua",
        is_vararg=2,
        maxstacksize=2,
        code=[
            encode_abx(DIALECT_OP["CLOSURE"], a=0, bx=0),
            encode_abc(DIALECT_OP["MOVE"], a=0, b=0),
            encode_abx(DIALECT_OP["CLOSURE"], a=1, bx=1),
            encode_abc(DIALECT_OP["RETURN"], a=0, b=1),
        ],
        constants=[("string", b"outer")],
        prototypes=[first, second],
        lineinfo=[1, 2, 5, 7],
        locvars=[(b"f", 1, 3), (b"g", 2, 3)],
    )
