"""Instruction-level helpers for the dialect and stock Lua 5.1 VMs."""

from .opcodes import (
    DIALECT_OPCODES,
    ESCAPE,
    ESCAPE_OPCODES,
    Lua51Op,
    RemappedInstruction,
    lookup_dialect_opcode,
    opcode_name,
    remap_instruction,
    resolve_escape,
)

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
