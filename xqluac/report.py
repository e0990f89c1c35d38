"""Structured conversion report helpers."""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Dict, List


@dataclass
class ConversionReport:
    """Summarises a single conversion run."""

    input_path: str | None = None
    output_path: str | None = None
    state: str = "START"
    prototypes: int = 0
    max_depth: int = 0
    instructions: int = 0
    escaped_instructions: int = 0
    opcode_stats: Dict[str, int] = field(default_factory=dict)
    constants: Dict[str, int] = field(default_factory=dict)
    promoted_integers: int = 0
    strings: int = 0
    bytes_read: int = 0
    bytes_written: int = 0
    errors: List[str] = field(default_factory=list)

    def record_opcode(self, name: str, *, escaped: bool = False) -> None:
        self.instructions += 1
        if escaped:
            self.escaped_instructions += 1
        self.opcode_stats[name] = self.opcode_stats.get(name, 0) + 1

    def record_constant(self, kind: str) -> None:
        self.constants[kind] = self.constants.get(kind, 0) + 1

    def enter_prototype(self, depth: int) -> None:
        self.prototypes += 1
        if depth > self.max_depth:
            self.max_depth = depth

    def to_text(self) -> str:
        """Format the report as a human-readable summary."""

        lines: List[str] = []
        if self.input_path:
            lines.append(f"Input: {self.input_path}")
        if self.output_path:
            lines.append(f"Output: {self.output_path}")
        lines.append(f"State: {self.state}")
        lines.append(f"Prototypes: {self.prototypes} (max depth {self.max_depth})")
        lines.append(
            f"Instructions: {self.instructions} ({self.escaped_instructions} escaped)"
        )
        if self.constants:
            summary = ", ".join(f"{kind}={count}" for kind, count in sorted(self.constants.items()))
            lines.append(f"Constants: {summary}")
        else:
            lines.append("Constants: none")
        lines.append(f"Integer constants promoted: {self.promoted_integers}")
        lines.append(f"Bytes read: {self.bytes_read}, written: {self.bytes_written}")
        if self.errors:
            lines.append("Errors:")
            lines.extend(f"  - {error}" for error in self.errors)
        return "\n".join(lines)

    def to_json(self) -> Dict[str, object]:
        """Return a JSON-serialisable representation."""

        data = asdict(self)
        data["opcode_stats"] = dict(sorted(self.opcode_stats.items()))
        data["constants"] = dict(sorted(self.constants.items()))
        return data


__all__ = ["ConversionReport"]
