"""Check that converted output loads in a stock Lua 5.1 interpreter.

The chunk is only compiled by ``loadstring``; it is never called.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

try:  # pragma: no cover - optional dependency
    from lupa import lua51
except Exception:  # pragma: no cover - fallback when lupa missing
    lua51 = None  # type: ignore[assignment]

from .exceptions import VerificationError

LOG = logging.getLogger(__name__)

_LOADER_SOURCE = """
function(chunk, name)
    local fn, err = loadstring(chunk, name)
    if fn then
        return true, ""
    end
    return false, tostring(err)
end
"""


@dataclass(frozen=True)
class VerificationResult:
    """Outcome of loading a converted chunk."""

    ok: bool
    message: str
    size: int

    def as_dict(self) -> Dict[str, Any]:
        return {"ok": self.ok, "message": self.message, "size": self.size}


def _is_lua_available() -> bool:
    return lua51 is not None


def verify_loadable(data: bytes, *, chunk_name: str = "=converted") -> VerificationResult:
    """Load ``data`` with ``loadstring`` inside a Lua 5.1 runtime."""

    if not _is_lua_available():
        raise VerificationError(
            "lupa with the bundled Lua 5.1 runtime is not available; install lupa>=2.0"
        )
    runtime = lua51.LuaRuntime(unpack_returned_tuples=True, register_eval=False)
    loader = runtime.eval(_LOADER_SOURCE)
    ok, message = loader(data, chunk_name)
    result = VerificationResult(ok=bool(ok), message=str(message or ""), size=len(data))
    if result.ok:
        LOG.debug("Lua 5.1 accepted %d byte chunk", result.size)
    else:
        LOG.debug("Lua 5.1 rejected chunk: %s", result.message)
    return result


def verify_file(path: str | os.PathLike[str]) -> VerificationResult:
    target = Path(path)
    return verify_loadable(target.read_bytes(), chunk_name=f"@{target.name}")


__all__ = ["VerificationResult", "verify_file", "verify_loadable"]
