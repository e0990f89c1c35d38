"""Routing for the per-instruction remapping trace.

Every rewritten instruction is logged at DEBUG on :data:`TRACE_LOGGER_NAME`.
The CLI silences that logger unless ``--trace-log`` names a file, in which
case the records go to that file only.
"""

from __future__ import annotations

import logging
from pathlib import Path

__all__ = [
    "TRACE_LOGGER_NAME",
    "close_trace_log",
    "open_trace_log",
]

TRACE_LOGGER_NAME = "xqluac.trace"

# Set on handlers owned by the trace file so teardown never touches others.
_TRACE_FILE_MARKER = "_xqluac_instruction_trace"


def open_trace_log(
    path: Path,
    *,
    name: str = TRACE_LOGGER_NAME,
    formatter: logging.Formatter | None = None,
) -> logging.Logger:
    """Write the instruction trace of the next conversion to ``path``.

    Trace records stop propagating while the file is open, so a large trace
    does not flood the console.  Reopening replaces the previous trace file.
    """

    path.parent.mkdir(parents=True, exist_ok=True)
    logger = logging.getLogger(name)
    _drop_trace_files(logger)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    handler = logging.FileHandler(path, mode="w", encoding="utf-8")
    setattr(handler, _TRACE_FILE_MARKER, True)
    handler.setFormatter(formatter or logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    return logger


def close_trace_log(logger: logging.Logger) -> None:
    """Flush and detach the trace file, restoring normal propagation."""

    _drop_trace_files(logger)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


def _drop_trace_files(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        if getattr(handler, _TRACE_FILE_MARKER, False):
            logger.removeHandler(handler)
            handler.close()
