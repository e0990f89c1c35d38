"""Command line entry point: ``xqluac INPUT OUTPUT``."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from .converter import convert_file
from .exceptions import ConversionError
from .logging_config import TRACE_LOGGER_NAME, close_trace_log, open_trace_log
from .report import ConversionReport
from .verify import verify_file

LOGGER = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="xqluac",
        description="Convert Fate/Z dialect Lua 5.1 bytecode into stock Lua 5.1 bytecode",
    )
    parser.add_argument("input", type=Path, help="Dialect bytecode file to read")
    parser.add_argument("output", type=Path, help="Stock Lua 5.1 bytecode file to write")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging")
    parser.add_argument(
        "--trace-log",
        type=Path,
        default=None,
        help="Write a per-instruction remapping trace to this file",
    )
    parser.add_argument(
        "--report",
        type=Path,
        default=None,
        help="Write a JSON conversion report to this file",
    )
    parser.add_argument(
        "--verify",
        action="store_true",
        help="Load the converted output with a stock Lua 5.1 runtime (requires lupa)",
    )
    return parser


def _write_report(path: Path, report: ConversionReport) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(report.to_json(), indent=2) + "\n", encoding="utf-8")
    LOGGER.info("Wrote JSON report to %s", path)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(message)s",
        stream=sys.stdout,
    )

    trace_logger = logging.getLogger(TRACE_LOGGER_NAME)
    if args.trace_log:
        open_trace_log(args.trace_log)
    else:
        trace_logger.setLevel(logging.INFO)

    report = ConversionReport()
    status = EXIT_OK
    try:
        convert_file(args.input, args.output, report)
        LOGGER.debug("%s", report.to_text())
        if args.verify:
            result = verify_file(args.output)
            if not result.ok:
                LOGGER.error("Converted output failed to load: %s", result.message)
                status = EXIT_FAILURE
            else:
                LOGGER.info("Lua 5.1 accepted %s", args.output)
    except (ConversionError, OSError) as exc:
        LOGGER.error("%s", exc)
        status = EXIT_FAILURE
    finally:
        close_trace_log(trace_logger)

    if args.report:
        _write_report(args.report, report)
    return status


if __name__ == "__main__":  # pragma: no cover - CLI wrapper
    raise SystemExit(main())
