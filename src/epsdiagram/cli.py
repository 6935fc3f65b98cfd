"""Command-line interface for rendering diagram models to EPS."""
from __future__ import annotations

import argparse
import json
import logging
import os
import sys
import traceback
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from .composer import RenderingOptions, render_eps, render_to_eps
from .errors import (
    DiagramModelError,
    SinkUnavailableError,
    UnsupportedPaintError,
    WriteFailureError,
)
from .model import load_diagram
from .resources import load_format_reference

logger = logging.getLogger(__name__)


@dataclass
class CliError(Exception):
    code: str
    message: str
    hint: Optional[str] = None
    exit_code: int = 1
    file: Optional[str] = None
    line: Optional[int] = None
    column: Optional[int] = None
    retryable: bool = True


class UsageError(Exception):
    pass


class FriendlyArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:  # pragma: no cover - argparse callback
        raise UsageError(message)


def _build_parser() -> argparse.ArgumentParser:
    parser = FriendlyArgumentParser(
        prog="epsdiagram",
        description="Render laid-out diagram models to Encapsulated PostScript.",
    )
    parser.add_argument("--error-format", choices=["text", "json"], default="text")
    parser.add_argument("--debug", action="store_true", help="Print tracebacks on errors")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log render progress")

    subparsers = parser.add_subparsers(dest="command")

    render_parser = subparsers.add_parser("render", help="Render a diagram JSON file to EPS")
    render_parser.add_argument("input", nargs="?", help="Input diagram .json file")
    render_parser.add_argument("--stdout", action="store_true", help="Write EPS to stdout")
    render_parser.add_argument("-o", "--output", help="Output .eps path")
    render_parser.add_argument(
        "--overwrite",
        action="store_true",
        help="Replace an existing default output file instead of picking a new name",
    )
    render_parser.add_argument(
        "-S", "--no-shadows", action="store_true", help="Turn off the drop-shadow effect"
    )
    render_parser.add_argument(
        "-A",
        "--no-antialias",
        action="store_true",
        help="Accepted for compatibility; EPS output is not rasterized",
    )
    render_parser.add_argument(
        "-d", "--debug-grid", action="store_true", help="Draw the cell grid over the diagram"
    )

    subparsers.add_parser("format", help="Print the diagram JSON format reference")

    return parser


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(format="%(levelname)s %(name)s: %(message)s", stream=sys.stderr)
    logging.getLogger(__package__).setLevel(logging.DEBUG if verbose else logging.WARNING)


def _read_input(path: Optional[str]) -> tuple[str, str, Optional[Path]]:
    if path:
        input_path = Path(path)
        if not input_path.exists():
            raise CliError(
                "E_IO_READ",
                f"input file not found: {input_path}",
                exit_code=2,
                file=str(input_path),
            )
        try:
            return input_path.read_text(encoding="utf-8"), str(input_path), input_path
        except OSError as exc:
            raise CliError(
                "E_IO_READ",
                f"failed to read input file: {input_path}",
                hint=str(exc),
                exit_code=2,
                file=str(input_path),
            )

    if sys.stdin.isatty():
        raise CliError(
            "E_ARGS",
            "no input provided",
            hint="Pass a diagram .json file or pipe JSON into stdin.",
            exit_code=2,
        )

    data = sys.stdin.read()
    if not data.strip():
        raise CliError(
            "E_ARGS",
            "stdin was empty",
            hint="Pipe diagram JSON into stdin.",
            exit_code=2,
        )
    return data, "<stdin>", None


def _target_path(source_path: Path, overwrite: bool) -> Path:
    target = source_path.with_suffix(".eps")
    if overwrite or not target.exists():
        return target
    counter = 2
    while True:
        candidate = target.with_name(f"{target.stem}_{counter}{target.suffix}")
        if not candidate.exists():
            return candidate
        counter += 1


def _error_from_exception(exc: Exception, source_name: Optional[str] = None) -> CliError:
    if isinstance(exc, CliError):
        return exc
    if isinstance(exc, DiagramModelError):
        return CliError(
            exc.code,
            str(exc),
            hint="Run `epsdiagram format` for the expected diagram JSON layout.",
            exit_code=2,
            file=source_name,
            retryable=True,
        )
    if isinstance(exc, SinkUnavailableError):
        return CliError(
            exc.code,
            str(exc),
            hint="Check that the output directory exists and is writable.",
            exit_code=4,
            retryable=True,
        )
    if isinstance(exc, WriteFailureError):
        return CliError(
            exc.code,
            str(exc),
            hint="The output file is incomplete; discard it and retry.",
            exit_code=4,
            retryable=True,
        )
    if isinstance(exc, UnsupportedPaintError):
        return CliError(
            exc.code,
            str(exc),
            hint="Re-run with --debug to see traceback.",
            exit_code=1,
            retryable=False,
        )
    return CliError(
        "E_INTERNAL",
        str(exc) or exc.__class__.__name__,
        hint="Re-run with --debug to see traceback.",
        exit_code=1,
        retryable=False,
    )


def _emit_error(err: CliError, *, error_format: str) -> None:
    if error_format == "json":
        payload = {
            "ok": False,
            "code": err.code,
            "message": err.message,
            "file": err.file,
            "line": err.line,
            "column": err.column,
            "hint": err.hint,
            "retryable": err.retryable,
        }
        sys.stderr.write(json.dumps(payload) + "\n")
        return

    sys.stderr.write(f"error[{err.code}]: {err.message}\n")
    if err.hint:
        sys.stderr.write(f"hint: {err.hint}\n")


def _handle_render(args: argparse.Namespace) -> int:
    if args.stdout and args.output:
        raise CliError(
            "E_ARGS",
            "--stdout and --output are mutually exclusive",
            hint="Choose either --stdout or --output.",
            exit_code=2,
        )

    source, source_name, source_path = _read_input(args.input)
    try:
        diagram = load_diagram(source)
    except DiagramModelError as exc:
        raise _error_from_exception(exc, source_name) from exc

    options = RenderingOptions(
        drop_shadows=not args.no_shadows,
        antialias=not args.no_antialias,
        render_debug_lines=args.debug_grid,
    )

    if args.stdout or (source_path is None and not args.output):
        render_to_eps(diagram, sys.stdout, options)
        return 0

    if args.output:
        output_path = Path(args.output)
    else:
        output_path = _target_path(source_path, args.overwrite)
    logger.debug("rendering %s to %s", source_name, output_path)
    render_eps(diagram, output_path, options)
    print(f"Wrote {output_path}")
    return 0


def main(argv: Optional[Iterable[str]] = None) -> int:
    raw_argv = list(argv) if argv is not None else sys.argv[1:]
    parser = _build_parser()

    if not raw_argv:
        err = CliError(
            "E_ARGS",
            "missing subcommand",
            hint="Use one of: render, format.",
            exit_code=2,
        )
        _emit_error(err, error_format="text")
        return err.exit_code

    debug_enabled = "--debug" in raw_argv or os.getenv("EPSDIAGRAM_DEBUG") == "1"
    error_format = "text"
    if "--error-format" in raw_argv:
        idx = raw_argv.index("--error-format")
        if idx + 1 < len(raw_argv):
            error_format = raw_argv[idx + 1]

    try:
        args = parser.parse_args(raw_argv)
        error_format = args.error_format
        _configure_logging(args.verbose)

        if args.command == "render":
            return _handle_render(args)
        if args.command == "format":
            print(load_format_reference())
            return 0

        raise CliError(
            "E_ARGS",
            "missing subcommand",
            hint="Use one of: render, format.",
            exit_code=2,
        )
    except UsageError as exc:
        err = CliError(
            "E_ARGS",
            str(exc),
            hint="Use subcommands: render, format.",
            exit_code=2,
        )
        _emit_error(err, error_format=error_format)
        return err.exit_code
    except Exception as exc:  # pragma: no cover - exercised in integration tests
        err = _error_from_exception(exc)
        _emit_error(err, error_format=error_format)
        if debug_enabled:
            traceback.print_exc(file=sys.stderr)
        return err.exit_code


if __name__ == "__main__":
    raise SystemExit(main())
