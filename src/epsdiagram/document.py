"""EPS document sink: header, trailer, directive lines and string escaping."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, TextIO, Tuple, Union

from .errors import AlreadyClosedError, SinkUnavailableError, WriteFailureError

logger = logging.getLogger(__name__)

EPS_VERSION_MARKER = "%!PS-Adobe-3.0 EPSF-3.0"
CREATOR = "epsdiagram"

Number = Union[int, float]
Point = Tuple[Number, Number]


def format_number(value: Number) -> str:
    """Format a number the way PostScript reads it back without loss."""
    if isinstance(value, bool):
        raise TypeError("booleans are not PostScript numbers")
    if isinstance(value, int):
        return str(value)
    return repr(float(value))


def escape_text(payload: str) -> str:
    """Escape a string for use inside a PostScript ``( ... )`` literal."""
    parts = []
    for ch in payload:
        if ch in "()\\":
            parts.append("\\" + ch)
        elif ord(ch) > 128:
            try:
                byte = ch.encode("latin-1")[0]
            except UnicodeEncodeError:
                parts.append("?")
                continue
            parts.append(f"\\{byte:03o}")
        else:
            parts.append(ch)
    return "".join(parts)


def open_sink(path: Union[str, Path]) -> TextIO:
    """Open ``path`` for writing an EPS document."""
    target = Path(path)
    try:
        return target.open("w", encoding="latin-1", newline="\n")
    except OSError as exc:
        raise SinkUnavailableError(f"cannot open output file: {target} ({exc.strerror or exc})") from exc


class DocumentWriter:
    """Single sink for all EPS output of one render.

    The writer emits the fixed preamble on :meth:`open`, one directive per
    line afterwards, and the trailer on :meth:`close`. It releases the sink
    exactly once, either through :meth:`close` or :meth:`abort`. Used as a
    context manager it closes on normal exit and aborts when an exception
    escapes the block.
    """

    def __init__(self, sink: TextIO, *, owns_sink: bool = True) -> None:
        self._sink = sink
        self._owns_sink = owns_sink
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def open(self, low: Point, high: Point) -> None:
        lx, ly = low
        hx, hy = high
        self._write_line(EPS_VERSION_MARKER)
        self._write_line(
            "%%BoundingBox: "
            + " ".join(str(int(v)) for v in (lx, ly, hx, hy))
        )
        self._write_line(
            "%%HiResBoundingBox: "
            + " ".join(format_number(float(v)) for v in (lx, ly, hx, hy))
        )
        self._write_line(f"%%Creator: {CREATOR}")
        self._write_line("%%EndComments")
        self._write_line("%%BeginProlog")
        self._write_line("%%EndProlog")

    def write_directive(self, *tokens: Union[str, Number]) -> None:
        self._write_line(
            " ".join(t if isinstance(t, str) else format_number(t) for t in tokens)
        )

    def write_text(self, payload: str) -> None:
        self._write_line(f"({escape_text(payload)}) show")

    def close(self) -> None:
        if self._closed:
            return
        try:
            self._write_line("showpage")
            self._write_line("%%Trailer")
            self._write_line("%%EOF")
            try:
                self._sink.flush()
            except OSError as exc:
                raise WriteFailureError(f"failed to flush EPS output: {exc}") from exc
        finally:
            self._release()

    def abort(self) -> None:
        """Release the sink without writing the trailer."""
        if self._closed:
            return
        logger.debug("aborting EPS document before trailer")
        try:
            self._release()
        except WriteFailureError as exc:
            # The failure that caused the abort is the one to report.
            logger.warning("%s", exc)

    def _release(self) -> None:
        self._closed = True
        if not self._owns_sink:
            return
        try:
            self._sink.close()
        except OSError as exc:
            raise WriteFailureError(f"failed to close EPS output: {exc}") from exc

    def _write_line(self, line: str) -> None:
        if self._closed:
            raise AlreadyClosedError("EPS document is already closed")
        try:
            self._sink.write(line + "\n")
        except OSError as exc:
            raise WriteFailureError(f"failed to write EPS output: {exc}") from exc

    def __enter__(self) -> "DocumentWriter":
        return self

    def __exit__(self, exc_type, exc, tb) -> Optional[bool]:
        if exc_type is None:
            self.close()
        else:
            self.abort()
        return None
