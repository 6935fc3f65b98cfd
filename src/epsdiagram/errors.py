"""Exception types raised while loading and rendering diagrams."""
from __future__ import annotations


class EpsDiagramError(Exception):
    """Base class for epsdiagram failures, carrying a stable code for CLI mapping."""

    code = "E_INTERNAL"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class SinkUnavailableError(EpsDiagramError):
    """Raised when the output destination cannot be opened."""

    code = "E_SINK_UNAVAILABLE"


class WriteFailureError(EpsDiagramError):
    """Raised when the output sink fails part way through a document."""

    code = "E_IO_WRITE"


class AlreadyClosedError(EpsDiagramError):
    """Raised on any write to a document that has already been closed."""

    code = "E_CLOSED"


class UnsupportedPaintError(EpsDiagramError, TypeError):
    """Raised when a caller asks for paint, stroke or font outside the EPS subset."""

    code = "E_UNSUPPORTED_PAINT"


class DiagramModelError(EpsDiagramError, ValueError):
    """Raised when a serialized diagram model is malformed."""

    code = "E_MODEL"
