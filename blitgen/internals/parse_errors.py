"""Shared parse exception handling for the pipeline and CLI."""
from __future__ import annotations

from typing import Optional

from lark import UnexpectedInput

from blitgen.internals.report import Reporter, Span


def handle_parse_exception(exc: Exception, reporter: Reporter, filename: Optional[str] = None) -> bool:
    """Handle a parse exception by emitting diagnostics through the reporter.

    Args:
        exc: The exception to handle.
        reporter: Reporter for error/warning collection.
        filename: File the exception was raised for (default: reporter's current file).

    Returns:
        True if the exception was handled, False otherwise.
    """
    from blitgen.internals import errors as er
    from blitgen.internals.parser import improve_parse_error

    if isinstance(exc, UnexpectedInput):
        line = getattr(exc, "line", None)
        col = getattr(exc, "column", None)
        span = Span(line, col, line, col) if isinstance(line, int) and line > 0 and isinstance(col, int) else None
        er.emit(reporter, er.ERR.BE2001, span, filename=filename, detail=improve_parse_error(exc))
        return True

    return False
