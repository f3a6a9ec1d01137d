from __future__ import annotations
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from lark import Token

class C:
    """ANSI color/style escape codes."""
    RESET = "\x1b[0m"
    BOLD  = "\x1b[1m"
    DIM   = "\x1b[2m"
    RED   = "\x1b[31m"
    YELLOW = "\x1b[33m"
    CYAN  = "\x1b[36m"
    GRAY  = "\x1b[90m"

@dataclass(frozen=True)
class Span:
    line: int
    col: int
    end_line: int
    end_col: int

@dataclass
class Diagnostic:
    kind: str
    code: str
    message: str
    span: Optional[Span] = None
    filename: Optional[str] = None  # Declaration file the diagnostic belongs to

def span_of(t: Any) -> Optional[Span]:
    m = getattr(t, "meta", None)
    if m is not None and not getattr(m, "empty", False):
        return Span(m.line, m.column, m.end_line, m.end_column)
    if isinstance(t, Token):
        line = getattr(t, "line", None)
        col = getattr(t, "column", None)
        if line is not None and col is not None:
            return Span(line, col, t.end_line or line, t.end_column or col)
    return None


def _display_name(filename: str) -> str:
    """Render a path relative to the cwd with ./ prefix, or its basename."""
    try:
        rel_path = Path(filename).resolve().relative_to(Path.cwd())
        return f"./{rel_path}"
    except ValueError:
        return Path(filename).name


class Reporter:
    """Collects diagnostics for one analysis pass over one or more declaration files.

    The reporter tracks the file currently being processed; diagnostics emitted
    while a file is current are attributed to it. Source text of every file seen
    is kept so snippets can be rendered for any diagnostic.
    """

    def __init__(self, source: Optional[str] = None, filename: str = "<input>") -> None:
        self.filename = filename
        self.sources: Dict[str, str] = {}
        if source is not None:
            self.sources[filename] = source
        self.items: List[Diagnostic] = []

    @property
    def source(self) -> Optional[str]:
        return self.sources.get(self.filename)

    def enter_file(self, filename: str, source: str) -> None:
        """Make `filename` the current file for subsequent diagnostics."""
        self.filename = filename
        self.sources[filename] = source

    def error(self, code: str, msg: str, span: Optional[Span], filename: Optional[str] = None):
        self.items.append(Diagnostic("error", code, msg, span, filename=filename or self.filename))

    def warn(self, code: str, msg: str, span: Optional[Span], filename: Optional[str] = None):
        self.items.append(Diagnostic("warning", code, msg, span, filename=filename or self.filename))

    @property
    def has_errors(self) -> bool:
        return any(d.kind == "error" for d in self.items)

    @property
    def has_warnings(self) -> bool:
        return any(d.kind == "warning" for d in self.items)

    @property
    def codes(self) -> List[str]:
        return [d.code for d in self.items]

    def exit_code(self) -> int:
        """0 when clean, 1 when only warnings were reported, 2 on errors."""
        if self.has_errors:
            return 2
        return 1 if self.has_warnings else 0

    def _line_text(self, d: Diagnostic) -> str:
        text = self.sources.get(d.filename or self.filename)
        if text is None or d.span is None:
            return ""
        lines = text.splitlines()
        idx = d.span.line - 1
        return lines[idx] if 0 <= idx < len(lines) else ""

    def format(self, use_color: bool = True, use_unicode: bool = True) -> str:
        """Render all diagnostics.

        use_color   → ANSI colorize location/kind/guide/markers
        use_unicode → use │ / ╰ / ╯ guides around the source snippet
        """
        out: List[str] = []

        for d in self.items:
            filename = _display_name(d.filename or self.filename)
            loc = f"{filename}:{d.span.line}:{d.span.col}" if d.span else filename

            # Ensure message ends with period
            message = d.message if d.message.endswith('.') else f"{d.message}."

            if use_color:
                kind = f"{C.BOLD}{C.RED}error{C.RESET}" if d.kind == "error" else f"{C.BOLD}{C.YELLOW}warning{C.RESET}"
                head = f"{C.CYAN}{loc}{C.RESET}: {kind} [{C.DIM}{d.code}{C.RESET}]: {message}"
            else:
                head = f"{loc}: {d.kind} [{d.code}]: {message}"

            if d.span is None:
                out.append(head)
                continue

            line_text = self._line_text(d)
            start = max(1, d.span.col)

            if use_unicode:
                if use_color:
                    marker_color = C.RED if d.kind == "error" else C.YELLOW
                    out.append(f"{C.GRAY}  ╭──┤ {C.RESET}{head}")
                    out.append(f"{C.GRAY}  │{C.RESET} {line_text}")
                    out.append(f"{C.GRAY}  │{C.RESET} {marker_color}{' ' * (start - 1)}┯{C.RESET}")
                    out.append(f"{C.GRAY}  ╰{'─' * start}{C.RESET}{marker_color}╯{C.RESET}")
                else:
                    out.append(f"  ╭──┤ {head}")
                    out.append(f"  │  {line_text}")
                    out.append(f"  │  {' ' * (start - 1)}┯")
                    out.append(f"  ╰{'─' * start}╯")
            else:
                # ASCII fallback: header on top, then source and caret
                out.append(head)
                out.append(f"  | {line_text}")
                out.append(f"  ` {' ' * (start - 1)}^")

        return "\n".join(out)

    def print(self, stream=None, use_color: Optional[bool] = None, use_unicode: Optional[bool] = None) -> None:
        """Print diagnostics to `stream` (default: sys.stderr).

        Color is auto-enabled for TTY unless NO_COLOR or TERM=dumb.
        Unicode guides are auto-enabled for TTY unless NO_UNICODE or TERM=dumb.
        """
        stream = stream or sys.stderr
        is_tty = getattr(stream, "isatty", lambda: False)()
        dumb = os.getenv("TERM") == "dumb"

        if use_color is None:
            use_color = bool(is_tty and os.getenv("NO_COLOR") is None and not dumb)
        if use_unicode is None:
            use_unicode = bool(is_tty and os.getenv("NO_UNICODE") is None and not dumb)

        text = self.format(use_color=use_color, use_unicode=use_unicode)
        if text:
            print(text, file=stream)
