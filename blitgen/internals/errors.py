# internals/errors.py
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from blitgen.internals.report import Span, Reporter


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


class Category(str, Enum):
    GENERAL   = "general"
    PARSE     = "parse"
    NAME      = "name"
    TYPE      = "type"
    LAYOUT    = "layout"
    MANIFEST  = "manifest"
    INTERNAL  = "internal"


@dataclass(frozen=True)
class ErrorMessage:
    code: str
    severity: Severity
    text: str
    category: Category = Category.GENERAL
    doc: str = ""


REGISTRY: Dict[str, ErrorMessage] = {}

class _ErrorCatalog:
    def __init__(self, backing: Dict[str, ErrorMessage]) -> None:
        self._registry = backing

    def __getattr__(self, name: str) -> ErrorMessage:
        try:
            return self._registry[name]
        except KeyError as e:
            raise AttributeError(name) from e

    def __getitem__(self, code: str) -> ErrorMessage:
        return self._registry[code]

    def __contains__(self, code: str) -> bool:
        return code in self._registry


ERR = _ErrorCatalog(REGISTRY)

def emit(r: Reporter, em: ErrorMessage, span: Optional[Span], filename: Optional[str] = None, **kwargs) -> None:
    text = format_message(em.code, **kwargs)
    if em.severity == Severity.ERROR:
        r.error(em.code, text, span, filename=filename)
    else:
        r.warn(em.code, text, span, filename=filename)

def raise_internal_error(code: str, **kwargs) -> None:
    """Raise a RuntimeError for internal errors.

    Internal errors indicate bugs in blitgen itself, never problems in the
    declarations being analyzed.

    Raises:
        RuntimeError: Always raises with formatted error message
    """
    raise RuntimeError(f"{code}: {format_message(code, **kwargs)}")


def format_message(code: str, **kwargs) -> str:
    msg = _get(code)
    try:
        return msg.text.format(**kwargs)
    except KeyError as key_error:
        missing = key_error.args[0]
        raise KeyError(f"missing text key '{missing}' for {code} "
                       f"(needed by: {msg.text!r})") from None

#
# --- Helpers
#

def _add(msg: ErrorMessage) -> None:
    if msg.code in REGISTRY:
        raise ValueError(f"duplicate error code {REGISTRY[msg.code]} in {msg}")
    REGISTRY[msg.code] = msg

def _get(code: str) -> ErrorMessage:
    try:
        return REGISTRY[code]
    except KeyError:
        raise KeyError(f"unknown error code: {code}") from None

#
# --- Registry population
#

# Internal errors (blitgen bugs) - BE0xxx range
_add(ErrorMessage("BE0001", Severity.ERROR,
    "illegal verdict transition for '{identity}': {state} -> {target}",
    Category.INTERNAL, "The verdict cache only moves Unvisited -> InProgress -> Resolved."))

_add(ErrorMessage("BE0002", Severity.ERROR,
    "unexpected parse tree node '{node}'",
    Category.INTERNAL, "The AST builder met a grammar rule it does not handle."))

_add(ErrorMessage("BE0003", Severity.ERROR,
    "unsupported field type for '{emitter}': {type}",
    Category.INTERNAL, "An emitter was handed a field type that the analysis should have rejected."))

# Declaration errors - BE1xxx range
_add(ErrorMessage("BE1001", Severity.ERROR,
    "type '{name}' is already declared (first declared in {prev_loc})",
    Category.NAME, "Type identities (namespace + name) must be unique across all input files."))

_add(ErrorMessage("BE1002", Severity.ERROR,
    "field '{name}' is declared more than once in '{type_name}'",
    Category.NAME, "Field names must be unique within a struct."))

_add(ErrorMessage("BE1003", Severity.ERROR,
    "enum member '{name}' is declared more than once in '{type_name}'",
    Category.NAME, "Enum member names must be unique within an enum."))

_add(ErrorMessage("BE1004", Severity.ERROR,
    "enum '{name}' has non-integral underlying type '{type}'",
    Category.TYPE, "Enum bases must be one of byte, sbyte, short, ushort, int, uint, long, ulong, nint or nuint."))

# Parse errors - BE2xxx range
_add(ErrorMessage("BE2001", Severity.ERROR,
    "syntax error: {detail}",
    Category.PARSE, "The declaration file does not match the supported declaration grammar."))

_add(ErrorMessage("BE2002", Severity.ERROR,
    "cannot decode '{path}' as UTF-8: {reason}",
    Category.PARSE, "Declaration files must be UTF-8 encoded."))

# Manifest format errors - BE3xxx range
_add(ErrorMessage("BE3001", Severity.ERROR,
    "'{path}' is not a blitgen manifest (bad magic)",
    Category.MANIFEST, "Manifest files start with the BLITMAN magic bytes."))

_add(ErrorMessage("BE3002", Severity.ERROR,
    "'{path}' has manifest version {version}, supported version is {supported}",
    Category.MANIFEST, "The manifest was written by an incompatible blitgen release."))

_add(ErrorMessage("BE3003", Severity.ERROR,
    "'{path}' is truncated or corrupt: {reason}",
    Category.MANIFEST, "The manifest metadata could not be read or decoded."))

# Warnings - BWxxxx range
_add(ErrorMessage("BW1001", Severity.WARNING,
    "unknown type '{type}' for field '{field}' of '{type_name}', treated as not blittable",
    Category.NAME, "The field type does not name a primitive or a struct/enum declared in the inputs."))

_add(ErrorMessage("BW1002", Severity.WARNING,
    "generic {kind} '{name}' is not supported and was skipped",
    Category.TYPE, "Parameterized record types are outside the analysis."))

_add(ErrorMessage("BW1003", Severity.WARNING,
    "type '{type}' for field '{field}' is ambiguous between {candidates}, treated as not blittable",
    Category.NAME, "More than one using directive provides a type with this name."))

_add(ErrorMessage("BW1004", Severity.WARNING,
    "struct '{name}' declares a sequential layout but is not partial; no IsBlittable accessor is generated",
    Category.LAYOUT, "Only partial structs can receive a generated accessor."))

_add(ErrorMessage("BW1005", Severity.WARNING,
    "partial struct '{name}' has [StructLayout({layout})]; only LayoutKind.Sequential structs get an IsBlittable accessor",
    Category.LAYOUT, "Candidates must spell the layout argument as LayoutKind.Sequential."))
