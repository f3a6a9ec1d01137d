"""Lark parser setup and AST construction."""
from __future__ import annotations

import re
from functools import lru_cache
from pathlib import Path

from lark import Lark, UnexpectedInput

from blitgen.semantics.ast import Program

GRAMMAR_PATH = Path(__file__).parent.parent / "grammar.lark"


@lru_cache(maxsize=1)
def get_parser() -> Lark:
    """Build the LALR parser once per process; the grammar never changes at runtime."""
    return Lark.open(
        str(GRAMMAR_PATH),
        parser="lalr",
        lexer="contextual",
        propagate_positions=True,
        maybe_placeholders=False,
    )


def improve_parse_error(e: UnexpectedInput) -> str:
    """Reduce lark's parse error text to a one-line detail with hints for common mistakes."""
    error_text = str(e).strip()
    first_line = error_text.splitlines()[0] if error_text else "unexpected input"
    # Drop lark's own location prefix; the reporter renders the location.
    detail = re.sub(r"\s*at line \d+,? col(?:umn)? \d+\.?\s*$", "", first_line)

    expected = getattr(e, "expected", None) or getattr(e, "allowed", None) or set()
    token = getattr(e, "token", None)
    if token is not None and str(token) == "(" and "SEMICOLON" in expected:
        return f"{detail} (member bodies such as methods and properties are not supported)"
    if token is not None and str(token) in {"class", "interface", "record"}:
        return f"{detail} (only struct and enum declarations are supported)"
    return detail


def parse_to_ast(src: str, filename: str = "<input>", dump_parse: bool = False):
    """Parse declaration source into an AST.

    Returns:
        Tuple of (ast, parse_tree).
    """
    from blitgen.semantics.ast_builder import ASTBuilder

    tree = get_parser().parse(src)
    if dump_parse:
        print(tree.pretty())

    ast_builder = ASTBuilder(src, filename)
    return ast_builder.build(tree), tree


def parse_file(path: Path, dump_parse: bool = False) -> tuple[Program, str]:
    """Read and parse one declaration file, returning (ast, source)."""
    src = path.read_text(encoding="utf-8")
    ast, _ = parse_to_ast(src, filename=str(path), dump_parse=dump_parse)
    return ast, src
