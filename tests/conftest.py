from pathlib import Path

import pytest

from blitgen.backend.platform_detect import parse_triple
from blitgen.internals.parser import parse_to_ast
from blitgen.internals.report import Reporter
from blitgen.semantics.passes.collect import collect_universe
from blitgen.semantics.typesys import FieldDescriptor, PrimitiveKind, TypeDescriptor, TypeKind

FIXTURES = Path(__file__).parent / "fixtures"


def make_struct(name, *fields, namespace="", layout=True):
    """Struct descriptor; `fields` are (name, type) or (name, type, is_static) tuples."""
    desc = TypeDescriptor(name=name, kind=TypeKind.STRUCT, namespace=namespace,
                          has_fixed_layout=layout, is_partial=True)
    set_fields(desc, *fields)
    return desc


def set_fields(desc, *fields):
    desc.fields = tuple(FieldDescriptor(f[0], f[1], is_static=f[2] if len(f) > 2 else False) for f in fields)
    return desc


def make_enum(name, underlying=PrimitiveKind.INT, namespace=""):
    return TypeDescriptor(name=name, kind=TypeKind.ENUM, namespace=namespace, underlying=underlying)


def collect(*sources):
    """Parse (filename, text) pairs or bare texts and build a universe; returns (universe, reporter)."""
    reporter = Reporter()
    programs = []
    for i, source in enumerate(sources):
        filename, text = source if isinstance(source, tuple) else (f"input{i}.cs", source)
        reporter.enter_file(filename, text)
        program, _ = parse_to_ast(text, filename=filename)
        programs.append(program)
    return collect_universe(programs, reporter), reporter


@pytest.fixture
def fixtures_dir():
    return FIXTURES


@pytest.fixture
def x86_64_linux():
    return parse_triple("x86_64-pc-linux-gnu")


@pytest.fixture
def i686_windows():
    return parse_triple("i686-pc-windows-msvc")
