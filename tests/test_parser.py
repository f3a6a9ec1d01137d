import pytest
from lark import UnexpectedInput

from blitgen.internals.parse_errors import handle_parse_exception
from blitgen.internals.parser import parse_file, parse_to_ast
from blitgen.internals.report import Reporter
from blitgen.semantics.ast import EnumDecl, StructDecl


def test_parse_fixture_file(fixtures_dir):
    program, source = parse_file(fixtures_dir / "interop.cs")
    assert source.startswith("using System;")
    assert [d.name for d in program.declarations] == ["Channel", "Vec3", "Vertex", "Named", "Plain"]
    assert [u.namespace for u in program.usings] == ["System", "System.Runtime.InteropServices"]


def test_namespace_block_scope(fixtures_dir):
    program, _ = parse_file(fixtures_dir / "interop.cs")
    vertex = program.structs[1]
    assert vertex.qualified_name == "Demo.Interop.Vertex"
    assert vertex.scope.usings == ("System", "System.Runtime.InteropServices")
    assert [alias for alias, _ in vertex.scope.aliases] == ["Handle"]
    assert vertex.is_partial


def test_multi_declarator_fields():
    program, _ = parse_to_ast("struct V { public float X, Y = 1.5f, Z; }")
    fields = program.structs[0].fields
    assert [f.name for f in fields] == ["X", "Y", "Z"]
    assert all(str(f.ty) == "float" for f in fields)
    assert fields[1].initializer == "1.5f"


def test_fixed_size_buffers():
    program, _ = parse_to_ast("unsafe struct B { public fixed byte data[16], tail[N * 2]; int n; }")
    data, tail, n = program.structs[0].fields
    assert data.modifiers == ["public", "fixed"]
    assert (data.fixed_size, tail.fixed_size, n.fixed_size) == ("16", "N * 2", None)
    assert str(data.ty) == "byte"
    assert data.initializer is None


def test_static_and_const_fields():
    program, _ = parse_to_ast("struct S { static int a; const int b = 1; readonly int c; }")
    assert [f.is_static for f in program.structs[0].fields] == [True, True, False]


def test_attribute_arguments_are_kept_as_text():
    program, _ = parse_to_ast(
        "[StructLayout(LayoutKind . Sequential, Pack = 1, Size = 16)] partial struct S { }"
    )
    attr = program.structs[0].attributes[0]
    assert attr.name == "StructLayout"
    assert [a.text for a in attr.positional] == ["LayoutKind . Sequential"]
    assert [(a.name, a.text) for a in attr.args[1:]] == [("Pack", "1"), ("Size", "16")]


def test_multiple_attribute_sections():
    program, _ = parse_to_ast(
        "[Serializable][System.Runtime.InteropServices.StructLayout(0)] struct S { }"
    )
    attrs = program.structs[0].attributes
    assert [a.name for a in attrs] == ["Serializable", "System.Runtime.InteropServices.StructLayout"]
    assert attrs[1].simple_name == "StructLayout"


def test_type_suffixes_and_generics():
    program, _ = parse_to_ast(
        "unsafe struct S { byte* p; int[] a; int[,] m; int? n; Span<byte> s; }"
    )
    assert [str(f.ty) for f in program.structs[0].fields] == ["byte*", "int[]", "int[,]", "int?", "Span<byte>"]


def test_file_scoped_namespace():
    program, _ = parse_to_ast("using System;\nnamespace A.B;\nstruct S { int x; }\nenum E { One }\n")
    assert [d.qualified_name for d in program.declarations] == ["A.B.S", "A.B.E"]


def test_nested_namespace_blocks():
    src = "namespace A { namespace B { struct S { } } struct T { } }"
    program, _ = parse_to_ast(src)
    assert [d.qualified_name for d in program.declarations] == ["A.B.S", "A.T"]


def test_using_inside_namespace_only_applies_there():
    src = "namespace A { using Lib; struct S { } } struct T { }"
    program, _ = parse_to_ast(src)
    s, t = program.declarations
    assert s.scope.usings == ("Lib",)
    assert t.scope.usings == ()


def test_enum_declaration():
    program, _ = parse_to_ast("enum Flags : uint { None = 0, A = 1 << 0, B = ~A, }")
    enum = program.declarations[0]
    assert isinstance(enum, EnumDecl)
    assert str(enum.base) == "uint"
    assert [(m.name, m.value) for m in enum.members] == [("None", "0"), ("A", "1 << 0"), ("B", "~A")]


def test_generic_declarations_keep_type_params():
    program, _ = parse_to_ast("struct Pair<TFirst, TSecond> { TFirst a; TSecond b; }")
    decl = program.declarations[0]
    assert isinstance(decl, StructDecl)
    assert decl.type_params == ["TFirst", "TSecond"]


def test_comments_and_preprocessor_lines_are_ignored():
    src = "#nullable enable\n// line\n/* block\n comment */ struct S { int x; /* inline */ }\n"
    program, _ = parse_to_ast(src)
    assert program.structs[0].fields[0].name == "x"


def test_verbatim_identifiers():
    program, _ = parse_to_ast("struct @struct { int @int; }")
    decl = program.structs[0]
    assert decl.name == "struct"
    assert decl.fields[0].name == "int"


def test_name_spans_point_at_identifiers():
    program, _ = parse_to_ast("namespace N\n{\n    struct Point { int x; }\n}\n")
    span = program.structs[0].name_span
    assert (span.line, span.col) == (3, 12)


def test_syntax_error_becomes_diagnostic(fixtures_dir):
    path = fixtures_dir / "broken.cs"
    src = path.read_text(encoding="utf-8")
    reporter = Reporter(source=src, filename=str(path))
    with pytest.raises(UnexpectedInput) as info:
        parse_to_ast(src, filename=str(path))

    assert handle_parse_exception(info.value, reporter)
    assert reporter.codes == ["BE2001"]
    diag = reporter.items[0]
    assert diag.span.line == 6
    assert diag.message.startswith("syntax error")


def test_methods_are_rejected_with_hint():
    reporter = Reporter()
    with pytest.raises(UnexpectedInput) as info:
        parse_to_ast("struct S { int Get() { return 1; } }")
    handle_parse_exception(info.value, reporter)
    assert "not supported" in reporter.items[0].message


def test_unrelated_exceptions_are_not_handled():
    assert handle_parse_exception(ValueError("boom"), Reporter()) is False
