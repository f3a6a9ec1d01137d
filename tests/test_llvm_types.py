import pytest

from blitgen.backend.llvm_types import LLVMTypeEmitter, emit_llvm_module
from blitgen.backend.platform_detect import parse_triple
from blitgen.semantics.registry import build_registry
from blitgen.semantics.typesys import OpaqueType, PrimitiveKind, TypeDescriptor

from conftest import make_enum, make_struct


def _registry():
    vec3 = make_struct("Vec3", ("x", PrimitiveKind.FLOAT), ("y", PrimitiveKind.FLOAT), ("z", PrimitiveKind.FLOAT),
                       namespace="Demo")
    channel = make_enum("Channel", PrimitiveKind.BYTE, namespace="Demo")
    vertex = make_struct("Vertex", ("pos", vec3), ("mask", channel), ("owner", PrimitiveKind.NINT),
                         ("count", PrimitiveKind.STRING, True), namespace="Demo")
    named = make_struct("Named", ("name", PrimitiveKind.STRING), namespace="Demo")
    return build_registry([vertex, named])


def test_struct_bodies(x86_64_linux):
    emitter = LLVMTypeEmitter(x86_64_linux)
    emitter.build(_registry())
    types = emitter.context.identified_types

    assert [str(e) for e in types["Demo.Vec3"].elements] == ["float", "float", "float"]
    assert [str(e) for e in types["Demo.Vertex"].elements] == ['%"Demo.Vec3"', "i8", "i64"]
    assert "Demo.Named" not in types


def test_native_word_follows_target(i686_windows):
    emitter = LLVMTypeEmitter(i686_windows)
    assert str(emitter.ll_type(PrimitiveKind.NINT)) == "i32"
    assert str(emitter.ll_type(TypeDescriptor.primitive(PrimitiveKind.NUINT))) == "i32"
    assert str(emitter.ll_type(PrimitiveKind.ULONG)) == "i64"
    assert str(emitter.ll_type(PrimitiveKind.DOUBLE)) == "double"


def test_unsupported_field_type_is_internal_error(x86_64_linux):
    emitter = LLVMTypeEmitter(x86_64_linux)
    with pytest.raises(RuntimeError, match="BE0003"):
        emitter.ll_type(PrimitiveKind.BOOL)
    with pytest.raises(RuntimeError, match="BE0003"):
        emitter.ll_type(OpaqueType("byte*", "pointer"))


def test_struct_types_are_created_once(x86_64_linux):
    emitter = LLVMTypeEmitter(x86_64_linux)
    vec2 = make_struct("Vec2", ("x", PrimitiveKind.INT), ("y", PrimitiveKind.INT))
    assert emitter.struct_type(vec2) is emitter.struct_type(vec2)


def test_module_text(x86_64_linux):
    source = emit_llvm_module(_registry(), x86_64_linux)
    assert source.hint_name == "blittable_types.ll"
    text = source.content
    assert 'target triple = "x86_64-pc-linux-gnu"' in text
    assert '@"Demo.Vertex.IsBlittable" = constant i1 1' in text
    assert '@"Demo.Named.IsBlittable" = constant i1 0' in text


def test_separate_emitters_do_not_share_types():
    first = LLVMTypeEmitter(parse_triple("x86_64-pc-linux-gnu"))
    second = LLVMTypeEmitter(parse_triple("x86_64-pc-linux-gnu"))
    first.build(_registry())
    assert "Demo.Vertex" not in second.context.identified_types


def test_parse_triple():
    platform = parse_triple("arm64-apple-darwin25.0.0")
    assert (platform.arch, platform.vendor, platform.os, platform.abi) == ("arm64", "apple", "darwin", "")
    assert platform.triple == "arm64-apple-darwin"
    assert platform.pointer_bits == 64
    assert parse_triple("armv7-unknown-linux-gnueabihf").pointer_bits == 32
