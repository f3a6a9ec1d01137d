import pytest

from blitgen.semantics.passes import Mark, VerdictCache, evaluate, is_builtin_blittable
from blitgen.semantics.typesys import (
    BLITTABLE_PRIMITIVES, OpaqueType, PrimitiveKind, TypeDescriptor, TypeKind,
)

from conftest import make_enum, make_struct, set_fields


def test_primitive_field_with_layout_is_blittable():
    p = make_struct("P", ("x", PrimitiveKind.INT))
    assert evaluate(p, VerdictCache()) is True


def test_missing_layout_is_not_blittable():
    p = make_struct("P", ("x", PrimitiveKind.INT), layout=False)
    cache = VerdictCache()
    assert evaluate(p, cache) is False
    assert cache.state("P") is Mark.RESOLVED
    assert cache.traversals == 0


def test_second_query_is_a_cache_hit():
    p = make_struct("P", ("x", PrimitiveKind.INT), ("y", PrimitiveKind.DOUBLE))
    cache = VerdictCache()

    first = evaluate(p, cache)
    assert cache.traversals == 1
    second = evaluate(p, cache)

    assert first is second is True
    assert cache.traversals == 1
    assert cache.hits == 1


def test_direct_self_reference_terminates_false():
    s = make_struct("S")
    set_fields(s, ("other", s))
    cache = VerdictCache()
    assert evaluate(s, cache) is False
    assert cache.verdict("S") is False


def test_mutual_recursion_both_false():
    a = make_struct("A")
    b = make_struct("B")
    set_fields(a, ("b", b))
    set_fields(b, ("a", a))
    cache = VerdictCache()

    assert evaluate(a, cache) is False
    assert evaluate(b, cache) is False
    # B was resolved while A was being evaluated
    assert cache.traversals == 2


def test_static_only_struct_is_vacuously_blittable():
    q = make_struct("Q", ("shared", PrimitiveKind.STRING, True))
    assert evaluate(q, VerdictCache()) is True


def test_static_fields_are_skipped_among_instance_fields():
    q = make_struct("Q", ("cache", OpaqueType("object[]", "array"), True), ("x", PrimitiveKind.UINT))
    assert evaluate(q, VerdictCache()) is True


def test_empty_struct_with_layout_is_blittable():
    assert evaluate(make_struct("Empty"), VerdictCache()) is True


def _chain(n, leaf_type):
    levels = [make_struct("L0", ("x", leaf_type))]
    for i in range(1, n + 1):
        levels.append(make_struct(f"L{i}", ("v", levels[-1])))
    return levels


def test_nested_chain_propagates_true():
    levels = _chain(6, PrimitiveKind.INT)
    cache = VerdictCache()
    assert all(evaluate(level, cache) for level in reversed(levels))
    assert cache.traversals == len(levels)


def test_nested_chain_propagates_false():
    levels = _chain(6, PrimitiveKind.BOOL)
    cache = VerdictCache()
    assert not any(evaluate(level, cache) for level in levels)


def test_enum_field_with_whitelisted_underlying_type():
    some_enum = make_enum("SomeEnum", PrimitiveKind.INT)
    e = make_struct("E", ("e", some_enum))
    assert evaluate(e, VerdictCache()) is True


def test_enum_field_without_usable_underlying_type():
    broken = make_enum("Broken", None)
    e = make_struct("E", ("e", broken))
    assert evaluate(e, VerdictCache()) is False


def test_primitive_descriptor_field_uses_its_kind():
    e = make_struct("E", ("h", TypeDescriptor.primitive(PrimitiveKind.NINT)))
    assert evaluate(e, VerdictCache()) is True


@pytest.mark.parametrize("kind", [PrimitiveKind.BOOL, PrimitiveKind.CHAR, PrimitiveKind.DECIMAL,
                                  PrimitiveKind.STRING, PrimitiveKind.OBJECT])
def test_non_whitelisted_primitives(kind):
    assert not is_builtin_blittable(kind)
    assert evaluate(make_struct("P", ("x", kind)), VerdictCache()) is False


def test_whitelist_has_twelve_kinds():
    assert len(BLITTABLE_PRIMITIVES) == 12
    assert PrimitiveKind.NINT in BLITTABLE_PRIMITIVES
    assert PrimitiveKind.BOOL not in BLITTABLE_PRIMITIVES


def test_opaque_field_is_not_blittable():
    p = make_struct("P", ("data", OpaqueType("byte*", "pointer")))
    assert evaluate(p, VerdictCache()) is False


def test_field_struct_without_layout_fails_parent():
    inner = make_struct("Inner", ("x", PrimitiveKind.INT), layout=False)
    outer = make_struct("Outer", ("inner", inner))
    cache = VerdictCache()
    assert evaluate(outer, cache) is False
    assert cache.verdict("Inner") is False


def test_fail_fast_leaves_later_fields_unvisited():
    later = make_struct("Later", ("x", PrimitiveKind.INT))
    p = make_struct("P", ("bad", PrimitiveKind.BOOL), ("later", later))
    cache = VerdictCache()
    assert evaluate(p, cache) is False
    assert "Later" not in cache


def test_non_struct_query_resolves_false():
    cache = VerdictCache()
    assert evaluate(make_enum("Color"), cache) is False
    assert cache.state("Color") is Mark.RESOLVED
    assert cache.verdict("Color") is False


def test_verdicts_are_keyed_by_identity():
    a = make_struct("Point", ("x", PrimitiveKind.INT), namespace="Geo")
    b = make_struct("Point", ("x", PrimitiveKind.BOOL), namespace="Ui")
    cache = VerdictCache()
    assert evaluate(a, cache) is True
    assert evaluate(b, cache) is False
    assert cache.resolved() == {"Geo.Point": True, "Ui.Point": False}


def test_cache_rejects_illegal_transitions():
    cache = VerdictCache()
    cache.enter("T")
    with pytest.raises(RuntimeError, match="BE0001"):
        cache.enter("T")
    cache.resolve("T", True)
    with pytest.raises(RuntimeError, match="BE0001"):
        cache.resolve("T", False)
    assert cache.verdict("T") is True


def test_type_kind_is_not_changed_by_evaluation():
    p = make_struct("P", ("x", PrimitiveKind.INT))
    fields = p.fields
    evaluate(p, VerdictCache())
    assert p.kind is TypeKind.STRUCT
    assert p.fields is fields
