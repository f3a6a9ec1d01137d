# semantics/passes/blittable.py
"""Recursive, memoized blittability analysis.

A struct is blittable when it declares a sequential layout and every instance
field is a whitelisted fixed-width primitive, an enum stored as one, or
another blittable struct. Verdicts are memoized per analysis pass in a
`VerdictCache` that also serves as the cycle guard: a type re-entered while
it is still being evaluated resolves to False.
"""
from __future__ import annotations
from enum import Enum
from typing import Dict, Optional

from blitgen.internals.errors import raise_internal_error
from blitgen.semantics.typesys import (
    BLITTABLE_PRIMITIVES, FieldType, PrimitiveKind, TypeDescriptor, TypeKind,
)


class Mark(Enum):
    UNVISITED = "unvisited"
    IN_PROGRESS = "in-progress"
    RESOLVED = "resolved"


class VerdictCache:
    """Per-pass verdict state keyed by type identity.

    Each identity moves Unvisited -> InProgress -> Resolved(bool), or straight
    from Unvisited to Resolved for types rejected without looking at their
    fields. Resolved is terminal.
    """

    def __init__(self) -> None:
        self._marks: Dict[str, Mark] = {}
        self._verdicts: Dict[str, bool] = {}
        self.traversals = 0   # Types whose fields were walked
        self.hits = 0         # Queries answered from a resolved verdict

    def state(self, identity: str) -> Mark:
        return self._marks.get(identity, Mark.UNVISITED)

    def verdict(self, identity: str) -> Optional[bool]:
        """Resolved verdict for `identity`, or None while unresolved."""
        return self._verdicts.get(identity)

    def enter(self, identity: str) -> None:
        state = self.state(identity)
        if state is not Mark.UNVISITED:
            raise_internal_error("BE0001", identity=identity, state=state.value, target=Mark.IN_PROGRESS.value)
        self._marks[identity] = Mark.IN_PROGRESS
        self.traversals += 1

    def resolve(self, identity: str, value: bool) -> bool:
        state = self.state(identity)
        if state is Mark.RESOLVED:
            raise_internal_error("BE0001", identity=identity, state=state.value, target=Mark.RESOLVED.value)
        self._marks[identity] = Mark.RESOLVED
        self._verdicts[identity] = value
        return value

    def resolved(self) -> Dict[str, bool]:
        """All resolved verdicts, in resolution order."""
        return dict(self._verdicts)

    def __contains__(self, identity: str) -> bool:
        return identity in self._marks

    def __len__(self) -> int:
        return len(self._marks)


def is_builtin_blittable(kind: Optional[PrimitiveKind]) -> bool:
    return kind in BLITTABLE_PRIMITIVES


def evaluate(type_desc: TypeDescriptor, cache: VerdictCache) -> bool:
    """Decide whether `type_desc` is blittable, memoizing through `cache`.

    Never raises for malformed input: anything the analysis cannot vouch for
    is not blittable.
    """
    identity = type_desc.identity

    if type_desc.kind is not TypeKind.STRUCT or not type_desc.has_fixed_layout:
        if cache.state(identity) is Mark.UNVISITED:
            cache.resolve(identity, False)
        return False

    match cache.state(identity):
        case Mark.RESOLVED:
            cache.hits += 1
            return cache.verdict(identity)
        case Mark.IN_PROGRESS:
            # Re-entered through a cycle
            return False

    cache.enter(identity)
    for fd in type_desc.fields:
        if fd.is_static:
            continue
        if not _field_type_passes(fd.field_type, cache):
            return cache.resolve(identity, False)
    return cache.resolve(identity, True)


def _field_type_passes(field_type: FieldType, cache: VerdictCache) -> bool:
    match field_type:
        case PrimitiveKind():
            return is_builtin_blittable(field_type)
        case TypeDescriptor(kind=TypeKind.STRUCT):
            return evaluate(field_type, cache)
        case TypeDescriptor(kind=TypeKind.ENUM | TypeKind.PRIMITIVE):
            return is_builtin_blittable(field_type.underlying)
        case _:
            # OpaqueType, or anything the catalog did not recognize
            return False
