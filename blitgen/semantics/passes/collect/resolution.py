# semantics/passes/collect/resolution.py
"""Name resolution for field types and enum bases."""
from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Optional, Tuple, Union

from blitgen.semantics.ast import DeclScope, TypeRefExpr
from blitgen.semantics.typesys import (
    CLR_NAMES, KEYWORD_ALIASES, FieldType, OpaqueType, PrimitiveKind, TypeDescriptor,
)

_SUFFIX_REASONS = {"*": "pointer", "?": "nullable"}


@dataclass(frozen=True)
class Unresolved:
    """No usable type. `report` is False for shapes that are opaque by construction (arrays, pointers, generics)."""
    opaque: OpaqueType
    report: bool = True


@dataclass(frozen=True)
class Ambiguous:
    opaque: OpaqueType
    matches: Tuple[str, ...]


Resolution = Union[PrimitiveKind, TypeDescriptor, Unresolved, Ambiguous]


class NameResolver:
    """Resolves type references the way C# looks names up.

    Order: using aliases, keyword aliases, the declaring namespace and each
    enclosing namespace out to the global namespace, then the scope's using
    directives. `System.<ClrName>` always names the matching primitive.
    """

    def __init__(self, universe) -> None:
        self.universe = universe

    def resolve(self, ref: TypeRefExpr, scope: DeclScope) -> Resolution:
        if ref.type_args:
            return Unresolved(OpaqueType(str(ref), "generic"), report=False)
        if ref.suffixes:
            reason = _SUFFIX_REASONS.get(ref.suffixes[-1], "array")
            return Unresolved(OpaqueType(str(ref), reason), report=False)

        name = ref.name
        aliases = scope.alias_map()
        if name in aliases:
            # Alias targets are looked up without the aliases of their own scope
            return self.resolve(aliases[name], DeclScope(scope.namespace, scope.usings, ()))

        if name in KEYWORD_ALIASES:
            return KEYWORD_ALIASES[name]

        parts = scope.namespace.split(".") if scope.namespace else []
        for i in range(len(parts), -1, -1):
            found = self._lookup(_join(".".join(parts[:i]), name))
            if found is not None:
                return found

        if "." not in name:
            matches: Dict[str, FieldType] = {}
            for using in scope.usings:
                found = self._lookup(_join(using, name))
                if found is not None:
                    matches.setdefault(_key(found), found)
            if len(matches) == 1:
                return next(iter(matches.values()))
            if len(matches) > 1:
                return Ambiguous(OpaqueType(name, "ambiguous"), tuple(matches))

        return Unresolved(OpaqueType(name, "unknown"))

    def _lookup(self, qualified: str) -> Optional[FieldType]:
        found = self.universe.get(qualified)
        if found is not None:
            return found
        namespace, _, simple = qualified.rpartition(".")
        if namespace == "System" and simple in CLR_NAMES:
            return CLR_NAMES[simple]
        return None


def _join(prefix: str, name: str) -> str:
    return f"{prefix}.{name}" if prefix else name


def _key(found: FieldType) -> str:
    if isinstance(found, PrimitiveKind):
        return f"System.{next(n for n, k in CLR_NAMES.items() if k is found)}"
    return found.identity
