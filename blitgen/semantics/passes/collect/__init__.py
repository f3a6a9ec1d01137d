# semantics/passes/collect/__init__.py
"""Type catalog: builds the type universe and candidate list from declaration ASTs.

Collection runs in two phases so that fields may refer to any declared type:

1. declare - create one TypeDescriptor per non-generic struct/enum, rejecting
   duplicate identities;
2. resolve - resolve field types and enum bases against the full universe and
   attach them to the descriptors.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from blitgen.internals import errors as er
from blitgen.internals.errors import ERR
from blitgen.internals.report import Reporter
from blitgen.semantics.ast import EnumDecl, FieldDecl, Program, StructDecl, TypeDecl
from blitgen.semantics.typesys import (
    INTEGRAL_PRIMITIVES, FieldDescriptor, OpaqueType, PrimitiveKind, TypeDescriptor, TypeKind,
)

from .layout import declares_sequential_layout, has_fixed_layout, layout_attribute, layout_argument
from .resolution import Ambiguous, NameResolver, Unresolved


@dataclass
class TypeUniverse:
    """Every declared non-generic struct and enum, plus the ordered candidate structs."""
    by_identity: Dict[str, TypeDescriptor] = field(default_factory=dict)
    order: List[str] = field(default_factory=list)
    candidates: List[TypeDescriptor] = field(default_factory=list)

    def __contains__(self, identity: str) -> bool:
        return identity in self.by_identity

    def __getitem__(self, identity: str) -> TypeDescriptor:
        return self.by_identity[identity]

    def get(self, identity: str) -> Optional[TypeDescriptor]:
        return self.by_identity.get(identity)

    def __len__(self) -> int:
        return len(self.order)

    def descriptors(self) -> List[TypeDescriptor]:
        return [self.by_identity[i] for i in self.order]


class TypeCollector:
    """Collector for struct and enum declarations across one pass's inputs."""

    def __init__(self, reporter: Reporter) -> None:
        self.r = reporter
        self.universe = TypeUniverse()
        self._declared: List[Tuple[TypeDecl, str, TypeDescriptor]] = []
        self._resolver = NameResolver(self.universe)

    # ------------------------------------------------------------------
    # Phase 1: declare
    # ------------------------------------------------------------------

    def declare(self, program: Program) -> None:
        for decl in program.declarations:
            self._declare(decl, program.filename)

    def _declare(self, decl: TypeDecl, filename: str) -> None:
        kind_name = "struct" if isinstance(decl, StructDecl) else "enum"
        if decl.type_params:
            er.emit(self.r, ERR.BW1002, decl.name_span, filename=filename, kind=kind_name, name=decl.name)
            return

        identity = decl.qualified_name
        previous = self.universe.get(identity)
        if previous is not None:
            prev_loc = previous.filename or "<input>"
            if previous.loc is not None:
                prev_loc = f"{prev_loc}:{previous.loc.line}:{previous.loc.col}"
            er.emit(self.r, ERR.BE1001, decl.name_span, filename=filename, name=identity, prev_loc=prev_loc)
            return

        if isinstance(decl, StructDecl):
            descriptor = TypeDescriptor(
                name=decl.name,
                kind=TypeKind.STRUCT,
                namespace=decl.scope.namespace,
                has_fixed_layout=has_fixed_layout(decl.attributes),
                is_partial=decl.is_partial,
                loc=decl.name_span,
                filename=filename,
            )
        else:
            descriptor = TypeDescriptor(
                name=decl.name,
                kind=TypeKind.ENUM,
                namespace=decl.scope.namespace,
                loc=decl.name_span,
                filename=filename,
            )

        self.universe.by_identity[identity] = descriptor
        self.universe.order.append(identity)
        self._declared.append((decl, filename, descriptor))

    # ------------------------------------------------------------------
    # Phase 2: resolve
    # ------------------------------------------------------------------

    def resolve(self) -> TypeUniverse:
        for decl, filename, descriptor in self._declared:
            if isinstance(decl, StructDecl):
                descriptor.fields = self._resolve_fields(decl, filename)
                if self._is_candidate(decl, filename):
                    self.universe.candidates.append(descriptor)
            else:
                descriptor.underlying = self._resolve_enum_base(decl, filename)
        return self.universe

    def _resolve_fields(self, decl: StructDecl, filename: str) -> Tuple[FieldDescriptor, ...]:
        seen: set[str] = set()
        fields: List[FieldDescriptor] = []
        for fd in decl.fields:
            if fd.name in seen:
                er.emit(self.r, ERR.BE1002, fd.name_span, filename=filename, name=fd.name, type_name=decl.name)
                continue
            seen.add(fd.name)
            fields.append(FieldDescriptor(
                name=fd.name,
                field_type=self._resolve_field_type(fd, decl, filename),
                is_static=fd.is_static,
                loc=fd.loc,
            ))
        return tuple(fields)

    def _resolve_field_type(self, fd: FieldDecl, decl: StructDecl, filename: str):
        if fd.fixed_size is not None:
            return OpaqueType(f"{fd.ty}[{fd.fixed_size}]", "fixed buffer")
        result = self._resolver.resolve(fd.ty, decl.scope)
        match result:
            case Unresolved(opaque=opaque, report=True):
                er.emit(self.r, ERR.BW1001, fd.ty.loc or fd.loc, filename=filename,
                        type=str(fd.ty), field=fd.name, type_name=decl.name)
                return opaque
            case Unresolved(opaque=opaque):
                return opaque
            case Ambiguous(opaque=opaque, matches=matches):
                er.emit(self.r, ERR.BW1003, fd.ty.loc or fd.loc, filename=filename,
                        type=str(fd.ty), field=fd.name,
                        candidates=", ".join(f"'{m}'" for m in matches))
                return opaque
            case _:
                return result

    def _resolve_enum_base(self, decl: EnumDecl, filename: str) -> Optional[PrimitiveKind]:
        seen: set[str] = set()
        for member in decl.members:
            if member.name in seen:
                er.emit(self.r, ERR.BE1003, member.loc, filename=filename, name=member.name, type_name=decl.name)
            seen.add(member.name)

        if decl.base is None:
            return PrimitiveKind.INT
        result = self._resolver.resolve(decl.base, decl.scope)
        if isinstance(result, PrimitiveKind) and result in INTEGRAL_PRIMITIVES:
            return result
        er.emit(self.r, ERR.BE1004, decl.base.loc or decl.name_span, filename=filename,
                name=decl.name, type=str(decl.base))
        return None

    def _is_candidate(self, decl: StructDecl, filename: str) -> bool:
        attr = layout_attribute(decl.attributes)
        if attr is None:
            return False
        if not decl.is_partial:
            if has_fixed_layout(decl.attributes):
                er.emit(self.r, ERR.BW1004, decl.name_span, filename=filename, name=decl.name)
            return False
        if not declares_sequential_layout(decl.attributes):
            er.emit(self.r, ERR.BW1005, decl.name_span, filename=filename,
                    name=decl.name, layout=layout_argument(attr) or "")
            return False
        return True


def collect_universe(programs: Iterable[Program], reporter: Reporter) -> TypeUniverse:
    """Build the type universe for one pass; candidates follow file then declaration order."""
    collector = TypeCollector(reporter)
    for program in programs:
        collector.declare(program)
    return collector.resolve()
