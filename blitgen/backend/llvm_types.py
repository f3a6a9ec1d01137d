"""
LLVM IR emission for blittable record types.

Every blittable candidate (and every blittable struct it nests) becomes an
identified struct type whose body lists its instance fields in declaration
order. Each registry entry also gets an `i1` constant
`@"<identity>.IsBlittable"` so native code can read verdicts directly.
Layout (offsets, padding) is left to LLVM's data layout for the target.
"""
from __future__ import annotations
from typing import Dict, Optional

from llvmlite import ir

from blitgen.backend.platform_detect import TargetPlatform, get_current_platform
from blitgen.backend.sources import GeneratedSource
from blitgen.internals.errors import raise_internal_error
from blitgen.semantics.registry import Registry
from blitgen.semantics.typesys import FieldType, PrimitiveKind, TypeDescriptor, TypeKind


class LLVMTypeEmitter:
    """Maps blittable type descriptors to LLVM IR types within one module."""

    def __init__(self, target: Optional[TargetPlatform] = None) -> None:
        self.target = target or get_current_platform()
        # Private context: identified types never leak between passes
        self.context = ir.Context()
        self.module = ir.Module(name="blitgen.registry", context=self.context)
        self.module.triple = self.target.triple

        self.i1: ir.IntType = ir.IntType(1)
        word = ir.IntType(self.target.pointer_bits)

        self._primitive_map: Dict[PrimitiveKind, ir.Type] = {
            PrimitiveKind.SBYTE: ir.IntType(8),
            PrimitiveKind.BYTE: ir.IntType(8),
            PrimitiveKind.SHORT: ir.IntType(16),
            PrimitiveKind.USHORT: ir.IntType(16),
            PrimitiveKind.INT: ir.IntType(32),
            PrimitiveKind.UINT: ir.IntType(32),
            PrimitiveKind.LONG: ir.IntType(64),
            PrimitiveKind.ULONG: ir.IntType(64),
            PrimitiveKind.FLOAT: ir.FloatType(),
            PrimitiveKind.DOUBLE: ir.DoubleType(),
            PrimitiveKind.NINT: word,
            PrimitiveKind.NUINT: word,
        }
        self._struct_cache: Dict[str, ir.IdentifiedStructType] = {}

    def ll_type(self, field_type: FieldType) -> ir.Type:
        """Map a field type of a blittable struct to its LLVM IR type."""
        match field_type:
            case PrimitiveKind() if field_type in self._primitive_map:
                return self._primitive_map[field_type]
            case TypeDescriptor(kind=TypeKind.STRUCT):
                return self.struct_type(field_type)
            case TypeDescriptor(kind=TypeKind.ENUM | TypeKind.PRIMITIVE) if field_type.underlying in self._primitive_map:
                return self._primitive_map[field_type.underlying]
            case _:
                raise_internal_error("BE0003", emitter="llvm", type=str(field_type))

    def struct_type(self, descriptor: TypeDescriptor) -> ir.IdentifiedStructType:
        """Identified struct type for a blittable struct, created on first use."""
        cached = self._struct_cache.get(descriptor.identity)
        if cached is not None:
            return cached
        struct = self.context.get_identified_type(descriptor.identity)
        self._struct_cache[descriptor.identity] = struct
        struct.set_body(*[self.ll_type(fd.field_type) for fd in descriptor.fields if not fd.is_static])
        return struct

    def add_verdict(self, identity: str, is_blittable: bool) -> ir.GlobalVariable:
        gv = ir.GlobalVariable(self.module, self.i1, name=f"{identity}.IsBlittable")
        gv.initializer = ir.Constant(self.i1, int(is_blittable))
        gv.global_constant = True
        return gv

    def build(self, registry: Registry) -> ir.Module:
        for identity, ok in registry.items():
            if ok:
                self.struct_type(registry.descriptor(identity))
        for identity, ok in registry.items():
            self.add_verdict(identity, ok)
        return self.module


def emit_llvm_module(registry: Registry, target: Optional[TargetPlatform] = None,
                     hint_name: str = "blittable_types.ll") -> GeneratedSource:
    module = LLVMTypeEmitter(target).build(registry)
    return GeneratedSource(hint_name, str(module))
