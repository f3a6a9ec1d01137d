"""Type model consumed by the blittability analysis.

Descriptors are plain data. The catalog builds them in two phases (create
every descriptor, then attach fields) so that field types can refer to any
declared type, including the declaring type itself; after the catalog hands
them out they are not modified.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple, Union

from blitgen.internals.report import Span


class PrimitiveKind(Enum):
    """Predefined value kinds a declaration can name."""
    SBYTE = "sbyte"
    BYTE = "byte"
    SHORT = "short"
    USHORT = "ushort"
    INT = "int"
    UINT = "uint"
    LONG = "long"
    ULONG = "ulong"
    FLOAT = "float"
    DOUBLE = "double"
    NINT = "nint"
    NUINT = "nuint"
    # Recognized, never blittable
    BOOL = "bool"
    CHAR = "char"
    DECIMAL = "decimal"
    STRING = "string"
    OBJECT = "object"

    def __str__(self) -> str:
        return self.value


# bool and char are deliberately absent: their marshalled width is not fixed.
BLITTABLE_PRIMITIVES: frozenset[PrimitiveKind] = frozenset({
    PrimitiveKind.SBYTE, PrimitiveKind.BYTE,
    PrimitiveKind.SHORT, PrimitiveKind.USHORT,
    PrimitiveKind.INT, PrimitiveKind.UINT,
    PrimitiveKind.LONG, PrimitiveKind.ULONG,
    PrimitiveKind.FLOAT, PrimitiveKind.DOUBLE,
    PrimitiveKind.NINT, PrimitiveKind.NUINT,
})

# Kinds an enum may use as its underlying type.
INTEGRAL_PRIMITIVES: frozenset[PrimitiveKind] = BLITTABLE_PRIMITIVES - {PrimitiveKind.FLOAT, PrimitiveKind.DOUBLE}

# C# keyword aliases
KEYWORD_ALIASES: dict[str, PrimitiveKind] = {kind.value: kind for kind in PrimitiveKind}

# CLR type names under System
CLR_NAMES: dict[str, PrimitiveKind] = {
    "SByte": PrimitiveKind.SBYTE,
    "Byte": PrimitiveKind.BYTE,
    "Int16": PrimitiveKind.SHORT,
    "UInt16": PrimitiveKind.USHORT,
    "Int32": PrimitiveKind.INT,
    "UInt32": PrimitiveKind.UINT,
    "Int64": PrimitiveKind.LONG,
    "UInt64": PrimitiveKind.ULONG,
    "Single": PrimitiveKind.FLOAT,
    "Double": PrimitiveKind.DOUBLE,
    "IntPtr": PrimitiveKind.NINT,
    "UIntPtr": PrimitiveKind.NUINT,
    "Boolean": PrimitiveKind.BOOL,
    "Char": PrimitiveKind.CHAR,
    "Decimal": PrimitiveKind.DECIMAL,
    "String": PrimitiveKind.STRING,
    "Object": PrimitiveKind.OBJECT,
}


class TypeKind(Enum):
    STRUCT = "struct"
    ENUM = "enum"
    PRIMITIVE = "primitive"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class OpaqueType:
    """A field type the model cannot represent: arrays, fixed buffers, pointers, generics, unresolved names."""
    text: str
    reason: str

    def __str__(self) -> str:
        return self.text


@dataclass(eq=False)
class TypeDescriptor:
    """A candidate-universe type.

    Identity is the qualified name; two descriptors never share one within a
    universe. `underlying` is the storage kind for enums and the kind itself for
    primitive descriptors; it is unused for structs.
    """
    name: str
    kind: TypeKind
    namespace: str = ""
    has_fixed_layout: bool = False
    underlying: Optional[PrimitiveKind] = None
    fields: Tuple["FieldDescriptor", ...] = ()
    is_partial: bool = False
    loc: Optional[Span] = None
    filename: Optional[str] = None

    @property
    def identity(self) -> str:
        return f"{self.namespace}.{self.name}" if self.namespace else self.name

    @classmethod
    def primitive(cls, kind: PrimitiveKind) -> "TypeDescriptor":
        """Descriptor standing for a predefined kind under its CLR name."""
        clr = next((name for name, k in CLR_NAMES.items() if k is kind), kind.value)
        return cls(name=clr, kind=TypeKind.PRIMITIVE, namespace="System", underlying=kind)

    def __str__(self) -> str:
        return self.identity

    def __repr__(self) -> str:
        return f"TypeDescriptor({self.identity!r}, {self.kind})"


FieldType = Union[PrimitiveKind, TypeDescriptor, OpaqueType]


@dataclass(frozen=True)
class FieldDescriptor:
    name: str
    field_type: FieldType
    is_static: bool = False
    loc: Optional[Span] = field(default=None, compare=False)

    def __str__(self) -> str:
        prefix = "static " if self.is_static else ""
        return f"{prefix}{self.field_type} {self.name}"
