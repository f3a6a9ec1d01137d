# semantics/ast.py
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Union

from blitgen.internals.report import Span

# === Core node base ===

@dataclass
class Node:
    loc: Optional[Span]

# === Names and scopes ===

@dataclass
class UsingDirective(Node):
    namespace: str                   # e.g. "System.Runtime.InteropServices"

@dataclass
class UsingAlias(Node):
    alias: str                       # e.g. "Handle"
    target: "TypeRefExpr"            # e.g. System.IntPtr

@dataclass(frozen=True)
class DeclScope:
    """Lexical context a declaration was written in.

    Usings and aliases are captured per declaration because a using inside a
    namespace block only applies to that block.
    """
    namespace: str = ""                          # "" is the global namespace
    usings: Tuple[str, ...] = ()
    aliases: Tuple[Tuple[str, "TypeRefExpr"], ...] = ()

    def alias_map(self) -> Dict[str, "TypeRefExpr"]:
        return dict(self.aliases)

# === Attributes ===

@dataclass
class AttributeArg(Node):
    text: str                        # Source text of the value, e.g. "LayoutKind.Sequential"
    name: Optional[str] = None       # Set for named arguments (Pack = 1)

@dataclass
class Attribute(Node):
    name: str                        # As written, e.g. "StructLayout" or "System.Runtime.InteropServices.StructLayout"
    args: List[AttributeArg] = field(default_factory=list)

    @property
    def simple_name(self) -> str:
        return self.name.rsplit(".", 1)[-1]

    @property
    def positional(self) -> List[AttributeArg]:
        return [a for a in self.args if a.name is None]

# === Types ===

@dataclass(frozen=True)
class TypeRefExpr:
    """A type as written in a declaration: dotted name, generic arguments, suffixes."""
    name: str
    type_args: Tuple["TypeRefExpr", ...] = ()
    suffixes: Tuple[str, ...] = ()    # "[]", "[,]", "*", "?" in source order
    loc: Optional[Span] = field(default=None, compare=False)

    @property
    def is_simple(self) -> bool:
        return not self.type_args and not self.suffixes

    def __str__(self) -> str:
        text = self.name
        if self.type_args:
            text += "<" + ", ".join(str(a) for a in self.type_args) + ">"
        return text + "".join(self.suffixes)

# === Declarations ===

@dataclass
class FieldDecl(Node):
    name: str
    ty: TypeRefExpr
    modifiers: List[str] = field(default_factory=list)
    attributes: List[Attribute] = field(default_factory=list)
    initializer: Optional[str] = None
    fixed_size: Optional[str] = None  # element count of a `fixed` buffer, as text
    name_span: Optional[Span] = None

    @property
    def is_static(self) -> bool:
        # const fields are implicitly static
        return "static" in self.modifiers or "const" in self.modifiers

@dataclass
class StructDecl(Node):
    name: str
    scope: DeclScope
    fields: List[FieldDecl] = field(default_factory=list)
    modifiers: List[str] = field(default_factory=list)
    attributes: List[Attribute] = field(default_factory=list)
    type_params: Optional[List[str]] = None
    name_span: Optional[Span] = None

    @property
    def is_partial(self) -> bool:
        return "partial" in self.modifiers

    @property
    def qualified_name(self) -> str:
        return f"{self.scope.namespace}.{self.name}" if self.scope.namespace else self.name

@dataclass
class EnumMember(Node):
    name: str
    value: Optional[str] = None      # Initializer text, never evaluated

@dataclass
class EnumDecl(Node):
    name: str
    scope: DeclScope
    members: List[EnumMember] = field(default_factory=list)
    base: Optional[TypeRefExpr] = None
    modifiers: List[str] = field(default_factory=list)
    attributes: List[Attribute] = field(default_factory=list)
    type_params: Optional[List[str]] = None
    name_span: Optional[Span] = None

    @property
    def qualified_name(self) -> str:
        return f"{self.scope.namespace}.{self.name}" if self.scope.namespace else self.name

TypeDecl = Union[StructDecl, EnumDecl]

# === Program structure ===

@dataclass
class Program(Node):
    filename: str
    declarations: List[TypeDecl] = field(default_factory=list)   # Declaration order
    usings: List[UsingDirective] = field(default_factory=list)   # All using directives, any scope

    @property
    def structs(self) -> List[StructDecl]:
        return [d for d in self.declarations if isinstance(d, StructDecl)]

    @property
    def enums(self) -> List[EnumDecl]:
        return [d for d in self.declarations if isinstance(d, EnumDecl)]
