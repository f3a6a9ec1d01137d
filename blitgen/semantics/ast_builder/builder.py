"""ASTBuilder: turns the lark parse tree of a declaration file into typed AST nodes.

Namespaces are flattened into a `DeclScope` attached to every declaration, so
later passes never need to walk the namespace structure again. Constant
expressions (enum values, field initializers, attribute arguments) are kept as
their source text.
"""
from __future__ import annotations
from typing import List, Optional, Sequence, Tuple, Union

from lark import Tree, Token

from blitgen.internals.errors import raise_internal_error
from blitgen.internals.report import span_of
from blitgen.semantics.ast import (
    Attribute, AttributeArg, DeclScope, EnumDecl, EnumMember, FieldDecl,
    Program, StructDecl, TypeDecl, TypeRefExpr, UsingAlias, UsingDirective,
)

_SCOPE_ITEMS = ("using_directive", "using_alias")


def _ident(tok: Token) -> str:
    """Identifier text without the C# verbatim '@' prefix."""
    text = str(tok)
    return text[1:] if text.startswith("@") else text


def _trees(children: Sequence, data: str) -> List[Tree]:
    return [c for c in children if isinstance(c, Tree) and c.data == data]


def _first_tree(children: Sequence, data: str) -> Optional[Tree]:
    for c in children:
        if isinstance(c, Tree) and c.data == data:
            return c
    return None


def _first_name(children: Sequence) -> Optional[Token]:
    for c in children:
        if isinstance(c, Token) and c.type == "NAME":
            return c
    return None


class ASTBuilder:
    def __init__(self, source: str = "", filename: str = "<input>") -> None:
        self.source = source
        self.filename = filename
        self._usings: List[UsingDirective] = []

    def build(self, tree: Tree) -> Program:
        """Build Program AST from parse tree."""
        assert isinstance(tree, Tree) and tree.data == "start"
        self._usings = []
        declarations: List[TypeDecl] = []
        self._walk_scope(tree.children, DeclScope(), declarations)
        return Program(loc=span_of(tree), filename=self.filename,
                       declarations=declarations, usings=list(self._usings))

    # ------------------------------------------------------------------
    # Scopes
    # ------------------------------------------------------------------

    def _walk_scope(self, items: Sequence, scope: DeclScope, out: List[TypeDecl]) -> None:
        # Usings apply to the whole scope regardless of position
        usings = list(scope.usings)
        aliases = list(scope.aliases)
        for item in items:
            if not isinstance(item, Tree) or item.data not in _SCOPE_ITEMS:
                continue
            if item.data == "using_directive":
                directive = UsingDirective(loc=span_of(item), namespace=self._qname(item.children[0]))
                self._usings.append(directive)
                if directive.namespace not in usings:
                    usings.append(directive.namespace)
            else:
                alias = UsingAlias(loc=span_of(item), alias=_ident(item.children[0]),
                                   target=self._type_ref(item.children[1]))
                aliases.append((alias.alias, alias.target))
        scope = DeclScope(scope.namespace, tuple(usings), tuple(aliases))

        for item in items:
            if not isinstance(item, Tree) or item.data in _SCOPE_ITEMS:
                continue
            match item.data:
                case "file_namespace":
                    # Applies to everything after it in the file
                    scope = DeclScope(self._join(scope.namespace, self._qname(item.children[0])),
                                      scope.usings, scope.aliases)
                case "namespace_block":
                    inner = DeclScope(self._join(scope.namespace, self._qname(item.children[0])),
                                      scope.usings, scope.aliases)
                    self._walk_scope(item.children[1:], inner, out)
                case "type_decl":
                    out.append(self._type_decl(item, scope))
                case _:
                    raise_internal_error("BE0002", node=item.data)

    @staticmethod
    def _join(outer: str, inner: str) -> str:
        return f"{outer}.{inner}" if outer else inner

    # ------------------------------------------------------------------
    # Declarations
    # ------------------------------------------------------------------

    def _type_decl(self, t: Tree, scope: DeclScope) -> TypeDecl:
        attributes = self._attributes(t.children)
        modifiers = self._modifiers(t.children)
        decl = t.children[-1]
        if decl.data == "struct_decl":
            return self._struct_decl(decl, scope, attributes, modifiers)
        if decl.data == "enum_decl":
            return self._enum_decl(decl, scope, attributes, modifiers)
        raise_internal_error("BE0002", node=decl.data)

    def _struct_decl(self, t: Tree, scope: DeclScope, attributes: List[Attribute],
                     modifiers: List[str]) -> StructDecl:
        name_tok = _first_name(t.children)
        fields: List[FieldDecl] = []
        for fd in _trees(t.children, "field_decl"):
            fields.extend(self._field_decls(fd))
        return StructDecl(
            loc=span_of(t),
            name=_ident(name_tok),
            scope=scope,
            fields=fields,
            modifiers=modifiers,
            attributes=attributes,
            type_params=self._type_params(_first_tree(t.children, "type_params")),
            name_span=span_of(name_tok),
        )

    def _field_decls(self, t: Tree) -> List[FieldDecl]:
        """One field_decl may declare several fields: `public int a, b = 2;`."""
        attributes = self._attributes(t.children)
        modifiers = self._modifiers(t.children)
        ty = self._type_ref(_first_tree(t.children, "type_ref"))
        fields = []
        for d in _trees(t.children, "declarator"):
            name_tok, *rest = d.children
            size = _first_tree(rest, "fixed_size")
            if size is not None:
                rest.remove(size)
            init = self._text(rest[0]) if rest else None
            fields.append(FieldDecl(
                loc=span_of(d),
                name=_ident(name_tok),
                ty=ty,
                modifiers=list(modifiers),
                attributes=list(attributes),
                initializer=init,
                fixed_size=self._text(size.children[0]) if size is not None else None,
                name_span=span_of(name_tok),
            ))
        return fields

    def _enum_decl(self, t: Tree, scope: DeclScope, attributes: List[Attribute],
                   modifiers: List[str]) -> EnumDecl:
        name_tok = _first_name(t.children)
        base_node = _first_tree(t.children, "enum_base")
        body = _first_tree(t.children, "enum_body")
        members: List[EnumMember] = []
        if body is not None:
            for m in _trees(body.children, "enum_member"):
                member_name = _first_name(m.children)
                value = _first_tree(m.children, "const_expr")
                members.append(EnumMember(loc=span_of(m), name=_ident(member_name),
                                          value=self._text(value) if value is not None else None))
        return EnumDecl(
            loc=span_of(t),
            name=_ident(name_tok),
            scope=scope,
            members=members,
            base=self._type_ref(base_node.children[0]) if base_node is not None else None,
            modifiers=modifiers,
            attributes=attributes,
            type_params=self._type_params(_first_tree(t.children, "type_params")),
            name_span=span_of(name_tok),
        )

    @staticmethod
    def _type_params(t: Optional[Tree]) -> Optional[List[str]]:
        if t is None:
            return None
        return [_ident(tok) for tok in t.children]

    # ------------------------------------------------------------------
    # Modifiers and attributes
    # ------------------------------------------------------------------

    @staticmethod
    def _modifiers(children: Sequence) -> List[str]:
        return [str(m.children[0]) for m in _trees(children, "modifier")]

    def _attributes(self, children: Sequence) -> List[Attribute]:
        attributes: List[Attribute] = []
        for section in _trees(children, "attribute_section"):
            for a in _trees(section.children, "attribute"):
                args: List[AttributeArg] = []
                args_node = _first_tree(a.children, "attribute_args")
                if args_node is not None:
                    for arg in args_node.children:
                        if arg.data == "named_arg":
                            args.append(AttributeArg(loc=span_of(arg), name=_ident(arg.children[0]),
                                                     text=self._text(arg.children[1])))
                        else:
                            args.append(AttributeArg(loc=span_of(arg), text=self._text(arg.children[0])))
                attributes.append(Attribute(loc=span_of(a), name=self._qname(a.children[0]), args=args))
        return attributes

    # ------------------------------------------------------------------
    # Types and text
    # ------------------------------------------------------------------

    def _type_ref(self, t: Tree) -> TypeRefExpr:
        assert t.data == "type_ref"
        name = self._qname(t.children[0])
        type_args: Tuple[TypeRefExpr, ...] = ()
        suffixes: List[str] = []
        for child in t.children[1:]:
            match child.data:
                case "type_args":
                    type_args = tuple(self._type_ref(a) for a in child.children)
                case "array_rank":
                    rank = _first_tree(child.children, "rank_commas")
                    suffixes.append("[" + "," * (len(rank.children) if rank is not None else 0) + "]")
                case "pointer_suffix":
                    suffixes.append("*")
                case "nullable_suffix":
                    suffixes.append("?")
                case _:
                    raise_internal_error("BE0002", node=child.data)
        return TypeRefExpr(name=name, type_args=type_args, suffixes=tuple(suffixes), loc=span_of(t))

    @staticmethod
    def _qname(t: Tree) -> str:
        assert t.data == "qname"
        return ".".join(_ident(tok) for tok in t.children)

    def _text(self, node: Union[Tree, Token]) -> str:
        """Source text of a value node, whitespace-normalized."""
        if isinstance(node, Token):
            return str(node)
        meta = node.meta
        if self.source and not meta.empty:
            return " ".join(self.source[meta.start_pos:meta.end_pos].split())
        return " ".join(str(tok) for tok in node.scan_values(lambda v: isinstance(v, Token)))
