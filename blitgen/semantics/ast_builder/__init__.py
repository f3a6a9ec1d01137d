"""
AST Builder module for blitgen.

Exports:
    ASTBuilder: Builds the declaration AST from Lark parse trees
"""
from blitgen.semantics.ast_builder.builder import ASTBuilder

__all__ = ['ASTBuilder']
