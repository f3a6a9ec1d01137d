# semantics/passes/collect/layout.py
"""StructLayout attribute inspection."""
from __future__ import annotations
from typing import List, Optional

from blitgen.semantics.ast import Attribute

INTEROP_NAMESPACE = "System.Runtime.InteropServices"
LAYOUT_ATTRIBUTE_NAMES = frozenset({"StructLayout", "StructLayoutAttribute"})

# LayoutKind.Sequential is 0; a literal 0 converts to any enum.
_SEQUENTIAL_FORMS = frozenset({
    "LayoutKind.Sequential",
    f"{INTEROP_NAMESPACE}.LayoutKind.Sequential",
    "0",
})


def layout_attribute(attributes: List[Attribute]) -> Optional[Attribute]:
    """The StructLayout attribute among `attributes`, if any."""
    for attr in attributes:
        name = attr.name
        if name.startswith(INTEROP_NAMESPACE + "."):
            name = name[len(INTEROP_NAMESPACE) + 1:]
        if name in LAYOUT_ATTRIBUTE_NAMES:
            return attr
    return None


def layout_argument(attr: Attribute) -> Optional[str]:
    """Text of the first positional argument, whitespace removed."""
    positional = attr.positional
    if not positional:
        return None
    return "".join(positional[0].text.split())


def has_fixed_layout(attributes: List[Attribute]) -> bool:
    """Whether the declaration's layout attribute resolves to LayoutKind.Sequential."""
    attr = layout_attribute(attributes)
    return attr is not None and layout_argument(attr) in _SEQUENTIAL_FORMS


def declares_sequential_layout(attributes: List[Attribute]) -> bool:
    """Whether the layout argument is spelled exactly `LayoutKind.Sequential`.

    Candidate selection is syntactic; qualified or numeric spellings still give
    the type a fixed layout but do not make it a candidate.
    """
    attr = layout_attribute(attributes)
    return attr is not None and layout_argument(attr) == "LayoutKind.Sequential"
