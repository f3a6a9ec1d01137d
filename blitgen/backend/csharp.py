"""C# source emission for IsBlittable accessors and the aggregate registry class."""
from __future__ import annotations

import os
from typing import List

from blitgen.backend.sources import GeneratedSource
from blitgen.semantics.registry import Registry
from blitgen.semantics.typesys import TypeDescriptor

DEFAULT_REGISTRY_NAMESPACE = "IsBlittableGenerator"
DEFAULT_REGISTRY_CLASS = "BlittableTypes"

NEWLINE_STYLES = ("lf", "crlf", "native")

_HEADER = [
    "// <auto-generated>",
    "//     This code was generated by blitgen.",
    "//     Changes to this file may cause incorrect behavior and will be lost if the code is regenerated.",
    "// </auto-generated>",
]


def resolve_newline(style: str) -> str:
    match style:
        case "lf":
            return "\n"
        case "crlf":
            return "\r\n"
        case "native":
            return "\r\n" if os.name == "nt" else "\n"
        case _:
            raise ValueError(f"unknown newline style '{style}' (expected one of {', '.join(NEWLINE_STYLES)})")


def _bool(value: bool) -> str:
    return "true" if value else "false"


def _indent(lines: List[str], levels: int) -> List[str]:
    pad = "    " * levels
    return [pad + line if line else line for line in lines]


def accessor_hint_name(descriptor: TypeDescriptor) -> str:
    return f"{descriptor.identity}_IsBlittable.g.cs"


def emit_accessor(descriptor: TypeDescriptor, is_blittable: bool, newline: str = "\n") -> GeneratedSource:
    """Partial struct exposing the verdict as a constant `IsBlittable` property."""
    value = _bool(is_blittable)
    body = [
        f"partial struct {descriptor.name}",
        "{",
        "    /// <summary>",
        "    /// Returns true if the struct is blittable, false otherwise. <br />",
        f"    /// It will always return {value}.",
        "    /// </summary>",
        "    public static bool IsBlittable",
        "    {",
        "        get",
        "        {",
        f"            return {value};",
        "        }",
        "    }",
        "}",
    ]

    lines = list(_HEADER) + [""]
    if descriptor.namespace:
        lines += [f"namespace {descriptor.namespace}", "{"] + _indent(body, 1) + ["}"]
    else:
        lines += body

    return GeneratedSource(accessor_hint_name(descriptor), newline.join(lines) + newline)


def emit_registry_class(registry: Registry,
                        namespace: str = DEFAULT_REGISTRY_NAMESPACE,
                        class_name: str = DEFAULT_REGISTRY_CLASS,
                        newline: str = "\n") -> GeneratedSource:
    """Static class holding every verdict of the pass in one lookup table."""
    entries = [f"{{ typeof(global::{identity}), {_bool(ok)} }}" for identity, ok in registry.items()]
    entries = [e + "," for e in entries[:-1]] + entries[-1:]

    body = [
        f"internal static class {class_name}",
        "{",
        "    private static readonly Dictionary<Type, bool> IsBlittableMap = new Dictionary<Type, bool>()",
        "    {",
        *_indent(entries, 2),
        "    };",
        "",
        "    [MethodImpl(MethodImplOptions.AggressiveInlining)]",
        "    public static bool IsBlittable<T>() where T : struct",
        "    {",
        "        return IsBlittableMap.TryGetValue(typeof(T), out bool isBlittable) ? isBlittable : false;",
        "    }",
        "}",
    ]

    lines = list(_HEADER) + [
        "",
        "using System;",
        "using System.Collections.Generic;",
        "using System.Runtime.CompilerServices;",
        "",
    ]
    if namespace:
        lines += [f"namespace {namespace}", "{"] + _indent(body, 1) + ["}"]
    else:
        lines += body

    hint = f"{namespace}.{class_name}.g.cs" if namespace else f"{class_name}.g.cs"
    return GeneratedSource(hint, newline.join(lines) + newline)


def emit_accessors(registry: Registry, newline: str = "\n") -> List[GeneratedSource]:
    return [emit_accessor(registry.descriptor(identity), ok, newline) for identity, ok in registry.items()]
