"""Project configuration (blitgen.toml) loading and validation."""
from __future__ import annotations

import os
import re
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from blitgen.backend.csharp import DEFAULT_REGISTRY_CLASS, DEFAULT_REGISTRY_NAMESPACE, NEWLINE_STYLES

CONFIG_NAME = "blitgen.toml"

# C# identifier, optionally dotted for namespaces
_IDENT = r"[A-Za-z_][A-Za-z0-9_]*"
CLASS_PATTERN = re.compile(rf"^{_IDENT}$")
NAMESPACE_PATTERN = re.compile(rf"^{_IDENT}(\.{_IDENT})*$")

_EMIT_FLAGS = ("accessors", "registry", "llvm", "manifest")


class ConfigError(Exception):
    pass


@dataclass
class BlitgenConfig:
    sources: list[str] = field(default_factory=list)
    output: str = "generated"
    accessors: bool = True
    registry: bool = True
    llvm: bool = False
    manifest: bool = False
    registry_namespace: str = DEFAULT_REGISTRY_NAMESPACE
    registry_class: str = DEFAULT_REGISTRY_CLASS
    newline: str = "lf"
    base_dir: Path = field(default_factory=Path.cwd)

    def validate(self) -> None:
        if not all(isinstance(s, str) for s in self.sources):
            raise ConfigError("[project] sources must be a list of glob patterns")
        for pattern in self.sources:
            if not pattern.strip() or not _split_pattern(pattern, self.base_dir)[1]:
                raise ConfigError(f"[project] sources has an empty glob pattern: '{pattern}'")
        if not isinstance(self.output, str) or not self.output:
            raise ConfigError("[project] output must be a non-empty path")
        for flag in _EMIT_FLAGS:
            if not isinstance(getattr(self, flag), bool):
                raise ConfigError(f"[emit] {flag} must be true or false")
        if not isinstance(self.registry_namespace, str) or (
                self.registry_namespace and not NAMESPACE_PATTERN.match(self.registry_namespace)):
            raise ConfigError(
                f"Invalid registry_namespace '{self.registry_namespace}'. "
                "Must be a dotted C# identifier (e.g. My.Generated)."
            )
        if not isinstance(self.registry_class, str) or not CLASS_PATTERN.match(self.registry_class):
            raise ConfigError(f"Invalid registry_class '{self.registry_class}'. Must be a C# identifier.")
        if self.newline not in NEWLINE_STYLES:
            raise ConfigError(
                f"Invalid newline '{self.newline}'. Must be one of: {', '.join(NEWLINE_STYLES)}."
            )

    def source_paths(self) -> list[Path]:
        """Expand the source globs relative to the config directory, in pattern then name order."""
        paths: list[Path] = []
        seen: set[Path] = set()
        for pattern in self.sources:
            root, relative = _split_pattern(pattern, self.base_dir)
            for path in sorted(root.glob(relative)):
                if path.is_file() and path not in seen:
                    seen.add(path)
                    paths.append(path)
        return paths

    @property
    def output_dir(self) -> Path:
        out = Path(self.output)
        return out if out.is_absolute() else self.base_dir / out


def _split_pattern(pattern: str, base_dir: Path) -> tuple[Path, str]:
    """Split a glob into the directory it starts from and the part to match."""
    path = Path(pattern)
    if path.is_absolute():
        return Path(path.anchor), "/".join(path.parts[1:])
    return base_dir, pattern


def get_effective_cwd() -> Path:
    """Directory used to resolve relative paths.

    The BLITGEN_CWD environment variable takes precedence over os.getcwd(),
    so wrapper scripts can run blitgen on behalf of another directory.
    """
    blitgen_cwd = os.environ.get("BLITGEN_CWD")
    if blitgen_cwd:
        return Path(blitgen_cwd)
    return Path.cwd()


def load_config(path: Path | None = None) -> BlitgenConfig | None:
    """Load blitgen.toml.

    An explicit `path` must exist. Without one, blitgen.toml in the effective
    working directory is used when present; otherwise None is returned.
    """
    if path is None:
        path = get_effective_cwd() / CONFIG_NAME
        if not path.exists():
            return None
    elif not path.exists():
        raise ConfigError(f"No config file found at {path}")

    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"{path}: {e}") from e
    return _parse_config(data, path.resolve().parent)


def load_config_from_string(text: str, base_dir: Path | None = None) -> BlitgenConfig:
    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(str(e)) from e
    return _parse_config(data, base_dir or get_effective_cwd())


def _parse_config(data: dict, base_dir: Path) -> BlitgenConfig:
    project = data.get("project", {})
    emit = data.get("emit", {})
    if not isinstance(project, dict) or not isinstance(emit, dict):
        raise ConfigError("[project] and [emit] must be tables")

    unknown = sorted(set(emit) - set(_EMIT_FLAGS) - {"registry_namespace", "registry_class", "newline"})
    if unknown:
        raise ConfigError(f"Unknown [emit] keys: {', '.join(unknown)}")

    sources = project.get("sources", [])
    if isinstance(sources, str):
        sources = [sources]
    if not isinstance(sources, list):
        raise ConfigError("[project] sources must be a list of glob patterns")

    config = BlitgenConfig(
        sources=sources,
        output=project.get("output", "generated"),
        accessors=emit.get("accessors", True),
        registry=emit.get("registry", True),
        llvm=emit.get("llvm", False),
        manifest=emit.get("manifest", False),
        registry_namespace=emit.get("registry_namespace", DEFAULT_REGISTRY_NAMESPACE),
        registry_class=emit.get("registry_class", DEFAULT_REGISTRY_CLASS),
        newline=emit.get("newline", "lf"),
        base_dir=base_dir,
    )
    config.validate()
    return config
