"""Analysis pass orchestration: parse, collect, analyze, emit."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple, Union

from blitgen.backend.csharp import (
    DEFAULT_REGISTRY_CLASS, DEFAULT_REGISTRY_NAMESPACE,
    emit_accessors, emit_registry_class, resolve_newline,
)
from blitgen.backend.platform_detect import TargetPlatform, get_current_platform
from blitgen.backend.sources import GeneratedSource
from blitgen.internals import errors as er
from blitgen.internals.errors import ERR
from blitgen.internals.parse_errors import handle_parse_exception
from blitgen.internals.parser import parse_to_ast
from blitgen.internals.report import Reporter
from blitgen.semantics.ast import Program
from blitgen.semantics.passes.collect import TypeUniverse, collect_universe
from blitgen.semantics.registry import Registry, build_registry

# A source is either a path to read or an in-memory (filename, text) pair.
Source = Union[Path, Tuple[str, str]]


@dataclass
class EmitOptions:
    accessors: bool = True
    registry: bool = True
    llvm: bool = False
    manifest: bool = False
    registry_namespace: str = DEFAULT_REGISTRY_NAMESPACE
    registry_class: str = DEFAULT_REGISTRY_CLASS
    newline: str = "lf"
    target: Optional[TargetPlatform] = None
    dump_parse: bool = False
    dump_ast: bool = False


@dataclass
class PassResult:
    programs: List[Program] = field(default_factory=list)
    universe: Optional[TypeUniverse] = None
    registry: Optional[Registry] = None
    outputs: List[GeneratedSource] = field(default_factory=list)


def _read_source(source: Source) -> Tuple[str, str]:
    if isinstance(source, Path):
        return str(source), source.read_text(encoding="utf-8")
    return source


def run_pass(sources: Sequence[Source], reporter: Reporter, options: EmitOptions,
             cancel: Optional[Callable[[], bool]] = None) -> PassResult:
    """Run one analysis pass over `sources`.

    Undecodable files and parse errors are reported per file and the file is
    left out of the pass; remaining files are still analyzed so every problem
    surfaces in one run.
    Nothing is emitted when errors were reported.

    Raises:
        OSError: A source path could not be read.
        BuildCancelled: `cancel` fired between candidates.
    """
    result = PassResult()

    for source in sources:
        try:
            filename, text = _read_source(source)
        except UnicodeDecodeError as exc:
            er.emit(reporter, ERR.BE2002, None, filename=str(source), path=str(source), reason=exc.reason)
            continue
        reporter.enter_file(filename, text)
        try:
            program, _ = parse_to_ast(text, filename=filename, dump_parse=options.dump_parse)
        except Exception as exc:
            if handle_parse_exception(exc, reporter, filename=filename):
                continue
            raise
        if options.dump_ast:
            print(program)
            print()
        result.programs.append(program)

    result.universe = collect_universe(result.programs, reporter)
    result.registry = build_registry(result.universe.candidates, cancel=cancel)

    if reporter.has_errors:
        return result

    result.outputs = emit_outputs(result.registry, options)
    return result


def emit_outputs(registry: Registry, options: EmitOptions) -> List[GeneratedSource]:
    newline = resolve_newline(options.newline)
    outputs: List[GeneratedSource] = []

    if options.accessors:
        outputs.extend(emit_accessors(registry, newline))
    if options.registry:
        outputs.append(emit_registry_class(registry, options.registry_namespace,
                                           options.registry_class, newline))
    if options.llvm or options.manifest:
        target = options.target or get_current_platform()
        if options.llvm:
            from blitgen.backend.llvm_types import emit_llvm_module
            outputs.append(emit_llvm_module(registry, target))
        if options.manifest:
            from blitgen.backend.manifest_format import emit_manifest
            outputs.append(emit_manifest(registry, target))
    return outputs


def write_outputs(result: PassResult, out_dir: Path) -> List[Path]:
    """Write every generated source under `out_dir`, creating it if needed."""
    out_dir.mkdir(parents=True, exist_ok=True)
    written: List[Path] = []
    for source in result.outputs:
        path = out_dir / source.hint_name
        if source.is_binary:
            path.write_bytes(source.content)
        else:
            # newline="" keeps the emitter's line endings as generated
            with open(path, "w", encoding="utf-8", newline="") as f:
                f.write(source.content)
        written.append(path)
    return written
