"""CLI entry point and argument parsing."""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

from blitgen.backend.csharp import NEWLINE_STYLES
from blitgen.internals.version import print_banner


def print_manifest_info(manifest_path: Path) -> int:
    """Print formatted metadata from a .blitm manifest file.

    Returns:
        0 on success, 2 on error.
    """
    from blitgen.backend.manifest_format import ManifestFormat, ManifestFormatError

    if not manifest_path.exists():
        print(f"Error: file not found: {manifest_path}", file=sys.stderr)
        return 2

    try:
        metadata = ManifestFormat.read(manifest_path)
    except ManifestFormatError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    print(f"Manifest: {manifest_path.name}")
    print(f"Target: {metadata.get('target') or 'unspecified'}")
    print(f"Generator: blitgen {metadata.get('tool_version', 'unknown')}")
    print(f"Generated: {metadata.get('generated_at', 'unknown')}")
    print()

    types = metadata.get("types", [])
    blittable = sum(1 for t in types if t.get("blittable"))
    print(f"Types ({len(types)}, {blittable} blittable):")
    for entry in types:
        mark = "yes" if entry.get("blittable") else "no "
        print(f"  [{mark}] {entry.get('identity')}")

    return 0


def print_summary(result) -> None:
    registry = result.registry
    universe = result.universe
    print(f"Analyzed {len(universe)} types, {len(registry)} candidates:")
    for identity, ok in registry.items():
        print(f"  - {identity}: {'blittable' if ok else 'not blittable'}")
    cache = registry.cache
    print(f"Verdicts: {len(registry.blittable())} blittable, {len(registry.not_blittable())} not blittable "
          f"({cache.traversals} traversals, {cache.hits} cache hits)")
    print()


def _build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="blitgen",
                                 description="Blittability analysis and IsBlittable accessor generation")

    ap.add_argument("sources", nargs="*", help="Declaration files (.cs); default: [project] sources from blitgen.toml")
    ap.add_argument("--version", action="store_true", help="Show version and exit")
    ap.add_argument("-o", "--out", metavar="OUT",
                    help="Output directory (default: [project] output, else ./generated)")
    ap.add_argument("--config", metavar="FILE", help="Path to blitgen.toml (default: ./blitgen.toml if present)")
    ap.add_argument("--emit-llvm", action="store_true", help="Also write LLVM IR struct types (blittable_types.ll)")
    ap.add_argument("--emit-manifest", action="store_true",
                    help="Also write the binary verdict manifest (blittable_types.blitm)")
    ap.add_argument("--no-accessors", action="store_true", help="Do not generate per-struct IsBlittable accessors")
    ap.add_argument("--no-registry", action="store_true", help="Do not generate the registry class")
    ap.add_argument("--stdout", action="store_true", help="Print generated sources instead of writing files")
    ap.add_argument("--summary", action="store_true", help="Print per-type verdicts and cache statistics")
    ap.add_argument("--dump-parse", action="store_true", help="Print raw Lark tree")
    ap.add_argument("--dump-ast", action="store_true", help="Print AST")
    ap.add_argument("--newline", choices=NEWLINE_STYLES, help="Line endings of generated sources")
    ap.add_argument("--manifest-info", metavar="FILE", help="Display metadata from a .blitm manifest file")
    ap.add_argument(
        "--traceback",
        action="store_true",
        help="Print full traceback on internal errors (for debugging)",
    )
    return ap


def main(argv: list[str] | None = None) -> int:
    """Main blitgen entry point."""
    args = _build_parser().parse_args(argv)

    if not args.stdout:
        print_banner()

    if args.version:
        return 0

    if args.manifest_info:
        return print_manifest_info(Path(args.manifest_info))

    from blitgen.compiler.config import BlitgenConfig, ConfigError, get_effective_cwd, load_config
    from blitgen.compiler.pipeline import EmitOptions, run_pass, write_outputs
    from blitgen.internals.report import Reporter

    effective_cwd = get_effective_cwd()

    try:
        config_path = Path(args.config) if args.config else None
        if config_path is not None and not config_path.is_absolute():
            config_path = effective_cwd / config_path
        config = load_config(config_path)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    if config is None:
        config = BlitgenConfig(base_dir=effective_cwd)

    if args.sources:
        sources = []
        for raw in args.sources:
            path = Path(raw)
            if not path.is_absolute():
                path = effective_cwd / path
            sources.append(path.resolve())
    else:
        sources = config.source_paths()
    if not sources:
        print("error: no declaration files given (pass SOURCES or set [project] sources)", file=sys.stderr)
        return 2

    options = EmitOptions(
        accessors=config.accessors and not args.no_accessors,
        registry=config.registry and not args.no_registry,
        llvm=config.llvm or args.emit_llvm,
        manifest=config.manifest or args.emit_manifest,
        registry_namespace=config.registry_namespace,
        registry_class=config.registry_class,
        newline=args.newline or config.newline,
        dump_parse=args.dump_parse,
        dump_ast=args.dump_ast,
    )

    reporter = Reporter()
    try:
        result = run_pass(sources, reporter, options)
    except OSError as e:
        print(f"error: cannot read {e.filename}: {e.strerror}", file=sys.stderr)
        return 2
    except RuntimeError as e:
        print(f"Analysis failed: {e}", file=sys.stderr)
        if args.traceback:
            import traceback
            traceback.print_exc()
        return 2

    reporter.print()
    if reporter.has_errors:
        return 2

    if args.summary:
        print_summary(result)

    if args.stdout:
        for source in result.outputs:
            if source.is_binary:
                print(f"(skipped binary output {source.hint_name})", file=sys.stderr)
                continue
            print(f"// ---- {source.hint_name} ----")
            sys.stdout.write(source.content)
    else:
        out_dir = Path(args.out) if args.out else config.output_dir
        if not out_dir.is_absolute():
            out_dir = effective_cwd / out_dir
        written = write_outputs(result, out_dir)
        print(f"Success! Wrote {len(written)} files to {out_dir}")

    return reporter.exit_code()


if __name__ == "__main__":
    raise SystemExit(main())
