"""Binary verdict manifest (.blitm).

A compact, tool-readable copy of the registry for build steps that do not
parse C#. Metadata is MessagePack-encoded.

File layout (version 1):

    ┌─────────────────────────────────────────────────────────────┐
    │ MAGIC (8 bytes): "BLITMAN\\0"                                │
    ├─────────────────────────────────────────────────────────────┤
    │ VERSION (4 bytes): uint32 LE                                │
    ├─────────────────────────────────────────────────────────────┤
    │ SPARE (4 bytes): uint32 LE (reserved)                       │
    ├─────────────────────────────────────────────────────────────┤
    │ METADATA_LENGTH (8 bytes): uint64 LE                        │
    ├─────────────────────────────────────────────────────────────┤
    │ METADATA_BLOB (N bytes): MessagePack-encoded dict           │
    └─────────────────────────────────────────────────────────────┘

Fixed header size: 24 bytes
"""
from __future__ import annotations

import datetime
import struct
from pathlib import Path
from typing import Optional

import msgpack

from blitgen.backend.platform_detect import TargetPlatform
from blitgen.backend.sources import GeneratedSource
from blitgen.internals.errors import format_message
from blitgen.semantics.registry import Registry


class ManifestFormatError(Exception):
    """A manifest file could not be read; carries a BE3xxx catalog code."""

    def __init__(self, code: str, **kwargs) -> None:
        self.code = code
        self.text = format_message(code, **kwargs)
        super().__init__(f"{code}: {self.text}")


class ManifestFormat:
    """Binary format reader/writer for .blitm files."""

    MAGIC = b"BLITMAN\x00"
    VERSION = 1
    FIXED_HEADER_SIZE = 24  # 8 (magic) + 4 (version) + 4 (spare) + 8 (meta_len)

    @staticmethod
    def to_bytes(metadata: dict) -> bytes:
        blob = msgpack.packb(metadata, use_bin_type=True)
        header = ManifestFormat.MAGIC + struct.pack("<IIQ", ManifestFormat.VERSION, 0, len(blob))
        return header + blob

    @staticmethod
    def from_bytes(data: bytes, path: str = "<memory>") -> dict:
        """Decode a manifest.

        Raises:
            ManifestFormatError: BE3001-BE3003 for format errors.
        """
        if len(data) < len(ManifestFormat.MAGIC) or data[:8] != ManifestFormat.MAGIC:
            raise ManifestFormatError("BE3001", path=path)
        if len(data) < ManifestFormat.FIXED_HEADER_SIZE:
            raise ManifestFormatError("BE3003", path=path, reason="header is incomplete")

        version, _spare, meta_len = struct.unpack("<IIQ", data[8:ManifestFormat.FIXED_HEADER_SIZE])
        if version != ManifestFormat.VERSION:
            raise ManifestFormatError("BE3002", path=path, version=version, supported=ManifestFormat.VERSION)

        blob = data[ManifestFormat.FIXED_HEADER_SIZE:ManifestFormat.FIXED_HEADER_SIZE + meta_len]
        if len(blob) != meta_len:
            raise ManifestFormatError("BE3003", path=path,
                                      reason=f"expected {meta_len} metadata bytes, found {len(blob)}")
        try:
            metadata = msgpack.unpackb(blob, raw=False)
        except (ValueError, msgpack.UnpackException) as e:
            raise ManifestFormatError("BE3003", path=path, reason=str(e)) from e
        if not isinstance(metadata, dict):
            raise ManifestFormatError("BE3003", path=path, reason="metadata is not a map")
        return metadata

    @staticmethod
    def write(output_path: Path, metadata: dict) -> None:
        output_path.write_bytes(ManifestFormat.to_bytes(metadata))

    @staticmethod
    def read(manifest_path: Path) -> dict:
        return ManifestFormat.from_bytes(manifest_path.read_bytes(), str(manifest_path))


def build_manifest_metadata(registry: Registry, target: Optional[TargetPlatform] = None,
                            generated_at: Optional[str] = None) -> dict:
    from blitgen import __version__

    types = []
    for identity, ok in registry.items():
        descriptor = registry.descriptor(identity)
        types.append({
            "identity": identity,
            "namespace": descriptor.namespace,
            "name": descriptor.name,
            "blittable": ok,
        })
    return {
        "tool_version": __version__,
        "generated_at": generated_at or datetime.datetime.now(datetime.timezone.utc).isoformat(timespec="seconds"),
        "target": target.triple if target is not None else "",
        "types": types,
    }


def emit_manifest(registry: Registry, target: Optional[TargetPlatform] = None,
                  hint_name: str = "blittable_types.blitm") -> GeneratedSource:
    return GeneratedSource(hint_name, ManifestFormat.to_bytes(build_manifest_metadata(registry, target)))
