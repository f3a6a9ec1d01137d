"""
Target detection for native-facing artifacts.

The LLVM module and the manifest record the target they were generated for;
native-word-sized fields (nint/nuint) take the target's pointer width.
"""
from __future__ import annotations
from dataclasses import dataclass
from llvmlite import binding as llvm

_32_BIT_ARCHES = frozenset({
    "i386", "i486", "i586", "i686", "x86", "arm", "armv6", "armv7", "armv7l", "armv7a",
    "thumbv7", "wasm32", "riscv32", "mips", "mipsel", "ppc", "powerpc",
})


@dataclass
class TargetPlatform:
    """Represents a target platform."""
    arch: str      # arm64, x86_64, riscv64, etc.
    vendor: str    # apple, pc, unknown, etc.
    os: str        # darwin, linux, windows, etc.
    abi: str       # (empty), gnu, musl, etc.

    @property
    def pointer_bits(self) -> int:
        return 32 if self.arch in _32_BIT_ARCHES else 64

    @property
    def triple(self) -> str:
        """Reconstruct the target triple string."""
        parts = [self.arch, self.vendor, self.os]
        if self.abi:
            parts.append(self.abi)
        return '-'.join(parts)


def parse_triple(triple: str) -> TargetPlatform:
    """
    Parse an LLVM target triple into components.

    Examples:
        arm64-apple-darwin25.0.0 -> TargetPlatform(arm64, apple, darwin, '')
        x86_64-pc-linux-gnu -> TargetPlatform(x86_64, pc, linux, gnu)
        i686-pc-windows-msvc -> TargetPlatform(i686, pc, windows, msvc)
    """
    parts = triple.split('-')

    os_part = parts[2] if len(parts) > 2 else 'unknown'
    if os_part.startswith('darwin'):
        os_part = 'darwin'  # darwin25.0.0 -> darwin

    return TargetPlatform(
        arch=parts[0] if len(parts) > 0 and parts[0] else 'unknown',
        vendor=parts[1] if len(parts) > 1 else 'unknown',
        os=os_part,
        abi=parts[3] if len(parts) > 3 else '',
    )


def get_current_platform() -> TargetPlatform:
    """Platform of the running LLVM default target."""
    return parse_triple(llvm.get_default_triple())
