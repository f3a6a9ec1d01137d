from __future__ import annotations
import sys, platform, datetime

import llvmlite
from llvmlite import binding as llvm

from blitgen import __version__ as app_ver, __dev__ as is_dev


def _ensure_utf8_stdout() -> None:
    reconfigure = getattr(sys.stdout, "reconfigure", None)
    if reconfigure is not None:
        reconfigure(encoding="utf-8")


def get_versions() -> dict[str, str]:
    llvm_lib_ver = ".".join(map(str, (getattr(llvm, "llvm_version_info", None) or ()))) or "unknown"
    return {
        "app": app_ver,
        "python": platform.python_version(),
        "llvmlite": getattr(llvmlite, "__version__", "unknown"),
        "llvm": llvm_lib_ver,
    }


def print_banner() -> None:
    _ensure_utf8_stdout()
    v = get_versions()
    today = datetime.date.today().isoformat()

    # ANSI styling only on an interactive terminal
    if sys.stdout.isatty():
        BOLD, DIM, RESET = "\x1b[1m", "\x1b[2m", "\x1b[0m"
    else:
        BOLD, DIM, RESET = "", "", ""

    dev_marker = " (dev)" if is_dev else ""
    print(
        f"{BOLD}blitgen{RESET} • {v['app']}{dev_marker}\n"
        f"{DIM}Python {v['python']} • llvmlite {v['llvmlite']} • LLVM {v['llvm']} • {today}{RESET}\n"
    )
