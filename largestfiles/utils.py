from __future__ import annotations
import os
import sys

UNITS = ["B", "KB", "MB", "GB", "TB", "PB"]

def format_bytes(num: int) -> str:
    if num < 0:
        raise ValueError(f"negative byte count: {num}")
    x = float(num)
    i = 0
    while x >= 1024.0 and i < len(UNITS) - 1:
        x /= 1024.0
        i += 1
    # "{:.2f}" then trim: 2.50 -> 2.5, 1.00 -> 1
    s = f"{x:.2f}".rstrip("0").rstrip(".")
    return f"{s} {UNITS[i]}"

def app_dir() -> str:
    """Directory of the running executable.

    PyInstaller builds set ``sys.frozen``; otherwise the launched script is used.
    """
    if getattr(sys, "frozen", False):
        return os.path.dirname(os.path.abspath(sys.executable))
    main = sys.argv[0] if sys.argv and sys.argv[0] else ""
    if not main or main == "-c":
        return os.getcwd()
    return os.path.dirname(os.path.abspath(main))
