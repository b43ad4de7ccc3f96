from __future__ import annotations
import json
import os
from typing import Dict, List, Mapping, Sequence
from .models import FileRecord, ScanResult
from .utils import format_bytes

FORMATS = ("text", "json")

# Undecodable names arrive as lone surrogates. On POSIX that writes the
# original bytes back; NTFS can hold unpaired UTF-16 surrogates, escaped here.
ENCODE_ERRORS = "backslashreplace" if os.name == "nt" else "surrogateescape"

def render_text(results: Mapping[str, Sequence[FileRecord]]) -> str:
    lines: List[str] = []
    for key, files in results.items():
        lines.append(f"Largest {len(files)} files on {key}:")
        if files:
            for f in files:
                lines.append(f"  {format_bytes(f.size):>9} – {f.path}")
        else:
            lines.append("  (No files found)")
        lines.append("")
    return "\n".join(lines) + "\n" if lines else ""

def to_json_obj(results: Mapping[str, Sequence[FileRecord]]) -> Dict[str, List[dict]]:
    return {key: [{"Path": f.path, "Size": f.size} for f in files]
            for key, files in results.items()}

def render_json(results: Mapping[str, Sequence[FileRecord]]) -> str:
    return json.dumps(to_json_obj(results), ensure_ascii=False, indent=2)

def render(results: Mapping[str, Sequence[FileRecord]], fmt: str = "text") -> bytes:
    if fmt not in FORMATS:
        raise ValueError(f"unknown report format: {fmt!r}")
    text = render_json(results) if fmt == "json" else render_text(results)
    return text.encode("utf-8", errors=ENCODE_ERRORS)

def load_json(text: str) -> ScanResult:
    """Parse ``render_json`` output back into records."""
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValueError(f"not a JSON report: {exc}") from exc
    if not isinstance(payload, dict):
        raise ValueError("report must be an object keyed by volume")

    out: ScanResult = {}
    for key, items in payload.items():
        if not isinstance(items, list):
            raise ValueError(f"{key}: expected a list of files")
        files = []
        for item in items:
            if not isinstance(item, dict):
                raise ValueError(f"{key}: expected {{Path, Size}} objects")
            path = item.get("Path")
            size = item.get("Size")
            if not isinstance(path, str):
                raise ValueError(f"{key}: Path must be a string")
            # bool is an int subclass
            if not isinstance(size, int) or isinstance(size, bool) or size < 0:
                raise ValueError(f"{key}: Size must be a non-negative integer")
            files.append(FileRecord(path=path, size=size))
        out[key] = files
    return out

def write_report(path: str, data: bytes) -> None:
    with open(path, "wb") as f:
        f.write(data)
