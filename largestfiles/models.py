from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Optional

@dataclass(frozen=True)
class FileRecord:
    path: str
    size: int

@dataclass(frozen=True)
class Volume:
    key: str          # "C:" on Windows, the mountpoint elsewhere
    mountpoint: str
    kind: str = "fixed"  # "fixed" | "removable"

@dataclass
class VolumeScan:
    key: str
    root: str
    files: List[FileRecord] = field(default_factory=list)  # sorted desc
    error: Optional[str] = None  # volume-wide failure, files may still be partial
    elapsed_sec: float = 0.0
    cancelled: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None

ScanResult = Dict[str, List[FileRecord]]
