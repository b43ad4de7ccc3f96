from __future__ import annotations
import os
from typing import List, Optional
import psutil
from .models import Volume

_EXCLUDED = {"cdrom", "remote", "ramdisk"}

def volume_key(mountpoint: str) -> str:
    # C:\ -> C:
    if len(mountpoint) >= 2 and mountpoint[1] == ":" and mountpoint[0].isalpha():
        return mountpoint[:2].upper()
    return mountpoint

def classify(opts: str, windows: bool = os.name == "nt") -> Optional[str]:
    """Map partition opts to "fixed" / "removable", or None if not scanned.

    Windows reports the drive type in opts. Elsewhere psutil only lists
    physical devices when ``all=False``, so those count as fixed.
    """
    flags = {o.strip().lower() for o in (opts or "").split(",") if o.strip()}
    if "removable" in flags:
        return "removable"
    if "fixed" in flags:
        return "fixed"
    if windows or flags & _EXCLUDED:
        return None
    return "fixed"

def list_volumes() -> List[Volume]:
    """Ready fixed and removable volumes, sorted by mountpoint."""
    volumes = []
    seen = set()
    for p in psutil.disk_partitions(all=False):
        mp = p.mountpoint
        if not mp:
            continue
        mp_norm = os.path.abspath(mp)
        if mp_norm in seen:
            continue
        seen.add(mp_norm)
        kind = classify(p.opts)
        if kind is None:
            continue
        # not ready (no media, locked, unmounted in between)
        try:
            psutil.disk_usage(mp_norm)
        except (OSError, psutil.Error):
            continue
        volumes.append(Volume(key=volume_key(mp_norm), mountpoint=mp_norm, kind=kind))
    volumes.sort(key=lambda v: v.mountpoint.lower())
    return volumes
