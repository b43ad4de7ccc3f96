from __future__ import annotations
import errno
import os
import time
import stat as statmod
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Tuple, Union
from .models import FileRecord, Volume, VolumeScan, ScanResult
from .selector import TopFiles, TOP_N

CancelCb = Callable[[], bool]
StartCb = Callable[[str, str], None]        # (key, root)
DoneCb = Callable[[VolumeScan], None]

_HIDDEN_SYSTEM = (getattr(statmod, "FILE_ATTRIBUTE_HIDDEN", 0x2) |
                  getattr(statmod, "FILE_ATTRIBUTE_SYSTEM", 0x4))

# Errors meaning the whole device is gone, not just one directory.
_FATAL_ERRNOS = {errno.ENODEV, errno.ENXIO}
if hasattr(errno, "ENOMEDIUM"):
    _FATAL_ERRNOS.add(errno.ENOMEDIUM)
_FATAL_WINERRORS = {21, 1167}  # ERROR_NOT_READY, ERROR_DEVICE_NOT_CONNECTED

_EXT_PREFIX = "\\\\?\\"
_EXT_UNC_PREFIX = "\\\\?\\UNC\\"


def is_fatal(exc: OSError) -> bool:
    if getattr(exc, "winerror", None) in _FATAL_WINERRORS:
        return True
    return exc.errno in _FATAL_ERRNOS


def is_hidden_or_system(name: str, st: os.stat_result) -> bool:
    """Skip policy: Windows hidden/system attributes, dot-names elsewhere."""
    attrs = getattr(st, "st_file_attributes", None)
    if attrs is not None:
        return bool(attrs & _HIDDEN_SYSTEM)
    return name.startswith(".")


def io_path(path: str, windows: bool = os.name == "nt") -> str:
    # Extended-length form lifts the 260 character MAX_PATH limit.
    if not windows or path.startswith(_EXT_PREFIX):
        return path
    if path.startswith("\\\\"):
        return _EXT_UNC_PREFIX + path[2:]
    return _EXT_PREFIX + path


def display_path(path: str) -> str:
    if path.startswith(_EXT_UNC_PREFIX):
        return "\\\\" + path[len(_EXT_UNC_PREFIX):]
    if path.startswith(_EXT_PREFIX):
        return path[len(_EXT_PREFIX):]
    return path


def walk(root: str, cancel_flag: Optional[CancelCb] = None) -> Iterator[FileRecord]:
    """Yield every regular file under ``root``.

    Directories are visited with an explicit stack, so depth is unbounded.
    Symlinks and directory reparse points are not followed, and the walk stays
    on the device of ``root``. A directory or entry that cannot be read is
    skipped. ``OSError`` escapes only when ``root`` itself cannot be read or
    the device reports that it is gone.
    """
    top = io_path(os.path.abspath(root))
    root_dev = os.stat(top).st_dev
    stack = [top]

    while stack:
        if cancel_flag and cancel_flag():
            return
        dir_path = stack.pop()
        try:
            with os.scandir(dir_path) as it:
                for entry in it:
                    if cancel_flag and cancel_flag():
                        return

                    try:
                        if entry.is_symlink():
                            continue
                        st = entry.stat(follow_symlinks=False)
                    except OSError as e:
                        if is_fatal(e):
                            raise
                        continue

                    if is_hidden_or_system(entry.name, st):
                        continue

                    mode = st.st_mode
                    if statmod.S_ISDIR(mode):
                        if getattr(st, "st_reparse_tag", 0):
                            continue
                        # scandir on Windows reports st_dev as 0
                        if root_dev and st.st_dev and st.st_dev != root_dev:
                            continue
                        stack.append(entry.path)
                    elif statmod.S_ISREG(mode):
                        yield FileRecord(path=display_path(entry.path), size=int(st.st_size))
        except OSError as e:
            if dir_path == top or is_fatal(e):
                raise
            continue


def scan_volume(root: str,
                key: Optional[str] = None,
                limit: int = TOP_N,
                cancel_flag: Optional[CancelCb] = None) -> VolumeScan:
    """Run one walker into one selector.

    A volume-wide failure is recorded in ``error``; whatever the selector held
    at that point is kept.
    """
    t0 = time.time()
    top = TopFiles(limit)
    error: Optional[str] = None
    try:
        for rec in walk(root, cancel_flag=cancel_flag):
            top.insert(rec)
    except OSError as e:
        error = str(e) or e.__class__.__name__
    return VolumeScan(
        key=key if key is not None else root,
        root=root,
        files=top.drain(),
        error=error,
        elapsed_sec=time.time() - t0,
        cancelled=bool(cancel_flag and cancel_flag()),
    )


def _as_pair(v: Union[Volume, Tuple[str, str]]) -> Tuple[str, str]:
    if isinstance(v, Volume):
        return v.key, v.mountpoint
    key, root = v
    return key, root


def scan_volumes(volumes: Iterable[Union[Volume, Tuple[str, str]]],
                 limit: int = TOP_N,
                 max_workers: int = 1,
                 cancel_flag: Optional[CancelCb] = None,
                 on_start: Optional[StartCb] = None,
                 on_done: Optional[DoneCb] = None) -> ScanResult:
    """Scan each volume and map its key to its largest files.

    With ``max_workers > 1`` volumes are scanned as independent tasks and
    joined at the end; the result is keyed in input order either way.
    When run sequentially, volumes not yet started when ``cancel_flag``
    fires are left out.
    """
    pairs = [_as_pair(v) for v in volumes]
    scans: List[VolumeScan] = []

    if max_workers <= 1 or len(pairs) <= 1:
        for key, root in pairs:
            if cancel_flag and cancel_flag():
                break
            if on_start:
                on_start(key, root)
            res = scan_volume(root, key=key, limit=limit, cancel_flag=cancel_flag)
            if on_done:
                on_done(res)
            scans.append(res)
    else:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            futures = []
            for key, root in pairs:
                if on_start:
                    on_start(key, root)
                futures.append(pool.submit(scan_volume, root, key, limit, cancel_flag))
            for fut in futures:
                res = fut.result()
                if on_done:
                    on_done(res)
                scans.append(res)

    results: Dict[str, List[FileRecord]] = {}
    for res in scans:
        results[res.key] = res.files
    return results
