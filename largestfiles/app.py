from __future__ import annotations

import os
import sys
import signal
from contextlib import contextmanager
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from .models import Volume, VolumeScan
from .scanner import scan_volumes
from .selector import TOP_N
from .drives import list_volumes
from .report import render, write_report
from .utils import app_dir

APP_NAME = "LargestFilesFinder"
TEXT_FILE = "largest_files.txt"
JSON_FILE = "largest_files.json"


# -------------------- Cancel flag --------------------
class CancelFlag:
    def __init__(self):
        self._cancel = False

    def cancel(self):
        self._cancel = True

    def __call__(self):
        return self._cancel


@contextmanager
def interrupt_cancels(flag: CancelFlag):
    """Turn Ctrl+C into ``flag.cancel()`` so partial results still get written."""
    def handler(_signum, _frame):
        flag.cancel()

    try:
        prev = signal.signal(signal.SIGINT, handler)
    except ValueError:
        # not the main thread; leave the default behaviour alone
        yield
        return
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, prev)


# -------------------- CLI --------------------
def wants_json(argv: Sequence[str]) -> bool:
    return len(argv) > 0 and argv[0].lower() == "--json"


def output_path(as_json: bool, out_dir: Optional[str] = None) -> str:
    return os.path.join(out_dir or app_dir(), JSON_FILE if as_json else TEXT_FILE)


def _on_start(_key: str, root: str) -> None:
    print(f"Scanning {root} …", flush=True)


def _on_done(res: VolumeScan) -> None:
    if res.error:
        print(f"! Failed to fully scan {res.root}. Reason: {res.error}", file=sys.stderr)
    if res.cancelled:
        print(f"! Scan of {res.root} interrupted; keeping partial results.", file=sys.stderr)
    print(f"  {len(res.files)} items collected in {res.elapsed_sec:.1f}s\n", flush=True)


def run(argv: Optional[List[str]] = None,
        volumes: Optional[Iterable[Union[Volume, Tuple[str, str]]]] = None,
        out_dir: Optional[str] = None,
        limit: int = TOP_N,
        max_workers: int = 1) -> int:
    argv = sys.argv[1:] if argv is None else argv
    as_json = wants_json(argv)
    out_path = output_path(as_json, out_dir)

    # fail before a long scan if the report can't be written
    try:
        write_report(out_path, b"")
    except OSError as e:
        print(f"Cannot create output file: {e}", file=sys.stderr)
        return 1

    print(f"[{APP_NAME}]\n")
    if volumes is None:
        volumes = list_volumes()

    cancel = CancelFlag()
    with interrupt_cancels(cancel):
        results = scan_volumes(volumes,
                               limit=limit,
                               max_workers=max_workers,
                               cancel_flag=cancel,
                               on_start=_on_start,
                               on_done=_on_done)

    try:
        write_report(out_path, render(results, "json" if as_json else "text"))
    except OSError as e:
        print(f"Failed to write output file: {e}", file=sys.stderr)
        return 1

    print(f"Done. Output => {out_path}")
    return 0


def main() -> int:
    return run(sys.argv[1:])
