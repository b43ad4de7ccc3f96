from __future__ import annotations

import json
import os
import signal
import sys
from pathlib import Path

import pytest

from largestfiles import app
from largestfiles.app import CancelFlag, interrupt_cancels, output_path, run, wants_json


@pytest.mark.parametrize(
    ("argv", "expected"),
    [
        ([], False),
        (["--json"], True),
        (["--JSON"], True),
        (["--Json", "extra"], True),
        (["--text"], False),
        (["foo", "--json"], False),
    ],
)
def test_wants_json(argv, expected: bool) -> None:
    assert wants_json(argv) is expected


def test_output_path_names(tmp_path: Path) -> None:
    assert output_path(False, str(tmp_path)) == str(tmp_path / "largest_files.txt")
    assert output_path(True, str(tmp_path)) == str(tmp_path / "largest_files.json")


def test_cancel_flag() -> None:
    flag = CancelFlag()
    assert not flag()
    flag.cancel()
    assert flag()


def test_interrupt_cancels_sets_flag_and_restores_handler() -> None:
    before = signal.getsignal(signal.SIGINT)
    flag = CancelFlag()

    with interrupt_cancels(flag):
        handler = signal.getsignal(signal.SIGINT)
        handler(signal.SIGINT, None)

    assert flag()
    assert signal.getsignal(signal.SIGINT) is before


def test_run_writes_text_report(make_tree, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    vol = make_tree("vol", {"a.bin": 2048, "b.bin": 10})
    out_dir = tmp_path / "out"
    out_dir.mkdir()

    code = run([], volumes=[("V:", str(vol))], out_dir=str(out_dir))

    assert code == 0
    report = (out_dir / "largest_files.txt").read_text(encoding="utf-8")
    assert report.startswith("Largest 2 files on V:\n")
    assert "2 KB – " in report
    out = capsys.readouterr().out
    assert f"Scanning {vol} …" in out
    assert "2 items collected in" in out
    assert "Done. Output =>" in out


def test_run_reports_failed_volume_on_stderr(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    code = run(["--json"], volumes=[("Z:", str(tmp_path / "absent"))], out_dir=str(tmp_path))

    assert code == 0
    assert json.loads((tmp_path / "largest_files.json").read_text(encoding="utf-8")) == {"Z:": []}
    captured = capsys.readouterr()
    assert "! Failed to fully scan" in captured.err
    assert "Failed to fully scan" not in captured.out


def test_run_fails_when_output_cannot_be_created(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    code = run([], volumes=[], out_dir=str(tmp_path / "no-such-dir"))

    assert code == 1
    assert "Cannot create output file" in capsys.readouterr().err


def test_run_fails_when_final_write_fails(
    make_tree, tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    vol = make_tree("vol", {"a.bin": 1})
    calls = []
    real_write = app.write_report

    def flaky_write(path: str, data: bytes) -> None:
        calls.append(path)
        if len(calls) > 1:
            raise OSError("disk full")
        real_write(path, data)

    monkeypatch.setattr(app, "write_report", flaky_write)

    code = run([], volumes=[("V:", str(vol))], out_dir=str(tmp_path))

    assert code == 1
    assert "Failed to write output file: disk full" in capsys.readouterr().err


def test_run_uses_detected_volumes_by_default(
    make_tree, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    vol = make_tree("vol", {"a.bin": 1})
    monkeypatch.setattr(app, "list_volumes", lambda: [("V:", str(vol))])

    assert run([], out_dir=str(tmp_path)) == 0
    assert "Largest 1 files on V:" in (tmp_path / "largest_files.txt").read_text(encoding="utf-8")


@pytest.mark.skipif(not sys.platform.startswith("linux"), reason="needs a filesystem that stores raw bytes")
def test_run_survives_undecodable_file_name(make_tree, tmp_path: Path) -> None:
    vol = make_tree("vol", {"good.bin": 5})
    try:
        with open(os.path.join(os.fsencode(vol), b"bad\xff.bin"), "wb") as f:
            f.write(b"x" * 10)
    except OSError:
        pytest.skip("filesystem rejects non-UTF-8 names")

    code = run([], volumes=[("V:", str(vol))], out_dir=str(tmp_path))

    assert code == 0
    report = (tmp_path / "largest_files.txt").read_bytes()
    assert b"bad\xff.bin" in report
    assert b"good.bin" in report


def test_run_interrupted_keeps_partial_results(
    make_tree, tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    first = make_tree("first", {"a.bin": 3})
    second = make_tree("second", {"b.bin": 7})
    flags = []

    class RecordingFlag(CancelFlag):
        def __init__(self):
            super().__init__()
            flags.append(self)

    real_on_start = app._on_start

    def on_start_then_interrupt(key: str, root: str) -> None:
        real_on_start(key, root)
        # Ctrl+C lands while the first volume is being walked
        flags[-1].cancel()

    monkeypatch.setattr(app, "CancelFlag", RecordingFlag)
    monkeypatch.setattr(app, "_on_start", on_start_then_interrupt)

    code = run(["--json"], volumes=[("A:", str(first)), ("B:", str(second))], out_dir=str(tmp_path))

    assert code == 0
    payload = json.loads((tmp_path / "largest_files.json").read_text(encoding="utf-8"))
    assert list(payload) == ["A:"]
    assert "interrupted; keeping partial results" in capsys.readouterr().err
