from __future__ import annotations

from pathlib import Path
from typing import Callable, Dict

import pytest


def _write_tree(root: Path, files: Dict[str, int]) -> Path:
    for rel, size in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(b"x" * size)
    return root


@pytest.fixture
def make_tree(tmp_path: Path) -> Callable[[str, Dict[str, int]], Path]:
    def factory(name: str, files: Dict[str, int]) -> Path:
        root = tmp_path / name
        root.mkdir(parents=True, exist_ok=True)
        return _write_tree(root, files)

    return factory


@pytest.fixture
def sixty_files(make_tree) -> Path:
    # sizes 1..60 spread over a few nested directories
    files = {f"d{size % 4}/sub{size % 3}/f{size:02d}.bin": size for size in range(1, 61)}
    return make_tree("volume", files)
