from __future__ import annotations

from datetime import datetime

import pytest

from tree_mirror.core.sources import MemoryTree

SOURCE_TIME = datetime(2020, 5, 17, 8, 30, 15)


@pytest.fixture
def sample_tree() -> MemoryTree:
    return MemoryTree.from_files(
        {
            "a/b.txt": b"bee",
            "a/c/d.txt": b"dee!",
            "b/c.txt": b"sea",
            "top.txt": b"top level",
        },
        mod_time=SOURCE_TIME,
    )
