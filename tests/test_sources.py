from __future__ import annotations

import os
import stat
import zipfile
from datetime import datetime
from pathlib import Path

import pytest

from tree_mirror.core.mirror import TreeMirror
from tree_mirror.core.sources import LocalTree, MemoryTree, ZipTree, open_source

from .conftest import SOURCE_TIME


def _paths(tree, root: str = "") -> list:
    return [entry.path for entry in tree.walk(root) if entry.error is None]


def test_memory_walk_is_lexical_and_depth_first(sample_tree: MemoryTree) -> None:
    assert _paths(sample_tree) == [
        ".", "a", "a/b.txt", "a/c", "a/c/d.txt", "b", "b/c.txt", "top.txt",
    ]
    assert _paths(sample_tree, "a\\c") == ["a/c", "a/c/d.txt"]


def test_memory_walk_of_missing_root_yields_one_error(sample_tree: MemoryTree) -> None:
    entries = list(sample_tree.walk("missing"))

    assert len(entries) == 1
    assert entries[0].path == "missing"
    assert isinstance(entries[0].error, FileNotFoundError)


def test_memory_walk_rejects_malformed_roots(sample_tree: MemoryTree) -> None:
    entries = list(sample_tree.walk("a/"))

    assert len(entries) == 1
    assert isinstance(entries[0].error, OSError)


def test_memory_stat_and_read(sample_tree: MemoryTree) -> None:
    info = sample_tree.stat("a/c/d.txt")

    assert info.name == "d.txt"
    assert info.size == 4
    assert info.modified_time == SOURCE_TIME
    assert info.permissions == "-r--r--r--"
    assert sample_tree.stat("a").permissions == "dr-xr-xr-x"
    assert sample_tree.read_bytes("a/b.txt") == b"bee"
    with pytest.raises(IsADirectoryError):
        sample_tree.read_bytes("a")
    with pytest.raises(FileNotFoundError):
        sample_tree.read_bytes("a/zzz.txt")


def test_memory_tree_refuses_file_as_parent() -> None:
    tree = MemoryTree.from_files({"a": b"file"})

    with pytest.raises(ValueError):
        tree.add_file("a/b.txt", b"nested")


def test_local_tree_walks_a_directory(tmp_path: Path) -> None:
    (tmp_path / "src" / "sub").mkdir(parents=True)
    (tmp_path / "src" / "sub" / "one.txt").write_bytes(b"1")
    (tmp_path / "src" / "zero.txt").write_bytes(b"")
    tree = LocalTree(str(tmp_path / "src"))

    assert _paths(tree) == [".", "sub", "sub/one.txt", "zero.txt"]
    info = tree.stat("sub/one.txt")
    assert info.size == 1
    assert not info.is_directory
    assert info.modified_time.timestamp() == pytest.approx(
        os.stat(tmp_path / "src" / "sub" / "one.txt").st_mtime, abs=1e-5)
    assert tree.stat(".").name == "src"
    assert tree.read_bytes("sub/one.txt") == b"1"


def _write_archive(path: Path) -> None:
    with zipfile.ZipFile(path, "w") as archive:
        archive.writestr(zipfile.ZipInfo("app/templates/index.html", date_time=(2021, 3, 4, 5, 6, 8)),
                         b"<html></html>")
        archive.writestr(zipfile.ZipInfo("app/readme.txt", date_time=(2021, 3, 4, 5, 6, 10)), b"read me")
        archive.writestr(zipfile.ZipInfo("empty/", date_time=(2021, 1, 1, 0, 0, 0)), b"")


def test_zip_tree_implies_directories(tmp_path: Path) -> None:
    archive = tmp_path / "bundle.zip"
    _write_archive(archive)

    with ZipTree(str(archive)) as tree:
        assert _paths(tree) == [
            ".", "app", "app/readme.txt", "app/templates", "app/templates/index.html", "empty",
        ]
        assert tree.stat("app/readme.txt").modified_time == datetime(2021, 3, 4, 5, 6, 10)
        assert tree.stat("empty").is_directory
        assert stat.S_ISDIR(tree.stat("app").mode)
        assert tree.read_bytes("app/templates/index.html") == b"<html></html>"


def test_zip_subtree_mirrors_to_disk(tmp_path: Path) -> None:
    archive = tmp_path / "bundle.zip"
    _write_archive(archive)
    out = tmp_path / "out"

    with open_source(str(archive)) as tree:
        result = TreeMirror(tree).mirror("app/templates", str(out))

    assert result.ok
    assert (out / "templates" / "index.html").read_bytes() == b"<html></html>"
    assert result.mapping["index.html"] == str(out / "templates" / "index.html")


def test_open_source_detects_kind(tmp_path: Path) -> None:
    archive = tmp_path / "bundle.zip"
    _write_archive(archive)

    assert isinstance(open_source(str(tmp_path)), LocalTree)
    with open_source(str(archive), "auto") as tree:
        assert isinstance(tree, ZipTree)


def test_open_source_rejects_bad_input(tmp_path: Path) -> None:
    plain = tmp_path / "plain.txt"
    plain.write_text("not an archive", encoding="utf-8")

    with pytest.raises(FileNotFoundError):
        open_source(str(tmp_path / "missing"))
    with pytest.raises(ValueError):
        open_source(str(tmp_path), "ftp")
    with pytest.raises(ValueError):
        open_source(str(tmp_path), "zip")
    with pytest.raises(ValueError):
        open_source(str(plain))


def test_local_tree_does_not_descend_symlinked_directories(tmp_path: Path) -> None:
    source = tmp_path / "src"
    (source / "a").mkdir(parents=True)
    (source / "a" / "f.txt").write_bytes(b"f")
    try:
        os.symlink("..", source / "a" / "up", target_is_directory=True)
    except (OSError, NotImplementedError):
        pytest.skip("symlinks are not available")
    out = tmp_path / "out"

    result = TreeMirror(LocalTree(str(source))).mirror("", str(out))

    assert result.ok
    assert list(result.mapping) == [".", "a", "a/f.txt", "a/up"]
    assert result.copied == 4
    assert (out / "a" / "up").is_dir()
    assert list((out / "a" / "up").iterdir()) == []


def test_zip_member_names_are_normalised(tmp_path: Path) -> None:
    archive = tmp_path / "odd.zip"
    with zipfile.ZipFile(archive, "w") as writer:
        writer.writestr(zipfile.ZipInfo("./x.txt", date_time=(2021, 1, 1, 0, 0, 0)), b"x")
        writer.writestr(zipfile.ZipInfo("a//b.txt", date_time=(2021, 1, 1, 0, 0, 0)), b"b")
        writer.writestr(zipfile.ZipInfo("../evil.txt", date_time=(2021, 1, 1, 0, 0, 0)), b"e")

    with ZipTree(str(archive)) as tree:
        assert _paths(tree) == [".", "a", "a/b.txt", "x.txt"]
        assert tree.read_bytes("a/b.txt") == b"b"
        assert tree.read_bytes("x.txt") == b"x"
