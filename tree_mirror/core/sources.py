"""Read-only source trees that a mirror operation walks."""

import errno
import logging
import os
import posixpath
import stat
import zipfile
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, Generator, List, Optional, Tuple

from .models import EntryInfo, WalkEntry
from ..utils.formatters import ns_to_datetime

ROOT = "."
FILE_MODE = stat.S_IFREG | 0o444
DIR_MODE = stat.S_IFDIR | 0o555


def normalize_path(path: str) -> str:
    """Use forward slashes and map the empty path to the tree root."""
    path = (path or "").replace("\\", "/")
    return path or ROOT


def join_path(parent: str, name: str) -> str:
    if parent == ROOT:
        return name
    return f"{parent}/{name}"


def base_name(path: str) -> str:
    return path.rsplit("/", 1)[-1]


def _check_valid(path: str) -> None:
    """Reject rooted paths, empty elements and parent references."""
    if path == ROOT:
        return
    parts = path.split("/")
    if any(part in ("", ".", "..") for part in parts):
        raise OSError(errno.EINVAL, "Invalid source path", path)


def _list_children(path: str, dirs, files) -> List[Tuple[str, bool]]:
    """List the direct children of ``path`` from flat directory and file indexes."""
    if path in files:
        raise NotADirectoryError(errno.ENOTDIR, "Not a directory", path)
    if path not in dirs:
        raise FileNotFoundError(errno.ENOENT, "No such file or directory", path)

    prefix = "" if path == ROOT else path + "/"
    children = {}
    for candidate in list(dirs) + list(files):
        if candidate == ROOT or not candidate.startswith(prefix):
            continue
        rest = candidate[len(prefix):]
        if "/" not in rest:
            children[rest] = candidate in dirs
    return sorted(children.items())


class SourceTree(ABC):
    """A read-only hierarchy of files and directories.

    Paths are forward-slash separated and relative to the tree root, which
    is spelled ".".
    """

    @abstractmethod
    def stat(self, path: str) -> EntryInfo:
        """Return metadata for ``path``; raises OSError if it cannot be read."""

    @abstractmethod
    def list_dir(self, path: str) -> List[Tuple[str, bool]]:
        """Return ``(name, is_directory)`` pairs for a directory's children, sorted by name."""

    @abstractmethod
    def read_bytes(self, path: str) -> bytes:
        """Return the full content of a file."""

    def walk(self, root: str = ROOT) -> Generator[WalkEntry, None, None]:
        """Walk the tree rooted at ``root`` in lexical, depth-first order.

        Nodes that cannot be read are yielded with ``error`` set rather than
        raising, so callers decide whether to skip or abort. A directory
        whose listing fails is yielded a second time carrying the error.
        """
        root = normalize_path(root)
        try:
            info = self.stat(root)
        except OSError as e:
            yield WalkEntry(path=root, is_directory=False, error=e)
            return
        yield from self._walk(root, info.is_directory)

    def _walk(self, path: str, is_directory: bool) -> Generator[WalkEntry, None, None]:
        yield WalkEntry(path=path, is_directory=is_directory)
        if not is_directory:
            return

        try:
            children = self.list_dir(path)
        except OSError as e:
            yield WalkEntry(path=path, is_directory=True, error=e)
            return

        for name, child_is_directory in children:
            yield from self._walk(join_path(path, name), child_is_directory)

    def close(self) -> None:
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


class MemoryTree(SourceTree):
    """An in-memory tree, e.g. resources bundled with an application."""

    def __init__(self, root_time: Optional[datetime] = None):
        self._files: Dict[str, Tuple[bytes, datetime]] = {}
        self._dirs: Dict[str, datetime] = {ROOT: root_time or datetime.fromtimestamp(0)}

    @classmethod
    def from_files(cls, files: Dict[str, bytes], mod_time: Optional[datetime] = None) -> "MemoryTree":
        tree = cls()
        for path, data in files.items():
            tree.add_file(path, data, mod_time)
        return tree

    def add_file(self, path: str, data: bytes, mod_time: Optional[datetime] = None) -> None:
        path = normalize_path(path)
        _check_valid(path)
        if path == ROOT or path in self._dirs:
            raise ValueError(f"Path is a directory: {path}")
        self._add_parents(path, mod_time)
        self._files[path] = (bytes(data), mod_time or datetime.now())

    def add_dir(self, path: str, mod_time: Optional[datetime] = None) -> None:
        path = normalize_path(path)
        _check_valid(path)
        if path in self._files:
            raise ValueError(f"Path is a file: {path}")
        self._add_parents(path, mod_time)
        self._dirs[path] = mod_time or self._dirs.get(path) or datetime.fromtimestamp(0)

    def _add_parents(self, path: str, mod_time: Optional[datetime]) -> None:
        parts = path.split("/")
        for i in range(1, len(parts)):
            parent = "/".join(parts[:i])
            if parent in self._files:
                raise ValueError(f"Parent path is a file: {parent}")
            self._dirs.setdefault(parent, mod_time or datetime.fromtimestamp(0))

    def stat(self, path: str) -> EntryInfo:
        path = normalize_path(path)
        _check_valid(path)
        if path in self._files:
            data, mod_time = self._files[path]
            return EntryInfo(name=base_name(path), size=len(data), modified_time=mod_time,
                             mode=FILE_MODE, is_directory=False)
        if path in self._dirs:
            return EntryInfo(name=base_name(path), size=0, modified_time=self._dirs[path],
                             mode=DIR_MODE, is_directory=True)
        raise FileNotFoundError(errno.ENOENT, "No such file or directory", path)

    def list_dir(self, path: str) -> List[Tuple[str, bool]]:
        return _list_children(normalize_path(path), self._dirs, self._files)

    def read_bytes(self, path: str) -> bytes:
        path = normalize_path(path)
        _check_valid(path)
        if path in self._dirs:
            raise IsADirectoryError(errno.EISDIR, "Is a directory", path)
        if path not in self._files:
            raise FileNotFoundError(errno.ENOENT, "No such file or directory", path)
        return self._files[path][0]


class LocalTree(SourceTree):
    """A read-only view over a directory on the local filesystem."""

    def __init__(self, base_path: str):
        self.base_path = base_path
        self.logger = logging.getLogger(__name__)

    def _local(self, path: str) -> str:
        path = normalize_path(path)
        _check_valid(path)
        if path == ROOT:
            return self.base_path
        return os.path.join(self.base_path, *path.split("/"))

    def stat(self, path: str) -> EntryInfo:
        path = normalize_path(path)
        st = os.stat(self._local(path))
        name = os.path.basename(os.path.normpath(self.base_path)) if path == ROOT else base_name(path)
        return EntryInfo(
            name=name,
            size=st.st_size,
            modified_time=ns_to_datetime(st.st_mtime_ns),
            mode=st.st_mode,
            is_directory=stat.S_ISDIR(st.st_mode),
        )

    def list_dir(self, path: str) -> List[Tuple[str, bool]]:
        """List children; a symlinked directory is reported but never descended."""
        children = []
        with os.scandir(self._local(path)) as entries:
            for entry in entries:
                try:
                    children.append((entry.name, entry.is_dir(follow_symlinks=False)))
                except OSError as e:
                    self.logger.debug(f"Treating {entry.path} as a file: {e}")
                    children.append((entry.name, False))
        return sorted(children)

    def read_bytes(self, path: str) -> bytes:
        with open(self._local(path), 'rb') as f:
            return f.read()


class ZipTree(SourceTree):
    """A read-only view over the contents of a zip archive."""

    def __init__(self, archive_path: str):
        self.archive_path = archive_path
        self.logger = logging.getLogger(__name__)
        self._zip = zipfile.ZipFile(archive_path)
        self._files: Dict[str, zipfile.ZipInfo] = {}
        self._dirs: Dict[str, Optional[zipfile.ZipInfo]] = {ROOT: None}
        self._archive_time = ns_to_datetime(os.stat(archive_path).st_mtime_ns)
        self._build_index()

    def _build_index(self) -> None:
        for info in self._zip.infolist():
            name = posixpath.normpath(info.filename.replace("\\", "/")).lstrip("/")
            if name in ("", ROOT):
                continue
            if name == ".." or name.startswith("../"):
                self.logger.warning(f"Ignoring archive member outside the tree: {info.filename}")
                continue
            parts = name.split("/")
            for i in range(1, len(parts)):
                self._dirs.setdefault("/".join(parts[:i]), None)
            if info.is_dir():
                self._dirs[name] = info
            else:
                self._files[name] = info

    def _info_time(self, info: Optional[zipfile.ZipInfo]) -> datetime:
        if info is None:
            return self._archive_time
        return datetime(*info.date_time)

    def _info_mode(self, info: Optional[zipfile.ZipInfo], default: int) -> int:
        """Unix mode stored by the archiver, falling back to read-only defaults."""
        mode = info.external_attr >> 16 if info is not None else 0
        if not mode:
            return default
        return (stat.S_IFMT(mode) or stat.S_IFMT(default)) | stat.S_IMODE(mode)

    def stat(self, path: str) -> EntryInfo:
        path = normalize_path(path)
        _check_valid(path)
        if path in self._files:
            info = self._files[path]
            return EntryInfo(name=base_name(path), size=info.file_size,
                             modified_time=self._info_time(info),
                             mode=self._info_mode(info, FILE_MODE), is_directory=False)
        if path in self._dirs:
            info = self._dirs[path]
            return EntryInfo(name=base_name(path), size=0, modified_time=self._info_time(info),
                             mode=self._info_mode(info, DIR_MODE), is_directory=True)
        raise FileNotFoundError(errno.ENOENT, "No such file or directory", path)

    def list_dir(self, path: str) -> List[Tuple[str, bool]]:
        return _list_children(normalize_path(path), self._dirs, self._files)

    def read_bytes(self, path: str) -> bytes:
        path = normalize_path(path)
        _check_valid(path)
        if path in self._dirs:
            raise IsADirectoryError(errno.EISDIR, "Is a directory", path)
        if path not in self._files:
            raise FileNotFoundError(errno.ENOENT, "No such file or directory", path)
        try:
            return self._zip.read(self._files[path])
        except (zipfile.BadZipFile, RuntimeError) as e:
            raise OSError(errno.EIO, f"Cannot read archive member: {e}", path) from e

    def close(self) -> None:
        self._zip.close()


SOURCE_TYPES = ['local', 'zip', 'auto']


def open_source(location: str, source_type: str = 'auto') -> SourceTree:
    """Open a source tree from a directory or zip archive.

    Args:
        location: Directory or archive path.
        source_type: One of ``local``, ``zip`` or ``auto``.

    Returns:
        A SourceTree.

    Raises:
        FileNotFoundError: If the location does not exist.
        ValueError: If the source type is unknown or does not match the location.
    """
    if source_type not in SOURCE_TYPES:
        raise ValueError(f"Unknown source type: {source_type}")

    if not os.path.exists(location):
        raise FileNotFoundError(f"Source does not exist: {location}")

    if source_type == 'auto':
        source_type = 'local' if os.path.isdir(location) else 'zip'

    if source_type == 'local':
        if not os.path.isdir(location):
            raise ValueError(f"Source is not a directory: {location}")
        return LocalTree(location)

    if not zipfile.is_zipfile(location):
        raise ValueError(f"Source is not a zip archive: {location}")
    return ZipTree(location)
