"""Core mirroring functionality."""

from .mirror import TreeMirror, MirrorError, WriteSizeMismatchError, DestinationConflictError, mirror_tree
from .remapper import PathRemapper, PathSegments, remap_path
from .sources import SourceTree, MemoryTree, LocalTree, ZipTree, open_source
from .lister import glob_star, list_entries
from .models import EntryInfo, WalkEntry, ChangeReport, MirrorResult, JobResult
from .runner import MirrorRunner

__all__ = [
    "TreeMirror", "MirrorError", "WriteSizeMismatchError", "DestinationConflictError", "mirror_tree",
    "PathRemapper", "PathSegments", "remap_path",
    "SourceTree", "MemoryTree", "LocalTree", "ZipTree", "open_source",
    "glob_star", "list_entries",
    "EntryInfo", "WalkEntry", "ChangeReport", "MirrorResult", "JobResult",
    "MirrorRunner",
]
