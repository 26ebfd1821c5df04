"""
Tree Mirror - incremental, copy-if-newer mirroring of file trees.

This package copies a read-only source tree (an in-memory tree, a directory
or a zip archive) into a destination directory, remapping paths and copying
only entries whose destination is missing or older than the source.
"""

__version__ = "1.0.0"

from .core.mirror import TreeMirror, mirror_tree
from .core.sources import MemoryTree, LocalTree, ZipTree
from .core.lister import glob_star
from .core.runner import MirrorRunner
from .utils.formatters import format_file_info

__all__ = ["TreeMirror", "mirror_tree", "MemoryTree", "LocalTree", "ZipTree",
           "glob_star", "MirrorRunner", "format_file_info"]
