"""Flat listings of a source tree, like ``src/**`` with globstar enabled."""

import logging
from typing import List

from .models import EntryInfo
from .sources import SourceTree

logger = logging.getLogger(__name__)


def glob_star(source: SourceTree, root: str = "") -> List[str]:
    """Return every path under ``root`` in walk order, directories included.

    Nodes the walker cannot read are left out silently.
    """
    paths = []
    for entry in source.walk(root):
        if entry.error is not None:
            continue
        paths.append(entry.path)
    return paths


def list_entries(source: SourceTree, root: str = "") -> List[EntryInfo]:
    """Return metadata for every readable entry under ``root`` in walk order."""
    entries = []
    for path in glob_star(source, root):
        try:
            entries.append(source.stat(path))
        except OSError as e:
            logger.debug(f"Skipping {path}: {e}")
    return entries
