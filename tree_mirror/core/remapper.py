"""Mapping of walked source paths onto destination paths."""

import os
from dataclasses import dataclass
from typing import Tuple

SEPARATOR = "/"


def to_slash(path: str) -> str:
    """Replace backslashes with the canonical forward slash."""
    return (path or "").replace("\\", SEPARATOR)


@dataclass(frozen=True)
class PathSegments:
    """A path held as its separator-delimited segments."""
    segments: Tuple[str, ...]

    @classmethod
    def split(cls, path: str) -> "PathSegments":
        return cls(tuple(to_slash(path).split(SEPARATOR)))

    def drop_leading(self, count: int) -> "PathSegments":
        return PathSegments(self.segments[count:])

    def __add__(self, other: "PathSegments") -> "PathSegments":
        return PathSegments(self.segments + other.segments)

    def join(self) -> str:
        """Join with the host's path semantics; empty segments contribute nothing."""
        parts = [segment for segment in self.segments if segment]
        if not parts:
            return ""
        return os.path.normpath(os.path.join(*parts))


class PathRemapper:
    """Derives destination paths for one mirror operation.

    The source prefix's separator count is computed once: every walked path
    loses that many leading segments before being placed under the
    destination root and prefix. A root prefix ("." or "") and a single-name
    prefix such as "b" both strip nothing, so the subtree's own name is kept
    under the destination; "a/b" strips "a".
    """

    def __init__(self, source_prefix: str, destination_root: str, destination_prefix: str = ""):
        self.source_prefix = to_slash(source_prefix) or "."
        self.strip_count = self.source_prefix.count(SEPARATOR)
        self.destination = (PathSegments((to_slash(destination_root),))
                            + PathSegments.split(destination_prefix))

    def relative_key(self, walked_path: str) -> str:
        prefix = self.source_prefix + SEPARATOR
        if walked_path.startswith(prefix):
            return walked_path[len(prefix):]
        return walked_path

    def destination_path(self, walked_path: str) -> str:
        tail = PathSegments.split(walked_path).drop_leading(self.strip_count)
        return (self.destination + tail).join()

    def remap(self, walked_path: str) -> Tuple[str, str]:
        """Return ``(relative_key, destination_path)`` for a walked source path."""
        return self.relative_key(walked_path), self.destination_path(walked_path)


def remap_path(source_prefix: str, destination_root: str, destination_prefix: str,
               walked_path: str) -> Tuple[str, str]:
    """One-shot form of PathRemapper.remap."""
    return PathRemapper(source_prefix, destination_root, destination_prefix).remap(walked_path)
