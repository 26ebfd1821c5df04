"""Incremental copy-if-newer mirroring of a source tree onto the local filesystem."""

import logging
import os
import stat
import time
from typing import Optional

from .models import EntryInfo, MirrorResult, WalkEntry
from .remapper import PathRemapper
from .sources import SourceTree
from ..utils.formatters import datetime_to_ns, format_date, ns_to_datetime


class MirrorError(Exception):
    """A fatal condition that stops a mirror operation."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class WriteSizeMismatchError(MirrorError):
    """The destination recorded a different size than the bytes written."""

    def __init__(self, path: str, expected: int, recorded: int):
        super().__init__(f"writing error to {path}, expected {expected}, was recorded {recorded}", path)
        self.expected = expected
        self.recorded = recorded


class DestinationConflictError(MirrorError):
    """A source directory maps onto an existing non-directory."""


class TreeMirror:
    """Mirrors a source tree into a destination directory, copying only stale files."""

    DIR_MODE = 0o755
    FILE_MODE = 0o644

    def __init__(self, source: SourceTree):
        """Initialize tree mirror.

        Args:
            source: Read-only tree to copy from.
        """
        self.source = source
        self.logger = logging.getLogger(__name__)

    def mirror(self, source_prefix: str = "", destination_root: str = "",
               destination_prefix: str = "") -> MirrorResult:
        """Mirror the subtree at ``source_prefix`` under ``destination_root/destination_prefix``.

        Every visited entry is recorded in the result's mapping. Files whose
        destination is at least as new as the source are left alone. The walk
        stops at the first fatal error, which is returned in ``result.error``
        together with everything accumulated before it.

        Args:
            source_prefix: Subtree of the source to mirror; empty means the whole tree.
            destination_root: Directory the mirrored tree is placed under.
            destination_prefix: Optional subdirectory below the destination root.

        Returns:
            MirrorResult with the path mapping, change report and fatal error if any.
        """
        remapper = PathRemapper(source_prefix, destination_root, destination_prefix)
        result = MirrorResult()

        self.logger.info(f"Starting mirror of {remapper.source_prefix} into "
                         f"{remapper.destination_path(remapper.source_prefix) or '.'}")

        try:
            for entry in self.source.walk(remapper.source_prefix):
                if entry.error is not None:
                    # Unreadable nodes are skipped, never fatal
                    self.logger.debug(f"Skipping unreadable source entry {entry.path}: {entry.error}")
                    continue
                self._mirror_entry(entry, remapper, result)
        except (OSError, MirrorError) as e:
            self.logger.error(f"Mirror aborted: {e}")
            result.error = e

        self.logger.info(f"Completed mirror of {remapper.source_prefix}: "
                         f"{len(result.mapping)} entries, {result.copied} changed")
        return result

    def _mirror_entry(self, entry: WalkEntry, remapper: PathRemapper, result: MirrorResult) -> None:
        key, destination = remapper.remap(entry.path)
        result.mapping[key] = destination

        try:
            source_info = self.source.stat(entry.path)
        except OSError as e:
            self.logger.warning(f"Cannot stat source entry {entry.path}, skipping: {e}")
            return

        existing = self._stat_destination(destination)
        previous = ""
        if existing is not None:
            if self._is_fresh(existing, source_info):
                self.logger.debug(f"Up to date: {destination}")
                return
            previous = f"{format_date(ns_to_datetime(existing.st_mtime_ns))} {existing.st_size}"

        # A symlinked directory is walked as a leaf but still mirrors as a directory
        if entry.is_directory or source_info.is_directory:
            if existing is None:
                os.makedirs(destination, self.DIR_MODE, exist_ok=True)
                result.report.add(self._report_line(entry.path, source_info, previous, destination))
            elif not stat.S_ISDIR(existing.st_mode):
                raise DestinationConflictError(
                    f"cannot create directory {destination}: a file is in the way", destination)
            return

        data = self.source.read_bytes(entry.path)
        self._write_bytes(destination, data)

        recorded = os.stat(destination).st_size
        if recorded != len(data):
            raise WriteSizeMismatchError(destination, len(data), recorded)

        self._set_modified_time(destination, source_info)
        result.report.add(self._report_line(entry.path, source_info, previous, destination))

    def _stat_destination(self, path: str) -> Optional[os.stat_result]:
        try:
            return os.stat(path)
        except OSError as e:
            self.logger.debug(f"Destination {path} treated as missing: {e}")
            return None

    @staticmethod
    def _is_fresh(existing: os.stat_result, source_info: EntryInfo) -> bool:
        """Destination is at least as new as the source, compared to the microsecond."""
        destination_ns = existing.st_mtime_ns // 1000 * 1000
        return destination_ns >= datetime_to_ns(source_info.modified_time)

    def _write_bytes(self, path: str, data: bytes) -> None:
        flags = os.O_WRONLY | os.O_CREAT | os.O_TRUNC | getattr(os, 'O_BINARY', 0)
        fd = os.open(path, flags, self.FILE_MODE)
        with os.fdopen(fd, 'wb') as f:
            f.write(data)

    def _set_modified_time(self, path: str, source_info: EntryInfo) -> None:
        try:
            os.utime(path, ns=(time.time_ns(), datetime_to_ns(source_info.modified_time)))
        except OSError as e:
            # Only affects the freshness check of a later run
            self.logger.warning(f"Could not set modification time on {path}: {e}")

    @staticmethod
    def _report_line(source_path: str, source_info: EntryInfo, previous: str, destination: str) -> str:
        return (f"{format_date(source_info.modified_time)} {source_info.size} "
                f"{source_path} -> {previous} {destination}")


def mirror_tree(source: SourceTree, source_prefix: str = "", destination_root: str = "",
                destination_prefix: str = "") -> MirrorResult:
    """Mirror ``source_prefix`` of ``source`` under ``destination_root/destination_prefix``."""
    return TreeMirror(source).mirror(source_prefix, destination_root, destination_prefix)
