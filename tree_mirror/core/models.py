"""Data models for tree mirroring."""

import stat
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional


@dataclass
class EntryInfo:
    """Metadata about a single file or directory."""
    name: str
    size: int
    modified_time: datetime
    mode: int
    is_directory: bool
    mode_string: Optional[str] = None

    @property
    def permissions(self) -> str:
        """Permission/type string such as ``-rw-r--r--`` or ``drwxr-xr-x``."""
        if self.mode_string is not None:
            return self.mode_string
        return stat.filemode(self.mode)

    def __str__(self) -> str:
        from ..utils.formatters import format_file_info
        return format_file_info(self)


@dataclass
class WalkEntry:
    """A node produced by a source tree walk."""
    path: str
    is_directory: bool
    error: Optional[OSError] = None


@dataclass
class ChangeReport:
    """Ordered, human-readable lines for every entry created or copied."""
    lines: List[str] = field(default_factory=list)

    def add(self, line: str) -> None:
        self.lines.append(line)

    def __len__(self) -> int:
        return len(self.lines)

    def __iter__(self):
        return iter(self.lines)

    def __str__(self) -> str:
        return "".join(f"{line}\n" for line in self.lines)


@dataclass
class MirrorResult:
    """Outcome of one mirror operation.

    ``mapping`` and ``report`` hold everything accumulated up to the point
    the walk stopped, even when ``error`` is set.
    """
    mapping: Dict[str, str] = field(default_factory=dict)
    report: ChangeReport = field(default_factory=ChangeReport)
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def copied(self) -> int:
        return len(self.report)

    def raise_for_error(self) -> None:
        """Re-raise the fatal error that stopped the walk, if any."""
        if self.error is not None:
            raise self.error


@dataclass
class JobResult:
    """Result of a configured mirror job."""
    name: str
    source: str
    destination: str
    result: Optional[MirrorResult]
    error_message: Optional[str] = None
