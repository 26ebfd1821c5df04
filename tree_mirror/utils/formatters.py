"""Formatting utilities for mirror listings and reports."""

from datetime import datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..core.models import EntryInfo

NS_PER_SECOND = 1_000_000_000


def format_file_info(info: "EntryInfo") -> str:
    """Format an entry's metadata as one human readable line.

    The output for a regular file named "hello.txt", 100 bytes, mode 0o644,
    modified January 1, 1970 at noon is::

        -rw-r--r-- 100 1970-01-01 12:00:00 hello.txt

    Directories get a trailing slash.

    Args:
        info: Entry metadata.

    Returns:
        Formatted line.
    """
    size = info.size
    if size >= 0:
        size_text = str(size)
    else:
        size_text = "-" + str(-size)

    line = f"{info.permissions} {size_text} {format_date(info.modified_time)} {info.name}"
    if info.is_directory:
        line += "/"
    return line


def format_file_size(size_bytes: int) -> str:
    """Format file size in human readable format.

    Args:
        size_bytes: Size in bytes.

    Returns:
        Human readable size string.
    """
    if size_bytes < 1024:
        return f"{size_bytes}B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes // 1024}KB"
    elif size_bytes < 1024 * 1024 * 1024:
        return f"{size_bytes // (1024 * 1024)}MB"
    else:
        return f"{size_bytes // (1024 * 1024 * 1024)}GB"


def format_date(dt: datetime) -> str:
    """Format datetime for display as ``YYYY-MM-DD HH:MM:SS``.

    Args:
        dt: Datetime to format.

    Returns:
        Formatted date string.
    """
    return dt.strftime('%Y-%m-%d %H:%M:%S')


def truncate_string(text: str, max_length: int, suffix: str = "...") -> str:
    """Truncate string to maximum length."""
    if len(text) <= max_length:
        return text

    return text[:max_length - len(suffix)] + suffix


def datetime_to_ns(dt: datetime) -> int:
    """Convert a datetime to integer nanoseconds since the epoch, exact to the microsecond."""
    seconds = int(dt.replace(microsecond=0).timestamp())
    return seconds * NS_PER_SECOND + dt.microsecond * 1000


def ns_to_datetime(ns: int) -> datetime:
    """Convert nanoseconds since the epoch to a local datetime, truncated to microseconds."""
    seconds, remainder = divmod(ns, NS_PER_SECOND)
    return datetime.fromtimestamp(seconds).replace(microsecond=remainder // 1000)
