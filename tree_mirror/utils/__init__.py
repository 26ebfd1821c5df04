"""Utility modules for tree mirroring."""

from .formatters import format_file_info, format_file_size, format_date

__all__ = ["format_file_info", "format_file_size", "format_date"]
