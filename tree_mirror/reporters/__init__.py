"""Report generation for mirror runs."""

from .text_reporter import TextReporter

__all__ = ["TextReporter"]
