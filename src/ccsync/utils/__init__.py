"""Utility functions and helpers."""

from .logging import setup_logging, TimedOperation
from .file_utils import FileHelper, calculate_file_hash

__all__ = ["setup_logging", "TimedOperation", "FileHelper", "calculate_file_hash"]
