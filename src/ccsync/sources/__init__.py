"""File discovery for sync units."""

from .scanner import scan_claude_files, scan_claude_projects

__all__ = ["scan_claude_files", "scan_claude_projects"]
