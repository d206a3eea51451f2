"""Discovery of the files a sync unit backs up."""

import logging
import os
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from pathspec import GitIgnoreSpec

from ..config.settings import BackupTypes, get_claude_projects_path
from ..utils.file_utils import FileHelper

logger = logging.getLogger(__name__)

# Directories never descended into, gitignore or not
ALWAYS_IGNORED_DIRS = {
    'node_modules', '.git', 'dist', 'build', 'coverage', '.next', '.cache',
}

CLAUDE_MD_PATTERNS = ["**/claude.md", "**/CLAUDE.md"]
SETTINGS_LOCAL_PATTERNS = ["**/.claude/settings.local.json"]


def _check_root(root_path: Union[str, Path], missing_message: str) -> Path:
    root = Path(os.path.abspath(root_path))
    if not root.exists():
        raise FileNotFoundError(f"{missing_message}: {root}")
    if not root.is_dir():
        raise NotADirectoryError(f"Path is not a directory: {root}")
    return root


def _load_gitignore(directory: Path) -> Optional[GitIgnoreSpec]:
    gitignore = directory / ".gitignore"
    if not gitignore.is_file():
        return None
    with open(gitignore, 'r', encoding='utf-8', errors='replace') as f:
        return GitIgnoreSpec.from_lines(f.read().splitlines())


def _is_ignored(path: Path, is_dir: bool, specs: List[Tuple[Path, GitIgnoreSpec]]) -> bool:
    for base, spec in specs:
        relative = path.relative_to(base).as_posix()
        if is_dir:
            relative += "/"
        if spec.match_file(relative):
            return True
    return False


def scan_claude_files(root_path: Union[str, Path], include_git_ignored: bool = False,
                      backup_types: Optional[BackupTypes] = None) -> List[Path]:
    """Find the files a project backs up.
    
    Args:
        root_path: Project source directory
        include_git_ignored: Also return files excluded by .gitignore files
        backup_types: Which file kinds to look for (claude.md only by default)
        
    Returns:
        Absolute paths sorted lexicographically
        
    Raises:
        FileNotFoundError: If root_path does not exist
        NotADirectoryError: If root_path is not a directory
    """
    root = _check_root(root_path, "Directory does not exist")
    backup_types = backup_types or BackupTypes()
    
    patterns = []
    if backup_types.claude_md:
        patterns.extend(CLAUDE_MD_PATTERNS)
    if backup_types.settings_local:
        patterns.extend(SETTINGS_LOCAL_PATTERNS)
    if not patterns:
        return []
    wanted = GitIgnoreSpec.from_lines(patterns)
    
    found = []
    inherited: Dict[str, List[Tuple[Path, GitIgnoreSpec]]] = {str(root): []}
    
    for dirpath, dirnames, filenames in os.walk(root):
        current = Path(dirpath)
        specs = inherited.pop(dirpath, [])
        if not include_git_ignored:
            spec = _load_gitignore(current)
            if spec is not None:
                specs = specs + [(current, spec)]
        
        dirnames[:] = [
            d for d in dirnames
            if d not in ALWAYS_IGNORED_DIRS and not _is_ignored(current / d, True, specs)
        ]
        for d in dirnames:
            inherited[os.path.join(dirpath, d)] = specs
        
        for name in filenames:
            path = current / name
            if not wanted.match_file(path.relative_to(root).as_posix()):
                continue
            if _is_ignored(path, False, specs):
                logger.debug(f"Skipping git-ignored file {path}")
                continue
            found.append(path)
    
    return sorted(found, key=str)


def scan_claude_projects(projects_path: Optional[Union[str, Path]] = None) -> List[Path]:
    """List every file under the Claude projects directory.
    
    Args:
        projects_path: Directory to scan (defaults to ~/.claude/projects)
        
    Returns:
        Absolute paths sorted lexicographically, OS junk files excluded
        
    Raises:
        FileNotFoundError: If the directory does not exist
        NotADirectoryError: If the path is not a directory
    """
    root = _check_root(projects_path or get_claude_projects_path(),
                       "Claude projects directory does not exist")
    
    found = []
    for dirpath, _dirnames, filenames in os.walk(root):
        for name in filenames:
            path = Path(dirpath) / name
            if not FileHelper.is_junk_file(path):
                found.append(path)
    
    return sorted(found, key=str)
