"""Source file discovery for database analysis."""
from pathlib import Path
from typing import Iterable, List, Optional

from .models import FileInfo


DEFAULT_PATTERNS = [
    '**/*.py', '**/*.js', '**/*.jsx', '**/*.mjs', '**/*.cjs',
    '**/*.ts', '**/*.tsx', '**/*.mts', '**/*.cts', '**/*.sql',
]

# Vendored code, environments and build artifacts
EXCLUDED_DIRS = {
    'venv', '.venv', 'env', '.virtualenv',
    'vendor', 'extern', 'third_party',
    '.tox', 'site-packages',
    'dist', 'build', '__pycache__',
    'node_modules',
    '.git', '.mypy_cache', '.pytest_cache',
}


def discover_files(project_root: str | Path, patterns: Optional[Iterable[str]] = None) -> List[Path]:
    """Discover all source files matching patterns, sorted for determinism.

    Args:
        project_root: Directory to scan
        patterns: Glob patterns (defaults to supported source and SQL files)

    Returns:
        Sorted list of file paths outside excluded directories
    """
    root = Path(project_root).resolve()
    files = set()
    for pattern in patterns or DEFAULT_PATTERNS:
        files.update(root.glob(pattern))

    return sorted(
        path for path in files
        if path.is_file() and not any(part in EXCLUDED_DIRS for part in path.relative_to(root).parts)
    )


def read_file_info(path: Path, project_root: Path, max_file_size: Optional[int] = None) -> FileInfo:
    """Load one file as a FileInfo with a root-relative POSIX path.

    Content is None for files that are too large or not valid UTF-8.
    """
    relative = path.relative_to(project_root).as_posix()

    if max_file_size is not None and path.stat().st_size > max_file_size:
        return FileInfo(path=relative, content=None)

    try:
        content = path.read_text(encoding='utf-8')
    except (UnicodeDecodeError, OSError):
        # Skip binary files or unreadable files
        content = None
    return FileInfo(path=relative, content=content)


def scan_files(project_root: str | Path, patterns: Optional[Iterable[str]] = None,
               max_file_size: Optional[int] = None) -> List[FileInfo]:
    """Discover and load files for analysis.

    Args:
        project_root: Directory to scan
        patterns: Optional glob patterns
        max_file_size: Optional size limit in bytes

    Returns:
        FileInfo records ordered by path
    """
    root = Path(project_root).resolve()
    return [read_file_info(path, root, max_file_size) for path in discover_files(root, patterns)]
