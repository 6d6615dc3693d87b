"""Path utilities for finding dependency files and filtering paths."""

import fnmatch
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Iterator, List, Optional

if TYPE_CHECKING:
    from ..core.parsers.registry import ParserRegistry


DEFAULT_IGNORE_PATTERNS = [
    "**/node_modules/**",
    "**/.git/**",
    "**/__pycache__/**",
    "**/.venv/**",
    "**/venv/**",
    "**/.build/**",
    "**/.bundle/**",
    "**/vendor/bundle/**",
    "**/Pods/**",
    "**/dist/**",
    "**/build/**",
    "**/.pytest_cache/**",
    "**/.DS_Store",
]


@dataclass
class DependencyFile:
    """A dependency file and the ecosystems that claim it."""

    path: Path
    ecosystems: List[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Validate the dependency file."""
        if not self.path.exists():
            raise ValueError(f"Dependency file does not exist: {self.path}")


class PathFilter:
    """Filters paths based on patterns and rules."""

    def __init__(self, ignore_patterns: Optional[List[str]] = None) -> None:
        """Initialize path filter.

        Args:
            ignore_patterns: Additional glob patterns to ignore
        """
        self.ignore_patterns = DEFAULT_IGNORE_PATTERNS + list(ignore_patterns or [])

    def is_ignored(self, path: Path) -> bool:
        """Check if a path should be ignored.

        Args:
            path: Path to check

        Returns:
            True if path should be ignored
        """
        path_str = path.as_posix()
        # Leading "**/" in a pattern needs a separator before top-level names
        anchored = "/" + path_str.lstrip("/")

        for pattern in self.ignore_patterns:
            if fnmatch.fnmatch(path_str, pattern) or fnmatch.fnmatch(anchored, pattern):
                return True

        return False

    def filter_paths(self, paths: Iterator[Path]) -> Iterator[Path]:
        """Filter paths based on ignore patterns.

        Args:
            paths: Iterator of paths to filter

        Yields:
            Paths that should not be ignored
        """
        for path in paths:
            if not self.is_ignored(path):
                yield path


class DependencyFileFinder:
    """Finds files that a parser registry can handle."""

    def __init__(self, registry: "ParserRegistry", ignore_patterns: Optional[List[str]] = None) -> None:
        """Initialize dependency file finder.

        Args:
            registry: Registry deciding which files are dependency files
            ignore_patterns: Additional ignore patterns
        """
        self.registry = registry
        self.path_filter = PathFilter(ignore_patterns)

    def find_dependency_files(self, root_path: Path) -> List[DependencyFile]:
        """Find all dependency files under a directory, or check a single file.

        Args:
            root_path: Root directory to search, or a single file

        Returns:
            Found dependency files, sorted by path
        """
        if not root_path.exists():
            raise ValueError(f"Root path does not exist: {root_path}")

        candidates = [root_path] if root_path.is_file() else self._walk_files(root_path)

        dependency_files = []
        for file_path in candidates:
            parsers = self.registry.find_parsers_for_file(file_path)
            if parsers:
                dependency_files.append(DependencyFile(
                    path=file_path,
                    ecosystems=[parser.ecosystem for parser in parsers],
                ))

        return dependency_files

    def _walk_files(self, root_path: Path) -> Iterator[Path]:
        """Walk through files in directory tree.

        Args:
            root_path: Root directory to walk

        Yields:
            File paths whose location below the root is not ignored
        """
        for file_path in sorted(root_path.rglob("*")):
            if file_path.is_file() and not self.path_filter.is_ignored(file_path.relative_to(root_path)):
                yield file_path


def find_dependency_files(
    root_path: Path,
    registry: "ParserRegistry",
    ignore_patterns: Optional[List[str]] = None
) -> List[DependencyFile]:
    """Convenience function to find dependency files.

    Args:
        root_path: Root directory to search
        registry: Registry deciding which files are dependency files
        ignore_patterns: Additional ignore patterns

    Returns:
        List of found dependency files
    """
    finder = DependencyFileFinder(registry, ignore_patterns)
    return finder.find_dependency_files(root_path)


def is_ignored_path(path: Path, ignore_patterns: Optional[List[str]] = None) -> bool:
    """Check if a path should be ignored.

    Args:
        path: Path to check
        ignore_patterns: Additional ignore patterns

    Returns:
        True if path should be ignored
    """
    filter_obj = PathFilter(ignore_patterns)
    return filter_obj.is_ignored(path)
