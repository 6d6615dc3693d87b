"""Utility functions and helpers for DepExtract."""

from .logging import setup_logging, get_logger
from .path_utils import find_dependency_files, is_ignored_path

__all__ = [
    "setup_logging",
    "get_logger",
    "find_dependency_files",
    "is_ignored_path",
]
