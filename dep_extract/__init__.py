"""DepExtract - Extract declared dependencies from package manager manifests and lockfiles."""

__version__ = "0.1.0"
__author__ = "DepExtract Team"

from .config import DepExtractConfig
from .core.errors import (
    DepExtractError,
    MalformedInputError,
    NoMatchError,
    RemoteParsingError,
    UnsupportedFormatError,
)
from .core.parsers import DependencyParser, build_registry
from .output.formatters import ConsoleFormatter, JSONFormatter

__all__ = [
    "DepExtractConfig",
    "DependencyParser",
    "build_registry",
    "ConsoleFormatter",
    "JSONFormatter",
    "DepExtractError",
    "MalformedInputError",
    "NoMatchError",
    "RemoteParsingError",
    "UnsupportedFormatError",
]
