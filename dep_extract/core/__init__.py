"""Core dispatching and parsing logic for DepExtract."""

from .errors import (
    DepExtractError,
    MalformedInputError,
    NoMatchError,
    RemoteParsingError,
    UnsupportedFormatError,
)
from .parsers import DependencyParser, Dependency, ParsedDependencies

__all__ = [
    "DependencyParser",
    "Dependency",
    "ParsedDependencies",
    "DepExtractError",
    "MalformedInputError",
    "NoMatchError",
    "RemoteParsingError",
    "UnsupportedFormatError",
]
