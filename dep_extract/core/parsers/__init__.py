"""Dependency file parsers for various ecosystems."""

from typing import Optional

from .base import (
    BaseParser,
    Dependency,
    DependencyType,
    DispatchEntry,
    MultiParserChain,
    ParsedDependencies,
    Platform,
    match_extension,
    match_filename,
    match_filenames,
)
from .multi import CycloneDXParser, DependenciesCSVParser, SpdxParser
from .registry import ParserRegistry
from .rubygems import RubygemsParser
from .swift_pm import SwiftPMParser
from ...config import DepExtractConfig


def build_registry(config: Optional[DepExtractConfig] = None) -> ParserRegistry:
    """Build a registry with every built-in ecosystem.

    Args:
        config: Settings for parsers backed by remote services

    Returns:
        Populated parser registry
    """
    config = config or DepExtractConfig()
    parser_registry = ParserRegistry()

    for parser in (RubygemsParser(), SwiftPMParser(config=config)):
        # Trial order of the interchange formats
        parser.add_multi_parser(CycloneDXParser())
        parser.add_multi_parser(DependenciesCSVParser())
        parser.add_multi_parser(SpdxParser())
        parser_registry.register(parser)

    return parser_registry


# Default registry
registry = build_registry()

# Convenience exports
DependencyParser = registry
__all__ = [
    "BaseParser",
    "Dependency",
    "DependencyType",
    "DispatchEntry",
    "MultiParserChain",
    "ParsedDependencies",
    "Platform",
    "DependencyParser",
    "ParserRegistry",
    "RubygemsParser",
    "SwiftPMParser",
    "build_registry",
    "match_extension",
    "match_filename",
    "match_filenames",
    "registry",
]
