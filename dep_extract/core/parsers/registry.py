"""Registry of ecosystem parsers."""

from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

from .base import BaseParser, ParsedDependencies
from ..errors import NoMatchError
from ...utils.logging import get_logger


class ParserRegistry:
    """Registry of ecosystem parsers, one per ecosystem."""

    def __init__(self) -> None:
        """Initialize the parser registry."""
        self._parsers: Dict[str, BaseParser] = {}
        self.logger = get_logger("ParserRegistry")

    def register(self, parser: BaseParser) -> None:
        """Register the parser for an ecosystem.

        Args:
            parser: Parser instance to register

        Raises:
            ValueError: If the ecosystem already has a parser
        """
        if parser.ecosystem in self._parsers:
            raise ValueError(f"Ecosystem already registered: {parser.ecosystem}")
        self._parsers[parser.ecosystem] = parser

    def get_parser(self, ecosystem: str) -> Optional[BaseParser]:
        """Get the parser for an ecosystem.

        Args:
            ecosystem: Ecosystem name

        Returns:
            Parser instance or None if not found
        """
        return self._parsers.get(ecosystem)

    def get_supported_ecosystems(self) -> List[str]:
        """Get list of supported ecosystems in registration order."""
        return list(self._parsers.keys())

    def get_supported_parser_types(self) -> List[str]:
        """Get the sorted parser type labels of every dispatch entry."""
        return sorted({
            entry.parser_type
            for parser in self._parsers.values()
            for _, entry in parser.dispatch_table
        })

    def find_parsers_for_file(self, filename: Union[str, Path]) -> List[BaseParser]:
        """Find every ecosystem that claims the given file.

        Args:
            filename: File name or path

        Returns:
            Matching parsers, possibly empty
        """
        return [parser for parser in self._parsers.values() if parser.can_parse(str(filename))]

    def identify_manifests(self, filenames: Iterable[Union[str, Path]]) -> List[str]:
        """Filter a list of filenames down to those some ecosystem can parse.

        Args:
            filenames: Candidate file names or paths

        Returns:
            Claimed filenames, in input order
        """
        return [str(name) for name in filenames if self.find_parsers_for_file(name)]

    def analyse_contents(
        self,
        filename: Union[str, Path],
        file_contents: str,
        source: Optional[str] = None
    ) -> List[ParsedDependencies]:
        """Parse content with every ecosystem that claims the filename.

        Args:
            filename: File name used for dispatch
            file_contents: Raw file content
            source: Originating filename stored on every dependency

        Returns:
            One result per matching ecosystem

        Raises:
            NoMatchError: If no ecosystem claims the file
        """
        parsers = self.find_parsers_for_file(filename)
        if not parsers:
            raise NoMatchError(str(filename))

        return [parser.parse(str(filename), file_contents, source=source) for parser in parsers]

    def parse_file(self, file_path: Path) -> List[ParsedDependencies]:
        """Read and parse a file.

        Args:
            file_path: Path to the file to parse

        Returns:
            One result per matching ecosystem

        Raises:
            NoMatchError: If no ecosystem claims the file
        """
        with open(file_path, 'r', encoding='utf-8') as f:
            content = f.read()
        return self.analyse_contents(file_path, content, source=str(file_path))

    def parse_files(self, file_paths: List[Path]) -> List[ParsedDependencies]:
        """Parse multiple files, skipping files no ecosystem claims.

        Args:
            file_paths: List of file paths to parse

        Returns:
            Flat list of results
        """
        results = []
        for file_path in file_paths:
            try:
                results.extend(self.parse_file(file_path))
            except NoMatchError as e:
                self.logger.debug(str(e))
        return results
