"""Base parser class and data models for dependency extraction."""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from functools import partial
from pathlib import PurePath
from typing import Any, Callable, Dict, FrozenSet, List, Optional, Protocol, Tuple

from ..errors import MalformedInputError, NoMatchError, UnsupportedFormatError
from ...utils.logging import get_logger


SCHEME_PATTERN = re.compile(r'^https?://')
GIT_SUFFIX_PATTERN = re.compile(r'\.git$')


class DependencyType(str, Enum):
    """Classification of a dependency."""

    RUNTIME = "runtime"
    DEVELOPMENT = "development"
    TEST = "test"

    @classmethod
    def from_label(cls, label: Optional[str]) -> "DependencyType":
        """Map a free-form type label onto a member.

        Args:
            label: Label such as "dev", "development", "test" or "runtime"

        Returns:
            Matching member, RUNTIME when the label is unknown or empty
        """
        if not label:
            return cls.RUNTIME

        label = label.strip().lower()
        if label in ("dev", "development", "develop"):
            return cls.DEVELOPMENT
        if label in ("test", "tests"):
            return cls.TEST
        return cls.RUNTIME


@dataclass(frozen=True)
class Dependency:
    """A single declared dependency extracted from a file."""

    name: str
    requirement: Optional[str] = None
    type: DependencyType = DependencyType.RUNTIME
    source: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate the dependency."""
        if not self.name or not self.name.strip():
            raise ValueError("Dependency name cannot be empty")

    def to_dict(self) -> Dict[str, Any]:
        """Convert the dependency to a JSON-ready dictionary.

        Returns:
            Dictionary representation
        """
        return {
            "name": self.name,
            "requirement": self.requirement,
            "type": self.type.value,
            "source": self.source,
        }


@dataclass
class ParsedDependencies:
    """Container for dependencies parsed from a single file."""

    dependencies: List[Dependency] = field(default_factory=list)
    source_file: Optional[str] = None
    ecosystem: str = ""
    kind: str = ""
    parser_type: str = ""
    related_to: FrozenSet[str] = frozenset()

    def add_dependency(self, dependency: Dependency) -> None:
        """Add a dependency to the collection.

        Args:
            dependency: Dependency to add
        """
        self.dependencies.append(dependency)

    def get_dependency_names(self) -> List[str]:
        """Get dependency names in discovery order, duplicates included.

        Returns:
            List of dependency names
        """
        return [dep.name for dep in self.dependencies]

    def find_dependency(self, name: str) -> Optional[Dependency]:
        """Find the first dependency with the given name.

        Args:
            name: Dependency name to find

        Returns:
            Dependency if found, None otherwise
        """
        for dep in self.dependencies:
            if dep.name == name:
                return dep
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert the parse result to a JSON-ready dictionary."""
        return {
            "source_file": self.source_file,
            "ecosystem": self.ecosystem,
            "kind": self.kind,
            "parser_type": self.parser_type,
            "related_to": sorted(self.related_to),
            "dependencies": [dep.to_dict() for dep in self.dependencies],
        }


def normalize_repository_url(url: str, field_path: Optional[str] = None) -> str:
    """Turn a repository URL into a package name.

    Strips the http(s) scheme and a trailing ".git".

    Args:
        url: Repository URL
        field_path: Field the URL was read from, for error reporting

    Returns:
        Normalized name

    Raises:
        MalformedInputError: If the URL is not a string or normalizes to nothing
    """
    if not isinstance(url, str):
        raise MalformedInputError("Repository URL must be a string", field=field_path)

    name = GIT_SUFFIX_PATTERN.sub('', SCHEME_PATTERN.sub('', url.strip()))
    if not name:
        raise MalformedInputError("Repository URL is empty", field=field_path)
    return name


@dataclass(frozen=True)
class FilenameMatcher:
    """Filename predicate matching exact names or extension suffixes."""

    names: FrozenSet[str] = frozenset()
    extensions: Tuple[str, ...] = ()
    case_insensitive: bool = False

    def __call__(self, filename: str) -> bool:
        basename = PurePath(filename).name
        if self.case_insensitive:
            basename = basename.lower()

        if basename in self.names:
            return True
        return any(basename.endswith(ext) for ext in self.extensions)

    def describe(self) -> str:
        """Human readable form of the predicate."""
        parts = sorted(self.names) + [f"*{ext}" for ext in self.extensions]
        label = ", ".join(parts)
        if self.case_insensitive:
            label += " (case-insensitive)"
        return label


def match_filenames(*names: str, case_insensitive: bool = False) -> FilenameMatcher:
    """Build a matcher for a set of exact filenames."""
    if case_insensitive:
        names = tuple(name.lower() for name in names)
    return FilenameMatcher(names=frozenset(names), case_insensitive=case_insensitive)


def match_filename(name: str, case_insensitive: bool = False) -> FilenameMatcher:
    """Build a matcher for a single exact filename."""
    return match_filenames(name, case_insensitive=case_insensitive)


def match_extension(*extensions: str, case_insensitive: bool = False) -> FilenameMatcher:
    """Build a matcher for one or more filename suffixes."""
    if case_insensitive:
        extensions = tuple(ext.lower() for ext in extensions)
    return FilenameMatcher(extensions=tuple(extensions), case_insensitive=case_insensitive)


ParserFunc = Callable[[str, Optional[str]], List[Dependency]]


@dataclass(frozen=True)
class DispatchEntry:
    """How a matched file is parsed and how it relates to other files."""

    kind: str
    parser: ParserFunc
    related_to: FrozenSet[str] = frozenset()
    parser_type: str = ""


@dataclass(frozen=True)
class Platform:
    """Identifies an ecosystem inside interchange documents."""

    name: str
    purl_type: str
    aliases: FrozenSet[str] = frozenset()

    def matches_name(self, value: Optional[str]) -> bool:
        """Check a free-form platform label against this platform."""
        if not value:
            return False
        value = value.strip().lower()
        return value == self.name or value in self.aliases

    def matches_purl_type(self, purl_type: Optional[str]) -> bool:
        """Check a purl type against this platform."""
        return bool(purl_type) and purl_type.lower() == self.purl_type


class MultiParser(Protocol):
    """Fallback parser for an interchange format."""

    name: str

    def is_applicable(self, file_contents: str) -> bool:
        ...

    def parse(
        self,
        file_contents: str,
        platform: Platform,
        source: Optional[str] = None
    ) -> List[Dependency]:
        ...


class MultiParserChain:
    """Ordered list of fallback parsers tried until one accepts the input."""

    def __init__(self) -> None:
        self._parsers: List[MultiParser] = []
        self.logger = get_logger("MultiParserChain")

    def __len__(self) -> int:
        return len(self._parsers)

    def __iter__(self):
        return iter(self._parsers)

    def register(self, parser: MultiParser) -> None:
        """Append a parser to the chain.

        Registering a parser that is already in the chain does nothing.

        Args:
            parser: Parser to append
        """
        if any(existing is parser for existing in self._parsers):
            return
        self._parsers.append(parser)

    def resolve(
        self,
        file_contents: str,
        platform: Platform,
        source: Optional[str] = None
    ) -> List[Dependency]:
        """Parse content with the first parser that accepts it.

        Args:
            file_contents: Raw file content
            platform: Ecosystem the results are filtered to
            source: Originating filename recorded on each dependency

        Returns:
            Dependencies produced by the accepting parser

        Raises:
            UnsupportedFormatError: If no registered parser accepts the content
        """
        for parser in self._parsers:
            if parser.is_applicable(file_contents):
                self.logger.debug(f"{parser.name} accepted {source or 'input'} for {platform.name}")
                return parser.parse(file_contents, platform, source=source)

        tried = ", ".join(parser.name for parser in self._parsers) or "none"
        raise UnsupportedFormatError(
            f"{source or 'Input'} is not in a supported format (tried: {tried})"
        )


# Files that are handed to the multi-parser chain instead of a native parser
MULTI_PARSER_FILENAMES = match_filenames(
    "dependencies.csv",
    "cyclonedx.json",
    "cyclonedx.xml",
    "bom.json",
    "bom.xml",
    case_insensitive=True,
)
MULTI_PARSER_EXTENSIONS = match_extension(
    ".cdx.json",
    ".cdx.xml",
    ".spdx",
    ".spdx.json",
    case_insensitive=True,
)


class BaseParser(ABC):
    """Abstract base class for an ecosystem's dependency parsers.

    Subclasses declare a dispatch table through :meth:`mapping` and register
    interchange-format fallbacks with :meth:`add_multi_parser`.
    """

    ecosystem: str = ""
    platform: Platform

    def __init__(self) -> None:
        """Initialize the parser."""
        self.multi_parsers = MultiParserChain()
        self._dispatch_table: Optional[Tuple[Tuple[FilenameMatcher, DispatchEntry], ...]] = None
        self.logger = get_logger(type(self).__name__)

    @abstractmethod
    def mapping(self) -> List[Tuple[FilenameMatcher, DispatchEntry]]:
        """Native dispatch entries, in match order.

        Returns:
            Ordered list of (matcher, entry) pairs
        """
        pass

    def add_multi_parser(self, parser: MultiParser) -> None:
        """Register an interchange-format fallback parser.

        Args:
            parser: Parser to append to this ecosystem's chain

        Raises:
            RuntimeError: If the dispatch table has already been built
        """
        if self._dispatch_table is not None:
            raise RuntimeError(
                f"Cannot register {parser.name} on {self.ecosystem}: dispatch table is already built"
            )
        self.multi_parsers.register(parser)

    @property
    def dispatch_table(self) -> Tuple[Tuple[FilenameMatcher, DispatchEntry], ...]:
        """The complete dispatch table, built once on first access."""
        if self._dispatch_table is None:
            table = list(self.mapping())
            if len(self.multi_parsers):
                entry = DispatchEntry(
                    kind="lockfile",
                    parser=partial(self._parse_multi, platform=self.platform),
                    parser_type="multi",
                )
                table.append((MULTI_PARSER_FILENAMES, entry))
                table.append((MULTI_PARSER_EXTENSIONS, entry))
            self._dispatch_table = tuple(table)
        return self._dispatch_table

    def _parse_multi(
        self,
        file_contents: str,
        source: Optional[str] = None,
        platform: Optional[Platform] = None
    ) -> List[Dependency]:
        return self.multi_parsers.resolve(file_contents, platform or self.platform, source=source)

    def match(self, filename: str) -> Optional[DispatchEntry]:
        """Find the dispatch entry for a filename.

        Args:
            filename: File name or path

        Returns:
            First matching entry, or None
        """
        for matcher, entry in self.dispatch_table:
            if matcher(filename):
                return entry
        return None

    def can_parse(self, filename: str) -> bool:
        """Check if this ecosystem claims the given file."""
        return self.match(filename) is not None

    def dispatch(self, filename: str) -> DispatchEntry:
        """Find the dispatch entry for a filename.

        Raises:
            NoMatchError: If no entry matches
        """
        entry = self.match(filename)
        if entry is None:
            raise NoMatchError(filename, self.ecosystem)
        return entry

    def parse(
        self,
        filename: str,
        file_contents: str,
        source: Optional[str] = None
    ) -> ParsedDependencies:
        """Parse file content according to the entry matching its filename.

        Args:
            filename: File name used for dispatch
            file_contents: Raw file content
            source: Originating filename stored on every dependency

        Returns:
            Parsed dependencies in discovery order
        """
        entry = self.dispatch(filename)
        self.logger.debug(f"Parsing {filename} as {self.ecosystem} {entry.kind} ({entry.parser_type})")

        dependencies = entry.parser(file_contents, source)

        return ParsedDependencies(
            dependencies=list(dependencies),
            source_file=source,
            ecosystem=self.ecosystem,
            kind=entry.kind,
            parser_type=entry.parser_type,
            related_to=entry.related_to,
        )
