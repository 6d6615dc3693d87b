"""RubyGems dependency file parsers."""

import re
from typing import List, Optional, Tuple

from .base import (
    BaseParser,
    Dependency,
    DependencyType,
    DispatchEntry,
    FilenameMatcher,
    Platform,
    match_extension,
    match_filenames,
)
from .ruby_manifest import GemManifestEvaluator, ManifestEvaluator


NAME_VERSION = r'(?! )(.*?)(?: \(([^-]*)(?:-(.*))?\))?'
NAME_VERSION_4 = re.compile(rf'^ {{4}}{NAME_VERSION}$')
BUNDLED_WITH = re.compile(r'BUNDLED WITH')


class RubygemsParser(BaseParser):
    """Parser for Gemfile, gemspec and Gemfile.lock files."""

    ecosystem = "rubygems"
    platform = Platform(
        name="rubygems",
        purl_type="gem",
        aliases=frozenset({"gem", "gems", "ruby", "rubygem"}),
    )

    def __init__(self, evaluator: Optional[ManifestEvaluator] = None) -> None:
        """Initialize the RubyGems parser.

        Args:
            evaluator: Manifest evaluator for Gemfiles and gemspecs
        """
        super().__init__()
        self.evaluator = evaluator or GemManifestEvaluator()

    def mapping(self) -> List[Tuple[FilenameMatcher, DispatchEntry]]:
        related = frozenset({"manifest", "lockfile"})
        return [
            (match_filenames("Gemfile", "gems.rb"), DispatchEntry(
                kind="manifest",
                parser=self.parse_gemfile,
                related_to=related,
                parser_type="gemfile",
            )),
            (match_extension(".gemspec"), DispatchEntry(
                kind="manifest",
                parser=self.parse_gemspec,
                related_to=related,
                parser_type="gemspec",
            )),
            (match_filenames("Gemfile.lock", "gems.locked"), DispatchEntry(
                kind="lockfile",
                parser=self.parse_gemfile_lock,
                related_to=related,
                parser_type="gemfile_lock",
            )),
        ]

    def parse_gemfile_lock(self, file_contents: str, source: Optional[str] = None) -> List[Dependency]:
        """Parse a Gemfile.lock.

        Every line indented by exactly four spaces is a resolved gem; the
        line after ``BUNDLED WITH`` is the bundler version.

        Args:
            file_contents: Lockfile content
            source: Originating filename

        Returns:
            Dependencies in line order
        """
        lines = file_contents.splitlines()
        dependencies = []

        for index, line in enumerate(lines):
            match = NAME_VERSION_4.match(line)
            if match and match.group(1):
                version = match.group(2)
                dependencies.append(Dependency(
                    name=match.group(1),
                    requirement=re.sub(r'\(|\)', '', version) if version is not None else None,
                    type=DependencyType.RUNTIME,
                    source=source,
                ))
            elif BUNDLED_WITH.search(line):
                bundler = self._parse_bundler(lines, index, source)
                if bundler:
                    dependencies.append(bundler)

        return dependencies

    def _parse_bundler(self, lines: List[str], marker_index: int, source: Optional[str]) -> Optional[Dependency]:
        """Build the bundler dependency from the line after the marker."""
        if marker_index + 1 >= len(lines):
            self.logger.debug("BUNDLED WITH is the last line, skipping bundler version")
            return None

        version = lines[marker_index + 1].strip()
        if not version:
            return None

        return Dependency(
            name="bundler",
            requirement=version,
            type=DependencyType.RUNTIME,
            source=source,
        )

    def parse_gemfile(self, file_contents: str, source: Optional[str] = None) -> List[Dependency]:
        """Parse a Gemfile through the manifest evaluator."""
        return self._parse_ruby_manifest(file_contents, "gemfile", source)

    def parse_gemspec(self, file_contents: str, source: Optional[str] = None) -> List[Dependency]:
        """Parse a gemspec through the manifest evaluator."""
        return self._parse_ruby_manifest(file_contents, "gemspec", source)

    def _parse_ruby_manifest(
        self,
        file_contents: str,
        manifest_type: str,
        source: Optional[str]
    ) -> List[Dependency]:
        return [
            Dependency(
                name=dep.name,
                requirement=dep.requirement,
                type=dep.type,
                source=source,
            )
            for dep in self.evaluator.evaluate(file_contents, manifest_type)
        ]
