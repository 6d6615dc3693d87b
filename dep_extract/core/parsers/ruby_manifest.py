"""Evaluation of Ruby manifest DSLs (Gemfile, gemspec).

The parsers only need the structured result of evaluating a manifest, so the
evaluator is a collaborator behind the :class:`ManifestEvaluator` protocol.
:class:`GemManifestEvaluator` is a line-level implementation covering the
common ``gem`` / ``add_dependency`` forms; it does not execute Ruby.
"""

import re
from dataclasses import dataclass
from typing import List, Protocol, Set

from .base import DependencyType


DEFAULT_REQUIREMENT = ">= 0"
DEVELOPMENT_GROUPS = frozenset({"development", "test"})

GEM_PATTERN = re.compile(r'''^\s*gem\s*\(?\s*["']([^"']+)["']\s*(.*)$''')
GEMSPEC_PATTERN = re.compile(
    r'''\.add_(runtime_|development_)?dependency\s*\(?\s*["']([^"']+)["']\s*(.*)$'''
)
GROUP_BLOCK_PATTERN = re.compile(r'^\s*group\s*\(?(.+?)\)?\s+do\s*(\|.*\|)?\s*$')
BLOCK_START_PATTERN = re.compile(r'\bdo\s*(\|[^|]*\|)?\s*$')
BLOCK_END_PATTERN = re.compile(r'^\s*end\b')
# Keywords opening a block closed by `end`; trailing modifiers never start a line
KEYWORD_BLOCK_PATTERN = re.compile(r'^\s*(?:if|unless|case|begin|def|while|until|for|class|module)\b')
ONE_LINE_END_PATTERN = re.compile(r'[;\s]end\s*$')
MODIFIER_PATTERN = re.compile(r'\s+(?:if|unless)\s.*$')
# Start of the options hash: `group: ...` or `:group => ...`
OPTIONS_PATTERN = re.compile(r'(?:^|,)\s*(?:[a-z_]+:\s|:[a-z_]+\s*=>)')
INLINE_GROUP_PATTERN = re.compile(r'(?:\bgroups?:|:groups?\s*=>)\s*(\[[^\]]*\]|:\w+|["\']\w+["\'])')
STRING_PATTERN = re.compile(r'''["']([^"']*)["']''')
SYMBOL_PATTERN = re.compile(r''':(\w+)|["'](\w+)["']''')
OPERATOR_PATTERN = re.compile(r'^(=|!=|>=|<=|>|<|~>)\s*')


@dataclass(frozen=True)
class ManifestDependency:
    """A dependency declared by an evaluated manifest."""

    name: str
    requirement: str
    type: DependencyType


class ManifestEvaluator(Protocol):
    """Turns manifest DSL text into declared dependencies."""

    def evaluate(self, file_contents: str, manifest_type: str) -> List[ManifestDependency]:
        ...


def _strip_comment(line: str) -> str:
    quote = None
    escaped = False
    for index, char in enumerate(line):
        if escaped:
            escaped = False
        elif quote:
            if char == '\\':
                escaped = True
            elif char == quote:
                quote = None
        elif char in ('"', "'"):
            quote = char
        elif char == '#':
            return line[:index]
    return line


def _normalize_requirement(requirements: List[str]) -> str:
    normalized = []
    for requirement in requirements:
        requirement = requirement.strip()
        if not requirement:
            continue
        match = OPERATOR_PATTERN.match(requirement)
        if match:
            normalized.append(f"{match.group(1)} {requirement[match.end():].strip()}")
        else:
            normalized.append(f"= {requirement}")
    return ", ".join(normalized) or DEFAULT_REQUIREMENT


def _parse_groups(text: str) -> Set[str]:
    return {symbol or string for symbol, string in SYMBOL_PATTERN.findall(text)}


def _split_arguments(rest: str) -> tuple:
    """Split what follows the gem name into (version literals, options text)."""
    rest = MODIFIER_PATTERN.sub('', rest).rstrip().rstrip(')')
    match = OPTIONS_PATTERN.search(rest)
    if match:
        return rest[:match.start()], rest[match.start():]
    return rest, ""


class GemManifestEvaluator:
    """Line-level evaluator for Gemfiles and gemspecs."""

    def evaluate(self, file_contents: str, manifest_type: str) -> List[ManifestDependency]:
        if manifest_type == "gemfile":
            return self._evaluate_gemfile(file_contents)
        if manifest_type == "gemspec":
            return self._evaluate_gemspec(file_contents)
        raise ValueError(f"Unknown manifest type: {manifest_type}")

    def _evaluate_gemfile(self, file_contents: str) -> List[ManifestDependency]:
        dependencies = []
        # One frame per open block; group blocks carry their groups
        block_stack: List[Set[str]] = []

        for raw_line in file_contents.splitlines():
            line = _strip_comment(raw_line)
            if not line.strip():
                continue

            group_match = GROUP_BLOCK_PATTERN.match(line)
            if group_match:
                block_stack.append(_parse_groups(group_match.group(1)))
                continue

            gem_match = GEM_PATTERN.match(line)
            if gem_match:
                name = gem_match.group(1)
                versions, options = _split_arguments(gem_match.group(2))

                groups: Set[str] = set()
                for frame in block_stack:
                    groups |= frame
                inline = INLINE_GROUP_PATTERN.search(options)
                if inline:
                    groups |= _parse_groups(inline.group(1))

                dependencies.append(ManifestDependency(
                    name=name,
                    requirement=_normalize_requirement(STRING_PATTERN.findall(versions)),
                    type=self._type_for_groups(groups),
                ))
                continue

            if BLOCK_END_PATTERN.match(line):
                if block_stack:
                    block_stack.pop()
            elif KEYWORD_BLOCK_PATTERN.match(line) and not ONE_LINE_END_PATTERN.search(line):
                block_stack.append(set())
            elif BLOCK_START_PATTERN.search(line):
                block_stack.append(set())

        return dependencies

    def _evaluate_gemspec(self, file_contents: str) -> List[ManifestDependency]:
        dependencies = []
        for raw_line in file_contents.splitlines():
            line = _strip_comment(raw_line)
            match = GEMSPEC_PATTERN.search(line)
            if not match:
                continue

            dependency_type = DependencyType.DEVELOPMENT if match.group(1) == "development_" else DependencyType.RUNTIME
            versions, _ = _split_arguments(match.group(3))
            dependencies.append(ManifestDependency(
                name=match.group(2),
                requirement=_normalize_requirement(STRING_PATTERN.findall(versions)),
                type=dependency_type,
            ))
        return dependencies

    def _type_for_groups(self, groups: Set[str]) -> DependencyType:
        if groups and groups <= DEVELOPMENT_GROUPS:
            return DependencyType.DEVELOPMENT
        return DependencyType.RUNTIME
