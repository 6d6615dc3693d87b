"""Interchange-format parsers shared by every ecosystem.

Each parser decides for itself whether a document is in its format
(``is_applicable``) and then extracts the components that belong to the
requested platform. They are registered on an ecosystem's
:class:`~dep_extract.core.parsers.base.MultiParserChain`.
"""

import csv
import io
import json
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional
from urllib.parse import unquote

from .base import Dependency, DependencyType, Platform
from ..errors import MalformedInputError
from ...utils.logging import get_logger


logger = get_logger("multi")

PURL_PATTERN = re.compile(r'^pkg:(?P<type>[a-zA-Z][a-zA-Z0-9.+-]*)/(?P<path>[^?#@]+)(?:@(?P<version>[^?#]+))?')


@dataclass(frozen=True)
class PackageURL:
    """The parts of a package URL needed to build a dependency."""

    type: str
    namespace: Optional[str]
    name: str
    version: Optional[str] = None

    @property
    def full_name(self) -> str:
        if self.namespace:
            return f"{self.namespace}/{self.name}"
        return self.name


def parse_purl(purl: Optional[str]) -> Optional[PackageURL]:
    """Split a package URL into type, namespace, name and version.

    Args:
        purl: Package URL such as ``pkg:gem/rails@7.0.4``

    Returns:
        Parsed package URL, or None if the string is not a purl
    """
    if not purl or not isinstance(purl, str):
        return None

    match = PURL_PATTERN.match(purl.strip())
    if not match:
        return None

    segments = [unquote(part) for part in match.group('path').strip('/').split('/') if part]
    if not segments or not segments[-1].strip():
        return None

    version = match.group('version')
    return PackageURL(
        type=match.group('type').lower(),
        namespace="/".join(segments[:-1]) or None,
        name=segments[-1],
        version=unquote(version) if version else None,
    )


def _load_json_object(file_contents: str) -> Optional[Dict[str, Any]]:
    try:
        data = json.loads(file_contents)
    except (ValueError, TypeError):
        return None
    return data if isinstance(data, dict) else None


def _local_name(tag: str) -> str:
    return tag.rsplit('}', 1)[-1]


class CycloneDXParser:
    """CycloneDX SBOMs in JSON or XML form."""

    name = "cyclonedx"

    def is_applicable(self, file_contents: str) -> bool:
        data = _load_json_object(file_contents)
        if data is not None:
            return data.get("bomFormat") == "CycloneDX"
        return self._load_xml(file_contents) is not None

    def parse(
        self,
        file_contents: str,
        platform: Platform,
        source: Optional[str] = None
    ) -> List[Dependency]:
        data = _load_json_object(file_contents)
        if data is not None:
            components = self._iter_json_components(data.get("components", []), "components")
        else:
            root = self._load_xml(file_contents)
            if root is None:
                raise MalformedInputError("CycloneDX document is neither JSON nor XML")
            components = self._iter_xml_components(root)

        dependencies = []
        for purl_string, version in components:
            purl = parse_purl(purl_string)
            if purl is None:
                if purl_string:
                    logger.warning(f"Skipping component with invalid purl: {purl_string}")
                continue
            if not platform.matches_purl_type(purl.type):
                continue
            dependencies.append(Dependency(
                name=purl.full_name,
                requirement=purl.version or version,
                type=DependencyType.RUNTIME,
                source=source,
            ))
        return dependencies

    def _load_xml(self, file_contents: str) -> Optional[ET.Element]:
        try:
            root = ET.fromstring(file_contents)
        except ET.ParseError:
            return None
        if _local_name(root.tag) != "bom" or "cyclonedx" not in root.tag:
            return None
        return root

    def _iter_json_components(self, components: Any, path: str) -> Iterator[tuple]:
        if not isinstance(components, list):
            raise MalformedInputError("CycloneDX components must be a list", field=path)

        for index, component in enumerate(components):
            component_path = f"{path}[{index}]"
            if not isinstance(component, dict):
                raise MalformedInputError("CycloneDX component must be an object", field=component_path)
            yield component.get("purl"), component.get("version")
            # Components can nest arbitrarily deep
            if "components" in component:
                yield from self._iter_json_components(component["components"], f"{component_path}.components")

    def _iter_xml_components(self, element: ET.Element) -> Iterator[tuple]:
        # Only components listed under <components>; the metadata component is the project itself
        for container in element:
            if _local_name(container.tag) != "components":
                continue
            for component in container:
                if _local_name(component.tag) != "component":
                    continue
                purl = version = None
                for child in component:
                    child_name = _local_name(child.tag)
                    if child_name == "purl":
                        purl = (child.text or "").strip()
                    elif child_name == "version":
                        version = (child.text or "").strip() or None
                yield purl, version
                yield from self._iter_xml_components(component)


class SpdxParser:
    """SPDX documents in tag-value or JSON form."""

    name = "spdx"

    TAG_VALUE_PATTERN = re.compile(r'^\s*(?P<tag>[A-Za-z]+)\s*:\s*(?P<value>.*?)\s*$')

    def is_applicable(self, file_contents: str) -> bool:
        data = _load_json_object(file_contents)
        if data is not None:
            return "spdxVersion" in data
        return any(
            line.strip().startswith("SPDXVersion:")
            for line in file_contents.splitlines()
        )

    def parse(
        self,
        file_contents: str,
        platform: Platform,
        source: Optional[str] = None
    ) -> List[Dependency]:
        data = _load_json_object(file_contents)
        if data is not None:
            return self._parse_json(data, platform, source)
        return self._parse_tag_value(file_contents, platform, source)

    def _parse_tag_value(
        self,
        file_contents: str,
        platform: Platform,
        source: Optional[str]
    ) -> List[Dependency]:
        dependencies = []
        package_name = None
        package_version = None

        for line_num, line in enumerate(file_contents.splitlines(), 1):
            match = self.TAG_VALUE_PATTERN.match(line)
            if not match:
                continue

            tag, value = match.group('tag'), match.group('value')
            if tag == "PackageName":
                package_name, package_version = value, None
            elif tag == "PackageVersion":
                package_version = value or None
            elif tag == "ExternalRef":
                parts = value.split()
                if len(parts) < 3 or parts[1] != "purl":
                    continue
                if package_name is None:
                    raise MalformedInputError("ExternalRef appears before any PackageName", line=line_num)
                purl = parse_purl(parts[2])
                if purl is None or not platform.matches_purl_type(purl.type):
                    continue
                dependencies.append(Dependency(
                    name=purl.full_name,
                    requirement=package_version or purl.version,
                    type=DependencyType.RUNTIME,
                    source=source,
                ))

        return dependencies

    def _parse_json(
        self,
        data: Dict[str, Any],
        platform: Platform,
        source: Optional[str]
    ) -> List[Dependency]:
        packages = data.get("packages", [])
        if not isinstance(packages, list):
            raise MalformedInputError("SPDX packages must be a list", field="packages")

        dependencies = []
        for index, package in enumerate(packages):
            if not isinstance(package, dict):
                raise MalformedInputError("SPDX package must be an object", field=f"packages[{index}]")

            for ref in package.get("externalRefs", []) or []:
                if not isinstance(ref, dict) or ref.get("referenceType") != "purl":
                    continue
                purl = parse_purl(ref.get("referenceLocator"))
                if purl is None or not platform.matches_purl_type(purl.type):
                    continue
                dependencies.append(Dependency(
                    name=purl.full_name,
                    requirement=package.get("versionInfo") or purl.version,
                    type=DependencyType.RUNTIME,
                    source=source,
                ))

        return dependencies


class DependenciesCSVParser:
    """Flat CSV exports with platform, name and requirement columns."""

    name = "dependencies_csv"

    REQUIRED_HEADERS = ("platform", "name")
    REQUIREMENT_HEADERS = ("requirement", "version", "lockfile requirement")

    def is_applicable(self, file_contents: str) -> bool:
        headers = self._read_headers(file_contents)
        return all(header in headers for header in self.REQUIRED_HEADERS)

    def parse(
        self,
        file_contents: str,
        platform: Platform,
        source: Optional[str] = None
    ) -> List[Dependency]:
        reader = csv.reader(io.StringIO(file_contents))
        try:
            headers = [header.strip().lower() for header in next(reader)]
        except StopIteration:
            raise MalformedInputError("CSV document is empty", line=1)

        requirement_header = next(
            (header for header in self.REQUIREMENT_HEADERS if header in headers),
            None
        )
        if requirement_header is None:
            raise MalformedInputError(
                "CSV is missing a requirement column", field=" or ".join(self.REQUIREMENT_HEADERS)
            )

        platform_index = headers.index("platform")
        name_index = headers.index("name")
        requirement_index = headers.index(requirement_header)
        type_index = headers.index("type") if "type" in headers else None

        dependencies = []
        try:
            for row in reader:
                if not any(cell.strip() for cell in row):
                    continue
                line_num = reader.line_num
                row = row + [""] * (len(headers) - len(row))

                if not platform.matches_name(row[platform_index]):
                    continue

                name = row[name_index].strip()
                if not name:
                    raise MalformedInputError("CSV row has an empty name", line=line_num)

                dependencies.append(Dependency(
                    name=name,
                    requirement=row[requirement_index].strip() or None,
                    type=DependencyType.from_label(row[type_index] if type_index is not None else None),
                    source=source,
                ))
        except csv.Error as e:
            raise MalformedInputError(f"Invalid CSV: {e}", line=reader.line_num)

        return dependencies

    def _read_headers(self, file_contents: str) -> List[str]:
        try:
            first_row = next(csv.reader(io.StringIO(file_contents)))
        except (StopIteration, csv.Error):
            return []
        return [header.strip().lower() for header in first_row]
