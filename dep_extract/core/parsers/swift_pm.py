"""Swift Package Manager dependency file parsers."""

import json
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from .base import (
    BaseParser,
    Dependency,
    DependencyType,
    DispatchEntry,
    FilenameMatcher,
    Platform,
    match_filename,
    normalize_repository_url,
)
from ..errors import MalformedInputError, UnsupportedFormatError
from ...config import DepExtractConfig
from ...remote.swift import SwiftManifestClient


class ResolvedSchema(Enum):
    """Field layouts of Package.resolved, keyed by the file's version."""

    V1 = "v1"
    PINS = "pins"

    @classmethod
    def for_version(cls, version: int) -> "ResolvedSchema":
        if version == 1:
            return cls.V1
        # Version 3 only adds originHash; pins keep the version 2 layout
        if version in (2, 3):
            return cls.PINS
        raise UnsupportedFormatError(f"Unsupported Package.resolved version: {version}")


def _require(data: Any, key: str, path: str) -> Any:
    if not isinstance(data, dict):
        raise MalformedInputError("Expected an object", field=path or "<document>")
    if key not in data:
        raise MalformedInputError(f"Missing required key '{key}'", field=f"{path}.{key}" if path else key)
    return data[key]


def _require_list(data: Any, key: str, path: str) -> List[Any]:
    value = _require(data, key, path)
    if not isinstance(value, list):
        raise MalformedInputError("Expected a list", field=f"{path}.{key}" if path else key)
    return value


class SwiftPMParser(BaseParser):
    """Parser for Package.swift and Package.resolved files."""

    ecosystem = "swiftpm"
    platform = Platform(
        name="swiftpm",
        purl_type="swift",
        aliases=frozenset({"swift", "swift_pm", "swiftpackagemanager"}),
    )

    def __init__(
        self,
        config: Optional[DepExtractConfig] = None,
        client: Optional[SwiftManifestClient] = None
    ) -> None:
        """Initialize the SwiftPM parser.

        Args:
            config: Settings for the remote manifest conversion service
            client: Pre-built conversion client, mainly for tests
        """
        super().__init__()
        self.config = config or DepExtractConfig()
        self.client = client or SwiftManifestClient(self.config)

    def mapping(self) -> List[Tuple[FilenameMatcher, DispatchEntry]]:
        return [
            (match_filename("Package.swift", case_insensitive=True), DispatchEntry(
                kind="manifest",
                parser=self.parse_package_swift,
                related_to=frozenset({"lockfile"}),
                parser_type="package_swift",
            )),
            (match_filename("Package.resolved", case_insensitive=True), DispatchEntry(
                kind="lockfile",
                parser=self.parse_package_resolved,
                related_to=frozenset({"manifest"}),
                parser_type="package_resolved",
            )),
        ]

    def parse_package_swift(self, file_contents: str, source: Optional[str] = None) -> List[Dependency]:
        """Parse a Package.swift manifest through the remote conversion service.

        Args:
            file_contents: Manifest content
            source: Originating filename

        Returns:
            Dependencies with "<lower> - <upper>" requirements
        """
        return self.map_manifest_json(self.client.convert(file_contents), source)

    async def parse_package_swift_async(self, file_contents: str, source: Optional[str] = None) -> List[Dependency]:
        """Async variant of :meth:`parse_package_swift`."""
        return self.map_manifest_json(await self.client.to_json(file_contents), source)

    def map_manifest_json(self, data: Dict[str, Any], source: Optional[str] = None) -> List[Dependency]:
        """Map the conversion service's JSON onto dependencies."""
        dependencies = []
        for index, dependency in enumerate(_require_list(data, "dependencies", "")):
            path = f"dependencies[{index}]"
            name = normalize_repository_url(_require(dependency, "url", path), f"{path}.url")
            version = _require(dependency, "version", path)
            lower = _require(version, "lowerBound", f"{path}.version")
            upper = _require(version, "upperBound", f"{path}.version")

            dependencies.append(Dependency(
                name=name,
                requirement=f"{lower} - {upper}",
                type=DependencyType.RUNTIME,
                source=source,
            ))
        return dependencies

    def parse_package_resolved(self, file_contents: str, source: Optional[str] = None) -> List[Dependency]:
        """Parse a Package.resolved lockfile.

        Args:
            file_contents: Lockfile JSON
            source: Originating filename

        Returns:
            One dependency per pin, in file order

        Raises:
            MalformedInputError: On invalid JSON or missing fields
            UnsupportedFormatError: On an unknown schema version
        """
        try:
            data = json.loads(file_contents)
        except ValueError as e:
            raise MalformedInputError(f"Invalid JSON: {e}", field="<document>") from e

        version = _require(data, "version", "")
        if not isinstance(version, int) or isinstance(version, bool):
            raise MalformedInputError("Schema version must be an integer", field="version")

        schema = ResolvedSchema.for_version(version)
        if schema is ResolvedSchema.V1:
            pins = _require_list(_require(data, "object", ""), "pins", "object")
            return self._map_pins(pins, "object.pins", "repositoryURL", source)
        return self._map_pins(_require_list(data, "pins", ""), "pins", "location", source)

    def _map_pins(
        self,
        pins: List[Any],
        path: str,
        url_key: str,
        source: Optional[str]
    ) -> List[Dependency]:
        dependencies = []
        for index, pin in enumerate(pins):
            pin_path = f"{path}[{index}]"
            url = _require(pin, url_key, pin_path)
            state = _require(pin, "state", pin_path)
            if not isinstance(state, dict):
                raise MalformedInputError("Expected an object", field=f"{pin_path}.state")

            dependencies.append(Dependency(
                name=normalize_repository_url(url, f"{pin_path}.{url_key}"),
                # Branch and revision pins carry no version
                requirement=state.get("version"),
                type=DependencyType.RUNTIME,
                source=source,
            ))
        return dependencies
