"""Tests for the multi-parser chain and interchange-format parsers."""

import json
import pytest
from unittest.mock import Mock

from dep_extract.core.errors import MalformedInputError, UnsupportedFormatError
from dep_extract.core.parsers.base import Dependency, DependencyType, MultiParserChain, Platform
from dep_extract.core.parsers.multi import (
    CycloneDXParser,
    DependenciesCSVParser,
    SpdxParser,
    parse_purl,
)


RUBYGEMS = Platform(name="rubygems", purl_type="gem", aliases=frozenset({"gem"}))
SWIFTPM = Platform(name="swiftpm", purl_type="swift", aliases=frozenset({"swift"}))


def make_multi_parser(name, applicable, result=None):
    """Create a mock multi-parser."""
    parser = Mock()
    parser.name = name
    parser.is_applicable.return_value = applicable
    parser.parse.return_value = result or []
    return parser


class TestMultiParserChain:
    """Test the ordered fallback chain."""

    def test_first_applicable_parser_owns_result(self):
        """Test that only the accepting parser produces the result."""
        expected = [Dependency(name="from-b")]
        parser_a = make_multi_parser("a", False)
        parser_b = make_multi_parser("b", True, expected)
        parser_c = make_multi_parser("c", True, [Dependency(name="from-c")])

        chain = MultiParserChain()
        for parser in (parser_a, parser_b, parser_c):
            chain.register(parser)

        result = chain.resolve("content", RUBYGEMS, source="bom.json")

        assert result == expected
        parser_a.is_applicable.assert_called_once_with("content")
        parser_a.parse.assert_not_called()
        parser_b.parse.assert_called_once_with("content", RUBYGEMS, source="bom.json")
        parser_c.parse.assert_not_called()

    def test_no_applicable_parser(self):
        """Test that unsupported content raises."""
        chain = MultiParserChain()
        chain.register(make_multi_parser("a", False))
        chain.register(make_multi_parser("b", False))

        with pytest.raises(UnsupportedFormatError, match="tried: a, b"):
            chain.resolve("content", RUBYGEMS)

    def test_register_preserves_order_and_is_idempotent(self):
        """Test registration order and duplicate registration."""
        parser_a = make_multi_parser("a", False)
        parser_b = make_multi_parser("b", False)

        chain = MultiParserChain()
        chain.register(parser_a)
        chain.register(parser_b)
        chain.register(parser_a)

        assert [parser.name for parser in chain] == ["a", "b"]
        assert len(chain) == 2

    def test_malformed_error_is_not_recovered(self):
        """Test that an accepting parser's error stops the chain."""
        parser_a = make_multi_parser("a", True)
        parser_a.parse.side_effect = MalformedInputError("bad")
        parser_b = make_multi_parser("b", True)

        chain = MultiParserChain()
        chain.register(parser_a)
        chain.register(parser_b)

        with pytest.raises(MalformedInputError):
            chain.resolve("content", RUBYGEMS)
        parser_b.is_applicable.assert_not_called()


class TestPurl:
    """Test package URL parsing."""

    def test_simple_purl(self):
        """Test a purl without namespace."""
        purl = parse_purl("pkg:gem/rails@7.0.4")

        assert purl.type == "gem"
        assert purl.namespace is None
        assert purl.full_name == "rails"
        assert purl.version == "7.0.4"

    def test_namespaced_purl(self):
        """Test a purl with a multi-segment namespace and qualifiers."""
        purl = parse_purl("pkg:swift/github.com/apple/swift-nio@2.40.0?repository_url=x")

        assert purl.namespace == "github.com/apple"
        assert purl.full_name == "github.com/apple/swift-nio"
        assert purl.version == "2.40.0"

    def test_invalid_purl(self):
        """Test that non-purls return None."""
        assert parse_purl("https://example.com") is None
        assert parse_purl(None) is None
        assert parse_purl("pkg:gem/") is None

    def test_blank_decoded_name(self):
        """Test that a name decoding to whitespace is not a purl."""
        assert parse_purl("pkg:gem/%20@1.0") is None
        assert parse_purl("pkg:swift/github.com/apple/%20%09") is None


class TestCycloneDXParser:
    """Test CycloneDX parsing."""

    BOM = {
        "bomFormat": "CycloneDX",
        "specVersion": "1.4",
        "metadata": {"component": {"name": "app", "purl": "pkg:gem/app@0.1.0"}},
        "components": [
            {"name": "rails", "version": "7.0.4", "purl": "pkg:gem/rails@7.0.4", "components": [
                {"name": "actionpack", "purl": "pkg:gem/actionpack@7.0.4"},
            ]},
            {"name": "swift-nio", "purl": "pkg:swift/github.com/apple/swift-nio@2.40.0"},
            {"name": "no-purl", "version": "1.0"},
        ],
    }

    def test_is_applicable(self):
        """Test format detection."""
        parser = CycloneDXParser()

        assert parser.is_applicable(json.dumps(self.BOM))
        assert not parser.is_applicable(json.dumps({"spdxVersion": "SPDX-2.3"}))
        assert not parser.is_applicable("platform,name,requirement\n")

    def test_parse_json_filters_platform(self):
        """Test that only the platform's components are returned."""
        deps = CycloneDXParser().parse(json.dumps(self.BOM), RUBYGEMS, source="bom.json")

        assert deps == [
            Dependency(name="rails", requirement="7.0.4", source="bom.json"),
            Dependency(name="actionpack", requirement="7.0.4", source="bom.json"),
        ]

    def test_parse_json_swift(self):
        """Test namespaced swift components."""
        deps = CycloneDXParser().parse(json.dumps(self.BOM), SWIFTPM)

        assert deps == [Dependency(name="github.com/apple/swift-nio", requirement="2.40.0")]

    def test_parse_xml(self):
        """Test the XML form."""
        content = """<?xml version="1.0" encoding="UTF-8"?>
<bom xmlns="http://cyclonedx.org/schema/bom/1.4" version="1">
  <metadata>
    <component type="application"><name>app</name><purl>pkg:gem/app@0.1.0</purl></component>
  </metadata>
  <components>
    <component type="library">
      <name>rack</name>
      <version>2.2.4</version>
      <purl>pkg:gem/rack@2.2.4</purl>
    </component>
  </components>
</bom>
"""
        parser = CycloneDXParser()

        assert parser.is_applicable(content)
        assert parser.parse(content, RUBYGEMS) == [Dependency(name="rack", requirement="2.2.4")]

    def test_nested_xml_order_matches_json(self):
        """Test that nested XML components are walked depth-first like JSON."""
        content = """<?xml version="1.0" encoding="UTF-8"?>
<bom xmlns="http://cyclonedx.org/schema/bom/1.5" version="1">
  <components>
    <component type="library">
      <name>a</name>
      <purl>pkg:gem/a@1.0</purl>
      <components>
        <component type="library"><name>a-child</name><purl>pkg:gem/a-child@1.1</purl></component>
      </components>
    </component>
    <component type="library"><name>b</name><purl>pkg:gem/b@2.0</purl></component>
  </components>
</bom>
"""
        as_json = json.dumps({"bomFormat": "CycloneDX", "components": [
            {"name": "a", "purl": "pkg:gem/a@1.0", "components": [
                {"name": "a-child", "purl": "pkg:gem/a-child@1.1"},
            ]},
            {"name": "b", "purl": "pkg:gem/b@2.0"},
        ]})
        parser = CycloneDXParser()

        xml_names = [dep.name for dep in parser.parse(content, RUBYGEMS)]

        assert xml_names == ["a", "a-child", "b"]
        assert xml_names == [dep.name for dep in parser.parse(as_json, RUBYGEMS)]

    def test_blank_purl_name_is_skipped(self):
        """Test that a component whose purl name is blank is skipped, not fatal."""
        content = json.dumps({"bomFormat": "CycloneDX", "components": [
            {"purl": "pkg:gem/%20@1.0"},
            {"purl": "pkg:gem/rack@2.2.4"},
        ]})

        assert CycloneDXParser().parse(content, RUBYGEMS) == [Dependency(name="rack", requirement="2.2.4")]

    def test_components_must_be_list(self):
        """Test malformed component lists."""
        content = json.dumps({"bomFormat": "CycloneDX", "components": {"name": "x"}})

        with pytest.raises(MalformedInputError) as exc_info:
            CycloneDXParser().parse(content, RUBYGEMS)

        assert exc_info.value.field == "components"


class TestSpdxParser:
    """Test SPDX parsing."""

    TAG_VALUE = """SPDXVersion: SPDX-2.3
DataLicense: CC0-1.0

PackageName: rails
PackageVersion: 7.0.4
ExternalRef: PACKAGE-MANAGER purl pkg:gem/rails@7.0.4

PackageName: swift-nio
PackageVersion: 2.40.0
ExternalRef: PACKAGE-MANAGER purl pkg:swift/github.com/apple/swift-nio@2.40.0
"""

    def test_is_applicable(self):
        """Test format detection."""
        parser = SpdxParser()

        assert parser.is_applicable(self.TAG_VALUE)
        assert parser.is_applicable(json.dumps({"spdxVersion": "SPDX-2.3", "packages": []}))
        assert not parser.is_applicable(json.dumps({"bomFormat": "CycloneDX"}))

    def test_parse_tag_value(self):
        """Test the tag-value form."""
        parser = SpdxParser()

        assert parser.parse(self.TAG_VALUE, RUBYGEMS) == [Dependency(name="rails", requirement="7.0.4")]
        assert parser.parse(self.TAG_VALUE, SWIFTPM) == [
            Dependency(name="github.com/apple/swift-nio", requirement="2.40.0")
        ]

    def test_external_ref_before_package(self):
        """Test that an orphan ExternalRef reports its line."""
        content = "SPDXVersion: SPDX-2.3\nExternalRef: PACKAGE-MANAGER purl pkg:gem/rails@7.0.4\n"

        with pytest.raises(MalformedInputError) as exc_info:
            SpdxParser().parse(content, RUBYGEMS)

        assert exc_info.value.line == 2

    def test_blank_purl_name_is_skipped(self):
        """Test that an ExternalRef with a blank purl name is ignored."""
        content = (
            "SPDXVersion: SPDX-2.3\n"
            "PackageName: blank\n"
            "ExternalRef: PACKAGE-MANAGER purl pkg:gem/%20@1.0\n"
        )

        assert SpdxParser().parse(content, RUBYGEMS) == []

    def test_parse_json(self):
        """Test the JSON form."""
        content = json.dumps({
            "spdxVersion": "SPDX-2.3",
            "packages": [
                {"name": "rack", "versionInfo": "2.2.4", "externalRefs": [
                    {"referenceCategory": "PACKAGE-MANAGER", "referenceType": "purl",
                     "referenceLocator": "pkg:gem/rack@2.2.4"},
                ]},
                {"name": "app"},
            ],
        })

        assert SpdxParser().parse(content, RUBYGEMS, source="app.spdx.json") == [
            Dependency(name="rack", requirement="2.2.4", source="app.spdx.json")
        ]


class TestDependenciesCSVParser:
    """Test dependencies.csv parsing."""

    CSV = (
        "Platform,Name,Requirement,Type\n"
        "rubygems,rails,~> 7.0,runtime\n"
        "swiftpm,github.com/apple/swift-nio,2.40.0,\n"
        "Rubygems,rspec,~> 3.12,development\n"
    )

    def test_is_applicable(self):
        """Test header detection."""
        parser = DependenciesCSVParser()

        assert parser.is_applicable(self.CSV)
        assert not parser.is_applicable("a,b,c\n1,2,3\n")
        assert not parser.is_applicable("")

    def test_parse_filters_platform(self):
        """Test that rows are filtered by platform, case-insensitively."""
        deps = DependenciesCSVParser().parse(self.CSV, RUBYGEMS, source="dependencies.csv")

        assert deps == [
            Dependency(name="rails", requirement="~> 7.0", source="dependencies.csv"),
            Dependency(name="rspec", requirement="~> 3.12", type=DependencyType.DEVELOPMENT,
                       source="dependencies.csv"),
        ]

    def test_version_column(self):
        """Test the alternative version column."""
        content = "platform,name,version\nswift,github.com/a/b,1.0.0\n"

        assert DependenciesCSVParser().parse(content, SWIFTPM) == [
            Dependency(name="github.com/a/b", requirement="1.0.0")
        ]

    def test_missing_requirement_column(self):
        """Test that a recognized CSV without requirements is malformed."""
        with pytest.raises(MalformedInputError, match="requirement column"):
            DependenciesCSVParser().parse("platform,name\nrubygems,rails\n", RUBYGEMS)

    def test_empty_name(self):
        """Test that an empty name reports its line."""
        content = "platform,name,requirement\nrubygems,rails,1.0\nrubygems,,2.0\n"

        with pytest.raises(MalformedInputError) as exc_info:
            DependenciesCSVParser().parse(content, RUBYGEMS)

        assert exc_info.value.line == 3
