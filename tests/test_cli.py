"""Tests for the command line interface."""

import json
import pytest
from typer.testing import CliRunner

from dep_extract.cli.main import app


runner = CliRunner()


@pytest.fixture
def project(tmp_path):
    """Create a project with a Gemfile.lock and a Package.resolved."""
    (tmp_path / "Gemfile.lock").write_text(
        "GEM\n"
        "  remote: https://rubygems.org/\n"
        "  specs:\n"
        "    rack (2.2.4)\n"
        "\n"
        "DEPENDENCIES\n"
        "  rack\n"
        "\n"
        "BUNDLED WITH\n"
        "   2.4.10\n"
    )
    (tmp_path / "Package.resolved").write_text(json.dumps({
        "version": 2,
        "pins": [{"location": "https://github.com/apple/swift-log.git", "state": {"version": "1.5.3"}}],
    }))
    return tmp_path


class TestExtractCommand:
    """Test the extract command."""

    def test_single_file_json(self, project):
        """Test JSON output for a single lockfile."""
        result = runner.invoke(app, ["extract", str(project / "Gemfile.lock"), "--json"])

        assert result.exit_code == 0
        assert "rack" in result.stdout
        assert "bundler" in result.stdout

    def test_directory_scan_to_file(self, project, tmp_path):
        """Test scanning a directory and saving the JSON report."""
        report = tmp_path / "report.json"

        result = runner.invoke(app, ["extract", str(project), "--output", str(report)])

        assert result.exit_code == 0
        data = json.loads(report.read_text())
        assert data["summary"]["files_parsed"] == 2
        assert data["summary"]["files_failed"] == 0
        ecosystems = sorted(entry["ecosystem"] for entry in data["results"])
        assert ecosystems == ["rubygems", "swiftpm"]

    def test_malformed_file_fails(self, tmp_path):
        """Test that a parse failure gives a non-zero exit code."""
        resolved = tmp_path / "Package.resolved"
        resolved.write_text('{"version": 2}')

        result = runner.invoke(app, ["extract", str(resolved), "--json"])

        assert result.exit_code == 1
        assert "pins" in result.stdout

    def test_unsupported_schema_fails(self, tmp_path):
        """Test an unknown Package.resolved version."""
        resolved = tmp_path / "Package.resolved"
        resolved.write_text('{"version": 9, "pins": []}')

        result = runner.invoke(app, ["extract", str(resolved), "--json"])

        assert result.exit_code == 1

    def test_missing_path(self, tmp_path):
        """Test a path that does not exist."""
        result = runner.invoke(app, ["extract", str(tmp_path / "nope")])

        assert result.exit_code == 1

    def test_invalid_timeout(self, project):
        """Test that an invalid configuration is reported."""
        result = runner.invoke(app, ["extract", str(project), "--timeout", "0"])

        assert result.exit_code == 1
        assert "Invalid configuration" in result.stdout

    def test_no_dependency_files(self, tmp_path):
        """Test a directory without dependency files."""
        (tmp_path / "README.md").write_text("hello")

        result = runner.invoke(app, ["extract", str(tmp_path)])

        assert result.exit_code == 0
        assert "No dependency files found" in result.stdout


class TestInfoCommand:
    """Test the info command."""

    def test_info(self):
        """Test that every ecosystem is listed."""
        result = runner.invoke(app, ["info"])

        assert result.exit_code == 0
        assert "rubygems" in result.stdout
        assert "swiftpm" in result.stdout
        assert "cyclonedx" in result.stdout
