"""
Unit tests for the index versions CLI tool.

Tests cover:
- VersionsCLI commands against a registry
- Output formatting
- Exit codes of the entry point
"""

import json

import pytest

from search.indexver.tools import versions_cli
from search.indexver.tools.versions_cli import VersionsCLI, build_parser, format_versions
from search.indexver.versioning import InvalidVersionError


@pytest.fixture
def cli(registry):
    """Create a CLI over the test registry."""
    return VersionsCLI(registry)


class TestVersionsCLI:
    """Tests for VersionsCLI."""

    @pytest.mark.asyncio
    async def test_list_default(self, cli):
        """A fresh type lists the implicit version 1."""
        versions = await cli.list_versions("post")

        assert versions == [
            {"number": 1, "active": True, "created_time": None, "activated_time": None}
        ]

    @pytest.mark.asyncio
    async def test_add_and_activate(self, cli):
        """add then activate makes the new version active."""
        added = await cli.add_version("post")
        activated = await cli.activate_version("post", added["number"])

        assert added["number"] == 2
        assert activated["active"] is True
        assert [v["active"] for v in await cli.list_versions("post")] == [False, True]

    @pytest.mark.asyncio
    async def test_show_missing(self, cli):
        """Unknown versions show as None."""
        assert await cli.show_version("post", 4) is None

    @pytest.mark.asyncio
    async def test_activate_missing(self, cli):
        """Activating an unknown version raises."""
        with pytest.raises(InvalidVersionError):
            await cli.activate_version("post", 4)


class TestFormatVersions:
    """Tests for format_versions()."""

    def test_json(self):
        """JSON output has sorted keys."""
        output = format_versions([{"number": 1, "active": True}], "json")

        assert json.loads(output) == [{"active": True, "number": 1}]
        assert output.index('"active"') < output.index('"number"')

    def test_text_table(self):
        """Text output is a table with placeholders for missing times."""
        output = format_versions(
            [{"number": 2, "active": False, "created_time": 100, "activated_time": None}],
            "text",
        )
        header, row = output.splitlines()

        assert header.split() == ["VERSION", "ACTIVE", "CREATED", "ACTIVATED"]
        assert row.split() == ["2", "no", "100", "-"]

    def test_text_empty(self):
        """An empty list renders a message."""
        assert format_versions([], "text") == "No versions"


class TestMain:
    """Tests for the CLI entry point."""

    @pytest.fixture(autouse=True)
    def memory_backend(self, monkeypatch):
        """Run the entry point against a fresh in-memory store."""
        monkeypatch.setenv("SETTINGS_BACKEND", "memory")
        monkeypatch.setenv("LOG_FORMAT", "text")
        monkeypatch.setattr(versions_cli, "setup_logging", lambda config: None)

    def test_parser_requires_command(self):
        """A subcommand is mandatory."""
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_parser_show(self):
        """show takes a slug and a version number."""
        args = build_parser().parse_args(["show", "post", "2", "--format", "json"])

        assert (args.command, args.slug, args.number, args.format) == ("show", "post", 2, "json")

    def test_list(self, capsys):
        """list prints the versions and exits 0."""
        with pytest.raises(SystemExit) as exc_info:
            versions_cli.main(["list", "post", "--format", "json"])

        assert exc_info.value.code == 0
        assert json.loads(capsys.readouterr().out)[0]["number"] == 1

    def test_add(self, capsys):
        """add prints the new version."""
        with pytest.raises(SystemExit) as exc_info:
            versions_cli.main(["add", "post", "--format", "json"])

        assert exc_info.value.code == 0
        [version] = json.loads(capsys.readouterr().out)
        assert version["number"] == 2
        assert version["active"] is False
        assert isinstance(version["created_time"], int)
        assert version["activated_time"] is None

    def test_activate_missing_version(self, capsys):
        """Versioning errors print their code and exit 1."""
        with pytest.raises(SystemExit) as exc_info:
            versions_cli.main(["activate", "post", "5"])

        assert exc_info.value.code == 1
        assert "Error [invalid-index-version]" in capsys.readouterr().err

    def test_show_missing_version(self, capsys):
        """A missing version exits 1."""
        with pytest.raises(SystemExit) as exc_info:
            versions_cli.main(["show", "post", "3"])

        assert exc_info.value.code == 1
        assert "not found" in capsys.readouterr().err

    def test_configuration_error(self, monkeypatch, capsys):
        """Invalid configuration exits 1 before touching the store."""
        monkeypatch.setenv("LOG_FORMAT", "xml")

        with pytest.raises(SystemExit) as exc_info:
            versions_cli.main(["list", "post"])

        assert exc_info.value.code == 1
        assert "Configuration error" in capsys.readouterr().err
