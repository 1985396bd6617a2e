"""
Tests for the command-line interface.

Runs the Typer app against the sample fixture files.
"""

import json

import pytest
from typer.testing import CliRunner

from cli.main import app
from dagview import __version__
from tests.fixtures import SAMPLE_GRAPH_PATH, SAMPLE_LOG_PATH

runner = CliRunner()

GRAPH = str(SAMPLE_GRAPH_PATH)
LOG = str(SAMPLE_LOG_PATH)


class TestShow:
    """Tests for the show command."""

    def test_show_json(self):
        """--json prints the payload."""
        result = runner.invoke(app, ["show", GRAPH, LOG, "--version", "0", "--depth", "10", "--json"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["version"] == 0
        assert data["reason"] == "add cache"
        assert [node["name"] for node in data["nodes"]] == [
            "app",
            "cache",
            "lexer",
            "parser",
            "render",
        ]

    def test_show_node_filter(self):
        """--node centers the view on the node."""
        result = runner.invoke(
            app, ["show", GRAPH, LOG, "-V", "2", "-d", "1", "-n", "cache", "--json"]
        )

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert [node["name"] for node in data["nodes"]] == ["cache", "parser"]
        assert data["relevantIndices"] == [0, 2]

    def test_show_tables(self):
        """Without --json the view is printed as tables."""
        result = runner.invoke(app, ["show", GRAPH, LOG, "--version", "0"])

        assert result.exit_code == 0, result.output
        assert "Version 0" in result.output
        assert "Nodes" in result.output
        assert "ADD_NODE cache" in result.output

    def test_show_bad_version(self):
        """Versions below -1 are reported as errors."""
        result = runner.invoke(app, ["show", GRAPH, LOG, "--version", "-5"])

        assert result.exit_code == 1
        assert "Error" in result.output

    def test_show_missing_file(self, tmp_path):
        """A missing input file is reported as an error."""
        result = runner.invoke(app, ["show", str(tmp_path / "none.json"), LOG])

        assert result.exit_code == 1
        assert "File not found" in result.output


class TestOtherCommands:
    """Tests for diff, log, roots and check."""

    def test_diff_forward(self):
        """diff prints the entry between adjacent positions."""
        result = runner.invoke(app, ["diff", LOG, "1", "2"])

        assert result.exit_code == 0, result.output
        assert "DELETE_NODE render" in result.output

    def test_diff_backward(self):
        """Moving back prints the inverse."""
        result = runner.invoke(app, ["diff", LOG, "2", "1"])

        assert result.exit_code == 0, result.output
        assert "ADD_NODE render" in result.output

    def test_diff_not_adjacent(self):
        """Non-adjacent positions give a notice."""
        result = runner.invoke(app, ["diff", LOG, "0", "2"])

        assert result.exit_code == 0
        assert "No diff" in result.output

    def test_log_lists_reasons(self):
        """log prints every version with its reason."""
        result = runner.invoke(app, ["log", LOG])

        assert result.exit_code == 0, result.output
        for reason in ("add cache", "drop render", "move tokens"):
            assert reason in result.output

    def test_log_token_filter(self):
        """--token keeps the versions changing the token."""
        result = runner.invoke(app, ["log", LOG, "--token", "tokens.py"])

        assert result.exit_code == 0, result.output
        assert "move tokens" in result.output
        assert "add cache" not in result.output

    def test_roots(self):
        """roots prints the roots at the version."""
        result = runner.invoke(app, ["roots", GRAPH, LOG, "--version", "0"])

        assert result.exit_code == 0, result.output
        assert "app" in result.output
        assert "render" not in result.output

    def test_check(self):
        """check replays the sample log cleanly."""
        result = runner.invoke(app, ["check", GRAPH, LOG])

        assert result.exit_code == 0, result.output
        assert "consistent" in result.output

    def test_check_reports_failures(self, tmp_path):
        """A log that cannot be replayed fails with its location."""
        log_path = tmp_path / "log.json"
        log_path.write_text(
            json.dumps(
                [{"reason": "bad", "mutation": [{"type": "DELETE_NODE", "start_node": "ghost"}]}]
            )
        )

        result = runner.invoke(app, ["check", GRAPH, str(log_path)])

        assert result.exit_code == 1
        assert "ghost" in result.output


@pytest.mark.parametrize("flag", ["--version", "-v"])
def test_version_flag(flag):
    """The global version flag prints the version."""
    result = runner.invoke(app, [flag])

    assert result.exit_code == 0
    assert __version__ in result.output
