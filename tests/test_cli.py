"""
Tests for the typer entry point.
"""

from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from gator.cli import main as cli_main

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated(settings):
    with patch.object(cli_main, "setup_logging"), \
         patch.object(cli_main, "get_settings", return_value=settings):
        yield


class TestEntryPoint:

    def test_unknown_command_prints_usage(self):
        with patch.object(cli_main, "build_state") as mock_build:
            result = runner.invoke(cli_main.app, ["bogus"])

        assert result.exit_code == 1
        assert "There is no such command" in result.output
        assert "addfeed <name> <url>" in result.output
        mock_build.assert_not_called()

    def test_missing_args_fail_before_database(self):
        with patch.object(cli_main, "build_state") as mock_build:
            result = runner.invoke(cli_main.app, ["addfeed", "only-a-name"])

        assert result.exit_code == 1
        assert "UsageError" in result.output
        mock_build.assert_not_called()

    def test_register_then_users(self, settings):
        result = runner.invoke(cli_main.app, ["register", "alice"])
        assert result.exit_code == 0, result.output

        result = runner.invoke(cli_main.app, ["users"])
        assert result.exit_code == 0
        assert "alice (current)" in result.output

    def test_errors_exit_non_zero(self):
        result = runner.invoke(cli_main.app, ["login", "nobody"])
        assert result.exit_code == 1
        assert "UserNotFound" in result.output

    def test_postgres_scheme_is_normalised(self):
        assert cli_main._sqlalchemy_url("postgres://u:p@localhost:5432/gator") == \
            "postgresql://u:p@localhost:5432/gator"
        assert cli_main._sqlalchemy_url("sqlite:///x.db") == "sqlite:///x.db"
