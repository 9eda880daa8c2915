"""Tests for the top-level CLI app and command wrapper."""

import pytest
import typer
from typer.testing import CliRunner

from focusbloom import __version__
from focusbloom.commands.decorators import AppError, command_wrapper
from focusbloom.main import app
from focusbloom.services.api.errors import APIStatusError
from focusbloom.utils.exit_codes import ERROR_GENERAL, ERROR_NETWORK, get_exit_code_name

runner = CliRunner()


def test_version():
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_no_args_shows_help():
    result = runner.invoke(app, [])
    assert "session" in result.output
    assert "sync" in result.output


class TestCommandWrapper:
    def test_runs_coroutines(self):
        @command_wrapper
        async def cmd():
            return 42

        assert cmd() == 42

    def test_app_error_exit_code(self):
        @command_wrapper
        def cmd():
            raise AppError("nope", 5)

        with pytest.raises(typer.Exit) as exc_info:
            cmd()
        assert exc_info.value.exit_code == 5

    def test_api_error_is_network_exit(self):
        @command_wrapper
        async def cmd():
            raise APIStatusError(503)

        with pytest.raises(typer.Exit) as exc_info:
            cmd()
        assert exc_info.value.exit_code == ERROR_NETWORK

    def test_failure_logged_with_exit_code_name(self, mocker):
        logger = mocker.patch("focusbloom.commands.decorators.get_logger").return_value

        @command_wrapper
        def cmd():
            raise AppError("missing", 5)

        with pytest.raises(typer.Exit):
            cmd()
        assert "ERROR_NOT_FOUND" in logger.error.call_args.args

    def test_unexpected_error_is_general_exit(self):
        @command_wrapper
        def cmd():
            raise RuntimeError("boom")

        with pytest.raises(typer.Exit) as exc_info:
            cmd()
        assert exc_info.value.exit_code == ERROR_GENERAL


def test_exit_code_names():
    assert get_exit_code_name(ERROR_NETWORK) == "ERROR_NETWORK"
    assert get_exit_code_name(99) == "UNKNOWN(99)"
