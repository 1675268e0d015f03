"""Tests for the Click CLI."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner

from src.cli import cli
from src.models import SessionEvent

ENV = {
    "SESSION_MNEMONIC": "puffin vane abbey lipstick",
    "BEARER_TOKEN": "secret",
    "WEBHOOK_URL": "http://hooks.test/session",
    "SESSION_CLIENT": "tests.conftest:FakeProvider",
    "PORT": "9090",
}


@pytest.fixture(autouse=True)
def _quiet_logging():
    with patch("src.cli.configure_logging", return_value=20):
        yield


def test_events_lists_forwarded_events() -> None:
    result = CliRunner().invoke(cli, ["events"])
    assert result.exit_code == 0
    assert result.output.split() == [e.value for e in SessionEvent]


@patch("src.cli.uvicorn.run")
def test_serve_without_mnemonic_exits_nonzero(mock_run: MagicMock) -> None:
    env = {**ENV, "SESSION_MNEMONIC": ""}
    result = CliRunner().invoke(cli, ["serve"], env=env)

    assert result.exit_code == 1
    mock_run.assert_not_called()


@patch("src.cli.uvicorn.run")
def test_serve_runs_uvicorn_on_configured_port(mock_run: MagicMock, tmp_path) -> None:  # noqa: ANN001
    env = {**ENV, "STORAGE_FILE": str(tmp_path / "store.db")}
    result = CliRunner().invoke(cli, ["serve"], env=env)

    assert result.exit_code == 0, result.output
    mock_run.assert_called_once()
    kwargs = mock_run.call_args.kwargs
    assert kwargs["port"] == 9090
    assert kwargs["host"] == "0.0.0.0"
    assert kwargs["lifespan"] == "on"


@patch("src.cli.uvicorn.run")
def test_serve_port_option_overrides_env(mock_run: MagicMock) -> None:
    result = CliRunner().invoke(cli, ["serve", "--port", "7000", "--host", "127.0.0.1"], env=ENV)

    assert result.exit_code == 0, result.output
    kwargs = mock_run.call_args.kwargs
    assert kwargs["port"] == 7000
    assert kwargs["host"] == "127.0.0.1"
