"""Tests for the constitution update publishers."""

import os
from pathlib import Path
from typing import get_type_hints
from unittest.mock import MagicMock, patch

import pytest

from prodmill.core.config import EngineConfig
from prodmill.core.errors import ConfigurationError, LocalAgentFailure
from prodmill.dispatch.governance import (
    LocalAgentInvocation,
    LocalProcessPublisher,
    RemoteDispatchPublisher,
    build_publisher,
)
from prodmill.dispatch.models import DispatchResult
from prodmill.utils.subprocess_utils import SubprocessError


def _remote(client=None) -> RemoteDispatchPublisher:
    return RemoteDispatchPublisher(
        client=client,
        source="sources/github/acme/widgets",
        starting_branch="main",
        setup_command="specify init --here --ai gemini --force",
        update_command="/speckit.constitution",
        title="Update project constitution",
    )


def _local(timeout=None) -> LocalProcessPublisher:
    return LocalProcessPublisher(LocalAgentInvocation(
        command=["gemini", "--yolo", "--prompt", "/speckit.constitution {update}"],
        cwd=Path("/repo"),
        env={"GEMINI_API_KEY": "gem-key"},
        timeout=timeout,
    ))


class TestRemoteDispatchPublisher:
    def test_dispatches_governance_prompt(self):
        client = MagicMock()
        client.dispatch.return_value = DispatchResult(200, {"name": "sessions/9"})

        result = _remote(client).publish("Two reviewers per PR.")

        request = client.dispatch.call_args[0][0]
        assert result.dispatched is True
        assert result.dispatch.session_name == "sessions/9"
        assert request.title == "Update project constitution"
        assert "/speckit.constitution" in request.prompt
        assert "Two reviewers per PR." in request.prompt

    def test_dry_run_builds_request_without_client(self):
        result = _remote(client=None).publish("Two reviewers per PR.", dry_run=True)

        assert result.dispatched is False
        assert result.request.source_context.source == "sources/github/acme/widgets"


class TestLocalProcessPublisher:
    def test_argv_substitutes_update(self):
        invocation = LocalAgentInvocation(command=["agent", "--prompt", "apply {update}"], cwd=Path("."))
        assert invocation.argv("X") == ["agent", "--prompt", "apply X"]

    def test_runs_cli_with_scoped_credential(self):
        with patch("prodmill.dispatch.governance.stream_command", return_value=0) as mock_stream:
            result = _local(timeout=120).publish("Two reviewers per PR.")

        args, kwargs = mock_stream.call_args
        assert args[0] == ["gemini", "--yolo", "--prompt", "/speckit.constitution Two reviewers per PR."]
        assert kwargs["cwd"] == Path("/repo")
        assert kwargs["timeout"] == 120
        assert kwargs["env"]["GEMINI_API_KEY"] == "gem-key"
        assert result.dispatched is True
        assert result.returncode == 0

    def test_credential_is_not_written_to_process_environment(self, monkeypatch):
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)

        with patch("prodmill.dispatch.governance.stream_command", return_value=0):
            _local().publish("update")

        assert "GEMINI_API_KEY" not in os.environ

    def test_output_lines_are_logged(self, caplog):
        def fake_stream(cmd, *, on_line, cwd, env, timeout):
            on_line("Constitution updated")
            return 0

        with patch("prodmill.dispatch.governance.stream_command", side_effect=fake_stream):
            with caplog.at_level("INFO", logger="prodmill.dispatch.governance"):
                _local().publish("update")

        assert "[gemini] Constitution updated" in caplog.text

    def test_non_zero_exit_raises(self):
        with patch("prodmill.dispatch.governance.stream_command", return_value=3):
            with pytest.raises(LocalAgentFailure) as exc_info:
                _local().publish("update")

        assert exc_info.value.returncode == 3
        assert "exit code 3" in str(exc_info.value)

    def test_timeout_raises(self):
        error = SubprocessError(cmd="gemini", returncode=None, stderr="", timed_out=True)

        with patch("prodmill.dispatch.governance.stream_command", side_effect=error):
            with pytest.raises(LocalAgentFailure):
                _local(timeout=5).publish("update")

    def test_missing_cli_raises(self):
        with patch("prodmill.dispatch.governance.stream_command", side_effect=FileNotFoundError("gemini")):
            with pytest.raises(LocalAgentFailure) as exc_info:
                _local().publish("update")

        assert "Could not start" in str(exc_info.value)

    def test_dry_run_does_not_spawn(self):
        with patch("prodmill.dispatch.governance.stream_command") as mock_stream:
            result = _local().publish("update", dry_run=True)

        mock_stream.assert_not_called()
        assert result.dispatched is False
        assert result.command[-1] == "/speckit.constitution update"


class TestBuildPublisher:
    def test_remote_by_default(self, make_config):
        client = MagicMock()

        publisher = build_publisher(make_config(), client)

        assert isinstance(publisher, RemoteDispatchPublisher)
        assert publisher.source == "sources/github/acme/widgets"
        assert publisher.client is client

    def test_local_requires_governance_key(self, make_config):
        config = make_config(governance={"publisher": "local"})

        with pytest.raises(ConfigurationError):
            build_publisher(config, None)

    def test_local_invocation_from_config(self, make_config, spec_workspace):
        config = make_config(
            governance={"publisher": "local", "api_key_env": "AGENT_KEY", "timeout": 60},
            governance_api_key="gov-key",
        )

        publisher = build_publisher(config, None)

        assert isinstance(publisher, LocalProcessPublisher)
        assert publisher.invocation.env == {"AGENT_KEY": "gov-key"}
        assert publisher.invocation.cwd == spec_workspace
        assert publisher.invocation.timeout == 60

    def test_config_parameter_is_typed(self):
        hints = get_type_hints(build_publisher)

        assert hints["config"] is EngineConfig
