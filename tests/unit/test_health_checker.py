"""Tests for the workspace health checker."""

from unittest.mock import patch

import pytest

from prodmill.health.checker import CheckStatus, HealthChecker


@pytest.fixture
def tools_installed():
    with patch("prodmill.health.checker.check_command_exists", return_value=True) as mock_exists:
        yield mock_exists


def _by_name(results):
    return {r.name: r for r in results}


class TestHealthChecker:
    def test_ready_workspace_passes(self, make_config, tools_installed):
        results = _by_name(HealthChecker(make_config()).run_all_checks())

        assert results["Workspace Structure"].status == CheckStatus.PASSED
        assert results["Plan Document"].status == CheckStatus.PASSED
        assert results["Plan Document"].message == "2 bead marker(s) found"
        assert results["Constitution"].status == CheckStatus.PASSED
        assert results["Backlog Tool"].status == CheckStatus.PASSED
        assert results["Credentials"].status == CheckStatus.PASSED
        assert results["Repository"].message == "Sessions will target acme/widgets"
        assert results["Local Agent CLI"].status == CheckStatus.SKIPPED

    def test_missing_directories(self, make_config, spec_workspace, tools_installed):
        (spec_workspace / ".beads").rmdir()

        result = HealthChecker(make_config()).check_workspace_structure()

        assert result.status == CheckStatus.FAILED
        assert ".beads" in result.message

    def test_missing_plan(self, make_config, spec_workspace):
        (spec_workspace / ".spec-kit" / "plan.md").unlink()

        result = HealthChecker(make_config()).check_plan_document()

        assert result.status == CheckStatus.FAILED
        assert result.fix_action

    def test_duplicate_markers_warn(self, make_config, spec_workspace):
        (spec_workspace / ".spec-kit" / "plan.md").write_text(
            "## A <!-- bead:pm-1 -->\none\n## B <!-- bead:pm-1 -->\ntwo\n"
        )

        result = HealthChecker(make_config()).check_plan_document()

        assert result.status == CheckStatus.WARNING
        assert "pm-1 (x2)" in result.message

    def test_plan_without_markers_warns(self, make_config, spec_workspace):
        (spec_workspace / ".spec-kit" / "plan.md").write_text("## A\nno markers\n")

        result = HealthChecker(make_config()).check_plan_document()

        assert result.status == CheckStatus.WARNING

    def test_missing_constitution(self, make_config, spec_workspace):
        (spec_workspace / ".spec-kit" / "constitution.md").unlink()

        assert HealthChecker(make_config()).check_governance_document().status == CheckStatus.FAILED

    def test_backlog_tool_missing(self, make_config):
        with patch("prodmill.health.checker.check_command_exists", return_value=False):
            result = HealthChecker(make_config()).check_backlog_tool()

        assert result.status == CheckStatus.FAILED
        assert "'bd'" in result.message

    def test_missing_api_key(self, make_config):
        result = HealthChecker(make_config(jules_api_key=None)).check_credentials()

        assert result.status == CheckStatus.FAILED
        assert "PRODMILL_JULES_API_KEY" in result.message

    def test_local_publisher_needs_governance_key(self, make_config):
        config = make_config(governance={"publisher": "local"})

        result = HealthChecker(config).check_credentials()

        assert result.status == CheckStatus.FAILED
        assert result.message == "Missing variables: PRODMILL_GOVERNANCE_API_KEY"

    def test_local_agent_cli_checked_when_local(self, make_config):
        config = make_config(governance={"publisher": "local"}, governance_api_key="k")

        with patch("prodmill.health.checker.check_command_exists", return_value=False) as mock_exists:
            result = HealthChecker(config).check_local_agent_cli()

        mock_exists.assert_called_once_with("gemini")
        assert result.status == CheckStatus.FAILED

    def test_unresolvable_repository(self, make_config):
        result = HealthChecker(make_config(repository="not a repo")).check_repository()

        assert result.status == CheckStatus.FAILED
