"""Health check module for validating an engine workspace before a run."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from ..core.config import EngineConfig
from ..core.errors import ConfigurationError
from ..planning.plan_sections import duplicate_markers, find_bead_markers
from ..planning.workspace import SpecKitWorkspace
from ..utils.subprocess_utils import check_command_exists

logger = logging.getLogger(__name__)


class CheckStatus(Enum):
    """Health check status."""
    PASSED = "passed"
    FAILED = "failed"
    WARNING = "warning"
    SKIPPED = "skipped"


@dataclass
class CheckResult:
    """Result of a health check."""
    name: str
    status: CheckStatus
    message: str
    fix_action: Optional[str] = None
    documentation: Optional[str] = None


class HealthChecker:
    """Validate workspace layout, tools and credentials. Never touches the network."""

    def __init__(self, config: EngineConfig):
        self.config = config
        self.workspace = SpecKitWorkspace.from_config(config)

    def run_all_checks(self) -> List[CheckResult]:
        """Run comprehensive health checks."""
        return [
            self.check_workspace_structure(),
            self.check_plan_document(),
            self.check_governance_document(),
            self.check_backlog_tool(),
            self.check_credentials(),
            self.check_repository(),
            self.check_local_agent_cli(),
        ]

    def check_workspace_structure(self) -> CheckResult:
        """Verify the planning and backlog directories exist."""
        missing = self.workspace.missing_directories()
        if missing:
            return CheckResult(
                name="Workspace Structure",
                status=CheckStatus.FAILED,
                message=f"Missing directories: {', '.join(missing)}",
                fix_action="Run create-specification first, then `bd init` in the workspace",
            )

        return CheckResult(
            name="Workspace Structure",
            status=CheckStatus.PASSED,
            message="Planning and backlog directories present",
        )

    def check_plan_document(self) -> CheckResult:
        """Verify plan.md exists and its bead markers are unique."""
        if not self.workspace.plan_path.is_file():
            return CheckResult(
                name="Plan Document",
                status=CheckStatus.FAILED,
                message=f"{self.workspace.plan_path} not found",
                fix_action="Run the create-specification mode to generate plan.md",
            )

        document = self.workspace.read_plan()
        markers = find_bead_markers(document)
        duplicates = duplicate_markers(document)

        if duplicates:
            listed = ", ".join(f"{task_id} (x{count})" for task_id, count in sorted(duplicates.items()))
            return CheckResult(
                name="Plan Document",
                status=CheckStatus.WARNING,
                message=f"Bead markers on more than one heading: {listed}; the first heading wins",
                fix_action="Keep each `<!-- bead:<id> -->` marker on a single heading",
            )

        if not markers:
            return CheckResult(
                name="Plan Document",
                status=CheckStatus.WARNING,
                message="plan.md has no bead markers; advance-next-task will find no sections",
                fix_action="Append `<!-- bead:<id> -->` to each phase heading",
            )

        return CheckResult(
            name="Plan Document",
            status=CheckStatus.PASSED,
            message=f"{len(markers)} bead marker(s) found",
        )

    def check_governance_document(self) -> CheckResult:
        if not self.workspace.governance_path.is_file():
            return CheckResult(
                name="Constitution",
                status=CheckStatus.FAILED,
                message=f"{self.workspace.governance_path} not found",
                fix_action="Run the update-governance mode or add the constitution manually",
            )

        return CheckResult(
            name="Constitution",
            status=CheckStatus.PASSED,
            message="Constitution present",
        )

    def check_backlog_tool(self) -> CheckResult:
        executable = self.config.backlog.executable
        if not check_command_exists(executable):
            return CheckResult(
                name="Backlog Tool",
                status=CheckStatus.FAILED,
                message=f"'{executable}' not found on PATH",
                fix_action="Install beads: https://github.com/steveyegge/beads",
            )

        return CheckResult(
            name="Backlog Tool",
            status=CheckStatus.PASSED,
            message=f"'{executable}' available",
        )

    def check_credentials(self) -> CheckResult:
        """Verify the API keys the configured modes will need are set."""
        missing = []
        if not (self.config.jules_api_key or "").strip():
            missing.append("PRODMILL_JULES_API_KEY")
        if self.config.governance.publisher == "local" and not (
            self.config.governance_api_key or ""
        ).strip():
            missing.append("PRODMILL_GOVERNANCE_API_KEY")

        if missing:
            return CheckResult(
                name="Credentials",
                status=CheckStatus.FAILED,
                message=f"Missing variables: {', '.join(missing)}",
                fix_action="Pass the keys from repository secrets in the workflow",
                documentation="README.md#configuration",
            )

        return CheckResult(
            name="Credentials",
            status=CheckStatus.PASSED,
            message="API keys configured",
        )

    def check_repository(self) -> CheckResult:
        try:
            repository = self.config.resolve_repository()
        except ConfigurationError as e:
            return CheckResult(
                name="Repository",
                status=CheckStatus.FAILED,
                message=str(e),
                fix_action="Set PRODMILL_REPOSITORY=owner/repo",
            )

        return CheckResult(
            name="Repository",
            status=CheckStatus.PASSED,
            message=f"Sessions will target {repository}",
        )

    def check_local_agent_cli(self) -> CheckResult:
        if self.config.governance.publisher != "local":
            return CheckResult(
                name="Local Agent CLI",
                status=CheckStatus.SKIPPED,
                message="Governance updates use the remote publisher",
            )

        executable = self.config.governance.cli_command[0]
        if not check_command_exists(executable):
            return CheckResult(
                name="Local Agent CLI",
                status=CheckStatus.FAILED,
                message=f"'{executable}' not found on PATH",
                fix_action="Install the agent CLI or switch governance.publisher to 'remote'",
            )

        return CheckResult(
            name="Local Agent CLI",
            status=CheckStatus.PASSED,
            message=f"'{executable}' available",
        )
