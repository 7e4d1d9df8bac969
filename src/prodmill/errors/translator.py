"""Translate engine errors to user-friendly messages."""

import re
from dataclasses import dataclass
from typing import List, Optional

from rich.markup import escape


@dataclass
class UserFriendlyError:
    """User-friendly error representation."""
    original_error: Exception
    title: str
    explanation: str
    actions: List[str]
    documentation: Optional[str] = None
    show_technical: bool = True


class ErrorTranslator:
    """Translate engine errors to user-friendly messages.

    Patterns are matched in order against ``"<ErrorType>: <message>"``, so
    more specific message patterns precede the per-type fallbacks.
    """

    ERROR_PATTERNS = {
        r"ConfigurationError: (No mode configured|Invalid mode)": {
            "title": "No valid mode selected",
            "explanation": "Each run executes exactly one mode and none (or an unknown one) was given.",
            "actions": [
                "Pass --mode create-specification|advance-next-task|update-governance",
                "Or set PRODMILL_MODE in the workflow environment",
            ],
        },

        r"ConfigurationError: .*(API key|API_KEY)": {
            "title": "Missing API credential",
            "explanation": "Dispatching to the agent requires an API key and none was configured.",
            "actions": [
                "Set PRODMILL_JULES_API_KEY (or PRODMILL_GOVERNANCE_API_KEY for the local publisher)",
                "In GitHub Actions, pass the key from repository secrets",
                "Use --dry-run to build the request without credentials",
            ],
        },

        r"ConfigurationError: .*issue body": {
            "title": "Issue body missing",
            "explanation": "This mode reads its input from the triggering issue and the body was empty.",
            "actions": [
                "Set PRODMILL_ISSUE_BODY from the issue event payload",
                "Check the workflow passes github.event.issue.body",
            ],
        },

        r"ConfigurationError: .*repository": {
            "title": "Repository not resolved",
            "explanation": "The agent session needs the GitHub owner/repo it should work on.",
            "actions": [
                "Set PRODMILL_REPOSITORY=owner/repo",
                "Or run inside a clone whose 'origin' remote points at GitHub",
            ],
        },

        r"ConfigurationError": {
            "title": "Invalid configuration",
            "explanation": "The engine configuration could not be loaded or is incomplete.",
            "actions": [
                "Check PRODMILL_* environment variables and the --config file",
                "Run health check: prodmill doctor",
            ],
            "documentation": "README.md#configuration",
        },

        r"MissingWorkspaceStructure": {
            "title": "Workspace is not initialized",
            "explanation": "The workspace is missing the spec-kit planning files or the beads backlog.",
            "actions": [
                "Run the create-specification mode first to produce .spec-kit/plan.md",
                "Initialize the backlog: bd init",
                "Check --workspace points at the repository root",
            ],
        },

        r"BacklogUnavailable: .*(timed out|did not finish)": {
            "title": "Backlog tool timed out",
            "explanation": "`bd ready --json` did not finish in time.",
            "actions": [
                "Increase backlog.timeout in the config file",
                "Run `bd ready --json` manually in the workspace",
            ],
        },

        r"BacklogUnavailable": {
            "title": "Backlog tool failed",
            "explanation": "The beads CLI could not be run or exited with an error.",
            "actions": [
                "Check `bd` is installed and on PATH: prodmill doctor",
                "Run `bd ready --json` manually in the workspace",
            ],
        },

        r"BacklogParseError": {
            "title": "Unreadable backlog output",
            "explanation": "The backlog tool printed something that is not a JSON task record. Nothing was dispatched.",
            "actions": [
                "Run `bd ready --json` and inspect the reported line",
                "Upgrade bd if its output format changed",
            ],
        },

        r"PlanSectionNotFound": {
            "title": "Plan has no section for this bead",
            "explanation": "The ready bead is not referenced by any heading in plan.md.",
            "actions": [
                "Add `<!-- bead:<id> -->` to the matching plan heading",
                "Check for markers with: prodmill extract-section <id>",
            ],
        },

        r"MissingSpecification": {
            "title": "No product specification in issue",
            "explanation": "The issue must contain a '### Product Specification' section with content.",
            "actions": [
                "Edit the issue and fill in the Product Specification section",
            ],
        },

        r"MissingGovernanceUpdate": {
            "title": "No constitution update in issue",
            "explanation": "The issue must contain a '### Proposed Constitution Update' section with content.",
            "actions": [
                "Edit the issue and fill in the Proposed Constitution Update section",
            ],
        },

        r"RemoteDispatchFailure: .*HTTP (401|403)": {
            "title": "Agent API authentication failed",
            "explanation": "The sessions API rejected the API key.",
            "actions": [
                "Generate a new key and update PRODMILL_JULES_API_KEY",
                "Check the key has access to the repository source",
            ],
        },

        r"RemoteDispatchFailure: .*HTTP 429": {
            "title": "Agent API rate limit exceeded",
            "explanation": "Too many sessions were created recently.",
            "actions": [
                "Wait for the quota to reset and re-run the workflow",
            ],
        },

        r"RemoteDispatchFailure": {
            "title": "Could not create agent session",
            "explanation": "The request to the remote sessions API failed. No outputs were written.",
            "actions": [
                "Check network connectivity to the API endpoint",
                "Re-run the workflow; the engine does not retry on its own",
            ],
        },

        r"LocalAgentFailure": {
            "title": "Local agent CLI failed",
            "explanation": "The constitution update command exited with an error or could not start.",
            "actions": [
                "Check the agent CLI is installed: prodmill doctor",
                "Verify PRODMILL_GOVERNANCE_API_KEY is valid",
                "Review the streamed agent output above",
            ],
        },
    }

    def translate(self, error: Exception) -> UserFriendlyError:
        """Convert exception to user-friendly format."""
        error_type = type(error).__name__
        full_error = f"{error_type}: {error}"

        for pattern, translation in self.ERROR_PATTERNS.items():
            if re.search(pattern, full_error, re.IGNORECASE | re.DOTALL):
                return UserFriendlyError(
                    original_error=error,
                    title=translation["title"],
                    explanation=translation["explanation"],
                    actions=translation["actions"],
                    documentation=translation.get("documentation"),
                )

        return UserFriendlyError(
            original_error=error,
            title="Unexpected error",
            explanation=str(error),
            actions=[
                "Run health check: prodmill doctor",
                "Re-run with --log-level DEBUG for details",
            ],
            show_technical=False,
        )

    def format_for_cli(self, friendly_error: UserFriendlyError) -> str:
        """Format error for CLI display (rich markup)."""
        output = f"[bold red]{friendly_error.title}[/]\n\n"
        output += f"{escape(friendly_error.explanation)}\n\n"

        output += "[bold]How to fix:[/]\n"
        for i, action in enumerate(friendly_error.actions, 1):
            output += f"  {i}. {escape(action)}\n"

        if friendly_error.documentation:
            output += f"\n[dim]Learn more: {friendly_error.documentation}[/]"

        if friendly_error.show_technical:
            output += f"\n\n[dim]Technical details:[/]\n[dim]{escape(str(friendly_error.original_error))}[/]"

        return output
