"""Engine error types.

Every failure the engine can report is a ``ProdmillError`` subclass. All of
them are terminal for the invocation; the CLI maps them to exit code 1.
"""

from typing import List, Optional


class ProdmillError(Exception):
    """Base class for engine failures."""


class ConfigurationError(ProdmillError):
    """Missing required input or invalid mode."""


class MissingWorkspaceStructure(ProdmillError):
    """Planning/backlog directory or planning document is absent from the workspace."""

    def __init__(self, missing: List[str]):
        self.missing = missing
        super().__init__(
            f"Missing required workspace structure: {', '.join(missing)}"
        )


class BacklogUnavailable(ProdmillError):
    """The backlog tool could not be run, failed, or timed out."""

    def __init__(self, message: str, stderr: str = "", timed_out: bool = False):
        self.stderr = stderr
        self.timed_out = timed_out
        detail = f"{message}\nstderr: {stderr.strip()}" if stderr.strip() else message
        super().__init__(detail)


class BacklogParseError(ProdmillError):
    """The backlog tool emitted output that is not a JSON task record."""

    def __init__(self, line_number: int, line: str, reason: str):
        self.line_number = line_number
        self.line = line
        self.reason = reason
        preview = line if len(line) <= 200 else line[:200] + "..."
        super().__init__(
            f"Malformed backlog output on line {line_number}: {reason}: {preview!r}"
        )


class PlanSectionNotFound(ProdmillError):
    """No plan heading carries the bead marker for the chosen task."""

    def __init__(self, task_id: str):
        self.task_id = task_id
        super().__init__(
            f"Could not find a section for bead {task_id} in plan.md "
            f"(expected a heading containing 'bead:{task_id}')"
        )


class MissingSpecification(ProdmillError):
    """The issue body has no (or an empty) product specification section."""


class MissingGovernanceUpdate(ProdmillError):
    """The issue body has no (or an empty) proposed constitution update."""


class RemoteDispatchFailure(ProdmillError):
    """The remote session API rejected the request or was unreachable."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        self.status_code = status_code
        self.body = body
        if status_code is not None:
            message = f"{message} (HTTP {status_code}): {body.strip() or '<empty body>'}"
        super().__init__(message)


class LocalAgentFailure(ProdmillError):
    """The local governance CLI exited non-zero or could not be started."""

    def __init__(self, message: str, returncode: Optional[int] = None):
        self.returncode = returncode
        if returncode is not None:
            message = f"{message} (exit code {returncode})"
        super().__init__(message)
