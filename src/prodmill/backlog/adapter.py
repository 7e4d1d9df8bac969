"""Backlog adapter for the `bd` (beads) tracker CLI."""

import json
import logging
from pathlib import Path
from typing import Any, List, Optional

from pydantic import ValidationError

from ..core.errors import BacklogParseError, BacklogUnavailable
from ..core.task import BacklogSnapshot, TaskRecord
from ..utils.subprocess_utils import SubprocessError, run_command

logger = logging.getLogger(__name__)

READY_ARGS = ["ready", "--json"]


def parse_ready_output(content: str) -> BacklogSnapshot:
    """
    Parse `bd ready --json` output into an ordered snapshot.

    Each non-blank line is parsed on its own. A line holding a JSON object
    is one task; a line holding a JSON array contributes its elements in
    order (newer tracker versions print a single array).

    Raises:
        BacklogParseError: On any line that is not valid JSON or not a task record
    """
    tasks: List[TaskRecord] = []
    for line_number, line in enumerate(content.splitlines(), start=1):
        if not line.strip():
            continue

        try:
            data = json.loads(line)
        except json.JSONDecodeError as e:
            raise BacklogParseError(line_number, line, f"invalid JSON ({e.msg})") from e

        items = data if isinstance(data, list) else [data]
        for item in items:
            tasks.append(_to_task(item, line_number, line))

    return BacklogSnapshot(tasks=tasks)


def _to_task(item: Any, line_number: int, line: str) -> TaskRecord:
    if not isinstance(item, dict):
        raise BacklogParseError(
            line_number, line, f"expected a JSON object, got {type(item).__name__}"
        )
    try:
        return TaskRecord(**item)
    except ValidationError as e:
        reason = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'record'}: {err['msg']}"
            for err in e.errors()
        )
        raise BacklogParseError(line_number, line, reason) from e


class BacklogAdapter:
    """Reads ready work from the tracker in a given workspace."""

    def __init__(self, workspace: Path, executable: str = "bd", timeout: int = 60):
        self.workspace = workspace
        self.executable = executable
        self.timeout = timeout

    @property
    def command(self) -> List[str]:
        return [self.executable] + READY_ARGS

    def ready(self) -> BacklogSnapshot:
        """Run the tracker and return every ready task in tracker order."""
        cmd = self.command
        logger.debug(f"Running {' '.join(cmd)} in {self.workspace}")
        try:
            result = run_command(cmd, cwd=self.workspace, timeout=self.timeout)
        except SubprocessError as e:
            if e.timed_out:
                raise BacklogUnavailable(
                    f'"{" ".join(cmd)}" did not finish within {self.timeout}s',
                    stderr=e.stderr,
                    timed_out=True,
                ) from e
            raise BacklogUnavailable(
                f'Failed to run "{" ".join(cmd)}" (exit code {e.returncode})',
                stderr=e.stderr,
            ) from e
        except OSError as e:
            raise BacklogUnavailable(f'Failed to run "{" ".join(cmd)}": {e}') from e

        snapshot = parse_ready_output(result.stdout or "")
        logger.info(f"Backlog reports {len(snapshot)} ready task(s)")
        return snapshot

    def next_task(self) -> Optional[TaskRecord]:
        """The highest-priority ready task, or None when there is no ready work."""
        return self.ready().first()
