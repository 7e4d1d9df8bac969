"""Spec-kit workspace layout: planning directory, backlog directory, documents."""

import logging
from pathlib import Path
from typing import List

from ..core.errors import MissingWorkspaceStructure

logger = logging.getLogger(__name__)


class SpecKitWorkspace:
    """Filesystem view of a repository that carries .spec-kit/ and .beads/."""

    def __init__(
        self,
        root: Path,
        planning_dir: str = ".spec-kit",
        backlog_dir: str = ".beads",
        plan_file: str = "plan.md",
        governance_file: str = "constitution.md",
    ):
        self.root = root
        self.planning_dir = root / planning_dir
        self.backlog_dir = root / backlog_dir
        self.plan_path = self.planning_dir / plan_file
        self.governance_path = self.planning_dir / governance_file

    @classmethod
    def from_config(cls, config) -> "SpecKitWorkspace":
        return cls(
            root=config.workspace,
            planning_dir=config.planning.directory,
            backlog_dir=config.backlog.directory,
            plan_file=config.planning.plan_file,
            governance_file=config.planning.governance_file,
        )

    def missing_directories(self) -> List[str]:
        return [
            str(path) for path in (self.planning_dir, self.backlog_dir)
            if not path.is_dir()
        ]

    def check_structure(self) -> None:
        """
        Verify both the planning and backlog directories exist.

        Raises:
            MissingWorkspaceStructure: Listing every absent directory
        """
        missing = self.missing_directories()
        if missing:
            raise MissingWorkspaceStructure(missing)
        logger.debug(f"Workspace structure OK at {self.root}")

    def _read(self, path: Path) -> str:
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise MissingWorkspaceStructure([str(path)]) from e

    def read_plan(self) -> str:
        """Full text of the plan document."""
        return self._read(self.plan_path)

    def read_governance(self) -> str:
        """Full text of the governance document (constitution), unmodified."""
        text = self._read(self.governance_path)
        logger.debug(f"Loaded governance document ({len(text)} chars)")
        return text
