"""Shared test fixtures for unit tests."""

import logging
import os

import pytest

from prodmill.core.config import EngineConfig, clear_config_cache
from prodmill.utils.rich_logging import ROOT_LOGGER

PLAN = """# Implementation Plan

## Phase 1: Setup <!-- bead:pm-1 -->
Create the project skeleton.

## Phase 2: Deploy <!-- bead:pm-2 -->
Ship it.
"""

CONSTITUTION = "# Constitution\n\nAll changes need tests.\n"


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch):
    """Keep CI variables from the real environment out of every test."""
    for name in list(os.environ):
        if name.startswith("PRODMILL_"):
            monkeypatch.delenv(name, raising=False)
    for name in ("GITHUB_OUTPUT", "GITHUB_REPOSITORY"):
        monkeypatch.delenv(name, raising=False)
    clear_config_cache()
    yield
    clear_config_cache()


@pytest.fixture(autouse=True)
def reset_logging():
    """Undo setup_logging() so caplog keeps seeing package records."""
    yield
    package_logger = logging.getLogger(ROOT_LOGGER)
    for handler in package_logger.handlers[:]:
        handler.close()
        package_logger.removeHandler(handler)
    package_logger.propagate = True
    package_logger.setLevel(logging.NOTSET)


@pytest.fixture
def spec_workspace(tmp_path):
    """Workspace with .spec-kit/plan.md, .spec-kit/constitution.md and .beads/."""
    planning = tmp_path / ".spec-kit"
    planning.mkdir()
    (planning / "plan.md").write_text(PLAN)
    (planning / "constitution.md").write_text(CONSTITUTION)
    (tmp_path / ".beads").mkdir()
    return tmp_path


@pytest.fixture
def make_config(spec_workspace):
    """Build an EngineConfig rooted at the test workspace."""
    def _make(**overrides) -> EngineConfig:
        values = {
            "workspace": spec_workspace,
            "jules_api_key": "test-key",
            "repository": "acme/widgets",
        }
        values.update(overrides)
        return EngineConfig(**values)

    return _make
