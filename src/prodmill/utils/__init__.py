"""Shared utility functions for prodmill."""

from .rich_logging import ContextLogger, get_context_logger, setup_logging
from .subprocess_utils import (
    SubprocessError,
    check_command_exists,
    merged_environment,
    run_command,
    run_git_command,
    stream_command,
)
from .validators import validate_owner_repo, validate_task_id

__all__ = [
    # Logging
    "ContextLogger",
    "get_context_logger",
    "setup_logging",
    # Subprocess utilities
    "SubprocessError",
    "check_command_exists",
    "merged_environment",
    "run_command",
    "run_git_command",
    "stream_command",
    # Validation
    "validate_owner_repo",
    "validate_task_id",
]
