"""Validation utilities for repository names and backlog identifiers."""

import re


def validate_owner_repo(owner_repo: str) -> str:
    """
    Validate repository name format (owner/repo).

    Args:
        owner_repo: Repository name in owner/repo format

    Returns:
        Validated repository name

    Raises:
        ValueError: If repository name format is invalid
    """
    if not owner_repo:
        raise ValueError("Repository name cannot be empty")

    # Must be in format "owner/repo"
    if not re.match(r'^[a-zA-Z0-9_-]+/[a-zA-Z0-9_.-]+$', owner_repo):
        raise ValueError(
            f"Invalid repository format: {owner_repo}. Must be 'owner/repo'"
        )

    # Prevent path traversal
    if '..' in owner_repo:
        raise ValueError(f"Invalid repository name: {owner_repo}")

    return owner_repo


def validate_task_id(value: str) -> str:
    """
    Validate a backlog task id before it is used in a marker lookup.

    Ids are free-form in the tracker, but must be non-empty and free of
    whitespace so that ``bead:<id>`` is a single token.
    """
    if not value or not value.strip():
        raise ValueError("task id cannot be empty")
    if re.search(r'\s', value):
        raise ValueError(f"task id contains whitespace: {value!r}")
    return value
