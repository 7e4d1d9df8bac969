"""Backlog tracker integration."""

from .adapter import BacklogAdapter, parse_ready_output

__all__ = ["BacklogAdapter", "parse_ready_output"]
