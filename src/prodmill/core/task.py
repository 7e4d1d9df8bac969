"""Backlog task records as emitted by `bd ready --json`."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TaskRecord(BaseModel):
    """A single ready backlog item.

    Only ``id`` is required. Every other field the tracker emits (priority,
    status, labels, ...) is preserved so the record can be forwarded verbatim.
    """

    model_config = ConfigDict(extra="allow")

    id: str
    title: Optional[str] = None

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("task id cannot be empty")
        return v

    def raw(self) -> Dict[str, Any]:
        """The record as the tracker emitted it (unset optional fields omitted)."""
        return self.model_dump(exclude_unset=True)

    @property
    def label(self) -> str:
        return f"{self.id}: {self.title}" if self.title else self.id


class BacklogSnapshot(BaseModel):
    """Ready tasks from one tracker invocation, highest priority first."""

    tasks: List[TaskRecord] = Field(default_factory=list)

    def first(self) -> Optional[TaskRecord]:
        return self.tasks[0] if self.tasks else None

    def __len__(self) -> int:
        return len(self.tasks)
