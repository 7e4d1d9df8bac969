"""Request and response models for the remote session API."""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

SOURCE_PREFIX = "sources/github/"


class GithubRepoContext(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    starting_branch: str = Field(alias="startingBranch")


class SourceContext(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    source: str
    github_repo_context: GithubRepoContext = Field(alias="githubRepoContext")

    @field_validator("source")
    @classmethod
    def validate_source(cls, v: str) -> str:
        if not v.startswith(SOURCE_PREFIX) or v.count("/") != 3:
            raise ValueError(
                f"source must look like '{SOURCE_PREFIX}<owner>/<repo>', got '{v}'"
            )
        return v


class SessionRequest(BaseModel):
    """Body of a POST to the sessions endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    prompt: str
    source_context: SourceContext = Field(alias="sourceContext")
    title: str

    @field_validator("prompt")
    @classmethod
    def validate_prompt(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("prompt cannot be empty")
        return v

    @classmethod
    def build(cls, prompt: str, source: str, starting_branch: str, title: str) -> "SessionRequest":
        return cls(
            prompt=prompt,
            title=title,
            source_context=SourceContext(
                source=source,
                github_repo_context=GithubRepoContext(starting_branch=starting_branch),
            ),
        )

    def to_payload(self) -> Dict[str, Any]:
        """Wire representation (camelCase keys)."""
        return self.model_dump(by_alias=True)


class TaskContext(BaseModel):
    """Execution context assembled for one backlog item."""

    task: Dict[str, Any]
    plan_context: str
    constitution: str
    system_instruction: str


@dataclass
class DispatchResult:
    """Successful response from the sessions endpoint."""
    status_code: int
    body: Dict[str, Any] = field(default_factory=dict)

    @property
    def session_name(self) -> Optional[str]:
        return self.body.get("name")

    @property
    def session_id(self) -> Optional[str]:
        return self.body.get("id")

    @property
    def session_url(self) -> Optional[str]:
        return self.body.get("url")

    def describe(self) -> str:
        parts = [p for p in (self.session_name or self.session_id, self.session_url) if p]
        return " ".join(parts) if parts else f"HTTP {self.status_code}"
