"""Configuration loading and validation."""

import logging
import os
import re
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

JULES_SESSIONS_URL = "https://jules.googleapis.com/v1alpha/sessions"
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class EngineMode(str, Enum):
    """Pipelines the dispatcher can run."""
    CREATE_SPECIFICATION = "create-specification"
    ADVANCE_NEXT_TASK = "advance-next-task"
    UPDATE_GOVERNANCE = "update-governance"


class BacklogConfig(BaseModel):
    """Backlog tracker (bd) settings."""
    executable: str = "bd"
    directory: str = ".beads"
    timeout: int = 60  # Seconds to wait for `bd ready --json`

    @field_validator('timeout')
    @classmethod
    def validate_timeout(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"backlog.timeout must be positive, got {v}")
        return v


class PlanningConfig(BaseModel):
    """Spec-kit planning directory layout."""
    directory: str = ".spec-kit"
    plan_file: str = "plan.md"
    governance_file: str = "constitution.md"


class RemoteConfig(BaseModel):
    """Remote agent session API settings."""
    endpoint: str = JULES_SESSIONS_URL
    starting_branch: str = "main"
    timeout: float = 30.0

    @field_validator('endpoint')
    @classmethod
    def validate_endpoint(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError(
                f"remote.endpoint must start with http:// or https://, got '{v}'"
            )
        return v


class SpecificationConfig(BaseModel):
    """create-specification mode settings."""
    # Ask the agent to mirror plan phases as beads when a plan is supplied
    create_backlog_items: bool = True
    default_title: str = "Formalize product specification"


class ModesConfig(BaseModel):
    """Administrative switches for individual modes."""
    advance_next_task_enabled: bool = True


class GovernanceConfig(BaseModel):
    """update-governance mode settings."""
    publisher: Literal["remote", "local"] = "remote"

    # Remote publisher: steps the agent is asked to run
    setup_command: str = "specify init --here --ai gemini --force"
    update_command: str = "/speckit.constitution"
    title: str = "Update project constitution"

    # Local publisher: argv template, "{update}" is replaced by the extracted text
    cli_command: List[str] = Field(default_factory=lambda: [
        "gemini", "--yolo", "--prompt", "/speckit.constitution {update}",
    ])
    api_key_env: str = "GEMINI_API_KEY"
    timeout: Optional[int] = None

    @field_validator('cli_command')
    @classmethod
    def validate_cli_command(cls, v: List[str]) -> List[str]:
        if not v:
            raise ValueError("governance.cli_command cannot be empty")
        if not any("{update}" in part for part in v):
            raise ValueError(
                "governance.cli_command must contain an '{update}' placeholder"
            )
        return v


class EngineConfig(BaseSettings):
    """Root engine configuration.

    Read from PRODMILL_* environment variables (nested sections use ``__``,
    e.g. PRODMILL_REMOTE__STARTING_BRANCH), optionally layered over a YAML
    file. Environment variables take precedence over file values.
    """
    model_config = SettingsConfigDict(
        env_prefix="PRODMILL_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    mode: Optional[EngineMode] = None
    workspace: Path = Field(default=Path("."))
    jules_api_key: Optional[str] = None
    governance_api_key: Optional[str] = None
    issue_body: Optional[str] = None
    issue_title: Optional[str] = None
    repository: Optional[str] = None  # owner/repo
    log_level: str = "INFO"

    backlog: BacklogConfig = Field(default_factory=BacklogConfig)
    planning: PlanningConfig = Field(default_factory=PlanningConfig)
    remote: RemoteConfig = Field(default_factory=RemoteConfig)
    specification: SpecificationConfig = Field(default_factory=SpecificationConfig)
    modes: ModesConfig = Field(default_factory=ModesConfig)
    governance: GovernanceConfig = Field(default_factory=GovernanceConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        # Environment first so CI inputs override values from the YAML file
        return env_settings, init_settings, dotenv_settings, file_secret_settings

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"log_level must be a standard logging level, got '{v}'")
        return level

    def require_mode(self) -> EngineMode:
        """Return the configured mode or fail before any work is attempted."""
        if self.mode is None:
            raise ConfigurationError(
                "No mode configured. Set PRODMILL_MODE to one of: "
                + ", ".join(m.value for m in EngineMode)
            )
        return self.mode

    def require_issue_body(self) -> str:
        body = (self.issue_body or "").strip()
        if not body:
            raise ConfigurationError(
                f"Mode '{self.require_mode().value}' requires an issue body "
                "(PRODMILL_ISSUE_BODY)"
            )
        return self.issue_body

    def resolve_repository(self) -> str:
        """Resolve owner/repo: explicit setting, then GITHUB_REPOSITORY, then git origin."""
        from ..utils.subprocess_utils import SubprocessError, run_git_command
        from ..utils.validators import validate_owner_repo

        candidate = self.repository or os.environ.get("GITHUB_REPOSITORY")
        if not candidate:
            try:
                url = run_git_command(
                    ["remote", "get-url", "origin"], cwd=self.workspace
                ).stdout.strip()
            except (SubprocessError, OSError) as e:
                logger.debug(f"Could not read git origin: {e}")
                url = ""
            candidate = _owner_repo_from_remote(url)

        if not candidate:
            raise ConfigurationError(
                "Cannot determine the GitHub repository. Set PRODMILL_REPOSITORY "
                "(owner/repo) or run inside a clone with an 'origin' remote."
            )
        try:
            return validate_owner_repo(candidate)
        except ValueError as e:
            raise ConfigurationError(str(e)) from e

    def source_name(self) -> str:
        """Session source identifier for the remote API."""
        return f"sources/github/{self.resolve_repository()}"


_REMOTE_PATTERN = re.compile(r'github\.com[:/]([^/\s]+)/([^/\s]+?)(?:\.git)?/?$')


def _owner_repo_from_remote(url: str) -> Optional[str]:
    """Extract owner/repo from an https or ssh GitHub remote URL."""
    match = _REMOTE_PATTERN.search(url.strip())
    if not match:
        return None
    return f"{match.group(1)}/{match.group(2)}"


# Module-level mtime-based config cache: path -> (raw_data, file_mtime)
_config_cache: Dict[str, tuple] = {}


def _read_yaml_cached(resolved_path: Path) -> Optional[Dict[str, Any]]:
    """Return parsed YAML for a config file, reusing the cache while mtime is unchanged."""
    key = str(resolved_path)
    try:
        current_mtime = resolved_path.stat().st_mtime
    except FileNotFoundError:
        _config_cache.pop(key, None)
        return None

    cached = _config_cache.get(key)
    if cached is not None:
        cached_data, cached_mtime = cached
        if cached_mtime == current_mtime:
            return cached_data

    with open(resolved_path) as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Failed to parse config {resolved_path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Config {resolved_path} must be a mapping at the top level"
        )
    _config_cache[key] = (data, current_mtime)
    return data


def clear_config_cache() -> None:
    """Clear the module-level config cache. Useful for tests."""
    _config_cache.clear()


def load_config(config_path: Optional[Path] = None, **overrides: Any) -> EngineConfig:
    """Build the engine configuration from environment, optional YAML file and overrides.

    ``overrides`` (typically CLI options) win over both the environment and
    the file. Validation failures surface as ConfigurationError.
    """
    data: Dict[str, Any] = {}
    if config_path is not None:
        if config_path.exists():
            data = _expand_env_vars(_read_yaml_cached(config_path.resolve()) or {})
        else:
            logger.warning(
                f"Config file not found: {config_path}. Using environment configuration only."
            )

    try:
        config = EngineConfig(**data)
    except ValidationError as e:
        raise ConfigurationError(_format_validation_error(e)) from e

    if overrides:
        # Init kwargs rank below the environment, so overrides are applied after validation
        config = config.model_copy(update=_validated_overrides(overrides))
    return config


def _validated_overrides(overrides: Dict[str, Any]) -> Dict[str, Any]:
    """Coerce override values through the field types (mode strings, paths)."""
    update: Dict[str, Any] = {}
    for key, value in overrides.items():
        if value is None:
            continue
        if key == "mode" and not isinstance(value, EngineMode):
            try:
                value = EngineMode(value)
            except ValueError as e:
                raise ConfigurationError(
                    f"Invalid mode '{value}'. Expected one of: "
                    + ", ".join(m.value for m in EngineMode)
                ) from e
        elif key == "workspace":
            value = Path(value)
        elif key == "log_level":
            value = str(value).upper()
            if value not in _LOG_LEVELS:
                raise ConfigurationError(f"Invalid log level '{value}'")
        update[key] = value
    return update


def _format_validation_error(error: ValidationError) -> str:
    lines = ["Invalid configuration:"]
    for item in error.errors():
        location = ".".join(str(part) for part in item.get("loc", ())) or "root"
        lines.append(f"  {location}: {item.get('msg')}")
    return "\n".join(lines)


def _expand_env_vars(data: Any, _path: str = "") -> Any:
    """Recursively expand environment variables in config data.

    Args:
        data: Config data to process
        _path: Internal tracking for error messages (e.g., "remote.endpoint")
    """
    if isinstance(data, dict):
        return {k: _expand_env_vars(v, f"{_path}.{k}" if _path else k) for k, v in data.items()}
    elif isinstance(data, list):
        return [_expand_env_vars(item, f"{_path}[{i}]") for i, item in enumerate(data)]
    elif isinstance(data, str) and data.startswith("${") and data.endswith("}"):
        env_var = data[2:-1]
        value = os.environ.get(env_var)
        if value is None:
            logger.warning(
                f"Environment variable '{env_var}' not set (referenced at config path: {_path or 'root'}). "
                f"The literal string '{data}' will be used, which may cause errors."
            )
            return data
        return value
    return data
