"""Strategies for publishing a proposed constitution update."""

import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from ..core.config import EngineConfig
from ..core.errors import ConfigurationError, LocalAgentFailure
from ..utils.subprocess_utils import SubprocessError, merged_environment, stream_command
from .client import RemoteDispatchClient
from .models import DispatchResult, SessionRequest
from .prompts import build_governance_prompt

logger = logging.getLogger(__name__)


@dataclass
class PublishResult:
    """What a publisher did with the update."""
    publisher: str
    dispatched: bool
    request: Optional[SessionRequest] = None
    dispatch: Optional[DispatchResult] = None
    command: List[str] = field(default_factory=list)
    returncode: Optional[int] = None


class GovernanceUpdatePublisher(ABC):
    """Publishes a constitution update extracted from an issue."""

    name: str = "abstract"

    @abstractmethod
    def publish(self, update: str, *, dry_run: bool = False) -> PublishResult:
        """Hand the update to the agent. ``dry_run`` builds everything but sends nothing."""


class RemoteDispatchPublisher(GovernanceUpdatePublisher):
    """Asks the remote agent to run spec-kit's constitution command."""

    name = "remote"

    def __init__(
        self,
        client: Optional[RemoteDispatchClient],
        source: str,
        starting_branch: str,
        setup_command: str,
        update_command: str,
        title: str,
    ):
        self.client = client
        self.source = source
        self.starting_branch = starting_branch
        self.setup_command = setup_command
        self.update_command = update_command
        self.title = title

    def build_request(self, update: str) -> SessionRequest:
        prompt = build_governance_prompt(
            update,
            setup_command=self.setup_command,
            update_command=self.update_command,
        )
        return SessionRequest.build(prompt, self.source, self.starting_branch, self.title)

    def publish(self, update: str, *, dry_run: bool = False) -> PublishResult:
        request = self.build_request(update)
        if dry_run:
            return PublishResult(publisher=self.name, dispatched=False, request=request)
        if self.client is None:
            raise ConfigurationError("Remote governance publisher has no dispatch client")
        result = self.client.dispatch(request)
        return PublishResult(
            publisher=self.name, dispatched=True, request=request, dispatch=result,
        )


@dataclass
class LocalAgentInvocation:
    """Everything needed to run the local agent CLI once.

    ``env`` holds only the variables added for this call (e.g. the API key);
    they are merged into a copy of the parent environment at spawn time.
    """
    command: List[str]
    cwd: Path
    env: Dict[str, str] = field(default_factory=dict)
    timeout: Optional[int] = None

    def argv(self, update: str) -> List[str]:
        return [part.replace("{update}", update) for part in self.command]


class LocalProcessPublisher(GovernanceUpdatePublisher):
    """Runs a local agent CLI with the update as a command-line argument."""

    name = "local"

    def __init__(self, invocation: LocalAgentInvocation):
        self.invocation = invocation

    def publish(self, update: str, *, dry_run: bool = False) -> PublishResult:
        argv = self.invocation.argv(update)
        if dry_run:
            return PublishResult(publisher=self.name, dispatched=False, command=argv)

        executable = argv[0]
        logger.info(f"Running local agent CLI '{executable}' in {self.invocation.cwd}")
        try:
            returncode = stream_command(
                argv,
                on_line=lambda line: logger.info(f"[{os.path.basename(executable)}] {line}"),
                cwd=self.invocation.cwd,
                env=merged_environment(self.invocation.env),
                timeout=self.invocation.timeout,
            )
        except SubprocessError as e:
            raise LocalAgentFailure(
                f"Local agent CLI '{executable}' did not finish within "
                f"{self.invocation.timeout}s"
            ) from e
        except OSError as e:
            raise LocalAgentFailure(f"Could not start local agent CLI '{executable}': {e}") from e

        if returncode != 0:
            raise LocalAgentFailure(f"Local agent CLI '{executable}' failed", returncode=returncode)

        logger.info("Local agent CLI completed the constitution update")
        return PublishResult(
            publisher=self.name, dispatched=True, command=argv, returncode=returncode,
        )


def build_publisher(
    config: EngineConfig, client: Optional[RemoteDispatchClient]
) -> GovernanceUpdatePublisher:
    """Select the publisher named by ``config.governance.publisher``."""
    governance = config.governance
    if governance.publisher == "local":
        api_key = (config.governance_api_key or "").strip()
        if not api_key:
            raise ConfigurationError(
                "The local governance publisher requires PRODMILL_GOVERNANCE_API_KEY"
            )
        return LocalProcessPublisher(LocalAgentInvocation(
            command=list(governance.cli_command),
            cwd=config.workspace,
            env={governance.api_key_env: api_key},
            timeout=governance.timeout,
        ))

    return RemoteDispatchPublisher(
        client=client,
        source=config.source_name(),
        starting_branch=config.remote.starting_branch,
        setup_command=governance.setup_command,
        update_command=governance.update_command,
        title=governance.title,
    )
