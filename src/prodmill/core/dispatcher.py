"""Mode dispatcher: one invocation runs exactly one pipeline."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..backlog.adapter import BacklogAdapter
from ..dispatch.client import RemoteDispatchClient
from ..dispatch.governance import GovernanceUpdatePublisher, PublishResult, build_publisher
from ..dispatch.models import DispatchResult, SessionRequest, TaskContext
from ..dispatch.prompts import (
    build_specification_prompt,
    build_task_context,
    build_task_prompt,
    task_title,
)
from ..planning.issue_sections import extract_governance_update, split_specification
from ..planning.plan_sections import extract_plan_section
from ..planning.workspace import SpecKitWorkspace
from ..utils.rich_logging import get_context_logger
from .config import EngineConfig, EngineMode
from .errors import MissingGovernanceUpdate, MissingSpecification
from .outputs import StepOutputs

ISSUE_ID_OUTPUT = "issue_id"


class OutcomeStatus(str, Enum):
    """How an invocation ended (failures are raised, not returned)."""
    DISPATCHED = "dispatched"
    NO_WORK = "no_work"
    DISABLED = "disabled"
    DRY_RUN = "dry_run"


@dataclass
class DispatchOutcome:
    mode: EngineMode
    status: OutcomeStatus
    message: str = ""
    task_id: Optional[str] = None
    request: Optional[SessionRequest] = None
    context: Optional[TaskContext] = None
    result: Optional[DispatchResult] = None
    publish: Optional[PublishResult] = None


class ModeDispatcher:
    """Selects the pipeline for the configured mode and runs it once.

    Collaborators default to ones built from ``config``; tests inject fakes.
    """

    def __init__(
        self,
        config: EngineConfig,
        *,
        backlog: Optional[BacklogAdapter] = None,
        client: Optional[RemoteDispatchClient] = None,
        publisher: Optional[GovernanceUpdatePublisher] = None,
        outputs: Optional[StepOutputs] = None,
        workspace: Optional[SpecKitWorkspace] = None,
    ):
        self.config = config
        self.workspace = workspace or SpecKitWorkspace.from_config(config)
        self.backlog = backlog or BacklogAdapter(
            config.workspace,
            executable=config.backlog.executable,
            timeout=config.backlog.timeout,
        )
        self.outputs = outputs if outputs is not None else StepOutputs()
        self._client = client
        self._publisher = publisher
        self._source: Optional[str] = None
        self.log = get_context_logger(__name__)

    def run(self, dry_run: bool = False) -> DispatchOutcome:
        """
        Run the configured mode.

        Raises:
            ProdmillError: Any engine failure; all are terminal
        """
        mode = self.config.require_mode()
        self.log.mode = mode.value

        if mode is EngineMode.ADVANCE_NEXT_TASK and not self.config.modes.advance_next_task_enabled:
            message = "Mode 'advance-next-task' is disabled by configuration; nothing was dispatched."
            self.log.warning(message)
            return DispatchOutcome(mode=mode, status=OutcomeStatus.DISABLED, message=message)

        self._preflight(mode, dry_run)

        if mode is EngineMode.CREATE_SPECIFICATION:
            return self._create_specification(dry_run)
        if mode is EngineMode.ADVANCE_NEXT_TASK:
            return self._advance_next_task(dry_run)
        return self._update_governance(dry_run)

    def _preflight(self, mode: EngineMode, dry_run: bool) -> None:
        """Check required inputs before touching the workspace or the network."""
        if mode in (EngineMode.CREATE_SPECIFICATION, EngineMode.UPDATE_GOVERNANCE):
            self.config.require_issue_body()

        uses_remote = not (
            mode is EngineMode.UPDATE_GOVERNANCE and self.config.governance.publisher == "local"
        )
        if uses_remote:
            self._source = self.config.source_name()
            if not dry_run:
                self.client()

    def client(self) -> RemoteDispatchClient:
        if self._client is None:
            self._client = RemoteDispatchClient(
                self.config.jules_api_key,
                endpoint=self.config.remote.endpoint,
                timeout=self.config.remote.timeout,
            )
        return self._client

    def _session_request(self, prompt: str, title: str) -> SessionRequest:
        return SessionRequest.build(
            prompt=prompt,
            source=self._source,
            starting_branch=self.config.remote.starting_branch,
            title=title,
        )

    # -- create-specification --

    def _create_specification(self, dry_run: bool) -> DispatchOutcome:
        mode = EngineMode.CREATE_SPECIFICATION
        request = split_specification(self.config.issue_body)
        if not request.specification:
            raise MissingSpecification(
                "Issue body has no content under '### Product Specification'"
            )
        self.log.info(
            "Parsed specification"
            + (" and technical plan" if request.has_plan else " (no technical plan supplied)")
        )

        prompt = build_specification_prompt(
            request,
            planning_dir=self.config.planning.directory,
            create_backlog_items=self.config.specification.create_backlog_items,
        )
        title = (self.config.issue_title or "").strip() or self.config.specification.default_title
        session_request = self._session_request(prompt, title)

        if dry_run:
            return DispatchOutcome(mode=mode, status=OutcomeStatus.DRY_RUN, request=session_request)

        result = self.client().dispatch(session_request)
        return DispatchOutcome(
            mode=mode,
            status=OutcomeStatus.DISPATCHED,
            message=f"Specification session created: {result.describe()}",
            request=session_request,
            result=result,
        )

    # -- advance-next-task --

    def _advance_next_task(self, dry_run: bool) -> DispatchOutcome:
        mode = EngineMode.ADVANCE_NEXT_TASK
        self.log.info(f"Using workspace: {self.config.workspace}")
        self.workspace.check_structure()

        task = self.backlog.next_task()
        if task is None:
            message = "No ready tasks found in beads."
            self.log.info(message)
            return DispatchOutcome(mode=mode, status=OutcomeStatus.NO_WORK, message=message)

        self.log.set_task(task.id)
        self.log.info(f"Selected bead {task.label}")

        plan_context = extract_plan_section(self.workspace.read_plan(), task.id)
        constitution = self.workspace.read_governance()
        context = build_task_context(task, plan_context, constitution)
        session_request = self._session_request(build_task_prompt(context), task_title(task))

        if dry_run:
            return DispatchOutcome(
                mode=mode,
                status=OutcomeStatus.DRY_RUN,
                task_id=task.id,
                request=session_request,
                context=context,
            )

        result = self.client().dispatch(session_request)
        self.outputs.set(ISSUE_ID_OUTPUT, task.id)
        self.log.info(f"Processing issue: {task.id}")
        return DispatchOutcome(
            mode=mode,
            status=OutcomeStatus.DISPATCHED,
            message=f"Bead {task.id} dispatched: {result.describe()}",
            task_id=task.id,
            request=session_request,
            context=context,
            result=result,
        )

    # -- update-governance --

    def _update_governance(self, dry_run: bool) -> DispatchOutcome:
        mode = EngineMode.UPDATE_GOVERNANCE
        update = extract_governance_update(self.config.issue_body)
        if not update:
            raise MissingGovernanceUpdate(
                "Issue body has no content under '### Proposed Constitution Update'"
            )

        publisher = self._publisher or build_publisher(
            self.config, None if dry_run else self.client_if_remote()
        )
        self.log.info(f"Publishing constitution update via the {publisher.name} publisher")
        published = publisher.publish(update, dry_run=dry_run)

        return DispatchOutcome(
            mode=mode,
            status=OutcomeStatus.DISPATCHED if published.dispatched else OutcomeStatus.DRY_RUN,
            message="Constitution update published" if published.dispatched else "",
            request=published.request,
            result=published.dispatch,
            publish=published,
        )

    def client_if_remote(self) -> Optional[RemoteDispatchClient]:
        if self.config.governance.publisher == "local":
            return None
        return self.client()
