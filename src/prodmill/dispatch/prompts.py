"""Natural-language instructions sent to the remote agent."""

import json

from ..core.task import TaskRecord
from ..planning.issue_sections import SpecificationRequest
from .models import TaskContext

SYSTEM_INSTRUCTION = (
    "You are working on a ProdMill project. Follow the Spec-Kit plan context and "
    "the project constitution below; they are the source of truth for this task. "
    "When finished, commit your changes and mark the bead complete with "
    "`bd close <bead-id>`."
)


def build_task_context(
    task: TaskRecord,
    plan_context: str,
    constitution: str,
) -> TaskContext:
    return TaskContext(
        task=task.raw(),
        plan_context=plan_context,
        constitution=constitution,
        system_instruction=SYSTEM_INSTRUCTION,
    )


def build_task_prompt(context: TaskContext) -> str:
    """Render the advance-next-task prompt: instruction, task record, plan section, constitution."""
    task_json = json.dumps(context.task, indent=2, ensure_ascii=False)
    return (
        f"{context.system_instruction}\n\n"
        f"## Bead\n\n```json\n{task_json}\n```\n\n"
        f"## Plan Context\n\n{context.plan_context}\n\n"
        f"## Constitution\n\n{context.constitution.strip()}\n"
    )


def task_title(task: TaskRecord) -> str:
    return f"[{task.id}] {task.title}" if task.title else f"[{task.id}] Next ready bead"


def build_specification_prompt(
    request: SpecificationRequest,
    *,
    planning_dir: str = ".spec-kit",
    create_backlog_items: bool = True,
) -> str:
    """Instruction for the create-specification mode.

    With a technical plan the agent formalizes both documents; without one it
    drafts a plan proposal for human review and leaves the backlog alone.
    """
    if request.has_plan:
        steps = [
            f"Expand the product specification below into `{planning_dir}/spec.md`.",
            f"Convert the technical plan below into a phased `{planning_dir}/plan.md`. "
            "Each phase must be a `##` heading.",
        ]
        if create_backlog_items:
            steps.append(
                "Create one bead per plan phase with `bd create`, wiring dependencies "
                "with `bd dep add` so the beads follow the phase order, and append "
                "`<!-- bead:<bead-id> -->` to each phase heading."
            )
        steps.append("Commit the documents and open a pull request.")
        numbered = "\n".join(f"{i}. {step}" for i, step in enumerate(steps, 1))
        return (
            "Formalize the following product request into Spec-Kit artifacts.\n\n"
            f"{numbered}\n\n"
            f"## Product Specification\n\n{request.specification}\n\n"
            f"## Technical Plan\n\n{request.plan}\n"
        )

    return (
        "Draft a technical plan proposal for the product specification below.\n\n"
        f"1. Write the specification to `{planning_dir}/spec.md`.\n"
        f"2. Write a phased plan proposal to `{planning_dir}/plan.md`.\n"
        "3. Open a pull request so a human can review the proposal.\n\n"
        "Do not create any beads; backlog items are created only after the plan is approved.\n\n"
        f"## Product Specification\n\n{request.specification}\n"
    )


def build_governance_prompt(update: str, *, setup_command: str, update_command: str) -> str:
    """Instruction asking the agent to apply a constitution update via spec-kit."""
    return (
        "Update the project constitution.\n\n"
        f"1. Run `{setup_command}` to make sure the Spec-Kit tooling is set up.\n"
        f"2. Run `{update_command}` with the proposed update below as its argument.\n"
        "3. Commit the updated constitution and open a pull request.\n\n"
        f"## Proposed Constitution Update\n\n{update}\n"
    )
