"""Main CLI for the prodmill engine."""

import json
import logging
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..core.config import EngineMode, load_config
from ..core.dispatcher import ModeDispatcher, OutcomeStatus
from ..core.errors import ProdmillError
from ..errors.translator import ErrorTranslator
from ..health.checker import CheckStatus, HealthChecker
from ..planning.plan_sections import extract_plan_section
from ..planning.workspace import SpecKitWorkspace
from ..utils.rich_logging import setup_logging
from ..utils.validators import validate_task_id

logger = logging.getLogger(__name__)

console = Console()
error_console = Console(stderr=True)

STATUS_STYLES = {
    CheckStatus.PASSED: "[green]✓ passed[/]",
    CheckStatus.FAILED: "[red]✗ failed[/]",
    CheckStatus.WARNING: "[yellow]! warning[/]",
    CheckStatus.SKIPPED: "[dim]- skipped[/]",
}


@click.group()
@click.option("--workspace", "-w", default=None, help="Workspace directory (default: PRODMILL_WORKSPACE or .)")
@click.option("--config", "-c", "config_path", type=click.Path(path_type=Path), default=None,
              help="Optional YAML config file")
@click.option("--log-level", "-l", default=None,
              type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
              help="Logging level (default: PRODMILL_LOG_LEVEL or INFO)")
@click.pass_context
def cli(ctx, workspace, config_path, log_level):
    """ProdMill - spec-driven dispatch of backlog work to a coding agent."""
    ctx.ensure_object(dict)
    ctx.obj["workspace"] = workspace
    ctx.obj["config_path"] = config_path
    ctx.obj["log_level"] = log_level


def _load(ctx, **overrides):
    """Load configuration with CLI overrides and configure logging from it."""
    setup_logging(ctx.obj["log_level"] or "INFO")
    config = load_config(
        ctx.obj["config_path"],
        workspace=ctx.obj["workspace"],
        log_level=ctx.obj["log_level"],
        **overrides,
    )
    setup_logging(config.log_level)
    return config


def _fail(ctx, error: ProdmillError) -> None:
    logger.error(str(error))
    translator = ErrorTranslator()
    friendly = translator.translate(error)
    error_console.print(Panel(translator.format_for_cli(friendly), border_style="red"))
    ctx.exit(1)


@cli.command()
@click.option("--mode", "-m", default=None,
              type=click.Choice([m.value for m in EngineMode]),
              help="Mode to run (default: PRODMILL_MODE)")
@click.option("--dry-run", is_flag=True, help="Build the request but do not send it")
@click.pass_context
def run(ctx, mode, dry_run):
    """Run one engine mode."""
    try:
        config = _load(ctx, mode=mode)
        outcome = ModeDispatcher(config).run(dry_run=dry_run)
    except ProdmillError as e:
        _fail(ctx, e)
        return

    if outcome.status is OutcomeStatus.DRY_RUN:
        _print_dry_run(outcome)
    elif outcome.status is OutcomeStatus.DISPATCHED:
        console.print(f"[green]✓ {escape(outcome.message)}[/]")
    elif outcome.status is OutcomeStatus.DISABLED:
        console.print(f"[yellow]{escape(outcome.message)}[/]")
    else:
        console.print(f"[dim]{escape(outcome.message)}[/]")


def _print_dry_run(outcome) -> None:
    if outcome.request is not None:
        body = json.dumps(outcome.request.to_payload(), indent=2, ensure_ascii=False)
        title = f"Dry run: {outcome.mode.value} session request"
    else:
        body = " ".join(outcome.publish.command)
        title = f"Dry run: {outcome.mode.value} local command"
    console.print(Panel(Text(body), title=title, border_style="cyan"))
    console.print("[yellow]Dry run: nothing was sent.[/]")


@cli.command()
@click.pass_context
def doctor(ctx):
    """Check workspace, tools and credentials."""
    try:
        config = _load(ctx)
    except ProdmillError as e:
        _fail(ctx, e)
        return

    console.print(f"[bold]ProdMill health check: {escape(str(config.workspace))}[/]")
    results = HealthChecker(config).run_all_checks()

    table = Table()
    table.add_column("Check")
    table.add_column("Status")
    table.add_column("Details")

    for result in results:
        details = escape(result.message)
        if result.fix_action and result.status in (CheckStatus.FAILED, CheckStatus.WARNING):
            details += f"\n[dim]Fix: {escape(result.fix_action)}[/]"
        table.add_row(result.name, STATUS_STYLES[result.status], details)

    console.print(table)

    failed = [r for r in results if r.status == CheckStatus.FAILED]
    if failed:
        console.print(f"[red]{len(failed)} check(s) failed[/]")
        ctx.exit(1)
    console.print("[green]✓ Ready to run[/]")


@cli.command("extract-section")
@click.argument("task_id")
@click.option("--plan", "plan_path", type=click.Path(path_type=Path), default=None,
              help="Plan document (default: <workspace>/.spec-kit/plan.md)")
@click.pass_context
def extract_section(ctx, task_id, plan_path):
    """Print the plan section marked for TASK_ID."""
    try:
        task_id = validate_task_id(task_id)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="TASK_ID")

    try:
        if plan_path is None:
            config = _load(ctx)
            document = SpecKitWorkspace.from_config(config).read_plan()
        else:
            setup_logging(ctx.obj["log_level"] or "INFO")
            try:
                document = plan_path.read_text(encoding="utf-8")
            except FileNotFoundError:
                raise click.BadParameter(f"{plan_path} does not exist", param_hint="--plan")
        section = extract_plan_section(document, task_id)
    except ProdmillError as e:
        _fail(ctx, e)
        return

    click.echo(section)


if __name__ == "__main__":
    cli()
