"""
stackplan CLI.

Only composes commands; the logic lives in StackManager and the core packages.
Exit codes: 0 full success, 1 failure or partial failure, 2 invalid declarations/config.
"""

from __future__ import annotations

import logging
from typing import NoReturn, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.prompt import Confirm
from rich.table import Table

from stackplan.config import load_config, with_overrides
from stackplan.diff import ChangeSet, ChangeType
from stackplan.errors import BuildError, ConfigError, StackPlanError
from stackplan.loader import load_declarations
from stackplan.manager import StackManager, build_plan, describe_record
from stackplan.models import ApplyResult
from stackplan.plan import Plan, dumps_plan

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_INVALID = 2

DEFAULT_DECLARATIONS = "stackplan.resources.yaml"

app = typer.Typer(
    name="stackplan",
    help="stackplan - build, diff and apply declarative resource graphs",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()

_CHANGE_STYLES = {
    ChangeType.ADDED: ("+", "green"),
    ChangeType.REMOVED: ("-", "red"),
    ChangeType.MODIFIED: ("~", "yellow"),
    ChangeType.UNCHANGED: ("=", "dim"),
}

_STATUS_STYLES = {"succeeded": "green", "failed": "red", "skipped": "yellow"}


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _manager(
    config_path: Optional[str],
    state_path: Optional[str],
    concurrency: Optional[int],
) -> StackManager:
    config = load_config(config_path)
    config = with_overrides(config, state_path=state_path, max_concurrency=concurrency)
    return StackManager.from_config(config)


def _fail(title: str, exc: StackPlanError, code: int) -> NoReturn:
    body = f"[bold]{exc}[/bold]"
    if exc.details:
        body += "\n" + "\n".join(f"[dim]{k}:[/dim] {v}" for k, v in exc.details.items())
    console.print(Panel.fit(body, title=title, border_style="red"))
    raise typer.Exit(code=code)


def _print_plan(plan: Plan) -> None:
    table = Table(title=f"Plan {plan.plan_id}", show_header=True, header_style="bold cyan")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Resource", style="cyan")
    table.add_column("Type", style="green")
    table.add_column("Depends on", style="yellow")
    for index, resource in enumerate(plan.resources, start=1):
        table.add_row(str(index), resource.identifier, resource.type, ", ".join(resource.depends_on))
    console.print(table)


def _print_change_set(change_set: ChangeSet, *, show_unchanged: bool = False) -> None:
    if change_set.is_empty:
        console.print("[green]No changes.[/green] Infrastructure matches the declarations.")
        return

    table = Table(title="Change set", show_header=True, header_style="bold cyan")
    table.add_column("", width=1)
    table.add_column("Resource", style="cyan")
    table.add_column("Type")
    table.add_column("Changed properties")
    for entry in change_set.entries:
        if entry.change_type is ChangeType.UNCHANGED and not show_unchanged:
            continue
        symbol, style = _CHANGE_STYLES[entry.change_type]
        changed = ", ".join(entry.changed_properties)
        if entry.type_changed:
            changed = ", ".join(filter(None, ["<type>", changed]))
        if entry.dependencies_changed:
            changed = ", ".join(filter(None, [changed, "<depends_on>"]))
        table.add_row(
            f"[{style}]{symbol}[/{style}]",
            entry.identifier,
            entry.resource_type,
            changed,
        )
    console.print(table)

    summary = change_set.summary()
    console.print(
        f"[green]{summary['added']} to add[/green], "
        f"[yellow]{summary['modified']} to change[/yellow], "
        f"[red]{summary['removed']} to remove[/red]."
    )


def _print_apply_result(result: ApplyResult) -> int:
    if result.results:
        table = Table(title="Apply results", show_header=True, header_style="bold cyan")
        table.add_column("Resource", style="cyan")
        table.add_column("Change")
        table.add_column("Status")
        table.add_column("Detail", style="dim")
        for r in result.results:
            style = _STATUS_STYLES[r.status]
            detail = r.error_message or (f"blocked by {r.skipped_because}" if r.skipped_because else "")
            table.add_row(r.identifier, r.change_type, f"[{style}]{r.status}[/{style}]", detail)
        console.print(table)

    border = "green" if result.ok else "red"
    console.print(
        Panel.fit(
            f"[bold]Status:[/bold] {result.status}\n"
            f"[bold]Succeeded:[/bold] {result.summary.get('succeeded', 0)}  "
            f"[bold]Failed:[/bold] {result.summary.get('failed', 0)}  "
            f"[bold]Skipped:[/bold] {result.summary.get('skipped', 0)}",
            border_style=border,
        )
    )
    return EXIT_OK if result.ok else EXIT_FAILED


@app.command()
def plan(
    file: str = typer.Option(DEFAULT_DECLARATIONS, "--file", "-f", help="Declarations YAML"),
    as_json: bool = typer.Option(False, "--json", help="Print the plan document instead of a table"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
):
    """Build the graph and show the synthesized plan."""
    _configure_logging(verbose)
    try:
        declarations = load_declarations(file)
        result = build_plan(declarations)
    except (BuildError, ConfigError) as exc:
        _fail("Invalid declarations", exc, EXIT_INVALID)

    if as_json:
        console.out(dumps_plan(result), end="")
    else:
        _print_plan(result)


@app.command()
def diff(
    file: str = typer.Option(DEFAULT_DECLARATIONS, "--file", "-f", help="Declarations YAML"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Config YAML"),
    state: Optional[str] = typer.Option(None, "--state", help="State file (file backend)"),
    show_unchanged: bool = typer.Option(False, "--all", help="Also list unchanged resources"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
):
    """Compare the declarations against the last applied state."""
    _configure_logging(verbose)
    try:
        manager = _manager(config, state, None)
        change_set = manager.diff(load_declarations(file))
    except (BuildError, ConfigError) as exc:
        _fail("Invalid declarations", exc, EXIT_INVALID)
    except StackPlanError as exc:
        _fail("Diff failed", exc, EXIT_FAILED)

    _print_change_set(change_set, show_unchanged=show_unchanged)


@app.command()
def apply(
    file: str = typer.Option(DEFAULT_DECLARATIONS, "--file", "-f", help="Declarations YAML"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Config YAML"),
    state: Optional[str] = typer.Option(None, "--state", help="State file (file backend)"),
    concurrency: Optional[int] = typer.Option(
        None, "--concurrency", "-j", min=1, help="Max in-flight remote operations"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
):
    """Diff, then apply the changes in dependency order."""
    _configure_logging(verbose)
    try:
        manager = _manager(config, state, concurrency)
        declarations = load_declarations(file)
        _print_change_set(manager.diff(declarations))
        result = manager.apply(declarations)
    except (BuildError, ConfigError) as exc:
        _fail("Invalid declarations", exc, EXIT_INVALID)
    except StackPlanError as exc:
        _fail("Apply failed", exc, EXIT_FAILED)

    raise typer.Exit(code=_print_apply_result(result))


@app.command()
def destroy(
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Config YAML"),
    state: Optional[str] = typer.Option(None, "--state", help="State file (file backend)"),
    concurrency: Optional[int] = typer.Option(
        None, "--concurrency", "-j", min=1, help="Max in-flight remote operations"
    ),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
):
    """Remove every recorded resource, dependents first."""
    _configure_logging(verbose)
    try:
        manager = _manager(config, state, concurrency)
        record = manager.load_state()
    except ConfigError as exc:
        _fail("Invalid configuration", exc, EXIT_INVALID)
    except StackPlanError as exc:
        _fail("Destroy failed", exc, EXIT_FAILED)

    description = describe_record(record)
    if description is None:
        console.print("[green]Nothing to destroy.[/green]")
        return

    if not yes and not Confirm.ask(f"Destroy {description}?", default=False):
        console.print("[dim]Cancelled.[/dim]")
        raise typer.Exit(code=EXIT_FAILED)

    try:
        result = manager.destroy()
    except StackPlanError as exc:
        _fail("Destroy failed", exc, EXIT_FAILED)

    raise typer.Exit(code=_print_apply_result(result))


@app.command()
def state(
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Config YAML"),
    state_path: Optional[str] = typer.Option(None, "--state", help="State file (file backend)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
):
    """Show the last applied state record."""
    _configure_logging(verbose)
    try:
        record = _manager(config, state_path, None).load_state()
    except ConfigError as exc:
        _fail("Invalid configuration", exc, EXIT_INVALID)
    except StackPlanError as exc:
        _fail("Cannot read state", exc, EXIT_FAILED)

    description = describe_record(record)
    if description is None:
        console.print("[dim]No resources are recorded.[/dim]")
        return
    console.print(f"[bold]State:[/bold] {description}")
    _print_plan(record.plan)


def main():
    app()
