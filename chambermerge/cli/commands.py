"""Consolidation and conflict session commands."""

import json
from pathlib import Path
from typing import Any

import anyio
import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from chambermerge.conflict.resolver import ConflictResolver
from chambermerge.consolidation.consolidator import ResultConsolidator
from chambermerge.core.exceptions import ChamberMergeError

consolidate_app = typer.Typer(help="Run consolidation jobs.")
conflicts_app = typer.Typer(help="Manage conflict sessions.")

console = Console()


def _load_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text())
    except (OSError, json.JSONDecodeError) as e:
        console.print(f"[red]Cannot read {path}: {escape(str(e))}[/red]")
        raise typer.Exit(1) from e


def _run(action: Any) -> Any:
    """Run an async action, turning domain errors into a CLI failure."""
    try:
        return anyio.run(action)
    except ChamberMergeError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(1) from e


def _print_json(data: Any) -> None:
    console.print_json(json.dumps(data))


def _parse_agent_diffs(items: list[str]) -> dict[str, str]:
    diffs: dict[str, str] = {}
    for item in items:
        agent, sep, path = item.partition("=")
        if not sep or not agent or not path:
            console.print(f"[red]Expected AGENT=PATH, got '{item}'[/red]")
            raise typer.Exit(1)
        try:
            diffs[agent] = Path(path).read_text()
        except OSError as e:
            console.print(f"[red]Cannot read {path}: {escape(str(e))}[/red]")
            raise typer.Exit(1) from e
    return diffs


# =============================================================================
# CONSOLIDATION
# =============================================================================


@consolidate_app.command("start")
def consolidate_start(
    project: Path = typer.Argument(..., help="Project directory to merge into"),
    base_branch: str = typer.Option("main", "--base", "-b", help="Base branch"),
    agents: list[str] = typer.Option(..., "--agent", "-a", help="Agent id (repeatable)"),
    strategy: str = typer.Option(
        "auto",
        "--strategy",
        "-s",
        help="Merge strategy: auto, voting, manual, union",
    ),
) -> None:
    """
    Start a consolidation job.

    Example:
        chambermerge consolidate start ./repo -a agent-1 -a agent-2
    """

    async def do_start() -> Any:
        return await ResultConsolidator().initiate_consolidation(
            str(project.resolve()), base_branch, agents, strategy
        )

    consolidation = _run(do_start)
    console.print(f"[green]Consolidation started:[/green] {consolidation.id}")


@consolidate_app.command("analyze")
def consolidate_analyze(
    consolidation_id: str = typer.Argument(..., help="Consolidation ID"),
    results: Path = typer.Option(
        ...,
        "--results",
        "-r",
        help="JSON file with a list of {id, name, worktreePath}",
    ),
) -> None:
    """Score and cross-check every agent's changes."""
    agent_results = _load_json(results)

    async def do_analyze() -> Any:
        return await ResultConsolidator().analyze_results(consolidation_id, agent_results)

    preview = _run(do_analyze)

    table = Table(title=f"Merge preview for {consolidation_id}")
    table.add_column("File")
    table.add_column("Agent")
    table.add_column("Total", justify="right")
    table.add_column("Conflict")

    conflicting = {c.path for c in preview.conflicts}
    for scored in preview.files:
        table.add_row(
            scored.path,
            scored.agent_name or scored.agent_id or "",
            f"{scored.scores.total:.2f}",
            "[red]yes[/red]" if scored.path in conflicting else "[green]no[/green]",
        )

    console.print(table)
    console.print(
        f"Recommended strategy: [bold]{preview.to_dict()['recommendedStrategy']}[/bold]"
    )


@consolidate_app.command("resolve")
def consolidate_resolve(
    consolidation_id: str = typer.Argument(..., help="Consolidation ID"),
    resolutions: Path = typer.Option(
        ...,
        "--resolutions",
        "-r",
        help="JSON file with a list of {path, action, sourceAgent}",
    ),
) -> None:
    """Build the merge plan from per-file decisions."""
    items = _load_json(resolutions)

    async def do_resolve() -> Any:
        return await ResultConsolidator().resolve_conflicts(consolidation_id, items)

    plan = _run(do_resolve)
    console.print(
        f"[green]Plan ready:[/green] {len(plan.files_to_merge)} to merge, "
        f"{len(plan.files_to_reject)} rejected"
    )


@consolidate_app.command("merge")
def consolidate_merge(
    consolidation_id: str = typer.Argument(..., help="Consolidation ID"),
    target_branch: str = typer.Option("main", "--target", "-t", help="Target branch"),
) -> None:
    """Copy the planned files into the project and commit."""

    async def do_merge() -> Any:
        return await ResultConsolidator().execute_merge(consolidation_id, target_branch)

    result = _run(do_merge)

    for path in result.merged:
        console.print(f"[green]merged[/green] {path}")
    for error in result.errors:
        console.print(f"[red]error[/red] {error.path or 'commit'}: {error.error}")

    if result.failed or result.errors:
        raise typer.Exit(1)


@consolidate_app.command("show")
def consolidate_show(
    consolidation_id: str = typer.Argument(..., help="Consolidation ID"),
) -> None:
    """Print a consolidation as JSON."""

    async def do_show() -> Any:
        return await ResultConsolidator().get_consolidation(consolidation_id)

    consolidation = _run(do_show)
    if consolidation is None:
        console.print(f"[yellow]Consolidation not found: {consolidation_id}[/yellow]")
        raise typer.Exit(1)
    _print_json(consolidation.to_dict())


@consolidate_app.command("list")
def consolidate_list(
    project: Path | None = typer.Option(None, "--project", "-p", help="Filter by project"),
    status: str | None = typer.Option(None, "--status", help="Filter by status"),
) -> None:
    """List consolidations."""

    async def do_list() -> Any:
        return await ResultConsolidator().get_all_consolidations(
            project_directory=str(project.resolve()) if project else None,
            status=status,
        )

    consolidations = _run(do_list)

    table = Table(title="Consolidations")
    table.add_column("ID")
    table.add_column("Status")
    table.add_column("Strategy")
    table.add_column("Agents")
    table.add_column("Project")

    for c in consolidations:
        data = c.to_dict()
        table.add_row(c.id, data["status"], data["strategy"], ", ".join(c.agent_ids), c.project_directory)

    console.print(table)


@consolidate_app.command("delete")
def consolidate_delete(
    consolidation_id: str = typer.Argument(..., help="Consolidation ID"),
) -> None:
    """Delete a consolidation record."""

    async def do_delete() -> Any:
        return await ResultConsolidator().delete_consolidation(consolidation_id)

    _run(do_delete)
    console.print(f"[green]Deleted[/green] {consolidation_id}")


# =============================================================================
# CONFLICT SESSIONS
# =============================================================================


@conflicts_app.command("create")
def conflicts_create(
    consolidation_id: str | None = typer.Option(None, "--consolidation", "-c"),
    project: Path | None = typer.Option(None, "--project", "-p"),
) -> None:
    """Create a conflict session."""

    async def do_create() -> Any:
        return await ConflictResolver().create_conflict_session(
            consolidation_id=consolidation_id,
            project_directory=str(project.resolve()) if project else None,
        )

    session = _run(do_create)
    console.print(f"[green]Conflict session created:[/green] {session.id}")


@conflicts_app.command("detect")
def conflicts_detect(
    session_id: str = typer.Argument(..., help="Conflict session ID"),
    diffs: list[str] = typer.Argument(..., help="AGENT=PATH to a unified diff"),
) -> None:
    """
    Detect conflicts between agents' diffs.

    Example:
        chambermerge conflicts detect conflict-1 a=a.diff b=b.diff
    """
    diffs_by_agent = _parse_agent_diffs(diffs)

    async def do_detect() -> Any:
        return await ConflictResolver().detect_conflicts(session_id, diffs_by_agent)

    session = _run(do_detect)

    table = Table(title=f"Conflicts in {session_id}")
    table.add_column("Group")
    table.add_column("Type")
    table.add_column("Count", justify="right")

    for group in session.conflicts:
        data = group.to_dict()
        table.add_row(group.id, data["type"], str(len(group.conflicts)))

    console.print(table)


@conflicts_app.command("suggest")
def conflicts_suggest(
    session_id: str = typer.Argument(..., help="Conflict session ID"),
) -> None:
    """Print resolution data and auto-merge suggestions."""

    async def do_suggest() -> Any:
        return await ConflictResolver().generate_conflict_resolution_data(session_id)

    _print_json(_run(do_suggest))


@conflicts_app.command("resolve")
def conflicts_resolve(
    session_id: str = typer.Argument(..., help="Conflict session ID"),
    conflict_id: str = typer.Argument(..., help="Conflict group ID (<file>-<type>)"),
    action: str = typer.Option(
        "manual",
        "--action",
        "-a",
        help="keep-theirs, keep-ours, manual, union or reject",
    ),
) -> None:
    """Apply a resolution to a conflict group."""

    async def do_resolve() -> Any:
        return await ConflictResolver().apply_resolution(
            session_id, conflict_id, {"action": action}
        )

    record = _run(do_resolve)
    console.print(f"[green]Resolved:[/green] {record.conflict_id} ({record.action})")


@conflicts_app.command("show")
def conflicts_show(
    session_id: str = typer.Argument(..., help="Conflict session ID"),
) -> None:
    """Print a conflict session as JSON."""

    async def do_show() -> Any:
        return await ConflictResolver().get_conflict_session(session_id)

    session = _run(do_show)
    if session is None:
        console.print(f"[yellow]Conflict session not found: {session_id}[/yellow]")
        raise typer.Exit(1)
    _print_json(session.to_dict())


@conflicts_app.command("list")
def conflicts_list(
    consolidation_id: str | None = typer.Option(None, "--consolidation", "-c"),
    status: str | None = typer.Option(None, "--status"),
) -> None:
    """List conflict sessions."""

    async def do_list() -> Any:
        return await ConflictResolver().get_all_conflict_sessions(
            consolidation_id=consolidation_id, status=status
        )

    sessions = _run(do_list)

    table = Table(title="Conflict sessions")
    table.add_column("ID")
    table.add_column("Status")
    table.add_column("Groups", justify="right")
    table.add_column("Resolutions", justify="right")

    for s in sessions:
        table.add_row(s.id, s.to_dict()["status"], str(len(s.conflicts)), str(len(s.resolutions)))

    console.print(table)


@conflicts_app.command("delete")
def conflicts_delete(
    session_id: str = typer.Argument(..., help="Conflict session ID"),
) -> None:
    """Delete a conflict session."""

    async def do_delete() -> Any:
        return await ConflictResolver().delete_conflict_session(session_id)

    _run(do_delete)
    console.print(f"[green]Deleted[/green] {session_id}")
