#!/usr/bin/env python3
from __future__ import annotations

import asyncio
import sys
from datetime import datetime
from typing import Any, Dict, Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm
from rich.table import Table

from sitedash.app_logger import get_logger
from sitedash.notifications import Notification, NotificationRelay, Severity
from sitedash.schemas.project import Project, ProjectStatus
from sitedash.services import (
    ApiClient,
    DemoProjectsClient,
    DemoResourcesClient,
    DemoTasksClient,
    ProjectsClient,
    ResourcesClient,
    TasksClient,
)
from sitedash.settings import get_settings
from sitedash.store import CacheStore
from sitedash.sync import OperationResult, ProjectSync
from sitedash.views import ProjectFilters, SortKey, compute_stats, derive_view, progress_level

log = get_logger("cli")

# -----------------------------------------------------------------------------
# Globals / helpers
# -----------------------------------------------------------------------------
console = Console()

SEVERITY_STYLE = {
    Severity.SUCCESS: "green",
    Severity.ERROR: "red",
    Severity.WARNING: "yellow",
    Severity.INFO: "cyan",
}

LEVEL_STYLE = {
    "success": "green",
    "primary": "blue",
    "warning": "yellow",
    "error": "red",
}

STATUS_CHOICES = ["all"] + [s.value for s in ProjectStatus]
SORT_CHOICES = [k.value for k in SortKey]
DATE_FORMAT = ["%Y-%m-%d"]


def _print_notification(state: Notification) -> None:
    if state.visible:
        style = SEVERITY_STYLE.get(state.severity, "white")
        console.print(f"[{style}]{state.message}[/]")


def build_sync(demo: bool, base_url: Optional[str] = None) -> ProjectSync:
    """Wire store, clients and notifier for one CLI invocation."""
    settings = get_settings()
    notifier = NotificationRelay(duration=settings.notification_duration)
    notifier.subscribe(_print_notification)
    store = CacheStore()
    if demo:
        log.debug("using built-in demo backend")
        return ProjectSync(
            store,
            DemoProjectsClient(),
            DemoTasksClient(),
            DemoResourcesClient(),
            notifier=notifier,
        )
    api = ApiClient(base_url=base_url, settings=settings)
    log.debug("using REST API at %s", api.base_url)
    return ProjectSync(
        store,
        ProjectsClient(api),
        TasksClient(api),
        ResourcesClient(api),
        notifier=notifier,
    )


def _sync(ctx: click.Context) -> ProjectSync:
    return ctx.obj["sync"]


def _run(coro):
    return asyncio.run(coro)


def _fail(result: OperationResult, what: str) -> None:
    console.print(f"[red]{what} failed[/]: {result.message}")
    sys.exit(1)


def _money(value: float) -> str:
    return f"{value:,.0f}"


def _progress(value: int) -> str:
    return f"[{LEVEL_STYLE[progress_level(value)]}]{value}%[/]"


def show_projects_table(projects: list[Project]) -> None:
    t = Table(show_lines=False)
    for col in ("ID", "Name", "Status", "Start", "End", "Budget", "Progress", "Manager"):
        t.add_column(col)
    for p in projects:
        t.add_row(
            p.id,
            p.name,
            p.status.value,
            p.start_date.isoformat(),
            p.end_date.isoformat(),
            _money(p.budget),
            _progress(p.progress),
            p.manager,
        )
    console.print(t)


def _confirm_delete(kind: str, ident: Any) -> bool:
    return Confirm.ask(f"Delete {kind} [bold]{ident}[/]?")


def _project_payload(**fields: Any) -> Dict[str, Any]:
    """Build a payload from CLI options, leaving out the ones not given."""
    payload: Dict[str, Any] = {}
    for key, value in fields.items():
        if value is None:
            continue
        if isinstance(value, datetime):
            value = value.date()
        payload[key] = value
    return payload


# -----------------------------------------------------------------------------
# Commands
# -----------------------------------------------------------------------------
@click.group(help="SiteDash: construction project dashboard (terminal edition)")
@click.option("--demo", is_flag=True, default=False, help="Use built-in demo data instead of the REST API.")
@click.option("--base-url", default=None, help="Override the API base URL (SITEDASH_API_BASE_URL).")
@click.pass_context
def cli(ctx: click.Context, demo: bool, base_url: Optional[str]) -> None:
    ctx.ensure_object(dict)
    ctx.obj["sync"] = build_sync(demo=demo, base_url=base_url)


@cli.command("projects", help="List projects with optional search, status filter and sort.")
@click.option("--search", default="", help="Case-insensitive match on name or description.")
@click.option("--status", type=click.Choice(STATUS_CHOICES), default="all", show_default=True)
@click.option("--sort", "sort_key", type=click.Choice(SORT_CHOICES), default=None)
@click.pass_context
def projects_cmd(ctx: click.Context, search: str, status: str, sort_key: Optional[str]) -> None:
    sync = _sync(ctx)
    result = _run(sync.fetch_projects())
    if not result.ok:
        _fail(result, "Loading projects")
    view = derive_view(sync.store.projects, ProjectFilters(search=search, status=status), sort_key)
    if not view:
        console.print("[yellow]No projects match.[/]")
        return
    show_projects_table(view)


@cli.command("stats", help="Summary statistics across all projects.")
@click.pass_context
def stats_cmd(ctx: click.Context) -> None:
    sync = _sync(ctx)
    result = _run(sync.fetch_projects())
    if not result.ok:
        _fail(result, "Loading projects")
    stats = compute_stats(sync.store.projects)

    t = Table(title="Projects", show_header=False)
    t.add_column("metric")
    t.add_column("value", justify="right")
    t.add_row("Total projects", str(stats.total))
    for status, count in stats.by_status.items():
        t.add_row(f"  {status.value}", str(count))
    t.add_row("Total budget", _money(stats.total_budget))
    t.add_row("Average progress", _progress(stats.avg_progress))
    console.print(t)


@cli.command("show", help="Show one project with its tasks and resources.")
@click.argument("project_id")
@click.pass_context
def show_cmd(ctx: click.Context, project_id: str) -> None:
    sync = _sync(ctx)
    result = _run(sync.open_project(project_id))
    if not result.ok:
        _fail(result, "Opening project")
    p: Project = result.value

    body = "\n".join(
        [
            f"Status: {p.status.value}",
            f"Description: {p.description}",
            f"Start: {p.start_date.isoformat()}",
            f"End: {p.end_date.isoformat()}",
            f"Budget: {_money(p.budget)}",
            f"Location: {p.location}",
            f"Manager: {p.manager}",
            f"Progress: {_progress(p.progress)}",
        ]
    )
    console.print(Panel.fit(body, title=p.name))

    tasks = sync.store.tasks_for(project_id)
    if tasks.error:
        console.print(f"[red]Tasks[/]: {tasks.error}")
    elif not len(tasks):
        console.print("No tasks found for this project.")
    else:
        t = Table(title="Tasks")
        for col in ("ID", "Title", "Status", "Priority", "Due", "Progress"):
            t.add_column(col)
        for task in tasks:
            t.add_row(
                task.id,
                task.title,
                task.status.value,
                task.priority.value,
                task.due_date.isoformat(),
                _progress(task.progress),
            )
        console.print(t)

    resources = sync.store.resources_for(project_id)
    if resources.error:
        console.print(f"[red]Resources[/]: {resources.error}")
    elif not len(resources):
        console.print("No resources found for this project.")
    else:
        t = Table(title="Resources")
        for col in ("ID", "Name", "Type", "Availability", "Quantity", "Unit"):
            t.add_column(col)
        for r in resources:
            t.add_row(r.id, r.name, r.type.value, r.availability.value, f"{r.quantity:g}", r.unit)
        console.print(t)


@cli.command("create", help="Create a project.")
@click.option("--name", required=True)
@click.option("--start", "start_date", type=click.DateTime(DATE_FORMAT), required=True)
@click.option("--end", "end_date", type=click.DateTime(DATE_FORMAT), required=True)
@click.option("--description", default="")
@click.option("--status", type=click.Choice([s.value for s in ProjectStatus]), default="planning")
@click.option("--budget", type=float, default=0.0)
@click.option("--location", default="")
@click.option("--manager", default="")
@click.option("--progress", type=click.IntRange(0, 100), default=0)
@click.pass_context
def create_cmd(ctx: click.Context, **fields: Any) -> None:
    sync = _sync(ctx)
    result = _run(sync.create_project(_project_payload(**fields)))
    if not result.ok:
        _fail(result, "Create")
    console.print(f"id: [cyan]{result.value.id}[/]")


@cli.command("update", help="Update selected fields of a project.")
@click.argument("project_id")
@click.option("--name", default=None)
@click.option("--start", "start_date", type=click.DateTime(DATE_FORMAT), default=None)
@click.option("--end", "end_date", type=click.DateTime(DATE_FORMAT), default=None)
@click.option("--description", default=None)
@click.option("--status", type=click.Choice([s.value for s in ProjectStatus]), default=None)
@click.option("--budget", type=float, default=None)
@click.option("--location", default=None)
@click.option("--manager", default=None)
@click.option("--progress", type=click.IntRange(0, 100), default=None)
@click.pass_context
def update_cmd(ctx: click.Context, project_id: str, **fields: Any) -> None:
    payload = _project_payload(**fields)
    if not payload:
        raise click.UsageError("Nothing to update; pass at least one field option.")
    sync = _sync(ctx)
    result = _run(sync.update_project(project_id, payload))
    if not result.ok:
        _fail(result, "Update")
    show_projects_table([result.value])


@cli.command("delete", help="Delete a project.")
@click.argument("project_id")
@click.option("--yes", is_flag=True, default=False, help="Do not ask for confirmation.")
@click.pass_context
def delete_cmd(ctx: click.Context, project_id: str, yes: bool) -> None:
    if not yes and not _confirm_delete("project", project_id):
        console.print("[yellow]Aborted[/]")
        return
    sync = _sync(ctx)
    result = _run(sync.delete_project(project_id))
    if not result.ok:
        _fail(result, "Delete")


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
