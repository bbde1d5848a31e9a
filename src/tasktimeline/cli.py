"""Command-line interface for Task Timeline."""

import asyncio
import logging
from pathlib import Path
from typing import Optional

import structlog
import typer
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from tasktimeline.aggregation import aggregate, compute_date_bounds
from tasktimeline.aggregation.minimap import counts_by_label, to_utc_datetime
from tasktimeline.derivation import TaskListDeriver, group_tasks
from tasktimeline.incremental import IndexUpdateManager, TaskIndex
from tasktimeline.models import Granularity, GroupBy, TaskDraft, TimelineSettings
from tasktimeline.storage import LocalVault, create_project, create_task_file, list_projects

app = typer.Typer(
    name="tasktimeline",
    help="Task Timeline - Index markdown task files and summarize them over time",
    add_completion=False,
)
console = Console()


def _load_settings(root: Optional[str]) -> TimelineSettings:
    if root:
        return TimelineSettings(task_directory=root)
    return TimelineSettings()


def _configure_logging(settings: TimelineSettings, verbose: bool) -> None:
    level = logging.DEBUG if verbose else getattr(logging, settings.log_level.upper(), logging.INFO)
    structlog.configure(wrapper_class=structlog.make_filtering_bound_logger(level))


def _open_manager(
    vault: Path, settings: TimelineSettings, project: Optional[str] = None
) -> IndexUpdateManager:
    if not vault.is_dir():
        raise FileNotFoundError(f"Vault directory not found: {vault}")
    index = TaskIndex(LocalVault(vault), settings=settings)
    return IndexUpdateManager(index, TaskListDeriver(index, settings, project=project))


@app.command()
def scan(
    vault: Path = typer.Argument(..., help="Path to the vault directory"),
    root: Optional[str] = typer.Option(None, "--root", "-r", help="Task directory inside the vault"),
    project: Optional[str] = typer.Option(None, "--project", "-p", help="Only show one project"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
) -> None:
    """Index task files and list them."""
    try:
        settings = _load_settings(root)
        _configure_logging(settings, verbose)
        manager = _open_manager(vault, settings, project)

        console.print(f"[bold green]Scanning vault:[/bold green] {vault}")
        console.print(f"[bold blue]Task directory:[/bold blue] {settings.root}")

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
        ) as progress:
            task = progress.add_task("Indexing task files...", total=None)
            snapshot = asyncio.run(manager.initialize())
            progress.update(task, completed=True)

        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("Name", style="cyan")
        table.add_column("Start")
        table.add_column("End")
        table.add_column("Status")
        table.add_column("Priority", justify="right")
        table.add_column("Category")
        table.add_column("Subtasks", justify="right")
        table.add_column("Path", style="dim")

        for record in sorted(snapshot.tasks, key=lambda t: (t.start, t.file_path)):
            table.add_row(
                record.name,
                record.start,
                record.end or "-",
                record.status,
                str(record.priority),
                record.category,
                f"{record.completed_subtasks}/{record.total_subtasks}",
                record.file_path,
            )

        console.print(table)
        console.print(
            f"\n[bold green]✓[/bold green] Indexed {manager.index.size()} tasks "
            f"({len(snapshot.tasks)} in {snapshot.project})"
        )

        bounds = compute_date_bounds(snapshot.tasks)
        if bounds:
            console.print(
                f"[bold blue]Date range:[/bold blue] "
                f"{bounds.earliest.date().isoformat()} to {bounds.latest.date().isoformat()}"
            )

        failures = manager.index.last_scan_failures
        if failures:
            console.print(f"\n[bold yellow]Skipped {len(failures)} file(s):[/bold yellow]")
            for failure in failures:
                console.print(f"  • [yellow]{failure.path}[/yellow] {failure.reason}")

    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def projects(
    vault: Path = typer.Argument(..., help="Path to the vault directory"),
    root: Optional[str] = typer.Option(None, "--root", "-r", help="Task directory inside the vault"),
) -> None:
    """List project folders."""
    try:
        settings = _load_settings(root)
        _configure_logging(settings, verbose=False)
        if not vault.is_dir():
            raise FileNotFoundError(f"Vault directory not found: {vault}")

        names = asyncio.run(list_projects(LocalVault(vault), settings))
        for name in names:
            if name == settings.all_projects_label:
                console.print(f"[dim]{name}[/dim]")
            else:
                console.print(f"  • {name}")

    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def minimap(
    vault: Path = typer.Argument(..., help="Path to the vault directory"),
    start: str = typer.Option(..., "--start", "-s", help="First date to cover (YYYY-MM-DD)"),
    end: str = typer.Option(..., "--end", "-e", help="Last date to cover (YYYY-MM-DD)"),
    granularity: Optional[Granularity] = typer.Option(
        None, "--granularity", "-g", help="Bucket unit (defaults to settings)"
    ),
    clamp_start: Optional[str] = typer.Option(None, "--clamp-start", help="Visible window start"),
    clamp_end: Optional[str] = typer.Option(None, "--clamp-end", help="Visible window end"),
    project: Optional[str] = typer.Option(None, "--project", "-p", help="Only count one project"),
    root: Optional[str] = typer.Option(None, "--root", "-r", help="Task directory inside the vault"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
) -> None:
    """Show task counts per day, week or month."""
    try:
        settings = _load_settings(root)
        _configure_logging(settings, verbose)

        for label, value in (("--start", start), ("--end", end)):
            if to_utc_datetime(value) is None:
                raise typer.BadParameter(f"{label} is not a valid date: {value}")

        manager = _open_manager(vault, settings, project)
        snapshot = asyncio.run(manager.initialize())
        unit = granularity or settings.default_granularity

        buckets = aggregate(
            snapshot.tasks,
            unit,
            start,
            end,
            clamp_start or start,
            clamp_end or end,
        )
        if not buckets:
            console.print("[yellow]No buckets for this range[/yellow]")
            return

        peak = max(bucket.count for bucket in buckets) or 1
        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("Date", style="cyan")
        table.add_column("Tasks", justify="right")
        table.add_column("")

        for label, count in counts_by_label(buckets):
            bar = "█" * round(count * 30 / peak)
            table.add_row(label, str(count), f"[green]{bar}[/green]")

        console.print(f"[bold blue]Granularity:[/bold blue] {unit.value}")
        console.print(table)

    except typer.BadParameter:
        raise
    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def groups(
    vault: Path = typer.Argument(..., help="Path to the vault directory"),
    by: GroupBy = typer.Option(..., "--by", "-b", help="Grouping criterion"),
    project: Optional[str] = typer.Option(None, "--project", "-p", help="Only group one project"),
    root: Optional[str] = typer.Option(None, "--root", "-r", help="Task directory inside the vault"),
) -> None:
    """Show board groups in display order."""
    try:
        settings = _load_settings(root)
        _configure_logging(settings, verbose=False)
        manager = _open_manager(vault, settings, project)

        asyncio.run(manager.initialize())
        snapshot = manager.deriver.set_grouping(by)
        grouped = group_tasks(snapshot.tasks, by)

        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("Group", style="cyan")
        table.add_column("Tasks", justify="right")
        labels = snapshot.groups or list(grouped)
        for label in labels:
            table.add_row(label, str(len(grouped.get(label, []))))

        console.print(table)

    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def new(
    vault: Path = typer.Argument(..., help="Path to the vault directory"),
    project: str = typer.Argument(..., help="Project folder to create the task in"),
    name: str = typer.Option(..., "--name", "-n", help="Task name"),
    start: str = typer.Option(..., "--start", "-s", help="Start date (YYYY-MM-DD)"),
    end: Optional[str] = typer.Option(None, "--end", "-e", help="End date (YYYY-MM-DD)"),
    category: Optional[str] = typer.Option(None, "--category", "-c", help="Category"),
    status: Optional[str] = typer.Option(None, "--status", help="Status"),
    priority: int = typer.Option(5, "--priority", help="Priority from 1 to 5"),
    root: Optional[str] = typer.Option(None, "--root", "-r", help="Task directory inside the vault"),
) -> None:
    """Create a new task file."""
    try:
        settings = _load_settings(root)
        _configure_logging(settings, verbose=False)
        if not vault.is_dir():
            raise FileNotFoundError(f"Vault directory not found: {vault}")

        draft = TaskDraft(
            name=name,
            start=start,
            end=end,
            category=category,
            status=status,
            priority=priority,
        )
        path = asyncio.run(create_task_file(LocalVault(vault), settings, project, draft))
        console.print(f"[bold green]✓[/bold green] Created {path}")

    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command("new-project")
def new_project(
    vault: Path = typer.Argument(..., help="Path to the vault directory"),
    name: str = typer.Argument(..., help="Project folder name"),
    root: Optional[str] = typer.Option(None, "--root", "-r", help="Task directory inside the vault"),
) -> None:
    """Create a project folder."""
    try:
        settings = _load_settings(root)
        _configure_logging(settings, verbose=False)
        if not vault.is_dir():
            raise FileNotFoundError(f"Vault directory not found: {vault}")

        folder = asyncio.run(create_project(LocalVault(vault), settings, name))
        console.print(f"[bold green]✓[/bold green] Created project {folder}")

    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def version() -> None:
    """Show version information."""
    from tasktimeline import __version__

    console.print(f"[bold]Task Timeline[/bold] version {__version__}")


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
