# release_deploy/cli/utils/output.py
"""Output formatting utilities"""

from typing import List, Optional, Sequence, Tuple

from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich import box

from ...api.exceptions import ProcessError, ReleaseDeployError
from ...models import DeployResult, Release, RollbackResult
from ...utils.output import console


def format_deploy_result(result: DeployResult) -> None:
    """Format and display deploy result"""
    if not result.success or result.release is None:
        return

    lines = [
        f"[green]✓[/green] Release deployed successfully!",
        f"",
        f"[bold]Release:[/bold] {result.release.id}",
        f"[bold]Path:[/bold] {result.release.path}",
    ]

    if result.previous_release:
        lines.append(f"[bold]Previous:[/bold] {result.previous_release}")

    if result.removed_releases:
        lines.append(f"[bold]Removed:[/bold] {', '.join(result.removed_releases)}")

    if result.hooks_run:
        lines.append(f"[bold]Hooks:[/bold] {len(result.hooks_run)}")

    panel = Panel(
        "\n".join(lines),
        title="Deploy Result",
        border_style="green"
    )
    console.print(panel)


def format_rollback_result(result: RollbackResult) -> None:
    """Format and display rollback result"""
    if not result.success:
        return

    lines = [
        f"[green]✓[/green] Rollback completed!",
        f"",
        f"[bold]Live release:[/bold] {result.release.id}",
    ]
    if result.previous_release:
        state = "removed" if result.reaped else "kept"
        lines.append(f"[bold]Rolled back from:[/bold] {result.previous_release} ({state})")

    console.print(Panel("\n".join(lines), title="Rollback Result", border_style="green"))


def show_error(error: ReleaseDeployError, state: Optional[str] = None, debug: bool = False) -> None:
    """Display a fatal error panel"""
    lines = [f"[red]✗[/red] {escape(str(error))}"]

    if error.error_code:
        lines.append(f"[dim]Code: {error.error_code}[/dim]")
    if state:
        lines.append(f"[dim]Aborted after: {state}[/dim]")

    if isinstance(error, ProcessError) and error.output and debug:
        lines.append("")
        lines.append("[bold]Output:[/bold]")
        lines.append(escape(error.output[-2000:]))

    console.print(Panel(
        "\n".join(lines),
        title=f"{type(error).__name__}",
        border_style="red"
    ))


def releases_table(releases: Sequence[Release],
                   current: Optional[str] = None,
                   live: Optional[str] = None,
                   cancel_row: Optional[str] = None,
                   title: str = "Releases") -> Table:
    """Build the numbered release table

    Args:
        releases: Releases, newest first
        current: Id of the CurrentPointer release, highlighted
        live: Id the live alias points at
        cancel_row: Label shown at index 0 when given
        title: Table title
    """
    table = Table(title=title, box=box.ROUNDED)
    table.add_column("#", justify="right", style="cyan")
    table.add_column("Release")
    table.add_column("Created")
    table.add_column("Status")

    if cancel_row:
        table.add_row("0", f"[dim]{cancel_row}[/dim]", "", "")

    for index, release in enumerate(releases, 1):
        status = []
        if release.id == current:
            status.append("current")
        if release.id == live:
            status.append("live")
        style = "yellow" if release.id in (current, live) else None
        table.add_row(
            str(index),
            release.id,
            release.display_date,
            ", ".join(status),
            style=style,
        )
    return table


def choice_table(title: str, items: List[str], zero_label: Optional[str] = None) -> Table:
    """Numbered table for tag and branch selection"""
    table = Table(title=title, box=box.SIMPLE)
    table.add_column("#", justify="right", style="cyan")
    table.add_column("Name")

    if zero_label:
        table.add_row("0", f"[dim]{zero_label}[/dim]")
    for index, item in enumerate(items, 1):
        table.add_row(str(index), item)
    return table


def config_table(rows: List[Tuple[str, str]], config_path: str) -> Table:
    """Configuration key/value table"""
    table = Table(title=f"Configuration ({config_path})", box=box.ROUNDED)
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")
    for key, value in rows:
        table.add_row(key, escape(value))
    return table
