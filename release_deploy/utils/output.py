# release_deploy/utils/output.py
"""Shared console sink used by the pipeline components"""

from typing import Sequence

from rich.console import Console
from rich.markup import escape

from ..constants import EMOJI_ARROW, EMOJI_ERROR, EMOJI_SUCCESS, EMOJI_WARNING

console = Console()


def stage(title: str) -> None:
    """Print a stage header"""
    console.print()
    console.rule(f"[bold cyan]{escape(title)}[/bold cyan]", align="left")


def step(message: str) -> None:
    console.print(f"  {EMOJI_ARROW} {escape(message)}")


def command(argv: Sequence[str]) -> None:
    """Echo a command before it runs"""
    console.print(f"  [blue]$ {escape(' '.join(argv))}[/blue]", highlight=False)


def process_line(line: str) -> None:
    """Print one line of streamed subprocess output"""
    console.print(f"  [dim]>> {escape(line)}[/dim]", highlight=False)


def success(message: str) -> None:
    console.print(f"[green]{EMOJI_SUCCESS}[/green] {escape(message)}")


def warning(message: str) -> None:
    console.print(f"[yellow]{EMOJI_WARNING}[/yellow] {escape(message)}")


def error(message: str) -> None:
    console.print(f"[red]{EMOJI_ERROR}[/red] {escape(message)}")
