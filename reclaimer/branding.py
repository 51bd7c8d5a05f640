"""Shared console output and logging setup."""

import logging

from rich.console import Console
from rich.logging import RichHandler

console = Console()

STATUS_STYLES = {
    "info": ("[bold blue]ℹ[/bold blue]", "white"),
    "success": ("[bold green]✔[/bold green]", "green"),
    "warning": ("[bold yellow]⚠[/bold yellow]", "yellow"),
    "error": ("[bold red]✖[/bold red]", "red"),
}


def rx_print(message: str, status: str = "info"):
    """Print a status line with an icon matching its severity."""
    icon, style = STATUS_STYLES.get(status, STATUS_STYLES["info"])
    console.print(f"{icon} [{style}]{message}[/{style}]")


def rx_header(title: str):
    console.print()
    console.rule(f"[bold cyan]{title}[/bold cyan]")


def setup_logging(debug: bool = False) -> None:
    """
    Route all log records through a RichHandler on the shared console.

    Args:
        debug: Emit DEBUG records (before/after disk samples, suppressed failures).
    """
    handler = RichHandler(
        console=console,
        show_path=False,
        show_time=False,
        rich_tracebacks=True,
    )
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(message)s",
        handlers=[handler],
        force=True,
    )
