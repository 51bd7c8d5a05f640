"""Reclaimer CLI - frees disk space on a hosted CI runner."""

import argparse
import asyncio
import os
import sys

from rich.markup import escape
from rich.table import Table

from reclaimer import __version__
from reclaimer.branding import console, rx_header, rx_print, setup_logging
from reclaimer.catalog import build_actions, iter_steps
from reclaimer.commands import CommandRunner
from reclaimer.config import Settings
from reclaimer.exceptions import ReclaimerError
from reclaimer.orchestrator import reclaim_disk_space


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="reclaim-disk",
        description="Free disk space on a hosted CI runner",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--verbose", "-v", action="store_true", default=None,
        help="Stream the output of every cleanup command",
    )
    parser.add_argument("--debug", action="store_true", default=None, help="Enable debug logging")
    parser.add_argument(
        "--dry-run", action="store_true", default=None,
        help="Log cleanup commands without executing them",
    )
    parser.add_argument(
        "--no-sudo", dest="use_sudo", action="store_false", default=None,
        help="Run cleanup commands without sudo (already root)",
    )
    parser.add_argument("--mount-point", default=None, help="Filesystem to measure (default: /)")
    parser.add_argument("--list", action="store_true", help="Show the cleanup catalog and exit")
    return parser


def show_catalog() -> None:
    """Print every action and its chained steps."""
    rx_header("Cleanup Catalog")
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Action")
    table.add_column("Step")
    table.add_column("Commands", justify="right")
    table.add_column("Mode", style="dim")

    for action, step in iter_steps(build_actions()):
        mode = "best effort" if step.best_effort else "chained"
        table.add_row(action.name, f"[{step.color}]{step.name}[/{step.color}]", str(len(step.commands)), mode)

    console.print(table)


def _escape_workflow_data(message: str) -> str:
    return message.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def report_failure(error: Exception) -> None:
    rx_print(f"Disk cleanup failed: {escape(str(error))}", "error")
    if os.environ.get("GITHUB_ACTIONS") == "true":
        sys.stdout.write(f"::error::{_escape_workflow_data(str(error))}\n")
        sys.stdout.flush()


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    if args.list:
        show_catalog()
        return 0

    try:
        settings = Settings.from_env().merge(
            verbose=args.verbose,
            debug=args.debug,
            dry_run=args.dry_run,
            use_sudo=args.use_sudo,
            mount_point=args.mount_point,
        )
    except ReclaimerError as e:
        report_failure(e)
        return 1

    setup_logging(debug=settings.debug)

    runner = CommandRunner(verbose=settings.verbose, use_sudo=settings.use_sudo, dry_run=settings.dry_run)
    try:
        asyncio.run(
            reclaim_disk_space(
                verbose=settings.verbose,
                runner=runner,
                mount_point=settings.mount_point,
            )
        )
    except ReclaimerError as e:
        report_failure(e)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
