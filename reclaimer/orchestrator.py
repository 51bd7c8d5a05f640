"""
Runs the full cleanup catalog and reports the disk space it reclaimed.
"""

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass

from reclaimer.catalog import CleanupAction, Step, build_actions
from reclaimer.commands import CommandRunner
from reclaimer.disk import blocks_to_gigabytes, measure_available_space
from reclaimer.exceptions import CommandError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReclaimReport:
    """Available space before and after cleanup, in df blocks."""
    before: int
    after: int

    @property
    def reclaimed(self) -> int:
        return self.after - self.before

    @property
    def before_gb(self) -> float:
        return blocks_to_gigabytes(self.before)

    @property
    def after_gb(self) -> float:
        return blocks_to_gigabytes(self.after)

    @property
    def reclaimed_gb(self) -> float:
        return blocks_to_gigabytes(self.reclaimed)

    def summary(self) -> str:
        return f"Reclaimed runner disk space: {self.reclaimed_gb:.2f}G"


async def run_step(step: Step, runner: CommandRunner) -> None:
    """
    Run every command of a step in order.

    Raises:
        CommandError: On the first failing command, unless the step is best effort.
    """
    for argv in step.commands:
        if not step.best_effort:
            await runner.run(argv, label=step.name, color=step.color)
            continue
        try:
            await runner.run(argv, label=step.name, color=step.color)
        except CommandError as e:
            logger.debug(f"{step.name}: ignoring failure of {' '.join(argv)} (exit {e.returncode})")


async def run_action(action: CleanupAction, runner: CommandRunner) -> None:
    """Run the steps of one action as a chain that stops at the first failure."""
    for step in action.steps:
        await run_step(step, runner)
    logger.debug(f"Cleanup action {action.name} finished")


async def reclaim_disk_space(
    verbose: bool = False,
    actions: Sequence[CleanupAction] | None = None,
    runner: CommandRunner | None = None,
    mount_point: str = "/",
) -> ReclaimReport:
    """
    Measure, run all cleanup actions concurrently, measure again.

    Every action is awaited to completion even when a sibling fails. Nothing
    is rolled back.

    Args:
        verbose: Stream each captured output line to the log. Only used to
            build the default runner.
        actions: Actions to run, the full catalog by default.
        runner: Command runner, built from ``verbose`` by default. A given
            runner keeps its own ``verbose`` setting.
        mount_point: Filesystem whose available space is reported.

    Returns:
        ReclaimReport: Before/after samples.

    Raises:
        ReclaimerError: The first failed action's error, in catalog order.
    """
    actions = build_actions() if actions is None else tuple(actions)
    runner = runner or CommandRunner(verbose=verbose)

    before = await measure_available_space(mount_point)

    tasks = [asyncio.create_task(run_action(action, runner), name=action.name) for action in actions]
    outcomes = await asyncio.gather(*tasks, return_exceptions=True)

    failures = []
    for action, outcome in zip(actions, outcomes):
        if isinstance(outcome, BaseException):
            logger.error(f"Cleanup action {action.name} failed: {outcome}")
            failures.append(outcome)
    if failures:
        raise failures[0]

    after = await measure_available_space(mount_point)
    report = ReclaimReport(before=before, after=after)

    logger.debug(f"Available disk space before cleanup: {report.before} blocks ({report.before_gb:.2f}G)")
    logger.debug(f"Available disk space after cleanup: {report.after} blocks ({report.after_gb:.2f}G)")
    logger.info(report.summary())
    return report
