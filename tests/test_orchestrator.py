"""
Tests for cleanup orchestration: chaining, concurrency and reporting.
"""

import asyncio
import logging
from unittest.mock import AsyncMock

import pytest

from reclaimer.catalog import CleanupAction, Step, build_actions
from reclaimer.commands import CommandResult, CommandRunner
from reclaimer.exceptions import CommandError, ParseError
from reclaimer.orchestrator import ReclaimReport, reclaim_disk_space, run_action, run_step


class TestReclaimReport:
    def test_reclaimed_is_after_minus_before(self):
        report = ReclaimReport(before=1_000_000, after=3_000_000)
        assert report.reclaimed == 2_000_000
        assert report.reclaimed_gb == pytest.approx(2_000_000 / 1024 / 1024)

    def test_summary_rounds_to_two_decimals(self):
        assert ReclaimReport(before=1_000_000, after=3_000_000).summary() == "Reclaimed runner disk space: 1.91G"

    def test_negative_reclaim_is_reported_as_is(self):
        assert ReclaimReport(before=2_097_152, after=1_048_576).summary() == "Reclaimed runner disk space: -1.00G"


class TestChains:
    @pytest.mark.asyncio
    async def test_swap_file_removal_skipped_when_swapoff_fails(self, make_runner):
        runner = make_runner(fail={"swapoff"})
        swap = next(a for a in build_actions() if a.name == "swap")

        with pytest.raises(CommandError):
            await run_action(swap, runner)

        assert runner.labels == ["swapoff"]

    @pytest.mark.asyncio
    async def test_swap_chain_runs_in_order(self, recording_runner):
        swap = next(a for a in build_actions() if a.name == "swap")
        await run_action(swap, recording_runner)
        assert recording_runner.labels == ["swapoff", "rm-swapfile"]

    @pytest.mark.asyncio
    async def test_purge_skipped_when_host_path_removal_fails(self, make_runner):
        runner = make_runner(fail={"rm-host-paths"})
        host = next(a for a in build_actions() if a.name == "host-paths")

        with pytest.raises(CommandError):
            await run_action(host, runner)

        assert runner.labels == ["rm-host-paths"]
        assert "apt-purge-packages" not in runner.labels

    @pytest.mark.asyncio
    async def test_purge_runs_despite_java_alternative_failures(self, make_runner):
        runner = make_runner(
            fail_argv={
                ("update-alternatives", "--remove-all", "java"),
                ("update-alternatives", "--remove-all", "javac"),
            }
        )
        host = next(a for a in build_actions() if a.name == "host-paths")

        await run_action(host, runner)

        java_calls = [argv for label, argv in runner.calls if label == "remove-java-alternatives"]
        assert len(java_calls) == len(host.steps[1].commands)
        assert runner.labels[-3:] == ["apt-purge-packages", "apt-autoremove-autoclean", "rm-apt-cache"]

    @pytest.mark.asyncio
    async def test_best_effort_step_swallows_every_failure(self, make_runner):
        runner = make_runner(fail={"loop"})
        step = Step("loop", (("a",), ("b",), ("c",)), best_effort=True)

        await run_step(step, runner)

        assert [argv for _, argv in runner.calls] == [("a",), ("b",), ("c",)]

    @pytest.mark.asyncio
    async def test_regular_step_stops_at_first_failure(self, make_runner):
        runner = make_runner(fail_argv={("b",)})
        step = Step("multi", (("a",), ("b",), ("c",)))

        with pytest.raises(CommandError):
            await run_step(step, runner)

        assert [argv for _, argv in runner.calls] == [("a",), ("b",)]


class TestReclaimDiskSpace:
    @pytest.mark.asyncio
    async def test_runs_every_step_and_reports(self, recording_runner, mock_measure, caplog):
        caplog.set_level(logging.DEBUG, logger="reclaimer")

        report = await reclaim_disk_space(runner=recording_runner)

        assert report == ReclaimReport(before=1_000_000, after=3_000_000)
        assert mock_measure.await_count == 2
        expected = {step.name for action in build_actions() for step in action.steps}
        assert set(recording_runner.labels) == expected

        info = [r.getMessage() for r in caplog.records if r.levelno == logging.INFO]
        assert "Reclaimed runner disk space: 1.91G" in info
        debug = [r.getMessage() for r in caplog.records if r.levelno == logging.DEBUG]
        assert any(m.startswith("Available disk space before cleanup: 1000000 blocks") for m in debug)
        assert any(m.startswith("Available disk space after cleanup: 3000000 blocks") for m in debug)

    @pytest.mark.asyncio
    async def test_one_failed_action_fails_the_run(self, make_runner, mock_measure):
        runner = make_runner(fail={"docker-system-prune"})

        with pytest.raises(CommandError) as exc_info:
            await reclaim_disk_space(runner=runner)

        assert "docker-system-prune broke" in str(exc_info.value)
        # Siblings still ran to completion
        assert "rm-swapfile" in runner.labels
        assert "rm-apt-cache" in runner.labels
        assert "nodoc-dpkg-config" in runner.labels
        # No after sample once the join failed
        assert mock_measure.await_count == 1

    @pytest.mark.asyncio
    async def test_first_failure_in_catalog_order_is_raised(self, make_runner, mock_measure, caplog):
        runner = make_runner(fail={"rm-host-paths", "swapoff"})

        with pytest.raises(CommandError) as exc_info:
            await reclaim_disk_space(runner=runner)

        assert "swapoff broke" in str(exc_info.value)
        errors = [r.getMessage() for r in caplog.records if r.levelno == logging.ERROR]
        assert len(errors) == 2

    @pytest.mark.asyncio
    async def test_actions_start_before_any_finishes(self, mock_measure):
        started = []
        release = asyncio.Event()

        class GatedRunner(CommandRunner):
            async def run(self, argv, label, color=None, privileged=True):
                started.append(label)
                if len(started) == 2:
                    release.set()
                await release.wait()
                return CommandResult(argv=list(argv), returncode=0)

        actions = (
            CleanupAction("one", (Step("s1", (("x",),)),)),
            CleanupAction("two", (Step("s2", (("y",),)),)),
        )

        await asyncio.wait_for(reclaim_disk_space(actions=actions, runner=GatedRunner()), timeout=5)

        assert sorted(started) == ["s1", "s2"]

    @pytest.mark.asyncio
    async def test_parse_error_before_cleanup_runs_nothing(self, recording_runner, monkeypatch, small_actions):
        monkeypatch.setattr(
            "reclaimer.orchestrator.measure_available_space",
            AsyncMock(side_effect=ParseError("garbage")),
        )

        with pytest.raises(ParseError):
            await reclaim_disk_space(actions=small_actions, runner=recording_runner)

        assert recording_runner.calls == []

    @pytest.mark.asyncio
    async def test_custom_actions_and_mount_point(self, recording_runner, mock_measure, small_actions):
        await reclaim_disk_space(actions=small_actions, runner=recording_runner, mount_point="/mnt")

        assert sorted(recording_runner.labels) == ["a1", "a2", "b1"]
        mock_measure.assert_awaited_with("/mnt")


@pytest.mark.asyncio
async def test_given_runner_decides_verbosity(mock_measure, caplog):
    caplog.set_level(logging.INFO, logger="reclaimer")

    class EchoRunner(CommandRunner):
        async def run(self, argv, label, color=None, privileged=True):
            if self.verbose:
                self.reporter.emit(label, "output")
            return CommandResult(argv=list(argv), returncode=0)

    actions = (CleanupAction("one", (Step("s1", (("x",),)),)),)
    await reclaim_disk_space(verbose=True, actions=actions, runner=EchoRunner(verbose=False))

    assert not [r for r in caplog.records if r.name == "reclaimer.reporter"]
