"""Shared fixtures for the reclaimer test suite.

Cleanup commands are never really executed here: orchestration tests use a
runner that records each argv and fails the ones it was told to fail.
"""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from reclaimer.catalog import CleanupAction, Step
from reclaimer.commands import CommandResult, CommandRunner
from reclaimer.exceptions import CommandError


class RecordingRunner(CommandRunner):
    def __init__(self, fail: set[str] | None = None, fail_argv: set[tuple[str, ...]] | None = None, **kwargs):
        super().__init__(**kwargs)
        self.fail = fail or set()
        self.fail_argv = fail_argv or set()
        self.calls: list[tuple[str, tuple[str, ...]]] = []

    @property
    def labels(self) -> list[str]:
        return [label for label, _ in self.calls]

    async def run(self, argv, label, color=None, privileged=True):
        argv = tuple(argv)
        self.calls.append((label, argv))
        if label in self.fail or argv in self.fail_argv:
            raise CommandError(self.build_argv(argv, privileged), 1, f"{label} broke")
        return CommandResult(argv=self.build_argv(argv, privileged), returncode=0)


@pytest.fixture
def recording_runner():
    return RecordingRunner()


@pytest.fixture
def small_actions():
    return (
        CleanupAction("first", (Step("a1", (("true",),)), Step("a2", (("true",),)))),
        CleanupAction("second", (Step("b1", (("true",),)),)),
    )


@pytest.fixture
def mock_measure(monkeypatch):
    """Replace df sampling with a sequence of fixed values."""
    measure = AsyncMock(side_effect=[1_000_000, 3_000_000])
    monkeypatch.setattr("reclaimer.orchestrator.measure_available_space", measure)
    return measure


@pytest.fixture
def make_runner():
    return RecordingRunner
