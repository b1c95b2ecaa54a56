"""
Polling state machine for a remote build run.

    QUEUED -> IN_PROGRESS -> SUCCEEDED | FAILED

The API only reports coarse status, so progress is a synthetic estimate
that closes 15% of the remaining gap to 95 on every non-terminal poll and
jumps to 100 only once completion is confirmed.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Protocol

from cloudapk.build.config import GRACE_DELAY_SECONDS, POLL_INTERVAL_SECONDS
from cloudapk.core.errors import NoRunFound, PollTimeout
from cloudapk.core.utils import log
from cloudapk.remote.client import BuildRun

PROGRESS_CEILING = 95.0
PROGRESS_RATE = 0.15


class RunState(str, Enum):
    QUEUED = "queued"
    IN_PROGRESS = "in_progress"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def terminal(self) -> bool:
        return self in (RunState.SUCCEEDED, RunState.FAILED)


class RunSource(Protocol):
    """The subset of the remote client the monitor needs."""

    def latest_run(self) -> Optional[BuildRun]: ...

    def get_run(self, run_id: int) -> BuildRun: ...


@dataclass(frozen=True)
class ProgressUpdate:
    status: str
    percent: int
    polls: int


@dataclass(frozen=True)
class RunSnapshot:
    run: BuildRun
    state: RunState
    polls: int


def classify(run: BuildRun) -> RunState:
    """Map a run's status/conclusion onto the monitor's states."""
    if run.conclusion == "failure":
        return RunState.FAILED
    if run.status == "completed":
        return RunState.SUCCEEDED
    if run.status == "in_progress":
        return RunState.IN_PROGRESS
    return RunState.QUEUED


class ProgressEstimate:
    """Monotonic, decelerating progress signal capped below 100."""

    def __init__(self) -> None:
        self.value = 0.0

    def advance(self) -> float:
        if self.value < PROGRESS_CEILING:
            self.value += (PROGRESS_CEILING - self.value) * PROGRESS_RATE
        return self.value

    def complete(self) -> float:
        self.value = 100.0
        return self.value

    @property
    def percent(self) -> int:
        return round(self.value)


class BuildMonitor:
    """Discovers the triggered run and polls it until it is terminal."""

    def __init__(
        self,
        client: RunSource,
        sleep: Callable[[float], None] = time.sleep,
        poll_interval: float = POLL_INTERVAL_SECONDS,
        grace_delay: float = GRACE_DELAY_SECONDS,
        max_polls: Optional[int] = None,
        on_progress: Optional[Callable[[ProgressUpdate], None]] = None,
    ):
        self.client = client
        self.sleep = sleep
        self.poll_interval = poll_interval
        self.grace_delay = grace_delay
        self.max_polls = max_polls
        self.on_progress = on_progress
        self.estimate = ProgressEstimate()
        self.polls = 0

    def _emit(self, status: str) -> None:
        if self.on_progress is not None:
            self.on_progress(ProgressUpdate(status=status, percent=self.estimate.percent, polls=self.polls))

    def discover_run(self) -> BuildRun:
        """Wait out the grace delay, then adopt the most recent run.

        Raises:
            NoRunFound: If the run listing is empty.
        """
        self.sleep(self.grace_delay)
        run = self.client.latest_run()
        if run is None:
            raise NoRunFound(getattr(self.client, "repository", ""))
        return run

    def poll_once(self, run_id: int) -> RunSnapshot:
        """Fetch the run once and classify it."""
        run = self.client.get_run(run_id)
        self.polls += 1
        state = classify(run)

        if state is RunState.SUCCEEDED:
            if run.conclusion not in (None, "success"):
                log.warning(f"Run {run_id} completed with conclusion '{run.conclusion}'")
            self.estimate.complete()
            self._emit(run.status)
        elif state is not RunState.FAILED:
            self.estimate.advance()
            self._emit(run.status)

        return RunSnapshot(run=run, state=state, polls=self.polls)

    def wait(self, run_id: int) -> RunSnapshot:
        """Poll until the run is terminal.

        Raises:
            PollTimeout: If ``max_polls`` is set and exhausted first.
        """
        while True:
            snapshot = self.poll_once(run_id)
            if snapshot.state.terminal:
                return snapshot
            if self.max_polls is not None and self.polls >= self.max_polls:
                raise PollTimeout(run_id, self.polls)
            self.sleep(self.poll_interval)
