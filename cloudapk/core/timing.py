"""
Per-phase build report.

Each pipeline phase records its wall-clock duration together with what it
produced (status polls for the monitor, artifact size for the download),
so a --verbose run ends with one line such as:

    preprocess: 0.1s | publish: 2.4s | monitor: 4m 12s (25 polls) | retrieve: 3.1s (18.2 MB) | total: 4m 18s
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Iterator, Optional


def format_duration(seconds: float) -> str:
    """Short human-readable duration: 0.5s, 1m 05s, 1h 01m 01s."""
    if seconds < 60:
        return f"{seconds:.1f}s"

    minutes, secs = divmod(int(round(seconds)), 60)
    if minutes < 60:
        return f"{minutes}m {secs:02d}s"

    hours, minutes = divmod(minutes, 60)
    return f"{hours}h {minutes:02d}m {secs:02d}s"


def format_size(num_bytes: int) -> str:
    """Binary-prefixed size: 512 B, 2.0 KB, 18.2 MB."""
    if num_bytes < 1024:
        return f"{num_bytes} B"
    size = float(num_bytes)
    for unit in ("KB", "MB", "GB"):
        size /= 1024
        if size < 1024 or unit == "GB":
            break
    return f"{size:.1f} {unit}"


@dataclass
class PhaseRecord:
    """One pipeline phase as it ran."""

    name: str
    seconds: float = 0.0
    failed: bool = False
    polls: Optional[int] = None
    size_bytes: Optional[int] = None

    def describe(self) -> str:
        extras = []
        if self.polls is not None:
            extras.append(f"{self.polls} poll" + ("" if self.polls == 1 else "s"))
        if self.size_bytes is not None:
            extras.append(format_size(self.size_bytes))
        if self.failed:
            extras.append("failed")
        text = f"{self.name}: {format_duration(self.seconds)}"
        return f"{text} ({', '.join(extras)})" if extras else text


class BuildReport:
    """Collects a PhaseRecord per phase of one build, in run order."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._started = clock()
        self.phases: list[PhaseRecord] = []

    @contextmanager
    def phase(self, name: str) -> Iterator[PhaseRecord]:
        """Time the enclosed block; the record is marked failed if it raises."""
        record = PhaseRecord(name)
        self.phases.append(record)
        start = self._clock()
        try:
            yield record
        except BaseException:
            record.failed = True
            raise
        finally:
            record.seconds = self._clock() - start

    def get(self, name: str) -> Optional[PhaseRecord]:
        for record in self.phases:
            if record.name == name:
                return record
        return None

    @property
    def elapsed(self) -> float:
        return self._clock() - self._started

    def summary(self) -> str:
        if not self.phases:
            return "(no phases run)"
        parts = [record.describe() for record in self.phases]
        parts.append(f"total: {format_duration(self.elapsed)}")
        return " | ".join(parts)
