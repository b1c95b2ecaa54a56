"""
Shared utilities for the cloudapk CLI.
"""

from __future__ import annotations

import subprocess
import sys
from pathlib import Path
from typing import Optional, TextIO

# =============================================================================
# Logging
# =============================================================================

PROGRESS_WIDTH = 30


class Logger:
    """Simple colored logger with --no-color support and a progress line."""

    COLORS = {
        "reset": "\033[0m",
        "red": "\033[91m",
        "green": "\033[92m",
        "yellow": "\033[93m",
        "blue": "\033[94m",
        "magenta": "\033[95m",
        "cyan": "\033[96m",
        "bold": "\033[1m",
        "dim": "\033[2m",
    }

    def __init__(self, use_color: Optional[bool] = None, stream: Optional[TextIO] = None):
        self._stream = stream
        if use_color is None:
            self._use_color = self.stream.isatty()
        else:
            self._use_color = use_color
        self._progress_active = False

    @property
    def stream(self) -> TextIO:
        # Resolved lazily so pytest's capsys sees the output
        return self._stream if self._stream is not None else sys.stdout

    def set_color(self, use_color: bool) -> None:
        """Set whether to use color output."""
        self._use_color = use_color

    def _color(self, text: str, color: str) -> str:
        if not self._use_color:
            return text
        return f"{self.COLORS.get(color, '')}{text}{self.COLORS['reset']}"

    def _print(self, text: str) -> None:
        self.end_progress()
        print(text, file=self.stream)

    def header(self, message: str) -> None:
        """Print a section header."""
        self._print(f"\n{self._color('===', 'cyan')} {self._color(message, 'bold')} {self._color('===', 'cyan')}")

    def info(self, message: str) -> None:
        """Print an info message."""
        self._print(f"  {message}")

    def success(self, message: str) -> None:
        """Print a success message."""
        self._print(f"  {self._color('[OK]', 'green')} {message}")

    def warning(self, message: str) -> None:
        """Print a warning message."""
        self._print(f"  {self._color('[WARN]', 'yellow')} {message}")

    def error(self, message: str) -> None:
        """Print an error message."""
        self._print(f"  {self._color('[ERROR]', 'red')} {message}")

    def dim(self, message: str) -> None:
        """Print a dim/secondary message."""
        self._print(f"  {self._color(message, 'dim')}")

    def progress(self, percent: float, status: str) -> None:
        """Redraw the single-line progress bar in place."""
        filled = round(max(0.0, min(percent, 100.0)) / 100 * PROGRESS_WIDTH)
        bar = ("█" * filled).ljust(PROGRESS_WIDTH, "░")
        self.stream.write(f"\r  {self._color(bar, 'cyan')} {round(percent)}% | status: {status}... ")
        self.stream.flush()
        self._progress_active = True

    def end_progress(self) -> None:
        """Terminate an active progress line so later output starts clean."""
        if self._progress_active:
            self._progress_active = False
            self.stream.write("\n")
            self.stream.flush()


# Global logger instance
log = Logger()


# =============================================================================
# Git Utilities
# =============================================================================


def get_git_commit(directory: Path, short: bool = True) -> str:
    """Get current git commit hash."""
    try:
        result = subprocess.run(
            ["git", "rev-parse", "HEAD"],
            cwd=directory,
            capture_output=True,
            text=True,
            check=True,
        )
        commit = result.stdout.strip()
        return commit[:12] if short else commit
    except (OSError, subprocess.CalledProcessError):
        return "unknown"


# =============================================================================
# Runtime Utilities
# =============================================================================


def run_cmd(
    cmd: list[str],
    cwd: Optional[Path] = None,
    capture: bool = False,
    check: bool = True,
) -> subprocess.CompletedProcess:
    """Run a command with proper error handling."""
    try:
        result = subprocess.run(
            cmd,
            cwd=cwd,
            capture_output=capture,
            text=True,
            check=check,
        )
        return result
    except subprocess.CalledProcessError as e:
        if capture:
            log.error(f"Command failed: {' '.join(cmd)}")
            if e.stdout:
                log.error(f"stdout: {e.stdout.strip()}")
            if e.stderr:
                log.error(f"stderr: {e.stderr.strip()}")
        raise
