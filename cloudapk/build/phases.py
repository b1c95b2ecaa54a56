"""
Build phases for cloudapk.

The publish trigger: stage, commit, and push the project so the remote
workflow starts.
"""

from __future__ import annotations

import subprocess
from datetime import datetime
from pathlib import Path
from typing import Optional

from cloudapk.core.errors import PublishError
from cloudapk.core.utils import log, run_cmd


# =============================================================================
# Git Operations (Build-specific)
# =============================================================================


def run_cmd_with_dry_run(
    cmd: list[str],
    cwd: Optional[Path] = None,
    capture: bool = False,
    check: bool = True,
    dry_run: bool = False,
) -> subprocess.CompletedProcess:
    """Run a command with proper error handling and dry-run support."""
    if dry_run:
        log.info(f"[DRY-RUN] Would run: {' '.join(cmd)}" + (f" in {cwd}" if cwd else ""))
        return subprocess.CompletedProcess(cmd, 0, "", "")

    return run_cmd(cmd, cwd=cwd, capture=capture, check=check)


def build_commit_message(build_type: str, now: Optional[datetime] = None) -> str:
    """Commit message recording the build type and local time."""
    stamp = (now or datetime.now()).strftime("%Y-%m-%d %H:%M:%S")
    return f"Build [{build_type}]: {stamp}"


def git_publish(
    repo_path: Path,
    build_type: str,
    remote: str = "origin",
    branch: str = "main",
    dry_run: bool = False,
    now: Optional[datetime] = None,
) -> None:
    """Stage everything, commit (empty commits allowed), and push.

    Raises:
        PublishError: If any git command fails.
    """
    commands = [
        ["git", "add", "-A"],
        ["git", "commit", "--allow-empty", "-m", build_commit_message(build_type, now)],
        ["git", "push", remote, branch],
    ]

    for cmd in commands:
        try:
            run_cmd_with_dry_run(cmd, cwd=repo_path, capture=True, dry_run=dry_run)
        except subprocess.CalledProcessError as e:
            raise PublishError(f"'{' '.join(cmd[:2])}' failed with exit code {e.returncode}") from e
        except OSError as e:
            raise PublishError(f"Could not run git: {e}") from e
