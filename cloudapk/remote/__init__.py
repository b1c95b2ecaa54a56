"""
cloudapk.remote - Remote build service access.

GitHub Actions client, run polling, and artifact retrieval.
"""

from cloudapk.remote.artifacts import fetch_and_extract, resolve
from cloudapk.remote.client import Artifact, BuildRun, GitHubActionsClient
from cloudapk.remote.monitor import (
    BuildMonitor,
    ProgressEstimate,
    ProgressUpdate,
    RunSnapshot,
    RunState,
)

__all__ = [
    # Client
    "Artifact",
    "BuildRun",
    "GitHubActionsClient",
    # Monitor
    "BuildMonitor",
    "ProgressEstimate",
    "ProgressUpdate",
    "RunSnapshot",
    "RunState",
    # Artifacts
    "fetch_and_extract",
    "resolve",
]
