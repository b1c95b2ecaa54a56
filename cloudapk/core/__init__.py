"""
cloudapk.core - Foundation layer for the cloudapk CLI.

Exports logging, process helpers, timing, and the error taxonomy.
"""

# Utils
from cloudapk.core.utils import (
    # Logging
    log,
    Logger,
    # Git utilities
    get_git_commit,
    # Runtime utilities
    run_cmd,
)

# Timing
from cloudapk.core.timing import (
    BuildReport,
    PhaseRecord,
    format_duration,
    format_size,
)

# Errors
from cloudapk.core.errors import (
    CloudBuildError,
    ConfigurationError,
    ValidationError,
    ManifestNotFound,
    MarkupNotFound,
    InjectionTargetMissing,
    PublishError,
    RemoteError,
    RemoteApiError,
    NoRunFound,
    RemoteBuildFailed,
    PollTimeout,
    ArtifactNotFound,
    ArtifactExtractError,
)

__all__ = [
    # Logging
    "log",
    "Logger",
    # Git utilities
    "get_git_commit",
    # Runtime utilities
    "run_cmd",
    # Timing
    "BuildReport",
    "PhaseRecord",
    "format_duration",
    "format_size",
    # Errors
    "CloudBuildError",
    "ConfigurationError",
    "ValidationError",
    "ManifestNotFound",
    "MarkupNotFound",
    "InjectionTargetMissing",
    "PublishError",
    "RemoteError",
    "RemoteApiError",
    "NoRunFound",
    "RemoteBuildFailed",
    "PollTimeout",
    "ArtifactNotFound",
    "ArtifactExtractError",
]
