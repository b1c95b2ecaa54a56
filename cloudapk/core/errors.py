"""
Error taxonomy for cloudapk.

Stages raise these; only the orchestrator catches them.
"""

from __future__ import annotations

from typing import Optional, Sequence


class CloudBuildError(RuntimeError):
    """Base class for every failure the pipeline reports."""


# =============================================================================
# Configuration
# =============================================================================


class ConfigurationError(CloudBuildError):
    """Missing or malformed configuration, raised before any mutation."""


# =============================================================================
# Validation
# =============================================================================


class ValidationError(CloudBuildError):
    """Local project state is not usable for a build."""


class ManifestNotFound(ValidationError):
    def __init__(self, path) -> None:
        self.path = path
        super().__init__(f"Manifest not found: {path}")


class MarkupNotFound(ValidationError):
    def __init__(self, path) -> None:
        self.path = path
        super().__init__(f"Markup entry point not found: {path}")


class InjectionTargetMissing(ValidationError):
    def __init__(self, marker: str = "</head>") -> None:
        self.marker = marker
        super().__init__(f"No {marker} marker found in markup entry point")


# =============================================================================
# Publish
# =============================================================================


class PublishError(CloudBuildError):
    """The version-control push that triggers the remote build failed."""


# =============================================================================
# Remote
# =============================================================================


class RemoteError(CloudBuildError):
    """Failure while talking to, or reported by, the remote build service."""


class RemoteApiError(RemoteError):
    def __init__(self, message: str, url: str = "", status: Optional[int] = None) -> None:
        self.url = url
        self.status = status
        detail = f" (HTTP {status})" if status is not None else ""
        super().__init__(f"{message}{detail}: {url}" if url else f"{message}{detail}")


class NoRunFound(RemoteError):
    def __init__(self, repo: str = "") -> None:
        self.repo = repo
        where = f" for {repo}" if repo else ""
        super().__init__(f"No workflow run found{where} after publishing")


class RemoteBuildFailed(RemoteError):
    def __init__(self, run_id: int, conclusion: Optional[str]) -> None:
        self.run_id = run_id
        self.conclusion = conclusion
        super().__init__(
            f"Remote build {run_id} concluded with '{conclusion}'. "
            f"Check the Actions log for this run."
        )


class PollTimeout(RemoteError):
    def __init__(self, run_id: int, polls: int) -> None:
        self.run_id = run_id
        self.polls = polls
        super().__init__(f"Run {run_id} did not complete after {polls} polls")


class ArtifactNotFound(RemoteError):
    def __init__(self, name: str, run_id: int, available: Sequence[str] = ()) -> None:
        self.name = name
        self.run_id = run_id
        self.available = list(available)
        listing = ", ".join(self.available) if self.available else "none"
        super().__init__(
            f"Artifact '{name}' not found in run {run_id} (available: {listing})"
        )


class ArtifactExtractError(RemoteError):
    """The downloaded artifact could not be extracted."""
