"""
GitHub Actions REST client.

Only the four calls the pipeline needs: latest run, run detail, run
artifacts, and an authenticated artifact download.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import requests

from cloudapk.core.errors import RemoteApiError

API_URL = "https://api.github.com"
API_VERSION = "2022-11-28"
DEFAULT_TIMEOUT = 30
CHUNK_SIZE = 64 * 1024


# =============================================================================
# Data Classes
# =============================================================================


@dataclass(frozen=True)
class BuildRun:
    """A workflow run as observed from the API."""

    id: int
    status: str
    conclusion: Optional[str] = None
    html_url: str = ""

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "BuildRun":
        return cls(
            id=data["id"],
            status=data.get("status") or "queued",
            conclusion=data.get("conclusion"),
            html_url=data.get("html_url") or "",
        )


@dataclass(frozen=True)
class Artifact:
    """A run output retrievable through its archive download URL."""

    name: str
    archive_download_url: str
    id: int = 0
    size_in_bytes: int = 0

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "Artifact":
        return cls(
            name=data["name"],
            archive_download_url=data["archive_download_url"],
            id=data.get("id", 0),
            size_in_bytes=data.get("size_in_bytes", 0),
        )


# =============================================================================
# Client
# =============================================================================


class GitHubActionsClient:
    """Thin wrapper around the Actions endpoints of one repository."""

    def __init__(
        self,
        owner: str,
        repo: str,
        token: str,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT,
        api_url: str = API_URL,
    ):
        self.owner = owner
        self.repo = repo
        self.timeout = timeout
        self.base_url = f"{api_url.rstrip('/')}/repos/{owner}/{repo}/actions"
        self.session = session or requests.Session()
        self.session.headers.update({
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": API_VERSION,
        })

    @property
    def repository(self) -> str:
        return f"{self.owner}/{self.repo}"

    def _get(self, url: str, **kwargs) -> requests.Response:
        try:
            response = self.session.get(url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise RemoteApiError(f"Request failed ({e.__class__.__name__})", url=url) from e
        if not response.ok:
            response.close()
            raise RemoteApiError("GitHub API request failed", url=url, status=response.status_code)
        return response

    def _get_json(self, url: str, **kwargs) -> dict[str, Any]:
        response = self._get(url, **kwargs)
        try:
            return response.json()
        except ValueError as e:
            raise RemoteApiError("Response was not JSON", url=url, status=response.status_code) from e

    def latest_run(self) -> Optional[BuildRun]:
        """Most recent workflow run of the repository, or None if there are none."""
        data = self._get_json(f"{self.base_url}/runs", params={"per_page": 1})
        runs = data.get("workflow_runs") or []
        if not runs:
            return None
        return BuildRun.from_json(runs[0])

    def get_run(self, run_id: int) -> BuildRun:
        return BuildRun.from_json(self._get_json(f"{self.base_url}/runs/{run_id}"))

    def list_artifacts(self, run_id: int) -> list[Artifact]:
        data = self._get_json(f"{self.base_url}/runs/{run_id}/artifacts")
        return [Artifact.from_json(item) for item in data.get("artifacts") or []]

    def download(self, url: str, dest: Path) -> int:
        """Stream ``url`` into ``dest``. Returns the number of bytes written."""
        written = 0
        response = self._get(url, stream=True)
        try:
            with open(dest, "wb") as f:
                for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                    if chunk:
                        f.write(chunk)
                        written += len(chunk)
        except requests.RequestException as e:
            raise RemoteApiError(f"Download interrupted ({e.__class__.__name__})", url=url) from e
        finally:
            response.close()
        return written
