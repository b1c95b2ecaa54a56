"""
Shared pytest fixtures for cloudapk tests.

Provides a throwaway Cordova project in tmp_path and fakes for the remote
build service so no test touches the network, git, or real time.

Test Tier Markers:
  @pytest.mark.evergreen - Tests that always run, never skip (production tests)
  @pytest.mark.dev       - Development/WIP tests, toggle-able
"""

from __future__ import annotations

import io
import zipfile
from pathlib import Path
from typing import Optional

import pytest

from cloudapk.build.config import BuildConfig, Settings
from cloudapk.core.utils import log
from cloudapk.remote.client import Artifact, BuildRun


# =============================================================================
# Test Data Constants
# =============================================================================

SAMPLE_CONFIG_XML = """<?xml version='1.0' encoding='utf-8'?>
<widget id="com.old.app" version="1.0.0" xmlns="http://www.w3.org/ns/widgets" xmlns:cdv="http://cordova.apache.org/ns/1.0">
    <name>Sample</name>
    <!-- app icon -->
    <icon src="res/icon.png" />
    <platform name="android">
        <icon src="res/android/ldpi.png" density="ldpi" />
        <platform name="nested">
            <icon src="res/android/xxhdpi.png" density="xxhdpi" />
        </platform>
    </platform>
    <preference name="Orientation" value="portrait" />
    <plugin name="cordova-plugin-whitelist" spec="1.3.4" />
</widget>
"""

SAMPLE_INDEX_HTML = """<!DOCTYPE html>
<html>
    <head>
        <meta charset="utf-8">
        <title>Sample</title>
    </head>
    <body>
        <script src="js/index.js"></script>
    </body>
</html>
"""

SAMPLE_ICONS = ("res/icon.png", "res/android/ldpi.png", "res/android/xxhdpi.png")


# =============================================================================
# Configuration
# =============================================================================


def make_settings(tmp_path: Path, **overrides) -> Settings:
    """Settings built from explicit values only (no environment, no .env)."""
    values = {
        "github_token": "ghp_test",
        "github_owner": "acme",
        "github_repo": "app",
        "app_id": "com.new.app",
        "download_dir": tmp_path / "downloads",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return make_settings(tmp_path)


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """A Cordova project with config.xml, www/, and all icons present."""
    root = tmp_path / "project"
    (root / "www" / "js").mkdir(parents=True)
    (root / "config.xml").write_text(SAMPLE_CONFIG_XML, encoding="utf-8")
    (root / "www" / "index.html").write_text(SAMPLE_INDEX_HTML, encoding="utf-8")
    (root / "www" / "js" / "index.js").write_text("console.log('ready');\n", encoding="utf-8")
    for icon in SAMPLE_ICONS:
        path = root / icon
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(b"\x89PNG")
    return root


@pytest.fixture
def config(project: Path, settings: Settings) -> BuildConfig:
    return BuildConfig(
        project_root=project,
        settings=settings,
        poll_interval=10,
        grace_delay=8,
    )


@pytest.fixture(autouse=True)
def plain_log():
    """Keep log output free of ANSI codes and progress state between tests."""
    log.set_color(False)
    log._progress_active = False
    yield
    log._progress_active = False


# =============================================================================
# Remote Fakes
# =============================================================================


def make_zip(files: dict[str, bytes]) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zf:
        for name, data in files.items():
            zf.writestr(name, data)
    return buffer.getvalue()


class FakeActionsClient:
    """Scripted stand-in for GitHubActionsClient.

    ``runs`` is the sequence of responses get_run returns, one per call;
    the last one repeats once the script is exhausted.
    """

    repository = "acme/app"

    def __init__(
        self,
        runs: Optional[list[BuildRun]] = None,
        latest: Optional[BuildRun] = None,
        artifacts: Optional[list[Artifact]] = None,
        payloads: Optional[dict[str, bytes]] = None,
    ):
        self.runs = list(runs or [])
        self.latest = latest
        self.artifacts = list(artifacts or [])
        self.payloads = dict(payloads or {})
        self.calls: list[tuple] = []
        self.downloaded_to: list[Path] = []

    def latest_run(self) -> Optional[BuildRun]:
        self.calls.append(("latest_run",))
        return self.latest

    def get_run(self, run_id: int) -> BuildRun:
        self.calls.append(("get_run", run_id))
        if len(self.runs) > 1:
            return self.runs.pop(0)
        return self.runs[0]

    def list_artifacts(self, run_id: int) -> list[Artifact]:
        self.calls.append(("list_artifacts", run_id))
        return list(self.artifacts)

    def download(self, url: str, dest: Path) -> int:
        self.calls.append(("download", url))
        self.downloaded_to.append(dest)
        data = self.payloads[url]
        dest.write_bytes(data)
        return len(data)


class SleepRecorder:
    """Replacement for time.sleep that records requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def sleeper() -> SleepRecorder:
    return SleepRecorder()
