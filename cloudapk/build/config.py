"""
Build configuration for cloudapk.

Constants, environment settings, and the immutable per-run config.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from cloudapk.core.errors import ConfigurationError

__all__ = [
    "MANIFEST_FILE",
    "WWW_DIR",
    "INDEX_FILE",
    "BUILD_TYPES",
    "MISSING_MANIFEST_POLICIES",
    "POLL_INTERVAL_SECONDS",
    "GRACE_DELAY_SECONDS",
    "DEFAULT_ARTIFACT_NAME",
    "LATEST_SPEC",
    "Settings",
    "BuildConfig",
    "load_settings",
]

# =============================================================================
# Constants
# =============================================================================

# Project-relative locations
MANIFEST_FILE = "config.xml"
WWW_DIR = "www"
INDEX_FILE = "index.html"

BUILD_TYPES = ("debug", "release")

# "fail" aborts when config.xml is absent, "skip" skips the manifest steps
MISSING_MANIFEST_POLICIES = ("fail", "skip")

# Remote polling cadence (seconds)
POLL_INTERVAL_SECONDS = 10.0
GRACE_DELAY_SECONDS = 8.0

DEFAULT_ARTIFACT_NAME = "my-app-apk"

# Version spec written for auto-detected plugins
LATEST_SPEC = "latest"


# =============================================================================
# Environment Settings
# =============================================================================


class Settings(BaseSettings):
    """Settings sourced from the process environment and an optional .env file.

    Read once at startup; frozen afterwards.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    github_token: str = Field(min_length=1, repr=False)
    github_owner: str = Field(min_length=1)
    github_repo: str = Field(min_length=1)
    app_id: str = Field(min_length=1)
    artifact_name: str = DEFAULT_ARTIFACT_NAME
    download_dir: Path = Field(default_factory=lambda: Path.home() / "Downloads")

    @field_validator("download_dir")
    @classmethod
    def expand_download_dir(cls, value: Path) -> Path:
        return value.expanduser()

    @property
    def repository(self) -> str:
        return f"{self.github_owner}/{self.github_repo}"


def load_settings(env_file: Optional[Path] = None) -> Settings:
    """Build Settings, turning validation failures into ConfigurationError.

    Args:
        env_file: Explicit .env path. When None, ``.env`` in the working
            directory is used if present.

    Raises:
        ConfigurationError: If a required variable is missing or empty.
    """
    try:
        if env_file is None:
            return Settings()
        if not env_file.exists():
            raise ConfigurationError(f"Env file not found: {env_file}")
        return Settings(_env_file=env_file)
    except ValidationError as e:
        names = sorted({str(err["loc"][0]).upper() for err in e.errors() if err.get("loc")})
        raise ConfigurationError(
            f"Missing or invalid configuration: {', '.join(names)}\n"
            f"  Fix: Set them in the environment or in a .env file"
        ) from e


# =============================================================================
# Run Configuration
# =============================================================================


@dataclass(frozen=True)
class BuildConfig:
    """Configuration for a pipeline run."""

    project_root: Path
    settings: Settings
    build_type: Optional[str] = None  # None means ask the decision provider
    dry_run: bool = False
    verbose: bool = False
    poll_interval: float = POLL_INTERVAL_SECONDS
    grace_delay: float = GRACE_DELAY_SECONDS
    max_polls: Optional[int] = None  # None polls until the run is terminal
    missing_manifest: str = "fail"
    signatures_path: Optional[Path] = None
    remote: str = "origin"
    branch: str = "main"

    def __post_init__(self) -> None:
        if self.build_type is not None and self.build_type not in BUILD_TYPES:
            raise ConfigurationError(
                f"Unknown build type '{self.build_type}' (expected one of {', '.join(BUILD_TYPES)})"
            )
        if self.missing_manifest not in MISSING_MANIFEST_POLICIES:
            raise ConfigurationError(
                f"Unknown missing-manifest policy '{self.missing_manifest}'"
            )
        if self.max_polls is not None and self.max_polls < 1:
            raise ConfigurationError("max_polls must be at least 1")

    @property
    def manifest_path(self) -> Path:
        return self.project_root / MANIFEST_FILE

    @property
    def www_dir(self) -> Path:
        return self.project_root / WWW_DIR

    @property
    def index_path(self) -> Path:
        return self.www_dir / INDEX_FILE
