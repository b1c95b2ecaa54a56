"""
cloudapk.build - Build configuration and pipeline phases.

The orchestrator lives in cloudapk.build.orchestrator and is imported
from there; it depends on cloudapk.project, which depends on this
package's config.
"""

from cloudapk.build.config import (
    BUILD_TYPES,
    DEFAULT_ARTIFACT_NAME,
    GRACE_DELAY_SECONDS,
    INDEX_FILE,
    LATEST_SPEC,
    MANIFEST_FILE,
    MISSING_MANIFEST_POLICIES,
    POLL_INTERVAL_SECONDS,
    WWW_DIR,
    BuildConfig,
    Settings,
    load_settings,
)
from cloudapk.build.phases import build_commit_message, git_publish

__all__ = [
    # Constants
    "BUILD_TYPES",
    "DEFAULT_ARTIFACT_NAME",
    "GRACE_DELAY_SECONDS",
    "INDEX_FILE",
    "LATEST_SPEC",
    "MANIFEST_FILE",
    "MISSING_MANIFEST_POLICIES",
    "POLL_INTERVAL_SECONDS",
    "WWW_DIR",
    # Configuration
    "BuildConfig",
    "Settings",
    "load_settings",
    # Phases
    "build_commit_message",
    "git_publish",
]
