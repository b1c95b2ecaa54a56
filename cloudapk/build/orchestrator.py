"""
Build orchestrator for cloudapk.

Sequences preprocess -> publish -> monitor -> retrieve, records each phase
in a BuildReport, and is the single place where pipeline failures are
caught and reported.
"""

from __future__ import annotations

import argparse
import sys
import time
import traceback
from pathlib import Path
from typing import Callable, Optional

from cloudapk import __version__
from cloudapk.build.config import (
    BUILD_TYPES,
    GRACE_DELAY_SECONDS,
    MISSING_MANIFEST_POLICIES,
    POLL_INTERVAL_SECONDS,
    BuildConfig,
    load_settings,
)
from cloudapk.build.phases import git_publish
from cloudapk.core.errors import CloudBuildError, RemoteBuildFailed
from cloudapk.core.timing import BuildReport, PhaseRecord, format_duration, format_size
from cloudapk.core.utils import get_git_commit, log
from cloudapk.project.decisions import (
    Decision,
    DecisionProvider,
    ScriptedDecisions,
    TerminalDecisions,
)
from cloudapk.project.preprocess import preprocess
from cloudapk.remote import artifacts
from cloudapk.remote.client import GitHubActionsClient
from cloudapk.remote.monitor import BuildMonitor, ProgressUpdate, RunState

PublishTrigger = Callable[[BuildConfig, str], None]


def default_publish(config: BuildConfig, build_type: str) -> None:
    git_publish(
        config.project_root,
        build_type,
        remote=config.remote,
        branch=config.branch,
        dry_run=config.dry_run,
    )


# =============================================================================
# Build Orchestrator
# =============================================================================


class BuildOrchestrator:
    """Runs one cloud build end to end."""

    def __init__(
        self,
        config: BuildConfig,
        decide: DecisionProvider,
        client: Optional[GitHubActionsClient] = None,
        publish: Optional[PublishTrigger] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = config
        self.decide = decide
        self.publish = publish or default_publish
        self.sleep = sleep
        self._client = client

        self.report = BuildReport()
        self.run_id: Optional[int] = None
        self.extracted: list[Path] = []
        self.error: Optional[BaseException] = None

    @property
    def client(self) -> GitHubActionsClient:
        if self._client is None:
            settings = self.config.settings
            self._client = GitHubActionsClient(
                settings.github_owner,
                settings.github_repo,
                settings.github_token,
            )
        return self._client

    def select_build_type(self) -> str:
        if self.config.build_type is not None:
            return self.config.build_type
        build_type = self.decide(Decision.BUILD_TYPE)
        if build_type not in BUILD_TYPES:
            raise CloudBuildError(f"Unknown build type: {build_type!r}")
        return build_type

    def _on_progress(self, update: ProgressUpdate) -> None:
        log.progress(update.percent, update.status)

    def monitor(self, record: Optional[PhaseRecord] = None) -> int:
        """Discover the triggered run and wait for it. Returns the run id."""
        log.header("Waiting for remote build")
        monitor = BuildMonitor(
            self.client,
            sleep=self.sleep,
            poll_interval=self.config.poll_interval,
            grace_delay=self.config.grace_delay,
            max_polls=self.config.max_polls,
            on_progress=self._on_progress,
        )

        run = monitor.discover_run()
        self.run_id = run.id
        log.info(f"Tracking run {run.id}" + (f" ({run.html_url})" if run.html_url else ""))

        try:
            snapshot = monitor.wait(run.id)
        finally:
            if record is not None:
                record.polls = monitor.polls
        log.end_progress()
        if snapshot.state is RunState.FAILED:
            raise RemoteBuildFailed(run.id, snapshot.run.conclusion)

        log.success(f"Run {run.id} completed after {snapshot.polls} poll(s)")
        return run.id

    def retrieve(self, run_id: int, record: Optional[PhaseRecord] = None) -> list[Path]:
        """Download and extract the configured artifact of ``run_id``."""
        settings = self.config.settings
        log.header("Retrieving artifact")
        artifact = artifacts.resolve(self.client, run_id, settings.artifact_name)
        if record is not None:
            record.size_bytes = artifact.size_in_bytes
        log.info(f"Downloading {artifact.name} ({format_size(artifact.size_in_bytes)})")
        files = artifacts.fetch_and_extract(self.client, artifact, settings.download_dir)
        for path in files:
            log.dim(str(path))
        return files

    def run(self) -> bool:
        """Run the pipeline. Never raises; returns True on success or clean abort."""
        try:
            with self.report.phase("select_build_type"):
                build_type = self.select_build_type()

            with self.report.phase("preprocess"):
                result = preprocess(self.config, self.decide, build_type, write=not self.config.dry_run)
            if result.aborted:
                log.info("Build cancelled before publishing")
                return True

            log.header(f"Publishing [{build_type}] to {self.config.remote}/{self.config.branch}")
            with self.report.phase("publish"):
                self.publish(self.config, build_type)

            if self.config.dry_run:
                log.info("[DRY-RUN] Skipping remote build monitoring and download")
                return True
            log.success(f"Pushed {get_git_commit(self.config.project_root)}")

            with self.report.phase("monitor") as record:
                run_id = self.monitor(record)

            with self.report.phase("retrieve") as record:
                self.extracted = self.retrieve(run_id, record)

            log.header("BUILD COMPLETE")
            log.info(f"Output: {self.config.settings.download_dir}")
            log.info(f"Total time: {format_duration(self.report.elapsed)}")
            if self.config.verbose:
                log.dim(self.report.summary())
            return True

        except Exception as e:
            self.error = e
            log.end_progress()
            context = f" (run {self.run_id})" if self.run_id is not None else ""
            log.error(f"Build failed{context}: {e}")
            if self.config.verbose and not isinstance(e, CloudBuildError):
                traceback.print_exc()
            if self.config.verbose:
                log.dim(self.report.summary())
            return False


# =============================================================================
# CLI
# =============================================================================


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="cloudapk",
        description="Cloud build pipeline for Cordova projects",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Environment (or .env):
    GITHUB_TOKEN, GITHUB_OWNER, GITHUB_REPO, APP_ID   required
    ARTIFACT_NAME                                     default: my-app-apk
    DOWNLOAD_DIR                                      default: ~/Downloads

Examples:
    cloudapk                               # Interactive build of current project
    cloudapk --build-type release --yes    # Non-interactive, default answers
    cloudapk --answers answers.yaml        # Scripted answers
    cloudapk --dry-run                     # Show what would be done
        """,
    )

    parser.add_argument(
        "project_dir",
        nargs="?",
        default=".",
        help="Project directory (default: current directory)",
    )

    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    parser.add_argument(
        "--build-type",
        choices=BUILD_TYPES,
        help="Build type (default: ask)",
    )

    answers = parser.add_mutually_exclusive_group()
    answers.add_argument(
        "--answers",
        type=Path,
        help="YAML file of scripted answers (decision name -> answer)",
    )
    answers.add_argument(
        "--yes", "-y",
        action="store_true",
        help="Do not prompt; use default answers",
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be done without writing, pushing, or polling",
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose output (phase timings, tracebacks)",
    )

    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colored output",
    )

    parser.add_argument(
        "--env-file",
        type=Path,
        help="Read settings from this .env file (default: <project>/.env if present)",
    )

    parser.add_argument(
        "--poll-interval",
        type=float,
        default=POLL_INTERVAL_SECONDS,
        help=f"Seconds between status polls (default: {POLL_INTERVAL_SECONDS:g})",
    )

    parser.add_argument(
        "--grace-delay",
        type=float,
        default=GRACE_DELAY_SECONDS,
        help=f"Seconds to wait before looking up the triggered run (default: {GRACE_DELAY_SECONDS:g})",
    )

    parser.add_argument(
        "--max-polls",
        type=int,
        help="Give up after this many polls (default: poll until the run finishes)",
    )

    parser.add_argument(
        "--missing-manifest",
        choices=MISSING_MANIFEST_POLICIES,
        default="fail",
        help="What to do when config.xml is absent (default: fail)",
    )

    parser.add_argument(
        "--signatures",
        type=Path,
        help="YAML file overriding the plugin signature table",
    )

    parser.add_argument("--remote", default="origin", help="Git remote to push to (default: origin)")
    parser.add_argument("--branch", default="main", help="Branch to push (default: main)")

    return parser.parse_args(argv)


def make_decision_provider(args: argparse.Namespace) -> DecisionProvider:
    if args.answers is not None:
        return ScriptedDecisions.from_yaml(args.answers)
    if args.yes:
        return ScriptedDecisions()
    return TerminalDecisions()


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    if args.no_color:
        log.set_color(False)

    project_root = Path(args.project_dir).resolve()

    try:
        env_file = args.env_file
        if env_file is None and (project_root / ".env").exists():
            env_file = project_root / ".env"

        # Configuration errors surface here, before anything is touched
        config = BuildConfig(
            project_root=project_root,
            settings=load_settings(env_file),
            build_type=args.build_type,
            dry_run=args.dry_run,
            verbose=args.verbose,
            poll_interval=args.poll_interval,
            grace_delay=args.grace_delay,
            max_polls=args.max_polls,
            missing_manifest=args.missing_manifest,
            signatures_path=args.signatures,
            remote=args.remote,
            branch=args.branch,
        )
        decide = make_decision_provider(args)
    except CloudBuildError as e:
        log.error(str(e))
        return 1

    try:
        orchestrator = BuildOrchestrator(config, decide)
        return 0 if orchestrator.run() else 1
    except KeyboardInterrupt:
        log.end_progress()
        log.warning("Build interrupted")
        return 130


if __name__ == "__main__":
    sys.exit(main())
