"""
Pre-build pass over the local project.

Syncs the app id, checks icon assets, declares detected plugins, and
rewrites the index.html injection block. Every check runs and every
decision is taken before anything is written, so an abort or a failure
leaves the project untouched.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from cloudapk.build.config import BuildConfig
from cloudapk.core.errors import ManifestNotFound, MarkupNotFound
from cloudapk.core.utils import log
from cloudapk.project import injector, manifest as manifest_editor, plugins
from cloudapk.project.decisions import Decision, DecisionProvider
from cloudapk.project.injector import InjectionOptions
from cloudapk.project.manifest import IconCheck, Manifest


@dataclass
class PreprocessResult:
    """What the pre-build pass did (or would do, in dry-run)."""

    build_type: str
    previous_id: Optional[str] = None
    identity_corrected: bool = False
    icons: list[IconCheck] = field(default_factory=list)
    added_plugins: list[str] = field(default_factory=list)
    injection: InjectionOptions = field(default_factory=InjectionOptions)
    skipped_manifest: bool = False
    aborted: bool = False
    written: bool = False

    @property
    def missing_icons(self) -> list[str]:
        return [check.path for check in self.icons if not check.exists]


def _load_manifest(config: BuildConfig) -> Optional[Manifest]:
    try:
        return manifest_editor.load(config.manifest_path)
    except ManifestNotFound:
        if config.missing_manifest == "skip":
            log.warning(f"{config.manifest_path.name} not found, skipping manifest preprocessing")
            return None
        raise


def _apply_manifest(
    config: BuildConfig,
    doc: Manifest,
    decide: DecisionProvider,
    result: PreprocessResult,
) -> bool:
    """Mutate the manifest in memory. Returns False if the operator aborted."""
    app_id = config.settings.app_id
    previous = manifest_editor.set_identity(doc, app_id)
    if previous is not None:
        result.previous_id = previous
        result.identity_corrected = True
        log.info(f"App id corrected: {previous or '(unset)'} -> {app_id}")
    else:
        log.dim(f"App id: {app_id}")

    icon_paths = manifest_editor.collect_icon_paths(doc)
    result.icons = manifest_editor.verify_icons(
        icon_paths, lambda p: (config.project_root / p).exists()
    )
    if result.missing_icons:
        for path in result.missing_icons:
            log.error(f"Missing icon: {path}")
        if not decide(Decision.CONTINUE_WITH_MISSING_ICONS):
            result.aborted = True
            return False
        log.warning(f"Continuing with {len(result.missing_icons)} missing icon(s)")
    elif icon_paths:
        log.success(f"All {len(icon_paths)} icon(s) present")

    signatures = plugins.load_signatures(config.signatures_path)
    detected = plugins.detect(plugins.scan_sources(config.www_dir), signatures)
    # Stable order: signature table order
    required = [p for p in dict.fromkeys(signatures.values()) if p in detected]
    result.added_plugins = manifest_editor.merge_plugins(doc, required)
    for name in result.added_plugins:
        log.info(f"Plugin declared: {name}")
    return True


def preprocess(
    config: BuildConfig,
    decide: DecisionProvider,
    build_type: str,
    write: bool = True,
) -> PreprocessResult:
    """Run the pre-build pass.

    Args:
        config: Run configuration.
        decide: Decision provider for the operator questions.
        build_type: "debug" or "release"; gates the debug-console question.
        write: When False nothing is written (dry-run).

    Raises:
        ManifestNotFound: If config.xml is absent under the "fail" policy.
        MarkupNotFound: If www/index.html is absent.
        InjectionTargetMissing: If index.html has no </head>.
    """
    log.header(f"Preprocessing project [{build_type}]")
    result = PreprocessResult(build_type=build_type)

    doc = _load_manifest(config)
    if doc is None:
        result.skipped_manifest = True
    elif not _apply_manifest(config, doc, decide, result):
        log.warning("Aborted by operator, nothing written")
        return result

    if not config.index_path.exists():
        raise MarkupNotFound(config.index_path)

    debug = build_type == "debug" and bool(decide(Decision.ENABLE_DEBUG_CONSOLE))
    safe_area = bool(decide(Decision.KEEP_SAFE_AREA))
    result.injection = InjectionOptions(debug=debug, safe_area=safe_area)

    with open(config.index_path, "r", encoding="utf-8", newline="") as f:
        markup = f.read()
    new_markup = injector.inject(markup, result.injection)

    if not write:
        log.info("[DRY-RUN] Would write config.xml and www/index.html")
        return result

    if doc is not None:
        manifest_editor.save(doc, config.manifest_path)
    if new_markup != markup:
        with open(config.index_path, "w", encoding="utf-8", newline="") as f:
            f.write(new_markup)
    result.written = True

    features = [name for name, on in (("vConsole", debug), ("safe-area", safe_area)) if on]
    log.success(f"Injected: {', '.join(features) if features else 'nothing'}")
    return result
