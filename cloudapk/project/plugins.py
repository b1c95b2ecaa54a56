"""
Plugin detection from web asset sources.

Maps literal API-usage tokens found in ``www/`` to the Cordova plugins
that provide them. Matching is plain substring presence.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Iterable, Mapping, Optional

import yaml

from cloudapk.core.errors import ConfigurationError

SIGNATURES_PATH = Path(__file__).resolve().parent.parent / "data" / "plugin_signatures.yaml"

SOURCE_PATTERNS = ("*.js", "*.html")


# =============================================================================
# Signature Loading
# =============================================================================


def _parse_signatures(path: Path) -> dict[str, str]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Could not read plugin signatures from {path}: {e}") from e

    signatures = (data or {}).get("signatures") if isinstance(data, dict) else None
    if not isinstance(signatures, dict):
        raise ConfigurationError(f"{path}: expected a 'signatures' mapping of token -> plugin")

    for token, plugin in signatures.items():
        if not isinstance(token, str) or not isinstance(plugin, str) or not token or not plugin:
            raise ConfigurationError(f"{path}: invalid signature entry {token!r}: {plugin!r}")
    return dict(signatures)


@lru_cache(maxsize=1)
def _bundled_signatures() -> dict[str, str]:
    return _parse_signatures(SIGNATURES_PATH)


def load_signatures(path: Optional[Path] = None) -> dict[str, str]:
    """Load the token -> plugin map.

    The bundled table is cached for the lifetime of the process; a project
    override at ``path`` is read fresh.
    """
    if path is None:
        return dict(_bundled_signatures())
    return _parse_signatures(path)


# =============================================================================
# Source Scanning
# =============================================================================


def iter_source_files(www_dir: Path, patterns: Iterable[str] = SOURCE_PATTERNS) -> list[Path]:
    """Files under ``www_dir`` matching any pattern, recursively, sorted."""
    if not www_dir.is_dir():
        return []
    found: set[Path] = set()
    for pattern in patterns:
        found.update(p for p in www_dir.rglob(pattern) if p.is_file())
    return sorted(found)


def scan_sources(www_dir: Path, patterns: Iterable[str] = SOURCE_PATTERNS) -> str:
    """Concatenate the text of every scanned source file."""
    return "\n".join(
        path.read_text(encoding="utf-8", errors="replace")
        for path in iter_source_files(www_dir, patterns)
    )


def detect(source_text: str, signatures: Mapping[str, str]) -> set[str]:
    """Return the plugin ids whose signature token appears in ``source_text``."""
    return {plugin for token, plugin in signatures.items() if token in source_text}
