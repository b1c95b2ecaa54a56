"""
Idempotent injection of optional runtime snippets into index.html.

The injected region is delimited by two comment markers and always sits
immediately before ``</head>``. Re-running with any options first removes
the previous region, so the result depends only on the options given.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from cloudapk.core.errors import InjectionTargetMissing

START_MARKER = "<!-- INJECT_START -->"
END_MARKER = "<!-- INJECT_END -->"

DEBUG_SNIPPET = (
    '<script src="https://cdn.jsdelivr.net/npm/vconsole@latest/dist/vconsole.min.js"></script>\n'
    "<script>new VConsole();</script>\n"
)
SAFE_AREA_SNIPPET = (
    "<style>body{padding: env(safe-area-inset-top) env(safe-area-inset-right) "
    "env(safe-area-inset-bottom) env(safe-area-inset-left);}</style>\n"
)

# The block plus the single newline written after it
_BLOCK_RE = re.compile(
    re.escape(START_MARKER) + r".*?" + re.escape(END_MARKER) + r"(?:\r?\n)?",
    re.DOTALL,
)
_HEAD_CLOSE_RE = re.compile(r"</head\s*>", re.IGNORECASE)


@dataclass(frozen=True)
class InjectionOptions:
    """Which snippets the injection block carries."""

    debug: bool = False
    safe_area: bool = False


def strip_injection(markup: str) -> str:
    """Remove every injection block, wherever it occurs."""
    return _BLOCK_RE.sub("", markup)


def build_block(options: InjectionOptions, newline: str = "\n") -> str:
    """Render the delimited block for ``options`` (snippets in fixed order)."""
    block = START_MARKER + "\n"
    if options.debug:
        block += DEBUG_SNIPPET
    if options.safe_area:
        block += SAFE_AREA_SNIPPET
    return (block + END_MARKER).replace("\n", newline)


def inject(markup: str, options: InjectionOptions) -> str:
    """Replace any existing injection block with one built from ``options``.

    The block uses the document's line endings (CRLF if it has any).

    Raises:
        InjectionTargetMissing: If the markup has no ``</head>``.
    """
    newline = "\r\n" if "\r\n" in markup else "\n"
    cleaned = strip_injection(markup)
    match = _HEAD_CLOSE_RE.search(cleaned)
    if match is None:
        raise InjectionTargetMissing()

    at = match.start()
    return cleaned[:at] + build_block(options, newline) + newline + cleaned[at:]


def injected_features(markup: str) -> InjectionOptions:
    """Report which snippets the document's injection block currently holds."""
    match = _BLOCK_RE.search(markup)
    if match is None:
        return InjectionOptions()
    block = match.group(0)
    return InjectionOptions(
        debug="new VConsole()" in block,
        safe_area="safe-area-inset-top" in block,
    )
