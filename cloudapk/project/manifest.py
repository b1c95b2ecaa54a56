"""
Manifest editing for Cordova-style config.xml documents.

Loads the manifest losslessly (namespaces, comments, processing
instructions, and the text around the root element preserved), applies
identity and plugin mutations, walks icon declarations, and writes the
document back atomically.
"""

from __future__ import annotations

import codecs
import io
import os
import re
import tempfile
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Iterator, Optional, Sequence

from cloudapk.build.config import LATEST_SPEC
from cloudapk.core.errors import ManifestNotFound, ValidationError

# Element tags (namespace-agnostic local names)
ICON_TAG = "icon"
PLATFORM_TAG = "platform"
PLUGIN_TAG = "plugin"

DEFAULT_INDENT = "\n    "

UTF8_DECLARATION = b"<?xml version='1.0' encoding='utf-8'?>"

_MISC_RE = re.compile(rb"\s+|<!--.*?-->|<\?.*?\?>|<!DOCTYPE[^>]*>", re.DOTALL)
_DECLARATION_RE = re.compile(rb"<\?xml\s.*?\?>", re.DOTALL)
_ENCODING_RE = re.compile(rb'encoding\s*=\s*["\']([A-Za-z0-9._-]+)["\']')


# =============================================================================
# Data Classes
# =============================================================================


@dataclass
class Manifest:
    """A parsed manifest document plus what is needed to write it back."""

    tree: ET.ElementTree
    path: Optional[Path] = None
    prolog: bytes = UTF8_DECLARATION + b"\n"
    epilog: bytes = b"\n"

    @property
    def root(self) -> ET.Element:
        return self.tree.getroot()


@dataclass(frozen=True)
class IconCheck:
    """Existence check result for one icon reference."""

    path: str
    exists: bool


# =============================================================================
# Tag Helpers
# =============================================================================


def local_name(tag) -> str:
    """Strip a ``{namespace}`` prefix from an element tag."""
    if not isinstance(tag, str):
        # Comments and processing instructions carry a factory as their tag
        return ""
    return tag.rsplit("}", 1)[-1]


def _namespace_of(tag: str) -> str:
    if tag.startswith("{"):
        return tag[1:].split("}", 1)[0]
    return ""


def _qualified(root: ET.Element, name: str) -> str:
    """Qualify a local name with the root element's namespace."""
    ns = _namespace_of(root.tag)
    return f"{{{ns}}}{name}" if ns else name


def walk(
    element: ET.Element,
    descend: Optional[Callable[[ET.Element], bool]] = None,
) -> Iterator[ET.Element]:
    """Yield descendants depth-first in document order.

    Args:
        element: Node whose children are visited (the node itself is not yielded).
        descend: Predicate deciding whether a child's subtree is entered.
            Defaults to entering every subtree.
    """
    for child in element:
        yield child
        if descend is None or descend(child):
            yield from walk(child, descend)


# =============================================================================
# Load / Save
# =============================================================================


def _register_namespaces(data: bytes) -> None:
    """Register the document's prefixes so serialization keeps them."""
    for _, (prefix, uri) in ET.iterparse(io.BytesIO(data), events=("start-ns",)):
        try:
            ET.register_namespace(prefix, uri)
        except ValueError:
            # Reserved ns0-style prefixes; ElementTree regenerates these
            continue


def _split_prolog(data: bytes) -> tuple[bytes, bytes]:
    """Split off the bytes before the root element's start tag.

    The prolog is the XML declaration, comments, processing instructions,
    the doctype, and the whitespace between them.
    """
    pos = 3 if data.startswith(codecs.BOM_UTF8) else 0
    while True:
        match = _MISC_RE.match(data, pos)
        if match is None:
            return data[:pos], data[pos:]
        pos = match.end()


def _split_epilog(data: bytes) -> tuple[bytes, bytes]:
    """Split off the comments, PIs, and whitespace after the root element."""
    end = len(data)
    while end:
        stripped = data[:end].rstrip()
        if len(stripped) < end:
            end = len(stripped)
        elif stripped.endswith(b"-->"):
            end = stripped.rfind(b"<!--")
        elif stripped.endswith(b"?>"):
            end = stripped.rfind(b"<?")
        else:
            break
    return data[:end], data[end:]


def _utf8_prolog(prolog: bytes) -> bytes:
    # The body is always written as UTF-8, so a declaration naming another
    # encoding is replaced
    match = _DECLARATION_RE.search(prolog)
    if match is None:
        return prolog
    encoding = _ENCODING_RE.search(match.group(0))
    if encoding is None or encoding.group(1).lower() in (b"utf-8", b"utf8"):
        return prolog
    return prolog[:match.start()] + UTF8_DECLARATION + prolog[match.end():]


def load(path: Path) -> Manifest:
    """Load and parse the manifest at ``path``.

    Raises:
        ManifestNotFound: If the file does not exist.
        ValidationError: If the document is not well-formed XML.
    """
    if not path.exists():
        raise ManifestNotFound(path)

    data = path.read_bytes()
    try:
        _register_namespaces(data)
        parser = ET.XMLParser(target=ET.TreeBuilder(insert_comments=True, insert_pis=True))
        root = ET.fromstring(data, parser=parser)
    except ET.ParseError as e:
        raise ValidationError(f"{path} is not valid XML: {e}") from e

    prolog, rest = _split_prolog(data)
    _, epilog = _split_epilog(rest)
    return Manifest(
        tree=ET.ElementTree(root),
        path=path,
        prolog=_utf8_prolog(prolog),
        epilog=epilog,
    )


def serialize(manifest: Manifest) -> bytes:
    """Render the manifest document as UTF-8 bytes, prolog and epilog included."""
    buffer = io.BytesIO()
    manifest.tree.write(buffer, encoding="utf-8", xml_declaration=False)
    return manifest.prolog + buffer.getvalue() + manifest.epilog


def save(manifest: Manifest, path: Optional[Path] = None) -> Path:
    """Atomically write the manifest to ``path`` (default: where it was loaded)."""
    target = path or manifest.path
    if target is None:
        raise ValueError("No path given and manifest was not loaded from disk")

    data = serialize(manifest)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{target.name}.", dir=target.parent)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.replace(tmp_name, target)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise
    return target


# =============================================================================
# Mutations
# =============================================================================


def set_identity(manifest: Manifest, app_id: str) -> Optional[str]:
    """Overwrite the root identity attribute.

    Returns the previous id when it differed (a correction), else None.
    """
    previous = manifest.root.get("id")
    manifest.root.set("id", app_id)
    if previous != app_id:
        return previous
    return None


def plugin_names(manifest: Manifest) -> list[str]:
    """Names of plugin declarations anywhere in the document, in document order."""
    return [
        element.get("name", "")
        for element in walk(manifest.root)
        if local_name(element.tag) == PLUGIN_TAG
    ]


def merge_plugins(manifest: Manifest, required_names: Iterable[str]) -> list[str]:
    """Append a ``latest`` plugin declaration for every missing name.

    Existing declarations are never reordered or removed. Returns the
    names that were added, in the order given.
    """
    root = manifest.root
    present = set(plugin_names(manifest))
    added: list[str] = []

    for name in required_names:
        if name in present:
            continue
        children = list(root)
        element = ET.Element(_qualified(root, PLUGIN_TAG), {"name": name, "spec": LATEST_SPEC})
        if children:
            last = children[-1]
            element.tail = last.tail
            last.tail = root.text if root.text and root.text.strip() == "" else DEFAULT_INDENT
        else:
            root.text = DEFAULT_INDENT
            element.tail = "\n"
        root.append(element)
        present.add(name)
        added.append(name)

    return added


# =============================================================================
# Icons
# =============================================================================


def collect_icon_paths(
    manifest: Manifest,
    containers: Sequence[str] = (PLATFORM_TAG,),
) -> list[str]:
    """Collect ``src`` of every icon under the root and nested containers.

    Depth-first, document order, duplicates preserved.
    """
    def descend(element: ET.Element) -> bool:
        return local_name(element.tag) in containers

    return [
        element.get("src")
        for element in walk(manifest.root, descend)
        if local_name(element.tag) == ICON_TAG and element.get("src")
    ]


def verify_icons(paths: Iterable[str], exists: Callable[[str], bool]) -> list[IconCheck]:
    """Check each icon path with ``exists``; never raises."""
    return [IconCheck(path=p, exists=bool(exists(p))) for p in paths]
