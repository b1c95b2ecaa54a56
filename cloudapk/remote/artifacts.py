"""
Artifact retrieval for a completed run.

Select the artifact by exact name, download it into a scoped temporary
directory, and extract it into the destination.
"""

from __future__ import annotations

import tempfile
import zipfile
from pathlib import Path
from typing import Protocol

from cloudapk.core.errors import ArtifactExtractError, ArtifactNotFound
from cloudapk.remote.client import Artifact


class ArtifactSource(Protocol):
    def list_artifacts(self, run_id: int) -> list[Artifact]: ...

    def download(self, url: str, dest: Path) -> int: ...


def resolve(client: ArtifactSource, run_id: int, target_name: str) -> Artifact:
    """Return the first artifact of ``run_id`` named exactly ``target_name``.

    Raises:
        ArtifactNotFound: If no artifact has that name.
    """
    artifacts = client.list_artifacts(run_id)
    for artifact in artifacts:
        if artifact.name == target_name:
            return artifact
    raise ArtifactNotFound(target_name, run_id, [a.name for a in artifacts])


def extract_archive(archive: Path, destination_dir: Path) -> list[Path]:
    """Extract a zip archive into ``destination_dir``. Returns extracted files."""
    destination_dir.mkdir(parents=True, exist_ok=True)
    try:
        with zipfile.ZipFile(archive) as zf:
            members = [info for info in zf.infolist() if not info.is_dir()]
            return [Path(zf.extract(info, destination_dir)) for info in members]
    except (zipfile.BadZipFile, OSError) as e:
        raise ArtifactExtractError(f"Could not extract {archive.name}: {e}") from e


def fetch_and_extract(client: ArtifactSource, artifact: Artifact, destination_dir: Path) -> list[Path]:
    """Download ``artifact`` and extract it into ``destination_dir``.

    The temporary archive is removed whether or not extraction succeeds.
    Partially extracted files are left in place.
    """
    with tempfile.TemporaryDirectory(prefix="cloudapk-") as tmp:
        archive = Path(tmp) / f"{artifact.name}.zip"
        client.download(artifact.archive_download_url, archive)
        return extract_archive(archive, destination_dir)
