"""Stage 5 — Publish Artifacts.

Walks the shared output directory, picks out artifact files by suffix,
renames each for upload and attaches it to the distribution release.

Naming rules (applied in order):
    * ``_x64_`` becomes ``_<arch_marker>_`` (``_arm64_`` by default).
    * Every ``_`` + exactly eight hex characters segment is dropped.

So ``python_3.10.9_linux_x64_a1b2c3d4.tgz`` is uploaded as
``python_3.10.9_linux_arm64.tgz``.
"""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Any

from rich.console import Console

from cpython_dist.bridge.github_releases import ReleaseClient
from cpython_dist.core.cancellation import CancellationToken
from cpython_dist.core.errors import FilesystemWalkError
from cpython_dist.models.artifacts import ArtifactFile, ArtifactKind
from cpython_dist.models.release import ReleaseAsset, ReleaseRef
from cpython_dist.stages.base import BaseStage

logger = logging.getLogger(__name__)

ARCHIVE_SUFFIX = ".tgz"
CHECKSUM_SUFFIX = ".checksum"
# Underscores are matched as lookarounds so adjacent infixes share them.
SOURCE_ARCH_RE = re.compile(r"(?<=_)x64(?=_)")
HASH_SEGMENT_RE = re.compile(r"_[0-9A-Fa-f]{8}(?![0-9A-Za-z])")

MEDIA_TYPES: dict[ArtifactKind, str] = {
    ArtifactKind.ARCHIVE: "application/tgz",
    ArtifactKind.CHECKSUM: "text/plain",
    ArtifactKind.OTHER: "application/octet-stream",
}


# ---------------------------------------------------------------------------
# Pure naming helpers
# ---------------------------------------------------------------------------


def sanitize_asset_name(name: str, arch_marker: str = "arm64") -> str:
    """Upload name for a build output file name."""
    name = SOURCE_ARCH_RE.sub(lambda _: arch_marker, name)
    return HASH_SEGMENT_RE.sub("", name)


def classify_artifact(name: str) -> ArtifactKind:
    if name.endswith(CHECKSUM_SUFFIX):
        return ArtifactKind.CHECKSUM
    if name.endswith(ARCHIVE_SUFFIX):
        return ArtifactKind.ARCHIVE
    return ArtifactKind.OTHER


def classify_media_type(name: str) -> str:
    """Media type for a file name; ``application/octet-stream`` if unknown."""
    return MEDIA_TYPES[classify_artifact(name)]


# ---------------------------------------------------------------------------
# Walk & upload
# ---------------------------------------------------------------------------


def _raise_walk_error(exc: OSError) -> None:
    raise FilesystemWalkError(f"cannot walk {exc.filename}: {exc.strerror or exc}") from exc


def iter_artifacts(
    output_dir: Path,
    *,
    include_checksums: bool = False,
    arch_marker: str = "arm64",
    token: CancellationToken | None = None,
) -> Iterator[ArtifactFile]:
    """Yield the uploadable files under *output_dir*, depth-first, sorted.

    Archives are always included; checksum files only with
    *include_checksums*.  Raises ``FilesystemWalkError`` if any directory
    cannot be read.
    """
    wanted = {ArtifactKind.ARCHIVE}
    if include_checksums:
        wanted.add(ArtifactKind.CHECKSUM)

    for dirpath, dirnames, filenames in os.walk(output_dir, onerror=_raise_walk_error):
        dirnames.sort()
        for filename in sorted(filenames):
            if token is not None:
                token.raise_if_cancelled()
            path = Path(dirpath) / filename
            kind = classify_artifact(filename)
            if kind not in wanted or not path.is_file():
                continue
            yield ArtifactFile(
                path=path,
                upload_name=sanitize_asset_name(filename, arch_marker),
                media_type=MEDIA_TYPES[kind],
                kind=kind,
            )


def publish_artifacts(
    artifacts: Iterable[ArtifactFile],
    client: ReleaseClient,
    ref: ReleaseRef,
    *,
    token: CancellationToken | None = None,
    console: Console | None = None,
) -> list[ReleaseAsset]:
    """Upload every artifact to the release *ref*; the first failure aborts."""
    console = console or Console()
    release = client.get_release_by_tag(ref, token=token)

    uploaded: list[ReleaseAsset] = []
    for artifact in artifacts:
        console.print(f"will upload: {artifact.path} as {artifact.upload_name}")
        asset = client.upload_release_asset(
            ref,
            release.id,
            artifact.path,
            name=artifact.upload_name,
            media_type=artifact.media_type,
            token=token,
        )
        logger.info("Uploaded %s (asset id %d)", asset.name, asset.id)
        uploaded.append(asset)
    return uploaded


class PublishArtifactsStage(BaseStage):
    """Stage 5: Publish Artifacts — upload compiled archives."""

    prerequisites = ("s4_build",)

    @property
    def stage_id(self) -> str:
        return "s5_publish"

    @property
    def display_name(self) -> str:
        return "Publish Artifacts"

    def execute(self, run_context: dict[str, Any]) -> dict[str, Any]:
        settings = run_context["settings"]
        token: CancellationToken | None = run_context.get("token")

        artifacts = iter_artifacts(
            run_context["output_dir"],
            include_checksums=settings.upload_checksums,
            arch_marker=settings.arch_marker,
            token=token,
        )
        uploaded = publish_artifacts(
            artifacts,
            run_context["release_client"],
            settings.release_ref,
            token=token,
            console=run_context.get("console"),
        )
        return {
            "release": str(settings.release_ref),
            "uploaded_assets": [asset.name for asset in uploaded],
        }
