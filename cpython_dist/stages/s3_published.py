"""Stage 3 — Published Versions.

Looks up the distribution release by tag and infers which versions are
already published from its asset names.  Independent of the source fetch.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from typing import Any

from cpython_dist.bridge.github_releases import ReleaseClient
from cpython_dist.core.cancellation import CancellationToken
from cpython_dist.models.release import ReleaseRef
from cpython_dist.stages.base import BaseStage

logger = logging.getLogger(__name__)

PUBLISHED_ASSET_RE = re.compile(
    r"(?<![0-9A-Za-z])python_([0-9]+\.[0-9]+\.[0-9]+)_linux_arm64(?![0-9A-Za-z])"
)


def extract_published_version(asset_name: str) -> str | None:
    """Return the version an asset name publishes, or ``None``."""
    match = PUBLISHED_ASSET_RE.search(asset_name)
    return match.group(1) if match else None


def versions_from_asset_names(names: Iterable[str]) -> frozenset[str]:
    versions = set()
    for name in names:
        version = extract_published_version(name)
        if version is None:
            logger.debug("Ignoring asset %s", name)
            continue
        versions.add(version)
    return frozenset(versions)


def list_published_versions(
    client: ReleaseClient,
    ref: ReleaseRef,
    token: CancellationToken | None = None,
) -> frozenset[str]:
    """Versions already attached to the release *ref*.

    Raises ``APIError`` when the release cannot be fetched.
    """
    release = client.get_release_by_tag(ref, token=token)
    return versions_from_asset_names(release.asset_names)


class PublishedVersionsStage(BaseStage):
    """Stage 3: Published Versions — list what the release already has."""

    @property
    def stage_id(self) -> str:
        return "s3_published"

    @property
    def display_name(self) -> str:
        return "Published Versions"

    def execute(self, run_context: dict[str, Any]) -> dict[str, Any]:
        settings = run_context["settings"]
        versions = list_published_versions(
            run_context["release_client"],
            settings.release_ref,
            run_context.get("token"),
        )
        run_context["published_versions"] = versions
        return {
            "release": str(settings.release_ref),
            "published_versions": sorted(versions),
        }
