"""Bridges to external services."""

from cpython_dist.bridge.github_releases import (
    GitHubReleaseClient,
    ReleaseClient,
    build_session,
)

__all__ = ["GitHubReleaseClient", "ReleaseClient", "build_session"]
