"""cpython-dist data models — all Pydantic v2, all frozen (immutable)."""

from cpython_dist.models.artifacts import ArtifactFile, ArtifactKind
from cpython_dist.models.buildpack import (
    BuildpackDependency,
    BuildpackDescriptor,
    BuildpackMetadata,
)
from cpython_dist.models.release import Release, ReleaseAsset, ReleaseRef
from cpython_dist.models.reports import RunReport, VersionPlan
from cpython_dist.models.stages import (
    DEFAULT_STAGE_DEFINITIONS,
    StageDefinition,
    StageState,
)

__all__ = [
    # artifacts
    "ArtifactFile",
    "ArtifactKind",
    # buildpack
    "BuildpackDependency",
    "BuildpackDescriptor",
    "BuildpackMetadata",
    # release
    "Release",
    "ReleaseAsset",
    "ReleaseRef",
    # reports
    "RunReport",
    "VersionPlan",
    # stages
    "StageState",
    "StageDefinition",
    "DEFAULT_STAGE_DEFINITIONS",
]
