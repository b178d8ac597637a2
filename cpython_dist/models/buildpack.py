"""Typed schema for the parts of ``buildpack.toml`` the pipeline reads.

Only ``metadata.dependencies[].version`` is consumed.  Every other key in the
descriptor is ignored, so upstream additions never break decoding.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class BuildpackDependency(BaseModel):
    """One ``[[metadata.dependencies]]`` entry."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    version: str = Field(min_length=1)
    id: str | None = None
    stacks: list[str] = []


class BuildpackMetadata(BaseModel):
    """The ``[metadata]`` table."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    dependencies: list[BuildpackDependency] = []


class BuildpackDescriptor(BaseModel):
    """Top level of ``buildpack.toml``."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    metadata: BuildpackMetadata

    def versions(self) -> frozenset[str]:
        """Distinct dependency versions; duplicates collapse."""
        return frozenset(dep.version for dep in self.metadata.dependencies)
