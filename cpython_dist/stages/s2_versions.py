"""Stage 2 — Required Versions.

Decodes ``buildpack.toml`` from the extracted source into the typed
``BuildpackDescriptor`` schema and collects the distinct dependency versions.
"""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from cpython_dist.core.errors import ConfigNotFoundError, ConfigParseError
from cpython_dist.models.buildpack import BuildpackDescriptor
from cpython_dist.stages.base import BaseStage

logger = logging.getLogger(__name__)


def load_descriptor(path: Path) -> BuildpackDescriptor:
    """Read and validate a buildpack descriptor."""
    try:
        raw = path.read_bytes()
    except FileNotFoundError as exc:
        raise ConfigNotFoundError(f"cannot open {path.name}: {path} does not exist") from exc

    try:
        data = tomllib.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, tomllib.TOMLDecodeError) as exc:
        raise ConfigParseError(f"cannot decode {path.name}: {exc}") from exc

    try:
        return BuildpackDescriptor.model_validate(data)
    except ValidationError as exc:
        raise ConfigParseError(f"cannot decode {path.name}: {exc}") from exc


def read_required_versions(
    source_dir: Path, descriptor_name: str = "buildpack.toml"
) -> frozenset[str]:
    """Return the set of versions declared in ``metadata.dependencies``."""
    descriptor = load_descriptor(source_dir / descriptor_name)
    versions = descriptor.versions()
    logger.info(
        "%s declares %d dependencies, %d distinct versions",
        descriptor_name,
        len(descriptor.metadata.dependencies),
        len(versions),
    )
    return versions


class RequiredVersionsStage(BaseStage):
    """Stage 2: Required Versions — read the declared version set."""

    prerequisites = ("s1_fetch",)

    @property
    def stage_id(self) -> str:
        return "s2_versions"

    @property
    def display_name(self) -> str:
        return "Required Versions"

    def execute(self, run_context: dict[str, Any]) -> dict[str, Any]:
        settings = run_context["settings"]
        versions = read_required_versions(
            run_context["source_dir"], settings.descriptor_name
        )
        run_context["required_versions"] = versions
        return {"required_versions": sorted(versions)}
