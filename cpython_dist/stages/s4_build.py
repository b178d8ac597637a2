"""Stage 4 — Build & Compile.

Two phases:
    1. Build the compilation image from the extracted buildpack source.
    2. Run the image once per missing version.  Every run mounts the same
       host output directory, so artifacts from all versions accumulate
       there for Stage 5.

The first non-zero exit aborts the stage; nothing is retried.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from cpython_dist.config import DistSettings
from cpython_dist.core.cancellation import CancellationToken
from cpython_dist.core.errors import BuildToolError
from cpython_dist.core.process import ProcessRunner
from cpython_dist.stages.base import BaseStage

logger = logging.getLogger(__name__)

BUILD_ENV = {"BUILDKIT_PROGRESS": "plain"}


def compute_missing(
    required: Iterable[str], published: Iterable[str]
) -> frozenset[str]:
    """Versions that are required but not yet published."""
    return frozenset(required) - frozenset(published)


def build_image_args(source_dir: Path, settings: DistSettings) -> list[str]:
    return [
        "build",
        str(source_dir / settings.build_context),
        "-t",
        settings.builder_image,
        "-f",
        str(source_dir / settings.dockerfile),
    ]


def compile_args(version: str, output_dir: Path, settings: DistSettings) -> list[str]:
    return [
        "run",
        f"-v{output_dir}:{settings.container_output_dir}",
        settings.builder_image,
        "--version",
        version,
        "--outputDir",
        settings.container_output_dir,
        "--target",
        settings.target,
    ]


def build_image(
    source_dir: Path,
    settings: DistSettings,
    runner: ProcessRunner,
    token: CancellationToken | None = None,
) -> str:
    """Build the compilation image and return its tag."""
    args = build_image_args(source_dir, settings)
    logger.info("Building image %s", settings.builder_image)
    returncode = runner.run(settings.container_tool, args, env=BUILD_ENV, token=token)
    if returncode != 0:
        raise BuildToolError(
            f"cannot build builder image: {settings.container_tool} build "
            f"exited with {returncode}",
            command=[settings.container_tool, *args],
            returncode=returncode,
        )
    return settings.builder_image


def compile_versions(
    versions: Iterable[str],
    output_dir: Path,
    settings: DistSettings,
    runner: ProcessRunner,
    token: CancellationToken | None = None,
) -> list[str]:
    """Run the compilation image once per version, serially.

    Returns the versions compiled, in the order they ran.
    """
    compiled: list[str] = []
    for version in sorted(versions):
        if token is not None:
            token.raise_if_cancelled()
        args = compile_args(version, output_dir, settings)
        logger.info("Compiling Python %s for %s", version, settings.target)
        returncode = runner.run(
            settings.container_tool, args, env=BUILD_ENV, token=token
        )
        if returncode != 0:
            raise BuildToolError(
                f"cannot build cpython {version}: {settings.container_tool} run "
                f"exited with {returncode}",
                command=[settings.container_tool, *args],
                returncode=returncode,
            )
        compiled.append(version)
    return compiled


class BuildCompileStage(BaseStage):
    """Stage 4: Build & Compile — image build, then one run per version."""

    prerequisites = ("s1_fetch", "s2_versions", "s3_published")

    @property
    def stage_id(self) -> str:
        return "s4_build"

    @property
    def display_name(self) -> str:
        return "Build & Compile"

    def execute(self, run_context: dict[str, Any]) -> dict[str, Any]:
        """Reads ``source_dir`` and ``missing_versions``; sets ``output_dir``."""
        settings: DistSettings = run_context["settings"]
        runner: ProcessRunner = run_context["runner"]
        token: CancellationToken | None = run_context.get("token")
        missing: frozenset[str] = run_context["missing_versions"]

        image = build_image(run_context["source_dir"], settings, runner, token)

        output_dir = run_context["workspace"].create("cpython-dist-out-")
        run_context["output_dir"] = output_dir
        compiled = compile_versions(missing, output_dir, settings, runner, token)

        return {
            "image": image,
            "output_dir": str(output_dir),
            "compiled_versions": compiled,
        }
