"""Pipeline stages — registry mapping stage_id to stage class.

Usage::

    from cpython_dist.stages import STAGE_REGISTRY, get_stage

    stage = get_stage("s3_published")
    result = stage.run_stage(run_context)
"""

from __future__ import annotations

from cpython_dist.stages.base import BaseStage, StageExecutionError, StagePrerequisiteError
from cpython_dist.stages.s1_fetch import SourceFetchStage
from cpython_dist.stages.s2_versions import RequiredVersionsStage
from cpython_dist.stages.s3_published import PublishedVersionsStage
from cpython_dist.stages.s4_build import BuildCompileStage
from cpython_dist.stages.s5_publish import PublishArtifactsStage

STAGE_REGISTRY: dict[str, type[BaseStage]] = {
    "s1_fetch": SourceFetchStage,
    "s2_versions": RequiredVersionsStage,
    "s3_published": PublishedVersionsStage,
    "s4_build": BuildCompileStage,
    "s5_publish": PublishArtifactsStage,
}

STAGE_ORDER: list[str] = list(STAGE_REGISTRY)


def get_stage(stage_id: str) -> BaseStage:
    """Instantiate the stage registered under *stage_id*."""
    try:
        return STAGE_REGISTRY[stage_id]()
    except KeyError:
        raise KeyError(
            f"Unknown stage_id {stage_id!r}. Valid IDs: {', '.join(STAGE_ORDER)}"
        ) from None


__all__ = [
    "BaseStage",
    "StageExecutionError",
    "StagePrerequisiteError",
    "SourceFetchStage",
    "RequiredVersionsStage",
    "PublishedVersionsStage",
    "BuildCompileStage",
    "PublishArtifactsStage",
    "STAGE_REGISTRY",
    "STAGE_ORDER",
    "get_stage",
]
