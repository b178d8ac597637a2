"""Stage state models for a distribution run."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class StageState(str, Enum):
    """Final state of each pipeline stage within one run."""

    NOT_STARTED = "not_started"
    RUNNING = "running"
    PASSED = "passed"
    SKIPPED = "skipped"
    FAILED = "failed"


class StageDefinition(BaseModel):
    """Defines a pipeline stage and the stages whose output it consumes."""

    model_config = ConfigDict(frozen=True)

    stage_id: str
    display_name: str
    ordinal: int
    prerequisites: list[str] = []


# The distribution pipeline, in execution order.  The published-version
# lister has no prerequisite: it does not need the extracted source.
DEFAULT_STAGE_DEFINITIONS: list[StageDefinition] = [
    StageDefinition(
        stage_id="s1_fetch",
        display_name="Source Fetch",
        ordinal=1,
    ),
    StageDefinition(
        stage_id="s2_versions",
        display_name="Required Versions",
        ordinal=2,
        prerequisites=["s1_fetch"],
    ),
    StageDefinition(
        stage_id="s3_published",
        display_name="Published Versions",
        ordinal=3,
    ),
    StageDefinition(
        stage_id="s4_build",
        display_name="Build & Compile",
        ordinal=4,
        prerequisites=["s1_fetch", "s2_versions", "s3_published"],
    ),
    StageDefinition(
        stage_id="s5_publish",
        display_name="Publish Artifacts",
        ordinal=5,
        prerequisites=["s4_build"],
    ),
]
