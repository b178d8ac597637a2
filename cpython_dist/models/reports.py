"""Run reports — what a plan found and what a run did."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from cpython_dist.models.stages import StageState


class VersionPlan(BaseModel):
    """Required, published and missing versions for one release."""

    model_config = ConfigDict(frozen=True)

    required: frozenset[str]
    published: frozenset[str]
    missing: frozenset[str]

    @property
    def satisfied(self) -> bool:
        """True when every required version is already published."""
        return not self.missing

    @property
    def already_present(self) -> list[str]:
        return sorted(self.required & self.published)


class RunReport(BaseModel):
    """Outcome of a completed distribution run."""

    model_config = ConfigDict(frozen=True)

    plan: VersionPlan
    image_built: bool = False
    compiled_versions: list[str] = []
    uploaded_assets: list[str] = []
    stage_states: dict[str, StageState] = {}
    skip_reasons: dict[str, str] = {}
