"""Tests for the stage lifecycle and the stage registry."""

from __future__ import annotations

from typing import Any

import pytest

from cpython_dist.core.errors import ConfigParseError, OperationCancelledError
from cpython_dist.models.stages import DEFAULT_STAGE_DEFINITIONS, StageState
from cpython_dist.stages import (
    STAGE_ORDER,
    STAGE_REGISTRY,
    BaseStage,
    StageExecutionError,
    StagePrerequisiteError,
    get_stage,
)


class _EchoStage(BaseStage):
    prerequisites = ("s1_fetch",)

    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.calls = 0

    @property
    def stage_id(self) -> str:
        return "s2_versions"

    @property
    def display_name(self) -> str:
        return "Required Versions"

    def execute(self, run_context: dict[str, Any]) -> dict[str, Any]:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return {"versions": ["3.10.9"]}


def _context(**states: StageState) -> dict[str, Any]:
    return {"stage_states": dict(states), "stage_results": {}}


class TestRunStage:
    def test_success_records_result(self):
        ctx = _context(s1_fetch=StageState.PASSED)
        result = _EchoStage().run_stage(ctx)

        assert result["versions"] == ["3.10.9"]
        assert "_elapsed_seconds" in result
        assert ctx["stage_states"]["s2_versions"] is StageState.PASSED
        assert ctx["stage_results"]["s2_versions"] is result

    def test_failure_wrapped_with_display_name(self):
        ctx = _context(s1_fetch=StageState.PASSED)
        cause = ConfigParseError("cannot decode buildpack.toml")

        with pytest.raises(StageExecutionError) as excinfo:
            _EchoStage(cause).run_stage(ctx)

        assert str(excinfo.value) == "Required Versions failed: cannot decode buildpack.toml"
        assert excinfo.value.stage_id == "s2_versions"
        assert excinfo.value.cause is cause
        assert ctx["stage_states"]["s2_versions"] is StageState.FAILED

    def test_prerequisite_not_passed(self):
        stage = _EchoStage()
        ctx = _context(s1_fetch=StageState.FAILED)

        with pytest.raises(StagePrerequisiteError, match="s1_fetch is failed"):
            stage.run_stage(ctx)
        assert stage.calls == 0

    def test_cancelled_token_stops_before_execute(self, token):
        stage = _EchoStage()
        token.cancel("SIGINT")
        ctx = _context(s1_fetch=StageState.PASSED)
        ctx["token"] = token

        with pytest.raises(OperationCancelledError):
            stage.run_stage(ctx)
        assert stage.calls == 0
        assert "s2_versions" not in ctx["stage_states"]

    def test_skip(self):
        ctx = _context()
        _EchoStage().skip(ctx, "already satisfied")
        assert ctx["stage_states"]["s2_versions"] is StageState.SKIPPED
        assert ctx["skip_reasons"] == {"s2_versions": "already satisfied"}

    def test_repr(self):
        assert repr(_EchoStage()) == "<_EchoStage stage_id='s2_versions'>"


class TestRegistry:
    def test_order_matches_definitions(self):
        assert STAGE_ORDER == [d.stage_id for d in DEFAULT_STAGE_DEFINITIONS]

    @pytest.mark.parametrize("definition", DEFAULT_STAGE_DEFINITIONS, ids=lambda d: d.stage_id)
    def test_stage_matches_definition(self, definition):
        stage = get_stage(definition.stage_id)
        assert isinstance(stage, STAGE_REGISTRY[definition.stage_id])
        assert stage.stage_id == definition.stage_id
        assert stage.display_name == definition.display_name
        assert list(stage.prerequisites) == definition.prerequisites

    def test_unknown_stage(self):
        with pytest.raises(KeyError, match="s9_unknown"):
            get_stage("s9_unknown")
