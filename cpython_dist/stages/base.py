"""Abstract base stage with enforced lifecycle.

Every concrete stage inherits from BaseStage and implements only ``execute()``.
The ``run_stage()`` wrapper is **not overridable** — it enforces the canonical
lifecycle ordering:

    check_cancelled -> validate_prerequisites -> execute -> record

Any failure inside ``execute()`` is wrapped in a ``StageExecutionError`` that
names the stage, with the original error chained as ``__cause__``.
"""

from __future__ import annotations

import abc
import logging
import time
from typing import Any, final

from cpython_dist.core.cancellation import CancellationToken
from cpython_dist.core.errors import DistError
from cpython_dist.models.stages import StageState

logger = logging.getLogger(__name__)


class StagePrerequisiteError(DistError):
    """Raised when a stage's prerequisites are not satisfied."""


class StageExecutionError(DistError):
    """Raised when a stage's execute() method fails."""

    def __init__(self, stage_id: str, message: str) -> None:
        super().__init__(message)
        self.stage_id = stage_id

    @property
    def cause(self) -> BaseException | None:
        """The error raised inside the stage."""
        return self.__cause__


class BaseStage(abc.ABC):
    """Abstract base for all pipeline stages.

    Subclasses **must** implement:
        * ``stage_id``   — unique identifier (e.g. ``"s1_fetch"``).
        * ``display_name`` — human-readable name used in logs and summaries.
        * ``execute(run_context)`` — the stage's core logic.

    Subclasses **may** set ``prerequisites`` — ``stage_id`` strings that must
    be PASSED before this stage can run.

    Subclasses **must not** override ``run_stage()``.
    """

    prerequisites: tuple[str, ...] = ()

    # ------------------------------------------------------------------
    # Abstract interface, implemented by subclasses
    # ------------------------------------------------------------------

    @property
    @abc.abstractmethod
    def stage_id(self) -> str:
        """Unique stage identifier (e.g. ``'s1_fetch'``)."""
        ...

    @property
    @abc.abstractmethod
    def display_name(self) -> str:
        """Human-readable display name."""
        ...

    @abc.abstractmethod
    def execute(self, run_context: dict[str, Any]) -> dict[str, Any]:
        """Execute the stage's core logic.

        Parameters
        ----------
        run_context:
            Mutable dict carrying run-wide state: ``settings``, ``token``,
            ``runner``, ``release_client``, ``workspace`` and prior stage
            results under ``stage_results``.

        Returns
        -------
        dict:
            Structured result dict appropriate to the stage's purpose.
        """
        ...

    # ------------------------------------------------------------------
    # Lifecycle (not overridable)
    # ------------------------------------------------------------------

    @final
    def run_stage(self, run_context: dict[str, Any]) -> dict[str, Any]:
        """Execute the full stage lifecycle.  **Do not override.**

        Returns the result dict produced by ``execute()``, augmented with an
        ``_elapsed_seconds`` key.
        """
        states: dict[str, StageState] = run_context.setdefault("stage_states", {})

        token: CancellationToken | None = run_context.get("token")
        if token is not None:
            token.raise_if_cancelled()
        self.validate_prerequisites(run_context)

        states[self.stage_id] = StageState.RUNNING
        logger.info("%s [%s] started", self.display_name, self.stage_id)
        started = time.monotonic()

        try:
            result = self.execute(run_context)
        except Exception as exc:
            states[self.stage_id] = StageState.FAILED
            logger.error(
                "%s [%s] execution failed: %s",
                self.display_name,
                self.stage_id,
                exc,
            )
            raise StageExecutionError(
                self.stage_id, f"{self.display_name} failed: {exc}"
            ) from exc

        result["_elapsed_seconds"] = round(time.monotonic() - started, 3)
        self._record(run_context, result)
        return result

    @final
    def validate_prerequisites(self, run_context: dict[str, Any]) -> None:
        """Ensure all prerequisite stages are PASSED.

        Raises ``StagePrerequisiteError`` if any prerequisite is not met.
        """
        stage_states: dict[str, StageState] = run_context.get("stage_states", {})

        blocking: list[str] = []
        for prereq_id in self.prerequisites:
            state = stage_states.get(prereq_id, StageState.NOT_STARTED)
            if state is not StageState.PASSED:
                blocking.append(f"{prereq_id} is {state.value}")

        if blocking:
            raise StagePrerequisiteError(
                f"Cannot run {self.stage_id}: prerequisites not met — "
                + "; ".join(blocking)
            )

    @final
    def skip(self, run_context: dict[str, Any], reason: str) -> None:
        """Mark this stage SKIPPED without running it."""
        run_context.setdefault("stage_states", {})[self.stage_id] = StageState.SKIPPED
        run_context.setdefault("skip_reasons", {})[self.stage_id] = reason
        logger.info("%s [%s] skipped: %s", self.display_name, self.stage_id, reason)

    @final
    def _record(self, run_context: dict[str, Any], result: dict[str, Any]) -> None:
        """Store stage results into the run_context for downstream stages."""
        run_context.setdefault("stage_results", {})[self.stage_id] = result
        run_context["stage_states"][self.stage_id] = StageState.PASSED
        logger.info(
            "%s [%s] passed in %.1fs",
            self.display_name,
            self.stage_id,
            result["_elapsed_seconds"],
        )

    # ------------------------------------------------------------------
    # Repr
    # ------------------------------------------------------------------

    def __repr__(self) -> str:
        return f"<{type(self).__name__} stage_id={self.stage_id!r}>"
