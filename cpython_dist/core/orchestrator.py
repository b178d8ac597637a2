"""Pipeline orchestrator — the central coordinator for a distribution run.

The Orchestrator wires together the settings, cancellation token, process
runner, release client and run workspace, then drives the five stages in
order:

    s1_fetch -> s2_versions -> s3_published -> (missing?) -> s4_build -> s5_publish

When every required version is already published, the image build and the
upload are skipped unless ``build_when_satisfied`` is set.
"""

from __future__ import annotations

import logging
from typing import Any

import requests
from rich.console import Console

from cpython_dist.bridge.github_releases import (
    USER_AGENT,
    GitHubReleaseClient,
    ReleaseClient,
    build_session,
)
from cpython_dist.config import DistSettings
from cpython_dist.core.cancellation import CancellationToken
from cpython_dist.core.process import ProcessRunner, SubprocessRunner
from cpython_dist.core.workspace import RunWorkspace
from cpython_dist.models.reports import RunReport, VersionPlan
from cpython_dist.models.stages import DEFAULT_STAGE_DEFINITIONS, StageState
from cpython_dist.stages import get_stage
from cpython_dist.stages.s4_build import compute_missing

logger = logging.getLogger(__name__)


class Orchestrator:
    """Central pipeline orchestrator.

    Parameters
    ----------
    settings:
        Run settings. Read from the environment if not provided.
    runner:
        Process runner for ``tar`` and the container tool.
    release_client:
        Release-hosting client. A GitHub client is built from *settings*
        if not provided.
    http_session:
        Session used to download the source archive.
    token:
        Cancellation token checked at every external call boundary.
    console:
        Console for operator-facing progress lines.
    """

    def __init__(
        self,
        settings: DistSettings | None = None,
        *,
        runner: ProcessRunner | None = None,
        release_client: ReleaseClient | None = None,
        http_session: requests.Session | None = None,
        token: CancellationToken | None = None,
        console: Console | None = None,
    ) -> None:
        self.settings = settings or DistSettings()
        self.runner = runner or SubprocessRunner()
        self.release_client = release_client or GitHubReleaseClient(
            build_session(self.settings.github_token.get_secret_value()),
            api_url=self.settings.github_api_url,
            uploads_url=self.settings.github_uploads_url,
            timeout=self.settings.http_timeout_seconds,
        )
        if http_session is None:
            http_session = requests.Session()
            http_session.headers["User-Agent"] = USER_AGENT
        self.http_session = http_session
        self.token = token or CancellationToken()
        self.console = console or Console()
        self.workspace = RunWorkspace(keep=self.settings.keep_workdirs)
        self.run_context: dict[str, Any] = self._new_context()

    # ------------------------------------------------------------------
    # Run lifecycle
    # ------------------------------------------------------------------

    def plan(self) -> VersionPlan:
        """Fetch, read and list, without building or uploading anything."""
        with self.workspace:
            return self._plan()

    def run(self) -> RunReport:
        """Execute the full pipeline.

        Any stage failure propagates as ``StageExecutionError``; the
        workspace is cleaned up either way.
        """
        with self.workspace:
            plan = self._plan()
            ctx = self.run_context

            if plan.satisfied and not self.settings.build_when_satisfied:
                self.console.print(
                    f"already satisfied: all {len(plan.required)} required versions "
                    "are published, nothing to build"
                )
                get_stage("s4_build").skip(ctx, "already satisfied")
                get_stage("s5_publish").skip(ctx, "already satisfied")
                return self._report(plan)

            get_stage("s4_build").run_stage(ctx)

            if plan.satisfied:
                get_stage("s5_publish").skip(ctx, "nothing compiled")
            else:
                get_stage("s5_publish").run_stage(ctx)
            return self._report(plan)

    # ------------------------------------------------------------------
    # Query methods
    # ------------------------------------------------------------------

    def get_states(self) -> dict[str, StageState]:
        """Return current state of all stages."""
        return dict(self.run_context["stage_states"])

    def get_stage_state(self, stage_id: str) -> StageState:
        return self.run_context["stage_states"][stage_id]

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _new_context(self) -> dict[str, Any]:
        return {
            "settings": self.settings,
            "token": self.token,
            "runner": self.runner,
            "release_client": self.release_client,
            "http_session": self.http_session,
            "workspace": self.workspace,
            "console": self.console,
            "stage_states": {
                definition.stage_id: StageState.NOT_STARTED
                for definition in DEFAULT_STAGE_DEFINITIONS
            },
            "stage_results": {},
        }

    def _plan(self) -> VersionPlan:
        ctx = self.run_context
        for stage_id in ("s1_fetch", "s2_versions", "s3_published"):
            get_stage(stage_id).run_stage(ctx)

        required: frozenset[str] = ctx["required_versions"]
        published: frozenset[str] = ctx["published_versions"]
        plan = VersionPlan(
            required=required,
            published=published,
            missing=compute_missing(required, published),
        )
        ctx["missing_versions"] = plan.missing

        for version in plan.already_present:
            self.console.print(f"already present: {version}")
        logger.info(
            "required=%d published=%d missing=%d",
            len(plan.required),
            len(plan.published),
            len(plan.missing),
        )
        return plan

    def _report(self, plan: VersionPlan) -> RunReport:
        results = self.run_context["stage_results"]
        build = results.get("s4_build", {})
        publish = results.get("s5_publish", {})
        return RunReport(
            plan=plan,
            image_built="s4_build" in results,
            compiled_versions=build.get("compiled_versions", []),
            uploaded_assets=publish.get("uploaded_assets", []),
            stage_states=self.get_states(),
            skip_reasons=dict(self.run_context.get("skip_reasons", {})),
        )
