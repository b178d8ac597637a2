"""``cpython-dist plan`` — show which versions a run would compile.

Fetches the buildpack source and lists the release, then prints the version
plan.  No image is built and nothing is uploaded.
"""

from __future__ import annotations

from typing import Optional

import typer
from pydantic import ValidationError

from cpython_dist.cli.commands.run import settings_from_options
from cpython_dist.cli.output import configure_logging, console, fail
from cpython_dist.core.cancellation import CancellationToken, SignalListener
from cpython_dist.core.errors import DistError
from cpython_dist.core.orchestrator import Orchestrator
from cpython_dist.monitor.renderer import RunRenderer


def plan_cmd(
    source_url: Optional[str] = typer.Option(
        None, "--source-url", help="Buildpack source tarball URL."
    ),
    tag: Optional[str] = typer.Option(
        None, "--tag", "-t", help="Release tag to compare against."
    ),
    log_level: Optional[str] = typer.Option(
        None, "--log-level", "-L", help="Logging level (DEBUG, INFO, ...)."
    ),
) -> None:
    """Print required versions and whether each is already published."""
    try:
        settings = settings_from_options(
            source_url=source_url, release_tag=tag, log_level=log_level
        )
    except ValidationError as exc:
        raise fail(exc)
    configure_logging(settings.log_level)

    token = CancellationToken()
    orchestrator = Orchestrator(settings, token=token, console=console)

    with SignalListener(token):
        try:
            plan = orchestrator.plan()
        except DistError as exc:
            raise fail(exc)

    console.print()
    RunRenderer(console=console).print_plan(plan)
