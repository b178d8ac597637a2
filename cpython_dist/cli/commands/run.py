"""``cpython-dist run`` — compile and publish every missing version.

Fetches the buildpack source, diffs its declared versions against the
release, builds the compilation image, compiles each missing version and
uploads the resulting archives.  The first SIGINT/SIGTERM cancels the run;
a second one exits immediately with code 130.
"""

from __future__ import annotations

from typing import Any, Optional

import typer
from pydantic import ValidationError

from cpython_dist.cli.output import configure_logging, console, fail
from cpython_dist.config import DistSettings
from cpython_dist.core.cancellation import CancellationToken, SignalListener
from cpython_dist.core.errors import DistError
from cpython_dist.core.orchestrator import Orchestrator
from cpython_dist.monitor.renderer import RunRenderer


def settings_from_options(**overrides: Any) -> DistSettings:
    """Build settings from the environment, then apply non-None CLI overrides."""
    return DistSettings(
        **{key: value for key, value in overrides.items() if value is not None}
    )


def run_cmd(
    source_url: Optional[str] = typer.Option(
        None, "--source-url", help="Buildpack source tarball URL."
    ),
    tag: Optional[str] = typer.Option(
        None, "--tag", "-t", help="Release tag to list and upload to."
    ),
    upload_checksums: Optional[bool] = typer.Option(
        None,
        "--upload-checksums/--no-upload-checksums",
        help="Also upload .checksum files next to the archives.",
    ),
    build_when_satisfied: Optional[bool] = typer.Option(
        None,
        "--build-when-satisfied/--no-build-when-satisfied",
        help="Build the image even when no version is missing.",
    ),
    keep_workdirs: bool = typer.Option(
        False, "--keep-workdirs", help="Keep the temporary source and output directories."
    ),
    log_level: Optional[str] = typer.Option(
        None, "--log-level", "-L", help="Logging level (DEBUG, INFO, ...)."
    ),
) -> None:
    """Compile and publish every required version missing from the release."""
    try:
        settings = settings_from_options(
            source_url=source_url,
            release_tag=tag,
            upload_checksums=upload_checksums,
            build_when_satisfied=build_when_satisfied,
            keep_workdirs=keep_workdirs or None,
            log_level=log_level,
        )
    except ValidationError as exc:
        raise fail(exc)
    configure_logging(settings.log_level)

    token = CancellationToken()
    orchestrator = Orchestrator(settings, token=token, console=console)
    renderer = RunRenderer(console=console)

    with SignalListener(token):
        try:
            report = orchestrator.run()
        except DistError as exc:
            console.print()
            renderer.print_states(
                orchestrator.get_states(),
                orchestrator.run_context.get("skip_reasons"),
            )
            raise fail(exc)

    console.print()
    renderer.print_report(report)
    if settings.keep_workdirs:
        for path in orchestrator.workspace.paths:
            console.print(f"[dim]kept {path}[/dim]")
