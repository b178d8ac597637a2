"""``cpython-dist sanitize NAME...`` — preview upload names offline."""

from __future__ import annotations

from pathlib import Path

import typer

from cpython_dist.cli.output import console
from cpython_dist.stages.s5_publish import classify_media_type, sanitize_asset_name


def sanitize_cmd(
    names: list[str] = typer.Argument(..., help="Build output file names."),
    arch: str = typer.Option(
        "arm64", "--arch", "-a", help="Architecture marker that replaces x64."
    ),
) -> None:
    """Show the upload name and media type for each file name."""
    for name in names:
        base = Path(name).name
        console.print(
            f"{base} -> {sanitize_asset_name(base, arch)} ({classify_media_type(base)})",
            markup=False,
            highlight=False,
            soft_wrap=True,
        )
