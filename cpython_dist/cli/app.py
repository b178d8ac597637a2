"""Main Typer application — imports and registers all CLI commands.

Entry point: ``cpython-dist`` (configured via pyproject.toml scripts).
"""

from __future__ import annotations

import typer

from cpython_dist.cli.commands.plan import plan_cmd
from cpython_dist.cli.commands.run import run_cmd
from cpython_dist.cli.commands.sanitize import sanitize_cmd

app = typer.Typer(
    name="cpython-dist",
    help="Compile missing CPython versions and publish them as release assets.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

# Register subcommands
app.command(name="run", help="Compile and upload every missing version.")(run_cmd)
app.command(name="plan", help="Show required versions and what is missing.")(plan_cmd)
app.command(name="sanitize", help="Preview upload names for artifact files.")(sanitize_cmd)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
