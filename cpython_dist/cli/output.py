"""Shared console, logging setup and error reporting for CLI commands."""

from __future__ import annotations

import logging

import typer
from rich.console import Console
from rich.logging import RichHandler

console = Console()
err_console = Console(stderr=True)


def configure_logging(level: str) -> None:
    """Route all log records to stderr through Rich at *level*."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def fail(exc: BaseException) -> typer.Exit:
    """Print ``ERROR: <exc>`` to stderr and return the exit to raise."""
    err_console.print(f"ERROR: {exc}", markup=False, highlight=False, soft_wrap=True)
    return typer.Exit(code=1)
