"""cpython-dist CLI — Typer-based command-line interface.

Provides the ``cpython-dist`` command with ``run``, ``plan`` and ``sanitize``
subcommands.  Progress and summaries use Rich; errors are printed to stderr
as ``ERROR: ...`` with exit code 1.
"""
