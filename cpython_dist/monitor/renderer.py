"""Rich terminal renderer for run summaries and version plans.

Color scheme
------------
- green     : PASSED
- red       : FAILED
- yellow    : RUNNING
- cyan      : SKIPPED
- dim       : NOT_STARTED
"""

from __future__ import annotations

from rich.console import Console
from rich.table import Table

from cpython_dist.models.reports import RunReport, VersionPlan
from cpython_dist.models.stages import DEFAULT_STAGE_DEFINITIONS, StageState

_STATE_ICONS: dict[StageState, str] = {
    StageState.PASSED: "[green]PASSED[/green]",
    StageState.FAILED: "[bold red]FAILED[/bold red]",
    StageState.RUNNING: "[yellow]RUNNING[/yellow]",
    StageState.SKIPPED: "[cyan]SKIPPED[/cyan]",
    StageState.NOT_STARTED: "[dim]NOT STARTED[/dim]",
}


class RunRenderer:
    """Renders stage states and version plans as Rich tables.

    Parameters
    ----------
    console:
        Rich Console instance.  A new one is created if not provided.
    """

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def stage_table(
        self,
        states: dict[str, StageState],
        skip_reasons: dict[str, str] | None = None,
    ) -> Table:
        skip_reasons = skip_reasons or {}
        table = Table(title="Run Summary")
        table.add_column("#", justify="right", style="dim")
        table.add_column("Stage", style="cyan")
        table.add_column("State", justify="center")
        table.add_column("Note", style="dim")

        for definition in DEFAULT_STAGE_DEFINITIONS:
            state = states.get(definition.stage_id, StageState.NOT_STARTED)
            table.add_row(
                str(definition.ordinal),
                definition.display_name,
                _STATE_ICONS[state],
                skip_reasons.get(definition.stage_id, ""),
            )
        return table

    def plan_table(self, plan: VersionPlan) -> Table:
        table = Table(title="Version Plan")
        table.add_column("Version", style="cyan")
        table.add_column("Status", justify="center")
        for version in sorted(plan.required | plan.published):
            if version in plan.missing:
                status = "[yellow]missing[/yellow]"
            elif version in plan.required:
                status = "[green]published[/green]"
            else:
                status = "[dim]published, not required[/dim]"
            table.add_row(version, status)
        return table

    def print_states(
        self,
        states: dict[str, StageState],
        skip_reasons: dict[str, str] | None = None,
    ) -> None:
        self.console.print(self.stage_table(states, skip_reasons))

    def print_report(self, report: RunReport) -> None:
        self.print_states(report.stage_states, report.skip_reasons)
        if report.compiled_versions:
            self.console.print(
                f"[bold]Compiled:[/bold] {', '.join(report.compiled_versions)}"
            )
        if report.uploaded_assets:
            self.console.print(
                f"[bold]Uploaded:[/bold] {', '.join(report.uploaded_assets)}"
            )

    def print_plan(self, plan: VersionPlan) -> None:
        self.console.print(self.plan_table(plan))
        if plan.satisfied:
            self.console.print("[green]already satisfied[/green]: nothing to build")
        else:
            self.console.print(
                f"[yellow]{len(plan.missing)} missing:[/yellow] "
                + ", ".join(sorted(plan.missing))
            )
